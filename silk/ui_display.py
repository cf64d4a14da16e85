import os

from rich.panel import Panel
from rich.table import Table

from silk.app_state import AppState
from silk.config_utils import SUPPORTED_SET_PARAMS, effective_configuration, get_config_value


def display_welcome_panel(app_state: AppState):
    """Displays the welcome panel."""
    current_model_name_for_display = get_config_value("model", app_state.RUNTIME_OVERRIDES, app_state.console)
    include = get_config_value("include", app_state.RUNTIME_OVERRIDES) or []
    current_working_directory = os.getcwd()

    instructions = f"""  📁 [bold bright_blue]Project Root: [/bold bright_blue][bold green]{current_working_directory}[/bold green]

  🧠 [bold bright_blue]Model: [/bold bright_blue][bold magenta]{current_model_name_for_display}[/bold magenta]
     Context: [dim]{', '.join(include) or 'Not Set'}[/dim]

  ❓ [bold bright_blue]/help[/bold bright_blue] - List chat commands. Type [bold]exit[/bold] to quit.

  👥 [bold white]Just ask naturally, like you are explaining to a Software Engineer.[/bold white]"""

    app_state.console.print(Panel(
        instructions,
        border_style="blue",
        padding=(1, 2),
        title="[bold blue]🎯 Silk chat[/bold blue]",
        title_align="left"
    ))
    app_state.console.print()


def display_config_info(app_state: AppState):
    """Shows every setting with its effective value and whether it was overridden."""
    table = Table(title="Configuration", title_justify="left", header_style="bold blue")
    table.add_column("Parameter")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    for name, value in effective_configuration(app_state.RUNTIME_OVERRIDES).items():
        env_var = SUPPORTED_SET_PARAMS[name].get("env_var")
        if name in app_state.RUNTIME_OVERRIDES:
            source = "override"
        elif env_var and os.getenv(env_var) is not None:
            source = f"${env_var}"
        else:
            source = "config/default"
        table.add_row(name, str(value), source)

    app_state.console.print(f"[bold bright_blue]Config file:[/bold bright_blue] {app_state.config_path or 'none'}")
    app_state.console.print(f"[bold bright_blue]Project root:[/bold bright_blue] {os.getcwd()}")
    app_state.console.print(table)
