# silk/commands/help_command.py
from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.table import Table

from silk.config_utils import SUPPORTED_SET_PARAMS

if TYPE_CHECKING:
    from silk.app_state import AppState

CHAT_COMMANDS = [
    ("/help", "Show this help"),
    ("/info, /i", "Show the effective configuration"),
    ("/model [name]", "Show or select the model"),
    ("/context, /c", "List the context files that would be sent"),
    ("/state, /s", "Show internal state"),
    ("/history, /h", "Show chat history"),
    ("/clear", "Clear chat history"),
    ("/set <param> <value>", "Set a runtime override (no arguments: list overrides)"),
    ("/unset <param>", "Remove a runtime override"),
    ("exit, quit", "Exit the chat"),
]

def try_handle_help_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() != "/help":
        return False

    commands_table = Table(show_header=False, box=None, padding=(0, 2))
    for command, description in CHAT_COMMANDS:
        commands_table.add_row(f"[bold bright_blue]{command}[/bold bright_blue]", description)
    app_state.console.print(Panel(commands_table, title="[bold blue]Chat commands[/bold blue]",
                                  border_style="blue", title_align="left"))

    params_table = Table(show_header=True, header_style="bold blue", box=None, padding=(0, 2))
    params_table.add_column("Parameter")
    params_table.add_column("Env var", style="dim")
    params_table.add_column("Description")
    for name, details in SUPPORTED_SET_PARAMS.items():
        params_table.add_row(name, details.get("env_var", ""), details["description"])
    app_state.console.print(Panel(params_table, title="[bold blue]Settable parameters[/bold blue]",
                                  border_style="blue", title_align="left"))
    return True
