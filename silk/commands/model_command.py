# silk/commands/model_command.py
from typing import TYPE_CHECKING

from silk.config_utils import get_available_models, get_config_value, update_runtime_override

if TYPE_CHECKING:
    from silk.app_state import AppState

def try_handle_model_command(user_input: str, app_state: 'AppState') -> bool:
    command_prefix = "/model"
    stripped_input = user_input.strip()

    if stripped_input.lower() != command_prefix and not stripped_input.lower().startswith(command_prefix + " "):
        return False

    model_arg = stripped_input[len(command_prefix):].strip()
    if model_arg:
        update_runtime_override("model", model_arg, app_state.RUNTIME_OVERRIDES, app_state.console)
        return True

    models = get_available_models(app_state.RUNTIME_OVERRIDES)
    current = get_config_value("model", app_state.RUNTIME_OVERRIDES)
    app_state.console.print("[bold blue]Select model:[/bold blue]")
    for i, model in enumerate(models, start=1):
        marker = "[green]●[/green]" if model == current else " "
        app_state.console.print(f"  {marker} {i}. {model}")

    choice = app_state.prompt_session.prompt("Model number or name (empty to keep): ").strip()
    if not choice:
        return True
    if choice.isdigit():
        index = int(choice) - 1
        if not 0 <= index < len(models):
            app_state.console.print(f"[red]Error: No model number {choice}.[/red]")
            return True
        choice = models[index]
    update_runtime_override("model", choice, app_state.RUNTIME_OVERRIDES, app_state.console)
    return True
