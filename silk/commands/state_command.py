# silk/commands/state_command.py
from typing import TYPE_CHECKING

from rich.pretty import Pretty

from silk.config_utils import effective_configuration
from silk.task_runner import build_tools

if TYPE_CHECKING:
    from silk.app_state import AppState

def try_handle_state_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() not in ("/state", "/s"):
        return False

    state = {
        "config": effective_configuration(app_state.RUNTIME_OVERRIDES),
        "overrides": dict(app_state.RUNTIME_OVERRIDES),
        "history_messages": len(app_state.conversation_history),
        "system_chars": len(app_state.system_text),
        "tools": [t.name for t in build_tools(app_state)],
    }
    app_state.console.print(Pretty(state))
    return True
