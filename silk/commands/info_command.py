# silk/commands/info_command.py
from typing import TYPE_CHECKING

from silk.ui_display import display_config_info

if TYPE_CHECKING:
    from silk.app_state import AppState

def try_handle_info_command(user_input: str, app_state: 'AppState') -> bool:
    command = user_input.strip().lower()
    if command not in ("/info", "/i"):
        return False

    display_config_info(app_state)
    return True
