# silk/command_handlers.py
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from silk.app_state import AppState

# Import individual command handlers
from silk.commands.help_command import try_handle_help_command
from silk.commands.info_command import try_handle_info_command
from silk.commands.model_command import try_handle_model_command
from silk.commands.context_command import try_handle_context_command
from silk.commands.state_command import try_handle_state_command
from silk.commands.clear_command import try_handle_clear_command
from silk.commands.history_command import try_handle_history_command
from silk.commands.set_command import try_handle_set_command, try_handle_unset_command

CHAT_COMMAND_HANDLERS = [
    try_handle_help_command,
    try_handle_info_command,
    try_handle_model_command,
    try_handle_context_command,
    try_handle_state_command,
    try_handle_clear_command,
    try_handle_history_command,
    try_handle_set_command,
    try_handle_unset_command,
]

def dispatch_command(user_input: str, app_state: 'AppState') -> bool:
    """Runs the first handler that accepts the input. Returns False when none did."""
    for handler_func in CHAT_COMMAND_HANDLERS:
        if handler_func(user_input, app_state):
            return True
    return False
