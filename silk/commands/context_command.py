# silk/commands/context_command.py
from typing import TYPE_CHECKING

from silk.file_context_utils import FileStats
from silk.task_runner import gather_context

if TYPE_CHECKING:
    from silk.app_state import AppState

def try_handle_context_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() not in ("/context", "/c"):
        return False

    files = gather_context(app_state)
    stats = FileStats()
    for file in files:
        stats.add_file(file)
    stats.print_summary(app_state.console, show_largest_files=60)
    return True
