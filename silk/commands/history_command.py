# silk/commands/history_command.py
from typing import TYPE_CHECKING

from rich.markup import escape

if TYPE_CHECKING:
    from silk.app_state import AppState

def try_handle_history_command(user_input: str, app_state: 'AppState') -> bool:
    if user_input.strip().lower() not in ("/history", "/h"):
        return False

    if not app_state.conversation_history:
        app_state.console.print("[yellow]No chat history[/yellow]")
        return True

    total = len(app_state.conversation_history)
    for i, msg in enumerate(app_state.conversation_history):
        role = msg.get("role", "unknown").capitalize()
        content = msg.get("content") or ""
        role_color = "green" if role == "User" else "cyan" if role == "Assistant" else "yellow"
        app_state.console.print(f"╭─ [bold {role_color}]{role}[/bold {role_color}] ({i+1}/{total})")
        app_state.console.print(f"│  {escape(content[:200])}{'...' if len(content) > 200 else ''}")
        app_state.console.print("╰─")
    app_state.console.print()
    return True
