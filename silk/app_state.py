# silk/app_state.py
from pathlib import Path
from typing import Any, Dict, List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.styles import Style as PromptStyle
from rich.console import Console

from silk.tool_defs import ToolDescriptor


class AppState:
    def __init__(self, console: Optional[Console] = None, prompt_session: Optional[PromptSession] = None):
        self.console = console or Console()
        self.prompt_session = prompt_session or PromptSession(
            style=PromptStyle.from_dict({
                'prompt': '#0066ff bold',
                'completion-menu.completion': 'bg:#1e3a8a fg:#ffffff',
                'completion-menu.completion.current': 'bg:#3b82f6 fg:#ffffff bold',
            })
        )
        # Conversation history stores user/assistant turns, and tool results as user turns.
        # The system text is rebuilt by each Task and prepended by llm_interaction.
        self.conversation_history: List[Dict[str, Any]] = []
        self.system_text = ""
        self.config_path: Optional[Path] = None
        self.DEBUG_LLM_INTERACTIONS: bool = False
        self.RUNTIME_OVERRIDES: Dict[str, Any] = {}
        # Replaces the basic tools when non-empty
        self.tools: List[ToolDescriptor] = []
        self.additional_tools: List[ToolDescriptor] = []
