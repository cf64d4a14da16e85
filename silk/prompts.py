# silk/prompts.py
from pathlib import Path
from textwrap import dedent
from typing import Optional, Union

from silk.errors import PromptFileError
from silk.tool_processor import CLOSE_SENTINEL, OPEN_SENTINEL

ESCAPED_OPEN_SENTINEL = "<\\TOOL>"
ESCAPED_CLOSE_SENTINEL = "<\\/TOOL>"

system_PROMPT = dedent(f"""\
   You are Silk, an elite software engineering assistant working inside the user's project.
   Your expertise spans system design, algorithms, testing, and best practices.
   You provide thoughtful, well-structured solutions while explaining your reasoning.

   ## Core capabilities:

   1. **Code Analysis & Discussion:**
      - Analyze the project files given in the context section below.
      - Explain complex concepts clearly and suggest improvements.

   2. **Tool Directives:**
      You act on the project by writing tool directives directly in your reply.
      A directive is a single JSON object between the markers {OPEN_SENTINEL} and {CLOSE_SENTINEL}:

      {OPEN_SENTINEL}{{"name": "write_file", "args": {{"path": "hello.txt", "content": "Hello"}}}}{CLOSE_SENTINEL}

      - "name" is one of the tool names listed in the Tools section.
      - "args" is an object matching that tool's parameter schema.
      - The JSON must be valid: escape newlines and quotes inside strings.
      - Never write the markers for any other purpose.
      - Directives run after your whole reply has been received, all at the same time,
        so never make one directive depend on the result of another in the same reply.

   ## General Guidelines:
   - Explain your intent in one sentence before emitting directives.
   - Tool arguments must include all required parameters.
   - When tool parameters require values provided by the user (e.g., a file path), use the exact values given.
   - Format your responses in markdown. Use backticks to format file, directory, function, and class names.
   - **NEVER lie or make things up.**
""")


def escape_sentinels(text: str) -> str:
    """Neutralizes directive markers in text that is not model output."""
    return text.replace(CLOSE_SENTINEL, ESCAPED_CLOSE_SENTINEL).replace(OPEN_SENTINEL, ESCAPED_OPEN_SENTINEL)


def extract_prompt(prompt_or_file: str, config_root: Optional[Union[str, Path]] = None) -> str:
    """
    Returns the prompt text for a run.

    `prompt_or_file` is treated as a file path when it names an existing file,
    either as given (absolute or relative to CWD) or relative to `config_root`.
    Otherwise the argument itself is the prompt.
    """
    if not prompt_or_file:
        return ""

    candidates = [Path(prompt_or_file).expanduser()]
    if config_root is not None and not candidates[0].is_absolute():
        candidates.append(Path(config_root) / prompt_or_file)

    for candidate in candidates:
        try:
            if not candidate.is_file():
                continue
        except OSError:
            # Very long prompts are not valid paths on some platforms
            continue
        try:
            return candidate.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PromptFileError(f"Could not read prompt file '{candidate}': {e}") from e

    return prompt_or_file
