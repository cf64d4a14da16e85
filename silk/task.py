# silk/task.py
from typing import Iterable, Mapping, Sequence, Tuple, Union

from silk.data_models import File
from silk.prompts import escape_sentinels, system_PROMPT
from silk.tool_defs import ToolDescriptor, build_tool_registry, describe_tools
from silk.tool_processor import ToolProcessor


def render_context_file(file: File) -> str:
    if file.content is None:
        return f'<file path="{file.path}" size="{file.size}" />'
    return f'<file path="{file.path}">\n{escape_sentinels(file.content)}\n</file>'


class Task:
    """
    One user turn: a prompt, the project files sent with it and the tools the
    model may call. Construction does no I/O.

    The task owns the `ToolProcessor` that scans the model's answer to this
    turn; it is created here and never replaced.
    """

    def __init__(
        self,
        prompt: str,
        context: Sequence[File] = (),
        tools: Union[Iterable[ToolDescriptor], Mapping[str, ToolDescriptor]] = (),
    ):
        if isinstance(tools, Mapping):
            tools = tools.values()
        self._prompt = prompt
        self._context: Tuple[File, ...] = tuple(context)
        self._tools = build_tool_registry(tools)
        self._processor = ToolProcessor()

    @property
    def prompt(self) -> str:
        return self._prompt

    @property
    def context(self) -> Tuple[File, ...]:
        return self._context

    @property
    def tools(self) -> Mapping[str, ToolDescriptor]:
        return self._tools

    @property
    def processor(self) -> ToolProcessor:
        return self._processor

    def system_text(self) -> str:
        sections = [system_PROMPT.rstrip()]
        if self._tools:
            sections.append("## Tools:\n" + describe_tools(self._tools))
        else:
            sections.append("## Tools:\nNo tools are available for this request. Do not emit tool directives.")
        if self._context:
            rendered = "\n\n".join(render_context_file(f) for f in self._context)
            sections.append(f"## Context ({len(self._context)} files):\n{rendered}")
        return "\n\n".join(sections) + "\n"

    def user_text(self) -> str:
        return escape_sentinels(self._prompt.strip())
