# silk/task_runner.py
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterable, List, Optional

from rich.panel import Panel

from silk.app_state import AppState
from silk.config_utils import MAX_TOOL_FILE_SIZE_BYTES, get_config_value
from silk.data_models import File, InvocationOutcome
from silk.errors import LimitExceededError
from silk.file_context_utils import FileStats, LimitChecker, gather_context_info, resolve_content
from silk.llm_interaction import build_messages, drive_stream, litellm_stream, trim_conversation_history
from silk.renderer import CliRenderer
from silk.task import Task
from silk.tool_defs import ToolContext, ToolDescriptor, create_basic_tools
from silk.tool_execution import execute_invocations, format_tool_results

logger = logging.getLogger(__name__)


@dataclass
class TaskResult:
    content: str
    outcomes: List[InvocationOutcome] = field(default_factory=list)
    # The prompt as it was sent, with sentinels escaped
    user_text: str = ""

    @property
    def failures(self) -> List[InvocationOutcome]:
        return [o for o in self.outcomes if not o.ok]


async def execute_task(
    task: Task,
    chunks: AsyncIterable[str],
    renderer: Optional[CliRenderer] = None,
    tool_ctx: Optional[ToolContext] = None,
    max_concurrency: Optional[int] = None,
    timeout: Optional[float] = None,
) -> TaskResult:
    """
    Streams one task and runs the invocations it produced.

    The renderer is attached for the duration of the call and cleaned up on
    every exit path. A TransportError propagates and no invocation is run.
    """
    if renderer is not None:
        renderer.attach(task.processor)
    try:
        content = await drive_stream(task.processor, chunks)
        outcomes = await execute_invocations(
            task.processor, task.tools, tool_ctx, max_concurrency=max_concurrency, timeout=timeout
        )
        return TaskResult(content=content, outcomes=outcomes, user_text=task.user_text())
    finally:
        if renderer is not None:
            renderer.cleanup()


def build_tools(app_state: AppState) -> List[ToolDescriptor]:
    if app_state.tools:
        return list(app_state.tools)
    output = get_config_value("output", app_state.RUNTIME_OVERRIDES, app_state.console)
    return [*create_basic_tools(output=output), *app_state.additional_tools]


def build_tool_context(app_state: AppState) -> ToolContext:
    return ToolContext(root=Path.cwd(), max_file_size=MAX_TOOL_FILE_SIZE_BYTES)


def gather_context(app_state: AppState) -> List[File]:
    include = get_config_value("include", app_state.RUNTIME_OVERRIDES, app_state.console)
    ignore = get_config_value("ignore", app_state.RUNTIME_OVERRIDES)
    return gather_context_info(include, ignore=ignore or ())


async def prepare_context(app_state: AppState, show_stats: bool = True) -> Optional[List[File]]:
    """
    Gathers, reports and size-checks the context, then loads its content.
    Returns None (after telling the user why) when a limit is exceeded.
    """
    overrides = app_state.RUNTIME_OVERRIDES
    context_info = gather_context(app_state)

    if show_stats:
        stats = FileStats()
        for file in context_info:
            stats.add_file(file)
        stats.print_summary(app_state.console)

    limit_checker = LimitChecker(
        max_file_size=get_config_value("max_file_size", overrides),
        max_total_size=get_config_value("max_total_size", overrides),
    )
    try:
        limit_checker.check_files(context_info)
    except LimitExceededError as e:
        app_state.console.print()
        app_state.console.print(f"[bold red]✗ {e}[/bold red]")
        app_state.console.print("[dim]Reduce the context or increase the limits in the config file.[/dim]")
        app_state.console.print()
        return None

    return await resolve_content(context_info)


def display_prompt(prompt: str, app_state: AppState):
    app_state.console.print(Panel(prompt, title="[bold blue]Prompt[/bold blue]", border_style="blue", title_align="left"))


async def run_prompt(
    prompt: str,
    app_state: AppState,
    history: Optional[list] = None,
    dry: bool = False,
    chunks: Optional[AsyncIterable[str]] = None,
) -> Optional[TaskResult]:
    """
    One request: context, task, stream, tools. Returns None when nothing was
    sent (limits exceeded or dry run).

    `chunks` replaces the model stream (used by tests and scripted runs).
    """
    overrides = app_state.RUNTIME_OVERRIDES
    context = await prepare_context(app_state, show_stats=get_config_value("stats", overrides))
    if context is None:
        return None

    task = Task(prompt=prompt, context=context, tools=build_tools(app_state))
    app_state.system_text = task.system_text()
    messages = build_messages(task, history)
    logger.info("message size: %d", len(json.dumps(messages)))

    if dry:
        app_state.console.print(f"[yellow]Dry run: not sending {len(messages)} message(s) to the model.[/yellow]")
        return None

    if chunks is None:
        chunks = litellm_stream(messages, overrides, debug=app_state.DEBUG_LLM_INTERACTIONS)
    renderer = CliRenderer(app_state.console, raw=get_config_value("raw", overrides))
    timeout = get_config_value("tool_timeout", overrides)
    return await execute_task(
        task,
        chunks,
        renderer=renderer,
        tool_ctx=build_tool_context(app_state),
        max_concurrency=get_config_value("max_concurrency", overrides),
        timeout=timeout or None,
    )


async def handle_chat_prompt(user_input: str, app_state: AppState, chunks: Optional[AsyncIterable[str]] = None) -> Optional[TaskResult]:
    """
    One chat exchange. The user turn, the assistant answer and, when tools ran,
    a user turn with their results are appended to the history. Nothing is
    appended when the request was not sent or the stream failed.
    """
    trim_conversation_history(app_state.conversation_history)
    history = list(app_state.conversation_history)

    result = await run_prompt(user_input, app_state, history=history, chunks=chunks)
    if result is None:
        return None

    app_state.conversation_history.append({"role": "user", "content": result.user_text})
    app_state.conversation_history.append({"role": "assistant", "content": result.content})
    if result.outcomes:
        app_state.conversation_history.append({"role": "user", "content": format_tool_results(result.outcomes)})
        if result.failures:
            app_state.console.print(f"[yellow]{len(result.failures)} of {len(result.outcomes)} tool invocation(s) failed.[/yellow]")
    return result
