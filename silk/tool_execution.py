# silk/tool_execution.py
"""
Runs the invocations queued by a finished `ToolProcessor`.

All invocations are started together. Each one settles on its own: an unknown
tool, invalid arguments, a handler exception or a timeout is turned into an
error outcome for that invocation only, and siblings keep running. The call
returns once every invocation has settled, with outcomes in queue order.
"""
import asyncio
import logging
from typing import List, Mapping, Optional

from pydantic import ValidationError

from silk.data_models import InvocationOutcome, PendingInvocation, ProcessorEvent, ProcessorEventType
from silk.errors import HandlerError, UnknownToolError
from silk.tool_defs import ToolContext, ToolDescriptor
from silk.tool_processor import ToolProcessor

logger = logging.getLogger(__name__)


async def run_invocation(
    invocation: PendingInvocation,
    tools: Mapping[str, ToolDescriptor],
    ctx: ToolContext,
    timeout: Optional[float] = None,
) -> InvocationOutcome:
    """Runs one invocation and never raises for per-invocation failures."""
    tool = tools.get(invocation.tool_name)
    if tool is None:
        return InvocationOutcome(invocation=invocation, error=UnknownToolError(invocation.tool_name))

    try:
        args = tool.args_model.model_validate(invocation.args)
    except ValidationError as e:
        return InvocationOutcome(
            invocation=invocation,
            error=HandlerError(tool.name, f"invalid arguments: {e.error_count()} validation error(s)", e),
        )

    try:
        if timeout:
            result = await asyncio.wait_for(tool.handler(args, ctx), timeout=timeout)
        else:
            result = await tool.handler(args, ctx)
    except asyncio.TimeoutError as e:
        if not timeout:
            # Raised by the handler itself
            return InvocationOutcome(invocation=invocation, error=HandlerError(tool.name, str(e) or type(e).__name__, e))
        return InvocationOutcome(invocation=invocation, error=HandlerError(tool.name, f"timed out after {timeout}s", e))
    except Exception as e:
        return InvocationOutcome(invocation=invocation, error=HandlerError(tool.name, str(e) or type(e).__name__, e))

    return InvocationOutcome(invocation=invocation, result="" if result is None else str(result))


async def execute_invocations(
    processor: ToolProcessor,
    tools: Mapping[str, ToolDescriptor],
    ctx: Optional[ToolContext] = None,
    max_concurrency: Optional[int] = None,
    timeout: Optional[float] = None,
) -> List[InvocationOutcome]:
    """
    Drains the processor's queue. `finish()` must have been called.

    `max_concurrency` of None or 0 means every invocation starts at once.
    """
    queue = processor.queue
    if not queue:
        return []
    ctx = ctx or ToolContext()
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def _run_and_report(invocation: PendingInvocation) -> InvocationOutcome:
        processor.notify(ProcessorEvent(type=ProcessorEventType.INVOCATION_STARTED,
                                        text=invocation.tool_name, invocation=invocation))
        outcome = await run_invocation(invocation, tools, ctx, timeout)
        if outcome.ok:
            logger.debug("Invocation #%d (%s) succeeded", invocation.index, invocation.tool_name)
        else:
            logger.info("Invocation #%d (%s) failed: %s", invocation.index, invocation.tool_name, outcome.error)
        processor.notify(ProcessorEvent(type=ProcessorEventType.INVOCATION_SETTLED, text=invocation.tool_name,
                                        invocation=invocation, outcome=outcome, error=outcome.error))
        return outcome

    async def _settle(invocation: PendingInvocation) -> InvocationOutcome:
        if semaphore is None:
            return await _run_and_report(invocation)
        async with semaphore:
            return await _run_and_report(invocation)

    logger.debug("Executing %d invocation(s), max_concurrency=%s", len(queue), max_concurrency or "unbounded")
    return list(await asyncio.gather(*(_settle(invocation) for invocation in queue)))


def format_tool_results(outcomes: List[InvocationOutcome]) -> str:
    """Text block merged back into chat history after an execution phase."""
    lines = ["[Tool results]", ""]
    for outcome in outcomes:
        inv = outcome.invocation
        if outcome.ok:
            lines.append(f"#{inv.index + 1} {inv.tool_name}: OK")
            if outcome.result:
                lines.append(outcome.result)
        else:
            lines.append(f"#{inv.index + 1} {inv.tool_name}: ERROR {outcome.error}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
