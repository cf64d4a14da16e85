# silk/tool_processor.py
"""
Incremental scanner for tool directives embedded in a streamed model response.

The model answers on a single channel that mixes prose with directives of the
form::

    <TOOL>{"name": "write_file", "args": {"path": "a.txt", "content": "..."}}</TOOL>

`ToolProcessor.process` is fed one chunk at a time. Prose is forwarded to the
attached observers as soon as it is known not to be part of a sentinel, while
complete directives are decoded and queued. Nothing is executed here: once the
stream ends the caller calls `finish()` and drains the frozen queue (see
`silk.tool_execution`).

The sentinels and the JSON payload layout are persisted in chat history, so
they must not change between releases.
"""
import logging
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from pydantic import ValidationError

from silk.data_models import (
    DirectivePayload,
    PendingInvocation,
    ProcessorEvent,
    ProcessorEventType,
)
from silk.errors import ParseError

logger = logging.getLogger(__name__)

OPEN_SENTINEL = "<TOOL>"
CLOSE_SENTINEL = "</TOOL>"


class ProcessorMode(Enum):
    SCANNING = "scanning"
    ACCUMULATING = "accumulating"


class ProcessorObserver(Protocol):
    def on_event(self, event: ProcessorEvent) -> None:
        ...


def _partial_sentinel_length(buffer: str, start: int, sentinel: str) -> int:
    """Length of the longest proper prefix of `sentinel` that ends `buffer[start:]`."""
    longest = min(len(sentinel) - 1, len(buffer) - start)
    for size in range(longest, 0, -1):
        if buffer.endswith(sentinel[:size]):
            return size
    return 0


def parse_directive(payload: str) -> DirectivePayload:
    """Decodes the text between the sentinels. Raises ParseError on any malformed payload."""
    try:
        return DirectivePayload.model_validate_json(payload.strip())
    except ValidationError as e:
        raw_span = f"{OPEN_SENTINEL}{payload}{CLOSE_SENTINEL}"
        first = e.errors()[0] if e.errors() else {}
        message = first.get("msg", str(e))
        raise ParseError(f"Malformed tool directive: {message}", raw_span=raw_span) from e


class ToolProcessor:
    """
    Two-state directive scanner with a deferred invocation queue.

    State survives chunk boundaries through a carry buffer that holds at most
    one unfinished sentinel, so the output does not depend on how the stream
    was split. `process` never blocks and never awaits.
    """

    def __init__(self):
        self._mode = ProcessorMode.SCANNING
        self._carry = ""
        self._payload_parts: List[str] = []
        self._directive_start = 0
        self._stream_pos = 0
        self._builder: List[PendingInvocation] = []
        self._queue: Optional[Tuple[PendingInvocation, ...]] = None
        self._observers: List[ProcessorObserver] = []

    # --- observers ---

    def attach(self, observer: ProcessorObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def detach(self, observer: ProcessorObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    @property
    def observers(self) -> Tuple[ProcessorObserver, ...]:
        return tuple(self._observers)

    def notify(self, event: ProcessorEvent) -> None:
        for observer in list(self._observers):
            observer.on_event(event)

    # --- state ---

    @property
    def mode(self) -> ProcessorMode:
        return self._mode

    @property
    def carry_buffer(self) -> str:
        return self._carry

    @property
    def finished(self) -> bool:
        return self._queue is not None

    @property
    def pending_count(self) -> int:
        return len(self._builder)

    @property
    def queue(self) -> Tuple[PendingInvocation, ...]:
        """The invocations in directive-closing order. Only available after `finish()`."""
        if self._queue is None:
            raise RuntimeError("The invocation queue is only available after finish()")
        return self._queue

    # --- streaming ---

    def process(self, chunk: str) -> None:
        if self._queue is not None:
            raise RuntimeError("process() called after finish()")
        if not chunk:
            return

        buffer = self._carry + chunk
        base = self._stream_pos - len(self._carry)
        self._stream_pos += len(chunk)
        self._carry = ""
        pos = 0

        while pos < len(buffer):
            if self._mode is ProcessorMode.SCANNING:
                start = buffer.find(OPEN_SENTINEL, pos)
                if start == -1:
                    keep = _partial_sentinel_length(buffer, pos, OPEN_SENTINEL)
                    self._emit_text(buffer[pos:len(buffer) - keep])
                    self._carry = buffer[len(buffer) - keep:]
                    return
                self._emit_text(buffer[pos:start])
                self._mode = ProcessorMode.ACCUMULATING
                self._directive_start = base + start
                self._payload_parts = []
                pos = start + len(OPEN_SENTINEL)
            else:
                end = buffer.find(CLOSE_SENTINEL, pos)
                if end == -1:
                    keep = _partial_sentinel_length(buffer, pos, CLOSE_SENTINEL)
                    self._payload_parts.append(buffer[pos:len(buffer) - keep])
                    self._carry = buffer[len(buffer) - keep:]
                    return
                self._payload_parts.append(buffer[pos:end])
                pos = end + len(CLOSE_SENTINEL)
                self._mode = ProcessorMode.SCANNING
                self._close_directive(base + pos)

    def finish(self) -> Tuple[PendingInvocation, ...]:
        """
        Ends the stream and freezes the queue.

        An unterminated directive is flushed as plain text, as is a trailing
        partial sentinel. Safe to call more than once.
        """
        if self._queue is not None:
            return self._queue

        if self._mode is ProcessorMode.ACCUMULATING:
            raw = OPEN_SENTINEL + "".join(self._payload_parts) + self._carry
            logger.warning("Stream ended inside a tool directive; flushing %d chars as text", len(raw))
            self._emit_text(raw)
            self._mode = ProcessorMode.SCANNING
            self._payload_parts = []
        else:
            self._emit_text(self._carry)
        self._carry = ""

        self._queue = tuple(self._builder)
        self._builder = []
        return self._queue

    # --- internals ---

    def _emit_text(self, text: str) -> None:
        if text:
            self.notify(ProcessorEvent(type=ProcessorEventType.TEXT, text=text))

    def _close_directive(self, end: int) -> None:
        payload = "".join(self._payload_parts)
        self._payload_parts = []
        try:
            directive = parse_directive(payload)
        except ParseError as e:
            logger.info("Dropping tool directive at offset %d: %s", self._directive_start, e)
            self._emit_text(e.raw_span)
            self.notify(ProcessorEvent(type=ProcessorEventType.PARSE_ERROR, text=e.raw_span, error=e))
            return

        invocation = PendingInvocation(
            tool_name=directive.name,
            args=directive.args,
            source_span=(self._directive_start, end),
            index=len(self._builder),
        )
        self._builder.append(invocation)
        logger.debug("Queued invocation #%d: %s", invocation.index, invocation.tool_name)
        self.notify(ProcessorEvent(
            type=ProcessorEventType.INVOCATION_QUEUED,
            text=invocation.tool_name,
            invocation=invocation,
        ))
