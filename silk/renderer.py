# silk/renderer.py
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from silk.data_models import ProcessorEvent, ProcessorEventType
from silk.tool_processor import ToolProcessor


class CliRenderer:
    """
    Terminal observer for one task's `ToolProcessor`.

    Text is written as it arrives. Tool activity is shown as short marker
    lines. `raw` drops all styling so the output can be piped.
    """

    def __init__(self, console: Optional[Console] = None, raw: bool = False):
        self.console = console or Console()
        self.raw = raw
        self._processor: Optional[ToolProcessor] = None
        self._at_line_start = True
        self.queued: List[str] = []
        self.failures = 0

    @property
    def attached(self) -> bool:
        return self._processor is not None

    def attach(self, processor: ToolProcessor) -> "CliRenderer":
        if self._processor is not None and self._processor is not processor:
            self.cleanup()
        self._processor = processor
        self._at_line_start = True
        self.queued = []
        self.failures = 0
        processor.attach(self)
        return self

    def on_event(self, event: ProcessorEvent) -> None:
        if event.type is ProcessorEventType.TEXT:
            self._write_text(event.text)
        elif event.type is ProcessorEventType.INVOCATION_QUEUED:
            self.queued.append(event.text)
            self._write_text(f"[⚙ {event.text}]" if self.raw else f"[bold bright_cyan][⚙ {escape(event.text)}][/bold bright_cyan]",
                             markup=not self.raw)
        elif event.type is ProcessorEventType.PARSE_ERROR:
            self._line(f"Warning: ignored malformed tool directive ({event.error})",
                       f"[yellow]⚠ Ignored malformed tool directive: {escape(str(event.error))}[/yellow]")
        elif event.type is ProcessorEventType.INVOCATION_STARTED:
            self._line(f"-> {event.text}", f"[bright_blue]→ {escape(event.text)}[/bright_blue]")
        elif event.type is ProcessorEventType.INVOCATION_SETTLED:
            outcome = event.outcome
            if outcome is not None and outcome.ok:
                self._line(f"OK {event.text}", f"[bold blue]✓[/bold blue] {escape(event.text)}")
            else:
                self.failures += 1
                self._line(f"FAILED {event.text}: {event.error}",
                           f"[bold red]✗[/bold red] {escape(event.text)}: [red]{escape(str(event.error))}[/red]")

    def cleanup(self) -> None:
        """Ends the current line and detaches. Safe to call when already detached."""
        if self._processor is None:
            return
        if not self._at_line_start:
            self.console.print()
            self._at_line_start = True
        self._processor.detach(self)
        self._processor = None

    def _write_text(self, text: str, markup: bool = False) -> None:
        if not text:
            return
        self.console.print(text, end="", markup=markup, emoji=False, highlight=False, soft_wrap=True)
        self._at_line_start = text.endswith("\n")

    def _line(self, plain: str, styled: str) -> None:
        if not self._at_line_start:
            self.console.print()
        if self.raw:
            self.console.print(plain, markup=False, highlight=False)
        else:
            self.console.print(styled)
        self._at_line_start = True
