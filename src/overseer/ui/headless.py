"""
Line-oriented event consumer for unattended runs.

Used instead of the full-screen renderer by run_headless: the same events are
printed as colored lines with a rule for each phase change.
"""

import logging
from typing import Callable, Optional

from rich.console import Console
from rich.text import Text

from ..bus import MessageBus
from ..bus.events import (
    ActivityDetailAppended,
    ActivityEntryAdded,
    Event,
    IterationChanged,
    ModalRequested,
    PhaseChanged,
    RunFinished,
)
from ..workflow.outcome import ExitOutcome
from .components.activity import entry_icon
from .modal_manager import DISMISSED
from .state import Severity
from .theme import THEME

logger = logging.getLogger(__name__)

_SEVERITY_STYLES = {
    Severity.INFO: THEME["text"],
    Severity.SUCCESS: THEME["success"],
    Severity.WARNING: THEME["warning"],
    Severity.ERROR: THEME["error"],
}


class HeadlessConsumer:
    """Prints bus events to a Rich console."""

    def __init__(self, console: Optional[Console] = None, stream_output: bool = True) -> None:
        self.console = console or Console()
        self.stream_output = stream_output
        self._last_phase: Optional[str] = None

    def handle(self, event: Event) -> Optional[RunFinished]:
        """Print one event. Returns the event if it ends the run."""
        if isinstance(event, PhaseChanged):
            if event.phase != self._last_phase:
                self._last_phase = event.phase
                self.console.rule(f"[bold]{event.phase}[/bold]", style=THEME["border"])
            label = f": {event.step_label}" if event.step_label else ""
            self.console.print(f"Step {event.step}/{event.total}{label}", style=THEME["muted"], highlight=False)
        elif isinstance(event, ActivityEntryAdded):
            entry = event.entry
            style = _SEVERITY_STYLES[entry.severity]
            line = Text(f"{entry_icon(entry)} ", style=style)
            line.append(entry.summary, style=style)
            self.console.print(line)
            if entry.always_expanded or (self.stream_output and entry.details):
                for detail in entry.details:
                    self.console.print(Text(f"  │ {detail}", style=THEME["muted"]))
        elif isinstance(event, ActivityDetailAppended):
            if self.stream_output:
                for line in event.lines:
                    self.console.print(Text(f"  │ {line}", style=THEME["muted"]))
        elif isinstance(event, IterationChanged):
            limit = f"/{event.max_iterations}" if event.max_iterations else ""
            self.console.print(f"Iteration {event.iteration}{limit}", style=THEME["accent"], highlight=False)
        elif isinstance(event, ModalRequested):
            # Nobody can answer a modal here; report it and decline.
            self.console.print(Text(f"⚠ {event.modal.message or event.modal.title}", style=THEME["warning"]))
            if event.response is not None and not event.response.done():
                event.response.set_result(DISMISSED)
        elif isinstance(event, RunFinished):
            style = THEME["success"] if event.outcome == ExitOutcome.SUCCESS else THEME["error"]
            message = event.message or event.outcome.description
            self.console.print(Text(f"{event.outcome.description}: {message}", style=f"bold {style}"))
            return event
        return None

    def pump(
        self,
        bus: MessageBus,
        worker_alive: Callable[[], bool],
        poll_interval: float = 0.1,
    ) -> Optional[RunFinished]:
        """
        Print events until the run finishes or the worker goes away.

        Returns:
            The RunFinished event, or None if the worker ended without one
        """
        while True:
            bus.events.wait(poll_interval)
            for event in bus.events.drain():
                finished = self.handle(event)
                if finished is not None:
                    return finished
            if not worker_alive() and not len(bus.events):
                logger.warning("Orchestrator exited without reporting an outcome")
                return None
