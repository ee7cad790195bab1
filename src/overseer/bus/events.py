"""
Events posted by the orchestration side and consumed by the renderer.

Events are plain frozen dataclasses. The renderer dispatches on the concrete
type; there is no behaviour on the events themselves.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from ..ui.state import ActivityEntry, ContextPanelData, ModalSpec
from ..workflow.outcome import ExitOutcome


@dataclass(frozen=True)
class ActivityEntryAdded:
    entry: ActivityEntry


@dataclass(frozen=True)
class ActivityDetailAppended:
    """Lines appended to the entry that is currently the active action."""

    lines: Tuple[str, ...]


@dataclass(frozen=True)
class PhaseChanged:
    phase: str
    step: int
    total: int
    step_label: str = ""


@dataclass(frozen=True)
class ContextUpdated:
    context: ContextPanelData


@dataclass(frozen=True)
class TokenUsageChanged:
    used_tokens: int
    max_tokens: int
    request_count: int = 0


@dataclass(frozen=True)
class ModalRequested:
    """
    Ask the renderer to show a modal.

    When response is set the renderer resolves it with the chosen option on
    dismissal; the orchestrator blocks on it.
    """

    modal: ModalSpec
    response: Optional[Future] = field(default=None, compare=False)


@dataclass(frozen=True)
class IterationChanged:
    iteration: int
    max_iterations: Optional[int] = None


@dataclass(frozen=True)
class SpinnerChanged:
    message: Optional[str]


@dataclass(frozen=True)
class RunFinished:
    outcome: ExitOutcome
    message: str = ""


Event = Union[
    ActivityEntryAdded,
    ActivityDetailAppended,
    PhaseChanged,
    ContextUpdated,
    TokenUsageChanged,
    ModalRequested,
    IterationChanged,
    SpinnerChanged,
    RunFinished,
]
