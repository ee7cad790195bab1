"""
UI state: immutable snapshot dataclasses.

Everything here is frozen. The render loop builds a new UiState each frame
with dataclasses.replace; nothing outside the render loop holds a reference
it can mutate.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class FocusTarget(Enum):
    """Panels that can hold keyboard focus, in Tab order."""

    PROMPT = "prompt"
    ACTIVITY = "activity"
    CONTEXT = "context"


class Severity(Enum):
    """Severity of an activity entry."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class EntryKind(Enum):
    """Types of activity entries for visual distinction."""

    ACTION = "action"
    FILE_EDIT = "file_edit"
    COMMAND = "command"
    TEST_RESULT = "test_result"
    PHASE_TRANSITION = "phase_transition"
    AGENT_OUTPUT = "agent_output"
    VERIFICATION = "verification"


@dataclass(frozen=True)
class ActivityEntry:
    """A single entry in the activity feed."""

    summary: str
    details: Tuple[str, ...] = ()
    expanded: bool = False
    is_current_action: bool = False
    severity: Severity = Severity.INFO
    kind: EntryKind = EntryKind.ACTION

    @property
    def always_expanded(self) -> bool:
        return self.severity in (Severity.ERROR, Severity.WARNING)

    @property
    def shows_details(self) -> bool:
        return self.is_current_action or self.expanded or self.always_expanded


@dataclass(frozen=True)
class ActivityPanelData:
    """Ordered entries, newest last. scroll_offset -1 follows the tail."""

    entries: Tuple[ActivityEntry, ...] = ()
    scroll_offset: int = -1
    selected_index: int = -1


class TaskState(Enum):
    """Completion state shown in the context tree."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class SubtaskItem:
    name: str
    state: TaskState = TaskState.PENDING


@dataclass(frozen=True)
class TaskSection:
    """The job currently being worked on."""

    name: str
    requirement_code: str = ""
    progress_percent: int = 0
    note: str = ""
    subtasks: Tuple[SubtaskItem, ...] = ()


@dataclass(frozen=True)
class JobListSection:
    """All jobs of the current plan."""

    title: str
    completed: int = 0
    total: int = 0
    items: Tuple[SubtaskItem, ...] = ()


@dataclass(frozen=True)
class ResourceItem:
    """A document reachable with the number keys."""

    label: str
    content: str = ""


@dataclass(frozen=True)
class ContextPanelData:
    current_task: Optional[TaskSection] = None
    jobs: Optional[JobListSection] = None
    resources: Tuple[ResourceItem, ...] = ()


@dataclass(frozen=True)
class TopPanelData:
    """Header strip data."""

    version: str = "0.0.0"
    model_name: str = ""
    context_used_tokens: int = 0
    context_max_tokens: int = 0
    request_count: int = 0
    phase_name: str = ""
    current_step: int = 0
    total_steps: int = 0
    step_label: str = ""
    iteration: int = 0
    max_iterations: Optional[int] = None
    show_logo: bool = True


@dataclass(frozen=True)
class PromptData:
    """Input buffer and hint row."""

    text: str = ""
    cursor: int = 0
    is_paused: bool = False
    placeholder: str = "Type an instruction, or /help"
    spinner: Optional[str] = None
    spinner_frame: int = 0
    hints: Optional[Tuple[str, ...]] = None


class ModalKind(Enum):
    """Modal variants; each has exactly one render function."""

    LANDING = "landing"
    HELP = "help"
    CONFIRMATION = "confirmation"
    ERROR = "error"
    RESOURCE_VIEWER = "resource_viewer"
    SESSION_RESUME = "session_resume"
    SELECTION = "selection"
    ESCALATION = "escalation"


@dataclass(frozen=True)
class ModalSpec:
    """
    Tagged modal payload.

    Fields not used by a kind are left at their defaults. local modals are
    dismissed without reporting anything to the orchestrator.
    """

    kind: ModalKind
    title: str = ""
    modal_id: str = ""
    message: str = ""
    options: Tuple[str, ...] = ()
    lines: Tuple[str, ...] = ()
    selected_index: int = 0
    scroll_offset: int = 0
    local: bool = False


@dataclass(frozen=True)
class ActiveModal:
    spec: ModalSpec
    response: Optional[Future] = field(default=None, compare=False)


@dataclass(frozen=True)
class UiState:
    """The complete render input for one frame."""

    focus: FocusTarget = FocusTarget.PROMPT
    pre_modal_focus: FocusTarget = FocusTarget.PROMPT
    split_percent: int = 60
    top: TopPanelData = field(default_factory=TopPanelData)
    activity: ActivityPanelData = field(default_factory=ActivityPanelData)
    context: ContextPanelData = field(default_factory=ContextPanelData)
    prompt: PromptData = field(default_factory=PromptData)
    modal: Optional[ActiveModal] = None
    pending_modals: Tuple[ActiveModal, ...] = ()
    frame: int = 0
    should_exit: bool = False
    outcome_message: str = ""
    # (columns, rows) of the last frame; modal scrolling is clamped against it.
    screen_size: Tuple[int, int] = (80, 24)

    @property
    def modal_active(self) -> bool:
        return self.modal is not None
