"""
Engine-to-UI event bus and UI-to-engine command bus.
"""

from dataclasses import dataclass, field

from .channel import OrderedChannel
from .commands import Cancel, Command, ModalResponse, SlashCommand, SubmitPrompt, TogglePause
from .events import (
    ActivityDetailAppended,
    ActivityEntryAdded,
    ContextUpdated,
    Event,
    IterationChanged,
    ModalRequested,
    PhaseChanged,
    RunFinished,
    SpinnerChanged,
    TokenUsageChanged,
)


@dataclass
class MessageBus:
    """The pair of one-directional channels shared by the two loops."""

    events: OrderedChannel = field(default_factory=lambda: OrderedChannel("events"))
    commands: OrderedChannel = field(default_factory=lambda: OrderedChannel("commands"))

    def close(self) -> None:
        self.events.close()
        self.commands.close()


__all__ = [
    "MessageBus",
    "OrderedChannel",
    "Command",
    "SubmitPrompt",
    "TogglePause",
    "Cancel",
    "SlashCommand",
    "ModalResponse",
    "Event",
    "ActivityEntryAdded",
    "ActivityDetailAppended",
    "PhaseChanged",
    "ContextUpdated",
    "TokenUsageChanged",
    "ModalRequested",
    "IterationChanged",
    "SpinnerChanged",
    "RunFinished",
]
