"""
Commands posted by the renderer and consumed by the orchestration side.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class SubmitPrompt:
    text: str


@dataclass(frozen=True)
class TogglePause:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class SlashCommand:
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ModalResponse:
    modal_id: str
    choice: str


Command = Union[SubmitPrompt, TogglePause, Cancel, SlashCommand, ModalResponse]
