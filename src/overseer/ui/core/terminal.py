"""
Terminal I/O adapters for the render loop.

TerminalSink turns absolute-position styled writes into escape sequences on a
Rich console. KeyboardInput wraps prompt_toolkit's raw input and translates
its key presses into KeyEvent values the input router understands.
"""

from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional, Tuple

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from rich.color import ColorSystem
from rich.console import Console
from rich.control import Control
from rich.style import Style

logger = logging.getLogger(__name__)

_COLOR_SYSTEMS = {
    "standard": ColorSystem.STANDARD,
    "256": ColorSystem.EIGHT_BIT,
    "truecolor": ColorSystem.TRUECOLOR,
    "windows": ColorSystem.WINDOWS,
}


class KeyModifiers(enum.Flag):
    NONE = 0
    CTRL = enum.auto()
    ALT = enum.auto()
    SHIFT = enum.auto()


@dataclass(frozen=True)
class KeyEvent:
    """
    A decoded key press.

    key is a lowercase name ("enter", "tab", "left", "p", "1", ...). char is
    the printable character, or "" for named keys.
    """

    key: str
    modifiers: KeyModifiers = KeyModifiers.NONE
    char: str = ""

    @property
    def ctrl(self) -> bool:
        return bool(self.modifiers & KeyModifiers.CTRL)

    @property
    def alt(self) -> bool:
        return bool(self.modifiers & KeyModifiers.ALT)

    @property
    def shift(self) -> bool:
        return bool(self.modifiers & KeyModifiers.SHIFT)

    @classmethod
    def for_char(cls, char: str) -> "KeyEvent":
        if char == " ":
            return cls("space", char=" ")
        return cls(char.lower(), char=char)


_NAMED_KEYS = {
    Keys.ControlM: "enter",
    Keys.ControlI: "tab",
    Keys.Escape: "escape",
    Keys.ControlH: "backspace",
    Keys.Backspace: "backspace",
    Keys.Delete: "delete",
    Keys.Left: "left",
    Keys.Right: "right",
    Keys.Up: "up",
    Keys.Down: "down",
    Keys.Home: "home",
    Keys.End: "end",
    Keys.PageUp: "pageup",
    Keys.PageDown: "pagedown",
}


def _translate_one(press: KeyPress) -> List[KeyEvent]:
    key = press.key
    if key == Keys.BracketedPaste:
        events = []
        for char in press.data.replace("\r\n", "\n"):
            if char in "\r\n":
                events.append(KeyEvent("enter", KeyModifiers.ALT))
            else:
                events.append(KeyEvent.for_char(char))
        return events
    if key == Keys.BackTab:
        return [KeyEvent("tab", KeyModifiers.SHIFT)]
    if key == Keys.ControlJ:
        return [KeyEvent("enter", KeyModifiers.ALT)]
    if key in _NAMED_KEYS:
        return [KeyEvent(_NAMED_KEYS[key])]
    if isinstance(key, Keys) and key.value.startswith("c-") and len(key.value) == 3:
        return [KeyEvent(key.value[2], KeyModifiers.CTRL)]
    if isinstance(key, str) and len(key) == 1:
        return [KeyEvent.for_char(key)]
    return []


def translate_key_presses(presses: Iterable[KeyPress]) -> List[KeyEvent]:
    """Translate prompt_toolkit key presses; ESC followed by a key becomes Alt+key."""
    events: List[KeyEvent] = []
    pending_escape = False
    for press in presses:
        if press.key == Keys.Escape:
            if pending_escape:
                events.append(KeyEvent("escape"))
            pending_escape = True
            continue
        translated = _translate_one(press)
        if pending_escape and translated:
            first = translated[0]
            translated[0] = KeyEvent(first.key, first.modifiers | KeyModifiers.ALT, "")
        pending_escape = False
        events.extend(translated)
    if pending_escape:
        events.append(KeyEvent("escape"))
    return events


class KeyboardInput:
    """Non-blocking raw key source."""

    def __init__(self, source: Optional[Input] = None) -> None:
        self._input = source
        self._raw_mode = None
        self._pending: Deque[KeyEvent] = deque()

    def start(self) -> None:
        if self._input is None:
            self._input = create_input()
        self._raw_mode = self._input.raw_mode()
        self._raw_mode.__enter__()

    def stop(self) -> None:
        if self._raw_mode is not None:
            self._raw_mode.__exit__(None, None, None)
            self._raw_mode = None

    def _poll(self) -> None:
        if self._input is None:
            return
        presses = self._input.read_keys()
        if not presses:
            presses = self._input.flush_keys()
        self._pending.extend(translate_key_presses(presses))

    def is_key_available(self) -> bool:
        if not self._pending:
            self._poll()
        return bool(self._pending)

    def read_key(self) -> Optional[KeyEvent]:
        if not self.is_key_available():
            return None
        return self._pending.popleft()


class TerminalSink:
    """Absolute-position styled writer on a Rich console's file."""

    def __init__(self, console: Console) -> None:
        self._console = console
        self._color_system = _COLOR_SYSTEMS.get(console.color_system or "")
        self._pending: List[str] = []

    @property
    def size(self) -> Tuple[int, int]:
        dims = self._console.size
        return dims.width, dims.height

    def enter(self) -> None:
        self._console.set_alt_screen(True)
        self._console.show_cursor(False)
        self._console.control(Control.clear(), Control.home())

    def exit(self) -> None:
        self._console.show_cursor(True)
        self._console.set_alt_screen(False)

    def clear(self) -> None:
        self._pending.append(str(Control.clear()))

    def write_at(self, x: int, y: int, text: str, style: Style) -> None:
        self._pending.append(str(Control.move_to(x, y)))
        if self._color_system is None:
            self._pending.append(text)
        else:
            self._pending.append(style.render(text, color_system=self._color_system))

    def place_cursor(self, x: int, y: int, visible: bool) -> None:
        self._pending.append(str(Control.move_to(x, y)))
        self._pending.append("\x1b[?25h" if visible else "\x1b[?25l")

    def flush(self) -> None:
        if not self._pending:
            return
        data = "".join(self._pending)
        self._pending.clear()
        self._console.file.write(data)
        self._console.file.flush()
