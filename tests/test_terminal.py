"""
Tests for key translation and the terminal sink.
"""

from __future__ import annotations

import io

from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from rich.console import Console
from rich.style import Style

from overseer.ui.core.terminal import (
    KeyboardInput,
    KeyEvent,
    KeyModifiers,
    TerminalSink,
    translate_key_presses,
)


def test_printable_characters() -> None:
    """Verify plain characters become char events."""
    events = translate_key_presses([KeyPress("a"), KeyPress("B"), KeyPress(" ")])
    assert events == [
        KeyEvent("a", char="a"),
        KeyEvent("b", char="B"),
        KeyEvent("space", char=" "),
    ]


def test_named_and_control_keys() -> None:
    """Verify named keys and Ctrl combinations."""
    events = translate_key_presses(
        [KeyPress(Keys.ControlM), KeyPress(Keys.ControlI), KeyPress(Keys.ControlC), KeyPress(Keys.Up)]
    )
    assert events == [
        KeyEvent("enter"),
        KeyEvent("tab"),
        KeyEvent("c", KeyModifiers.CTRL),
        KeyEvent("up"),
    ]
    assert events[2].ctrl


def test_escape_prefix_means_alt() -> None:
    """Verify ESC followed by Enter is Alt+Enter and a lone ESC is escape."""
    events = translate_key_presses([KeyPress(Keys.Escape), KeyPress(Keys.ControlM), KeyPress(Keys.Escape)])
    assert events == [KeyEvent("enter", KeyModifiers.ALT), KeyEvent("escape")]
    assert events[0].alt


def test_back_tab_is_shift_tab() -> None:
    """Verify BackTab decodes to Shift+Tab."""
    assert translate_key_presses([KeyPress(Keys.BackTab)]) == [KeyEvent("tab", KeyModifiers.SHIFT)]


def test_bracketed_paste_keeps_newlines_as_text() -> None:
    """Verify pasted newlines insert instead of submitting."""
    events = translate_key_presses([KeyPress(Keys.BracketedPaste, "a\nb")])
    assert events == [
        KeyEvent("a", char="a"),
        KeyEvent("enter", KeyModifiers.ALT),
        KeyEvent("b", char="b"),
    ]


class _ScriptedInput:
    def __init__(self, presses):
        self.presses = list(presses)

    def read_keys(self):
        presses, self.presses = self.presses, []
        return presses

    def flush_keys(self):
        return []


def test_keyboard_input_reads_queued_keys() -> None:
    """Verify KeyboardInput drains its source without blocking."""
    keyboard = KeyboardInput(_ScriptedInput([KeyPress("x"), KeyPress(Keys.ControlP)]))
    assert keyboard.is_key_available()
    assert keyboard.read_key() == KeyEvent("x", char="x")
    assert keyboard.read_key() == KeyEvent("p", KeyModifiers.CTRL)
    assert keyboard.read_key() is None


def test_terminal_sink_buffers_until_flush() -> None:
    """Verify writes are positioned, styled and emitted on flush."""
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=True, color_system="truecolor", width=40, height=10)
    sink = TerminalSink(console)
    assert sink.size == (40, 10)

    sink.write_at(3, 2, "hi", Style(bold=True))
    assert buffer.getvalue() == ""
    sink.flush()
    output = buffer.getvalue()
    assert "\x1b[3;4H" in output
    assert "\x1b[1mhi" in output


def test_terminal_sink_without_colors_writes_plain_text() -> None:
    """Verify styles are dropped when the console has no color system."""
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=True, color_system=None, width=20, height=5)
    sink = TerminalSink(console)
    sink.write_at(0, 0, "plain", Style(color="red"))
    sink.flush()
    assert buffer.getvalue().endswith("plain")
