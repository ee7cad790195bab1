"""
Keyboard routing and focus management.

route_key is a pure function of (key, focus, modal-active): every key press
resolves to exactly one KeyAction, and unmapped keys resolve to NONE.
"""

from enum import Enum
from typing import Optional, Tuple

from .core.terminal import KeyEvent
from .state import FocusTarget


class KeyAction(Enum):
    NONE = "none"
    SUBMIT = "submit"
    NEWLINE = "newline"
    PAUSE = "pause"
    CANCEL = "cancel"
    CYCLE_FOCUS = "cycle_focus"
    EXPAND = "expand"
    VIEW_RESOURCE_1 = "view_resource_1"
    VIEW_RESOURCE_2 = "view_resource_2"
    VIEW_RESOURCE_3 = "view_resource_3"
    VIEW_RESOURCE_4 = "view_resource_4"
    VIEW_RESOURCE_5 = "view_resource_5"
    VIEW_RESOURCE_6 = "view_resource_6"
    VIEW_RESOURCE_7 = "view_resource_7"
    VIEW_RESOURCE_8 = "view_resource_8"
    VIEW_RESOURCE_9 = "view_resource_9"
    INSERT_CHAR = "insert_char"
    BACKSPACE = "backspace"
    DELETE = "delete"
    CURSOR_LEFT = "cursor_left"
    CURSOR_RIGHT = "cursor_right"
    CURSOR_HOME = "cursor_home"
    CURSOR_END = "cursor_end"
    SELECT_UP = "select_up"
    SELECT_DOWN = "select_down"
    MODAL_CONFIRM = "modal_confirm"
    MODAL_DISMISS = "modal_dismiss"
    MODAL_NEXT = "modal_next"
    MODAL_PREV = "modal_prev"

    @property
    def resource_index(self) -> Optional[int]:
        """Zero-based resource index for VIEW_RESOURCE_n actions."""
        if self.value.startswith("view_resource_"):
            return int(self.value.rsplit("_", 1)[1]) - 1
        return None


FOCUS_ORDER: Tuple[FocusTarget, ...] = (
    FocusTarget.PROMPT,
    FocusTarget.ACTIVITY,
    FocusTarget.CONTEXT,
)

_RESOURCE_ACTIONS = {
    str(number): KeyAction["VIEW_RESOURCE_%d" % number] for number in range(1, 10)
}

_MODAL_KEYS = {
    "escape": KeyAction.MODAL_DISMISS,
    "enter": KeyAction.MODAL_CONFIRM,
    "up": KeyAction.MODAL_PREV,
    "left": KeyAction.MODAL_PREV,
    "pageup": KeyAction.MODAL_PREV,
    "down": KeyAction.MODAL_NEXT,
    "right": KeyAction.MODAL_NEXT,
    "pagedown": KeyAction.MODAL_NEXT,
}

_PROMPT_KEYS = {
    "backspace": KeyAction.BACKSPACE,
    "delete": KeyAction.DELETE,
    "left": KeyAction.CURSOR_LEFT,
    "right": KeyAction.CURSOR_RIGHT,
    "home": KeyAction.CURSOR_HOME,
    "end": KeyAction.CURSOR_END,
}

_PANEL_KEYS = {
    "up": KeyAction.SELECT_UP,
    "down": KeyAction.SELECT_DOWN,
    "space": KeyAction.EXPAND,
    "enter": KeyAction.EXPAND,
}

HINTS = {
    FocusTarget.PROMPT: (
        "Enter: Submit",
        "Alt+Enter: Newline",
        "Tab: Focus",
        "Ctrl+P: Pause",
        "Ctrl+C: Cancel",
    ),
    FocusTarget.ACTIVITY: (
        "↑/↓: Select",
        "Space: Expand",
        "1-9: Resources",
        "Tab: Focus",
        "Ctrl+C: Cancel",
    ),
    FocusTarget.CONTEXT: (
        "1-9: View resource",
        "Tab: Focus",
        "Ctrl+P: Pause",
        "Ctrl+C: Cancel",
    ),
}

MODAL_HINTS = ("Enter: Confirm", "Esc: Close", "←/→: Choose")


def cycle_focus(focus: FocusTarget) -> FocusTarget:
    """Next focus target in Tab order, wrapping around."""
    index = FOCUS_ORDER.index(focus)
    return FOCUS_ORDER[(index + 1) % len(FOCUS_ORDER)]


def hints(focus: FocusTarget, modal_active: bool = False) -> Tuple[str, ...]:
    return MODAL_HINTS if modal_active else HINTS[focus]


def route_key(event: KeyEvent, focus: FocusTarget, modal_active: bool) -> KeyAction:
    """
    Resolve a key press to a single action.

    Args:
        event: Decoded key press
        focus: Panel currently holding focus
        modal_active: Whether a modal overlay owns input

    Returns:
        The action to apply; NONE for unmapped keys
    """
    if modal_active:
        if event.ctrl and event.key == "c":
            return KeyAction.MODAL_DISMISS
        if event.key == "tab":
            return KeyAction.MODAL_PREV if event.shift else KeyAction.MODAL_NEXT
        if event.ctrl or event.alt:
            return KeyAction.NONE
        return _MODAL_KEYS.get(event.key, KeyAction.NONE)

    if event.ctrl:
        if event.key == "c":
            return KeyAction.CANCEL
        if event.key == "p":
            return KeyAction.PAUSE
        return KeyAction.NONE

    if event.key == "tab" and not event.shift:
        return KeyAction.CYCLE_FOCUS

    if focus == FocusTarget.PROMPT:
        if event.key == "enter":
            return KeyAction.NEWLINE if event.alt else KeyAction.SUBMIT
        if event.alt:
            return KeyAction.NONE
        if event.key in _PROMPT_KEYS:
            return _PROMPT_KEYS[event.key]
        if event.char and event.char.isprintable():
            return KeyAction.INSERT_CHAR
        return KeyAction.NONE

    if event.alt:
        return KeyAction.NONE
    if event.key in _RESOURCE_ACTIONS:
        return _RESOURCE_ACTIONS[event.key]
    return _PANEL_KEYS.get(event.key, KeyAction.NONE)
