"""
SIGWINCH wiring for the render loop.

The render loop registers one callback while it owns the terminal and
restores whatever handler was there before when it exits. The callback runs
in signal context on the main thread, so it should only flag the resize; the
next frame re-reads the size and repaints.
"""

from __future__ import annotations

import os
import signal
import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

ResizeCallback = Callable[[int, int], None]

DEFAULT_SIZE = (80, 24)


@dataclass
class _Registration:
    callback: Optional[ResizeCallback]
    previous: Any = None
    installed: bool = False


_registration = _Registration(callback=None)


def get_terminal_size(fallback: Tuple[int, int] = DEFAULT_SIZE) -> Tuple[int, int]:
    """(columns, rows) of the controlling terminal, or fallback without one."""
    try:
        size = os.get_terminal_size()
    except OSError:
        return fallback
    return (size.columns, size.lines)


def _supports_sigwinch() -> bool:
    return sys.platform != "win32" and hasattr(signal, "SIGWINCH")


def _on_sigwinch(signum: int, frame: object) -> None:
    _ = signum, frame
    callback = _registration.callback
    if callback is None:
        return
    cols, rows = get_terminal_size()
    callback(cols, rows)


def setup_resize_handler(callback: ResizeCallback) -> None:
    """
    Route terminal resizes to callback until clear_resize_handler().

    Calling it again while installed only swaps the callback.

    Args:
        callback: Called with (columns, rows) after each resize
    """
    _registration.callback = callback
    if _registration.installed or not _supports_sigwinch():
        return
    _registration.previous = signal.getsignal(signal.SIGWINCH)
    signal.signal(signal.SIGWINCH, _on_sigwinch)
    _registration.installed = True


def clear_resize_handler() -> None:
    """Drop the callback and put back the handler that was active before."""
    _registration.callback = None
    if not _registration.installed:
        return
    previous = _registration.previous
    # getsignal() returns None for handlers not installed from Python.
    signal.signal(signal.SIGWINCH, previous if previous is not None else signal.SIG_DFL)
    _registration.previous = None
    _registration.installed = False
