"""
Pause controller for the build loop.

The loop checks wait_if_paused() at iteration boundaries; the UI toggles it
through the command bus.
"""

import threading
from typing import Callable, Optional


class PauseController:
    def __init__(self) -> None:
        self._resumed = threading.Event()
        self._resumed.set()
        self._lock = threading.Lock()

    @property
    def is_paused(self) -> bool:
        return not self._resumed.is_set()

    def pause(self) -> None:
        with self._lock:
            self._resumed.clear()

    def resume(self) -> None:
        with self._lock:
            self._resumed.set()

    def toggle(self) -> bool:
        """Flip the pause state. Returns True if now paused."""
        with self._lock:
            if self._resumed.is_set():
                self._resumed.clear()
                return True
            self._resumed.set()
            return False

    def wait_if_paused(
        self,
        cancellation: Optional[threading.Event] = None,
        poll_interval: float = 0.1,
        timeout: Optional[float] = None,
        on_poll: Optional[Callable[[], None]] = None,
    ) -> bool:
        """
        Block while paused.

        Returns:
            True if running, False if cancelled or timed out while paused
        """
        waited = 0.0
        while not self._resumed.wait(poll_interval):
            if on_poll is not None:
                on_poll()
            if cancellation is not None and cancellation.is_set():
                return False
            waited += poll_interval
            if timeout is not None and waited >= timeout:
                return False
        return True
