"""
Interactive render loop.

TuiApplication runs on the main thread at a fixed frame rate. Each frame it
drains pending keys, drains the event bus into a fresh UiState, lays out,
renders into the back buffer and flushes only the changed cells. It never
blocks on the orchestrator and performs no file or network I/O.
"""

import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Optional, Protocol, Tuple

from rich.style import Style

from ..bus import Cancel, Command, MessageBus
from ..errors import ChannelClosedError
from .components import prompt_cursor
from .compositor import compose
from .core.cell_buffer import DoubleBuffer
from .core.resize_handler import clear_resize_handler, setup_resize_handler
from .core.terminal import KeyEvent
from .input_router import route_key
from .reducer import advance_frame, apply_action, apply_event
from .state import FocusTarget, UiState

logger = logging.getLogger(__name__)


class KeySource(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def is_key_available(self) -> bool: ...

    def read_key(self) -> Optional[KeyEvent]: ...


class ScreenSink(Protocol):
    @property
    def size(self) -> Tuple[int, int]: ...

    def enter(self) -> None: ...

    def exit(self) -> None: ...

    def clear(self) -> None: ...

    def write_at(self, x: int, y: int, text: str, style: Style) -> None: ...

    def place_cursor(self, x: int, y: int, visible: bool) -> None: ...

    def flush(self) -> None: ...


class TuiApplication:
    """Main-thread render loop for the interactive harness."""

    # Keys handled per frame; the rest wait for the next frame.
    MAX_KEYS_PER_FRAME = 64

    def __init__(
        self,
        bus: MessageBus,
        cancellation: threading.Event,
        sink: ScreenSink,
        keys: KeySource,
        frame_rate: float = 30.0,
        initial_state: Optional[UiState] = None,
        worker_alive: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.bus = bus
        self.cancellation = cancellation
        self.sink = sink
        self.keys = keys
        self.frame_interval = 1.0 / frame_rate
        self.state = initial_state or UiState()
        self._worker_alive = worker_alive
        width, height = sink.size
        self._buffer = DoubleBuffer(width, height)
        self._resized = threading.Event()
        self._cursor: Optional[Tuple[int, int, bool]] = None

    def _on_resize(self, cols: int, rows: int) -> None:
        _ = cols, rows
        self._resized.set()

    def _post(self, command: Command) -> None:
        if isinstance(command, Cancel):
            self.cancellation.set()
        try:
            self.bus.commands.post(command)
        except ChannelClosedError:
            logger.debug("Dropped %s: orchestrator already finished", type(command).__name__)

    def _handle_keys(self) -> None:
        for _ in range(self.MAX_KEYS_PER_FRAME):
            if not self.keys.is_key_available():
                return
            key = self.keys.read_key()
            if key is None:
                return
            action = route_key(key, self.state.focus, self.state.modal_active)
            self.state, commands = apply_action(self.state, action, key)
            for command in commands:
                self._post(command)

    def _handle_events(self) -> None:
        for event in self.bus.events.drain():
            self.state = apply_event(self.state, event)

    def _place_cursor(self, regions) -> None:
        visible = self.state.focus == FocusTarget.PROMPT and not self.state.modal_active
        x, y = prompt_cursor(self.state.prompt, regions.prompt)
        cursor = (x, y, visible)
        if cursor != self._cursor:
            self.sink.place_cursor(x, y, visible)
            self.sink.flush()
            self._cursor = cursor

    def step(self) -> int:
        """
        Run one frame.

        Returns:
            Number of cells written to the sink
        """
        width, height = self.sink.size
        if self._resized.is_set():
            self._resized.clear()
            self._buffer.invalidate()
            self.sink.clear()
            self._cursor = None
        self._buffer.resize(width, height)
        if self.state.screen_size != (width, height):
            self.state = replace(self.state, screen_size=(width, height))

        self._handle_keys()
        self._handle_events()
        if (
            self._worker_alive is not None
            and not self._worker_alive()
            and not self.state.modal_active
            and not len(self.bus.events)
        ):
            self.state = replace(self.state, should_exit=True)
        self.state = advance_frame(self.state)

        regions = compose(self.state, self._buffer.current)
        written = self._buffer.present(self.sink)
        self._place_cursor(regions)
        return written

    def run(self) -> UiState:
        """Render until the state asks to exit. Returns the final state."""
        self.sink.enter()
        self.keys.start()
        setup_resize_handler(self._on_resize)
        try:
            while not self.state.should_exit:
                started = time.monotonic()
                self.step()
                remaining = self.frame_interval - (time.monotonic() - started)
                if remaining > 0:
                    time.sleep(remaining)
        finally:
            clear_resize_handler()
            self.keys.stop()
            self.sink.exit()
        return self.state
