"""
Ordered single-producer/single-consumer channel.

Each channel has exactly one posting thread and one draining thread. A deque
gives atomic append/popleft, so no external lock is needed; the wake-up event
is only used by the orchestration side to sleep while idle.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, List, Optional, TypeVar

from ..errors import ChannelClosedError

T = TypeVar("T")


class OrderedChannel(Generic[T]):
    """FIFO queue with a non-blocking drain."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._items: Deque[T] = deque()
        self._closed = False
        self._signal = threading.Event()

    def post(self, item: T) -> None:
        """Append an item; raises ChannelClosedError after close()."""
        if self._closed:
            raise ChannelClosedError(f"{self.name} channel is closed")
        self._items.append(item)
        self._signal.set()

    def drain(self) -> List[T]:
        """Remove and return every queued item in post order, never blocking."""
        drained: List[T] = []
        while True:
            try:
                drained.append(self._items.popleft())
            except IndexError:
                break
        if not self._items:
            self._signal.clear()
            # A post may have slipped in between the last popleft and clear().
            if self._items:
                self._signal.set()
        return drained

    def get_nowait(self) -> Optional[T]:
        """Pop the oldest item or return None."""
        try:
            return self._items.popleft()
        except IndexError:
            return None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until an item is available or timeout expires."""
        if self._items:
            return True
        return self._signal.wait(timeout)

    def close(self) -> None:
        self._closed = True
        self._signal.set()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._items)
