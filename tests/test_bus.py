"""
Tests for the event and command channels.
"""

from __future__ import annotations

import threading

import pytest

from overseer.bus import MessageBus, OrderedChannel, SubmitPrompt
from overseer.errors import ChannelClosedError


def test_drain_returns_items_in_post_order() -> None:
    """Verify FIFO order and that drain empties the channel."""
    channel = OrderedChannel("test")
    for item in range(5):
        channel.post(item)
    assert len(channel) == 5
    assert channel.drain() == [0, 1, 2, 3, 4]
    assert channel.drain() == []


def test_get_nowait_on_empty_channel() -> None:
    """Verify get_nowait never blocks."""
    channel = OrderedChannel("test")
    assert channel.get_nowait() is None
    channel.post("a")
    assert channel.get_nowait() == "a"


def test_post_after_close_raises() -> None:
    """Verify a closed channel rejects posts but keeps queued items."""
    channel = OrderedChannel("test")
    channel.post(1)
    channel.close()
    assert channel.closed
    with pytest.raises(ChannelClosedError):
        channel.post(2)
    assert channel.drain() == [1]


def test_wait_times_out_when_idle() -> None:
    """Verify wait returns False when nothing is posted."""
    assert OrderedChannel("test").wait(0.01) is False


def test_order_is_preserved_across_threads() -> None:
    """Verify a producer thread and a draining consumer see one global order."""
    channel = OrderedChannel("test")
    count = 2000

    def produce() -> None:
        for item in range(count):
            channel.post(item)

    producer = threading.Thread(target=produce)
    producer.start()
    received = []
    while len(received) < count:
        channel.wait(0.05)
        received.extend(channel.drain())
    producer.join()
    assert received == list(range(count))


def test_message_bus_close_closes_both_channels() -> None:
    """Verify closing the bus closes events and commands."""
    bus = MessageBus()
    bus.commands.post(SubmitPrompt("hi"))
    bus.close()
    assert bus.events.closed and bus.commands.closed
    assert bus.commands.drain() == [SubmitPrompt("hi")]
