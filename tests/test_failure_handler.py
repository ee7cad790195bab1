"""
Tests for failure classification and the pause controller.
"""

from __future__ import annotations

import threading

import pytest

from overseer.workflow.failure_handler import FailureAction, FailureHandler, FailureSeverity
from overseer.workflow.pause import PauseController


def test_escalates_at_threshold() -> None:
    """Verify the third consecutive failure escalates."""
    handler = FailureHandler(threshold=3)
    first = handler.record_failure("JTBD-1", "tests failed")
    second = handler.record_failure("JTBD-1", "tests failed")
    third = handler.record_failure("JTBD-1", "tests failed")
    assert first.action == second.action == FailureAction.SELF_CORRECT
    assert third.action == FailureAction.ESCALATE
    assert third.severity == FailureSeverity.REPEATED_FAILURE
    assert third.consecutive_failures == 3
    assert "3 consecutive times" in third.message


def test_success_resets_the_count() -> None:
    """Verify 2 failures, a success and 2 more failures never escalate."""
    handler = FailureHandler(threshold=3)
    actions = []
    for _ in range(2):
        actions.append(handler.record_failure("task", "x").action)
    handler.record_success("task")
    for _ in range(2):
        actions.append(handler.record_failure("task", "x").action)
    assert actions == [FailureAction.SELF_CORRECT] * 4
    assert handler.failure_count("task") == 2


def test_task_ids_are_case_insensitive() -> None:
    """Verify counts are shared across differently cased ids."""
    handler = FailureHandler(threshold=2)
    handler.record_failure("JTBD-7", "x")
    result = handler.record_failure("jtbd-7", "x")
    assert result.action == FailureAction.ESCALATE
    handler.record_success("Jtbd-7")
    assert handler.failure_count("JTBD-7") == 0


def test_tasks_are_counted_independently() -> None:
    """Verify a failure of one task does not count toward another."""
    handler = FailureHandler(threshold=2)
    handler.record_failure("a", "x")
    assert handler.record_failure("b", "x").action == FailureAction.SELF_CORRECT


def test_critical_blocks_and_warning_self_corrects() -> None:
    """Verify the fixed classifications."""
    handler = FailureHandler()
    assert handler.record_critical("disk full").action == FailureAction.BLOCK
    warning = handler.record_warning("slow test")
    assert warning.action == FailureAction.SELF_CORRECT
    assert warning.severity == FailureSeverity.WARNING


@pytest.mark.parametrize("threshold", [0, -1])
def test_threshold_must_be_positive(threshold) -> None:
    """Verify a non-positive threshold is rejected."""
    with pytest.raises(ValueError):
        FailureHandler(threshold=threshold)


def test_empty_task_id_is_rejected() -> None:
    """Verify blank task ids raise."""
    with pytest.raises(ValueError):
        FailureHandler().record_failure("  ", "x")


def test_pause_toggle() -> None:
    """Verify toggle flips the paused state and reports it."""
    pause = PauseController()
    assert not pause.is_paused
    assert pause.toggle() is True
    assert pause.is_paused
    assert pause.toggle() is False
    assert pause.wait_if_paused() is True


def test_wait_if_paused_returns_on_cancel() -> None:
    """Verify a paused wait ends when cancellation is set."""
    pause = PauseController()
    pause.pause()
    cancellation = threading.Event()
    polls = []

    def on_poll() -> None:
        polls.append(1)
        cancellation.set()

    assert pause.wait_if_paused(cancellation, poll_interval=0.01, on_poll=on_poll) is False
    assert polls


def test_wait_if_paused_resumes_from_another_thread() -> None:
    """Verify resume releases a waiting thread."""
    pause = PauseController()
    pause.pause()
    timer = threading.Timer(0.05, pause.resume)
    timer.start()
    try:
        assert pause.wait_if_paused(poll_interval=0.01, timeout=5) is True
    finally:
        timer.cancel()
