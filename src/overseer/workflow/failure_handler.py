"""
Failure classification with per-task escalation.

A task that fails fewer than `threshold` consecutive times is retried by the
agent itself; at the threshold the failure is escalated to the user. Counts
are keyed case-insensitively and reset on success.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class FailureSeverity(Enum):
    WARNING = "warning"
    TASK_FAILURE = "task_failure"
    REPEATED_FAILURE = "repeated_failure"
    CRITICAL = "critical"


class FailureAction(Enum):
    SELF_CORRECT = "self_correct"
    ESCALATE = "escalate"
    BLOCK = "block"


@dataclass
class FailureRecord:
    task_id: str
    consecutive_count: int = 0
    last_message: str = ""


@dataclass(frozen=True)
class FailureClassification:
    severity: FailureSeverity
    action: FailureAction
    message: str
    task_id: Optional[str] = None
    consecutive_failures: int = 0


class FailureHandler:
    """Counts consecutive failures per task and recommends an action."""

    def __init__(self, threshold: int = 3):
        if threshold <= 0:
            raise ValueError("threshold must be positive")
        self.threshold = threshold
        self._records: Dict[str, FailureRecord] = {}

    @staticmethod
    def _key(task_id: str) -> str:
        if not task_id or not task_id.strip():
            raise ValueError("task_id must not be empty")
        return task_id.strip().casefold()

    def record_failure(self, task_id: str, message: str) -> FailureClassification:
        key = self._key(task_id)
        record = self._records.setdefault(key, FailureRecord(task_id))
        record.consecutive_count += 1
        record.last_message = message
        count = record.consecutive_count

        if count >= self.threshold:
            logger.warning(
                "Task %s has failed %d times (threshold %d); user intervention needed",
                task_id,
                count,
                self.threshold,
            )
            return FailureClassification(
                FailureSeverity.REPEATED_FAILURE,
                FailureAction.ESCALATE,
                f"Task '{task_id}' has failed {count} consecutive times. User intervention recommended.",
                task_id,
                count,
            )

        logger.info("Task %s failed (%d/%d); self-correcting", task_id, count, self.threshold)
        return FailureClassification(
            FailureSeverity.TASK_FAILURE,
            FailureAction.SELF_CORRECT,
            f"Task '{task_id}' failed (attempt {count}/{self.threshold}). Self-correcting.",
            task_id,
            count,
        )

    def record_success(self, task_id: str) -> None:
        self._records.pop(self._key(task_id), None)

    def record_critical(self, message: str) -> FailureClassification:
        logger.error("Critical error, blocking: %s", message)
        return FailureClassification(FailureSeverity.CRITICAL, FailureAction.BLOCK, message)

    def record_warning(self, message: str) -> FailureClassification:
        logger.warning("Warning: %s", message)
        return FailureClassification(FailureSeverity.WARNING, FailureAction.SELF_CORRECT, message)

    def failure_count(self, task_id: str) -> int:
        record = self._records.get(self._key(task_id))
        return record.consecutive_count if record else 0
