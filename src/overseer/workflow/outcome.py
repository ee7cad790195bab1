"""
Exit outcomes shared by the interactive and headless entry points.
"""

from enum import Enum


class ExitOutcome(Enum):
    """How a run ended, with the process exit code as the value."""

    SUCCESS = 0
    FAILURE = 1
    INTERVENTION_REQUIRED = 3
    CANCELLED = 130

    @property
    def exit_code(self) -> int:
        return self.value

    @property
    def description(self) -> str:
        return {
            ExitOutcome.SUCCESS: "Success",
            ExitOutcome.FAILURE: "General failure",
            ExitOutcome.INTERVENTION_REQUIRED: "User intervention required",
            ExitOutcome.CANCELLED: "Cancelled",
        }[self]
