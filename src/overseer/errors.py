"""
Exception hierarchy for the overseer harness.
"""


class OverseerError(Exception):
    """Base class for all harness errors."""


class ConfigurationError(OverseerError):
    """Raised when the resolved configuration is unusable."""


class ChannelClosedError(OverseerError):
    """Raised when posting to a bus channel that has been closed."""


class PersistenceError(OverseerError):
    """Raised when job, plan or marker state cannot be read or written."""


class PromptNotFoundError(PersistenceError):
    """Raised when a plan or build prompt file does not exist."""

    def __init__(self, relative_path: str):
        super().__init__(f"Prompt file not found: {relative_path}")
        self.relative_path = relative_path


class AgentSessionError(OverseerError):
    """Raised when the agent backend fails mid-step."""
