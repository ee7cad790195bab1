"""
Resolved harness configuration.

Precedence (user defaults < project overrides < explicit flags) is resolved by
the caller; this module only validates the result and offers an environment
based constructor for the command-line entry point.
"""

import os
import shlex
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ConfigurationError


class HarnessConfig(BaseModel):
    """
    Immutable configuration passed to both the render loop and the orchestrator.

    Environment Variables (see from_env):
    - OVERSEER_MODEL: Model name forwarded to the agent backend
    - OVERSEER_AGENT_COMMAND: Command line used to start the agent
    - OVERSEER_PLAN_PROMPT / OVERSEER_BUILD_PROMPT: Prompt file paths
    - OVERSEER_FAILURE_THRESHOLD: Consecutive failures before escalation
    - OVERSEER_MAX_ITERATIONS: Optional bound on build iterations
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(default="claude-opus-4.5", description="Agent model name")
    plan_prompt_path: str = Field(default="PLAN.PROMPT.md")
    build_prompt_path: str = Field(default="BUILD.PROMPT.md")
    allow_all_operations: bool = Field(default=True)
    stream_output: bool = Field(default=True)

    working_directory: Path = Field(default_factory=Path.cwd)
    agent_command: List[str] = Field(
        default_factory=lambda: ["copilot", "--prompt"],
        description="Agent CLI; the prompt is appended as the final argument",
    )
    failure_threshold: int = Field(
        default=3, description="Consecutive failures per task before escalating"
    )
    max_iterations: Optional[int] = Field(default=None)
    verify_after_iteration: bool = Field(default=True)
    test_command: Optional[List[str]] = Field(default=None)
    build_command: Optional[List[str]] = Field(default=None)
    frame_rate: float = Field(default=30.0)
    split_percent: int = Field(default=60)
    iteration_delay: float = Field(default=0.1)
    log_file: Optional[Path] = Field(default=None)
    verbose: bool = Field(default=False)

    @field_validator("failure_threshold")
    @classmethod
    def _positive_threshold(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("failure_threshold must be positive")
        return value

    @field_validator("max_iterations")
    @classmethod
    def _positive_iterations(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("max_iterations must be positive when set")
        return value

    @field_validator("frame_rate")
    @classmethod
    def _positive_frame_rate(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("frame_rate must be positive")
        return value

    @field_validator("split_percent")
    @classmethod
    def _clamp_split(cls, value: int) -> int:
        return max(50, min(80, value))

    @field_validator("agent_command")
    @classmethod
    def _non_empty_command(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("agent_command must not be empty")
        return value

    @classmethod
    def from_env(cls, **overrides) -> "HarnessConfig":
        """
        Build a configuration from OVERSEER_* environment variables.

        Args:
            **overrides: Explicit values that win over the environment

        Returns:
            Validated HarnessConfig

        Raises:
            ConfigurationError: If a value fails validation
        """
        load_dotenv()

        values = {}
        env_map = {
            "OVERSEER_MODEL": "model",
            "OVERSEER_PLAN_PROMPT": "plan_prompt_path",
            "OVERSEER_BUILD_PROMPT": "build_prompt_path",
            "OVERSEER_FAILURE_THRESHOLD": "failure_threshold",
            "OVERSEER_MAX_ITERATIONS": "max_iterations",
            "OVERSEER_FRAME_RATE": "frame_rate",
            "OVERSEER_SPLIT_PERCENT": "split_percent",
            "OVERSEER_LOG_FILE": "log_file",
        }
        for env_name, field_name in env_map.items():
            raw = os.getenv(env_name)
            if raw:
                values[field_name] = raw

        for env_name, field_name in (
            ("OVERSEER_AGENT_COMMAND", "agent_command"),
            ("OVERSEER_TEST_COMMAND", "test_command"),
            ("OVERSEER_BUILD_COMMAND", "build_command"),
        ):
            raw = os.getenv(env_name)
            if raw:
                values[field_name] = shlex.split(raw)

        allow_all = os.getenv("OVERSEER_ALLOW_ALL")
        if allow_all is not None:
            values["allow_all_operations"] = allow_all.lower() in ("1", "true", "yes")

        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    def resolve(self, relative_path: str) -> Path:
        """Resolve a path relative to the working directory."""
        return Path(self.working_directory) / relative_path
