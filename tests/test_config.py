"""
Tests for configuration and logging setup.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from overseer.config import HarnessConfig
from overseer.errors import ConfigurationError
from overseer.utils.logging import setup_logging
from overseer.workflow.outcome import ExitOutcome

ENV_VARS = (
    "OVERSEER_MODEL",
    "OVERSEER_PLAN_PROMPT",
    "OVERSEER_BUILD_PROMPT",
    "OVERSEER_FAILURE_THRESHOLD",
    "OVERSEER_MAX_ITERATIONS",
    "OVERSEER_FRAME_RATE",
    "OVERSEER_SPLIT_PERCENT",
    "OVERSEER_LOG_FILE",
    "OVERSEER_AGENT_COMMAND",
    "OVERSEER_TEST_COMMAND",
    "OVERSEER_BUILD_COMMAND",
    "OVERSEER_ALLOW_ALL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_defaults() -> None:
    """Verify the default prompts, threshold and split."""
    config = HarnessConfig()
    assert config.plan_prompt_path == "PLAN.PROMPT.md"
    assert config.build_prompt_path == "BUILD.PROMPT.md"
    assert config.failure_threshold == 3
    assert config.max_iterations is None
    assert config.split_percent == 60


def test_from_env(clean_env, tmp_path) -> None:
    """Verify OVERSEER_* variables are read and commands are split."""
    clean_env.setenv("OVERSEER_MODEL", "env-model")
    clean_env.setenv("OVERSEER_MAX_ITERATIONS", "5")
    clean_env.setenv("OVERSEER_TEST_COMMAND", "pytest -q tests/")
    clean_env.setenv("OVERSEER_ALLOW_ALL", "false")
    config = HarnessConfig.from_env(working_directory=tmp_path)
    assert config.model == "env-model"
    assert config.max_iterations == 5
    assert config.test_command == ["pytest", "-q", "tests/"]
    assert config.allow_all_operations is False
    assert config.working_directory == tmp_path


def test_explicit_overrides_win(clean_env) -> None:
    """Verify keyword overrides beat the environment and None is ignored."""
    clean_env.setenv("OVERSEER_MODEL", "env-model")
    config = HarnessConfig.from_env(model="flag-model", max_iterations=None)
    assert config.model == "flag-model"
    assert config.max_iterations is None


@pytest.mark.parametrize(
    "name,value",
    [("OVERSEER_FAILURE_THRESHOLD", "0"), ("OVERSEER_MAX_ITERATIONS", "-2"), ("OVERSEER_FRAME_RATE", "abc")],
)
def test_invalid_values_raise_configuration_error(clean_env, name, value) -> None:
    """Verify validation failures surface as ConfigurationError."""
    clean_env.setenv(name, value)
    with pytest.raises(ConfigurationError):
        HarnessConfig.from_env()


def test_split_is_clamped_and_config_is_frozen() -> None:
    """Verify split clamping and immutability."""
    config = HarnessConfig(split_percent=95)
    assert config.split_percent == 80
    with pytest.raises(ValidationError):
        config.model = "other"


def test_resolve_is_relative_to_working_directory(tmp_path) -> None:
    """Verify prompt paths resolve against the project."""
    assert HarnessConfig(working_directory=tmp_path).resolve("BUILD.PROMPT.md") == tmp_path / "BUILD.PROMPT.md"


def test_exit_codes() -> None:
    """Verify process exit codes for each outcome."""
    assert [outcome.exit_code for outcome in ExitOutcome] == [0, 1, 3, 130]
    assert ExitOutcome.INTERVENTION_REQUIRED.description == "User intervention required"


def test_setup_logging_to_file(tmp_path, restore_root_logger) -> None:
    """Verify interactive runs log to the file and silence noisy libraries."""
    log_file = tmp_path / "logs" / "overseer.log"
    setup_logging(verbose=False, log_file=log_file)
    logging.getLogger("overseer.test").info("loop started")
    logging.getLogger("prompt_toolkit").error("should be silenced")
    for handler in restore_root_logger.handlers:
        handler.flush()
    content = Path(log_file).read_text(encoding="utf-8")
    assert "loop started" in content
    assert "should be silenced" not in content
