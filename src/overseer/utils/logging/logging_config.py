"""
Centralized logging configuration.

The interactive renderer owns the terminal, so in that mode log records are
routed to a file. Headless runs log to stderr through Rich.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


NOISY_LIBRARIES = [
    "asyncio",
    "urllib3",
    "httpx",
    "httpcore",
    "psutil",
    "prompt_toolkit",
]

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class NullHandler(logging.Handler):
    """Handler that discards all log records."""

    def emit(self, record):
        pass


def silence_noisy_loggers() -> None:
    """Silence third-party loggers that would otherwise bleed into the UI."""
    for logger_name in NOISY_LIBRARIES:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.CRITICAL)
        logger.propagate = False
        logger.handlers = [NullHandler()]


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Configure the root logger for a run.

    Args:
        verbose: If True, log at DEBUG instead of WARNING
        log_file: Write records to this file instead of the terminal
        console: Rich console for headless runs (stderr when omitted)
    """
    silence_noisy_loggers()

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=verbose,
        )

    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger("overseer").setLevel(logging.DEBUG if verbose else logging.INFO)
