"""
Logging helpers.
"""

from .logging_config import setup_logging, silence_noisy_loggers

__all__ = ["setup_logging", "silence_noisy_loggers"]
