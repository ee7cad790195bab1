"""
Configuration module for the harness.
"""

from .harness_config import HarnessConfig

__all__ = ["HarnessConfig"]
