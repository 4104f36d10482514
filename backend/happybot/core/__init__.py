"""Core modules for the Happy Manager bot."""

from .config import HappySettings, get_settings
from .logging import setup_logging

__all__ = [
    "HappySettings",
    "get_settings",
    "setup_logging",
]
