"""
Utility modules for SaveYourGoblin
"""

from .diff import collect_differences
from .logger import get_logger, setup_logging

__all__ = [
    "collect_differences",
    "get_logger",
    "setup_logging",
]
