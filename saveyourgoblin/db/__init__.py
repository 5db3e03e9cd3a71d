"""
Database package for SaveYourGoblin.

This package provides SQLite-based persistence for users, library content,
campaigns, session notes and scenario templates.
"""

from .manager import DatabaseManager, DuplicateRecord, RecordNotFound
from .schema import LINK_TYPES

__all__ = ["DatabaseManager", "DuplicateRecord", "RecordNotFound", "LINK_TYPES"]
