"""SQLAlchemy adapter: a tabular backing store kept in any SQLAlchemy database."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .store import (
    BackingStoreError,
    SqlAlchemyBackingStore,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "BackingStoreError",
    "SqlAlchemyBackingStore",
    "StartupError",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
