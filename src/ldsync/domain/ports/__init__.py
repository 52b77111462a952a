"""Ports (protocols) for the collaborators the domain depends on."""

from __future__ import annotations

from .backing_store import BackingStore, FieldInfo, RecordUpdate, StoredRecord, TableInfo
from .codelists import CodeListEntry, CodeListFetcher
from .shapes import ShapeReport, ShapeValidator

__all__ = [
    "BackingStore",
    "CodeListEntry",
    "CodeListFetcher",
    "FieldInfo",
    "RecordUpdate",
    "ShapeReport",
    "ShapeValidator",
    "StoredRecord",
    "TableInfo",
]
