"""Validation of JSON-LD documents against the schema registry."""

from __future__ import annotations

from .report import Operation, ValidationReport
from .validator import DocumentValidator

__all__ = ["DocumentValidator", "Operation", "ValidationReport"]
