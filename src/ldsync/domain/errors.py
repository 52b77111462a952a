"""Exception taxonomy shared by the validation, structure and pipeline layers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation.report import ValidationReport


class LdSyncError(RuntimeError):
    """Base class for every error raised by ldsync."""


class FatalStructureError(LdSyncError):
    """Raised before any backing-store mutation when the input cannot be trusted."""


class ValidationFailedError(FatalStructureError):
    """Raised when validation produced errors and the caller asked to proceed."""

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        joined = "; ".join(report.errors)
        super().__init__(f"Validation failed with {len(report.errors)} error(s): {joined}")


class ImportPreconditionError(FatalStructureError):
    """Raised when a document is valid JSON-LD but not importable as a whole."""


class EmptyDocumentError(ImportPreconditionError):
    """Raised when a document is empty or not a list of nodes."""


class StructureConflictError(FatalStructureError):
    """Raised when an existing table or field disagrees with what the document needs.

    The message names the table and field and the manual fix; nothing is coerced.
    """

    def __init__(self, message: str, *, table: str, field: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.field = field


class ImportPhaseError(LdSyncError):
    """Wraps an unexpected failure raised inside one import phase."""

    def __init__(self, phase: str, message: str) -> None:
        super().__init__(f"Import phase '{phase}' failed: {message}")
        self.phase = phase


class CodecError(LdSyncError, ValueError):
    """Raised when a value cannot be converted for its field kind."""


class ExportRecordError(LdSyncError):
    """Raised when a single record cannot be serialised."""


class DuplicateIdentifierError(LdSyncError):
    """Raised when one external id would map to two internal records."""
