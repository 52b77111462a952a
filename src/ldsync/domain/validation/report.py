"""Validation result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from ldsync.domain.errors import ValidationFailedError


class Operation(StrEnum):
    IMPORT = "import"
    EXPORT = "export"


@dataclass(slots=True)
class ValidationReport:
    """De-duplicated, ordered messages from one validation run."""

    operation: Operation
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    excluded: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def error(self, message: str) -> None:
        if message not in self.errors:
            self.errors.append(message)

    def warning(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    def add(self, message: str, *, blocking: bool) -> None:
        if blocking:
            self.error(message)
        else:
            self.warning(message)

    def exclude(self, position: int) -> None:
        if position not in self.excluded:
            self.excluded.append(position)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationFailedError(self)
