"""Port for an external RDF shape (SHACL) checker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ldsync.domain.document import GraphNode


@dataclass(frozen=True, slots=True)
class ShapeReport:
    conforms: bool
    violations: tuple[str, ...] = ()


@runtime_checkable
class ShapeValidator(Protocol):
    def validate_shapes(self, graph: Sequence[GraphNode], shapes: object) -> ShapeReport: ...
