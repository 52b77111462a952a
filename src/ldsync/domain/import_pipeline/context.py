"""State owned by one import run: identifier map, prepared nodes, result."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ldsync.config.pipeline import PipelineConfig
from ldsync.domain.errors import DuplicateIdentifierError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ldsync.domain.document import GraphNode
    from ldsync.domain.ports import BackingStore, CodeListEntry, ShapeReport, ShapeValidator
    from ldsync.domain.ports import StoredRecord
    from ldsync.domain.schema import EntityType, SchemaRegistry
    from ldsync.domain.structure import ReconcileResult


@dataclass(frozen=True, slots=True)
class AuditEntry:
    entity_type: str
    external_id: str
    internal_id: str


@dataclass(slots=True)
class IdentifierMap:
    """One-to-one map from external ``@id`` to the record created for it in this run."""

    _forward: dict[str, AuditEntry] = field(default_factory=dict)

    def record(self, entity_type: str, external_id: str, internal_id: str) -> None:
        existing = self._forward.get(external_id)
        if existing is not None and existing.internal_id != internal_id:
            raise DuplicateIdentifierError(
                f"{external_id} already maps to {existing.internal_id} "
                f"({existing.entity_type}); refusing to map it to {internal_id}"
            )
        self._forward[external_id] = AuditEntry(
            entity_type=entity_type, external_id=external_id, internal_id=internal_id
        )

    def internal_id(self, external_id: str, *, entity_type: str | None = None) -> str | None:
        entry = self._forward.get(external_id)
        if entry is None:
            return None
        if entity_type is not None and entry.entity_type != entity_type:
            return None
        return entry.internal_id

    def internal_ids(self) -> set[str]:
        return {entry.internal_id for entry in self._forward.values()}

    @property
    def audit(self) -> tuple[AuditEntry, ...]:
        return tuple(self._forward.values())

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._forward

    def __len__(self) -> int:
        return len(self._forward)


@dataclass(frozen=True, slots=True)
class DanglingReference:
    entity_type: str
    external_id: str
    field: str
    missing_id: str


@dataclass(slots=True)
class PreparedNode:
    entity_type: EntityType
    node: GraphNode

    @property
    def external_id(self) -> str:
        return str(self.node["@id"])


@dataclass(slots=True)
class ImportResult:
    created: dict[str, int] = field(default_factory=dict)
    audit: tuple[AuditEntry, ...] = ()
    physical_deletions: int = 0
    removed_ids: list[str] = field(default_factory=list)
    carried_over: int = 0
    dangling_references: list[DanglingReference] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    shape_report: ShapeReport | None = None
    reconcile: ReconcileResult | None = None

    @property
    def total_created(self) -> int:
        return sum(self.created.values())


@dataclass(slots=True)
class ImportContext:
    """Mutable context shared across import phases."""

    store: BackingStore
    registry: SchemaRegistry
    config: PipelineConfig = field(default_factory=PipelineConfig)
    code_lists: Mapping[str, Sequence[CodeListEntry]] = field(default_factory=dict)
    shape_validator: ShapeValidator | None = None
    shapes: object | None = None
    identifier_map: IdentifierMap = field(default_factory=IdentifierMap)
    nodes: list[PreparedNode] = field(default_factory=list)
    previous: dict[str, list[StoredRecord]] = field(default_factory=dict)
    result: ImportResult = field(default_factory=ImportResult)

    @property
    def batch_size(self) -> int:
        return min(self.config.batch_size, self.store.max_batch_size)

    def touched_types(self) -> list[str]:
        seen: dict[str, None] = {}
        for prepared in self.nodes:
            seen.setdefault(prepared.entity_type.name, None)
        return list(seen)

    def nodes_of(self, type_name: str) -> list[PreparedNode]:
        return [prepared for prepared in self.nodes if prepared.entity_type.name == type_name]
