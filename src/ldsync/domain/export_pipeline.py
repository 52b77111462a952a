"""Serialise backing-store records back into a JSON-LD document."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import CodecError, ExportRecordError
from .schema import CONTEXT_FIELD, ID_FIELD, TYPE_FIELD, default_registry

if TYPE_CHECKING:
    from .document import GraphNode
    from .ports import BackingStore, StoredRecord, TableInfo
    from .schema import EntityType, FieldSpec, SchemaRegistry

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SkippedRecord:
    table: str
    record_id: str
    reason: str


@dataclass(slots=True)
class ExportResult:
    document: list[GraphNode] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)
    skipped: list[SkippedRecord] = field(default_factory=list)


class Exporter:
    """Walk tables in registry order and emit one node per record.

    Link cells are written as the linked records' display names (their ``@id``).
    A record that cannot be serialised is logged and skipped; the export goes on.
    """

    def __init__(self, store: BackingStore, registry: SchemaRegistry | None = None) -> None:
        self.store = store
        self.registry = registry or default_registry()

    async def export(self) -> ExportResult:
        result = ExportResult()
        tables = {table.name: table for table in await self.store.list_tables()}
        names: dict[str, dict[str, str]] = {}

        for entity_type in self.registry:
            table = tables.get(entity_type.name)
            if table is None:
                continue
            records = await self.store.select_records(entity_type.name)
            names[entity_type.name] = {record.id: record.name for record in records}
            for spec in entity_type.link_fields:
                target = spec.link_target or ""
                if target not in names and target in tables:
                    names[target] = {
                        record.id: record.name for record in await self.store.select_records(target)
                    }

            exported = 0
            for record in records:
                try:
                    node = self._serialise(entity_type, table, record, names)
                except (CodecError, ExportRecordError) as exc:
                    log.warning(
                        "Skipping %s record %s (%s): %s",
                        entity_type.name,
                        record.id,
                        record.name or "no @id",
                        exc,
                    )
                    result.skipped.append(
                        SkippedRecord(table=entity_type.name, record_id=record.id, reason=str(exc))
                    )
                    continue
                result.document.append(node)
                exported += 1
            result.counts[entity_type.name] = exported

        log.info(
            "Exported %d node(s), skipped %d record(s)", len(result.document), len(result.skipped)
        )
        return result

    def _serialise(
        self,
        entity_type: EntityType,
        table: TableInfo,
        record: StoredRecord,
        names: dict[str, dict[str, str]],
    ) -> GraphNode:
        if not record.name:
            raise ExportRecordError(f"Record {record.id} has no {ID_FIELD}")
        node: GraphNode = {
            CONTEXT_FIELD: entity_type.context,
            TYPE_FIELD: entity_type.type_tag,
            ID_FIELD: record.name,
        }
        for spec in entity_type.fields:
            if spec.name == ID_FIELD or self.registry.is_ignored(entity_type.name, spec.name):
                continue
            if table.field(spec.name) is None:
                if spec.required:
                    raise ExportRecordError(
                        f"Required field {spec.name} is missing on table {entity_type.name}"
                    )
                continue
            node[spec.name] = self._encode(spec, record, names)
        return node

    @staticmethod
    def _encode(spec: FieldSpec, record: StoredRecord, names: dict[str, dict[str, str]]) -> object:
        cell = record.fields.get(spec.name)
        if cell is None:
            cell = spec.default_value()
        if not spec.is_link:
            return spec.codec.encode(cell)
        lookup = names.get(spec.link_target or "", {})
        linked = cell if isinstance(cell, list) else [cell]
        return [lookup[item] for item in linked if item in lookup and lookup[item]]
