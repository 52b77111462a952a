"""Reconcile backing-store tables and fields with what a document needs.

Structure is inferred from the keys the nodes actually carry, so fields the
schema does not declare still get a column. Existing fields are never coerced:
any disagreement raises ``StructureConflictError`` naming the manual fix.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .document import parse_type_tag, type_values
from .errors import StructureConflictError
from .ports import FieldInfo, TableInfo
from .schema import CONTEXT_FIELD, ID_FIELD, TYPE_FIELD, ValueKind, default_registry, infer_kind
from .schema.kinds import unit_of_measure

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .document import GraphNode
    from .ports import BackingStore
    from .schema import EntityType, SchemaRegistry

log = getLogger(__name__)

UNIT_FIELD = "i72:unit_of_measure"


@dataclass(slots=True)
class InferredField:
    kind: ValueKind
    link_target: str | None = None
    link_inverse: str | None = None
    declared: bool = False
    options: set[str] = field(default_factory=set)


type InferredStructure = dict[str, dict[str, InferredField]]


@dataclass(slots=True)
class ReconcileResult:
    created_tables: list[str] = field(default_factory=list)
    created_fields: list[tuple[str, str]] = field(default_factory=list)
    renamed_fields: list[tuple[str, str, str]] = field(default_factory=list)


def resolve_entity_type(registry: SchemaRegistry, node: GraphNode) -> EntityType | None:
    for value in type_values(node):
        tag = parse_type_tag(value)
        if tag is None:
            continue
        entity_type = registry.resolve_type_tag(tag.name)
        if entity_type is not None:
            return entity_type
    return None


def infer_structure(
    document: Sequence[GraphNode], registry: SchemaRegistry | None = None
) -> InferredStructure:
    """Map each entity type seen in ``document`` to the fields its nodes carry."""

    registry = registry or default_registry()
    structure: InferredStructure = {}
    for node in document:
        entity_type = resolve_entity_type(registry, node)
        if entity_type is None:
            continue
        fields = structure.setdefault(
            entity_type.name, {ID_FIELD: InferredField(kind=ValueKind.STRING, declared=True)}
        )
        for key, value in node.items():
            if key in (TYPE_FIELD, CONTEXT_FIELD) or registry.is_ignored(entity_type.name, key):
                continue
            _merge(fields, entity_type, key, value)
            if unit_of_measure(value) is not None and entity_type.spec_for(UNIT_FIELD):
                _merge(fields, entity_type, UNIT_FIELD, "")
    return structure


def _merge(
    fields: dict[str, InferredField], entity_type: EntityType, key: str, value: object
) -> None:
    spec = entity_type.spec_for(key)
    if spec is not None:
        current = fields.setdefault(
            spec.name,
            InferredField(
                kind=spec.kind,
                link_target=spec.link_target,
                link_inverse=spec.link_inverse,
                declared=True,
            ),
        )
        if spec.kind is ValueKind.SELECT:
            current.options.update(_options(value))
        return

    kind = infer_kind(value)
    current = fields.get(key)
    if current is None:
        current = fields[key] = InferredField(kind=kind)
    elif current.kind is not kind:
        current.kind = ValueKind.TEXT
    if current.kind is ValueKind.SELECT:
        current.options.update(_options(value))


def _options(value: object) -> set[str]:
    if isinstance(value, list):
        return {str(item) for item in value if item not in (None, "")}
    if value in (None, ""):
        return set()
    return {str(value)}


class StructureReconciler:
    def __init__(self, store: BackingStore, registry: SchemaRegistry | None = None) -> None:
        self.store = store
        self.registry = registry or default_registry()

    async def reconcile(self, document: Sequence[GraphNode]) -> ReconcileResult:
        structure = infer_structure(document, self.registry)
        result = ReconcileResult()
        tables = {table.name: table for table in await self.store.list_tables()}

        needed = list(structure)
        for fields in structure.values():
            for inferred in fields.values():
                if inferred.link_target and inferred.link_target not in needed:
                    needed.append(inferred.link_target)

        for name in needed:
            await self._ensure_table(name, tables, result)

        for table_name, fields in structure.items():
            for field_name, inferred in fields.items():
                if inferred.kind is ValueKind.LINK:
                    continue
                await self._ensure_field(tables[table_name], field_name, inferred, result)
                tables[table_name] = await self._refresh(table_name)

        for table_name, fields in structure.items():
            for field_name, inferred in fields.items():
                if inferred.kind is not ValueKind.LINK:
                    continue
                await self._ensure_link(table_name, field_name, inferred, result)

        log.info(
            "Structure reconciled: %d table(s) and %d field(s) created",
            len(result.created_tables),
            len(result.created_fields),
        )
        return result

    async def _refresh(self, table_name: str) -> TableInfo:
        return TableInfo(name=table_name, fields=tuple(await self.store.list_fields(table_name)))

    async def _ensure_table(
        self, name: str, tables: dict[str, TableInfo], result: ReconcileResult
    ) -> None:
        existing = tables.get(name)
        if existing is None:
            for other in tables:
                if other.lower() == name.lower():
                    raise StructureConflictError(
                        f"Table {other} conflicts with {name}. "
                        f"Please rename the table {other} to {name}.",
                        table=other,
                    )
            log.info("Creating table %s", name)
            tables[name] = await self.store.create_table(
                name, [FieldInfo(name=ID_FIELD, kind=ValueKind.STRING, primary=True)]
            )
            result.created_tables.append(name)
            return
        primary = existing.primary_field
        if primary is None or primary.name != ID_FIELD:
            raise StructureConflictError(
                f"The primary field of table {name} must be {ID_FIELD}. "
                f"Please rename the primary field of table {name} to {ID_FIELD}.",
                table=name,
                field=primary.name if primary else None,
            )

    async def _ensure_field(
        self,
        table: TableInfo,
        field_name: str,
        inferred: InferredField,
        result: ReconcileResult,
    ) -> None:
        existing = self._existing_field(table, field_name)
        if existing is not None:
            if existing.kind is not inferred.kind:
                raise StructureConflictError(
                    f"Please update the field {field_name} on table {table.name} "
                    f"to be of type {inferred.kind}.",
                    table=table.name,
                    field=field_name,
                )
            return
        log.debug("Creating field %s.%s (%s)", table.name, field_name, inferred.kind)
        await self.store.create_field(
            table.name, field_name, inferred.kind, options=tuple(sorted(inferred.options))
        )
        result.created_fields.append((table.name, field_name))

    def _existing_field(self, table: TableInfo, field_name: str) -> FieldInfo | None:
        existing = table.field(field_name)
        if existing is not None:
            return existing
        for info in table.fields:
            if info.name.lower() == field_name.lower():
                raise StructureConflictError(
                    f"Field {info.name} on table {table.name} conflicts with {field_name}. "
                    f"Please delete or rename the field {info.name} on table {table.name}.",
                    table=table.name,
                    field=info.name,
                )
        return None

    async def _ensure_link(
        self,
        table_name: str,
        field_name: str,
        inferred: InferredField,
        result: ReconcileResult,
    ) -> None:
        target = inferred.link_target or ""
        table = await self._refresh(table_name)
        existing = self._existing_field(table, field_name)
        if existing is not None:
            if existing.kind is not ValueKind.LINK or existing.link_target != target:
                raise StructureConflictError(
                    f"Please update the field {field_name} on table {table_name} "
                    f"to be a link to table {target}.",
                    table=table_name,
                    field=field_name,
                )
            return

        self_link = target == table_name
        if not self_link:
            target_table = await self._refresh(target)
            reserved = [table_name]
            if inferred.link_inverse is not None:
                reserved.append(inferred.link_inverse)
            for blocking in reserved:
                clash = target_table.field(blocking)
                if clash is not None:
                    raise StructureConflictError(
                        f"Field {clash.name} already exists on table {target}. "
                        f"Please delete or rename the field {clash.name} on table {target}.",
                        table=target,
                        field=clash.name,
                    )

        log.debug("Creating link %s.%s -> %s", table_name, field_name, target)
        info = await self.store.create_field(
            table_name, field_name, ValueKind.LINK, link_target=target
        )
        result.created_fields.append((table_name, field_name))
        inverse = inferred.link_inverse
        if self_link or not inverse or not info.inverse_field or info.inverse_field == inverse:
            return
        await self.store.rename_field(target, info.inverse_field, inverse)
        result.renamed_fields.append((target, info.inverse_field, inverse))
