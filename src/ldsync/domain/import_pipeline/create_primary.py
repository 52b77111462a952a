"""Phase 1 of the write: one record per node with every non-link field."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from ldsync.domain.batching import execute_in_batches
from ldsync.domain.errors import CodecError
from ldsync.domain.schema import CONTEXT_FIELD, TYPE_FIELD, ValueKind, codec_for
from ldsync.domain.schema.kinds import unit_of_measure
from ldsync.domain.structure import UNIT_FIELD

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ldsync.domain.ports import FieldInfo

    from .context import ImportContext, PreparedNode

log = getLogger(__name__)


def build_row(
    prepared: PreparedNode,
    fields: Mapping[str, FieldInfo],
    *,
    context: ImportContext,
) -> dict[str, object]:
    """Decode every non-link value of ``prepared`` into a backing-store row."""

    entity_type = prepared.entity_type
    row: dict[str, object] = {}
    for key, value in prepared.node.items():
        if key in (TYPE_FIELD, CONTEXT_FIELD) or context.registry.is_ignored(entity_type.name, key):
            continue
        spec = entity_type.spec_for(key)
        name = spec.name if spec is not None else key
        info = fields.get(name)
        if info is None or info.kind is ValueKind.LINK:
            continue
        try:
            cell = codec_for(info.kind).decode(value)
        except CodecError as exc:
            log.warning(
                "Skipping %s on %s %s: %s", name, entity_type.name, prepared.external_id, exc
            )
            continue
        if cell is not None:
            row[name] = cell
        unit = unit_of_measure(value) if info.kind is ValueKind.MEASUREMENT else None
        if unit is not None and UNIT_FIELD in fields and UNIT_FIELD not in prepared.node:
            row[UNIT_FIELD] = str(unit)
    return row


@dataclass(slots=True)
class CreatePrimaryPhase:
    name: str = "create_primary"

    async def run(self, document: object, *, context: ImportContext) -> None:
        _ = document
        store = context.store
        for type_name in context.touched_types():
            context.previous[type_name] = await store.select_records(type_name)

        for type_name in context.touched_types():
            fields = {info.name: info for info in await store.list_fields(type_name)}
            nodes = context.nodes_of(type_name)
            rows = [build_row(prepared, fields, context=context) for prepared in nodes]
            ids = await execute_in_batches(
                rows, partial(store.create_records, type_name), context.batch_size
            )
            for prepared, internal_id in zip(nodes, ids, strict=True):
                context.identifier_map.record(type_name, prepared.external_id, internal_id)
            context.result.created[type_name] = len(ids)
            log.info("Created %d %s record(s)", len(ids), type_name)
