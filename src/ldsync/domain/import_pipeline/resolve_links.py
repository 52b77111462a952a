"""Phase 2 of the write: rewrite link fields from external ids to internal ids."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from ldsync.domain.batching import execute_in_batches
from ldsync.domain.errors import CodecError
from ldsync.domain.ports import RecordUpdate

from .context import DanglingReference

if TYPE_CHECKING:
    from ldsync.domain.schema import FieldSpec

    from .context import ImportContext, PreparedNode

log = getLogger(__name__)


@dataclass(slots=True)
class ResolveLinksPhase:
    name: str = "resolve_links"

    async def run(self, document: object, *, context: ImportContext) -> None:
        _ = document
        for type_name in context.touched_types():
            updates: list[RecordUpdate] = []
            for prepared in context.nodes_of(type_name):
                fields = self._resolve_node(prepared, context)
                if not fields:
                    continue
                internal_id = context.identifier_map.internal_id(prepared.external_id)
                if internal_id is None:
                    continue
                updates.append(RecordUpdate(id=internal_id, fields=fields))
            if not updates:
                continue
            await execute_in_batches(
                updates, partial(context.store.update_records, type_name), context.batch_size
            )
            log.info("Resolved links on %d %s record(s)", len(updates), type_name)

    def _resolve_node(self, prepared: PreparedNode, context: ImportContext) -> dict[str, object]:
        entity_type = prepared.entity_type
        fields: dict[str, object] = {}
        for key, value in prepared.node.items():
            spec = entity_type.spec_for(key)
            if spec is None or not spec.is_link:
                continue
            if context.registry.is_ignored(entity_type.name, key):
                continue
            try:
                external_ids = spec.codec.decode(value)
            except CodecError as exc:
                log.warning(
                    "Skipping link %s on %s %s: %s",
                    spec.name,
                    entity_type.name,
                    prepared.external_id,
                    exc,
                )
                continue
            fields[spec.name] = self._resolve_ids(
                prepared,
                spec,
                external_ids,  # type: ignore[arg-type]
                context,
            )
        return fields

    @staticmethod
    def _resolve_ids(
        prepared: PreparedNode,
        spec: FieldSpec,
        external_ids: list[str],
        context: ImportContext,
    ) -> list[str]:
        resolved: list[str] = []
        for external_id in external_ids:
            internal_id = context.identifier_map.internal_id(
                external_id, entity_type=spec.link_target
            )
            if internal_id is None:
                log.warning(
                    "Dropping dangling reference %s on %s.%s of %s",
                    external_id,
                    prepared.entity_type.name,
                    spec.name,
                    prepared.external_id,
                )
                context.result.dangling_references.append(
                    DanglingReference(
                        entity_type=prepared.entity_type.name,
                        external_id=prepared.external_id,
                        field=spec.name,
                        missing_id=external_id,
                    )
                )
                continue
            if internal_id not in resolved:
                resolved.append(internal_id)
        return resolved
