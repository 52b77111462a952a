"""Full-replace semantics: drop every record this run did not create."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from ldsync.domain.batching import execute_in_batches
from ldsync.domain.ports import RecordUpdate
from ldsync.domain.schema import ValueKind

if TYPE_CHECKING:
    from ldsync.domain.ports import StoredRecord

    from .context import ImportContext

log = getLogger(__name__)


@dataclass(slots=True)
class DeleteStalePhase:
    name: str = "delete_stale"

    async def run(self, document: object, *, context: ImportContext) -> None:
        _ = document
        touched = context.touched_types()
        keep = context.identifier_map.internal_ids()
        stale: dict[str, list[StoredRecord]] = {}
        for type_name in touched:
            records = await context.store.select_records(type_name)
            stale[type_name] = [record for record in records if record.id not in keep]

        replacements: dict[str, str] = {}
        for type_name, records in stale.items():
            for record in records:
                replacement = context.identifier_map.internal_id(record.name, entity_type=type_name)
                if replacement is not None:
                    replacements[record.id] = replacement
        if replacements:
            await self._repoint(context, touched, replacements)

        for type_name, records in stale.items():
            if not records:
                continue
            await execute_in_batches(
                [record.id for record in records],
                partial(context.store.delete_records, type_name),
                context.batch_size,
            )
            context.result.physical_deletions += len(records)
            context.result.removed_ids.extend(
                record.name
                for record in records
                if record.name and record.name not in context.identifier_map
            )
            log.info("Deleted %d stale %s record(s)", len(records), type_name)

    @staticmethod
    async def _repoint(
        context: ImportContext, touched: list[str], replacements: dict[str, str]
    ) -> None:
        """Point links held by untouched tables at the records that replace stale ones."""

        store = context.store
        for table in await store.list_tables():
            if table.name in touched:
                continue
            link_fields = [
                info.name
                for info in table.fields
                if info.kind is ValueKind.LINK and info.link_target in touched
            ]
            if not link_fields:
                continue
            updates: list[RecordUpdate] = []
            for record in await store.select_records(table.name):
                changed: dict[str, object] = {}
                for name in link_fields:
                    cell = record.fields.get(name) or []
                    repointed = list(dict.fromkeys(replacements.get(item, item) for item in cell))
                    if repointed != list(cell):
                        changed[name] = repointed
                if changed:
                    updates.append(RecordUpdate(id=record.id, fields=changed))
            if updates:
                await execute_in_batches(
                    updates, partial(store.update_records, table.name), context.batch_size
                )
                log.info("Re-pointed links on %d %s record(s)", len(updates), table.name)
