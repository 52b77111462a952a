"""Copy user-added backing-store fields from replaced records onto their successors."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from ldsync.domain.document import is_empty_value
from ldsync.domain.ports import RecordUpdate
from ldsync.domain.schema import ValueKind

if TYPE_CHECKING:
    from ldsync.domain.ports import FieldInfo

    from .context import ImportContext

log = getLogger(__name__)


@dataclass(slots=True)
class CarryOverExtraFieldsPhase:
    """Best effort: a record that cannot be updated is logged and skipped."""

    name: str = "carry_over_extra_fields"

    async def run(self, document: object, *, context: ImportContext) -> None:
        _ = document
        for type_name in context.touched_types():
            previous = {record.name: record for record in context.previous.get(type_name, [])}
            if not previous:
                continue
            table_fields = await context.store.list_fields(type_name)
            extra = self._extra_fields(type_name, table_fields, context)
            if not extra:
                continue
            current = {
                record.id: record for record in await context.store.select_records(type_name)
            }
            for prepared in context.nodes_of(type_name):
                old = previous.get(prepared.external_id)
                internal_id = context.identifier_map.internal_id(prepared.external_id)
                new = current.get(internal_id or "")
                if old is None or new is None:
                    continue
                fields = {
                    name: old.fields[name]
                    for name in extra
                    if not is_empty_value(old.fields.get(name))
                    and is_empty_value(new.fields.get(name))
                }
                if not fields:
                    continue
                try:
                    await context.store.update_records(
                        type_name, [RecordUpdate(id=new.id, fields=fields)]
                    )
                except Exception:
                    log.exception(
                        "Could not carry over %s on %s %s",
                        ", ".join(sorted(fields)),
                        type_name,
                        prepared.external_id,
                    )
                    continue
                context.result.carried_over += 1
        log.info("Carried over custom fields on %d record(s)", context.result.carried_over)

    @staticmethod
    def _extra_fields(
        type_name: str, fields: list[FieldInfo], context: ImportContext
    ) -> list[str]:
        entity_type = context.registry[type_name]
        return [
            info.name
            for info in fields
            if not info.primary
            and info.kind is not ValueKind.LINK
            and entity_type.spec_for(info.name) is None
            and not context.registry.is_ignored(type_name, info.name)
        ]
