"""Port describing the tabular store the pipelines read and write.

Link cells hold lists of internal record ids. Creating a link field also creates
its inverse on the target table (named after the source table) unless the link
points at its own table; the store keeps both sides in sync on every write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ldsync.domain.schema import ValueKind


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldInfo:
    name: str
    kind: ValueKind
    link_target: str | None = None
    inverse_field: str | None = None
    options: tuple[str, ...] = ()
    primary: bool = False


@dataclass(frozen=True, slots=True)
class TableInfo:
    name: str
    fields: tuple[FieldInfo, ...] = ()

    def field(self, name: str) -> FieldInfo | None:
        for info in self.fields:
            if info.name == name:
                return info
        return None

    @property
    def primary_field(self) -> FieldInfo | None:
        for info in self.fields:
            if info.primary:
                return info
        return None


@dataclass(frozen=True, slots=True)
class StoredRecord:
    id: str
    name: str
    fields: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RecordUpdate:
    id: str
    fields: Mapping[str, object]


@runtime_checkable
class BackingStore(Protocol):
    max_batch_size: int

    async def list_tables(self) -> list[TableInfo]: ...

    async def create_table(self, name: str, initial_fields: Sequence[FieldInfo]) -> TableInfo: ...

    async def create_field(
        self,
        table: str,
        name: str,
        kind: ValueKind,
        *,
        link_target: str | None = None,
        options: Sequence[str] = (),
    ) -> FieldInfo: ...

    async def rename_field(self, table: str, old_name: str, new_name: str) -> None: ...

    async def list_fields(self, table: str) -> list[FieldInfo]: ...

    async def create_records(
        self, table: str, rows: Sequence[Mapping[str, object]]
    ) -> list[str]: ...

    async def update_records(self, table: str, updates: Sequence[RecordUpdate]) -> None: ...

    async def delete_records(self, table: str, ids: Sequence[str]) -> None: ...

    async def select_records(self, table: str) -> list[StoredRecord]: ...
