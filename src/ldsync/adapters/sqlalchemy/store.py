"""SQLAlchemy implementation of the ``BackingStore`` port.

Tables, fields and records live in three metadata tables (see ``mappings``), so
the store can model arbitrary user tables inside any SQLAlchemy database. Each
port call runs in its own transaction; the async methods wrap synchronous
sessions because the pipelines call the store strictly sequentially.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, func, insert, select, update
from sqlalchemy.orm import Session, sessionmaker

from ldsync.config.storage import get_database_config
from ldsync.domain.errors import LdSyncError
from ldsync.domain.ports import FieldInfo, StoredRecord, TableInfo
from ldsync.domain.schema import ValueKind

from .mappings import create_all_tables, new_id, store_field, store_record, store_table, utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy import Row
    from sqlalchemy.engine import Engine

    from ldsync.domain.ports import RecordUpdate

log = logging.getLogger(__name__)

DEFAULT_MAX_BATCH_SIZE = 50


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used before initialisation."""


class BackingStoreError(LdSyncError):
    """Raised when a store call references unknown tables, fields or records."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call ldsync.adapters.sqlalchemy."
                "startup() before creating a backing store."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the engine and create the metadata tables."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    return resolved_engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


@dataclass(slots=True)
class _Schema:
    """Table and field metadata loaded once per transaction."""

    tables: dict[str, Row]
    fields: dict[str, Row]
    _table_ids: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._table_ids = {row.name: row.id for row in self.tables.values()}

    def table(self, name: str) -> Row:
        table_id = self._table_ids.get(name)
        if table_id is None:
            raise BackingStoreError(f"Table {name} does not exist")
        return self.tables[table_id]

    def has_table(self, name: str) -> bool:
        return name in self._table_ids

    def fields_of(self, table_id: str) -> list[Row]:
        return [row for row in self.fields.values() if row.table_id == table_id]

    def find_field(self, table_id: str, name: str) -> Row | None:
        for row in self.fields_of(table_id):
            if row.name == name:
                return row
        return None

    def require_field(self, table_id: str, name: str) -> Row:
        row = self.find_field(table_id, name)
        if row is None:
            table_name = self.tables[table_id].name
            raise BackingStoreError(f"Field {name} does not exist on table {table_name}")
        return row

    def info(self, row: Row) -> FieldInfo:
        link_target = self.tables[row.link_table_id].name if row.link_table_id else None
        inverse = self.fields.get(row.inverse_field_id) if row.inverse_field_id else None
        return FieldInfo(
            name=row.name,
            kind=ValueKind(row.kind),
            link_target=link_target,
            inverse_field=inverse.name if inverse is not None else None,
            options=tuple(row.options or ()),
            primary=row.is_primary,
        )


def _load_schema(session: Session) -> _Schema:
    tables = {
        row.id: row
        for row in session.execute(select(store_table).order_by(store_table.c.position))
    }
    fields = {
        row.id: row
        for row in session.execute(select(store_field).order_by(store_field.c.position))
    }
    return _Schema(tables=tables, fields=fields)


def _next_position(session: Session, column: object, *criteria: object) -> int:
    stmt = select(func.coalesce(func.max(column), 0))  # type: ignore[arg-type]
    if criteria:
        stmt = stmt.where(*criteria)  # type: ignore[arg-type]
    return int(session.execute(stmt).scalar_one()) + 1


class SqlAlchemyBackingStore:
    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ) -> None:
        self._session_factory = session_factory or _STATE.session_factory
        self.max_batch_size = max_batch_size

    @classmethod
    def from_engine(
        cls, engine: Engine, *, max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    ) -> SqlAlchemyBackingStore:
        create_all_tables(engine)
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        return cls(factory, max_batch_size=max_batch_size)

    # Tables and fields -------------------------------------------------------

    async def list_tables(self) -> list[TableInfo]:
        with self._session_factory() as session:
            schema = _load_schema(session)
            return [
                TableInfo(
                    name=row.name,
                    fields=tuple(schema.info(f) for f in schema.fields_of(row.id)),
                )
                for row in schema.tables.values()
            ]

    async def create_table(self, name: str, initial_fields: Sequence[FieldInfo]) -> TableInfo:
        if not initial_fields:
            raise BackingStoreError(f"Table {name} needs at least one field")
        if any(info.kind is ValueKind.LINK for info in initial_fields):
            raise BackingStoreError("Link fields cannot be created together with their table")
        with self._session_factory.begin() as session:
            schema = _load_schema(session)
            if schema.has_table(name):
                raise BackingStoreError(f"Table {name} already exists")
            table_id = new_id("tbl")
            session.execute(
                insert(store_table).values(
                    id=table_id,
                    name=name,
                    position=_next_position(session, store_table.c.position),
                    created_at=utcnow(),
                )
            )
            has_primary = any(info.primary for info in initial_fields)
            for index, info in enumerate(initial_fields):
                session.execute(
                    insert(store_field).values(
                        id=new_id("fld"),
                        table_id=table_id,
                        name=info.name,
                        kind=str(info.kind),
                        options=list(info.options),
                        is_primary=info.primary or (not has_primary and index == 0),
                        position=index + 1,
                    )
                )
        log.debug("Created table %s", name)
        return TableInfo(name=name, fields=tuple(await self.list_fields(name)))

    async def create_field(
        self,
        table: str,
        name: str,
        kind: ValueKind,
        *,
        link_target: str | None = None,
        options: Sequence[str] = (),
    ) -> FieldInfo:
        if (kind is ValueKind.LINK) != (link_target is not None):
            raise BackingStoreError(
                f"Field {name}: link fields, and only link fields, need a target"
            )
        with self._session_factory.begin() as session:
            schema = _load_schema(session)
            table_row = schema.table(table)
            if schema.find_field(table_row.id, name) is not None:
                raise BackingStoreError(f"Field {name} already exists on table {table}")
            field_id = new_id("fld")
            target_row = schema.table(link_target) if link_target is not None else None
            inverse_id: str | None = None
            if target_row is not None and target_row.id != table_row.id:
                inverse_id = new_id("fld")
                session.execute(
                    insert(store_field).values(
                        id=inverse_id,
                        table_id=target_row.id,
                        name=self._free_name(schema, target_row.id, table),
                        kind=str(ValueKind.LINK),
                        link_table_id=table_row.id,
                        inverse_field_id=field_id,
                        options=[],
                        is_primary=False,
                        position=_next_position(
                            session, store_field.c.position, store_field.c.table_id == target_row.id
                        ),
                    )
                )
            session.execute(
                insert(store_field).values(
                    id=field_id,
                    table_id=table_row.id,
                    name=name,
                    kind=str(kind),
                    link_table_id=target_row.id if target_row is not None else None,
                    inverse_field_id=inverse_id,
                    options=list(options),
                    is_primary=False,
                    position=_next_position(
                        session, store_field.c.position, store_field.c.table_id == table_row.id
                    ),
                )
            )
            created = _load_schema(session)
            info = created.info(created.fields[field_id])
        log.debug("Created field %s.%s (%s)", table, name, kind)
        return info

    @staticmethod
    def _free_name(schema: _Schema, table_id: str, base: str) -> str:
        candidate = base
        suffix = 2
        while schema.find_field(table_id, candidate) is not None:
            candidate = f"{base} {suffix}"
            suffix += 1
        return candidate

    async def rename_field(self, table: str, old_name: str, new_name: str) -> None:
        with self._session_factory.begin() as session:
            schema = _load_schema(session)
            table_row = schema.table(table)
            row = schema.require_field(table_row.id, old_name)
            if schema.find_field(table_row.id, new_name) is not None:
                raise BackingStoreError(f"Field {new_name} already exists on table {table}")
            session.execute(
                update(store_field).where(store_field.c.id == row.id).values(name=new_name)
            )
        log.debug("Renamed field %s.%s to %s", table, old_name, new_name)

    async def list_fields(self, table: str) -> list[FieldInfo]:
        with self._session_factory() as session:
            schema = _load_schema(session)
            table_row = schema.table(table)
            return [schema.info(row) for row in schema.fields_of(table_row.id)]

    # Records -----------------------------------------------------------------

    def _check_batch(self, items: Sequence[object]) -> None:
        if len(items) > self.max_batch_size:
            raise BackingStoreError(
                f"Batch of {len(items)} exceeds the limit of {self.max_batch_size} records"
            )

    async def create_records(self, table: str, rows: Sequence[Mapping[str, object]]) -> list[str]:
        self._check_batch(rows)
        ids: list[str] = []
        with self._session_factory.begin() as session:
            schema = _load_schema(session)
            table_row = schema.table(table)
            ordinal = _next_position(
                session, store_record.c.ordinal, store_record.c.table_id == table_row.id
            )
            for offset, row in enumerate(rows):
                record_id = new_id("rec")
                cells: dict[str, object] = {}
                links: list[tuple[Row, list[str]]] = []
                for name, value in row.items():
                    field_row = schema.require_field(table_row.id, name)
                    if field_row.kind == ValueKind.LINK:
                        linked = self._linked_ids(session, schema, field_row, value)
                        links.append((field_row, linked))
                        value = linked
                    cells[field_row.id] = value
                session.execute(
                    insert(store_record).values(
                        id=record_id,
                        table_id=table_row.id,
                        ordinal=ordinal + offset,
                        cells=cells,
                        created_at=utcnow(),
                    )
                )
                for field_row, linked in links:
                    self._sync_inverse(session, field_row, record_id, added=linked, removed=())
                ids.append(record_id)
        log.debug("Created %d record(s) in %s", len(ids), table)
        return ids

    async def update_records(self, table: str, updates: Sequence[RecordUpdate]) -> None:
        self._check_batch(updates)
        with self._session_factory.begin() as session:
            schema = _load_schema(session)
            table_row = schema.table(table)
            for change in updates:
                current = self._record(session, table_row, change.id)
                cells = dict(current.cells or {})
                for name, value in change.fields.items():
                    field_row = schema.require_field(table_row.id, name)
                    if field_row.kind == ValueKind.LINK:
                        before = list(cells.get(field_row.id) or [])
                        after = self._linked_ids(session, schema, field_row, value)
                        self._sync_inverse(
                            session,
                            field_row,
                            change.id,
                            added=[item for item in after if item not in before],
                            removed=[item for item in before if item not in after],
                        )
                        value = after
                    cells[field_row.id] = value
                session.execute(
                    update(store_record).where(store_record.c.id == change.id).values(cells=cells)
                )
        log.debug("Updated %d record(s) in %s", len(updates), table)

    async def delete_records(self, table: str, ids: Sequence[str]) -> None:
        self._check_batch(ids)
        doomed = set(ids)
        with self._session_factory.begin() as session:
            schema = _load_schema(session)
            table_row = schema.table(table)
            for record_id in ids:
                self._record(session, table_row, record_id)
            referencing = [
                row for row in schema.fields.values() if row.link_table_id == table_row.id
            ]
            for field_row in referencing:
                self._strip_links(session, field_row, doomed)
            session.execute(
                delete(store_record).where(
                    store_record.c.table_id == table_row.id, store_record.c.id.in_(list(doomed))
                )
            )
        log.debug("Deleted %d record(s) from %s", len(ids), table)

    async def select_records(self, table: str) -> list[StoredRecord]:
        with self._session_factory() as session:
            schema = _load_schema(session)
            table_row = schema.table(table)
            fields = schema.fields_of(table_row.id)
            primary = next((row for row in fields if row.is_primary), None)
            rows = session.execute(
                select(store_record)
                .where(store_record.c.table_id == table_row.id)
                .order_by(store_record.c.ordinal)
            )
            records: list[StoredRecord] = []
            for row in rows:
                cells = row.cells or {}
                name = cells.get(primary.id) if primary is not None else None
                records.append(
                    StoredRecord(
                        id=row.id,
                        name="" if name is None else str(name),
                        fields={f.name: cells[f.id] for f in fields if f.id in cells},
                    )
                )
            return records

    # Internals ---------------------------------------------------------------

    @staticmethod
    def _record(session: Session, table_row: Row, record_id: str) -> Row:
        row = session.execute(
            select(store_record).where(
                store_record.c.id == record_id, store_record.c.table_id == table_row.id
            )
        ).one_or_none()
        if row is None:
            raise BackingStoreError(f"Record {record_id} does not exist in table {table_row.name}")
        return row

    @staticmethod
    def _linked_ids(session: Session, schema: _Schema, field_row: Row, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise BackingStoreError(f"Link field {field_row.name} expects a list of record ids")
        linked = list(dict.fromkeys(value))
        if not linked:
            return linked
        found = set(
            session.execute(
                select(store_record.c.id).where(
                    store_record.c.table_id == field_row.link_table_id,
                    store_record.c.id.in_(linked),
                )
            ).scalars()
        )
        missing = [item for item in linked if item not in found]
        if missing:
            target = schema.tables[field_row.link_table_id].name
            raise BackingStoreError(
                f"Link field {field_row.name} references unknown records in {target}: "
                + ", ".join(missing)
            )
        return linked

    @staticmethod
    def _sync_inverse(
        session: Session,
        field_row: Row,
        record_id: str,
        *,
        added: Iterable[str],
        removed: Iterable[str],
    ) -> None:
        inverse_id = field_row.inverse_field_id
        if inverse_id is None:
            return
        changes = [(item, True) for item in added] + [(item, False) for item in removed]
        for target_id, attach in changes:
            target = session.execute(
                select(store_record).where(store_record.c.id == target_id)
            ).one_or_none()
            if target is None:
                continue
            cells = dict(target.cells or {})
            current = [item for item in (cells.get(inverse_id) or []) if item != record_id]
            if attach:
                current.append(record_id)
            cells[inverse_id] = current
            session.execute(
                update(store_record).where(store_record.c.id == target_id).values(cells=cells)
            )

    @staticmethod
    def _strip_links(session: Session, field_row: Row, doomed: set[str]) -> None:
        rows = session.execute(
            select(store_record).where(store_record.c.table_id == field_row.table_id)
        )
        for row in rows.all():
            cells = dict(row.cells or {})
            current = cells.get(field_row.id) or []
            kept = [item for item in current if item not in doomed]
            if len(kept) == len(current):
                continue
            cells[field_row.id] = kept
            session.execute(
                update(store_record).where(store_record.c.id == row.id).values(cells=cells)
            )
