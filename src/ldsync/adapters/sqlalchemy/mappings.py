"""Core tables that hold the tabular backing store (tables, fields, records)."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def new_id(prefix: str) -> str:
    """Opaque internal identifier such as ``rec3f2a...``."""

    return f"{prefix}{uuid.uuid4().hex[:14]}"


def utcnow() -> datetime:
    return datetime.now(UTC)


store_table = Table(
    "store_table",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("position", Integer, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False, default=utcnow),
)

store_field = Table(
    "store_field",
    metadata,
    Column("id", String(32), primary_key=True),
    Column(
        "table_id",
        String(32),
        ForeignKey("store_table.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", String(255), nullable=False),
    Column("kind", String(32), nullable=False),
    Column("link_table_id", String(32), ForeignKey("store_table.id"), nullable=True),
    # Not a foreign key: both sides of a link pair reference each other.
    Column("inverse_field_id", String(32), nullable=True),
    Column("options", JSON, nullable=False, default=list),
    Column("is_primary", Boolean, nullable=False, default=False),
    Column("position", Integer, nullable=False),
    UniqueConstraint("table_id", "name"),
)

store_record = Table(
    "store_record",
    metadata,
    Column("id", String(32), primary_key=True),
    Column(
        "table_id",
        String(32),
        ForeignKey("store_table.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("ordinal", Integer, nullable=False),
    # Cell values keyed by field id, so renaming a field leaves records untouched.
    Column("cells", JSON, nullable=False, default=dict),
    Column("created_at", UTCDateTime(), nullable=False, default=utcnow),
)


def create_all_tables(engine: Engine) -> None:
    """Create the backing-store metadata tables if they do not exist yet."""

    log.info("Creating backing store tables")
    metadata.create_all(engine, checkfirst=True)
