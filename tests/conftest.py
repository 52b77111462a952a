from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from ldsync.adapters.sqlalchemy import SqlAlchemyBackingStore, shutdown
from ldsync.domain.schema import SchemaRegistry, default_registry

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(sqlite_engine: Engine) -> SqlAlchemyBackingStore:
    return SqlAlchemyBackingStore.from_engine(sqlite_engine, max_batch_size=10)


@pytest.fixture
def registry() -> SchemaRegistry:
    return default_registry()


@pytest.fixture
def sample_document() -> list[dict[str, object]]:
    return json.loads((DATA_DIR / "sample_document.json").read_text(encoding="utf-8"))


@pytest.fixture
def managed_adapter() -> Iterator[None]:
    shutdown()
    try:
        yield
    finally:
        shutdown()
