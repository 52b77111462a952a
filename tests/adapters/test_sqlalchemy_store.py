from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from ldsync.adapters.sqlalchemy import (
    BackingStoreError,
    SqlAlchemyBackingStore,
    StartupError,
    is_started,
    shutdown,
    startup,
)
from ldsync.domain.ports import BackingStore, FieldInfo, RecordUpdate
from ldsync.domain.schema import ValueKind

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

ID = FieldInfo(name="@id", kind=ValueKind.STRING, primary=True)


def _setup_linked(store: SqlAlchemyBackingStore) -> None:
    asyncio.run(store.create_table("Organization", [ID]))
    asyncio.run(store.create_table("Indicator", [ID]))
    asyncio.run(
        store.create_field("Organization", "hasIndicator", ValueKind.LINK, link_target="Indicator")
    )


def _fields(store: SqlAlchemyBackingStore, table: str) -> dict[str, FieldInfo]:
    return {info.name: info for info in asyncio.run(store.list_fields(table))}


def _cells(store: SqlAlchemyBackingStore, table: str) -> dict[str, dict[str, object]]:
    return {
        record.id: dict(record.fields) for record in asyncio.run(store.select_records(table))
    }


def test_store_satisfies_port(store: SqlAlchemyBackingStore) -> None:
    assert isinstance(store, BackingStore)


def test_create_table_marks_primary_field(store: SqlAlchemyBackingStore) -> None:
    table = asyncio.run(
        store.create_table("Theme", [FieldInfo(name="@id", kind=ValueKind.STRING)])
    )

    assert table.primary_field is not None
    assert table.primary_field.name == "@id"
    assert [info.name for info in asyncio.run(store.list_tables())] == ["Theme"]


def test_create_table_rejects_duplicates_and_links(store: SqlAlchemyBackingStore) -> None:
    asyncio.run(store.create_table("Theme", [ID]))

    with pytest.raises(BackingStoreError, match="already exists"):
        asyncio.run(store.create_table("Theme", [ID]))
    with pytest.raises(BackingStoreError, match="Link fields"):
        asyncio.run(
            store.create_table(
                "Other", [FieldInfo(name="x", kind=ValueKind.LINK, link_target="Theme")]
            )
        )


def test_link_field_creates_inverse_named_after_source(store: SqlAlchemyBackingStore) -> None:
    _setup_linked(store)

    organization = _fields(store, "Organization")
    indicator = _fields(store, "Indicator")

    assert organization["hasIndicator"].inverse_field == "Organization"
    assert indicator["Organization"].kind is ValueKind.LINK
    assert indicator["Organization"].link_target == "Organization"
    assert indicator["Organization"].inverse_field == "hasIndicator"


def test_second_link_to_same_table_gets_a_free_inverse_name(
    store: SqlAlchemyBackingStore,
) -> None:
    _setup_linked(store)
    asyncio.run(
        store.create_field(
            "Organization", "hasKeyIndicator", ValueKind.LINK, link_target="Indicator"
        )
    )

    assert _fields(store, "Indicator")["Organization 2"].inverse_field == "hasKeyIndicator"


def test_self_link_has_no_inverse(store: SqlAlchemyBackingStore) -> None:
    asyncio.run(store.create_table("Theme", [ID]))
    info = asyncio.run(
        store.create_field("Theme", "relatesTo", ValueKind.LINK, link_target="Theme")
    )

    assert info.inverse_field is None
    assert list(_fields(store, "Theme")) == ["@id", "relatesTo"]


def test_link_fields_need_a_target(store: SqlAlchemyBackingStore) -> None:
    asyncio.run(store.create_table("Theme", [ID]))

    with pytest.raises(BackingStoreError, match="need a target"):
        asyncio.run(store.create_field("Theme", "relatesTo", ValueKind.LINK))


def test_writes_keep_both_sides_of_a_link_in_sync(store: SqlAlchemyBackingStore) -> None:
    _setup_linked(store)
    first, second = asyncio.run(
        store.create_records("Indicator", [{"@id": "i1"}, {"@id": "i2"}])
    )
    [org] = asyncio.run(
        store.create_records("Organization", [{"@id": "o1", "hasIndicator": [first]}])
    )

    assert _cells(store, "Indicator")[first]["Organization"] == [org]

    asyncio.run(
        store.update_records(
            "Organization", [RecordUpdate(id=org, fields={"hasIndicator": [second]})]
        )
    )

    indicators = _cells(store, "Indicator")
    assert indicators[first]["Organization"] == []
    assert indicators[second]["Organization"] == [org]


def test_delete_strips_links_to_removed_records(store: SqlAlchemyBackingStore) -> None:
    _setup_linked(store)
    [indicator] = asyncio.run(store.create_records("Indicator", [{"@id": "i1"}]))
    [org] = asyncio.run(
        store.create_records("Organization", [{"@id": "o1", "hasIndicator": [indicator]}])
    )

    asyncio.run(store.delete_records("Indicator", [indicator]))

    assert _cells(store, "Organization")[org]["hasIndicator"] == []
    assert asyncio.run(store.select_records("Indicator")) == []


def test_links_to_unknown_records_are_rejected(store: SqlAlchemyBackingStore) -> None:
    _setup_linked(store)

    with pytest.raises(BackingStoreError, match="unknown records"):
        asyncio.run(store.create_records("Organization", [{"@id": "o1", "hasIndicator": ["nope"]}]))


def test_batches_above_the_limit_are_rejected(store: SqlAlchemyBackingStore) -> None:
    asyncio.run(store.create_table("Theme", [ID]))
    rows = [{"@id": f"t{index}"} for index in range(store.max_batch_size + 1)]

    with pytest.raises(BackingStoreError, match="exceeds the limit"):
        asyncio.run(store.create_records("Theme", rows))


def test_select_records_names_records_by_primary_field(store: SqlAlchemyBackingStore) -> None:
    asyncio.run(store.create_table("Theme", [ID]))
    asyncio.run(store.create_field("Theme", "hasName", ValueKind.STRING))
    asyncio.run(store.create_records("Theme", [{"@id": "t1", "hasName": "Food"}, {"hasName": "x"}]))

    records = asyncio.run(store.select_records("Theme"))

    assert [record.name for record in records] == ["t1", ""]
    assert records[0].fields == {"@id": "t1", "hasName": "Food"}


def test_unknown_tables_fields_and_records_raise(store: SqlAlchemyBackingStore) -> None:
    asyncio.run(store.create_table("Theme", [ID]))

    with pytest.raises(BackingStoreError, match="Table Missing does not exist"):
        asyncio.run(store.list_fields("Missing"))
    with pytest.raises(BackingStoreError, match="Field nope does not exist"):
        asyncio.run(store.create_records("Theme", [{"nope": 1}]))
    with pytest.raises(BackingStoreError, match="does not exist in table Theme"):
        asyncio.run(store.update_records("Theme", [RecordUpdate(id="rec_x", fields={})]))


def test_rename_field_refuses_existing_names(store: SqlAlchemyBackingStore) -> None:
    _setup_linked(store)
    asyncio.run(store.rename_field("Indicator", "Organization", "forOrganization"))

    assert "forOrganization" in _fields(store, "Indicator")
    assert _fields(store, "Organization")["hasIndicator"].inverse_field == "forOrganization"
    with pytest.raises(BackingStoreError, match="already exists"):
        asyncio.run(store.rename_field("Indicator", "forOrganization", "@id"))


@pytest.mark.usefixtures("managed_adapter")
def test_startup_and_shutdown_manage_the_default_engine(sqlite_engine: Engine) -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyBackingStore()

    startup(engine=sqlite_engine)

    assert is_started()
    with pytest.raises(StartupError, match="already initialised"):
        startup(engine=sqlite_engine)
    store = SqlAlchemyBackingStore()
    asyncio.run(store.create_table("Theme", [ID]))
    assert [table.name for table in asyncio.run(store.list_tables())] == ["Theme"]

    shutdown()
    assert not is_started()
