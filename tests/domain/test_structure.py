from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from ldsync.domain.errors import StructureConflictError
from ldsync.domain.ports import FieldInfo
from ldsync.domain.schema import ValueKind
from ldsync.domain.structure import StructureReconciler, infer_structure
from tests.support.nodes import indicator, organization

if TYPE_CHECKING:
    from ldsync.adapters.sqlalchemy import SqlAlchemyBackingStore
    from ldsync.domain.schema import SchemaRegistry


def test_infer_structure_uses_declared_and_observed_fields(registry: SchemaRegistry) -> None:
    document = [
        organization("https://x.org/org1", "Acme", hasIndicator=[], staffCount=12, tags=["a"]),
        organization("https://x.org/org2", "Beta", staffCount="twelve", tags=["b"]),
    ]

    structure = infer_structure(document, registry)

    fields = structure["Organization"]
    assert fields["org:hasLegalName"].declared
    assert fields["hasIndicator"].kind is ValueKind.LINK
    assert fields["hasIndicator"].link_inverse == "forOrganization"
    assert fields["staffCount"].kind is ValueKind.TEXT
    assert fields["tags"].kind is ValueKind.SELECT
    assert fields["tags"].options == {"a", "b"}


def test_infer_structure_skips_ignored_fields_and_adds_unit_column(
    registry: SchemaRegistry,
) -> None:
    document = [
        {
            "@type": "cids:IndicatorReport",
            "@id": "https://x.org/rep1",
            "hasName": "R",
            "value": {"numerical_value": "3", "unit_of_measure": "kg"},
        },
        {"@type": "cids:Address", "@id": "https://x.org/a1", "forOrganization": "x"},
    ]

    structure = infer_structure(document, registry)

    assert "i72:unit_of_measure" in structure["IndicatorReport"]
    assert structure["IndicatorReport"]["i72:value"].kind is ValueKind.MEASUREMENT
    assert "forOrganization" not in structure["Address"]


def test_reconcile_creates_tables_fields_and_named_inverses(
    store: SqlAlchemyBackingStore, registry: SchemaRegistry
) -> None:
    document = [
        organization("https://x.org/org1", "Acme", hasIndicator=["https://x.org/ind1"]),
        indicator("https://x.org/ind1", "Meals", forOrganization="https://x.org/org1"),
    ]

    result = asyncio.run(StructureReconciler(store, registry).reconcile(document))

    assert result.created_tables == ["Organization", "Indicator"]
    assert ("Indicator", "Organization", "forOrganization") in result.renamed_fields
    indicator_fields = {info.name: info for info in asyncio.run(store.list_fields("Indicator"))}
    assert indicator_fields["@id"].primary
    assert indicator_fields["forOrganization"].link_target == "Organization"
    assert indicator_fields["forOrganization"].inverse_field == "hasIndicator"


def test_reconcile_is_idempotent(store: SqlAlchemyBackingStore, registry: SchemaRegistry) -> None:
    document = [organization("https://x.org/org1", "Acme", hasIndicator=[])]
    reconciler = StructureReconciler(store, registry)

    asyncio.run(reconciler.reconcile(document))
    second = asyncio.run(reconciler.reconcile(document))

    assert second.created_tables == []
    assert second.created_fields == []


def test_reconcile_never_coerces_field_kinds(
    store: SqlAlchemyBackingStore, registry: SchemaRegistry
) -> None:
    asyncio.run(
        store.create_table(
            "Organization",
            [
                FieldInfo(name="@id", kind=ValueKind.STRING, primary=True),
                FieldInfo(name="org:hasLegalName", kind=ValueKind.NUMBER),
            ],
        )
    )

    with pytest.raises(StructureConflictError) as excinfo:
        asyncio.run(
            StructureReconciler(store, registry).reconcile(
                [organization("https://x.org/org1", "Acme")]
            )
        )

    assert str(excinfo.value) == (
        "Please update the field org:hasLegalName on table Organization to be of type string."
    )
    assert excinfo.value.table == "Organization"
    assert excinfo.value.field == "org:hasLegalName"


def test_reconcile_requires_id_as_primary_field(
    store: SqlAlchemyBackingStore, registry: SchemaRegistry
) -> None:
    asyncio.run(
        store.create_table(
            "Organization", [FieldInfo(name="Name", kind=ValueKind.STRING, primary=True)]
        )
    )

    with pytest.raises(StructureConflictError, match="primary field of table Organization"):
        asyncio.run(
            StructureReconciler(store, registry).reconcile(
                [organization("https://x.org/org1", "Acme")]
            )
        )


def test_reconcile_reports_case_insensitive_clashes(
    store: SqlAlchemyBackingStore, registry: SchemaRegistry
) -> None:
    asyncio.run(
        store.create_table(
            "Organization",
            [
                FieldInfo(name="@id", kind=ValueKind.STRING, primary=True),
                FieldInfo(name="org:haslegalname", kind=ValueKind.STRING),
            ],
        )
    )

    with pytest.raises(StructureConflictError, match="Please delete or rename the field"):
        asyncio.run(
            StructureReconciler(store, registry).reconcile(
                [organization("https://x.org/org1", "Acme")]
            )
        )


def test_reconcile_refuses_to_shadow_existing_inverse_name(
    store: SqlAlchemyBackingStore, registry: SchemaRegistry
) -> None:
    asyncio.run(
        store.create_table(
            "Indicator",
            [
                FieldInfo(name="@id", kind=ValueKind.STRING, primary=True),
                FieldInfo(name="forOrganization", kind=ValueKind.STRING),
            ],
        )
    )

    with pytest.raises(StructureConflictError) as excinfo:
        asyncio.run(
            StructureReconciler(store, registry).reconcile(
                [organization("https://x.org/org1", "Acme", hasIndicator=[])]
            )
        )

    assert excinfo.value.table == "Indicator"
    assert excinfo.value.field == "forOrganization"
