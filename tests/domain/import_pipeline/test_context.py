from __future__ import annotations

import pytest

from ldsync.domain.errors import DuplicateIdentifierError
from ldsync.domain.import_pipeline import IdentifierMap


def test_identifier_map_is_one_to_one() -> None:
    identifiers = IdentifierMap()
    identifiers.record("Organization", "https://x.org/org1", "rec1")
    identifiers.record("Organization", "https://x.org/org1", "rec1")

    with pytest.raises(DuplicateIdentifierError):
        identifiers.record("Organization", "https://x.org/org1", "rec2")

    assert len(identifiers) == 1
    assert "https://x.org/org1" in identifiers


def test_identifier_lookup_can_be_restricted_by_type() -> None:
    identifiers = IdentifierMap()
    identifiers.record("Organization", "https://x.org/org1", "rec1")

    assert identifiers.internal_id("https://x.org/org1") == "rec1"
    assert identifiers.internal_id("https://x.org/org1", entity_type="Organization") == "rec1"
    assert identifiers.internal_id("https://x.org/org1", entity_type="Indicator") is None
    assert identifiers.internal_ids() == {"rec1"}
    assert [entry.internal_id for entry in identifiers.audit] == ["rec1"]
