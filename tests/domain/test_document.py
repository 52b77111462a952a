from __future__ import annotations

import pytest

from ldsync.domain.document import (
    TypeTag,
    authority,
    is_absolute_url,
    is_empty_value,
    parse_type_tag,
    type_values,
)


def test_parse_type_tag() -> None:
    assert parse_type_tag("cids:Organization") == TypeTag(prefix="cids", name="Organization")
    assert parse_type_tag("Organization") is None
    assert parse_type_tag("cids:") is None
    assert parse_type_tag(3) is None


def test_type_values_accepts_scalars_and_lists() -> None:
    assert type_values({"@type": "cids:Theme"}) == ["cids:Theme"]
    assert type_values({"@type": ["cids:Theme", "x:Y"]}) == ["cids:Theme", "x:Y"]
    assert type_values({}) == []


def test_authority_is_scheme_and_host() -> None:
    assert authority("https://x.org/org1") == "https://x.org"
    assert authority("https://x.org:8443/a") == "https://x.org"
    assert authority("org1") is None
    assert not is_absolute_url("x.org/org1")


@pytest.mark.parametrize(
    ("value", "empty"),
    [(None, True), ("  ", True), ([], True), ({}, True), (0, False), (False, False), ("a", False)],
)
def test_is_empty_value(value: object, empty: bool) -> None:
    assert is_empty_value(value) is empty
