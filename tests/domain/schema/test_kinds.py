from __future__ import annotations

import pytest

from ldsync.domain.errors import CodecError
from ldsync.domain.schema import ValueKind, codec_for, infer_kind
from ldsync.domain.schema.kinds import MEASURE_TYPE, unit_of_measure


def test_number_codec_converts_numeric_strings() -> None:
    codec = codec_for(ValueKind.NUMBER)

    assert codec.decode("42") == 42
    assert codec.decode("4.5") == 4.5
    assert codec.decode(7) == 7
    assert codec.decode("") is None


@pytest.mark.parametrize("value", ["many", True, {"a": 1}])
def test_number_codec_rejects_non_numbers(value: object) -> None:
    codec = codec_for(ValueKind.NUMBER)

    assert not codec.accepts(value)
    with pytest.raises(CodecError):
        codec.decode(value)


def test_measurement_codec_unwraps_and_wraps_payload() -> None:
    codec = codec_for(ValueKind.MEASUREMENT)
    measure = {"@type": MEASURE_TYPE, "i72:numerical_value": 12, "unit_of_measure": "kg"}

    assert codec.decode(measure) == "12"
    assert unit_of_measure(measure) == "kg"
    assert codec.encode("12") == {
        "@context": "https://ontology.commonapproach.org/contexts/cidsContext.jsonld",
        "@type": MEASURE_TYPE,
        "numerical_value": "12",
    }


def test_measurement_without_numeric_payload_is_rejected() -> None:
    codec = codec_for(ValueKind.MEASUREMENT)

    assert not codec.accepts({"@type": MEASURE_TYPE})
    with pytest.raises(CodecError):
        codec.decode({"@type": MEASURE_TYPE})


def test_link_codec_splits_and_deduplicates() -> None:
    codec = codec_for(ValueKind.LINK)

    decoded = codec.decode("https://x.org/a, https://x.org/b")
    assert decoded == ["https://x.org/a", "https://x.org/b"]
    assert codec.decode(["https://x.org/a", "https://x.org/a"]) == ["https://x.org/a"]
    assert codec.decode(None) == []
    assert codec.encode("rec1") == ["rec1"]


def test_date_codecs_check_iso_formats() -> None:
    date_codec = codec_for(ValueKind.DATE)
    datetime_codec = codec_for(ValueKind.DATETIME)

    assert date_codec.accepts("2024-03-01")
    assert date_codec.accepts("2024-03-01T10:00:00Z")
    assert not date_codec.accepts("01/03/2024")
    assert datetime_codec.accepts("2024-03-01T10:00:00+00:00")
    assert not datetime_codec.accepts("yesterday")


def test_boolean_codec_accepts_only_booleans() -> None:
    codec = codec_for(ValueKind.BOOLEAN)

    assert codec.decode(False) is False
    assert not codec.accepts("true")


def test_text_codec_serialises_structures() -> None:
    assert codec_for(ValueKind.TEXT).decode({"a": 1}) == '{"a": 1}'


@pytest.mark.parametrize(
    ("value", "kind"),
    [
        (True, ValueKind.BOOLEAN),
        (3.2, ValueKind.NUMBER),
        ({"numerical_value": "1"}, ValueKind.MEASUREMENT),
        ({"note": "x"}, ValueKind.TEXT),
        (["a", "b"], ValueKind.SELECT),
        ("plain", ValueKind.STRING),
    ],
)
def test_infer_kind(value: object, kind: ValueKind) -> None:
    assert infer_kind(value) is kind
