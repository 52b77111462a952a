"""Field value kinds and the codec that converts each kind between JSON-LD and cells.

``decode`` runs in the import direction (JSON-LD value -> backing-store cell),
``encode`` in the export direction, and ``accepts`` is the shape check used by
validation. Every codec treats ``None`` as "no value" in both directions.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Protocol

from ldsync.domain.errors import CodecError

if TYPE_CHECKING:
    from collections.abc import Mapping

MEASURE_TYPE: Final[str] = "i72:Measure"
MEASURE_CONTEXT: Final[str] = "https://ontology.commonapproach.org/contexts/cidsContext.jsonld"
NUMERICAL_VALUE_KEYS: Final[tuple[str, ...]] = ("numerical_value", "i72:numerical_value")
UNIT_OF_MEASURE_KEYS: Final[tuple[str, ...]] = ("unit_of_measure", "i72:unit_of_measure")
LINK_SEPARATOR: Final[str] = ", "


class ValueKind(StrEnum):
    STRING = "string"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    MEASUREMENT = "measurement"
    LINK = "link"
    SELECT = "select"


class ValueCodec(Protocol):
    kind: ValueKind

    def accepts(self, value: object) -> bool: ...

    def decode(self, value: object) -> object: ...

    def encode(self, value: object) -> object: ...


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


class StringCodec:
    kind = ValueKind.STRING

    def accepts(self, value: object) -> bool:
        return value is None or isinstance(value, str | int | float) and not isinstance(value, bool)

    def decode(self, value: object) -> object:
        if value is None:
            return None
        if not self.accepts(value):
            raise CodecError(f"Expected a string, got {type(value).__name__}")
        return str(value)

    def encode(self, value: object) -> object:
        return "" if value is None else str(value)


class TextCodec(StringCodec):
    kind = ValueKind.TEXT

    def accepts(self, value: object) -> bool:
        return True

    def decode(self, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, dict | list):
            return json.dumps(value, ensure_ascii=False)
        return str(value)


class NumberCodec:
    kind = ValueKind.NUMBER

    def accepts(self, value: object) -> bool:
        if value is None:
            return True
        try:
            self.decode(value)
        except CodecError:
            return False
        return True

    def decode(self, value: object) -> object:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise CodecError("Expected a number, got a boolean")
        if isinstance(value, int | float):
            return value
        if isinstance(value, str):
            try:
                number = float(value)
            except ValueError as exc:
                raise CodecError(f"Expected a number, got {value!r}") from exc
            return int(number) if number.is_integer() and "." not in value else number
        raise CodecError(f"Expected a number, got {type(value).__name__}")

    def encode(self, value: object) -> object:
        return value


class DateCodec:
    kind = ValueKind.DATE

    def accepts(self, value: object) -> bool:
        if value is None or value == "":
            return True
        if not isinstance(value, str):
            return False
        try:
            _parse_date(value)
        except ValueError:
            return False
        return True

    def decode(self, value: object) -> object:
        if value is None or value == "":
            return None
        if not self.accepts(value):
            raise CodecError(f"Expected a date (YYYY-MM-DD), got {value!r}")
        return value

    def encode(self, value: object) -> object:
        return "" if value is None else value


class DateTimeCodec(DateCodec):
    kind = ValueKind.DATETIME

    def accepts(self, value: object) -> bool:
        if value is None or value == "":
            return True
        if not isinstance(value, str):
            return False
        try:
            datetime.fromisoformat(value)
        except ValueError:
            return False
        return True

    def decode(self, value: object) -> object:
        if value is None or value == "":
            return None
        if not self.accepts(value):
            raise CodecError(f"Expected an ISO-8601 datetime, got {value!r}")
        return value


def _parse_date(value: str) -> date:
    if "T" in value:
        return datetime.fromisoformat(value).date()
    return date.fromisoformat(value)


class BooleanCodec:
    kind = ValueKind.BOOLEAN

    def accepts(self, value: object) -> bool:
        return value is None or isinstance(value, bool)

    def decode(self, value: object) -> object:
        if value is None:
            return None
        if not isinstance(value, bool):
            raise CodecError(f"Expected a boolean, got {value!r}")
        return value

    def encode(self, value: object) -> object:
        return bool(value)


class MeasurementCodec:
    """``{"@type": "i72:Measure", "numerical_value": "..."}`` on the wire, a string in cells."""

    kind = ValueKind.MEASUREMENT

    def accepts(self, value: object) -> bool:
        if value is None:
            return True
        if isinstance(value, dict):
            return numerical_value(value) is not None
        return isinstance(value, str | int | float) and not isinstance(value, bool)

    def decode(self, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, dict):
            payload = numerical_value(value)
            if payload is None:
                raise CodecError("Measurement has no numerical_value")
            return str(payload)
        if isinstance(value, bool) or not isinstance(value, str | int | float):
            raise CodecError(f"Expected a measurement, got {type(value).__name__}")
        return str(value)

    def encode(self, value: object) -> object:
        return {
            "@context": MEASURE_CONTEXT,
            "@type": MEASURE_TYPE,
            "numerical_value": "" if value is None else str(value),
        }


def numerical_value(measure: Mapping[str, object]) -> object | None:
    for key in NUMERICAL_VALUE_KEYS:
        if key in measure:
            return measure[key]
    return None


def unit_of_measure(measure: object) -> object | None:
    if not isinstance(measure, dict):
        return None
    for key in UNIT_OF_MEASURE_KEYS:
        if key in measure:
            return measure[key]
    return None


class LinkCodec:
    """External ids on the wire; decode yields a de-duplicated id list."""

    kind = ValueKind.LINK

    def accepts(self, value: object) -> bool:
        if value is None or isinstance(value, str):
            return True
        return isinstance(value, list) and all(isinstance(item, str) for item in value)

    def decode(self, value: object) -> object:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return _unique([part.strip() for part in value.split(LINK_SEPARATOR) if part.strip()])
        if isinstance(value, list):
            if not all(isinstance(item, str) for item in value):
                raise CodecError("Link values must be strings")
            return _unique([item for item in value if item])
        raise CodecError(f"Expected a link id or list of ids, got {type(value).__name__}")

    def encode(self, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return list(value)
        return [value]


class SelectCodec(LinkCodec):
    kind = ValueKind.SELECT


CODECS: Final[Mapping[ValueKind, ValueCodec]] = {
    ValueKind.STRING: StringCodec(),
    ValueKind.TEXT: TextCodec(),
    ValueKind.NUMBER: NumberCodec(),
    ValueKind.DATE: DateCodec(),
    ValueKind.DATETIME: DateTimeCodec(),
    ValueKind.BOOLEAN: BooleanCodec(),
    ValueKind.MEASUREMENT: MeasurementCodec(),
    ValueKind.LINK: LinkCodec(),
    ValueKind.SELECT: SelectCodec(),
}


def codec_for(kind: ValueKind) -> ValueCodec:
    return CODECS[kind]


def infer_kind(value: object) -> ValueKind:
    """Best-guess kind for a field the schema does not declare."""

    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int | float):
        return ValueKind.NUMBER
    if isinstance(value, dict):
        if numerical_value(value) is not None:
            return ValueKind.MEASUREMENT
        return ValueKind.TEXT
    if isinstance(value, list):
        return ValueKind.SELECT
    return ValueKind.STRING
