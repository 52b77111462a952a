"""Helpers for JSON-LD graph nodes: type tags, ids, aliases."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from .schema.fields import ID_FIELD, TYPE_FIELD

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .schema import FieldSpec

type GraphNode = dict[str, Any]
type GraphDocument = list[GraphNode]


@dataclass(frozen=True, slots=True)
class TypeTag:
    prefix: str
    name: str

    def __str__(self) -> str:
        return f"{self.prefix}:{self.name}"


def parse_type_tag(value: object) -> TypeTag | None:
    """Parse ``prefix:Name``; anything else (including a bare name) returns ``None``."""

    if not isinstance(value, str):
        return None
    prefix, sep, name = value.partition(":")
    if not sep or not prefix or not name or ":" in name:
        return None
    return TypeTag(prefix=prefix, name=name)


def type_values(node: GraphNode) -> list[object]:
    """Return the node's ``@type`` as a list (JSON-LD allows one tag or several)."""

    raw = node.get(TYPE_FIELD)
    if raw is None:
        return []
    if isinstance(raw, list):
        return list(raw)
    return [raw]


def is_absolute_url(value: object) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def authority(url: object) -> str | None:
    """``scheme://hostname`` of an absolute URL, or ``None``."""

    if not is_absolute_url(url):
        return None
    parts = urlsplit(str(url))
    return f"{parts.scheme}://{parts.hostname or parts.netloc}"


def node_id(node: GraphNode) -> str:
    value = node.get(ID_FIELD)
    return value if isinstance(value, str) else ""


def find_key(node: GraphNode, spec: FieldSpec) -> str | None:
    """Return the key under which ``spec`` appears in ``node``, honouring aliases."""

    if spec.name in node:
        return spec.name
    for key in node:
        if spec.matches(key):
            return key
    return None


def is_empty_value(value: object) -> bool:
    """Blank strings, ``None`` and empty containers are empty; numbers and booleans never are."""

    if value is None:
        return True
    if isinstance(value, bool | int | float):
        return False
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | tuple | dict | set):
        return len(value) == 0
    return False


def copy_document(document: Sequence[GraphNode]) -> GraphDocument:
    return copy.deepcopy(list(document))
