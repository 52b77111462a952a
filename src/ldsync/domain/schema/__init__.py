"""Declarative entity schema: value kinds, fields, entity types and the registry."""

from __future__ import annotations

from .entities import default_registry
from .fields import (
    CIDS_CONTEXT,
    CONTEXT_FIELD,
    ID_FIELD,
    RESERVED_KEYS,
    TYPE_FIELD,
    EntityType,
    FieldSpec,
    id_field,
    local_name,
)
from .kinds import ValueCodec, ValueKind, codec_for, infer_kind
from .registry import MembershipRule, SchemaRegistry

__all__ = [
    "CIDS_CONTEXT",
    "CONTEXT_FIELD",
    "ID_FIELD",
    "RESERVED_KEYS",
    "TYPE_FIELD",
    "EntityType",
    "FieldSpec",
    "MembershipRule",
    "SchemaRegistry",
    "ValueCodec",
    "ValueKind",
    "codec_for",
    "default_registry",
    "id_field",
    "infer_kind",
    "local_name",
]
