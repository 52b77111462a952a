"""Field and entity type declarations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from .kinds import ValueKind, codec_for

if TYPE_CHECKING:
    from .kinds import ValueCodec

ID_FIELD: Final[str] = "@id"
TYPE_FIELD: Final[str] = "@type"
CONTEXT_FIELD: Final[str] = "@context"
RESERVED_KEYS: Final[frozenset[str]] = frozenset({ID_FIELD, TYPE_FIELD, CONTEXT_FIELD})

CIDS_PREFIX: Final[str] = "cids"
SFF_PREFIX: Final[str] = "sff"
CIDS_CONTEXT: Final[str] = "https://ontology.commonapproach.org/contexts/cidsContext.jsonld"
SFF_CONTEXT: Final[str] = "https://ontology.commonapproach.org/contexts/sffContext.jsonld"

_KIND_DEFAULTS: Final[dict[ValueKind, object]] = {
    ValueKind.STRING: "",
    ValueKind.TEXT: "",
    ValueKind.DATE: "",
    ValueKind.DATETIME: "",
    ValueKind.BOOLEAN: False,
}


def local_name(key: str) -> str:
    """Strip a ``prefix:`` from a field key; ``@`` keywords are returned unchanged."""

    if key.startswith("@"):
        return key
    return key.rsplit(":", 1)[-1]


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldSpec:
    name: str
    kind: ValueKind
    link_target: str | None = None
    link_inverse: str | None = None
    code_list: str | None = None
    primary: bool = False
    unique: bool = False
    not_null: bool = False
    required: bool = False
    semi_required: bool = False
    default: object = None

    def __post_init__(self) -> None:
        if self.kind is ValueKind.LINK and self.link_target is None:
            raise ValueError(f"Link field {self.name} needs a link target")
        if self.kind is not ValueKind.LINK and self.link_target is not None:
            raise ValueError(f"Only link fields may declare a link target ({self.name})")

    @property
    def local_name(self) -> str:
        return local_name(self.name)

    @property
    def codec(self) -> ValueCodec:
        return codec_for(self.kind)

    @property
    def is_link(self) -> bool:
        return self.kind is ValueKind.LINK

    @property
    def is_list(self) -> bool:
        return self.kind in {ValueKind.LINK, ValueKind.SELECT}

    def matches(self, key: str) -> bool:
        return key == self.name or local_name(key) == self.local_name

    def default_value(self) -> object:
        if self.default is not None:
            return list(self.default) if isinstance(self.default, list | tuple) else self.default
        if self.is_list:
            return []
        return _KIND_DEFAULTS.get(self.kind)


def id_field() -> FieldSpec:
    return FieldSpec(
        name=ID_FIELD,
        kind=ValueKind.STRING,
        primary=True,
        unique=True,
        not_null=True,
        required=True,
    )


@dataclass(frozen=True, slots=True)
class EntityType:
    name: str
    fields: tuple[FieldSpec, ...]
    prefix: str = CIDS_PREFIX
    context: str = CIDS_CONTEXT
    _by_local: dict[str, FieldSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ids = [spec for spec in self.fields if spec.name == ID_FIELD]
        if len(ids) != 1:
            raise ValueError(f"Entity type {self.name} must declare exactly one {ID_FIELD} field")
        id_spec = ids[0]
        if not (id_spec.primary and id_spec.unique and id_spec.not_null and id_spec.required):
            raise ValueError(
                f"{ID_FIELD} on {self.name} must be primary, unique, not-null and required"
            )
        if any(spec.primary for spec in self.fields if spec is not id_spec):
            raise ValueError(f"Entity type {self.name} declares more than one primary field")
        by_local: dict[str, FieldSpec] = {}
        for spec in self.fields:
            if spec.local_name in by_local:
                raise ValueError(f"Duplicate field {spec.name} on entity type {self.name}")
            by_local[spec.local_name] = spec
        object.__setattr__(self, "_by_local", by_local)

    @property
    def type_tag(self) -> str:
        return f"{self.prefix}:{self.name}"

    @property
    def primary_field(self) -> FieldSpec:
        return self._by_local[ID_FIELD]

    @property
    def link_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(spec for spec in self.fields if spec.is_link)

    def spec_for(self, key: str) -> FieldSpec | None:
        """Look up a field by its full name or any alias sharing its local name."""

        return self._by_local.get(local_name(key))
