"""Lookup surface over the declared entity types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .fields import local_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from .fields import EntityType, FieldSpec


@dataclass(frozen=True, slots=True)
class MembershipRule:
    """Every ``member`` node should be listed in some ``container`` node's ``field``."""

    container: str
    field: str
    member: str


class SchemaRegistry:
    """Ordered, read-only collection of entity types plus their companion tables.

    Registration order is export order. New entity types are added by building a
    new registry (see ``extended``); consumers only ever look things up.
    """

    def __init__(
        self,
        entity_types: Iterable[EntityType],
        *,
        ignored_fields: Mapping[str, Iterable[str]] | None = None,
        membership_rules: Iterable[MembershipRule] = (),
        code_lists: Iterable[str] = (),
        known_external_types: Iterable[str] = (),
    ) -> None:
        self._types: dict[str, EntityType] = {}
        for entity_type in entity_types:
            if entity_type.name in self._types:
                raise ValueError(f"Entity type {entity_type.name} registered twice")
            self._types[entity_type.name] = entity_type
        self._ignored = {
            name: frozenset(fields) for name, fields in (ignored_fields or {}).items()
        }
        self._membership_rules = tuple(membership_rules)
        self._code_lists = frozenset(code_lists)
        self._known_external = frozenset(known_external_types)
        self._check_links()

    def _check_links(self) -> None:
        for entity_type in self._types.values():
            for spec in entity_type.link_fields:
                target = self._types.get(spec.link_target or "")
                if target is None:
                    raise ValueError(
                        f"{entity_type.name}.{spec.name} links to unknown type {spec.link_target}"
                    )
                if spec.link_inverse is None:
                    continue
                inverse = target.spec_for(spec.link_inverse)
                if inverse is None:
                    continue
                if not inverse.is_link or inverse.link_target != entity_type.name:
                    raise ValueError(
                        f"{target.name}.{inverse.name} must link back to {entity_type.name}"
                    )

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[EntityType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def __getitem__(self, name: str) -> EntityType:
        return self._types[name]

    def get(self, name: str) -> EntityType | None:
        return self._types.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self._types)

    def resolve_type_tag(self, tag: str) -> EntityType | None:
        """Resolve ``prefix:Name`` (or a bare ``Name``) to a registered type."""

        return self._types.get(local_name(tag))

    def spec_for(self, type_name: str, key: str) -> FieldSpec | None:
        entity_type = self._types.get(type_name)
        return entity_type.spec_for(key) if entity_type is not None else None

    def ignored_fields(self, type_name: str) -> frozenset[str]:
        return self._ignored.get(type_name, frozenset())

    def is_ignored(self, type_name: str, key: str) -> bool:
        ignored = self.ignored_fields(type_name)
        return key in ignored or local_name(key) in ignored

    @property
    def membership_rules(self) -> tuple[MembershipRule, ...]:
        return self._membership_rules

    def is_code_list(self, type_name: str) -> bool:
        return type_name in self._code_lists

    @property
    def code_lists(self) -> frozenset[str]:
        return self._code_lists

    def is_known_external(self, tag: str) -> bool:
        return tag in self._known_external

    def extended(self, *entity_types: EntityType) -> SchemaRegistry:
        return SchemaRegistry(
            [*self._types.values(), *entity_types],
            ignored_fields=self._ignored,
            membership_rules=self._membership_rules,
            code_lists=self._code_lists,
            known_external_types=self._known_external,
        )
