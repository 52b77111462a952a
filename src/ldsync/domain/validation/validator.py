"""Schema-driven validation of JSON-LD documents.

The validator never raises for bad input and never touches the caller's data:
it works on a deep copy and collects everything it finds into a fresh
``ValidationReport``. Code lists are handed in pre-fetched so validation does no I/O.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from ldsync.domain.document import (
    authority,
    copy_document,
    find_key,
    is_absolute_url,
    is_empty_value,
    node_id,
    parse_type_tag,
    type_values,
)
from ldsync.domain.errors import CodecError
from ldsync.domain.schema import (
    ID_FIELD,
    TYPE_FIELD,
    ValueKind,
    codec_for,
    default_registry,
)

from . import messages
from .report import Operation, ValidationReport

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ldsync.domain.document import GraphNode
    from ldsync.domain.ports import CodeListEntry
    from ldsync.domain.schema import EntityType, FieldSpec, MembershipRule, SchemaRegistry

log = getLogger(__name__)

type UniqueScope = tuple[str, str, str]


@dataclass(slots=True)
class _TypedNode:
    position: int
    node: GraphNode
    entity_type: EntityType

    @property
    def label(self) -> str:
        return node_id(self.node) or f"#{self.position}"


@dataclass(slots=True)
class _Run:
    """Per-call state; discarded when ``validate`` returns."""

    report: ValidationReport
    typed: list[_TypedNode] = field(default_factory=list)
    ids_by_type: dict[str, set[str]] = field(default_factory=dict)
    unique_seen: dict[UniqueScope, set[str]] = field(default_factory=dict)

    @property
    def strict(self) -> bool:
        return self.report.operation is Operation.EXPORT


def _fingerprint(value: object) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _label_for(node: GraphNode) -> str:
    for value in type_values(node):
        tag = parse_type_tag(value)
        if tag is not None:
            return tag.name
    return "unknown"


class DocumentValidator:
    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        *,
        code_lists: Mapping[str, Sequence[CodeListEntry]] | None = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.code_lists = {
            name: frozenset(entry.id for entry in entries)
            for name, entries in (code_lists or {}).items()
        }

    def validate(self, document: object, operation: Operation | str) -> ValidationReport:
        run = _Run(report=ValidationReport(operation=Operation(operation)))
        if not isinstance(document, list) or not document:
            run.report.error(messages.EMPTY_DOCUMENT)
            return run.report
        if not all(isinstance(node, dict) for node in document):
            run.report.error(messages.EMPTY_DOCUMENT)
            return run.report

        nodes = copy_document(document)
        self._check_urls(run, nodes)
        remaining = self._prune(run, nodes)
        self._check_types(run, remaining)
        for rule in self.registry.membership_rules:
            self._check_membership(run, rule)
        for typed in run.typed:
            self._check_presence(run, typed)
            self._check_values(run, typed)

        log.debug(
            "Validated %d node(s) for %s: %d error(s), %d warning(s)",
            len(nodes),
            run.report.operation,
            len(run.report.errors),
            len(run.report.warnings),
        )
        return run.report

    def _check_urls(self, run: _Run, nodes: list[GraphNode]) -> None:
        for node in nodes:
            value = node.get(ID_FIELD)
            if is_empty_value(value) or is_absolute_url(value):
                continue
            run.report.add(messages.invalid_url(value, _label_for(node)), blocking=run.strict)

    def _prune(self, run: _Run, nodes: list[GraphNode]) -> list[tuple[int, GraphNode]]:
        remaining: list[tuple[int, GraphNode]] = []
        for position, node in enumerate(nodes):
            if ID_FIELD in node and is_empty_value(node[ID_FIELD]):
                run.report.exclude(position)
                continue
            remaining.append((position, node))
        return remaining

    def _check_types(self, run: _Run, nodes: list[tuple[int, GraphNode]]) -> None:
        for position, node in nodes:
            entity_type = self._resolve_type(run, node)
            if entity_type is None:
                run.report.exclude(position)
                continue
            run.typed.append(_TypedNode(position=position, node=node, entity_type=entity_type))
            run.ids_by_type.setdefault(entity_type.name, set()).add(node_id(node))

    def _resolve_type(self, run: _Run, node: GraphNode) -> EntityType | None:
        if TYPE_FIELD not in node:
            run.report.error(messages.TYPE_MISSING)
            return None
        values = [value for value in type_values(node) if not is_empty_value(value)]
        if not values:
            run.report.error(messages.TYPE_EMPTY)
            return None
        tags = [tag for tag in map(parse_type_tag, values) if tag is not None]
        if not tags:
            run.report.error(messages.TYPE_FORMAT)
            return None
        for tag in tags:
            entity_type = self.registry.resolve_type_tag(tag.name)
            if entity_type is not None:
                return entity_type
        if not any(self.registry.is_known_external(str(tag)) for tag in tags):
            run.report.warning(messages.unrecognized_table(tags[0].name))
        return None

    def _check_membership(self, run: _Run, rule: MembershipRule) -> None:
        listed: set[str] = set()
        for typed in run.typed:
            if typed.entity_type.name != rule.container:
                continue
            spec = typed.entity_type.spec_for(rule.field)
            key = find_key(typed.node, spec) if spec is not None else None
            value = typed.node.get(key) if key is not None else None
            if is_empty_value(value):
                run.report.warning(messages.has_no(rule.container, typed.label, rule.field))
                continue
            try:
                ids = codec_for(ValueKind.LINK).decode(value)
            except CodecError:
                continue
            listed.update(ids)  # type: ignore[arg-type]

        for typed in run.typed:
            if typed.entity_type.name != rule.member or node_id(typed.node) in listed:
                continue
            run.report.warning(
                messages.not_a_member(rule.member, typed.label, rule.container, rule.field)
            )

    def _check_presence(self, run: _Run, typed: _TypedNode) -> None:
        table = typed.entity_type.name
        node = typed.node
        for spec in typed.entity_type.fields:
            key = find_key(node, spec)
            if key is None:
                if spec.required:
                    run.report.add(
                        messages.missing_required(spec.name, table),
                        blocking=run.strict or spec.name == ID_FIELD,
                    )
                elif spec.not_null and run.strict:
                    run.report.error(messages.missing_not_null(spec.name, table))
                elif spec.semi_required and spec.is_link:
                    run.report.warning(messages.has_no(table, typed.label, spec.name))
                elif spec.semi_required:
                    run.report.warning(messages.missing_required(spec.name, table))
                continue
            value = node[key]
            if spec.is_link and (spec.required or spec.semi_required) and is_empty_value(value):
                run.report.warning(messages.has_no(table, typed.label, spec.name))
            elif spec.semi_required and value == []:
                run.report.warning(messages.empty_field(spec.name, table))

    def _check_values(self, run: _Run, typed: _TypedNode) -> None:
        table = typed.entity_type.name
        for key, value in typed.node.items():
            if key in (TYPE_FIELD, "@context"):
                continue
            spec = typed.entity_type.spec_for(key)
            if spec is None or self.registry.is_ignored(table, key):
                continue

            if isinstance(value, list):
                fingerprints = [_fingerprint(item) for item in value]
                if len(set(fingerprints)) != len(fingerprints):
                    run.report.warning(messages.duplicate_values(spec.name, table))

            if spec.unique and not is_empty_value(value):
                self._check_unique(run, typed, spec, value)

            if not spec.is_link and is_empty_value(value):
                if spec.not_null:
                    run.report.warning(messages.null_or_empty(spec.name, table))
                if spec.required:
                    run.report.warning(messages.required_empty(spec.name, table))

            if not spec.codec.accepts(value):
                run.report.warning(messages.invalid_value(spec.name, table, spec.kind))
            elif spec.is_link:
                self._check_link_targets(run, typed, spec, value)
            elif spec.kind is ValueKind.SELECT:
                self._check_options(run, typed, spec, value)

    def _check_unique(
        self, run: _Run, typed: _TypedNode, spec: FieldSpec, value: object
    ) -> None:
        origin = authority(typed.node.get(ID_FIELD))
        if origin is None:
            return
        scope = (typed.entity_type.name, spec.name, origin)
        seen = run.unique_seen.setdefault(scope, set())
        fingerprint = _fingerprint(value)
        if fingerprint in seen:
            run.report.add(
                messages.duplicate_unique(spec.name, value, typed.entity_type.name),
                blocking=spec.name == ID_FIELD,
            )
            return
        seen.add(fingerprint)

    def _check_link_targets(
        self, run: _Run, typed: _TypedNode, spec: FieldSpec, value: object
    ) -> None:
        target = spec.link_target or ""
        known = run.ids_by_type.get(target, set()) | self.code_lists.get(target, frozenset())
        for item in spec.codec.decode(value):  # type: ignore[union-attr]
            if item in known:
                continue
            run.report.warning(
                messages.dangling_link(typed.entity_type.name, typed.label, spec.name, item, target)
            )

    def _check_options(
        self, run: _Run, typed: _TypedNode, spec: FieldSpec, value: object
    ) -> None:
        options = self.code_lists.get(spec.code_list or "")
        if options is None:
            return
        for item in spec.codec.decode(value):  # type: ignore[union-attr]
            if item not in options:
                run.report.warning(messages.invalid_option(spec.name, typed.entity_type.name, item))
