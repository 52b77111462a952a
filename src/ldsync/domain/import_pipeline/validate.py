"""Preconditions, validation and node preparation."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from ldsync.domain.document import copy_document, is_empty_value
from ldsync.domain.errors import EmptyDocumentError, ImportPreconditionError, ValidationFailedError
from ldsync.domain.schema import ID_FIELD
from ldsync.domain.structure import resolve_entity_type
from ldsync.domain.validation import DocumentValidator, Operation

from .context import PreparedNode

if TYPE_CHECKING:
    from ldsync.domain.document import GraphNode

    from .context import ImportContext

log = getLogger(__name__)


def _dedupe(value: object) -> object:
    if not isinstance(value, list):
        return value
    result: list[object] = []
    for item in value:
        if item not in result:
            result.append(item)
    return result


@dataclass(slots=True)
class ValidatePhase:
    name: str = "validate"

    async def run(self, document: object, *, context: ImportContext) -> None:
        if not isinstance(document, list) or not document:
            raise EmptyDocumentError("The document is empty or not a list of nodes")
        nodes: list[GraphNode] = copy_document(document)
        self._check_preconditions(nodes, context)

        validator = DocumentValidator(context.registry, code_lists=context.code_lists)
        report = validator.validate(nodes, Operation.IMPORT)
        if not report.ok:
            raise ValidationFailedError(report)
        context.result.warnings.extend(report.warnings)
        for message in report.warnings:
            log.debug("Validation warning: %s", message)

        if context.shape_validator is not None and context.shapes is not None:
            shape_report = context.shape_validator.validate_shapes(nodes, context.shapes)
            context.result.shape_report = shape_report
            if not shape_report.conforms:
                log.warning(
                    "Shape validation reported %d violation(s)", len(shape_report.violations)
                )
                context.result.warnings.extend(shape_report.violations)

        excluded = set(report.excluded)
        for position, node in enumerate(nodes):
            if position in excluded or is_empty_value(node.get(ID_FIELD)):
                continue
            entity_type = resolve_entity_type(context.registry, node)
            if entity_type is None:
                continue
            prepared = {key: _dedupe(value) for key, value in node.items()}
            context.nodes.append(PreparedNode(entity_type=entity_type, node=prepared))
        log.info("Prepared %d node(s) for import", len(context.nodes))

    @staticmethod
    def _check_preconditions(nodes: list[GraphNode], context: ImportContext) -> None:
        for position, node in enumerate(nodes):
            if not isinstance(node, dict) or ID_FIELD not in node:
                raise ImportPreconditionError(f"Node #{position} has no {ID_FIELD}")
        owners: dict[str, str] = {}
        for node in nodes:
            entity_type = resolve_entity_type(context.registry, node)
            external_id = node.get(ID_FIELD)
            if entity_type is None or not isinstance(external_id, str) or not external_id:
                continue
            owner = owners.setdefault(external_id, entity_type.name)
            if owner != entity_type.name:
                raise ImportPreconditionError(
                    f"{ID_FIELD} {external_id} is used by both {owner} and {entity_type.name}"
                )
        present = set(owners.values())
        missing = [name for name in context.config.required_entity_types if name not in present]
        if missing:
            raise ImportPreconditionError(
                "The document must contain at least one node of type: " + ", ".join(missing)
            )
