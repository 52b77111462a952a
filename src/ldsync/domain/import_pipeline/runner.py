"""Entry point wiring the default import phases together."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from ldsync.config.pipeline import PipelineConfig
from ldsync.domain.schema import default_registry

from .carry_over import CarryOverExtraFieldsPhase
from .context import ImportContext
from .create_primary import CreatePrimaryPhase
from .delete_stale import DeleteStalePhase
from .orchestrator import ImportPipeline
from .reconcile import ReconcilePhase
from .resolve_links import ResolveLinksPhase
from .validate import ValidatePhase

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ldsync.domain.ports import BackingStore, CodeListEntry, ShapeValidator
    from ldsync.domain.schema import SchemaRegistry

    from .context import ImportResult

log = getLogger(__name__)


def default_pipeline() -> ImportPipeline:
    return ImportPipeline(
        phases=(
            ValidatePhase(),
            ReconcilePhase(),
            CreatePrimaryPhase(),
            ResolveLinksPhase(),
            CarryOverExtraFieldsPhase(),
            DeleteStalePhase(),
        )
    )


async def run_import(
    document: object,
    store: BackingStore,
    *,
    registry: SchemaRegistry | None = None,
    config: PipelineConfig | None = None,
    code_lists: Mapping[str, Sequence[CodeListEntry]] | None = None,
    shape_validator: ShapeValidator | None = None,
    shapes: object | None = None,
    pipeline: ImportPipeline | None = None,
) -> ImportResult:
    """Import ``document`` into ``store`` as a full replace of every touched entity type.

    Not atomic: a failure after the reconcile phase can leave the store partially
    written. Re-running the same import converges on the same end state.
    """

    context = ImportContext(
        store=store,
        registry=registry or default_registry(),
        config=config or PipelineConfig(),
        code_lists=code_lists or {},
        shape_validator=shape_validator,
        shapes=shapes,
    )
    result = await (pipeline or default_pipeline()).run(document, context=context)
    log.info(
        "Import finished: %d created, %d deleted, %d dangling reference(s), %d warning(s)",
        result.total_created,
        result.physical_deletions,
        len(result.dangling_references),
        len(result.warnings),
    )
    return result
