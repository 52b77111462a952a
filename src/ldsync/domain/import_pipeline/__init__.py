"""Two-phase import of JSON-LD documents into a backing store."""

from __future__ import annotations

from .carry_over import CarryOverExtraFieldsPhase
from .context import (
    AuditEntry,
    DanglingReference,
    IdentifierMap,
    ImportContext,
    ImportResult,
    PreparedNode,
)
from .create_primary import CreatePrimaryPhase
from .delete_stale import DeleteStalePhase
from .orchestrator import ImportPhase, ImportPipeline
from .reconcile import ReconcilePhase
from .resolve_links import ResolveLinksPhase
from .runner import default_pipeline, run_import
from .validate import ValidatePhase

__all__ = [
    "AuditEntry",
    "CarryOverExtraFieldsPhase",
    "CreatePrimaryPhase",
    "DanglingReference",
    "DeleteStalePhase",
    "IdentifierMap",
    "ImportContext",
    "ImportPhase",
    "ImportPipeline",
    "ImportResult",
    "PreparedNode",
    "ReconcilePhase",
    "ResolveLinksPhase",
    "ValidatePhase",
    "default_pipeline",
    "run_import",
]
