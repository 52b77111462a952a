"""Bring backing-store tables and fields in line with the prepared nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ldsync.domain.structure import StructureReconciler

if TYPE_CHECKING:
    from .context import ImportContext


@dataclass(slots=True)
class ReconcilePhase:
    name: str = "reconcile"

    async def run(self, document: object, *, context: ImportContext) -> None:
        _ = document
        reconciler = StructureReconciler(context.store, context.registry)
        context.result.reconcile = await reconciler.reconcile(
            [prepared.node for prepared in context.nodes]
        )
