"""Phase-based orchestrator for the import pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from ldsync.domain.errors import FatalStructureError, ImportPhaseError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .context import ImportContext, ImportResult

log = getLogger(__name__)


class ImportPhase(Protocol):
    """Contract implemented by each import phase."""

    name: str

    async def run(self, document: object, *, context: ImportContext) -> None: ...


@dataclass(slots=True)
class ImportPipeline:
    """Compose and execute the ordered import phases.

    Phases run strictly in order and the first failure aborts the run. Fatal
    structure errors propagate as they are; anything else is wrapped in
    ``ImportPhaseError`` naming the phase. Nothing is rolled back.
    """

    phases: Sequence[ImportPhase] = field(default_factory=tuple)

    def with_phase(self, phase: ImportPhase) -> ImportPipeline:
        """Return a new pipeline appending ``phase`` at the end."""

        return ImportPipeline(phases=(*self.phases, phase))

    def extend(self, phases: Iterable[ImportPhase]) -> ImportPipeline:
        """Return a new pipeline with the provided ``phases`` concatenated."""

        return ImportPipeline(phases=(*self.phases, *tuple(phases)))

    async def run(self, document: object, *, context: ImportContext) -> ImportResult:
        for phase in self.phases:
            log.info("Import phase %s started", phase.name)
            try:
                await phase.run(document, context=context)
            except FatalStructureError:
                raise
            except Exception as exc:
                raise ImportPhaseError(phase.name, str(exc)) from exc
            log.info("Import phase %s finished", phase.name)
        context.result.audit = context.identifier_map.audit
        return context.result
