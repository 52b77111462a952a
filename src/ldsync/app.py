"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from ldsync.adapters.codelists import CodeListClient
from ldsync.adapters.sqlalchemy import SqlAlchemyBackingStore, is_started, startup
from ldsync.config import get_codelist_config, get_pipeline_config
from ldsync.domain.export_pipeline import Exporter, ExportResult
from ldsync.domain.import_pipeline import run_import
from ldsync.domain.schema import default_registry
from ldsync.domain.validation import DocumentValidator, Operation, ValidationReport

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy.engine import Engine

    from ldsync.config import CodeListConfig, PipelineConfig
    from ldsync.domain.import_pipeline import ImportResult
    from ldsync.domain.ports import BackingStore, CodeListEntry, CodeListFetcher, ShapeValidator
    from ldsync.domain.schema import SchemaRegistry

type CodeLists = Mapping[str, Sequence[CodeListEntry]]

log = getLogger(__name__)


@dataclass(slots=True)
class ExportOutcome:
    result: ExportResult
    report: ValidationReport

    @property
    def document(self) -> list[dict[str, object]]:
        return self.result.document


def create_store(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    config: PipelineConfig | None = None,
) -> SqlAlchemyBackingStore:
    """Initialise the SQLAlchemy adapter (once) and return a backing store on it."""

    if engine is not None or database_uri is not None or not is_started():
        startup(engine=engine, database_uri=database_uri, force=is_started())
    effective_config = config or get_pipeline_config()
    return SqlAlchemyBackingStore(max_batch_size=effective_config.batch_size)


async def collect_code_lists(
    fetcher: CodeListFetcher,
    config: CodeListConfig,
    table_names: Iterable[str] | None = None,
) -> dict[str, list[CodeListEntry]]:
    names = list(table_names) if table_names is not None else list(config.paths)
    code_lists: dict[str, list[CodeListEntry]] = {}
    for name in names:
        entries: dict[str, CodeListEntry] = {}
        for url in config.urls_for(name):
            for entry in await fetcher.fetch_code_list(url):
                entries.setdefault(entry.id, entry)
        code_lists[name] = list(entries.values())
        log.info("Loaded %d %s code-list entries", len(code_lists[name]), name)
    return code_lists


def load_code_lists(
    fetcher: CodeListFetcher | None = None,
    *,
    config: CodeListConfig | None = None,
    table_names: Iterable[str] | None = None,
) -> dict[str, list[CodeListEntry]]:
    """Fetch every configured code list; unavailable lists come back empty."""

    effective_config = config or get_codelist_config()
    effective_fetcher = fetcher or CodeListClient(effective_config)
    return asyncio.run(collect_code_lists(effective_fetcher, effective_config, table_names))


def validate_document(
    document: object,
    operation: Operation | str = Operation.IMPORT,
    *,
    registry: SchemaRegistry | None = None,
    code_lists: CodeLists | None = None,
) -> ValidationReport:
    validator = DocumentValidator(registry, code_lists=code_lists)
    report = validator.validate(document, operation)
    log.info(
        "Validation (%s) finished: %d error(s), %d warning(s)",
        report.operation,
        len(report.errors),
        len(report.warnings),
    )
    return report


def import_document(
    document: object,
    *,
    store: BackingStore | None = None,
    registry: SchemaRegistry | None = None,
    config: PipelineConfig | None = None,
    code_lists: CodeLists | None = None,
    shape_validator: ShapeValidator | None = None,
    shapes: object | None = None,
) -> ImportResult:
    """Replace every entity type present in ``document`` with the document's nodes."""

    effective_config = config or get_pipeline_config()
    effective_store = store or create_store(config=effective_config)
    return asyncio.run(
        run_import(
            document,
            effective_store,
            registry=registry,
            config=effective_config,
            code_lists=code_lists,
            shape_validator=shape_validator,
            shapes=shapes,
        )
    )


def export_document(
    *,
    store: BackingStore | None = None,
    registry: SchemaRegistry | None = None,
    code_lists: CodeLists | None = None,
) -> ExportOutcome:
    """Export the store and check the produced document with export-mode strictness."""

    effective_registry = registry or default_registry()
    effective_store = store or create_store()
    result = asyncio.run(Exporter(effective_store, effective_registry).export())
    report = validate_document(
        result.document,
        Operation.EXPORT,
        registry=effective_registry,
        code_lists=code_lists,
    )
    return ExportOutcome(result=result, report=report)
