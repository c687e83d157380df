"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from protrecon.adapters.reports import TsvReportWriter
from protrecon.adapters.sqlalchemy.audit import SqlAlchemyAuditSink
from protrecon.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUpdateUnitOfWork,
    is_started,
    startup,
)
from protrecon.adapters.uniprot import UniProtClient, UniProtRegistry
from protrecon.config import get_uniprot_config, get_update_settings
from protrecon.domain.ports import TaxonomyService
from protrecon.domain.ports.unit_of_work import UpdateUnitOfWork
from protrecon.domain.reconciliation import ReconciliationEngine

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterable
    from pathlib import Path
    from uuid import UUID

    from protrecon.domain.model import UpdateProcess
    from protrecon.domain.ports import AuditSink, ProteinRegistry

UnitOfWorkFactory = Callable[[], UpdateUnitOfWork]

log = getLogger(__name__)


def build_engine(
    *,
    workers: int | None = None,
    registry: ProteinRegistry | None = None,
    taxonomy: TaxonomyService | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ReconciliationEngine:
    """Assemble an engine from configuration, defaulting to UniProt and SQLAlchemy."""

    settings = get_update_settings(workers=workers)
    if registry is None:
        registry = UniProtRegistry(UniProtClient(config=get_uniprot_config()))
    if taxonomy is None and isinstance(registry, TaxonomyService):
        taxonomy = registry
    return ReconciliationEngine(
        registry=registry,
        taxonomy=taxonomy,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyUpdateUnitOfWork,
        settings=settings,
    )


def run_protein_update(
    *,
    accessions: Iterable[str] | None = None,
    record_ids: Iterable[str] | None = None,
    workers: int | None = None,
    report_dir: Path | None = None,
    cancel: threading.Event | None = None,
    registry: ProteinRegistry | None = None,
    taxonomy: TaxonomyService | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sink: AuditSink | None = None,
) -> UpdateProcess:
    """Reconcile stored protein records with the registry."""

    _ensure_started()
    log.info(
        "Starting protein update: accessions=%s, records=%s, workers=%s",
        "all" if accessions is None else "selected",
        "all" if record_ids is None else "selected",
        workers,
    )
    with build_engine(
        workers=workers,
        registry=registry,
        taxonomy=taxonomy,
        unit_of_work_factory=unit_of_work_factory,
    ) as engine:
        process = engine.run(
            record_ids=record_ids,
            accessions=accessions,
            sink=sink or SqlAlchemyAuditSink(),
            cancel=cancel,
        )
    _write_reports(process, report_dir)
    return process


def import_proteins(
    accessions: Iterable[str],
    *,
    report_dir: Path | None = None,
    cancel: threading.Event | None = None,
    registry: ProteinRegistry | None = None,
    taxonomy: TaxonomyService | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sink: AuditSink | None = None,
) -> UpdateProcess:
    """Create local records for registry accessions not yet claimed."""

    _ensure_started()
    with build_engine(
        registry=registry,
        taxonomy=taxonomy,
        unit_of_work_factory=unit_of_work_factory,
    ) as engine:
        process = engine.import_accessions(
            accessions,
            sink=sink or SqlAlchemyAuditSink(),
            cancel=cancel,
        )
    _write_reports(process, report_dir)
    return process


def write_reports(process_id: UUID, output: Path) -> list[Path]:
    """Write the TSV and FASTA reports of a stored process."""

    _ensure_started()
    process = SqlAlchemyAuditSink().load_process(process_id)
    if process is None:
        raise LookupError(f"Unknown update process {process_id}")
    return TsvReportWriter(output).write(process)


def _ensure_started() -> None:
    if not is_started():
        startup()


def _write_reports(process: UpdateProcess, report_dir: Path | None) -> None:
    if report_dir is None:
        return
    TsvReportWriter(report_dir).write(process)
