"""Run loop of the reconciliation engine.

One run is one ``UpdateProcess``. Candidate records are resolved and grouped by
accession; records claiming a secondary accession of an entry are reconciled
together with those claiming its primary accession. Each group is an independent
unit of work with its own transaction: registry lookup (deadline + bounded
retries), then dead-entry handling or field synchronization and duplicate merge.
Events of a unit are recorded only after its transaction commits. Cancellation
is checked between units only.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from protrecon.domain.model import (
    CanonicalEntry,
    CreatedEvent,
    Database,
    DeadEntry,
    ErrorKind,
    NotFound,
    ProcessStatus,
    UpdatedEvent,
    is_special_taxon,
)

from .dead import DeadEntryHandler
from .errors import FatalInternalError, ReconciliationError, RegistryUnavailableError
from .identity import (
    accession_key,
    adopt_primary_accession,
    claimed_accession,
    partition_records,
)
from .importing import record_from_entry
from .labels import base_label, unique_label
from .locks import RecordLocks
from .merge import DuplicateMerger, order_group
from .organisms import OrganismResolver
from .recorder import EventBuffer, UpdateEventRecorder
from .retry import RegistryCaller, RetrySettings
from .synchronize import FieldSynchronizer

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from types import TracebackType

    from protrecon.domain.model import (
        AccessionLookup,
        ProteinRecord,
        UpdateEvent,
        UpdateProcess,
    )
    from protrecon.domain.ports import (
        AuditSink,
        ProteinRegistry,
        ProteinRepository,
        TaxonomyService,
        UpdateUnitOfWork,
    )

    from .identity import IdentityPartition
    from .recorder import EventListener

log = getLogger(__name__)


@dataclass(frozen=True, slots=True, kw_only=True)
class EngineSettings:
    registry_database: str = Database.UNIPROTKB
    institution_database: str = Database.INTACT
    retry: RetrySettings = field(default_factory=RetrySettings)
    workers: int = 1

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be at least 1")


@dataclass(frozen=True, slots=True)
class _Unit:
    accession: str
    record_ids: tuple[str, ...]


class ReconciliationEngine:
    """Reconcile local protein records with the external registry."""

    def __init__(
        self,
        *,
        registry: ProteinRegistry,
        unit_of_work_factory: Callable[[], UpdateUnitOfWork],
        taxonomy: TaxonomyService | None = None,
        settings: EngineSettings | None = None,
        caller: RegistryCaller | None = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self._registry = registry
        self._unit_of_work_factory = unit_of_work_factory
        self._caller = caller or RegistryCaller(
            self.settings.retry, max_workers=max(4, self.settings.workers * 2)
        )
        self._locks = RecordLocks()
        self._entry_locks = RecordLocks()
        self.merger = DuplicateMerger(
            registry_database=self.settings.registry_database,
            institution_database=self.settings.institution_database,
            locks=self._locks,
        )
        self.dead_handler = DeadEntryHandler(
            registry_database=self.settings.registry_database,
            institution_database=self.settings.institution_database,
        )
        self.synchronizer = FieldSynchronizer(registry_database=self.settings.registry_database)
        self.organisms = OrganismResolver(
            unit_of_work_factory=unit_of_work_factory,
            taxonomy=taxonomy,
            caller=self._caller,
        )

    def __enter__(self) -> ReconciliationEngine:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._caller.close()

    # Runs

    def run(
        self,
        *,
        record_ids: Iterable[str] | None = None,
        accessions: Iterable[str] | None = None,
        sink: AuditSink | None = None,
        listeners: Iterable[EventListener] = (),
        cancel: threading.Event | None = None,
    ) -> UpdateProcess:
        """Reconcile the selected records (all stored records by default)."""

        recorder = UpdateEventRecorder(sink=sink, listeners=listeners)
        return self._execute(
            recorder,
            lambda: self._reconcile(recorder, record_ids, accessions, cancel),
        )

    def import_accessions(
        self,
        accessions: Iterable[str],
        *,
        sink: AuditSink | None = None,
        listeners: Iterable[EventListener] = (),
        cancel: threading.Event | None = None,
    ) -> UpdateProcess:
        """Create local records for accessions no record claims yet."""

        recorder = UpdateEventRecorder(sink=sink, listeners=listeners)
        return self._execute(
            recorder,
            lambda: self._import(recorder, list(accessions), cancel),
        )

    def _execute(
        self,
        recorder: UpdateEventRecorder,
        body: Callable[[], ProcessStatus],
    ) -> UpdateProcess:
        recorder.open()
        log.info("Update process %s started", recorder.process.id)
        try:
            status = body()
        except FatalInternalError:
            log.exception("Update process %s aborted", recorder.process.id)
            self._seal_aborted(recorder)
            raise
        except Exception as exc:
            log.exception("Update process %s aborted", recorder.process.id)
            self._seal_aborted(recorder)
            raise FatalInternalError(f"Update process aborted: {exc}") from exc
        process = recorder.seal(status)
        counts = recorder.counts()
        log.info(
            "Update process %s finished (%s): %s",
            process.id,
            status,
            ", ".join(f"{kind}={count}" for kind, count in sorted(counts.items())) or "no events",
        )
        return process

    @staticmethod
    def _seal_aborted(recorder: UpdateEventRecorder) -> None:
        if recorder.process.sealed:
            return
        try:
            recorder.seal(ProcessStatus.ABORTED)
        except FatalInternalError:
            log.exception("Could not seal aborted process %s", recorder.process.id)

    # Reconciliation

    def _reconcile(
        self,
        recorder: UpdateEventRecorder,
        record_ids: Iterable[str] | None,
        accessions: Iterable[str] | None,
        cancel: threading.Event | None,
    ) -> ProcessStatus:
        candidates = self._load_candidates(record_ids, accessions)
        partition = partition_records(candidates, self.settings.registry_database)
        log.info(
            "Resolved %d candidate(s): %d accession group(s), %d ambiguous, "
            "%d without identity, %d blocked",
            len(candidates),
            len(partition.groups),
            len(partition.ambiguous),
            len(partition.unresolved),
            len(partition.blocked),
        )
        self._record_identity_outcomes(partition, recorder)

        units = [
            _Unit(
                accession=partition.accessions[key],
                record_ids=tuple(record.id for record in records),
            )
            for key, records in partition.groups.items()
        ]
        reconciled: set[str] = set()
        return self._run_units(
            units,
            lambda unit, unit_recorder: self._process_unit(unit, unit_recorder, reconciled),
            recorder,
            cancel,
        )

    def _load_candidates(
        self,
        record_ids: Iterable[str] | None,
        accessions: Iterable[str] | None,
    ) -> list[ProteinRecord]:
        with self._unit_of_work_factory() as uow:
            repository = uow.repositories.proteins
            if accessions is not None:
                seen: dict[str, ProteinRecord] = {}
                for accession in accessions:
                    for record in repository.find_all_by_external_identity(
                        self.settings.registry_database, accession
                    ):
                        seen.setdefault(record.id, record)
                return list(seen.values())
            ids = list(record_ids) if record_ids is not None else repository.list_ids()
            records: list[ProteinRecord] = []
            for record_id in ids:
                record = repository.get(record_id)
                if record is None:
                    log.warning("Record %s not found; skipping", record_id)
                    continue
                records.append(record)
            return records

    def _record_identity_outcomes(
        self,
        partition: IdentityPartition,
        recorder: UpdateEventRecorder,
    ) -> None:
        buffer = EventBuffer()
        for record, resolution in partition.ambiguous:
            buffer.error(
                ErrorKind.MULTI_EXTERNAL_IDENTITIES,
                (
                    f"Record {record.id} has {len(resolution.accessions)} identity "
                    f"cross-references to {self.settings.registry_database}: "
                    f"{', '.join(resolution.accessions)}"
                ),
                record_ids=(record.id,),
                candidates=resolution.accessions,
            )
        for record in partition.unresolved:
            buffer.error(
                ErrorKind.NO_IDENTITY,
                (
                    f"Record {record.id} has no identity cross-reference to "
                    f"{self.settings.registry_database} and is not synchronized"
                ),
                record_ids=(record.id,),
            )
            if is_special_taxon(record.taxon_id):
                self.organisms.resolve(record.taxon_id)
        recorder.flush(buffer)

    def _process_unit(
        self,
        unit: _Unit,
        recorder: UpdateEventRecorder,
        reconciled: set[str],
    ) -> None:
        buffer = EventBuffer()
        try:
            lookup = self._lookup(unit.accession)
        except RegistryUnavailableError as exc:
            log.warning("Skipping %s: %s", unit.accession, exc)
            buffer.error(
                ErrorKind.REGISTRY_UNAVAILABLE,
                str(exc),
                record_ids=unit.record_ids,
                accession=unit.accession,
            )
            recorder.flush(buffer)
            return

        if isinstance(lookup, CanonicalEntry) and not self._ensure_organism(
            lookup.taxon_id, unit, buffer
        ):
            recorder.flush(buffer)
            return

        entry_keys = (
            (accession_key(lookup.accession),) if isinstance(lookup, CanonicalEntry) else ()
        )
        with self._entry_locks.hold(*entry_keys), self._unit_of_work_factory() as uow:
            repository = uow.repositories.proteins
            records = [
                record
                for record_id in unit.record_ids
                if (record := repository.get(record_id)) is not None
            ]
            if records:
                match lookup:
                    case CanonicalEntry():
                        self._reconcile_entry(lookup, unit, records, repository, buffer, reconciled)
                    case DeadEntry(reason=reason):
                        self._handle_dead(unit.accession, records, repository, buffer, reason)
                    case NotFound():
                        self._handle_dead(
                            unit.accession,
                            records,
                            repository,
                            buffer,
                            "accession not found in the registry",
                        )
            uow.commit()
        recorder.flush(buffer)

    def _lookup(self, accession: str) -> AccessionLookup:
        registry = self._registry
        return self._caller.call(
            lambda: registry.lookup_by_accession(accession),
            description=f"registry lookup {accession}",
        )

    def _ensure_organism(self, taxon_id: str, unit: _Unit, buffer: EventBuffer) -> bool:
        try:
            resolution = self.organisms.resolve(taxon_id)
        except RegistryUnavailableError as exc:
            buffer.error(
                ErrorKind.REGISTRY_UNAVAILABLE,
                str(exc),
                record_ids=unit.record_ids,
                accession=unit.accession,
            )
            return False
        except ReconciliationError as exc:
            if isinstance(exc, FatalInternalError):
                raise
            buffer.error(
                exc.kind, str(exc), record_ids=unit.record_ids, accession=unit.accession
            )
            return False
        if resolution.organism is None:
            buffer.error(
                ErrorKind.ORGANISM_CONFLICT,
                resolution.reason or f"organism {taxon_id} could not be resolved",
                record_ids=unit.record_ids,
                accession=unit.accession,
            )
            return False
        return True

    def _reconcile_entry(
        self,
        entry: CanonicalEntry,
        unit: _Unit,
        records: Sequence[ProteinRecord],
        repository: ProteinRepository,
        buffer: EventBuffer,
        reconciled: set[str],
    ) -> None:
        """Reconcile every record claiming the primary or a secondary accession of ``entry``.

        Isoform and chain accessions are reconciled on their own.
        """

        primary_key = accession_key(entry.accession)
        entry_keys = {primary_key, *(accession_key(ac) for ac in entry.secondary_accessions)}
        if accession_key(unit.accession) not in entry_keys:
            self._reconcile_group(entry, unit.accession, records, repository, buffer)
            return
        if primary_key in reconciled:
            log.info("%s was reconciled together with %s", unit.accession, entry.accession)
            return
        reconciled.add(primary_key)

        group = self._collect_entry_group(entry, records, repository, entry_keys)
        adopted, adoption_events = self._adopt_primary_accession(entry, group, buffer)
        if adopted:
            self._reconcile_group(
                entry, entry.accession, adopted, repository, buffer, pending=adoption_events
            )

    def _collect_entry_group(
        self,
        entry: CanonicalEntry,
        records: Sequence[ProteinRecord],
        repository: ProteinRepository,
        entry_keys: set[str],
    ) -> list[ProteinRecord]:
        database = self.settings.registry_database
        collected = {record.id: record for record in records}
        for accession in (entry.accession, *entry.secondary_accessions):
            for record in repository.find_all_by_external_identity(database, accession):
                collected.setdefault(record.id, record)
        return [
            record
            for record in collected.values()
            if (claimed := claimed_accession(record, database)) is not None
            and accession_key(claimed) in entry_keys
        ]

    def _adopt_primary_accession(
        self,
        entry: CanonicalEntry,
        group: Sequence[ProteinRecord],
        buffer: EventBuffer,
    ) -> tuple[list[ProteinRecord], list[UpdateEvent]]:
        database = self.settings.registry_database
        primary_key = accession_key(entry.accession)
        adopted: list[ProteinRecord] = []
        events: list[UpdateEvent] = []
        for record in group:
            if accession_key(claimed_accession(record, database) or "") == primary_key:
                adopted.append(record)
                continue
            if record.taxon_id.strip() != entry.taxon_id.strip():
                buffer.error(
                    ErrorKind.ORGANISM_CONFLICT,
                    (
                        f"Record {record.id} has taxon {record.taxon_id} but {entry.accession} "
                        f"belongs to taxon {entry.taxon_id}; its secondary accession is kept"
                    ),
                    record_ids=(record.id,),
                    accession=entry.accession,
                )
                continue
            before = record.snapshot()
            demoted = adopt_primary_accession(record, database, entry.accession)
            log.info(
                "Record %s claimed secondary accession %s; now claims %s",
                record.id,
                ", ".join(reference.identifier for reference in demoted),
                entry.accession,
            )
            events.append(
                UpdatedEvent(
                    record_id=record.id,
                    accession=entry.accession,
                    changed_fields=("identity",),
                    before=before,
                    after=record.snapshot(),
                )
            )
            adopted.append(record)
        return adopted, events

    def _reconcile_group(
        self,
        entry: CanonicalEntry,
        accession: str,
        records: Sequence[ProteinRecord],
        repository: ProteinRepository,
        buffer: EventBuffer,
        *,
        pending: Sequence[UpdateEvent] = (),
    ) -> None:
        """Synchronize the survivor of ``records`` and merge the others into it.

        An organism conflict between the survivor and ``entry`` leaves the whole
        group unchanged, ``pending`` events included.
        """

        ordered = order_group(records)
        survivor = ordered[0]

        sync = self.synchronizer.synchronize(survivor, entry, accession=accession)
        if sync.skipped:
            log.warning(
                "Not reconciling %d record(s) of %s: organism conflict with the registry",
                len(ordered),
                accession,
            )
            buffer.extend(sync.events)
            return
        buffer.extend(pending)
        buffer.extend(sync.events)

        if len(ordered) > 1:
            log.info("Found %d duplicates for %s", len(ordered), accession)
            outcome = self.merger.merge(
                ordered,
                reference_sequence=entry.sequence_for(accession),
                accession=accession,
            )
            buffer.extend(outcome.events)
            for merged in outcome.merged:
                repository.delete(merged.id)
            for refused in outcome.refused:
                repository.save(refused)

        repository.save(survivor)

    def _handle_dead(
        self,
        accession: str,
        records: Sequence[ProteinRecord],
        repository: ProteinRepository,
        buffer: EventBuffer,
        reason: str | None,
    ) -> None:
        outcome = self.dead_handler.handle(accession, records, reason=reason)
        buffer.extend(outcome.events)
        for record in outcome.demoted:
            repository.save(record)

    # Import

    def _import(
        self,
        recorder: UpdateEventRecorder,
        accessions: list[str],
        cancel: threading.Event | None,
    ) -> ProcessStatus:
        units: dict[str, _Unit] = {}
        for accession in accessions:
            units.setdefault(
                accession_key(accession), _Unit(accession=accession.strip(), record_ids=())
            )
        return self._run_units(list(units.values()), self._import_unit, recorder, cancel)

    def _import_unit(self, unit: _Unit, recorder: UpdateEventRecorder) -> None:
        buffer = EventBuffer()
        try:
            lookup = self._lookup(unit.accession)
        except RegistryUnavailableError as exc:
            buffer.error(ErrorKind.REGISTRY_UNAVAILABLE, str(exc), accession=unit.accession)
            recorder.flush(buffer)
            return

        if not isinstance(lookup, CanonicalEntry):
            buffer.error(
                ErrorKind.DEAD_ENTRY,
                f"Cannot import {unit.accession}: the registry has no live entry for it",
                accession=unit.accession,
            )
            recorder.flush(buffer)
            return

        if not self._ensure_organism(lookup.taxon_id, unit, buffer):
            recorder.flush(buffer)
            return

        with self._unit_of_work_factory() as uow:
            repository = uow.repositories.proteins
            existing = repository.find_all_by_external_identity(
                self.settings.registry_database, unit.accession
            )
            if existing:
                log.info(
                    "%s already claimed by %s; not importing",
                    unit.accession,
                    ", ".join(record.id for record in existing),
                )
            else:
                name = lookup.entry_name or unit.accession
                label = unique_label(name, repository.short_labels_like(base_label(name)))
                record = record_from_entry(
                    lookup,
                    accession=unit.accession,
                    record_id=repository.next_id(),
                    short_label=label,
                    registry_database=self.settings.registry_database,
                )
                repository.save(record)
                buffer.add(
                    CreatedEvent(
                        record_id=record.id,
                        accession=unit.accession,
                        after=record.snapshot(),
                    )
                )
            uow.commit()
        recorder.flush(buffer)

    # Scheduling

    def _run_units(
        self,
        units: Sequence[_Unit],
        handler: Callable[[_Unit, UpdateEventRecorder], None],
        recorder: UpdateEventRecorder,
        cancel: threading.Event | None,
    ) -> ProcessStatus:
        if self.settings.workers <= 1 or len(units) <= 1:
            for unit in units:
                if cancel is not None and cancel.is_set():
                    log.info("Cancellation requested; stopping before %s", unit.accession)
                    return ProcessStatus.CANCELLED
                handler(unit, recorder)
            return ProcessStatus.COMPLETED

        stop = threading.Event()
        skipped = threading.Event()

        def guarded(unit: _Unit) -> None:
            if stop.is_set() or (cancel is not None and cancel.is_set()):
                skipped.set()
                return
            handler(unit, recorder)

        with ThreadPoolExecutor(
            max_workers=self.settings.workers, thread_name_prefix="reconcile"
        ) as pool:
            futures = [pool.submit(guarded, unit) for unit in units]
            try:
                for future in as_completed(futures):
                    future.result()
            except BaseException:
                stop.set()
                raise

        if skipped.is_set():
            log.info("Cancellation requested; remaining units were skipped")
            return ProcessStatus.CANCELLED
        return ProcessStatus.COMPLETED
