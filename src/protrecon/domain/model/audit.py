"""Audit records for one update process run.

Events form a tagged union discriminated by ``kind``; consumers match on the
concrete classes. Events and reports are frozen and are only ever appended to the
owning ``UpdateProcess``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal
from uuid import UUID, uuid4

# Runtime imports: event classes are introspected by the persistence serializer.
from protrecon.domain.model.protein import (  # noqa: TC001
    Alias,
    Annotation,
    CrossReference,
    FeatureRange,
    ParticipationRef,
    RecordSnapshot,
)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class EventKind(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    MERGED = "merged"
    DEAD = "dead"
    RANGE_CHANGED = "range_changed"
    ERROR = "error"


class ErrorKind(StrEnum):
    MULTI_EXTERNAL_IDENTITIES = "multi_external_identities"
    NO_IDENTITY = "no_identity"
    DEAD_ENTRY = "dead_entry"
    IMPOSSIBLE_MERGE = "impossible_merge"
    INVALID_RANGE = "invalid_range"
    SEQUENCE_CONFLICT = "sequence_conflict"
    REGISTRY_UNAVAILABLE = "registry_unavailable"
    ORGANISM_CONFLICT = "organism_conflict"
    FATAL_INTERNAL = "fatal_internal"

    @property
    def is_retryable(self) -> bool:
        return self is ErrorKind.REGISTRY_UNAVAILABLE

    @property
    def is_fatal(self) -> bool:
        return self is ErrorKind.FATAL_INTERNAL


class RangeStatus(StrEnum):
    STABLE = "stable"
    SHIFTED = "shifted"
    INVALID = "invalid"


class ProcessStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ABORTED = "aborted"


class ProcessSealedError(RuntimeError):
    """Raised when appending to an update process that has been sealed."""


@dataclass(frozen=True, slots=True, kw_only=True)
class MergeReport:
    """What moved from one non-survivor into the survivor, and what was left behind."""

    survivor_id: str
    merged_id: str
    copied_cross_references: tuple[CrossReference, ...] = ()
    discarded_cross_references: tuple[CrossReference, ...] = ()
    copied_aliases: tuple[Alias, ...] = ()
    discarded_aliases: tuple[Alias, ...] = ()
    copied_annotations: tuple[Annotation, ...] = ()
    discarded_annotations: tuple[Annotation, ...] = ()
    moved_participations: tuple[ParticipationRef, ...] = ()
    moved_ranges: tuple[FeatureRange, ...] = ()
    secondary_references: tuple[CrossReference, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class CreatedEvent:
    record_id: str
    accession: str | None = None
    after: RecordSnapshot | None = None
    occurred_at: datetime = field(default_factory=_utcnow)
    kind: Literal[EventKind.CREATED] = EventKind.CREATED

    @property
    def record_ids(self) -> tuple[str, ...]:
        return (self.record_id,)


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdatedEvent:
    record_id: str
    accession: str | None = None
    changed_fields: tuple[str, ...] = ()
    before: RecordSnapshot | None = None
    after: RecordSnapshot | None = None
    old_sequence: str | None = None
    new_sequence: str | None = None
    conservation: float | None = None
    occurred_at: datetime = field(default_factory=_utcnow)
    kind: Literal[EventKind.UPDATED] = EventKind.UPDATED

    @property
    def record_ids(self) -> tuple[str, ...]:
        return (self.record_id,)

    @property
    def sequence_changed(self) -> bool:
        return self.new_sequence is not None


@dataclass(frozen=True, slots=True, kw_only=True)
class DeletedEvent:
    record_id: str
    reason: str
    accession: str | None = None
    before: RecordSnapshot | None = None
    occurred_at: datetime = field(default_factory=_utcnow)
    kind: Literal[EventKind.DELETED] = EventKind.DELETED

    @property
    def record_ids(self) -> tuple[str, ...]:
        return (self.record_id,)


@dataclass(frozen=True, slots=True, kw_only=True)
class MergedEvent:
    survivor_id: str
    merged_id: str
    report: MergeReport
    accession: str | None = None
    occurred_at: datetime = field(default_factory=_utcnow)
    kind: Literal[EventKind.MERGED] = EventKind.MERGED

    @property
    def record_ids(self) -> tuple[str, ...]:
        return (self.survivor_id, self.merged_id)


@dataclass(frozen=True, slots=True, kw_only=True)
class DeadEvent:
    accession: str
    record_id: str
    demoted_references: tuple[CrossReference, ...] = ()
    removed_cross_references: tuple[CrossReference, ...] = ()
    removed_annotations: tuple[Annotation, ...] = ()
    before: RecordSnapshot | None = None
    after: RecordSnapshot | None = None
    reason: str | None = None
    occurred_at: datetime = field(default_factory=_utcnow)
    kind: Literal[EventKind.DEAD] = EventKind.DEAD

    @property
    def record_ids(self) -> tuple[str, ...]:
        return (self.record_id,)


@dataclass(frozen=True, slots=True, kw_only=True)
class RangeChangedEvent:
    record_id: str
    feature_id: str
    component_id: str
    interaction_id: str
    status: RangeStatus
    old_start: int | None
    old_end: int | None
    new_start: int | None = None
    new_end: int | None = None
    old_snapshot: str | None = None
    new_snapshot: str | None = None
    reason: str | None = None
    accession: str | None = None
    occurred_at: datetime = field(default_factory=_utcnow)
    kind: Literal[EventKind.RANGE_CHANGED] = EventKind.RANGE_CHANGED

    @property
    def record_ids(self) -> tuple[str, ...]:
        return (self.record_id,)


@dataclass(frozen=True, slots=True, kw_only=True)
class ErrorEvent:
    error: ErrorKind
    details: str
    record_ids: tuple[str, ...] = ()
    accession: str | None = None
    candidates: tuple[str, ...] = ()
    occurred_at: datetime = field(default_factory=_utcnow)
    kind: Literal[EventKind.ERROR] = EventKind.ERROR


type UpdateEvent = (
    CreatedEvent
    | UpdatedEvent
    | DeletedEvent
    | MergedEvent
    | DeadEvent
    | RangeChangedEvent
    | ErrorEvent
)


@dataclass(eq=False, kw_only=True)
class UpdateProcess:
    """One execution run and its ordered, append-only audit trail."""

    id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None
    status: ProcessStatus = ProcessStatus.RUNNING
    _events: list[UpdateEvent] = field(default_factory=list, init=False, repr=False)

    @property
    def events(self) -> tuple[UpdateEvent, ...]:
        return tuple(self._events)

    @property
    def sealed(self) -> bool:
        return self.status is not ProcessStatus.RUNNING

    def append(self, event: UpdateEvent) -> None:
        if self.sealed:
            raise ProcessSealedError(f"Update process {self.id} is sealed ({self.status})")
        self._events.append(event)

    def seal(self, status: ProcessStatus = ProcessStatus.COMPLETED) -> None:
        if self.sealed:
            raise ProcessSealedError(f"Update process {self.id} is already sealed")
        if status is ProcessStatus.RUNNING:
            raise ValueError("Cannot seal a process as running")
        self.status = status
        self.finished_at = _utcnow()

    def events_of(self, kind: EventKind) -> tuple[UpdateEvent, ...]:
        return tuple(event for event in self._events if event.kind == kind)

    def errors(self, error: ErrorKind | None = None) -> tuple[ErrorEvent, ...]:
        return tuple(
            event
            for event in self._events
            if isinstance(event, ErrorEvent) and (error is None or event.error == error)
        )
