"""Protein records and the value objects they own.

A ``ProteinRecord`` is the aggregate root: cross-references, aliases, annotations,
participation handles and feature ranges are immutable values owned by it and are
only changed through its commands. Children are kept in insertion order so that
snapshots and reports are deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from protrecon.domain.model.enums import AnnotationTopic, Qualifier, ReviewState
from protrecon.domain.model.sequence import sequence_checksum

if TYPE_CHECKING:
    from collections.abc import Iterable


class DuplicateIdentityError(ValueError):
    """Raised when a second identity reference is added for the same database."""

    def __init__(self, record_id: str, database: str, existing: str, attempted: str) -> None:
        super().__init__(
            f"Record {record_id} already has identity {database}:{existing}; "
            f"refusing to add {database}:{attempted}"
        )
        self.record_id = record_id
        self.database = database
        self.existing = existing
        self.attempted = attempted


@dataclass(frozen=True, slots=True)
class CrossReference:
    database: str
    identifier: str
    qualifier: Qualifier = Qualifier.OTHER
    release_version: str | None = None

    def matches(self, database: str, identifier: str) -> bool:
        return (
            self.database.lower() == database.lower()
            and self.identifier.lower() == identifier.lower()
        )

    def requalified(self, qualifier: Qualifier) -> CrossReference:
        return replace(self, qualifier=qualifier)

    def __str__(self) -> str:
        return f"{self.database}:{self.identifier} ({self.qualifier})"


@dataclass(frozen=True, slots=True)
class Alias:
    type: str
    name: str

    def __str__(self) -> str:
        return f"{self.type}:{self.name}"


@dataclass(frozen=True, slots=True)
class Annotation:
    topic: str
    text: str | None = None

    def __str__(self) -> str:
        return f"{self.topic}:{self.text or ''}"


@dataclass(frozen=True, slots=True)
class ParticipationRef:
    """Opaque handle to one participation of a record in an interaction."""

    interaction_id: str
    component_id: str

    def __str__(self) -> str:
        return f"{self.interaction_id}/{self.component_id}"


@dataclass(frozen=True, slots=True)
class FeatureRange:
    """Annotated sub-region of a sequence (1-based, inclusive coordinates).

    ``start``/``end`` of ``None`` or ``0`` denote undetermined positions.
    """

    feature_id: str
    component_id: str
    interaction_id: str
    start: int | None
    end: int | None
    sequence_snapshot: str | None = None

    @property
    def is_determined(self) -> bool:
        return bool(self.start) and bool(self.end)

    def moved_to(self, start: int, end: int, snapshot: str | None) -> FeatureRange:
        return replace(self, start=start, end=end, sequence_snapshot=snapshot)

    def __str__(self) -> str:
        return f"{self.feature_id}[{self.start}-{self.end}]"


@dataclass(frozen=True, slots=True)
class RecordSnapshot:
    """Immutable copy of a record's children, used for audit diffs."""

    cross_references: tuple[CrossReference, ...] = ()
    aliases: tuple[Alias, ...] = ()
    annotations: tuple[Annotation, ...] = ()
    feature_ranges: tuple[FeatureRange, ...] = ()


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class ProteinRecord:
    id: str
    short_label: str
    taxon_id: str
    sequence: str = ""
    full_name: str | None = None
    checksum: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    review_state: ReviewState = ReviewState.LIVE
    has_feature_conflicts: bool = False

    _cross_references: list[CrossReference] = field(default_factory=list, init=False, repr=False)
    _aliases: list[Alias] = field(default_factory=list, init=False, repr=False)
    _annotations: list[Annotation] = field(default_factory=list, init=False, repr=False)
    _participations: list[ParticipationRef] = field(default_factory=list, init=False, repr=False)
    _feature_ranges: list[FeatureRange] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.sequence and self.checksum is None:
            self.checksum = sequence_checksum(self.sequence)

    def restore_children(
        self,
        *,
        cross_references: Iterable[CrossReference] = (),
        aliases: Iterable[Alias] = (),
        annotations: Iterable[Annotation] = (),
        participations: Iterable[ParticipationRef] = (),
        feature_ranges: Iterable[FeatureRange] = (),
    ) -> ProteinRecord:
        """Load stored children as-is, without invariant checks (hydration only)."""

        self._cross_references.extend(cross_references)
        self._aliases.extend(aliases)
        self._annotations.extend(annotations)
        self._participations.extend(participations)
        self._feature_ranges.extend(feature_ranges)
        return self

    # Views

    @property
    def cross_references(self) -> tuple[CrossReference, ...]:
        return tuple(self._cross_references)

    @property
    def aliases(self) -> tuple[Alias, ...]:
        return tuple(self._aliases)

    @property
    def annotations(self) -> tuple[Annotation, ...]:
        return tuple(self._annotations)

    @property
    def participations(self) -> tuple[ParticipationRef, ...]:
        return tuple(self._participations)

    @property
    def feature_ranges(self) -> tuple[FeatureRange, ...]:
        return tuple(self._feature_ranges)

    def identity_references(self, database: str) -> tuple[CrossReference, ...]:
        return tuple(
            xref
            for xref in self._cross_references
            if xref.qualifier == Qualifier.IDENTITY and xref.database.lower() == database.lower()
        )

    def references_to(self, database: str) -> tuple[CrossReference, ...]:
        return tuple(
            xref for xref in self._cross_references if xref.database.lower() == database.lower()
        )

    def ranges_for_component(self, component_id: str) -> tuple[FeatureRange, ...]:
        return tuple(r for r in self._feature_ranges if r.component_id == component_id)

    def has_annotation(self, topic: str, text: str | None = None) -> bool:
        for annotation in self._annotations:
            if annotation.topic != topic:
                continue
            if text is None:
                return True
            if annotation.text is not None and annotation.text.lower() == text.lower():
                return True
        return False

    @property
    def is_update_blocked(self) -> bool:
        return self.has_annotation(AnnotationTopic.NO_UNIPROT_UPDATE)

    def snapshot(self) -> RecordSnapshot:
        return RecordSnapshot(
            cross_references=self.cross_references,
            aliases=self.aliases,
            annotations=self.annotations,
            feature_ranges=self.feature_ranges,
        )

    # Commands

    def add_cross_reference(self, xref: CrossReference) -> bool:
        if xref in self._cross_references:
            return False
        if xref.qualifier == Qualifier.IDENTITY:
            for existing in self.identity_references(xref.database):
                if existing.identifier.lower() != xref.identifier.lower():
                    raise DuplicateIdentityError(
                        self.id, xref.database, existing.identifier, xref.identifier
                    )
        self._cross_references.append(xref)
        return True

    def remove_cross_reference(self, xref: CrossReference) -> bool:
        if xref not in self._cross_references:
            return False
        self._cross_references.remove(xref)
        return True

    def replace_cross_reference(self, old: CrossReference, new: CrossReference) -> None:
        index = self._cross_references.index(old)
        if new in self._cross_references:
            del self._cross_references[index]
            return
        self._cross_references[index] = new

    def add_alias(self, alias: Alias) -> bool:
        if alias in self._aliases:
            return False
        self._aliases.append(alias)
        return True

    def remove_alias(self, alias: Alias) -> bool:
        if alias not in self._aliases:
            return False
        self._aliases.remove(alias)
        return True

    def add_annotation(self, annotation: Annotation) -> bool:
        if self.has_annotation(annotation.topic, annotation.text) or annotation in self._annotations:
            return False
        self._annotations.append(annotation)
        return True

    def remove_annotation(self, annotation: Annotation) -> bool:
        if annotation not in self._annotations:
            return False
        self._annotations.remove(annotation)
        return True

    def add_participation(self, participation: ParticipationRef) -> bool:
        if participation in self._participations:
            return False
        self._participations.append(participation)
        return True

    def remove_participation(self, participation: ParticipationRef) -> None:
        self._participations.remove(participation)

    def add_feature_range(self, feature_range: FeatureRange) -> bool:
        if feature_range in self._feature_ranges:
            return False
        self._feature_ranges.append(feature_range)
        return True

    def remove_feature_range(self, feature_range: FeatureRange) -> None:
        self._feature_ranges.remove(feature_range)

    def replace_feature_range(self, old: FeatureRange, new: FeatureRange) -> None:
        self._feature_ranges[self._feature_ranges.index(old)] = new

    def update_sequence(self, sequence: str) -> None:
        self.sequence = sequence
        self.checksum = sequence_checksum(sequence) if sequence else None
