"""Duplicate merge engine.

A duplicate group is a set of local records that resolved to the same registry
accession. The earliest-created record survives; every other record either moves
all of its participations (and the ranges of the moved components) into the
survivor and is deleted, or keeps all of them and is reported as an impossible
merge. A non-survivor is never partially relocated. When the refusal comes from
ranges that cannot be placed on the survivor sequence, the refused record is
flagged and annotated with its invalid ranges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from protrecon.domain.model import (
    AnnotationTopic,
    CrossReference,
    DeletedEvent,
    DuplicateIdentityError,
    ErrorEvent,
    ErrorKind,
    MergedEvent,
    MergeReport,
    Qualifier,
    normalize_sequence,
)

from .locks import RecordLocks
from .ranges import annotate_invalid_ranges, range_events, resolve_ranges

if TYPE_CHECKING:
    from collections.abc import Sequence

    from protrecon.domain.model import (
        Alias,
        Annotation,
        FeatureRange,
        ProteinRecord,
        UpdateEvent,
    )

    from .contracts import RangeReport

log = getLogger(__name__)

_UNMERGEABLE_TOPICS = frozenset({AnnotationTopic.NO_UNIPROT_UPDATE})


class EmptyDuplicateGroupError(ValueError):
    """Raised when a merge is requested for an empty group."""


def order_group(group: Sequence[ProteinRecord]) -> list[ProteinRecord]:
    """Return ``group`` sorted by creation time, input order breaking ties."""

    if not group:
        raise EmptyDuplicateGroupError("Cannot merge an empty duplicate group")
    indexed = sorted(enumerate(group), key=lambda item: (item[1].created_at, item[0]))
    return [record for _, record in indexed]


def select_survivor(group: Sequence[ProteinRecord]) -> ProteinRecord:
    return order_group(group)[0]


@dataclass(slots=True, kw_only=True)
class MergeOutcome:
    """Result of folding one duplicate group into its survivor."""

    survivor: ProteinRecord
    merged: list[ProteinRecord] = field(default_factory=list)
    refused: list[ProteinRecord] = field(default_factory=list)
    reports: list[MergeReport] = field(default_factory=list)
    events: list[UpdateEvent] = field(default_factory=list)

    @property
    def deleted_ids(self) -> tuple[str, ...]:
        return tuple(record.id for record in self.merged)


@dataclass(slots=True, kw_only=True)
class _RelocationPlan:
    candidate: ProteinRecord
    range_report: RangeReport | None = None
    refusal: str | None = None


@dataclass(slots=True)
class DuplicateMerger:
    """Folds duplicate groups into their canonical survivor."""

    registry_database: str
    institution_database: str
    locks: RecordLocks = field(default_factory=RecordLocks)

    def merge(
        self,
        group: Sequence[ProteinRecord],
        *,
        reference_sequence: str | None = None,
        accession: str | None = None,
    ) -> MergeOutcome:
        """Merge ``group``; ranges are re-positioned on the survivor's sequence.

        ``reference_sequence`` is used when the survivor carries no sequence.
        """

        ordered = order_group(group)
        survivor = ordered[0]
        outcome = MergeOutcome(survivor=survivor)
        target = survivor.sequence or reference_sequence or ""

        for candidate in ordered[1:]:
            plan = self._plan(survivor, candidate, target)
            if plan.refusal is not None:
                log.warning(
                    "Cannot merge %s into %s: %s", candidate.id, survivor.id, plan.refusal
                )
                outcome.refused.append(candidate)
                if plan.range_report is not None and plan.range_report.has_conflicts:
                    candidate.has_feature_conflicts = True
                    annotate_invalid_ranges(candidate, plan.range_report)
                    outcome.events.extend(
                        range_events(
                            candidate.id,
                            candidate.sequence,
                            plan.range_report,
                            accession=accession,
                        )
                    )
                outcome.events.append(
                    ErrorEvent(
                        error=ErrorKind.IMPOSSIBLE_MERGE,
                        details=plan.refusal,
                        record_ids=(candidate.id, survivor.id),
                        accession=accession,
                    )
                )
                continue

            with self.locks.hold(survivor.id, candidate.id):
                report = self._relocate(survivor, candidate, plan.range_report)

            outcome.merged.append(candidate)
            outcome.reports.append(report)
            if plan.range_report is not None:
                outcome.events.extend(
                    range_events(
                        survivor.id,
                        candidate.sequence,
                        plan.range_report,
                        accession=accession,
                    )
                )
            outcome.events.append(
                MergedEvent(
                    survivor_id=survivor.id,
                    merged_id=candidate.id,
                    report=report,
                    accession=accession,
                )
            )
            outcome.events.append(
                DeletedEvent(
                    record_id=candidate.id,
                    reason=f"merged into {survivor.id}",
                    accession=accession,
                    before=candidate.snapshot(),
                )
            )
            log.info("Merged %s into %s", candidate.id, survivor.id)

        return outcome

    def _plan(
        self,
        survivor: ProteinRecord,
        candidate: ProteinRecord,
        target: str,
    ) -> _RelocationPlan:
        plan = _RelocationPlan(candidate=candidate)
        if candidate.taxon_id.strip() != survivor.taxon_id.strip():
            plan.refusal = (
                "Impossible to merge proteins having different taxon ids: "
                f"{survivor.id} ({survivor.taxon_id}) and {candidate.id} ({candidate.taxon_id})"
            )
            return plan
        if candidate.has_feature_conflicts:
            plan.refusal = (
                f"The protein could not be merged with {survivor.id} because it already "
                "has range conflicts"
            )
            return plan
        if normalize_sequence(candidate.sequence) == normalize_sequence(target):
            return plan
        if not target:
            plan.refusal = (
                "The external sequence is missing and is required to merge proteins "
                "having different sequences"
            )
            return plan

        report = resolve_ranges(candidate.sequence, target, candidate.feature_ranges)
        plan.range_report = report
        if report.has_conflicts:
            components = {item.range.component_id for item in report.invalid}
            plan.refusal = (
                f"the duplicated protein has {len(components)} components with range "
                f"conflicts. The protein could not be merged with {survivor.id} because "
                "of some conflicts with the protein sequence (features which cannot be shifted)."
            )
        return plan

    def _relocate(
        self,
        survivor: ProteinRecord,
        candidate: ProteinRecord,
        range_report: RangeReport | None,
    ) -> MergeReport:
        moved_participations = candidate.participations
        for participation in moved_participations:
            survivor.add_participation(participation)
            candidate.remove_participation(participation)

        shifted = {item.range: item.moved for item in range_report.shifted} if range_report else {}
        moved_ranges: list[FeatureRange] = []
        for feature_range in candidate.feature_ranges:
            relocated = shifted.get(feature_range, feature_range)
            survivor.add_feature_range(relocated)
            candidate.remove_feature_range(feature_range)
            moved_ranges.append(relocated)

        copied_xrefs, discarded_xrefs, secondary = self._fold_cross_references(
            survivor, candidate
        )
        copied_aliases, discarded_aliases = _fold_aliases(survivor, candidate.aliases)
        copied_annotations, discarded_annotations = _fold_annotations(
            survivor, candidate.annotations
        )

        return MergeReport(
            survivor_id=survivor.id,
            merged_id=candidate.id,
            copied_cross_references=tuple(copied_xrefs),
            discarded_cross_references=tuple(discarded_xrefs),
            copied_aliases=tuple(copied_aliases),
            discarded_aliases=tuple(discarded_aliases),
            copied_annotations=tuple(copied_annotations),
            discarded_annotations=tuple(discarded_annotations),
            moved_participations=moved_participations,
            moved_ranges=tuple(moved_ranges),
            secondary_references=tuple(secondary),
        )

    def _fold_cross_references(
        self,
        survivor: ProteinRecord,
        candidate: ProteinRecord,
    ) -> tuple[list[CrossReference], list[CrossReference], list[CrossReference]]:
        copied: list[CrossReference] = []
        discarded: list[CrossReference] = []
        secondary: list[CrossReference] = []

        survivor_identities = {
            xref.identifier.upper() for xref in survivor.identity_references(self.registry_database)
        }
        for xref in candidate.cross_references:
            is_registry_identity = (
                xref.qualifier == Qualifier.IDENTITY
                and xref.database.lower() == self.registry_database.lower()
            )
            if is_registry_identity:
                demoted = xref.requalified(Qualifier.SECONDARY)
                already_known = xref.identifier.upper() in survivor_identities or any(
                    existing.matches(demoted.database, demoted.identifier)
                    and existing.qualifier == Qualifier.SECONDARY
                    for existing in survivor.cross_references
                )
                if not already_known and survivor.add_cross_reference(demoted):
                    secondary.append(demoted)
                else:
                    discarded.append(xref)
                continue
            try:
                added = survivor.add_cross_reference(xref)
            except DuplicateIdentityError:
                added = False
            (copied if added else discarded).append(xref)

        trail = CrossReference(
            database=self.institution_database,
            identifier=candidate.id,
            qualifier=Qualifier.SECONDARY,
        )
        if survivor.add_cross_reference(trail):
            secondary.append(trail)
        return copied, discarded, secondary


def _fold_aliases(
    survivor: ProteinRecord, aliases: Sequence[Alias]
) -> tuple[list[Alias], list[Alias]]:
    copied: list[Alias] = []
    discarded: list[Alias] = []
    for alias in aliases:
        (copied if survivor.add_alias(alias) else discarded).append(alias)
    return copied, discarded


def _fold_annotations(
    survivor: ProteinRecord, annotations: Sequence[Annotation]
) -> tuple[list[Annotation], list[Annotation]]:
    copied: list[Annotation] = []
    discarded: list[Annotation] = []
    for annotation in annotations:
        if annotation.topic in _UNMERGEABLE_TOPICS:
            discarded.append(annotation)
            continue
        (copied if survivor.add_annotation(annotation) else discarded).append(annotation)
    return copied, discarded
