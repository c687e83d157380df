"""Re-position feature ranges when a record's sequence changes.

Coordinates are 1-based and inclusive. A range is searched as an exact,
case-insensitive substring of the new sequence; among several matches the one
whose start is closest to the original start wins, ties going to the lower offset.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from protrecon.domain.model import (
    Annotation,
    AnnotationTopic,
    RangeChangedEvent,
    normalize_sequence,
    subsequence,
)

from .contracts import (
    MISSING_SEQUENCE,
    REGION_NOT_FOUND,
    UNDETERMINED_POSITION,
    InvalidRange,
    RangeReport,
    ShiftedRange,
    StableRange,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from protrecon.domain.model import FeatureRange, ProteinRecord

    from .contracts import RangeClassification

log = getLogger(__name__)


def _occurrences(haystack: str, needle: str) -> Iterator[int]:
    position = haystack.find(needle)
    while position != -1:
        yield position
        position = haystack.find(needle, position + 1)


def classify_range(
    old_sequence: str | None,
    new_sequence: str | None,
    feature_range: FeatureRange,
) -> RangeClassification:
    """Return exactly one of Stable, Shifted or Invalid for ``feature_range``."""

    start, end = feature_range.start, feature_range.end
    if not start or not end or end < start:
        return InvalidRange(range=feature_range, reason=UNDETERMINED_POSITION)

    old_region = subsequence(normalize_sequence(old_sequence), start, end)
    if old_region is None:
        return InvalidRange(range=feature_range, reason=UNDETERMINED_POSITION)

    new_normalized = normalize_sequence(new_sequence)
    if not new_normalized:
        return InvalidRange(range=feature_range, reason=MISSING_SEQUENCE)

    original_offset = start - 1
    best = min(
        _occurrences(new_normalized, old_region),
        key=lambda offset: (abs(offset - original_offset), offset),
        default=None,
    )
    if best is None:
        return InvalidRange(range=feature_range, reason=REGION_NOT_FOUND)

    new_start = best + 1
    new_end = best + len(old_region)
    snapshot = new_normalized[best:new_end]
    if new_start == start:
        return StableRange(range=feature_range, snapshot=snapshot)
    return ShiftedRange(
        range=feature_range,
        new_start=new_start,
        new_end=new_end,
        snapshot=snapshot,
    )


def resolve_ranges(
    old_sequence: str | None,
    new_sequence: str | None,
    ranges: Iterable[FeatureRange],
) -> RangeReport:
    return RangeReport(
        classifications=tuple(
            classify_range(old_sequence, new_sequence, feature_range) for feature_range in ranges
        )
    )


def apply_range_report(record: ProteinRecord, report: RangeReport) -> None:
    """Move shifted ranges on ``record`` and set its conflict flag from ``report``.

    Invalid ranges keep their old coordinates for curators to review. A report
    without invalid ranges clears a flag left by an earlier run.
    """

    for shifted in report.shifted:
        record.replace_feature_range(shifted.range, shifted.moved)
    if report.has_conflicts:
        log.info(
            "Record %s has %d range(s) that cannot be re-positioned",
            record.id,
            len(report.invalid),
        )
    elif record.has_feature_conflicts:
        log.info("Range conflicts of record %s are resolved", record.id)
    record.has_feature_conflicts = report.has_conflicts


def invalid_range_annotation(feature_id: str, start: int | None, end: int | None) -> Annotation:
    return Annotation(topic=AnnotationTopic.INVALID_RANGE, text=f"[{feature_id}]{start}-{end}")


def annotate_invalid_ranges(record: ProteinRecord, report: RangeReport) -> None:
    for invalid in report.invalid:
        feature_range = invalid.range
        annotation = invalid_range_annotation(
            feature_range.feature_id, feature_range.start, feature_range.end
        )
        record.add_annotation(annotation)


def range_events(
    record_id: str,
    old_sequence: str | None,
    report: RangeReport,
    *,
    accession: str | None = None,
) -> list[RangeChangedEvent]:
    old_normalized = normalize_sequence(old_sequence)
    events: list[RangeChangedEvent] = []
    for item in report.classifications:
        feature_range = item.range
        old_snapshot = None
        if feature_range.is_determined:
            old_snapshot = subsequence(
                old_normalized,
                feature_range.start or 0,
                feature_range.end or 0,
            )
        new_snapshot = None
        reason = None
        match item:
            case StableRange(snapshot=snapshot) | ShiftedRange(snapshot=snapshot):
                new_snapshot = snapshot
            case InvalidRange(reason=invalid_reason):
                reason = invalid_reason
        events.append(
            RangeChangedEvent(
                record_id=record_id,
                accession=accession,
                feature_id=feature_range.feature_id,
                component_id=feature_range.component_id,
                interaction_id=feature_range.interaction_id,
                status=item.status,
                old_start=feature_range.start,
                old_end=feature_range.end,
                new_start=item.new_start,
                new_end=item.new_end,
                old_snapshot=old_snapshot,
                new_snapshot=new_snapshot,
                reason=reason,
            )
        )
    return events
