from __future__ import annotations

import pytest

from protrecon.domain.model import RangeStatus
from protrecon.domain.reconciliation import (
    InvalidRange,
    ShiftedRange,
    StableRange,
    classify_range,
    resolve_ranges,
)
from protrecon.domain.reconciliation.contracts import (
    MISSING_SEQUENCE,
    REGION_NOT_FOUND,
    UNDETERMINED_POSITION,
)
from protrecon.domain.reconciliation.ranges import apply_range_report, range_events
from tests.helpers.records import feature_range, make_record

OLD = "AAAABBBBBCCCCDDE"


def test_insertion_upstream_shifts_range() -> None:
    result = classify_range(OLD, "AAAABBBBBXXCCCCDDE", feature_range("F1", 10, 14))

    assert isinstance(result, ShiftedRange)
    assert (result.new_start, result.new_end) == (12, 16)
    assert result.snapshot == "CCCCD"
    assert result.moved.start == 12
    assert result.moved.sequence_snapshot == "CCCCD"


def test_unchanged_region_is_stable() -> None:
    result = classify_range(OLD, "AAAABBBBBCCCCDDEFFF", feature_range("F1", 10, 14))

    assert isinstance(result, StableRange)
    assert (result.new_start, result.new_end) == (10, 14)


def test_region_missing_from_new_sequence_is_invalid() -> None:
    result = classify_range(OLD, "AAAABBBBBQQQQDDE", feature_range("F1", 10, 14))

    assert isinstance(result, InvalidRange)
    assert result.reason == REGION_NOT_FOUND
    assert result.new_start is None


@pytest.mark.parametrize(
    ("start", "end"),
    [(None, 4), (3, None), (0, 4), (5, 2), (10, 40)],
)
def test_undetermined_or_out_of_bounds_positions_are_invalid(
    start: int | None, end: int | None
) -> None:
    result = classify_range(OLD, OLD, feature_range("F1", start, end))

    assert isinstance(result, InvalidRange)
    assert result.reason == UNDETERMINED_POSITION


def test_missing_new_sequence_is_invalid() -> None:
    result = classify_range(OLD, "", feature_range("F1", 1, 4))

    assert isinstance(result, InvalidRange)
    assert result.reason == MISSING_SEQUENCE


def test_nearest_occurrence_wins() -> None:
    # "CCC" occurs at offsets 0 and 10; the original start is 9 (offset 8).
    old = "XXXXXXXXCCCXX"
    new = "CCCXXXXXXXCCC"

    result = classify_range(old, new, feature_range("F1", 9, 11))

    assert isinstance(result, ShiftedRange)
    assert result.new_start == 11


def test_ties_go_to_lower_offset() -> None:
    old = "XXXXCCXXXX"
    new = "XXCCXXCCXX"

    result = classify_range(old, new, feature_range("F1", 5, 6))

    assert isinstance(result, ShiftedRange)
    assert result.new_start == 3


def test_matching_is_case_insensitive() -> None:
    result = classify_range(OLD.lower(), "aaaabbbbbxxccccdde", feature_range("F1", 10, 14))

    assert isinstance(result, ShiftedRange)
    assert result.snapshot == "CCCCD"


def test_every_range_gets_exactly_one_classification() -> None:
    ranges = [
        feature_range("F1", 1, 4),
        feature_range("F2", 10, 14),
        feature_range("F3", None, None),
    ]

    report = resolve_ranges(OLD, "AAAABBBBBXXCCCCDDE", ranges)

    assert [item.range.feature_id for item in report.classifications] == ["F1", "F2", "F3"]
    assert [item.status for item in report.classifications] == [
        RangeStatus.STABLE,
        RangeStatus.SHIFTED,
        RangeStatus.INVALID,
    ]
    assert report.has_conflicts
    assert len(report.shifted) == 1


def test_apply_report_moves_shifted_and_flags_conflicts() -> None:
    ranges = [feature_range("F1", 10, 14), feature_range("F2", 1, 3)]
    record = make_record("R1", sequence=OLD, ranges=ranges)
    report = resolve_ranges(OLD, "XXAAAABBBBBQQQQDDE", record.feature_ranges)

    apply_range_report(record, report)

    assert record.has_feature_conflicts
    assert record.feature_ranges[0] == ranges[0]
    assert (record.feature_ranges[1].start, record.feature_ranges[1].end) == (3, 5)


def test_range_events_carry_snapshots_and_reasons() -> None:
    ranges = [feature_range("F1", 10, 14), feature_range("F2", 1, 1)]
    new = "AAAABBBBBXXCCCCDDE"
    report = resolve_ranges(OLD, new, ranges)

    events = range_events("R1", OLD, report, accession="P100")

    assert [event.status for event in events] == [RangeStatus.SHIFTED, RangeStatus.STABLE]
    shifted = events[0]
    assert shifted.old_snapshot == "CCCCD"
    assert shifted.new_snapshot == "CCCCD"
    assert (shifted.old_start, shifted.new_start) == (10, 12)
    assert shifted.accession == "P100"
    assert shifted.reason is None


def test_range_event_for_invalid_range_has_reason() -> None:
    report = resolve_ranges(OLD, "QQQ", [feature_range("F1", 10, 14)])

    (event,) = range_events("R1", OLD, report)

    assert event.status == RangeStatus.INVALID
    assert event.reason == REGION_NOT_FOUND
    assert event.new_start is None
    assert event.new_snapshot is None


def test_clean_report_clears_an_earlier_conflict_flag() -> None:
    record = make_record("R1", sequence=OLD, ranges=[feature_range("F1", 10, 14)])
    record.has_feature_conflicts = True

    apply_range_report(record, resolve_ranges(OLD, "AAAABBBBBXXCCCCDDE", record.feature_ranges))

    assert not record.has_feature_conflicts
    assert (record.feature_ranges[0].start, record.feature_ranges[0].end) == (12, 16)
