from __future__ import annotations

import pytest

from protrecon.domain.model import (
    CreatedEvent,
    ErrorEvent,
    ErrorKind,
    EventKind,
    ProcessSealedError,
    ProcessStatus,
    UpdateProcess,
)


def test_process_appends_in_order_until_sealed() -> None:
    process = UpdateProcess()
    first = CreatedEvent(record_id="R1")
    second = ErrorEvent(error=ErrorKind.NO_IDENTITY, details="none", record_ids=("R2",))

    process.append(first)
    process.append(second)
    process.seal(ProcessStatus.COMPLETED)

    assert process.events == (first, second)
    assert process.sealed
    assert process.finished_at is not None
    with pytest.raises(ProcessSealedError):
        process.append(CreatedEvent(record_id="R3"))


def test_process_cannot_be_sealed_twice_or_as_running() -> None:
    process = UpdateProcess()
    with pytest.raises(ValueError, match="running"):
        process.seal(ProcessStatus.RUNNING)

    process.seal(ProcessStatus.CANCELLED)

    with pytest.raises(ProcessSealedError):
        process.seal(ProcessStatus.COMPLETED)


def test_events_of_and_errors_filter_by_kind() -> None:
    process = UpdateProcess()
    process.append(CreatedEvent(record_id="R1"))
    process.append(ErrorEvent(error=ErrorKind.DEAD_ENTRY, details="gone"))
    process.append(ErrorEvent(error=ErrorKind.NO_IDENTITY, details="none"))

    assert len(process.events_of(EventKind.CREATED)) == 1
    assert len(process.errors()) == 2
    assert [event.error for event in process.errors(ErrorKind.DEAD_ENTRY)] == [
        ErrorKind.DEAD_ENTRY
    ]


def test_error_kind_flags() -> None:
    assert ErrorKind.REGISTRY_UNAVAILABLE.is_retryable
    assert not ErrorKind.IMPOSSIBLE_MERGE.is_retryable
    assert ErrorKind.FATAL_INTERNAL.is_fatal
    assert not ErrorKind.DEAD_ENTRY.is_fatal


def test_event_record_ids() -> None:
    assert CreatedEvent(record_id="R1").record_ids == ("R1",)
    assert ErrorEvent(error=ErrorKind.NO_IDENTITY, details="x", record_ids=("A", "B")).record_ids == (
        "A",
        "B",
    )
