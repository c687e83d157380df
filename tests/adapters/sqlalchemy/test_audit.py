from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from protrecon.adapters.sqlalchemy.audit import SqlAlchemyAuditSink, dump_event, load_event
from protrecon.adapters.sqlalchemy.unit_of_work import StartupError, shutdown, startup
from protrecon.domain.model import (
    CreatedEvent,
    CrossReference,
    DeadEvent,
    ErrorEvent,
    ErrorKind,
    MergedEvent,
    MergeReport,
    ProcessStatus,
    RangeChangedEvent,
    RangeStatus,
    UpdatedEvent,
    UpdateProcess,
)
from tests.helpers.records import feature_range, identity, make_record, participation

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine

    from protrecon.domain.model import UpdateEvent


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def _events() -> list[UpdateEvent]:
    record = make_record("PROT-1", accessions=["P1"], ranges=[feature_range("F1", 2, 4)])
    return [
        CreatedEvent(record_id="PROT-1", accession="P1", after=record.snapshot()),
        UpdatedEvent(
            record_id="PROT-1",
            accession="P1",
            changed_fields=("sequence",),
            before=record.snapshot(),
            after=record.snapshot(),
            old_sequence="MKT",
            new_sequence="MKTA",
            conservation=1.0,
        ),
        MergedEvent(
            survivor_id="PROT-1",
            merged_id="PROT-2",
            accession="P1",
            report=MergeReport(
                survivor_id="PROT-1",
                merged_id="PROT-2",
                moved_participations=(participation("I1", "C1"),),
                moved_ranges=(feature_range("F9", 1, 3),),
                secondary_references=(identity("P2"),),
            ),
        ),
        DeadEvent(
            accession="P9",
            record_id="PROT-3",
            demoted_references=(identity("P9"),),
            removed_cross_references=(CrossReference(database="go", identifier="GO:1"),),
            reason="deleted",
        ),
        RangeChangedEvent(
            record_id="PROT-1",
            feature_id="F1",
            component_id="C1",
            interaction_id="I1",
            status=RangeStatus.SHIFTED,
            old_start=2,
            old_end=4,
            new_start=5,
            new_end=7,
        ),
        ErrorEvent(
            error=ErrorKind.MULTI_EXTERNAL_IDENTITIES,
            details="two identities",
            record_ids=("PROT-4",),
            candidates=("P1", "P2"),
        ),
    ]


@pytest.mark.parametrize("event", _events(), ids=lambda event: event.kind)
def test_event_payload_round_trip(event: object) -> None:
    payload = dump_event(event)  # type: ignore[arg-type]

    assert payload["kind"] == event.kind  # type: ignore[attr-defined]
    assert load_event(payload) == event


def test_process_is_stored_and_reloaded(sqlite_engine: Engine) -> None:
    sink = SqlAlchemyAuditSink(sqlite_engine)
    process = UpdateProcess()
    events = _events()

    sink.open_process(process)
    for event in events:
        process.append(event)
        sink.append_event(process.id, event)
    process.seal(ProcessStatus.COMPLETED)
    sink.close_process(process)

    loaded = sink.load_process(process.id)

    assert loaded is not None
    assert loaded.id == process.id
    assert loaded.status == ProcessStatus.COMPLETED
    assert loaded.finished_at == process.finished_at
    assert loaded.events == process.events


def test_running_process_is_listed(sqlite_engine: Engine) -> None:
    sink = SqlAlchemyAuditSink(sqlite_engine)
    first = UpdateProcess(started_at=datetime(2024, 1, 1, tzinfo=UTC))
    second = UpdateProcess(started_at=datetime(2024, 1, 2, tzinfo=UTC))
    sink.open_process(first)
    sink.open_process(second)
    second.seal(ProcessStatus.CANCELLED)
    sink.close_process(second)

    assert sink.list_processes() == [
        (first.id, ProcessStatus.RUNNING),
        (second.id, ProcessStatus.CANCELLED),
    ]


def test_positions_continue_for_a_new_sink(sqlite_engine: Engine) -> None:
    process = UpdateProcess()
    SqlAlchemyAuditSink(sqlite_engine).open_process(process)
    SqlAlchemyAuditSink(sqlite_engine).append_event(process.id, CreatedEvent(record_id="A"))
    SqlAlchemyAuditSink(sqlite_engine).append_event(process.id, CreatedEvent(record_id="B"))

    loaded = SqlAlchemyAuditSink(sqlite_engine).load_process(process.id)

    assert loaded is not None
    assert [event.record_ids for event in loaded.events] == [("A",), ("B",)]


def test_unknown_process_is_none(sqlite_engine: Engine) -> None:
    assert SqlAlchemyAuditSink(sqlite_engine).load_process(uuid4()) is None


def test_sink_defaults_to_configured_engine(sqlite_engine: Engine) -> None:
    with pytest.raises(StartupError):
        SqlAlchemyAuditSink()

    startup(engine=sqlite_engine, force=True)
    sink = SqlAlchemyAuditSink()
    process = UpdateProcess()
    sink.open_process(process)

    assert sink.list_processes() == [(process.id, ProcessStatus.RUNNING)]
