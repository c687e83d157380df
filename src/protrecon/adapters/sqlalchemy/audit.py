"""Durable audit sink storing update processes and their events."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import Field, TypeAdapter
from sqlalchemy import func, insert, select, update

from protrecon.domain.model import (
    CreatedEvent,
    DeadEvent,
    DeletedEvent,
    ErrorEvent,
    MergedEvent,
    ProcessStatus,
    RangeChangedEvent,
    UpdatedEvent,
    UpdateProcess,
)

from .mappings import update_event_table, update_process_table
from .unit_of_work import StartupError, configured_engine

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.engine import Engine

    from protrecon.domain.model import UpdateEvent

log = getLogger(__name__)

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(
    Annotated[
        CreatedEvent
        | UpdatedEvent
        | DeletedEvent
        | MergedEvent
        | DeadEvent
        | RangeChangedEvent
        | ErrorEvent,
        Field(discriminator="kind"),
    ]
)


def dump_event(event: UpdateEvent) -> dict[str, Any]:
    return _EVENT_ADAPTER.dump_python(event, mode="json")


def load_event(payload: dict[str, Any]) -> UpdateEvent:
    return _EVENT_ADAPTER.validate_python(payload)


class SqlAlchemyAuditSink:
    """Write every event in its own transaction, independent of units of work."""

    def __init__(self, engine: Engine | None = None) -> None:
        resolved = engine or configured_engine()
        if resolved is None:
            raise StartupError("No engine configured for the audit sink")
        self._engine = resolved
        self._positions: dict[UUID, int] = {}
        self._lock = threading.Lock()

    def open_process(self, process: UpdateProcess) -> None:
        with self._lock, self._engine.begin() as connection:
            connection.execute(
                insert(update_process_table).values(
                    id=process.id,
                    started_at=process.started_at,
                    finished_at=process.finished_at,
                    status=process.status,
                )
            )
            self._positions[process.id] = 0
        log.debug("Opened audit trail for process %s", process.id)

    def append_event(self, process_id: UUID, event: UpdateEvent) -> None:
        with self._lock:
            position = self._positions.get(process_id)
            with self._engine.begin() as connection:
                if position is None:
                    position = connection.execute(
                        select(func.count())
                        .select_from(update_event_table)
                        .where(update_event_table.c.process_id == process_id)
                    ).scalar_one()
                connection.execute(
                    insert(update_event_table).values(
                        process_id=process_id,
                        position=position,
                        kind=event.kind,
                        occurred_at=event.occurred_at,
                        payload=dump_event(event),
                    )
                )
            self._positions[process_id] = position + 1

    def close_process(self, process: UpdateProcess) -> None:
        with self._lock, self._engine.begin() as connection:
            connection.execute(
                update(update_process_table)
                .where(update_process_table.c.id == process.id)
                .values(status=process.status, finished_at=process.finished_at)
            )
            self._positions.pop(process.id, None)
        log.debug("Closed audit trail for process %s as %s", process.id, process.status)

    def load_process(self, process_id: UUID) -> UpdateProcess | None:
        """Rebuild a stored process with its events in recorded order."""

        with self._engine.connect() as connection:
            row = connection.execute(
                select(update_process_table).where(update_process_table.c.id == process_id)
            ).first()
            if row is None:
                return None
            payloads = connection.execute(
                select(update_event_table.c.payload)
                .where(update_event_table.c.process_id == process_id)
                .order_by(update_event_table.c.position)
            ).scalars()
            process = UpdateProcess(id=row.id, started_at=row.started_at)
            for payload in payloads:
                process.append(load_event(payload))
        process.status = ProcessStatus(row.status)
        process.finished_at = row.finished_at
        return process

    def list_processes(self) -> list[tuple[UUID, ProcessStatus]]:
        with self._engine.connect() as connection:
            rows = connection.execute(
                select(update_process_table.c.id, update_process_table.c.status).order_by(
                    update_process_table.c.started_at
                )
            )
            return [(row.id, ProcessStatus(row.status)) for row in rows]
