"""Append-only audit trail for one update process run."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from protrecon.domain.model import ErrorEvent, ProcessStatus, UpdateProcess

from .errors import FatalInternalError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from protrecon.domain.model import ErrorKind, EventKind, UpdateEvent
    from protrecon.domain.ports import AuditSink

type EventListener = Callable[[UpdateEvent], None]

log = getLogger(__name__)


@dataclass(slots=True)
class EventBuffer:
    """Events produced by one unit of work, flushed only once the unit commits."""

    events: list[UpdateEvent] = field(default_factory=list)

    def add(self, event: UpdateEvent) -> None:
        self.events.append(event)

    def extend(self, events: Iterable[UpdateEvent]) -> None:
        self.events.extend(events)

    def error(
        self,
        kind: ErrorKind,
        details: str,
        *,
        record_ids: Sequence[str] = (),
        accession: str | None = None,
        candidates: Sequence[str] = (),
    ) -> ErrorEvent:
        event = ErrorEvent(
            error=kind,
            details=details,
            record_ids=tuple(record_ids),
            accession=accession,
            candidates=tuple(candidates),
        )
        self.events.append(event)
        return event

    def __len__(self) -> int:
        return len(self.events)


class UpdateEventRecorder:
    """Serializes appends to the process, the audit sink and the listeners.

    Any sink or listener failure is fatal for the run: events are never dropped.
    """

    def __init__(
        self,
        process: UpdateProcess | None = None,
        *,
        sink: AuditSink | None = None,
        listeners: Iterable[EventListener] = (),
    ) -> None:
        self._process = process or UpdateProcess()
        self._sink = sink
        self._listeners = tuple(listeners)
        self._lock = threading.Lock()
        self._opened = False

    @property
    def process(self) -> UpdateProcess:
        return self._process

    def open(self) -> None:
        with self._lock:
            if self._opened:
                return
            if self._sink is not None:
                try:
                    self._sink.open_process(self._process)
                except Exception as exc:
                    raise FatalInternalError("Audit sink could not open the process") from exc
            self._opened = True

    def record(self, event: UpdateEvent) -> None:
        with self._lock:
            self._process.append(event)
            if self._sink is not None:
                try:
                    self._sink.append_event(self._process.id, event)
                except Exception as exc:
                    raise FatalInternalError(
                        f"Audit sink rejected {event.kind} event for {event.record_ids}"
                    ) from exc
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception as exc:
                    raise FatalInternalError(f"Event listener {listener!r} failed") from exc

    def record_all(self, events: Iterable[UpdateEvent]) -> None:
        for event in events:
            self.record(event)

    def flush(self, buffer: EventBuffer) -> None:
        self.record_all(buffer.events)
        buffer.events.clear()

    def seal(self, status: ProcessStatus = ProcessStatus.COMPLETED) -> UpdateProcess:
        with self._lock:
            self._process.seal(status)
            if self._sink is not None:
                try:
                    self._sink.close_process(self._process)
                except Exception as exc:
                    raise FatalInternalError("Audit sink could not close the process") from exc
        log.info(
            "Update process %s sealed as %s with %d events",
            self._process.id,
            status,
            len(self._process.events),
        )
        return self._process

    def counts(self) -> Counter[EventKind]:
        with self._lock:
            return Counter(event.kind for event in self._process.events)
