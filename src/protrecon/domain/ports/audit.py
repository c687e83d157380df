"""Port for the audit sink receiving update events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from protrecon.domain.model import UpdateEvent, UpdateProcess


@runtime_checkable
class AuditSink(Protocol):
    """Durable destination for audit events.

    Implementations must never drop an event silently: any failure is raised.
    """

    def open_process(self, process: UpdateProcess) -> None: ...

    def append_event(self, process_id: UUID, event: UpdateEvent) -> None: ...

    def close_process(self, process: UpdateProcess) -> None: ...
