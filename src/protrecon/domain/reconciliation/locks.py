"""Per-record critical sections for concurrent units of work."""

from __future__ import annotations

import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class RecordLocks:
    """Hands out one lock per record id.

    Locks are acquired in sorted id order so that two units holding overlapping
    records cannot deadlock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)

    def _lock_for(self, record_id: str) -> threading.Lock:
        with self._guard:
            return self._locks[record_id]

    @contextmanager
    def hold(self, *record_ids: str) -> Iterator[None]:
        locks = [self._lock_for(record_id) for record_id in sorted(set(record_ids))]
        acquired: list[threading.Lock] = []
        try:
            for lock in locks:
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
