"""Deadline and bounded retry around blocking registry calls."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import RegistryUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetrySettings:
    attempts: int = 3
    backoff_seconds: float = 0.5
    backoff_factor: float = 2.0
    deadline_seconds: float | None = 60.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("At least one attempt is required")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError("Deadline must be positive")

    def delay(self, attempt: int) -> float:
        return self.backoff_seconds * self.backoff_factor ** (attempt - 1)


class RegistryCaller:
    """Run a blocking call with a deadline, retrying transient failures.

    Timeouts and ``RegistryUnavailableError`` are retried with exponential backoff;
    once the attempts are exhausted a ``RegistryUnavailableError`` is raised. Any
    other exception propagates unchanged.
    """

    def __init__(
        self,
        settings: RetrySettings | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        max_workers: int = 4,
    ) -> None:
        self.settings = settings or RetrySettings()
        self._sleep = sleep
        self._executor: ThreadPoolExecutor | None = None
        self._max_workers = max_workers
        self._executor_lock = threading.Lock()

    def call[T](self, func: Callable[[], T], *, description: str) -> T:
        last_error: Exception | None = None
        for attempt in range(1, self.settings.attempts + 1):
            try:
                return self._with_deadline(func)
            except (RegistryUnavailableError, TimeoutError) as exc:
                last_error = exc
                if attempt == self.settings.attempts:
                    break
                delay = self.settings.delay(attempt)
                log.warning(
                    "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                    description,
                    attempt,
                    self.settings.attempts,
                    exc,
                    delay,
                )
                self._sleep(delay)
        raise RegistryUnavailableError(
            f"{description} failed after {self.settings.attempts} attempt(s): {last_error}"
        ) from last_error

    def _with_deadline[T](self, func: Callable[[], T]) -> T:
        deadline = self.settings.deadline_seconds
        if deadline is None:
            return func()
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="registry-call"
                )
            executor = self._executor
        future = executor.submit(func)
        try:
            return future.result(timeout=deadline)
        except TimeoutError:
            if not future.done():
                future.cancel()
                raise TimeoutError(f"registry call exceeded {deadline}s deadline") from None
            raise

    def close(self) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None
