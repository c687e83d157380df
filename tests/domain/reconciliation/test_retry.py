from __future__ import annotations

import time

import pytest

from protrecon.domain.reconciliation import (
    RegistryCaller,
    RegistryUnavailableError,
    RetrySettings,
)


def test_transient_failures_are_retried_with_backoff() -> None:
    delays: list[float] = []
    attempts = 0

    def flaky() -> str:
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise RegistryUnavailableError("down")
        return "ok"

    caller = RegistryCaller(
        RetrySettings(attempts=3, backoff_seconds=0.5, deadline_seconds=None),
        sleep=delays.append,
    )

    assert caller.call(flaky, description="lookup P1") == "ok"
    assert delays == [0.5, 1.0]


def test_exhausted_attempts_raise_registry_unavailable() -> None:
    def down() -> str:
        raise RegistryUnavailableError("down")

    caller = RegistryCaller(RetrySettings(attempts=2, deadline_seconds=None), sleep=lambda _: None)

    with pytest.raises(RegistryUnavailableError, match="after 2 attempt"):
        caller.call(down, description="lookup P1")


def test_other_errors_propagate_without_retry() -> None:
    calls = 0

    def broken() -> str:
        nonlocal calls
        calls += 1
        raise KeyError("bad payload")

    caller = RegistryCaller(RetrySettings(attempts=3, deadline_seconds=None), sleep=lambda _: None)

    with pytest.raises(KeyError):
        caller.call(broken, description="lookup P1")
    assert calls == 1


def test_deadline_turns_slow_calls_into_unavailability() -> None:
    def slow() -> str:
        time.sleep(0.5)
        return "late"

    caller = RegistryCaller(
        RetrySettings(attempts=1, deadline_seconds=0.05), sleep=lambda _: None
    )
    try:
        with pytest.raises(RegistryUnavailableError, match="deadline"):
            caller.call(slow, description="lookup P1")
    finally:
        caller.close()


def test_call_within_deadline_returns_value() -> None:
    caller = RegistryCaller(RetrySettings(deadline_seconds=5.0))
    try:
        assert caller.call(lambda: 42, description="answer") == 42
    finally:
        caller.close()


@pytest.mark.parametrize(
    "kwargs",
    [{"attempts": 0}, {"deadline_seconds": 0}],
)
def test_invalid_settings(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        RetrySettings(**kwargs)  # type: ignore[arg-type]
