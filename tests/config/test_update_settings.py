from __future__ import annotations

import pytest

from protrecon.config import ConfigurationError, get_update_settings
from protrecon.domain.model import Database

_VARIABLES = (
    "PROTRECON_REGISTRY_ATTEMPTS",
    "PROTRECON_REGISTRY_BACKOFF",
    "PROTRECON_REGISTRY_DEADLINE",
    "PROTRECON_REGISTRY_DB",
    "PROTRECON_INSTITUTION_DB",
    "PROTRECON_WORKERS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = get_update_settings()

    assert settings.registry_database == Database.UNIPROTKB
    assert settings.institution_database == Database.INTACT
    assert settings.workers == 1
    assert settings.retry.attempts == 3
    assert settings.retry.deadline_seconds == 60.0


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROTRECON_REGISTRY_ATTEMPTS", "5")
    monkeypatch.setenv("PROTRECON_REGISTRY_BACKOFF", "0.25")
    monkeypatch.setenv("PROTRECON_REGISTRY_DEADLINE", "off")
    monkeypatch.setenv("PROTRECON_WORKERS", "4")
    monkeypatch.setenv("PROTRECON_INSTITUTION_DB", " mint ")

    settings = get_update_settings()

    assert settings.retry.attempts == 5
    assert settings.retry.backoff_seconds == 0.25
    assert settings.retry.deadline_seconds is None
    assert settings.workers == 4
    assert settings.institution_database == "mint"


def test_explicit_workers_win_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROTRECON_WORKERS", "4")

    assert get_update_settings(workers=2).workers == 2


def test_non_integer_value_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROTRECON_WORKERS", "many")

    with pytest.raises(ConfigurationError) as exc:
        get_update_settings()

    assert "PROTRECON_WORKERS" in str(exc.value)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PROTRECON_REGISTRY_ATTEMPTS", "0"),
        ("PROTRECON_REGISTRY_DEADLINE", "-1"),
        ("PROTRECON_WORKERS", "0"),
    ],
)
def test_out_of_range_values_are_rejected(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_update_settings()
