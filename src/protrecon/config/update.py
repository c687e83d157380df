"""Reconciliation run settings."""

from __future__ import annotations

from protrecon.domain.model import Database
from protrecon.domain.reconciliation import EngineSettings, RetrySettings

from .env import env_float, env_int, env_str
from .errors import ConfigurationError


def get_update_settings(*, workers: int | None = None) -> EngineSettings:
    """Build engine settings from ``PROTRECON_*`` environment variables."""

    try:
        retry = RetrySettings(
            attempts=env_int("PROTRECON_REGISTRY_ATTEMPTS", 3),
            backoff_seconds=env_float("PROTRECON_REGISTRY_BACKOFF", 0.5) or 0.0,
            deadline_seconds=env_float("PROTRECON_REGISTRY_DEADLINE", 60.0),
        )
        return EngineSettings(
            registry_database=env_str("PROTRECON_REGISTRY_DB", Database.UNIPROTKB),
            institution_database=env_str("PROTRECON_INSTITUTION_DB", Database.INTACT),
            retry=retry,
            workers=workers if workers is not None else env_int("PROTRECON_WORKERS", 1),
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
