"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_http_cache_path,
    get_storage_config,
)
from .uniprot import UniProtConfig, get_uniprot_config
from .update import get_update_settings

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "UniProtConfig",
    "configure_logging",
    "get_database_config",
    "get_http_cache_path",
    "get_storage_config",
    "get_uniprot_config",
    "get_update_settings",
]
