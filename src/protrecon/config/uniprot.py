"""UniProt REST configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from protrecon import __version__

from .env import env_str
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_UNIPROT_BASE_URL = "https://rest.uniprot.org"


def is_cacheable_payload(payload: object) -> bool:
    """Keep entries and taxa; UniProt error bodies carry a ``messages`` list."""

    return isinstance(payload, dict) and "messages" not in payload


@dataclass(frozen=True, slots=True)
class UniProtConfig:
    resilience: ResilienceConfig


def get_uniprot_config() -> UniProtConfig:
    base_url = env_str("UNIPROT_BASE_URL", DEFAULT_UNIPROT_BASE_URL)
    contact = os.getenv("UNIPROT_CONTACT")
    user_agent = f"protrecon/{__version__}" + (f" ({contact})" if contact else "")

    resilience = ResilienceConfig(
        name="uniprot",
        base_url=base_url,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        retry=RetryPolicy(total=3),
        cache=CacheConfig(enabled=True, backend="sqlite", should_cache=is_cacheable_payload),
        default_headers={"User-Agent": user_agent, "Accept": "application/json"},
    )
    return UniProtConfig(resilience=resilience)
