from __future__ import annotations

import asyncio

import httpx
import pytest

from protrecon.adapters.http_resilience import ResilientClient, build_retry
from protrecon.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)


def _fetch(client: ResilientClient, path: str) -> httpx.Response:
    async def run() -> httpx.Response:
        async with client:
            return await client.get(path, params={"fields": "accession"})

    return asyncio.run(run())


def test_get_is_relative_to_base_url_and_throttled() -> None:
    seen: list[httpx.URL] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, json={"ok": True})

    config = ResilienceConfig(
        name="test",
        base_url="https://registry.test",
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=None,
    )
    client = ResilientClient(config)
    client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        base_url="https://registry.test",
        transport=httpx.MockTransport(handler),
    )

    response = _fetch(client, "uniprotkb/P04637.json")

    assert response.json() == {"ok": True}
    assert [str(url) for url in seen] == [
        "https://registry.test/uniprotkb/P04637.json?fields=accession"
    ]


def test_default_headers_are_sent() -> None:
    config = ResilienceConfig(
        name="test",
        base_url="https://registry.test",
        cache=None,
        default_headers={"User-Agent": "protrecon-test"},
    )
    client = ResilientClient(config)

    assert client._client.headers["User-Agent"] == "protrecon-test"  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    asyncio.run(client.aclose())


def test_unknown_cache_backend_is_rejected() -> None:
    config = ResilienceConfig(name="test", cache=CacheConfig(backend="redis"))  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="Unsupported cache backend"):
        ResilientClient(config)


def test_retry_policy_is_translated() -> None:
    retry = build_retry(RetryPolicy(total=7, status_forcelist=frozenset({503})))

    assert retry.total == 7
    assert retry.is_retryable_status_code(503)
    assert not retry.is_retryable_status_code(500)
