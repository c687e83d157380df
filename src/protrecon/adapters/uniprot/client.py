"""UniProt REST API client."""

from __future__ import annotations

import asyncio
from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from protrecon.adapters.http_resilience import ResilientClient

from .schema import UniProtEntry, UniProtTaxon

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel

    from protrecon.config.http_resilience import ResilienceConfig
    from protrecon.config.uniprot import UniProtConfig

log = getLogger(__name__)


class UniProtAPIError(RuntimeError):
    """Raised when the UniProt API returns an unexpected response."""


class UniProtClient:
    """Low-level HTTP client for the UniProtKB and taxonomy endpoints."""

    def __init__(
        self,
        *,
        config: UniProtConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def fetch_entry(self, accession: str) -> UniProtEntry | None:
        """Return the entry for ``accession``; ``None`` when UniProt does not know it."""

        return asyncio.run(self._fetch_entries_async((accession,)))[0]

    def fetch_entries(self, accessions: tuple[str, ...]) -> list[UniProtEntry | None]:
        """Fetch several entries over one connection, preserving order."""

        return asyncio.run(self._fetch_entries_async(accessions))

    def fetch_taxon(self, taxon_id: str) -> UniProtTaxon | None:
        return asyncio.run(self._fetch_taxon_async(taxon_id))

    async def _fetch_entries_async(
        self, accessions: tuple[str, ...]
    ) -> list[UniProtEntry | None]:
        async with self._client_factory(self._resilience) as client:
            return [
                await self._perform_request(
                    client=client,
                    path=f"uniprotkb/{accession}.json",
                    model=UniProtEntry,
                )
                for accession in accessions
            ]

    async def _fetch_taxon_async(self, taxon_id: str) -> UniProtTaxon | None:
        async with self._client_factory(self._resilience) as client:
            return await self._perform_request(
                client=client,
                path=f"taxonomy/{taxon_id}.json",
                model=UniProtTaxon,
            )

    async def _perform_request[ModelT: BaseModel](
        self,
        *,
        client: ResilientClient,
        path: str,
        model: type[ModelT],
    ) -> ModelT | None:
        base_url = self._resilience.base_url
        if base_url is None:
            raise UniProtAPIError("Missing UniProt base_url in resilience configuration")
        response = await client.get(path)
        if response.status_code in {HTTPStatus.NOT_FOUND, HTTPStatus.BAD_REQUEST}:
            log.debug("UniProt has no resource at %s (%s)", path, response.status_code)
            return None
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise UniProtAPIError(f"Unexpected UniProt response payload for {path}")

        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise UniProtAPIError(f"Malformed UniProt payload for {path}: {exc}") from exc
