"""UniProt-backed implementations of the registry and taxonomy ports."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from protrecon.domain.model import CanonicalEntry, NotFound, TranscriptKind
from protrecon.domain.reconciliation import RegistryUnavailableError

from .client import UniProtAPIError
from .translator import DEFAULT_KEPT_DATABASES, parent_accession, translate_entry, translate_taxon

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from protrecon.domain.model import AccessionLookup, TaxonLookup

    from .client import UniProtClient

log = getLogger(__name__)


class UniProtRegistry:
    """Resolve accessions and taxa against UniProt.

    Transport failures, timeouts and server errors surface as
    ``RegistryUnavailableError`` so the engine can retry them.
    """

    def __init__(
        self,
        client: UniProtClient,
        *,
        kept_databases: Collection[str] = DEFAULT_KEPT_DATABASES,
    ) -> None:
        self._client = client
        self._kept_databases = frozenset(database.lower() for database in kept_databases)

    def lookup_by_accession(self, accession: str) -> AccessionLookup:
        parent, kind = parent_accession(accession)
        if kind == TranscriptKind.ISOFORM:
            entry, isoform = self._guarded(
                lambda: self._client.fetch_entries((parent, accession.strip())),
                accession,
            )
        else:
            (entry,) = self._guarded(lambda: [self._client.fetch_entry(parent)], accession)
            isoform = None
        if entry is None:
            log.info("UniProt does not know %s", accession)
            return NotFound(identifier=accession)

        translated = translate_entry(
            entry,
            isoform_entries={accession.strip(): isoform} if isoform is not None else None,
            kept_databases=self._kept_databases,
        )
        if (
            kind is not None
            and isinstance(translated, CanonicalEntry)
            and translated.transcript(accession) is None
        ):
            log.info("%s is not a transcript of %s", accession, translated.accession)
            return NotFound(identifier=accession)
        return translated

    def lookup_by_taxon(self, taxon_id: str) -> TaxonLookup:
        (taxon,) = self._guarded(lambda: [self._client.fetch_taxon(taxon_id)], taxon_id)
        if taxon is None:
            return NotFound(identifier=taxon_id)
        return translate_taxon(taxon)

    @staticmethod
    def _guarded[T](call: Callable[[], list[T]], subject: str) -> list[T]:
        try:
            return call()
        except httpx.TimeoutException as exc:
            raise RegistryUnavailableError(f"UniProt timed out for {subject}") from exc
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code >= 500 or exc.response.status_code == 429:
                raise RegistryUnavailableError(
                    f"UniProt answered {exc.response.status_code} for {subject}"
                ) from exc
            raise
        except httpx.TransportError as exc:
            raise RegistryUnavailableError(f"UniProt unreachable for {subject}: {exc}") from exc
        except UniProtAPIError as exc:
            raise RegistryUnavailableError(str(exc)) from exc
