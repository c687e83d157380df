"""Ports for the external protein registry and taxonomy service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from protrecon.domain.model import AccessionLookup, TaxonLookup


@runtime_checkable
class ProteinRegistry(Protocol):
    """Lookup of canonical entries by accession.

    Implementations raise ``RegistryUnavailableError`` (or ``TimeoutError``) for
    transient failures; the engine retries those.
    """

    def lookup_by_accession(self, accession: str) -> AccessionLookup: ...


@runtime_checkable
class TaxonomyService(Protocol):
    """Lookup of taxonomy terms by taxon id."""

    def lookup_by_taxon(self, taxon_id: str) -> TaxonLookup: ...
