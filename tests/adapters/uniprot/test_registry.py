from __future__ import annotations

import httpx
import pytest

from protrecon.adapters.uniprot import UniProtRegistry
from protrecon.domain.model import CanonicalEntry, DeadEntry, NotFound, TaxonTerm
from protrecon.domain.ports import ProteinRegistry, TaxonomyService
from protrecon.domain.reconciliation import RegistryUnavailableError
from tests.helpers.uniprot import make_uniprot_client, routes_handler


def _registry(
    routes: dict[str, object], requested: list[str] | None = None
) -> UniProtRegistry:
    client = make_uniprot_client(routes_handler(routes, requested if requested is not None else []))
    return UniProtRegistry(client)


def _failing_registry(status: int) -> UniProtRegistry:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"messages": ["unavailable"]})

    return UniProtRegistry(make_uniprot_client(handler))


def test_registry_implements_ports(uniprot_routes: dict[str, object]) -> None:
    registry = _registry(uniprot_routes)

    assert isinstance(registry, ProteinRegistry)
    assert isinstance(registry, TaxonomyService)


def test_lookup_live_accession(uniprot_routes: dict[str, object]) -> None:
    requested: list[str] = []

    entry = _registry(uniprot_routes, requested).lookup_by_accession("P04637")

    assert isinstance(entry, CanonicalEntry)
    assert entry.accession == "P04637"
    assert requested == ["/uniprotkb/P04637.json"]


def test_lookup_isoform_fetches_parent_and_isoform(uniprot_routes: dict[str, object]) -> None:
    requested: list[str] = []

    entry = _registry(uniprot_routes, requested).lookup_by_accession("P04637-2")

    assert isinstance(entry, CanonicalEntry)
    assert entry.accession == "P04637"
    assert entry.sequence_for("P04637-2") == entry.sequence + "DQMR"
    assert requested == ["/uniprotkb/P04637.json", "/uniprotkb/P04637-2.json"]


def test_lookup_chain_uses_parent_entry(uniprot_routes: dict[str, object]) -> None:
    requested: list[str] = []

    entry = _registry(uniprot_routes, requested).lookup_by_accession("P04637-PRO_0000185703")

    assert isinstance(entry, CanonicalEntry)
    assert entry.transcript("P04637-PRO_0000185703") is not None
    assert requested == ["/uniprotkb/P04637.json"]


def test_unknown_transcript_is_not_found(uniprot_routes: dict[str, object]) -> None:
    result = _registry(uniprot_routes).lookup_by_accession("P04637-9")

    assert result == NotFound(identifier="P04637-9")


def test_unknown_accession_is_not_found(uniprot_routes: dict[str, object]) -> None:
    assert _registry(uniprot_routes).lookup_by_accession("Q00000") == NotFound(identifier="Q00000")


def test_inactive_accession_is_dead(uniprot_routes: dict[str, object]) -> None:
    result = _registry(uniprot_routes).lookup_by_accession("P00001")

    assert isinstance(result, DeadEntry)
    assert result.replaced_by == ("P04637",)


@pytest.mark.parametrize("status", [429, 500, 503])
def test_server_errors_are_unavailability(status: int) -> None:
    with pytest.raises(RegistryUnavailableError, match=str(status)):
        _failing_registry(status).lookup_by_accession("P04637")


def test_client_errors_propagate() -> None:
    with pytest.raises(httpx.HTTPStatusError):
        _failing_registry(403).lookup_by_accession("P04637")


def test_transport_errors_are_unavailability() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    registry = UniProtRegistry(make_uniprot_client(handler))

    with pytest.raises(RegistryUnavailableError, match="unreachable"):
        registry.lookup_by_accession("P04637")


def test_malformed_payload_is_unavailability() -> None:
    registry = _registry({"/uniprotkb/P04637.json": ["not", "an", "entry"]})

    with pytest.raises(RegistryUnavailableError, match="Unexpected UniProt response"):
        registry.lookup_by_accession("P04637")


def test_lookup_taxon(uniprot_routes: dict[str, object]) -> None:
    registry = _registry(uniprot_routes)

    term = registry.lookup_by_taxon("9606")

    assert isinstance(term, TaxonTerm)
    assert term.mnemonic == "HUMAN"
    assert registry.lookup_by_taxon("123456789") == NotFound(identifier="123456789")
