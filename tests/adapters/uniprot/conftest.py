"""Shared fixtures for UniProt adapter tests."""

from __future__ import annotations

import pytest

from protrecon.adapters.uniprot.schema import UniProtEntry, UniProtTaxon
from tests.helpers.uniprot import UniProtPayload, load_payload


@pytest.fixture
def tp53_payload() -> UniProtPayload:
    return load_payload("P04637.json")


@pytest.fixture
def tp53_entry(tp53_payload: UniProtPayload) -> UniProtEntry:
    return UniProtEntry.model_validate(tp53_payload)


@pytest.fixture
def tp53_isoform_entry() -> UniProtEntry:
    return UniProtEntry.model_validate(load_payload("P04637-2.json"))


@pytest.fixture
def merged_entry() -> UniProtEntry:
    return UniProtEntry.model_validate(load_payload("P00001.json"))


@pytest.fixture
def deleted_entry() -> UniProtEntry:
    return UniProtEntry.model_validate(load_payload("P00002.json"))


@pytest.fixture
def human_taxon() -> UniProtTaxon:
    return UniProtTaxon.model_validate(load_payload("taxonomy_9606.json"))


@pytest.fixture
def uniprot_routes() -> dict[str, object]:
    return {
        "/uniprotkb/P04637.json": load_payload("P04637.json"),
        "/uniprotkb/P04637-2.json": load_payload("P04637-2.json"),
        "/uniprotkb/P00001.json": load_payload("P00001.json"),
        "/taxonomy/9606.json": load_payload("taxonomy_9606.json"),
    }
