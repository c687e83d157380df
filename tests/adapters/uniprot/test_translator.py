from __future__ import annotations

import pytest

from protrecon.adapters.uniprot import parent_accession, translate_entry, translate_taxon
from protrecon.adapters.uniprot.schema import UniProtEntry, UniProtTaxon
from protrecon.domain.model import (
    CanonicalEntry,
    DeadEntry,
    ExternalReference,
    TaxonTerm,
    TranscriptKind,
)

TP53_SEQUENCE = "MEEPQSDPSVEPPLSQETFSDLWKLLPENNVLSPLPSQAMDDLMLSPDDIEQWFTEDPGP"


@pytest.mark.parametrize(
    ("accession", "expected"),
    [
        ("P04637", ("P04637", None)),
        (" P04637-2 ", ("P04637", TranscriptKind.ISOFORM)),
        ("P04637-PRO_0000185703", ("P04637", TranscriptKind.CHAIN)),
        ("p04637-pro_0000185703", ("p04637", TranscriptKind.CHAIN)),
        ("A0A024R161", ("A0A024R161", None)),
    ],
)
def test_parent_accession(
    accession: str, expected: tuple[str, TranscriptKind | None]
) -> None:
    assert parent_accession(accession) == expected


def test_translate_active_entry(tp53_entry: UniProtEntry) -> None:
    entry = translate_entry(tp53_entry)

    assert isinstance(entry, CanonicalEntry)
    assert entry.accession == "P04637"
    assert entry.sequence == TP53_SEQUENCE
    assert entry.taxon_id == "9606"
    assert entry.entry_name == "P53_HUMAN"
    assert entry.description == "Cellular tumor antigen p53"
    assert entry.secondary_accessions == ("Q15086", "Q15087", "Q15088")
    assert entry.gene_names == ("TP53",)
    assert entry.gene_synonyms == ("P53",)
    assert entry.sequence_version == "4"


def test_only_kept_databases_are_translated(tp53_entry: UniProtEntry) -> None:
    entry = translate_entry(tp53_entry)

    assert isinstance(entry, CanonicalEntry)
    assert entry.cross_references == (
        ExternalReference(database="refseq", identifier="NP_000537.3"),
        ExternalReference(database="pdb", identifier="1A1U"),
        ExternalReference(database="go", identifier="GO:0005634"),
        ExternalReference(database="interpro", identifier="IPR008967"),
    )


def test_kept_databases_can_be_narrowed(tp53_entry: UniProtEntry) -> None:
    entry = translate_entry(tp53_entry, kept_databases={"pdb"})

    assert isinstance(entry, CanonicalEntry)
    assert [ref.database for ref in entry.cross_references] == ["pdb"]


def test_isoforms_and_chains_become_transcripts(tp53_entry: UniProtEntry) -> None:
    entry = translate_entry(tp53_entry)

    assert isinstance(entry, CanonicalEntry)
    assert [(item.accession, item.kind) for item in entry.transcripts] == [
        ("P04637-1", TranscriptKind.ISOFORM),
        ("P04637-2", TranscriptKind.ISOFORM),
        ("P04637-PRO_0000185703", TranscriptKind.CHAIN),
    ]
    assert entry.sequence_for("P04637-1") == TP53_SEQUENCE
    assert entry.sequence_for("P04637-2") is None
    chain = entry.transcript("P04637-PRO_0000185703")
    assert chain is not None
    assert (chain.start, chain.end) == (1, 60)
    assert entry.sequence_for(chain.accession) == TP53_SEQUENCE


def test_fetched_isoform_sequence_is_used(
    tp53_entry: UniProtEntry, tp53_isoform_entry: UniProtEntry
) -> None:
    entry = translate_entry(tp53_entry, isoform_entries={"P04637-2": tp53_isoform_entry})

    assert isinstance(entry, CanonicalEntry)
    assert entry.sequence_for("P04637-2") == TP53_SEQUENCE + "DQMR"


def test_merged_entry_is_dead(merged_entry: UniProtEntry) -> None:
    entry = translate_entry(merged_entry)

    assert entry == DeadEntry(
        accession="P00001", reason="merged into P04637", replaced_by=("P04637",)
    )


def test_deleted_entry_is_dead(deleted_entry: UniProtEntry) -> None:
    entry = translate_entry(deleted_entry)

    assert isinstance(entry, DeadEntry)
    assert entry.reason == "deleted"
    assert entry.replaced_by == ()


def test_entry_without_sequence_is_dead(tp53_payload: dict[str, object]) -> None:
    payload = dict(tp53_payload)
    del payload["sequence"]

    entry = translate_entry(UniProtEntry.model_validate(payload))

    assert isinstance(entry, DeadEntry)
    assert entry.reason == "inactive"


def test_translate_taxon(human_taxon: UniProtTaxon) -> None:
    assert translate_taxon(human_taxon) == TaxonTerm(
        taxon_id="9606",
        scientific_name="Homo sapiens",
        common_name="Human",
        mnemonic="HUMAN",
        synonyms=("human", "man"),
    )
