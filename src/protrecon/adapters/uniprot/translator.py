"""Translate UniProt payloads into registry values."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from protrecon.domain.model import (
    CanonicalEntry,
    DeadEntry,
    ExternalReference,
    TaxonTerm,
    TranscriptEntry,
    TranscriptKind,
)

from .schema import InactiveReasonType

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from .schema import UniProtEntry, UniProtFeature, UniProtTaxon

ALTERNATIVE_PRODUCTS: Final[str] = "ALTERNATIVE PRODUCTS"
CHAIN_FEATURE_TYPES: Final[frozenset[str]] = frozenset({"Chain", "Peptide"})
DISPLAYED_ISOFORM: Final[str] = "Displayed"

# Databases whose cross-references are copied onto local records.
DEFAULT_KEPT_DATABASES: Final[frozenset[str]] = frozenset(
    {"ensembl", "flybase", "go", "interpro", "pdb", "reactome", "refseq", "sgd", "wormbase"}
)

_CHAIN_ACCESSION = re.compile(r"^(?P<parent>[^-]+)-(?P<feature>PRO_\d+)$", re.IGNORECASE)
_ISOFORM_ACCESSION = re.compile(r"^(?P<parent>[^-]+)-(?P<number>\d+)$")


def parent_accession(accession: str) -> tuple[str, TranscriptKind | None]:
    """Split a transcript accession into its parent accession and kind.

    ``P12345-2`` is an isoform and ``P12345-PRO_0000012345`` a processed chain of
    ``P12345``; any other accession is its own parent.
    """

    accession = accession.strip()
    if match := _CHAIN_ACCESSION.match(accession):
        return match["parent"], TranscriptKind.CHAIN
    if match := _ISOFORM_ACCESSION.match(accession):
        return match["parent"], TranscriptKind.ISOFORM
    return accession, None


def translate_entry(
    entry: UniProtEntry,
    *,
    isoform_entries: Mapping[str, UniProtEntry] | None = None,
    kept_databases: Collection[str] = DEFAULT_KEPT_DATABASES,
) -> CanonicalEntry | DeadEntry:
    if entry.is_inactive or entry.sequence is None or entry.organism is None:
        return _translate_inactive(entry)

    isoform_entries = isoform_entries or {}
    genes = entry.genes
    return CanonicalEntry(
        accession=entry.primary_accession,
        sequence=entry.sequence.value,
        taxon_id=str(entry.organism.taxon_id),
        entry_name=entry.uniprotkb_id,
        description=(
            entry.protein_description.display_name() if entry.protein_description else None
        ),
        secondary_accessions=tuple(entry.secondary_accessions),
        gene_names=tuple(gene.gene_name.value for gene in genes if gene.gene_name is not None),
        gene_synonyms=tuple(value.value for gene in genes for value in gene.synonyms),
        orf_names=tuple(value.value for gene in genes for value in gene.orf_names),
        locus_names=tuple(value.value for gene in genes for value in gene.ordered_locus_names),
        cross_references=tuple(
            dict.fromkeys(
                ExternalReference(database=ref.database.lower(), identifier=ref.id)
                for ref in entry.cross_references
                if ref.database.lower() in kept_databases
            )
        ),
        transcripts=(
            *_isoforms(entry, isoform_entries),
            *(_chain(entry.primary_accession, feature) for feature in _chains(entry)),
        ),
        sequence_version=(
            str(entry.entry_audit.sequence_version)
            if entry.entry_audit is not None and entry.entry_audit.sequence_version is not None
            else None
        ),
        checksum=entry.sequence.crc64,
    )


def translate_taxon(taxon: UniProtTaxon) -> TaxonTerm:
    return TaxonTerm(
        taxon_id=str(taxon.taxon_id),
        scientific_name=taxon.scientific_name,
        common_name=taxon.common_name,
        mnemonic=taxon.mnemonic,
        synonyms=tuple(dict.fromkeys([*taxon.synonyms, *taxon.other_names])),
    )


def _translate_inactive(entry: UniProtEntry) -> DeadEntry:
    reason = entry.inactive_reason
    replaced_by = tuple(reason.merge_demerge_to) if reason is not None else ()
    match reason.inactive_reason_type if reason is not None else None:
        case InactiveReasonType.MERGED:
            text = f"merged into {', '.join(replaced_by)}"
        case InactiveReasonType.DEMERGED:
            text = f"demerged into {', '.join(replaced_by)}"
        case InactiveReasonType.DELETED:
            text = "deleted"
        case _:
            text = "inactive"
    return DeadEntry(accession=entry.primary_accession, reason=text, replaced_by=replaced_by)


def _isoforms(
    entry: UniProtEntry,
    isoform_entries: Mapping[str, UniProtEntry],
) -> list[TranscriptEntry]:
    transcripts: list[TranscriptEntry] = []
    for comment in entry.comments:
        if comment.comment_type != ALTERNATIVE_PRODUCTS:
            continue
        for isoform in comment.isoforms:
            for isoform_id in isoform.isoform_ids:
                sequence: str | None = None
                fetched = isoform_entries.get(isoform_id)
                if fetched is not None and fetched.sequence is not None:
                    sequence = fetched.sequence.value
                elif isoform.isoform_sequence_status == DISPLAYED_ISOFORM and entry.sequence:
                    sequence = entry.sequence.value
                transcripts.append(
                    TranscriptEntry(
                        accession=isoform_id,
                        kind=TranscriptKind.ISOFORM,
                        name=isoform.name.value if isoform.name else None,
                        sequence=sequence,
                    )
                )
    return transcripts


def _chains(entry: UniProtEntry) -> list[UniProtFeature]:
    return [
        feature
        for feature in entry.features
        if feature.type in CHAIN_FEATURE_TYPES and feature.feature_id
    ]


def _chain(parent: str, feature: UniProtFeature) -> TranscriptEntry:
    return TranscriptEntry(
        accession=f"{parent}-{feature.feature_id}",
        kind=TranscriptKind.CHAIN,
        name=feature.description,
        start=feature.location.start.value,
        end=feature.location.end.value,
    )
