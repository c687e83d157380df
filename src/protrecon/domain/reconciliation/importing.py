"""Instantiate new local records from registry entries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from protrecon.domain.model import (
    Annotation,
    AnnotationTopic,
    CrossReference,
    ProteinRecord,
    Qualifier,
    TranscriptKind,
)

from .synchronize import expected_aliases

if TYPE_CHECKING:
    from protrecon.domain.model import CanonicalEntry


def record_from_entry(
    entry: CanonicalEntry,
    *,
    accession: str,
    record_id: str,
    short_label: str,
    registry_database: str,
) -> ProteinRecord:
    """Build a record claiming ``accession``; isoforms and chains link to their parent."""

    transcript = entry.transcript(accession)
    record = ProteinRecord(
        id=record_id,
        short_label=short_label,
        taxon_id=entry.taxon_id,
        sequence=entry.sequence_for(accession) or "",
        full_name=entry.description,
    )
    record.add_cross_reference(
        CrossReference(
            database=registry_database,
            identifier=accession,
            qualifier=Qualifier.IDENTITY,
            release_version=entry.sequence_version,
        )
    )
    if transcript is not None:
        parent_qualifier = (
            Qualifier.PARENT_ISOFORM
            if transcript.kind == TranscriptKind.ISOFORM
            else Qualifier.PARENT_CHAIN
        )
        record.add_cross_reference(
            CrossReference(
                database=registry_database,
                identifier=entry.accession,
                qualifier=parent_qualifier,
            )
        )
        if transcript.kind == TranscriptKind.CHAIN:
            record.add_annotation(
                Annotation(topic=AnnotationTopic.CHAIN_START, text=str(transcript.start))
            )
            record.add_annotation(
                Annotation(topic=AnnotationTopic.CHAIN_END, text=str(transcript.end))
            )
    for ref in entry.cross_references:
        record.add_cross_reference(CrossReference(database=ref.database, identifier=ref.identifier))
    for alias in expected_aliases(entry):
        record.add_alias(alias)
    return record
