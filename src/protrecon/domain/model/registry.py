"""Values returned by the external protein registry and taxonomy service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from protrecon.domain.model.enums import TranscriptKind


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalReference:
    database: str
    identifier: str


@dataclass(frozen=True, slots=True, kw_only=True)
class TranscriptEntry:
    """Isoform or processed chain of a registry entry."""

    accession: str
    kind: TranscriptKind
    name: str | None = None
    sequence: str | None = None
    start: int | None = None
    end: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class CanonicalEntry:
    accession: str
    sequence: str
    taxon_id: str
    entry_name: str | None = None
    description: str | None = None
    secondary_accessions: tuple[str, ...] = ()
    gene_names: tuple[str, ...] = ()
    gene_synonyms: tuple[str, ...] = ()
    orf_names: tuple[str, ...] = ()
    locus_names: tuple[str, ...] = ()
    cross_references: tuple[ExternalReference, ...] = ()
    transcripts: tuple[TranscriptEntry, ...] = ()
    sequence_version: str | None = None
    checksum: str | None = None
    status: Literal["found"] = "found"

    def transcript(self, accession: str) -> TranscriptEntry | None:
        for transcript in self.transcripts:
            if transcript.accession.lower() == accession.lower():
                return transcript
        return None

    def sequence_for(self, accession: str) -> str | None:
        """Return the sequence a record claiming ``accession`` should carry."""

        if accession.lower() == self.accession.lower():
            return self.sequence
        transcript = self.transcript(accession)
        if transcript is None:
            return self.sequence
        if transcript.sequence:
            return transcript.sequence
        if transcript.start and transcript.end and transcript.end <= len(self.sequence):
            return self.sequence[transcript.start - 1 : transcript.end]
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class DeadEntry:
    """Accession withdrawn by the registry (deleted or merged away)."""

    accession: str
    reason: str | None = None
    replaced_by: tuple[str, ...] = ()
    status: Literal["dead"] = "dead"


@dataclass(frozen=True, slots=True, kw_only=True)
class NotFound:
    identifier: str
    status: Literal["not_found"] = "not_found"


type AccessionLookup = CanonicalEntry | DeadEntry | NotFound


@dataclass(frozen=True, slots=True, kw_only=True)
class TaxonTerm:
    taxon_id: str
    scientific_name: str | None = None
    common_name: str | None = None
    mnemonic: str | None = None
    synonyms: tuple[str, ...] = ()
    status: Literal["found"] = "found"


type TaxonLookup = TaxonTerm | NotFound
