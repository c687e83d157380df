"""UniProt REST response schemas (UniProtKB entries and taxonomy terms)."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

type Accession = str


class UniProtBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()
    _modeled_extras: ClassVar[frozenset[str]] = frozenset()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys, self._modeled_extras)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "UniProt %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class EntryType(StrEnum):
    SWISS_PROT = "UniProtKB reviewed (Swiss-Prot)"
    TREMBL = "UniProtKB unreviewed (TrEMBL)"
    INACTIVE = "Inactive"


class InactiveReasonType(StrEnum):
    DELETED = "DELETED"
    MERGED = "MERGED"
    DEMERGED = "DEMERGED"


class UniProtValue(UniProtBaseModel):
    value: str


class UniProtInactiveReason(UniProtBaseModel):
    inactive_reason_type: InactiveReasonType | None = Field(
        default=None, alias="inactiveReasonType"
    )
    merge_demerge_to: list[Accession] = Field(default_factory=list, alias="mergeDemergeTo")


class UniProtOrganism(UniProtBaseModel):
    taxon_id: int = Field(alias="taxonId")
    scientific_name: str | None = Field(default=None, alias="scientificName")
    common_name: str | None = Field(default=None, alias="commonName")
    lineage: list[str] = Field(default_factory=list)


class UniProtName(UniProtBaseModel):
    full_name: UniProtValue | None = Field(default=None, alias="fullName")
    short_names: list[UniProtValue] = Field(default_factory=list, alias="shortNames")


class UniProtProteinDescription(UniProtBaseModel):
    recommended_name: UniProtName | None = Field(default=None, alias="recommendedName")
    submission_names: list[UniProtName] = Field(default_factory=list, alias="submissionNames")
    alternative_names: list[UniProtName] = Field(default_factory=list, alias="alternativeNames")

    def display_name(self) -> str | None:
        for name in (self.recommended_name, *self.submission_names):
            if name is not None and name.full_name is not None:
                return name.full_name.value
        return None


class UniProtGene(UniProtBaseModel):
    gene_name: UniProtValue | None = Field(default=None, alias="geneName")
    synonyms: list[UniProtValue] = Field(default_factory=list)
    orf_names: list[UniProtValue] = Field(default_factory=list, alias="orfNames")
    ordered_locus_names: list[UniProtValue] = Field(
        default_factory=list, alias="orderedLocusNames"
    )


class UniProtSequence(UniProtBaseModel):
    value: str
    length: int | None = None
    crc64: str | None = None
    md5: str | None = None
    mol_weight: int | None = Field(default=None, alias="molWeight")


class UniProtCrossReference(UniProtBaseModel):
    database: str
    id: str


class UniProtPosition(UniProtBaseModel):
    value: int | None = None
    modifier: str | None = None


class UniProtLocation(UniProtBaseModel):
    start: UniProtPosition
    end: UniProtPosition


class UniProtFeature(UniProtBaseModel):
    type: str
    location: UniProtLocation
    description: str | None = None
    feature_id: str | None = Field(default=None, alias="featureId")


class UniProtIsoform(UniProtBaseModel):
    name: UniProtValue | None = None
    isoform_ids: list[Accession] = Field(default_factory=list, alias="isoformIds")
    isoform_sequence_status: str | None = Field(default=None, alias="isoformSequenceStatus")


class UniProtComment(UniProtBaseModel):
    comment_type: str = Field(alias="commentType")
    isoforms: list[UniProtIsoform] = Field(default_factory=list)


class UniProtEntryAudit(UniProtBaseModel):
    sequence_version: int | None = Field(default=None, alias="sequenceVersion")
    entry_version: int | None = Field(default=None, alias="entryVersion")


class UniProtEntry(UniProtBaseModel):
    """A UniProtKB entry as returned by ``/uniprotkb/{accession}.json``."""

    _modeled_extras: ClassVar[frozenset[str]] = frozenset(
        {"keywords", "references", "extraAttributes", "annotationScore", "proteinExistence"}
    )

    entry_type: EntryType | str = Field(alias="entryType")
    primary_accession: Accession = Field(alias="primaryAccession")
    secondary_accessions: list[Accession] = Field(
        default_factory=list, alias="secondaryAccessions"
    )
    uniprotkb_id: str | None = Field(default=None, alias="uniProtkbId")
    inactive_reason: UniProtInactiveReason | None = Field(default=None, alias="inactiveReason")
    organism: UniProtOrganism | None = None
    protein_description: UniProtProteinDescription | None = Field(
        default=None, alias="proteinDescription"
    )
    genes: list[UniProtGene] = Field(default_factory=list)
    comments: list[UniProtComment] = Field(default_factory=list)
    features: list[UniProtFeature] = Field(default_factory=list)
    cross_references: list[UniProtCrossReference] = Field(
        default_factory=list, alias="uniProtKBCrossReferences"
    )
    sequence: UniProtSequence | None = None
    entry_audit: UniProtEntryAudit | None = Field(default=None, alias="entryAudit")

    @property
    def is_inactive(self) -> bool:
        return self.entry_type == EntryType.INACTIVE


class UniProtTaxon(UniProtBaseModel):
    """A taxonomy term as returned by ``/taxonomy/{taxon_id}.json``."""

    _modeled_extras: ClassVar[frozenset[str]] = frozenset(
        {"lineage", "parent", "rank", "statistics", "strains", "hosts", "links", "active"}
    )

    taxon_id: int = Field(alias="taxonId")
    scientific_name: str | None = Field(default=None, alias="scientificName")
    common_name: str | None = Field(default=None, alias="commonName")
    mnemonic: str | None = None
    synonyms: list[str] = Field(default_factory=list)
    other_names: list[str] = Field(default_factory=list, alias="otherNames")
