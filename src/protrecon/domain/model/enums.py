"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class Database(StrEnum):
    """Well-known cross-reference databases."""

    UNIPROTKB = "uniprotkb"
    INTACT = "intact"


class Qualifier(StrEnum):
    IDENTITY = "identity"
    SECONDARY = "secondary"
    PARENT_ISOFORM = "parent-isoform"
    PARENT_CHAIN = "parent-chain"
    OTHER = "other"


class AnnotationTopic(StrEnum):
    """Annotation topics, several of which are structural markers."""

    HIDDEN = "hidden"
    CHAIN_START = "chain-start"
    CHAIN_END = "chain-end"
    CAUTION = "caution"
    NO_UNIPROT_UPDATE = "no-uniprot-update"
    SEQUENCE_VERSION = "sequence-version"
    INVALID_RANGE = "invalid-range"
    COMMENT = "comment"


class AliasType(StrEnum):
    GENE_NAME = "gene name"
    GENE_NAME_SYNONYM = "gene name synonym"
    ORF_NAME = "orf name"
    LOCUS_NAME = "locus name"
    SYNONYM = "synonym"


# Alias types owned by the registry; stale values of these are removed on sync.
REGISTRY_ALIAS_TYPES: Final[frozenset[str]] = frozenset(
    {
        AliasType.GENE_NAME,
        AliasType.GENE_NAME_SYNONYM,
        AliasType.ORF_NAME,
        AliasType.LOCUS_NAME,
    }
)


class ReviewState(StrEnum):
    """Curation state of a record with respect to its registry entry."""

    LIVE = "live"
    DEAD_PENDING_REVIEW = "dead_pending_review"
    REVIEWED_MERGED = "reviewed_merged"
    REVIEWED_DELETED = "reviewed_deleted"
    REVIEWED_KEPT_AS_DEAD = "reviewed_kept_as_dead"


class TranscriptKind(StrEnum):
    ISOFORM = "isoform"
    CHAIN = "chain"
