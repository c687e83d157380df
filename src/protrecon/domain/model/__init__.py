"""Public domain model surface."""

from __future__ import annotations

from protrecon.domain.model.audit import (
    CreatedEvent,
    DeadEvent,
    DeletedEvent,
    ErrorEvent,
    ErrorKind,
    EventKind,
    MergedEvent,
    MergeReport,
    ProcessSealedError,
    ProcessStatus,
    RangeChangedEvent,
    RangeStatus,
    UpdatedEvent,
    UpdateEvent,
    UpdateProcess,
)
from protrecon.domain.model.enums import (
    REGISTRY_ALIAS_TYPES,
    AliasType,
    AnnotationTopic,
    Database,
    Qualifier,
    ReviewState,
    TranscriptKind,
)
from protrecon.domain.model.organism import SPECIAL_TAXA, Organism, is_special_taxon
from protrecon.domain.model.protein import (
    Alias,
    Annotation,
    CrossReference,
    DuplicateIdentityError,
    FeatureRange,
    ParticipationRef,
    ProteinRecord,
    RecordSnapshot,
)
from protrecon.domain.model.registry import (
    AccessionLookup,
    CanonicalEntry,
    DeadEntry,
    ExternalReference,
    NotFound,
    TaxonLookup,
    TaxonTerm,
    TranscriptEntry,
)
from protrecon.domain.model.sequence import (
    is_sequence_changed,
    normalize_sequence,
    sequence_checksum,
    sequence_conservation,
    subsequence,
)

__all__ = [  # noqa: RUF022
    # protein
    "ProteinRecord",
    "CrossReference",
    "Alias",
    "Annotation",
    "ParticipationRef",
    "FeatureRange",
    "RecordSnapshot",
    "DuplicateIdentityError",
    # organism
    "Organism",
    "SPECIAL_TAXA",
    "is_special_taxon",
    # registry values
    "AccessionLookup",
    "CanonicalEntry",
    "DeadEntry",
    "ExternalReference",
    "NotFound",
    "TaxonLookup",
    "TaxonTerm",
    "TranscriptEntry",
    # audit
    "UpdateProcess",
    "UpdateEvent",
    "CreatedEvent",
    "UpdatedEvent",
    "DeletedEvent",
    "MergedEvent",
    "MergeReport",
    "DeadEvent",
    "RangeChangedEvent",
    "ErrorEvent",
    "ErrorKind",
    "EventKind",
    "RangeStatus",
    "ProcessStatus",
    "ProcessSealedError",
    # enums
    "AliasType",
    "AnnotationTopic",
    "Database",
    "Qualifier",
    "REGISTRY_ALIAS_TYPES",
    "ReviewState",
    "TranscriptKind",
    # sequence
    "is_sequence_changed",
    "normalize_sequence",
    "sequence_checksum",
    "sequence_conservation",
    "subsequence",
]
