"""Reconciliation of local protein records with the external registry."""

from __future__ import annotations

from .contracts import (
    AmbiguousIdentity,
    IdentityResolution,
    InvalidRange,
    NoIdentity,
    RangeClassification,
    RangeReport,
    RegularTaxon,
    ShiftedRange,
    SpecialTaxon,
    StableRange,
    UniqueIdentity,
)
from .dead import DeadEntryHandler, DeadEntryOutcome
from .engine import EngineSettings, ReconciliationEngine
from .errors import (
    FatalInternalError,
    InvalidTaxonError,
    ReconciliationError,
    RegistryUnavailableError,
)
from .identity import classify_taxon, partition_records, resolve_identity
from .merge import DuplicateMerger, MergeOutcome, order_group, select_survivor
from .organisms import OrganismResolution, OrganismResolver
from .ranges import classify_range, resolve_ranges
from .recorder import EventBuffer, EventListener, UpdateEventRecorder
from .retry import RegistryCaller, RetrySettings
from .synchronize import FieldSynchronizer, SyncOutcome

__all__ = [
    "AmbiguousIdentity",
    "DeadEntryHandler",
    "DeadEntryOutcome",
    "DuplicateMerger",
    "EngineSettings",
    "EventBuffer",
    "EventListener",
    "FatalInternalError",
    "FieldSynchronizer",
    "IdentityResolution",
    "InvalidRange",
    "InvalidTaxonError",
    "MergeOutcome",
    "NoIdentity",
    "OrganismResolution",
    "OrganismResolver",
    "RangeClassification",
    "RangeReport",
    "ReconciliationEngine",
    "ReconciliationError",
    "RegistryCaller",
    "RegistryUnavailableError",
    "RegularTaxon",
    "RetrySettings",
    "ShiftedRange",
    "SpecialTaxon",
    "StableRange",
    "SyncOutcome",
    "UniqueIdentity",
    "UpdateEventRecorder",
    "classify_range",
    "classify_taxon",
    "order_group",
    "partition_records",
    "resolve_identity",
    "resolve_ranges",
    "select_survivor",
]
