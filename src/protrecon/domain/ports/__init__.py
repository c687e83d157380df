"""Domain port definitions for adapters."""

from __future__ import annotations

from .audit import AuditSink
from .persistence import OrganismRepository, ProteinRepository
from .registry import ProteinRegistry, TaxonomyService
from .unit_of_work import (
    RepositoryCollection,
    UnitOfWork,
    UpdateRepositories,
    UpdateUnitOfWork,
)

__all__ = [
    "AuditSink",
    "OrganismRepository",
    "ProteinRegistry",
    "ProteinRepository",
    "RepositoryCollection",
    "TaxonomyService",
    "UnitOfWork",
    "UpdateRepositories",
    "UpdateUnitOfWork",
]
