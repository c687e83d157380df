"""SQLAlchemy adapter package for protrecon."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .repositories import SqlAlchemyOrganismRepository, SqlAlchemyProteinRepository

__all__ = [
    "SqlAlchemyOrganismRepository",
    "SqlAlchemyProteinRepository",
    "create_all_tables",
    "metadata",
]
