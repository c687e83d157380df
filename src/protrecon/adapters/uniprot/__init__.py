"""UniProt registry adapter."""

from __future__ import annotations

from .client import UniProtAPIError, UniProtClient
from .registry import UniProtRegistry
from .translator import parent_accession, translate_entry, translate_taxon

__all__ = [
    "UniProtAPIError",
    "UniProtClient",
    "UniProtRegistry",
    "parent_accession",
    "translate_entry",
    "translate_taxon",
]
