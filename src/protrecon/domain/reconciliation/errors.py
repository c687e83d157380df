"""Exceptions raised by the reconciliation core.

The error taxonomy itself is ``ErrorKind``; exceptions only carry a kind so that
callers can turn them into ``ErrorEvent`` records or abort the run.
"""

from __future__ import annotations

from protrecon.domain.model import ErrorKind, ProcessSealedError


class ReconciliationError(RuntimeError):
    """Base class for errors tied to one kind of the error taxonomy."""

    kind: ErrorKind = ErrorKind.FATAL_INTERNAL

    def __init__(self, message: str, *, record_ids: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.record_ids = record_ids


class RegistryUnavailableError(ReconciliationError):
    """Transient registry or taxonomy failure (timeouts, transport errors, 5xx)."""

    kind = ErrorKind.REGISTRY_UNAVAILABLE


class InvalidTaxonError(ReconciliationError, ValueError):
    """Raised for taxon ids that are neither integers nor reserved pseudo ids."""

    kind = ErrorKind.ORGANISM_CONFLICT


class FatalInternalError(ReconciliationError):
    """Unrecoverable failure: the whole run is aborted."""

    kind = ErrorKind.FATAL_INTERNAL


__all__ = [
    "FatalInternalError",
    "InvalidTaxonError",
    "ProcessSealedError",
    "ReconciliationError",
    "RegistryUnavailableError",
]
