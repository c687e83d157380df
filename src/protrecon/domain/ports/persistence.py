"""Ports for persisting protein records and organisms."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from protrecon.domain.model import Organism, ProteinRecord


@runtime_checkable
class ProteinRepository(Protocol):
    """Explicit repository returning fully hydrated records (no lazy loading)."""

    def get(self, record_id: str) -> ProteinRecord | None: ...

    def save(self, record: ProteinRecord) -> None: ...

    def delete(self, record_id: str) -> None: ...

    def find_by_external_identity(self, database: str, identifier: str) -> ProteinRecord | None: ...

    def find_all_by_external_identity(
        self, database: str, identifier: str
    ) -> list[ProteinRecord]: ...

    def list_ids(self) -> list[str]: ...

    def short_labels_like(self, prefix: str) -> set[str]: ...

    def next_id(self) -> str: ...


@runtime_checkable
class OrganismRepository(Protocol):
    def get_by_taxon_id(self, taxon_id: str) -> Organism | None: ...

    def add(self, organism: Organism) -> None: ...

    def list_all(self) -> Iterable[Organism]: ...
