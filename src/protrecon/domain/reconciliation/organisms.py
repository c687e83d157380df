"""Look up or create the organisms referenced by protein records.

Reserved pseudo-taxon ids bypass the taxonomy service and map to singleton
placeholder organisms, one per id.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from protrecon.domain.model import NotFound, Organism, TaxonTerm

from .contracts import RegularTaxon, SpecialTaxon
from .identity import classify_taxon

if TYPE_CHECKING:
    from collections.abc import Callable

    from protrecon.domain.ports import TaxonomyService, UpdateUnitOfWork

    from .retry import RegistryCaller

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OrganismResolution:
    organism: Organism | None
    created: bool = False
    reason: str | None = None


def organism_from_term(term: TaxonTerm) -> Organism:
    """Build an organism: label from mnemonic, common name or taxon id (lower-cased)."""

    label = term.mnemonic or term.common_name or term.taxon_id
    return Organism(
        taxon_id=term.taxon_id,
        short_label=label.lower(),
        full_name=term.scientific_name,
        aliases=list(dict.fromkeys(term.synonyms)),
    )


class OrganismResolver:
    """Resolves taxon ids to persisted organisms, once per id and run.

    Each resolution runs in its own unit of work and is serialized, so concurrent
    units never create the same organism twice.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: Callable[[], UpdateUnitOfWork],
        taxonomy: TaxonomyService | None = None,
        caller: RegistryCaller | None = None,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._taxonomy = taxonomy
        self._caller = caller
        self._lock = threading.Lock()
        self._cache: dict[str, Organism] = {}

    def resolve(self, taxon_id: str) -> OrganismResolution:
        classification = classify_taxon(taxon_id)
        with self._lock:
            cached = self._cache.get(classification.taxon_id)
            if cached is not None:
                return OrganismResolution(organism=cached)
            resolution = self._load_or_create(classification)
            if resolution.organism is not None:
                self._cache[classification.taxon_id] = resolution.organism
            return resolution

    def _load_or_create(self, classification: SpecialTaxon | RegularTaxon) -> OrganismResolution:
        with self._unit_of_work_factory() as uow:
            repository = uow.repositories.organisms
            existing = repository.get_by_taxon_id(classification.taxon_id)
            if existing is not None:
                return OrganismResolution(organism=existing)

            match classification:
                case SpecialTaxon(taxon_id=special_id, label=label):
                    organism = Organism(taxon_id=special_id, short_label=label, full_name=label)
                case RegularTaxon(taxon_id=regular_id):
                    lookup = self._lookup(regular_id)
                    if isinstance(lookup, NotFound):
                        return OrganismResolution(
                            organism=None,
                            reason=f"taxon {regular_id} is unknown to the taxonomy service",
                        )
                    organism = organism_from_term(lookup)

            repository.add(organism)
            uow.commit()
            log.info("Created organism %s (%s)", organism.short_label, organism.taxon_id)
            return OrganismResolution(organism=organism, created=True)

    def _lookup(self, taxon_id: str) -> TaxonTerm | NotFound:
        if self._taxonomy is None:
            return TaxonTerm(taxon_id=taxon_id)
        taxonomy = self._taxonomy
        if self._caller is None:
            return taxonomy.lookup_by_taxon(taxon_id)
        return self._caller.call(
            lambda: taxonomy.lookup_by_taxon(taxon_id),
            description=f"taxonomy lookup {taxon_id}",
        )
