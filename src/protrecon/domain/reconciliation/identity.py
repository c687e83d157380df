"""Identity resolution of local protein records against the registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from protrecon.domain.model import SPECIAL_TAXA, CrossReference, Qualifier

from .contracts import (
    AmbiguousIdentity,
    NoIdentity,
    RegularTaxon,
    SpecialTaxon,
    UniqueIdentity,
)
from .errors import InvalidTaxonError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from protrecon.domain.model import ProteinRecord

    from .contracts import IdentityResolution, TaxonClassification

log = getLogger(__name__)


def resolve_identity(record: ProteinRecord, database: str) -> IdentityResolution:
    """Classify ``record`` by its identity cross-references to ``database``.

    Candidates keep their encounter order and are deduplicated case-insensitively.
    """

    seen: dict[str, str] = {}
    first_reference = None
    for xref in record.cross_references:
        if xref.qualifier != Qualifier.IDENTITY or xref.database.lower() != database.lower():
            continue
        key = xref.identifier.strip().upper()
        if not key or key in seen:
            continue
        seen[key] = xref.identifier.strip()
        if first_reference is None:
            first_reference = xref

    if first_reference is None:
        return NoIdentity(reason=f"no identity cross-reference to {database}")
    if len(seen) == 1:
        return UniqueIdentity(accession=next(iter(seen.values())), reference=first_reference)
    return AmbiguousIdentity(accessions=tuple(seen.values()))


def classify_taxon(taxon_id: str) -> TaxonClassification:
    """Split reserved pseudo-taxon ids from regular taxonomy ids."""

    normalized = taxon_id.strip()
    label = SPECIAL_TAXA.get(normalized)
    if label is not None:
        return SpecialTaxon(taxon_id=normalized, label=label)
    try:
        int(normalized)
    except ValueError as exc:
        raise InvalidTaxonError(f"The taxon id {taxon_id!r} is not a valid taxid") from exc
    return RegularTaxon(taxon_id=normalized)


def accession_key(accession: str) -> str:
    return accession.strip().upper()


def claimed_accession(record: ProteinRecord, database: str) -> str | None:
    """Return the single accession ``record`` claims, None when it must not be synchronized."""

    if record.is_update_blocked:
        return None
    match resolve_identity(record, database):
        case UniqueIdentity(accession=accession):
            return accession
        case _:
            return None


def adopt_primary_accession(
    record: ProteinRecord, database: str, primary: str
) -> tuple[CrossReference, ...]:
    """Point the identity of ``record`` at ``primary``.

    The replaced identities stay on the record as ``secondary`` references, one per
    accession. Returns them, or an empty tuple when ``record`` already claims ``primary``.
    """

    identities = record.identity_references(database)
    replaced = tuple(
        identity
        for identity in identities
        if accession_key(identity.identifier) != accession_key(primary)
    )
    if not replaced:
        return ()

    for identity in identities:
        record.remove_cross_reference(identity)
    record.add_cross_reference(
        CrossReference(
            database=identities[0].database,
            identifier=primary.strip(),
            qualifier=Qualifier.IDENTITY,
        )
    )
    demoted: dict[str, CrossReference] = {}
    for identity in replaced:
        demoted.setdefault(
            accession_key(identity.identifier), identity.requalified(Qualifier.SECONDARY)
        )
    for reference in demoted.values():
        record.add_cross_reference(reference)
    return tuple(demoted.values())


@dataclass(slots=True)
class IdentityPartition:
    """Candidate records split by identity outcome.

    ``groups`` maps an accession key to the records claiming it, in input order.
    """

    groups: dict[str, list[ProteinRecord]] = field(default_factory=dict)
    accessions: dict[str, str] = field(default_factory=dict)
    ambiguous: list[tuple[ProteinRecord, AmbiguousIdentity]] = field(default_factory=list)
    unresolved: list[ProteinRecord] = field(default_factory=list)
    blocked: list[ProteinRecord] = field(default_factory=list)


def partition_records(records: Iterable[ProteinRecord], database: str) -> IdentityPartition:
    """Resolve every record and group unique ones by accession."""

    partition = IdentityPartition()
    for record in records:
        if record.is_update_blocked:
            log.info("Skipping %s: record is marked as not to be updated", record.id)
            partition.blocked.append(record)
            continue
        resolution = resolve_identity(record, database)
        match resolution:
            case UniqueIdentity(accession=accession):
                key = accession_key(accession)
                partition.groups.setdefault(key, []).append(record)
                partition.accessions.setdefault(key, accession)
            case AmbiguousIdentity():
                partition.ambiguous.append((record, resolution))
            case NoIdentity():
                partition.unresolved.append(record)
    return partition
