"""Field synchronization of a uniquely resolved record with its registry entry."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from protrecon.domain.model import (
    REGISTRY_ALIAS_TYPES,
    Alias,
    AliasType,
    CrossReference,
    ErrorEvent,
    ErrorKind,
    Qualifier,
    UpdatedEvent,
    is_sequence_changed,
    sequence_checksum,
    sequence_conservation,
)

from .ranges import annotate_invalid_ranges, apply_range_report, range_events, resolve_ranges

if TYPE_CHECKING:
    from protrecon.domain.model import CanonicalEntry, ProteinRecord, UpdateEvent

    from .contracts import RangeReport

log = getLogger(__name__)


def expected_aliases(entry: CanonicalEntry) -> list[Alias]:
    aliases = [Alias(type=AliasType.GENE_NAME, name=name) for name in entry.gene_names]
    aliases.extend(Alias(type=AliasType.GENE_NAME_SYNONYM, name=n) for n in entry.gene_synonyms)
    aliases.extend(Alias(type=AliasType.ORF_NAME, name=name) for name in entry.orf_names)
    aliases.extend(Alias(type=AliasType.LOCUS_NAME, name=name) for name in entry.locus_names)
    return list(dict.fromkeys(aliases))


@dataclass(slots=True, kw_only=True)
class SyncOutcome:
    record: ProteinRecord
    changed_fields: list[str] = field(default_factory=list)
    events: list[UpdateEvent] = field(default_factory=list)
    range_report: RangeReport | None = None
    skipped: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.changed_fields)


@dataclass(slots=True)
class FieldSynchronizer:
    registry_database: str

    def synchronize(
        self,
        record: ProteinRecord,
        entry: CanonicalEntry,
        *,
        accession: str,
    ) -> SyncOutcome:
        """Bring ``record`` in line with ``entry`` for the claimed ``accession``.

        An isoform or chain accession is synchronized against its own sequence.
        """

        outcome = SyncOutcome(record=record)
        if record.taxon_id.strip() != entry.taxon_id.strip():
            outcome.skipped = True
            outcome.events.append(
                ErrorEvent(
                    error=ErrorKind.ORGANISM_CONFLICT,
                    details=(
                        f"Record {record.id} has taxon {record.taxon_id} but {accession} "
                        f"belongs to taxon {entry.taxon_id}"
                    ),
                    record_ids=(record.id,),
                    accession=accession,
                )
            )
            return outcome

        before = record.snapshot()
        old_sequence = record.sequence
        new_sequence = self._sync_sequence(record, entry, accession, outcome)

        if entry.description and entry.description != record.full_name:
            record.full_name = entry.description
            outcome.changed_fields.append("full_name")

        self._sync_identity_version(record, entry, accession, outcome)
        self._sync_cross_references(record, entry, outcome)
        self._sync_aliases(record, entry, outcome)

        if outcome.changed:
            sequence_changed = new_sequence is not None
            outcome.events.append(
                UpdatedEvent(
                    record_id=record.id,
                    accession=accession,
                    changed_fields=tuple(outcome.changed_fields),
                    before=before,
                    after=record.snapshot(),
                    old_sequence=old_sequence if sequence_changed else None,
                    new_sequence=new_sequence,
                    conservation=(
                        sequence_conservation(old_sequence, new_sequence)
                        if sequence_changed and old_sequence
                        else None
                    ),
                )
            )
        return outcome

    def _sync_sequence(
        self,
        record: ProteinRecord,
        entry: CanonicalEntry,
        accession: str,
        outcome: SyncOutcome,
    ) -> str | None:
        target = entry.sequence_for(accession)
        if not target:
            outcome.events.append(
                ErrorEvent(
                    error=ErrorKind.SEQUENCE_CONFLICT,
                    details=f"The registry provides no sequence for {accession}",
                    record_ids=(record.id,),
                    accession=accession,
                )
            )
            return None

        if not is_sequence_changed(record.sequence, target):
            if record.checksum is None:
                record.checksum = sequence_checksum(target)
                outcome.changed_fields.append("checksum")
            return None

        old_sequence = record.sequence
        report = resolve_ranges(old_sequence, target, record.feature_ranges)
        apply_range_report(record, report)
        outcome.range_report = report
        outcome.events.extend(range_events(record.id, old_sequence, report, accession=accession))
        if report.has_conflicts:
            annotate_invalid_ranges(record, report)
            outcome.events.append(
                ErrorEvent(
                    error=ErrorKind.SEQUENCE_CONFLICT,
                    details=(
                        f"{len(report.invalid)} range(s) of {record.id} cannot be re-positioned "
                        f"on the new sequence of {accession}"
                    ),
                    record_ids=(record.id,),
                    accession=accession,
                )
            )
        record.update_sequence(target)
        outcome.changed_fields.append("sequence")
        log.info("Sequence of %s updated from %s", record.id, accession)
        return target

    def _sync_identity_version(
        self,
        record: ProteinRecord,
        entry: CanonicalEntry,
        accession: str,
        outcome: SyncOutcome,
    ) -> None:
        if entry.sequence_version is None:
            return
        for identity in record.identity_references(self.registry_database):
            if identity.identifier.upper() != accession.upper():
                continue
            if identity.release_version == entry.sequence_version:
                continue
            record.replace_cross_reference(
                identity,
                CrossReference(
                    database=identity.database,
                    identifier=identity.identifier,
                    qualifier=identity.qualifier,
                    release_version=entry.sequence_version,
                ),
            )
            outcome.changed_fields.append("identity_version")

    def _sync_cross_references(
        self,
        record: ProteinRecord,
        entry: CanonicalEntry,
        outcome: SyncOutcome,
    ) -> None:
        wanted = {(ref.database.lower(), ref.identifier.lower()): ref for ref in entry.cross_references}
        managed = {database for database, _ in wanted}
        changed = False

        for xref in record.cross_references:
            key = (xref.database.lower(), xref.identifier.lower())
            if xref.qualifier == Qualifier.OTHER and key[0] in managed and key not in wanted:
                record.remove_cross_reference(xref)
                changed = True

        for ref in entry.cross_references:
            if any(xref.matches(ref.database, ref.identifier) for xref in record.cross_references):
                continue
            record.add_cross_reference(
                CrossReference(database=ref.database, identifier=ref.identifier)
            )
            changed = True

        if changed:
            outcome.changed_fields.append("cross_references")

    def _sync_aliases(
        self,
        record: ProteinRecord,
        entry: CanonicalEntry,
        outcome: SyncOutcome,
    ) -> None:
        wanted = expected_aliases(entry)
        changed = False
        for alias in record.aliases:
            if alias.type in REGISTRY_ALIAS_TYPES and alias not in wanted:
                record.remove_alias(alias)
                changed = True
        for alias in wanted:
            changed = record.add_alias(alias) or changed
        if changed:
            outcome.changed_fields.append("aliases")
