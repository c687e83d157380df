"""Handling of registry entries that have been withdrawn ("dead")."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from protrecon.domain.model import (
    Annotation,
    AnnotationTopic,
    DeadEvent,
    Qualifier,
    ReviewState,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from protrecon.domain.model import CrossReference, ProteinRecord

log = getLogger(__name__)

WITHDRAWN_CAUTION: Final[str] = "The sequence has been withdrawn from uniprot."

# Annotations asserting that the registry entry is live.
_LIVE_ENTRY_TOPICS: Final[frozenset[str]] = frozenset({AnnotationTopic.SEQUENCE_VERSION})


@dataclass(slots=True, kw_only=True)
class DeadEntryOutcome:
    accession: str
    demoted: list[ProteinRecord] = field(default_factory=list)
    untouched: list[ProteinRecord] = field(default_factory=list)
    events: list[DeadEvent] = field(default_factory=list)


@dataclass(slots=True)
class DeadEntryHandler:
    """Moves records claiming a withdrawn accession to ``DeadPendingReview``.

    Records are never deleted here. Handling an already demoted record is a no-op.
    """

    registry_database: str
    institution_database: str

    def handle(
        self,
        accession: str,
        records: Iterable[ProteinRecord],
        *,
        reason: str | None = None,
    ) -> DeadEntryOutcome:
        outcome = DeadEntryOutcome(accession=accession)
        for record in records:
            event = self._demote(accession, record, reason)
            if event is None:
                outcome.untouched.append(record)
                continue
            outcome.demoted.append(record)
            outcome.events.append(event)
        return outcome

    def _demote(
        self, accession: str, record: ProteinRecord, reason: str | None
    ) -> DeadEvent | None:
        identities = [
            xref
            for xref in record.identity_references(self.registry_database)
            if xref.identifier.strip().upper() == accession.strip().upper()
        ]
        if not identities:
            return None

        before = record.snapshot()
        demoted: list[CrossReference] = []
        removed_xrefs: list[CrossReference] = []

        kept = identities[0]
        record.replace_cross_reference(kept, kept.requalified(Qualifier.SECONDARY))
        demoted.append(kept)
        # Collapse repeated identities of the same accession into the one demoted above.
        for duplicate in identities[1:]:
            record.remove_cross_reference(duplicate)
            removed_xrefs.append(duplicate)

        for xref in record.cross_references:
            if self._keeps(xref):
                continue
            record.remove_cross_reference(xref)
            removed_xrefs.append(xref)

        removed_annotations = [
            annotation for annotation in record.annotations if annotation.topic in _LIVE_ENTRY_TOPICS
        ]
        for annotation in removed_annotations:
            record.remove_annotation(annotation)

        record.add_annotation(Annotation(topic=AnnotationTopic.NO_UNIPROT_UPDATE))
        record.add_annotation(Annotation(topic=AnnotationTopic.CAUTION, text=WITHDRAWN_CAUTION))
        record.review_state = ReviewState.DEAD_PENDING_REVIEW

        log.info(
            "Record %s demoted: %s is dead (%d cross-references removed)",
            record.id,
            accession,
            len(removed_xrefs),
        )
        return DeadEvent(
            accession=accession,
            record_id=record.id,
            demoted_references=tuple(demoted),
            removed_cross_references=tuple(removed_xrefs),
            removed_annotations=tuple(removed_annotations),
            before=before,
            after=record.snapshot(),
            reason=reason,
        )

    def _keeps(self, xref: CrossReference) -> bool:
        database = xref.database.lower()
        if database == self.institution_database.lower():
            return True
        return database == self.registry_database.lower() and xref.qualifier == Qualifier.SECONDARY
