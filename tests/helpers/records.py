from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from protrecon.domain.model import (
    CrossReference,
    Database,
    FeatureRange,
    ParticipationRef,
    ProteinRecord,
    Qualifier,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

DEFAULT_CREATED_AT = datetime(2020, 1, 1, tzinfo=UTC)


def identity(accession: str, *, database: str = Database.UNIPROTKB) -> CrossReference:
    return CrossReference(database=database, identifier=accession, qualifier=Qualifier.IDENTITY)


def make_record(
    record_id: str,
    *,
    accessions: Iterable[str] = (),
    created_at: datetime = DEFAULT_CREATED_AT,
    sequence: str = "MKTAYIAKQRQISFVKSHFSRQ",
    taxon_id: str = "9606",
    participations: Iterable[ParticipationRef] = (),
    ranges: Iterable[FeatureRange] = (),
) -> ProteinRecord:
    record = ProteinRecord(
        id=record_id,
        short_label=record_id.lower(),
        taxon_id=taxon_id,
        sequence=sequence,
        created_at=created_at,
    )
    for accession in accessions:
        record.add_cross_reference(identity(accession))
    for participation in participations:
        record.add_participation(participation)
    for feature_range in ranges:
        record.add_feature_range(feature_range)
    return record


def participation(interaction_id: str, component_id: str) -> ParticipationRef:
    return ParticipationRef(interaction_id=interaction_id, component_id=component_id)


def feature_range(
    feature_id: str,
    start: int | None,
    end: int | None,
    *,
    component_id: str = "C1",
    interaction_id: str = "I1",
) -> FeatureRange:
    return FeatureRange(
        feature_id=feature_id,
        component_id=component_id,
        interaction_id=interaction_id,
        start=start,
        end=end,
    )
