"""SQLAlchemy repositories returning fully hydrated aggregates.

Children are rewritten on every save, keyed by their position, so stored order
matches the in-memory order exactly.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, select

from protrecon.domain.model import (
    Alias,
    Annotation,
    CrossReference,
    FeatureRange,
    Organism,
    ParticipationRef,
    ProteinRecord,
    Qualifier,
    ReviewState,
)

from .mappings import (
    PROTEIN_CHILD_TABLES,
    feature_range_table,
    organism_alias_table,
    organism_table,
    participation_table,
    protein_alias_table,
    protein_annotation_table,
    protein_table,
    protein_xref_table,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import Row, Table
    from sqlalchemy.orm import Session

RECORD_ID_PREFIX = "PROT-"


class SqlAlchemyProteinRepository:
    def __init__(self, session: Session, *, id_prefix: str = RECORD_ID_PREFIX) -> None:
        self.session = session
        self._id_prefix = id_prefix

    def get(self, record_id: str) -> ProteinRecord | None:
        records = self._load([record_id])
        return records[0] if records else None

    def save(self, record: ProteinRecord) -> None:
        values = {
            "short_label": record.short_label,
            "taxon_id": record.taxon_id,
            "sequence": record.sequence,
            "full_name": record.full_name,
            "checksum": record.checksum,
            "created_at": record.created_at,
            "review_state": record.review_state,
            "has_feature_conflicts": record.has_feature_conflicts,
        }
        exists = self.session.execute(
            select(protein_table.c.id).where(protein_table.c.id == record.id)
        ).first()
        if exists is None:
            self.session.execute(insert(protein_table).values(id=record.id, **values))
        else:
            self.session.execute(
                protein_table.update().where(protein_table.c.id == record.id).values(**values)
            )
            self._delete_children(record.id)

        self._insert_rows(
            protein_xref_table,
            record.id,
            [
                {
                    "database": xref.database,
                    "identifier": xref.identifier,
                    "qualifier": xref.qualifier,
                    "release_version": xref.release_version,
                }
                for xref in record.cross_references
            ],
        )
        self._insert_rows(
            protein_alias_table,
            record.id,
            [{"type": alias.type, "name": alias.name} for alias in record.aliases],
        )
        self._insert_rows(
            protein_annotation_table,
            record.id,
            [{"topic": note.topic, "text": note.text} for note in record.annotations],
        )
        self._insert_rows(
            participation_table,
            record.id,
            [
                {"interaction_id": ref.interaction_id, "component_id": ref.component_id}
                for ref in record.participations
            ],
        )
        self._insert_rows(
            feature_range_table,
            record.id,
            [
                {
                    "feature_id": feature.feature_id,
                    "component_id": feature.component_id,
                    "interaction_id": feature.interaction_id,
                    "range_start": feature.start,
                    "range_end": feature.end,
                    "sequence_snapshot": feature.sequence_snapshot,
                }
                for feature in record.feature_ranges
            ],
        )

    def delete(self, record_id: str) -> None:
        self._delete_children(record_id)
        self.session.execute(delete(protein_table).where(protein_table.c.id == record_id))

    def find_by_external_identity(self, database: str, identifier: str) -> ProteinRecord | None:
        records = self.find_all_by_external_identity(database, identifier)
        return records[0] if records else None

    def find_all_by_external_identity(
        self, database: str, identifier: str
    ) -> list[ProteinRecord]:
        stmt = (
            select(protein_xref_table.c.protein_id)
            .where(
                func.lower(protein_xref_table.c.database) == database.lower(),
                func.lower(protein_xref_table.c.identifier) == identifier.strip().lower(),
                protein_xref_table.c.qualifier == Qualifier.IDENTITY,
            )
            .distinct()
        )
        ids = list(self.session.execute(stmt).scalars())
        return self._load(ids)

    def list_ids(self) -> list[str]:
        stmt = select(protein_table.c.id).order_by(protein_table.c.created_at, protein_table.c.id)
        return list(self.session.execute(stmt).scalars())

    def short_labels_like(self, prefix: str) -> set[str]:
        stmt = select(protein_table.c.short_label).where(
            protein_table.c.short_label.ilike(f"{prefix}%")
        )
        return set(self.session.execute(stmt).scalars())

    def next_id(self) -> str:
        return f"{self._id_prefix}{uuid.uuid4().hex[:12].upper()}"

    # Hydration

    def _load(self, record_ids: Sequence[str]) -> list[ProteinRecord]:
        if not record_ids:
            return []
        rows = self.session.execute(
            select(protein_table)
            .where(protein_table.c.id.in_(record_ids))
            .order_by(protein_table.c.created_at, protein_table.c.id)
        ).all()
        if not rows:
            return []
        ids = [row.id for row in rows]
        xrefs = self._children(protein_xref_table, ids)
        aliases = self._children(protein_alias_table, ids)
        annotations = self._children(protein_annotation_table, ids)
        participations = self._children(participation_table, ids)
        ranges = self._children(feature_range_table, ids)

        return [
            ProteinRecord(
                id=row.id,
                short_label=row.short_label,
                taxon_id=row.taxon_id,
                sequence=row.sequence,
                full_name=row.full_name,
                checksum=row.checksum,
                created_at=row.created_at,
                review_state=ReviewState(row.review_state),
                has_feature_conflicts=row.has_feature_conflicts,
            ).restore_children(
                cross_references=(
                    CrossReference(
                        database=child.database,
                        identifier=child.identifier,
                        qualifier=Qualifier(child.qualifier),
                        release_version=child.release_version,
                    )
                    for child in xrefs[row.id]
                ),
                aliases=(Alias(type=child.type, name=child.name) for child in aliases[row.id]),
                annotations=(
                    Annotation(topic=child.topic, text=child.text)
                    for child in annotations[row.id]
                ),
                participations=(
                    ParticipationRef(
                        interaction_id=child.interaction_id, component_id=child.component_id
                    )
                    for child in participations[row.id]
                ),
                feature_ranges=(
                    FeatureRange(
                        feature_id=child.feature_id,
                        component_id=child.component_id,
                        interaction_id=child.interaction_id,
                        start=child.range_start,
                        end=child.range_end,
                        sequence_snapshot=child.sequence_snapshot,
                    )
                    for child in ranges[row.id]
                ),
            )
            for row in rows
        ]

    def _children(self, table: Table, record_ids: Sequence[str]) -> dict[str, list[Row[Any]]]:
        grouped: dict[str, list[Row[Any]]] = defaultdict(list)
        stmt = (
            select(table)
            .where(table.c.protein_id.in_(record_ids))
            .order_by(table.c.protein_id, table.c.position)
        )
        for row in self.session.execute(stmt):
            grouped[row.protein_id].append(row)
        return grouped

    def _insert_rows(self, table: Table, record_id: str, rows: Iterable[dict[str, Any]]) -> None:
        values = [
            {"protein_id": record_id, "position": position, **row}
            for position, row in enumerate(rows)
        ]
        if values:
            self.session.execute(insert(table), values)

    def _delete_children(self, record_id: str) -> None:
        for table in PROTEIN_CHILD_TABLES:
            self.session.execute(delete(table).where(table.c.protein_id == record_id))


class SqlAlchemyOrganismRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_taxon_id(self, taxon_id: str) -> Organism | None:
        row = self.session.execute(
            select(organism_table).where(organism_table.c.taxon_id == taxon_id.strip())
        ).first()
        if row is None:
            return None
        return self._hydrate(row)

    def add(self, organism: Organism) -> None:
        self.session.execute(
            insert(organism_table).values(
                taxon_id=organism.taxon_id,
                short_label=organism.short_label,
                full_name=organism.full_name,
            )
        )
        if organism.aliases:
            self.session.execute(
                insert(organism_alias_table),
                [
                    {"taxon_id": organism.taxon_id, "position": position, "name": name}
                    for position, name in enumerate(organism.aliases)
                ],
            )

    def list_all(self) -> list[Organism]:
        rows = self.session.execute(select(organism_table).order_by(organism_table.c.taxon_id))
        return [self._hydrate(row) for row in rows]

    def _hydrate(self, row: Row[Any]) -> Organism:
        aliases = self.session.execute(
            select(organism_alias_table.c.name)
            .where(organism_alias_table.c.taxon_id == row.taxon_id)
            .order_by(organism_alias_table.c.position)
        ).scalars()
        return Organism(
            taxon_id=row.taxon_id,
            short_label=row.short_label,
            full_name=row.full_name,
            aliases=list(aliases),
        )
