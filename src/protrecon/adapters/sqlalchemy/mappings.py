"""SQLAlchemy table metadata for protein records, organisms and the audit trail."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
)

from protrecon.domain.model import ProcessStatus, ReviewState

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def _owner_column() -> Column[str]:
    return Column(
        "protein_id",
        String(64),
        ForeignKey("protein.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


# Proteins --------------------------------------------------------------------

protein_table = Table(
    "protein",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("short_label", String(64), nullable=False, index=True),
    Column("taxon_id", String(32), nullable=False),
    Column("sequence", Text, nullable=False, default=""),
    Column("full_name", String(512)),
    Column("checksum", String(32)),
    Column("created_at", UTCDateTime, nullable=False),
    Column(
        "review_state",
        Enum(ReviewState, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReviewState.LIVE,
    ),
    Column("has_feature_conflicts", Boolean, nullable=False, default=False),
)

protein_xref_table = Table(
    "protein_xref",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _owner_column(),
    Column("position", Integer, nullable=False),
    Column("database", String(64), nullable=False),
    Column("identifier", String(128), nullable=False),
    Column("qualifier", String(32), nullable=False),
    Column("release_version", String(32)),
    Index("ix_protein_xref_database_identifier", "database", "identifier"),
)

protein_alias_table = Table(
    "protein_alias",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _owner_column(),
    Column("position", Integer, nullable=False),
    Column("type", String(64), nullable=False),
    Column("name", String(256), nullable=False),
)

protein_annotation_table = Table(
    "protein_annotation",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _owner_column(),
    Column("position", Integer, nullable=False),
    Column("topic", String(64), nullable=False),
    Column("text", Text),
)

participation_table = Table(
    "participation",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _owner_column(),
    Column("position", Integer, nullable=False),
    Column("interaction_id", String(64), nullable=False),
    Column("component_id", String(64), nullable=False),
)

feature_range_table = Table(
    "feature_range",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    _owner_column(),
    Column("position", Integer, nullable=False),
    Column("feature_id", String(64), nullable=False),
    Column("component_id", String(64), nullable=False),
    Column("interaction_id", String(64), nullable=False),
    Column("range_start", Integer),
    Column("range_end", Integer),
    Column("sequence_snapshot", Text),
)

PROTEIN_CHILD_TABLES: tuple[Table, ...] = (
    protein_xref_table,
    protein_alias_table,
    protein_annotation_table,
    participation_table,
    feature_range_table,
)

# Organisms -------------------------------------------------------------------

organism_table = Table(
    "organism",
    metadata,
    Column("taxon_id", String(32), primary_key=True),
    Column("short_label", String(64), nullable=False),
    Column("full_name", String(512)),
)

organism_alias_table = Table(
    "organism_alias",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "taxon_id",
        String(32),
        ForeignKey("organism.taxon_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("position", Integer, nullable=False),
    Column("name", String(256), nullable=False),
)

# Audit trail -----------------------------------------------------------------

update_process_table = Table(
    "update_process",
    metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("started_at", UTCDateTime, nullable=False),
    Column("finished_at", UTCDateTime),
    Column(
        "status",
        Enum(ProcessStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    ),
)

update_event_table = Table(
    "update_event",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "process_id",
        UUIDColumnType,
        ForeignKey("update_process.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("position", Integer, nullable=False),
    Column("kind", String(32), nullable=False),
    Column("occurred_at", UTCDateTime, nullable=False),
    Column("payload", JSON, nullable=False),
    Index("ix_update_event_process_position", "process_id", "position", unique=True),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the metadata (tests and throwaway databases)."""

    log.info("Creating all tables")
    metadata.create_all(engine)
