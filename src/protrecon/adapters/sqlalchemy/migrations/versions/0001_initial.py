"""Initial schema: proteins, organisms and the update audit trail.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from protrecon.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _owner_column() -> sa.Column[str]:
    return sa.Column(
        "protein_id",
        sa.String(64),
        sa.ForeignKey("protein.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def upgrade() -> None:
    op.create_table(
        "protein",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("short_label", sa.String(64), nullable=False, index=True),
        sa.Column("taxon_id", sa.String(32), nullable=False),
        sa.Column("sequence", sa.Text, nullable=False),
        sa.Column("full_name", sa.String(512)),
        sa.Column("checksum", sa.String(32)),
        sa.Column("created_at", UTCDateTime, nullable=False),
        sa.Column("review_state", sa.String(32), nullable=False),
        sa.Column("has_feature_conflicts", sa.Boolean, nullable=False),
    )
    op.create_table(
        "protein_xref",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("database", sa.String(64), nullable=False),
        sa.Column("identifier", sa.String(128), nullable=False),
        sa.Column("qualifier", sa.String(32), nullable=False),
        sa.Column("release_version", sa.String(32)),
    )
    op.create_index(
        "ix_protein_xref_database_identifier", "protein_xref", ["database", "identifier"]
    )
    op.create_table(
        "protein_alias",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
    )
    op.create_table(
        "protein_annotation",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("topic", sa.String(64), nullable=False),
        sa.Column("text", sa.Text),
    )
    op.create_table(
        "participation",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("interaction_id", sa.String(64), nullable=False),
        sa.Column("component_id", sa.String(64), nullable=False),
    )
    op.create_table(
        "feature_range",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("feature_id", sa.String(64), nullable=False),
        sa.Column("component_id", sa.String(64), nullable=False),
        sa.Column("interaction_id", sa.String(64), nullable=False),
        sa.Column("range_start", sa.Integer),
        sa.Column("range_end", sa.Integer),
        sa.Column("sequence_snapshot", sa.Text),
    )
    op.create_table(
        "organism",
        sa.Column("taxon_id", sa.String(32), primary_key=True),
        sa.Column("short_label", sa.String(64), nullable=False),
        sa.Column("full_name", sa.String(512)),
    )
    op.create_table(
        "organism_alias",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "taxon_id",
            sa.String(32),
            sa.ForeignKey("organism.taxon_id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
    )
    op.create_table(
        "update_process",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("started_at", UTCDateTime, nullable=False),
        sa.Column("finished_at", UTCDateTime),
        sa.Column("status", sa.String(16), nullable=False),
    )
    op.create_table(
        "update_event",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "process_id",
            sa.Uuid,
            sa.ForeignKey("update_process.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("occurred_at", UTCDateTime, nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
    )
    op.create_index(
        "ix_update_event_process_position",
        "update_event",
        ["process_id", "position"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_table("update_event")
    op.drop_table("update_process")
    op.drop_table("organism_alias")
    op.drop_table("organism")
    for table in (
        "feature_range",
        "participation",
        "protein_annotation",
        "protein_alias",
        "protein_xref",
    ):
        op.drop_table(table)
    op.drop_table("protein")
