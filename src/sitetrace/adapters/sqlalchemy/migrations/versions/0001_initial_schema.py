"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-02-14 10:12:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _enum_column(name: str, *, nullable: bool) -> sa.Column[str]:
    return sa.Column(name, sa.String(length=32), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "site",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("domain", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        _enum_column("site_type", nullable=True),
        _enum_column("status", nullable=False),
        _enum_column("priority", nullable=False),
        sa.Column("recommendation", sa.Text(), nullable=True),
        sa.Column("external_ref", sa.String(), nullable=True),
        sa.Column("traffic_monthly", sa.String(), nullable=True),
        sa.Column("traffic_rank", sa.String(), nullable=True),
        sa.Column("unique_visitors", sa.String(), nullable=True),
        _enum_column("investigation_status", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_site"),
        sa.UniqueConstraint("domain", name="uq_site_domain"),
    )
    op.create_index("ix_site_status", "site", ["status"])
    op.create_index("ix_site_priority", "site", ["priority"])
    op.create_index("ix_site_investigation_status", "site", ["investigation_status"])
    op.create_index("ix_site_external_ref", "site", ["external_ref"])

    op.create_table(
        "domain_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("site_id", sa.Uuid(), nullable=False),
        sa.Column("domain", sa.String(), nullable=False),
        _enum_column("status", nullable=True),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("source", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["site_id"],
            ["site.id"],
            name="fk_domain_history_site_id_site",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_domain_history"),
    )
    op.create_index("ix_domain_history_site_id", "domain_history", ["site_id"])
    op.create_index("ix_domain_history_domain", "domain_history", ["domain"])

    op.create_table(
        "timeline_event",
        sa.Column("id", sa.Uuid(), nullable=False),
        _enum_column("entity_type", nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        _enum_column("event_type", nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("source", sa.String(), nullable=True),
        _enum_column("importance", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_timeline_event"),
    )
    op.create_index("ix_timeline_event_entity", "timeline_event", ["entity_type", "entity_id"])
    op.create_index("ix_timeline_event_event_date", "timeline_event", ["event_date"])

    op.create_table(
        "osint_entry",
        sa.Column("id", sa.Uuid(), nullable=False),
        _enum_column("entity_type", nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("raw_input", sa.Text(), nullable=True),
        sa.Column("source", sa.String(), nullable=True),
        _enum_column("confidence", nullable=False),
        sa.Column("is_key_evidence", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_osint_entry"),
    )
    op.create_index("ix_osint_entry_entity", "osint_entry", ["entity_type", "entity_id"])
    op.create_index("ix_osint_entry_category", "osint_entry", ["category"])

    op.create_table(
        "sync_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sync_type", sa.String(), nullable=False),
        _enum_column("status", nullable=False),
        sa.Column("sites_added", sa.Integer(), nullable=False),
        sa.Column("sites_updated", sa.Integer(), nullable=False),
        sa.Column("notes_imported", sa.Integer(), nullable=False),
        sa.Column("domain_changes_detected", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_sync_log"),
    )
    op.create_index("ix_sync_log_completed_at", "sync_log", ["completed_at"])


def downgrade() -> None:
    op.drop_index("ix_sync_log_completed_at", table_name="sync_log")
    op.drop_table("sync_log")
    op.drop_index("ix_osint_entry_category", table_name="osint_entry")
    op.drop_index("ix_osint_entry_entity", table_name="osint_entry")
    op.drop_table("osint_entry")
    op.drop_index("ix_timeline_event_event_date", table_name="timeline_event")
    op.drop_index("ix_timeline_event_entity", table_name="timeline_event")
    op.drop_table("timeline_event")
    op.drop_index("ix_domain_history_domain", table_name="domain_history")
    op.drop_index("ix_domain_history_site_id", table_name="domain_history")
    op.drop_table("domain_history")
    op.drop_index("ix_site_external_ref", table_name="site")
    op.drop_index("ix_site_investigation_status", table_name="site")
    op.drop_index("ix_site_priority", table_name="site")
    op.drop_index("ix_site_status", table_name="site")
    op.drop_table("site")
