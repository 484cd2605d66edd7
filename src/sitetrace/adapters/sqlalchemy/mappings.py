"""SQLAlchemy mapping metadata for the local investigation store."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    func,
    orm,
)
from sqlalchemy.orm import configure_mappers

from sitetrace.domain.model import (
    Confidence,
    DomainHistoryEntry,
    EntityKind,
    EventType,
    Importance,
    InvestigationStatus,
    OsintEntry,
    Priority,
    Site,
    SiteStatus,
    SiteType,
    SyncLogEntry,
    SyncStatus,
    TimelineEvent,
)

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


def _enum[TEnum: StrEnum](enum_cls: type[TEnum]) -> Enum:
    # store the lowercase values so other readers of the database see the same vocabulary
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

site_table = Table(
    "site",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("domain", String, nullable=False),
    Column("display_name", String, nullable=True),
    Column("site_type", _enum(SiteType), nullable=True),
    Column("status", _enum(SiteStatus), nullable=False, default=SiteStatus.ACTIVE),
    Column("priority", _enum(Priority), nullable=False, default=Priority.MEDIUM),
    Column("recommendation", Text, nullable=True),
    Column("external_ref", String, nullable=True),
    Column("traffic_monthly", String, nullable=True),
    Column("traffic_rank", String, nullable=True),
    Column("unique_visitors", String, nullable=True),
    Column(
        "investigation_status",
        _enum(InvestigationStatus),
        nullable=False,
        default=InvestigationStatus.PENDING,
    ),
    Column("notes", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True, server_default=func.now()),
    Column("updated_at", UTCDateTime(), nullable=True, server_default=func.now()),
    Column("synced_at", UTCDateTime(), nullable=True),
    UniqueConstraint("domain", name="uq_site_domain"),
    Index("ix_site_status", "status"),
    Index("ix_site_priority", "priority"),
    Index("ix_site_investigation_status", "investigation_status"),
    Index("ix_site_external_ref", "external_ref"),
)

domain_history_table = Table(
    "domain_history",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "site_id", UUIDColumnType, ForeignKey("site.id", ondelete="CASCADE"), nullable=False
    ),
    Column("domain", String, nullable=False),
    Column("status", _enum(SiteStatus), nullable=True),
    Column("detected_at", UTCDateTime(), nullable=True),
    Column("source", String, nullable=True),
    Column("notes", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_domain_history_site_id", "site_id"),
    Index("ix_domain_history_domain", "domain"),
)

timeline_event_table = Table(
    "timeline_event",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_type", _enum(EntityKind), nullable=False),
    Column("entity_id", UUIDColumnType, nullable=False),
    Column("event_type", _enum(EventType), nullable=False),
    Column("title", String, nullable=False),
    Column("description", Text, nullable=True),
    Column("event_date", UTCDateTime(), nullable=False),
    Column("source", String, nullable=True),
    Column("importance", _enum(Importance), nullable=False, default=Importance.NORMAL),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_timeline_event_entity", "entity_type", "entity_id"),
    Index("ix_timeline_event_event_date", "event_date"),
)

osint_entry_table = Table(
    "osint_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("entity_type", _enum(EntityKind), nullable=False),
    Column("entity_id", UUIDColumnType, nullable=False),
    Column("category", String, nullable=True),
    Column("title", String, nullable=False),
    Column("content", Text, nullable=True),
    Column("raw_input", Text, nullable=True),
    Column("source", String, nullable=True),
    Column("confidence", _enum(Confidence), nullable=False, default=Confidence.MEDIUM),
    Column("is_key_evidence", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_osint_entry_entity", "entity_type", "entity_id"),
    Index("ix_osint_entry_category", "category"),
)

sync_log_table = Table(
    "sync_log",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("sync_type", String, nullable=False, default="full"),
    Column("status", _enum(SyncStatus), nullable=False),
    Column("sites_added", Integer, nullable=False, default=0),
    Column("sites_updated", Integer, nullable=False, default=0),
    Column("notes_imported", Integer, nullable=False, default=0),
    Column("domain_changes_detected", Integer, nullable=False, default=0),
    Column("error_message", Text, nullable=True),
    Column("started_at", UTCDateTime(), nullable=True),
    Column("completed_at", UTCDateTime(), nullable=True),
    Index("ix_sync_log_completed_at", "completed_at"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Site, site_table)
    mapper_registry.map_imperatively(DomainHistoryEntry, domain_history_table)
    mapper_registry.map_imperatively(TimelineEvent, timeline_event_table)
    mapper_registry.map_imperatively(OsintEntry, osint_entry_table)
    mapper_registry.map_imperatively(SyncLogEntry, sync_log_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
