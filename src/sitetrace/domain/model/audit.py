"""Append-only audit records written by sync runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sitetrace.domain.model.entity import Entity
from sitetrace.domain.model.enums import EntityKind, EventType, Importance, SiteStatus, SyncStatus

if TYPE_CHECKING:
    from uuid import UUID


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class DomainHistoryEntry(Entity):
    """Observed status or identity of a domain at a point in time."""

    site_id: UUID
    domain: str
    status: SiteStatus | None = None
    detected_at: datetime | None = None
    source: str | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(eq=False, kw_only=True)
class TimelineEvent(Entity):
    """Human-readable audit entry attached to any entity."""

    entity_type: EntityKind
    entity_id: UUID
    event_type: EventType
    title: str
    description: str | None = None
    event_date: datetime = field(default_factory=_utcnow)
    source: str | None = None
    importance: Importance = Importance.NORMAL
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(eq=False, kw_only=True)
class SyncLogEntry(Entity):
    """Summary row for a single sync run; ``id`` doubles as the run id."""

    status: SyncStatus
    sync_type: str = "full"
    sites_added: int = 0
    sites_updated: int = 0
    notes_imported: int = 0
    domain_changes_detected: int = 0
    error_message: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
