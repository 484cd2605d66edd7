"""Public domain model surface."""

from __future__ import annotations

from sitetrace.domain.model.audit import DomainHistoryEntry, SyncLogEntry, TimelineEvent
from sitetrace.domain.model.entity import Entity, new_id
from sitetrace.domain.model.enums import (
    Confidence,
    EntityKind,
    EventType,
    Importance,
    InvestigationStatus,
    Priority,
    SiteStatus,
    SiteType,
    SyncStatus,
)
from sitetrace.domain.model.evidence import OsintEntry
from sitetrace.domain.model.site import SYNCABLE_FIELDS, Site

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    # site
    "Site",
    "SYNCABLE_FIELDS",
    # audit
    "DomainHistoryEntry",
    "TimelineEvent",
    "SyncLogEntry",
    # evidence
    "OsintEntry",
    # enums
    "Confidence",
    "EntityKind",
    "EventType",
    "Importance",
    "InvestigationStatus",
    "Priority",
    "SiteStatus",
    "SiteType",
    "SyncStatus",
]
