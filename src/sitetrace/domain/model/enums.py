"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SiteType(StrEnum):
    AGGREGATOR = "aggregator"
    SCANLATION = "scanlation"
    CLONE = "clone"
    BLOG = "blog"
    OTHER = "other"


class SiteStatus(StrEnum):
    ACTIVE = "active"
    CLOSED = "closed"
    REDIRECTED = "redirected"
    UNKNOWN = "unknown"


class Priority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InvestigationStatus(StrEnum):
    """Investigator-owned workflow state. Sync only ever sets the initial value."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class Importance(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class Confidence(StrEnum):
    CONFIRMED = "confirmed"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SyncStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"


class EventType(StrEnum):
    SYNC_ADD = "sync_add"
    STATUS_CHANGE = "status_change"
    DOMAIN_CHANGE = "domain_change"
    RECOMMENDATION_CHANGE = "recommendation_change"


class EntityKind(StrEnum):
    """Typed-reference discriminator for polymorphic owners (timeline, OSINT entries)."""

    SITE = "site"
    PERSON = "person"
