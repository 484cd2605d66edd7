"""The investigated site aggregate."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from sitetrace.domain.model.entity import Entity
from sitetrace.domain.model.enums import InvestigationStatus, Priority, SiteStatus, SiteType

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

# Fields an external feed is allowed to overwrite on an existing site.
SYNCABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "traffic_monthly",
        "traffic_rank",
        "unique_visitors",
        "recommendation",
        "priority",
        "site_type",
    }
)


@dataclass(eq=False, kw_only=True)
class Site(Entity):
    """A tracked website, keyed by its unique domain."""

    domain: str
    display_name: str | None = None
    site_type: SiteType | None = None
    status: SiteStatus = SiteStatus.ACTIVE
    priority: Priority = Priority.MEDIUM
    recommendation: str | None = None
    external_ref: str | None = None

    traffic_monthly: str | None = None
    traffic_rank: str | None = None
    unique_visitors: str | None = None

    investigation_status: InvestigationStatus = InvestigationStatus.PENDING
    notes: str | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None
    synced_at: datetime | None = None

    def apply_sync_update(self, changes: Mapping[str, object], *, at: datetime) -> None:
        """Overwrite feed-owned fields and stamp the sync time."""

        unexpected = set(changes) - SYNCABLE_FIELDS
        if unexpected:
            raise ValueError(f"Fields not owned by sync: {', '.join(sorted(unexpected))}")
        for name, value in changes.items():
            setattr(self, name, value)
        self.synced_at = at
        self.updated_at = at

    def change_status(self, status: SiteStatus, *, at: datetime) -> SiteStatus:
        """Move to ``status`` and return the previous one.

        A site that has left ``unknown`` never returns to it.
        """

        if status == SiteStatus.UNKNOWN and self.status != SiteStatus.UNKNOWN:
            raise ValueError(f"Cannot regress status of {self.domain} to unknown")
        previous = self.status
        self.status = status
        self.synced_at = at
        self.updated_at = at
        return previous
