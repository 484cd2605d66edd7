"""Options and results exchanged with callers of a feed sync."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


type Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncOptions:
    """Caller-supplied gates for auto-registration of unseen domains.

    ``auto_add_recommended`` is the catch-all: any non-empty, non-low-priority
    recommendation registers the domain. Turn it off to make the two tier flags the
    only gates.
    """

    auto_add_top_targets: bool = True
    auto_add_needed: bool = True
    sync_all: bool = False
    auto_add_recommended: bool = True


@dataclass(slots=True)
class SyncCounts:
    sites_added: int = 0
    sites_updated: int = 0
    notes_imported: int = 0
    domain_changes_detected: int = 0

    def absorb(self, other: SyncCounts) -> None:
        for item in fields(self):
            setattr(self, item.name, getattr(self, item.name) + getattr(other, item.name))


@dataclass(slots=True, kw_only=True)
class SyncResult:
    """Machine-readable summary of one sync run."""

    success: bool
    counts: SyncCounts = field(default_factory=SyncCounts)
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0
    timestamp: datetime

    @property
    def sites_added(self) -> int:
        return self.counts.sites_added

    @property
    def sites_updated(self) -> int:
        return self.counts.sites_updated

    @property
    def notes_imported(self) -> int:
        return self.counts.notes_imported

    @property
    def domain_changes_detected(self) -> int:
        return self.counts.domain_changes_detected

    def as_payload(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "sitesAdded": self.sites_added,
            "sitesUpdated": self.sites_updated,
            "notesImported": self.notes_imported,
            "domainChangesDetected": self.domain_changes_detected,
            "errors": list(self.errors),
            "durationMs": self.duration_ms,
            "timestamp": self.timestamp.isoformat(),
        }
