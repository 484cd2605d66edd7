"""Diff an external feed snapshot against the local store and apply the result.

The engine runs three passes over one :class:`FeedSnapshot`:

A. analysis results create or update sites,
B. flagged sites drive status transitions and redirect detection,
C. site notes are imported as evidence records.

Each domain is committed on its own. A failure rolls back the in-flight domain and
propagates; everything committed before it stays in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from sitetrace.domain.classification import (
    change_importance,
    classify_priority,
    domain_from_url,
    format_metric,
    is_top_target,
    normalize_domain,
    normalize_site_status,
    normalize_site_type,
    should_auto_register,
)
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
    TimelineEvent,
)

from .contracts import Clock, SyncCounts, SyncOptions, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sitetrace.domain.feed import AnalysisResult, FeedSnapshot, FlaggedSite, SiteNote
    from sitetrace.domain.ports.unit_of_work import SyncUnitOfWork

log = getLogger(__name__)

FEED_SOURCE: Final[str] = "external feed"


@dataclass(slots=True)
class ReconciliationEngine:
    """Apply one snapshot through an open unit of work.

    ``counts`` reflects committed work only, so it stays accurate when a pass fails.
    """

    uow: SyncUnitOfWork
    options: SyncOptions = field(default_factory=SyncOptions)
    clock: Clock = utcnow
    counts: SyncCounts = field(default_factory=SyncCounts)
    _sites_by_domain: dict[str, Site] = field(default_factory=dict, init=False)

    def reconcile(self, snapshot: FeedSnapshot) -> SyncCounts:
        self._sites_by_domain = {
            normalize_domain(site.domain): site for site in self.uow.repositories.sites.list_all()
        }
        log.debug("Loaded %s local sites", len(self._sites_by_domain))

        for result in snapshot.analysis_results:
            self._commit_domain(self._sync_analysis_result, result)
        for flagged in snapshot.flagged_sites:
            self._commit_domain(self._sync_flagged_site, flagged)
        for note in snapshot.site_notes:
            self._commit_domain(self._import_note, note)
        return self.counts

    def _commit_domain[TItem](self, apply: Callable[[TItem], SyncCounts], item: TItem) -> None:
        try:
            delta = apply(item)
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            raise
        self.counts.absorb(delta)

    # Pass A

    def _sync_analysis_result(self, result: AnalysisResult) -> SyncCounts:
        delta = SyncCounts()
        site = self._sites_by_domain.get(normalize_domain(result.domain))
        if site is not None:
            if self._update_from_analysis(site, result):
                delta.sites_updated += 1
        elif should_auto_register(result.recommendation, self.options):
            self._register_from_analysis(result)
            delta.sites_added += 1
        return delta

    def _update_from_analysis(self, site: Site, result: AnalysisResult) -> bool:
        changes: dict[str, object] = {}
        for name, value in (
            ("traffic_monthly", format_metric(result.total_visits)),
            ("traffic_rank", format_metric(result.global_rank)),
            ("unique_visitors", format_metric(result.unique_visitors)),
        ):
            if value is not None and getattr(site, name) != value:
                changes[name] = value

        recommendation = result.recommendation
        recommendation_changed = bool(recommendation) and recommendation != site.recommendation
        if recommendation_changed:
            changes["recommendation"] = recommendation
            changes["priority"] = classify_priority(recommendation)

        site_type = normalize_site_type(result.site_type)
        if site_type is not None and site_type != site.site_type:
            changes["site_type"] = site_type

        if not changes:
            return False

        now = self.clock()
        if recommendation_changed and site.recommendation:
            self._record_event(
                site,
                EventType.RECOMMENDATION_CHANGE,
                title=f"Recommendation changed: {site.recommendation} → {recommendation}",
                description=f"New recommendation for {site.domain}.",
                importance=change_importance(recommendation),
                at=now,
            )
        site.apply_sync_update(changes, at=now)
        log.debug("Updated %s: %s", site.domain, ", ".join(sorted(changes)))
        return True

    def _register_from_analysis(self, result: AnalysisResult) -> Site:
        now = self.clock()
        recommendation = result.recommendation or ""
        site = Site(
            domain=result.domain,
            display_name=result.domain,
            site_type=normalize_site_type(result.site_type),
            status=SiteStatus.ACTIVE,
            priority=classify_priority(recommendation),
            recommendation=result.recommendation,
            external_ref=f"analysis-{result.id}",
            traffic_monthly=format_metric(result.total_visits),
            traffic_rank=format_metric(result.global_rank),
            unique_visitors=format_metric(result.unique_visitors),
            investigation_status=InvestigationStatus.PENDING,
            notes=f"Auto-added by external feed sync ({recommendation or 'sync all'})",
            created_at=now,
            updated_at=now,
            synced_at=now,
        )
        self._add_site(site)
        self._record_event(
            site,
            EventType.SYNC_ADD,
            title=f"Auto-added from external feed: {site.domain}",
            description=f"Recommendation: {recommendation}",
            importance=Importance.HIGH if is_top_target(recommendation) else Importance.NORMAL,
            at=now,
        )
        log.info("Registered %s (priority %s)", site.domain, site.priority)
        return site

    # Pass B

    def _sync_flagged_site(self, flagged: FlaggedSite) -> SyncCounts:
        delta = SyncCounts()
        site = self._sites_by_domain.get(normalize_domain(flagged.domain))
        if site is None:
            if not self.options.sync_all:
                return delta
            site = self._register_flagged(flagged)
            delta.sites_added += 1

        if self._detect_status_change(site, flagged):
            delta.domain_changes_detected += 1
        if self._detect_redirect(site, flagged):
            delta.domain_changes_detected += 1
        return delta

    def _register_flagged(self, flagged: FlaggedSite) -> Site:
        now = self.clock()
        site = Site(
            domain=flagged.domain,
            display_name=flagged.domain,
            site_type=normalize_site_type(flagged.site_type),
            status=normalize_site_status(flagged.site_status),
            priority=Priority.MEDIUM,
            investigation_status=InvestigationStatus.PENDING,
            notes="Auto-added by external feed sync (flagged site)",
            created_at=now,
            updated_at=now,
            synced_at=now,
        )
        self._add_site(site)
        self._record_event(
            site,
            EventType.SYNC_ADD,
            title=f"Flagged site added from external feed: {site.domain}",
            description=f"External status: {flagged.site_status or 'unknown'}",
            importance=Importance.NORMAL,
            at=now,
        )
        log.info("Registered flagged site %s", site.domain)
        return site

    def _detect_status_change(self, site: Site, flagged: FlaggedSite) -> bool:
        status = normalize_site_status(flagged.site_status)
        if status == SiteStatus.UNKNOWN or status == site.status:
            return False

        now = self.clock()
        previous = site.change_status(status, at=now)
        transition = f"{previous} → {status}"
        self.uow.repositories.domain_history.add(
            DomainHistoryEntry(
                site_id=site.id,
                domain=flagged.domain,
                status=status,
                detected_at=now,
                source=FEED_SOURCE,
                notes=f"Status change: {transition}",
                created_at=now,
            )
        )
        self._record_event(
            site,
            EventType.STATUS_CHANGE,
            title=f"Status change: {transition}",
            description=f"The status of {flagged.domain} changed.",
            importance=Importance.HIGH,
            at=now,
        )
        log.info("%s status %s", site.domain, transition)
        return True

    def _detect_redirect(self, site: Site, flagged: FlaggedSite) -> bool:
        if not flagged.new_url:
            return False
        new_domain = domain_from_url(flagged.new_url)
        if not new_domain or new_domain == normalize_domain(flagged.domain):
            return False
        if self._is_tracked(new_domain):
            return False

        now = self.clock()
        transition = f"{flagged.domain} → {new_domain}"
        self.uow.repositories.domain_history.add(
            DomainHistoryEntry(
                site_id=site.id,
                domain=new_domain,
                status=SiteStatus.ACTIVE,
                detected_at=now,
                source=FEED_SOURCE,
                notes=f"Domain change detected: {transition}",
                created_at=now,
            )
        )
        self._record_event(
            site,
            EventType.DOMAIN_CHANGE,
            title=f"Domain change: {transition}",
            description="Redirect to a new domain detected.",
            importance=Importance.CRITICAL,
            at=now,
        )
        log.info("Redirect detected: %s", transition)
        return True

    def _is_tracked(self, domain: str) -> bool:
        if normalize_domain(domain) in self._sites_by_domain:
            return True
        return self.uow.repositories.domain_history.has_domain(domain)

    # Pass C

    def _import_note(self, note: SiteNote) -> SyncCounts:
        delta = SyncCounts()
        site = self._sites_by_domain.get(normalize_domain(note.domain))
        if site is None:
            return delta
        osint_entries = self.uow.repositories.osint_entries
        if osint_entries.exists_with_raw_input(EntityKind.SITE, site.id, note.content):
            return delta

        now = self.clock()
        osint_entries.add(
            OsintEntry(
                entity_type=EntityKind.SITE,
                entity_id=site.id,
                title=f"External note ({note.note_type or 'general'})",
                category=note.note_type,
                content=note.content,
                raw_input=note.content,
                source=FEED_SOURCE,
                confidence=Confidence.MEDIUM,
                created_at=now,
                updated_at=now,
            )
        )
        delta.notes_imported += 1
        return delta

    # shared

    def _add_site(self, site: Site) -> None:
        self.uow.repositories.sites.add(site)
        self._sites_by_domain[normalize_domain(site.domain)] = site

    def _record_event(
        self,
        site: Site,
        event_type: EventType,
        *,
        title: str,
        description: str,
        importance: Importance,
        at: datetime,
    ) -> None:
        self.uow.repositories.timeline_events.add(
            TimelineEvent(
                entity_type=EntityKind.SITE,
                entity_id=site.id,
                event_type=event_type,
                title=title,
                description=description,
                event_date=at,
                source=FEED_SOURCE,
                importance=importance,
                created_at=at,
            )
        )
