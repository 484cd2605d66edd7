from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select

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
    TimelineEvent,
)
from sitetrace.domain.reconciliation import FEED_SOURCE, ReconciliationEngine, SyncOptions
from tests.helpers.feed import analysis_result, flagged_site, site_note, snapshot
from tests.helpers.sites import make_site, store_sites

if TYPE_CHECKING:
    from collections.abc import Callable

    from sitetrace.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork
    from sitetrace.domain.feed import FeedSnapshot
    from sitetrace.domain.reconciliation import SyncCounts

    UowFactory = Callable[[], SqlAlchemySyncUnitOfWork]

pytestmark = pytest.mark.integration

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)
NO_AUTO_ADD = SyncOptions(
    auto_add_top_targets=False,
    auto_add_needed=False,
    sync_all=False,
    auto_add_recommended=False,
)


def _reconcile(
    factory: UowFactory,
    feed: FeedSnapshot,
    *,
    options: SyncOptions | None = None,
    now: datetime = NOW,
) -> SyncCounts:
    with factory() as uow:
        engine = ReconciliationEngine(
            uow=uow,
            options=options or SyncOptions(),
            clock=lambda: now,
        )
        return engine.reconcile(feed)


def _all[TModel](factory: UowFactory, model: type[TModel]) -> list[TModel]:
    with factory() as uow:
        return list(uow.session.execute(select(model)).scalars())


def _site(factory: UowFactory, domain: str) -> Site:
    with factory() as uow:
        site = uow.repositories.sites.get_by_domain(domain)
    assert site is not None
    return site


# Pass A


def test_registers_top_target_with_derived_fields(sqlite_unit_of_work: UowFactory) -> None:
    result = analysis_result(
        "pirate-x.example",
        "Top Target",
        total_visits=1_200_000,
        global_rank=4_321,
        unique_visitors=80_000,
        site_type="Aggregator",
    )

    counts = _reconcile(sqlite_unit_of_work, snapshot(results=[result]))

    assert counts.sites_added == 1
    assert counts.sites_updated == 0
    site = _site(sqlite_unit_of_work, "pirate-x.example")
    assert site.display_name == "pirate-x.example"
    assert site.priority is Priority.CRITICAL
    assert site.status is SiteStatus.ACTIVE
    assert site.investigation_status is InvestigationStatus.PENDING
    assert site.site_type is SiteType.AGGREGATOR
    assert site.recommendation == "Top Target"
    assert site.external_ref == f"analysis-{result.id}"
    assert site.traffic_monthly == "1,200,000"
    assert site.traffic_rank == "4,321"
    assert site.unique_visitors == "80,000"
    assert site.notes is not None
    assert "Top Target" in site.notes
    assert site.synced_at == NOW
    assert site.created_at == NOW

    events = _all(sqlite_unit_of_work, TimelineEvent)
    assert [event.event_type for event in events] == [EventType.SYNC_ADD]
    assert events[0].entity_type is EntityKind.SITE
    assert events[0].entity_id == site.id
    assert events[0].importance is Importance.HIGH
    assert events[0].source == FEED_SOURCE


def test_registration_event_is_normal_below_top_tier(sqlite_unit_of_work: UowFactory) -> None:
    _reconcile(sqlite_unit_of_work, snapshot(results=[analysis_result("a.example", "OSINT")]))

    (event,) = _all(sqlite_unit_of_work, TimelineEvent)
    assert event.importance is Importance.NORMAL
    assert _site(sqlite_unit_of_work, "a.example").priority is Priority.HIGH


def test_unseen_domain_is_skipped_when_every_gate_is_closed(
    sqlite_unit_of_work: UowFactory,
) -> None:
    feed = snapshot(
        results=[
            analysis_result("empty.example", None),
            analysis_result("top.example", "Top Target — Urgent Block"),
        ]
    )

    counts = _reconcile(sqlite_unit_of_work, feed, options=NO_AUTO_ADD)

    assert counts.sites_added == 0
    assert _all(sqlite_unit_of_work, Site) == []
    assert _all(sqlite_unit_of_work, TimelineEvent) == []


def test_low_priority_domain_is_not_registered_by_default(
    sqlite_unit_of_work: UowFactory,
) -> None:
    feed = snapshot(
        results=[
            analysis_result("quiet.example", "Low priority"),
            analysis_result("blank.example", None),
        ]
    )

    counts = _reconcile(sqlite_unit_of_work, feed)

    assert counts.sites_added == 0
    assert _all(sqlite_unit_of_work, Site) == []


def test_updates_changed_fields_and_records_recommendation_change(
    sqlite_unit_of_work: UowFactory,
) -> None:
    existing = make_site(
        "pirate.example",
        recommendation="Monitoring",
        traffic_monthly="1,000",
        investigation_status=InvestigationStatus.IN_PROGRESS,
        notes="investigator notes",
    )
    store_sites(sqlite_unit_of_work, existing)

    counts = _reconcile(
        sqlite_unit_of_work,
        snapshot(results=[analysis_result("pirate.example", "Top Target", total_visits=2_000)]),
    )

    assert counts.sites_updated == 1
    assert counts.sites_added == 0
    site = _site(sqlite_unit_of_work, "pirate.example")
    assert site.recommendation == "Top Target"
    assert site.priority is Priority.CRITICAL
    assert site.traffic_monthly == "2,000"
    assert site.synced_at == NOW
    assert site.investigation_status is InvestigationStatus.IN_PROGRESS
    assert site.notes == "investigator notes"

    (event,) = _all(sqlite_unit_of_work, TimelineEvent)
    assert event.event_type is EventType.RECOMMENDATION_CHANGE
    assert event.importance is Importance.CRITICAL
    assert "Monitoring" in event.title
    assert "Top Target" in event.title


def test_first_recommendation_does_not_emit_change_event(
    sqlite_unit_of_work: UowFactory,
) -> None:
    store_sites(sqlite_unit_of_work, make_site("pirate.example"))

    counts = _reconcile(
        sqlite_unit_of_work,
        snapshot(results=[analysis_result("pirate.example", "Needs investigation")]),
    )

    assert counts.sites_updated == 1
    assert _site(sqlite_unit_of_work, "pirate.example").priority is Priority.HIGH
    assert _all(sqlite_unit_of_work, TimelineEvent) == []


def test_weak_or_missing_values_never_erase_local_data(sqlite_unit_of_work: UowFactory) -> None:
    store_sites(
        sqlite_unit_of_work,
        make_site(
            "pirate.example",
            recommendation="Monitoring",
            site_type=SiteType.CLONE,
            traffic_monthly="5,000",
        ),
    )
    feed = snapshot(
        results=[analysis_result("pirate.example", None, site_type="unclassified")]
    )

    counts = _reconcile(sqlite_unit_of_work, feed)

    assert counts.sites_updated == 0
    site = _site(sqlite_unit_of_work, "pirate.example")
    assert site.site_type is SiteType.CLONE
    assert site.recommendation == "Monitoring"
    assert site.traffic_monthly == "5,000"
    assert site.synced_at is None


def test_second_run_with_unchanged_snapshot_is_a_no_op(sqlite_unit_of_work: UowFactory) -> None:
    feed = snapshot(
        results=[
            analysis_result("a.example", "Top Target", total_visits=10, site_type="blog"),
            analysis_result("b.example", "Monitoring", global_rank=3),
        ],
        flagged=[flagged_site("a.example", "active")],
        notes=[site_note("a.example", "seen on forum")],
    )

    first = _reconcile(sqlite_unit_of_work, feed)
    events_after_first = len(_all(sqlite_unit_of_work, TimelineEvent))
    second = _reconcile(sqlite_unit_of_work, feed, now=NOW + timedelta(hours=1))

    assert first.sites_added == 2
    assert first.notes_imported == 1
    assert (
        second.sites_added,
        second.sites_updated,
        second.notes_imported,
        second.domain_changes_detected,
    ) == (0, 0, 0, 0)
    assert len(_all(sqlite_unit_of_work, TimelineEvent)) == events_after_first
    assert _site(sqlite_unit_of_work, "a.example").synced_at == NOW


# Pass B


def test_status_transition_is_audited(sqlite_unit_of_work: UowFactory) -> None:
    site = make_site("pirate.example", status=SiteStatus.ACTIVE)
    store_sites(sqlite_unit_of_work, site)

    counts = _reconcile(
        sqlite_unit_of_work, snapshot(flagged=[flagged_site("pirate.example", "closed")])
    )

    assert counts.domain_changes_detected == 1
    assert counts.sites_updated == 0
    assert _site(sqlite_unit_of_work, "pirate.example").status is SiteStatus.CLOSED

    (entry,) = _all(sqlite_unit_of_work, DomainHistoryEntry)
    assert entry.site_id == site.id
    assert entry.domain == "pirate.example"
    assert entry.status is SiteStatus.CLOSED
    assert entry.notes is not None
    assert "active → closed" in entry.notes
    assert entry.source == FEED_SOURCE

    (event,) = _all(sqlite_unit_of_work, TimelineEvent)
    assert event.event_type is EventType.STATUS_CHANGE
    assert event.importance is Importance.HIGH


@pytest.mark.parametrize("external_status", ["", "suspended", None])
def test_unknown_external_status_never_overwrites(
    sqlite_unit_of_work: UowFactory, external_status: str | None
) -> None:
    store_sites(sqlite_unit_of_work, make_site("pirate.example", status=SiteStatus.CLOSED))

    counts = _reconcile(
        sqlite_unit_of_work, snapshot(flagged=[flagged_site("pirate.example", external_status)])
    )

    assert counts.domain_changes_detected == 0
    assert _site(sqlite_unit_of_work, "pirate.example").status is SiteStatus.CLOSED
    assert _all(sqlite_unit_of_work, DomainHistoryEntry) == []


def test_unknown_local_status_moves_to_known_status(sqlite_unit_of_work: UowFactory) -> None:
    store_sites(sqlite_unit_of_work, make_site("pirate.example", status=SiteStatus.UNKNOWN))

    _reconcile(sqlite_unit_of_work, snapshot(flagged=[flagged_site("pirate.example", "active")]))

    assert _site(sqlite_unit_of_work, "pirate.example").status is SiteStatus.ACTIVE


def test_unseen_flagged_site_is_skipped_without_sync_all(
    sqlite_unit_of_work: UowFactory,
) -> None:
    counts = _reconcile(
        sqlite_unit_of_work, snapshot(flagged=[flagged_site("new.example", "active")])
    )

    assert counts.sites_added == 0
    assert _all(sqlite_unit_of_work, Site) == []


def test_sync_all_registers_minimal_flagged_site(sqlite_unit_of_work: UowFactory) -> None:
    feed = snapshot(flagged=[flagged_site("new.example", "closed", site_type="scanlation")])

    counts = _reconcile(sqlite_unit_of_work, feed, options=SyncOptions(sync_all=True))

    assert counts.sites_added == 1
    assert counts.domain_changes_detected == 0
    site = _site(sqlite_unit_of_work, "new.example")
    assert site.status is SiteStatus.CLOSED
    assert site.site_type is SiteType.SCANLATION
    assert site.priority is Priority.MEDIUM
    assert site.investigation_status is InvestigationStatus.PENDING
    (event,) = _all(sqlite_unit_of_work, TimelineEvent)
    assert event.event_type is EventType.SYNC_ADD


def test_sites_registered_in_pass_a_are_visible_to_pass_b(
    sqlite_unit_of_work: UowFactory,
) -> None:
    feed = snapshot(
        results=[analysis_result("pirate.example", "Top Target")],
        flagged=[flagged_site("pirate.example", "closed")],
    )

    counts = _reconcile(sqlite_unit_of_work, feed, options=SyncOptions(sync_all=True))

    assert counts.sites_added == 1
    assert counts.domain_changes_detected == 1
    assert len(_all(sqlite_unit_of_work, Site)) == 1
    assert _site(sqlite_unit_of_work, "pirate.example").status is SiteStatus.CLOSED


def test_domain_never_duplicated_across_feeds_and_runs(sqlite_unit_of_work: UowFactory) -> None:
    feed = snapshot(
        results=[analysis_result("dup.example", "Top Target")],
        flagged=[flagged_site("dup.example", "active"), flagged_site("other.example", "active")],
    )
    options = SyncOptions(sync_all=True)

    for hour in range(3):
        _reconcile(sqlite_unit_of_work, feed, options=options, now=NOW + timedelta(hours=hour))

    domains = sorted(site.domain for site in _all(sqlite_unit_of_work, Site))
    assert domains == ["dup.example", "other.example"]


def test_redirect_is_recorded_once_per_successor(sqlite_unit_of_work: UowFactory) -> None:
    site = make_site("moved.example", status=SiteStatus.ACTIVE)
    store_sites(sqlite_unit_of_work, site)
    feed = snapshot(
        flagged=[flagged_site("moved.example", "changed", new_url="https://moved-again.example/")]
    )

    first = _reconcile(sqlite_unit_of_work, feed)
    second = _reconcile(sqlite_unit_of_work, feed, now=NOW + timedelta(days=1))

    assert first.domain_changes_detected == 2
    assert second.domain_changes_detected == 0
    assert _site(sqlite_unit_of_work, "moved.example").status is SiteStatus.REDIRECTED

    history = {entry.domain: entry for entry in _all(sqlite_unit_of_work, DomainHistoryEntry)}
    assert set(history) == {"moved.example", "moved-again.example"}
    successor = history["moved-again.example"]
    assert successor.site_id == site.id
    assert successor.status is SiteStatus.ACTIVE
    assert successor.notes is not None
    assert "moved.example → moved-again.example" in successor.notes

    events = _all(sqlite_unit_of_work, TimelineEvent)
    assert sorted(event.event_type for event in events) == [
        EventType.DOMAIN_CHANGE,
        EventType.STATUS_CHANGE,
    ]
    (domain_change,) = [e for e in events if e.event_type is EventType.DOMAIN_CHANGE]
    assert domain_change.importance is Importance.CRITICAL
    assert [s.domain for s in _all(sqlite_unit_of_work, Site)] == ["moved.example"]


def test_shared_successor_is_recorded_once_within_a_run(sqlite_unit_of_work: UowFactory) -> None:
    store_sites(sqlite_unit_of_work, make_site("a.example"), make_site("b.example"))
    feed = snapshot(
        flagged=[
            flagged_site("a.example", "active", new_url="https://c.example"),
            flagged_site("b.example", "active", new_url="http://c.example/"),
        ]
    )

    counts = _reconcile(sqlite_unit_of_work, feed)

    assert counts.domain_changes_detected == 1
    assert [entry.domain for entry in _all(sqlite_unit_of_work, DomainHistoryEntry)] == [
        "c.example"
    ]


@pytest.mark.parametrize("new_url", ["https://tracked.example/", "https://moved.example"])
def test_redirect_to_tracked_or_same_domain_is_ignored(
    sqlite_unit_of_work: UowFactory, new_url: str
) -> None:
    store_sites(sqlite_unit_of_work, make_site("moved.example"), make_site("tracked.example"))

    counts = _reconcile(
        sqlite_unit_of_work,
        snapshot(flagged=[flagged_site("moved.example", "active", new_url=new_url)]),
    )

    assert counts.domain_changes_detected == 0
    assert _all(sqlite_unit_of_work, DomainHistoryEntry) == []
    assert _all(sqlite_unit_of_work, TimelineEvent) == []


# domain case


def test_mixed_case_local_domain_matches_feed_row(sqlite_unit_of_work: UowFactory) -> None:
    store_sites(sqlite_unit_of_work, make_site("Pirate-X.example", recommendation="Monitoring"))

    counts = _reconcile(
        sqlite_unit_of_work,
        snapshot(
            results=[analysis_result("pirate-x.example", "Top Target")],
            flagged=[flagged_site("PIRATE-X.example", "closed")],
        ),
    )

    assert counts.sites_added == 0
    assert counts.sites_updated == 1
    assert counts.domain_changes_detected == 1
    (site,) = _all(sqlite_unit_of_work, Site)
    assert site.domain == "Pirate-X.example"
    assert site.priority is Priority.CRITICAL
    assert site.status is SiteStatus.CLOSED


def test_redirect_to_tracked_domain_ignores_case(sqlite_unit_of_work: UowFactory) -> None:
    store_sites(sqlite_unit_of_work, make_site("moved.example"), make_site("new.example"))

    counts = _reconcile(
        sqlite_unit_of_work,
        snapshot(flagged=[flagged_site("moved.example", "active", new_url="https://NEW.example/")]),
    )

    assert counts.domain_changes_detected == 0
    assert _all(sqlite_unit_of_work, DomainHistoryEntry) == []


def test_successor_history_is_matched_regardless_of_case(
    sqlite_unit_of_work: UowFactory,
) -> None:
    store_sites(sqlite_unit_of_work, make_site("a.example"), make_site("b.example"))
    _reconcile(
        sqlite_unit_of_work,
        snapshot(flagged=[flagged_site("a.example", "active", new_url="https://c.example")]),
    )

    counts = _reconcile(
        sqlite_unit_of_work,
        snapshot(flagged=[flagged_site("b.example", "active", new_url="https://C.Example/")]),
        now=NOW + timedelta(days=1),
    )

    assert counts.domain_changes_detected == 0
    assert [entry.domain for entry in _all(sqlite_unit_of_work, DomainHistoryEntry)] == [
        "c.example"
    ]


# Pass C


def test_notes_are_imported_once_by_content(sqlite_unit_of_work: UowFactory) -> None:
    site = make_site("pirate.example")
    store_sites(sqlite_unit_of_work, site)
    feed = snapshot(
        notes=[
            site_note("pirate.example", "Operator handle seen on forum", note_type="osint"),
            site_note("pirate.example", "Operator handle seen on forum", note_type="osint"),
            site_note("pirate.example", "Hosting moved", note_type=None),
            site_note("unknown.example", "Not tracked locally"),
        ]
    )

    first = _reconcile(sqlite_unit_of_work, feed)
    second = _reconcile(sqlite_unit_of_work, feed)

    assert first.notes_imported == 2
    assert second.notes_imported == 0
    entries = {entry.content: entry for entry in _all(sqlite_unit_of_work, OsintEntry)}
    assert set(entries) == {"Operator handle seen on forum", "Hosting moved"}
    forum = entries["Operator handle seen on forum"]
    assert forum.entity_type is EntityKind.SITE
    assert forum.entity_id == site.id
    assert forum.category == "osint"
    assert forum.raw_input == forum.content
    assert forum.confidence is Confidence.MEDIUM
    assert forum.source == FEED_SOURCE
    assert not forum.is_key_evidence


# transactions


def test_failure_keeps_committed_domains_and_rolls_back_in_flight(
    sqlite_unit_of_work: UowFactory,
) -> None:
    calls = 0

    def flaky_clock() -> datetime:
        nonlocal calls
        calls += 1
        if calls > 1:
            raise RuntimeError("clock exploded")
        return NOW

    feed = snapshot(
        results=[
            analysis_result("first.example", "Top Target"),
            analysis_result("second.example", "Top Target"),
        ]
    )

    with sqlite_unit_of_work() as uow:
        engine = ReconciliationEngine(uow=uow, clock=flaky_clock)
        with pytest.raises(RuntimeError, match="clock exploded"):
            engine.reconcile(feed)
        counts = engine.counts

    assert counts.sites_added == 1
    assert [site.domain for site in _all(sqlite_unit_of_work, Site)] == ["first.example"]
    assert len(_all(sqlite_unit_of_work, TimelineEvent)) == 1
