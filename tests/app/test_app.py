from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select

from sitetrace.adapters.external import ExternalFeedReader
from sitetrace.app import (
    check_external_connection,
    get_sync_history,
    list_detection_results,
    list_external_sites_by_recommendation,
    run_external_sync,
    search_external_sites,
)
from sitetrace.config import ExternalSourceConfig
from sitetrace.domain.model import OsintEntry, Priority, Site, SyncLogEntry, SyncStatus
from sitetrace.domain.reconciliation import SyncOptions
from tests.helpers.feed import (
    FakeFeedSource,
    analysis_result,
    detection_result,
    seed_external_database,
    snapshot,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from sitetrace.adapters.external import ExternalSourceClient
    from sitetrace.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork

    UowFactory = Callable[[], SqlAlchemySyncUnitOfWork]


@pytest.mark.integration
def test_run_external_sync_against_seeded_source(
    sqlite_unit_of_work: UowFactory,
    external_engine: Engine,
    external_client: ExternalSourceClient,
) -> None:
    seed_external_database(external_engine)

    result = run_external_sync(
        source=ExternalFeedReader(external_client),
        unit_of_work_factory=sqlite_unit_of_work,
        options=SyncOptions(),
    )

    assert result.success, result.errors
    assert result.sites_added == 2
    assert result.sites_updated == 0
    assert result.notes_imported == 2
    assert result.domain_changes_detected == 0

    with sqlite_unit_of_work() as uow:
        sites = {site.domain: site for site in uow.session.execute(select(Site)).scalars()}
        notes = list(uow.session.execute(select(OsintEntry)).scalars())
    assert set(sites) == {"pirate-x.example", "manga-clone.example"}
    assert sites["pirate-x.example"].priority is Priority.CRITICAL
    assert sites["pirate-x.example"].traffic_rank == "4,321"
    assert sites["manga-clone.example"].priority is Priority.MEDIUM
    assert len(notes) == 2


@pytest.mark.integration
def test_second_run_against_unchanged_source_is_idempotent(
    sqlite_unit_of_work: UowFactory,
    external_engine: Engine,
    external_client: ExternalSourceClient,
) -> None:
    seed_external_database(external_engine)
    source = ExternalFeedReader(external_client)
    run_external_sync(
        source=source, unit_of_work_factory=sqlite_unit_of_work, options=SyncOptions()
    )

    result = run_external_sync(
        source=source, unit_of_work_factory=sqlite_unit_of_work, options=SyncOptions()
    )

    assert result.success
    assert (result.sites_added, result.sites_updated, result.notes_imported) == (0, 0, 0)
    assert result.domain_changes_detected == 0


@pytest.mark.integration
def test_unconfigured_source_is_recorded_as_failed_run(
    sqlite_unit_of_work: UowFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("EXTERNAL_DATABASE_URL", raising=False)

    result = run_external_sync(unit_of_work_factory=sqlite_unit_of_work, options=SyncOptions())

    assert result.success is False
    assert len(result.errors) == 1
    assert "EXTERNAL_DATABASE_URL" in result.errors[0]
    with sqlite_unit_of_work() as uow:
        (entry,) = uow.session.execute(select(SyncLogEntry)).scalars()
    assert entry.status is SyncStatus.FAILED
    assert entry.error_message is not None
    assert "EXTERNAL_DATABASE_URL" in entry.error_message


@pytest.mark.integration
def test_unreachable_source_is_recorded_as_failed_run(
    sqlite_unit_of_work: UowFactory, tmp_path: Path
) -> None:
    missing_dir = tmp_path / "no-such-dir" / "feed.db"
    config = ExternalSourceConfig(url=f"sqlite+pysqlite:///{missing_dir}", sslmode=None)

    result = run_external_sync(
        unit_of_work_factory=sqlite_unit_of_work, options=SyncOptions(), external_config=config
    )

    assert result.success is False
    history = get_sync_history(unit_of_work_factory=sqlite_unit_of_work)
    assert [entry.status for entry in history] == [SyncStatus.FAILED]

@pytest.mark.integration
def test_get_sync_history_uses_configured_default(sqlite_unit_of_work: UowFactory) -> None:
    source = FakeFeedSource(snapshot(results=[analysis_result("a.example", "Top Target")]))
    run_external_sync(source=source, unit_of_work_factory=sqlite_unit_of_work)

    history = get_sync_history(unit_of_work_factory=sqlite_unit_of_work)

    assert [entry.status for entry in history] == [SyncStatus.SUCCESS]
    assert history[0].sites_added == 1


def test_search_external_sites_uses_given_source() -> None:
    source = FakeFeedSource(snapshot(results=[analysis_result("pirate.example", "Top Target")]))

    found = search_external_sites("PIRATE", source=source)

    assert [result.domain for result in found] == ["pirate.example"]


def test_check_connection_lists_external_tables(external_client: ExternalSourceClient) -> None:
    status = check_external_connection(client=external_client)

    assert status.success
    assert "domain_analysis_results" in status.tables


def test_check_connection_without_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXTERNAL_DATABASE_URL", raising=False)

    status = check_external_connection()

    assert not status.success
    assert "EXTERNAL_DATABASE_URL" in status.message


def test_list_by_recommendation_filters_exact_text() -> None:
    source = FakeFeedSource(
        snapshot(
            results=[
                analysis_result("a.example", "Top Target"),
                analysis_result("b.example", "Monitoring"),
            ]
        )
    )

    assert [r.domain for r in list_external_sites_by_recommendation(source=source)] == [
        "a.example",
        "b.example",
    ]
    assert [
        r.domain for r in list_external_sites_by_recommendation(" Monitoring ", source=source)
    ] == ["b.example"]


def test_list_by_recommendation_against_seeded_source(
    external_engine: Engine, external_client: ExternalSourceClient
) -> None:
    seed_external_database(external_engine)

    found = list_external_sites_by_recommendation(
        "Top Target", source=ExternalFeedReader(external_client)
    )

    assert [result.domain for result in found] == ["pirate-x.example"]


def test_list_detection_results_respects_limit() -> None:
    source = FakeFeedSource(
        detections=[
            detection_result("pirate.example", llm_judgment="illegal"),
            detection_result("pirate.example"),
            detection_result("other.example"),
        ]
    )

    found = list_detection_results("pirate.example", limit=1, source=source)

    assert [row.llm_judgment for row in found] == ["illegal"]


@pytest.mark.parametrize(("domain", "limit"), [("  ", 5), ("pirate.example", 0)])
def test_list_detection_results_validates_arguments(domain: str, limit: int) -> None:
    with pytest.raises(ValueError):
        list_detection_results(domain, limit=limit, source=FakeFeedSource())
