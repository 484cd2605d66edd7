"""Application services for syncing the external monitoring feed."""

from __future__ import annotations

from logging import getLogger
from time import perf_counter
from typing import TYPE_CHECKING

from sitetrace.domain.feed import DEFAULT_DETECTION_LIMIT
from sitetrace.domain.model import SyncLogEntry, SyncStatus
from sitetrace.domain.reconciliation import (
    ReconciliationEngine,
    SyncCounts,
    SyncOptions,
    SyncResult,
    utcnow,
)

DEFAULT_HISTORY_LIMIT = 20

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sitetrace.domain.feed import AnalysisResult, DetectionResult
    from sitetrace.domain.ports.fetching import FeedSource
    from sitetrace.domain.ports.unit_of_work import SyncUnitOfWork
    from sitetrace.domain.reconciliation import Clock

log = getLogger(__name__)


def sync_external_feed(
    *,
    source: FeedSource,
    unit_of_work_factory: Callable[[], SyncUnitOfWork],
    options: SyncOptions | None = None,
    clock: Clock = utcnow,
) -> SyncResult:
    """Fetch one snapshot and reconcile it into the local store.

    Never raises for source or store failures: the error is recorded in a failed sync
    log row and in ``SyncResult.errors``. Runs must not overlap.
    """

    effective_options = options or SyncOptions()
    started_at = clock()
    started = perf_counter()
    counts = SyncCounts()
    errors: list[str] = []

    try:
        snapshot = source.fetch_snapshot()
        with unit_of_work_factory() as uow:
            engine = ReconciliationEngine(
                uow=uow, options=effective_options, clock=clock, counts=counts
            )
            engine.reconcile(snapshot)
    except Exception as exc:
        log.exception("External feed sync failed")
        errors.append(str(exc) or type(exc).__name__)

    try:
        _write_sync_log(
            unit_of_work_factory,
            counts=counts,
            error=errors[0] if errors else None,
            started_at=started_at,
            completed_at=clock(),
        )
    except Exception as exc:
        log.exception("Could not record sync log")
        errors.append(f"Sync log not written: {exc}")

    success = not errors
    result = SyncResult(
        success=success,
        counts=counts,
        errors=errors,
        duration_ms=int((perf_counter() - started) * 1000),
        timestamp=started_at,
    )
    log.info(
        "External feed sync finished: added=%s, updated=%s, notes=%s, changes=%s, "
        "success=%s (%sms)",
        result.sites_added,
        result.sites_updated,
        result.notes_imported,
        result.domain_changes_detected,
        success,
        result.duration_ms,
    )
    return result


def _write_sync_log(
    unit_of_work_factory: Callable[[], SyncUnitOfWork],
    *,
    counts: SyncCounts,
    error: str | None,
    started_at: datetime,
    completed_at: datetime,
) -> None:
    entry = SyncLogEntry(
        status=SyncStatus.FAILED if error else SyncStatus.SUCCESS,
        sites_added=counts.sites_added,
        sites_updated=counts.sites_updated,
        notes_imported=counts.notes_imported,
        domain_changes_detected=counts.domain_changes_detected,
        error_message=error,
        started_at=started_at,
        completed_at=completed_at,
    )
    with unit_of_work_factory() as uow:
        uow.repositories.sync_logs.add(entry)
        uow.commit()


def sync_history(
    *,
    unit_of_work_factory: Callable[[], SyncUnitOfWork],
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[SyncLogEntry]:
    """Return the most recent sync log rows, newest first."""

    if limit < 1:
        raise ValueError("limit must be positive")
    with unit_of_work_factory() as uow:
        return list(uow.repositories.sync_logs.recent(limit))


def search_feed(*, source: FeedSource, term: str) -> list[AnalysisResult]:
    """Latest-report results whose domain contains ``term``; no local side effects."""

    if not term.strip():
        return []
    return list(source.search_analysis_results(term))


def results_by_recommendation(
    *, source: FeedSource, recommendation: str | None = None
) -> list[AnalysisResult]:
    """Latest-report results, optionally only those with exactly ``recommendation``."""

    wanted = recommendation.strip() if recommendation is not None else None
    return list(source.fetch_results_by_recommendation(wanted or None))


def detection_history(
    *, source: FeedSource, domain: str, limit: int = DEFAULT_DETECTION_LIMIT
) -> list[DetectionResult]:
    """Most recent crawler detections for ``domain``, newest first."""

    if not domain.strip():
        raise ValueError("domain must not be empty")
    if limit < 1:
        raise ValueError("limit must be positive")
    return list(source.fetch_detection_results(domain, limit=limit))
