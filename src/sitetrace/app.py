"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from sitetrace.adapters.external import (
    ConfiguredFeedReader,
    ConnectionStatus,
    ExternalSourceClient,
)
from sitetrace.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    is_started,
    startup,
)
from sitetrace.config import ConfigurationError, get_sync_config
from sitetrace.domain.data_integration import (
    detection_history,
    results_by_recommendation,
    search_feed,
    sync_external_feed,
    sync_history,
)
from sitetrace.domain.feed import DEFAULT_DETECTION_LIMIT
from sitetrace.domain.ports.unit_of_work import SyncUnitOfWork
from sitetrace.domain.reconciliation import SyncOptions, SyncResult

if TYPE_CHECKING:
    from sitetrace.config import ExternalSourceConfig
    from sitetrace.domain.feed import AnalysisResult, DetectionResult
    from sitetrace.domain.model import SyncLogEntry
    from sitetrace.domain.ports.fetching import FeedSource

UnitOfWorkFactory = Callable[[], SyncUnitOfWork]


log = getLogger(__name__)


def _ensure_local_store() -> None:
    if not is_started():
        startup()


def _feed_source(source: FeedSource | None, config: ExternalSourceConfig | None) -> FeedSource:
    return source if source is not None else ConfiguredFeedReader(config)


def default_sync_options() -> SyncOptions:
    config = get_sync_config()
    return SyncOptions(
        auto_add_top_targets=config.auto_add_top_targets,
        auto_add_needed=config.auto_add_needed,
        sync_all=config.sync_all,
        auto_add_recommended=config.auto_add_recommended,
    )


def run_external_sync(
    *,
    source: FeedSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    options: SyncOptions | None = None,
    external_config: ExternalSourceConfig | None = None,
) -> SyncResult:
    """Run one reconciliation of the external feed into the local store.

    When ``source`` is omitted a client is built from configuration inside the run, so
    a missing or unreachable source ends up in a failed sync log row like any other
    source error. A caller-supplied source is left open.
    """

    effective_uow = unit_of_work_factory
    if effective_uow is None:
        _ensure_local_store()
        effective_uow = SqlAlchemySyncUnitOfWork
    effective_options = options or default_sync_options()
    log.info(
        "Starting external feed sync: top_targets=%s, needed=%s, sync_all=%s, catch_all=%s",
        effective_options.auto_add_top_targets,
        effective_options.auto_add_needed,
        effective_options.sync_all,
        effective_options.auto_add_recommended,
    )

    return sync_external_feed(
        source=_feed_source(source, external_config),
        unit_of_work_factory=effective_uow,
        options=effective_options,
    )


def get_sync_history(
    *,
    limit: int | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[SyncLogEntry]:
    effective_uow = unit_of_work_factory
    if effective_uow is None:
        _ensure_local_store()
        effective_uow = SqlAlchemySyncUnitOfWork
    return sync_history(
        unit_of_work_factory=effective_uow,
        limit=limit if limit is not None else get_sync_config().history_limit,
    )


def search_external_sites(
    term: str,
    *,
    source: FeedSource | None = None,
    external_config: ExternalSourceConfig | None = None,
) -> list[AnalysisResult]:
    """Search the latest analysis report by domain substring, read-only."""

    return search_feed(source=_feed_source(source, external_config), term=term)


def list_external_sites_by_recommendation(
    recommendation: str | None = None,
    *,
    source: FeedSource | None = None,
    external_config: ExternalSourceConfig | None = None,
) -> list[AnalysisResult]:
    """Latest-report results, all of them or one exact recommendation."""

    return results_by_recommendation(
        source=_feed_source(source, external_config),
        recommendation=recommendation,
    )


def list_detection_results(
    domain: str,
    *,
    limit: int = DEFAULT_DETECTION_LIMIT,
    source: FeedSource | None = None,
    external_config: ExternalSourceConfig | None = None,
) -> list[DetectionResult]:
    return detection_history(
        source=_feed_source(source, external_config),
        domain=domain,
        limit=limit,
    )


def check_external_connection(
    *,
    client: ExternalSourceClient | None = None,
    external_config: ExternalSourceConfig | None = None,
) -> ConnectionStatus:
    if client is not None:
        return client.check_connection()
    try:
        owned_client = ExternalSourceClient.connect(external_config)
    except ConfigurationError as exc:
        return ConnectionStatus(success=False, message=str(exc))
    with owned_client as owned:
        return owned.check_connection()
