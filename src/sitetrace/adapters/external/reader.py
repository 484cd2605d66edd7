"""Read-only feed reader over the external monitoring database."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import select

from sitetrace.domain.classification import normalize_domain
from sitetrace.domain.feed import DEFAULT_DETECTION_LIMIT, FeedSnapshot

from .client import ExternalSourceClient
from .tables import (
    analysis_report_table,
    analysis_result_table,
    detection_result_table,
    flagged_site_table,
    site_note_table,
)
from .translator import (
    parse_analysis_report,
    parse_analysis_result,
    parse_detection_result,
    parse_flagged_site,
    parse_site_note,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sitetrace.config import ExternalSourceConfig
    from sitetrace.domain.feed import (
        AnalysisReport,
        AnalysisResult,
        DetectionResult,
        FlaggedSite,
        SiteNote,
    )
    from sitetrace.domain.ports.fetching import FeedSource

log = getLogger(__name__)

ILLEGAL_SITE_TYPE = "illegal"


@dataclass(slots=True)
class ExternalFeedReader:
    """Issues SELECT-only queries through an explicitly owned client."""

    client: ExternalSourceClient

    def fetch_snapshot(self) -> FeedSnapshot:
        return asyncio.run(self._fetch_snapshot_async())

    async def _fetch_snapshot_async(self) -> FeedSnapshot:
        flagged_sites, latest_report, site_notes = await asyncio.gather(
            asyncio.to_thread(self.fetch_flagged_sites),
            asyncio.to_thread(self.fetch_latest_report),
            asyncio.to_thread(self.fetch_site_notes),
        )
        analysis_results: list[AnalysisResult] = []
        if latest_report is not None:
            analysis_results = await asyncio.to_thread(
                self.fetch_analysis_results, latest_report.id
            )

        log.info(
            "Fetched feed snapshot: flagged=%s, results=%s, notes=%s, report=%s",
            len(flagged_sites),
            len(analysis_results),
            len(site_notes),
            latest_report.analysis_month if latest_report else None,
        )
        return FeedSnapshot(
            flagged_sites=tuple(flagged_sites),
            analysis_results=tuple(analysis_results),
            site_notes=tuple(site_notes),
            latest_report=latest_report,
        )

    def fetch_flagged_sites(self) -> list[FlaggedSite]:
        stmt = (
            select(flagged_site_table)
            .where(flagged_site_table.c.type == ILLEGAL_SITE_TYPE)
            .order_by(flagged_site_table.c.created_at.desc())
        )
        return [parse_flagged_site(row) for row in self.client.fetch_all(stmt)]

    def fetch_latest_report(self) -> AnalysisReport | None:
        stmt = (
            select(analysis_report_table)
            .order_by(
                analysis_report_table.c.analysis_month.desc(),
                analysis_report_table.c.id.desc(),
            )
            .limit(1)
        )
        rows = self.client.fetch_all(stmt)
        return parse_analysis_report(rows[0]) if rows else None

    def fetch_analysis_results(
        self,
        report_id: int,
        *,
        recommendation: str | None = None,
    ) -> list[AnalysisResult]:
        stmt = select(analysis_result_table).where(analysis_result_table.c.report_id == report_id)
        if recommendation is not None:
            stmt = stmt.where(analysis_result_table.c.recommendation == recommendation)
        stmt = stmt.order_by(analysis_result_table.c.rank.asc(), analysis_result_table.c.id)
        return [parse_analysis_result(row) for row in self.client.fetch_all(stmt)]

    def fetch_results_by_recommendation(
        self, recommendation: str | None = None
    ) -> list[AnalysisResult]:
        """Results of the latest report, optionally limited to one exact recommendation."""

        report = self.fetch_latest_report()
        if report is None:
            return []
        return self.fetch_analysis_results(report.id, recommendation=recommendation)

    def fetch_site_notes(self, domain: str | None = None) -> list[SiteNote]:
        stmt = select(site_note_table)
        if domain is not None:
            stmt = stmt.where(site_note_table.c.domain == domain)
        stmt = stmt.order_by(site_note_table.c.created_at.desc())
        return [parse_site_note(row) for row in self.client.fetch_all(stmt)]

    def fetch_detection_results(
        self, domain: str, *, limit: int = DEFAULT_DETECTION_LIMIT
    ) -> list[DetectionResult]:
        stmt = (
            select(detection_result_table)
            .where(detection_result_table.c.domain == normalize_domain(domain))
            .order_by(detection_result_table.c.id.desc())
            .limit(limit)
        )
        return [parse_detection_result(row) for row in self.client.fetch_all(stmt)]

    def search_analysis_results(self, term: str) -> list[AnalysisResult]:
        """Latest-report results whose domain contains ``term`` (case-insensitive)."""

        needle = term.strip().lower()
        return [
            result
            for result in self.fetch_results_by_recommendation()
            if needle in result.domain.lower()
        ]



@dataclass(slots=True)
class ConfiguredFeedReader:
    """Opens a client from configuration for each read and closes it afterwards.

    Configuration and connection errors surface from the read itself, so a sync run
    records them like any other source failure.
    """

    config: ExternalSourceConfig | None = None

    @contextmanager
    def _reader(self) -> Iterator[ExternalFeedReader]:
        with ExternalSourceClient.connect(self.config) as client:
            yield ExternalFeedReader(client)

    def fetch_snapshot(self) -> FeedSnapshot:
        with self._reader() as reader:
            return reader.fetch_snapshot()

    def search_analysis_results(self, term: str) -> list[AnalysisResult]:
        with self._reader() as reader:
            return reader.search_analysis_results(term)

    def fetch_results_by_recommendation(
        self, recommendation: str | None = None
    ) -> list[AnalysisResult]:
        with self._reader() as reader:
            return reader.fetch_results_by_recommendation(recommendation)

    def fetch_detection_results(
        self, domain: str, *, limit: int = DEFAULT_DETECTION_LIMIT
    ) -> list[DetectionResult]:
        with self._reader() as reader:
            return reader.fetch_detection_results(domain, limit=limit)


if TYPE_CHECKING:
    from typing import cast

    _reader_check: FeedSource = ExternalFeedReader(cast("ExternalSourceClient", object()))
    _configured_check: FeedSource = ConfiguredFeedReader()
