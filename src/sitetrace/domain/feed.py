"""Read-only view of the external monitoring feed.

These types are produced by the external source adapter and consumed by the
reconciliation engine. They carry the external vocabulary untouched; mapping onto
local enumerations happens in :mod:`sitetrace.domain.classification`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from datetime import datetime

DEFAULT_DETECTION_LIMIT: Final[int] = 50


@dataclass(frozen=True, slots=True)
class FlaggedSite:
    """A site the external source has flagged as illegal."""

    domain: str
    site_type: str | None = None
    site_status: str | None = None
    new_url: str | None = None
    distribution_channel: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    """Header of a periodic domain analysis report."""

    id: int
    analysis_month: str
    status: str | None = None
    total_domains: int | None = None


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Per-domain row of an analysis report."""

    id: int
    report_id: int
    domain: str
    rank: int | None = None
    recommendation: str | None = None
    total_visits: int | None = None
    unique_visitors: int | None = None
    global_rank: int | None = None
    site_type: str | None = None
    threat_score: float | None = None


@dataclass(frozen=True, slots=True)
class SiteNote:
    id: int
    domain: str
    content: str
    note_type: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class DetectionResult:
    id: int
    domain: str
    url: str | None = None
    title: str | None = None
    final_status: str | None = None
    llm_judgment: str | None = None
    llm_reason: str | None = None
    source: str | None = None


@dataclass(frozen=True, slots=True)
class FeedSnapshot:
    """Everything one sync run needs, read at (roughly) one point in time."""

    flagged_sites: tuple[FlaggedSite, ...] = field(default_factory=tuple)
    analysis_results: tuple[AnalysisResult, ...] = field(default_factory=tuple)
    site_notes: tuple[SiteNote, ...] = field(default_factory=tuple)
    latest_report: AnalysisReport | None = None
