"""Ports for reading the external monitoring feed."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sitetrace.domain.feed import DEFAULT_DETECTION_LIMIT

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sitetrace.domain.feed import AnalysisResult, DetectionResult, FeedSnapshot


@runtime_checkable
class FeedSource(Protocol):
    """Read-only access to the external feed."""

    def fetch_snapshot(self) -> FeedSnapshot: ...

    def search_analysis_results(self, term: str) -> Sequence[AnalysisResult]: ...

    def fetch_results_by_recommendation(
        self, recommendation: str | None = None
    ) -> Sequence[AnalysisResult]: ...

    def fetch_detection_results(
        self, domain: str, *, limit: int = DEFAULT_DETECTION_LIMIT
    ) -> Sequence[DetectionResult]: ...


__all__ = ["FeedSource"]
