"""Translate validated external rows into domain feed types."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from sitetrace.domain.feed import (
    AnalysisReport,
    AnalysisResult,
    DetectionResult,
    FlaggedSite,
    SiteNote,
)

from .client import ExternalPayloadError
from .schema import (
    AnalysisReportRow,
    AnalysisResultRow,
    DetectionResultRow,
    FlaggedSiteRow,
    SiteNoteRow,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


def _validate[TModel: BaseModel](model: type[TModel], row: Mapping[str, object]) -> TModel:
    try:
        return model.model_validate(dict(row))
    except ValidationError as exc:
        raise ExternalPayloadError(f"Malformed {model.__name__}: {exc}") from exc


def parse_flagged_site(row: Mapping[str, object]) -> FlaggedSite:
    payload = _validate(FlaggedSiteRow, row)
    return FlaggedSite(
        domain=payload.domain,
        site_type=payload.site_type,
        site_status=payload.site_status,
        new_url=payload.new_url,
        distribution_channel=payload.distribution_channel,
        created_at=payload.created_at,
    )


def parse_analysis_report(row: Mapping[str, object]) -> AnalysisReport:
    payload = _validate(AnalysisReportRow, row)
    return AnalysisReport(
        id=payload.id,
        analysis_month=payload.analysis_month,
        status=payload.status,
        total_domains=payload.total_domains,
    )


def parse_analysis_result(row: Mapping[str, object]) -> AnalysisResult:
    payload = _validate(AnalysisResultRow, row)
    return AnalysisResult(
        id=payload.id,
        report_id=payload.report_id,
        domain=payload.domain,
        rank=payload.rank,
        recommendation=payload.recommendation,
        total_visits=payload.total_visits,
        unique_visitors=payload.unique_visitors,
        global_rank=payload.global_rank,
        site_type=payload.site_type,
        threat_score=payload.threat_score,
    )


def parse_site_note(row: Mapping[str, object]) -> SiteNote:
    payload = _validate(SiteNoteRow, row)
    return SiteNote(
        id=payload.id,
        domain=payload.domain,
        content=payload.content,
        note_type=payload.note_type,
        created_at=payload.created_at,
    )


def parse_detection_result(row: Mapping[str, object]) -> DetectionResult:
    payload = _validate(DetectionResultRow, row)
    return DetectionResult(
        id=payload.id,
        domain=payload.domain,
        url=payload.url,
        title=payload.title,
        final_status=payload.final_status,
        llm_judgment=payload.llm_judgment,
        llm_reason=payload.llm_reason,
        source=payload.source,
    )
