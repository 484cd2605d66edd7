"""Pydantic models describing rows of the external monitoring database."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from sitetrace.domain.classification import normalize_domain


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _strip_domain(value: object) -> object:
    if isinstance(value, str):
        return normalize_domain(value)
    return value


class ExternalRowModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class FlaggedSiteRow(ExternalRowModel):
    domain: str
    type: str | None = None
    site_type: str | None = None
    site_status: str | None = None
    new_url: str | None = None
    distribution_channel: str | None = None
    created_at: datetime | None = None

    normalize_domain = field_validator("domain", mode="before")(_strip_domain)
    normalize_blanks = field_validator(
        "site_type", "site_status", "new_url", "distribution_channel", mode="before"
    )(_blank_to_none)


class AnalysisReportRow(ExternalRowModel):
    id: int
    analysis_month: str
    status: str | None = None
    total_domains: int | None = None


class AnalysisResultRow(ExternalRowModel):
    id: int
    report_id: int
    domain: str
    rank: int | None = None
    threat_score: float | None = None
    total_visits: int | None = None
    unique_visitors: int | None = None
    global_rank: int | None = None
    recommendation: str | None = None
    site_type: str | None = None

    normalize_domain = field_validator("domain", mode="before")(_strip_domain)
    normalize_blanks = field_validator("recommendation", "site_type", mode="before")(
        _blank_to_none
    )


class SiteNoteRow(ExternalRowModel):
    id: int
    domain: str
    content: str
    note_type: str | None = None
    created_at: datetime | None = None

    normalize_domain = field_validator("domain", mode="before")(_strip_domain)
    normalize_blanks = field_validator("note_type", mode="before")(_blank_to_none)


class DetectionResultRow(ExternalRowModel):
    id: int
    domain: str
    url: str | None = None
    title: str | None = None
    final_status: str | None = None
    llm_judgment: str | None = None
    llm_reason: str | None = None
    source: str | None = None

    normalize_domain = field_validator("domain", mode="before")(_strip_domain)
