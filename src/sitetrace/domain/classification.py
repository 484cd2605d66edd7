"""Pure classification of the external feed's free-text vocabulary.

Every rule lives in an ordered table so precedence is visible and testable:

* recommendation text → :class:`Priority` (first matching family wins)
* external site type → :class:`SiteType` or ``None`` ("leave the local value alone")
* external site status → :class:`SiteStatus`

Matching is case-insensitive substring matching unless stated otherwise.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final, Protocol

from sitetrace.domain.model import Importance, Priority, SiteStatus, SiteType

if TYPE_CHECKING:
    from collections.abc import Sequence


class AutoRegisterOptions(Protocol):
    @property
    def auto_add_top_targets(self) -> bool: ...

    @property
    def auto_add_needed(self) -> bool: ...

    @property
    def sync_all(self) -> bool: ...

    @property
    def auto_add_recommended(self) -> bool: ...


TOP_TARGET_MARKERS: Final[tuple[str, ...]] = ("top target", "urgent block", "최상위")
NEEDS_INVESTIGATION_MARKERS: Final[tuple[str, ...]] = (
    "osint",
    "needs investigation",
    "investigation needed",
    "priority block",
    "조사 필요",
)
MONITORING_MARKERS: Final[tuple[str, ...]] = (
    "monitoring",
    "block in progress",
    "blocking in progress",
    "모니터링",
)
LOW_PRIORITY_MARKERS: Final[tuple[str, ...]] = ("low priority", "no data", "데이터 없음", "낮음")

PRIORITY_MARKERS: Final[tuple[tuple[Priority, tuple[str, ...]], ...]] = (
    (Priority.CRITICAL, TOP_TARGET_MARKERS),
    (Priority.HIGH, NEEDS_INVESTIGATION_MARKERS),
    (Priority.MEDIUM, MONITORING_MARKERS),
    (Priority.LOW, LOW_PRIORITY_MARKERS),
)
# Non-empty text that matches no family still carries a meaningful recommendation.
UNMATCHED_PRIORITY: Final[Priority] = Priority.MEDIUM
EMPTY_PRIORITY: Final[Priority] = Priority.LOW

# "unclassified" must be checked before anything else can match inside it.
UNCLASSIFIED_SITE_TYPE_MARKERS: Final[tuple[str, ...]] = ("unclassified", "미분류")
SITE_TYPE_MARKERS: Final[tuple[tuple[SiteType, tuple[str, ...]], ...]] = (
    (SiteType.AGGREGATOR, ("aggregator", "애그리게이터")),
    (SiteType.SCANLATION, ("scanlation", "스캔번역")),
    (SiteType.CLONE, ("clone", "클론")),
    (SiteType.BLOG, ("blog", "블로그")),
    (SiteType.OTHER, ("other", "기타")),
)

SITE_STATUS_EXACT: Final[dict[str, SiteStatus]] = {
    "active": SiteStatus.ACTIVE,
    "운영중": SiteStatus.ACTIVE,
    "closed": SiteStatus.CLOSED,
    "폐쇄": SiteStatus.CLOSED,
    "redirected": SiteStatus.REDIRECTED,
}
SITE_STATUS_REDIRECT_MARKERS: Final[tuple[str, ...]] = ("redirect", "changed", "변경")

_SCHEME_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def _normalized(text: str | None) -> str:
    return (text or "").strip().lower()


def _contains_any(text: str, markers: Sequence[str]) -> bool:
    return any(marker in text for marker in markers)


def classify_priority(recommendation: str | None) -> Priority:
    """Map advisory text from the feed to a local priority tier."""

    text = _normalized(recommendation)
    if not text:
        return EMPTY_PRIORITY
    for priority, markers in PRIORITY_MARKERS:
        if _contains_any(text, markers):
            return priority
    return UNMATCHED_PRIORITY


def is_top_target(recommendation: str | None) -> bool:
    return classify_priority(recommendation) is Priority.CRITICAL


def needs_investigation(recommendation: str | None) -> bool:
    return classify_priority(recommendation) is Priority.HIGH


def is_low_priority(recommendation: str | None) -> bool:
    """True for empty text and for the explicit low-priority family."""

    return classify_priority(recommendation) is Priority.LOW


def should_auto_register(recommendation: str | None, options: AutoRegisterOptions) -> bool:
    """Decide whether an unseen domain should be registered as a new site.

    Any single condition is enough. ``auto_add_recommended`` is the catch-all: any
    substantive advisory (non-empty, not low-priority) triggers registration even when
    both explicit tier flags are off.
    """

    if options.sync_all:
        return True
    if options.auto_add_top_targets and is_top_target(recommendation):
        return True
    if options.auto_add_needed and needs_investigation(recommendation):
        return True
    return options.auto_add_recommended and not is_low_priority(recommendation)


def change_importance(recommendation: str | None) -> Importance:
    """Importance of a timeline entry announcing ``recommendation``."""

    priority = classify_priority(recommendation)
    if priority is Priority.CRITICAL:
        return Importance.CRITICAL
    if priority is Priority.HIGH:
        return Importance.HIGH
    return Importance.NORMAL


def normalize_site_type(external: str | None) -> SiteType | None:
    """Map the feed's site type onto :class:`SiteType`; ``None`` means "no opinion"."""

    text = _normalized(external)
    if not text or _contains_any(text, UNCLASSIFIED_SITE_TYPE_MARKERS):
        return None
    for site_type, markers in SITE_TYPE_MARKERS:
        if _contains_any(text, markers):
            return site_type
    return None


def normalize_site_status(external: str | None) -> SiteStatus:
    text = _normalized(external)
    if not text:
        return SiteStatus.UNKNOWN
    exact = SITE_STATUS_EXACT.get(text)
    if exact is not None:
        return exact
    if _contains_any(text, SITE_STATUS_REDIRECT_MARKERS):
        return SiteStatus.REDIRECTED
    return SiteStatus.UNKNOWN


def normalize_domain(domain: str) -> str:
    """The form domains are compared in: hostnames are case-insensitive."""

    return domain.strip().lower()


def domain_from_url(url: str) -> str:
    """Reduce a successor URL such as ``https://New.example/`` to ``new.example``."""

    return normalize_domain(_SCHEME_RE.sub("", url.strip()).rstrip("/"))


def format_metric(value: float | None) -> str | None:
    """Render a traffic figure the way the investigator UI displays it."""

    if value is None:
        return None
    return f"{value:,}"
