"""Note-style evidence records attached to sites and persons."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sitetrace.domain.model.entity import Entity
from sitetrace.domain.model.enums import Confidence, EntityKind

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class OsintEntry(Entity):
    entity_type: EntityKind
    entity_id: UUID
    title: str
    category: str | None = None
    content: str | None = None
    raw_input: str | None = None
    source: str | None = None
    confidence: Confidence = Confidence.MEDIUM
    is_key_evidence: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime | None = None
