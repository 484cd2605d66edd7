"""Ports for persisting local investigation records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sitetrace.domain.model import (
    DomainHistoryEntry,
    OsintEntry,
    Site,
    SyncLogEntry,
    TimelineEvent,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sitetrace.domain.model import EntityKind


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class SiteRepository(Repository[Site], Protocol):
    def list_all(self) -> Sequence[Site]: ...

    def get_by_domain(self, domain: str) -> Site | None: ...


@runtime_checkable
class DomainHistoryRepository(Repository[DomainHistoryEntry], Protocol):
    """Append-only store; there is deliberately no update or delete."""

    def for_site(self, site_id: UUID) -> Sequence[DomainHistoryEntry]: ...

    def has_domain(self, domain: str) -> bool: ...


@runtime_checkable
class TimelineEventRepository(Repository[TimelineEvent], Protocol):
    def for_entity(self, entity_type: EntityKind, entity_id: UUID) -> Sequence[TimelineEvent]: ...


@runtime_checkable
class OsintEntryRepository(Repository[OsintEntry], Protocol):
    def exists_with_raw_input(
        self, entity_type: EntityKind, entity_id: UUID, raw_input: str
    ) -> bool: ...


@runtime_checkable
class SyncLogRepository(Repository[SyncLogEntry], Protocol):
    def recent(self, limit: int) -> Sequence[SyncLogEntry]: ...
