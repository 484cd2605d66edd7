"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import func, select

from sitetrace.adapters.sqlalchemy.mappings import (
    domain_history_table,
    osint_entry_table,
    site_table,
    sync_log_table,
    timeline_event_table,
)
from sitetrace.domain.classification import normalize_domain
from sitetrace.domain.model import (
    DomainHistoryEntry,
    OsintEntry,
    Site,
    SyncLogEntry,
    TimelineEvent,
)

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.orm import Session

    from sitetrace.domain.model import EntityKind


class SqlAlchemySiteRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Site) -> None:
        self.session.add(entity)

    def list_all(self) -> list[Site]:
        stmt = select(Site).order_by(site_table.c.domain)
        return list(self.session.execute(stmt).scalars())

    def get_by_domain(self, domain: str) -> Site | None:
        stmt = select(Site).where(func.lower(site_table.c.domain) == normalize_domain(domain))
        return self.session.execute(stmt).scalars().first()


class SqlAlchemyDomainHistoryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: DomainHistoryEntry) -> None:
        # no relationship orders the flush, so a pending parent site must go first
        self.session.flush()
        self.session.add(entity)

    def for_site(self, site_id: uuid.UUID) -> list[DomainHistoryEntry]:
        stmt = (
            select(DomainHistoryEntry)
            .where(domain_history_table.c.site_id == site_id)
            .order_by(domain_history_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())

    def has_domain(self, domain: str) -> bool:
        stmt = (
            select(domain_history_table.c.id)
            .where(func.lower(domain_history_table.c.domain) == normalize_domain(domain))
            .limit(1)
        )
        return self.session.execute(stmt).first() is not None


class SqlAlchemyTimelineEventRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: TimelineEvent) -> None:
        self.session.add(entity)

    def for_entity(self, entity_type: EntityKind, entity_id: uuid.UUID) -> list[TimelineEvent]:
        stmt = (
            select(TimelineEvent)
            .where(timeline_event_table.c.entity_type == entity_type)
            .where(timeline_event_table.c.entity_id == entity_id)
            .order_by(timeline_event_table.c.event_date, timeline_event_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyOsintEntryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: OsintEntry) -> None:
        self.session.add(entity)

    def exists_with_raw_input(
        self, entity_type: EntityKind, entity_id: uuid.UUID, raw_input: str
    ) -> bool:
        stmt = (
            select(osint_entry_table.c.id)
            .where(osint_entry_table.c.entity_type == entity_type)
            .where(osint_entry_table.c.entity_id == entity_id)
            .where(osint_entry_table.c.raw_input == raw_input)
            .limit(1)
        )
        return self.session.execute(stmt).first() is not None


class SqlAlchemySyncLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncLogEntry) -> None:
        self.session.add(entity)

    def recent(self, limit: int) -> list[SyncLogEntry]:
        stmt = (
            select(SyncLogEntry)
            .order_by(sync_log_table.c.completed_at.desc(), sync_log_table.c.started_at.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from sitetrace.domain.ports.persistence import (
        DomainHistoryRepository,
        OsintEntryRepository,
        SiteRepository,
        SyncLogRepository,
        TimelineEventRepository,
    )

    _session_stub = cast("Session", object())
    _site_repo: SiteRepository = SqlAlchemySiteRepository(_session_stub)
    _history_repo: DomainHistoryRepository = SqlAlchemyDomainHistoryRepository(_session_stub)
    _timeline_repo: TimelineEventRepository = SqlAlchemyTimelineEventRepository(_session_stub)
    _osint_repo: OsintEntryRepository = SqlAlchemyOsintEntryRepository(_session_stub)
    _sync_log_repo: SyncLogRepository = SqlAlchemySyncLogRepository(_session_stub)
