"""SQLAlchemy adapter package for the local investigation store."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyDomainHistoryRepository,
    SqlAlchemyOsintEntryRepository,
    SqlAlchemySiteRepository,
    SqlAlchemySyncLogRepository,
    SqlAlchemyTimelineEventRepository,
)
from .unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyDomainHistoryRepository",
    "SqlAlchemyOsintEntryRepository",
    "SqlAlchemySiteRepository",
    "SqlAlchemySyncLogRepository",
    "SqlAlchemySyncUnitOfWork",
    "SqlAlchemyTimelineEventRepository",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
