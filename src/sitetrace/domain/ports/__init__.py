"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import FeedSource
from .persistence import (
    DomainHistoryRepository,
    OsintEntryRepository,
    Repository,
    SiteRepository,
    SyncLogRepository,
    TimelineEventRepository,
)
from .unit_of_work import RepositoryCollection, SyncRepositories, SyncUnitOfWork, UnitOfWork

__all__ = [
    "DomainHistoryRepository",
    "FeedSource",
    "OsintEntryRepository",
    "Repository",
    "RepositoryCollection",
    "SiteRepository",
    "SyncLogRepository",
    "SyncRepositories",
    "SyncUnitOfWork",
    "TimelineEventRepository",
    "UnitOfWork",
]
