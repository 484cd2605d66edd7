"""Reconciliation of the external feed into the local investigation store."""

from __future__ import annotations

from .contracts import Clock, SyncCounts, SyncOptions, SyncResult, utcnow
from .engine import FEED_SOURCE, ReconciliationEngine

__all__ = [
    "FEED_SOURCE",
    "Clock",
    "ReconciliationEngine",
    "SyncCounts",
    "SyncOptions",
    "SyncResult",
    "utcnow",
]
