"""Synchronization defaults for the external feed sync."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_HISTORY_LIMIT = 20


@dataclass(frozen=True, slots=True)
class SyncConfig:
    auto_add_top_targets: bool = True
    auto_add_needed: bool = True
    sync_all: bool = False
    auto_add_recommended: bool = True
    history_limit: int = DEFAULT_HISTORY_LIMIT


def get_sync_config() -> SyncConfig:
    return SyncConfig()
