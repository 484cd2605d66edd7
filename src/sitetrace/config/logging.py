"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_VAR = "SITETRACE_LOG_LEVEL"
# SQL echo and migration chatter drown out the sync summary at INFO.
QUIET_LOGGERS = ("sqlalchemy.engine", "alembic.runtime.migration")


def _level_from_env(default: int) -> int:
    raw = os.getenv(LOG_LEVEL_VAR, "").strip().upper()
    if not raw:
        return default
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else default


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once.

    ``level`` wins over ``SITETRACE_LOG_LEVEL``, which wins over INFO. Pass
    ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level if level is not None else _level_from_env(logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
