"""Read-only connection handle for the external monitoring database."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError

from sitetrace.config import ExternalSourceConfig, get_external_source_config

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy import Executable, RowMapping
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class ExternalSourceError(RuntimeError):
    """Raised when the external source cannot be queried."""


class ExternalSourceNotConnectedError(ExternalSourceError):
    """Raised when a closed client is used."""


class ExternalPayloadError(ExternalSourceError):
    """Raised when an external row does not match the expected shape."""


@dataclass(frozen=True, slots=True)
class ConnectionStatus:
    success: bool
    message: str
    tables: tuple[str, ...] = field(default_factory=tuple)


def _engine_options(config: ExternalSourceConfig) -> dict[str, Any]:
    options: dict[str, Any] = {
        "pool_size": config.pool_size,
        "max_overflow": 0,
        "pool_timeout": config.pool_timeout_seconds,
        "pool_recycle": config.pool_recycle_seconds,
        "pool_pre_ping": True,
    }
    if config.is_postgres:
        connect_args: dict[str, Any] = {
            "connect_timeout": config.connect_timeout_seconds,
            # every session is read-only; the sync never writes upstream
            "options": "-c default_transaction_read_only=on",
        }
        if config.sslmode:
            connect_args["sslmode"] = config.sslmode
        options["connect_args"] = connect_args
    return options


class ExternalSourceClient:
    """Owns the connection pool to the external source.

    The caller controls the lifecycle: build it with :meth:`connect` (or hand in an
    engine), pass it to the feed reader, and :meth:`close` it when done.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine: Engine | None = engine

    @classmethod
    def connect(cls, config: ExternalSourceConfig | None = None) -> ExternalSourceClient:
        resolved = config or get_external_source_config()
        engine = create_engine(resolved.url, future=True, **_engine_options(resolved))
        log.info("External source connection pool created (pool_size=%s)", resolved.pool_size)
        return cls(engine)

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise ExternalSourceNotConnectedError("External source client is closed")
        return self._engine

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            log.info("External source connection closed")

    def __enter__(self) -> ExternalSourceClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def fetch_all(self, statement: Executable) -> list[RowMapping]:
        """Run a SELECT and return its rows as mappings."""

        try:
            with self.engine.connect() as connection:
                return list(connection.execute(statement).mappings())
        except SQLAlchemyError as exc:
            raise ExternalSourceError(f"External query failed: {exc}") from exc

    def check_connection(self) -> ConnectionStatus:
        """Connect to the source and list its tables; never raises."""

        if self._engine is None:
            return ConnectionStatus(success=False, message="External source is not configured")
        try:
            tables = tuple(sorted(inspect(self._engine).get_table_names()))
        except SQLAlchemyError as exc:
            log.warning("External source connection check failed: %s", exc)
            return ConnectionStatus(success=False, message=f"Connection failed: {exc}")
        return ConnectionStatus(
            success=True,
            message=f"Connected. {len(tables)} tables found.",
            tables=tables,
        )
