"""Database driver collaborator: engine, declarative base and connection factory.

The engine is created with ``NullPool``: every ``connect()`` performs a real
handshake, and connection reuse is owned by ``app.infrastructure.pool``.
"""

import asyncio
import enum
from typing import Any

import structlog
from sqlalchemy import event
from sqlalchemy.exc import DBAPIError, DisconnectionError, IntegrityError, InterfaceError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.config import Settings

logger = structlog.get_logger(__name__)


class Base(DeclarativeBase):
    pass


# Failures after which a connection cannot serve further requests
TERMINAL_ERRORS = (InterfaceError, DisconnectionError, ConnectionError, OSError, asyncio.TimeoutError)


def is_terminal_error(exc: BaseException) -> bool:
    """Return True if ``exc`` means the connection must be discarded."""
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, DBAPIError) and isinstance(exc.orig, TERMINAL_ERRORS):
        return True
    return isinstance(exc, TERMINAL_ERRORS)


class Violation(enum.Enum):
    UNIQUE = "unique"
    FOREIGN_KEY = "foreign_key"
    NOT_NULL = "not_null"
    OTHER = "other"


# PostgreSQL SQLSTATE codes (class 23, integrity constraint violation)
_SQLSTATES = {
    "23505": Violation.UNIQUE,
    "23503": Violation.FOREIGN_KEY,
    "23502": Violation.NOT_NULL,
}

# SQLite reports the kind only in the message text
_SQLITE_MARKERS = (
    ("UNIQUE constraint failed", Violation.UNIQUE),
    ("FOREIGN KEY constraint failed", Violation.FOREIGN_KEY),
    ("NOT NULL constraint failed", Violation.NOT_NULL),
)


def classify_integrity_error(exc: IntegrityError) -> tuple[Violation, dict[str, Any]]:
    """Return which constraint failed, plus the column/constraint when the driver names it."""
    orig = exc.orig
    details: dict[str, Any] = {}

    # asyncpg: the adapted error carries the sqlstate, the raw driver error the names
    driver_error = getattr(orig, "__cause__", None)
    for attr, key in (("column_name", "column"), ("constraint_name", "constraint")):
        value = getattr(driver_error, attr, None)
        if value:
            details[key] = value

    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return _SQLSTATES.get(sqlstate, Violation.OTHER), details

    message = str(orig)
    for marker, violation in _SQLITE_MARKERS:
        if marker in message:
            if violation is Violation.NOT_NULL and ":" in message:
                # "NOT NULL constraint failed: table.column"
                details["column"] = message.rsplit(":", 1)[1].strip().rsplit(".", 1)[-1]
            return violation, details
    return Violation.OTHER, details


def _connect_args(settings: Settings) -> dict:
    """Driver-specific connection arguments."""
    if settings.DATABASE_URL.startswith("postgresql+asyncpg"):
        return {
            "timeout": settings.DB_CONNECT_TIMEOUT_SECONDS,
            "command_timeout": settings.DB_REQUEST_TIMEOUT_SECONDS,
            "server_settings": {"application_name": f"riceleaf_{settings.ENVIRONMENT}"},
        }
    return {}


def _enforce_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseConnector:
    """Opens raw connections with a connect timeout and bounded retries."""

    def __init__(self, settings: Settings, engine: AsyncEngine | None = None):
        self.settings = settings
        if engine is None:
            engine = create_async_engine(
                settings.DATABASE_URL,
                poolclass=NullPool,
                connect_args=_connect_args(settings),
            )
            if engine.dialect.name == "sqlite":
                # SQLite leaves foreign keys off unless asked, per connection
                event.listen(engine.sync_engine, "connect", _enforce_sqlite_foreign_keys)
        self.engine = engine
        self.max_retries = max(1, settings.DB_CONNECT_RETRIES)
        self.retry_backoff = settings.DB_RETRY_BACKOFF_SECONDS

    async def connect(self) -> AsyncConnection:
        """Open one connection, retrying with increasing backoff.

        Raises the last driver error once the retries are exhausted.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await asyncio.wait_for(
                    self.engine.connect(), timeout=self.settings.DB_CONNECT_TIMEOUT_SECONDS
                )
            except (DBAPIError, OSError, asyncio.TimeoutError) as e:
                logger.warning(
                    "Database connect failed",
                    attempt=attempt,
                    max_retries=self.max_retries,
                    error=str(e) or e.__class__.__name__,
                )
                if attempt >= self.max_retries:
                    logger.error("Database connect gave up", max_retries=self.max_retries)
                    raise
            await asyncio.sleep(self.retry_backoff * attempt)

    async def create_all(self) -> None:
        """Create tables for all declared models (dev only)."""
        # Import all models so SQLAlchemy knows about them
        from app.domain.models import disease, scan, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified")

    async def dispose(self) -> None:
        await self.engine.dispose()
