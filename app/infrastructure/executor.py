"""Parameterized query execution on pooled connections."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterable, Optional, Union

import structlog
from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql.elements import TextClause

from app.core.exceptions import (
    AppError,
    ConflictError,
    DatabaseUnavailableError,
    InvalidReferenceError,
    QueryError,
    ValidationError,
)
from app.infrastructure.database import Violation, classify_integrity_error, is_terminal_error
from app.infrastructure.pool import Connection, ConnectionPool

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class QueryParam:
    """A named bind parameter with its SQL type (a SQLAlchemy type class or instance)."""

    name: str
    type_: Any
    value: Any


@dataclass(frozen=True)
class QueryRequest:
    statement: str
    parameters: tuple[QueryParam, ...] = ()

    def compile(self) -> TextClause:
        clause = text(self.statement)
        if self.parameters:
            clause = clause.bindparams(
                *(bindparam(p.name, p.value, type_=p.type_) for p in self.parameters)
            )
        return clause


@dataclass(frozen=True)
class QueryResult:
    columns: tuple[str, ...]
    rows: tuple[tuple[Any, ...], ...]
    rowcount: int

    def first(self) -> Optional[tuple[Any, ...]]:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        row = self.first()
        return row[0] if row else None

    def mappings(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]

    def first_mapping(self) -> Optional[dict[str, Any]]:
        row = self.first()
        return dict(zip(self.columns, row)) if row else None


Statement = Union[str, QueryRequest]


def _as_request(statement: Statement, params: Iterable[QueryParam]) -> QueryRequest:
    if isinstance(statement, QueryRequest):
        return statement
    return QueryRequest(statement, tuple(params))


async def _run(raw: Any, request: QueryRequest, timeout: float) -> QueryResult:
    """Issue one statement and collect every row before returning."""
    result = await asyncio.wait_for(raw.execute(request.compile()), timeout)
    if not result.returns_rows:
        return QueryResult(columns=(), rows=(), rowcount=result.rowcount)
    columns = tuple(result.keys())
    rows = tuple(tuple(row) for row in result.fetchall())
    return QueryResult(columns=columns, rows=rows, rowcount=len(rows))


class TransactionScope:
    """Executes statements on one connection inside one open transaction."""

    def __init__(self, raw: Any, request_timeout: float):
        self._raw = raw
        self._request_timeout = request_timeout

    async def execute(self, statement: Statement, params: Iterable[QueryParam] = ()) -> QueryResult:
        return await _run(self._raw, _as_request(statement, params), self._request_timeout)


class QueryExecutor:
    """Runs statements through the pool, evicting connections that fail terminally.

    Nothing is retried here: errors surface to the caller as application
    errors. Unique violations become ``ConflictError``; missing references
    and NULLs in required columns become ``ValidationError``.
    """

    def __init__(self, pool: ConnectionPool, request_timeout: float = 30.0):
        self.pool = pool
        self.request_timeout = request_timeout

    async def execute(self, statement: Statement, params: Iterable[QueryParam] = ()) -> QueryResult:
        request = _as_request(statement, params)
        async with self._connection() as conn:
            async with conn.raw.begin():
                return await _run(conn.raw, request, self.request_timeout)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[TransactionScope]:
        """Run several statements atomically: all commit or none do."""
        async with self._connection() as conn:
            async with conn.raw.begin():
                yield TransactionScope(conn.raw, self.request_timeout)

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[Connection]:
        conn = await self.pool.acquire()
        failed = False
        try:
            yield conn
        except asyncio.CancelledError:
            failed = True
            raise
        except Exception as e:
            failed = is_terminal_error(e)
            if failed:
                conn.last_error = e
            translated = self._translate(e)
            if translated is e:
                raise
            raise translated from e
        finally:
            await self.pool.release(conn, failed=failed)

    def _translate(self, exc: Exception) -> Exception:
        if isinstance(exc, AppError):
            return exc
        if isinstance(exc, IntegrityError):
            return self._translate_integrity(exc)
        if is_terminal_error(exc):
            logger.error("Database connection failed", error=str(exc) or exc.__class__.__name__)
            return DatabaseUnavailableError()
        if isinstance(exc, SQLAlchemyError):
            logger.error("Database query failed", error=str(exc))
            return QueryError()
        return exc

    def _translate_integrity(self, exc: IntegrityError) -> AppError:
        violation, details = classify_integrity_error(exc)
        logger.warning("Constraint violation", violation=violation.value, error=str(exc.orig))
        if violation is Violation.UNIQUE:
            return ConflictError("Resource already exists", details=details)
        if violation is Violation.FOREIGN_KEY:
            return InvalidReferenceError(details=details)
        if violation is Violation.NOT_NULL:
            return ValidationError("A required value is missing", details=details)
        return QueryError("Database constraint violated", details=details)
