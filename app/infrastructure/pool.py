"""Bounded connection pool over the database driver collaborator.

Connections move through CONNECTING -> BUSY <-> READY -> CLOSED. A CONNECTING
entry already counts against ``max_size``; CLOSED entries are pruned before
every search. When the pool is saturated, ``acquire`` waits on a condition
that ``release`` notifies, up to a timeout.

All mutation of ``_entries`` happens while holding ``_cond`` and without
awaiting in between, so it is safe for tasks on one event loop, not threads.
"""

import asyncio
import enum
import itertools
import time
from typing import Any, Awaitable, Callable, Optional

import structlog

from app.core.exceptions import DatabaseUnavailableError, PoolClosedError, PoolTimeoutError

logger = structlog.get_logger(__name__)


class ConnectionState(enum.Enum):
    CONNECTING = "connecting"
    READY = "ready"
    BUSY = "busy"
    CLOSED = "closed"


class Connection:
    """A pooled handle around one raw driver connection."""

    def __init__(self, conn_id: str):
        self.conn_id = conn_id
        self.state = ConnectionState.CONNECTING
        self.raw: Any = None
        self.last_error: Optional[BaseException] = None
        self.created_at = time.monotonic()
        self.use_count = 0

    def mark_busy(self) -> None:
        self.state = ConnectionState.BUSY
        self.use_count += 1

    async def close(self) -> None:
        self.state = ConnectionState.CLOSED
        raw, self.raw = self.raw, None
        if raw is not None:
            await raw.close()

    def __repr__(self):
        return f"<Connection {self.conn_id} {self.state.value}>"


class ConnectionPool:
    """Hands out at most ``max_size`` live connections."""

    def __init__(
        self,
        connect: Callable[[], Awaitable[Any]],
        max_size: int = 10,
        acquire_timeout: float = 10.0,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._connect = connect
        self.max_size = max_size
        self.acquire_timeout = acquire_timeout
        self._entries: list[Connection] = []
        self._cond = asyncio.Condition()
        self._closed = False
        self._ids = itertools.count(1)

    @property
    def entries(self) -> tuple[Connection, ...]:
        return tuple(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def _prune(self) -> None:
        self._entries = [c for c in self._entries if c.state is not ConnectionState.CLOSED]

    def _first_ready(self) -> Optional[Connection]:
        for conn in self._entries:
            if conn.state is ConnectionState.READY:
                return conn
        return None

    async def acquire(self, timeout: Optional[float] = None) -> Connection:
        """Return a connection marked BUSY for the caller's exclusive use.

        Raises:
            PoolTimeoutError: nothing became available within ``timeout``.
            PoolClosedError: the pool was shut down.
            DatabaseUnavailableError: opening a new connection failed.
        """
        timeout = self.acquire_timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        async with self._cond:
            while True:
                if self._closed:
                    raise PoolClosedError()
                self._prune()

                conn = self._first_ready()
                if conn is not None:
                    conn.mark_busy()
                    return conn

                if len(self._entries) < self.max_size:
                    conn = Connection(f"conn-{next(self._ids)}")
                    self._entries.append(conn)
                    break

                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise self._timeout_error(timeout)
                try:
                    await asyncio.wait_for(self._cond.wait(), remaining)
                except asyncio.TimeoutError:
                    raise self._timeout_error(timeout) from None

        return await self._open(conn)

    async def _open(self, conn: Connection) -> Connection:
        try:
            conn.raw = await self._connect()
        except BaseException as e:  # includes cancellation; the reserved slot must be freed
            conn.last_error = e
            async with self._cond:
                conn.state = ConnectionState.CLOSED
                self._prune()
                self._cond.notify()
            if isinstance(e, Exception):
                logger.error("Could not open database connection", conn_id=conn.conn_id, error=str(e))
                raise DatabaseUnavailableError("Could not connect to database") from e
            raise

        if self._closed:
            await self._close_quietly(conn)
            raise PoolClosedError()

        conn.mark_busy()
        logger.info("Opened database connection", conn_id=conn.conn_id, pool_size=len(self._entries))
        return conn

    def _timeout_error(self, timeout: float) -> PoolTimeoutError:
        logger.warning("Timed out waiting for a database connection", timeout=timeout, max_size=self.max_size)
        return PoolTimeoutError(details={"timeout": timeout})

    async def release(self, conn: Connection, failed: bool = False) -> None:
        """Return ``conn`` to the pool, or evict it after a terminal failure."""
        evict = False
        async with self._cond:
            if failed or conn.state is ConnectionState.CLOSED:
                conn.state = ConnectionState.CLOSED
                self._prune()
                evict = True
            elif conn.state is ConnectionState.BUSY:
                conn.state = ConnectionState.READY
            self._cond.notify()

        if evict:
            logger.warning("Evicted database connection", conn_id=conn.conn_id, error=str(conn.last_error))
            await self._close_quietly(conn)

    async def shutdown_all(self) -> None:
        """Close every open connection; failures are logged, not raised."""
        async with self._cond:
            self._closed = True
            to_close = [c for c in self._entries if c.state is not ConnectionState.CLOSED]
            for conn in to_close:
                conn.state = ConnectionState.CLOSED
            self._entries.clear()
            self._cond.notify_all()

        for conn in to_close:
            await self._close_quietly(conn)
        logger.info("Connection pool shut down", closed=len(to_close))

    async def _close_quietly(self, conn: Connection) -> None:
        try:
            await conn.close()
        except Exception as e:
            logger.warning("Error closing database connection", conn_id=conn.conn_id, error=str(e))

    def status(self) -> dict:
        """Current pool occupancy for monitoring."""
        states = [c.state for c in self._entries]
        return {
            "max_size": self.max_size,
            "size": len(states),
            "ready": states.count(ConnectionState.READY),
            "busy": states.count(ConnectionState.BUSY),
            "connecting": states.count(ConnectionState.CONNECTING),
            "closed": self._closed,
        }
