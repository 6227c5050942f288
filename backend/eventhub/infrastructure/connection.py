"""
Process-wide connection cache.

CONNECTION LIFECYCLE
====================

Init:      the first acquire() call starts the one and only connection attempt.
Runtime:   every later acquire() returns the cached engine without I/O.
Teardown:  close() disposes the engine; lifespan() calls it on shutdown.

Concurrent first use
--------------------
Several requests can hit acquire() before the first attempt finishes. The
attempt is stored as an asyncio.Task in `_pending`; every caller that finds
a pending task awaits that same task instead of opening its own connection.
The task is shielded so a cancelled waiter does not cancel the attempt for
everyone else. No lock is needed: the event loop is single-threaded and the
check-then-set of `_pending` has no await in between.

Failure
-------
A failed attempt clears `_pending` before the error reaches any waiter, so
the failure is never cached and the next acquire() retries from scratch.
An attempt only touches `_pending` while the slot still holds its own task:
once close() has dropped it, a late finisher disposes what it opened and
fails instead of overwriting a newer attempt or installing a stale engine.

No command buffering
--------------------
The attempt opens a real connection and runs SELECT 1 before the engine is
handed out. A caller never gets an engine that would lazily queue work
against a link that has not been established.
"""

import asyncio
from functools import lru_cache
from typing import Awaitable, Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from eventhub.core.config import Settings, get_settings
from eventhub.core.errors import StorageConnectionError
from eventhub.core.logging import get_logger
from eventhub.core.metrics import connection_attempts

logger = get_logger(__name__)

Opener = Callable[[str], Awaitable[AsyncEngine]]


async def open_engine(url: str, **engine_options) -> AsyncEngine:
    """Create an engine and prove the link is live before returning it."""
    engine = create_async_engine(url, **engine_options)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except BaseException:
        await engine.dispose()
        raise
    return engine


class ConnectionManager:
    """Hands out exactly one live engine per process."""

    def __init__(
        self,
        database_url: str,
        *,
        opener: Optional[Opener] = None,
        connect_timeout: Optional[float] = None,
        engine_options: Optional[dict] = None,
    ) -> None:
        self._url = database_url
        self._engine_options = engine_options or {}
        self._opener = opener or (lambda url: open_engine(url, **self._engine_options))
        self._connect_timeout = connect_timeout
        self._connection: Optional[AsyncEngine] = None
        self._pending: Optional[asyncio.Task] = None
        self.attempts = 0

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "ConnectionManager":
        """Build from configuration. Raises ConfigurationError if DATABASE_URL is unset."""
        settings = settings or get_settings()
        url = settings.require_database_url()
        kwargs.setdefault("connect_timeout", settings.DB_CONNECT_TIMEOUT)
        kwargs.setdefault("engine_options", settings.engine_options())
        return cls(url, **kwargs)

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def acquire(self) -> AsyncEngine:
        if self._connection is not None:
            return self._connection

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._attempt())

        return await asyncio.shield(self._pending)

    async def _attempt(self) -> AsyncEngine:
        task = asyncio.current_task()
        self.attempts += 1
        logger.info("connection_attempt_started", attempt=self.attempts)
        try:
            if self._connect_timeout:
                engine = await asyncio.wait_for(self._opener(self._url), self._connect_timeout)
            else:
                engine = await self._opener(self._url)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            self._release(task)
            connection_attempts.labels(result="failure").inc()
            logger.error("connection_failed", attempt=self.attempts, error=str(e))
            raise StorageConnectionError(f"could not connect to database: {e}") from e
        except BaseException:
            self._release(task)
            connection_attempts.labels(result="failure").inc()
            raise

        if self._pending is not task:
            # close() ran while this attempt was in flight
            if isinstance(engine, AsyncEngine):
                await engine.dispose()
            connection_attempts.labels(result="failure").inc()
            logger.info("connection_attempt_superseded", attempt=self.attempts)
            raise StorageConnectionError("connection attempt superseded by close()")

        self._connection = engine
        self._pending = None
        connection_attempts.labels(result="success").inc()
        logger.info("connection_established", attempt=self.attempts)
        return engine

    def _release(self, task: Optional[asyncio.Task]) -> None:
        """Clear the in-flight slot only if it still belongs to `task`."""
        if self._pending is task:
            self._pending = None

    async def close(self) -> None:
        """Dispose the cached engine. A later acquire() reconnects."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        if self._connection is not None:
            await self._connection.dispose()
            self._connection = None
            logger.info("connection_closed")


@lru_cache()
def get_connection_manager() -> ConnectionManager:
    """Process-wide manager. Raises ConfigurationError if DATABASE_URL is unset."""
    return ConnectionManager.from_settings()


def reset_connection_manager() -> None:
    """Forget the process-wide manager (tests, settings reloads)."""
    get_connection_manager.cache_clear()


async def connect() -> AsyncEngine:
    return await get_connection_manager().acquire()
