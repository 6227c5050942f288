"""
Unit-of-work scoping on top of the cached connection.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from eventhub.core.errors import ConstraintViolation
from eventhub.core.logging import get_logger
from eventhub.infrastructure.connection import get_connection_manager

logger = get_logger(__name__)


class ConnectionProvider(Protocol):
    async def acquire(self) -> AsyncEngine: ...


@asynccontextmanager
async def session_scope(
    manager: Optional[ConnectionProvider] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session bound to the shared engine.
    Commits on clean exit, rolls back on any error.
    Pass `manager` to inject a test double instead of the process-wide one.
    """
    manager = manager or get_connection_manager()
    engine = await manager.acquire()
    session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)()
    try:
        yield session
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.warning("commit_rejected", error=str(e.orig))
        raise ConstraintViolation("unique index rejected the write") from e
    except BaseException:
        await session.rollback()
        raise
    finally:
        await session.close()
