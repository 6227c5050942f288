"""
Eventhub data layer - process lifecycle.

Startup:
- configure structured logging
- refuse to start without DATABASE_URL (ConfigurationError is fatal)
- open the one shared connection and make sure indexes exist

Shutdown:
- dispose the shared connection

Request handlers run inside `lifespan()` and use `session_scope()` plus the
event/booking services; they never open connections of their own.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from eventhub.core.config import get_settings
from eventhub.core.logging import setup_logging, get_logger
from eventhub.db.schema import ensure_indexes
from eventhub.infrastructure.connection import ConnectionManager, get_connection_manager


@asynccontextmanager
async def lifespan(manager: Optional[ConnectionManager] = None) -> AsyncIterator[AsyncEngine]:
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)
    settings = get_settings()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    manager = manager or get_connection_manager()
    engine = await manager.acquire()
    await ensure_indexes(engine)
    logger.info("database_ready")

    try:
        yield engine
    finally:
        await manager.close()
        logger.info("application_shutdown")
