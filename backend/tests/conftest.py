"""
Pytest fixtures for the data layer.

Each test gets its own file-backed SQLite database (aiosqlite driver) with
tables and indexes created up front, so tests are isolated without a
database server.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eventhub.core.config import get_settings
from eventhub.db.schema import ensure_indexes
from eventhub.infrastructure.connection import ConnectionManager, reset_connection_manager
from eventhub.models import Event
from eventhub.services.event_service import create_event


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'eventhub_test.db'}"


@pytest.fixture
def configured_env(monkeypatch, database_url):
    """Point process configuration at the test database."""
    monkeypatch.setenv("DATABASE_URL", database_url)
    get_settings.cache_clear()
    reset_connection_manager()
    yield database_url
    get_settings.cache_clear()
    reset_connection_manager()


@pytest_asyncio.fixture
async def manager(database_url) -> AsyncGenerator[ConnectionManager, None]:
    """Connected manager with the schema in place; disposed after the test."""
    manager = ConnectionManager(database_url)
    engine = await manager.acquire()
    await ensure_indexes(engine)
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def db_session(manager: ConnectionManager) -> AsyncGenerator[AsyncSession, None]:
    engine = await manager.acquire()
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def event_payload() -> dict:
    return {
        "title": "My Cool Talk!!",
        "description": "A talk about cool things",
        "overview": "Short overview",
        "image": "/images/cool-talk.png",
        "venue": "Main Hall",
        "location": "Oslo, Norway",
        "date": "2025-01-13",
        "time": "09:05",
        "mode": "hybrid",
        "audience": "Developers",
        "agenda": ["Welcome", "Keynote", "Q&A"],
        "organizer": "Python Oslo",
        "tags": ["python", "async"],
    }


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, event_payload: dict) -> Event:
    event = await create_event(db_session, event_payload)
    await db_session.commit()
    return event
