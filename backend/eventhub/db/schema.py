"""
Index/query surface.

Indexes are declared on the models (`__table_args__`):
  - uq_events_slug           events(slug)               unique
  - ix_bookings_event_id     bookings(event_id)
  - ix_bookings_event_email  bookings(event_id, email)  not unique

This module only makes sure they exist. create_all is idempotent and is not
a migration tool: it never alters an existing table.
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from eventhub.core.logging import get_logger
from eventhub.db.base import Base
from eventhub.models.booking import Booking  # noqa: F401  registers the table
from eventhub.models.event import Event  # noqa: F401  registers the table

logger = get_logger(__name__)


def index_names() -> list[str]:
    return sorted(ix.name for table in Base.metadata.sorted_tables for ix in table.indexes)


async def ensure_indexes(engine: AsyncEngine) -> None:
    """Create the events/bookings tables and their indexes if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("indexes_ensured", indexes=index_names())
