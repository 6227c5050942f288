"""
Booking service with write-time referential integrity.

REFERENCE CHECK
===============

A booking stores `event_id` as a plain column. Whenever a write sets or
changes it, the service looks the event up first:

  - event found        -> write proceeds
  - event missing      -> EventReferenceError, nothing is written
  - lookup blew up     -> ReferenceCheckFailed, nothing is written

The check fails closed: a storage error during the lookup blocks the write
instead of letting an unverified reference through. Updates that leave
`event_id` alone skip the lookup entirely.

Known race: an event removed between the check and the flush is not
re-verified. Deletion is outside this layer.
"""

import uuid
from typing import Any, Mapping, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.errors import (
    DocumentNotFoundError,
    EventReferenceError,
    ReferenceCheckFailed,
    ValidationError,
)
from eventhub.core.logging import get_logger
from eventhub.core.metrics import reference_checks, track_write
from eventhub.models.booking import Booking
from eventhub.models.event import Event
from eventhub.schemas.base import as_document_id, parse_model
from eventhub.schemas.booking import BookingCreate, BookingUpdate, normalize_email
from eventhub.services.normalization import changed_fields

logger = get_logger(__name__)

BookingInput = Union[BookingCreate, BookingUpdate, Mapping[str, Any]]


async def ensure_event_exists(
    db: AsyncSession, event_id: uuid.UUID, changed: frozenset[str]
) -> None:
    """Verify the referenced event if this write touches event_id."""
    if "event_id" not in changed:
        return

    try:
        result = await db.execute(select(Event.id).where(Event.id == event_id))
        found = result.scalar_one_or_none()
    except (SQLAlchemyError, OSError) as e:
        reference_checks.labels(result="error").inc()
        logger.error("booking_reference_check_failed", event_id=str(event_id), error=str(e))
        raise ReferenceCheckFailed(event_id, e) from e

    if found is None:
        reference_checks.labels(result="missing").inc()
        logger.warning("booking_rejected_missing_event", event_id=str(event_id))
        raise EventReferenceError(event_id)

    reference_checks.labels(result="found").inc()


async def create_booking(db: AsyncSession, data: BookingInput) -> Booking:
    """Validate email, verify the event exists, then insert."""
    with track_write("booking", "create"):
        document = parse_model(BookingCreate, data).model_dump()
        await ensure_event_exists(db, document["event_id"], changed_fields({}, document))

        booking = Booking(**document)
        db.add(booking)
        await db.flush()
        await db.refresh(booking)

    logger.info("booking_created", booking_id=str(booking.id), event_id=str(booking.event_id))
    return booking


async def update_booking(
    db: AsyncSession, booking_id: Union[str, uuid.UUID], data: BookingInput
) -> Booking:
    """Apply a partial update; re-check the event only if event_id changed."""
    with track_write("booking", "update"):
        booking_id = as_document_id(booking_id)
        incoming = parse_model(BookingUpdate, data).changes()

        booking = await get_booking(db, booking_id)
        if booking is None:
            raise DocumentNotFoundError("booking", booking_id)

        previous = {"event_id": booking.event_id, "email": booking.email}
        changed = changed_fields(previous, incoming)
        if not changed:
            return booking

        merged = parse_model(BookingCreate, {**previous, **incoming}).model_dump()
        await ensure_event_exists(db, merged["event_id"], changed)

        for name in changed:
            setattr(booking, name, merged[name])
        await db.flush()
        await db.refresh(booking)

    logger.info("booking_updated", booking_id=str(booking.id), fields=sorted(changed))
    return booking


async def get_booking(db: AsyncSession, booking_id: Union[str, uuid.UUID]) -> Optional[Booking]:
    result = await db.execute(select(Booking).where(Booking.id == as_document_id(booking_id)))
    return result.scalar_one_or_none()


async def list_bookings_for_event(
    db: AsyncSession, event_id: Union[str, uuid.UUID]
) -> list[Booking]:
    """All bookings for an event, oldest first (uses ix_bookings_event_id)."""
    result = await db.execute(
        select(Booking)
        .where(Booking.event_id == as_document_id(event_id, field="event_id"))
        .order_by(Booking.created_at.asc())
    )
    return list(result.scalars().all())


async def find_booking(
    db: AsyncSession, event_id: Union[str, uuid.UUID], email: str
) -> Optional[Booking]:
    """
    Existing booking for (event, email), if any. Callers use this to detect
    duplicate bookings; the composite index is not a uniqueness constraint.
    """
    try:
        email = normalize_email(email)
    except ValueError as e:
        raise ValidationError(str(e), field="email") from e

    result = await db.execute(
        select(Booking)
        .where(
            Booking.event_id == as_document_id(event_id, field="event_id"),
            Booking.email == email,
        )
        .order_by(Booking.created_at.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()
