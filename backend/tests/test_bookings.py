"""
Tests for bookings, focused on the write-time event reference check.
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.errors import (
    DocumentNotFoundError,
    EventReferenceError,
    ReferenceCheckFailed,
    ValidationError,
)
from eventhub.models import Booking, Event
from eventhub.schemas import BookingResponse
from eventhub.services.booking_service import (
    create_booking,
    find_booking,
    get_booking,
    list_bookings_for_event,
    update_booking,
)
from eventhub.services.event_service import create_event


@pytest.mark.asyncio
async def test_create_booking(db_session: AsyncSession, test_event):
    """Email is trimmed and lowercased before it is stored."""
    booking = await create_booking(
        db_session, {"event_id": test_event.id, "email": "  Ada.Lovelace@Example.COM "}
    )

    assert isinstance(booking.id, uuid.UUID)
    assert booking.event_id == test_event.id
    assert booking.email == "ada.lovelace@example.com"
    assert booking.created_at is not None


@pytest.mark.asyncio
async def test_booking_response_reads_stored_booking(db_session: AsyncSession, test_event):
    booking = await create_booking(db_session, {"event_id": test_event.id, "email": "ada@example.com"})

    response = BookingResponse.model_validate(booking)

    assert response.id == booking.id
    assert response.event_id == test_event.id
    assert response.email == "ada@example.com"
    assert response.created_at == booking.created_at


@pytest.mark.asyncio
async def test_create_booking_accepts_string_event_id(db_session: AsyncSession, test_event):
    booking = await create_booking(
        db_session, {"event_id": str(test_event.id), "email": "grace@example.com"}
    )
    assert booking.event_id == test_event.id


@pytest.mark.asyncio
async def test_create_booking_unknown_event(db_session: AsyncSession):
    """No booking may point at an event that is not stored."""
    missing = uuid.uuid4()
    with pytest.raises(EventReferenceError) as exc_info:
        await create_booking(db_session, {"event_id": missing, "email": "ada@example.com"})

    assert exc_info.value.event_id == missing
    assert exc_info.value.field == "event_id"
    assert exc_info.value.message == "event does not exist"

    await db_session.rollback()
    assert (await db_session.execute(Booking.__table__.select())).first() is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email",
    ["", "   ", "plainaddress", "missing-at.example.com", "ada@example", "ada @example.com", "@example.com"],
)
async def test_create_booking_invalid_email(db_session: AsyncSession, test_event, email):
    with pytest.raises(ValidationError) as exc_info:
        await create_booking(db_session, {"event_id": test_event.id, "email": email})
    assert exc_info.value.field == "email"


@pytest.mark.asyncio
async def test_create_booking_requires_event_id(db_session: AsyncSession):
    with pytest.raises(ValidationError) as exc_info:
        await create_booking(db_session, {"email": "ada@example.com"})
    assert exc_info.value.field == "event_id"


@pytest.mark.asyncio
async def test_create_booking_malformed_event_id(db_session: AsyncSession):
    with pytest.raises(ValidationError) as exc_info:
        await create_booking(db_session, {"event_id": "42", "email": "ada@example.com"})
    assert exc_info.value.field == "event_id"


@pytest.mark.asyncio
async def test_reference_lookup_failure_blocks_write():
    """A storage error during the existence check fails the write closed."""
    db = AsyncMock(spec=AsyncSession)
    db.execute.side_effect = OperationalError("SELECT events.id", {}, Exception("connection lost"))

    with pytest.raises(ReferenceCheckFailed) as exc_info:
        await create_booking(db, {"event_id": uuid.uuid4(), "email": "ada@example.com"})

    assert isinstance(exc_info.value.cause, OperationalError)
    assert isinstance(exc_info.value.__cause__, OperationalError)
    db.add.assert_not_called()
    db.flush.assert_not_called()


@pytest.mark.asyncio
async def test_update_email_skips_reference_check(db_session: AsyncSession, test_event):
    """Only writes that touch event_id look the event up."""
    booking = await create_booking(db_session, {"event_id": test_event.id, "email": "ada@example.com"})
    await db_session.commit()

    # Remove the event behind the booking's back; an email-only update must not notice.
    await db_session.execute(delete(Event).where(Event.id == test_event.id))
    await db_session.commit()

    updated = await update_booking(db_session, booking.id, {"email": "ADA@example.org"})
    assert updated.email == "ada@example.org"
    assert updated.event_id == test_event.id


@pytest.mark.asyncio
async def test_update_event_id_to_missing_event(db_session: AsyncSession, test_event):
    booking = await create_booking(db_session, {"event_id": test_event.id, "email": "ada@example.com"})
    await db_session.commit()

    with pytest.raises(EventReferenceError):
        await update_booking(db_session, booking.id, {"event_id": uuid.uuid4()})


@pytest.mark.asyncio
async def test_update_event_id_to_existing_event(db_session: AsyncSession, test_event, event_payload):
    booking = await create_booking(db_session, {"event_id": test_event.id, "email": "ada@example.com"})
    event_payload["title"] = "Another Talk"
    other = await create_event(db_session, event_payload)
    await db_session.commit()

    updated = await update_booking(db_session, booking.id, {"event_id": str(other.id)})
    assert updated.event_id == other.id


@pytest.mark.asyncio
async def test_update_same_event_id_is_not_a_change(db_session: AsyncSession, test_event):
    booking = await create_booking(db_session, {"event_id": test_event.id, "email": "ada@example.com"})
    await db_session.commit()
    await db_session.execute(delete(Event).where(Event.id == test_event.id))
    await db_session.commit()

    updated = await update_booking(db_session, booking.id, {"event_id": test_event.id})
    assert updated.event_id == test_event.id


@pytest.mark.asyncio
async def test_update_unknown_booking(db_session: AsyncSession):
    with pytest.raises(DocumentNotFoundError):
        await update_booking(db_session, uuid.uuid4(), {"email": "ada@example.com"})


@pytest.mark.asyncio
async def test_list_bookings_for_event(db_session: AsyncSession, test_event, event_payload):
    event_payload["title"] = "Other Talk"
    other = await create_event(db_session, event_payload)
    for email in ["a@example.com", "b@example.com"]:
        await create_booking(db_session, {"event_id": test_event.id, "email": email})
    await create_booking(db_session, {"event_id": other.id, "email": "c@example.com"})
    await db_session.commit()

    bookings = await list_bookings_for_event(db_session, test_event.id)
    assert sorted(b.email for b in bookings) == ["a@example.com", "b@example.com"]
    assert await list_bookings_for_event(db_session, uuid.uuid4()) == []


@pytest.mark.asyncio
async def test_duplicate_bookings_are_allowed_but_detectable(db_session: AsyncSession, test_event):
    """(event_id, email) is indexed, not unique; find_booking exposes duplicates."""
    assert await find_booking(db_session, test_event.id, "ada@example.com") is None

    first = await create_booking(db_session, {"event_id": test_event.id, "email": "ada@example.com"})
    second = await create_booking(db_session, {"event_id": test_event.id, "email": "ADA@example.com"})
    await db_session.commit()

    assert first.id != second.id
    found = await find_booking(db_session, test_event.id, " Ada@Example.com ")
    assert found is not None
    assert found.email == "ada@example.com"


@pytest.mark.asyncio
async def test_find_booking_invalid_email(db_session: AsyncSession, test_event):
    with pytest.raises(ValidationError):
        await find_booking(db_session, test_event.id, "not-an-email")


@pytest.mark.asyncio
async def test_get_booking(db_session: AsyncSession, test_event):
    booking = await create_booking(db_session, {"event_id": test_event.id, "email": "ada@example.com"})
    await db_session.commit()

    assert (await get_booking(db_session, booking.id)).email == "ada@example.com"
    assert await get_booking(db_session, uuid.uuid4()) is None
