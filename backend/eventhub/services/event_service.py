"""
Event service: create/update with write-time normalization, plus lookups.

WRITE PATH
==========

1. Validate the incoming fields against the schema (required, non-blank,
   mode enum, non-empty agenda/tags).
2. Compute the set of fields this write changes: everything on create,
   a diff against the stored document on update.
3. Derive/canonicalize only what changed:
     title -> slug, date -> YYYY-MM-DD, time -> HH:MM check
4. Fail fast if the derived slug belongs to another event, then flush.
   The unique index on slug catches the race where two writers pass step 4
   concurrently; that IntegrityError surfaces as ConstraintViolation too.

Nothing is added to the session before steps 1-4 pass, so a rejected write
leaves no partial state behind.
"""

import uuid
from typing import Any, Mapping, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.errors import ConstraintViolation, DocumentNotFoundError, ValidationError
from eventhub.core.logging import get_logger
from eventhub.core.metrics import track_write
from eventhub.models.event import Event
from eventhub.schemas.base import as_document_id, parse_model
from eventhub.schemas.event import EVENT_FIELDS, EventCreate, EventUpdate
from eventhub.services.normalization import changed_fields, normalize_date, normalize_time, slugify

logger = get_logger(__name__)

EventInput = Union[EventCreate, EventUpdate, Mapping[str, Any]]


def prepare_event_write(document: Mapping[str, Any], changed: frozenset[str]) -> dict:
    """Apply derived-field rules to a validated document for the changed fields."""
    prepared = dict(document)

    if "title" in changed:
        slug = slugify(prepared["title"])
        if not slug:
            raise ValidationError("must contain at least one letter or digit", field="title")
        prepared["slug"] = slug

    if "date" in changed:
        prepared["date"] = normalize_date(prepared["date"])

    if "time" in changed:
        prepared["time"] = normalize_time(prepared["time"])

    return prepared


def snapshot(event: Event) -> dict:
    return {name: getattr(event, name) for name in EVENT_FIELDS}


async def _ensure_slug_available(
    db: AsyncSession, slug: str, exclude_id: Optional[uuid.UUID] = None
) -> None:
    query = select(Event.id).where(Event.slug == slug)
    if exclude_id is not None:
        query = query.where(Event.id != exclude_id)
    taken = (await db.execute(query)).scalar_one_or_none()
    if taken is not None:
        logger.warning("event_slug_taken", slug=slug, existing_event_id=str(taken))
        raise ConstraintViolation(f"an event with slug '{slug}' already exists", field="slug")


async def _flush(db: AsyncSession, event: Event) -> None:
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConstraintViolation(
            f"an event with slug '{event.slug}' already exists", field="slug"
        ) from e
    await db.refresh(event)


async def create_event(db: AsyncSession, data: EventInput) -> Event:
    """Validate, derive slug/date/time and insert a new event."""
    with track_write("event", "create"):
        document = parse_model(EventCreate, data).to_document()
        prepared = prepare_event_write(document, changed_fields({}, document))
        await _ensure_slug_available(db, prepared["slug"])

        event = Event(**prepared)
        db.add(event)
        await _flush(db, event)

    logger.info("event_created", event_id=str(event.id), slug=event.slug, date=event.date)
    return event


async def update_event(
    db: AsyncSession, event_id: Union[str, uuid.UUID], data: EventInput
) -> Event:
    """
    Apply a partial update. Slug is re-derived only if the title changed,
    date/time are re-checked only if they changed.
    """
    with track_write("event", "update"):
        event_id = as_document_id(event_id)
        incoming = parse_model(EventUpdate, data).changes()

        event = await get_event(db, event_id)
        if event is None:
            raise DocumentNotFoundError("event", event_id)

        previous = snapshot(event)
        changed = changed_fields(previous, incoming)
        if not changed:
            logger.debug("event_update_noop", event_id=str(event_id))
            return event

        merged = parse_model(EventCreate, {**previous, **incoming}).to_document()
        prepared = prepare_event_write(merged, changed)
        if "title" in changed:
            await _ensure_slug_available(db, prepared["slug"], exclude_id=event.id)

        for name in changed:
            setattr(event, name, prepared[name])
        if "title" in changed:
            event.slug = prepared["slug"]
        await _flush(db, event)

    logger.info("event_updated", event_id=str(event.id), fields=sorted(changed))
    return event


async def get_event(db: AsyncSession, event_id: Union[str, uuid.UUID]) -> Optional[Event]:
    """Return an event by id, or None if not found."""
    result = await db.execute(select(Event).where(Event.id == as_document_id(event_id)))
    return result.scalar_one_or_none()


async def get_event_by_slug(db: AsyncSession, slug: str) -> Optional[Event]:
    """Return an event by slug (uses uq_events_slug), or None."""
    result = await db.execute(select(Event).where(Event.slug == slug.strip().lower()))
    return result.scalar_one_or_none()


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Event], int]:
    """List events ordered by date then time, with pagination."""
    total = (await db.execute(select(func.count()).select_from(Event))).scalar()

    result = await db.execute(
        select(Event)
        .order_by(Event.date.asc(), Event.time.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total
