"""
Booking document: one attendee's reservation for an event.

Key design decisions:
- `event_id` is a plain indexed column, not a ForeignKey/relationship.
  Existence is checked by the booking service at write time; a booking
  never holds an in-memory reference to its Event.
- (event_id, email) is indexed but NOT unique; duplicate detection is left
  to callers via find_booking().
"""

from sqlalchemy import Column, String, Uuid, Index

from eventhub.db.base import Base, DocumentMixin, TimestampMixin


class Booking(Base, DocumentMixin, TimestampMixin):
    __tablename__ = "bookings"

    event_id = Column(Uuid, nullable=False)
    email = Column(String(320), nullable=False)

    __table_args__ = (
        # "List bookings for event"
        Index("ix_bookings_event_id", "event_id"),
        # Duplicate-booking lookups by (event, attendee)
        Index("ix_bookings_event_email", "event_id", "email"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, event={self.event_id}, email={self.email})>"
