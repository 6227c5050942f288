"""
Event document.

Key design decisions:
- `slug` is derived from `title` by the service layer and never set by callers
- Unique index on `slug` is the storage-level backstop for duplicate titles
- `agenda` and `tags` are JSON lists; emptiness is rejected before flush
- `date`/`time` are canonical strings (YYYY-MM-DD / HH:MM), not native types
"""

from sqlalchemy import Column, String, Text, JSON, Index

from eventhub.db.base import Base, DocumentMixin, TimestampMixin


class Event(Base, DocumentMixin, TimestampMixin):
    __tablename__ = "events"

    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    overview = Column(Text, nullable=False)
    image = Column(String(1024), nullable=False)
    venue = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    date = Column(String(10), nullable=False)
    time = Column(String(5), nullable=False)
    mode = Column(String(20), nullable=False)
    audience = Column(String(255), nullable=False)
    agenda = Column(JSON, nullable=False)
    organizer = Column(Text, nullable=False)
    tags = Column(JSON, nullable=False)

    __table_args__ = (
        # Slug lookups back the public event pages and duplicate detection
        Index("uq_events_slug", "slug", unique=True),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, slug={self.slug}, date={self.date} {self.time})>"
