"""
Declarative base and shared column mixins for all documents.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DocumentMixin:
    """Every document is addressed by a random UUID."""

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    """System-managed created_at/updated_at, set on the Python side."""

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
