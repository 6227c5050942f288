"""
Pydantic schemas for event write/read validation.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from eventhub.services.normalization import unique_items


class EventMode(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


def _clean_items(items: Optional[list[str]], name: str) -> Optional[list[str]]:
    if items is None:
        return None
    cleaned = [item.strip() for item in items]
    if any(not item for item in cleaned):
        raise ValueError(f"{name} items must not be blank")
    return cleaned


class EventCreate(BaseModel):
    """Full event document as written by a client. Every field is required."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    overview: str = Field(..., min_length=1)
    image: str = Field(..., min_length=1, max_length=1024)
    venue: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    date: str = Field(..., min_length=1)
    time: str = Field(..., min_length=1)
    mode: EventMode
    audience: str = Field(..., min_length=1, max_length=255)
    agenda: list[str] = Field(..., min_length=1)
    organizer: str = Field(..., min_length=1)
    tags: list[str] = Field(..., min_length=1)

    @field_validator("mode", mode="before")
    @classmethod
    def strip_mode(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("agenda")
    @classmethod
    def clean_agenda(cls, value: list[str]) -> list[str]:
        return _clean_items(value, "agenda")

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str]) -> list[str]:
        return unique_items(_clean_items(value, "tags"))

    def to_document(self) -> dict:
        return self.model_dump(mode="json")


class EventUpdate(BaseModel):
    """Partial write. Only fields explicitly set take part in the write."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    overview: Optional[str] = None
    image: Optional[str] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    mode: Optional[EventMode] = None
    audience: Optional[str] = None
    agenda: Optional[list[str]] = None
    organizer: Optional[str] = None
    tags: Optional[list[str]] = None

    @field_validator("mode", mode="before")
    @classmethod
    def strip_mode(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("agenda")
    @classmethod
    def clean_agenda(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return _clean_items(value, "agenda")

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        cleaned = _clean_items(value, "tags")
        return None if cleaned is None else unique_items(cleaned)

    def changes(self) -> dict:
        return self.model_dump(mode="json", exclude_unset=True)


EVENT_FIELDS = tuple(EventCreate.model_fields)


class EventResponse(BaseModel):
    id: uuid.UUID
    title: str
    slug: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: EventMode
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
