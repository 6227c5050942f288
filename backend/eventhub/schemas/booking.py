"""
Pydantic schemas for booking write/read validation.
"""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(value):
    if not isinstance(value, str):
        return value
    email = value.strip().lower()
    if not email:
        raise ValueError("is required")
    if not EMAIL_PATTERN.match(email):
        raise ValueError("must be a valid email address")
    return email


class BookingCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_id: uuid.UUID
    email: str

    @field_validator("email", mode="before")
    @classmethod
    def clean_email(cls, value):
        return normalize_email(value)


class BookingUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_id: Optional[uuid.UUID] = None
    email: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def clean_email(cls, value):
        return normalize_email(value)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class BookingResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
