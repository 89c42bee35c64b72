from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from events_api.database.db import as_utc
from events_api.schemas.common import CamelModel


# ---------- Event ----------
class EventCreate(CamelModel):
    event_name: str = Field(min_length=1, max_length=200)
    category: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=300)
    description: str | None = None
    image: str | None = Field(default=None, max_length=1000)
    event_date: datetime
    organizer_name: str | None = Field(default=None, max_length=200)
    # Honoured for admins only; everyone else organizes as themselves.
    organizer_email: EmailStr | None = None

    @field_validator("event_date")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventUpdate(CamelModel):
    event_name: str | None = Field(default=None, min_length=1, max_length=200)
    category: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=300)
    description: str | None = None
    image: str | None = Field(default=None, max_length=1000)
    event_date: datetime | None = None
    organizer_name: str | None = Field(default=None, max_length=200)
    status: Literal["active", "inactive", "cancelled"] | None = None

    @field_validator("event_date")
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class EventOut(CamelModel):
    id: int
    event_name: str
    category: str | None
    location: str | None
    description: str | None
    image: str | None
    event_date: datetime
    organizer_email: str
    organizer_name: str | None
    participants: int
    status: str
    posted_at: datetime


class EventListOut(CamelModel):
    success: bool = True
    events: list[EventOut]


class EventDetailOut(CamelModel):
    success: bool = True
    event: EventOut
