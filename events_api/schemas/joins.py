from datetime import datetime
from typing import Literal

from pydantic import Field

from events_api.schemas.common import CamelModel


class JoinRequest(CamelModel):
    event_id: int = Field(ge=1)
    user_name: str | None = Field(default=None, max_length=200)
    amount: float = Field(default=0, ge=0)
    transaction_id: str | None = Field(default=None, max_length=255)


class JoinOut(CamelModel):
    id: int
    event_id: int
    user_email: str
    user_name: str | None
    amount: float
    transaction_id: str
    status: str
    joined_date: datetime


class JoinResultOut(CamelModel):
    success: bool = True
    message: str
    inserted_id: int
    join: JoinOut


class JoinedEventSummary(CamelModel):
    id: int
    event_name: str
    category: str | None
    location: str | None
    image: str | None
    event_date: datetime
    status: str


class JoinedEventOut(JoinOut):
    # None when the event has been deleted out from under the join.
    event: JoinedEventSummary | None = None


class MembershipOut(CamelModel):
    is_joined: bool


class JoinStatusUpdate(CamelModel):
    status: Literal["pending", "success", "failed"]
