from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field

from events_api.schemas.common import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    display_name: str | None = Field(default=None, max_length=200)
    photo_url: str | None = Field(default=None, max_length=1000)


class UserOut(CamelModel):
    id: int
    email: str
    display_name: str | None
    photo_url: str | None
    role: str
    status: str
    created_at: datetime


class RoleOut(CamelModel):
    role: str
    status: str


class UserStatusUpdate(CamelModel):
    status: Literal["active", "suspended"] | None = None
    role: Literal["user", "admin"] | None = None


class TokenRequest(CamelModel):
    email: EmailStr


class TokenOut(CamelModel):
    token: str
    token_type: str = "bearer"
