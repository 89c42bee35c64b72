import enum
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from events_api.database.db import Base, utcnow


class EventStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), index=True)
    location: Mapped[str | None] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text)
    image: Mapped[str | None] = mapped_column(String(1000))
    event_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    organizer_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    organizer_name: Mapped[str | None] = mapped_column(String(200))
    participants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=EventStatus.ACTIVE.value)
    posted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    joins: Mapped[list["JoinRecord"]] = relationship(back_populates="event")
