import enum
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from events_api.database.db import Base, utcnow


class JoinStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


FREE_TRANSACTION_ID = "free"
ORGANIZER_TRANSACTION_ID = "organizer"


class JoinRecord(Base):
    __tablename__ = "joined_events"
    __table_args__ = (
        # At most one join per user and event.
        UniqueConstraint("event_id", "user_email", name="uq_joined_events_event_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    user_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    user_name: Mapped[str | None] = mapped_column(String(200))
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False, default=FREE_TRANSACTION_ID)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=JoinStatus.SUCCESS.value)
    joined_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    event: Mapped["Event"] = relationship(back_populates="joins")
