import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from events_api.core.config import settings
from events_api.core.security import Principal
from events_api.database.db import utcnow
from events_api.models.events import Event, EventStatus
from events_api.models.joins import ORGANIZER_TRANSACTION_ID
from events_api.schemas.events import EventCreate, EventUpdate
from events_api.services.errors import ForbiddenError, NotFoundError
from events_api.services.joins import delete_joins_for_event, record_join

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("event_name", "category", "location", "description", "image", "event_date", "organizer_name")


def can_modify(principal: Principal, event: Event) -> bool:
    """Admins may change any event, everyone else only their own."""
    return principal.is_admin or event.organizer_email == principal.email


def resolve_event(db: Session, event_id: int) -> Event | None:
    return db.get(Event, event_id)


def get_event(db: Session, event_id: int) -> Event:
    event = resolve_event(db, event_id)
    if not event:
        raise NotFoundError("Event not found.")
    return event


def create_event(db: Session, payload: EventCreate, principal: Principal) -> Event:
    if not principal.is_active:
        raise ForbiddenError("Suspended users cannot create events.")

    organizer_email = principal.email
    if principal.is_admin and payload.organizer_email:
        organizer_email = str(payload.organizer_email)

    event = Event(
        event_name=payload.event_name,
        category=payload.category,
        location=payload.location,
        description=payload.description,
        image=payload.image,
        event_date=payload.event_date,
        organizer_email=organizer_email,
        organizer_name=payload.organizer_name,
        participants=0,
        status=EventStatus.ACTIVE.value,
        posted_at=utcnow(),
    )
    db.add(event)
    db.flush()  # gets event.id

    if settings.organizer_auto_join:
        record_join(
            db,
            event_id=event.id,
            user_email=organizer_email,
            user_name=payload.organizer_name,
            transaction_id=ORGANIZER_TRANSACTION_ID,
        )

    db.commit()
    db.refresh(event)
    logger.info("Event %s created by %s", event.id, organizer_email)
    return event


def list_upcoming(
    db: Session,
    *,
    category: str | None = None,
    search: str | None = None,
    now: datetime | None = None,
) -> list[Event]:
    stmt = select(Event).where(
        Event.event_date >= (now or utcnow()),
        Event.status == EventStatus.ACTIVE.value,
    )
    if category and category != "all":
        stmt = stmt.where(Event.category == category)
    if search:
        stmt = stmt.where(Event.event_name.ilike(f"%{_escape_like(search)}%", escape="\\"))
    stmt = stmt.order_by(Event.event_date.asc(), Event.id.asc())
    return list(db.scalars(stmt))


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_by_organizer(db: Session, email: str) -> list[Event]:
    stmt = (
        select(Event)
        .where(Event.organizer_email == email)
        .order_by(Event.posted_at.desc(), Event.id.desc())
    )
    return list(db.scalars(stmt))


def list_all(db: Session) -> list[Event]:
    return list(db.scalars(select(Event).order_by(Event.posted_at.desc(), Event.id.desc())))


def list_for_management(db: Session, principal: Principal) -> list[Event]:
    if principal.is_admin:
        return list_all(db)
    return list_by_organizer(db, principal.email)


def _get_modifiable(db: Session, event_id: int, principal: Principal) -> Event:
    # Existence is checked before ownership so a missing event reads as 404, not 403.
    event = get_event(db, event_id)
    if not can_modify(principal, event):
        logger.warning("User %s refused changes to event %s", principal.email, event_id)
        raise ForbiddenError("Forbidden: You can only modify events you created.")
    return event


def update_event(db: Session, event_id: int, patch: EventUpdate, principal: Principal) -> Event:
    event = _get_modifiable(db, event_id, principal)

    changes = patch.model_dump(exclude_unset=True)
    if changes.get("status") is not None and not principal.is_admin:
        raise ForbiddenError("Only admins can change the status of an event.")

    for field in (*EDITABLE_FIELDS, "status"):
        if field not in changes:
            continue
        value = changes[field]
        if value is None and field in ("event_name", "event_date", "status"):
            continue
        setattr(event, field, value)

    db.commit()
    db.refresh(event)
    logger.info("Event %s updated by %s", event_id, principal.email)
    return event


def delete_event(db: Session, event_id: int, principal: Principal) -> int:
    """Delete an event and its joins in one transaction. Returns removed join count."""
    _get_modifiable(db, event_id, principal)

    removed_joins = delete_joins_for_event(db, event_id)
    db.execute(delete(Event).where(Event.id == event_id))
    db.commit()
    logger.info("Event %s deleted by %s (%s joins removed)", event_id, principal.email, removed_joins)
    return removed_joins
