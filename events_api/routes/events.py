from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from events_api.core.security import (
    Principal,
    ensure_self_or_admin,
    get_principal,
    require_active,
    require_admin,
)
from events_api.database.db import get_db
from events_api.schemas.common import DeletedOut, InsertedOut
from events_api.schemas.events import EventCreate, EventDetailOut, EventListOut, EventOut, EventUpdate
from events_api.services import events as event_service
from events_api.services.errors import ForbiddenError, NotFoundError

router = APIRouter(prefix="/api", tags=["events"])


@router.post("/events", response_model=InsertedOut)
def create_event(
    payload: EventCreate,
    principal: Principal = Depends(require_active),
    db: Session = Depends(get_db),
):
    try:
        event = event_service.create_event(db, payload, principal)
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return InsertedOut(message="Event created successfully!", inserted_id=event.id)


@router.get("/events/upcoming", response_model=EventListOut)
def upcoming_events(
    category: str | None = Query(None),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
):
    return {"success": True, "events": event_service.list_upcoming(db, category=category, search=search)}


@router.get("/all-events-admin", response_model=list[EventOut])
def all_events_admin(_: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return event_service.list_all(db)


@router.get("/events/organizer/{email}", response_model=EventListOut)
def organizer_events(email: str, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    ensure_self_or_admin(principal, email)
    return {"success": True, "events": event_service.list_by_organizer(db, email)}


@router.get("/events/manage/{email}", response_model=EventListOut)
def manage_events(email: str, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    ensure_self_or_admin(principal, email)
    return {"success": True, "events": event_service.list_for_management(db, principal)}


@router.get("/events/{event_id}", response_model=EventDetailOut)
def event_detail(event_id: int, db: Session = Depends(get_db)):
    try:
        return {"success": True, "event": event_service.get_event(db, event_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/events/{event_id}", response_model=EventDetailOut)
@router.patch("/events/{event_id}", response_model=EventDetailOut)
def update_event(
    event_id: int,
    payload: EventUpdate,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    try:
        event = event_service.update_event(db, event_id, payload, principal)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"success": True, "event": event}


@router.delete("/events/{event_id}", response_model=DeletedOut)
def delete_event(event_id: int, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    try:
        event_service.delete_event(db, event_id, principal)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return DeletedOut(message="Event deleted successfully!", deleted_count=1)
