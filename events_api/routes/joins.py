import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from events_api.core.security import Principal, get_principal, require_admin
from events_api.database.db import get_db
from events_api.models.joins import JoinStatus
from events_api.schemas.common import DeletedOut
from events_api.schemas.joins import (
    JoinedEventOut,
    JoinOut,
    JoinRequest,
    JoinResultOut,
    JoinStatusUpdate,
    MembershipOut,
)
from events_api.services import joins as join_service
from events_api.services.errors import ConflictError, NotFoundError
from events_api.tasks import finalize_join_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["joins"])


@router.post("/join-event", response_model=JoinResultOut)
def join_event(payload: JoinRequest, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    try:
        record = join_service.join_event(
            db,
            event_id=payload.event_id,
            user_email=principal.email,
            user_name=payload.user_name,
            amount=payload.amount,
            transaction_id=payload.transaction_id,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if record.status == JoinStatus.PENDING.value:
        # Confirmation is best-effort; the join itself is already committed.
        try:
            finalize_join_task.delay(record.id)
        except Exception:
            logger.warning("Could not enqueue finalization for join %s", record.id, exc_info=True)

    return {
        "success": True,
        "message": "Successfully joined the event!",
        "inserted_id": record.id,
        "join": record,
    }


@router.get("/joined-events/check", response_model=MembershipOut)
def check_membership(
    event_id: int = Query(..., alias="eventId"),
    email: str = Query(...),
    db: Session = Depends(get_db),
):
    return MembershipOut(is_joined=join_service.is_joined(db, event_id, email))


@router.get("/joined-events/{email}", response_model=list[JoinedEventOut])
def joined_events(email: str, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    if principal.email != email:
        raise HTTPException(status_code=403, detail="Forbidden access")
    return join_service.list_for_user(db, email)


@router.patch("/joined-events/{join_id}/status", response_model=JoinOut)
def change_join_status(
    join_id: int,
    payload: JoinStatusUpdate,
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return join_service.update_join_status(db, join_id, payload.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/joined-events/{join_id}", response_model=DeletedOut)
def remove_join(join_id: int, _: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        join_service.delete_join(db, join_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return DeletedOut(message="Join record deleted.", deleted_count=1)


@router.get("/recent-joins", response_model=list[JoinOut])
def recent_joins(
    limit: int = Query(10, ge=1, le=100),
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return join_service.list_recent(db, limit)


@router.get("/all-joined-events", response_model=list[JoinOut])
def all_joined_events(_: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return join_service.list_all(db)


@router.get("/donations", response_model=list[JoinOut])
def donations(_: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return join_service.list_donations(db)
