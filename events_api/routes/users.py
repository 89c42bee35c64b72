from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from events_api.core.security import (
    Principal,
    create_access_token,
    ensure_self_or_admin,
    get_principal,
    require_admin,
)
from events_api.database.db import get_db
from events_api.schemas.common import InsertedOut
from events_api.schemas.users import RoleOut, TokenOut, TokenRequest, UserCreate, UserOut, UserStatusUpdate
from events_api.services.errors import NotFoundError
from events_api.services.users import create_user, get_user_by_email, list_users, resolve_role, update_user

router = APIRouter(prefix="/api", tags=["users"])


@router.post("/jwt", response_model=TokenOut)
def issue_token(payload: TokenRequest, db: Session = Depends(get_db)):
    if not get_user_by_email(db, str(payload.email)):
        raise HTTPException(status_code=404, detail="User not found.")
    return TokenOut(token=create_access_token(str(payload.email)))


@router.post("/users", response_model=InsertedOut)
def upsert_user(payload: UserCreate, db: Session = Depends(get_db)):
    user, created = create_user(
        db,
        email=str(payload.email),
        display_name=payload.display_name,
        photo_url=payload.photo_url,
    )
    if not created:
        return InsertedOut(success=False, message="User already exists", inserted_id=None)
    return InsertedOut(message="User created successfully!", inserted_id=user.id)


@router.get("/users/role/{email}", response_model=RoleOut)
def user_role(email: str, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    ensure_self_or_admin(principal, email)
    return resolve_role(db, email)


@router.get("/users", response_model=list[UserOut])
def all_users(_: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    return list_users(db)


@router.patch("/users/status/{user_id}", response_model=UserOut)
def change_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    _: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if payload.status is None and payload.role is None:
        raise HTTPException(status_code=400, detail="Nothing to update.")
    try:
        return update_user(db, user_id, status=payload.status, role=payload.role)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
