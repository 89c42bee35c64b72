import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from events_api.models.users import User, UserRole, UserStatus
from events_api.services.errors import NotFoundError

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email))


def create_user(
    db: Session,
    *,
    email: str,
    display_name: str | None = None,
    photo_url: str | None = None,
) -> tuple[User, bool]:
    """Insert a user unless one with this email exists.

    Returns the stored user and whether it was created by this call.
    """
    existing = get_user_by_email(db, email)
    if existing:
        return existing, False

    user = User(
        email=email,
        display_name=display_name,
        photo_url=photo_url,
        role=UserRole.USER.value,
        status=UserStatus.ACTIVE.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent sign-in inserted the same email first.
        db.rollback()
        return get_user_by_email(db, email), False
    db.refresh(user)
    logger.info("Created user %s", email)
    return user, True


def resolve_role(db: Session, email: str) -> dict:
    user = get_user_by_email(db, email)
    if not user:
        return {"role": UserRole.USER.value, "status": UserStatus.ACTIVE.value}
    return {"role": user.role, "status": user.status}


def list_users(db: Session) -> list[User]:
    return list(db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())))


def update_user(
    db: Session,
    user_id: int,
    *,
    status: str | None = None,
    role: str | None = None,
) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found.")
    if status is not None:
        user.status = status
    if role is not None:
        user.role = role
    db.commit()
    db.refresh(user)
    logger.info("User %s updated: role=%s status=%s", user.email, user.role, user.status)
    return user
