"""
Bearer-token authentication and role checks.

Tokens are self-issued HS256 JWTs whose ``sub`` claim is the user's email.
``get_current_email`` only verifies the token; ``get_principal`` also
resolves the stored role and status of that email.  Routes depend on
``require_active`` or ``require_admin`` when they need more than an
identity.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError
from sqlalchemy.orm import Session

from events_api.core.config import settings
from events_api.database.db import get_db
from events_api.models.users import UserRole, UserStatus
from events_api.services.users import resolve_role

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    email: str
    role: str = UserRole.USER.value
    status: str = UserStatus.ACTIVE.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value


def create_access_token(email: str, expires_delta: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": email, "iat": now, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> str:
    """Return the email a token was issued for.

    Raises jwt.InvalidTokenError subclasses on failure.
    """
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["exp", "sub"]},
    )
    email = payload.get("sub")
    if not isinstance(email, str) or not email:
        raise InvalidTokenError("missing_claim:sub")
    return email


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_email(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> str:
    if credentials is None:
        raise _unauthorized("Unauthorized access")
    try:
        return verify_access_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", e)
        raise _unauthorized("Unauthorized access")


def get_principal(
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
) -> Principal:
    role = resolve_role(db, email)
    return Principal(email=email, role=role["role"], status=role["status"])


def require_active(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_active:
        logger.warning("Suspended user %s refused", principal.email)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is suspended")
    return principal


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden access")
    return principal


def ensure_self_or_admin(principal: Principal, email: str) -> None:
    if principal.email != email and not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden access")
