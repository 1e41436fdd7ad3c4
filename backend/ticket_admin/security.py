"""Credentials: password hashing, access tokens, and principal resolution.

The authorization engine never sees a request. This module turns the bearer
token of an inbound request into a ``Principal`` (id, role, granted
permission names) loaded fresh from the database, so a revoked grant or a
demotion takes effect on the very next request.
"""
import logging
from datetime import timedelta
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, selectinload

from ticket_admin.clock import utc_now
from ticket_admin.config import settings
from ticket_admin.database import get_db
from ticket_admin.errors import Forbidden, Unauthorized
from ticket_admin.models.user import User
from ticket_admin.models.permission import UserPermission
from ticket_admin.services.authorization import ADMIN_TIER, Principal, Role, authorize, has_role

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# Passwords


def hash_password(plain_password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


# Tokens


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed token carrying the user's id, role and permission claims."""
    now = utc_now()
    expires = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": Role(user.role).value,
        "permissions": sorted(p.name for p in user.permissions),
        "iat": now,
        "exp": expires,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Session expired, please sign in again")
    except jwt.PyJWTError:
        raise Unauthorized("Invalid authentication token")


# Principal resolution


def load_user(db: Session, user_id: str) -> Optional[User]:
    return (
        db.query(User)
        .options(selectinload(User.user_permissions).joinedload(UserPermission.permission))
        .filter(User.id == user_id)
        .first()
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    payload = decode_access_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid authentication token")

    user = load_user(db, user_id)
    if user is None or not user.is_active:
        logger.info("Rejected token for missing or inactive user %s", user_id)
        raise Unauthorized("User account is inactive or no longer exists")
    return user


def get_current_principal(user: User = Depends(get_current_user)) -> Principal:
    return Principal.from_user(user)


def require_back_office(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Coarse route gate: only ADMIN and SUPER_ADMIN reach the back-office."""
    if not has_role(principal, ADMIN_TIER):
        raise Forbidden("Only admins can access the back-office")
    return principal


def require_super_admin(principal: Principal = Depends(require_back_office)) -> Principal:
    if principal.role != Role.super_admin:
        raise Forbidden("Only super admins can perform this action")
    return principal


def require_permission(permission_name: str):
    """Dependency factory: back-office principal holding ``permission_name``."""

    def _dependency(principal: Principal = Depends(require_back_office)) -> Principal:
        authorize(principal, permission_name)
        return principal

    _dependency.__name__ = f"require_{permission_name.lower()}"
    return _dependency
