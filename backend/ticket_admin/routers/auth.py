"""Authentication routes: self-registration and sign-in."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ticket_admin.database import get_db
from ticket_admin.responses import ok
from ticket_admin.schemas.common import ApiResponse
from ticket_admin.schemas.user import RegisterOut, RegisterRequest, SignInRequest, TokenOut, UserOut
from ticket_admin.security import create_access_token
from ticket_admin.services import admin_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=ApiResponse[RegisterOut], status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create an ADMIN account with no grants; a super admin assigns them later."""
    user = admin_service.register_user(db, payload.email, payload.name, payload.password)
    if payload.requested_permissions:
        logger.info("User %s requested permissions: %s", user.id, ", ".join(payload.requested_permissions))
    return ok(
        RegisterOut(user=UserOut.model_validate(user), requested_permissions=payload.requested_permissions),
        "Registration successful. Awaiting permission assignment.",
    )


@router.post("/signin", response_model=ApiResponse[TokenOut])
def signin(payload: SignInRequest, db: Session = Depends(get_db)):
    user = admin_service.authenticate(db, payload.email, payload.password)
    token = create_access_token(user)
    return ok(TokenOut(access_token=token, user=UserOut.model_validate(user)), "Signed in successfully")
