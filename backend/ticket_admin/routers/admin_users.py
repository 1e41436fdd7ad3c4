"""Back-office account routes: self-service, user listing, role and grant management."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ticket_admin import permissions
from ticket_admin.database import get_db
from ticket_admin.models.user import User
from ticket_admin.responses import ok
from ticket_admin.schemas.common import ApiResponse
from ticket_admin.schemas.permission import GrantOut, GrantRequest
from ticket_admin.schemas.user import ChangePasswordRequest, UserIdRequest, UserOut
from ticket_admin.security import (
    get_current_user,
    require_back_office,
    require_permission,
    require_super_admin,
)
from ticket_admin.services import admin_service
from ticket_admin.services.authorization import Principal

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserOut])
def me(user: User = Depends(get_current_user), principal: Principal = Depends(require_back_office)):
    return ok(UserOut.model_validate(user))


@router.post("/change-password", response_model=ApiResponse)
def change_password(
    payload: ChangePasswordRequest,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    admin_service.change_password(db, principal.id, payload.current_password, payload.new_password)
    return ok(message="Password changed successfully")


@router.get("/users", response_model=ApiResponse[list[UserOut]])
def list_users(
    principal: Principal = Depends(require_permission(permissions.VIEW_USERS)),
    db: Session = Depends(get_db),
):
    """SUPER_ADMIN sees every admin-tier user; an ADMIN sees the users it promoted."""
    users = admin_service.list_users(db, principal)
    return ok([UserOut.model_validate(u) for u in users])


@router.get("/admins", response_model=ApiResponse[list[UserOut]])
def list_admins(principal: Principal = Depends(require_super_admin), db: Session = Depends(get_db)):
    return ok([UserOut.model_validate(u) for u in admin_service.list_admins(db)])


@router.post("/promote", response_model=ApiResponse[UserOut])
def promote(
    payload: UserIdRequest,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    user = admin_service.promote_user(db, principal, payload.user_id)
    return ok(UserOut.model_validate(user), "User promoted to ADMIN successfully")


@router.post("/demote", response_model=ApiResponse[UserOut])
def demote(
    payload: UserIdRequest,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    user = admin_service.demote_user(db, principal, payload.user_id)
    return ok(UserOut.model_validate(user), "Admin demoted successfully")


@router.delete("/users/{user_id}", response_model=ApiResponse)
def delete_user(
    user_id: str,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    admin_service.delete_user(db, principal, user_id)
    return ok(message="User deleted successfully")


@router.post(
    "/users/{user_id}/permissions",
    response_model=ApiResponse[GrantOut],
    status_code=status.HTTP_201_CREATED,
)
def grant_permission(
    user_id: str,
    payload: GrantRequest,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    grant = admin_service.grant(db, principal, user_id, payload.permission_id)
    return ok(
        GrantOut(
            user_id=grant.user_id,
            permission_id=grant.permission_id,
            permission_name=grant.permission.name,
            granted_by_id=grant.granted_by_id,
            granted_at=grant.granted_at,
        ),
        "Permission assigned successfully",
    )


@router.delete("/users/{user_id}/permissions/{permission_id}", response_model=ApiResponse)
def revoke_permission(
    user_id: str,
    permission_id: str,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    admin_service.revoke(db, principal, user_id, permission_id)
    return ok(message="Permission revoked successfully")
