"""Permission catalogue routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ticket_admin.database import get_db
from ticket_admin.models.permission import Permission
from ticket_admin.responses import ok
from ticket_admin.schemas.common import ApiResponse
from ticket_admin.schemas.permission import PermissionCreate, PermissionOut
from ticket_admin.security import require_back_office
from ticket_admin.services import admin_service
from ticket_admin.services.authorization import Principal

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=ApiResponse[list[PermissionOut]])
def list_permissions(principal: Principal = Depends(require_back_office), db: Session = Depends(get_db)):
    rows = db.query(Permission).order_by(Permission.name).all()
    return ok([PermissionOut.model_validate(p) for p in rows])


@router.post("", response_model=ApiResponse[PermissionOut], status_code=status.HTTP_201_CREATED)
def create_permission(
    payload: PermissionCreate,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    permission = admin_service.create_permission(db, principal, payload.name, payload.description)
    return ok(PermissionOut.model_validate(permission), "Permission created successfully")
