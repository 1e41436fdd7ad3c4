"""Sales analytics and dashboard routes."""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ticket_admin import permissions
from ticket_admin.database import get_db
from ticket_admin.responses import ok
from ticket_admin.schemas.common import ApiResponse
from ticket_admin.schemas.sales import DashboardStats, SalesReport
from ticket_admin.security import require_back_office, require_permission
from ticket_admin.services import sales_service
from ticket_admin.services.authorization import Principal
from ticket_admin.services.event_lifecycle import EventStatus

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/sales", response_model=ApiResponse[SalesReport])
def sales(
    event_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    status: Optional[EventStatus] = Query(None),
    principal: Principal = Depends(require_permission(permissions.VIEW_ANALYTICS)),
    db: Session = Depends(get_db),
):
    report = sales_service.sales_report(
        db,
        event_id=event_id,
        category_id=category_id,
        date_from=date_from,
        date_to=date_to,
        status=status,
    )
    return ok(report, "Sales analytics retrieved successfully")


@router.get("/dashboard", response_model=ApiResponse[DashboardStats])
def dashboard(principal: Principal = Depends(require_back_office), db: Session = Depends(get_db)):
    return ok(sales_service.dashboard_stats(db, principal))
