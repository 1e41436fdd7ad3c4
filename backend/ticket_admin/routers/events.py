"""Event API routes. Lifecycle and ownership rules live in event_service."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ticket_admin import permissions
from ticket_admin.database import get_db
from ticket_admin.models.event import Event
from ticket_admin.responses import ok, paginate
from ticket_admin.schemas.common import ApiResponse
from ticket_admin.schemas.event import (
    BulkDeleteOut,
    BulkDeleteRequest,
    EventCreate,
    EventOut,
    EventStatusUpdate,
    EventUpdate,
    StatusChangeOut,
)
from ticket_admin.security import require_back_office, require_permission
from ticket_admin.services import event_service
from ticket_admin.services.authorization import Principal
from ticket_admin.services.event_lifecycle import EventStatus

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=ApiResponse[list[EventOut]])
def list_events(
    search: Optional[str] = Query(None),
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    category_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    """List active events. An ADMIN only sees events it created."""
    query = event_service.scoped_events(db, principal)
    if search:
        query = query.filter(Event.title.ilike(f"%{search}%"))
    if status_filter:
        query = query.filter(Event.status == status_filter)
    if category_id:
        query = query.filter(Event.category_id == category_id)
    rows, pagination = paginate(query.order_by(Event.created_at.desc()), page, limit)
    return ok([EventOut.model_validate(e) for e in rows], pagination=pagination)


@router.post("", response_model=ApiResponse[EventOut], status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    principal: Principal = Depends(require_permission(permissions.CREATE_EVENT)),
    db: Session = Depends(get_db),
):
    event = event_service.create_event(db, principal, payload.model_dump())
    return ok(EventOut.model_validate(event), "Event created successfully")


@router.post("/bulk-delete", response_model=ApiResponse[BulkDeleteOut])
def bulk_delete(
    payload: BulkDeleteRequest,
    principal: Principal = Depends(require_permission(permissions.DELETE_EVENT)),
    db: Session = Depends(get_db),
):
    """Soft-delete several events at once; ids outside the caller's scope are skipped."""
    count = event_service.bulk_soft_delete(db, principal, payload.event_ids)
    return ok(BulkDeleteOut(deleted_count=count), f"{count} event(s) deleted successfully")


@router.get("/{event_id}", response_model=ApiResponse[EventOut])
def get_event(event_id: str, principal: Principal = Depends(require_back_office), db: Session = Depends(get_db)):
    return ok(EventOut.model_validate(event_service.get_event(db, event_id)))


@router.put("/{event_id}", response_model=ApiResponse[EventOut])
def update_event(
    event_id: str,
    payload: EventUpdate,
    principal: Principal = Depends(require_permission(permissions.EDIT_EVENT)),
    db: Session = Depends(get_db),
):
    """Update event details (owner or super admin, optimistic locking when ``version`` is sent)."""
    event = event_service.update_event(
        db, principal, event_id, payload.model_dump(exclude_unset=True), permissions.EDIT_EVENT
    )
    return ok(EventOut.model_validate(event), "Event updated successfully")


@router.delete("/{event_id}", response_model=ApiResponse)
def delete_event(
    event_id: str,
    principal: Principal = Depends(require_permission(permissions.DELETE_EVENT)),
    db: Session = Depends(get_db),
):
    event_service.soft_delete_event(db, principal, event_id, permissions.DELETE_EVENT)
    return ok(message="Event deleted successfully")


@router.patch("/{event_id}/status", response_model=ApiResponse[EventOut])
def change_status(
    event_id: str,
    payload: EventStatusUpdate,
    principal: Principal = Depends(require_permission(permissions.CHANGE_EVENT_STATUS)),
    db: Session = Depends(get_db),
):
    event = event_service.change_status(
        db, principal, event_id, payload.status, reason=payload.reason, version=payload.version
    )
    return ok(EventOut.model_validate(event), f"Event status updated to {event.status.value}")


@router.get("/{event_id}/status-history", response_model=ApiResponse[list[StatusChangeOut]])
def status_history(event_id: str, principal: Principal = Depends(require_back_office), db: Session = Depends(get_db)):
    rows = event_service.status_history(db, event_id)
    return ok([StatusChangeOut.model_validate(r) for r in rows])
