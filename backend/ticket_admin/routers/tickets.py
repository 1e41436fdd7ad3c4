"""Ticket type routes, nested under an event."""
import logging
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ticket_admin import permissions
from ticket_admin.database import get_db
from ticket_admin.errors import BadRequest, Conflict, NotFound
from ticket_admin.models.booking import Booking
from ticket_admin.models.event import Event
from ticket_admin.models.ticket import TicketType
from ticket_admin.responses import ok
from ticket_admin.schemas.common import ApiResponse
from ticket_admin.schemas.ticket import TicketTypeCreate, TicketTypeOut, TicketTypeUpdate
from ticket_admin.security import require_back_office, require_permission
from ticket_admin.services import event_service
from ticket_admin.services.authorization import Principal, authorize

logger = logging.getLogger(__name__)
router = APIRouter()

DUPLICATE_NAME = "Ticket type with this name already exists for this event"


def _owned_event(db: Session, principal: Principal, event_id: str, permission: str) -> Event:
    event = event_service.get_event(db, event_id)
    authorize(principal, permission, owner_id=event.owner_id or "")
    return event


def _get_ticket(db: Session, event_id: str, ticket_id: str) -> TicketType:
    ticket = (
        db.query(TicketType)
        .filter(TicketType.id == ticket_id, TicketType.event_id == event_id)
        .first()
    )
    if not ticket:
        raise NotFound("Ticket type not found")
    return ticket


def _name_taken(db: Session, event_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(TicketType).filter(TicketType.event_id == event_id, TicketType.name == name)
    if exclude_id:
        query = query.filter(TicketType.id != exclude_id)
    return query.first() is not None


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(DUPLICATE_NAME, field="name")


@router.get("", response_model=ApiResponse[list[TicketTypeOut]])
def list_tickets(event_id: str, principal: Principal = Depends(require_back_office), db: Session = Depends(get_db)):
    event = event_service.get_event(db, event_id)
    return ok([TicketTypeOut.model_validate(t) for t in event.ticket_types])


@router.post("", response_model=ApiResponse[TicketTypeOut], status_code=status.HTTP_201_CREATED)
def create_ticket(
    event_id: str,
    payload: TicketTypeCreate,
    principal: Principal = Depends(require_permission(permissions.EDIT_EVENT)),
    db: Session = Depends(get_db),
):
    _owned_event(db, principal, event_id, permissions.EDIT_EVENT)
    if _name_taken(db, event_id, payload.name):
        raise Conflict(DUPLICATE_NAME, field="name")

    ticket = TicketType(
        event_id=event_id,
        name=payload.name,
        description=payload.description,
        price=Decimal(str(payload.price)),
        quantity=payload.quantity,
        quantity_booked=0,
    )
    db.add(ticket)
    _commit(db)
    db.refresh(ticket)
    logger.info("Created ticket type '%s' on event %s by %s", ticket.name, event_id, principal.id)
    return ok(TicketTypeOut.model_validate(ticket), "Ticket type created successfully")


@router.get("/{ticket_id}", response_model=ApiResponse[TicketTypeOut])
def get_ticket(
    event_id: str,
    ticket_id: str,
    principal: Principal = Depends(require_back_office),
    db: Session = Depends(get_db),
):
    return ok(TicketTypeOut.model_validate(_get_ticket(db, event_id, ticket_id)))


@router.put("/{ticket_id}", response_model=ApiResponse[TicketTypeOut])
def update_ticket(
    event_id: str,
    ticket_id: str,
    payload: TicketTypeUpdate,
    principal: Principal = Depends(require_permission(permissions.EDIT_EVENT)),
    db: Session = Depends(get_db),
):
    _owned_event(db, principal, event_id, permissions.EDIT_EVENT)
    ticket = _get_ticket(db, event_id, ticket_id)
    updates = payload.model_dump(exclude_unset=True)

    if updates.get("name") and updates["name"] != ticket.name and _name_taken(db, event_id, updates["name"], ticket_id):
        raise Conflict(DUPLICATE_NAME, field="name")
    if updates.get("quantity") is not None and updates["quantity"] < (ticket.quantity_booked or 0):
        raise BadRequest(
            f"Quantity cannot be lower than the {ticket.quantity_booked} tickets already booked",
            field="quantity",
        )
    if updates.get("price") is not None:
        updates["price"] = Decimal(str(updates["price"]))

    for field, value in updates.items():
        if value is not None:
            setattr(ticket, field, value)
    _commit(db)
    db.refresh(ticket)
    logger.info("Updated ticket type %s on event %s by %s", ticket_id, event_id, principal.id)
    return ok(TicketTypeOut.model_validate(ticket), "Ticket type updated successfully")


@router.delete("/{ticket_id}", response_model=ApiResponse)
def delete_ticket(
    event_id: str,
    ticket_id: str,
    principal: Principal = Depends(require_permission(permissions.DELETE_EVENT)),
    db: Session = Depends(get_db),
):
    _owned_event(db, principal, event_id, permissions.DELETE_EVENT)
    ticket = _get_ticket(db, event_id, ticket_id)
    if db.query(Booking.id).filter(Booking.ticket_type_id == ticket_id).first():
        raise BadRequest("Cannot delete ticket type with existing bookings")

    db.delete(ticket)
    db.commit()
    logger.info("Deleted ticket type %s on event %s by %s", ticket_id, event_id, principal.id)
    return ok(message="Ticket type deleted successfully")
