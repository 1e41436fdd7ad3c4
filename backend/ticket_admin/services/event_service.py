"""Event persistence: CRUD, soft delete, and status changes.

Responsibilities:
- Ownership scope: an ADMIN only edits or deletes events it created
- Optimistic locking via the ``version`` column
- Status changes go through the lifecycle state machine, are applied with a
  conditional UPDATE, and append a history row in the same transaction
- Deletion is soft (``is_active = False``)
"""
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from ticket_admin.clock import utc_now
from ticket_admin.errors import BadRequest, NotFound, StaleState
from ticket_admin.models.category import Category, SubCategory
from ticket_admin.models.event import Event
from ticket_admin.models.event_status_change import EventStatusChange
from ticket_admin.services.authorization import Principal, Role, authorize
from ticket_admin.services.event_lifecycle import INITIAL_STATUS, EventStatus, transition

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "description",
    "cover_image",
    "profile_image",
    "location",
    "scheduled_date",
    "scheduled_time",
    "duration_minutes",
)


def event_query(db: Session):
    return db.query(Event).options(
        selectinload(Event.ticket_types),
        selectinload(Event.subcategories),
        selectinload(Event.category),
    )


def scoped_events(db: Session, principal: Principal):
    """Active events visible to ``principal``: all for SUPER_ADMIN, own otherwise."""
    query = event_query(db).filter(Event.is_active.is_(True))
    if principal.role != Role.super_admin:
        query = query.filter(Event.owner_id == principal.id)
    return query


def get_event(db: Session, event_id: str) -> Event:
    event = event_query(db).filter(Event.id == event_id, Event.is_active.is_(True)).first()
    if not event:
        raise NotFound("Event not found")
    return event


def _resolve_taxonomy(db: Session, category_id: str, subcategory_ids: list[str]):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category or not category.is_active:
        raise BadRequest("Category not found or inactive", field="category_id")

    subcategories = []
    if subcategory_ids:
        subcategories = (
            db.query(SubCategory)
            .filter(SubCategory.id.in_(subcategory_ids), SubCategory.category_id == category_id)
            .all()
        )
        if len(subcategories) != len(set(subcategory_ids)):
            raise BadRequest(
                "Subcategories must belong to the selected category", field="subcategory_ids"
            )
    return category, subcategories


def _check_version(event: Event, version: Optional[int]) -> None:
    if version is not None and event.version != version:
        raise StaleState(
            f"Version mismatch: expected {event.version}, got {version}. Re-fetch and retry."
        )


def create_event(db: Session, principal: Principal, data: dict[str, Any]) -> Event:
    """Create an event owned by ``principal``. New events always start as DRAFT."""
    subcategory_ids = data.pop("subcategory_ids", None) or []
    category, subcategories = _resolve_taxonomy(db, data["category_id"], subcategory_ids)

    event = Event(
        **{k: v for k, v in data.items() if v is not None},
        owner_id=principal.id,
        updated_by_id=principal.id,
        status=INITIAL_STATUS,
        version=1,
    )
    event.category = category
    event.subcategories = subcategories
    db.add(event)
    db.commit()
    logger.info("Created event '%s' (%s) by %s", event.title, event.id, principal.id)
    return get_event(db, event.id)


def update_event(db: Session, principal: Principal, event_id: str, data: dict[str, Any], permission: str) -> Event:
    """Apply a partial update. ``status`` is not writable here."""
    event = get_event(db, event_id)
    authorize(principal, permission, owner_id=event.owner_id or "")
    _check_version(event, data.pop("version", None))

    category_id = data.pop("category_id", None)
    subcategory_ids = data.pop("subcategory_ids", None)
    if category_id is not None or subcategory_ids is not None:
        category, subcategories = _resolve_taxonomy(
            db,
            category_id or event.category_id,
            subcategory_ids if subcategory_ids is not None else [s.id for s in event.subcategories],
        )
        event.category = category
        event.subcategories = subcategories

    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(event, field, data[field])

    event.updated_by_id = principal.id
    event.version += 1
    db.commit()
    logger.info("Updated event %s to version %d by %s", event_id, event.version, principal.id)
    return get_event(db, event_id)


def soft_delete_event(db: Session, principal: Principal, event_id: str, permission: str) -> None:
    event = get_event(db, event_id)
    authorize(principal, permission, owner_id=event.owner_id or "")

    event.is_active = False
    event.updated_by_id = principal.id
    event.version += 1
    db.commit()
    logger.info("Soft-deleted event %s by %s", event_id, principal.id)


def bulk_soft_delete(db: Session, principal: Principal, event_ids: list[str]) -> int:
    """Soft-delete the given events; non-SUPER_ADMIN callers only reach their own."""
    stmt = (
        update(Event)
        .where(Event.id.in_(event_ids), Event.is_active.is_(True))
        .values(is_active=False, updated_by_id=principal.id, version=Event.version + 1)
    )
    if principal.role != Role.super_admin:
        stmt = stmt.where(Event.owner_id == principal.id)
    result = db.execute(stmt.execution_options(synchronize_session=False))
    db.commit()
    logger.info("Bulk soft-deleted %d of %d events by %s", result.rowcount, len(event_ids), principal.id)
    return result.rowcount


def change_status(
    db: Session,
    principal: Principal,
    event_id: str,
    requested_status: EventStatus,
    reason: Optional[str] = None,
    version: Optional[int] = None,
    clock: Callable[[], datetime] = utc_now,
) -> Event:
    """Move an event along the lifecycle.

    The state machine validates the edge and computes the approval stamp. The
    write is conditional on the status and version that were read, so two
    concurrent changes from the same state cannot both succeed: the loser
    gets StaleState and must re-fetch.
    """
    event = get_event(db, event_id)
    _check_version(event, version)
    change = transition(event, requested_status, principal, clock=clock)
    read_version = event.version

    result = db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.status == change.from_status,
            Event.version == read_version,
        )
        .values(
            status=change.to_status,
            approved_at=change.approved_at,
            approver_id=change.approver_id,
            updated_by_id=principal.id,
            version=read_version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        logger.warning("Stale status change on event %s (%s -> %s)", event_id,
                       change.from_status.value, change.to_status.value)
        raise StaleState()

    db.add(EventStatusChange(
        event_id=event_id,
        actor_id=principal.id,
        from_status=change.from_status,
        to_status=change.to_status,
        reason=reason,
        created_at=change.changed_at,
    ))
    db.commit()
    logger.info("Event %s status %s -> %s by %s", event_id,
                change.from_status.value, change.to_status.value, principal.id)
    return get_event(db, event_id)


def status_history(db: Session, event_id: str) -> list[EventStatusChange]:
    if not db.query(Event.id).filter(Event.id == event_id).first():
        raise NotFound("Event not found")
    return (
        db.query(EventStatusChange)
        .filter(EventStatusChange.event_id == event_id)
        .order_by(EventStatusChange.created_at, EventStatusChange.id)
        .all()
    )
