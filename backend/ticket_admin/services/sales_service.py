"""Sales analytics and dashboard aggregates.

Revenue only ever counts CONFIRMED bookings. Both reports are read-only.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ticket_admin.models.booking import Booking, BookingStatus
from ticket_admin.models.event import Event
from ticket_admin.models.user import User
from ticket_admin.schemas.sales import DashboardStats, EventSalesStats, RecentEvent, SalesReport, SalesSummary
from ticket_admin.services.authorization import ADMIN_TIER, Principal, Role
from ticket_admin.services.event_lifecycle import EventStatus

logger = logging.getLogger(__name__)

RECENT_EVENTS_LIMIT = 5


def sales_report(
    db: Session,
    event_id: Optional[str] = None,
    category_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    status: Optional[EventStatus] = None,
) -> SalesReport:
    """Per-event booking stats plus a summary over every matching active event."""
    query = (
        db.query(Event)
        .options(
            selectinload(Event.bookings),
            selectinload(Event.ticket_types),
            selectinload(Event.category),
        )
        .filter(Event.is_active.is_(True))
    )
    if event_id:
        query = query.filter(Event.id == event_id)
    if category_id:
        query = query.filter(Event.category_id == category_id)
    if date_from:
        query = query.filter(Event.scheduled_date >= date_from)
    if date_to:
        query = query.filter(Event.scheduled_date <= date_to)
    if status:
        query = query.filter(Event.status == status)
    events = query.order_by(Event.scheduled_date.desc(), Event.created_at.desc()).all()

    total_revenue = 0.0
    total_bookings = confirmed_bookings = cancelled_bookings = 0
    event_stats = []

    for event in events:
        confirmed = [b for b in event.bookings if b.booking_status == BookingStatus.confirmed]
        revenue = sum(float(b.total_price) for b in confirmed)
        total_bookings += len(event.bookings)
        confirmed_bookings += len(confirmed)
        cancelled_bookings += sum(1 for b in event.bookings if b.booking_status == BookingStatus.cancelled)
        total_revenue += revenue

        event_stats.append(EventSalesStats(
            event_id=event.id,
            event_title=event.title,
            category=event.category.name if event.category else None,
            scheduled_date=event.scheduled_date,
            status=event.status,
            total_bookings=len(event.bookings),
            confirmed_bookings=len(confirmed),
            revenue=round(revenue, 2),
            tickets_available=sum(t.quantity_available for t in event.ticket_types),
            tickets_sold=sum(t.quantity_booked or 0 for t in event.ticket_types),
        ))

    conversion_rate = round(confirmed_bookings / total_bookings * 100, 2) if total_bookings else 0.0
    logger.debug(
        "Sales report: %d events, %d bookings, revenue %.2f", len(events), total_bookings, total_revenue
    )
    return SalesReport(
        summary=SalesSummary(
            total_events=len(events),
            total_revenue=round(total_revenue, 2),
            total_bookings=total_bookings,
            confirmed_bookings=confirmed_bookings,
            cancelled_bookings=cancelled_bookings,
            conversion_rate=conversion_rate,
        ),
        event_stats=event_stats,
    )


def dashboard_stats(db: Session, principal: Principal) -> DashboardStats:
    """Headline counters. An ADMIN sees its own events and the users it promoted."""
    own_scope = principal.role != Role.super_admin

    events = db.query(Event).filter(Event.is_active.is_(True))
    bookings = db.query(Booking).join(Event, Booking.event_id == Event.id)
    users = db.query(User)
    if own_scope:
        events = events.filter(Event.owner_id == principal.id)
        bookings = bookings.filter(Event.owner_id == principal.id)
        users = users.filter(User.promoted_by_id == principal.id)
    else:
        users = users.filter(User.role.in_(list(ADMIN_TIER)))

    revenue = (
        bookings.filter(Booking.booking_status == BookingStatus.confirmed)
        .with_entities(func.coalesce(func.sum(Booking.total_price), 0))
        .scalar()
    )
    recent = events.order_by(Event.created_at.desc()).limit(RECENT_EVENTS_LIMIT).all()
    logger.debug("Dashboard stats for %s (scope=%s)", principal.id, "own" if own_scope else "all")

    return DashboardStats(
        scope="own" if own_scope else "all",
        total_events=events.count(),
        total_users=users.count(),
        total_bookings=bookings.count(),
        total_revenue=round(float(revenue or 0), 2),
        recent_events=[RecentEvent.model_validate(e) for e in recent],
    )
