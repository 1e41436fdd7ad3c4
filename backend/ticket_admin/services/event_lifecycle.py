"""Event lifecycle state machine.

The transition table is data: every legal edge is listed in ``TRANSITIONS``
and nothing else is allowed. A status is never in its own destination set,
so self-transitions are rejected along with skips such as DRAFT → APPROVED.

``transition`` holds no state. The caller checks that the actor may change
statuses, then persists the returned ``StatusChange`` atomically.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Union

from ticket_admin.clock import utc_now
from ticket_admin.errors import InvalidTransition


class EventStatus(str, enum.Enum):
    draft = "DRAFT"
    pending = "PENDING"
    approved = "APPROVED"
    hold = "HOLD"
    cancelled = "CANCELLED"
    completed = "COMPLETED"
    archived = "ARCHIVED"


INITIAL_STATUS = EventStatus.draft

TRANSITIONS: dict[EventStatus, frozenset[EventStatus]] = {
    EventStatus.draft: frozenset({EventStatus.pending, EventStatus.cancelled}),
    EventStatus.pending: frozenset({EventStatus.approved, EventStatus.hold, EventStatus.cancelled}),
    EventStatus.approved: frozenset({EventStatus.hold, EventStatus.cancelled, EventStatus.completed}),
    EventStatus.hold: frozenset({EventStatus.approved, EventStatus.cancelled}),
    EventStatus.cancelled: frozenset(),
    EventStatus.completed: frozenset({EventStatus.archived}),
    EventStatus.archived: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


def _coerce(status: Union[EventStatus, str]) -> EventStatus:
    try:
        return EventStatus(status)
    except ValueError:
        raise InvalidTransition(f"Unknown event status: {status}")


def allowed_transitions(status: Union[EventStatus, str]) -> frozenset[EventStatus]:
    return TRANSITIONS[_coerce(status)]


def can_transition(current: Union[EventStatus, str], requested: Union[EventStatus, str]) -> bool:
    try:
        return _coerce(requested) in allowed_transitions(current)
    except InvalidTransition:
        return False


@dataclass(frozen=True)
class StatusChange:
    """Result of a validated transition: the new status plus approval stamp."""

    from_status: EventStatus
    to_status: EventStatus
    actor_id: str
    changed_at: datetime
    approved_at: Optional[datetime]
    approver_id: Optional[str]

    def apply_to(self, event: Any) -> Any:
        event.status = self.to_status
        event.approved_at = self.approved_at
        event.approver_id = self.approver_id
        return event


def transition(
    event: Any,
    requested_status: Union[EventStatus, str],
    actor: Any,
    clock: Callable[[], datetime] = utc_now,
) -> StatusChange:
    """Validate ``event.status → requested_status`` and compute its side effects.

    Entering APPROVED stamps ``approved_at``/``approver_id``, overwriting any
    earlier approval. No other transition touches the stamp.
    """
    current = _coerce(event.status)
    requested = _coerce(requested_status)
    if requested not in TRANSITIONS[current]:
        raise InvalidTransition(f"Cannot transition from {current.value} to {requested.value}")

    now = clock()
    if requested == EventStatus.approved:
        approved_at, approver_id = now, str(actor.id)
    else:
        approved_at, approver_id = event.approved_at, event.approver_id

    return StatusChange(
        from_status=current,
        to_status=requested,
        actor_id=str(actor.id),
        changed_at=now,
        approved_at=approved_at,
        approver_id=approver_id,
    )
