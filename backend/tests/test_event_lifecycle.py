"""Unit tests for the event status state machine.

Every (from, to) pair of the seven statuses is checked against the edge
table, plus approval stamping and the injected clock.
"""
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from ticket_admin.errors import InvalidTransition
from ticket_admin.services.event_lifecycle import (
    INITIAL_STATUS,
    TERMINAL_STATUSES,
    TRANSITIONS,
    EventStatus,
    allowed_transitions,
    can_transition,
    transition,
)

D, P, A, H, C, CO, AR = (
    EventStatus.draft,
    EventStatus.pending,
    EventStatus.approved,
    EventStatus.hold,
    EventStatus.cancelled,
    EventStatus.completed,
    EventStatus.archived,
)

LEGAL_EDGES = {
    (D, P), (D, C),
    (P, A), (P, H), (P, C),
    (A, H), (A, C), (A, CO),
    (H, A), (H, C),
    (CO, AR),
}

ALL_PAIRS = [(src, dst) for src in EventStatus for dst in EventStatus]

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

ACTOR = SimpleNamespace(id="actor-1")
OTHER_ACTOR = SimpleNamespace(id="actor-2")


def _event(status: EventStatus, approved_at=None, approver_id=None):
    return SimpleNamespace(status=status, approved_at=approved_at, approver_id=approver_id)


class TestTransitionTable:
    def test_initial_status_is_draft(self):
        assert INITIAL_STATUS == EventStatus.draft

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == frozenset({C, AR})

    def test_table_covers_every_status(self):
        assert set(TRANSITIONS) == set(EventStatus)

    def test_no_self_transitions(self):
        for status in EventStatus:
            assert status not in allowed_transitions(status)

    @pytest.mark.parametrize("src,dst", ALL_PAIRS, ids=[f"{s.value}->{d.value}" for s, d in ALL_PAIRS])
    def test_every_pair(self, src, dst):
        legal = (src, dst) in LEGAL_EDGES
        assert can_transition(src, dst) is legal
        if legal:
            change = transition(_event(src), dst, ACTOR, clock=lambda: T0)
            assert change.from_status == src
            assert change.to_status == dst
        else:
            with pytest.raises(InvalidTransition):
                transition(_event(src), dst, ACTOR, clock=lambda: T0)

    def test_accepts_string_values(self):
        assert can_transition("DRAFT", "PENDING")
        assert allowed_transitions("COMPLETED") == frozenset({AR})

    def test_unknown_status_is_not_transitionable(self):
        assert can_transition("DRAFT", "PUBLISHED") is False
        with pytest.raises(InvalidTransition):
            transition(_event(D), "PUBLISHED", ACTOR)

    def test_skip_draft_to_approved_rejected(self):
        with pytest.raises(InvalidTransition) as exc_info:
            transition(_event(D), A, ACTOR)
        assert "DRAFT" in exc_info.value.message


class TestApprovalStamp:
    def test_approval_stamps_actor_and_time(self):
        change = transition(_event(P), A, ACTOR, clock=lambda: T0)
        assert change.approved_at == T0
        assert change.approver_id == "actor-1"
        assert change.changed_at == T0
        assert change.actor_id == "actor-1"

    def test_reapproval_overwrites_stamp(self):
        held = _event(H, approved_at=T0, approver_id="actor-1")
        change = transition(held, A, OTHER_ACTOR, clock=lambda: T1)
        assert change.approved_at == T1
        assert change.approver_id == "actor-2"

    def test_other_transitions_keep_existing_stamp(self):
        approved = _event(A, approved_at=T0, approver_id="actor-1")
        change = transition(approved, H, OTHER_ACTOR, clock=lambda: T1)
        assert change.approved_at == T0
        assert change.approver_id == "actor-1"
        assert change.changed_at == T1

    def test_unapproved_event_stays_unstamped(self):
        change = transition(_event(D), P, ACTOR, clock=lambda: T0)
        assert change.approved_at is None
        assert change.approver_id is None

    def test_transition_does_not_mutate_event(self):
        event = _event(P)
        transition(event, A, ACTOR, clock=lambda: T0)
        assert event.status == P
        assert event.approved_at is None

    def test_apply_to_copies_status_and_stamp(self):
        event = _event(P)
        change = transition(event, A, ACTOR, clock=lambda: T0)
        change.apply_to(event)
        assert event.status == A
        assert event.approved_at == T0
        assert event.approver_id == "actor-1"
