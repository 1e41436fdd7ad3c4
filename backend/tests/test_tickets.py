"""Tests for ticket types nested under events."""
from decimal import Decimal

from ticket_admin.models.booking import Booking, BookingStatus
from ticket_admin.models.ticket import TicketType
from tests.conftest import auth_headers, create_test_user, event_payload

PERMS = ("CREATE_EVENT", "EDIT_EVENT", "DELETE_EVENT")


def _event_with_owner(client, db, category, email="organizer@example.com"):
    owner = create_test_user(db, email, permissions=PERMS)
    headers = auth_headers(owner)
    resp = client.post("/api/admin/events", headers=headers, json=event_payload(category.id))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"], headers


def _add_ticket(client, headers, event_id, name="General Admission", price=25.0, quantity=100):
    return client.post(f"/api/admin/events/{event_id}/tickets", headers=headers, json={
        "name": name,
        "price": price,
        "quantity": quantity,
    })


class TestTicketTypes:
    def test_create_and_list(self, client, db, category):
        event, headers = _event_with_owner(client, db, category)
        resp = _add_ticket(client, headers, event["id"])
        assert resp.status_code == 201, resp.text
        ticket = resp.json()["data"]
        assert ticket["price"] == 25.0
        assert ticket["quantity_available"] == 100

        listing = client.get(f"/api/admin/events/{event['id']}/tickets", headers=headers).json()["data"]
        assert [t["name"] for t in listing] == ["General Admission"]

        detail = client.get(f"/api/admin/events/{event['id']}", headers=headers).json()["data"]
        assert len(detail["ticket_types"]) == 1

    def test_duplicate_name_per_event(self, client, db, category):
        event, headers = _event_with_owner(client, db, category)
        _add_ticket(client, headers, event["id"], name="VIP")
        resp = _add_ticket(client, headers, event["id"], name="VIP")
        assert resp.status_code == 409

    def test_price_must_be_positive(self, client, db, category):
        event, headers = _event_with_owner(client, db, category)
        resp = _add_ticket(client, headers, event["id"], price=0)
        assert resp.status_code == 400
        assert resp.json()["error"]["field"] == "price"

    def test_quantity_must_be_positive(self, client, db, category):
        event, headers = _event_with_owner(client, db, category)
        assert _add_ticket(client, headers, event["id"], quantity=-5).status_code == 400

    def test_other_admin_cannot_add_ticket(self, client, db, category):
        event, _ = _event_with_owner(client, db, category)
        intruder = create_test_user(db, "intruder@example.com", permissions=PERMS)
        assert _add_ticket(client, auth_headers(intruder), event["id"]).status_code == 403

    def test_update_ticket(self, client, db, category):
        event, headers = _event_with_owner(client, db, category)
        ticket = _add_ticket(client, headers, event["id"]).json()["data"]
        resp = client.put(f"/api/admin/events/{event['id']}/tickets/{ticket['id']}", headers=headers, json={
            "price": 30.5,
            "quantity": 150,
        })
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["price"] == 30.5
        assert resp.json()["data"]["quantity"] == 150

    def test_quantity_cannot_drop_below_booked(self, client, db, category):
        event, headers = _event_with_owner(client, db, category)
        ticket = _add_ticket(client, headers, event["id"]).json()["data"]
        row = db.query(TicketType).filter(TicketType.id == ticket["id"]).one()
        row.quantity_booked = 40
        db.commit()

        resp = client.put(f"/api/admin/events/{event['id']}/tickets/{ticket['id']}", headers=headers, json={
            "quantity": 10,
        })
        assert resp.status_code == 400
        assert resp.json()["error"]["field"] == "quantity"

    def test_delete_ticket(self, client, db, category):
        event, headers = _event_with_owner(client, db, category)
        ticket = _add_ticket(client, headers, event["id"]).json()["data"]
        resp = client.delete(f"/api/admin/events/{event['id']}/tickets/{ticket['id']}", headers=headers)
        assert resp.status_code == 200
        assert client.get(f"/api/admin/events/{event['id']}/tickets/{ticket['id']}", headers=headers).status_code == 404

    def test_cannot_delete_ticket_with_bookings(self, client, db, category):
        event, headers = _event_with_owner(client, db, category)
        ticket = _add_ticket(client, headers, event["id"]).json()["data"]
        db.add(Booking(
            event_id=event["id"],
            ticket_type_id=ticket["id"],
            quantity=2,
            total_price=Decimal("50.00"),
            booking_status=BookingStatus.confirmed,
        ))
        db.commit()

        resp = client.delete(f"/api/admin/events/{event['id']}/tickets/{ticket['id']}", headers=headers)
        assert resp.status_code == 400
        assert "bookings" in resp.json()["error"]["message"]

    def test_delete_requires_delete_event(self, client, db, category):
        owner = create_test_user(db, "editor@example.com", permissions=("CREATE_EVENT", "EDIT_EVENT"))
        headers = auth_headers(owner)
        event = client.post("/api/admin/events", headers=headers, json=event_payload(category.id)).json()["data"]
        ticket = _add_ticket(client, headers, event["id"]).json()["data"]
        resp = client.delete(f"/api/admin/events/{event['id']}/tickets/{ticket['id']}", headers=headers)
        assert resp.status_code == 403
