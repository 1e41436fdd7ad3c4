"""Tests for user management, role changes, and permission grants over HTTP.

Covers:
- User listing scope (SUPER_ADMIN vs ADMIN)
- Promote / demote / delete rules
- Permission catalogue and grant / revoke
- Fresh principal resolution: a revoked grant stops working on the next request
"""
from ticket_admin.models.permission import UserPermission
from ticket_admin.models.user import User
from ticket_admin.services.authorization import Role
from tests.conftest import auth_headers, create_test_user, get_or_create_permission


class TestUserListing:
    def test_super_admin_sees_admin_tier_users(self, client, db, super_admin_headers):
        create_test_user(db, "a1@example.com")
        create_test_user(db, "c1@example.com", role=Role.customer)
        resp = client.get("/api/admin/users", headers=super_admin_headers)
        assert resp.status_code == 200
        emails = {u["email"] for u in resp.json()["data"]}
        assert emails == {"root@example.com", "a1@example.com"}

    def test_admin_sees_users_it_promoted(self, client, db):
        admin = create_test_user(db, "admin@example.com", permissions=("VIEW_USERS",))
        create_test_user(db, "mine@example.com", role=Role.customer, promoted_by_id=admin.id)
        create_test_user(db, "theirs@example.com", role=Role.customer)
        resp = client.get("/api/admin/users", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert [u["email"] for u in resp.json()["data"]] == ["mine@example.com"]

    def test_listing_requires_view_users(self, client, db):
        admin = create_test_user(db, "admin@example.com")
        resp = client.get("/api/admin/users", headers=auth_headers(admin))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    def test_admins_route_super_admin_only(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com", permissions=("VIEW_USERS",))
        assert client.get("/api/admin/admins", headers=auth_headers(admin)).status_code == 403

        resp = client.get("/api/admin/admins", headers=super_admin_headers)
        assert resp.status_code == 200
        assert [u["email"] for u in resp.json()["data"]] == ["admin@example.com"]


class TestPromotion:
    def test_super_admin_promotes_customer(self, client, db, super_admin, super_admin_headers):
        customer = create_test_user(db, "buyer@example.com", role=Role.customer)
        resp = client.post("/api/admin/promote", headers=super_admin_headers, json={"user_id": customer.id})
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        assert data["role"] == "ADMIN"
        assert data["promoted_by_id"] == super_admin.id
        assert data["promoted_at"] is not None

    def test_promote_existing_admin(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com")
        resp = client.post("/api/admin/promote", headers=super_admin_headers, json={"user_id": admin.id})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "ALREADY_PROMOTED"

    def test_promote_super_admin(self, client, db, super_admin_headers):
        other = create_test_user(db, "root2@example.com", role=Role.super_admin)
        resp = client.post("/api/admin/promote", headers=super_admin_headers, json={"user_id": other.id})
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "CANNOT_MODIFY_SUPER_ADMIN"

    def test_admin_cannot_promote(self, client, db):
        admin = create_test_user(db, "admin@example.com", permissions=("VIEW_USERS",))
        customer = create_test_user(db, "buyer@example.com", role=Role.customer)
        resp = client.post("/api/admin/promote", headers=auth_headers(admin), json={"user_id": customer.id})
        assert resp.status_code == 403

    def test_promote_unknown_user(self, client, super_admin_headers):
        resp = client.post("/api/admin/promote", headers=super_admin_headers, json={"user_id": "missing"})
        assert resp.status_code == 404


class TestDemotion:
    def test_demote_removes_role_and_grants(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com", permissions=("CREATE_EVENT", "EDIT_EVENT"))
        resp = client.post("/api/admin/demote", headers=super_admin_headers, json={"user_id": admin.id})
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["role"] == "CUSTOMER"
        assert resp.json()["data"]["permissions"] == []

        db.expire_all()
        assert db.query(UserPermission).filter(UserPermission.user_id == admin.id).count() == 0

    def test_demoted_user_loses_back_office_access(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com")
        headers = auth_headers(admin)
        client.post("/api/admin/demote", headers=super_admin_headers, json={"user_id": admin.id})
        assert client.get("/api/admin/me", headers=headers).status_code == 403

    def test_cannot_demote_self(self, client, super_admin, super_admin_headers):
        resp = client.post("/api/admin/demote", headers=super_admin_headers, json={"user_id": super_admin.id})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "SELF_TARGET_NOT_ALLOWED"

    def test_cannot_demote_customer(self, client, db, super_admin_headers):
        customer = create_test_user(db, "buyer@example.com", role=Role.customer)
        resp = client.post("/api/admin/demote", headers=super_admin_headers, json={"user_id": customer.id})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "NOT_ADMIN_TIER"


class TestDeleteUser:
    def test_super_admin_deletes_admin(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com", permissions=("CREATE_EVENT",))
        resp = client.delete(f"/api/admin/users/{admin.id}", headers=super_admin_headers)
        assert resp.status_code == 200, resp.text

        db.expire_all()
        assert db.query(User).filter(User.id == admin.id).first() is None
        assert db.query(UserPermission).filter(UserPermission.user_id == admin.id).count() == 0

    def test_admin_deletes_customer(self, client, db):
        admin = create_test_user(db, "admin@example.com")
        customer = create_test_user(db, "buyer@example.com", role=Role.customer)
        resp = client.delete(f"/api/admin/users/{customer.id}", headers=auth_headers(admin))
        assert resp.status_code == 200

    def test_admin_cannot_delete_admin(self, client, db):
        admin = create_test_user(db, "admin@example.com")
        other = create_test_user(db, "other@example.com")
        resp = client.delete(f"/api/admin/users/{other.id}", headers=auth_headers(admin))
        assert resp.status_code == 403

    def test_cannot_delete_self(self, client, super_admin, super_admin_headers):
        resp = client.delete(f"/api/admin/users/{super_admin.id}", headers=super_admin_headers)
        assert resp.status_code == 400

    def test_cannot_delete_super_admin(self, client, db, super_admin_headers):
        other = create_test_user(db, "root2@example.com", role=Role.super_admin)
        resp = client.delete(f"/api/admin/users/{other.id}", headers=super_admin_headers)
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "CANNOT_MODIFY_SUPER_ADMIN"


class TestPermissionCatalogue:
    def test_super_admin_creates_permission(self, client, super_admin_headers):
        resp = client.post("/api/admin/permissions", headers=super_admin_headers, json={
            "name": "EXPORT_REPORTS",
            "description": "Export sales reports",
        })
        assert resp.status_code == 201, resp.text
        assert resp.json()["data"]["name"] == "EXPORT_REPORTS"

        listing = client.get("/api/admin/permissions", headers=super_admin_headers)
        assert [p["name"] for p in listing.json()["data"]] == ["EXPORT_REPORTS"]

    def test_duplicate_permission(self, client, db, super_admin_headers):
        get_or_create_permission(db, "EXPORT_REPORTS")
        resp = client.post("/api/admin/permissions", headers=super_admin_headers, json={
            "name": "EXPORT_REPORTS",
            "description": "Again",
        })
        assert resp.status_code == 409

    def test_lowercase_name_rejected(self, client, super_admin_headers):
        resp = client.post("/api/admin/permissions", headers=super_admin_headers, json={
            "name": "export",
            "description": "Bad name",
        })
        assert resp.status_code == 400

    def test_admin_cannot_create_permission(self, client, db):
        admin = create_test_user(db, "admin@example.com")
        resp = client.post("/api/admin/permissions", headers=auth_headers(admin), json={
            "name": "EXPORT_REPORTS",
            "description": "Nope",
        })
        assert resp.status_code == 403


class TestGrants:
    def test_grant_and_use_permission(self, client, db, super_admin, super_admin_headers):
        admin = create_test_user(db, "admin@example.com")
        permission = get_or_create_permission(db, "VIEW_USERS")
        headers = auth_headers(admin)
        assert client.get("/api/admin/users", headers=headers).status_code == 403

        resp = client.post(
            f"/api/admin/users/{admin.id}/permissions",
            headers=super_admin_headers,
            json={"permission_id": permission.id},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        assert data["permission_name"] == "VIEW_USERS"
        assert data["granted_by_id"] == super_admin.id

        # Same token, fresh grants from the database
        assert client.get("/api/admin/users", headers=headers).status_code == 200

    def test_duplicate_grant(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com", permissions=("VIEW_USERS",))
        permission = get_or_create_permission(db, "VIEW_USERS")
        resp = client.post(
            f"/api/admin/users/{admin.id}/permissions",
            headers=super_admin_headers,
            json={"permission_id": permission.id},
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "DUPLICATE_GRANT"

    def test_grant_to_customer(self, client, db, super_admin_headers):
        customer = create_test_user(db, "buyer@example.com", role=Role.customer)
        permission = get_or_create_permission(db, "VIEW_USERS")
        resp = client.post(
            f"/api/admin/users/{customer.id}/permissions",
            headers=super_admin_headers,
            json={"permission_id": permission.id},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "NOT_ADMIN_TIER"

    def test_admin_cannot_grant(self, client, db):
        admin = create_test_user(db, "admin@example.com", permissions=("VIEW_USERS",))
        other = create_test_user(db, "other@example.com")
        permission = get_or_create_permission(db, "VIEW_USERS")
        resp = client.post(
            f"/api/admin/users/{other.id}/permissions",
            headers=auth_headers(admin),
            json={"permission_id": permission.id},
        )
        assert resp.status_code == 403

    def test_grant_unknown_permission(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com")
        resp = client.post(
            f"/api/admin/users/{admin.id}/permissions",
            headers=super_admin_headers,
            json={"permission_id": "missing"},
        )
        assert resp.status_code == 404

    def test_revoke_takes_effect_immediately(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com", permissions=("VIEW_USERS",))
        permission = get_or_create_permission(db, "VIEW_USERS")
        headers = auth_headers(admin)
        assert client.get("/api/admin/users", headers=headers).status_code == 200

        resp = client.delete(f"/api/admin/users/{admin.id}/permissions/{permission.id}", headers=super_admin_headers)
        assert resp.status_code == 200, resp.text
        assert client.get("/api/admin/users", headers=headers).status_code == 403

    def test_revoke_missing_grant(self, client, db, super_admin_headers):
        admin = create_test_user(db, "admin@example.com")
        permission = get_or_create_permission(db, "VIEW_USERS")
        resp = client.delete(f"/api/admin/users/{admin.id}/permissions/{permission.id}", headers=super_admin_headers)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "GRANT_NOT_FOUND"
