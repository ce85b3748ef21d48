"""
Authorization tests for InvenPro.

Verifies:
- Unauthenticated requests return 401
- Feature PIN gates (billing, adjustment, analytics) return 403 on a wrong PIN
- Pricing and snapshot restore are Owner-only
- Login / logout lifecycle
"""

import pytest

from invenpro.models import AuditLogEntry, Product

from conftest import TEST_PASSWORD, auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("PUT", "/api/products/p1"),
            ("DELETE", "/api/products/p1"),
            ("POST", "/api/products/p1/restock"),
            ("POST", "/api/products/import"),
            ("GET", "/api/movements"),
            ("POST", "/api/movements"),
            ("GET", "/api/movements/export"),
            ("GET", "/api/documents"),
            ("POST", "/api/documents"),
            ("POST", "/api/documents/preview"),
            ("GET", "/api/documents/export"),
            ("GET", "/api/partners"),
            ("POST", "/api/partners"),
            ("GET", "/api/audit"),
            ("GET", "/api/audit/export"),
            ("GET", "/api/reports/dashboard"),
            ("GET", "/api/reports/business-sheet"),
            ("GET", "/api/reports/insights"),
            ("GET", "/api/snapshot"),
            ("POST", "/api/snapshot/restore"),
            ("GET", "/api/auth/me"),
            ("POST", "/api/auth/logout"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/products", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401

    def test_template_download_is_public(self, client, db_session):
        resp = client.get("/api/products/import/template")
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert resp.get_data(as_text=True).startswith("Name,SKU,Category,SellingPrice,Quantity,HSNCode")

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLoginLifecycle:

    def test_login_returns_token_and_audits(self, client, owner):
        resp = client.post("/api/auth/login", json={"username": "OWNER", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        assert resp.json["token"]
        assert resp.json["operator"]["display_name"] == "Asha Rao"

        entry = AuditLogEntry.query.filter_by(action="USER_LOGIN").one()
        assert entry.user == "Asha Rao (Owner)"

    def test_wrong_password(self, client, owner):
        resp = client.post("/api/auth/login", json={"username": "owner", "password": "wrong"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"username": "owner"})
        assert resp.status_code == 400

    def test_inactive_operator_cannot_login(self, client, owner, db_session):
        owner.is_active = False
        db_session.commit()
        assert get_auth_token(client, "owner") is None

    def test_me_and_logout(self, client, owner_headers):
        resp = client.get("/api/auth/me", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["operator"]["role"] == "Owner"

        resp = client.post("/api/auth/logout", headers=owner_headers)
        assert resp.status_code == 200

        resp = client.get("/api/auth/me", headers=owner_headers)
        assert resp.status_code == 401

    def test_deactivated_operator_session_is_revoked(self, client, manager, manager_headers, db_session):
        manager.is_active = False
        db_session.commit()

        resp = client.get("/api/products", headers=manager_headers)
        assert resp.status_code == 401


# =============================================================================
# FEATURE PIN GATES: 403
# =============================================================================


class TestPinGates:

    DRAFT = {"doc_type": "SO", "partner_name": "Metro Retail Traders", "items": []}

    @pytest.mark.parametrize("path", ["/api/documents", "/api/documents/preview"])
    @pytest.mark.parametrize("pin", [None, "", "1234"])
    def test_billing_pin_required(self, client, owner_token, path, pin):
        resp = client.post(path, json=self.DRAFT, headers=auth_headers(owner_token, pin))
        assert resp.status_code == 403
        assert resp.json["gate"] == "billing"

    def test_billing_pin_accepted(self, client, owner_token):
        # Correct PIN reaches validation (empty items -> 400)
        resp = client.post("/api/documents", json=self.DRAFT, headers=auth_headers(owner_token, "0000"))
        assert resp.status_code == 400

    def test_adjustment_pin_required(self, client, manager_token, make_product):
        p = make_product(quantity=10)
        body = {"product_id": p.id, "type": "SALE", "quantity": 1, "reason": "Counter"}

        resp = client.post("/api/movements", json=body, headers=auth_headers(manager_token, "9999"))
        assert resp.status_code == 403

        resp = client.post("/api/movements", json=body, headers=auth_headers(manager_token, "0000"))
        assert resp.status_code == 201
        assert Product.query.filter_by(id=p.id).one().quantity == 9

    def test_analytics_pin_required(self, client, owner_token):
        resp = client.get("/api/reports/business-sheet", headers=auth_headers(owner_token, "0000"))
        assert resp.status_code == 403
        assert resp.json["gate"] == "analytics"

        resp = client.get("/api/reports/business-sheet", headers=auth_headers(owner_token, "2222"))
        assert resp.status_code == 200
        assert "item_performance" in resp.json

    def test_dashboard_needs_no_pin(self, client, manager_headers):
        resp = client.get("/api/reports/dashboard", headers=manager_headers)
        assert resp.status_code == 200


# =============================================================================
# OWNER-ONLY OPERATIONS
# =============================================================================


class TestOwnerOnly:

    def test_manager_cannot_set_prices_on_create(self, client, manager_headers):
        resp = client.post(
            "/api/products",
            json={"sku": "X-1", "name": "X", "selling_price_cents": 1000},
            headers=manager_headers,
        )
        assert resp.status_code == 403

    def test_manager_can_create_without_prices(self, client, manager_headers):
        resp = client.post("/api/products", json={"sku": "X-1", "name": "X"}, headers=manager_headers)
        assert resp.status_code == 201

    def test_manager_cannot_change_prices(self, client, manager_headers, make_product):
        p = make_product(selling_price_cents=1000)
        resp = client.put(f"/api/products/{p.id}", json={"selling_price_cents": 1}, headers=manager_headers)
        assert resp.status_code == 403

    def test_owner_can_change_prices(self, client, owner_headers, make_product):
        p = make_product(selling_price_cents=1000)
        resp = client.put(f"/api/products/{p.id}", json={"selling_price_cents": 1200}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["selling_price_cents"] == 1200

    def test_manager_cannot_restore_snapshot(self, client, manager_headers):
        resp = client.post("/api/snapshot/restore", json={"invenpro_entities": []}, headers=manager_headers)
        assert resp.status_code == 403

    def test_owner_can_restore_snapshot(self, client, owner_headers):
        resp = client.post("/api/snapshot/restore", json={"invenpro_entities": []}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["restored"] == {"entities": 0}
