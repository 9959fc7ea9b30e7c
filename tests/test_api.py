"""Tests for users, addresses, health and the dev product catalog."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

from fastapi.testclient import TestClient

from conftest import CUSTOMER_ID, as_customer, checkout_payload
from storefront.api.deps import get_product_client, get_rate_limiter
from storefront.data.models import OrderModel
from storefront.main import create_app
from storefront.product_service.main import app as product_app
from storefront.services.rate_limiter import RateLimiter
from storefront.tasks.stale_orders import report_stale_pending_orders


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "db_ok": True}


class TestUsers:
    def test_create_and_get(self, client):
        response = client.post("/users/", json={"id": 10, "name": "Ola", "email": "ola@example.com"})

        assert response.status_code == 200
        assert response.json() == {"id": 10, "name": "Ola", "email": "ola@example.com", "role": "user"}
        assert client.get("/users/10").json()["name"] == "Ola"

    def test_owner_email_gets_admin_role(self, client):
        response = client.post("/users/", json={"id": 11, "name": "Szef", "email": "Owner@Shop.test"})

        assert response.json()["role"] == "admin"

    def test_create_is_idempotent(self, client):
        client.post("/users/", json={"id": 12, "name": "Ola", "email": "ola@example.com"})

        response = client.post("/users/", json={"id": 12, "name": "Inna", "email": "inna@example.com"})

        assert response.status_code == 200
        assert response.json()["name"] == "Ola"

    def test_email_taken_by_another_user(self, client):
        client.post("/users/", json={"id": 14, "name": "Ola", "email": "ola@example.com"})

        response = client.post("/users/", json={"id": 15, "name": "Ola2", "email": "OLA@example.com"})

        assert response.status_code == 400

    def test_unknown_user(self, client):
        response = client.get("/users/777")

        assert response.status_code == 404
        assert response.json()["error_type"] == "NotFoundError"

    def test_invalid_email(self, client):
        response = client.post("/users/", json={"id": 13, "name": "Ola", "email": "not-an-email"})

        assert response.status_code == 422


class TestAddresses:
    ADDRESS = {
        "street": "Długa",
        "number": "5",
        "city": "Gdańsk",
        "state": "pomorskie",
        "zip_code": "80-001",
    }

    def test_first_address_becomes_default(self, client, users):
        response = client.post("/addresses/", json=self.ADDRESS, headers=as_customer())

        assert response.status_code == 201
        assert response.json()["is_default"] is True
        assert response.json()["user_id"] == CUSTOMER_ID

    def test_new_default_replaces_old(self, client, users):
        first = client.post("/addresses/", json=self.ADDRESS, headers=as_customer()).json()
        second = client.post(
            "/addresses/", json={**self.ADDRESS, "number": "7", "is_default": True}, headers=as_customer()
        ).json()

        listing = client.get("/addresses/", headers=as_customer()).json()

        assert [a["id"] for a in listing] == [second["id"], first["id"]]
        assert [a["is_default"] for a in listing] == [True, False]

    def test_addresses_are_private(self, client, users):
        client.post("/addresses/", json=self.ADDRESS, headers=as_customer())

        assert client.get("/addresses/", headers=as_customer(2)).json() == []

    def test_get_owned_address(self, client, address):
        response = client.get(f"/addresses/{address.id}", headers=as_customer())

        assert response.status_code == 200
        assert response.json()["city"] == "Warszawa"

    def test_get_foreign_or_missing_address(self, client, address):
        assert client.get(f"/addresses/{address.id}", headers=as_customer(2)).status_code == 403
        assert client.get("/addresses/999", headers=as_customer()).status_code == 404

    def test_anonymous_rejected(self, client):
        assert client.get("/addresses/").status_code == 401


class TestCheckoutRateLimit:
    def test_limit_exceeded(self, client, address):
        class CountingRedis:
            def __init__(self):
                self.count = 0

            def eval(self, script, numkeys, key, window):
                self.count += 1
                return self.count

        limiter = RateLimiter(limit=1, client=CountingRedis())
        client.app.dependency_overrides[get_rate_limiter] = lambda: limiter

        first = client.post("/orders/checkout", json=checkout_payload(address.id), headers=as_customer())
        second = client.post("/orders/checkout", json=checkout_payload(address.id), headers=as_customer())

        assert first.status_code == 201
        assert second.status_code == 429


class TestStaleOrders:
    def test_reports_only_old_pending_orders(self, client, db, address):
        for _ in range(2):
            client.post("/orders/checkout", json=checkout_payload(address.id), headers=as_customer())

        old, fresh = db.query(OrderModel).order_by(OrderModel.id).all()
        old.created_at = datetime.now(timezone.utc) - timedelta(hours=30)
        db.commit()

        stale = report_stale_pending_orders(db, max_age_hours=24)

        assert stale == [old.id]
        db.expire_all()
        assert db.get(OrderModel, old.id).status == "pending_payment"

    def test_nothing_to_report(self, db, users):
        assert report_stale_pending_orders(db, max_age_hours=24) == []


class TestProductCatalog:
    def test_lists_products(self):
        response = TestClient(product_app).get("/products")

        assert response.status_code == 200
        assert len(response.json()) == 4

    def test_get_product(self):
        response = TestClient(product_app).get("/products/1")

        assert response.json()["name"] == "Mechanical Keyboard"
        assert Decimal(response.json()["price"]) == Decimal("10.00")

    def test_missing_product(self):
        assert TestClient(product_app).get("/products/999").status_code == 404


class TestSharedClients:
    def test_clients_reuse_app_connection_pools(self, settings):
        app = create_app(replace(settings, checkout_rate_limit_per_min=5))
        request = SimpleNamespace(app=app)

        first = get_product_client(request, app.state.settings)
        second = get_product_client(request, app.state.settings)
        limiter = get_rate_limiter(request, app.state.settings)

        assert first.session is app.state.http_session
        assert second.session is first.session
        assert limiter.redis is app.state.redis
        assert limiter.limit == 5

    def test_rate_limit_disabled(self, settings):
        app = create_app(settings)

        assert get_rate_limiter(SimpleNamespace(app=app), settings) is None
