"""Tests for POST /orders/checkout."""

from decimal import Decimal

from conftest import CUSTOMER_ID, OTHER_CUSTOMER_ID, as_customer, checkout_payload, money
from storefront.data.models import OrderModel
from storefront.domain.checkout_metadata import CheckoutMetadata
from storefront.repos.order_repo import OrderRepo


def _orders(db):
    db.expire_all()
    return db.query(OrderModel).all()


class TestCheckoutHappyPath:
    def test_creates_pending_order_and_session(self, client, db, address, gateway):
        response = client.post(
            "/orders/checkout", json=checkout_payload(address.id), headers=as_customer()
        )

        assert response.status_code == 201
        data = response.json()
        assert data["session_id"] == f"cs_test_{data['order_id']}"
        assert data["url"].startswith("https://checkout.stripe.test/")

        orders = _orders(db)
        assert len(orders) == 1
        order = orders[0]
        assert order.status == "pending_payment"
        assert order.user_id == CUSTOMER_ID
        assert order.subtotal == Decimal("20.00")
        assert order.shipping_cost == Decimal("5.00")
        assert order.total == Decimal("25.00")
        assert order.payment_session_id == data["session_id"]

    def test_items_snapshot_catalog_name_and_cart_price(self, client, db, address):
        client.post("/orders/checkout", json=checkout_payload(address.id), headers=as_customer())

        order = _orders(db)[0]
        items = OrderRepo(db).get_order_items(order.id)
        assert len(items) == 1
        assert items[0].product_id == 1
        assert items[0].product_name == "Mechanical Keyboard"
        assert items[0].quantity == 2
        assert items[0].unit_price == Decimal("10.00")
        assert items[0].subtotal == Decimal("20.00")

    def test_initial_history_entry(self, client, db, address):
        client.post("/orders/checkout", json=checkout_payload(address.id), headers=as_customer())

        order = _orders(db)[0]
        history = OrderRepo(db).get_order_history(order.id)
        assert len(history) == 1
        assert history[0].previous_status is None
        assert history[0].new_status == "pending_payment"
        assert OrderRepo(db).get_latest_history(order.id).new_status == order.status

    def test_session_carries_versioned_metadata(self, client, db, address, gateway):
        client.post("/orders/checkout", json=checkout_payload(address.id), headers=as_customer())

        call = gateway.calls[0]
        metadata = CheckoutMetadata.from_stripe(call["metadata"])
        assert metadata.order_id == call["order_id"]
        assert metadata.user_id == CUSTOMER_ID
        assert metadata.address_id == address.id
        assert metadata.total == Decimal("25.00")
        assert call["customer_email"] == "anna@example.com"
        assert call["created_at"] is not None

    def test_session_lines_charge_exactly_the_total(self, client, address, gateway):
        payload = checkout_payload(address.id, tax="1.50", total="26.50")
        response = client.post("/orders/checkout", json=payload, headers=as_customer())
        assert response.status_code == 201

        lines = gateway.calls[0]["lines"]
        names = [l.name for l in lines]
        assert names == ["Mechanical Keyboard", "Dostawa", "Podatek"]
        charged = sum((l.unit_price * l.quantity for l in lines), Decimal("0"))
        assert charged == Decimal("26.50")

    def test_zero_shipping_adds_no_shipping_line(self, client, address, gateway):
        payload = checkout_payload(address.id, shipping_cost="0.00", total="20.00")
        client.post("/orders/checkout", json=payload, headers=as_customer())

        assert [l.name for l in gateway.calls[0]["lines"]] == ["Mechanical Keyboard"]

    def test_order_visible_to_owner(self, client, address):
        created = client.post(
            "/orders/checkout", json=checkout_payload(address.id), headers=as_customer()
        ).json()

        response = client.get(f"/orders/{created['order_id']}", headers=as_customer())
        assert response.status_code == 200
        detail = response.json()
        assert detail["status"] == "pending_payment"
        assert money(detail["total"]) == Decimal("25.00")
        assert len(detail["items"]) == 1
        assert detail["history"][0]["new_status"] == "pending_payment"

        listing = client.get("/orders/", headers=as_customer()).json()
        assert [o["id"] for o in listing] == [created["order_id"]]


class TestCheckoutRejections:
    def test_unknown_product_creates_nothing(self, client, db, address, gateway):
        payload = checkout_payload(
            address.id,
            items=[{"product_id": 404, "quantity": 1, "unit_price": "20.00"}],
        )
        response = client.post("/orders/checkout", json=payload, headers=as_customer())

        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"
        assert _orders(db) == []
        assert gateway.calls == []

    def test_total_mismatch_rejected(self, client, db, address, gateway):
        payload = checkout_payload(address.id, total="30.00")
        response = client.post("/orders/checkout", json=payload, headers=as_customer())

        assert response.status_code == 400
        assert _orders(db) == []
        assert gateway.calls == []

    def test_lines_not_matching_subtotal_rejected(self, client, db, address):
        payload = checkout_payload(address.id, subtotal="15.00", total="20.00")
        response = client.post("/orders/checkout", json=payload, headers=as_customer())

        assert response.status_code == 400
        assert _orders(db) == []

    def test_empty_cart_rejected(self, client, db, address):
        payload = checkout_payload(address.id, items=[])
        response = client.post("/orders/checkout", json=payload, headers=as_customer())

        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"
        assert _orders(db) == []

    def test_negative_amount_rejected(self, client, db, address):
        payload = checkout_payload(address.id, shipping_cost="-5.00", total="15.00")
        response = client.post("/orders/checkout", json=payload, headers=as_customer())

        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"
        assert _orders(db) == []

    def test_zero_quantity_rejected(self, client, db, address, gateway):
        payload = checkout_payload(
            address.id,
            items=[{"product_id": 1, "quantity": 0, "unit_price": "10.00"}],
            subtotal="0.00",
            total="5.00",
        )
        response = client.post("/orders/checkout", json=payload, headers=as_customer())

        assert response.status_code == 400
        assert response.json()["error_type"] == "ValidationError"
        assert _orders(db) == []
        assert gateway.calls == []

    def test_negative_unit_price_rejected(self, client, db, address):
        payload = checkout_payload(
            address.id,
            items=[{"product_id": 1, "quantity": 2, "unit_price": "-10.00"}],
            subtotal="-20.00",
            total="-15.00",
        )
        response = client.post("/orders/checkout", json=payload, headers=as_customer())

        assert response.status_code == 400
        assert _orders(db) == []

    def test_malformed_amount_is_schema_error(self, client, db, address):
        payload = checkout_payload(address.id, total="25.001")
        response = client.post("/orders/checkout", json=payload, headers=as_customer())

        assert response.status_code == 422
        assert _orders(db) == []

    def test_anonymous_caller_rejected(self, client, db, address):
        response = client.post("/orders/checkout", json=checkout_payload(address.id))

        assert response.status_code == 401
        assert _orders(db) == []

    def test_unknown_address(self, client, db, address):
        response = client.post(
            "/orders/checkout", json=checkout_payload(address.id + 100), headers=as_customer()
        )

        assert response.status_code == 404
        assert _orders(db) == []

    def test_someone_elses_address(self, client, db, address):
        response = client.post(
            "/orders/checkout",
            json=checkout_payload(address.id),
            headers=as_customer(OTHER_CUSTOMER_ID),
        )

        assert response.status_code == 403
        assert _orders(db) == []


class TestCheckoutProviderFailure:
    def test_provider_failure_leaves_order_pending(self, client, db, address, gateway, upstream_failure):
        gateway.error = upstream_failure

        response = client.post(
            "/orders/checkout", json=checkout_payload(address.id), headers=as_customer()
        )

        assert response.status_code == 502
        assert response.json()["error_type"] == "UpstreamError"

        orders = _orders(db)
        assert len(orders) == 1
        assert orders[0].status == "pending_payment"
        assert orders[0].payment_session_id is None
        history = OrderRepo(db).get_order_history(orders[0].id)
        assert [h.new_status for h in history] == ["pending_payment"]
