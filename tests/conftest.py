"""Pytest fixtures for storefront tests."""

import hashlib
import hmac
import json
import os
import time
from decimal import Decimal

# przed importem storefront, engine modulu database nie moze wskazywac na postgresa
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api.deps import (
    get_dispatcher,
    get_payment_gateway,
    get_product_client,
    get_rate_limiter,
)
from storefront.data.database import Base, get_db
from storefront.data.models import AddressModel, UserModel
from storefront.domain.errors import UpstreamError
from storefront.main import create_app
from storefront.services.payment_gateway import CheckoutSessionHandle
from storefront.utils.settings import MailConfig, RetryConfig, Settings, StripeConfig

WEBHOOK_SECRET = "whsec_test_secret"

CUSTOMER_ID = 1
OTHER_CUSTOMER_ID = 2
ADMIN_ID = 99


class FakeProductClient:
    def __init__(self, products=None):
        self.products = products if products is not None else {
            1: {"id": 1, "name": "Mechanical Keyboard", "price": "10.00"},
            2: {"id": 2, "name": "Wireless Mouse", "price": "49.50"},
        }
        self.calls = []

    def fetch_product(self, product_id):
        self.calls.append(product_id)
        return self.products.get(product_id)


class FakeGateway:
    def __init__(self):
        self.calls = []
        self.error = None

    def create_checkout_session(self, *, order_id, lines, metadata, customer_email=None, created_at=None):
        self.calls.append(
            {
                "order_id": order_id,
                "lines": lines,
                "metadata": metadata,
                "customer_email": customer_email,
                "created_at": created_at,
            }
        )
        if self.error:
            raise self.error
        return CheckoutSessionHandle(
            session_id=f"cs_test_{order_id}",
            url=f"https://checkout.stripe.test/pay/cs_test_{order_id}",
        )


class RecordingDispatcher:
    def __init__(self):
        self.sent = []

    def dispatch(self, snapshot, kind):
        self.sent.append((snapshot, kind))
        return True


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Naglowek Stripe-Signature w formacie t=...,v1=..."""
    ts = timestamp if timestamp is not None else int(time.time())
    signed = f"{ts}.".encode() + payload
    sig = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def make_event(event_type: str, obj: dict, event_id: str = "evt_1NqLive") -> bytes:
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": obj},
        }
    ).encode()


def checkout_payload(address_id: int, **overrides) -> dict:
    """Koszyk: 2 x 10.00 + dostawa 5.00 = 25.00"""
    payload = {
        "items": [{"product_id": 1, "quantity": 2, "unit_price": "10.00"}],
        "address_id": address_id,
        "subtotal": "20.00",
        "shipping_cost": "5.00",
        "tax": "0.00",
        "total": "25.00",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(
        stripe=StripeConfig(secret_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET),
        mail=MailConfig(),
        retry=RetryConfig(attempts=1, min_wait=0, max_wait=0),
        owner_email="owner@shop.test",
        checkout_rate_limit_per_min=0,
    )


@pytest.fixture
def product_client():
    return FakeProductClient()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def users(db):
    db.add_all(
        [
            UserModel(id=CUSTOMER_ID, name="Anna", email="anna@example.com", role="user"),
            UserModel(id=OTHER_CUSTOMER_ID, name="Piotr", email="piotr@example.com", role="user"),
            UserModel(id=ADMIN_ID, name="Owner", email="owner@shop.test", role="admin"),
        ]
    )
    db.commit()


@pytest.fixture
def address(db, users):
    addr = AddressModel(
        user_id=CUSTOMER_ID,
        street="Marszałkowska",
        number="10",
        city="Warszawa",
        state="mazowieckie",
        zip_code="00-001",
        is_default=True,
    )
    db.add(addr)
    db.commit()
    db.refresh(addr)
    return addr


@pytest.fixture
def client(settings, session_factory, product_client, gateway, dispatcher):
    app = create_app(settings)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_product_client] = lambda: product_client
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_rate_limiter] = lambda: None

    # bez context managera, lifespan (create_all na glownym engine) nie jest potrzebny
    return TestClient(app)


@pytest.fixture
def upstream_failure():
    return UpstreamError("stripe", "connection reset")


def as_customer(user_id: int = CUSTOMER_ID) -> dict:
    return {"X-User-Id": str(user_id)}


def as_admin() -> dict:
    return {"X-User-Id": str(ADMIN_ID)}


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))
