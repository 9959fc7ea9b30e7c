# storefront/domain/checkout_metadata.py
"""
Klucz korelacji przekazywany przez metadata sesji Stripe.

Metadata to jedyny kanal, ktory niesie stan przez asynchroniczna granice
(checkout -> webhook), wiec zestaw kluczy jest jawny i wersjonowany.
Stripe przyjmuje w metadata tylko stringi.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from pydantic import BaseModel

from storefront.domain.errors import ValidationError

SCHEMA_VERSION = "1"

METADATA_KEYS = (
    "schema_version",
    "order_id",
    "user_id",
    "address_id",
    "subtotal",
    "shipping_cost",
    "tax",
    "total",
)


class CheckoutMetadata(BaseModel):
    order_id: int
    user_id: int
    address_id: int | None = None
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal

    def to_stripe(self) -> dict[str, str]:
        return {
            "schema_version": SCHEMA_VERSION,
            "order_id": str(self.order_id),
            "user_id": str(self.user_id),
            "address_id": "" if self.address_id is None else str(self.address_id),
            "subtotal": str(self.subtotal),
            "shipping_cost": str(self.shipping_cost),
            "tax": str(self.tax),
            "total": str(self.total),
        }

    @classmethod
    def from_stripe(cls, metadata: Mapping[str, Any] | None) -> "CheckoutMetadata":
        data = dict(metadata or {})

        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise ValidationError(f"Nieobslugiwana wersja metadata: {version!r}")

        missing = [k for k in METADATA_KEYS if k != "address_id" and not data.get(k)]
        if missing:
            raise ValidationError(f"Brak kluczy w metadata: {', '.join(missing)}")

        try:
            return cls(
                order_id=int(data["order_id"]),
                user_id=int(data["user_id"]),
                address_id=int(data["address_id"]) if data.get("address_id") else None,
                subtotal=Decimal(data["subtotal"]),
                shipping_cost=Decimal(data["shipping_cost"]),
                tax=Decimal(data["tax"]),
                total=Decimal(data["total"]),
            )
        except (ValueError, InvalidOperation) as e:
            raise ValidationError(f"Niepoprawne metadata: {e}") from e
