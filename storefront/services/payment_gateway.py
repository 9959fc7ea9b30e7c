# storefront/services/payment_gateway.py
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

import stripe

from storefront.domain.errors import UpstreamError
from storefront.utils.retry import stripe_retry
from storefront.utils.settings import StripeConfig, RetryConfig
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CheckoutLine:
    name: str
    unit_price: Decimal
    quantity: int
    product_id: int | None = None


@dataclass(frozen=True)
class CheckoutSessionHandle:
    session_id: str
    url: str | None


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway:
    """
    Tworzenie sesji Stripe Checkout.
    Klucz API przekazywany per wywolanie, bez globalnego stripe.api_key.
    """

    def __init__(self, config: StripeConfig, retry_config: RetryConfig | None = None):
        self.config = config
        self.retry_config = retry_config or RetryConfig()

    def build_line_items(self, lines: list[CheckoutLine]) -> list[dict]:
        items = []
        for line in lines:
            product_data = {"name": line.name}
            if line.product_id is not None:
                product_data["metadata"] = {"product_id": str(line.product_id)}

            items.append(
                {
                    "price_data": {
                        "currency": self.config.currency,
                        "product_data": product_data,
                        "unit_amount": to_minor_units(line.unit_price),
                    },
                    "quantity": line.quantity,
                }
            )
        return items

    def idempotency_key(self, order_id: int, created_at: datetime | None = None) -> str:
        """Unikalny per wdrozenie i per zamowienie (id sie powtarzaja po resecie bazy)."""
        key = f"{self.config.idempotency_prefix}-checkout-order-{order_id}"
        if created_at is not None:
            key += f"-{created_at.strftime('%Y%m%d%H%M%S%f')}"
        return key

    def _create(self, params: dict, idempotency_key: str):
        return stripe.checkout.Session.create(
            api_key=self.config.secret_key,
            idempotency_key=idempotency_key,
            **params,
        )

    def create_checkout_session(
        self,
        *,
        order_id: int,
        lines: list[CheckoutLine],
        metadata: dict[str, str],
        customer_email: str | None = None,
        created_at: datetime | None = None,
    ) -> CheckoutSessionHandle:
        params = {
            "mode": "payment",
            "line_items": self.build_line_items(lines),
            "success_url": self.config.success_url,
            "cancel_url": self.config.cancel_url,
            "client_reference_id": str(order_id),
            "metadata": metadata,
        }
        if customer_email:
            params["customer_email"] = customer_email

        #ten sam klucz przy retry -> stripe nie utworzy drugiej sesji
        idempotency_key = self.idempotency_key(order_id, created_at)

        try:
            session = stripe_retry(self.retry_config)(self._create)(params, idempotency_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session failed for order {order_id}: {e}")
            raise UpstreamError("stripe", getattr(e, "user_message", None) or str(e)) from e

        logger.info(f"Stripe checkout session {session.id} created for order {order_id}")
        return CheckoutSessionHandle(session_id=session.id, url=session.url)
