# storefront/services/checkout_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.user import UserModel
from storefront.domain.checkout_metadata import CheckoutMetadata
from storefront.domain.errors import AuthorizationError, NotFoundError, ValidationError
from storefront.domain.schemas import CheckoutIn
from storefront.repos.address_repo import AddressRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.order_service import OrderService, require_user
from storefront.services.payment_gateway import CheckoutLine, StripeGateway
from storefront.services.product_client import ProductClient
from storefront.services.rate_limiter import RateLimiter
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0.00")


class CheckoutService:
    """
    Use Case: koszyk -> zamówienie pending_payment -> sesja Stripe Checkout.

    1. walidacja koszyka, kwot, produktów i adresu (nic nie jest zapisywane)
    2. zamówienie + pozycje (snapshot cen) + historia w jednej transakcji
    3. sesja w Stripe z kluczem korelacji w metadata
    4. zapis session id na zamówieniu
    """

    def __init__(
        self,
        db: Session,
        order_service: OrderService,
        product_client: ProductClient,
        gateway: StripeGateway,
        rate_limiter: RateLimiter | None = None,
    ):
        self.repo = OrderRepo(db)
        self.address_repo = AddressRepo(db)
        self.order_service = order_service
        self.product_client = product_client
        self.gateway = gateway
        self.rate_limiter = rate_limiter

    def _validate_amounts(self, payload: CheckoutIn) -> None:
        if not payload.items:
            raise ValidationError("Koszyk jest pusty")

        for line in payload.items:
            if line.quantity <= 0:
                raise ValidationError(f"Ilość produktu {line.product_id} musi być większa niż 0")
            if line.unit_price < ZERO:
                raise ValidationError(f"Cena produktu {line.product_id} nie może być ujemna")

        for name in ("subtotal", "shipping_cost", "tax", "total"):
            if getattr(payload, name) < ZERO:
                raise ValidationError(f"Kwota {name} nie może być ujemna")

        lines_total = sum((l.unit_price * l.quantity for l in payload.items), ZERO)
        if lines_total != payload.subtotal:
            raise ValidationError(
                f"Suma pozycji {lines_total} nie zgadza się z subtotal {payload.subtotal}"
            )

        if payload.subtotal + payload.shipping_cost + payload.tax != payload.total:
            raise ValidationError("total musi być równy subtotal + shipping_cost + tax")

    def _resolve_products(self, payload: CheckoutIn) -> Dict[int, dict]:
        products = {}
        for line in payload.items:
            if line.product_id in products:
                continue
            product = self.product_client.fetch_product(line.product_id)
            if not product:
                raise ValidationError(f"Produkt {line.product_id} nie istnieje")
            products[line.product_id] = product
        return products

    def _check_address(self, address_id: int, user: UserModel) -> None:
        address = self.address_repo.get_address(address_id)
        if not address:
            raise NotFoundError("Adres", address_id)
        if address.user_id != user.id:
            raise AuthorizationError("Brak dostępu do adresu")

    def create_checkout_session(self, payload: CheckoutIn, caller: UserModel | None) -> Dict[str, Any]:
        user = require_user(caller)

        if self.rate_limiter:
            self.rate_limiter.check("checkout", user.id)

        self._validate_amounts(payload)
        self._check_address(payload.address_id, user)
        products = self._resolve_products(payload)

        items: List[OrderItemModel] = [
            OrderItemModel(
                product_id=line.product_id,
                product_name=products[line.product_id].get("name") or f"Produkt {line.product_id}",
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.unit_price * line.quantity,
            )
            for line in payload.items
        ]

        order = self.order_service.create_pending_order(
            user_id=user.id,
            address_id=payload.address_id,
            items=items,
            subtotal=payload.subtotal,
            shipping_cost=payload.shipping_cost,
            tax=payload.tax,
            total=payload.total,
        )

        lines = [
            CheckoutLine(
                name=products[l.product_id].get("name") or f"Produkt {l.product_id}",
                unit_price=l.unit_price,
                quantity=l.quantity,
                product_id=l.product_id,
            )
            for l in payload.items
        ]
        #dostawa i podatek jako osobne pozycje, sesja obciaza dokladnie total
        if payload.shipping_cost > ZERO:
            lines.append(CheckoutLine(name="Dostawa", unit_price=payload.shipping_cost, quantity=1))
        if payload.tax > ZERO:
            lines.append(CheckoutLine(name="Podatek", unit_price=payload.tax, quantity=1))

        metadata = CheckoutMetadata(
            order_id=order.id,
            user_id=user.id,
            address_id=payload.address_id,
            subtotal=payload.subtotal,
            shipping_cost=payload.shipping_cost,
            tax=payload.tax,
            total=payload.total,
        )

        # UpstreamError leci do klienta, zamowienie zostaje w pending_payment
        handle = self.gateway.create_checkout_session(
            order_id=order.id,
            lines=lines,
            metadata=metadata.to_stripe(),
            customer_email=user.email,
            created_at=order.created_at,
        )

        self.repo.set_payment_session(order.id, handle.session_id)
        logger.info(f"Order {order.id} linked to checkout session {handle.session_id}")

        return {
            "order_id": order.id,
            "session_id": handle.session_id,
            "url": handle.url,
        }
