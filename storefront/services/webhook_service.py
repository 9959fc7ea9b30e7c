# storefront/services/webhook_service.py
"""
Webhook Stripe: weryfikacja podpisu -> test event -> dispatch po typie.

Kazde zweryfikowane powiadomienie dostaje potwierdzenie. Blad w efektach
ubocznych konkretnego eventu konczy sie WebhookProcessingError (HTTP 500),
zeby Stripe ponowil dostarczenie. Przejscie statusu jest atomowe, wiec
ponowienie nie trafia na polowiczny stan.
"""
import json
from typing import Any, Callable, Dict

import stripe

from storefront.domain.checkout_metadata import CheckoutMetadata
from storefront.domain.errors import (
    AuthenticationError,
    ConflictError,
    InvalidTransitionError,
    StorefrontError,
    ValidationError,
    WebhookProcessingError,
)
from storefront.domain.order_status import OrderStatus
from storefront.repos.order_repo import OrderRepo
from storefront.services.notification_service import NotificationKind
from storefront.services.order_service import OrderService
from storefront.utils.settings import StripeConfig
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_EXPIRED = "checkout.session.expired"
CHECKOUT_ASYNC_SUCCEEDED = "checkout.session.async_payment_succeeded"
CHECKOUT_ASYNC_FAILED = "checkout.session.async_payment_failed"
PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
CUSTOMER_CREATED = "customer.created"

ACK = {"received": True}

# "unpaid" przy completed = platnosc odroczona (przelew, P24), potwierdzenie przyjdzie osobno
PAID_STATUSES = {"paid", "no_payment_required"}


class PaymentWebhookHandler:
    def __init__(self, order_service: OrderService, config: StripeConfig):
        self.order_service = order_service
        self.repo: OrderRepo = order_service.repo
        self.config = config

        self._handlers: Dict[str, Callable[[Any], Dict[str, Any]]] = {
            CHECKOUT_COMPLETED: self._on_checkout_completed,
            CHECKOUT_EXPIRED: self._on_checkout_expired,
            CHECKOUT_ASYNC_SUCCEEDED: self._on_checkout_completed,
            CHECKOUT_ASYNC_FAILED: self._on_async_payment_failed,
            PAYMENT_SUCCEEDED: self._on_payment_succeeded,
            PAYMENT_FAILED: self._on_payment_failed,
            CUSTOMER_CREATED: self._on_customer_created,
        }

    def verify(self, payload: bytes, signature: str | None):
        """Weryfikacja na surowych bajtach, przed jakimkolwiek parsowaniem."""
        if not self.config.webhook_secret:
            logger.error("Stripe webhook secret is not configured")
            raise WebhookProcessingError("Webhook nie jest skonfigurowany")

        if not signature:
            raise AuthenticationError(f"Brak naglowka {self.config.signature_header}")

        try:
            body = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                self.config.webhook_secret,
                self.config.signature_tolerance,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise AuthenticationError("Niepoprawny podpis webhooka") from e

        try:
            event = json.loads(body)
        except ValueError as e:
            logger.warning(f"Webhook payload is not valid JSON: {e}")
            raise ValidationError("Niepoprawny payload webhooka") from e

        if not isinstance(event, dict):
            raise ValidationError("Payload webhooka musi byc obiektem")
        return event

    def handle(self, payload: bytes, signature: str | None) -> Dict[str, Any]:
        event = self.verify(payload, signature)

        event_id = str(event.get("id") or "")
        event_type = str(event.get("type") or "")

        if event_id.startswith(self.config.test_event_prefix):
            logger.info(f"[Webhook] Test event {event_id} detected, returning verification response")
            return {"verified": True}

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"[Webhook] Unhandled event type: {event_type} ({event_id})")
            return ACK

        data = event.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        if not isinstance(obj, dict):
            logger.warning(f"[Webhook] {event_type} ({event_id}) has no data.object")
            raise ValidationError("Event bez obiektu data.object")

        try:
            handler(obj)
        except StorefrontError as e:
            logger.error(f"[Webhook] {event_type} ({event_id}) processing failed: {e}")
            raise WebhookProcessingError(f"Przetwarzanie {event_type} nie powiodlo sie") from e
        except Exception as e:
            logger.exception(f"[Webhook] {event_type} ({event_id}) processing error: {e}")
            raise WebhookProcessingError(f"Przetwarzanie {event_type} nie powiodlo sie") from e

        return ACK

    # eventy
    def _locate_order(self, session_id: str | None, metadata: CheckoutMetadata | None):
        if metadata is not None:
            order = self.repo.get_order(metadata.order_id)
            if order:
                return order
        if session_id:
            return self.repo.get_order_by_session(session_id)
        return None

    def _on_checkout_completed(self, session) -> Dict[str, Any]:
        session_id = session.get("id")
        payment_status = str(session.get("payment_status") or "")

        if payment_status not in PAID_STATUSES:
            logger.info(
                f"[Webhook] Checkout session {session_id} payment_status={payment_status or None}, "
                f"waiting for payment"
            )
            return {"order_id": None, "transitioned": False}

        try:
            metadata = CheckoutMetadata.from_stripe(session.get("metadata"))
        except ValidationError as e:
            logger.warning(f"[Webhook] Checkout session {session_id} has unusable metadata: {e}")
            metadata = None

        order = self._locate_order(session_id, metadata)
        if order is None:
            logger.warning(f"[Webhook] No order for checkout session {session_id}, ignoring")
            return {"order_id": None, "transitioned": False}

        if order.status != OrderStatus.PENDING_PAYMENT.value:
            # powtorne dostarczenie, przejscie juz bylo
            logger.info(f"[Webhook] Order {order.id} already {order.status}, ignoring duplicate")
            return {"order_id": order.id, "transitioned": False}

        if metadata is not None and metadata.total != order.total:
            logger.warning(
                f"[Webhook] Order {order.id} total {order.total} differs from session metadata {metadata.total}"
            )

        try:
            self.order_service.transition_status(
                order.id,
                OrderStatus.PAYMENT_CONFIRMED,
                expected_status=OrderStatus.PENDING_PAYMENT,
                notes=f"Płatność potwierdzona (sesja {session_id})",
                notify_kind=NotificationKind.CONFIRMATION,
            )
        except (ConflictError, InvalidTransitionError) as e:
            logger.info(f"[Webhook] Order {order.id} changed concurrently, ignoring: {e}")
            return {"order_id": order.id, "transitioned": False}

        logger.info(f"[Webhook] Payment confirmed for order {order.id} (session {session_id})")
        return {"order_id": order.id, "transitioned": True}

    def _on_checkout_expired(self, session) -> Dict[str, Any]:
        logger.info(f"[Webhook] Checkout session {session.get('id')} expired")
        return {}

    def _on_async_payment_failed(self, session) -> Dict[str, Any]:
        #jak payment_failed, zamowienie zostaje w pending_payment
        logger.warning(f"[Webhook] Delayed payment for checkout session {session.get('id')} failed")
        return {}

    def _on_payment_succeeded(self, intent) -> Dict[str, Any]:
        logger.info(f"[Webhook] Payment intent {intent.get('id')} succeeded, amount={intent.get('amount')}")
        return {}

    def _on_payment_failed(self, intent) -> Dict[str, Any]:
        #bez zmiany statusu, anulowanie to osobna decyzja
        error = intent.get("last_payment_error") or {}
        logger.warning(
            f"[Webhook] Payment intent {intent.get('id')} failed: "
            f"{error.get('code')} {error.get('message')}"
        )
        return {}

    def _on_customer_created(self, customer) -> Dict[str, Any]:
        logger.info(f"[Webhook] Customer {customer.get('id')} created")
        return {}
