# storefront/services/notification_service.py
from enum import Enum

from storefront.celery_worker import celery_app
from storefront.domain.schemas import OrderSnapshot
from storefront.services.email_templates import render_confirmation, render_status_update
from storefront.services.mailer import Mailer
from storefront.utils.settings import load_mail_config, load_retry_config
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationKind(str, Enum):
    CONFIRMATION = "confirmation"
    STATUS_CHANGED = "status-changed"


class NotificationDispatcher:
    """
    Powiadomienia email dla klienta.
    Best effort: blad wysylki jest logowany i polykany, nigdy nie cofa
    ani nie blokuje zmiany statusu zamowienia.
    """

    def __init__(self, mailer: Mailer, use_queue: bool = False):
        self.mailer = mailer
        self.use_queue = use_queue

    def dispatch(self, snapshot: OrderSnapshot, kind: NotificationKind) -> bool:
        if self.use_queue:
            try:
                send_order_notification_task.delay(snapshot.model_dump(mode="json"), kind.value)
                logger.info(f"[NOTIFICATION] Order {snapshot.order_id}: {kind.value} queued")
                return True
            except Exception as e:
                logger.error(f"[NOTIFICATION] Order {snapshot.order_id}: failed to queue {kind.value}: {e}")
                return False

        return self.deliver(snapshot, kind)

    def deliver(self, snapshot: OrderSnapshot, kind: NotificationKind) -> bool:
        if not snapshot.customer_email:
            logger.warning(f"[NOTIFICATION] Order {snapshot.order_id}: customer has no email, skipping {kind.value}")
            return False

        try:
            shop_name = self.mailer.config.shop_name
            if kind == NotificationKind.CONFIRMATION:
                message = render_confirmation(snapshot, shop_name)
            else:
                message = render_status_update(snapshot, shop_name)

            sent = self.mailer.send(snapshot.customer_email, message.subject, message.text, message.html)
        except Exception as e:
            logger.error(f"[NOTIFICATION] Order {snapshot.order_id}: {kind.value} failed: {e}")
            return False

        logger.info(f"[NOTIFICATION] Order {snapshot.order_id}: {kind.value} sent={sent}")
        return sent


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(snapshot: dict, kind: str):
    """
    Celery task - konfiguracja wczytywana w workerze, bez wspoldzielonego
    transportera na poziomie modulu.
    """
    dispatcher = NotificationDispatcher(Mailer(load_mail_config(), load_retry_config()))
    sent = dispatcher.deliver(OrderSnapshot.model_validate(snapshot), NotificationKind(kind))

    return {"order_id": snapshot.get("order_id"), "kind": kind, "sent": sent}
