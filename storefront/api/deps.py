# storefront/api/deps.py
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.repos.user_repo import UserRepo
from storefront.services.checkout_service import CheckoutService
from storefront.services.mailer import Mailer
from storefront.services.notification_service import NotificationDispatcher
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import StripeGateway
from storefront.services.product_client import ProductClient
from storefront.services.rate_limiter import RateLimiter
from storefront.services.webhook_service import PaymentWebhookHandler
from storefront.utils.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_product_client(request: Request, settings: Settings = Depends(get_settings)) -> ProductClient:
    return ProductClient(
        base_url=settings.product_service_url,
        retry_config=settings.retry,
        session=request.app.state.http_session,
    )


def get_payment_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway(settings.stripe, settings.retry)


def get_dispatcher(settings: Settings = Depends(get_settings)) -> NotificationDispatcher:
    return NotificationDispatcher(
        Mailer(settings.mail, settings.retry),
        use_queue=settings.notifications_async,
    )


def get_rate_limiter(request: Request, settings: Settings = Depends(get_settings)) -> RateLimiter | None:
    if settings.checkout_rate_limit_per_min <= 0:
        return None
    return RateLimiter(
        limit=settings.checkout_rate_limit_per_min,
        client=request.app.state.redis,
        retry_config=settings.retry,
    )


def get_caller(
    x_user_id: int | None = Header(default=None),
    db: Session = Depends(get_db),
) -> UserModel | None:
    """
    Tozsamosc wywolujacego (naglowek X-User-Id ustawiany przez warstwe auth).
    Brak albo nieznany user = anonim, serwisy decyduja czy to wystarcza.
    """
    if x_user_id is None:
        return None
    return UserRepo(db).get_user(x_user_id)


def get_order_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> OrderService:
    return OrderService(db, dispatcher)


def get_checkout_service(
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service),
    product_client: ProductClient = Depends(get_product_client),
    gateway: StripeGateway = Depends(get_payment_gateway),
    rate_limiter: RateLimiter | None = Depends(get_rate_limiter),
) -> CheckoutService:
    return CheckoutService(
        db=db,
        order_service=order_service,
        product_client=product_client,
        gateway=gateway,
        rate_limiter=rate_limiter,
    )


def get_webhook_handler(
    settings: Settings = Depends(get_settings),
    order_service: OrderService = Depends(get_order_service),
) -> PaymentWebhookHandler:
    return PaymentWebhookHandler(order_service, settings.stripe)
