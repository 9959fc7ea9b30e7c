# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends

from storefront.api.deps import get_caller, get_checkout_service, get_order_service
from storefront.data.models.user import UserModel
from storefront.domain.schemas import (
    CheckoutIn,
    CheckoutOut,
    OrderDetailOut,
    OrderOut,
    StatusUpdateIn,
)
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def create_checkout_session(
    payload: CheckoutIn,
    caller: UserModel | None = Depends(get_caller),
    svc: CheckoutService = Depends(get_checkout_service),
):
    """
    Tworzy zamówienie pending_payment i sesję Stripe Checkout.
    Zwraca session id i url przekierowania.
    """
    return svc.create_checkout_session(payload, caller)


@router.get("/", response_model=List[OrderOut])
def list_orders(
    caller: UserModel | None = Depends(get_caller),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(caller)


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    caller: UserModel | None = Depends(get_caller),
    svc: OrderService = Depends(get_order_service),
):
    """
    Pobiera szczegóły zamówienia z pozycjami i historią statusów.
    """
    return svc.get_order(order_id, caller)


@router.patch("/{order_id}/status", response_model=OrderDetailOut)
def update_order_status(
    order_id: int,
    payload: StatusUpdateIn,
    caller: UserModel | None = Depends(get_caller),
    svc: OrderService = Depends(get_order_service),
):
    """
    Admin: wymuszona zmiana statusu (zapis historii + powiadomienie).
    """
    return svc.update_status(
        order_id,
        payload.status,
        caller,
        notes=payload.notes,
        tracking_code=payload.tracking_code,
    )
