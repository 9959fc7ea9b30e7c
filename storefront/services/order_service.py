# storefront/services/order_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from storefront.domain.order_status import OrderStatus, can_transition
from storefront.domain.schemas import AddressSnapshot, OrderLineSnapshot, OrderSnapshot
from storefront.repos.address_repo import AddressRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.notification_service import NotificationDispatcher, NotificationKind
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def require_user(caller: UserModel | None) -> UserModel:
    if caller is None:
        raise AuthenticationError("Wymagane zalogowanie")
    return caller


def require_admin(caller: UserModel | None) -> UserModel:
    user = require_user(caller)
    if not user.is_admin:
        raise AuthorizationError("Wymagana rola admin")
    return user


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień i cykl życia statusu.
    Każda zmiana statusu idzie przez transition_status (warunkowy update + historia).
    """

    def __init__(self, db: Session, dispatcher: NotificationDispatcher):
        self.db = db
        self.repo = OrderRepo(db)
        self.address_repo = AddressRepo(db)
        self.dispatcher = dispatcher

    # query
    def get_order(self, order_id: int, caller: UserModel | None) -> Dict[str, Any]:
        user = require_user(caller)
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFoundError("Zamówienie", order_id)

        if order.user_id != user.id and not user.is_admin:
            raise AuthorizationError("Brak dostępu do zamówienia")

        return self._detail_dict(order)

    def list_orders(self, caller: UserModel | None) -> List[Dict[str, Any]]:
        user = require_user(caller)
        return [self._order_dict(o) for o in self.repo.list_orders_by_user(user.id)]

    def list_all_orders(self, caller: UserModel | None) -> List[Dict[str, Any]]:
        require_admin(caller)
        return [self._order_dict(o) for o in self.repo.list_all_orders()]

    # commands
    def create_pending_order(
        self,
        user_id: int,
        address_id: int | None,
        items: List[OrderItemModel],
        subtotal: Decimal,
        shipping_cost: Decimal,
        tax: Decimal,
        total: Decimal,
        notes: str | None = None,
    ) -> OrderModel:
        order = OrderModel(
            user_id=user_id,
            address_id=address_id,
            status=OrderStatus.PENDING_PAYMENT.value,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax=tax,
            total=total,
            notes=notes,
        )

        created = self.repo.create_order(order, items, notes="Zamówienie utworzone")
        logger.info(f"Order {created.id} created for user {user_id} total={created.total}")
        return created

    def transition_status(
        self,
        order_id: int,
        target: OrderStatus,
        *,
        expected_status: OrderStatus | None = None,
        notes: str | None = None,
        tracking_code: str | None = None,
        notify_kind: NotificationKind = NotificationKind.STATUS_CHANGED,
    ) -> OrderModel:
        """
        Wspolny rdzen zmiany statusu (webhook i admin).

        1. odczyt zamowienia (NotFoundError)
        2. walidacja przejscia (InvalidTransitionError)
        3. warunkowy update + historia w jednej transakcji (ConflictError gdy 0 rows)
        4. powiadomienie po commicie (best effort)
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Zamówienie", order_id)

        current = OrderStatus(order.status)
        if expected_status is not None and current != expected_status:
            raise ConflictError(order_id, expected_status.value)

        if not can_transition(current, target):
            raise InvalidTransitionError(current.value, target.value)

        extra = {"tracking_code": tracking_code} if tracking_code else None
        rowcount = self.repo.transition_status(order_id, current, target, notes=notes, extra=extra)

        if rowcount == 0:
            logger.warning(f"Order {order_id}: concurrent status change, expected {current.value}")
            raise ConflictError(order_id, current.value)

        order = self.repo.refresh(order)
        logger.info(f"Order {order_id}: {current.value} -> {target.value}")

        try:
            self.dispatcher.dispatch(self.build_snapshot(order), notify_kind)
        except Exception as e:
            logger.error(f"Order {order_id}: notification {notify_kind.value} not dispatched: {e}")

        return order

    def update_status(
        self,
        order_id: int,
        target: OrderStatus,
        caller: UserModel | None,
        notes: str | None = None,
        tracking_code: str | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: admin wymusza zmianę statusu.
        """
        admin = require_admin(caller)

        order = self.transition_status(
            order_id,
            target,
            notes=notes or f"Zmiana statusu przez admina {admin.id}",
            tracking_code=tracking_code,
        )
        return self._detail_dict(order)

    # snapshoty
    def build_snapshot(self, order: OrderModel) -> OrderSnapshot:
        user = self.db.get(UserModel, order.user_id)

        address = None
        if order.address_id:
            addr = self.address_repo.get_address(order.address_id)
            if addr:
                address = AddressSnapshot.model_validate(addr)

        return OrderSnapshot(
            order_id=order.id,
            status=OrderStatus(order.status),
            customer_email=user.email if user else None,
            customer_name=(user.name if user else "") or "",
            created_at=order.created_at,
            items=[
                OrderLineSnapshot(
                    product_name=i.product_name,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    subtotal=i.subtotal,
                )
                for i in self.repo.get_order_items(order.id)
            ],
            subtotal=order.subtotal,
            shipping_cost=order.shipping_cost,
            tax=order.tax,
            total=order.total,
            tracking_code=order.tracking_code,
            address=address,
        )

    def _order_dict(self, order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "status": order.status,
            "subtotal": order.subtotal,
            "shipping_cost": order.shipping_cost,
            "tax": order.tax,
            "total": order.total,
            "address_id": order.address_id,
            "tracking_code": order.tracking_code,
            "notes": order.notes,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    def _detail_dict(self, order: OrderModel) -> Dict[str, Any]:
        data = self._order_dict(order)
        data["items"] = [
            {
                "product_id": i.product_id,
                "product_name": i.product_name,
                "quantity": i.quantity,
                "unit_price": i.unit_price,
                "subtotal": i.subtotal,
            }
            for i in self.repo.get_order_items(order.id)
        ]
        data["history"] = [
            {
                "previous_status": h.previous_status,
                "new_status": h.new_status,
                "notes": h.notes,
                "created_at": h.created_at,
            }
            for h in self.repo.get_order_history(order.id)
        ]
        return data
