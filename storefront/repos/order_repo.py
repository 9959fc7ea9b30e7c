# storefront/repos/order_repo.py
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.order_history import OrderHistoryModel
from storefront.domain.order_status import OrderStatus


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(
        self,
        order: OrderModel,
        items: list[OrderItemModel],
        notes: str | None = None,
    ) -> OrderModel:
        #zamowienie, pozycje i pierwszy wpis historii w jednej transakcji
        try:
            self.db.add(order)
            self.db.flush()

            for item in items:
                item.order_id = order.id
                self.db.add(item)

            self.db.add(
                OrderHistoryModel(
                    order_id=order.id,
                    previous_status=None,
                    new_status=order.status,
                    notes=notes,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_by_session(self, session_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.payment_session_id == session_id)
        ).scalar_one_or_none()

    def list_orders_by_user(self, user_id: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def list_all_orders(self) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def list_pending_older_than(self, cutoff: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).where(
                    OrderModel.status == OrderStatus.PENDING_PAYMENT.value,
                    OrderModel.created_at < cutoff,
                )
            ).scalars()
        )

    def get_order_items(self, order_id: int) -> list[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel)
                .where(OrderItemModel.order_id == order_id)
                .order_by(OrderItemModel.id)
            ).scalars()
        )

    def get_order_history(self, order_id: int) -> list[OrderHistoryModel]:
        return list(
            self.db.execute(
                select(OrderHistoryModel)
                .where(OrderHistoryModel.order_id == order_id)
                .order_by(OrderHistoryModel.id)
            ).scalars()
        )

    def get_latest_history(self, order_id: int) -> OrderHistoryModel | None:
        return self.db.execute(
            select(OrderHistoryModel)
            .where(OrderHistoryModel.order_id == order_id)
            .order_by(OrderHistoryModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def set_payment_session(self, order_id: int, session_id: str) -> None:
        self.db.query(OrderModel).filter(OrderModel.id == order_id).update(
            {"payment_session_id": session_id, "updated_at": datetime.now(timezone.utc)},
            synchronize_session=False,
        )
        self.db.commit()

    def transition_status(
        self,
        order_id: int,
        expected: OrderStatus,
        new: OrderStatus,
        notes: str | None = None,
        extra: dict | None = None,
    ) -> int:
        """
        Warunkowy update statusu + wpis historii w jednej transakcji.
        UPDATE orders SET status=:new WHERE id=:id AND status=:expected
        Zwraca rowcount, 0 = ktos nas wyprzedzil, nic nie zapisano.
        """
        values = {"status": new.value, "updated_at": datetime.now(timezone.utc)}
        if extra:
            values.update(extra)

        try:
            rowcount = (
                self.db.query(OrderModel)
                .filter(
                    OrderModel.id == order_id,
                    OrderModel.status == expected.value,
                )
                .update(values, synchronize_session=False)
            )

            if rowcount == 0:
                self.db.rollback()
                return 0

            self.db.add(
                OrderHistoryModel(
                    order_id=order_id,
                    previous_status=expected.value,
                    new_status=new.value,
                    notes=notes,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        return rowcount

    def refresh(self, obj):
        self.db.refresh(obj)
        return obj
