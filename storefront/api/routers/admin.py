from typing import List

from fastapi import APIRouter, Depends

from storefront.api.deps import get_caller, get_order_service
from storefront.data.models.user import UserModel
from storefront.domain.schemas import OrderOut
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=List[OrderOut])
def list_all_orders(
    caller: UserModel | None = Depends(get_caller),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_all_orders(caller)
