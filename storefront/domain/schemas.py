# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Annotated, List, Optional
from decimal import Decimal
from datetime import datetime

from storefront.domain.order_status import OrderStatus

# tylko format kwoty, reguly koszyka (znak, sumy, ilosci) sprawdza CheckoutService -> 400
Money = Annotated[Decimal, Field(max_digits=10, decimal_places=2)]


class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    email: Optional[str] = Field(None, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")


class UserRead(BaseModel):
    """Schema dla użytkownika (response)."""

    id: int
    name: str
    email: Optional[str] = None
    role: str

    model_config = ConfigDict(from_attributes=True)


class AddressCreate(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    number: str = Field(..., min_length=1, max_length=20)
    complement: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=50)
    zip_code: str = Field(..., min_length=1, max_length=10)
    is_default: bool = False


class AddressOut(AddressCreate):
    id: int
    user_id: int

    model_config = ConfigDict(from_attributes=True)


class CartLineIn(BaseModel):
    """Pozycja koszyka przekazana do checkoutu."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(..., description="Ilość produktu")
    unit_price: Money


class CheckoutIn(BaseModel):
    items: List[CartLineIn]
    address_id: int = Field(..., gt=0)
    subtotal: Money
    shipping_cost: Money
    tax: Money
    total: Money


class CheckoutOut(BaseModel):
    order_id: int
    session_id: str
    url: Optional[str] = None


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderHistoryOut(BaseModel):
    previous_status: Optional[OrderStatus] = None
    new_status: OrderStatus
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    user_id: int
    status: OrderStatus
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal
    address_id: Optional[int] = None
    tracking_code: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderDetailOut(OrderOut):
    items: List[OrderItemOut] = []
    history: List[OrderHistoryOut] = []


class StatusUpdateIn(BaseModel):
    status: OrderStatus
    notes: Optional[str] = Field(None, max_length=1000)
    tracking_code: Optional[str] = Field(None, max_length=100)


class OrderLineSnapshot(BaseModel):
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class AddressSnapshot(BaseModel):
    street: str
    number: str
    complement: Optional[str] = None
    city: str
    state: str
    zip_code: str

    model_config = ConfigDict(from_attributes=True)


class OrderSnapshot(BaseModel):
    """Dane zamówienia potrzebne do powiadomienia (serializowalne dla celery)."""

    order_id: int
    status: OrderStatus
    customer_email: Optional[str] = None
    customer_name: str = ""
    created_at: datetime
    items: List[OrderLineSnapshot] = []
    subtotal: Decimal
    shipping_cost: Decimal
    tax: Decimal
    total: Decimal
    tracking_code: Optional[str] = None
    address: Optional[AddressSnapshot] = None
