from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderLineIn(BaseModel):
    product_id: Optional[str] = None
    product_name: str = ""
    quantity: int = 0
    price: float = 0
    unit: Optional[str] = None
    variant_label: Optional[str] = None


# Contact fields default to "" so blank and missing values get the same 400 from the intake service
class GuestOrderCreate(BaseModel):
    access_code: str = ""
    guest_name: str = ""
    guest_phone: str = ""
    guest_comment: Optional[str] = None
    items: List[OrderLineIn] = []


class StoreOrderCreate(BaseModel):
    store_id: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    customer_comment: Optional[str] = None
    items: List[OrderLineIn] = []


class OrderCreated(BaseModel):
    success: bool = True
    order_number: str = Field(alias="orderNumber")
    order_id: str = Field(alias="orderId")
    total: float

    class Config:
        populate_by_name = True


class OrderItemOut(BaseModel):
    id: str
    product_id: Optional[str] = None
    product_name: str
    quantity: int
    price: float
    total: float

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: str
    order_number: str
    status: str
    guest_name: Optional[str] = None
    guest_phone: Optional[str] = None
    is_guest_order: bool
    shipping_address: Optional[dict] = None
    notes: Optional[str] = None
    subtotal: float
    total: float
    created_at: datetime
    items: List[OrderItemOut]

    class Config:
        from_attributes = True
