from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from walletapi.models.order import OrderPaymentMethod, OrderPaymentStatus, OrderStatus


class OrderItemCreate(BaseModel):
    seller_id: int = Field(..., gt=0)
    product_name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(..., min_length=1)
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    payment_method: OrderPaymentMethod = OrderPaymentMethod.COD


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(None, max_length=500)


class OrderItem(BaseModel):
    id: int
    seller_id: int
    product_name: str
    quantity: int
    price: Decimal
    total: Decimal

    class Config:
        from_attributes = True


class Order(BaseModel):
    id: int
    order_number: str
    customer_id: int
    status: OrderStatus
    subtotal: Decimal
    shipping_cost: Decimal
    total: Decimal
    payment_method: OrderPaymentMethod
    payment_status: OrderPaymentStatus
    paid_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
