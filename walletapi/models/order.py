"""
Orders

Only the parts of an order that the wallet needs: who bought, which sellers
are paid for which lines, totals, and the status lifecycle that drives
commission posting.
"""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import relationship

from walletapi.models.base import Base, BaseModel, BigIntPK, Money


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class OrderPaymentMethod(str, Enum):
    COD = "cod"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    PAYPAL = "paypal"
    WALLET = "wallet"


class OrderPaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Order(BaseModel):
    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_customer_created", "customer_id", "created_at"),
        Index("idx_orders_status", "status"),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    order_number = Column(String(40), unique=True, nullable=False)
    customer_id = Column(ForeignKey("users.id"), nullable=False)

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)

    subtotal = Column(Money, nullable=False)
    shipping_cost = Column(Money, nullable=False, default=0)
    total = Column(Money, nullable=False)

    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default=OrderPaymentStatus.PENDING.value)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin"
    )

    def __repr__(self):
        return f"<Order(id={self.id}, number={self.order_number}, status={self.status})>"

    @property
    def seller_ids(self) -> set:
        return {item.seller_id for item in self.items}


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    order_id = Column(ForeignKey("orders.id"), nullable=False, index=True)
    seller_id = Column(ForeignKey("users.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Money, nullable=False)
    total = Column(Money, nullable=False)

    order = relationship("Order", back_populates="items")


class OrderStatusHistory(Base):
    """Append-only trail of order status changes"""

    __tablename__ = "order_status_history"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    order_id = Column(ForeignKey("orders.id"), nullable=False, index=True)
    from_status = Column(String(20), nullable=True)
    status = Column(String(20), nullable=False)
    note = Column(Text, nullable=True)
    updated_by = Column(ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
