"""
Payment requests

A proposed money movement (deposit, seller payout, commission, refund).
Deposits and seller payouts wait for an admin decision; system postings
(commission) are stored already completed.

Allowed transitions: pending -> completed (approve), pending -> failed (reject).
"""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Numeric, String, Text

from walletapi.models.base import BaseModel, BigIntPK, Money


class PaymentType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    COMMISSION = "commission"
    REFUND = "refund"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    # kept for stored rows; no transition leads here
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    ONLINE_PAYMENT = "online_payment"


class Payment(BaseModel):
    __tablename__ = "payments"
    __table_args__ = (
        Index("idx_payments_user_created", "user_id", "created_at"),
        Index("idx_payments_seller_created", "seller_id", "created_at"),
        Index("idx_payments_status", "status"),
        Index("idx_payments_type", "type"),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    # requester; NULL for system postings without an account
    user_id = Column(ForeignKey("users.id"), nullable=True)

    amount = Column(Money, nullable=False)
    type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    method = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)

    # idempotency / external reference, unique when present
    transaction_id = Column(String(100), unique=True, nullable=True)

    seller_id = Column(ForeignKey("users.id"), nullable=True)
    order_id = Column(ForeignKey("orders.id"), nullable=True)

    commission_amount = Column(Money, nullable=False, default=0)
    commission_rate = Column(Numeric(5, 4), nullable=False, default=0)

    # payout destination snapshot at request time
    bank_account = Column(JSON, nullable=True)

    approved_by = Column(ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Payment(id={self.id}, type={self.type}, status={self.status}, amount={self.amount})>"

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING.value
