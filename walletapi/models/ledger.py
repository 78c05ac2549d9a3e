"""
Wallet ledger

Append-only record of every balance-affecting event per account. Each row
stores the resulting balance snapshot so that the current balance is read
from the most recent row instead of summing the whole history.

Rules:
1. Immutable: rows are never updated or deleted
2. Complete: every completed money movement produces exactly one row
3. Snapshot: `balance` = previous row's balance ± amount (see LedgerEntryKind.sign)
"""

from enum import Enum

from sqlalchemy import JSON, Column, ForeignKey, Index, String, Text

from walletapi.models.base import BaseModel, BigIntPK, Money


class LedgerEntryKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    PAYMENT = "payment"
    COMMISSION = "commission"
    REFUND = "refund"

    @property
    def sign(self) -> int:
        """+1 when the entry credits the account, -1 when it debits it"""
        if self in (LedgerEntryKind.WITHDRAWAL, LedgerEntryKind.PAYMENT):
            return -1
        return 1


class LedgerEntryStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class LedgerEntry(BaseModel):
    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("idx_ledger_user_created", "user_id", "created_at"),
        Index("idx_ledger_seller_created", "seller_id", "created_at"),
        Index("idx_ledger_kind", "kind"),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    # owning account
    user_id = Column(ForeignKey("users.id"), nullable=False)

    kind = Column(String(20), nullable=False)

    # always positive; direction comes from kind
    amount = Column(Money, nullable=False)

    # balance snapshot after this entry
    balance = Column(Money, nullable=False, default=0)

    description = Column(Text, nullable=False)

    order_id = Column(ForeignKey("orders.id"), nullable=True)
    payment_id = Column(ForeignKey("payments.id"), nullable=True)
    seller_id = Column(ForeignKey("users.id"), nullable=True)

    # orderNumber / commissionRate / bankAccount
    meta = Column("metadata", JSON, nullable=True)

    status = Column(String(20), nullable=False, default=LedgerEntryStatus.COMPLETED.value)

    def __repr__(self):
        return (
            f"<LedgerEntry(id={self.id}, user_id={self.user_id}, kind={self.kind}, "
            f"amount={self.amount}, balance={self.balance})>"
        )
