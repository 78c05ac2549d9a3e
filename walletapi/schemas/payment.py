from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from walletapi.config import settings
from walletapi.models.payment import PaymentMethod, PaymentStatus, PaymentType
from walletapi.schemas.ledger import LedgerEntry
from walletapi.schemas.pagination import Pagination


class DepositMethod(str, Enum):
    """Methods a user may pick for a wallet top-up"""

    BANK_TRANSFER = PaymentMethod.BANK_TRANSFER.value
    CASH = PaymentMethod.CASH.value


class DepositRequest(BaseModel):
    amount: Decimal = Field(..., description="top-up amount (VND)")
    method: DepositMethod
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("amount")
    @classmethod
    def amount_above_minimum(cls, v: Decimal) -> Decimal:
        if v < settings.MIN_DEPOSIT_AMOUNT:
            raise ValueError(f"Minimum deposit is {settings.MIN_DEPOSIT_AMOUNT:,} VND")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None


class ApproveRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if v.strip() == "":
            raise ValueError("Rejection reason is required")
        return v.strip()


class Payment(BaseModel):
    id: int
    user_id: Optional[int] = None
    amount: Decimal
    type: PaymentType
    status: PaymentStatus
    method: PaymentMethod
    description: str
    transaction_id: Optional[str] = None
    seller_id: Optional[int] = None
    order_id: Optional[int] = None
    commission_amount: Decimal = Decimal("0")
    commission_rate: Decimal = Decimal("0")
    bank_account: Optional[dict] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentList(BaseModel):
    payments: List[Payment]
    pagination: Pagination


class PaymentDecision(BaseModel):
    """Result of an approval: the updated request and the ledger row it produced"""

    payment: Payment
    ledger_entry: Optional[LedgerEntry] = None


class CommissionStats(BaseModel):
    commissions: List[Payment]
    total_commission: Decimal
    count: int


class CommissionPosting(BaseModel):
    """Everything posted for one delivered order"""

    order_id: int
    commission: Payment
    ledger_entry: Optional[LedgerEntry] = None
    seller_payments: List[Payment] = Field(default_factory=list)
    already_posted: bool = False
