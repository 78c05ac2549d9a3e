from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from walletapi.models.ledger import LedgerEntryKind, LedgerEntryStatus


class LedgerEntry(BaseModel):
    """One wallet ledger row"""

    id: int
    user_id: int
    kind: LedgerEntryKind
    amount: Decimal
    balance: Decimal = Field(..., description="balance after this entry")
    description: str
    order_id: Optional[int] = None
    payment_id: Optional[int] = None
    seller_id: Optional[int] = None
    meta: Optional[dict] = None
    status: LedgerEntryStatus
    created_at: datetime

    class Config:
        from_attributes = True


class BalanceResponse(BaseModel):
    balance: Decimal = Field(..., description="derived from the latest ledger entry")
    cached_balance: Decimal = Field(..., description="wallet balance stored on the account")
    currency: str = "VND"
    entry_count: int = 0
    last_entry_at: Optional[datetime] = None


class IntegrityCheckResponse(BaseModel):
    """Ledger chain / cached balance consistency report"""

    status: str = Field(..., description="OK or MISMATCH")
    user_id: int
    derived_balance: Decimal
    cached_balance: Optional[Decimal] = None
    entry_count: int
    chain_ok: bool = True
    cached_balance_ok: bool = True
    broken_entry_id: Optional[int] = None
    expected_balance: Optional[Decimal] = None
    verified_at: datetime
