"""
Ledger repository

Balance is derived, never stored as a counter: the current balance of an
account is the `balance` snapshot of its most recent entry. Appending reads
that snapshot, applies the kind's sign and writes the new row.

There is no locking; two appends for the same account racing each other can
both read the same previous balance.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import desc, asc, func
from sqlalchemy.orm import Session

from walletapi.models.ledger import (
    LedgerEntry as LedgerEntryModel,
    LedgerEntryKind,
    LedgerEntryStatus,
)
from walletapi.schemas.ledger import LedgerEntry
from walletapi.repositories.base import BaseRepository


class LedgerRepository(BaseRepository[LedgerEntryModel, LedgerEntry]):
    def __init__(self, db: Session):
        super().__init__(LedgerEntryModel, LedgerEntry, db)

    def get_latest_entry(self, user_id: int) -> Optional[LedgerEntryModel]:
        """Most recent entry; id breaks ties between rows created in the same instant"""
        self._ensure_clean_session()
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(desc(self.model_class.created_at), desc(self.model_class.id))
            .first()
        )

    def get_user_balance(self, user_id: int) -> Decimal:
        """
        Current balance of an account

        Returns:
            Decimal: balance snapshot of the latest entry, 0 without entries
        """
        latest_entry = self.get_latest_entry(user_id)
        if latest_entry is None:
            return Decimal("0")
        return Decimal(latest_entry.balance)

    def append(
        self,
        user_id: int,
        kind: LedgerEntryKind,
        amount: Decimal,
        description: str,
        order_id: Optional[int] = None,
        payment_id: Optional[int] = None,
        seller_id: Optional[int] = None,
        status: LedgerEntryStatus = LedgerEntryStatus.COMPLETED,
        meta: Optional[Dict[str, Any]] = None,
        commit: bool = True,
    ) -> LedgerEntryModel:
        """
        Append one immutable entry

        balance = previous + amount for deposit / commission / refund
        balance = previous - amount for withdrawal / payment
        """
        kind = LedgerEntryKind(kind)
        amount = Decimal(amount)
        previous_balance = self.get_user_balance(user_id)
        new_balance = previous_balance + kind.sign * amount

        entry = self.model_class(
            user_id=user_id,
            kind=kind.value,
            amount=amount,
            balance=new_balance,
            description=description,
            order_id=order_id,
            payment_id=payment_id,
            seller_id=seller_id,
            status=LedgerEntryStatus(status).value,
            meta=meta,
        )
        return self.add(entry, commit=commit)

    def get_entries_in_order(self, user_id: int) -> List[LedgerEntryModel]:
        """Full chain oldest first, for integrity walks"""
        self._ensure_clean_session()
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.user_id == user_id)
            .order_by(asc(self.model_class.created_at), asc(self.model_class.id))
            .all()
        )

    def get_user_entries(
        self, user_id: int, page: int = 1, limit: int = 20, kind: Optional[str] = None
    ) -> Tuple[List[LedgerEntry], int]:
        query = self.db.query(self.model_class).filter(
            self.model_class.user_id == user_id
        )
        if kind:
            query = query.filter(self.model_class.kind == kind)
        query = query.order_by(desc(self.model_class.created_at), desc(self.model_class.id))
        return self.paginate(query, page, limit)

    def find_by_order(
        self, order_id: int, kind: Optional[LedgerEntryKind] = None
    ) -> List[LedgerEntryModel]:
        query = self.db.query(self.model_class).filter(
            self.model_class.order_id == order_id
        )
        if kind is not None:
            query = query.filter(self.model_class.kind == LedgerEntryKind(kind).value)
        return query.order_by(asc(self.model_class.id)).all()

    def count_for_user(self, user_id: int) -> int:
        return (
            self.db.query(func.count(self.model_class.id))
            .filter(self.model_class.user_id == user_id)
            .scalar()
            or 0
        )
