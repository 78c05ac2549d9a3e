import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from walletapi.config import Settings
from walletapi.core.exceptions import NotFoundError
from walletapi.models.ledger import LedgerEntry as LedgerEntryModel
from walletapi.models.ledger import LedgerEntryKind, LedgerEntryStatus
from walletapi.repositories.ledger_repository import LedgerRepository
from walletapi.repositories.user_repository import UserRepository
from walletapi.schemas.ledger import BalanceResponse, IntegrityCheckResponse, LedgerEntry

logger = logging.getLogger(__name__)


class LedgerService:
    """Balance queries and ledger appends for wallet accounts"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.ledger_repo = LedgerRepository(db)
        self.user_repo = UserRepository(db)

    # ------------------------------------------------------------------
    # Balance query
    # ------------------------------------------------------------------

    def get_balance(self, user_id: int) -> Decimal:
        """Balance of the most recent ledger entry, 0 when the account has none.

        The account id is not validated.
        """
        return self.ledger_repo.get_user_balance(user_id)

    def get_balance_summary(self, user_id: int) -> BalanceResponse:
        latest = self.ledger_repo.get_latest_entry(user_id)
        user = self.user_repo.get_model(user_id)
        return BalanceResponse(
            balance=Decimal(latest.balance) if latest else Decimal("0"),
            cached_balance=Decimal(user.wallet_balance) if user else Decimal("0"),
            currency=user.wallet_currency if user else self.settings.DEFAULT_CURRENCY,
            entry_count=self.ledger_repo.count_for_user(user_id),
            last_entry_at=latest.created_at if latest else None,
        )

    def get_entries(
        self, user_id: int, page: int = 1, limit: int = 20, kind: Optional[str] = None
    ) -> Tuple[List[LedgerEntry], int]:
        limit = min(limit, self.settings.PAGE_SIZE_MAX)
        return self.ledger_repo.get_user_entries(user_id, page=page, limit=limit, kind=kind)

    # ------------------------------------------------------------------
    # Entry creation
    # ------------------------------------------------------------------

    def append_entry(
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
        """Append an entry with its balance snapshot computed from the previous one.

        Does not touch the cached wallet balance on the account. Amount sign and
        overdraft are not checked here.
        """
        entry = self.ledger_repo.append(
            user_id=user_id,
            kind=kind,
            amount=amount,
            description=description,
            order_id=order_id,
            payment_id=payment_id,
            seller_id=seller_id,
            status=status,
            meta=meta,
            commit=commit,
        )
        logger.info(
            f"Ledger {entry.kind} of {entry.amount} for user {user_id} -> balance {entry.balance}"
        )
        return entry

    def record_deposit(
        self, user_id: int, amount: Decimal, description: str, payment_id: int, commit: bool = True
    ) -> LedgerEntryModel:
        return self.append_entry(
            user_id,
            LedgerEntryKind.DEPOSIT,
            amount,
            description,
            payment_id=payment_id,
            commit=commit,
        )

    def record_payment(
        self, user_id: int, amount: Decimal, order_id: int, order_number: str, commit: bool = True
    ) -> LedgerEntryModel:
        return self.append_entry(
            user_id,
            LedgerEntryKind.PAYMENT,
            amount,
            f"Payment for order #{order_number}",
            order_id=order_id,
            meta={"order_number": f"#{order_number}"},
            commit=commit,
        )

    def record_seller_withdrawal(
        self,
        seller_id: int,
        amount: Decimal,
        order_id: Optional[int],
        description: str,
        payment_id: Optional[int] = None,
        bank_account: Optional[dict] = None,
        commit: bool = True,
    ) -> LedgerEntryModel:
        meta = None
        if bank_account:
            meta = {"bank_account": bank_account.get("account_number")}
        return self.append_entry(
            seller_id,
            LedgerEntryKind.WITHDRAWAL,
            amount,
            description,
            order_id=order_id,
            payment_id=payment_id,
            seller_id=seller_id,
            meta=meta,
            commit=commit,
        )

    def record_commission(
        self,
        platform_account_id: int,
        amount: Decimal,
        order_id: int,
        order_number: str,
        payment_id: Optional[int] = None,
        commit: bool = True,
    ) -> LedgerEntryModel:
        rate = self.settings.COMMISSION_RATE
        return self.append_entry(
            platform_account_id,
            LedgerEntryKind.COMMISSION,
            amount,
            f"{(rate * 100).normalize():f}% commission from order #{order_number}",
            order_id=order_id,
            payment_id=payment_id,
            meta={"order_number": f"#{order_number}", "commission_rate": str(rate)},
            commit=commit,
        )

    def record_refund(
        self,
        user_id: int,
        amount: Decimal,
        order_id: int,
        order_number: str,
        payment_id: Optional[int] = None,
        commit: bool = True,
    ) -> LedgerEntryModel:
        return self.append_entry(
            user_id,
            LedgerEntryKind.REFUND,
            amount,
            f"Refund for order #{order_number}",
            order_id=order_id,
            payment_id=payment_id,
            meta={"order_number": f"#{order_number}"},
            commit=commit,
        )

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    def verify_integrity(self, user_id: int) -> IntegrityCheckResponse:
        """
        Walk the ledger chain of one account and compare it with the cached balance

        Checks:
        1. every entry's snapshot == previous snapshot ± amount
        2. latest snapshot == cached wallet balance on the account

        Read-only: a mismatch is reported, never repaired.
        """
        user = self.user_repo.get_model(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        entries = self.ledger_repo.get_entries_in_order(user_id)

        running = Decimal("0")
        broken_entry_id = None
        expected_balance = None
        for entry in entries:
            expected = running + LedgerEntryKind(entry.kind).sign * Decimal(entry.amount)
            if Decimal(entry.balance) != expected:
                broken_entry_id = entry.id
                expected_balance = expected
                break
            running = Decimal(entry.balance)

        derived = Decimal(entries[-1].balance) if entries else Decimal("0")
        cached = Decimal(user.wallet_balance or 0)
        chain_ok = broken_entry_id is None
        cached_ok = derived == cached
        status = "OK" if chain_ok and cached_ok else "MISMATCH"

        if status == "MISMATCH":
            logger.warning(
                f"Wallet integrity mismatch for user {user_id}: derived={derived} cached={cached} "
                f"broken_entry={broken_entry_id}"
            )
        else:
            logger.info(f"Wallet integrity verified for user {user_id}")

        return IntegrityCheckResponse(
            status=status,
            user_id=user_id,
            derived_balance=derived,
            cached_balance=cached,
            entry_count=len(entries),
            chain_ok=chain_ok,
            cached_balance_ok=cached_ok,
            broken_entry_id=broken_entry_id,
            expected_balance=expected_balance,
            verified_at=datetime.now(timezone.utc),
        )
