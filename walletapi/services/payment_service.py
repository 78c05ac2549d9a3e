import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from walletapi.config import Settings
from walletapi.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from walletapi.models.payment import (
    Payment as PaymentModel,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
)
from walletapi.repositories.order_repository import OrderRepository
from walletapi.repositories.payment_repository import PaymentRepository
from walletapi.repositories.user_repository import UserRepository
from walletapi.schemas.base import ErrorCode
from walletapi.schemas.ledger import LedgerEntry
from walletapi.schemas.pagination import Pagination
from walletapi.schemas.payment import (
    CommissionStats,
    Payment,
    PaymentDecision,
    PaymentList,
)
from walletapi.schemas.user import BankAccount
from walletapi.services.ledger_service import LedgerService
from walletapi.utils.money import commission_of, to_money

logger = logging.getLogger(__name__)


class PaymentService:
    """Payment request lifecycle: creation, admin approval / rejection, queries"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.payment_repo = PaymentRepository(db)
        self.user_repo = UserRepository(db)
        self.order_repo = OrderRepository(db)
        self.ledger_service = LedgerService(db, settings)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_deposit(
        self,
        user_id: int,
        amount: Decimal,
        method: str,
        description: Optional[str] = None,
    ) -> Payment:
        """Record a wallet top-up request; funds move only once an admin approves it"""
        method = PaymentMethod(method)
        payment = self.payment_repo.create(
            user_id=user_id,
            amount=to_money(amount),
            type=PaymentType.DEPOSIT.value,
            status=PaymentStatus.PENDING.value,
            method=method.value,
            description=description or f"Wallet deposit - {method.value}",
        )
        logger.info(f"Deposit request {payment.id} of {payment.amount} created for user {user_id}")
        return payment

    def create_seller_payment(
        self,
        seller_id: int,
        amount: Decimal,
        order_id: int,
        bank_account: Optional[dict] = None,
        order_number: Optional[str] = None,
        transaction_id: Optional[str] = None,
        commit: bool = True,
    ) -> PaymentModel:
        """Pending payout of a seller's share for one order"""
        if order_number is None:
            order = self.order_repo.get_model(order_id)
            order_number = order.order_number if order else str(order_id)

        payment = self.payment_repo.add(
            PaymentModel(
                user_id=seller_id,
                seller_id=seller_id,
                order_id=order_id,
                amount=to_money(amount),
                type=PaymentType.WITHDRAWAL.value,
                status=PaymentStatus.PENDING.value,
                method=PaymentMethod.BANK_TRANSFER.value,
                description=f"Payout for order #{order_number}",
                bank_account=bank_account,
                transaction_id=transaction_id,
            ),
            commit=commit,
        )
        logger.info(
            f"Seller payout {payment.id} of {payment.amount} queued for seller {seller_id}"
        )
        return payment

    def create_commission(
        self,
        order_id: int,
        amount: Decimal,
        platform_account_id: Optional[int] = None,
        order_number: Optional[str] = None,
        transaction_id: Optional[str] = None,
        commit: bool = True,
    ) -> PaymentModel:
        """System posting, stored already completed. amount is the order subtotal."""
        rate = self.settings.COMMISSION_RATE
        if order_number is None:
            order = self.order_repo.get_model(order_id)
            order_number = order.order_number if order else str(order_id)

        payment = self.payment_repo.add(
            PaymentModel(
                user_id=platform_account_id,
                order_id=order_id,
                amount=to_money(amount),
                type=PaymentType.COMMISSION.value,
                status=PaymentStatus.COMPLETED.value,
                method=PaymentMethod.ONLINE_PAYMENT.value,
                description=f"Platform commission for order #{order_number}",
                commission_rate=rate,
                commission_amount=commission_of(amount, rate),
                transaction_id=transaction_id,
                approved_at=datetime.now(timezone.utc),
            ),
            commit=commit,
        )
        logger.info(
            f"Commission {payment.commission_amount} posted for order {order_id}"
        )
        return payment

    # ------------------------------------------------------------------
    # Admin decisions
    # ------------------------------------------------------------------

    def _get_pending(
        self, payment_id: int, expected_type: Optional[PaymentType] = None
    ) -> PaymentModel:
        payment = self.payment_repo.get_model(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment request {payment_id} not found")

        if expected_type is not None and payment.type != expected_type.value:
            raise InvalidStateError(
                f"Payment request {payment_id} is not a {expected_type.value}",
                error_code=ErrorCode.INVALID_PAYMENT_TYPE.value,
                details={"type": payment.type},
            )

        if not payment.is_pending:
            raise ConflictError(
                f"Payment request {payment_id} was already processed",
                details={"status": payment.status},
                error_code=ErrorCode.PAYMENT_ALREADY_PROCESSED.value,
            )
        return payment

    def _mark_decided(
        self, payment: PaymentModel, status: PaymentStatus, admin_id: int, notes: Optional[str]
    ) -> None:
        payment.status = status.value
        payment.approved_by = admin_id
        payment.approved_at = datetime.now(timezone.utc)
        if notes is not None:
            payment.notes = notes

    def approve_deposit(
        self, payment_id: int, admin_id: int, notes: Optional[str] = None
    ) -> PaymentDecision:
        """
        Approve a pending deposit

        In one transaction:
        1. request -> completed (approver, timestamp, notes)
        2. deposit ledger entry for the requester
        3. cached wallet balance += amount
        """
        payment = self._get_pending(payment_id, PaymentType.DEPOSIT)

        try:
            self._mark_decided(payment, PaymentStatus.COMPLETED, admin_id, notes)
            self.payment_repo.save(payment, commit=False)

            entry = self.ledger_service.record_deposit(
                user_id=payment.user_id,
                amount=Decimal(payment.amount),
                description=payment.description,
                payment_id=payment.id,
                commit=False,
            )
            self.user_repo.adjust_wallet_balance(
                payment.user_id, Decimal(payment.amount), commit=False
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to approve deposit {payment_id}: {str(e)}")
            raise

        logger.info(f"Deposit {payment_id} approved by admin {admin_id}")
        return PaymentDecision(
            payment=Payment.model_validate(payment),
            ledger_entry=LedgerEntry.model_validate(entry),
        )

    def approve_seller_payment(
        self, payment_id: int, admin_id: int, notes: Optional[str] = None
    ) -> PaymentDecision:
        """
        Approve a pending seller payout

        Appends a withdrawal ledger entry for the seller. The cached wallet
        balance is left untouched.
        """
        payment = self._get_pending(payment_id, PaymentType.WITHDRAWAL)
        seller_id = payment.seller_id or payment.user_id

        try:
            self._mark_decided(payment, PaymentStatus.COMPLETED, admin_id, notes)
            self.payment_repo.save(payment, commit=False)

            entry = self.ledger_service.record_seller_withdrawal(
                seller_id=seller_id,
                amount=Decimal(payment.amount),
                order_id=payment.order_id,
                description=payment.description,
                payment_id=payment.id,
                bank_account=payment.bank_account,
                commit=False,
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to approve seller payment {payment_id}: {str(e)}")
            raise

        logger.info(f"Seller payment {payment_id} approved by admin {admin_id}")
        return PaymentDecision(
            payment=Payment.model_validate(payment),
            ledger_entry=LedgerEntry.model_validate(entry),
        )

    def reject(self, payment_id: int, admin_id: int, reason: str) -> Payment:
        """pending -> failed with the reason kept in notes; no ledger effect"""
        if not reason or not reason.strip():
            raise ValidationError("Rejection reason is required")

        payment = self._get_pending(payment_id)
        self._mark_decided(payment, PaymentStatus.FAILED, admin_id, reason.strip())
        self.payment_repo.save(payment)

        logger.info(f"Payment request {payment_id} rejected by admin {admin_id}: {reason}")
        return Payment.model_validate(payment)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _page(self, payments, total: int, page: int, limit: int) -> PaymentList:
        return PaymentList(
            payments=payments,
            pagination=Pagination.build(page=page, limit=limit, total=total),
        )

    def get_history(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> PaymentList:
        limit = min(limit, self.settings.PAGE_SIZE_MAX)
        payments, total = self.payment_repo.list_payments(
            page=page, limit=limit, user_id=user_id, type=type, status=status
        )
        return self._page(payments, total, page, limit)

    def get_seller_payments(
        self, seller_id: int, page: int = 1, limit: int = 10, status: Optional[str] = None
    ) -> PaymentList:
        limit = min(limit, self.settings.PAGE_SIZE_MAX)
        payments, total = self.payment_repo.list_payments(
            page=page,
            limit=limit,
            seller_id=seller_id,
            type=PaymentType.WITHDRAWAL.value,
            status=status,
        )
        return self._page(payments, total, page, limit)

    def get_pending(
        self, page: int = 1, limit: int = 20, type: Optional[str] = None
    ) -> PaymentList:
        limit = min(limit, self.settings.PAGE_SIZE_MAX)
        payments, total = self.payment_repo.list_pending(page=page, limit=limit, type=type)
        return self._page(payments, total, page, limit)

    def get_commission_stats(
        self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None
    ) -> CommissionStats:
        commissions = self.payment_repo.list_commissions(start=start_date, end=end_date)
        total = sum((c.commission_amount for c in commissions), Decimal("0"))
        return CommissionStats(
            commissions=commissions, total_commission=total, count=len(commissions)
        )

    # ------------------------------------------------------------------
    # Seller bank account
    # ------------------------------------------------------------------

    def upsert_bank_account(
        self,
        user_id: int,
        bank_name: str,
        account_number: str,
        account_holder: str,
        branch: Optional[str] = None,
    ) -> BankAccount:
        user = self.user_repo.update_bank_account(
            user_id,
            bank_name=bank_name,
            account_number=account_number,
            account_holder=account_holder,
            branch=branch,
        )
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        logger.info(f"Bank account updated for user {user_id}")
        return BankAccount.from_user(user)

    def get_bank_account(self, user_id: int) -> BankAccount:
        user = self.user_repo.get_model(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return BankAccount.from_user(user)

    def verify_bank_account(self, user_id: int, admin_id: int) -> BankAccount:
        user = self.user_repo.get_model(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if not user.has_bank_account:
            raise InvalidStateError(
                f"User {user_id} has no bank account on file",
                error_code=ErrorCode.VALIDATION.value,
            )
        user = self.user_repo.mark_bank_account_verified(user_id, admin_id)
        logger.info(f"Bank account of user {user_id} verified by admin {admin_id}")
        return BankAccount.from_user(user)
