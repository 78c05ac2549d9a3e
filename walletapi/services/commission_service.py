"""
Commission posting for delivered orders

For one delivered order this posts, once:
- a completed commission payment request (amount = order subtotal)
- a commission ledger entry crediting the platform account
- one pending payout request per seller (seller's items minus their share)

Posting is keyed by transaction ids derived from the order, so calling it again
returns what was already posted.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from walletapi.config import Settings
from walletapi.core.exceptions import InvalidStateError, NotFoundError
from walletapi.models.ledger import LedgerEntryKind
from walletapi.models.order import Order as OrderModel, OrderStatus
from walletapi.models.payment import PaymentType
from walletapi.repositories.ledger_repository import LedgerRepository
from walletapi.repositories.order_repository import OrderRepository
from walletapi.repositories.payment_repository import PaymentRepository
from walletapi.repositories.user_repository import UserRepository
from walletapi.schemas.base import ErrorCode
from walletapi.schemas.ledger import LedgerEntry
from walletapi.schemas.payment import CommissionPosting, Payment
from walletapi.services.ledger_service import LedgerService
from walletapi.services.payment_service import PaymentService
from walletapi.utils.money import commission_of, to_money

logger = logging.getLogger(__name__)


def commission_transaction_id(order_id: int) -> str:
    return f"commission-{order_id}"


def payout_transaction_id(order_id: int, seller_id: int) -> str:
    return f"payout-{order_id}-{seller_id}"


class CommissionService:
    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.order_repo = OrderRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.ledger_repo = LedgerRepository(db)
        self.user_repo = UserRepository(db)
        self.ledger_service = LedgerService(db, settings)
        self.payment_service = PaymentService(db, settings)

    def resolve_platform_account(self) -> Optional[int]:
        """Configured platform account, else the first admin"""
        if self.settings.PLATFORM_ACCOUNT_ID:
            return self.settings.PLATFORM_ACCOUNT_ID
        admin = self.user_repo.get_first_admin()
        return admin.id if admin else None

    def _existing_posting(self, order: OrderModel) -> Optional[CommissionPosting]:
        commission = self.payment_repo.get_by_transaction_id(
            commission_transaction_id(order.id)
        )
        if commission is None:
            return None

        entries = self.ledger_repo.find_by_order(order.id, LedgerEntryKind.COMMISSION)
        payouts = self.payment_repo.find_for_order(order.id, PaymentType.WITHDRAWAL)
        return CommissionPosting(
            order_id=order.id,
            commission=Payment.model_validate(commission),
            ledger_entry=LedgerEntry.model_validate(entries[0]) if entries else None,
            seller_payments=[Payment.model_validate(p) for p in payouts],
            already_posted=True,
        )

    @staticmethod
    def seller_totals(order: OrderModel) -> Dict[int, Decimal]:
        totals: Dict[int, Decimal] = defaultdict(lambda: Decimal("0"))
        for item in order.items:
            totals[item.seller_id] += Decimal(item.total)
        return dict(totals)

    def post_for_order(self, order_id: int, commit: bool = True) -> CommissionPosting:
        """
        Post commission and seller payouts for a delivered order

        With commit=False the writes are only flushed so the caller can commit
        them together with the status change that triggered them.
        """
        order = self.order_repo.get_model(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")

        if order.status != OrderStatus.DELIVERED.value:
            raise InvalidStateError(
                f"Order {order_id} is {order.status}; commission is posted on delivery",
                error_code=ErrorCode.INVALID_ORDER_TRANSITION.value,
            )

        existing = self._existing_posting(order)
        if existing is not None:
            logger.info(f"Commission for order {order_id} already posted")
            return existing

        rate = self.settings.COMMISSION_RATE
        platform_account_id = self.resolve_platform_account()

        try:
            commission = self.payment_service.create_commission(
                order_id=order.id,
                amount=Decimal(order.subtotal),
                platform_account_id=platform_account_id,
                order_number=order.order_number,
                transaction_id=commission_transaction_id(order.id),
                commit=False,
            )

            entry = None
            if platform_account_id is None:
                logger.warning(
                    f"No platform account configured; commission ledger entry for order {order_id} skipped"
                )
            else:
                entry = self.ledger_service.record_commission(
                    platform_account_id=platform_account_id,
                    amount=Decimal(commission.commission_amount),
                    order_id=order.id,
                    order_number=order.order_number,
                    payment_id=commission.id,
                    commit=False,
                )

            payouts = []
            for seller_id, seller_total in sorted(self.seller_totals(order).items()):
                seller = self.user_repo.get_model(seller_id)
                payout_amount = to_money(seller_total - commission_of(seller_total, rate))
                payouts.append(
                    self.payment_service.create_seller_payment(
                        seller_id=seller_id,
                        amount=payout_amount,
                        order_id=order.id,
                        bank_account=seller.bank_account_snapshot() if seller else None,
                        order_number=order.order_number,
                        transaction_id=payout_transaction_id(order.id, seller_id),
                        commit=False,
                    )
                )

            if commit:
                self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to post commission for order {order_id}: {str(e)}")
            raise

        logger.info(
            f"Order {order_id}: commission {commission.commission_amount}, "
            f"{len(payouts)} seller payout(s) queued"
        )
        return CommissionPosting(
            order_id=order.id,
            commission=Payment.model_validate(commission),
            ledger_entry=LedgerEntry.model_validate(entry) if entry else None,
            seller_payments=[Payment.model_validate(p) for p in payouts],
            already_posted=False,
        )
