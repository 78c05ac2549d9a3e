import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session

from walletapi.config import Settings
from walletapi.core.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from walletapi.models.order import (
    Order as OrderModel,
    OrderItem as OrderItemModel,
    OrderPaymentMethod,
    OrderPaymentStatus,
    OrderStatus,
)
from walletapi.models.payment import (
    Payment as PaymentModel,
    PaymentMethod,
    PaymentStatus,
    PaymentType,
)
from walletapi.models.user import UserRole
from walletapi.repositories.order_repository import OrderRepository
from walletapi.repositories.payment_repository import PaymentRepository
from walletapi.repositories.user_repository import UserRepository
from walletapi.schemas.base import ErrorCode
from walletapi.schemas.order import Order, OrderItemCreate
from walletapi.schemas.user import User
from walletapi.services.commission_service import CommissionService
from walletapi.services.ledger_service import LedgerService
from walletapi.utils.money import to_money

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
}

REFUNDING_STATUSES = {OrderStatus.CANCELLED, OrderStatus.RETURNED}


def refund_transaction_id(order_id: int) -> str:
    return f"refund-{order_id}"


class OrderService:
    """Order creation, status lifecycle and wallet checkout"""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.order_repo = OrderRepository(db)
        self.payment_repo = PaymentRepository(db)
        self.user_repo = UserRepository(db)
        self.ledger_service = LedgerService(db, settings)
        self.commission_service = CommissionService(db, settings)

    @staticmethod
    def generate_order_number() -> str:
        return f"ORD-{datetime.now(timezone.utc):%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"

    def _get_order(self, order_id: int) -> OrderModel:
        order = self.order_repo.get_model(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def _check_sellers(self, customer_id: int, seller_ids: Set[int]) -> None:
        """Every line must be sold by an active seller other than the buyer"""
        if customer_id in seller_ids:
            raise ValidationError(
                "You cannot order from yourself", details={"seller_id": customer_id}
            )
        for seller_id in sorted(seller_ids):
            seller = self.user_repo.get_model(seller_id)
            if (
                seller is None
                or not seller.is_active
                or seller.role != UserRole.SELLER.value
            ):
                raise ValidationError(
                    f"Unknown seller {seller_id}", details={"seller_id": seller_id}
                )

    def create_order(
        self,
        customer_id: int,
        items: List[OrderItemCreate],
        shipping_cost: Decimal = Decimal("0"),
        payment_method: OrderPaymentMethod = OrderPaymentMethod.COD,
    ) -> Order:
        self._check_sellers(customer_id, {item.seller_id for item in items})

        order_items = [
            OrderItemModel(
                seller_id=item.seller_id,
                product_name=item.product_name,
                quantity=item.quantity,
                price=to_money(item.price),
                total=to_money(Decimal(item.price) * item.quantity),
            )
            for item in items
        ]
        subtotal = sum((i.total for i in order_items), Decimal("0"))
        shipping_cost = to_money(shipping_cost)

        order = OrderModel(
            order_number=self.generate_order_number(),
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            total=subtotal + shipping_cost,
            payment_method=OrderPaymentMethod(payment_method).value,
            payment_status=OrderPaymentStatus.PENDING.value,
            items=order_items,
        )

        try:
            self.order_repo.add(order, commit=False)
            self.order_repo.add_history(
                order.id, None, OrderStatus.PENDING.value, "Order placed", customer_id
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create order for user {customer_id}: {str(e)}")
            raise

        logger.info(f"Order {order.order_number} created for user {customer_id}: total {order.total}")
        return Order.model_validate(order)

    def get_order(self, order_id: int, actor: User) -> Order:
        order = self._get_order(order_id)
        if not (
            actor.is_admin
            or order.customer_id == actor.id
            or actor.id in order.seller_ids
        ):
            raise AuthorizationError("You do not have access to this order")
        return Order.model_validate(order)

    def _check_actor(self, order: OrderModel, actor: User, new_status: OrderStatus) -> None:
        if new_status == OrderStatus.CANCELLED:
            if order.customer_id != actor.id:
                raise AuthorizationError("Only the customer can cancel an order")
            return
        if not (actor.is_admin or actor.id in order.seller_ids):
            raise AuthorizationError("Only a seller of this order or an admin can update it")

    def update_status(
        self,
        order_id: int,
        actor: User,
        new_status: OrderStatus,
        note: Optional[str] = None,
    ) -> Order:
        """
        Move an order along its lifecycle

        Entering delivered posts commission and seller payouts; cancelling or
        returning a wallet-paid order refunds the customer; returning an order
        fails its pending payouts. Side effects are committed with the status
        change.
        """
        order = self._get_order(order_id)
        new_status = OrderStatus(new_status)
        current = OrderStatus(order.status)

        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStateError(
                f"Cannot change order status from {current.value} to {new_status.value}",
                error_code=ErrorCode.INVALID_ORDER_TRANSITION.value,
                details={"from": current.value, "to": new_status.value},
            )
        self._check_actor(order, actor, new_status)

        now = datetime.now(timezone.utc)
        try:
            order.status = new_status.value
            if new_status == OrderStatus.SHIPPED:
                order.shipped_at = now
            elif new_status == OrderStatus.DELIVERED:
                order.delivered_at = now
            elif new_status == OrderStatus.CANCELLED:
                order.cancelled_at = now
                order.cancelled_by = actor.id
                order.cancellation_reason = note
            self.order_repo.add_history(order.id, current.value, new_status.value, note, actor.id)
            self.order_repo.save(order, commit=False)

            if new_status == OrderStatus.DELIVERED:
                self.commission_service.post_for_order(order.id, commit=False)
            elif new_status in REFUNDING_STATUSES and self._is_wallet_paid(order):
                self._refund_to_wallet(order)

            if new_status == OrderStatus.RETURNED:
                self._void_pending_payouts(order, actor)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to move order {order_id} to {new_status.value}: {str(e)}")
            raise

        logger.info(f"Order {order_id}: {current.value} -> {new_status.value} by user {actor.id}")
        return Order.model_validate(order)

    @staticmethod
    def _is_wallet_paid(order: OrderModel) -> bool:
        return (
            order.payment_method == OrderPaymentMethod.WALLET.value
            and order.payment_status == OrderPaymentStatus.PAID.value
        )

    def _refund_to_wallet(self, order: OrderModel) -> None:
        amount = Decimal(order.total)
        refund = self.payment_repo.add(
            PaymentModel(
                user_id=order.customer_id,
                order_id=order.id,
                amount=amount,
                type=PaymentType.REFUND.value,
                status=PaymentStatus.COMPLETED.value,
                method=PaymentMethod.ONLINE_PAYMENT.value,
                description=f"Refund for order #{order.order_number}",
                transaction_id=refund_transaction_id(order.id),
                approved_at=datetime.now(timezone.utc),
            ),
            commit=False,
        )
        self.ledger_service.record_refund(
            user_id=order.customer_id,
            amount=amount,
            order_id=order.id,
            order_number=order.order_number,
            payment_id=refund.id,
            commit=False,
        )
        self.user_repo.adjust_wallet_balance(order.customer_id, amount, commit=False)
        order.payment_status = OrderPaymentStatus.REFUNDED.value
        self.order_repo.save(order, commit=False)
        logger.info(f"Refunded {amount} to wallet of user {order.customer_id} for order {order.id}")

    def _void_pending_payouts(self, order: OrderModel, actor: User) -> None:
        """A returned order is not paid out: pending payouts fail, paid ones are flagged"""
        payouts = self.payment_repo.find_for_order(order.id, PaymentType.WITHDRAWAL)
        now = datetime.now(timezone.utc)
        voided = []
        for payout in payouts:
            if payout.status != PaymentStatus.PENDING.value:
                continue
            payout.status = PaymentStatus.FAILED.value
            payout.approved_by = actor.id
            payout.approved_at = now
            payout.notes = f"Order #{order.order_number} returned"
            self.payment_repo.save(payout, commit=False)
            voided.append(payout.id)

        if voided:
            logger.warning(f"Order {order.id} returned: pending payouts {voided} marked failed")
        paid = [p.id for p in payouts if p.status == PaymentStatus.COMPLETED.value]
        if paid:
            logger.warning(
                f"Order {order.id} returned after payouts {paid} were already approved"
            )

    def pay_with_wallet(self, order_id: int, customer_id: int) -> Order:
        """Settle an order from the customer's wallet"""
        order = self._get_order(order_id)
        if order.customer_id != customer_id:
            raise AuthorizationError("Only the customer can pay for this order")
        if order.payment_status != OrderPaymentStatus.PENDING.value:
            raise InvalidStateError(
                f"Order {order_id} payment is already {order.payment_status}",
                error_code=ErrorCode.INVALID_ORDER_TRANSITION.value,
            )
        if order.status in (OrderStatus.CANCELLED.value, OrderStatus.RETURNED.value):
            raise InvalidStateError(
                f"Order {order_id} is {order.status}",
                error_code=ErrorCode.INVALID_ORDER_TRANSITION.value,
            )

        total = Decimal(order.total)
        balance = self.ledger_service.get_balance(customer_id)
        if balance < total:
            raise InsufficientBalanceError(
                "Insufficient wallet balance",
                details={"balance": str(balance), "required": str(total)},
            )

        try:
            self.ledger_service.record_payment(
                user_id=customer_id,
                amount=total,
                order_id=order.id,
                order_number=order.order_number,
                commit=False,
            )
            self.user_repo.adjust_wallet_balance(customer_id, -total, commit=False)
            order.payment_method = OrderPaymentMethod.WALLET.value
            order.payment_status = OrderPaymentStatus.PAID.value
            order.paid_at = datetime.now(timezone.utc)
            self.order_repo.save(order, commit=False)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Wallet payment for order {order_id} failed: {str(e)}")
            raise

        logger.info(f"Order {order_id} paid from wallet of user {customer_id}: {total}")
        return Order.model_validate(order)
