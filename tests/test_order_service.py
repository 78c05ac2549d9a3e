from decimal import Decimal

import pytest

from walletapi.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InsufficientBalanceError,
    InvalidStateError,
    ValidationError,
)
from walletapi.models.ledger import LedgerEntryKind
from walletapi.models.order import OrderPaymentStatus, OrderStatus, OrderStatusHistory
from walletapi.models.payment import Payment as PaymentModel
from walletapi.models.payment import PaymentStatus, PaymentType
from walletapi.schemas.order import OrderItemCreate
from walletapi.schemas.user import User as UserSchema


def as_actor(user) -> UserSchema:
    return UserSchema.model_validate(user)


@pytest.fixture
def order(order_service, buyer, seller):
    return order_service.create_order(
        customer_id=buyer.id,
        items=[OrderItemCreate(seller_id=seller.id, product_name="Kettle", quantity=2, price=Decimal("20000"))],
        shipping_cost=Decimal("5000"),
    )


@pytest.fixture
def funded_buyer(payment_service, admin, buyer):
    deposit = payment_service.create_deposit(buyer.id, Decimal("100000"), "bank_transfer")
    payment_service.approve_deposit(deposit.id, admin.id)
    return buyer


def _advance(order_service, order_id, actor, *statuses):
    result = None
    for status in statuses:
        result = order_service.update_status(order_id, as_actor(actor), status)
    return result


class TestCreateOrder:
    def test_totals_and_number(self, order, db_session):
        assert order.subtotal == Decimal("40000")
        assert order.total == Decimal("45000")
        assert order.status == OrderStatus.PENDING
        assert order.order_number.startswith("ORD-")
        assert len(order.items) == 1
        assert db_session.query(OrderStatusHistory).count() == 1


class TestUpdateStatus:
    def test_seller_walks_the_lifecycle(self, order_service, db_session, order, seller):
        result = _advance(
            order_service,
            order.id,
            seller,
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
        )

        assert result.status == OrderStatus.SHIPPED
        assert result.shipped_at is not None
        assert db_session.query(OrderStatusHistory).count() == 4

    def test_skipping_states_is_rejected(self, order_service, order, seller):
        with pytest.raises(InvalidStateError) as exc:
            order_service.update_status(order.id, as_actor(seller), OrderStatus.DELIVERED)
        assert exc.value.error_code == "ORDER_001"

    def test_only_customer_cancels(self, order_service, order, seller, buyer):
        with pytest.raises(AuthorizationError):
            order_service.update_status(order.id, as_actor(seller), OrderStatus.CANCELLED)

        result = order_service.update_status(
            order.id, as_actor(buyer), OrderStatus.CANCELLED, note="changed my mind"
        )
        assert result.status == OrderStatus.CANCELLED
        assert result.cancellation_reason == "changed my mind"

    def test_customer_cannot_confirm(self, order_service, order, buyer):
        with pytest.raises(AuthorizationError):
            order_service.update_status(order.id, as_actor(buyer), OrderStatus.CONFIRMED)

    def test_unrelated_seller_is_refused(self, order_service, order, other_seller):
        with pytest.raises(AuthorizationError):
            order_service.update_status(order.id, as_actor(other_seller), OrderStatus.CONFIRMED)

    def test_delivery_posts_commission_once(
        self, order_service, ledger_service, db_session, order, seller, admin
    ):
        _advance(
            order_service,
            order.id,
            seller,
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        )

        commissions = db_session.query(PaymentModel).filter(
            PaymentModel.type == PaymentType.COMMISSION.value
        ).all()
        payouts = db_session.query(PaymentModel).filter(
            PaymentModel.type == PaymentType.WITHDRAWAL.value
        ).all()
        assert len(commissions) == 1
        assert commissions[0].commission_amount == Decimal("800")
        assert len(payouts) == 1
        assert payouts[0].amount == Decimal("39200")
        assert ledger_service.get_balance(admin.id) == Decimal("800")

        # returning a delivered order does not post commission again
        _advance(order_service, order.id, admin, OrderStatus.RETURNED)
        assert db_session.query(PaymentModel).filter(
            PaymentModel.type == PaymentType.COMMISSION.value
        ).count() == 1

    def test_get_order_access(self, order_service, order, buyer, seller, other_seller, admin):
        assert order_service.get_order(order.id, as_actor(buyer)).id == order.id
        assert order_service.get_order(order.id, as_actor(seller)).id == order.id
        assert order_service.get_order(order.id, as_actor(admin)).id == order.id
        with pytest.raises(AuthorizationError):
            order_service.get_order(order.id, as_actor(other_seller))


class TestPayWithWallet:
    def test_insufficient_balance(self, order_service, order, buyer):
        with pytest.raises(InsufficientBalanceError):
            order_service.pay_with_wallet(order.id, buyer.id)

    def test_payment_debits_ledger_and_cached_balance(
        self, order_service, ledger_service, db_session, order, funded_buyer
    ):
        paid = order_service.pay_with_wallet(order.id, funded_buyer.id)

        assert paid.payment_status == OrderPaymentStatus.PAID
        assert paid.paid_at is not None
        assert ledger_service.get_balance(funded_buyer.id) == Decimal("55000")
        db_session.refresh(funded_buyer)
        assert funded_buyer.wallet_balance == Decimal("55000")
        assert ledger_service.verify_integrity(funded_buyer.id).status == "OK"

        with pytest.raises(InvalidStateError):
            order_service.pay_with_wallet(order.id, funded_buyer.id)

    def test_only_customer_pays(self, order_service, order, seller):
        with pytest.raises(AuthorizationError):
            order_service.pay_with_wallet(order.id, seller.id)

    def test_cancelling_wallet_paid_order_refunds(
        self, order_service, ledger_service, db_session, order, funded_buyer
    ):
        order_service.pay_with_wallet(order.id, funded_buyer.id)

        result = order_service.update_status(order.id, as_actor(funded_buyer), OrderStatus.CANCELLED)

        assert result.payment_status == OrderPaymentStatus.REFUNDED
        assert ledger_service.get_balance(funded_buyer.id) == Decimal("100000")
        db_session.refresh(funded_buyer)
        assert funded_buyer.wallet_balance == Decimal("100000")

        entries, total = ledger_service.get_entries(funded_buyer.id)
        assert total == 3
        assert entries[0].kind == LedgerEntryKind.REFUND
        refund = db_session.query(PaymentModel).filter(
            PaymentModel.type == PaymentType.REFUND.value
        ).one()
        assert refund.transaction_id == f"refund-{order.id}"


class TestSellerValidation:
    def _items(self, seller_id):
        return [OrderItemCreate(seller_id=seller_id, product_name="Chair", quantity=1, price=Decimal("1000000"))]

    def test_buyer_cannot_sell_to_themselves(self, order_service, db_session, buyer):
        with pytest.raises(ValidationError):
            order_service.create_order(customer_id=buyer.id, items=self._items(buyer.id))

        assert db_session.query(PaymentModel).count() == 0
        assert db_session.query(OrderStatusHistory).count() == 0

    def test_unknown_seller(self, order_service, buyer):
        with pytest.raises(ValidationError) as exc:
            order_service.create_order(customer_id=buyer.id, items=self._items(9999))
        assert exc.value.details == {"seller_id": 9999}

    def test_non_seller_account(self, order_service, buyer, admin):
        with pytest.raises(ValidationError):
            order_service.create_order(customer_id=buyer.id, items=self._items(admin.id))

    def test_inactive_seller(self, order_service, db_session, buyer, seller):
        seller.is_active = False
        db_session.commit()

        with pytest.raises(ValidationError):
            order_service.create_order(customer_id=buyer.id, items=self._items(seller.id))


class TestReturnedOrderPayouts:
    def test_return_fails_pending_payouts(
        self, order_service, payment_service, db_session, order, seller, admin
    ):
        _advance(
            order_service,
            order.id,
            seller,
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        )

        _advance(order_service, order.id, admin, OrderStatus.RETURNED)

        payout = db_session.query(PaymentModel).filter(
            PaymentModel.type == PaymentType.WITHDRAWAL.value
        ).one()
        assert payout.status == PaymentStatus.FAILED.value
        assert payout.approved_by == admin.id
        assert payout.notes == f"Order #{order.order_number} returned"
        with pytest.raises(ConflictError):
            payment_service.approve_seller_payment(payout.id, admin.id)

    def test_approved_payout_is_left_alone(
        self, order_service, payment_service, db_session, order, seller, admin
    ):
        _advance(
            order_service,
            order.id,
            seller,
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        )
        payout = db_session.query(PaymentModel).filter(
            PaymentModel.type == PaymentType.WITHDRAWAL.value
        ).one()
        payment_service.approve_seller_payment(payout.id, admin.id)

        _advance(order_service, order.id, admin, OrderStatus.RETURNED)

        db_session.refresh(payout)
        assert payout.status == PaymentStatus.COMPLETED.value
