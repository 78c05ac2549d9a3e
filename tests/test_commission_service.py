from decimal import Decimal

import pytest

from walletapi.core.exceptions import InvalidStateError, NotFoundError
from walletapi.models.ledger import LedgerEntry, LedgerEntryKind
from walletapi.models.order import Order as OrderModel, OrderStatus
from walletapi.models.payment import Payment as PaymentModel
from walletapi.models.payment import PaymentStatus, PaymentType
from walletapi.schemas.order import OrderItemCreate


@pytest.fixture
def delivered_order(order_service, db_session, buyer, seller, other_seller):
    """Two sellers: 2 x 50,000 from seller, 1 x 30,000 from other_seller"""
    order = order_service.create_order(
        customer_id=buyer.id,
        items=[
            OrderItemCreate(seller_id=seller.id, product_name="Lamp", quantity=2, price=Decimal("50000")),
            OrderItemCreate(seller_id=other_seller.id, product_name="Mug", quantity=1, price=Decimal("30000")),
        ],
        shipping_cost=Decimal("15000"),
    )
    model = db_session.get(OrderModel, order.id)
    model.status = OrderStatus.DELIVERED.value
    db_session.commit()
    return model


class TestPostForOrder:
    def test_posts_commission_and_payouts(
        self, commission_service, ledger_service, db_session, admin, seller, other_seller, delivered_order
    ):
        posting = commission_service.post_for_order(delivered_order.id)

        assert posting.already_posted is False
        # commission on the subtotal, shipping excluded
        assert posting.commission.amount == Decimal("130000")
        assert posting.commission.commission_amount == Decimal("2600")
        assert posting.commission.status == PaymentStatus.COMPLETED
        assert posting.commission.transaction_id == f"commission-{delivered_order.id}"

        # platform account falls back to the first admin
        assert posting.ledger_entry.user_id == admin.id
        assert posting.ledger_entry.kind == LedgerEntryKind.COMMISSION
        assert ledger_service.get_balance(admin.id) == Decimal("2600")

        payouts = {p.seller_id: p for p in posting.seller_payments}
        assert payouts[seller.id].amount == Decimal("98000")
        assert payouts[seller.id].status == PaymentStatus.PENDING
        assert payouts[seller.id].bank_account["bank_name"] == "Vietcombank"
        assert payouts[other_seller.id].amount == Decimal("29400")
        assert payouts[other_seller.id].bank_account is None

    def test_is_idempotent(self, commission_service, db_session, admin, delivered_order):
        first = commission_service.post_for_order(delivered_order.id)
        second = commission_service.post_for_order(delivered_order.id)

        assert second.already_posted is True
        assert second.commission.id == first.commission.id
        assert db_session.query(PaymentModel).filter(
            PaymentModel.type == PaymentType.COMMISSION.value
        ).count() == 1
        assert db_session.query(LedgerEntry).filter(
            LedgerEntry.kind == LedgerEntryKind.COMMISSION.value
        ).count() == 1
        assert len(second.seller_payments) == 2

    def test_configured_platform_account_wins(
        self, commission_service, settings, ledger_service, buyer, admin, delivered_order
    ):
        settings.PLATFORM_ACCOUNT_ID = buyer.id

        posting = commission_service.post_for_order(delivered_order.id)

        assert posting.ledger_entry.user_id == buyer.id
        assert ledger_service.get_balance(admin.id) == Decimal("0")

    def test_without_platform_account_skips_ledger_entry(
        self, commission_service, db_session, delivered_order
    ):
        posting = commission_service.post_for_order(delivered_order.id)

        assert posting.ledger_entry is None
        assert posting.commission.user_id is None
        assert db_session.query(LedgerEntry).count() == 0

    def test_requires_delivered_order(self, commission_service, db_session, delivered_order):
        delivered_order.status = OrderStatus.SHIPPED.value
        db_session.commit()

        with pytest.raises(InvalidStateError):
            commission_service.post_for_order(delivered_order.id)

    def test_unknown_order(self, commission_service):
        with pytest.raises(NotFoundError):
            commission_service.post_for_order(5555)
