from decimal import Decimal

import pytest

from walletapi.core.exceptions import NotFoundError
from walletapi.models.ledger import LedgerEntry, LedgerEntryKind


class TestBalanceQuery:
    """Balance derived from the latest ledger entry"""

    def test_account_without_entries_has_zero_balance(self, ledger_service, buyer):
        assert ledger_service.get_balance(buyer.id) == Decimal("0")

    def test_unknown_account_is_not_validated(self, ledger_service):
        assert ledger_service.get_balance(99999) == Decimal("0")

    def test_balance_follows_latest_entry(self, ledger_service, buyer):
        # Arrange
        ledger_service.append_entry(buyer.id, LedgerEntryKind.DEPOSIT, Decimal("1000"), "top-up")
        second = ledger_service.append_entry(
            buyer.id, LedgerEntryKind.WITHDRAWAL, Decimal("400"), "payout"
        )

        # Act
        balance = ledger_service.get_balance(buyer.id)

        # Assert
        assert balance == Decimal("600")
        assert second.balance == Decimal("600")

    def test_balances_are_per_account(self, ledger_service, buyer, seller):
        ledger_service.append_entry(buyer.id, LedgerEntryKind.DEPOSIT, Decimal("5000"), "a")
        ledger_service.append_entry(seller.id, LedgerEntryKind.DEPOSIT, Decimal("700"), "b")

        assert ledger_service.get_balance(buyer.id) == Decimal("5000")
        assert ledger_service.get_balance(seller.id) == Decimal("700")

    def test_summary_reports_cached_balance_separately(self, ledger_service, buyer):
        ledger_service.append_entry(buyer.id, LedgerEntryKind.DEPOSIT, Decimal("2500"), "a")

        summary = ledger_service.get_balance_summary(buyer.id)

        assert summary.balance == Decimal("2500")
        # append_entry leaves the cached field alone
        assert summary.cached_balance == Decimal("0")
        assert summary.entry_count == 1
        assert summary.currency == "VND"


class TestAppendEntry:
    def test_sign_convention(self, ledger_service, buyer):
        steps = [
            (LedgerEntryKind.DEPOSIT, "1000", "1000"),
            (LedgerEntryKind.COMMISSION, "20", "1020"),
            (LedgerEntryKind.PAYMENT, "300", "720"),
            (LedgerEntryKind.REFUND, "300", "1020"),
            (LedgerEntryKind.WITHDRAWAL, "1020", "0"),
        ]
        for kind, amount, expected in steps:
            entry = ledger_service.append_entry(buyer.id, kind, Decimal(amount), kind.value)
            assert entry.balance == Decimal(expected), kind

    def test_withdrawal_may_overdraw(self, ledger_service, seller):
        entry = ledger_service.append_entry(
            seller.id, LedgerEntryKind.WITHDRAWAL, Decimal("500"), "payout"
        )
        assert entry.balance == Decimal("-500")

    def test_does_not_touch_cached_balance(self, ledger_service, db_session, buyer):
        ledger_service.append_entry(buyer.id, LedgerEntryKind.DEPOSIT, Decimal("1000"), "a")

        db_session.refresh(buyer)
        assert buyer.wallet_balance == Decimal("0")

    def test_uncommitted_append_is_rolled_back(self, ledger_service, db_session, buyer):
        ledger_service.append_entry(
            buyer.id, LedgerEntryKind.DEPOSIT, Decimal("1000"), "a", commit=False
        )
        db_session.rollback()

        assert db_session.query(LedgerEntry).count() == 0
        assert ledger_service.get_balance(buyer.id) == Decimal("0")

    def test_record_commission_describes_rate(self, ledger_service, admin):
        entry = ledger_service.record_commission(
            platform_account_id=admin.id,
            amount=Decimal("2000"),
            order_id=None,
            order_number="ORD-1",
        )
        assert entry.kind == LedgerEntryKind.COMMISSION.value
        assert "2%" in entry.description
        assert entry.meta["order_number"] == "#ORD-1"


class TestVerifyIntegrity:
    def test_consistent_chain(self, ledger_service, db_session, buyer):
        ledger_service.append_entry(buyer.id, LedgerEntryKind.DEPOSIT, Decimal("1000"), "a")
        buyer.wallet_balance = Decimal("1000")
        db_session.commit()

        report = ledger_service.verify_integrity(buyer.id)

        assert report.status == "OK"
        assert report.chain_ok and report.cached_balance_ok
        assert report.entry_count == 1

    def test_cached_balance_drift_is_reported(self, ledger_service, buyer):
        ledger_service.append_entry(buyer.id, LedgerEntryKind.DEPOSIT, Decimal("1000"), "a")

        report = ledger_service.verify_integrity(buyer.id)

        assert report.status == "MISMATCH"
        assert report.chain_ok is True
        assert report.cached_balance_ok is False
        assert report.derived_balance == Decimal("1000")
        assert report.cached_balance == Decimal("0")

    def test_broken_snapshot_is_located(self, ledger_service, db_session, buyer):
        ledger_service.append_entry(buyer.id, LedgerEntryKind.DEPOSIT, Decimal("1000"), "a")
        bad = ledger_service.append_entry(buyer.id, LedgerEntryKind.DEPOSIT, Decimal("500"), "b")
        bad.balance = Decimal("9999")
        db_session.commit()

        report = ledger_service.verify_integrity(buyer.id)

        assert report.chain_ok is False
        assert report.broken_entry_id == bad.id
        assert report.expected_balance == Decimal("1500")

    def test_unknown_user(self, ledger_service):
        with pytest.raises(NotFoundError):
            ledger_service.verify_integrity(424242)
