"""Unit tests for LedgerEntry domain entity"""

from datetime import datetime, timedelta
from decimal import Decimal

from src.domain.ledger_entry import EntryStatus, EntryType, MAX_RETRY_COUNT


class TestLedgerEntryExpiry:
    """Test expires_at assignment"""

    def test_payment_expires_after_24_hours(self, make_entry):
        entry = make_entry(type=EntryType.PAYMENT)

        expires_at = entry.assign_expiry()

        assert expires_at == entry.created_at + timedelta(hours=24)

    def test_other_types_expire_after_72_hours(self, make_entry):
        for entry_type in (EntryType.REFUND, EntryType.PAYOUT, EntryType.ADJUSTMENT):
            entry = make_entry(type=entry_type)

            assert entry.assign_expiry() == entry.created_at + timedelta(hours=72)

    def test_existing_expiry_is_kept(self, make_entry):
        """
        Given: An entry that already has expires_at
        When: assign_expiry is called again
        Then: The original deadline is kept
        """
        deadline = datetime(2024, 1, 5)
        entry = make_entry(expires_at=deadline)

        assert entry.assign_expiry() == deadline
        assert entry.expires_at == deadline

    def test_custom_hours(self, make_entry):
        entry = make_entry(type=EntryType.REFUND)

        entry.assign_expiry(payment_hours=1, other_hours=2)

        assert entry.expires_at == entry.created_at + timedelta(hours=2)


class TestLedgerEntryViews:
    """Test derived views"""

    def test_formatted_amount(self, make_entry):
        assert make_entry(amount=Decimal("1000")).formatted_amount == "LKR 1,000.00"
        assert make_entry(amount=Decimal("5.5"), currency="USD").formatted_amount == "USD 5.50"

    def test_time_elapsed(self, make_entry):
        entry = make_entry(created_at=datetime(2024, 1, 1, 12, 0, 0))

        assert entry.time_elapsed(datetime(2024, 1, 1, 12, 5, 0)) == "5m ago"
        assert entry.time_elapsed(datetime(2024, 1, 1, 15, 30, 0)) == "3h ago"
        assert entry.time_elapsed(datetime(2024, 1, 3, 13, 0, 0)) == "2d ago"

    def test_can_retry_only_failed_below_limit(self, make_entry):
        assert make_entry(status=EntryStatus.FAILED, retry_count=1).can_retry
        assert not make_entry(status=EntryStatus.FAILED, retry_count=MAX_RETRY_COUNT).can_retry
        assert not make_entry(status=EntryStatus.PENDING).can_retry

    def test_terminal_statuses(self, make_entry):
        assert make_entry(status=EntryStatus.COMPLETED).is_terminal
        assert make_entry(status=EntryStatus.CANCELLED).is_terminal
        assert make_entry(status=EntryStatus.REFUNDED).is_terminal
        assert not make_entry(status=EntryStatus.FAILED).is_terminal
