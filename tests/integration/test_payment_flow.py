"""Integration tests for payment recording, reporting and reconciliation"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from src.adapter.repositories.commission_record_repository import SqlAlchemyCommissionRecordRepository
from src.adapter.repositories.ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.ledger import (
    RecordPayment,
    GetLedgerEntry,
    GetCommissionStats,
    ReconcileCommissions,
    PurgeExpiredEntries,
    RecordPaymentCommandDTO,
)
from src.domain.commission_record import CommissionRecord, CommissionType
from src.domain.ledger_entry import LedgerEntry, EntryType, PaymentMethod
from src.domain.operator import Operator


def _command(transaction_id, **overrides):
    data = dict(
        user_id="user_1",
        store_id="store_1",
        order_id="order_1",
        transaction_id=transaction_id,
        amount=Decimal("1000.00"),
        payment_method=PaymentMethod.CARD,
    )
    data.update(overrides)
    return RecordPaymentCommandDTO(**data)


def _record_payment(session):
    return RecordPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyLedgerEntryRepository(session),
        SqlAlchemyCommissionRecordRepository(session),
    )


class TestRecordPaymentIntegration:
    @pytest.mark.asyncio
    async def test_end_to_end_order_payment(self, db_session):
        """
        Given: An order of 1000 at the default 7% rate
        When: The payment is recorded
        Then: Commission is 70.00, the store gets 930.00 and the entry
              can be found by its transaction id
        """
        # Act
        result = await _record_payment(db_session).execute(Operator.system(), _command("pi_e2e"))

        # Assert
        assert result.is_ok()
        assert result.value.commission.commission_amount == Decimal("70.00")
        assert result.value.commission.store_amount == Decimal("930.00")
        assert result.value.commission.id is not None

        lookup = await GetLedgerEntry(SqlAlchemyLedgerEntryRepository(db_session)).execute(
            Operator.system(), transaction_id="pi_e2e"
        )
        assert lookup.is_ok()
        assert lookup.value.status == "pending"
        assert lookup.value.amount == Decimal("1000.00")

        stored = await SqlAlchemyCommissionRecordRepository(db_session).get_by_order_id("order_1")
        assert stored.commission_amount + stored.store_amount == stored.total_amount

    @pytest.mark.asyncio
    async def test_retry_under_new_transaction_reuses_commission(self, db_session):
        use_case = _record_payment(db_session)
        first = await use_case.execute(Operator.system(), _command("pi_first"))
        second = await use_case.execute(Operator.system(), _command("pi_second"))

        assert first.value.commission_created is True
        assert second.value.commission_created is False
        assert second.value.commission.id == first.value.commission.id

    @pytest.mark.asyncio
    async def test_retry_with_different_amount_is_rejected(self, db_session):
        use_case = _record_payment(db_session)
        await use_case.execute(Operator.system(), _command("pi_original"))

        result = await use_case.execute(
            Operator.system(), _command("pi_changed", amount=Decimal("1500.00"))
        )

        assert result.is_err()
        assert result.error.code == "COMMISSION_MISMATCH"
        entries = SqlAlchemyLedgerEntryRepository(db_session)
        assert await entries.get_by_transaction_id("pi_changed") is None
        stored = await SqlAlchemyCommissionRecordRepository(db_session).get_by_order_id("order_1")
        assert stored.total_amount == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_duplicate_transaction_writes_nothing(self, db_session):
        use_case = _record_payment(db_session)
        await use_case.execute(Operator.system(), _command("pi_dup"))

        result = await use_case.execute(Operator.system(), _command("pi_dup", order_id="order_2"))

        assert result.is_err()
        assert result.error.code == "DUPLICATE_TRANSACTION_ID"
        commissions = SqlAlchemyCommissionRecordRepository(db_session)
        assert await commissions.get_by_order_id("order_2") is None

    @pytest.mark.asyncio
    async def test_commission_stats(self, db_session):
        use_case = _record_payment(db_session)
        await use_case.execute(Operator.system(), _command("pi_1", order_id="order_1"))
        await use_case.execute(
            Operator.system(), _command("pi_2", order_id="order_2", amount=Decimal("500.00"))
        )

        result = await GetCommissionStats(SqlAlchemyCommissionRecordRepository(db_session)).execute(
            Operator.system()
        )

        assert result.is_ok()
        assert result.value.overall.total_transactions == 2
        assert result.value.overall.total_commissions == Decimal("105.00")
        assert result.value.overall.avg_commission == Decimal("52.50")
        assert result.value.monthly.monthly_transactions == 2


class TestReconciliationIntegration:
    @pytest.mark.asyncio
    async def test_detects_and_repairs_missing_commission(self, db_session):
        entry_repo = SqlAlchemyLedgerEntryRepository(db_session)
        await entry_repo.create(
            LedgerEntry(
                transaction_id="pi_lonely",
                user_id="user_1",
                store_id="store_1",
                booking_id="booking_1",
                amount=Decimal("200.00"),
                payment_method=PaymentMethod.CARD,
                type=EntryType.PAYMENT,
            )
        )
        db_session.add(
            CommissionRecord(
                store_id="store_2",
                order_id="order_orphan",
                type=CommissionType.ORDER,
                total_amount=Decimal("100.00"),
                commission_amount=Decimal("7.00"),
                store_amount=Decimal("93.00"),
            )
        )
        await db_session.commit()

        use_case = ReconcileCommissions(
            SqlAlchemyUnitOfWork(db_session),
            entry_repo,
            SqlAlchemyCommissionRecordRepository(db_session),
        )

        result = await use_case.execute(repair=True)

        assert result.is_ok()
        kinds = sorted(d.kind for d in result.value.discrepancies)
        assert kinds == ["missing_commission", "orphan_commission"]
        assert result.value.repaired == 1

        repaired = await SqlAlchemyCommissionRecordRepository(db_session).get_by_booking_id("booking_1")
        assert repaired.type == CommissionType.BOOKING
        assert repaired.commission_amount == Decimal("14.00")

        rerun = await use_case.execute()
        assert [d.kind for d in rerun.value.discrepancies] == ["orphan_commission"]


class TestPurgeExpiredIntegration:
    @pytest.mark.asyncio
    async def test_sweep_evicts_only_expired(self, db_session):
        entry_repo = SqlAlchemyLedgerEntryRepository(db_session)
        now = datetime.utcnow()
        await _record_payment(db_session).execute(Operator.system(), _command("pi_fresh"))
        await entry_repo.create(
            LedgerEntry(
                transaction_id="pi_old",
                user_id="user_1",
                store_id="store_1",
                order_id="order_old",
                amount=Decimal("10.00"),
                payment_method=PaymentMethod.CARD,
                type=EntryType.PAYMENT,
                created_at=now - timedelta(hours=30),
            )
        )
        await db_session.commit()

        result = await PurgeExpiredEntries(SqlAlchemyUnitOfWork(db_session), entry_repo).execute(now)

        assert result.value.deleted == 1
        assert await entry_repo.get_by_transaction_id("pi_fresh") is not None
        assert await entry_repo.get_by_transaction_id("pi_old") is None
