"""Integration tests for SqlAlchemyLedgerEntryRepository"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from src.adapter.repositories.ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.repositories.ledger_entry_repository import LedgerEntryFilter
from src.domain.errors import DuplicateTransactionId, StaleWrite
from src.domain.ledger_entry import (
    LedgerEntry,
    EntryStatus,
    EntryType,
    PaymentMethod,
)
from src.domain.ledger_lifecycle import LedgerLifecycle
from src.domain.operator import Operator, Permission
from src.app.use_cases.ledger import MarkEntryFailed, MarkFailedCommandDTO


def _entry(transaction_id, **overrides):
    data = dict(
        transaction_id=transaction_id,
        user_id="user_1",
        store_id="store_1",
        order_id=f"order_{transaction_id}",
        amount=Decimal("100.00"),
        payment_method=PaymentMethod.CARD,
        type=EntryType.PAYMENT,
    )
    data.update(overrides)
    return LedgerEntry(**data)


class TestLedgerEntryRepositoryCreate:
    @pytest.mark.asyncio
    async def test_create_assigns_expiry_and_version(self, db_session):
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        created_at = datetime(2024, 1, 1, 10, 0, 0)

        payment = await repo.create(_entry("pi_1", created_at=created_at, currency="lkr"))
        refund = await repo.create(
            _entry("re_1", type=EntryType.REFUND, created_at=created_at)
        )
        await db_session.commit()

        assert payment.expires_at == created_at + timedelta(hours=24)
        assert refund.expires_at == created_at + timedelta(hours=72)
        assert payment.currency == "LKR"
        assert payment.version == 1

    @pytest.mark.asyncio
    async def test_duplicate_transaction_id_rejected(self, db_session):
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        await repo.create(_entry("pi_dup"))
        await db_session.commit()

        with pytest.raises(DuplicateTransactionId):
            await repo.create(_entry("pi_dup", user_id="user_2"))

        assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_lookup_by_id_and_transaction_id(self, db_session):
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        created = await repo.create(_entry("pi_lookup"))
        await db_session.commit()

        assert (await repo.get_by_id(created.id)).transaction_id == "pi_lookup"
        assert (await repo.get_by_transaction_id("pi_lookup")).id == created.id
        assert await repo.get_by_transaction_id("missing") is None


class TestLedgerEntryRepositoryQueries:
    @pytest.mark.asyncio
    async def test_find_filters_and_sorts_newest_first(self, db_session):
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        base = datetime(2024, 1, 1)
        await repo.create(_entry("pi_old", created_at=base))
        await repo.create(_entry("pi_new", created_at=base + timedelta(hours=1)))
        await repo.create(_entry("pi_other", store_id="store_2", created_at=base))
        await db_session.commit()

        entries = await repo.find(LedgerEntryFilter(store_id="store_1"))

        assert [e.transaction_id for e in entries] == ["pi_new", "pi_old"]
        assert await repo.count(LedgerEntryFilter(store_id="store_2")) == 1

    @pytest.mark.asyncio
    async def test_status_counts(self, db_session):
        """
        Given: 2 pending entries of 100 and 1 completed entry of 50
        When: Status counts are aggregated
        Then: Only present statuses appear with their counts and sums
        """
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        await repo.create(_entry("pi_a"))
        await repo.create(_entry("pi_b"))
        await repo.create(_entry("pi_c", amount=Decimal("50.00"), status=EntryStatus.COMPLETED))
        await db_session.commit()

        counts = await repo.get_status_counts()

        assert set(counts) == {EntryStatus.PENDING, EntryStatus.COMPLETED}
        assert counts[EntryStatus.PENDING].count == 2
        assert counts[EntryStatus.PENDING].total_amount == Decimal("200")
        assert counts[EntryStatus.COMPLETED].count == 1
        assert counts[EntryStatus.COMPLETED].total_amount == Decimal("50")

    @pytest.mark.asyncio
    async def test_recent_failures_window(self, db_session):
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        now = datetime(2024, 1, 2, 12, 0, 0)
        await repo.create(
            _entry("pi_recent", status=EntryStatus.FAILED, updated_at=now - timedelta(hours=1))
        )
        await repo.create(
            _entry("pi_stale", status=EntryStatus.FAILED, updated_at=now - timedelta(hours=25))
        )
        await repo.create(_entry("pi_ok", updated_at=now - timedelta(minutes=5)))
        await db_session.commit()

        failures = await repo.get_recent_failures(24, now=now)

        assert [e.transaction_id for e in failures] == ["pi_recent"]

    @pytest.mark.asyncio
    async def test_delete_expired(self, db_session):
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        created_at = datetime(2024, 1, 1)
        await repo.create(_entry("pi_expired", created_at=created_at))
        await repo.create(_entry("re_alive", type=EntryType.REFUND, created_at=created_at))
        await db_session.commit()

        deleted = await repo.delete_expired(created_at + timedelta(hours=25))
        await db_session.commit()

        assert deleted == 1
        assert await repo.get_by_transaction_id("pi_expired") is None
        assert await repo.get_by_transaction_id("re_alive") is not None


class TestLedgerEntryRepositoryVersioning:
    @pytest.mark.asyncio
    async def test_save_bumps_version(self, db_session):
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        entry = await repo.create(_entry("pi_v"))
        await db_session.commit()

        LedgerLifecycle().mark_processing(entry, "admin_1")
        saved = await repo.save(entry)
        await db_session.commit()

        assert saved.version == 2
        assert saved.status == EntryStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_concurrent_write_is_stale(self, db_session, session_factory):
        """
        Given: Two sessions loaded the same entry
        When: Both try to save a transition
        Then: The second write fails with StaleWrite
        """
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        created = await repo.create(_entry("pi_race"))
        await db_session.commit()
        lifecycle = LedgerLifecycle()

        async with session_factory() as first, session_factory() as second:
            first_repo = SqlAlchemyLedgerEntryRepository(first)
            second_repo = SqlAlchemyLedgerEntryRepository(second)
            first_copy = await first_repo.get_by_id(created.id)
            second_copy = await second_repo.get_by_id(created.id)

            lifecycle.mark_processing(first_copy, "admin_1")
            await first_repo.save(first_copy)
            await first.commit()

            lifecycle.mark_failed(second_copy, "timeout", "admin_2")
            with pytest.raises(StaleWrite) as exc_info:
                await second_repo.save(second_copy)
            await second.rollback()

        assert exc_info.value.entry_id == created.id

        db_session.expire_all()
        stored = await repo.get_by_id(created.id)
        assert stored.status == EntryStatus.PROCESSING
        assert stored.version == 2

    @pytest.mark.asyncio
    async def test_lost_update_surfaces_as_stale_write_error(self, db_session, session_factory):
        """
        Given: An operator marks an entry processing while another holds a stale copy
        When: The second operator marks the same entry failed
        Then: The use case returns STALE_WRITE and the first write stands
        """
        repo = SqlAlchemyLedgerEntryRepository(db_session)
        created = await repo.create(_entry("pi_lost_update"))
        await db_session.commit()
        operator = Operator(id="admin_2", permissions=frozenset(Permission))

        async with session_factory() as first, session_factory() as second:
            first_repo = SqlAlchemyLedgerEntryRepository(first)
            second_repo = SqlAlchemyLedgerEntryRepository(second)
            first_copy = await first_repo.get_by_id(created.id)
            await second_repo.get_by_id(created.id)

            LedgerLifecycle().mark_processing(first_copy, "admin_1")
            await first_repo.save(first_copy)
            await first.commit()

            use_case = MarkEntryFailed(uow=SqlAlchemyUnitOfWork(second), entry_repo=second_repo)
            result = await use_case.execute(
                operator, MarkFailedCommandDTO(entry_id=created.id, reason="timeout")
            )

        assert result.is_err()
        assert result.error.code == "STALE_WRITE"

        db_session.expire_all()
        stored = await repo.get_by_id(created.id)
        assert stored.status == EntryStatus.PROCESSING
        assert stored.retry_count == 0
