import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.domain.ledger_entry import LedgerEntry, EntryStatus, EntryType, PaymentMethod
from src.domain.operator import Operator, Permission


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def admin():
    return Operator(id="admin_1", permissions=frozenset(Permission))


@pytest.fixture
def support():
    """Operator that may read the ledger but not change it"""
    return Operator(id="support_1", permissions=frozenset({Permission.LEDGER_READ}))


@pytest.fixture
def make_entry():
    def _make(**overrides):
        data = dict(
            id="entry_1",
            transaction_id="pi_123",
            user_id="user_1",
            store_id="store_1",
            order_id="order_1",
            amount=Decimal("1000.00"),
            currency="LKR",
            payment_method=PaymentMethod.CARD,
            type=EntryType.PAYMENT,
            status=EntryStatus.PENDING,
            payment_metadata={},
            retry_count=0,
            version=1,
            created_at=datetime(2024, 1, 1, 12, 0, 0),
            updated_at=datetime(2024, 1, 1, 12, 0, 0),
        )
        data.update(overrides)
        return LedgerEntry(**data)

    return _make
