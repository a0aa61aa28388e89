"""Unit tests for CreateLedgerEntry use case"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.ledger.create_ledger_entry import CreateLedgerEntry
from src.app.use_cases.ledger.dtos import CreateEntryCommandDTO
from src.domain.errors import DuplicateTransactionId
from src.domain.ledger_entry import EntryType, PaymentMethod, PaymentProvider


def _persisted(entry):
    entry.version = 1
    return entry


@pytest.fixture
def mock_entry_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=_persisted)
    return repo


@pytest.fixture
def refund_command():
    return CreateEntryCommandDTO(
        user_id="user_1",
        store_id="store_1",
        order_id="order_1",
        transaction_id="re_123",
        amount=Decimal("50.00"),
        payment_method=PaymentMethod.CARD,
        payment_provider=PaymentProvider.STRIPE,
        type=EntryType.REFUND,
    )


@pytest.mark.asyncio
class TestCreateLedgerEntry:
    async def test_creates_refund_entry(self, admin, mock_uow, mock_entry_repo, refund_command):
        use_case = CreateLedgerEntry(mock_uow, mock_entry_repo)

        result = await use_case.execute(admin, refund_command)

        assert result.is_ok()
        assert result.value.type == "refund"
        assert result.value.formatted_amount == "LKR 50.00"
        mock_uow.commit.assert_called_once()

    async def test_negative_amount_rejected(self, admin, mock_uow, mock_entry_repo, refund_command):
        use_case = CreateLedgerEntry(mock_uow, mock_entry_repo)
        command = refund_command.model_copy(update={"amount": Decimal("-1")})

        result = await use_case.execute(admin, command)

        assert result.is_err()
        assert result.error.code == "INVALID_AMOUNT"
        mock_entry_repo.create.assert_not_called()

    async def test_duplicate_transaction_id(self, admin, mock_uow, mock_entry_repo, refund_command):
        mock_entry_repo.create = AsyncMock(side_effect=DuplicateTransactionId("re_123"))
        use_case = CreateLedgerEntry(mock_uow, mock_entry_repo)

        result = await use_case.execute(admin, refund_command)

        assert result.is_err()
        assert result.error.code == "DUPLICATE_TRANSACTION_ID"
        mock_uow.rollback.assert_called_once()

    async def test_read_only_operator_cannot_create(
        self, support, mock_uow, mock_entry_repo, refund_command
    ):
        """
        Given: An operator with ledger:read only
        When: They record a refund entry
        Then: FORBIDDEN is returned and nothing is written
        """
        use_case = CreateLedgerEntry(mock_uow, mock_entry_repo)

        result = await use_case.execute(support, refund_command)

        assert result.is_err()
        assert result.error.code == "FORBIDDEN"
        mock_entry_repo.create.assert_not_called()
        mock_uow.commit.assert_not_called()
