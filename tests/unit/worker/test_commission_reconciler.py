"""Unit tests for CommissionReconcilerWorker

Tests cover:
- Repair flag resolution
- run_once execution and the disabled path
- Error propagation
- run_forever keeps going after a failed cycle
"""

import asyncio
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

from src.app.use_cases.ledger.dtos import CommissionDiscrepancyDTO, ReconciliationResultDTO
from src.worker.commission_reconciler import CommissionReconcilerWorker


@pytest.fixture
def sample_result():
    return ReconciliationResultDTO(
        entries_checked=5,
        commissions_checked=4,
        discrepancies_found=1,
        repaired=0,
        discrepancies=[
            CommissionDiscrepancyDTO(
                kind="missing_commission",
                store_id="store_1",
                order_id="order_1",
                transaction_id="pi_1",
                amount=Decimal("1000.00"),
            )
        ],
        reconciliation_time=datetime.utcnow(),
        execution_time_ms=12,
    )


def _session_factory():
    mock_session = MagicMock()
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=mock_session)


class TestCommissionReconcilerWorkerInit:
    @patch("src.worker.commission_reconciler.ApplicationConfig")
    @patch("src.worker.commission_reconciler.create_async_engine")
    def test_repair_defaults_to_config(self, mock_create_engine, mock_app_config):
        mock_app_config.DB_URI = "sqlite+aiosqlite:///test.db"
        mock_app_config.RECONCILIATION_REPAIR = True

        worker = CommissionReconcilerWorker()

        assert worker.repair is True
        assert worker.db_uri == "sqlite+aiosqlite:///test.db"

    @patch("src.worker.commission_reconciler.ApplicationConfig")
    @patch("src.worker.commission_reconciler.create_async_engine")
    def test_explicit_repair_wins(self, mock_create_engine, mock_app_config):
        mock_app_config.DB_URI = "sqlite+aiosqlite:///test.db"
        mock_app_config.RECONCILIATION_REPAIR = True

        worker = CommissionReconcilerWorker(repair=False)

        assert worker.repair is False


@pytest.mark.asyncio
class TestCommissionReconcilerWorkerRunOnce:
    @patch("src.worker.commission_reconciler.ApplicationConfig")
    @patch("src.worker.commission_reconciler.ReconcileCommissions")
    @patch("src.worker.commission_reconciler.SqlAlchemyUnitOfWork")
    @patch("src.worker.commission_reconciler.SqlAlchemyLedgerEntryRepository")
    @patch("src.worker.commission_reconciler.SqlAlchemyCommissionRecordRepository")
    @patch("src.worker.commission_reconciler.create_async_engine")
    @patch("src.worker.commission_reconciler.sessionmaker")
    async def test_run_once_executes_reconciliation(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_commission_repo_class,
        mock_entry_repo_class,
        mock_uow_class,
        mock_use_case_class,
        mock_app_config,
        sample_result,
    ):
        """
        Given: Reconciliation is enabled
        When: run_once is called
        Then: The use case runs with the worker's repair flag
        """
        # Arrange
        mock_app_config.DB_URI = "sqlite+aiosqlite:///test.db"
        mock_app_config.RECONCILIATION_ENABLED = True
        mock_app_config.DEFAULT_COMMISSION_RATE = "0.07"
        mock_app_config.PAYMENT_EXPIRY_HOURS = 24
        mock_sessionmaker.return_value = _session_factory()
        mock_create_engine.return_value = MagicMock()

        mock_result = MagicMock()
        mock_result.is_err.return_value = False
        mock_result.value = sample_result
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        # Act
        notifier = MagicMock()
        notifier.send_reconciliation_alert = AsyncMock(return_value=True)
        worker = CommissionReconcilerWorker(repair=True, notification_service=notifier)
        result = await worker.run_once()

        # Assert
        assert result.discrepancies_found == 1
        mock_use_case.execute.assert_called_once_with(repair=True)
        assert mock_use_case_class.call_args.kwargs["default_commission_rate"] == Decimal("0.07")
        alerted = notifier.send_reconciliation_alert.call_args.args[0]
        assert alerted[0]["kind"] == "missing_commission"
        assert alerted[0]["amount"] == "1000.00"

    @patch("src.worker.commission_reconciler.ApplicationConfig")
    @patch("src.worker.commission_reconciler.create_async_engine")
    async def test_run_once_skips_when_disabled(self, mock_create_engine, mock_app_config):
        mock_app_config.DB_URI = "sqlite+aiosqlite:///test.db"
        mock_app_config.RECONCILIATION_ENABLED = False

        worker = CommissionReconcilerWorker(repair=False)
        result = await worker.run_once()

        assert result.entries_checked == 0
        assert result.discrepancies_found == 0

    @patch("src.worker.commission_reconciler.ApplicationConfig")
    @patch("src.worker.commission_reconciler.ReconcileCommissions")
    @patch("src.worker.commission_reconciler.SqlAlchemyUnitOfWork")
    @patch("src.worker.commission_reconciler.SqlAlchemyLedgerEntryRepository")
    @patch("src.worker.commission_reconciler.SqlAlchemyCommissionRecordRepository")
    @patch("src.worker.commission_reconciler.create_async_engine")
    @patch("src.worker.commission_reconciler.sessionmaker")
    async def test_run_once_raises_on_error(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_commission_repo_class,
        mock_entry_repo_class,
        mock_uow_class,
        mock_use_case_class,
        mock_app_config,
    ):
        mock_app_config.DB_URI = "sqlite+aiosqlite:///test.db"
        mock_app_config.RECONCILIATION_ENABLED = True
        mock_app_config.DEFAULT_COMMISSION_RATE = "0.07"
        mock_sessionmaker.return_value = _session_factory()

        mock_result = MagicMock()
        mock_result.is_err.return_value = True
        mock_result.error.message = "Failed to reconcile commission records"
        mock_use_case = MagicMock()
        mock_use_case.execute = AsyncMock(return_value=mock_result)
        mock_use_case_class.return_value = mock_use_case

        worker = CommissionReconcilerWorker(repair=False)
        with pytest.raises(RuntimeError, match="Reconciliation failed"):
            await worker.run_once()


@pytest.mark.asyncio
class TestCommissionReconcilerWorkerRunForever:
    @patch("src.worker.commission_reconciler.asyncio.sleep")
    @patch("src.worker.commission_reconciler.create_async_engine")
    async def test_continues_after_failed_cycle(
        self, mock_create_engine, mock_sleep, sample_result
    ):
        mock_sleep.side_effect = [None, asyncio.CancelledError()]

        worker = CommissionReconcilerWorker(db_uri="sqlite+aiosqlite:///test.db", repair=False)
        worker.run_once = AsyncMock(side_effect=[Exception("db down"), sample_result])

        with pytest.raises(asyncio.CancelledError):
            await worker.run_forever(interval_seconds=1)

        assert worker.run_once.call_count == 2
        mock_sleep.assert_called_with(1)
