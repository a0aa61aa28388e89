"""Commission API Routes

Admin reporting over commission records and store payout statements.
"""

import base64
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.app.use_cases.ledger import (
    ListCommissions,
    GetCommissionStats,
    GetStorePayoutSummary,
    GenerateStorePayoutStatement,
    ListCommissionsResponseDTO,
    CommissionStatsResponseDTO,
    StorePayoutSummaryResponseDTO,
    PayoutStatementResponseDTO,
)
from src.adapter.repositories.commission_record_repository import SqlAlchemyCommissionRecordRepository
from src.adapter.services.pdf_service import ReportLabPdfService
from src.api.routes.ledger import ERROR_RESPONSES, raise_for_error
from src.domain.commission_record import CommissionStatus
from src.domain.operator import Operator
from src.depends import get_session, get_operator

router = APIRouter(prefix="/commissions", tags=["Commissions"])


@router.get("", response_model=ListCommissionsResponseDTO, responses=ERROR_RESPONSES)
async def list_commissions(
    store_id: Optional[str] = None,
    status_filter: Optional[CommissionStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """Commission records, newest first."""
    use_case = ListCommissions(SqlAlchemyCommissionRecordRepository(session))
    result = await use_case.execute(
        operator, store_id=store_id, status=status_filter, limit=limit, offset=offset
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/stats", response_model=CommissionStatsResponseDTO, responses=ERROR_RESPONSES)
async def get_commission_stats(
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """
    Overall and current-month commission totals.

    **Example response:**
    ```json
    {
      "overall": {"total_commissions": "700.00", "total_transactions": 10, "avg_commission": "70.00"},
      "monthly": {"monthly_commissions": "140.00", "monthly_transactions": 2},
      "month_start": "2024-01-01T00:00:00"
    }
    ```
    """
    result = await GetCommissionStats(SqlAlchemyCommissionRecordRepository(session)).execute(operator)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/payouts", response_model=StorePayoutSummaryResponseDTO, responses=ERROR_RESPONSES)
async def get_store_payout_summary(
    store_id: Optional[str] = None,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """Commission sums per store and status."""
    use_case = GetStorePayoutSummary(SqlAlchemyCommissionRecordRepository(session))
    result = await use_case.execute(operator, store_id=store_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


async def _payout_statement(store_id: str, session: AsyncSession, operator: Operator):
    use_case = GenerateStorePayoutStatement(
        SqlAlchemyCommissionRecordRepository(session),
        ReportLabPdfService(),
        platform_name=ApplicationConfig.PLATFORM_NAME,
        platform_address=ApplicationConfig.PLATFORM_ADDRESS,
    )
    result = await use_case.execute(operator, store_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get(
    "/stores/{store_id}/statement",
    response_model=PayoutStatementResponseDTO,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
)
async def get_payout_statement(
    store_id: str,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """
    Store payout statement as base64-encoded PDF.

    Use the `/pdf` variant to download the PDF file directly.
    """
    return await _payout_statement(store_id, session, operator)


@router.get(
    "/stores/{store_id}/statement/pdf",
    response_class=Response,
    responses={
        200: {
            "content": {"application/pdf": {}},
            "description": "Payout statement PDF file",
        },
        **ERROR_RESPONSES,
    },
)
async def download_payout_statement(
    store_id: str,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    statement = await _payout_statement(store_id, session, operator)
    return Response(
        content=base64.b64decode(statement.pdf_base64),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename=payout_statement_{store_id}.pdf"
        },
    )
