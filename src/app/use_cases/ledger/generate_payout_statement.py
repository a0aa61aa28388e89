"""GenerateStorePayoutStatement Use Case

Renders a store's commission records and per-status totals as a PDF.
"""

import base64
import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.commission_record_repository import CommissionRecordRepository
from src.app.services.pdf_service import PdfService
from src.domain.operator import Operator, Permission
from .dtos import PayoutStatementResponseDTO
from .mappers import forbidden

logger = logging.getLogger(__name__)


class GenerateStorePayoutStatement:
    """
    Use Case: Store payout statement

    Business Rules:
    1. Operator needs commission:read
    2. A store without commission records still gets a (empty) statement
    3. PDF is returned base64-encoded
    """

    def __init__(
        self,
        commission_repo: CommissionRecordRepository,
        pdf_service: PdfService,
        platform_name: str = "AIO Marketplace",
        platform_address: str = "Colombo, Sri Lanka",
    ):
        self.commission_repo = commission_repo
        self.pdf_service = pdf_service
        self.platform_name = platform_name
        self.platform_address = platform_address

    async def execute(
        self,
        operator: Operator,
        store_id: str,
        now: Optional[datetime] = None,
    ) -> Result[PayoutStatementResponseDTO]:
        denied = forbidden(operator, Permission.COMMISSION_READ)
        if denied:
            return Return.err(denied)

        try:
            generated_at = now or datetime.utcnow()
            records = await self.commission_repo.list_records(store_id=store_id, limit=None)
            summary = await self.commission_repo.get_store_payout_summary(store_id)

            pdf_bytes = self.pdf_service.generate_payout_statement(
                store_id=store_id,
                records=records,
                summary=summary,
                generated_at=generated_at,
                platform_name=self.platform_name,
                platform_address=self.platform_address,
            )

            return Return.ok(
                PayoutStatementResponseDTO(
                    store_id=store_id,
                    record_count=len(records),
                    pdf_base64=base64.b64encode(pdf_bytes).decode("utf-8"),
                    generated_at=generated_at,
                )
            )

        except Exception as e:
            logger.error(f"Payout statement for store {store_id} failed: {e}")
            return Return.err(
                Error(
                    code="PAYOUT_STATEMENT_FAILED",
                    message=f"Failed to generate payout statement for store {store_id}",
                    reason=str(e),
                )
            )
