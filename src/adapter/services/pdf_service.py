"""ReportLab PDF Generation Service Implementation

Renders store payout statements using the ReportLab library.
"""

from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from src.app.repositories.commission_record_repository import StorePayoutRow
from src.app.services.pdf_service import PdfService
from src.domain.commission_record import CommissionRecord


def _money(currency: str, amount: Decimal) -> str:
    return f"{currency} {amount:,.2f}"


class ReportLabPdfService(PdfService):
    """
    ReportLab implementation of PdfService

    One page header, a per-status summary table and the commission lines.
    """

    def generate_payout_statement(
        self,
        store_id: str,
        records: List[CommissionRecord],
        summary: List[StorePayoutRow],
        generated_at: datetime,
        platform_name: str = "AIO Marketplace",
        platform_address: str = "Colombo, Sri Lanka",
    ) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20 * mm,
            leftMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
        )

        styles = getSampleStyleSheet()
        elements = []
        currency = records[0].currency if records else "LKR"

        title_style = ParagraphStyle(
            "TitleStyle",
            parent=styles["Heading1"],
            fontSize=22,
            spaceAfter=10,
            textColor=colors.HexColor("#2C3E50"),
        )
        subtitle_style = ParagraphStyle(
            "SubtitleStyle",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=colors.HexColor("#16A085"),
            spaceAfter=16,
        )
        header_style = ParagraphStyle(
            "HeaderStyle",
            parent=styles["Normal"],
            fontSize=10,
            textColor=colors.HexColor("#7F8C8D"),
        )

        elements.append(Paragraph(platform_name, title_style))
        elements.append(Paragraph(platform_address, header_style))
        elements.append(Spacer(1, 8 * mm))
        elements.append(Paragraph("STORE PAYOUT STATEMENT", subtitle_style))

        info_table = Table(
            [
                ["Store:", store_id],
                ["Generated:", generated_at.strftime("%Y-%m-%d %H:%M:%S UTC")],
                ["Records:", str(len(records))],
            ],
            colWidths=[40 * mm, 100 * mm],
        )
        info_table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("TEXTCOLOR", (0, 0), (0, -1), colors.HexColor("#7F8C8D")),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        elements.append(info_table)
        elements.append(Spacer(1, 8 * mm))

        # Per-status totals
        summary_data = [["Status", "Count", "Gross", "Commission", "Payout"]]
        for row in summary:
            summary_data.append(
                [
                    row.status.value.upper(),
                    str(row.count),
                    _money(currency, row.total_amount),
                    _money(currency, row.commission_amount),
                    _money(currency, row.store_amount),
                ]
            )
        summary_table = Table(
            summary_data, colWidths=[30 * mm, 20 * mm, 40 * mm, 40 * mm, 40 * mm]
        )
        summary_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2C3E50")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#BDC3C7")),
                ]
            )
        )
        elements.append(summary_table)
        elements.append(Spacer(1, 8 * mm))

        # Commission lines
        line_data = [["Date", "Reference", "Gross", "Rate", "Commission", "Payout", "Status"]]
        for record in records:
            line_data.append(
                [
                    record.created_at.strftime("%Y-%m-%d"),
                    f"{record.type.value}:{record.reference_id}",
                    _money(record.currency, record.total_amount),
                    f"{Decimal(record.commission_rate) * 100:.2f}%",
                    _money(record.currency, record.commission_amount),
                    _money(record.currency, record.store_amount),
                    record.status.value,
                ]
            )
        if len(line_data) == 1:
            line_data.append(["-", "No commission records", "", "", "", "", ""])

        line_table = Table(
            line_data,
            colWidths=[20 * mm, 38 * mm, 26 * mm, 14 * mm, 26 * mm, 26 * mm, 20 * mm],
        )
        line_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2C3E50")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("ALIGN", (2, 1), (-2, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#BDC3C7")),
                    (
                        "ROWBACKGROUNDS",
                        (0, 1),
                        (-1, -1),
                        [colors.white, colors.HexColor("#F8F9F9")],
                    ),
                ]
            )
        )
        elements.append(line_table)
        elements.append(Spacer(1, 12 * mm))

        elements.append(
            Paragraph(
                "<i>Pending amounts are paid out at the next settlement run.</i>",
                ParagraphStyle(
                    "FooterNote",
                    parent=styles["Normal"],
                    fontSize=9,
                    textColor=colors.HexColor("#95A5A6"),
                ),
            )
        )

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        return pdf_bytes
