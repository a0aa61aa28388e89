from .unit_of_work import UnitOfWork
from .notification_service import NotificationService
from .pdf_service import PdfService

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "PdfService",
]
