"""Invoice router - PDF invoice generation for staff"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationQueue, get_notification_queue
from .schemas import GenerateInvoiceRequest
from .service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def get_invoice_service(
    db: Session = Depends(get_db),
    notifications: NotificationQueue = Depends(get_notification_queue),
) -> InvoiceService:
    return InvoiceService(db, notifications)


@router.post("/generate")
async def generate_invoice(
    data: GenerateInvoiceRequest,
    current_user: User = Depends(get_current_user),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Return the invoice PDF; with ``sendToCustomer`` it is also emailed"""
    invoice_number, pdf_bytes = service.generate_invoice(data, current_user)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice_number}.pdf"'},
    )
