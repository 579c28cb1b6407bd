"""Invoice service - Builds invoice PDFs and optionally mails them to the customer"""

import base64
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import User
from ...services.invoice_pdf_generator import InvoicePDFGenerator
from ...services.notification_service import NotificationQueue
from ...shared.errors import NotFoundError, PermissionDeniedError, ValidationError
from ..appointments import policies
from ..appointments.repository import AppointmentRepository
from .schemas import GenerateInvoiceRequest

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, db: Session, notifications: Optional[NotificationQueue] = None):
        self.db = db
        self.appointments = AppointmentRepository()
        self.notifications = notifications or NotificationQueue()

    def generate_invoice(self, data: GenerateInvoiceRequest, user: User) -> tuple[str, bytes]:
        """Render the invoice and return ``(invoice_number, pdf_bytes)``"""
        if not policies.is_staff(user):
            raise PermissionDeniedError("Staff access required")

        appointment = self.appointments.get_by_id(self.db, data.appointmentId)
        if not appointment:
            raise NotFoundError(f"Appointment not found with id: {data.appointmentId}")

        generator = InvoicePDFGenerator(
            appointment,
            [(line.taskName, line.price) for line in data.taskBreakdown],
            data.totalPrice,
        )
        if not generator.customer_email:
            raise ValidationError("Customer email not found for this appointment")

        pdf_bytes = generator.generate()

        if data.sendToCustomer:
            self.notifications.enqueue(
                "send_invoice_email_task",
                appointment.id,
                generator.invoice_number,
                generator.customer_email,
                generator.customer_name,
                base64.b64encode(pdf_bytes).decode("ascii"),
            )
            logger.info(
                f"📧 Invoice {generator.invoice_number} queued for {generator.customer_email}"
            )

        return generator.invoice_number, pdf_bytes
