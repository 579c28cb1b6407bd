"""
Invoice PDF Generator
Generates branded service invoices for completed appointments
"""

import io
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .. import config
from ..models import Appointment
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)


def make_invoice_number(appointment_id: int, issued_at: Optional[datetime] = None) -> str:
    issued_at = issued_at or datetime.utcnow()
    return f"INV-{appointment_id}-{int(issued_at.timestamp() * 1000)}"


def format_money(amount) -> str:
    return f"${Decimal(str(amount)):,.2f}"


class InvoicePDFGenerator:
    """Generate a one-page service invoice for an appointment"""

    def __init__(
        self,
        appointment: Appointment,
        tasks: list[tuple[str, Decimal]],
        total: Decimal,
        invoice_number: Optional[str] = None,
        issued_at: Optional[datetime] = None,
    ):
        self.appointment = appointment
        self.tasks = tasks
        self.total = total
        self.issued_at = issued_at or datetime.utcnow()
        self.invoice_number = invoice_number or make_invoice_number(appointment.id, self.issued_at)

        # PDF settings
        self.page_width, self.page_height = letter
        self.margin = 0.75 * inch

        # Brand color (indigo)
        self.brand_color = colors.HexColor("#667eea")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f5f7fa")

    @property
    def customer_name(self) -> str:
        if self.appointment.customer:
            return self.appointment.customer.full_name
        return self.appointment.customer_name or "Valued Customer"

    @property
    def customer_email(self) -> Optional[str]:
        if self.appointment.customer:
            return self.appointment.customer.email
        return self.appointment.customer_email

    @property
    def customer_phone(self) -> str:
        if self.appointment.customer and self.appointment.customer.phone:
            return self.appointment.customer.phone
        return self.appointment.customer_phone or "N/A"

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        logger.info(f"📄 Generating invoice {self.invoice_number}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Invoice {self.invoice_number}",
        )

        story = []
        styles = getSampleStyleSheet()

        title_style = ParagraphStyle(
            "InvoiceTitle",
            parent=styles["Heading1"],
            fontSize=22,
            textColor=self.brand_color,
            spaceAfter=4,
            alignment=1,  # Center
        )
        heading_style = ParagraphStyle(
            "InvoiceHeading",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=self.dark_gray,
            spaceAfter=8,
            spaceBefore=16,
        )
        body_style = ParagraphStyle(
            "InvoiceBody",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            leading=14,
        )

        # Header
        story.append(Paragraph(sanitize_string(config.COMPANY_NAME), title_style))
        story.append(Paragraph("INVOICE", ParagraphStyle("Sub", parent=body_style, alignment=1)))
        story.append(Spacer(1, 0.3 * inch))

        # From / Bill To
        parties = Table(
            [
                [
                    Paragraph("<b>From:</b>", body_style),
                    Paragraph("<b>Bill To:</b>", body_style),
                ],
                [
                    Paragraph(
                        "<br/>".join(
                            sanitize_string(line)
                            for line in (
                                config.COMPANY_NAME,
                                config.COMPANY_ADDRESS,
                                config.COMPANY_PHONE,
                                config.COMPANY_EMAIL,
                            )
                        ),
                        body_style,
                    ),
                    Paragraph(
                        "<br/>".join(
                            sanitize_string(line)
                            for line in (
                                self.customer_name,
                                self.customer_email or "N/A",
                                self.customer_phone,
                            )
                        ),
                        body_style,
                    ),
                ],
            ],
            colWidths=[3.5 * inch, 3.5 * inch],
        )
        parties.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        story.append(parties)
        story.append(Spacer(1, 0.3 * inch))

        # Invoice and service details
        details = Table(
            [
                ["Invoice Number:", self.invoice_number],
                ["Invoice Date:", self.issued_at.strftime("%b %d, %Y")],
                ["Service Date:", self.appointment.date.strftime("%b %d, %Y")],
                ["Vehicle:", self.appointment.vehicle_type or "N/A"],
                ["Vehicle Number:", self.appointment.vehicle_number or "N/A"],
                ["Service Type:", self.appointment.service_type],
            ],
            colWidths=[1.6 * inch, 5.4 * inch],
        )
        details.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 10),
                    ("FONT", (1, 0), (1, -1), "Helvetica", 10),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(details)

        # Service breakdown
        story.append(Paragraph("Service Breakdown", heading_style))
        rows = [["Task Description", "Amount"]]
        rows += [[name, format_money(price)] for name, price in self.tasks]
        subtotal_row = len(rows)
        rows += [
            ["Subtotal", format_money(self.total)],
            ["Tax (0%)", format_money(0)],
            ["TOTAL", format_money(self.total)],
        ]

        breakdown = Table(rows, colWidths=[5.0 * inch, 2.0 * inch], repeatRows=1)
        breakdown.setStyle(
            TableStyle(
                [
                    # Header row
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
                    # Task rows
                    ("FONT", (0, 1), (-1, -1), "Helvetica", 10),
                    ("TEXTCOLOR", (0, 1), (-1, -1), self.dark_gray),
                    ("ROWBACKGROUNDS", (0, 1), (-1, subtotal_row - 1), [colors.white, self.light_gray]),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    # Totals
                    ("LINEABOVE", (0, subtotal_row), (-1, subtotal_row), 1, self.dark_gray),
                    ("FONT", (0, -1), (-1, -1), "Helvetica-Bold", 11),
                    ("BACKGROUND", (0, -1), (-1, -1), self.light_gray),
                    ("GRID", (0, 0), (-1, subtotal_row - 1), 0.5, colors.grey),
                    ("LEFTPADDING", (0, 0), (-1, -1), 8),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 8),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(breakdown)

        # Footer
        story.append(Spacer(1, 0.5 * inch))
        story.append(
            Paragraph(
                "<i>Thank you for your business!</i>",
                ParagraphStyle("Footer", parent=body_style, textColor=colors.grey, alignment=1),
            )
        )

        doc.build(story, onFirstPage=self._add_page_number, onLaterPages=self._add_page_number)

        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"✅ Generated invoice PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _add_page_number(self, canvas_obj, doc):
        canvas_obj.setFont("Helvetica", 9)
        canvas_obj.setFillColor(colors.grey)
        canvas_obj.drawRightString(
            self.page_width - self.margin, self.margin / 2, f"Page {canvas_obj.getPageNumber()}"
        )
