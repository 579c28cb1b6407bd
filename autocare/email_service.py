"""
Unified Email Service using an SMTP server (if configured) or Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

import resend
from mjml import mjml2html as mjml_to_html

from . import config
from .email_templates import (
    appointment_allocated_template,
    appointment_cancelled_template,
    appointment_completed_template,
    appointment_confirmed_template,
    appointment_received_template,
    custom_message_template,
    invoice_ready_template,
    status_changed_template,
)
from .models import Appointment
from .services.notification_service import NotificationKind

logger = logging.getLogger(__name__)

resend.api_key = config.RESEND_API_KEY


class EmailDeliveryError(Exception):
    pass


def open_smtp_connection() -> smtplib.SMTP:
    """Connected SMTP client; use as a context manager so it is always closed"""
    if config.SMTP_PORT == 465:
        return smtplib.SMTP_SSL(
            config.SMTP_HOST, config.SMTP_PORT, context=ssl.create_default_context(), timeout=30
        )

    server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=30)
    if config.SMTP_USE_TLS:
        try:
            server.starttls(context=ssl.create_default_context())
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
    return server


def send_via_smtp(
    to: list[str],
    subject: str,
    html_content: str,
    from_address: str,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """Send email via the configured SMTP server"""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = subject
    msg["From"] = from_address
    msg["To"] = ", ".join(to)
    msg.attach(MIMEText(html_content, "html"))

    for attachment in attachments or []:
        part = MIMEBase("application", "octet-stream")
        part.set_payload(attachment["content"])
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", f'attachment; filename="{attachment["filename"]}"')
        msg.attach(part)

    try:
        with open_smtp_connection() as server:
            if config.SMTP_USERNAME:
                server.login(config.SMTP_USERNAME, config.SMTP_PASSWORD or "")
            server.sendmail(from_address.split("<")[-1].rstrip(">"), to, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ SMTP send failed via {config.SMTP_HOST}: {e}")
        raise EmailDeliveryError(f"SMTP failed: {e}") from e

    logger.info(f"✅ SMTP email sent via {config.SMTP_HOST}")
    return {"id": f"smtp-{datetime.utcnow().timestamp()}", "success": True}


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    # mjml_to_html returns a dict with 'html' and 'errors' keys
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    return str(result)


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """
    Send an email using SMTP (if configured) or Resend (fallback)

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        attachments: Optional list of ``{"filename", "content"}`` dicts with raw bytes

    Returns:
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to
    sender = from_address or config.EMAIL_FROM_ADDRESS

    if config.SMTP_HOST:
        try:
            logger.info(f"📧 Sending email via SMTP: {config.SMTP_HOST}")
            return send_via_smtp(recipients, subject, html_content, sender, attachments)
        except EmailDeliveryError as e:
            if not config.RESEND_API_KEY:
                raise
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not config.RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and no SMTP_HOST")
        raise EmailDeliveryError("Email service not configured")

    email_data = {
        "from": sender,
        "to": recipients,
        "subject": subject,
        "html": html_content,
    }
    if attachments:
        email_data["attachments"] = [
            {"filename": attachment["filename"], "content": list(attachment["content"])}
            for attachment in attachments
        ]

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(email_data)
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {e}") from e

    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return response


# ============================================
# Appointment emails
# ============================================


def recipient_email(appointment: Appointment) -> Optional[str]:
    """Linked customer's email, else the contact email given at booking"""
    if appointment.customer:
        return appointment.customer.email
    return appointment.customer_email


def recipient_name(appointment: Appointment) -> str:
    if appointment.customer and appointment.customer.full_name:
        return appointment.customer.full_name
    return appointment.customer_name or "Valued Customer"


def appointment_details(appointment: Appointment) -> dict:
    return {
        "📅 Date:": appointment.date.strftime("%A, %B %d, %Y"),
        "🕐 Time:": appointment.time.strftime("%I:%M %p"),
        "🚙 Vehicle Type:": appointment.vehicle_type,
        "🔢 Vehicle Number:": appointment.vehicle_number,
        "🔧 Service:": appointment.service_type,
        "📝 Instructions:": appointment.instructions,
        "📊 Progress:": f"{appointment.progress}%" if appointment.progress else None,
    }


def build_appointment_email(
    appointment: Appointment, kind: NotificationKind, note: Optional[str] = None
) -> tuple[str, str]:
    """Subject and MJML body for an appointment notification"""
    name = recipient_name(appointment)
    details = appointment_details(appointment)
    employee_name = appointment.employee.full_name if appointment.employee else None
    company = config.COMPANY_NAME

    if kind == NotificationKind.APPOINTMENT_RECEIVED:
        return (
            "Appointment Confirmation - Pending Approval",
            appointment_received_template(name, details),
        )
    if kind == NotificationKind.APPOINTMENT_CONFIRMED:
        return (
            f"Appointment Approved - {company}",
            appointment_confirmed_template(name, details, employee_name),
        )
    if kind == NotificationKind.APPOINTMENT_ALLOCATED:
        return (
            f"Your Vehicle Service Has Started - {company}",
            appointment_allocated_template(name, details, employee_name),
        )
    if kind == NotificationKind.APPOINTMENT_COMPLETED:
        return f"Service Completed - {company}", appointment_completed_template(name, details)
    if kind == NotificationKind.APPOINTMENT_CANCELLED:
        return f"Appointment Cancelled - {company}", appointment_cancelled_template(name, details)

    status = appointment.status.value
    return (
        f"Appointment Status Update: {status} - {company}",
        status_changed_template(name, details, status, note),
    )


async def send_appointment_notification(
    appointment: Appointment, kind: NotificationKind, note: Optional[str] = None
) -> Optional[dict]:
    to = recipient_email(appointment)
    if not to or not to.strip():
        logger.warning(
            f"⚠️ Cannot send {kind.value} email - no email address for appointment {appointment.id}"
        )
        return None

    subject, mjml_content = build_appointment_email(appointment, kind, note)
    return await send_email(to=to, subject=subject, mjml_content=mjml_content)


async def send_invoice_email(
    to: str,
    customer_name: str,
    invoice_number: str,
    appointment: Appointment,
    pdf_bytes: bytes,
) -> dict:
    return await send_email(
        to=to,
        subject=f"Invoice {invoice_number} - {config.COMPANY_NAME}",
        mjml_content=invoice_ready_template(
            customer_name, invoice_number, appointment_details(appointment)
        ),
        attachments=[{"filename": f"{invoice_number}.pdf", "content": pdf_bytes}],
    )


async def send_custom_email(to: str, message: str) -> dict:
    return await send_email(
        to=to,
        subject=f"Message from {config.COMPANY_NAME}",
        mjml_content=custom_message_template(message),
    )
