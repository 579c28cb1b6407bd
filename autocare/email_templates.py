"""
MJML Email Templates
Customer-facing appointment emails, compiled to HTML by the email service
"""

from typing import Optional

from .config import COMPANY_EMAIL, COMPANY_NAME, FRONTEND_URL
from .utils.sanitization import sanitize_string, text_to_html

# Indigo/violet color scheme
THEME = {
    "primary": "#667eea",
    "primary_dark": "#764ba2",
    "primary_light": "#eef2ff",
    "background": "#f4f4f4",
    "card_bg": "#ffffff",
    "text_primary": "#1f2937",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
    "success": "#10b981",
    "warning": "#fbbf24",
    "danger": "#ef4444",
    "info": "#1e40af",
}

STATUS_BADGES = {
    "PENDING": ("⏳ PENDING APPROVAL", "warning"),
    "CONFIRMED": ("✅ CONFIRMED", "success"),
    "IN_PROGRESS": ("🔧 IN PROGRESS", "primary"),
    "COMPLETED": ("🏁 COMPLETED", "success"),
    "CANCELLED": ("❌ CANCELLED", "danger"),
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    status: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    badge = ""
    if status in STATUS_BADGES:
        label, color = STATUS_BADGES[status]
        badge = f"""
            <mj-button background-color="{THEME[color]}" color="#ffffff" font-size="13px"
              font-weight="600" border-radius="20px" padding="12px 0 0 0" inner-padding="8px 20px">
              {label}
            </mj-button>
        """

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 40px 32px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="0"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    company = sanitize_string(COMPANY_NAME)
    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="'Segoe UI', Tahoma, Geneva, Verdana, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header -->
        <mj-section background-color="{THEME['primary']}" padding="30px 20px">
          <mj-column>
            <mj-text align="center" font-size="26px" font-weight="600" color="#ffffff" padding="0">
              {title}
            </mj-text>
            {badge}
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="32px 40px 24px 40px">
          <mj-column>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section background-color="#f9fafb" padding="20px 30px">
          <mj-column>
            <mj-text align="center" font-size="14px" color="{THEME['text_muted']}" padding="0">
              <strong>{company}</strong><br/>
              This is an automated message, please do not reply to this email.<br/>
              <a href="mailto:{COMPANY_EMAIL}" style="color: {THEME['primary']}; text-decoration: none;">{COMPANY_EMAIL}</a>
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def appointment_details_block(details: dict) -> str:
    """Boxed list of appointment fields; ``details`` maps label to value"""
    rows = "".join(
        f"<tr><td style=\"padding: 8px 0; font-weight: 600; width: 150px;\">{label}</td>"
        f"<td style=\"padding: 8px 0; color: {THEME['text_muted']};\">{sanitize_string(str(value))}</td></tr>"
        for label, value in details.items()
        if value
    )
    return f"""
    <mj-text font-size="18px" font-weight="600" color="{THEME['text_primary']}" padding="8px 0 0 0">
      📋 Appointment Details
    </mj-text>
    <mj-table container-background-color="#f9fafb" padding="12px 16px" font-size="15px"
      color="{THEME['text_secondary']}">
      {rows}
    </mj-table>
    """


def _info_box(heading: str, body: str) -> str:
    return f"""
    <mj-text container-background-color="{THEME['primary_light']}" color="{THEME['info']}"
      font-size="14px" padding="15px">
      <strong>{heading}</strong><br/>{body}
    </mj-text>
    """


def _greeting(customer_name: str) -> str:
    return f"""
    <mj-text font-size="18px" color="{THEME['text_primary']}">
      Dear {sanitize_string(customer_name)},
    </mj-text>
    """


def appointment_received_template(customer_name: str, details: dict) -> str:
    next_steps = _info_box(
        "ℹ️ What's next?",
        "Our team will review your request and assign a technician. "
        "You will receive another email once it has been confirmed.",
    )
    content = f"""
    {_greeting(customer_name)}
    <mj-text color="{THEME['text_muted']}">
      Thank you for booking an appointment with <strong>{sanitize_string(COMPANY_NAME)}</strong>!
      We have received your request and it is currently pending approval from our staff.
    </mj-text>
    {appointment_details_block(details)}
    {next_steps}
    """
    return get_base_template(
        title="🚗 Appointment Received",
        preview_text="We have received your appointment request",
        content_sections=content,
        status="PENDING",
    )


def appointment_confirmed_template(
    customer_name: str, details: dict, employee_name: Optional[str] = None
) -> str:
    assigned = (
        f"<strong>{sanitize_string(employee_name)}</strong> will be taking care of your vehicle."
        if employee_name
        else "A member of our team will be taking care of your vehicle."
    )
    reminder = _info_box(
        "📌 Before your visit", "Please arrive a few minutes early and bring your vehicle documents."
    )
    content = f"""
    {_greeting(customer_name)}
    <mj-text color="{THEME['text_muted']}">
      Good news! Your appointment has been confirmed. {assigned}
    </mj-text>
    {appointment_details_block(details)}
    {reminder}
    """
    return get_base_template(
        title="✅ Appointment Confirmed",
        preview_text="Your appointment has been confirmed",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="View My Appointments",
        status="CONFIRMED",
    )


def appointment_allocated_template(
    customer_name: str, details: dict, employee_name: Optional[str] = None
) -> str:
    technician = sanitize_string(employee_name) if employee_name else "Our technician"
    content = f"""
    {_greeting(customer_name)}
    <mj-text color="{THEME['text_muted']}">
      Work on your vehicle has started. {technician} is now handling your service and
      you can follow the progress from your dashboard or message them directly in the chat.
    </mj-text>
    {appointment_details_block(details)}
    """
    return get_base_template(
        title="🔧 Service In Progress",
        preview_text="A technician has started working on your vehicle",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="Track Progress",
        status="IN_PROGRESS",
    )


def appointment_completed_template(customer_name: str, details: dict) -> str:
    content = f"""
    {_greeting(customer_name)}
    <mj-text color="{THEME['text_muted']}">
      Your vehicle service is complete. Thank you for choosing
      <strong>{sanitize_string(COMPANY_NAME)}</strong>, we look forward to seeing you again.
    </mj-text>
    {appointment_details_block(details)}
    """
    return get_base_template(
        title="🏁 Service Completed",
        preview_text="Your vehicle service is complete",
        content_sections=content,
        status="COMPLETED",
    )


def appointment_cancelled_template(customer_name: str, details: dict) -> str:
    content = f"""
    {_greeting(customer_name)}
    <mj-text color="{THEME['text_muted']}">
      Your appointment has been cancelled. If this was a mistake or you would like to
      book a new time, you can schedule another appointment at any time.
    </mj-text>
    {appointment_details_block(details)}
    """
    return get_base_template(
        title="Appointment Cancelled",
        preview_text="Your appointment has been cancelled",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/book",
        cta_label="Book Again",
        status="CANCELLED",
    )


def status_changed_template(
    customer_name: str, details: dict, status: str, note: Optional[str] = None
) -> str:
    label = STATUS_BADGES.get(status, (status, "primary"))[0]
    note_section = _info_box("📝 Note from our team", text_to_html(note)) if note else ""
    content = f"""
    {_greeting(customer_name)}
    <mj-text color="{THEME['text_muted']}">
      The status of your appointment has been updated to <strong>{label}</strong>.
    </mj-text>
    {note_section}
    {appointment_details_block(details)}
    """
    return get_base_template(
        title="Appointment Update",
        preview_text=f"Your appointment is now {status}",
        content_sections=content,
        status=status,
    )


def invoice_ready_template(customer_name: str, invoice_number: str, details: dict) -> str:
    content = f"""
    {_greeting(customer_name)}
    <mj-text color="{THEME['text_muted']}">
      Please find attached invoice <strong>{sanitize_string(invoice_number)}</strong> for your
      recent vehicle service. Thank you for your business!
    </mj-text>
    {appointment_details_block(details)}
    """
    return get_base_template(
        title="🧾 Your Invoice",
        preview_text=f"Invoice {invoice_number} is attached",
        content_sections=content,
    )


def custom_message_template(message: str) -> str:
    content = f"""
    <mj-text color="{THEME['text_secondary']}">
      {text_to_html(message)}
    </mj-text>
    """
    return get_base_template(
        title=f"Message from {sanitize_string(COMPANY_NAME)}",
        preview_text="You have a new message",
        content_sections=content,
    )
