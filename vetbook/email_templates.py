"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import FRONTEND_URL
from .utils.sanitization import sanitize_string

# App theme colors - Green/Slate color scheme
THEME = {
    "primary": "#4caf50",
    "primary_dark": "#388e3c",
    "primary_light": "#e8f5e9",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#4caf50",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

LOGO_URL = "https://vetbook.app/logo.png"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{sanitize_string(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header with Logo -->
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-image
              src="{LOGO_URL}"
              alt="VetBook"
              width="140px"
              href="https://vetbook.app"
              padding="0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 40px 40px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              This is an automated message from VetBook. Please do not reply to this email.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_rows(rows: list[tuple[str, Optional[str]]]) -> str:
    """Render label/value pairs as stacked mj-text rows, escaping values"""
    return "\n".join(
        f"""
    <mj-text padding="0 0 6px 0">
      <strong>{label}:</strong> {sanitize_string(str(value)) if value is not None else "N/A"}
    </mj-text>"""
        for label, value in rows
    )


def otp_verification_template(otp: str, ttl_minutes: int, purpose: str) -> str:
    """One-time code for guest booking or account registration"""
    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 24px 0">
      Use the code below to {purpose}.
    </mj-text>

    <mj-text align="center" font-size="14px" color="{THEME['text_muted']}" text-transform="uppercase" letter-spacing="1px" font-weight="600" padding="0 0 12px 0">
      Verification Code
    </mj-text>
    <mj-text align="center" font-size="36px" font-weight="700" color="{THEME['text_primary']}" letter-spacing="8px" font-family="'Courier New', monospace" padding="0 0 24px 0">
      {otp}
    </mj-text>

    <mj-text>
      This code will expire in {ttl_minutes} minutes.
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't request this code, you can safely ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Your Verification Code",
        preview_text=f"Your verification code is {otp}",
        content_sections=content,
    )


def appointment_confirmation_template(details: dict) -> str:
    """Booking confirmation sent with the receipt PDF attached"""
    content = f"""
    <mj-text>
      Thank you {sanitize_string(details['first_name'])} for booking an appointment at
      <strong>{sanitize_string(details['clinic_name'])}</strong>!
    </mj-text>

    {_detail_rows([
        ("Appointment ID", details["appointment_id"]),
        ("Date", details["date"]),
        ("Service", details["service_name"]),
        ("Pet Name", details["pet_name"]),
        ("Clinic Address", details["clinic_address"]),
        ("Notes", details["notes"]),
    ])}

    <mj-text padding="16px 0 0 0">
      We look forward to seeing you and your furry friend! Your receipt is attached.
    </mj-text>
    """

    return get_base_template(
        title="Appointment Confirmation",
        preview_text=f"Your appointment at {details['clinic_name']} is booked",
        content_sections=content,
    )


STATUS_EMAILS = {
    "Confirmed": (
        "Service Confirmed - VetBook",
        "Your Service is Confirmed!",
        "We look forward to seeing you and your furry friend!",
    ),
    "In-progress": (
        "Service In Progress - VetBook",
        "Service is Currently In Progress!",
        "Thank you for your patience while we take care of your furry friend. We will keep you updated on the progress!",
    ),
    "Ready-for-pickup": (
        "Ready for Pickup - VetBook",
        "Your Pet is Ready for Pickup!",
        "Your furry friend is ready to go home. Please come to pick them up at your earliest convenience.",
    ),
    "Canceled": (
        "Appointment Cancelled - VetBook",
        "Your Appointment has been Cancelled",
        "We're sorry to inform you that your appointment has been cancelled. If you have any questions, please contact us.",
    ),
}


def appointment_status_template(status: str, details: dict) -> tuple[str, str]:
    """Return (subject, mjml) for a status update; Completed renders an invoice"""
    if status == "Completed":
        return "Service Completed - VetBook", appointment_completed_template(details)

    subject, title, message = STATUS_EMAILS[status]
    content = f"""
    <mj-text>
      Hi {sanitize_string(details['first_name'])},
    </mj-text>

    <mj-text>
      Update from <strong>{sanitize_string(details['clinic_name'])}</strong>: {message}
    </mj-text>

    {_detail_rows([
        ("Date", details["date"]),
        ("Service", details["service_name"]),
        ("Pet Name", details["pet_name"]),
    ])}
    """

    return subject, get_base_template(
        title=title,
        preview_text=f"{title} - {details['clinic_name']}",
        content_sections=content,
    )


def appointment_completed_template(details: dict) -> str:
    """Invoice-style summary for completed services"""
    content = f"""
    <mj-text align="center">
      Thank you for visiting <strong>{sanitize_string(details['clinic_name'])}</strong>!
    </mj-text>

    <mj-divider border-color="{THEME['border']}" border-width="1px" padding="16px 0" />

    <mj-text font-size="18px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 8px 0">
      Appointment Details
    </mj-text>

    {_detail_rows([
        ("Date &amp; Time", details["date"]),
        ("Service", details["service_name"]),
        ("Pet Name", details["pet_name"]),
        ("Notes", details["notes"]),
    ])}

    <mj-text font-size="18px" font-weight="600" color="{THEME['text_primary']}" padding="16px 0 8px 0">
      Billing Summary
    </mj-text>

    <mj-text font-weight="700">
      Total Amount: {sanitize_string(details['price'])}
    </mj-text>

    <mj-divider border-color="{THEME['border']}" border-width="1px" padding="16px 0" />

    <mj-text align="center" font-size="14px" color="{THEME['text_muted']}">
      📍 {sanitize_string(details['clinic_address'])}<br/>
      If you have any questions, please contact us at <strong>{sanitize_string(details['clinic_email'])}</strong>.
    </mj-text>
    """

    return get_base_template(
        title="🐾 Service Invoice",
        preview_text=f"Service completed at {details['clinic_name']}",
        content_sections=content,
    )


def clinic_follow_up_template(details: dict) -> str:
    """Follow-up reminder sent to the clinic after a clinic-initiated booking"""
    content = f"""
    <mj-text>
      This is a reminder for a follow-up appointment at
      <strong>{sanitize_string(details['clinic_name'])}</strong>.
    </mj-text>

    {_detail_rows([
        ("Appointment ID", details["appointment_id"]),
        ("Owner Name", f"{details['first_name']} {details['last_name']}"),
        ("Pet Name", details["pet_name"]),
        ("Service", details["service_name"]),
        ("Follow-Up Date", details["follow_up_date"]),
        ("Medical Concern", details["medical_concern"]),
        ("Notes", details["notes"]),
    ])}

    <mj-text padding="16px 0 0 0">
      Thank you for providing excellent care to our furry friends!
    </mj-text>
    """

    return get_base_template(
        title="Follow-Up Appointment Reminder",
        preview_text=f"Follow-up for {details['pet_name']} on {details['follow_up_date']}",
        content_sections=content,
    )


def appointment_reminder_template(
    pet_owner_name: str,
    clinic_name: str,
    appointment_date: str,
    appointment_time: str,
) -> str:
    """Upcoming appointment reminder (one day / five hours before)"""
    content = f"""
    <mj-text>
      Hi {sanitize_string(pet_owner_name)}!
    </mj-text>

    <mj-text>
      This is a friendly reminder that you have an appointment scheduled at
      <strong>{sanitize_string(clinic_name)}</strong>.
    </mj-text>

    <mj-text align="center" font-size="16px" color="{THEME['text_primary']}" padding="16px 0 0 0">
      📅 {appointment_date}
    </mj-text>

    <mj-text align="center" font-size="16px" color="{THEME['text_primary']}" padding="0 0 16px 0">
      ⏰ {appointment_time}
    </mj-text>

    <mj-text>
      See you soon! 🐾
    </mj-text>
    """

    return get_base_template(
        title="Appointment Reminder",
        preview_text=f"Reminder: {clinic_name} on {appointment_date} at {appointment_time}",
        content_sections=content,
    )


def owner_welcome_template(first_name: str) -> str:
    """Welcome email after OTP-verified owner registration"""
    content = f"""
    <mj-text>
      Hi {sanitize_string(first_name)},
    </mj-text>

    <mj-text>
      Your account has been verified. You can now book appointments and keep your
      pets' medical history in one place.
    </mj-text>
    """

    return get_base_template(
        title="Welcome to VetBook!",
        preview_text="Your account has been verified",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/login",
        cta_label="Book an Appointment",
    )
