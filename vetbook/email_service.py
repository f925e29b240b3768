"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, OTP_TTL_MINUTES, RESEND_API_KEY
from .email_templates import (
    appointment_confirmation_template,
    appointment_reminder_template,
    appointment_status_template,
    clinic_follow_up_template,
    otp_verification_template,
    owner_welcome_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email could not be compiled or handed to the provider"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a result object/dict with 'html' and 'errors'
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        if hasattr(result, "html"):
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return result.html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        attachments: Optional list of {"filename", "content"} dicts with raw bytes

    Returns:
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)

    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        email_data = {
            "from": sender,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }

        if attachments:
            # Resend expects attachment content as a list of byte values
            email_data["attachments"] = [
                {"filename": attachment["filename"], "content": list(attachment["content"])}
                for attachment in attachments
            ]

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built Emails for Appointment Events
# ============================================


async def send_otp_email(to: str, otp: str, purpose: str = "confirm your booking") -> dict:
    """Send the one-time code for guest booking or registration"""
    mjml_content = otp_verification_template(otp, OTP_TTL_MINUTES, purpose)
    return await send_email(
        to=to,
        subject="Your OTP Code - VetBook",
        mjml_content=mjml_content,
    )


async def send_appointment_confirmation(
    to: str, details: dict, receipt_pdf: Optional[bytes] = None
) -> dict:
    """Send booking confirmation with the receipt PDF attached"""
    attachments = None
    if receipt_pdf:
        attachments = [{"filename": "receipt.pdf", "content": receipt_pdf}]

    return await send_email(
        to=to,
        subject="Appointment Confirmation - VetBook",
        mjml_content=appointment_confirmation_template(details),
        attachments=attachments,
    )


async def send_status_update_email(
    to: str, status: str, details: dict, receipt_pdf: Optional[bytes] = None
) -> dict:
    """Notify the participant that their appointment changed state"""
    subject, mjml_content = appointment_status_template(status, details)
    attachments = None
    if receipt_pdf:
        attachments = [{"filename": "receipt.pdf", "content": receipt_pdf}]

    return await send_email(
        to=to,
        subject=subject,
        mjml_content=mjml_content,
        attachments=attachments,
    )


async def send_clinic_follow_up_email(
    to: str, details: dict, receipt_pdf: Optional[bytes] = None
) -> dict:
    """Follow-up reminder addressed to the clinic after a clinic-initiated booking"""
    attachments = None
    if receipt_pdf:
        attachments = [{"filename": "appointment.pdf", "content": receipt_pdf}]

    return await send_email(
        to=to,
        subject="Follow-Up Appointment Reminder",
        mjml_content=clinic_follow_up_template(details),
        attachments=attachments,
    )


async def send_appointment_reminder(
    to: str,
    pet_owner_name: str,
    clinic_name: str,
    appointment_date: str,
    appointment_time: str,
) -> dict:
    mjml_content = appointment_reminder_template(
        pet_owner_name=pet_owner_name,
        clinic_name=clinic_name,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
    )
    return await send_email(
        to=to,
        subject="🐾 Appointment Reminder",
        mjml_content=mjml_content,
    )


async def send_owner_welcome_email(to: str, first_name: str) -> dict:
    return await send_email(
        to=to,
        subject="Welcome to VetBook",
        mjml_content=owner_welcome_template(first_name),
    )
