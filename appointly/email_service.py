"""
Email Service using Resend
Compiles MJML templates to HTML and delivers booking emails
"""

import asyncio
import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    appointment_confirmation_template,
    provider_booking_notification_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # Newer releases return an object with .html/.errors, older ones a dict
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        if html is not None:
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        email_data = {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
        # The Resend SDK is blocking
        response = await asyncio.to_thread(resend.Emails.send, email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def send_appointment_confirmation(
    to: str,
    customer_name: str,
    provider_name: str,
    service_name: str,
    date_label: str,
    time_label: str,
    duration: int,
    price: str,
) -> dict:
    """Send booking confirmation to the customer"""
    mjml_content = appointment_confirmation_template(
        customer_name=customer_name,
        provider_name=provider_name,
        service_name=service_name,
        date_label=date_label,
        time_label=time_label,
        duration=duration,
        price=price,
    )
    return await send_email(
        to=to,
        subject=f"Appointment Confirmation - {provider_name}",
        mjml_content=mjml_content,
    )


async def send_provider_booking_notification(
    to: str,
    provider_name: str,
    customer_name: str,
    customer_email: str,
    customer_phone: str,
    service_name: str,
    date_label: str,
    time_label: str,
    duration: int,
) -> dict:
    """Notify the provider of a new booking"""
    mjml_content = provider_booking_notification_template(
        provider_name=provider_name,
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        service_name=service_name,
        date_label=date_label,
        time_label=time_label,
        duration=duration,
    )
    return await send_email(
        to=to,
        subject="New Appointment Scheduled",
        mjml_content=mjml_content,
    )
