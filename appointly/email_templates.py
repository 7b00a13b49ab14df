"""
MJML Email Templates
Booking emails rendered with MJML for responsive, cross-client compatibility
"""

from typing import Optional

from .config import FRONTEND_URL, SHOP_ADDRESS, SHOP_EMAIL, SHOP_NAME, SHOP_PHONE

# Slate/indigo palette shared by every template
THEME = {
    "primary": "#4f46e5",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}


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

    contact_line = " · ".join(part for part in (SHOP_ADDRESS, SHOP_PHONE, SHOP_EMAIL) if part)

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 0 40px">
          <mj-column>
            <mj-text font-size="20px" font-weight="700" color="{THEME['text_primary']}" padding="0 0 24px 0">
              {SHOP_NAME}
            </mj-text>
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
              {contact_line}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details_block(rows: list[tuple[str, str]]) -> str:
    lines = "<br/>".join(f"<strong>{label}:</strong> {value}" for label, value in rows if value)
    return f"""
    <mj-text font-size="15px" color="{THEME['text_primary']}" padding="16px 0">
      {lines}
    </mj-text>
    """


def appointment_confirmation_template(
    customer_name: str,
    provider_name: str,
    service_name: str,
    date_label: str,
    time_label: str,
    duration: int,
    price: str,
) -> str:
    """Booking confirmation for the customer"""
    details = _details_block(
        [
            ("Date", date_label),
            ("Time", time_label),
            ("Service", service_name),
            ("Duration", f"{duration} minutes"),
            ("Price", price),
            ("Location", SHOP_ADDRESS),
        ]
    )
    contact = f" at {SHOP_PHONE}" if SHOP_PHONE else ""

    content = f"""
    <mj-text>
      Hi {customer_name},
    </mj-text>

    <mj-text>
      Thank you for booking with <strong>{provider_name}</strong>! Your appointment is scheduled.
    </mj-text>

    {details}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Need to reschedule or cancel? Please contact us{contact} at least 24 hours before your appointment.
    </mj-text>
    """

    return get_base_template(
        title="Appointment Confirmed",
        preview_text=f"{service_name} on {date_label} at {time_label}",
        content_sections=content,
    )


def provider_booking_notification_template(
    provider_name: str,
    customer_name: str,
    customer_email: str,
    customer_phone: str,
    service_name: str,
    date_label: str,
    time_label: str,
    duration: int,
) -> str:
    """New booking notification for the provider"""
    details = _details_block(
        [
            ("Date", date_label),
            ("Time", time_label),
            ("Customer", customer_name),
            ("Service", service_name),
            ("Duration", f"{duration} minutes"),
        ]
    )

    content = f"""
    <mj-text>
      Hello {provider_name},
    </mj-text>

    <mj-text>
      A new appointment has been scheduled with you.
    </mj-text>

    {details}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      📧 {customer_email}<br/>
      📱 {customer_phone}
    </mj-text>
    """

    return get_base_template(
        title="New Appointment Scheduled",
        preview_text=f"{customer_name} booked {service_name} on {date_label}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/dashboard",
        cta_label="Open Dashboard",
    )
