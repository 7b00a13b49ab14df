"""
Booking Notification Service
Fires the customer confirmation and the provider notification after a booking
commits. Delivery is best effort: failures are logged and reported, never raised.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ..config import NOTIFICATION_TIMEOUT_SECONDS, NOTIFICATIONS_ENABLED
from ..utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingDetails:
    appointment_id: int
    date_label: str  # e.g. "March 4, 2025"
    time_label: str  # e.g. "9:30 AM"
    provider_name: str
    provider_email: Optional[str]
    service_name: str
    duration: int
    price: str
    customer_name: str
    customer_email: str
    customer_phone: str


SendFunc = Callable[..., Awaitable[dict]]


class NotificationDispatcher:
    """Sends booking emails; every send is bounded by a timeout and never raises"""

    def __init__(
        self,
        customer_sender: Optional[SendFunc] = None,
        provider_sender: Optional[SendFunc] = None,
        timeout: float = NOTIFICATION_TIMEOUT_SECONDS,
        enabled: bool = NOTIFICATIONS_ENABLED,
    ):
        if customer_sender is None or provider_sender is None:
            from ..email_service import (
                send_appointment_confirmation,
                send_provider_booking_notification,
            )

            customer_sender = customer_sender or send_appointment_confirmation
            provider_sender = provider_sender or send_provider_booking_notification

        self._customer_sender = customer_sender
        self._provider_sender = provider_sender
        self._timeout = timeout
        self._enabled = enabled

    async def _deliver(self, notification_type: str, to: Optional[str], send, **kwargs) -> bool:
        if not self._enabled:
            logger.debug(f"ℹ️ Notifications disabled, skipping {notification_type}")
            return False
        if not to:
            logger.debug(f"⚠️ No email address for {notification_type} notification")
            return False

        try:
            logger.info(f"📧 Sending {notification_type} email to {to}")
            await asyncio.wait_for(send(to=to, **kwargs), timeout=self._timeout)
            logger.info(f"✅ {notification_type} email sent successfully to {to}")
            return True
        except asyncio.TimeoutError:
            logger.error(f"⏰ {notification_type} email to {to} timed out after {self._timeout}s")
        except Exception as e:
            logger.error(f"❌ Failed to send {notification_type} email to {to}: {e}")
        return False

    async def notify_customer(self, email: str, details: BookingDetails) -> bool:
        return await self._deliver(
            "booking_confirmation",
            email,
            self._customer_sender,
            customer_name=sanitize_string(details.customer_name),
            provider_name=sanitize_string(details.provider_name),
            service_name=sanitize_string(details.service_name),
            date_label=details.date_label,
            time_label=details.time_label,
            duration=details.duration,
            price=details.price,
        )

    async def notify_provider(self, email: Optional[str], details: BookingDetails) -> bool:
        return await self._deliver(
            "provider_booking",
            email,
            self._provider_sender,
            provider_name=sanitize_string(details.provider_name),
            customer_name=sanitize_string(details.customer_name),
            customer_email=sanitize_string(details.customer_email),
            customer_phone=sanitize_string(details.customer_phone),
            service_name=sanitize_string(details.service_name),
            date_label=details.date_label,
            time_label=details.time_label,
            duration=details.duration,
        )

    async def dispatch_booking(self, details: BookingDetails) -> dict:
        """Send both booking emails concurrently"""
        customer_sent, provider_sent = await asyncio.gather(
            self.notify_customer(details.customer_email, details),
            self.notify_provider(details.provider_email, details),
        )
        if not (customer_sent and provider_sent):
            logger.warning(
                f"⚠️ Appointment {details.appointment_id} booked but notifications incomplete "
                f"(customer={customer_sent}, provider={provider_sent})"
            )
        return {"customer_sent": customer_sent, "provider_sent": provider_sent}


def get_notification_dispatcher() -> NotificationDispatcher:
    """Dependency returning the default email dispatcher"""
    return NotificationDispatcher()
