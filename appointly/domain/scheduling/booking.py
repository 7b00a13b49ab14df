"""
Booking Transaction

A booking is validated and committed in one database transaction that is
serialized per (provider, date) by the booking ledger:

    lock provider row -> read ledger version -> conflict check
        -> advance ledger (compare-and-swap) -> insert appointment -> audit -> commit

A writer that passed the conflict check concurrently with another finds the
ledger version already moved (or loses the insert of the ledger row on its
unique key) and gets BookingConflict instead of creating an overlap.
Notifications go out after the commit and never affect the outcome.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ...database import begin_write, run_in_session
from ...services.audit_service import record_audit
from ...services.notification_service import BookingDetails, NotificationDispatcher
from ..appointments.repository import AppointmentRepository, CustomerRepository
from ..providers.repository import ProviderRepository
from . import slot_grid
from .conflict_checker import check_booking
from .exceptions import (
    BookingConflict,
    ProviderNotFound,
    SchedulingError,
    ServiceNotAvailableForProvider,
)
from .repository import LedgerRepository

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "Standard appointment"


@dataclass
class BookingRequest:
    provider_slug: str
    date: Union[str, date]
    time: str
    customer_name: str
    customer_email: str
    customer_phone: str
    service_id: Optional[int] = None
    notes: Optional[str] = None
    ip_address: Optional[str] = None


@dataclass
class BookingResult:
    appointment_id: int
    provider_id: int
    date: date
    time: str
    end_time: str
    duration: int
    status: str = "scheduled"
    notifications: dict = field(default_factory=dict)
    details: Optional[BookingDetails] = None


@dataclass(frozen=True)
class _ResolvedBooking:
    """Plain snapshot of what the booking refers to, safe to use outside the session"""

    provider_id: int
    provider_name: str
    provider_email: Optional[str]
    provider_service_id: Optional[int]
    service_name: str
    duration: int
    price: Optional[Decimal]


def format_date_label(day: date) -> str:
    return f"{day:%B} {day.day}, {day.year}"


def format_price(price: Optional[Decimal]) -> str:
    if price is None:
        return ""
    return f"${Decimal(price):.2f}"


class BookingService:
    """Validates and commits public bookings"""

    def __init__(
        self,
        session_factory: sessionmaker,
        notifier: Optional[NotificationDispatcher] = None,
        timeout: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.timeout = timeout

    async def _run(self, work):
        return await run_in_session(self.session_factory, work, self.timeout)

    async def book(self, request: BookingRequest, notify: bool = True) -> BookingResult:
        """
        Validate and commit one booking.

        With notify=False the emails are left to the caller, which passes the
        result to notify() once the response is on its way.
        """
        day = slot_grid.parse_date(request.date)
        start = slot_grid.parse_time(request.time)

        logger.info(
            f"📥 Booking request: provider={request.provider_slug} date={day} time={start} "
            f"service={request.service_id}"
        )

        resolved = await self._run(
            lambda db: self._resolve(db, request.provider_slug, request.service_id)
        )
        customer_id = await self._run(lambda db: self._find_or_create_customer(db, request))
        appointment_id, window = await self._run(
            lambda db: self._commit(db, resolved, customer_id, day, start, request)
        )

        logger.info(
            f"✅ Appointment {appointment_id} booked for provider {resolved.provider_id} "
            f"on {day} {window.start}-{window.end}"
        )

        result = BookingResult(
            appointment_id=appointment_id,
            provider_id=resolved.provider_id,
            date=day,
            time=window.start,
            end_time=window.end,
            duration=window.duration,
            details=BookingDetails(
                appointment_id=appointment_id,
                date_label=format_date_label(day),
                time_label=slot_grid.format_time_12h(window.start),
                provider_name=resolved.provider_name,
                provider_email=resolved.provider_email,
                service_name=resolved.service_name,
                duration=window.duration,
                price=format_price(resolved.price),
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                customer_phone=request.customer_phone,
            ),
        )

        if notify:
            result.notifications = await self.notify(result)
        return result

    async def notify(self, result: BookingResult) -> dict:
        """Send the booking emails; never raises"""
        if self.notifier is None or result.details is None:
            return {}
        return await self.notifier.dispatch_booking(result.details)

    @staticmethod
    def _resolve(db: Session, provider_slug: str, service_id: Optional[int]) -> _ResolvedBooking:
        provider = ProviderRepository.get_provider_by_slug(db, provider_slug)
        if not provider:
            raise ProviderNotFound(provider_slug)

        if service_id is None:
            return _ResolvedBooking(
                provider_id=provider.id,
                provider_name=provider.name,
                provider_email=provider.user.email if provider.user else None,
                provider_service_id=None,
                service_name=DEFAULT_SERVICE_NAME,
                duration=slot_grid.resolve_duration(None),
                price=None,
            )

        offering = ProviderRepository.get_active_offering(db, provider.id, service_id)
        if not offering:
            raise ServiceNotAvailableForProvider(service_id)

        return _ResolvedBooking(
            provider_id=provider.id,
            provider_name=provider.name,
            provider_email=provider.user.email if provider.user else None,
            provider_service_id=offering.id,
            service_name=offering.service.name,
            duration=slot_grid.resolve_duration(offering.service.duration),
            price=offering.price,
        )

    @staticmethod
    def _find_or_create_customer(db: Session, request: BookingRequest) -> int:
        customer = CustomerRepository.find_customer(
            db, request.customer_email, request.customer_phone
        )
        if customer:
            return customer.id

        begin_write(db)
        customer = CustomerRepository.find_customer(
            db, request.customer_email, request.customer_phone
        )
        if customer:
            db.rollback()
            return customer.id

        try:
            customer = CustomerRepository.create_customer(
                db, request.customer_name, request.customer_email, request.customer_phone
            )
            logger.info(f"🆕 Created customer {customer.id} ({request.customer_email})")
            return customer.id
        except IntegrityError:
            # Another booking created the same customer first
            db.rollback()
            customer = CustomerRepository.find_customer(
                db, request.customer_email, request.customer_phone
            )
            if customer is None:
                raise
            return customer.id

    @staticmethod
    def _commit(
        db: Session,
        resolved: _ResolvedBooking,
        customer_id: int,
        day: date,
        start: str,
        request: BookingRequest,
    ):
        provider_id = resolved.provider_id
        try:
            begin_write(db)
            if ProviderRepository.lock_provider(db, provider_id) is None:
                raise ProviderNotFound(provider_id)

            version = LedgerRepository.read_version(db, provider_id, day)
            window = check_booking(db, provider_id, day, start, resolved.duration)

            if not LedgerRepository.advance(db, provider_id, day, version):
                logger.warning(
                    f"⚠️ Ledger moved past version {version} for provider {provider_id} on {day}"
                )
                raise BookingConflict()

            appointment = AppointmentRepository.create_appointment(
                db,
                provider_id=provider_id,
                customer_id=customer_id,
                day=day,
                time=window.start,
                provider_service_id=resolved.provider_service_id,
                notes=request.notes,
                duration=window.duration,
            )

            record_audit(
                db,
                provider_id,
                f"New appointment booked for {day.isoformat()} at {window.start}",
                details={
                    "appointment_id": appointment.id,
                    "customer_id": customer_id,
                    "service": resolved.service_name,
                    "duration": window.duration,
                },
                ip_address=request.ip_address,
            )

            appointment_id = appointment.id
            db.commit()
            return appointment_id, window
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"⚠️ Concurrent booking won for provider {provider_id} on {day}: {e}")
            raise BookingConflict() from e
        except SchedulingError:
            db.rollback()
            raise
