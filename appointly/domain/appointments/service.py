"""Appointment service - Business logic for managing booked appointments"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from ...auth import ensure_provider_access, is_admin
from ...database import begin_write, run_in_session
from ...models import APPOINTMENT_STATUSES, Appointment, User
from ...services.audit_service import record_audit
from ..scheduling import slot_grid
from ..scheduling.conflict_checker import appointment_duration
from ..scheduling.exceptions import AppointmentNotFound, InvalidStatus, InvalidStatusTransition
from .repository import AppointmentRepository
from .schemas import AppointmentResponse, CustomerSummary, ServiceSummary

logger = logging.getLogger(__name__)


def check_transition(current: str, requested: str) -> bool:
    """
    Validate a status change and report whether it changes anything.

    Cancelled is terminal: cancelling again is a no-op, anything else is refused.
    Moves among the other statuses are free since they occupy the same window.
    """
    if requested not in APPOINTMENT_STATUSES:
        raise InvalidStatus(requested)

    if current == "cancelled":
        if requested == "cancelled":
            return False
        raise InvalidStatusTransition(
            current, requested, message="Cancelled appointments cannot be reopened"
        )

    return current != requested


def to_response(appointment: Appointment) -> AppointmentResponse:
    duration = appointment_duration(appointment)
    offering = appointment.provider_service

    service = None
    if offering is not None and offering.service is not None:
        service = ServiceSummary(
            id=offering.service_id,
            name=offering.service.name,
            duration=duration,
            price=float(offering.price or 0),
        )

    return AppointmentResponse(
        id=appointment.id,
        providerId=appointment.provider_id,
        providerName=appointment.provider.name if appointment.provider else None,
        date=appointment.date,
        time=appointment.time,
        endTime=slot_grid.format_minutes(slot_grid.to_minutes(appointment.time) + duration),
        duration=duration,
        status=appointment.status,
        notes=appointment.notes,
        customer=CustomerSummary.model_validate(appointment.customer)
        if appointment.customer
        else None,
        service=service,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
    )


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, session_factory: sessionmaker, timeout: Optional[float] = None):
        self.session_factory = session_factory
        self.timeout = timeout

    async def _run(self, work):
        return await run_in_session(self.session_factory, work, self.timeout)

    async def list_appointments(
        self,
        user: User,
        provider_id: Optional[int] = None,
        day: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[AppointmentResponse]:
        """Appointments visible to the user; admins without a provider filter see all"""
        if not (is_admin(user) and provider_id is None):
            provider_id = ensure_provider_access(user, provider_id)
        if status and status != "all" and status not in APPOINTMENT_STATUSES:
            raise InvalidStatus(status)
        filter_day: Optional[date] = slot_grid.parse_date(day) if day else None

        def work(db: Session) -> list[AppointmentResponse]:
            appointments = AppointmentRepository.list_appointments(
                db, provider_id=provider_id, day=filter_day, status=status
            )
            return [to_response(a) for a in appointments]

        return await self._run(work)

    async def get_appointment(self, user: User, appointment_id: int) -> AppointmentResponse:
        def work(db: Session) -> AppointmentResponse:
            appointment = AppointmentRepository.get_appointment(db, appointment_id)
            if not appointment:
                raise AppointmentNotFound(appointment_id)
            ensure_provider_access(user, appointment.provider_id)
            return to_response(appointment)

        return await self._run(work)

    async def update_status(
        self,
        user: User,
        appointment_id: int,
        status: str,
        ip_address: Optional[str] = None,
    ) -> tuple[AppointmentResponse, bool]:
        """Apply a status change; returns the appointment and whether it changed"""

        def work(db: Session):
            begin_write(db)
            appointment = AppointmentRepository.lock_appointment(db, appointment_id)
            if not appointment:
                raise AppointmentNotFound(appointment_id)
            ensure_provider_access(user, appointment.provider_id)

            previous = appointment.status
            changed = check_transition(previous, status)
            if changed:
                AppointmentRepository.update_status(db, appointment, status)
                record_audit(
                    db,
                    appointment.provider_id,
                    f"Appointment {appointment_id} status changed from {previous} to {status}",
                    ip_address=ip_address,
                )
                db.commit()

            refreshed = AppointmentRepository.get_appointment(db, appointment_id)
            return to_response(refreshed), changed

        try:
            response, changed = await self._run(work)
        except InvalidStatusTransition:
            logger.warning(f"⚠️ Refused status change of appointment {appointment_id} to {status}")
            raise

        if changed:
            logger.info(f"✅ Appointment {appointment_id} is now {status}")
        else:
            logger.info(f"ℹ️ Appointment {appointment_id} already {status}, nothing to do")
        return response, changed

    async def cancel_appointment(
        self, user: User, appointment_id: int, ip_address: Optional[str] = None
    ) -> tuple[AppointmentResponse, bool]:
        """Soft cancel; the row stays for history and its window frees up"""
        return await self.update_status(user, appointment_id, "cancelled", ip_address)
