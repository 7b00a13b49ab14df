"""
Conflict Checker

Decides whether a window [start, start + duration) can be booked for a provider
on a given day:

1. every grid slot the window touches must have been declared open, and
2. the window must not intersect the window of any non-cancelled appointment,
   where each existing appointment spans its own service duration.

The pure functions work on plain values so they can be reused for the public
slot listing; check_booking() loads the day's state from the database.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models import Appointment
from ..appointments.repository import AppointmentRepository
from ..availability.repository import AvailabilityRepository
from . import slot_grid
from .exceptions import InsufficientAvailability, OverlapConflict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingWindow:
    start: str
    duration: int

    @property
    def start_minutes(self) -> int:
        return slot_grid.to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration

    @property
    def end(self) -> str:
        return slot_grid.format_minutes(self.end_minutes)


@dataclass(frozen=True)
class OccupiedWindow:
    appointment_id: int
    window: BookingWindow


def make_window(start: str, duration_minutes: Optional[int]) -> BookingWindow:
    return BookingWindow(
        start=slot_grid.parse_time(start), duration=slot_grid.resolve_duration(duration_minutes)
    )


def appointment_duration(appointment: Appointment) -> int:
    """
    Duration of an existing appointment.

    The minutes stored at booking time win, so later catalog edits never move an
    existing window. Rows without a stored duration fall back to their service,
    then to the default.
    """
    if appointment.duration:
        return appointment.duration
    offering = appointment.provider_service
    service = offering.service if offering is not None else None
    return slot_grid.resolve_duration(service.duration if service is not None else None)


def occupied_windows(appointments: Iterable[Appointment]) -> list[OccupiedWindow]:
    return [
        OccupiedWindow(
            appointment_id=appt.id,
            window=make_window(appt.time, appointment_duration(appt)),
        )
        for appt in appointments
        if appt.status != "cancelled"
    ]


def check_window(
    declared_times: Iterable[str],
    occupied: Iterable[OccupiedWindow],
    window: BookingWindow,
) -> BookingWindow:
    """Raise the first rejection reason for the window, or return it unchanged"""
    declared = {slot_grid.parse_time(t) for t in declared_times}

    required = slot_grid.covering_slots(window.start, window.duration)
    missing = [slot for slot in required if slot not in declared]
    if missing:
        raise InsufficientAvailability(missing)

    for existing in occupied:
        other = existing.window
        if slot_grid.window_overlaps(
            window.start_minutes, window.end_minutes, other.start_minutes, other.end_minutes
        ):
            raise OverlapConflict(existing.appointment_id, other.start, other.end)

    return window


def open_slots(declared_times: Iterable[str], occupied: Iterable[OccupiedWindow]) -> list[str]:
    """Declared slots whose start is not inside any occupied window"""
    windows = [o.window for o in occupied]
    result = []
    for time in slot_grid.sort_times(declared_times):
        minutes = slot_grid.to_minutes(time)
        if not any(w.start_minutes <= minutes < w.end_minutes for w in windows):
            result.append(time)
    return result


def bookable_start_times(
    declared_times: Iterable[str],
    occupied: Iterable[OccupiedWindow],
    duration_minutes: Optional[int],
) -> list[str]:
    """Declared slot times at which a service of this duration passes the full check"""
    declared = slot_grid.sort_times(declared_times)
    occupied = list(occupied)
    bookable = []
    for time in declared:
        try:
            check_window(declared, occupied, make_window(time, duration_minutes))
        except (InsufficientAvailability, OverlapConflict):
            continue
        bookable.append(time)
    return bookable


def load_day(db: Session, provider_id: int, day: date) -> tuple[list[str], list[OccupiedWindow]]:
    """Declared slot times and occupied windows of one provider day"""
    declared = [slot.time for slot in AvailabilityRepository.list_slots(db, provider_id, day)]
    appointments = AppointmentRepository.list_by_provider_and_date(db, provider_id, day)
    return declared, occupied_windows(appointments)


def check_booking(
    db: Session, provider_id: int, day: date, start: str, duration_minutes: Optional[int]
) -> BookingWindow:
    window = make_window(start, duration_minutes)
    declared, occupied = load_day(db, provider_id, day)
    try:
        return check_window(declared, occupied, window)
    except (InsufficientAvailability, OverlapConflict) as e:
        logger.info(
            f"🚫 Booking rejected for provider {provider_id} on {day} at {window.start}: {e.code}"
        )
        raise
