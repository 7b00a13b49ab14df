"""
Scheduling error taxonomy.

Every error carries an HTTP status and a stable machine-readable code so the
API layer can translate it without inspecting messages.
"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base class for all booking-engine errors"""

    status_code = 400
    code = "scheduling_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidTimeError(SchedulingError):
    code = "invalid_time"


class InvalidDateError(SchedulingError):
    code = "invalid_date"


class InsufficientAvailability(SchedulingError):
    """Requested window is not fully covered by declared-open slots"""

    code = "insufficient_availability"

    def __init__(self, missing_slots: list[str]):
        super().__init__(
            "The selected time slot doesn't have enough availability for this service",
            missing_slots=missing_slots,
        )
        self.missing_slots = missing_slots


class OverlapConflict(SchedulingError):
    """Requested window collides with an existing non-cancelled appointment"""

    status_code = 409
    code = "overlap_conflict"

    def __init__(self, appointment_id: int, start: str, end: str):
        super().__init__(
            "This time slot conflicts with an existing appointment",
            appointment_id=appointment_id,
            start=start,
            end=end,
        )
        self.appointment_id = appointment_id


class BookingConflict(SchedulingError):
    """Lost a race at commit time after passing the pre-checks"""

    status_code = 409
    code = "booking_conflict"

    def __init__(self, message: str = "This time slot was just taken, please try again"):
        super().__init__(message)


class ProviderNotFound(SchedulingError):
    status_code = 404
    code = "provider_not_found"

    def __init__(self, reference: Any):
        super().__init__("Provider not found", provider=reference)


class ServiceNotAvailableForProvider(SchedulingError):
    code = "service_not_available"

    def __init__(self, service_id: Any):
        super().__init__("Service not available for this provider", service_id=service_id)


class SlotAlreadyExists(SchedulingError):
    status_code = 409
    code = "slot_exists"

    def __init__(self, date: str, time: str):
        super().__init__("This time slot is already marked as available", date=date, time=time)


class AvailabilityNotFound(SchedulingError):
    status_code = 404
    code = "availability_not_found"

    def __init__(self, slot_id: int):
        super().__init__("Availability not found", availability_id=slot_id)


class AppointmentNotFound(SchedulingError):
    status_code = 404
    code = "appointment_not_found"

    def __init__(self, appointment_id: int):
        super().__init__("Appointment not found", appointment_id=appointment_id)


class InvalidStatusTransition(SchedulingError):
    status_code = 409
    code = "invalid_status_transition"

    def __init__(self, current: str, requested: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot change appointment status from {current} to {requested}",
            current=current,
            requested=requested,
        )


class StorageTimeout(SchedulingError):
    """Retryable local failure: the database did not answer in time"""

    status_code = 503
    code = "storage_timeout"


class InvalidStatus(SchedulingError):
    code = "invalid_status"

    def __init__(self, status: str):
        super().__init__(f"Unknown appointment status: {status}", status=status)
