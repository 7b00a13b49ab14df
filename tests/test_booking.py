"""
Tests for the booking transaction against a real database.
"""

import asyncio
import time
from decimal import Decimal

import pytest

from appointly.domain.catalog.repository import CatalogRepository
from appointly.domain.providers.repository import ProviderRepository
from appointly.domain.scheduling.booking import BookingService
from appointly.domain.scheduling.exceptions import (
    BookingConflict,
    InsufficientAvailability,
    InvalidTimeError,
    OverlapConflict,
    ProviderNotFound,
    ServiceNotAvailableForProvider,
    StorageTimeout,
)
from appointly.domain.scheduling.repository import LedgerRepository
from appointly.models import Appointment, AuditLog, Customer
from appointly.services.notification_service import NotificationDispatcher
from conftest import BOOKING_DAY, make_request


def test_sixty_minute_booking_on_two_open_slots(provider, open_slots, book, db):
    open_slots(provider.id, ["09:00", "09:30"])
    service = CatalogRepository.create_service(db, name="Hour session", duration=60)
    ProviderRepository.add_offering(db, provider.id, service, Decimal("50.00"))

    result = book(provider.slug, "09:00", service.id)

    assert result.status == "scheduled"
    assert result.time == "09:00"
    assert result.end_time == "10:00"
    stored = db.get(Appointment, result.appointment_id)
    assert stored.status == "scheduled"
    assert stored.date == BOOKING_DAY


def test_forty_five_minutes_needs_the_second_slot(provider, open_slots, book):
    open_slots(provider.id, ["09:00"])
    with pytest.raises(InsufficientAvailability) as exc_info:
        book(provider.slug, "09:00", provider.colour_id)
    assert exc_info.value.missing_slots == ["09:30"]


def test_booking_rejected_when_window_tail_not_declared(provider, open_slots, book, db):
    open_slots(provider.id, ["09:00", "09:30"])

    with pytest.raises(InsufficientAvailability) as exc_info:
        book(provider.slug, "09:30", provider.long_id)

    assert "10:00" in exc_info.value.missing_slots
    assert db.query(Appointment).count() == 0


def test_request_inside_confirmed_appointment_conflicts(provider, open_slots, book, db):
    open_slots(provider.id, ["10:00", "10:30", "11:00"])
    first = book(provider.slug, "10:00", provider.cut_id)
    db.get(Appointment, first.appointment_id).status = "confirmed"
    db.commit()

    for service_id in (provider.cut_id, provider.colour_id, None):
        with pytest.raises(OverlapConflict) as exc_info:
            book(provider.slug, "10:15", service_id, email="second@example.com")
        assert exc_info.value.appointment_id == first.appointment_id


def test_cancelled_appointment_frees_the_window(provider, open_slots, book, db):
    open_slots(provider.id, ["10:00"])
    first = book(provider.slug, "10:00", provider.cut_id)

    with pytest.raises(OverlapConflict):
        book(provider.slug, "10:00", provider.cut_id)

    db.get(Appointment, first.appointment_id).status = "cancelled"
    db.commit()

    second = book(provider.slug, "10:00", provider.cut_id)
    assert second.appointment_id != first.appointment_id


def test_service_without_duration_books_one_slot(provider, open_slots, book):
    open_slots(provider.id, ["14:00"])
    result = book(provider.slug, "14:00", provider.default_id)
    assert result.duration == 30
    assert result.end_time == "14:30"


def test_booking_without_service_uses_default_duration(provider, open_slots, book, db):
    open_slots(provider.id, ["14:00"])
    result = book(provider.slug, "2:00 PM")
    assert result.time == "14:00"
    assert db.get(Appointment, result.appointment_id).provider_service_id is None


def test_unknown_provider(book):
    with pytest.raises(ProviderNotFound):
        book("nobody-here", "10:00")


def test_inactive_offering_is_not_bookable(provider, open_slots, book):
    open_slots(provider.id, ["10:00"])
    with pytest.raises(ServiceNotAvailableForProvider):
        book(provider.slug, "10:00", provider.inactive_id)


def test_other_providers_service_is_not_bookable(provider, other_provider, open_slots, book):
    open_slots(provider.id, ["10:00"])
    with pytest.raises(ServiceNotAvailableForProvider):
        book(provider.slug, "10:00", other_provider.cut_id)


def test_invalid_time_is_rejected_before_storage(provider, book):
    with pytest.raises(InvalidTimeError):
        book(provider.slug, "25:00")


def test_availability_is_per_provider(provider, other_provider, open_slots, book):
    open_slots(other_provider.id, ["10:00"])
    with pytest.raises(InsufficientAvailability):
        book(provider.slug, "10:00", provider.cut_id)


def test_returning_customer_is_reused(provider, open_slots, book, db):
    open_slots(provider.id, ["09:00", "09:30"])
    book(provider.slug, "09:00", provider.cut_id)
    book(provider.slug, "09:30", provider.cut_id, name="Jamie C.")

    assert db.query(Customer).count() == 1


def test_booking_advances_ledger_and_writes_audit(provider, open_slots, book, db):
    open_slots(provider.id, ["09:00", "09:30"])
    book(provider.slug, "09:00", provider.cut_id)
    book(provider.slug, "09:30", provider.cut_id)

    assert LedgerRepository.read_version(db, provider.id, BOOKING_DAY) == 2
    actions = [a.action for a in db.query(AuditLog).filter(AuditLog.provider_id == provider.id)]
    assert sum(action.startswith("New appointment booked") for action in actions) == 2


def test_rejected_booking_leaves_ledger_untouched(provider, open_slots, book, db):
    open_slots(provider.id, ["09:00"])
    with pytest.raises(InsufficientAvailability):
        book(provider.slug, "09:00", provider.long_id)

    assert LedgerRepository.read_version(db, provider.id, BOOKING_DAY) == 0


def test_concurrent_identical_bookings_produce_one_appointment(
    provider, open_slots, session_factory, db
):
    open_slots(provider.id, ["10:00", "10:30"])
    service = BookingService(session_factory)

    async def race():
        return await asyncio.gather(
            *(
                service.book(make_request(provider.slug, "10:00", provider.colour_id))
                for _ in range(4)
            ),
            return_exceptions=True,
        )

    results = asyncio.run(race())

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert all(isinstance(f, (BookingConflict, OverlapConflict)) for f in failures)
    assert db.query(Appointment).filter(Appointment.status != "cancelled").count() == 1


def test_concurrent_overlapping_bookings_keep_windows_disjoint(
    provider, open_slots, session_factory, db
):
    open_slots(provider.id, ["09:00", "09:30", "10:00", "10:30"])
    service = BookingService(session_factory)
    starts = ["09:00", "09:30", "10:00"]

    async def race():
        return await asyncio.gather(
            *(
                service.book(
                    make_request(provider.slug, start, provider.long_id, email=f"c{i}@example.com")
                )
                for i, start in enumerate(starts)
            ),
            return_exceptions=True,
        )

    results = asyncio.run(race())

    assert sum(not isinstance(r, Exception) for r in results) == 1
    assert db.query(Appointment).count() == 1


class ExplodingSender:
    def __init__(self):
        self.calls = 0

    async def __call__(self, **kwargs):
        self.calls += 1
        raise RuntimeError("mail provider down")


class SlowSender:
    async def __call__(self, **kwargs):
        await asyncio.sleep(5)
        return {"id": "late"}


def test_notification_failure_does_not_fail_booking(provider, open_slots, session_factory, db):
    open_slots(provider.id, ["10:00"])
    sender = ExplodingSender()
    notifier = NotificationDispatcher(customer_sender=sender, provider_sender=sender, enabled=True)

    result = asyncio.run(
        BookingService(session_factory, notifier=notifier).book(
            make_request(provider.slug, "10:00", provider.cut_id)
        )
    )

    assert sender.calls == 2
    assert result.notifications == {"customer_sent": False, "provider_sent": False}
    assert db.get(Appointment, result.appointment_id).status == "scheduled"


def test_slow_notification_times_out(provider, open_slots, session_factory):
    open_slots(provider.id, ["10:00"])
    notifier = NotificationDispatcher(
        customer_sender=SlowSender(), provider_sender=SlowSender(), timeout=0.1, enabled=True
    )

    started = time.monotonic()
    result = asyncio.run(
        BookingService(session_factory, notifier=notifier).book(
            make_request(provider.slug, "10:00", provider.cut_id)
        )
    )

    assert time.monotonic() - started < 4
    assert result.notifications["customer_sent"] is False


def test_storage_timeout_is_retryable(provider, open_slots):
    open_slots(provider.id, ["10:00"])

    def stalled_factory():
        time.sleep(0.5)
        raise RuntimeError("session should have timed out first")

    service = BookingService(stalled_factory, timeout=0.05)
    with pytest.raises(StorageTimeout) as exc_info:
        asyncio.run(service.book(make_request(provider.slug, "10:00")))
    assert exc_info.value.status_code == 503


def test_timed_out_booking_is_not_committed_later(provider, open_slots, session_factory, db):
    open_slots(provider.id, ["10:00"])
    calls = []

    def slow_commit_factory():
        calls.append(1)
        if len(calls) == 3:  # resolve, customer, then the booking transaction
            time.sleep(0.6)
        return session_factory()

    service = BookingService(slow_commit_factory, timeout=0.2)
    with pytest.raises(StorageTimeout):
        asyncio.run(service.book(make_request(provider.slug, "10:00", provider.cut_id)))

    # asyncio.run has joined the worker thread, so a late commit would be visible now
    assert db.query(Appointment).count() == 0
    assert LedgerRepository.read_version(db, provider.id, BOOKING_DAY) == 0
    db.rollback()

    retried = asyncio.run(
        BookingService(session_factory).book(make_request(provider.slug, "10:00", provider.cut_id))
    )
    assert retried.time == "10:00"
