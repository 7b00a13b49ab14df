"""
Tests for appointment status changes and the dashboard listing.
"""

import asyncio

import pytest
from fastapi import HTTPException

from appointly.domain.appointments.service import AppointmentService, check_transition
from appointly.domain.scheduling.exceptions import (
    AppointmentNotFound,
    InvalidStatus,
    InvalidStatusTransition,
    OverlapConflict,
)
from appointly.models import Appointment, AuditLog, User


@pytest.fixture
def service(session_factory):
    return AppointmentService(session_factory)


@pytest.fixture
def provider_user(db, provider) -> User:
    user = db.get(User, provider.user_id)
    assert user.provider is not None
    return user


@pytest.fixture
def booked(provider, open_slots, book):
    open_slots(provider.id, ["10:00", "10:30"])
    return book(provider.slug, "10:00", provider.colour_id)


def test_check_transition():
    assert check_transition("scheduled", "confirmed") is True
    assert check_transition("confirmed", "completed") is True
    assert check_transition("completed", "scheduled") is True
    assert check_transition("confirmed", "confirmed") is False
    assert check_transition("cancelled", "cancelled") is False

    with pytest.raises(InvalidStatusTransition):
        check_transition("cancelled", "scheduled")
    with pytest.raises(InvalidStatus):
        check_transition("scheduled", "no-show")


def test_confirm_appointment(service, provider_user, booked, db):
    response, changed = asyncio.run(
        service.update_status(provider_user, booked.appointment_id, "confirmed")
    )

    assert changed is True
    assert response.status == "confirmed"
    assert response.endTime == "10:45"
    assert response.customer.email == "jamie@example.com"
    assert db.query(AuditLog).filter(AuditLog.action.like("%from scheduled to confirmed")).count() == 1


def test_cancel_is_idempotent(service, provider_user, booked):
    _, first = asyncio.run(service.cancel_appointment(provider_user, booked.appointment_id))
    response, second = asyncio.run(service.cancel_appointment(provider_user, booked.appointment_id))

    assert first is True
    assert second is False
    assert response.status == "cancelled"


def test_cancelled_cannot_be_reopened(service, provider_user, booked, db):
    asyncio.run(service.cancel_appointment(provider_user, booked.appointment_id))

    with pytest.raises(InvalidStatusTransition) as exc_info:
        asyncio.run(service.update_status(provider_user, booked.appointment_id, "scheduled"))

    assert exc_info.value.status_code == 409
    assert db.get(Appointment, booked.appointment_id).status == "cancelled"


def test_cancelling_frees_the_window_for_a_new_booking(service, provider_user, booked, provider, book):
    with pytest.raises(OverlapConflict):
        book(provider.slug, "10:30", provider.cut_id, email="late@example.com")

    asyncio.run(service.cancel_appointment(provider_user, booked.appointment_id))

    rebooked = book(provider.slug, "10:30", provider.cut_id, email="late@example.com")
    assert rebooked.time == "10:30"


def test_completed_appointment_still_blocks_its_window(service, provider_user, booked, provider, book):
    asyncio.run(service.update_status(provider_user, booked.appointment_id, "completed"))

    with pytest.raises(OverlapConflict):
        book(provider.slug, "10:00", provider.cut_id, email="other@example.com")


def test_other_provider_cannot_change_status(service, db, booked, other_provider):
    outsider = db.get(User, other_provider.user_id)
    assert outsider.provider is not None

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(service.update_status(outsider, booked.appointment_id, "confirmed"))

    assert exc_info.value.status_code == 403


def test_unknown_appointment(service, provider_user):
    with pytest.raises(AppointmentNotFound):
        asyncio.run(service.get_appointment(provider_user, 9999))


def test_listing_is_scoped_to_the_provider(
    service, provider_user, admin_user, booked, other_provider, open_slots, book
):
    open_slots(other_provider.id, ["14:00"])
    book(other_provider.slug, "14:00", other_provider.cut_id)

    own = asyncio.run(service.list_appointments(provider_user))
    everything = asyncio.run(service.list_appointments(admin_user))
    cancelled = asyncio.run(service.list_appointments(provider_user, status="cancelled"))

    assert [a.id for a in own] == [booked.appointment_id]
    assert len(everything) == 2
    assert cancelled == []


def test_listing_rejects_unknown_status(service, provider_user):
    with pytest.raises(InvalidStatus):
        asyncio.run(service.list_appointments(provider_user, status="pending"))
