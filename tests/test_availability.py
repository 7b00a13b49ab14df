"""
Tests for declaring and removing open slots.
"""

import asyncio

import pytest
from fastapi import HTTPException

from appointly.domain.availability.service import AvailabilityService, normalize_slot_time
from appointly.domain.scheduling.exceptions import (
    AvailabilityNotFound,
    InsufficientAvailability,
    InvalidTimeError,
    SlotAlreadyExists,
)
from appointly.models import AuditLog, Availability, User
from conftest import BOOKING_DAY


@pytest.fixture
def service(session_factory):
    return AvailabilityService(session_factory)


@pytest.fixture
def provider_user(db, provider) -> User:
    user = db.get(User, provider.user_id)
    assert user.provider is not None
    return user


def test_normalize_slot_time():
    assert normalize_slot_time("9:00") == "09:00"
    assert normalize_slot_time("1:30 PM") == "13:30"
    with pytest.raises(InvalidTimeError):
        normalize_slot_time("09:15")


def test_create_slot_defaults_to_own_provider(service, provider, provider_user, db):
    slot = asyncio.run(service.create_slot(provider_user, BOOKING_DAY.isoformat(), "9:30"))

    assert slot.providerId == provider.id
    assert slot.time == "09:30"
    assert db.query(Availability).count() == 1
    assert db.query(AuditLog).filter(AuditLog.action.like("Added availability%")).count() == 1


def test_duplicate_slot_is_rejected(service, provider_user):
    asyncio.run(service.create_slot(provider_user, BOOKING_DAY.isoformat(), "10:00"))
    with pytest.raises(SlotAlreadyExists):
        asyncio.run(service.create_slot(provider_user, BOOKING_DAY.isoformat(), "10:00"))


def test_off_grid_slot_is_rejected(service, provider_user, db):
    with pytest.raises(InvalidTimeError):
        asyncio.run(service.create_slot(provider_user, BOOKING_DAY.isoformat(), "10:10"))
    assert db.query(Availability).count() == 0


def test_bulk_create_skips_existing_slots(service, provider_user, open_slots, provider):
    open_slots(provider.id, ["10:00"])

    created, skipped = asyncio.run(
        service.create_slots(
            provider_user, BOOKING_DAY.isoformat(), ["10:30", "10:00", "9:00 AM", "10:30"]
        )
    )

    assert [s.time for s in created] == ["09:00", "10:30"]
    assert skipped == ["10:00"]


def test_provider_cannot_touch_another_provider(service, provider_user, other_provider):
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(
            service.create_slot(
                provider_user, BOOKING_DAY.isoformat(), "10:00", provider_id=other_provider.id
            )
        )
    assert exc_info.value.status_code == 403


def test_admin_must_name_a_provider(service, admin_user):
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(service.create_slot(admin_user, BOOKING_DAY.isoformat(), "10:00"))
    assert exc_info.value.status_code == 400


def test_admin_declares_slots_for_any_provider(service, admin_user, other_provider):
    slot = asyncio.run(
        service.create_slot(
            admin_user, BOOKING_DAY.isoformat(), "10:00", provider_id=other_provider.id
        )
    )
    assert slot.providerId == other_provider.id


def test_list_slots_for_a_day_is_sorted(service, provider_user, open_slots, provider):
    open_slots(provider.id, ["13:00", "09:00", "11:30"])

    slots = asyncio.run(service.list_slots(provider_user, day=BOOKING_DAY.isoformat()))

    assert [s.time for s in slots] == ["09:00", "11:30", "13:00"]


def test_deleted_slot_no_longer_covers_bookings(service, provider_user, open_slots, provider, book):
    open_slots(provider.id, ["09:00", "09:30"])
    slots = asyncio.run(service.list_slots(provider_user, day=BOOKING_DAY.isoformat()))
    second = next(s for s in slots if s.time == "09:30")

    removed = asyncio.run(service.delete_slot(provider_user, second.id))
    assert removed.time == "09:30"

    with pytest.raises(InsufficientAvailability):
        book(provider.slug, "09:00", provider.colour_id)

    with pytest.raises(AvailabilityNotFound):
        asyncio.run(service.get_slot(provider_user, second.id))
