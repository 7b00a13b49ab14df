"""
Tests for the conflict checker on plain values: coverage, overlap and the
open-slot / bookable-time listings.
"""

import pytest

from appointly.domain.scheduling.conflict_checker import (
    OccupiedWindow,
    bookable_start_times,
    check_window,
    make_window,
    open_slots,
)
from appointly.domain.scheduling.exceptions import InsufficientAvailability, OverlapConflict

MORNING = ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]


def occupied(appointment_id, start, duration):
    return OccupiedWindow(appointment_id=appointment_id, window=make_window(start, duration))


def test_full_coverage_is_bookable():
    window = check_window(["09:00", "09:30"], [], make_window("09:00", 60))
    assert window.start == "09:00"
    assert window.end == "10:00"


def test_partial_coverage_lists_missing_slots():
    with pytest.raises(InsufficientAvailability) as exc_info:
        check_window(["09:00", "09:30"], [], make_window("09:30", 60))
    assert exc_info.value.missing_slots == ["10:00"]
    assert exc_info.value.status_code == 400


def test_coverage_is_checked_before_overlap():
    """A window that is both uncovered and overlapping reports the coverage problem"""
    with pytest.raises(InsufficientAvailability):
        check_window(["10:00"], [occupied(1, "10:00", 30)], make_window("10:00", 60))


def test_forty_five_minutes_consumes_two_slots():
    with pytest.raises(InsufficientAvailability):
        check_window(["10:00"], [], make_window("10:00", 45))
    assert check_window(["10:00", "10:30"], [], make_window("10:00", 45)).end == "10:45"


def test_missing_duration_uses_default():
    window = check_window(["10:00"], [], make_window("10:00", None))
    assert window.duration == 30


def test_window_past_midnight_is_never_coverable():
    with pytest.raises(InsufficientAvailability) as exc_info:
        check_window(["23:00", "23:30"], [], make_window("23:30", 60))
    assert exc_info.value.missing_slots == ["24:00"]


def test_request_starting_inside_existing_appointment():
    with pytest.raises(OverlapConflict) as exc_info:
        check_window(MORNING, [occupied(7, "10:00", 30)], make_window("10:15", 15))
    assert exc_info.value.appointment_id == 7
    assert exc_info.value.details["start"] == "10:00"
    assert exc_info.value.details["end"] == "10:30"


def test_existing_appointment_starting_inside_request():
    """A long request must not swallow a later short appointment"""
    with pytest.raises(OverlapConflict):
        check_window(MORNING, [occupied(3, "10:30", 30)], make_window("10:00", 90))


def test_existing_longer_appointment_blocks_its_whole_window():
    """The existing appointment's own duration decides how long it occupies"""
    with pytest.raises(OverlapConflict):
        check_window(MORNING, [occupied(4, "09:00", 90)], make_window("10:00", 30))


def test_back_to_back_is_allowed():
    window = check_window(MORNING, [occupied(5, "09:00", 60)], make_window("10:00", 30))
    assert window.start == "10:00"


def test_open_slots_excludes_consumed_slots():
    existing = [occupied(1, "09:30", 45), occupied(2, "11:00", 30)]
    assert open_slots(MORNING, existing) == ["09:00", "10:30", "11:30"]


def test_open_slots_round_trip_after_cancellation():
    """Declared minus consumed; dropping the appointment restores the declared set"""
    existing = [occupied(1, "10:00", 60)]
    assert "10:00" not in open_slots(MORNING, existing)
    assert open_slots(MORNING, []) == MORNING


def test_bookable_start_times_for_long_service():
    existing = [occupied(1, "10:30", 30)]
    # 60 minutes needs two consecutive free declared slots
    assert bookable_start_times(MORNING, existing, 60) == ["09:00", "09:30", "11:00"]


def test_bookable_start_times_are_sorted_and_canonical():
    declared = ["10:00", "9:00 AM", "09:30"]
    assert bookable_start_times(declared, [], 30) == ["09:00", "09:30", "10:00"]
