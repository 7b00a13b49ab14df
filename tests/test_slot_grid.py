"""
Tests for the slot grid: time parsing, ordering and window arithmetic.
"""

from datetime import date, datetime

import pytest

from appointly.domain.scheduling import slot_grid
from appointly.domain.scheduling.exceptions import InvalidDateError, InvalidTimeError


@pytest.mark.parametrize(
    "label,expected",
    [
        ("09:30", "09:30"),
        ("9:30", "09:30"),
        ("00:00", "00:00"),
        ("23:30", "23:30"),
        ("9:30 AM", "09:30"),
        ("12:00 AM", "00:00"),
        ("12:00 PM", "12:00"),
        ("12:30 pm", "12:30"),
        ("1:00 PM", "13:00"),
        ("11:30 p.m.", "23:30"),
    ],
)
def test_parse_time_canonical(label, expected):
    assert slot_grid.parse_time(label) == expected


@pytest.mark.parametrize("label", ["", "25:00", "12:60", "13:00 PM", "0:30 AM", "noon", "9.30"])
def test_parse_time_rejects_invalid(label):
    with pytest.raises(InvalidTimeError):
        slot_grid.parse_time(label)


def test_parse_date_normalizes_inputs():
    assert slot_grid.parse_date("2025-03-04") == date(2025, 3, 4)
    assert slot_grid.parse_date("2025-03-04T15:00:00") == date(2025, 3, 4)
    assert slot_grid.parse_date(datetime(2025, 3, 4, 23, 59)) == date(2025, 3, 4)
    assert slot_grid.parse_date(date(2025, 3, 4)) == date(2025, 3, 4)


def test_parse_date_rejects_garbage():
    with pytest.raises(InvalidDateError):
        slot_grid.parse_date("next tuesday")


@pytest.mark.parametrize("value", ["2025-03-04garbage", "2025-03-04 junk", "2025-13-01", ""])
def test_parse_date_rejects_trailing_or_invalid_text(value):
    with pytest.raises(InvalidDateError):
        slot_grid.parse_date(value)


def test_chronological_order_matches_lexical_order():
    """Midnight and noon sort correctly, unlike 12-hour labels"""
    labels = ["12:00 PM", "9:30", "12:00 AM", "1:00 PM", "23:30"]
    ordered = slot_grid.sort_times(labels)
    assert ordered == ["00:00", "09:30", "12:00", "13:00", "23:30"]
    assert ordered == sorted(ordered)
    assert slot_grid.compare_times("12:00 AM", "12:00 PM") == -1
    assert slot_grid.compare_times("13:00", "1:00 PM") == 0


@pytest.mark.parametrize(
    "duration,slots",
    [(30, 1), (1, 1), (31, 2), (45, 2), (60, 2), (90, 3), (None, 1), (0, 1), (-15, 1)],
)
def test_required_slot_count_rounds_up(duration, slots):
    assert slot_grid.required_slot_count(duration) == slots


def test_slot_end_time_does_not_wrap():
    assert slot_grid.slot_end_time("23:30", 60) == 24 * 60 + 30
    assert slot_grid.format_minutes(24 * 60) == "24:00"


def test_covering_slots_aligned_start():
    assert slot_grid.covering_slots("10:00", 45) == ["10:00", "10:30"]
    assert slot_grid.covering_slots("10:00", 90) == ["10:00", "10:30", "11:00"]
    assert slot_grid.covering_slots("10:00", None) == ["10:00"]


def test_covering_slots_off_grid_start_touches_every_cell():
    assert slot_grid.covering_slots("10:15", 30) == ["10:00", "10:30"]


def test_covering_slots_past_midnight_are_not_real_slots():
    assert slot_grid.covering_slots("23:30", 60) == ["23:30", "24:00"]


def test_window_overlaps_is_half_open_and_symmetric():
    # 10:00-10:30 and 10:30-11:00 only touch
    assert not slot_grid.window_overlaps(600, 630, 630, 660)
    assert not slot_grid.window_overlaps(630, 660, 600, 630)
    # 10:15-10:45 against 10:00-10:30, both directions
    assert slot_grid.window_overlaps(615, 645, 600, 630)
    assert slot_grid.window_overlaps(600, 630, 615, 645)
    # containment
    assert slot_grid.window_overlaps(600, 720, 630, 660)


def test_format_time_12h():
    assert slot_grid.format_time_12h("00:00") == "12:00 AM"
    assert slot_grid.format_time_12h("09:30") == "9:30 AM"
    assert slot_grid.format_time_12h("12:00") == "12:00 PM"
    assert slot_grid.format_time_12h("17:30") == "5:30 PM"


def test_grid_alignment():
    assert slot_grid.is_grid_aligned("10:30")
    assert not slot_grid.is_grid_aligned("10:15")
