"""
Slot Grid

Times of day are kept as canonical zero-padded 24-hour "HH:MM" strings, which
sort lexically in chronological order. Arithmetic goes through minutes-of-day
integers so a window may end past 24:00 without wrapping to the next morning.
"""

import math
import re
from datetime import date, datetime
from typing import Iterable, Optional, Union

from ...config import DEFAULT_SERVICE_DURATION_MINUTES, SLOT_MINUTES
from .exceptions import InvalidDateError, InvalidTimeError

MINUTES_PER_DAY = 24 * 60

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})$")
_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp])\.?\s*[Mm]\.?$")


def parse_time(label: str) -> str:
    """
    Parse a wall-clock label into canonical "HH:MM".

    Accepts "09:30", "9:30" and 12-hour labels such as "9:30 AM" or "12:00 pm".
    """
    if not isinstance(label, str) or not label.strip():
        raise InvalidTimeError("Time is required")

    value = label.strip()

    match = _TIME_24H.match(value)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise InvalidTimeError(f"Invalid time: {label}", time=label)
        return f"{hour:02d}:{minute:02d}"

    match = _TIME_12H.match(value)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if not 1 <= hour <= 12 or minute > 59:
            raise InvalidTimeError(f"Invalid time: {label}", time=label)
        is_pm = match.group(3).lower() == "p"
        hour = hour % 12 + (12 if is_pm else 0)
        return f"{hour:02d}:{minute:02d}"

    raise InvalidTimeError(f"Invalid time format: {label}", time=label)


def parse_date(value: Union[str, date, datetime]) -> date:
    """Normalize a YYYY-MM-DD string (or datetime) to a calendar day"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).strip()).date()
    except (ValueError, TypeError):
        raise InvalidDateError("Invalid date format. Expected YYYY-MM-DD", date=value) from None


def to_minutes(time: str) -> int:
    hour, minute = parse_time(time).split(":")
    return int(hour) * 60 + int(minute)


def from_minutes(minutes: int) -> str:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeError(f"{minutes} minutes is outside a single day", minutes=minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def compare_times(a: str, b: str) -> int:
    """Three-way chronological comparison of two time labels"""
    left, right = to_minutes(a), to_minutes(b)
    return (left > right) - (left < right)


def sort_times(times: Iterable[str]) -> list[str]:
    return sorted((parse_time(t) for t in times), key=to_minutes)


def resolve_duration(duration_minutes: Optional[int]) -> int:
    """Services without a usable duration fall back to the default"""
    if not duration_minutes or duration_minutes <= 0:
        return DEFAULT_SERVICE_DURATION_MINUTES
    return int(duration_minutes)


def required_slot_count(duration_minutes: Optional[int], slot_minutes: int = SLOT_MINUTES) -> int:
    return math.ceil(resolve_duration(duration_minutes) / slot_minutes)


def slot_end_time(start: str, duration_minutes: Optional[int]) -> int:
    """Exclusive end of the window in minutes-of-day; may exceed 24:00"""
    return to_minutes(start) + resolve_duration(duration_minutes)


def is_grid_aligned(time: str, slot_minutes: int = SLOT_MINUTES) -> bool:
    return to_minutes(time) % slot_minutes == 0


def covering_slots(
    start: str, duration_minutes: Optional[int], slot_minutes: int = SLOT_MINUTES
) -> list[str]:
    """
    Grid slots touched by the window [start, start + duration).

    For a grid-aligned start this is exactly required_slot_count() slots. Slots at
    or past midnight are labelled "24:00", "24:30", ... which no declared slot can
    match, so a window running past the end of the day is never coverable.
    """
    start_minutes = to_minutes(start)
    end_minutes = slot_end_time(start, duration_minutes)
    first = start_minutes - start_minutes % slot_minutes
    return [format_minutes(m) for m in range(first, end_minutes, slot_minutes)]


def window_overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval intersection"""
    return start_a < end_b and start_b < end_a


def format_time_12h(time: str) -> str:
    hour, minute = divmod(to_minutes(time), 60)
    period = "AM" if hour < 12 else "PM"
    display_hour = hour if hour <= 12 else hour - 12
    if display_hour == 0:
        display_hour = 12
    return f"{display_hour}:{minute:02d} {period}"


def format_minutes(minutes: int) -> str:
    """HH:MM label for a window end, rendering midnight as 24:00"""
    if minutes >= MINUTES_PER_DAY:
        return f"{minutes // 60:02d}:{minutes % 60:02d}"
    return from_minutes(minutes)
