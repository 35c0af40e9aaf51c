"""
Time and slot helpers
Booking times are facility-local "HH:MM" strings on a calendar date.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from courtside.config import settings

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> time:
    """Parse a zero-padded 24h "HH:MM" string; raises ValueError otherwise"""
    match = _HHMM.match(value or "")
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def minutes_of(value: str) -> int:
    t = parse_hhmm(value)
    return t.hour * 60 + t.minute


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def add_hours(start: str, hours: float) -> str:
    """
    Compute the end time of a slot starting at ``start`` lasting ``hours``.
    Raises ValueError when the slot would run past midnight.
    """
    end = minutes_of(start) + round(hours * 60)
    if end >= 24 * 60:
        raise ValueError("Bookings must end on the same day")
    return format_minutes(end)


def slot_granules(start: str, end: str, granularity: Optional[int] = None) -> List[str]:
    """Start times of every granule covered by [start, end)"""
    step = granularity or settings.SLOT_GRANULARITY_MINUTES
    return [format_minutes(m) for m in range(minutes_of(start), minutes_of(end), step)]


def is_aligned(value: str, granularity: Optional[int] = None) -> bool:
    step = granularity or settings.SLOT_GRANULARITY_MINUTES
    return minutes_of(value) % step == 0


def slot_datetime(booking_date: date, hhmm: str) -> datetime:
    """Naive facility-local datetime of a slot boundary"""
    return datetime.combine(booking_date, parse_hhmm(hhmm))


def facility_now() -> datetime:
    """Current naive facility-local time"""
    tz = timezone(timedelta(minutes=settings.FACILITY_UTC_OFFSET_MINUTES))
    return datetime.now(tz).replace(tzinfo=None)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
