"""Appointment slot computation.

Turns a doctor's daily availability window into the bookable time slots for
one calendar date. Everything here is pure: callers fetch booked times and
pass ``now`` explicitly when they need deterministic results.

Times are naive local wall-clock values; doctor and patient are assumed to
share a timezone.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Union
import re

from ..core.config import settings

TimeInput = Union[str, time, None]

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?\s*$")
_CLOCK_LABEL_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(AM|PM)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class Slot:
    """A bookable time: ``time`` is submitted, ``label`` is displayed."""
    time: time
    label: str


def parse_time_of_day(value: TimeInput) -> Optional[time]:
    """Parse ``HH:MM`` / ``HH:MM:SS`` strings or pass ``time`` through; ``None`` when malformed."""
    if isinstance(value, datetime):
        return value.time().replace(microsecond=0)
    if isinstance(value, time):
        return value.replace(microsecond=0, tzinfo=None)
    if not isinstance(value, str):
        return None

    match = _TIME_RE.match(value)
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


def format_clock_label(value: time) -> str:
    """12-hour display label, e.g. ``9:00 AM`` or ``12:30 PM``."""
    hour = value.hour % 12 or 12
    period = "PM" if value.hour >= 12 else "AM"
    return f"{hour}:{value.minute:02d} {period}"


def to_24_hour(label: Optional[str]) -> str:
    """Convert ``02:30 PM`` to ``14:30``. Invalid input gives an empty string."""
    if not isinstance(label, str):
        return ""

    match = _CLOCK_LABEL_RE.match(label)
    if not match:
        return ""

    hours = int(match.group(1))
    minutes = match.group(2)
    meridian = match.group(3).upper()
    if hours < 1 or hours > 12 or int(minutes) > 59:
        return ""

    if meridian == "PM" and hours < 12:
        hours += 12
    if meridian == "AM" and hours == 12:
        hours = 0
    return f"{hours:02d}:{minutes}"


def generate_slots(
    available_from: TimeInput,
    available_to: TimeInput,
    on_date: date,
    booked_times: Iterable[TimeInput] = (),
    now: Optional[datetime] = None,
    interval_minutes: Optional[int] = None,
    lead_minutes: Optional[int] = None,
) -> List[Slot]:
    """Return the ordered bookable slots for ``on_date``.

    Candidates start at ``available_from`` and step by ``interval_minutes``
    while strictly before ``available_to``. A candidate is dropped when its
    time matches a booked time, or, when ``on_date`` is today, when it starts
    earlier than ``now + lead_minutes``.

    Missing or malformed window bounds, an empty window, a missing date or a
    non-positive interval give an empty list rather than an error.
    """
    start = parse_time_of_day(available_from)
    end = parse_time_of_day(available_to)
    if start is None or end is None or start >= end:
        return []
    if isinstance(on_date, datetime):
        on_date = on_date.date()
    if not isinstance(on_date, date):
        return []

    interval = timedelta(minutes=interval_minutes or settings.SLOT_INTERVAL_MINUTES)
    if interval <= timedelta(0):
        return []
    lead = timedelta(
        minutes=settings.BOOKING_LEAD_MINUTES if lead_minutes is None else lead_minutes
    )
    now = now or datetime.now()

    booked = {
        parsed for parsed in (parse_time_of_day(b) for b in booked_times or ())
        if parsed is not None
    }
    earliest = now + lead if on_date == now.date() else None

    slots: List[Slot] = []
    current = datetime.combine(on_date, start)
    window_end = datetime.combine(on_date, end)

    while current < window_end:
        candidate = current.time()
        if candidate not in booked and (earliest is None or current >= earliest):
            slots.append(Slot(time=candidate, label=format_clock_label(candidate)))
        current += interval

    return slots


def default_booking_date(
    available_from: TimeInput,
    available_to: TimeInput,
    now: Optional[datetime] = None,
) -> date:
    """Date to propose first: today, unless the lead time has used up all of today's window."""
    now = now or datetime.now()
    today = now.date()
    if generate_slots(available_from, available_to, today, now=now):
        return today
    return today + timedelta(days=1)
