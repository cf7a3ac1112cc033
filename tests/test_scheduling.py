from datetime import date, datetime, time, timedelta
import math

import pytest
from pydantic import ValidationError

from medicloud.core.config import Settings
from medicloud.services.scheduling import (
    default_booking_date,
    format_clock_label,
    generate_slots,
    parse_time_of_day,
    to_24_hour,
)

TODAY = date(2026, 3, 10)
TOMORROW = TODAY + timedelta(days=1)
MORNING = datetime(2026, 3, 10, 9, 10)

def labels(slots):
    return [slot.label for slot in slots]

class TestGenerateSlots:

    def test_lead_time_applies_today(self):
        slots = generate_slots("09:00", "12:00", TODAY, now=MORNING)
        assert slots[0].label == "10:30 AM"
        assert labels(slots) == ["10:30 AM", "11:00 AM", "11:30 AM"]

    def test_booked_times_are_removed(self):
        slots = generate_slots("09:00", "11:00", TOMORROW, ["09:30:00"], now=MORNING)
        assert labels(slots) == ["9:00 AM", "10:00 AM", "10:30 AM"]

    def test_booked_times_accept_time_objects(self):
        slots = generate_slots(time(9, 0), time(10, 0), TOMORROW, [time(9, 0)], now=MORNING)
        assert labels(slots) == ["9:30 AM"]

    def test_no_lead_time_on_other_days(self):
        slots = generate_slots("09:00", "10:00", TOMORROW, now=datetime(2026, 3, 10, 23, 59))
        assert labels(slots) == ["9:00 AM", "9:30 AM"]

    @pytest.mark.parametrize(
        ("available_from", "available_to"),
        [
            (None, "12:00"),
            ("09:00", None),
            ("nine", "12:00"),
            ("25:00", "26:00"),
            ("12:00", "12:00"),
            ("14:00", "09:00"),
        ],
    )
    def test_missing_or_empty_window(self, available_from, available_to):
        assert generate_slots(available_from, available_to, TOMORROW, now=MORNING) == []

    @pytest.mark.parametrize("on_date", [None, "2026-03-11", 20260311])
    def test_missing_or_malformed_date(self, on_date):
        assert generate_slots("09:00", "12:00", on_date, now=MORNING) == []

    def test_datetime_date_uses_its_calendar_day(self):
        slots = generate_slots("09:00", "10:00", datetime(2026, 3, 11, 18, 0), now=MORNING)
        assert labels(slots) == ["9:00 AM", "9:30 AM"]

    def test_no_booked_times(self):
        slots = generate_slots("09:00", "10:00", TOMORROW, None, now=MORNING)
        assert labels(slots) == ["9:00 AM", "9:30 AM"]

    @pytest.mark.parametrize("interval_minutes", [-30, -1])
    def test_non_positive_interval(self, interval_minutes):
        slots = generate_slots(
            "09:00", "12:00", TOMORROW, now=MORNING, interval_minutes=interval_minutes
        )
        assert slots == []

    @pytest.mark.parametrize(
        ("available_from", "available_to"),
        [("09:00", "17:00"), ("09:00", "10:45"), ("08:15", "08:40"), ("13:00", "13:01")],
    )
    def test_slot_count_without_bookings(self, available_from, available_to):
        start = datetime.combine(TOMORROW, parse_time_of_day(available_from))
        end = datetime.combine(TOMORROW, parse_time_of_day(available_to))
        expected = math.ceil((end - start) / timedelta(minutes=30))

        slots = generate_slots(available_from, available_to, TOMORROW, now=MORNING)
        assert len(slots) == expected

    def test_slots_are_ordered_and_within_window(self):
        slots = generate_slots("09:00", "17:00", TODAY, ["13:00", "15:30"], now=MORNING)
        times = [slot.time for slot in slots]

        assert times == sorted(times)
        assert len(set(times)) == len(times)
        assert all(time(9, 0) <= t < time(17, 0) for t in times)
        assert time(13, 0) not in times
        assert time(15, 30) not in times
        assert all(datetime.combine(TODAY, t) >= MORNING + timedelta(minutes=60) for t in times)

    def test_custom_interval_and_lead(self):
        slots = generate_slots(
            "09:00", "10:00", TODAY, now=datetime(2026, 3, 10, 9, 0),
            interval_minutes=15, lead_minutes=0,
        )
        assert labels(slots) == ["9:00 AM", "9:15 AM", "9:30 AM", "9:45 AM"]

    def test_slot_times_are_24_hour(self):
        slots = generate_slots("13:00", "14:00", TOMORROW, now=MORNING)
        assert [slot.time for slot in slots] == [time(13, 0), time(13, 30)]
        assert labels(slots) == ["1:00 PM", "1:30 PM"]

    def test_whole_day_used_up_by_lead_time(self):
        late = datetime(2026, 3, 10, 16, 30)
        assert generate_slots("09:00", "17:00", TODAY, now=late) == []

class TestTimeHelpers:

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("09:00", time(9, 0)),
            ("9:05", time(9, 5)),
            ("17:30:00", time(17, 30)),
            (time(8, 0, 0, 500), time(8, 0)),
            ("", None),
            ("24:00", None),
            ("noon", None),
            (None, None),
        ],
    )
    def test_parse_time_of_day(self, value, expected):
        assert parse_time_of_day(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (time(0, 0), "12:00 AM"),
            (time(9, 0), "9:00 AM"),
            (time(12, 30), "12:30 PM"),
            (time(23, 45), "11:45 PM"),
        ],
    )
    def test_format_clock_label(self, value, expected):
        assert format_clock_label(value) == expected

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("02:30 PM", "14:30"),
            ("9:00 AM", "09:00"),
            ("12:00 AM", "00:00"),
            ("12:15 PM", "12:15"),
            ("11:59 pm", "23:59"),
            ("13:00 PM", ""),
            ("garbage", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_to_24_hour(self, label, expected):
        assert to_24_hour(label) == expected

class TestDefaultBookingDate:

    def test_today_when_a_slot_remains(self):
        assert default_booking_date("09:00", "17:00", now=MORNING) == TODAY

    def test_tomorrow_when_lead_time_exhausts_today(self):
        evening = datetime(2026, 3, 10, 16, 45)
        assert default_booking_date("09:00", "17:00", now=evening) == TOMORROW

    def test_tomorrow_when_window_is_missing(self):
        assert default_booking_date(None, None, now=MORNING) == TOMORROW

class TestSchedulingSettings:

    @pytest.mark.parametrize(
        "overrides",
        [
            {"SLOT_INTERVAL_MINUTES": 0},
            {"SLOT_INTERVAL_MINUTES": -30},
            {"BOOKING_LEAD_MINUTES": -1},
        ],
    )
    def test_invalid_values_are_rejected(self, overrides):
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_zero_lead_time_is_allowed(self):
        assert Settings(BOOKING_LEAD_MINUTES=0).BOOKING_LEAD_MINUTES == 0
