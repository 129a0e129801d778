"""Tests for free slot generation."""

from __future__ import annotations

import unittest
from datetime import date, datetime, time
from types import SimpleNamespace

from barbershop.calendar import ShopCalendar, SpecialDay
from barbershop.errors import ValidationError
from barbershop.slots import SlotGenerator, validate_duration
from tests.support import MONDAY, FixedClock, shop_config

DAY = date(2026, 3, 3)


def appt(hour: int, minute: int, minutes: int, status: str = "confirmed", day: date = DAY):
    return SimpleNamespace(
        starts_at=datetime.combine(day, time(hour, minute)),
        duration_minutes=minutes,
        status=status,
    )


def hhmm(slots) -> list[str]:
    return [s.strftime("%H:%M") for s in slots]


class SlotGridTests(unittest.TestCase):
    """Walk the opening window and drop starts that cannot fit."""

    def setUp(self) -> None:
        self.clock = FixedClock(MONDAY)

    def generator(self, **config_kwargs) -> SlotGenerator:
        return SlotGenerator(ShopCalendar(shop_config(**config_kwargs), self.clock), lead_minutes=15)

    def test_existing_booking_blocks_overlapping_starts(self) -> None:
        slots = hhmm(self.generator(slot_minutes=15, lunch=False).generate_slots(DAY, 30, [appt(10, 0, 30)]))

        self.assertNotIn("10:00", slots)
        self.assertNotIn("09:45", slots)
        self.assertIn("09:30", slots)
        self.assertIn("10:30", slots)

    def test_service_must_end_by_closing(self) -> None:
        slots = hhmm(self.generator(slot_minutes=15, lunch=False).generate_slots(DAY, 30, []))

        self.assertEqual(slots[0], "09:00")
        self.assertEqual(slots[-1], "17:30")

    def test_canceled_and_no_show_do_not_block(self) -> None:
        taken = [appt(10, 0, 30, status="canceled"), appt(11, 0, 30, status="no_show")]

        slots = hhmm(self.generator().generate_slots(DAY, 30, taken))

        self.assertIn("10:00", slots)
        self.assertIn("11:00", slots)

    def test_lunch_break_is_not_bookable(self) -> None:
        slots = hhmm(self.generator().generate_slots(DAY, 60, []))

        self.assertIn("11:00", slots)
        self.assertNotIn("11:30", slots)
        self.assertNotIn("12:00", slots)
        self.assertNotIn("12:30", slots)
        self.assertIn("13:00", slots)

    def test_today_respects_lead_time(self) -> None:
        self.clock.now = datetime(2026, 3, 3, 10, 0)

        slots = hhmm(self.generator().generate_slots(DAY, 30, []))

        self.assertEqual(slots[0], "10:30")

    def test_closed_special_day_has_no_slots(self) -> None:
        closed = SpecialDay(DAY, is_closed=True, reason="Holiday")

        slots = self.generator(special_days={DAY: closed}).generate_slots(DAY, 30, [])

        self.assertEqual(slots, [])

    def test_appointment_from_previous_evening_spill_is_ignored_outside_window(self) -> None:
        late = appt(17, 30, 30, day=date(2026, 3, 2))

        slots = hhmm(self.generator().generate_slots(DAY, 30, [late]))

        self.assertEqual(slots[0], "09:00")


class DurationTests(unittest.TestCase):
    def test_duration_bounds(self) -> None:
        self.assertEqual(validate_duration(30), 30)
        with self.assertRaises(ValidationError):
            validate_duration(0)
        with self.assertRaises(ValidationError):
            validate_duration(481)


if __name__ == "__main__":
    unittest.main()
