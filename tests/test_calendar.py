"""Tests for the shop calendar: weekly hours, special days and config checks."""

from __future__ import annotations

import unittest
from dataclasses import replace
from datetime import date, datetime, time

from barbershop.calendar import DayHours, ShopCalendar, SpecialDay, validate_day_hours, validate_special_day
from barbershop.errors import ConfigurationError, ValidationError
from tests.support import MONDAY, FixedClock, shop_config


class DayOpenTests(unittest.TestCase):
    """Resolve whether a date is open and with which hours."""

    def setUp(self) -> None:
        self.clock = FixedClock(MONDAY)
        self.calendar = ShopCalendar(shop_config(), self.clock)

    def test_weekday_uses_weekly_hours(self) -> None:
        status = self.calendar.is_day_open(date(2026, 3, 2))

        self.assertTrue(status.is_open)
        self.assertEqual(status.open_time, time(9, 0))
        self.assertEqual(status.close_time, time(18, 0))

    def test_saturday_closes_early(self) -> None:
        status = self.calendar.is_day_open(date(2026, 3, 7))

        self.assertTrue(status.is_open)
        self.assertEqual(status.close_time, time(14, 0))

    def test_sunday_is_closed(self) -> None:
        self.assertFalse(self.calendar.is_day_open(date(2026, 3, 8)).is_open)

    def test_past_date_is_closed(self) -> None:
        status = self.calendar.is_day_open(date(2026, 2, 27))

        self.assertFalse(status.is_open)
        self.assertEqual(status.reason, "Date is in the past")

    def test_closed_special_day_overrides_weekday(self) -> None:
        holiday = SpecialDay(date(2026, 3, 3), is_closed=True, reason="Holiday")
        calendar = ShopCalendar(shop_config(special_days={holiday.date: holiday}), self.clock)

        status = calendar.is_day_open(date(2026, 3, 3))

        self.assertFalse(status.is_open)
        self.assertEqual(status.reason, "Holiday")
        self.assertIsNone(calendar.day_window(date(2026, 3, 3)))

    def test_open_special_day_on_sunday(self) -> None:
        special = SpecialDay(date(2026, 3, 8), is_closed=False, open_time=time(10, 0), close_time=time(13, 0))
        calendar = ShopCalendar(shop_config(special_days={special.date: special}), self.clock)

        window = calendar.day_window(date(2026, 3, 8))

        self.assertEqual(window, (datetime(2026, 3, 8, 10, 0), datetime(2026, 3, 8, 13, 0)))


class ConfigCheckTests(unittest.TestCase):
    """Reject broken configurations before they reach slot generation."""

    def test_missing_weekday_is_configuration_error(self) -> None:
        config = shop_config()
        week = dict(config.week_schedule)
        del week[6]

        with self.assertRaises(ConfigurationError):
            ShopCalendar(replace(config, week_schedule=week))

    def test_unsupported_slot_step(self) -> None:
        with self.assertRaises(ConfigurationError):
            ShopCalendar(shop_config(slot_minutes=20))

    def test_special_day_needs_hours_when_open(self) -> None:
        with self.assertRaises(ValidationError):
            validate_special_day(SpecialDay(date(2026, 3, 3), is_closed=False, open_time=time(9, 0)))

    def test_special_day_hours_must_be_ordered(self) -> None:
        with self.assertRaises(ValidationError):
            validate_special_day(
                SpecialDay(date(2026, 3, 3), is_closed=False, open_time=time(14, 0), close_time=time(9, 0))
            )

    def test_weekday_out_of_range(self) -> None:
        with self.assertRaises(ValidationError):
            validate_day_hours(7, DayHours(True, time(9, 0), time(18, 0)))


if __name__ == "__main__":
    unittest.main()
