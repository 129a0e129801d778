# barbershop/calendar.py
"""
Shop opening hours: the weekly schedule plus per-date overrides.

A special day always wins over the weekly default for its date. Dates
before today are never open for new bookings.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Callable, Dict, Optional, Tuple

from barbershop.config import shop_now
from barbershop.errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

WEEKDAYS = range(7)  # 0 = Monday ... 6 = Sunday, same as date.weekday()

SLOT_STEPS = (15, 30, 60)


@dataclass(frozen=True)
class DayHours:
    is_open: bool
    open_time: time
    close_time: time


@dataclass(frozen=True)
class SpecialDay:
    date: date
    is_closed: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class DayStatus:
    is_open: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ShopConfig:
    week_schedule: Dict[int, DayHours]
    special_days: Dict[date, SpecialDay] = field(default_factory=dict)
    slot_minutes: int = 30
    lunch_break: Optional[Tuple[time, time]] = None
    shop_name: str = "Barbershop"


def validate_special_day(special: SpecialDay) -> SpecialDay:
    """Write-time check for a special day entry."""
    if special.is_closed:
        return special
    if special.open_time is None or special.close_time is None:
        raise ValidationError(f"{special.date}: open_time and close_time are required when not closed")
    if special.open_time >= special.close_time:
        raise ValidationError(f"{special.date}: open_time must be before close_time")
    return special


def validate_day_hours(weekday: int, hours: DayHours) -> DayHours:
    if weekday not in WEEKDAYS:
        raise ValidationError("weekday must be an integer between 0 and 6")
    if hours.is_open and hours.open_time >= hours.close_time:
        raise ValidationError("open_time cannot be greater than close_time")
    return hours


class ShopCalendar:
    def __init__(self, config: ShopConfig, clock: Callable[[], datetime] = shop_now):
        missing = [d for d in WEEKDAYS if d not in config.week_schedule]
        if missing:
            raise ConfigurationError(f"Weekly schedule is missing weekdays {missing}")
        if config.slot_minutes not in SLOT_STEPS:
            raise ConfigurationError(f"slot_minutes must be one of {SLOT_STEPS}, got {config.slot_minutes}")
        if config.lunch_break is not None and config.lunch_break[0] >= config.lunch_break[1]:
            raise ConfigurationError("lunch break must start before it ends")
        self.config = config
        self.clock = clock

    def is_day_open(self, day: date) -> DayStatus:
        if day < self.clock().date():
            return DayStatus(is_open=False, reason="Date is in the past")

        special = self.config.special_days.get(day)
        if special is not None:
            if special.is_closed:
                return DayStatus(is_open=False, reason=special.reason or "Closed")
            return DayStatus(
                is_open=True,
                open_time=special.open_time,
                close_time=special.close_time,
                reason=special.reason,
            )

        hours = self.config.week_schedule[day.weekday()]
        if not hours.is_open:
            return DayStatus(is_open=False, reason="Closed on this weekday")
        return DayStatus(is_open=True, open_time=hours.open_time, close_time=hours.close_time)

    def day_window(self, day: date) -> Optional[Tuple[datetime, datetime]]:
        status = self.is_day_open(day)
        if not status.is_open:
            return None
        return datetime.combine(day, status.open_time), datetime.combine(day, status.close_time)

    def lunch_window(self, day: date) -> Optional[Tuple[datetime, datetime]]:
        if self.config.lunch_break is None:
            return None
        start, end = self.config.lunch_break
        return datetime.combine(day, start), datetime.combine(day, end)
