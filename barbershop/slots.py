# barbershop/slots.py

from datetime import date, datetime, timedelta
from typing import Iterable, List

from barbershop.calendar import ShopCalendar
from barbershop.config import BOOKING_LEAD_MINUTES
from barbershop.core import overlaps
from barbershop.errors import ValidationError

ACTIVE_STATUSES = ("pending", "confirmed")

MAX_DURATION_MINUTES = 8 * 60


def appointment_interval(appt) -> tuple[datetime, datetime]:
    return appt.starts_at, appt.starts_at + timedelta(minutes=appt.duration_minutes)


def validate_duration(duration_minutes: int) -> int:
    if not isinstance(duration_minutes, int) or isinstance(duration_minutes, bool):
        raise ValidationError("duration_minutes must be an integer")
    if not (1 <= duration_minutes <= MAX_DURATION_MINUTES):
        raise ValidationError(f"duration_minutes must be between 1 and {MAX_DURATION_MINUTES}")
    return duration_minutes


class SlotGenerator:
    """
    Bookable start times for one day.

    The day window [open, close) is walked in steps of ShopConfig.slot_minutes
    starting at opening time. A start t is kept when [t, t + duration) fits
    before closing and overlaps neither an active appointment nor the lunch
    break. On today, starts at or before now + lead_minutes are dropped.
    """

    def __init__(self, calendar: ShopCalendar, lead_minutes: int = BOOKING_LEAD_MINUTES):
        self.calendar = calendar
        self.lead_minutes = lead_minutes

    @property
    def step(self) -> timedelta:
        return timedelta(minutes=self.calendar.config.slot_minutes)

    def generate_slots(self, day: date, duration_minutes: int, appointments: Iterable = ()) -> List[datetime]:
        validate_duration(duration_minutes)

        window = self.calendar.day_window(day)
        if window is None:
            return []
        work_start, work_end = window
        length = timedelta(minutes=duration_minutes)

        busy = [
            appointment_interval(a)
            for a in appointments
            if a.status in ACTIVE_STATUSES
        ]
        # only intervals that touch this day matter
        busy = [(s, e) for s, e in busy if overlaps(s, e, work_start, work_end)]

        lunch = self.calendar.lunch_window(day)
        if lunch is not None:
            busy.append(lunch)

        earliest = None
        now = self.calendar.clock()
        if day == now.date():
            earliest = now + timedelta(minutes=self.lead_minutes)

        available = []
        current = work_start
        while current + length <= work_end:
            slot_end = current + length
            if earliest is not None and current <= earliest:
                current += self.step
                continue
            if any(overlaps(current, slot_end, s, e) for s, e in busy):
                current += self.step
                continue
            available.append(current)
            current += self.step

        return available
