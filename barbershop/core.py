# barbershop/core.py

from datetime import date, datetime, time, timedelta


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    # half-open intervals: back-to-back is not an overlap
    return start_a < end_b and start_b < end_a


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing `day`."""
    first = day.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first, next_first - timedelta(days=1)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
