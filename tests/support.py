"""Shared fixtures for the test suite: fixed clocks, shop configs, temp databases."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, time, timedelta

from sqlmodel import Session

from barbershop.calendar import DayHours, ShopConfig
from barbershop.data import WEEK_SCHEDULE
from barbershop.db import init_db, make_engine
from barbershop.models import User

# Monday
MONDAY = datetime(2026, 3, 2, 8, 0)


class FixedClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def week_schedule() -> dict[int, DayHours]:
    return {
        weekday: DayHours(is_open=is_open, open_time=open_time, close_time=close_time)
        for weekday, (is_open, open_time, close_time) in WEEK_SCHEDULE.items()
    }


def shop_config(slot_minutes: int = 30, lunch: bool = True, special_days=None) -> ShopConfig:
    return ShopConfig(
        week_schedule=week_schedule(),
        special_days=special_days or {},
        slot_minutes=slot_minutes,
        lunch_break=(time(12, 0), time(13, 0)) if lunch else None,
        shop_name="Test Shop",
    )


class TempDatabase:
    """A seeded SQLite file that lives for one test."""

    def __init__(self) -> None:
        fd, self.path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        self.engine = make_engine(f"sqlite:///{self.path}")
        init_db(self.engine)

    def session(self) -> Session:
        return Session(self.engine)

    def add_user(self, name: str, phone: str, role: str = "client", password_hash: str = "x") -> int:
        with self.session() as session:
            user = User(name=name, phone_number=phone, password_hash=password_hash, role=role)
            session.add(user)
            session.commit()
            session.refresh(user)
            return user.id

    def close(self) -> None:
        self.engine.dispose()
        os.remove(self.path)
