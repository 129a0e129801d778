# barbershop/store.py
# Read helpers shared by the orchestrator and the routers.

from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlmodel import Session, select

from barbershop.calendar import DayHours, ShopConfig, SpecialDay
from barbershop.core import day_bounds, month_bounds
from barbershop.errors import ConfigurationError, NotFoundError
from barbershop.models import Appointment, Plan, Service, ShopSettings, User, WeekdayHours
from barbershop.models import SpecialDay as SpecialDayModel
from barbershop.slots import ACTIVE_STATUSES, MAX_DURATION_MINUTES


def load_shop_config(session: Session) -> ShopConfig:
    settings = session.get(ShopSettings, 1)
    if settings is None:
        raise ConfigurationError("Shop settings are missing; run init_db first")

    week = {
        row.weekday: DayHours(is_open=row.is_open, open_time=row.open_time, close_time=row.close_time)
        for row in session.exec(select(WeekdayHours)).all()
    }
    specials = {
        row.date: SpecialDay(
            date=row.date,
            is_closed=row.is_closed,
            open_time=row.open_time,
            close_time=row.close_time,
            reason=row.reason,
        )
        for row in session.exec(select(SpecialDayModel)).all()
    }

    lunch = None
    if settings.lunch_start is not None and settings.lunch_end is not None:
        lunch = (settings.lunch_start, settings.lunch_end)

    return ShopConfig(
        week_schedule=week,
        special_days=specials,
        slot_minutes=settings.slot_minutes,
        lunch_break=lunch,
        shop_name=settings.shop_name,
    )


def active_appointments_on(session: Session, day: date) -> List[Appointment]:
    """Active appointments whose interval can intersect `day`."""
    day_start, day_end = day_bounds(day)
    # an appointment starting the evening before could still run into this day
    earliest = day_start - timedelta(minutes=MAX_DURATION_MINUTES)
    return session.exec(
        select(Appointment)
        .where(Appointment.starts_at >= earliest)
        .where(Appointment.starts_at < day_end)
        .where(Appointment.status.in_(ACTIVE_STATUSES))
        .order_by(Appointment.starts_at)
    ).all()


def user_appointments_in_month(session: Session, user_id: int, day: date) -> List[Appointment]:
    first, last = month_bounds(day)
    start = datetime.combine(first, datetime.min.time())
    end = datetime.combine(last + timedelta(days=1), datetime.min.time())
    return session.exec(
        select(Appointment)
        .where(Appointment.user_id == user_id)
        .where(Appointment.starts_at >= start)
        .where(Appointment.starts_at < end)
    ).all()


def current_plan(session: Session, user_id: int) -> Optional[Plan]:
    """The user's approved plan, else the newest pending request."""
    plans = session.exec(
        select(Plan)
        .where(Plan.user_id == user_id)
        .where(Plan.status.in_(("approved", "pending")))
        .order_by(Plan.requested_at.desc())
    ).all()
    for plan in plans:
        if plan.status == "approved":
            return plan
    return plans[0] if plans else None


def approved_plan(session: Session, user_id: int) -> Optional[Plan]:
    return session.exec(
        select(Plan).where(Plan.user_id == user_id).where(Plan.status == "approved")
    ).first()


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError("Client not found")
    return user


def get_service(session: Session, service_id: str) -> Service:
    service = session.get(Service, service_id)
    if service is None or not service.active:
        raise NotFoundError("Service not available")
    return service


def get_appointment(session: Session, appt_id: int) -> Appointment:
    appt = session.get(Appointment, appt_id)
    if appt is None:
        raise NotFoundError("Appointment not found")
    return appt


def get_plan(session: Session, plan_id: int) -> Plan:
    plan = session.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")
    return plan
