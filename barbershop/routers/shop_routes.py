# barbershop/routers/shop_routes.py

from datetime import date
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from barbershop.auth import get_current_user
from barbershop.booking import BookingOrchestrator
from barbershop.calendar import DayHours
from barbershop.db import get_session
from barbershop.deps import get_orchestrator, require_role
from barbershop.models import Service, SpecialDay, WeekdayHours
from barbershop.schemas import (
    AvailabilityResponse,
    DayHoursSchema,
    DayStatusResponse,
    ServicePublic,
    SpecialDayCreate,
    SpecialDayPublic,
)

router = APIRouter(
    prefix="/shop",
    tags=["shop"],
)


@router.get("/services", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return session.exec(
        select(Service).where(Service.active == True).order_by(Service.category, Service.price)  # noqa: E712
    ).all()


@router.get("/days/{day}", response_model=DayStatusResponse)
def day_status(
    day: date,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
):
    status = orchestrator.is_day_open(day)
    return {
        "date": day,
        "is_open": status.is_open,
        "open_time": status.open_time,
        "close_time": status.close_time,
        "reason": status.reason,
    }


@router.get("/slots", response_model=AvailabilityResponse)
def available_slots(
    date: date,
    service_id: str,
    use_plan: bool = False,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    availability = orchestrator.available_slots(
        date,
        service_id=service_id,
        user_id=current_user["id"],
        use_plan=use_plan,
    )
    return {
        "date": availability.day,
        "duration_minutes": availability.duration_minutes,
        "is_plan_booking": availability.is_plan_booking,
        "slots": [{"starts_at": s, "priority": p} for s, p in availability.slots],
    }


@router.get("/special-days", response_model=List[SpecialDayPublic])
def list_special_days(session: Session = Depends(get_session)):
    return session.exec(select(SpecialDay).order_by(SpecialDay.date)).all()


@router.put("/special-days/{day}", response_model=SpecialDayPublic)
def set_special_day(
    day: date,
    body: SpecialDayCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    row = orchestrator.set_special_day(day, body.is_closed, body.open_time, body.close_time, body.reason)
    return {
        "date": row.date,
        "is_closed": row.is_closed,
        "open_time": row.open_time,
        "close_time": row.close_time,
        "reason": row.reason,
    }


@router.delete("/special-days/{day}", status_code=204)
def remove_special_day(
    day: date,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    orchestrator.remove_special_day(day)


@router.get("/week")
def get_week(session: Session = Depends(get_session)):
    rows = session.exec(select(WeekdayHours).order_by(WeekdayHours.weekday)).all()
    return [
        {"weekday": r.weekday, "is_open": r.is_open, "open_time": r.open_time, "close_time": r.close_time}
        for r in rows
    ]


@router.put("/week/{weekday}", response_model=DayHoursSchema)
def set_week_day(
    weekday: int,
    body: DayHoursSchema,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    row = orchestrator.set_weekday_hours(
        weekday, DayHours(is_open=body.is_open, open_time=body.open_time, close_time=body.close_time)
    )
    return {"is_open": row.is_open, "open_time": row.open_time, "close_time": row.close_time}
