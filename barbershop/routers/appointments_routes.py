# barbershop/routers/appointments_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.auth import get_current_user
from barbershop.booking import BookingOrchestrator
from barbershop.core import day_bounds
from barbershop.db import get_session
from barbershop.deps import get_orchestrator, require_role
from barbershop.models import Appointment
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentStatus,
    CancelReason,
    MonthReport,
    StaffNote,
)

router = APIRouter(
    tags=["appointments"],
)

STATUS_FILTERS = [s.value for s in AppointmentStatus] + ["active", "all"]


def _filter_status(stmt, status: str):
    if status not in STATUS_FILTERS:
        raise HTTPException(status_code=422, detail=f"status must be one of {', '.join(STATUS_FILTERS)}")
    if status == "active":
        return stmt.where(Appointment.status.in_(("pending", "confirmed")))
    if status != "all":
        return stmt.where(Appointment.status == status)
    return stmt


# ---- client ----

@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    return orchestrator.book_appointment(
        current_user["id"], appt.service_id, appt.starts_at, use_plan=appt.use_plan
    )


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    return orchestrator.cancel_appointment(appt_id, current_user["id"])


@router.get("/clients/me/appointments", response_model=List[AppointmentPublic])
def list_my_appointments(
    status: str = "all",
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    stmt = select(Appointment).where(Appointment.user_id == current_user["id"])
    stmt = _filter_status(stmt, status).order_by(Appointment.starts_at.desc())
    return session.exec(stmt).all()


# ---- staff ----

@router.get("/appointments", response_model=List[AppointmentPublic])
def list_appointments(
    on_date: Optional[date] = None,
    status: str = "all",
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")

    stmt = select(Appointment)
    if on_date is not None:
        day_start_dt, day_end_dt = day_bounds(on_date)
        stmt = stmt.where(Appointment.starts_at >= day_start_dt).where(Appointment.starts_at < day_end_dt)
    stmt = _filter_status(stmt, status).order_by(Appointment.starts_at)
    return session.exec(stmt).all()


@router.get("/appointments/report", response_model=MonthReport)
def month_report(
    year: int,
    month: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    report = orchestrator.month_report(year, month)
    return {
        "year": report.year,
        "month": report.month,
        "completed": report.completed,
        "no_shows": report.no_shows,
        "canceled": report.canceled,
        "revenue": report.revenue,
        "plan_bookings": report.plan_bookings,
    }


@router.post("/appointments/complete-expired", response_model=List[AppointmentPublic])
def complete_expired(
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return orchestrator.complete_expired()


@router.patch("/appointments/{appt_id}/confirm", response_model=AppointmentPublic)
def confirm_appointment(
    appt_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return orchestrator.confirm(appt_id)


@router.patch("/appointments/{appt_id}/complete", response_model=AppointmentPublic)
def complete_appointment(
    appt_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return orchestrator.mark_completed(appt_id)


@router.patch("/appointments/{appt_id}/no-show", response_model=AppointmentPublic)
def mark_no_show(
    appt_id: int,
    body: Optional[StaffNote] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return orchestrator.mark_no_show(appt_id, body.observation if body else None)


@router.patch("/appointments/{appt_id}/admin-cancel", response_model=AppointmentPublic)
def admin_cancel(
    appt_id: int,
    body: Optional[CancelReason] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return orchestrator.admin_cancel(appt_id, body.reason if body else None)
