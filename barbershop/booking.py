# barbershop/booking.py
"""
Booking orchestrator: every state-changing command of the shop.

Each command is one unit of work. Units of work are serialized by a
process-wide lock and, on databases that support it, a row lock on the
ShopSettings singleton, so the "is this slot still free" and "is there plan
quota left" checks read the same state the insert commits against.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.calendar import (
    DayHours,
    ShopCalendar,
    ShopConfig,
    SpecialDay,
    validate_day_hours,
    validate_special_day,
)
from barbershop.config import (
    BOOKING_LEAD_MINUTES,
    CANCELLATION_WINDOW_MINUTES,
    PLAN_CUT_QUOTA,
    shop_now,
    to_shop_time,
)
from barbershop.core import day_bounds, month_bounds
from barbershop.errors import (
    ClientSuspended,
    ConflictError,
    InvalidTransition,
    NotFoundError,
    NotOwner,
    PlanNotUsable,
    PolicyViolation,
    ValidationError,
)
from barbershop.lifecycle import (
    ACTIVE,
    AppointmentCreated,
    AppointmentLifecycle,
    SuspensionTriggered,
    Transition,
)
from barbershop.models import Appointment, Plan, ShopSettings, User, WeekdayHours
from barbershop.models import SpecialDay as SpecialDayModel
from barbershop.plans import (
    PlanEntitlement,
    PlanUsage,
    calculate_plan_includes,
    plan_price,
    priority_slots,
)
from barbershop.schemas import CustomPlanSelection, PlanStatus, PlanType
from barbershop.slots import SlotGenerator
from barbershop import store

logger = logging.getLogger(__name__)

# One shop, one writer at a time.
_commit_lock = threading.RLock()

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def log_event(event) -> None:
    logger.info("event %s %s", type(event).__name__, event)


@dataclass(frozen=True)
class Availability:
    day: date
    duration_minutes: int
    is_plan_booking: bool
    slots: List[Tuple[datetime, bool]]  # (start, shown as priority slot)


@dataclass(frozen=True)
class MonthReport:
    year: int
    month: int
    completed: int
    no_shows: int
    canceled: int
    revenue: Decimal
    plan_bookings: int


class BookingOrchestrator:
    def __init__(
        self,
        session: Session,
        config: Optional[ShopConfig] = None,
        clock: Callable[[], datetime] = shop_now,
        cut_quota: int = PLAN_CUT_QUOTA,
        cancellation_window_minutes: int = CANCELLATION_WINDOW_MINUTES,
        lead_minutes: int = BOOKING_LEAD_MINUTES,
        listeners: Optional[Iterable[Callable]] = None,
    ):
        self.session = session
        self.clock = clock
        self.cut_quota = cut_quota
        self.cancellation_window_minutes = cancellation_window_minutes
        self.lead_minutes = lead_minutes
        self.listeners = list(listeners) if listeners is not None else [log_event]
        # an injected config is fixed; otherwise it follows the database
        self._config_from_store = config is None
        self._configure(config or store.load_shop_config(session))

    def _configure(self, config: ShopConfig) -> None:
        self.config = config
        self.calendar = ShopCalendar(config, self.clock)
        self.slots = SlotGenerator(self.calendar, self.lead_minutes)
        self.entitlement = PlanEntitlement(self.calendar, self.cut_quota, self.clock)
        self.lifecycle = AppointmentLifecycle(self.cancellation_window_minutes, self.clock)

    def _reload_config(self) -> None:
        if self._config_from_store:
            self._configure(store.load_shop_config(self.session))

    @contextmanager
    def _unit_of_work(self):
        with _commit_lock:
            try:
                # SQLite ignores FOR UPDATE; the process lock covers it there
                self.session.exec(
                    select(ShopSettings).where(ShopSettings.id == 1).with_for_update()
                ).first()
                yield
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                raise ConflictError("The booking conflicts with existing data. Please refresh and try again.")
            except Exception:
                self.session.rollback()
                raise

    def _dispatch(self, events: Iterable) -> None:
        for event in events:
            for listener in self.listeners:
                listener(event)

    # ---- queries ----

    def is_day_open(self, day: date):
        return self.calendar.is_day_open(day)

    def available_slots(
        self,
        day: date,
        duration_minutes: Optional[int] = None,
        service_id: Optional[str] = None,
        user_id: Optional[int] = None,
        use_plan: bool = False,
    ) -> Availability:
        if service_id is not None:
            duration_minutes = store.get_service(self.session, service_id).duration_minutes
        if duration_minutes is None:
            raise ValidationError("Either service_id or duration_minutes is required")

        plan = None
        if use_plan and user_id is not None:
            candidate = store.approved_plan(self.session, user_id)
            if self.entitlement.is_plan_usable(candidate, day):
                plan = candidate
        # a plan that cannot be used makes this a regular booking
        is_plan_booking = plan is not None

        if is_plan_booking and not self.entitlement.is_day_allowed(day, plan):
            return Availability(day, duration_minutes, True, [])

        starts = self.slots.generate_slots(
            day, duration_minutes, store.active_appointments_on(self.session, day)
        )
        early = set()
        if is_plan_booking:
            early = set(priority_slots(self.entitlement.priority(plan))["early_access"])
        marked = [(s, f"{s:%H:%M}" in early) for s in starts]
        return Availability(day, duration_minutes, is_plan_booking, marked)

    def plan_usage(self, user_id: int) -> PlanUsage:
        plan = store.approved_plan(self.session, user_id)
        today = self.clock().date()
        history = store.user_appointments_in_month(self.session, user_id, today)
        return self.entitlement.compute_usage(plan, history)

    # ---- booking ----

    def book_appointment(
        self,
        user_id: int,
        service_id: str,
        starts_at: datetime,
        use_plan: bool = False,
    ) -> Appointment:
        starts_at = to_shop_time(starts_at)
        day = starts_at.date()

        with self._unit_of_work():
            self._reload_config()

            # 1) Client must not be suspended
            user = store.get_user(self.session, user_id)
            if user.suspended:
                raise ClientSuspended(
                    f"Your account is suspended: {user.suspension_reason or 'contact the shop'}"
                )
            service = store.get_service(self.session, service_id)

            # 2) Plan usability and quota, read under the lock
            plan = None
            usage = None
            covered = False
            if use_plan:
                plan = store.approved_plan(self.session, user_id)
                if not self.entitlement.is_plan_usable(plan, day):
                    raise PlanNotUsable("You have no approved plan valid for this date")
                if not self.entitlement.is_day_allowed(day, plan):
                    raise PlanNotUsable(f"Your plan does not include {WEEKDAY_NAMES[day.weekday()]}s")
                usage = self.entitlement.compute_usage(
                    plan, store.user_appointments_in_month(self.session, user_id, day)
                )
                covered = self.entitlement.covers(service.category, plan, usage)
                if not covered:
                    raise PlanNotUsable(usage.reason or f"{service.name} is not covered by your plan")

            # 3) Recompute free slots against the authoritative store
            grid = self.slots.generate_slots(day, service.duration_minutes, [])
            if starts_at not in grid:
                raise ValidationError("Requested time is not a bookable start time for this day")
            free = self.slots.generate_slots(
                day, service.duration_minutes, store.active_appointments_on(self.session, day)
            )

            # 4) Price and create
            price = self.entitlement.price_for(service, plan, usage) if use_plan else Decimal(service.price)
            transition = self.lifecycle.create(
                user_id=user_id,
                service=service,
                starts_at=starts_at,
                price=price,
                is_plan_booking=use_plan,
                free_starts=free,
                plan_covered=covered,
            )
            appt = transition.appointment
            self.session.add(appt)
            self.session.flush()
            transition.events = [
                replace(e, appointment_id=appt.id) if isinstance(e, AppointmentCreated) else e
                for e in transition.events
            ]

        self.session.refresh(appt)
        logger.info(
            "Booked appointment %s for user %s at %s (%s, plan=%s)",
            appt.id, user_id, starts_at, service_id, use_plan,
        )
        self._dispatch(transition.events)
        return appt

    # ---- lifecycle commands ----

    def _apply(self, appt_id: int, command: Callable[[Appointment], Transition]) -> Appointment:
        with self._unit_of_work():
            appt = store.get_appointment(self.session, appt_id)
            transition = command(appt)
            self.session.add(appt)
            for event in transition.events:
                if isinstance(event, SuspensionTriggered):
                    self._suspend(event.user_id, event.reason)
        self.session.refresh(appt)
        self._dispatch(transition.events)
        return appt

    def cancel_appointment(self, appt_id: int, user_id: int) -> Appointment:
        def command(appt):
            if appt.user_id != user_id:
                raise NotOwner("You can only cancel your own appointments")
            return self.lifecycle.client_cancel(appt)

        return self._apply(appt_id, command)

    def admin_cancel(self, appt_id: int, reason: Optional[str] = None) -> Appointment:
        return self._apply(appt_id, lambda appt: self.lifecycle.admin_cancel(appt, reason))

    def confirm(self, appt_id: int) -> Appointment:
        return self._apply(appt_id, self.lifecycle.confirm)

    def mark_completed(self, appt_id: int) -> Appointment:
        return self._apply(appt_id, self.lifecycle.mark_completed)

    def mark_no_show(self, appt_id: int, observation: Optional[str] = None) -> Appointment:
        return self._apply(appt_id, lambda appt: self.lifecycle.mark_no_show(appt, observation))

    def complete_expired(self) -> List[Appointment]:
        with self._unit_of_work():
            candidates = self.session.exec(
                select(Appointment)
                .where(Appointment.status.in_(ACTIVE))
                .where(Appointment.starts_at < self.clock())
            ).all()
            transitions = self.lifecycle.auto_complete_expired(candidates)
            for t in transitions:
                self.session.add(t.appointment)
        if transitions:
            logger.info("Auto-completed %d expired appointments", len(transitions))
        for t in transitions:
            self._dispatch(t.events)
        return [t.appointment for t in transitions]

    # ---- client account ----

    def _suspend(self, user_id: int, reason: Optional[str]) -> User:
        user = store.get_user(self.session, user_id)
        user.suspended = True
        user.suspension_reason = reason
        user.suspended_at = self.clock()
        self.session.add(user)
        logger.warning("Client %s suspended: %s", user_id, reason)
        return user

    def suspend_client(self, user_id: int, reason: Optional[str] = None) -> User:
        with self._unit_of_work():
            user = self._suspend(user_id, reason or "Suspended by staff")
        self.session.refresh(user)
        return user

    def unsuspend_client(self, user_id: int) -> User:
        with self._unit_of_work():
            user = store.get_user(self.session, user_id)
            user.suspended = False
            user.suspension_reason = None
            user.suspended_at = None
            self.session.add(user)
        self.session.refresh(user)
        logger.info("Client %s unsuspended", user_id)
        return user

    # ---- plans ----

    def request_plan(
        self,
        user_id: int,
        plan_type: str,
        selected_schedule: str = "",
        custom_selection: Optional[CustomPlanSelection] = None,
    ) -> Plan:
        plan_type = PlanType(plan_type).value
        with self._unit_of_work():
            store.get_user(self.session, user_id)
            existing = store.current_plan(self.session, user_id)
            if existing is not None:
                raise PolicyViolation(f"You already have a {existing.status} plan")
            if plan_type != PlanType.custom.value:
                custom_selection = None
            includes = calculate_plan_includes(plan_type, custom_selection)
            plan = Plan(
                user_id=user_id,
                plan_type=plan_type,
                status=PlanStatus.pending.value,
                price=plan_price(plan_type, custom_selection),
                selected_schedule=selected_schedule,
                unlimited_cuts=includes.unlimited_cuts,
                unlimited_beard=includes.unlimited_beard,
                eyebrow_included=includes.eyebrow_included,
                allowed_days=list(includes.allowed_days),
                priority=includes.priority,
                product_discount=includes.product_discount,
                fixed_schedule=includes.fixed_schedule,
                custom_selection=custom_selection.model_dump(mode="json") if custom_selection else None,
                requested_at=self.clock(),
            )
            self.session.add(plan)
        self.session.refresh(plan)
        logger.info("Plan %s (%s) requested by user %s", plan.id, plan_type, user_id)
        return plan

    def _plan_transition(self, plan_id: int, allowed: Tuple[str, ...], target: str, apply: Callable[[Plan], None]) -> Plan:
        with self._unit_of_work():
            plan = store.get_plan(self.session, plan_id)
            if plan.status not in allowed:
                raise InvalidTransition(f"Plan {plan_id} cannot go from {plan.status} to {target}")
            apply(plan)
            plan.status = target
            self.session.add(plan)
        self.session.refresh(plan)
        logger.info("Plan %s -> %s", plan_id, target)
        return plan

    def approve_plan(self, plan_id: int, observation: Optional[str] = None) -> Plan:
        def apply(plan):
            other = store.approved_plan(self.session, plan.user_id)
            if other is not None and other.id != plan.id:
                raise PolicyViolation("Client already has an approved plan; deactivate it first")
            plan.approved_at = self.clock()
            plan.observation = observation

        return self._plan_transition(plan_id, ("pending",), PlanStatus.approved.value, apply)

    def reject_plan(self, plan_id: int, reason: str, observation: Optional[str] = None) -> Plan:
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")

        def apply(plan):
            plan.rejected_at = self.clock()
            plan.reject_reason = reason.strip()
            plan.observation = observation

        return self._plan_transition(plan_id, ("pending",), PlanStatus.rejected.value, apply)

    def deactivate_plan(self, plan_id: int, reason: Optional[str] = None) -> Plan:
        def apply(plan):
            plan.deactivated_at = self.clock()
            plan.deactivate_reason = reason

        return self._plan_transition(plan_id, ("approved",), PlanStatus.deactivated.value, apply)

    # ---- shop calendar writes ----

    def set_special_day(
        self,
        day: date,
        is_closed: bool,
        open_time: Optional[time] = None,
        close_time: Optional[time] = None,
        reason: Optional[str] = None,
    ) -> SpecialDayModel:
        validate_special_day(SpecialDay(day, is_closed, open_time, close_time, reason))
        with self._unit_of_work():
            row = self.session.get(SpecialDayModel, day)
            if row is None:
                row = SpecialDayModel(date=day, is_closed=is_closed)
            row.is_closed = is_closed
            row.open_time = None if is_closed else open_time
            row.close_time = None if is_closed else close_time
            row.reason = reason
            self.session.add(row)
        self.session.refresh(row)
        self._reload_config()
        logger.info("Special day %s set (closed=%s)", day, is_closed)
        return row

    def remove_special_day(self, day: date) -> None:
        with self._unit_of_work():
            row = self.session.get(SpecialDayModel, day)
            if row is None:
                raise NotFoundError("Special day not found")
            self.session.delete(row)
        self._reload_config()
        logger.info("Special day %s removed", day)

    def set_weekday_hours(self, weekday: int, hours: DayHours) -> WeekdayHours:
        validate_day_hours(weekday, hours)
        with self._unit_of_work():
            row = self.session.get(WeekdayHours, weekday)
            if row is None:
                row = WeekdayHours(weekday=weekday, is_open=hours.is_open,
                                   open_time=hours.open_time, close_time=hours.close_time)
            row.is_open = hours.is_open
            row.open_time = hours.open_time
            row.close_time = hours.close_time
            self.session.add(row)
        self.session.refresh(row)
        self._reload_config()
        return row

    # ---- reporting ----

    def month_report(self, year: int, month: int) -> MonthReport:
        try:
            first, last = month_bounds(date(year, month, 1))
        except ValueError:
            raise ValidationError("Invalid year/month")
        start, _ = day_bounds(first)
        _, end = day_bounds(last)

        rows = self.session.exec(
            select(Appointment.status, func.count(), func.coalesce(func.sum(Appointment.price), 0))
            .where(Appointment.starts_at >= start)
            .where(Appointment.starts_at < end)
            .group_by(Appointment.status)
        ).all()
        counts = {status: (count, total) for status, count, total in rows}
        plan_bookings = self.session.exec(
            select(func.count())
            .select_from(Appointment)
            .where(Appointment.starts_at >= start)
            .where(Appointment.starts_at < end)
            .where(Appointment.is_plan_booking == True)  # noqa: E712
            .where(Appointment.status == "completed")
        ).one()

        return MonthReport(
            year=year,
            month=month,
            completed=counts.get("completed", (0, 0))[0],
            no_shows=counts.get("no_show", (0, 0))[0],
            canceled=counts.get("canceled", (0, 0))[0],
            revenue=Decimal(str(counts.get("completed", (0, 0))[1] or 0)),
            plan_bookings=plan_bookings,
        )
