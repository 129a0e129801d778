# barbershop/lifecycle.py
"""
Appointment state machine.

    pending -> confirmed -> completed
    pending | confirmed -> canceled
    pending | confirmed | completed -> no_show

canceled and no_show are terminal. completed is terminal except for the
staff correction to no_show. Transitions only mutate the appointment in
memory and return the events they caused; persisting the row and acting on
the events (suspending the client, notifying) belongs to the caller.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from barbershop.config import CANCELLATION_WINDOW_MINUTES, shop_now
from barbershop.errors import CancellationWindowExpired, ConflictError, InvalidTransition, PlanNotUsable
from barbershop.models import Appointment
from barbershop.schemas import AppointmentStatus

logger = logging.getLogger(__name__)

PENDING = AppointmentStatus.pending.value
CONFIRMED = AppointmentStatus.confirmed.value
COMPLETED = AppointmentStatus.completed.value
CANCELED = AppointmentStatus.canceled.value
NO_SHOW = AppointmentStatus.no_show.value

ACTIVE = (PENDING, CONFIRMED)

ALLOWED_FROM = {
    CONFIRMED: (PENDING,),
    COMPLETED: (PENDING, CONFIRMED),
    CANCELED: (PENDING, CONFIRMED),
    NO_SHOW: (PENDING, CONFIRMED, COMPLETED),
}


@dataclass(frozen=True)
class AppointmentCreated:
    appointment_id: Optional[int]
    user_id: int
    starts_at: datetime


@dataclass(frozen=True)
class AppointmentConfirmed:
    appointment_id: int
    user_id: int


@dataclass(frozen=True)
class AppointmentCanceled:
    appointment_id: int
    user_id: int
    canceled_by: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class AppointmentCompleted:
    appointment_id: int
    user_id: int


@dataclass(frozen=True)
class NoShowRecorded:
    appointment_id: int
    user_id: int
    observation: Optional[str] = None


@dataclass(frozen=True)
class SuspensionTriggered:
    user_id: int
    appointment_id: int
    reason: str


@dataclass
class Transition:
    appointment: Appointment
    events: List[object] = field(default_factory=list)


class AppointmentLifecycle:
    def __init__(
        self,
        cancellation_window_minutes: int = CANCELLATION_WINDOW_MINUTES,
        clock: Callable[[], datetime] = shop_now,
    ):
        self.cancellation_window = timedelta(minutes=cancellation_window_minutes)
        self.clock = clock

    def _move(self, appt: Appointment, target: str) -> None:
        if appt.status not in ALLOWED_FROM[target]:
            raise InvalidTransition(f"Appointment {appt.id} cannot go from {appt.status} to {target}")
        logger.info("Appointment %s: %s -> %s", appt.id, appt.status, target)
        appt.status = target
        appt.updated_at = self.clock()

    def create(
        self,
        user_id: int,
        service,
        starts_at: datetime,
        price: Decimal,
        is_plan_booking: bool,
        free_starts: Iterable[datetime],
        plan_covered: bool = False,
    ) -> Transition:
        """New appointments always start as pending; staff confirm them explicitly."""
        if starts_at not in set(free_starts):
            raise ConflictError("This time is no longer available. Please pick another slot.")
        if is_plan_booking and not plan_covered:
            raise PlanNotUsable(f"{service.name} is not covered by your plan")

        now = self.clock()
        appt = Appointment(
            user_id=user_id,
            service_id=service.id,
            service_name=service.name,
            service_type=service.category,
            price=Decimal("0") if is_plan_booking else Decimal(price),
            duration_minutes=service.duration_minutes,
            starts_at=starts_at,
            status=PENDING,
            is_plan_booking=is_plan_booking,
            created_at=now,
            updated_at=now,
        )
        return Transition(appt, [AppointmentCreated(None, user_id, starts_at)])

    def confirm(self, appt: Appointment) -> Transition:
        self._move(appt, CONFIRMED)
        return Transition(appt, [AppointmentConfirmed(appt.id, appt.user_id)])

    def cancel_deadline(self, appt: Appointment) -> datetime:
        return appt.starts_at - self.cancellation_window

    def client_cancel(self, appt: Appointment) -> Transition:
        if appt.status not in ALLOWED_FROM[CANCELED]:
            raise InvalidTransition(f"Appointment {appt.id} is already {appt.status}")
        now = self.clock()
        if not now < self.cancel_deadline(appt):
            minutes = int(self.cancellation_window.total_seconds() // 60)
            raise CancellationWindowExpired(
                f"Appointments can only be canceled up to {minutes} minutes before they start"
            )
        self._move(appt, CANCELED)
        appt.canceled_by = "client"
        return Transition(appt, [AppointmentCanceled(appt.id, appt.user_id, "client")])

    def admin_cancel(self, appt: Appointment, reason: Optional[str] = None) -> Transition:
        self._move(appt, CANCELED)
        appt.canceled_by = "staff"
        appt.cancel_reason = reason
        return Transition(appt, [AppointmentCanceled(appt.id, appt.user_id, "staff", reason)])

    def mark_completed(self, appt: Appointment) -> Transition:
        self._move(appt, COMPLETED)
        return Transition(appt, [AppointmentCompleted(appt.id, appt.user_id)])

    def mark_no_show(self, appt: Appointment, observation: Optional[str] = None) -> Transition:
        self._move(appt, NO_SHOW)
        appt.observation = observation
        reason = f"Missed appointment on {appt.starts_at:%Y-%m-%d %H:%M}"
        return Transition(
            appt,
            [
                NoShowRecorded(appt.id, appt.user_id, observation),
                SuspensionTriggered(appt.user_id, appt.id, reason),
            ],
        )

    def auto_complete_expired(self, appointments: Iterable[Appointment]) -> List[Transition]:
        """Complete active appointments whose end time has already passed."""
        now = self.clock()
        done = []
        for appt in appointments:
            if appt.status not in ACTIVE:
                continue
            if appt.starts_at + timedelta(minutes=appt.duration_minutes) < now:
                done.append(self.mark_completed(appt))
        return done
