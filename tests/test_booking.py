"""Tests for the booking orchestrator against a real SQLite file."""

from __future__ import annotations

import threading
import unittest
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import DateTime

from barbershop.booking import BookingOrchestrator
from barbershop.calendar import DayHours
from barbershop.errors import (
    ClientSuspended,
    ConflictError,
    InvalidTransition,
    NotOwner,
    PlanNotUsable,
    PolicyViolation,
    ValidationError,
)
from barbershop.lifecycle import AppointmentCreated, SuspensionTriggered
from barbershop.models import Appointment, Plan, User
from barbershop.schemas import CustomPlanSelection
from tests.support import MONDAY, FixedClock, TempDatabase


def at(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, day, hour, minute)


class OrchestratorTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = TempDatabase()
        self.clock = FixedClock(MONDAY)
        self.events = []
        self.session = self.db.session()
        self.client_id = self.db.add_user("Ana", "11999990001")
        self.other_id = self.db.add_user("Bruno", "11999990002")
        self.orchestrator = self.make_orchestrator(self.session)

    def tearDown(self) -> None:
        self.session.close()
        self.db.close()

    def make_orchestrator(self, session) -> BookingOrchestrator:
        return BookingOrchestrator(session, clock=self.clock, listeners=[self.events.append])

    def approve(self, user_id: int, plan_type: str = "custom", selection=None):
        plan = self.orchestrator.request_plan(user_id, plan_type, custom_selection=selection)
        return self.orchestrator.approve_plan(plan.id)


class BookingTests(OrchestratorTestCase):
    """Book, conflict and cancel."""

    def test_book_paid_appointment(self) -> None:
        appt = self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))

        self.assertEqual(appt.status, "pending")
        self.assertEqual(appt.price, Decimal("30"))
        self.assertFalse(appt.is_plan_booking)
        created = [e for e in self.events if isinstance(e, AppointmentCreated)]
        self.assertEqual(created[0].appointment_id, appt.id)

    def test_same_slot_twice_is_conflict(self) -> None:
        self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))

        with self.assertRaises(ConflictError):
            self.orchestrator.book_appointment(self.other_id, "social", at(3, 10))

    def test_longer_service_cannot_run_into_booking(self) -> None:
        self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))

        with self.assertRaises(ConflictError):
            self.orchestrator.book_appointment(self.other_id, "degrade-navalhado", at(3, 9, 30))

    def test_off_grid_start_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.orchestrator.book_appointment(self.client_id, "social", at(3, 10, 10))

    def test_closed_day_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.orchestrator.book_appointment(self.client_id, "social", at(8, 10))

    def test_canceled_slot_can_be_rebooked(self) -> None:
        first = self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))
        self.orchestrator.cancel_appointment(first.id, self.client_id)

        again = self.orchestrator.book_appointment(self.other_id, "social", at(3, 10))

        self.assertEqual(again.starts_at, at(3, 10))

    def test_only_owner_can_cancel(self) -> None:
        appt = self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))

        with self.assertRaises(NotOwner):
            self.orchestrator.cancel_appointment(appt.id, self.other_id)

    def test_concurrent_bookings_for_one_slot(self) -> None:
        barrier = threading.Barrier(2)
        results = []

        def attempt(user_id: int) -> None:
            with self.db.session() as session:
                orchestrator = self.make_orchestrator(session)
                barrier.wait()
                try:
                    orchestrator.book_appointment(user_id, "social", at(4, 11))
                    results.append("booked")
                except ConflictError:
                    results.append("conflict")

        threads = [threading.Thread(target=attempt, args=(uid,)) for uid in (self.client_id, self.other_id)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sorted(results), ["booked", "conflict"])
        slots = self.orchestrator.available_slots(date(2026, 3, 4), service_id="social").slots
        self.assertNotIn(at(4, 11), [s for s, _ in slots])

    def test_special_day_closes_slots(self) -> None:
        self.orchestrator.set_special_day(date(2026, 3, 3), is_closed=True, reason="Holiday")

        availability = self.orchestrator.available_slots(date(2026, 3, 3), service_id="social")

        self.assertEqual(availability.slots, [])
        with self.assertRaises(ValidationError):
            self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))


class SuspensionTests(OrchestratorTestCase):
    """A no-show suspends the client until staff lift it."""

    def test_no_show_blocks_booking_until_unsuspended(self) -> None:
        appt = self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))
        self.orchestrator.mark_no_show(appt.id, "did not show up")

        user = self.session.get(User, self.client_id)
        self.assertTrue(user.suspended)
        self.assertIn("2026-03-03 10:00", user.suspension_reason)
        self.assertTrue(any(isinstance(e, SuspensionTriggered) for e in self.events))

        with self.assertRaises(ClientSuspended) as ctx:
            self.orchestrator.book_appointment(self.client_id, "social", at(4, 10))
        self.assertIn("Missed appointment", ctx.exception.detail)

        self.orchestrator.unsuspend_client(self.client_id)
        again = self.orchestrator.book_appointment(self.client_id, "social", at(4, 10))
        self.assertEqual(again.status, "pending")

    def test_staff_suspension(self) -> None:
        self.orchestrator.suspend_client(self.other_id, "Rude to staff")

        with self.assertRaises(ClientSuspended):
            self.orchestrator.book_appointment(self.other_id, "barba", at(3, 10))


class PlanBookingTests(OrchestratorTestCase):
    """Plan bookings consume quota; paid bookings never do."""

    def test_quota_exhaustion_keeps_paid_bookings(self) -> None:
        self.approve(self.client_id)

        for day in (2, 3, 4, 5):
            appt = self.orchestrator.book_appointment(self.client_id, "social", at(day, 10), use_plan=True)
            self.assertEqual(appt.price, Decimal("0"))
            self.assertTrue(appt.is_plan_booking)

        usage = self.orchestrator.plan_usage(self.client_id)
        self.assertEqual(usage.cuts.remaining, 0)
        self.assertFalse(usage.can_use_plan)

        with self.assertRaises(PlanNotUsable):
            self.orchestrator.book_appointment(self.client_id, "social", at(9, 10), use_plan=True)

        beard = self.orchestrator.book_appointment(self.client_id, "barba", at(9, 10))
        self.assertEqual(beard.price, Decimal("20"))
        cut = self.orchestrator.book_appointment(self.client_id, "social", at(9, 11))
        self.assertEqual(cut.price, Decimal("30"))

    def test_canceled_plan_booking_returns_quota(self) -> None:
        self.approve(self.client_id)
        appt = self.orchestrator.book_appointment(self.client_id, "social", at(3, 10), use_plan=True)
        self.orchestrator.cancel_appointment(appt.id, self.client_id)

        self.assertEqual(self.orchestrator.plan_usage(self.client_id).cuts.used, 0)

    def test_plan_day_not_allowed(self) -> None:
        self.approve(self.client_id, "club-corte")

        with self.assertRaises(PlanNotUsable):
            self.orchestrator.book_appointment(self.client_id, "social", at(6, 10), use_plan=True)

    def test_plan_booking_without_plan(self) -> None:
        with self.assertRaises(PlanNotUsable):
            self.orchestrator.book_appointment(self.client_id, "social", at(3, 10), use_plan=True)

    def test_combo_is_never_plan_covered(self) -> None:
        self.approve(self.client_id, "club-vip")

        with self.assertRaises(PlanNotUsable):
            self.orchestrator.book_appointment(self.client_id, "cb-social-barba", at(3, 10), use_plan=True)

    def test_slots_for_plan_booking(self) -> None:
        self.approve(self.client_id, "club-vip")

        availability = self.orchestrator.available_slots(
            date(2026, 3, 3), service_id="social", user_id=self.client_id, use_plan=True
        )

        self.assertTrue(availability.is_plan_booking)
        marked = dict(availability.slots)
        self.assertTrue(marked[at(3, 9)])
        self.assertFalse(marked[at(3, 11)])

    def test_unusable_plan_means_regular_slots(self) -> None:
        availability = self.orchestrator.available_slots(
            date(2026, 3, 3), service_id="social", user_id=self.client_id, use_plan=True
        )

        self.assertFalse(availability.is_plan_booking)
        self.assertTrue(availability.slots)

    def test_plan_request_transitions(self) -> None:
        plan = self.orchestrator.request_plan(
            self.client_id, "custom", custom_selection=CustomPlanSelection(unlimited_beard=True)
        )
        self.assertEqual(plan.status, "pending")
        self.assertEqual(plan.price, Decimal("120"))

        with self.assertRaises(PolicyViolation):
            self.orchestrator.request_plan(self.client_id, "club-corte")

        with self.assertRaises(ValidationError):
            self.orchestrator.reject_plan(plan.id, "")

        self.orchestrator.approve_plan(plan.id)
        with self.assertRaises(InvalidTransition):
            self.orchestrator.approve_plan(plan.id)

        plan = self.orchestrator.deactivate_plan(plan.id, "Payment missing")
        self.assertEqual(plan.status, "deactivated")
        self.assertEqual(plan.deactivate_reason, "Payment missing")


class StaffOperationTests(OrchestratorTestCase):
    def test_confirm_complete_and_report(self) -> None:
        first = self.orchestrator.book_appointment(self.client_id, "social", at(2, 9))
        second = self.orchestrator.book_appointment(self.other_id, "barba", at(2, 10))
        third = self.orchestrator.book_appointment(self.other_id, "barba", at(2, 11))

        self.orchestrator.confirm(first.id)
        self.clock.now = at(2, 16)
        self.orchestrator.mark_completed(first.id)
        self.orchestrator.mark_no_show(second.id)
        self.orchestrator.admin_cancel(third.id, "Shop closed early")

        report = self.orchestrator.month_report(2026, 3)

        self.assertEqual(report.completed, 1)
        self.assertEqual(report.no_shows, 1)
        self.assertEqual(report.canceled, 1)
        self.assertEqual(report.revenue, Decimal("30"))

    def test_complete_expired(self) -> None:
        appt = self.orchestrator.book_appointment(self.client_id, "social", at(2, 10))
        self.clock.now = at(2, 11)

        done = self.orchestrator.complete_expired()

        self.assertEqual([a.id for a in done], [appt.id])
        self.assertEqual(done[0].status, "completed")

    def test_weekday_hours_change_applies(self) -> None:
        self.orchestrator.set_weekday_hours(
            1, DayHours(True, time(10, 0), time(12, 0))
        )

        starts = [s for s, _ in self.orchestrator.available_slots(date(2026, 3, 3), service_id="social").slots]

        self.assertEqual(starts[0], at(3, 10))
        self.assertEqual(starts[-1], at(3, 11, 30))


class ShopTimeTests(OrchestratorTestCase):
    """Start times are stored as naive shop-local datetimes."""

    def test_utc_start_is_converted_to_shop_time(self) -> None:
        appt = self.orchestrator.book_appointment(
            self.client_id, "social", datetime(2026, 3, 3, 13, 0, tzinfo=timezone.utc)
        )

        self.assertEqual(appt.starts_at, at(3, 10))
        self.assertIsNone(appt.starts_at.tzinfo)

    def test_offset_start_blocks_the_same_local_slot(self) -> None:
        self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))
        local = datetime(2026, 3, 3, 10, 0, tzinfo=timezone(timedelta(hours=-3)))

        with self.assertRaises(ConflictError):
            self.orchestrator.book_appointment(self.other_id, "social", local)

    def test_datetime_columns_are_naive(self) -> None:
        columns = [
            Appointment.__table__.c.starts_at,
            Appointment.__table__.c.created_at,
            Plan.__table__.c.requested_at,
            Plan.__table__.c.approved_at,
            User.__table__.c.suspended_at,
        ]
        for column in columns:
            self.assertIsInstance(column.type, DateTime)
            self.assertFalse(column.type.timezone)

    def test_naive_datetimes_round_trip(self) -> None:
        appt = self.orchestrator.book_appointment(self.client_id, "social", at(3, 10))
        plan = self.approve(self.client_id, "club-corte")

        with self.db.session() as session:
            stored = session.get(Appointment, appt.id)
            self.assertEqual(stored.starts_at, at(3, 10))
            self.assertEqual(stored.created_at, MONDAY)
            self.assertEqual(session.get(Plan, plan.id).approved_at, MONDAY)


if __name__ == "__main__":
    unittest.main()
