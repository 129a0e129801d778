# barbershop/plans.py
"""
Plan entitlements: what a subscription covers, on which days, and how much
of it the client has used this month.

A plan is usable only while approved, and only for dates inside its valid
period (the current calendar month). Cuts carry a monthly quota unless the
plan grants unlimited cuts; beard and eyebrow are yes/no gates. Every other
service category is always paid in full.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from barbershop.calendar import ShopCalendar
from barbershop.config import PLAN_CUT_QUOTA, shop_now
from barbershop.core import month_bounds
from barbershop.schemas import CustomPlanSelection, PlanStatus, PlanType, Priority, ServiceCategory

MON, TUE, WED, THU, FRI, SAT, SUN = range(7)

BASE_DAYS = (MON, TUE, WED, THU)

# statuses that consume quota
COUNTED_STATUSES = ("pending", "confirmed", "completed")


@dataclass(frozen=True)
class PlanIncludes:
    unlimited_cuts: bool = False
    unlimited_beard: bool = False
    eyebrow_included: bool = False
    allowed_days: Tuple[int, ...] = BASE_DAYS
    priority: str = Priority.normal.value
    product_discount: int = 0
    fixed_schedule: bool = False


FIXED_PLANS = {
    PlanType.club_corte.value: {
        "name": "Club Corte",
        "price": Decimal("120"),
        "includes": PlanIncludes(
            unlimited_cuts=True,
            allowed_days=(MON, TUE, WED, THU),
            priority=Priority.normal.value,
        ),
    },
    PlanType.club_combo.value: {
        "name": "Club Combo",
        "price": Decimal("180"),
        "includes": PlanIncludes(
            unlimited_cuts=True,
            unlimited_beard=True,
            allowed_days=(MON, TUE, WED, THU, FRI),
            priority=Priority.medium.value,
            product_discount=5,
        ),
    },
    PlanType.club_vip.value: {
        "name": "Club VIP",
        "price": Decimal("230"),
        "includes": PlanIncludes(
            unlimited_cuts=True,
            unlimited_beard=True,
            eyebrow_included=True,
            allowed_days=(MON, TUE, WED, THU, FRI, SAT),
            priority=Priority.max.value,
            product_discount=10,
            fixed_schedule=True,
        ),
    },
}

# Custom plan builder: base price plus add-ons
CUSTOM_PLAN_BASE_PRICE = Decimal("80")
CUSTOM_PLAN_ADDONS = {
    "unlimited_cuts": Decimal("50"),
    "unlimited_beard": Decimal("40"),
    "eyebrow_included": Decimal("15"),
    "add_friday": Decimal("15"),
    "add_saturday": Decimal("25"),
    "priority_medium": Decimal("10"),
    "priority_max": Decimal("20"),
    "fixed_schedule": Decimal("25"),
    "discount_5": Decimal("10"),
    "discount_10": Decimal("20"),
}

# A dearer fixed plan is still recommended when it costs at most this much more
RECOMMENDATION_MAX_EXTRA = Decimal("40")

PRIORITY_RANK = {Priority.normal.value: 0, Priority.medium.value: 1, Priority.max.value: 2}


def calculate_plan_includes(plan_type: str, selection: Optional[CustomPlanSelection] = None) -> PlanIncludes:
    if plan_type != PlanType.custom.value:
        return FIXED_PLANS[plan_type]["includes"]
    if selection is None:
        return PlanIncludes()

    days = list(BASE_DAYS)
    if selection.add_friday:
        days.append(FRI)
    if selection.add_saturday:
        days.append(SAT)
    return PlanIncludes(
        unlimited_cuts=selection.unlimited_cuts,
        unlimited_beard=selection.unlimited_beard,
        eyebrow_included=selection.eyebrow_included,
        allowed_days=tuple(days),
        priority=Priority(selection.priority).value,
        product_discount=selection.product_discount,
        fixed_schedule=selection.fixed_schedule,
    )


def calculate_custom_plan_price(selection: CustomPlanSelection) -> Decimal:
    price = CUSTOM_PLAN_BASE_PRICE
    for flag in ("unlimited_cuts", "unlimited_beard", "eyebrow_included", "add_friday", "add_saturday", "fixed_schedule"):
        if getattr(selection, flag):
            price += CUSTOM_PLAN_ADDONS[flag]
    if selection.priority == Priority.medium:
        price += CUSTOM_PLAN_ADDONS["priority_medium"]
    elif selection.priority == Priority.max:
        price += CUSTOM_PLAN_ADDONS["priority_max"]
    if selection.product_discount == 5:
        price += CUSTOM_PLAN_ADDONS["discount_5"]
    elif selection.product_discount == 10:
        price += CUSTOM_PLAN_ADDONS["discount_10"]
    return price


def plan_price(plan_type: str, selection: Optional[CustomPlanSelection] = None) -> Decimal:
    if plan_type == PlanType.custom.value:
        return calculate_custom_plan_price(selection or CustomPlanSelection())
    return FIXED_PLANS[plan_type]["price"]


@dataclass(frozen=True)
class PlanRecommendation:
    plan_type: str
    price: Decimal
    difference: Decimal
    extra_benefits: List[str]


def _meets(includes: PlanIncludes, selection: CustomPlanSelection) -> bool:
    if selection.unlimited_cuts and not includes.unlimited_cuts:
        return False
    if selection.unlimited_beard and not includes.unlimited_beard:
        return False
    if selection.eyebrow_included and not includes.eyebrow_included:
        return False
    if selection.add_friday and FRI not in includes.allowed_days:
        return False
    if selection.add_saturday and SAT not in includes.allowed_days:
        return False
    if selection.fixed_schedule and not includes.fixed_schedule:
        return False
    if selection.product_discount > includes.product_discount:
        return False
    return PRIORITY_RANK[Priority(selection.priority).value] <= PRIORITY_RANK[includes.priority]


def _extra_benefits(includes: PlanIncludes, selection: CustomPlanSelection) -> List[str]:
    extras = []
    if includes.unlimited_cuts and not selection.unlimited_cuts:
        extras.append("Unlimited cuts")
    if includes.unlimited_beard and not selection.unlimited_beard:
        extras.append("Unlimited beard")
    if includes.eyebrow_included and not selection.eyebrow_included:
        extras.append("Eyebrow included")
    if includes.fixed_schedule and not selection.fixed_schedule:
        extras.append("Fixed weekly schedule")
    if includes.product_discount > selection.product_discount:
        extras.append(f"{includes.product_discount}% product discount")
    if SAT in includes.allowed_days and not selection.add_saturday:
        extras.append("Saturday included")
    if FRI in includes.allowed_days and not selection.add_friday:
        extras.append("Friday included")
    wanted = PRIORITY_RANK[Priority(selection.priority).value]
    if PRIORITY_RANK[includes.priority] > wanted:
        extras.append(f"{includes.priority.capitalize()} priority")
    return extras


def recommend_plan(selection: CustomPlanSelection) -> Optional[PlanRecommendation]:
    """Suggest a fixed plan covering everything in a custom selection."""
    custom_price = calculate_custom_plan_price(selection)
    candidates = sorted(
        (
            (plan_type, offer)
            for plan_type, offer in FIXED_PLANS.items()
            if _meets(offer["includes"], selection)
        ),
        key=lambda item: item[1]["price"],
    )
    for plan_type, offer in candidates:
        diff = offer["price"] - custom_price
        extras = _extra_benefits(offer["includes"], selection)
        if diff <= 0:
            if diff < 0:
                extras.insert(0, f"Save R$ {abs(diff)}")
            return PlanRecommendation(plan_type, offer["price"], diff, extras or ["Same price, less hassle"])
        if diff <= RECOMMENDATION_MAX_EXTRA and extras:
            return PlanRecommendation(plan_type, offer["price"], diff, extras)
    return None


@dataclass(frozen=True)
class UsageCounter:
    used: int
    limit: Optional[int]
    remaining: Optional[int]


@dataclass(frozen=True)
class PlanUsage:
    cuts: UsageCounter
    beards: UsageCounter
    eyebrows: UsageCounter
    can_use_plan: bool
    reason: Optional[str] = None


def _counter(used: int, limit: Optional[int]) -> UsageCounter:
    if limit is None:
        return UsageCounter(used=used, limit=None, remaining=None)
    return UsageCounter(used=used, limit=limit, remaining=max(0, limit - used))


def priority_slots(priority: str) -> dict:
    """Early-access and reserved start times shown to priority subscribers (display only)."""
    rank = PRIORITY_RANK.get(priority, 0)
    if rank >= 2:
        return {
            "early_access": ["09:00", "09:30", "10:00", "14:00", "14:30", "15:00"],
            "reserved": ["10:00", "15:00"],
        }
    if rank >= 1:
        return {"early_access": ["09:30", "10:00", "14:30", "15:00"], "reserved": []}
    return {"early_access": [], "reserved": []}


class PlanEntitlement:
    def __init__(
        self,
        calendar: ShopCalendar,
        cut_quota: int = PLAN_CUT_QUOTA,
        clock: Callable[[], datetime] = shop_now,
    ):
        self.calendar = calendar
        self.cut_quota = cut_quota
        self.clock = clock

    def valid_period(self, plan) -> Optional[Tuple[date, date]]:
        if plan is None or plan.status != PlanStatus.approved or plan.approved_at is None:
            return None
        today = self.clock().date()
        if plan.approved_at.date() > today:
            return None
        return month_bounds(today)

    def is_plan_usable(self, plan, day: date) -> bool:
        period = self.valid_period(plan)
        if period is None:
            return False
        return period[0] <= day <= period[1]

    def allowed_days(self, plan) -> Tuple[int, ...]:
        if plan is None:
            return ()
        includes = plan.includes
        if includes.allowed_days:
            return tuple(includes.allowed_days)
        if plan.plan_type != PlanType.custom:
            return FIXED_PLANS[plan.plan_type]["includes"].allowed_days
        return BASE_DAYS

    def is_day_allowed(self, day: date, plan) -> bool:
        if day.weekday() not in self.allowed_days(plan):
            return False
        return self.calendar.is_day_open(day).is_open

    def compute_usage(self, plan, appointments: Iterable) -> PlanUsage:
        period = self.valid_period(plan)
        if period is None:
            empty = _counter(0, 0)
            return PlanUsage(empty, empty, empty, can_use_plan=False, reason="No approved plan for this month")

        start, end = period
        counted = [
            a for a in appointments
            if a.is_plan_booking
            and a.status in COUNTED_STATUSES
            and start <= a.starts_at.date() <= end
        ]
        cuts_used = sum(1 for a in counted if a.service_type == ServiceCategory.cut)
        beards_used = sum(1 for a in counted if a.service_type == ServiceCategory.beard)
        eyebrows_used = sum(1 for a in counted if a.service_type == ServiceCategory.eyebrow)

        includes = plan.includes
        cuts = _counter(cuts_used, None if includes.unlimited_cuts else self.cut_quota)
        beards = _counter(beards_used, None if includes.unlimited_beard else 0)
        eyebrows = _counter(eyebrows_used, None if includes.eyebrow_included else 0)

        can_use_plan = True
        reason = None
        if cuts.remaining == 0 and not (includes.unlimited_beard or includes.eyebrow_included):
            can_use_plan = False
            reason = f"All {cuts.limit} plan cuts for this month are used. The quota renews next month."
        return PlanUsage(cuts, beards, eyebrows, can_use_plan=can_use_plan, reason=reason)

    def covers(self, category: str, plan, usage: PlanUsage) -> bool:
        if self.valid_period(plan) is None:
            return False
        includes = plan.includes
        if category == ServiceCategory.cut:
            return includes.unlimited_cuts or (usage.cuts.remaining or 0) > 0
        if category == ServiceCategory.beard:
            return includes.unlimited_beard
        if category == ServiceCategory.eyebrow:
            return includes.eyebrow_included
        return False

    def price_for(self, service, plan, usage: PlanUsage) -> Decimal:
        if self.covers(service.category, plan, usage):
            return Decimal("0")
        return Decimal(service.price)

    def priority(self, plan) -> str:
        if plan is None:
            return Priority.normal.value
        return plan.includes.priority
