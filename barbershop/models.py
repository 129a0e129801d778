# barbershop/models.py

from typing import Optional, List
from datetime import datetime, date as Date, time
from decimal import Decimal

from sqlalchemy.types import JSON, DateTime
from sqlmodel import SQLModel, Field, Column

from barbershop.config import shop_now
from barbershop.plans import PlanIncludes


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    phone_number: str = Field(index=True, unique=True)
    password_hash: str
    role: str = "client"  # client or staff

    suspended: bool = False
    suspension_reason: Optional[str] = None
    suspended_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=shop_now, sa_type=DateTime)


class Service(SQLModel, table=True):
    id: str = Field(primary_key=True)
    name: str
    category: str  # cut, beard, eyebrow, finishing, chemical, highlights, combo
    kind: str = "single"
    price: Decimal = Field(default=Decimal("0"), max_digits=8, decimal_places=2)
    duration_minutes: int
    active: bool = True


class Appointment(SQLModel, table=True):
    # No unique (starts_at) constraint: canceled rows keep their start time
    # and the slot can be booked again. Overlap is enforced under the commit lock.
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(index=True)
    service_id: str
    service_name: str
    service_type: str
    price: Decimal = Field(default=Decimal("0"), max_digits=8, decimal_places=2)
    duration_minutes: int
    starts_at: datetime = Field(index=True, sa_type=DateTime)
    status: str = "pending"
    is_plan_booking: bool = False

    observation: Optional[str] = None
    cancel_reason: Optional[str] = None
    canceled_by: Optional[str] = None  # client or staff
    created_at: datetime = Field(default_factory=shop_now, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=shop_now, sa_type=DateTime)


class Plan(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    plan_type: str
    status: str = "pending"
    price: Decimal = Field(default=Decimal("0"), max_digits=8, decimal_places=2)
    selected_schedule: str = ""

    unlimited_cuts: bool = False
    unlimited_beard: bool = False
    eyebrow_included: bool = False
    allowed_days: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    priority: str = "normal"
    product_discount: int = 0
    fixed_schedule: bool = False
    custom_selection: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    requested_at: datetime = Field(default_factory=shop_now, sa_type=DateTime)
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    rejected_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    deactivated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    observation: Optional[str] = None
    reject_reason: Optional[str] = None
    deactivate_reason: Optional[str] = None

    @property
    def includes(self) -> PlanIncludes:
        return PlanIncludes(
            unlimited_cuts=self.unlimited_cuts,
            unlimited_beard=self.unlimited_beard,
            eyebrow_included=self.eyebrow_included,
            allowed_days=tuple(self.allowed_days or ()),
            priority=self.priority,
            product_discount=self.product_discount,
            fixed_schedule=self.fixed_schedule,
        )


class ShopSettings(SQLModel, table=True):
    # singleton row (id=1); also the row locked while a booking commits
    id: int = Field(default=1, primary_key=True)
    shop_name: str = "Barbershop"
    slot_minutes: int = 30
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None


class WeekdayHours(SQLModel, table=True):
    weekday: int = Field(primary_key=True)  # 0=Mon ... 6=Sun
    is_open: bool
    open_time: time
    close_time: time


class SpecialDay(SQLModel, table=True):
    date: Date = Field(primary_key=True)
    is_closed: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    reason: Optional[str] = None
