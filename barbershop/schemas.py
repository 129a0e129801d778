# barbershop/schemas.py

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    staff = "staff"
    client = "client"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    canceled = "canceled"
    no_show = "no_show"


class ServiceCategory(str, Enum):
    cut = "cut"
    beard = "beard"
    eyebrow = "eyebrow"
    finishing = "finishing"
    chemical = "chemical"
    highlights = "highlights"
    combo = "combo"


class ServiceKind(str, Enum):
    single = "single"
    double = "double"
    triple = "triple"


class PlanType(str, Enum):
    club_corte = "club-corte"
    club_combo = "club-combo"
    club_vip = "club-vip"
    custom = "custom"


class PlanStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    deactivated = "deactivated"


class Priority(str, Enum):
    normal = "normal"
    medium = "medium"
    max = "max"


# ---- users / clients ----

class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    phone_number: str = Field(min_length=8, max_length=20)
    password: str = Field(min_length=8, max_length=72)


class UserPublic(BaseModel):
    id: int
    name: str
    phone_number: str
    role: UserRole
    suspended: bool = False
    suspension_reason: Optional[str] = None


class ClientSummary(UserPublic):
    completed_count: int = 0
    no_show_count: int = 0
    has_active_plan: bool = False


class SuspendRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=240)


# ---- shop calendar ----

class DayHoursSchema(BaseModel):
    is_open: bool
    open_time: time
    close_time: time

    @model_validator(mode="after")
    def check_order(self):
        if self.is_open and self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")
        return self


class SpecialDayCreate(BaseModel):
    is_closed: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    reason: Optional[str] = Field(default=None, max_length=120)


class SpecialDayPublic(SpecialDayCreate):
    date: date


class DayStatusResponse(BaseModel):
    date: date
    is_open: bool
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    reason: Optional[str] = None


class SlotPublic(BaseModel):
    starts_at: datetime
    priority: bool = False


class AvailabilityResponse(BaseModel):
    date: date
    duration_minutes: int
    is_plan_booking: bool
    slots: List[SlotPublic]


# ---- services ----

class ServicePublic(BaseModel):
    id: str
    name: str
    category: ServiceCategory
    kind: ServiceKind
    price: Decimal
    duration_minutes: int


# ---- appointments ----

class AppointmentCreate(BaseModel):
    service_id: str
    starts_at: datetime
    use_plan: bool = False


class StaffNote(BaseModel):
    observation: Optional[str] = Field(default=None, max_length=240)


class CancelReason(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=240)


class AppointmentPublic(BaseModel):
    id: int
    user_id: int
    service_id: str
    service_name: str
    service_type: ServiceCategory
    price: Decimal
    duration_minutes: int
    starts_at: datetime
    status: AppointmentStatus
    is_plan_booking: bool
    observation: Optional[str] = None
    cancel_reason: Optional[str] = None
    canceled_by: Optional[str] = None


class MonthReport(BaseModel):
    year: int
    month: int
    completed: int
    no_shows: int
    canceled: int
    revenue: Decimal
    plan_bookings: int


# ---- plans ----

class CustomPlanSelection(BaseModel):
    unlimited_cuts: bool = False
    unlimited_beard: bool = False
    eyebrow_included: bool = False
    add_friday: bool = False
    add_saturday: bool = False
    priority: Priority = Priority.normal
    product_discount: int = 0
    fixed_schedule: bool = False

    @model_validator(mode="after")
    def check_discount(self):
        if self.product_discount not in (0, 5, 10):
            raise ValueError("product_discount must be 0, 5 or 10")
        return self


class PlanRequestCreate(BaseModel):
    plan_type: PlanType
    selected_schedule: str = Field(default="", max_length=80)
    custom_selection: Optional[CustomPlanSelection] = None


class PlanIncludesPublic(BaseModel):
    unlimited_cuts: bool
    unlimited_beard: bool
    eyebrow_included: bool
    allowed_days: List[int]
    priority: Priority
    product_discount: int
    fixed_schedule: bool


class PlanPublic(BaseModel):
    id: int
    user_id: int
    plan_type: PlanType
    status: PlanStatus
    price: Decimal
    selected_schedule: str
    includes: PlanIncludesPublic
    requested_at: datetime
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None
    observation: Optional[str] = None
    reject_reason: Optional[str] = None
    deactivate_reason: Optional[str] = None


class PlanDecision(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=120)
    observation: Optional[str] = Field(default=None, max_length=500)


class UsageCounterPublic(BaseModel):
    used: int
    limit: Optional[int] = None
    remaining: Optional[int] = None


class PlanUsagePublic(BaseModel):
    cuts: UsageCounterPublic
    beards: UsageCounterPublic
    eyebrows: UsageCounterPublic
    can_use_plan: bool
    reason: Optional[str] = None


class PlanQuote(BaseModel):
    price: Decimal
    includes: PlanIncludesPublic
    recommended_plan: Optional[PlanType] = None
    recommended_price: Optional[Decimal] = None
    difference: Optional[Decimal] = None
    extra_benefits: List[str] = []
