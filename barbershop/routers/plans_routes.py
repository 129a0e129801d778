# barbershop/routers/plans_routes.py

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from barbershop.auth import get_current_user
from barbershop.booking import BookingOrchestrator
from barbershop.db import get_session
from barbershop.deps import get_orchestrator, require_role
from barbershop.errors import NotFoundError
from barbershop.models import Plan
from barbershop.plans import (
    FIXED_PLANS,
    PlanIncludes,
    calculate_custom_plan_price,
    calculate_plan_includes,
    recommend_plan,
)
from barbershop.schemas import (
    CustomPlanSelection,
    PlanDecision,
    PlanPublic,
    PlanQuote,
    PlanRequestCreate,
    PlanStatus,
    PlanUsagePublic,
)
from barbershop import store

router = APIRouter(
    prefix="/plans",
    tags=["plans"],
)


def _includes(includes: PlanIncludes) -> dict:
    data = asdict(includes)
    data["allowed_days"] = list(includes.allowed_days)
    return data


# Plan.includes is a property, so build the response by hand
def _public(plan: Plan) -> dict:
    return {
        "id": plan.id,
        "user_id": plan.user_id,
        "plan_type": plan.plan_type,
        "status": plan.status,
        "price": plan.price,
        "selected_schedule": plan.selected_schedule,
        "includes": _includes(plan.includes),
        "requested_at": plan.requested_at,
        "approved_at": plan.approved_at,
        "rejected_at": plan.rejected_at,
        "deactivated_at": plan.deactivated_at,
        "observation": plan.observation,
        "reject_reason": plan.reject_reason,
        "deactivate_reason": plan.deactivate_reason,
    }


@router.get("/catalog")
def catalog():
    return [
        {
            "plan_type": plan_type,
            "name": offer["name"],
            "price": offer["price"],
            "includes": _includes(offer["includes"]),
        }
        for plan_type, offer in FIXED_PLANS.items()
    ]


@router.post("/quote", response_model=PlanQuote)
def quote_custom_plan(selection: CustomPlanSelection):
    recommendation = recommend_plan(selection)
    return {
        "price": calculate_custom_plan_price(selection),
        "includes": _includes(calculate_plan_includes("custom", selection)),
        "recommended_plan": recommendation.plan_type if recommendation else None,
        "recommended_price": recommendation.price if recommendation else None,
        "difference": recommendation.difference if recommendation else None,
        "extra_benefits": recommendation.extra_benefits if recommendation else [],
    }


# ---- client ----

@router.post("/requests", response_model=PlanPublic, status_code=201)
def request_plan(
    body: PlanRequestCreate,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    plan = orchestrator.request_plan(
        current_user["id"],
        body.plan_type.value,
        selected_schedule=body.selected_schedule,
        custom_selection=body.custom_selection,
    )
    return _public(plan)


@router.get("/me", response_model=PlanPublic)
def my_plan(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    plan = store.current_plan(session, current_user["id"])
    if plan is None:
        raise NotFoundError("You have no active plan or pending request")
    return _public(plan)


@router.get("/me/usage", response_model=PlanUsagePublic)
def my_usage(
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")
    usage = orchestrator.plan_usage(current_user["id"])
    return asdict(usage)


# ---- staff ----

@router.get("", response_model=List[PlanPublic])
def list_plans(
    status: Optional[PlanStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    stmt = select(Plan)
    if status is not None:
        stmt = stmt.where(Plan.status == status.value)
    plans = session.exec(stmt.order_by(Plan.requested_at.desc())).all()
    return [_public(p) for p in plans]


@router.patch("/{plan_id}/approve", response_model=PlanPublic)
def approve_plan(
    plan_id: int,
    body: Optional[PlanDecision] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return _public(orchestrator.approve_plan(plan_id, body.observation if body else None))


@router.patch("/{plan_id}/reject", response_model=PlanPublic)
def reject_plan(
    plan_id: int,
    body: PlanDecision,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return _public(orchestrator.reject_plan(plan_id, body.reason or "", body.observation))


@router.patch("/{plan_id}/deactivate", response_model=PlanPublic)
def deactivate_plan(
    plan_id: int,
    body: Optional[PlanDecision] = None,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return _public(orchestrator.deactivate_plan(plan_id, body.reason if body else None))
