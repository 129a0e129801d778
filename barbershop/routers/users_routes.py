# barbershop/routers/users_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from barbershop.auth import get_current_user, hash_password
from barbershop.booking import BookingOrchestrator
from barbershop.db import get_session
from barbershop.deps import get_orchestrator, require_role
from barbershop.models import Appointment, Plan, User
from barbershop.schemas import ClientSummary, SuspendRequest, UserCreate, UserPublic

router = APIRouter(
    tags=["users"],
)


def _public(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "phone_number": user.phone_number,
        "role": user.role,
        "suspended": user.suspended,
        "suspension_reason": user.suspension_reason,
    }


@router.get("/me", response_model=UserPublic)
def me(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _public(session.get(User, current_user["id"]))


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Phone number identifies the client
    existing = session.exec(
        select(User).where(User.phone_number == user.phone_number)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Phone number already registered")

    # 2) Self-registration always creates a client; staff is seeded
    db_user = User(
        name=user.name,
        phone_number=user.phone_number,
        password_hash=hash_password(user.password),
        role="client",
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return _public(db_user)


@router.get("/clients", response_model=List[ClientSummary])
def list_clients(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")

    clients = session.exec(
        select(User).where(User.role == "client").order_by(User.name)
    ).all()

    counts = {}
    rows = session.exec(
        select(Appointment.user_id, Appointment.status, func.count())
        .where(Appointment.status.in_(("completed", "no_show")))
        .group_by(Appointment.user_id, Appointment.status)
    ).all()
    for user_id, status, count in rows:
        counts[(user_id, status)] = count

    with_plan = set(
        session.exec(select(Plan.user_id).where(Plan.status == "approved")).all()
    )

    return [
        {
            **_public(c),
            "completed_count": counts.get((c.id, "completed"), 0),
            "no_show_count": counts.get((c.id, "no_show"), 0),
            "has_active_plan": c.id in with_plan,
        }
        for c in clients
    ]


@router.post("/clients/{user_id}/suspend", response_model=UserPublic)
def suspend_client(
    user_id: int,
    body: SuspendRequest,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return _public(orchestrator.suspend_client(user_id, body.reason))


@router.post("/clients/{user_id}/unsuspend", response_model=UserPublic)
def unsuspend_client(
    user_id: int,
    orchestrator: BookingOrchestrator = Depends(get_orchestrator),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "staff")
    return _public(orchestrator.unsuspend_client(user_id))
