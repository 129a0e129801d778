# barbershop/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from barbershop.booking import BookingOrchestrator
from barbershop.config import shop_now
from barbershop.db import get_session


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_clock():
    return shop_now


# One orchestrator per request, bound to the request's session
def get_orchestrator(
    session: Session = Depends(get_session),
    clock=Depends(get_clock),
) -> BookingOrchestrator:
    return BookingOrchestrator(session, clock=clock)
