# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from barbershop.calendar import ShopCalendar
from barbershop.config import LOG_LEVEL
from barbershop import db
from barbershop.errors import BookingError
from barbershop.routers.appointments_routes import router as appointments_router
from barbershop.routers.auth_routes import router as auth_router
from barbershop.routers.plans_routes import router as plans_router
from barbershop.routers.shop_routes import router as shop_router
from barbershop.routers.users_routes import router as users_router
from barbershop.store import load_shop_config

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db.init_db()
    # a broken shop configuration stops startup instead of failing every request
    with Session(db.engine) as session:
        config = load_shop_config(session)
        ShopCalendar(config)
    logger.info("%s ready (slots every %s minutes)", config.shop_name, config.slot_minutes)
    yield


app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(shop_router)
app.include_router(appointments_router)
app.include_router(plans_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
