# barbershop/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session, select

from barbershop.config import DATABASE_URL, SLOT_MINUTES, STAFF_NAME, STAFF_PASSWORD, STAFF_PHONE
from barbershop.data import SERVICES, WEEK_SCHEDULE, shop_settings
from barbershop.models import Service, ShopSettings, User, WeekdayHours

logger = logging.getLogger(__name__)


def make_engine(url: str = DATABASE_URL, echo: bool = False):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # required for SQLite + FastAPI
    return create_engine(url, echo=echo, connect_args=connect_args)


engine = make_engine()


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session


def seed_defaults(session: Session) -> None:
    """Fill an empty database with the shop defaults and catalog."""
    if session.get(ShopSettings, 1) is None:
        session.add(ShopSettings(id=1, slot_minutes=SLOT_MINUTES, **shop_settings))
        logger.info("Seeded shop settings")

    for weekday, (is_open, open_time, close_time) in WEEK_SCHEDULE.items():
        if session.get(WeekdayHours, weekday) is None:
            session.add(WeekdayHours(weekday=weekday, is_open=is_open, open_time=open_time, close_time=close_time))

    for service_id, (name, category, kind, price, minutes) in SERVICES.items():
        if session.get(Service, service_id) is None:
            session.add(Service(
                id=service_id,
                name=name,
                category=category,
                kind=kind,
                price=price,
                duration_minutes=minutes,
            ))

    if STAFF_PHONE and STAFF_PASSWORD:
        existing = session.exec(select(User).where(User.phone_number == STAFF_PHONE)).first()
        if existing is None:
            from barbershop.auth import hash_password

            session.add(User(
                name=STAFF_NAME,
                phone_number=STAFF_PHONE,
                password_hash=hash_password(STAFF_PASSWORD),
                role="staff",
            ))
            logger.info("Seeded staff account %s", STAFF_PHONE)

    session.commit()


def init_db(bind=None) -> None:
    bind = bind or engine
    SQLModel.metadata.create_all(bind)
    with Session(bind) as session:
        seed_defaults(session)
