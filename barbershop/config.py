# barbershop/config.py

import os
import warnings
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barbershop.db")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn("SECRET_KEY not set! Using insecure default", RuntimeWarning, stacklevel=2)
    SECRET_KEY = "change-me-later"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Single shop, single timezone. All stored datetimes are naive shop-local.
SHOP_TIMEZONE = os.getenv("SHOP_TIMEZONE", "America/Sao_Paulo")

# Slot grid step in minutes (15 / 30 / 60)
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))
# Today's slots must start later than now + this margin
BOOKING_LEAD_MINUTES = int(os.getenv("BOOKING_LEAD_MINUTES", "15"))
# Clients may self-cancel only up to this many minutes before start
CANCELLATION_WINDOW_MINUTES = int(os.getenv("CANCELLATION_WINDOW_MINUTES", "60"))
# Monthly cut quota for plans without unlimited cuts
PLAN_CUT_QUOTA = int(os.getenv("PLAN_CUT_QUOTA", "4"))

# Staff account seeded at startup (optional)
STAFF_PHONE = os.getenv("STAFF_PHONE")
STAFF_PASSWORD = os.getenv("STAFF_PASSWORD")
STAFF_NAME = os.getenv("STAFF_NAME", "Staff")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def shop_now() -> datetime:
    """Current wall-clock time in the shop timezone, as a naive datetime."""
    return datetime.now(ZoneInfo(SHOP_TIMEZONE)).replace(tzinfo=None)


def to_shop_time(value: datetime) -> datetime:
    """Naive shop-local datetime; aware input is converted, naive input is taken as shop-local."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value
    return value.astimezone(ZoneInfo(SHOP_TIMEZONE)).replace(tzinfo=None)
