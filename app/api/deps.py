"""
FastAPI dependencies (DB session, wall clock)
"""
from datetime import datetime
from zoneinfo import ZoneInfo

from app.config import get_settings
from app.infrastructure.db.session import get_db as _get_db


# Re-export get_db for convenience
get_db = _get_db


def get_now() -> datetime:
    """
    Current time in the configured TIMEZONE

    The delinquency rule compares months against this value; tests override
    the dependency to pin the clock.
    """
    return datetime.now(ZoneInfo(get_settings().TIMEZONE))
