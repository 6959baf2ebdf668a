"""
Payment status values, the delinquency rule and the one-click status cycle.

The delinquency rule is a display-time derivation: a stored ``pending`` cell
whose month has fully elapsed is shown as ``delayed``. The stored record is
never rewritten, so the same record may resolve differently on either side of
a month boundary.
"""
from datetime import date, datetime

from app.domain.errors import InvalidStatusError, InvalidSubjectTypeError
from app.domain.month_key import MonthKey

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_DELAYED = "delayed"

VALID_STATUSES = (STATUS_PENDING, STATUS_PAID, STATUS_DELAYED)

# pending -> delayed -> paid -> pending
STATUS_CYCLE = {
    STATUS_PENDING: STATUS_DELAYED,
    STATUS_DELAYED: STATUS_PAID,
    STATUS_PAID: STATUS_PENDING,
}

SUBJECT_PLAYER = "player"
SUBJECT_COACH = "coach"

VALID_SUBJECT_TYPES = (SUBJECT_PLAYER, SUBJECT_COACH)


def validate_status(status: str) -> str:
    if status not in VALID_STATUSES:
        raise InvalidStatusError(
            f"Invalid status: {status!r} (expected one of {', '.join(VALID_STATUSES)})"
        )
    return status


def validate_subject_type(subject_type: str) -> str:
    if subject_type not in VALID_SUBJECT_TYPES:
        raise InvalidSubjectTypeError(
            f"Invalid subjectType: {subject_type!r} (expected player or coach)"
        )
    return subject_type


def _today(now: date) -> date:
    if isinstance(now, datetime):
        return now.date()
    return now


def is_month_elapsed(key: MonthKey, now: date) -> bool:
    """Last calendar day of the month is strictly before now's date."""
    return key.last_day() < _today(now)


def resolve_status(stored_status: str, key: MonthKey, now: date) -> str:
    """Effective status shown for a cell at wall-clock time ``now``."""
    if stored_status == STATUS_PENDING and is_month_elapsed(key, now):
        return STATUS_DELAYED
    return stored_status


def next_status(effective_status: str) -> str:
    return STATUS_CYCLE[validate_status(effective_status)]
