"""
Calendar months of a billing session.

A session spanning 2024-01-15 .. 2024-03-02 covers three billing months
(2024-01, 2024-02, 2024-03): both boundary months count regardless of the day.
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime

from app.domain.errors import InvalidRangeError

# bounds of the payments.year check constraint
MIN_YEAR = 2000
MAX_YEAR = 2100


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


@dataclass(frozen=True, order=True)
class MonthKey:
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be in 1..12, got {self.month}")

    @classmethod
    def from_date(cls, d: date) -> "MonthKey":
        return cls(d.year, d.month)

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def last_day(self) -> date:
        return date(self.year, self.month, last_day_of_month(self.year, self.month))

    def next(self) -> "MonthKey":
        if self.month == 12:
            return MonthKey(self.year + 1, 1)
        return MonthKey(self.year, self.month + 1)


def _as_date(value: date) -> date:
    # datetime is a subclass of date; keep only the calendar part
    if isinstance(value, datetime):
        return value.date()
    return value


def month_count(start_date: date, end_date: date) -> int:
    """Inclusive number of calendar months between two dates."""
    start_date, end_date = _as_date(start_date), _as_date(end_date)
    if start_date > end_date:
        raise InvalidRangeError(
            f"Start date {start_date.isoformat()} is after end date {end_date.isoformat()}"
        )
    return (end_date.year - start_date.year) * 12 + end_date.month - start_date.month + 1


def expand_months(start_date: date, end_date: date) -> list[MonthKey]:
    """
    Ordered calendar months spanned by [start_date, end_date].

    Raises:
        InvalidRangeError: if start_date > end_date
    """
    start_date, end_date = _as_date(start_date), _as_date(end_date)
    if start_date > end_date:
        raise InvalidRangeError(
            f"Start date {start_date.isoformat()} is after end date {end_date.isoformat()}"
        )

    last = MonthKey.from_date(end_date)
    cursor = MonthKey.from_date(start_date)
    months = []
    while cursor <= last:
        months.append(cursor)
        cursor = cursor.next()
    return months


def month_in_range(key: MonthKey, start_date: date, end_date: date) -> bool:
    """True if key is one of the months expand_months(start_date, end_date) yields."""
    start_date, end_date = _as_date(start_date), _as_date(end_date)
    return MonthKey.from_date(start_date) <= key <= MonthKey.from_date(end_date)
