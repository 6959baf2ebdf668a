"""
Search, filter, sort and summarize schedule rows.

Rows arrive with effective statuses already resolved, so every check here
works on ResolvedCell.status; an elapsed pending month is already delayed.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from app.application.payment_schedule import ScheduleRow
from app.domain.errors import InvalidFilterError
from app.domain.month_key import MonthKey
from app.domain.payment_status import STATUS_PENDING, STATUS_PAID, STATUS_DELAYED

FILTER_ALL = "all"
FILTER_UPCOMING = "upcoming"
VALID_STATUS_FILTERS = (FILTER_ALL, STATUS_PENDING, STATUS_PAID, STATUS_DELAYED, FILTER_UPCOMING)

SORT_DEFAULT = "default"
SORT_NEAREST_DUE = "nearestDue"
VALID_SORT_MODES = (SORT_DEFAULT, SORT_NEAREST_DUE)

_ZERO = Decimal("0")


def next_due(row: ScheduleRow) -> MonthKey | None:
    """Earliest month whose effective status is still pending."""
    for cell in sorted(row.cells, key=lambda c: c.month):
        if cell.status == STATUS_PENDING:
            return cell.month
    return None


def _matches_search(row: ScheduleRow, needle: str) -> bool:
    if not needle:
        return True
    haystack = (row.subject.name or "", row.subject.group or "", str(row.subject.id))
    return any(needle in value.lower() for value in haystack)


def _matches_group(row: ScheduleRow, group_filter: str | None) -> bool:
    if not group_filter or group_filter == FILTER_ALL:
        return True
    return row.subject.group == group_filter


def _matches_status(row: ScheduleRow, status_filter: str) -> bool:
    if status_filter == FILTER_ALL:
        return True
    if status_filter == FILTER_UPCOMING:
        return next_due(row) is not None
    return any(cell.status == status_filter for cell in row.cells)


def query_rows(
    rows: Iterable[ScheduleRow],
    search_text: str = "",
    group_filter: str | None = FILTER_ALL,
    status_filter: str = FILTER_ALL,
    sort_mode: str = SORT_DEFAULT,
) -> list[ScheduleRow]:
    """
    Filter and order schedule rows for presentation.

    Raises:
        InvalidFilterError: unknown status_filter or sort_mode
    """
    status_filter = status_filter or FILTER_ALL
    sort_mode = sort_mode or SORT_DEFAULT
    if status_filter not in VALID_STATUS_FILTERS:
        raise InvalidFilterError(
            f"Invalid status filter: {status_filter!r} (expected one of {', '.join(VALID_STATUS_FILTERS)})"
        )
    if sort_mode not in VALID_SORT_MODES:
        raise InvalidFilterError(
            f"Invalid sort mode: {sort_mode!r} (expected one of {', '.join(VALID_SORT_MODES)})"
        )

    needle = (search_text or "").strip().lower()
    result = [
        row for row in rows
        if _matches_search(row, needle)
        and _matches_group(row, group_filter)
        and _matches_status(row, status_filter)
    ]

    if sort_mode == SORT_NEAREST_DUE:
        # sorted() is stable: equal keys keep input order
        def _key(row: ScheduleRow):
            due = next_due(row)
            return (due is None, due or MonthKey(1, 1))
        result = sorted(result, key=_key)
    return result


# ============================================================================
# Aggregation
# ============================================================================


def expected_total(rows: Iterable[ScheduleRow], key: MonthKey) -> Decimal:
    """Sum of the month's cell amounts; base amount for rows without that month."""
    total = _ZERO
    for row in rows:
        cell = row.cell_for(key)
        if cell is not None:
            total += cell.amount
        elif row.subject.base_amount is not None:
            total += row.subject.base_amount
    return total


def delinquency_ratio(rows: Iterable[ScheduleRow], key: MonthKey) -> float:
    """Delayed cells / rows having a cell for the month; 0.0 when none has one."""
    with_cell = 0
    delayed = 0
    for row in rows:
        cell = row.cell_for(key)
        if cell is None:
            continue
        with_cell += 1
        if cell.status == STATUS_DELAYED:
            delayed += 1
    if with_cell == 0:
        return 0.0
    return delayed / with_cell


@dataclass(frozen=True)
class MonthSummary:
    month: MonthKey
    expected: Decimal
    paid: Decimal
    pending_count: int
    paid_count: int
    delayed_count: int
    delinquency_ratio: float


def summarize_months(rows: Sequence[ScheduleRow], months: Iterable[MonthKey]) -> list[MonthSummary]:
    summaries = []
    for key in months:
        cells = [c for c in (row.cell_for(key) for row in rows) if c is not None]
        summaries.append(MonthSummary(
            month=key,
            expected=expected_total(rows, key),
            paid=sum((c.amount for c in cells if c.status == STATUS_PAID), _ZERO),
            pending_count=sum(1 for c in cells if c.status == STATUS_PENDING),
            paid_count=sum(1 for c in cells if c.status == STATUS_PAID),
            delayed_count=sum(1 for c in cells if c.status == STATUS_DELAYED),
            delinquency_ratio=delinquency_ratio(rows, key),
        ))
    return summaries
