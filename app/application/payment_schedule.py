"""
Payment schedule: one row per enrolled subject, one cell per session month.

Rows are derived on read. A month without a stored PaymentRecord gets a
synthesized pending cell at the subject's base amount; nothing is written
while building a schedule.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Mapping

from sqlalchemy.orm import Session

from app.application.registry import (
    SessionRegistry, SubjectRegistry, SqlSessionRegistry, SqlSubjectRegistry,
)
from app.domain.month_key import MonthKey, expand_months
from app.domain.payment_status import (
    STATUS_PENDING, STATUS_PAID, STATUS_DELAYED, resolve_status, validate_subject_type,
)
from app.domain.subject import Subject, BillingSession
from app.infrastructure.db.models import PaymentRecordModel
from app.infrastructure.db.payment_repository import PaymentRepository

_ZERO = Decimal("0")

RecordKey = tuple[str, int, int, int]  # (subject_type, subject_id, year, month)


@dataclass(frozen=True)
class ResolvedCell:
    month: MonthKey
    status: str  # effective status at build time
    amount: Decimal
    notes: str = ""
    stored_status: str | None = None  # None when no record exists
    paid_at: datetime | None = None

    @property
    def is_recorded(self) -> bool:
        return self.stored_status is not None


@dataclass(frozen=True)
class RowTotals:
    expected: Decimal
    paid: Decimal
    outstanding: Decimal
    pending_count: int
    paid_count: int
    delayed_count: int


@dataclass(frozen=True)
class ScheduleRow:
    subject: Subject
    cells: list[ResolvedCell] = field(default_factory=list)

    def cell_for(self, key: MonthKey) -> ResolvedCell | None:
        for cell in self.cells:
            if cell.month == key:
                return cell
        return None

    @property
    def totals(self) -> RowTotals:
        expected = sum((c.amount for c in self.cells), _ZERO)
        paid = sum((c.amount for c in self.cells if c.status == STATUS_PAID), _ZERO)
        return RowTotals(
            expected=expected,
            paid=paid,
            outstanding=expected - paid,
            pending_count=sum(1 for c in self.cells if c.status == STATUS_PENDING),
            paid_count=sum(1 for c in self.cells if c.status == STATUS_PAID),
            delayed_count=sum(1 for c in self.cells if c.status == STATUS_DELAYED),
        )


@dataclass(frozen=True)
class Schedule:
    months: list[MonthKey]
    rows: list[ScheduleRow]


def index_records(
    records: Iterable[PaymentRecordModel], session_id: int | None = None,
) -> dict[RecordKey, PaymentRecordModel]:
    """Map records by natural key, skipping records of other sessions."""
    index = {}
    for r in records:
        if session_id is not None and r.session_id != session_id:
            continue
        index[(r.subject_type, r.subject_id, r.year, r.month)] = r
    return index


def build_row(
    subject: Subject,
    session: BillingSession,
    records: Mapping[RecordKey, PaymentRecordModel] | Iterable[PaymentRecordModel],
    now: date,
) -> ScheduleRow:
    """
    Build the schedule row of one subject.

    Args:
        subject: player or coach
        session: billing session (its dates define the months)
        records: persisted records, either indexed by natural key or a plain iterable
        now: wall-clock time used by the delinquency rule

    Raises:
        InvalidRangeError: session dates are inverted
    """
    if not isinstance(records, Mapping):
        records = index_records(records, session.id)

    default_amount = subject.base_amount if subject.base_amount is not None else _ZERO
    cells = []
    for key in expand_months(session.start_date, session.end_date):
        record = records.get((subject.subject_type, subject.id, key.year, key.month))
        if record is None:
            cells.append(ResolvedCell(
                month=key,
                status=resolve_status(STATUS_PENDING, key, now),
                amount=default_amount,
            ))
            continue
        cells.append(ResolvedCell(
            month=key,
            status=resolve_status(record.status, key, now),
            amount=Decimal(str(record.amount)) if record.amount is not None else default_amount,
            notes=record.notes or "",
            stored_status=record.status,
            paid_at=record.paid_at,
        ))
    return ScheduleRow(subject=subject, cells=cells)


class PaymentScheduleService:
    """Assemble the schedule of a session for one subject type."""

    def __init__(
        self,
        db: Session,
        sessions: SessionRegistry | None = None,
        subjects: SubjectRegistry | None = None,
    ):
        self.db = db
        self.sessions = sessions or SqlSessionRegistry(db)
        self.subjects = subjects or SqlSubjectRegistry(db)
        self.payments = PaymentRepository(db)

    def build_schedule(self, session_id: int, subject_type: str, now: date) -> Schedule:
        validate_subject_type(subject_type)
        session = self.sessions.get_session(session_id)
        months = expand_months(session.start_date, session.end_date)

        subjects = self.subjects.list_subjects_for_session(session_id, subject_type)
        records = index_records(self.payments.list_for_session(session_id, subject_type), session_id)

        rows = [build_row(s, session, records, now) for s in subjects]
        return Schedule(months=months, rows=rows)
