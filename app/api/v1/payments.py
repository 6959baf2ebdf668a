"""
Payment schedule API endpoints
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_now
from app.application.payment_schedule import PaymentScheduleService, ScheduleRow, ResolvedCell
from app.application.payment_status import (
    SetPaymentStatusUseCase, CyclePaymentStatusUseCase, MarkPaidUseCase, ListSessionPaymentsUseCase,
)
from app.application.schedule_query import (
    FILTER_ALL, SORT_DEFAULT, next_due, query_rows, summarize_months,
)
from app.config import get_settings
from app.domain.month_key import MonthKey
from app.domain.payment_status import resolve_status
from app.infrastructure.db.models import PaymentRecordModel


router = APIRouter(prefix="/api/v1/sessions", tags=["payments"])


# === Request/Response models ===

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _AmountInput(CamelModel):
    @field_validator("amount", "inscription_amount", mode="before", check_fields=False)
    @classmethod
    def amount_to_str(cls, v):
        """Accept JSON numbers as well as strings; validated by the use case"""
        if v is None or isinstance(v, str):
            return v
        return str(v)


class SetStatusRequest(_AmountInput):
    subject_id: int
    subject_type: str  # player / coach
    year: int
    month: int
    status: str  # pending / paid / delayed
    amount: str | None = None  # Decimal as string
    notes: str | None = None
    inscription_amount: str | None = None  # registration fee, Decimal as string


class CycleStatusRequest(CamelModel):
    subject_id: int
    subject_type: str
    year: int
    month: int


class MarkPaidRequest(_AmountInput):
    subject_id: int
    subject_type: str
    amount: str  # Decimal as string
    year: int | None = None  # current month when omitted
    month: int | None = None
    notes: str | None = None
    inscription_amount: str | None = None


class MonthResponse(CamelModel):
    year: int
    month: int
    label: str


class CellResponse(CamelModel):
    year: int
    month: int
    status: str  # effective
    stored_status: str | None
    amount: str
    notes: str
    paid_at: datetime | None
    is_recorded: bool


class SubjectResponse(CamelModel):
    id: int
    name: str
    subject_type: str
    group: str | None
    base_amount: str | None


class RowTotalsResponse(CamelModel):
    expected: str
    paid: str
    outstanding: str
    pending_count: int
    paid_count: int
    delayed_count: int


class ScheduleRowResponse(CamelModel):
    subject: SubjectResponse
    cells: list[CellResponse]
    totals: RowTotalsResponse
    next_due: MonthResponse | None


class ScheduleResponse(CamelModel):
    months: list[MonthResponse]
    schedule: list[ScheduleRowResponse]


class MonthSummaryResponse(CamelModel):
    year: int
    month: int
    label: str
    expected: str
    paid: str
    pending_count: int
    paid_count: int
    delayed_count: int
    delinquency_ratio: float


class PaymentRecordResponse(CamelModel):
    id: int
    session_id: int
    subject_id: int
    subject_type: str
    year: int
    month: int
    status: str
    effective_status: str
    amount: str
    notes: str
    inscription_included: bool
    inscription_amount: str
    paid_at: datetime | None
    updated_at: datetime | None


# === Helpers ===

def _month(key: MonthKey) -> MonthResponse:
    return MonthResponse(year=key.year, month=key.month, label=key.label)


def _cell(cell: ResolvedCell) -> CellResponse:
    return CellResponse(
        year=cell.month.year,
        month=cell.month.month,
        status=cell.status,
        stored_status=cell.stored_status,
        amount=str(cell.amount),
        notes=cell.notes,
        paid_at=cell.paid_at,
        is_recorded=cell.is_recorded,
    )


def _row(row: ScheduleRow) -> ScheduleRowResponse:
    s = row.subject
    totals = row.totals
    due = next_due(row)
    return ScheduleRowResponse(
        subject=SubjectResponse(
            id=s.id,
            name=s.name,
            subject_type=s.subject_type,
            group=s.group,
            base_amount=str(s.base_amount) if s.base_amount is not None else None,
        ),
        cells=[_cell(c) for c in row.cells],
        totals=RowTotalsResponse(
            expected=str(totals.expected),
            paid=str(totals.paid),
            outstanding=str(totals.outstanding),
            pending_count=totals.pending_count,
            paid_count=totals.paid_count,
            delayed_count=totals.delayed_count,
        ),
        next_due=_month(due) if due is not None else None,
    )


def _record(record: PaymentRecordModel, now: datetime) -> PaymentRecordResponse:
    return PaymentRecordResponse(
        id=record.id,
        session_id=record.session_id,
        subject_id=record.subject_id,
        subject_type=record.subject_type,
        year=record.year,
        month=record.month,
        status=record.status,
        effective_status=resolve_status(record.status, MonthKey(record.year, record.month), now),
        amount=str(record.amount),
        notes=record.notes or "",
        inscription_included=bool(record.inscription_included),
        inscription_amount=str(record.inscription_amount),
        paid_at=record.paid_at,
        updated_at=record.updated_at,
    )


def _default_subject_type() -> str:
    return get_settings().DEFAULT_SUBJECT_TYPE


# === Endpoints ===

@router.get("/{session_id}/payments/schedule", response_model=ScheduleResponse)
def get_payment_schedule(
    session_id: int,
    subject_type: str | None = Query(None, alias="subjectType"),
    search: str = "",
    group: str = FILTER_ALL,
    status: str = FILTER_ALL,
    sort: str = SORT_DEFAULT,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Monthly payment grid of a session, one row per enrolled player or coach"""
    schedule = PaymentScheduleService(db).build_schedule(
        session_id, subject_type or _default_subject_type(), now,
    )
    rows = query_rows(
        schedule.rows,
        search_text=search,
        group_filter=group,
        status_filter=status,
        sort_mode=sort,
    )
    return ScheduleResponse(
        months=[_month(m) for m in schedule.months],
        schedule=[_row(r) for r in rows],
    )


@router.get("/{session_id}/payments/summary", response_model=list[MonthSummaryResponse])
def get_payment_summary(
    session_id: int,
    subject_type: str | None = Query(None, alias="subjectType"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Per-month expected/paid totals and delinquency ratio (dashboard)"""
    schedule = PaymentScheduleService(db).build_schedule(
        session_id, subject_type or _default_subject_type(), now,
    )
    return [
        MonthSummaryResponse(
            year=s.month.year,
            month=s.month.month,
            label=s.month.label,
            expected=str(s.expected),
            paid=str(s.paid),
            pending_count=s.pending_count,
            paid_count=s.paid_count,
            delayed_count=s.delayed_count,
            delinquency_ratio=s.delinquency_ratio,
        )
        for s in summarize_months(schedule.rows, schedule.months)
    ]


@router.get("/{session_id}/payments", response_model=list[PaymentRecordResponse])
def list_session_payments(
    session_id: int,
    subject_type: str | None = Query(None, alias="subjectType"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Stored payment records of a session, newest month first"""
    records = ListSessionPaymentsUseCase(db).execute(session_id, subject_type)
    return [_record(r, now) for r in records]


@router.post("/{session_id}/payments/status", response_model=PaymentRecordResponse)
def set_payment_status(
    session_id: int,
    req: SetStatusRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Set the status of one (subject, month) cell"""
    record = SetPaymentStatusUseCase(db).execute(
        session_id=session_id,
        subject_id=req.subject_id,
        subject_type=req.subject_type,
        year=req.year,
        month=req.month,
        status=req.status,
        amount=req.amount,
        notes=req.notes,
        inscription_amount=req.inscription_amount,
        now=now,
    )
    return _record(record, now)


@router.post("/{session_id}/payments/cycle", response_model=PaymentRecordResponse)
def cycle_payment_status(
    session_id: int,
    req: CycleStatusRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Advance a cell along pending -> delayed -> paid -> pending"""
    record = CyclePaymentStatusUseCase(db).execute(
        session_id=session_id,
        subject_id=req.subject_id,
        subject_type=req.subject_type,
        year=req.year,
        month=req.month,
        now=now,
    )
    return _record(record, now)


@router.post("/{session_id}/payments/mark-paid", response_model=PaymentRecordResponse)
def mark_paid(
    session_id: int,
    req: MarkPaidRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Record a payment (status paid) for one month"""
    record = MarkPaidUseCase(db).execute(
        session_id=session_id,
        subject_id=req.subject_id,
        subject_type=req.subject_type,
        amount=req.amount,
        year=req.year,
        month=req.month,
        notes=req.notes,
        inscription_amount=req.inscription_amount,
        now=now,
    )
    return _record(record, now)
