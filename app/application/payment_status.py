"""
Payment status use cases: explicit status change, one-click cycle, mark paid.

All request validation happens before the first storage access. The session
lookup comes next because the month range check needs its dates.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.application.registry import (
    SessionRegistry, SubjectRegistry, SqlSessionRegistry, SqlSubjectRegistry,
)
from app.domain.errors import InvalidAmountError, OutOfRangeError
from app.domain.month_key import MAX_YEAR, MIN_YEAR, MonthKey, month_in_range
from app.domain.payment_status import (
    STATUS_PAID, STATUS_PENDING, next_status, resolve_status, validate_status, validate_subject_type,
)
from app.infrastructure.db.models import PaymentRecordModel
from app.infrastructure.db.payment_repository import PaymentRepository
from app.utils.validation import validate_and_normalize_amount

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


def normalize_amount(amount) -> Decimal | None:
    """Non-negative Decimal with at most 2 places; None stays None."""
    if amount is None:
        return None
    # str(Decimal("1E+2")) is exponent notation
    text = format(amount, "f") if isinstance(amount, Decimal) else str(amount)
    try:
        return validate_and_normalize_amount(text)
    except ValueError as exc:
        raise InvalidAmountError(f"{exc}: {amount!r}") from exc


def _month_key(year: int, month: int) -> MonthKey:
    if not 1 <= month <= 12:
        raise OutOfRangeError(f"Month must be in 1..12, got {month}")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise OutOfRangeError(f"Year must be in {MIN_YEAR}..{MAX_YEAR}, got {year}")
    return MonthKey(year, month)


class SetPaymentStatusUseCase:
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

    def execute(
        self,
        session_id: int,
        subject_id: int,
        subject_type: str,
        year: int,
        month: int,
        status: str,
        amount: Decimal | str | None = None,
        notes: str | None = None,
        inscription_amount: Decimal | str | None = None,
        now: datetime | None = None,
    ) -> PaymentRecordModel:
        validate_status(status)
        validate_subject_type(subject_type)
        key = _month_key(year, month)
        amount = normalize_amount(amount)
        inscription_amount = normalize_amount(inscription_amount)
        if notes is not None:
            notes = notes.strip()

        session = self.sessions.get_session(session_id)
        if not month_in_range(key, session.start_date, session.end_date):
            raise OutOfRangeError(
                f"{key.label} is outside session {session_id} "
                f"({session.start_date.isoformat()} .. {session.end_date.isoformat()})"
            )

        subject = self.subjects.get_subject(subject_id, subject_type)
        now = now or datetime.now()

        record = self.payments.upsert(
            session_id=session_id,
            subject_type=subject_type,
            subject_id=subject_id,
            year=key.year,
            month=key.month,
            status=status,
            default_amount=subject.base_amount if subject.base_amount is not None else _ZERO,
            amount=amount,
            notes=notes,
            inscription_amount=inscription_amount,
            paid_at=now if status == STATUS_PAID else None,
            team_id=session.team_id,
        )
        logger.info(
            "Payment status set: session=%s %s=%s %s -> %s (amount=%s)",
            session_id, subject_type, subject_id, key.label, status, record.amount,
        )
        return record


class CyclePaymentStatusUseCase:
    """One-click toggle: pending -> delayed -> paid -> pending, from the effective status."""

    def __init__(
        self,
        db: Session,
        sessions: SessionRegistry | None = None,
        subjects: SubjectRegistry | None = None,
    ):
        self.db = db
        self.payments = PaymentRepository(db)
        self.set_status = SetPaymentStatusUseCase(db, sessions=sessions, subjects=subjects)

    def execute(
        self,
        session_id: int,
        subject_id: int,
        subject_type: str,
        year: int,
        month: int,
        now: datetime | None = None,
    ) -> PaymentRecordModel:
        validate_subject_type(subject_type)
        key = _month_key(year, month)
        now = now or datetime.now()

        record = self.payments.get(session_id, subject_type, subject_id, key.year, key.month)
        stored = record.status if record is not None else STATUS_PENDING
        effective = resolve_status(stored, key, now)

        return self.set_status.execute(
            session_id=session_id,
            subject_id=subject_id,
            subject_type=subject_type,
            year=key.year,
            month=key.month,
            status=next_status(effective),
            now=now,
        )


class MarkPaidUseCase:
    def __init__(
        self,
        db: Session,
        sessions: SessionRegistry | None = None,
        subjects: SubjectRegistry | None = None,
    ):
        self.set_status = SetPaymentStatusUseCase(db, sessions=sessions, subjects=subjects)

    def execute(
        self,
        session_id: int,
        subject_id: int,
        subject_type: str,
        amount: Decimal | str,
        year: int | None = None,
        month: int | None = None,
        notes: str | None = None,
        inscription_amount: Decimal | str | None = None,
        now: datetime | None = None,
    ) -> PaymentRecordModel:
        """Record a payment; without year/month the current month of ``now`` is used."""
        now = now or datetime.now()
        return self.set_status.execute(
            session_id=session_id,
            subject_id=subject_id,
            subject_type=subject_type,
            year=year or now.year,
            month=month or now.month,
            status=STATUS_PAID,
            amount=amount,
            notes=notes,
            inscription_amount=inscription_amount,
            now=now,
        )


class ListSessionPaymentsUseCase:
    def __init__(self, db: Session, sessions: SessionRegistry | None = None):
        self.sessions = sessions or SqlSessionRegistry(db)
        self.payments = PaymentRepository(db)

    def execute(self, session_id: int, subject_type: str | None = None) -> list[PaymentRecordModel]:
        if subject_type is not None:
            validate_subject_type(subject_type)
        self.sessions.get_session(session_id)
        return self.payments.list_for_session(session_id, subject_type)
