"""
PaymentRecord storage.

The natural key (session_id, subject_type, subject_id, year, month) is backed by
the uq_payment_session_subject_month constraint; upsert relies on it instead of
an application-level find-or-create loop.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import StorageError
from app.infrastructure.db.models import PaymentRecordModel

logger = logging.getLogger(__name__)

_UNSET = object()
_ZERO = Decimal("0")


class PaymentRepository:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(
        self, session_id: int, subject_type: str, subject_id: int, year: int, month: int,
    ) -> PaymentRecordModel | None:
        try:
            return self._find(session_id, subject_type, subject_id, year, month)
        except SQLAlchemyError as exc:
            raise self._storage_error("load payment", exc) from exc

    def list_for_session(
        self, session_id: int, subject_type: str | None = None,
    ) -> list[PaymentRecordModel]:
        """Records of one session, newest month first."""
        try:
            query = self.db.query(PaymentRecordModel).filter(
                PaymentRecordModel.session_id == session_id,
            )
            if subject_type is not None:
                query = query.filter(PaymentRecordModel.subject_type == subject_type)
            return query.order_by(
                PaymentRecordModel.year.desc(),
                PaymentRecordModel.month.desc(),
                PaymentRecordModel.subject_id,
            ).all()
        except SQLAlchemyError as exc:
            raise self._storage_error("list payments", exc) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(
        self,
        *,
        session_id: int,
        subject_type: str,
        subject_id: int,
        year: int,
        month: int,
        status: str,
        default_amount: Decimal,
        amount: Decimal | None = None,
        notes: str | None = None,
        inscription_amount: Decimal | None = None,
        paid_at: datetime | None | object = _UNSET,
        team_id: int | None = None,
    ) -> PaymentRecordModel:
        """
        Create or update the record for one (session, subject, month).

        On create, omitted amount/notes fall back to default_amount / "".
        On update, omitted amount/notes/inscription_amount are left unchanged.
        """
        try:
            record = self._find(session_id, subject_type, subject_id, year, month)
            if record is None:
                try:
                    record = self._insert(
                        session_id=session_id, subject_type=subject_type, subject_id=subject_id,
                        year=year, month=month, team_id=team_id,
                        status=status,
                        amount=amount if amount is not None else default_amount,
                        notes=notes if notes is not None else "",
                        inscription_included=bool(inscription_amount),
                        inscription_amount=inscription_amount or _ZERO,
                        paid_at=None if paid_at is _UNSET else paid_at,
                    )
                except IntegrityError as exc:
                    # a concurrent writer may have created the row first
                    record = self._natural_key_query(session_id, subject_type, subject_id, year, month).first()
                    if record is None:
                        self.db.rollback()
                        raise self._storage_error("save payment", exc) from exc
                    logger.info(
                        "Concurrent insert for payment session=%s %s=%s %04d-%02d, updating existing row",
                        session_id, subject_type, subject_id, year, month,
                    )
                else:
                    self.db.commit()
                    self.db.refresh(record)
                    return record

            record.status = status
            if amount is not None:
                record.amount = amount
            if notes is not None:
                record.notes = notes
            if inscription_amount is not None:
                record.inscription_amount = inscription_amount
                record.inscription_included = inscription_amount > 0
            if paid_at is not _UNSET:
                record.paid_at = paid_at
            if team_id is not None and record.team_id is None:
                record.team_id = team_id
            self.db.commit()
            self.db.refresh(record)
            return record
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise self._storage_error("save payment", exc) from exc

    def _insert(self, **values) -> PaymentRecordModel:
        """Insert inside a savepoint so a constraint violation leaves the outer transaction usable."""
        record = PaymentRecordModel(**values)
        with self.db.begin_nested():
            self.db.add(record)
        return record

    # ------------------------------------------------------------------

    def _find(self, session_id, subject_type, subject_id, year, month) -> PaymentRecordModel | None:
        return self._natural_key_query(session_id, subject_type, subject_id, year, month).first()

    def _natural_key_query(self, session_id, subject_type, subject_id, year, month):
        return self.db.query(PaymentRecordModel).filter(
            PaymentRecordModel.session_id == session_id,
            PaymentRecordModel.subject_type == subject_type,
            PaymentRecordModel.subject_id == subject_id,
            PaymentRecordModel.year == year,
            PaymentRecordModel.month == month,
        )

    @staticmethod
    def _storage_error(action: str, exc: SQLAlchemyError) -> StorageError:
        logger.error("Payment storage failure (%s): %s", action, exc)
        return StorageError(f"Failed to {action}: {exc.__class__.__name__}")
