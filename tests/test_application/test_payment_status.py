"""Tests for SetPaymentStatus / CyclePaymentStatus / MarkPaid / ListSessionPayments use cases"""
import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.application.payment_schedule import PaymentScheduleService
from app.application.payment_status import (
    SetPaymentStatusUseCase, CyclePaymentStatusUseCase, MarkPaidUseCase, ListSessionPaymentsUseCase,
    normalize_amount,
)
from app.domain.errors import (
    InvalidAmountError, InvalidStatusError, InvalidSubjectTypeError, NotFoundError,
    OutOfRangeError, StorageError,
)
from app.domain.subject import Subject, BillingSession
from app.infrastructure.db.models import PaymentRecordModel, TrainingSessionModel
from app.infrastructure.db.payment_repository import PaymentRepository

FEB_10 = datetime(2024, 2, 10, 12, 0)


def _count(db_session):
    return db_session.query(PaymentRecordModel).count()


class TestNormalizeAmount:
    def test_none_passthrough(self):
        assert normalize_amount(None) is None

    def test_comma_separator(self):
        assert normalize_amount("100,50") == Decimal("100.50")

    def test_decimal_and_int(self):
        assert normalize_amount(Decimal("90")) == Decimal("90")
        assert normalize_amount(75) == Decimal("75")

    def test_decimal_in_exponent_notation(self):
        assert normalize_amount(Decimal("1E+2")) == Decimal("100")
        assert normalize_amount(Decimal("1.5E+1")) == Decimal("15.0")

    def test_amount_must_fit_numeric_column(self):
        assert normalize_amount("9999999999.99") == Decimal("9999999999.99")
        with pytest.raises(InvalidAmountError, match="too large"):
            normalize_amount("10000000000")

    @pytest.mark.parametrize("bad", ["-5", "10.505", "abc", "", "NaN", Decimal("Infinity")])
    def test_rejected(self, bad):
        with pytest.raises(InvalidAmountError):
            normalize_amount(bad)


class TestSetPaymentStatus:
    def test_create_uses_base_amount(self, db_session, season):
        record = SetPaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=1, status="pending", now=FEB_10,
        )

        assert record.id is not None
        assert record.status == "pending"
        assert record.amount == Decimal("100")
        assert record.notes == ""
        assert record.team_id == 1
        assert record.paid_at is None

    def test_paid_february_shows_in_rebuilt_schedule(self, db_session, season):
        SetPaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=2, status="paid", amount="90", now=FEB_10,
        )

        schedule = PaymentScheduleService(db_session).build_schedule(10, "player", date(2024, 2, 10))
        amine = schedule.rows[0]
        assert [c.status for c in amine.cells] == ["delayed", "paid", "pending"]
        assert amine.cells[1].amount == Decimal("90")
        assert amine.cells[2].amount == Decimal("100")

    def test_update_keeps_omitted_amount_and_notes(self, db_session, season):
        use_case = SetPaymentStatusUseCase(db_session)
        use_case.execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=2, status="pending", amount="80", notes="discount", now=FEB_10,
        )
        record = use_case.execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=2, status="paid", now=FEB_10,
        )

        assert record.status == "paid"
        assert record.amount == Decimal("80")
        assert record.notes == "discount"
        assert _count(db_session) == 1

    def test_paid_at_set_and_cleared(self, db_session, season):
        use_case = SetPaymentStatusUseCase(db_session)
        record = use_case.execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=2, status="paid", now=FEB_10,
        )
        assert record.paid_at is not None

        record = use_case.execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=2, status="pending", now=FEB_10,
        )
        assert record.paid_at is None

    def test_one_record_per_natural_key(self, db_session, season):
        use_case = SetPaymentStatusUseCase(db_session)
        for status in ("pending", "delayed", "paid", "pending"):
            use_case.execute(
                session_id=10, subject_id=2, subject_type="player",
                year=2024, month=3, status=status, now=FEB_10,
            )
        assert _count(db_session) == 1

    def test_player_and_coach_with_same_id_are_separate(self, db_session, season):
        use_case = SetPaymentStatusUseCase(db_session)
        use_case.execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=1, status="paid", now=FEB_10,
        )
        coach = use_case.execute(
            session_id=10, subject_id=1, subject_type="coach",
            year=2024, month=1, status="pending", now=FEB_10,
        )
        assert coach.amount == Decimal("500")
        assert _count(db_session) == 2

    def test_explicit_delayed_in_future_month_kept(self, db_session, season):
        SetPaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=3, status="delayed", now=FEB_10,
        )
        schedule = PaymentScheduleService(db_session).build_schedule(10, "player", date(2024, 2, 10))
        assert schedule.rows[0].cells[2].status == "delayed"

    def test_paid_in_elapsed_month_stays_paid(self, db_session, season):
        SetPaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=1, status="paid", now=FEB_10,
        )
        schedule = PaymentScheduleService(db_session).build_schedule(10, "player", date(2025, 1, 1))
        assert schedule.rows[0].cells[0].status == "paid"

    def test_notes_are_stripped(self, db_session, season):
        record = SetPaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=1, status="pending", notes="  will pay later  ", now=FEB_10,
        )
        assert record.notes == "will pay later"

    def test_comma_amount_accepted(self, db_session, season):
        record = SetPaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=1, status="paid", amount="100,50", now=FEB_10,
        )
        assert record.amount == Decimal("100.50")

    def test_invalid_status(self, db_session, season):
        with pytest.raises(InvalidStatusError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=10, subject_id=1, subject_type="player",
                year=2024, month=1, status="unpaid", now=FEB_10,
            )
        assert _count(db_session) == 0

    def test_invalid_subject_type(self, db_session, season):
        with pytest.raises(InvalidSubjectTypeError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=10, subject_id=1, subject_type="parent",
                year=2024, month=1, status="paid", now=FEB_10,
            )

    def test_month_outside_session(self, db_session, season):
        with pytest.raises(OutOfRangeError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=10, subject_id=1, subject_type="player",
                year=2025, month=1, status="paid", now=FEB_10,
            )
        assert _count(db_session) == 0

    def test_month_thirteen(self, db_session, season):
        with pytest.raises(OutOfRangeError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=10, subject_id=1, subject_type="player",
                year=2024, month=13, status="paid", now=FEB_10,
            )

    @pytest.mark.parametrize("amount", ["-10", "10.999"])
    def test_invalid_amount(self, db_session, season, amount):
        with pytest.raises(InvalidAmountError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=10, subject_id=1, subject_type="player",
                year=2024, month=1, status="paid", amount=amount, now=FEB_10,
            )
        assert _count(db_session) == 0

    def test_unknown_session(self, db_session, season):
        with pytest.raises(NotFoundError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=999, subject_id=1, subject_type="player",
                year=2024, month=1, status="paid", now=FEB_10,
            )

    def test_unknown_subject(self, db_session, season):
        with pytest.raises(NotFoundError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=10, subject_id=42, subject_type="player",
                year=2024, month=1, status="paid", now=FEB_10,
            )
        assert _count(db_session) == 0

    def test_storage_failure_is_reported(self):
        session = BillingSession(
            id=10, name="Winter 2024", start_date=date(2024, 1, 1), end_date=date(2024, 3, 31),
        )
        subject = Subject(id=1, name="Amine Benali", subject_type="player", base_amount=Decimal("100"))
        sessions = MagicMock()
        sessions.get_session.return_value = session
        subjects = MagicMock()
        subjects.get_subject.return_value = subject
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT 1", {}, Exception("database is locked"))

        use_case = SetPaymentStatusUseCase(db, sessions=sessions, subjects=subjects)
        with pytest.raises(StorageError):
            use_case.execute(
                session_id=10, subject_id=1, subject_type="player",
                year=2024, month=1, status="paid", now=FEB_10,
            )
        db.rollback.assert_called_once()

    def test_year_outside_storable_range(self, db_session, season):
        db_session.add(TrainingSessionModel(
            id=11, team_id=1, name="Season 1999/2000",
            start_date=date(1999, 9, 1), end_date=date(2000, 2, 1),
        ))
        db_session.commit()

        with pytest.raises(OutOfRangeError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=11, subject_id=1, subject_type="player",
                year=1999, month=10, status="paid", now=FEB_10,
            )
        record = SetPaymentStatusUseCase(db_session).execute(
            session_id=11, subject_id=1, subject_type="player",
            year=2000, month=1, status="paid", now=FEB_10,
        )
        assert (record.year, record.month) == (2000, 1)

    def test_registration_fee_recorded(self, db_session, season):
        record = SetPaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player",
            year=2024, month=1, status="paid", inscription_amount="30", now=FEB_10,
        )
        assert record.inscription_included is True
        assert record.inscription_amount == Decimal("30")

    def test_invalid_registration_fee(self, db_session, season):
        with pytest.raises(InvalidAmountError):
            SetPaymentStatusUseCase(db_session).execute(
                session_id=10, subject_id=1, subject_type="player",
                year=2024, month=1, status="paid", inscription_amount="-1", now=FEB_10,
            )


class TestCyclePaymentStatus:
    def test_closure_on_future_month(self, db_session, season):
        use_case = CyclePaymentStatusUseCase(db_session)
        now = datetime(2024, 1, 10, 9, 0)
        seen = []
        for _ in range(3):
            record = use_case.execute(
                session_id=10, subject_id=1, subject_type="player", year=2024, month=3, now=now,
            )
            seen.append(record.status)

        assert seen == ["delayed", "paid", "pending"]
        assert _count(db_session) == 1

    def test_elapsed_month_without_record_goes_to_paid(self, db_session, season):
        # effective status of an elapsed unrecorded month is delayed
        record = CyclePaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player", year=2024, month=1,
            now=datetime(2024, 4, 15),
        )
        assert record.status == "paid"
        assert record.paid_at is not None

    def test_cycle_from_stored_paid(self, db_session, season):
        SetPaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=2, subject_type="player",
            year=2024, month=2, status="paid", amount="120", now=FEB_10,
        )
        record = CyclePaymentStatusUseCase(db_session).execute(
            session_id=10, subject_id=2, subject_type="player", year=2024, month=2, now=FEB_10,
        )
        assert record.status == "pending"
        assert record.paid_at is None
        assert record.amount == Decimal("120")

    def test_unknown_subject(self, db_session, season):
        with pytest.raises(NotFoundError):
            CyclePaymentStatusUseCase(db_session).execute(
                session_id=10, subject_id=42, subject_type="coach", year=2024, month=2, now=FEB_10,
            )


class TestMarkPaid:
    def test_explicit_month(self, db_session, season):
        record = MarkPaidUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="player",
            amount="95", year=2024, month=1, notes="cash", now=FEB_10,
        )
        assert (record.year, record.month) == (2024, 1)
        assert record.status == "paid"
        assert record.amount == Decimal("95")
        assert record.notes == "cash"

    def test_defaults_to_current_month(self, db_session, season):
        record = MarkPaidUseCase(db_session).execute(
            session_id=10, subject_id=1, subject_type="coach", amount="500", now=FEB_10,
        )
        assert (record.year, record.month) == (2024, 2)
        assert record.subject_type == "coach"

    def test_current_month_outside_session(self, db_session, season):
        with pytest.raises(OutOfRangeError):
            MarkPaidUseCase(db_session).execute(
                session_id=10, subject_id=1, subject_type="player", amount="100",
                now=datetime(2024, 6, 1),
            )


class TestListSessionPayments:
    def test_newest_month_first(self, db_session, season):
        use_case = SetPaymentStatusUseCase(db_session)
        for month in (1, 3, 2):
            use_case.execute(
                session_id=10, subject_id=1, subject_type="player",
                year=2024, month=month, status="paid", now=FEB_10,
            )
        use_case.execute(
            session_id=10, subject_id=1, subject_type="coach",
            year=2024, month=1, status="paid", now=FEB_10,
        )

        records = ListSessionPaymentsUseCase(db_session).execute(10, "player")
        assert [r.month for r in records] == [3, 2, 1]
        assert len(ListSessionPaymentsUseCase(db_session).execute(10)) == 4

    def test_unknown_session(self, db_session, season):
        with pytest.raises(NotFoundError):
            ListSessionPaymentsUseCase(db_session).execute(999)


class TestPaymentRepositoryUpsert:
    def _upsert(self, repo, **overrides):
        values = dict(
            session_id=10, subject_type="player", subject_id=1, year=2024, month=1,
            status="paid", default_amount=Decimal("100"), team_id=1,
        )
        values.update(overrides)
        return repo.upsert(**values)

    def test_lost_insert_race_updates_existing_row(self, db_session, season, monkeypatch):
        repo = PaymentRepository(db_session)
        self._upsert(repo, status="pending", notes="first writer")

        # the initial lookup misses, as if the other writer committed right after it
        monkeypatch.setattr(repo, "_find", lambda *args: None)
        record = self._upsert(repo, status="paid", amount=Decimal("90"))

        assert record.status == "paid"
        assert record.amount == Decimal("90")
        assert record.notes == "first writer"
        assert _count(db_session) == 1

    def test_constraint_violation_without_existing_row(self, db_session, season):
        repo = PaymentRepository(db_session)
        with pytest.raises(StorageError) as exc_info:
            self._upsert(repo, year=1999, month=10)

        assert "IntegrityError" in str(exc_info.value)
        assert _count(db_session) == 0

    def test_inscription_passthrough(self, db_session, season):
        repo = PaymentRepository(db_session)
        record = self._upsert(repo, inscription_amount=Decimal("50"))
        assert record.inscription_included is True
        assert record.inscription_amount == Decimal("50")

        record = self._upsert(repo, status="pending")
        assert record.inscription_included is True

        record = self._upsert(repo, inscription_amount=Decimal("0"))
        assert record.inscription_included is False
