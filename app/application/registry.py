"""
Registry collaborators consumed by the payment schedule.

Teams, players, coaches and sessions are owned by the roster side of the
application; the schedule only reads them through these two interfaces.
"""
from decimal import Decimal
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import NotFoundError, StorageError
from app.domain.payment_status import SUBJECT_PLAYER, SUBJECT_COACH, validate_subject_type
from app.domain.subject import Subject, BillingSession
from app.infrastructure.db.models import PlayerModel, CoachModel, TrainingSessionModel


class SubjectRegistry(Protocol):
    def get_subject(self, subject_id: int, subject_type: str) -> Subject: ...

    def list_subjects_for_session(self, session_id: int, subject_type: str) -> list[Subject]: ...


class SessionRegistry(Protocol):
    def get_session(self, session_id: int) -> BillingSession: ...


def _player_subject(p: PlayerModel) -> Subject:
    return Subject(
        id=p.id, name=p.full_name, subject_type=SUBJECT_PLAYER,
        group=p.group, base_amount=_money(p.monthly_fee),
    )


def _coach_subject(c: CoachModel) -> Subject:
    return Subject(
        id=c.id, name=c.full_name, subject_type=SUBJECT_COACH,
        group=c.specialization, base_amount=_money(c.agreed_salary),
    )


def _money(value) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


class SqlSessionRegistry:
    def __init__(self, db: Session):
        self.db = db

    def get_session(self, session_id: int) -> BillingSession:
        try:
            s = self.db.get(TrainingSessionModel, session_id)
            if s is None:
                raise NotFoundError(f"Session {session_id} not found")
            return BillingSession(
                id=s.id,
                name=s.name,
                start_date=s.start_date,
                end_date=s.end_date,
                team_id=s.team_id,
            )
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load session {session_id}: {exc.__class__.__name__}") from exc


class SqlSubjectRegistry:
    def __init__(self, db: Session):
        self.db = db

    def get_subject(self, subject_id: int, subject_type: str) -> Subject:
        validate_subject_type(subject_type)
        model, convert = (
            (PlayerModel, _player_subject) if subject_type == SUBJECT_PLAYER
            else (CoachModel, _coach_subject)
        )
        try:
            row = self.db.get(model, subject_id)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load {subject_type} {subject_id}: {exc.__class__.__name__}") from exc
        if row is None:
            raise NotFoundError(f"{subject_type.capitalize()} {subject_id} not found")
        return convert(row)

    def list_subjects_for_session(self, session_id: int, subject_type: str) -> list[Subject]:
        """Subjects enrolled in the session, in enrolment-table id order."""
        validate_subject_type(subject_type)
        try:
            s = self.db.get(TrainingSessionModel, session_id)
            if s is None:
                raise NotFoundError(f"Session {session_id} not found")
            if subject_type == SUBJECT_PLAYER:
                return [_player_subject(p) for p in s.players]
            return [_coach_subject(c) for c in s.coaches]
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list {subject_type}s of session {session_id}: {exc.__class__.__name__}") from exc
