"""
SQLAlchemy ORM models: registry tables (read by the payment schedule) and payments
"""
from decimal import Decimal
from datetime import date as date_type, datetime
from sqlalchemy import (
    Boolean, Column, ForeignKey, String, Integer, SmallInteger, Text, TIMESTAMP, Date, Numeric, Table,
    false, func, UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.db.session import Base


# ============================================================================
# Registry (owned by team / roster management, read-only here)
# ============================================================================


class TeamModel(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    discipline: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class PlayerModel(Base):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    group: Mapped[str | None] = mapped_column(String(32), nullable=True)  # Poussin, Ecole, Minimum, Cadet, Junior, Senior
    monthly_fee: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class CoachModel(Base):
    __tablename__ = "coaches"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    specialization: Mapped[str | None] = mapped_column(String(128), nullable=True)
    agreed_salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


session_players = Table(
    "session_players",
    Base.metadata,
    Column("session_id", Integer, ForeignKey("sessions.id", ondelete="CASCADE"), primary_key=True),
    Column("player_id", Integer, ForeignKey("players.id", ondelete="CASCADE"), primary_key=True),
)

session_coaches = Table(
    "session_coaches",
    Base.metadata,
    Column("session_id", Integer, ForeignKey("sessions.id", ondelete="CASCADE"), primary_key=True),
    Column("coach_id", Integer, ForeignKey("coaches.id", ondelete="CASCADE"), primary_key=True),
)


class TrainingSessionModel(Base):
    """Billing period of a team (season, camp)"""
    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    team_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    session_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default="yearly", server_default="yearly",
    )  # yearly / monthly
    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type] = mapped_column(Date, nullable=False)  # inclusive

    players: Mapped[list[PlayerModel]] = relationship(secondary=session_players, order_by=PlayerModel.id)
    coaches: Mapped[list[CoachModel]] = relationship(secondary=session_coaches, order_by=CoachModel.id)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Payments
# ============================================================================


class PaymentRecordModel(Base):
    """One status/amount/notes entry per (session, subject, month); created on first explicit edit"""
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    team_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    session_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)  # -> sessions

    subject_type: Mapped[str] = mapped_column(String(16), nullable=False)  # player / coach
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False)  # -> players / coaches
    year: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    month: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending", server_default="pending",
    )  # pending / paid / delayed
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    inscription_included: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false(),
    )
    inscription_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=0, server_default="0",
    )  # registration fee paid with this month
    paid_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            'session_id', 'subject_type', 'subject_id', 'year', 'month',
            name='uq_payment_session_subject_month',
        ),
        CheckConstraint('month >= 1 AND month <= 12', name='ck_payment_month'),
        CheckConstraint('year >= 2000 AND year <= 2100', name='ck_payment_year'),
        CheckConstraint('amount >= 0', name='ck_payment_amount'),
        CheckConstraint('inscription_amount >= 0', name='ck_payment_inscription_amount'),
        Index('ix_payment_session_subject_type', 'session_id', 'subject_type'),
    )
