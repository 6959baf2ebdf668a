"""
Pytest fixtures for testing
"""
import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.infrastructure.db.session import Base
from app.infrastructure.db.models import (
    TeamModel, PlayerModel, CoachModel, TrainingSessionModel,
)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared by every connection (TestClient runs sync routes in a thread)"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def team(db_session):
    t = TeamModel(id=1, name="JS Kabylie Academy", discipline="football")
    db_session.add(t)
    db_session.flush()
    return t


@pytest.fixture
def players(db_session, team):
    ps = [
        PlayerModel(id=1, team_id=team.id, full_name="Amine Benali", group="Cadet", monthly_fee=Decimal("100")),
        PlayerModel(id=2, team_id=team.id, full_name="Yacine Saidi", group="Junior", monthly_fee=Decimal("120")),
        PlayerModel(id=3, team_id=team.id, full_name="Rayan Meziane", group="Cadet", monthly_fee=None),
    ]
    db_session.add_all(ps)
    db_session.flush()
    return ps


@pytest.fixture
def coaches(db_session, team):
    cs = [
        CoachModel(
            id=1, team_id=team.id, full_name="Karim Haddad",
            specialization="Goalkeeping", agreed_salary=Decimal("500"),
        ),
    ]
    db_session.add_all(cs)
    db_session.flush()
    return cs


@pytest.fixture
def season(db_session, team, players, coaches):
    """Session 2024-01-01 .. 2024-03-31 with every player and coach enrolled"""
    s = TrainingSessionModel(
        id=10, team_id=team.id, name="Winter 2024",
        start_date=date(2024, 1, 1), end_date=date(2024, 3, 31),
    )
    s.players = list(players)
    s.coaches = list(coaches)
    db_session.add(s)
    db_session.commit()
    return s
