"""
Database session management (SQLAlchemy)
"""
import psycopg
from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from app.config import get_settings


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for registry and payment models
    """
    pass


# Singleton engine and session factory
_engine = None
_SessionLocal = None


def _engine_options(url: str, debug: bool) -> dict:
    """create_engine kwargs for the configured backend"""
    if url.startswith("sqlite"):
        # local runs and demos; one file shared by uvicorn worker threads
        return {"connect_args": {"check_same_thread": False}, "echo": debug}
    return {"pool_pre_ping": True, "echo": debug}


def get_engine():
    """Get or create SQLAlchemy engine (singleton)"""
    global _engine
    if _engine is None:
        settings = get_settings()
        url = settings.get_sqlalchemy_url()
        _engine = create_engine(url, **_engine_options(url, settings.DEBUG))
    return _engine


def get_session_factory():
    """Get or create session factory (singleton)"""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def get_db() -> Session:
    """
    FastAPI dependency: one session per request, always closed

    Usage:
        @router.get("/{session_id}/payments")
        def list_session_payments(session_id: int, db: Session = Depends(get_db)):
            ...
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> None:
    """
    Readiness probe: runs SELECT 1 against the configured database

    PostgreSQL is probed with a raw psycopg connection and a short timeout so
    a hung server does not hold the pool; other backends go through the engine.

    Raises:
        psycopg.OperationalError / sqlalchemy.exc.OperationalError: database unreachable
    """
    settings = get_settings()
    if settings.DATABASE_URL.startswith("postgresql"):
        with psycopg.connect(settings.DATABASE_URL, connect_timeout=3) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
