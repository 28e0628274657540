"""
Database engine and sessions (SQLAlchemy)
"""
from contextlib import contextmanager
from typing import Iterator

import psycopg
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from app.config import get_settings


class Base(DeclarativeBase):
    pass


_engine = None
_SessionLocal = None


def get_engine():
    """Lazily created process-wide engine"""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine(settings.get_sqlalchemy_url(), pool_pre_ping=True, echo=settings.DEBUG)
    return _engine


def get_session_factory():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    One session per unit of work (request or batch run).

    The store commits its own writes; anything left pending when the block
    raises is rolled back before the session is closed.
    """
    db = get_session_factory()()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency

    Usage:
        @router.get("/patterns")
        def list_patterns(db: Session = Depends(get_db)):
            ...
    """
    with session_scope() as db:
        yield db


def check_db_connection() -> None:
    """
    Readiness probe against PostgreSQL over a raw psycopg connection

    Raises:
        psycopg.OperationalError: if the database is unreachable
    """
    url = get_settings().DATABASE_URL
    with psycopg.connect(url, connect_timeout=3) as conn:
        conn.execute("SELECT 1;").fetchone()
