"""
FastAPI dependencies (DB session, recurrence store)
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.infrastructure.db.session import get_db as _get_db
from app.infrastructure.db.repository import SqlRecurrenceStore


# Re-export get_db for convenience
get_db = _get_db


def get_store(db: Session = Depends(get_db)) -> SqlRecurrenceStore:
    """
    Request-scoped store over the request's DB session

    Usage:
        @router.get("/patterns")
        def list_patterns(store: SqlRecurrenceStore = Depends(get_store)):
            ...
    """
    return SqlRecurrenceStore(db)
