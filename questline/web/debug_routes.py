from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from questline.auth.models import User
from questline.db.base import describe_database
from questline.db.session import get_db
from questline.journeys.models import CheckIn, Journey, ReflectionGate

router = APIRouter(prefix="/debug", tags=["debug"])


def _count(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


@router.get("/counts")
def debug_counts(db: Session = Depends(get_db)):
    """Row counts per table; no user content."""
    return {
        "users": _count(db, User.id),
        "journeys": _count(db, Journey.id),
        "active_journeys": _count(db, Journey.id, Journey.started_at.isnot(None), Journey.completed_at.is_(None)),
        "check_ins": _count(db, CheckIn.id),
        "reflection_gates": _count(db, ReflectionGate.id),
        "open_reflection_gates": _count(db, ReflectionGate.id, ReflectionGate.completed.is_(False)),
    }


@router.get("/diagnostics/db")
def db_diagnostics():
    """Only mounted when ENABLE_DEBUG_ROUTES=1. Never includes the password."""
    return describe_database()
