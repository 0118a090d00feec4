"""
API routes for achievements.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from questline.achievements.service import get_achievement_summary
from questline.auth.models import User
from questline.core.deps import get_current_user
from questline.db.session import get_db

router = APIRouter(prefix="/achievements", tags=["achievements"])


@router.get("")
def list_achievements(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Earned and still-available achievements with point totals."""
    return get_achievement_summary(db, user.id)
