import logging
from typing import Optional

from fastapi import Request, Depends, HTTPException
from sqlalchemy.orm import Session

from questline.auth.models import User
from questline.core.security import decode_access_token
from questline.db.session import get_db
from questline.journeys.repository import JourneyRepository, JourneySession

logger = logging.getLogger(__name__)


def _request_token(request: Request) -> Optional[str]:
    """Bearer header first, then the access_token cookie set at login."""
    auth_header = request.headers.get("authorization") or ""
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None

    token = request.cookies.get("access_token")
    # Support both "Bearer <token>" and raw token values in the cookie.
    if token and token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    token = _request_token(request)
    if not token:
        logger.debug("[AUTH] reject reason=missing_token path=%s", request.url.path)
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = decode_access_token(token)
    if not payload:
        logger.info("[AUTH] reject reason=invalid_token path=%s", request.url.path)
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.info("[AUTH] reject reason=user_not_found user=%s path=%s", user_id, request.url.path)
        raise HTTPException(status_code=401, detail="User not found")

    return user


def get_journey_repository(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> JourneyRepository:
    """A repository bound to a fresh session context for this request."""
    return JourneyRepository(db, JourneySession(user_id=user.id))
