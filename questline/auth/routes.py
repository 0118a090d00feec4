import logging

from fastapi import APIRouter, Depends, HTTPException, Form
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from questline.auth.models import User
from questline.core.deps import get_current_user
from questline.core.security import hash_password, verify_password, create_access_token, ACCESS_TOKEN_EXPIRE_MINUTES
from questline.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6


def _user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "created_at": user.created_at,
    }


# =========================
# SIGNUP
# =========================
@router.post("/signup", status_code=201)
def signup(
    email: str = Form(...),
    password: str = Form(...),
    name: str = Form(None),
    db: Session = Depends(get_db),
):
    email = email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Invalid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(email=email, name=(name or "").strip() or None, password_hash=hash_password(password))

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("[AUTH] signup user=%s", user.id)
    return {"message": "Signup successful", "user": _user_payload(user)}


# =========================
# LOGIN
# =========================
@router.post("/login")
def login(
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == email.strip().lower()).first()

    if not user or not verify_password(password, user.password_hash):
        logger.info("[AUTH] invalid credentials for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user.id)
    logger.info("[AUTH] login user=%s", user.id)

    response = JSONResponse({"access_token": token, "token_type": "bearer"})
    response.set_cookie(
        "access_token",
        token,
        httponly=True,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return response


# =========================
# LOGOUT / CURRENT USER
# =========================
@router.post("/logout")
def logout():
    response = JSONResponse({"message": "Signed out"})
    response.delete_cookie("access_token")
    return response


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return _user_payload(user)
