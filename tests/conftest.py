import os
import tempfile
from pathlib import Path

import pytest

# Point the app at a throwaway database and media folder before any
# questline module reads its configuration.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="questline-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["MEDIA_DIR"] = str(_TMP_DIR / "media")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from fastapi.testclient import TestClient  # noqa: E402

from questline.main import app  # noqa: E402
from questline.achievements.service import seed_achievements  # noqa: E402
from questline.auth.models import User  # noqa: E402
from questline.core.security import hash_password  # noqa: E402
from questline.db.base import Base, SessionLocal, engine  # noqa: E402
from questline.journeys.repository import JourneyRepository, JourneySession  # noqa: E402


@pytest.fixture
def tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_achievements(db)
    yield


@pytest.fixture
def db(tables):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, email="hero@example.com") -> User:
    user = User(email=email, password_hash=hash_password("password123"))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def repo(db, user):
    return JourneyRepository(db, JourneySession(user_id=user.id))


@pytest.fixture
def journey_fields():
    return {
        "title": "Morning Pages",
        "description": "Three pages of longhand writing before breakfast",
        "habit": "Journaling",
        "duration": 30,
        "theme": "fantasy",
    }


def signed_in_client(email="hero@example.com", password="password123") -> TestClient:
    client = TestClient(app)
    resp = client.post("/auth/signup", data={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", data={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def client(tables):
    return signed_in_client()
