import inspect

import pytest
from fastapi.testclient import TestClient

from questline.core import config
from questline.core.errors import ValidationFailed
from questline.main import app
from questline.uploads.routes import upload_photo, validate_photo

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_validate_photo_accepts_jpg_and_png():
    assert validate_photo("image/jpeg", 1024) == ".jpg"
    assert validate_photo("image/JPG", 1024) == ".jpg"
    assert validate_photo("image/png", 1024) == ".png"


@pytest.mark.parametrize("content_type", ["image/gif", "text/plain", None])
def test_validate_photo_rejects_other_types(content_type):
    with pytest.raises(ValidationFailed) as excinfo:
        validate_photo(content_type, 1024)
    assert excinfo.value.message == "Only JPG and PNG files are allowed"


def test_validate_photo_enforces_size_limit():
    with pytest.raises(ValidationFailed):
        validate_photo("image/png", 0)
    with pytest.raises(ValidationFailed):
        validate_photo("image/png", config.MAX_PHOTO_BYTES + 1)
    assert validate_photo("image/png", config.MAX_PHOTO_BYTES) == ".png"


def test_upload_stores_photo_and_returns_url(client):
    resp = client.post("/uploads/photo", files={"photo": ("run.png", PNG_BYTES, "image/png")})

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["filename"] == "run.png"
    assert body["photo_url"].startswith("/media/")
    assert body["photo_url"].endswith(".png")

    stored = config.MEDIA_DIR / body["photo_url"].rsplit("/", 1)[-1]
    assert stored.read_bytes() == PNG_BYTES


def test_upload_rejects_wrong_type(client):
    resp = client.post("/uploads/photo", files={"photo": ("notes.txt", b"hello", "text/plain")})

    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


def test_upload_rejects_oversized_photo(client, monkeypatch):
    monkeypatch.setattr(config, "MAX_PHOTO_BYTES", 16)
    resp = client.post("/uploads/photo", files={"photo": ("big.png", PNG_BYTES, "image/png")})

    assert resp.status_code == 422
    assert "smaller than" in resp.json()["detail"]


def test_upload_requires_authentication(tables):
    resp = TestClient(app).post("/uploads/photo", files={"photo": ("run.png", PNG_BYTES, "image/png")})
    assert resp.status_code == 401


def test_upload_handler_runs_in_threadpool():
    # Plain def: FastAPI runs it in the threadpool so the file write never
    # blocks the event loop.
    assert not inspect.iscoroutinefunction(upload_photo)
