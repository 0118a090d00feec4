"""
Check-in photo uploads.

Only JPG and PNG are accepted. Files are stored under MEDIA_DIR and served
from /media; the returned photo_url goes into the check-in.
"""
import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile

from questline.auth.models import User
from questline.core import config
from questline.core.deps import get_current_user
from questline.core.errors import ValidationFailed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])

ALLOWED_PHOTO_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
}


def validate_photo(content_type: str, size_bytes: int) -> str:
    """Return the file extension for an acceptable photo, else raise."""
    extension = ALLOWED_PHOTO_TYPES.get((content_type or "").lower())
    if extension is None:
        raise ValidationFailed("Only JPG and PNG files are allowed", fields=["photo"])
    if size_bytes <= 0:
        raise ValidationFailed("Photo is empty", fields=["photo"])
    if size_bytes > config.MAX_PHOTO_BYTES:
        limit_mb = config.MAX_PHOTO_BYTES / (1024 * 1024)
        raise ValidationFailed(f"Photo must be smaller than {limit_mb:g} MB", fields=["photo"])
    return extension


@router.post("/photo", status_code=201)
def upload_photo(
    photo: UploadFile = File(...),
    user: User = Depends(get_current_user),
):
    # Sync handler: FastAPI runs it in the threadpool, so file IO stays off
    # the event loop. One byte past the limit is enough to spot oversize.
    data = photo.file.read(config.MAX_PHOTO_BYTES + 1)
    extension = validate_photo(photo.content_type, len(data))

    media_dir = Path(config.MEDIA_DIR)
    media_dir.mkdir(parents=True, exist_ok=True)
    name = f"{user.id}-{uuid.uuid4().hex}{extension}"
    (media_dir / name).write_bytes(data)

    logger.info("[UPLOAD] user=%s stored photo %s (%s bytes)", user.id, name, len(data))
    return {"photo_url": f"/media/{name}", "filename": photo.filename}
