import logging
import os
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

from opensquid.core.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class UnsupportedImageError(ValueError):
    pass


class ImageTooLargeError(ValueError):
    pass


def ensure_upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def image_extension(filename: str, content_type: str | None) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in settings.ALLOWED_IMAGE_EXTENSIONS or not (content_type or "").startswith("image/"):
        raise UnsupportedImageError(f"Unsupported image type: {ext or content_type}")
    return ext


def store_image(src: BinaryIO, filename: str, content_type: str | None, team_id: str) -> str:
    """Copy an uploaded image into UPLOAD_DIR and return its public URL."""
    ext = image_extension(filename, content_type)
    name = f"{uuid4().hex}{ext}"
    dest = ensure_upload_dir() / name
    written = 0
    with open(dest, "wb") as out:
        while True:
            chunk = src.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > settings.MAX_UPLOAD_SIZE:
                break
            out.write(chunk)
    if written > settings.MAX_UPLOAD_SIZE:
        dest.unlink(missing_ok=True)
        raise ImageTooLargeError(f"Image exceeds {settings.MAX_UPLOAD_SIZE} bytes")
    logger.info(f"Upload complete for team {team_id}: {name} ({written} bytes)")
    return f"{settings.UPLOAD_URL_PATH.rstrip('/')}/{name}"
