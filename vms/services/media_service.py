import logging
import uuid
from pathlib import Path

from vms.core.config import get_settings
from vms.core.constants import ALLOWED_PHOTO_TYPES, MAX_PHOTO_SIZE_BYTES, VISITOR_PHOTO_FOLDER
from vms.core.exceptions import AppException

settings = get_settings()
logger = logging.getLogger(__name__)


def photo_url_prefix() -> str:
    return f"{settings.MEDIA_URL_PREFIX.rstrip('/')}/{VISITOR_PHOTO_FOLDER}/"


def validate_photo(content: bytes, content_type: str | None) -> str:
    """Return the file extension for an acceptable photo, else raise."""
    if len(content) > MAX_PHOTO_SIZE_BYTES:
        raise AppException(
            f"File size must be less than {MAX_PHOTO_SIZE_BYTES // 1024 // 1024}MB",
            status_code=400,
        )
    extension = ALLOWED_PHOTO_TYPES.get((content_type or "").lower())
    if not extension:
        raise AppException("Only JPEG, PNG, or WebP images are allowed", status_code=400)
    if not content:
        raise AppException("Uploaded photo is empty", status_code=400)
    return extension


def save_visitor_photo(content: bytes, content_type: str | None) -> str:
    extension = validate_photo(content, content_type)

    folder = Path(settings.MEDIA_DIR) / VISITOR_PHOTO_FOLDER
    folder.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{extension}"
    (folder / filename).write_bytes(content)

    logger.info("visitor photo stored %s (%s bytes)", filename, len(content))
    return f"{photo_url_prefix()}{filename}"
