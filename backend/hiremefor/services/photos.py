import io
import logging
import time
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .. import config
from ..errors import PhotoRejected

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}
MAX_PHOTO_BYTES = 5 * 1024 * 1024
PHOTO_SIZE = (400, 400)
URL_PREFIX = "/uploads/"


def upload_dir() -> Path:
    path = Path(config.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def check_upload(content_type: Optional[str], data: bytes) -> None:
    """Reject an upload before anything is written."""
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise PhotoRejected("Invalid file type. Only JPEG, PNG, and WebP allowed.")
    if not data:
        raise PhotoRejected("No photo uploaded")
    if len(data) > MAX_PHOTO_BYTES:
        raise PhotoRejected("File too large. Maximum size is 5MB.")


def save_profile_photo(worker_id: int, data: bytes) -> str:
    """Crop to a 400x400 square, store as JPEG and return its public URL."""
    try:
        img = Image.open(io.BytesIO(data))
        img = ImageOps.exif_transpose(img).convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise PhotoRejected("Invalid image file") from e

    img = ImageOps.fit(img, PHOTO_SIZE, Image.Resampling.LANCZOS)
    filename = f"profile_{worker_id}_{int(time.time() * 1000)}.jpg"
    img.save(upload_dir() / filename, "JPEG", quality=85)
    return URL_PREFIX + filename


def delete_photo(photo_url: Optional[str]) -> None:
    if not photo_url or not photo_url.startswith(URL_PREFIX):
        return
    path = Path(config.UPLOAD_DIR) / Path(photo_url[len(URL_PREFIX):]).name
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not delete old photo %s: %s", path, e)
