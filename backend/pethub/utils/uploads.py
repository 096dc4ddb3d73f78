"""Image upload handling.

Uploaded files are checked (filename, size, actual image content via
Pillow) and written under `settings.UPLOAD_DIR`. The value stored in the
database is the public path `/uploads/<name>`.
"""

import io
import logging
import time
import uuid
from pathlib import Path
from typing import NamedTuple, Optional

from fastapi import HTTPException, UploadFile
from PIL import Image

from ..config import settings

logger = logging.getLogger("pethub.uploads")

PUBLIC_PREFIX = "/uploads/"

_EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "GIF": ".gif", "WEBP": ".webp", "BMP": ".bmp"}


def validate_upload_filename(filename: str) -> None:
    if not filename or len(filename) > 200:
        raise HTTPException(status_code=400, detail="invalid filename")
    if "/" in filename or "\\" in filename or filename in (".", ".."):
        raise HTTPException(status_code=400, detail="invalid filename path")


def has_file(upload: Optional[UploadFile]) -> bool:
    """True when the client actually attached a file to the form field."""
    return upload is not None and bool(upload.filename)


def _sniff_image_format(payload: bytes) -> str:
    try:
        with Image.open(io.BytesIO(payload)) as img:
            fmt = img.format
            img.verify()
    except Exception:
        raise HTTPException(status_code=415, detail="unsupported file content; expected an image")
    return fmt or ""


def unique_stem(*parts) -> str:
    """Join `parts` with a millisecond timestamp and a short random suffix."""
    tokens = [str(p) for p in parts] + [str(int(time.time() * 1000)), uuid.uuid4().hex[:8]]
    return "_".join(tokens)


class CheckedImage(NamedTuple):
    payload: bytes
    ext: str


def read_image(upload: UploadFile, max_bytes: Optional[int] = None) -> CheckedImage:
    """Read and validate `upload` without writing anything to disk.

    Raises 400 for a bad filename or empty file, 413 when larger than
    `max_bytes` and 415 when the content is not an image Pillow can read.
    """
    validate_upload_filename(upload.filename)
    limit = max_bytes or settings.MAX_IMAGE_BYTES
    payload = upload.file.read(limit + 1)
    if not payload:
        raise HTTPException(status_code=400, detail="empty file")
    if len(payload) > limit:
        raise HTTPException(status_code=413, detail=f"file too large; max {limit // (1024 * 1024)}MB")
    fmt = _sniff_image_format(payload)
    ext = _EXTENSIONS.get(fmt.upper()) or Path(upload.filename).suffix.lower() or ".img"
    return CheckedImage(payload, ext)


def store_image(image: CheckedImage, stem: str) -> str:
    """Write a checked image as `<stem><ext>` and return its public path."""
    name = f"{stem}{image.ext}"
    settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    (settings.UPLOAD_DIR / name).write_bytes(image.payload)
    logger.info("upload_saved name=%s bytes=%d", name, len(image.payload))
    return PUBLIC_PREFIX + name


def save_image(upload: UploadFile, stem: str, max_bytes: Optional[int] = None) -> str:
    return store_image(read_image(upload, max_bytes), stem)


def resolve_upload(filename: str) -> Path:
    """Map a served filename to a file inside `UPLOAD_DIR` or raise 400/404."""
    validate_upload_filename(filename)
    root = settings.UPLOAD_DIR
    path = (root / filename).resolve()
    if root not in path.parents:
        raise HTTPException(status_code=400, detail="invalid filename path")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return path


def is_upload_path(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(PUBLIC_PREFIX) and ".." not in value
