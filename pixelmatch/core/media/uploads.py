# pixelmatch/core/media/uploads.py
from __future__ import annotations

import base64
import re
import time
import uuid
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from pixelmatch.core.errors import ImageReadError, UploadRejectedError
from pixelmatch.core.log import get_logger

log = get_logger(__name__)

# ---------------------------
# Helpers / knobs
# ---------------------------

MAX_UPLOAD_BYTES = 20 * 1024 * 1024  # 20 MiB
_PIL_TO_MIME = {"JPEG": "image/jpeg", "PNG": "image/png"}
_PDF_MAGIC = b"%PDF-"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sniff_bytes(data: bytes) -> str | None:
    """Return the MIME type of an accepted upload (JPEG, PNG, PDF), or None."""
    if data.startswith(_PDF_MAGIC):
        return "application/pdf"
    try:
        with Image.open(BytesIO(data)) as img:
            return _PIL_TO_MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def sniff_media_type(path: str | Path, default: str = "image/jpeg") -> str:
    """
    MIME type for an image on disk, used in provider data URLs.
    Unrecognized formats fall back to `default`; the provider decides whether it can read them.
    """
    try:
        with Image.open(path) as img:
            fmt = (img.format or "").upper()
    except (UnidentifiedImageError, OSError):
        return default
    if fmt in _PIL_TO_MIME:
        return _PIL_TO_MIME[fmt]
    return Image.MIME.get(fmt, default)


def read_image_b64(path: str | Path) -> tuple[str, str]:
    """
    Read an image as base64 plus its media type.

    Raises ImageReadError when the file is missing, unreadable or empty.
    """
    p = Path(path)
    if not p.exists() or not p.is_file():
        raise ImageReadError(f"Image not found: {path}")
    try:
        data = p.read_bytes()
    except OSError as e:
        raise ImageReadError(f"Image not readable: {path} ({e})") from e
    if not data:
        raise ImageReadError(f"Image is empty: {path}")
    return base64.b64encode(data).decode("ascii"), sniff_media_type(p)


def safe_filename(name: str) -> str:
    base = Path(name).name.strip() or "upload"
    return _UNSAFE_CHARS.sub("_", base)


def save_uploaded_file(
    data: bytes,
    original_name: str,
    uploads_dir: str | Path = "uploads",
    *,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> Path:
    """
    Persist an uploaded file as <uploads_dir>/<epoch_ms>-<rand8>-<name> and return its path.

    Only JPEG/PNG images and PDFs are accepted; anything larger than `max_bytes`
    is rejected before touching the disk. The file is created exclusively, so an
    earlier upload with the same name is never overwritten.
    """
    if len(data) > max_bytes:
        raise UploadRejectedError(f"File size exceeds {max_bytes // (1024 * 1024)}MB limit")
    if sniff_bytes(data) is None:
        raise UploadRejectedError("Invalid file type. Only JPEG, PNG, and PDF files are allowed.")

    target_dir = Path(uploads_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    name = safe_filename(original_name)
    while True:
        path = target_dir / f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{name}"
        try:
            with path.open("xb") as fh:
                fh.write(data)
        except FileExistsError:
            continue
        break
    log.debug("saved upload %s (%d bytes)", path, len(data))
    return path
