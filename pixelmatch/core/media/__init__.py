# pixelmatch/core/media/__init__.py

from .uploads import MAX_UPLOAD_BYTES, read_image_b64, save_uploaded_file, sniff_bytes, sniff_media_type

__all__ = [
    "MAX_UPLOAD_BYTES",
    "read_image_b64",
    "save_uploaded_file",
    "sniff_bytes",
    "sniff_media_type",
]
