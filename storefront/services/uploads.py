"""Checks applied to image uploads before they reach a blob store."""

from __future__ import annotations

import io
import os

from storefront.services.entity_store import BlobUpload

ALLOWED_TYPES = {"image/jpeg", "image/jpg", "image/pjpeg", "image/png", "image/gif"}
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif"}
PIL_FORMATS = {"JPEG", "PNG", "GIF", "MPO"}
TYPE_ERROR = "Only image files are allowed (jpeg, jpg, png, gif)"


class InvalidUploadError(Exception):
    """Raised when an upload is empty, too large or not an image."""


def _is_image(data: bytes) -> bool:
    from PIL import Image, UnidentifiedImageError

    try:
        with Image.open(io.BytesIO(data)) as image:
            fmt = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return False
    return fmt in PIL_FORMATS


def check_image_upload(data: bytes, content_type: str | None, filename: str | None, max_bytes: int) -> BlobUpload:
    ct = (content_type or "").lower()
    ext = os.path.splitext(filename or "")[1].lower()
    if ct not in ALLOWED_TYPES or ext not in ALLOWED_EXTENSIONS:
        raise InvalidUploadError(TYPE_ERROR)
    if not data:
        raise InvalidUploadError("Empty image upload")
    if len(data) > max_bytes:
        raise InvalidUploadError(f"Image exceeds {max_bytes // (1024 * 1024) or 1}MB")
    if not _is_image(data):
        raise InvalidUploadError("Invalid image file")
    return BlobUpload(data=data, content_type=ct, original_name=os.path.basename(filename or ""))
