from __future__ import annotations

import warnings
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from ..core.constants import DEFAULT_MAX_PHOTO_BYTES
from ..core.exceptions import ValidationError

PHOTO_CONTENT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive(value, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return number


def require_non_negative(value, field_name: str) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def require_id(value, field_name: str) -> int:
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is required")
    if ident <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return ident


def require_photo(photo: bytes | None, *, max_bytes: int = DEFAULT_MAX_PHOTO_BYTES) -> str:
    """Check that ``photo`` is a decodable image and return its content type."""
    if not photo:
        raise ValidationError("Photo is required")
    if len(photo) > max_bytes:
        raise ValidationError(f"Photo too large. Max size: {max_bytes / 1024 / 1024:.0f}MB")

    try:
        with warnings.catch_warnings():
            # Past Pillow's pixel limit the header alone is enough to refuse the photo.
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(BytesIO(photo)) as img:
                fmt = img.format
                img.verify()
    except (Image.DecompressionBombError, Image.DecompressionBombWarning):
        raise ValidationError("Photo dimensions are too large")
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("Photo is not a valid image")

    content_type = PHOTO_CONTENT_TYPES.get(fmt or "")
    if not content_type:
        raise ValidationError(f"Photo format not allowed. Allowed: {', '.join(sorted(PHOTO_CONTENT_TYPES))}")
    return content_type
