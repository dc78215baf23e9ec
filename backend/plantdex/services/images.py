"""
PlantDex Backend — Embedded Image Parsing
==========================================

What:  Recognizes and validates photos submitted inline as data URIs.
Why:   The camera/upload widget sends either a regular URL or a string like
       `data:image/jpeg;base64,/9j/4AAQ...`. Only the second kind goes to
       Plant.id, and only its base64 body is transmitted.

Validation order (cheapest first):
    1. data: prefix and `;base64,` marker present
    2. MIME type is image/*
    3. body is non-empty
    4. decoded size within MAX_IMAGE_SIZE (computed from the encoded length)
    5. body is valid base64

Any failure raises ValidationError before a network call is made.
"""

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

from plantdex.config import settings
from plantdex.exceptions import ValidationError

DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?P<params>(?:;[\w.+-]+=[\w.+-]+)*);base64,(?P<data>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class EmbeddedImage:
    """An inline image: its MIME type and base64 body without the prefix."""
    mime_type: str
    data: str

    @property
    def size(self) -> int:
        """Decoded size in bytes."""
        padding = self.data.count("=", -2)
        return len(self.data) * 3 // 4 - padding


def is_embedded_image(value: Optional[str]) -> bool:
    """True when `value` is a data URI rather than a reference URL."""
    return bool(value) and value.lstrip()[:5].lower() == "data:"


def parse_embedded_image(value: str, max_size: Optional[int] = None) -> EmbeddedImage:
    """
    Parse and validate a data URI image.

    Raises:
        ValidationError: not a base64 image data URI, empty, or too large.
    """
    max_size = max_size or settings.max_image_size
    match = DATA_URI_RE.match(value.strip())
    if match is None:
        raise ValidationError(
            message="Embedded image must be a base64 data URI (data:image/<type>;base64,...)",
            field="imageUrl",
        )

    mime_type = match.group("mime").lower()
    if not mime_type.startswith("image/"):
        raise ValidationError(
            message=f"Embedded content type '{mime_type}' is not an image",
            field="imageUrl",
            context={"mime_type": mime_type},
        )

    data = re.sub(r"\s+", "", match.group("data"))
    if not data:
        raise ValidationError(message="Embedded image is empty", field="imageUrl")

    # Size is checked on the encoded length so oversized bodies are never decoded
    image = EmbeddedImage(mime_type=mime_type, data=data)
    if image.size > max_size:
        max_mb = max_size / (1024 * 1024)
        raise ValidationError(
            message=f"Image size ({image.size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
            field="imageUrl",
            context={"max_size_mb": max_mb, "actual_size": image.size},
        )

    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError(
            message="Embedded image is not valid base64",
            field="imageUrl",
        )
    return image
