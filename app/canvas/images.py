"""Decode uploaded image files into data URLs the canvas can embed."""

import base64
import io
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError


class ImageDecodeError(ValueError):
    """Raised when uploaded bytes are not a readable image."""
    pass


@dataclass(frozen=True)
class DecodedImage:
    data_url: str
    width: int
    height: int


def decode_image(data: bytes, mime_type: Optional[str] = None) -> DecodedImage:
    if not data:
        raise ImageDecodeError("Empty image file")

    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            image_format = image.format
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Unreadable image: {e}") from e

    if width <= 0 or height <= 0:
        raise ImageDecodeError("Image has no pixels")

    mime = mime_type or Image.MIME.get(image_format or "", "application/octet-stream")
    encoded = base64.b64encode(data).decode("ascii")
    return DecodedImage(data_url=f"data:{mime};base64,{encoded}", width=width, height=height)
