"""
Image decoding with Pillow.

Only the header is inspected: width, height and format are read without
decoding pixel data, which keeps decode cheap for large photos.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Protocol

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DecodedImage:
    width: int
    height: int
    format: str | None = None


class ImageDecoder(Protocol):
    def decode(self, content: bytes) -> DecodedImage:
        """Return image dimensions, raising ValueError if undecodable."""
        ...


class PillowImageDecoder:
    """ImageDecoder backed by Pillow."""

    def decode(self, content: bytes) -> DecodedImage:
        if not content:
            raise ValueError("empty body")
        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                return DecodedImage(width=width, height=height, format=img.format)
        except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
            raise ValueError(f"cannot identify image: {e}") from e
