"""
Aspect-ratio filter for inline image results.

An image qualifies when its long side is between 1.0x and 2.3x its
short side, in either orientation. Extreme panoramas and strips are
rejected. Ratios are compared as exact decimals so that the band
edges are inclusive without float rounding surprises.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol


class HasDimensions(Protocol):
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class AspectRatioBand:
    """Inclusive ratio band applied to width:height or height:width."""

    lower: Decimal = Decimal("1.0")
    upper: Decimal = Decimal("2.3")

    def _within(self, ratio: Decimal) -> bool:
        return self.lower <= ratio <= self.upper

    def contains(self, width: int, height: int) -> bool:
        if width <= 0 or height <= 0:
            return False
        w = Decimal(width)
        h = Decimal(height)
        return self._within(w / h) or self._within(h / w)

    def accepts(self, image: HasDimensions) -> bool:
        return self.contains(image.width, image.height)


DEFAULT_BAND = AspectRatioBand()


def is_acceptable_aspect_ratio(width: int, height: int) -> bool:
    """Check dimensions against the default 1.0-2.3 band."""
    return DEFAULT_BAND.contains(width, height)
