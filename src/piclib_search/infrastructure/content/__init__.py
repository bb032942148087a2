"""Content host access: download and decode candidate images."""

from .decoder import DecodedImage, ImageDecoder, PillowImageDecoder
from .fetcher import MAX_IMAGE_BYTES, DownloadedContent, ImageFetcher

__all__ = [
    "DecodedImage",
    "DownloadedContent",
    "ImageDecoder",
    "ImageFetcher",
    "MAX_IMAGE_BYTES",
    "PillowImageDecoder",
]
