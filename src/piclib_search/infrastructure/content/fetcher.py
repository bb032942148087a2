"""
Content host fetcher.

Downloads candidate images from arbitrary hosts through the
content-class HTTP client and decodes their dimensions. The two steps
are separate so the caller can check for cancellation between them.

The content client stops reading a body after MAX_IMAGE_BYTES; only
the header is needed to read the dimensions.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from piclib_search.core.exceptions import FetchFailedError, ImageDecodeError

from .decoder import DecodedImage, ImageDecoder, PillowImageDecoder

logger = logging.getLogger(__name__)

# Only the image header is decoded; bodies are truncated past this size
MAX_IMAGE_BYTES = 4 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class DownloadedContent:
    """Raw bytes plus the locator they were finally served from."""

    requested_url: str
    resolved_url: str
    content: bytes


class ImageFetcher:
    """
    Fetch and decode images from content hosts.

    Usage:
        fetcher = ImageFetcher(http_client)
        downloaded = await fetcher.download(url)
        decoded = await fetcher.decode(downloaded)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        decoder: ImageDecoder | None = None,
    ) -> None:
        self._client = http_client
        self._decoder = decoder or PillowImageDecoder()

    async def download(self, url: str) -> DownloadedContent:
        """
        Download one image.

        Raises:
            FetchFailedError: Network error, timeout or non-success status
        """
        try:
            response = await self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchFailedError(url, f"{type(e).__name__}: {e}") from e
        except TimeoutError as e:
            raise FetchFailedError(url, "request timed out") from e

        if not response.is_success:
            raise FetchFailedError(url, f"HTTP {response.status_code}")
        return DownloadedContent(
            requested_url=url,
            resolved_url=str(response.url),
            content=response.content,
        )

    async def decode(self, downloaded: DownloadedContent) -> DecodedImage:
        """
        Decode dimensions in a worker thread.

        Raises:
            ImageDecodeError: Bytes are not a recognizable image
        """
        try:
            return await asyncio.to_thread(self._decoder.decode, downloaded.content)
        except ValueError as e:
            raise ImageDecodeError(downloaded.requested_url, str(e)) from e
