"""
LibreY API Client

Issues image searches against LibreY mirrors:
https://github.com/Ahwxorg/librey

    GET {mirror}/api.php?q=<query>&p=<page>&t=1

"p" is the result page (the first page is 0) and "t" the search type
(0=text, 1=image, 2=video, 3=torrent, 4=tor). The body is a JSON array
of {"thumbnail", "url", "alt"} objects.

When a mirror's upstream engines and its fallback instances all fail,
LibreY answers with a plain-text message instead of JSON. That message
means "no results", not "broken mirror", and is mapped to an empty list.
It is only looked for in bodies that are not JSON, so a result whose
alt text happens to contain it is still a result.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from piclib_search.core.exceptions import APIError, MirrorCallFailedError, ParseError
from piclib_search.domain.entities import CandidateImage
from piclib_search.infrastructure.http import raise_for_status

logger = logging.getLogger(__name__)

FALLBACK_FAILURE_MARKER = "Unable to fallback"
IMAGE_SEARCH_TYPE = 1


class LibreYClient:
    """
    Stateless LibreY client; the mirror is chosen per call.

    Usage:
        client = LibreYClient(http_client)
        candidates = await client.search_images("https://search.example.org", "cats")
    """

    _service_name = "LibreY"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        fallback_marker: str = FALLBACK_FAILURE_MARKER,
    ) -> None:
        self._client = http_client
        self._fallback_marker = fallback_marker

    @staticmethod
    def _build_url(base_url: str) -> str:
        return f"{base_url.rstrip('/')}/api.php"

    async def search_images(self, base_url: str, query: str, page: int = 0) -> list[CandidateImage]:
        """
        Run an image search on one mirror.

        Returns:
            Candidate images in response order (not deduplicated)

        Raises:
            MirrorCallFailedError: Request failed, timed out, or the body
                was neither a result array nor the fallback-failure message
        """
        params = {"q": query, "p": str(page), "t": str(IMAGE_SEARCH_TYPE)}
        try:
            response = await self._client.get(self._build_url(base_url), params=params)
            raise_for_status(response, service=base_url)
            return self._parse_response(response, base_url)
        except (APIError, ParseError) as e:
            raise MirrorCallFailedError(base_url, str(e)) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise MirrorCallFailedError(base_url, f"{type(e).__name__}: {e}") from e
        except TimeoutError as e:
            raise MirrorCallFailedError(base_url, "request timed out") from e

    def _parse_response(self, response: httpx.Response, base_url: str) -> list[CandidateImage]:
        text = response.text
        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as e:
            if self._fallback_marker and self._fallback_marker in text:
                logger.info(f"{self._service_name} mirror {base_url} reported no results (fallback failed)")
                return []
            raise ParseError(f"Invalid JSON response: {e.msg}", source=base_url) from e
        except (RecursionError, ValueError) as e:
            raise ParseError(f"Unparseable JSON response: {type(e).__name__}", source=base_url) from e

        if not isinstance(data, list):
            raise ParseError(f"Expected a JSON array, got {type(data).__name__}", source=base_url)

        candidates: list[CandidateImage] = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get("thumbnail"), str):
                logger.debug(f"Skipping malformed item from {base_url}: {item!r}")
                continue
            alt = item.get("alt")
            candidates.append(
                CandidateImage(
                    thumbnail=item["thumbnail"],
                    url=item.get("url") or "",
                    alt=alt if isinstance(alt, str) else None,
                )
            )
        return candidates
