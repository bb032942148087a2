"""
Application Service: Image Search

Runs one query end to end: search phase on the fastest mirror, then a
bounded parallel fetch of the candidates.

Usage:
    >>> service = container.image_search_service()
    >>> outcome = await service.search_images("sunset", limit=5)
    >>> outcome.candidate_count, len(outcome.images)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from piclib_search.core.exceptions import NoMirrorsAvailableError
from piclib_search.domain.entities import FetchOutcome

if TYPE_CHECKING:
    from .fetch_coordinator import FetchCoordinator
    from .mirror_registry import MirrorRegistry
    from .search_client import MirrorSearchClient

logger = logging.getLogger(__name__)


class ImageSearchService:
    """
    Image search application service.

    Architecture:
        Presentation → Application (here) → Infrastructure (LibreY, content hosts)
        Domain entities (CandidateImage, ImageDescriptor) flow upward.
    """

    def __init__(
        self,
        search_client: MirrorSearchClient,
        fetch_coordinator: FetchCoordinator,
        registry: MirrorRegistry,
        max_results: int = 10,
    ) -> None:
        self._search_client = search_client
        self._fetch_coordinator = fetch_coordinator
        self._registry = registry
        self._max_results = max_results

    @property
    def registry(self) -> MirrorRegistry:
        return self._registry

    @property
    def max_results(self) -> int:
        return self._max_results

    async def search_images(
        self,
        query: str,
        limit: int | None = None,
        cancellation: asyncio.Event | None = None,
    ) -> FetchOutcome:
        """
        Search for images and fetch up to ``limit`` acceptable ones.

        Args:
            query: Free-text query
            limit: Maximum images to return (None = configured max_results)
            cancellation: Optional event that ends the fetch phase early

        Returns:
            FetchOutcome; empty with no mirror when no mirror is available

        Raises:
            InvalidParameterError: limit < 1
        """
        if limit is None:
            limit = self._max_results

        started = time.perf_counter()
        try:
            search = await self._search_client.search(query)
        except NoMirrorsAvailableError as e:
            logger.error(f"Image search for {query!r} aborted: {e}")
            return FetchOutcome.empty()
        search_elapsed = time.perf_counter() - started

        if not search.candidates:
            logger.info(f"No candidates for {query!r} (mirror: {search.mirror_url})")
            return FetchOutcome(candidate_count=0, mirror_url=search.mirror_url, images=())

        images = await self._fetch_coordinator.fetch(
            search.candidates,
            limit,
            search_elapsed=search_elapsed,
            cancellation=cancellation,
        )
        total = time.perf_counter() - started
        logger.info(
            f"Answered {query!r}: {len(images)} images from {search.candidate_count} candidates "
            f"(mirror: {search.mirror_url}, search: {search_elapsed:.2f}s, total: {total:.2f}s)"
        )
        return FetchOutcome(
            candidate_count=search.candidate_count,
            mirror_url=search.mirror_url,
            images=images,
        )
