"""
Search Client - query the fastest mirror and collect candidate images.

Mirror failures never reach the caller: the failure is logged, the
mirror's latency is penalized, and the query continues with zero
candidates. Only an empty registry (NoMirrorsAvailableError) propagates.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from piclib_search.core.exceptions import MirrorCallFailedError
from piclib_search.domain.entities import MirrorRecord, SearchOutcome, deduplicate_candidates

if TYPE_CHECKING:
    from piclib_search.infrastructure.librey import LibreYClient

    from .mirror_registry import MirrorRegistry

logger = logging.getLogger(__name__)


class MirrorSearchClient:
    """Runs a query against the registry's currently fastest mirror."""

    def __init__(self, registry: MirrorRegistry, librey_client: LibreYClient) -> None:
        self._registry = registry
        self._librey = librey_client

    async def search(self, query: str) -> SearchOutcome:
        """
        Search for candidate images.

        Args:
            query: Free-text query; blank queries return an empty outcome
                without contacting a mirror

        Returns:
            SearchOutcome with deduplicated candidates (first thumbnail wins)

        Raises:
            NoMirrorsAvailableError: Every configured mirror failed its canary check
        """
        await self._registry.initialize()

        if not query or not query.strip():
            return SearchOutcome.empty()

        mirror = self._registry.select_fastest()

        started = time.perf_counter()
        try:
            results = await self._librey.search_images(mirror.base_url, query)
        except MirrorCallFailedError:
            logger.exception(f"Error while calling LibreY API mirror {mirror.base_url}")
            return self._failed(mirror, started)
        except Exception:
            logger.exception(f"Unexpected error while calling LibreY API mirror {mirror.base_url}")
            return self._failed(mirror, started)

        elapsed = time.perf_counter() - started
        logger.info(
            f"LibreY API mirror {mirror.base_url} responded in {elapsed * 1000:.0f}ms, "
            f"result count: {len(results)}"
        )
        self._registry.record_outcome(mirror, elapsed)

        candidates = deduplicate_candidates(results)
        return SearchOutcome(
            candidate_count=len(candidates),
            mirror_url=mirror.base_url,
            candidates=candidates,
            elapsed=elapsed,
        )

    def _failed(self, mirror: MirrorRecord, started: float) -> SearchOutcome:
        elapsed = time.perf_counter() - started
        self._registry.record_outcome(mirror, elapsed, failed=True)
        return SearchOutcome.empty(mirror_url=mirror.base_url, elapsed=elapsed)
