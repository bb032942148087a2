"""
Mirror Registry - which LibreY mirrors work and how fast they are.

The registry initializes itself lazily on first use by querying every
configured mirror with a canary query. Mirrors that answer with at least
one result are registered with the canary latency. After that the member
set never changes; only latencies are updated from real traffic.

A failing mirror is not removed. Its latency is recorded with a fixed
penalty so it sinks in the ranking, and it comes back on its own once
another mirror degrades below it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from piclib_search.core.exceptions import MirrorCallFailedError, NoMirrorsAvailableError
from piclib_search.domain.entities import MirrorRecord

if TYPE_CHECKING:
    from piclib_search.infrastructure.librey import LibreYClient

logger = logging.getLogger(__name__)

CANARY_QUERY = "test"
FAILURE_PENALTY = 2.0  # seconds added to a failed call's elapsed time


class MirrorRegistry:
    """
    Process-lifetime registry of usable search mirrors.

    Safe to share between concurrent queries: initialization is
    single-flight behind an asyncio.Lock, and latency updates are
    compare-and-swap on the stored record.

    Example:
        registry = MirrorRegistry(librey_client, ["https://a.example", "https://b.example"])
        await registry.initialize()
        mirror = registry.select_fastest()
    """

    def __init__(self, librey_client: LibreYClient, mirror_urls: Sequence[str]) -> None:
        self._librey = librey_client
        self._mirror_urls = tuple(dict.fromkeys(mirror_urls))
        self._mirrors: dict[str, MirrorRecord] = {}
        self._lock = asyncio.Lock()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def mirrors(self) -> tuple[MirrorRecord, ...]:
        """Snapshot of the registered mirrors, fastest first."""
        return tuple(sorted(self._mirrors.values(), key=lambda m: m.latency))

    def __len__(self) -> int:
        return len(self._mirrors)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Check all configured mirrors once; later calls return immediately."""
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:
                return

            async with asyncio.TaskGroup() as tg:
                for base_url in self._mirror_urls:
                    tg.create_task(self._check_mirror(base_url))

            self._initialized = True
            logger.info(
                f"LibreY API mirrors initialized: {len(self._mirrors)}, "
                f"mirrors: {json.dumps([m.to_dict() for m in self.mirrors])}"
            )

    async def _check_mirror(self, base_url: str) -> None:
        started = time.perf_counter()
        try:
            results = await self._librey.search_images(base_url, CANARY_QUERY)
        except MirrorCallFailedError as e:
            logger.warning(f"Mirror canary check failed, skipping {base_url}: {e}")
            return
        except Exception:
            logger.exception(f"Unexpected error during canary check of {base_url}, skipping")
            return
        elapsed = time.perf_counter() - started

        if not results:
            logger.warning(f"Mirror {base_url} returned no canary results, skipping")
            return
        self._mirrors[base_url] = MirrorRecord(base_url=base_url, latency=elapsed)

    # ------------------------------------------------------------------
    # Selection and feedback
    # ------------------------------------------------------------------

    def select_fastest(self) -> MirrorRecord:
        """
        Return the mirror with the lowest recorded latency.

        Raises:
            NoMirrorsAvailableError: No mirror passed its canary check
        """
        if not self._mirrors:
            raise NoMirrorsAvailableError()
        return min(self._mirrors.values(), key=lambda m: m.latency)

    def record_outcome(self, expected: MirrorRecord, elapsed: float, *, failed: bool = False) -> bool:
        """
        Store the latency observed for a call made against ``expected``.

        Failures are stored as ``elapsed + FAILURE_PENALTY``. The swap only
        happens if the stored record is still ``expected``; a concurrent
        update that got there first wins and this one is dropped.

        Returns:
            True if the record was replaced
        """
        latency = elapsed + FAILURE_PENALTY if failed else elapsed
        return self._compare_and_swap(expected, expected.with_latency(latency))

    def _compare_and_swap(self, expected: MirrorRecord, updated: MirrorRecord) -> bool:
        current = self._mirrors.get(expected.base_url)
        if current is None or current != expected:
            logger.debug(f"Latency update for {expected.base_url} lost to a concurrent update")
            return False
        self._mirrors[expected.base_url] = updated
        return True
