"""
Fetch Coordinator - turn candidate images into accepted descriptors.

One task is started per candidate. Every task downloads its image,
decodes its dimensions and applies the aspect-ratio filter. The run
ends at the first of:

- ``limit`` images accepted (the shared stop event fires)
- the external cancellation event fires
- the fetch deadline passes
- every task finished

Remaining tasks are then cancelled. Tasks look at the stop/cancel
signals before they start network I/O and after decoding, so an image
that finishes late is dropped instead of pushing the result past
``limit``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from piclib_search.core.exceptions import FetchFailedError, InvalidParameterError
from piclib_search.domain.aspect_ratio import DEFAULT_BAND, AspectRatioBand
from piclib_search.domain.entities import CandidateImage, ImageDescriptor

if TYPE_CHECKING:
    from piclib_search.infrastructure.content import ImageFetcher

logger = logging.getLogger(__name__)


def fetch_deadline(budget: float, search_elapsed: float) -> float:
    """
    Time left for the fetch phase.

    If the search phase already used up the budget, the fetch phase
    gets the full budget again rather than nothing.
    """
    remaining = budget - search_elapsed
    return remaining if remaining > 0 else budget


class _FetchRun:
    """Shared state of one fetch() call."""

    def __init__(self, limit: int, cancellation: asyncio.Event | None) -> None:
        self.limit = limit
        self.accepted: list[ImageDescriptor] = []
        self.stop = asyncio.Event()
        self._cancellation = cancellation

    def should_stop(self) -> bool:
        return self.stop.is_set() or (self._cancellation is not None and self._cancellation.is_set())

    def accept(self, descriptor: ImageDescriptor) -> None:
        self.accepted.append(descriptor)
        if len(self.accepted) >= self.limit:
            self.stop.set()


class FetchCoordinator:
    """
    Bounded parallel fetch of candidate images.

    Args:
        fetcher: Downloads and decodes images from content hosts
        budget: Total time budget in seconds for a query
        band: Aspect-ratio band an image must fall into
    """

    def __init__(
        self,
        fetcher: ImageFetcher,
        budget: float,
        band: AspectRatioBand = DEFAULT_BAND,
    ) -> None:
        self._fetcher = fetcher
        self._budget = budget
        self._band = band

    @property
    def budget(self) -> float:
        return self._budget

    async def fetch(
        self,
        candidates: Sequence[CandidateImage],
        limit: int,
        *,
        search_elapsed: float = 0.0,
        cancellation: asyncio.Event | None = None,
    ) -> tuple[ImageDescriptor, ...]:
        """
        Fetch candidates concurrently until ``limit`` are accepted.

        Args:
            candidates: Candidate images, one task each
            limit: Number of accepted images to stop at (>= 1)
            search_elapsed: Seconds already spent in the search phase
            cancellation: Optional external event that ends the run early

        Returns:
            Accepted descriptors in completion order (at most ``limit``)
        """
        if limit < 1:
            raise InvalidParameterError("limit", limit, "an integer >= 1")
        if not candidates:
            return ()

        deadline = fetch_deadline(self._budget, search_elapsed)
        run = _FetchRun(limit, cancellation)

        workers = [
            asyncio.create_task(self._fetch_one(candidate, run), name=f"fetch-{i}")
            for i, candidate in enumerate(candidates)
        ]
        all_finished = asyncio.create_task(asyncio.wait(workers))
        signals = [asyncio.create_task(run.stop.wait())]
        if cancellation is not None:
            signals.append(asyncio.create_task(cancellation.wait()))

        try:
            done, _ = await asyncio.wait(
                [all_finished, *signals],
                timeout=deadline,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            pending = [t for t in (*workers, all_finished, *signals) if not t.done()]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if run.stop.is_set():
            reason = "limit reached"
        elif cancellation is not None and cancellation.is_set():
            reason = "cancelled"
        elif not done:
            reason = f"deadline of {deadline:.1f}s reached"
        else:
            reason = "all candidates processed"
        logger.info(f"Fetched {len(run.accepted)}/{limit} images from {len(candidates)} candidates ({reason})")

        return tuple(run.accepted)

    async def _fetch_one(self, candidate: CandidateImage, run: _FetchRun) -> None:
        if run.should_stop():
            return
        try:
            downloaded = await self._fetcher.download(candidate.thumbnail)
            decoded = await self._fetcher.decode(downloaded)
        except FetchFailedError as e:
            logger.warning(f"Error while fetching image {candidate.thumbnail} ({candidate.alt}): {e}")
            return
        except Exception:
            logger.exception(f"Unexpected error while fetching image {candidate.thumbnail}")
            return

        if run.should_stop():
            logger.debug(f"Discarding {candidate.thumbnail}: run already stopped")
            return
        if not self._band.contains(decoded.width, decoded.height):
            logger.debug(f"Rejected {candidate.thumbnail}: aspect ratio {decoded.width}x{decoded.height}")
            return

        run.accept(
            ImageDescriptor(
                url=downloaded.resolved_url,
                format=decoded.format,
                alt=candidate.alt,
                width=decoded.width,
                height=decoded.height,
            )
        )
