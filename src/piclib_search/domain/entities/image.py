"""
Domain Entities: images flowing through a search.

CandidateImage  - one item of a mirror's search response
ImageDescriptor - a fetched, decoded and accepted image
SearchOutcome   - what the search phase produced for one query
FetchOutcome    - the final result handed to the caller
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

# Inline results are cached by the client for a week when non-empty
INLINE_CACHE_TIME = 7 * 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class CandidateImage:
    """A candidate image reference returned by a search mirror."""

    thumbnail: str
    url: str = ""
    alt: str | None = None


@dataclass(frozen=True, slots=True)
class ImageDescriptor:
    """
    An image that was downloaded, decoded and passed the aspect-ratio filter.

    ``url`` is the resolved locator (after redirects) of the fetched bytes.
    """

    url: str
    format: str | None
    alt: str | None
    width: int
    height: int

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Result of the search phase for one query."""

    candidate_count: int
    mirror_url: str | None
    candidates: tuple[CandidateImage, ...] = ()
    elapsed: float = 0.0

    @classmethod
    def empty(cls, mirror_url: str | None = None, elapsed: float = 0.0) -> SearchOutcome:
        return cls(candidate_count=0, mirror_url=mirror_url, candidates=(), elapsed=elapsed)


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """
    Final result of an image search.

    ``images`` is unordered: completion order of concurrent fetches,
    carrying no meaning. Compare it as a set.
    """

    candidate_count: int
    mirror_url: str | None
    images: tuple[ImageDescriptor, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> FetchOutcome:
        return cls(candidate_count=0, mirror_url=None, images=())

    @property
    def cache_time(self) -> int:
        """How long a client may cache these results (seconds)."""
        return INLINE_CACHE_TIME if self.images else 0

    def to_inline_results(self, now: datetime | None = None) -> list[dict]:
        """
        Shape the accepted images as inline photo results.

        Result ids are ``"{index}_{yyyy-mm-dd_HH}"`` (UTC), so they stay
        stable for an hour and let clients cache them.
        """
        stamp = (now or datetime.now(UTC)).strftime("%Y-%m-%d_%H")
        return [
            {
                "id": f"{i}_{stamp}",
                "url": image.url,
                "thumbnail_url": image.url,
                "width": image.width,
                "height": image.height,
                "format": image.format,
                "alt": image.alt,
            }
            for i, image in enumerate(self.images)
        ]


def deduplicate_candidates(candidates: Iterable[CandidateImage]) -> tuple[CandidateImage, ...]:
    """Drop candidates whose thumbnail was already seen; first occurrence wins."""
    seen: set[str] = set()
    unique: list[CandidateImage] = []
    for candidate in candidates:
        if candidate.thumbnail in seen:
            continue
        seen.add(candidate.thumbnail)
        unique.append(candidate)
    return tuple(unique)
