"""Domain entities."""

from .image import (
    INLINE_CACHE_TIME,
    CandidateImage,
    FetchOutcome,
    ImageDescriptor,
    SearchOutcome,
    deduplicate_candidates,
)
from .mirror import MirrorRecord

__all__ = [
    "INLINE_CACHE_TIME",
    "CandidateImage",
    "FetchOutcome",
    "ImageDescriptor",
    "MirrorRecord",
    "SearchOutcome",
    "deduplicate_candidates",
]
