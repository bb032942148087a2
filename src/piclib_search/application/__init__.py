"""
Application Layer - Use Cases and Orchestration

Contains:
- image_search: mirror registry, search client, fetch coordinator and
  the ImageSearchService tying them together
"""

from .image_search import (
    FetchCoordinator,
    ImageSearchService,
    MirrorRegistry,
    MirrorSearchClient,
)

__all__ = [
    "FetchCoordinator",
    "ImageSearchService",
    "MirrorRegistry",
    "MirrorSearchClient",
]
