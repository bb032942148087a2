"""
Application Layer: Image Search

Public API for the image search module.
"""

from .fetch_coordinator import FetchCoordinator, fetch_deadline
from .mirror_registry import CANARY_QUERY, FAILURE_PENALTY, MirrorRegistry
from .search_client import MirrorSearchClient
from .service import ImageSearchService

__all__ = [
    "ImageSearchService",
    "MirrorRegistry",
    "MirrorSearchClient",
    "FetchCoordinator",
    "fetch_deadline",
    "CANARY_QUERY",
    "FAILURE_PENALTY",
]
