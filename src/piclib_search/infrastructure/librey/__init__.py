"""LibreY search mirror client."""

from .client import FALLBACK_FAILURE_MARKER, LibreYClient

__all__ = ["FALLBACK_FAILURE_MARKER", "LibreYClient"]
