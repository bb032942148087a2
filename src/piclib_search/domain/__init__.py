"""Domain layer: entities and pure rules, no I/O."""

from .aspect_ratio import DEFAULT_BAND, AspectRatioBand, is_acceptable_aspect_ratio

__all__ = ["AspectRatioBand", "DEFAULT_BAND", "is_acceptable_aspect_ratio"]
