"""
Domain Entity: MirrorRecord

A LibreY mirror and its last observed response latency.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MirrorRecord:
    """
    A search mirror known to answer image queries.

    Identity is ``base_url``. ``latency`` is the last observed call
    duration in seconds (penalized on failure); a new observation
    replaces the record rather than mutating it.
    """

    base_url: str
    latency: float

    def with_latency(self, latency: float) -> MirrorRecord:
        return dataclasses.replace(self, latency=latency)

    def to_dict(self) -> dict:
        return {"base_url": self.base_url, "latency_ms": round(self.latency * 1000, 1)}
