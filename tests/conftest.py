"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import io
import json
from collections.abc import Callable

import httpx
import pytest
from PIL import Image

from piclib_search.core.resilience import PolicyWrap, RetryAfterPolicy, TransientFaultPolicy

# ============================================================
# Images
# ============================================================


def _make_image_bytes(width: int, height: int, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Encode a blank image: make_image(width, height, fmt="PNG")."""
    return _make_image_bytes


@pytest.fixture
def landscape_png() -> bytes:
    """800x600: ratio 1.33, accepted."""
    return _make_image_bytes(800, 600)


@pytest.fixture
def strip_png() -> bytes:
    """300x100: ratio 3.0, rejected."""
    return _make_image_bytes(300, 100)


# ============================================================
# LibreY payloads
# ============================================================


def _librey_items(*thumbnails: str) -> list[dict]:
    return [
        {"thumbnail": thumb, "url": f"https://pages.example/{i}", "alt": f"img {i}"}
        for i, thumb in enumerate(thumbnails)
    ]


def _json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers={"Content-Type": "application/json"})


@pytest.fixture
def librey_items() -> Callable[..., list[dict]]:
    """LibreY image results: librey_items("https://t/1", "https://t/2")."""
    return _librey_items


@pytest.fixture
def json_response() -> Callable[..., httpx.Response]:
    """JSON httpx.Response: json_response(payload, status_code=200)."""
    return _json_response


# ============================================================
# Policies and clients
# ============================================================


class SleepRecorder:
    """Sleep replacement that records requested delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def no_wait_policy(sleep_recorder: SleepRecorder) -> PolicyWrap:
    """Full policy stack with fixed tiny delays and no real sleeping."""
    return PolicyWrap(
        RetryAfterPolicy(sleep=sleep_recorder),
        TransientFaultPolicy(lambda: [0.01, 0.02, 0.03], sleep=sleep_recorder),
    )


@pytest.fixture
def mock_client_factory() -> Callable[[Callable], httpx.AsyncClient]:
    """Build a plain AsyncClient over an httpx.MockTransport handler."""

    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)

    return factory
