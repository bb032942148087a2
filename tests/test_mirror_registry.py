"""
Tests for application/image_search/mirror_registry.py - canary checks,
single-flight initialization, fastest selection and latency feedback.
"""

from __future__ import annotations

import asyncio
from collections import Counter

import pytest

from piclib_search.application.image_search import CANARY_QUERY, FAILURE_PENALTY, MirrorRegistry
from piclib_search.core.exceptions import MirrorCallFailedError, NoMirrorsAvailableError
from piclib_search.domain.entities import CandidateImage, MirrorRecord

A = "https://a.example"
B = "https://b.example"
C = "https://c.example"

ONE_RESULT = [CandidateImage(thumbnail="https://t.example/1")]


class FakeLibreY:
    """LibreY client double: per-mirror delay and result (or exception)."""

    def __init__(self, behaviour: dict[str, tuple[float, object]]):
        self._behaviour = behaviour
        self.calls: Counter[str] = Counter()
        self.queries: list[str] = []

    async def search_images(self, base_url: str, query: str, page: int = 0):
        self.calls[base_url] += 1
        self.queries.append(query)
        delay, outcome = self._behaviour[base_url]
        await asyncio.sleep(delay)
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


class TestInitialization:
    """Canary checks on first use."""

    async def test_excludes_empty_and_failing_mirrors(self):
        librey = FakeLibreY({
            A: (0.0, []),
            B: (0.0, ONE_RESULT),
            C: (0.0, MirrorCallFailedError(C, "boom")),
        })
        registry = MirrorRegistry(librey, [A, B, C])

        await registry.initialize()

        assert registry.is_initialized
        assert [m.base_url for m in registry.mirrors] == [B]
        assert set(librey.queries) == {CANARY_QUERY}

    async def test_selects_fastest_canary(self):
        librey = FakeLibreY({A: (0.0, []), B: (0.08, ONE_RESULT), C: (0.02, ONE_RESULT)})
        registry = MirrorRegistry(librey, [A, B, C])

        await registry.initialize()

        assert len(registry) == 2
        assert registry.select_fastest().base_url == C
        assert [m.base_url for m in registry.mirrors] == [C, B]

    async def test_canary_checks_run_in_parallel(self):
        librey = FakeLibreY({A: (0.2, ONE_RESULT), B: (0.2, ONE_RESULT), C: (0.2, ONE_RESULT)})
        registry = MirrorRegistry(librey, [A, B, C])

        loop = asyncio.get_running_loop()
        started = loop.time()
        await registry.initialize()

        assert loop.time() - started < 0.5

    async def test_concurrent_first_callers_share_one_canary_round(self):
        librey = FakeLibreY({A: (0.05, ONE_RESULT), B: (0.01, ONE_RESULT)})
        registry = MirrorRegistry(librey, [A, B])

        await asyncio.gather(*(registry.initialize() for _ in range(20)))

        assert librey.calls == Counter({A: 1, B: 1})
        assert len(registry) == 2

    async def test_initialize_is_idempotent(self):
        librey = FakeLibreY({A: (0.0, ONE_RESULT)})
        registry = MirrorRegistry(librey, [A])
        await registry.initialize()
        await registry.initialize()
        assert librey.calls[A] == 1

    async def test_duplicate_configured_mirrors_checked_once(self):
        librey = FakeLibreY({A: (0.0, ONE_RESULT)})
        registry = MirrorRegistry(librey, [A, A])
        await registry.initialize()
        assert librey.calls[A] == 1

    async def test_unexpected_canary_error_skips_only_that_mirror(self, caplog):
        librey = FakeLibreY({A: (0.0, RecursionError("deeply nested")), B: (0.0, ONE_RESULT)})
        registry = MirrorRegistry(librey, [A, B])

        await registry.initialize()
        await registry.initialize()

        assert registry.is_initialized
        assert [m.base_url for m in registry.mirrors] == [B]
        assert librey.calls == Counter({A: 1, B: 1})
        assert "Unexpected error during canary check of https://a.example" in caplog.text

    async def test_all_failed_leaves_registry_empty(self):
        librey = FakeLibreY({A: (0.0, []), B: (0.0, MirrorCallFailedError(B, "x"))})
        registry = MirrorRegistry(librey, [A, B])

        await registry.initialize()

        assert registry.is_initialized
        with pytest.raises(NoMirrorsAvailableError):
            registry.select_fastest()


class TestLatencyFeedback:
    """record_outcome is compare-and-swap on the selected record."""

    async def _registry(self) -> MirrorRegistry:
        registry = MirrorRegistry(FakeLibreY({A: (0.0, ONE_RESULT), B: (0.0, ONE_RESULT)}), [A, B])
        await registry.initialize()
        return registry

    async def test_failure_adds_penalty_and_deprioritizes(self):
        registry = await self._registry()
        registry.record_outcome(registry.mirrors[0], 0.0)
        registry.record_outcome(registry.mirrors[1], 0.0)
        first = registry.select_fastest()

        assert registry.record_outcome(first, 0.3, failed=True)

        stored = {m.base_url: m.latency for m in registry.mirrors}
        assert stored[first.base_url] == pytest.approx(0.3 + FAILURE_PENALTY)
        assert registry.select_fastest().base_url != first.base_url

    async def test_success_replaces_latency(self):
        registry = await self._registry()
        mirror = registry.select_fastest()

        assert registry.record_outcome(mirror, 0.123)
        assert MirrorRecord(mirror.base_url, 0.123) in registry.mirrors

    async def test_stale_update_is_dropped(self):
        registry = await self._registry()
        seen = registry.select_fastest()

        assert registry.record_outcome(seen, 0.5)
        # A second caller that selected the same record earlier loses
        assert not registry.record_outcome(seen, 9.0, failed=True)
        assert MirrorRecord(seen.base_url, 0.5) in registry.mirrors

    async def test_member_set_never_changes(self):
        registry = await self._registry()
        for _ in range(5):
            mirror = registry.select_fastest()
            registry.record_outcome(mirror, 1.0, failed=True)
        assert {m.base_url for m in registry.mirrors} == {A, B}

    async def test_unknown_mirror_is_ignored(self):
        registry = await self._registry()
        assert not registry.record_outcome(MirrorRecord(C, 0.1), 0.2)
        assert len(registry) == 2
