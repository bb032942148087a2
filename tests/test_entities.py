"""Tests for domain entities: deduplication, outcomes and inline results."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from piclib_search.domain.entities import (
    INLINE_CACHE_TIME,
    CandidateImage,
    FetchOutcome,
    ImageDescriptor,
    MirrorRecord,
    SearchOutcome,
    deduplicate_candidates,
)


def _image(n: int) -> ImageDescriptor:
    return ImageDescriptor(url=f"https://cdn.example/{n}.jpg", format="JPEG", alt=f"alt {n}", width=800, height=600)


class TestDeduplicateCandidates:
    def test_first_occurrence_wins(self):
        candidates = [
            CandidateImage(thumbnail="T1", alt="a"),
            CandidateImage(thumbnail="T2", alt="b"),
            CandidateImage(thumbnail="T1", alt="c"),
        ]
        assert deduplicate_candidates(candidates) == (
            CandidateImage(thumbnail="T1", alt="a"),
            CandidateImage(thumbnail="T2", alt="b"),
        )

    def test_empty(self):
        assert deduplicate_candidates([]) == ()


class TestSearchOutcome:
    def test_empty(self):
        outcome = SearchOutcome.empty(mirror_url="https://m.example", elapsed=0.4)
        assert outcome.candidate_count == 0
        assert outcome.candidates == ()
        assert outcome.mirror_url == "https://m.example"
        assert outcome.elapsed == 0.4


class TestFetchOutcome:
    def test_empty(self):
        outcome = FetchOutcome.empty()
        assert outcome.candidate_count == 0
        assert outcome.mirror_url is None
        assert outcome.images == ()

    def test_cache_time(self):
        assert FetchOutcome(3, "https://m.example", (_image(1),)).cache_time == INLINE_CACHE_TIME
        assert INLINE_CACHE_TIME == 604800
        assert FetchOutcome(3, "https://m.example", ()).cache_time == 0

    def test_inline_results(self):
        outcome = FetchOutcome(5, "https://m.example", (_image(1), _image(2)))
        results = outcome.to_inline_results(now=datetime(2024, 3, 9, 14, 59, tzinfo=UTC))

        assert [r["id"] for r in results] == ["0_2024-03-09_14", "1_2024-03-09_14"]
        assert results[0]["url"] == "https://cdn.example/1.jpg"
        assert results[0]["thumbnail_url"] == results[0]["url"]
        assert results[1]["width"] == 800
        assert results[1]["height"] == 600
        assert results[1]["alt"] == "alt 2"

    def test_descriptor_to_dict(self):
        assert _image(1).to_dict() == {
            "url": "https://cdn.example/1.jpg",
            "format": "JPEG",
            "alt": "alt 1",
            "width": 800,
            "height": 600,
        }


class TestMirrorRecord:
    def test_with_latency_returns_new_record(self):
        record = MirrorRecord("https://m.example", 0.05)
        updated = record.with_latency(2.1)
        assert updated == MirrorRecord("https://m.example", 2.1)
        assert record.latency == 0.05

    def test_to_dict(self):
        assert MirrorRecord("https://m.example", 0.0304).to_dict() == {
            "base_url": "https://m.example",
            "latency_ms": 30.4,
        }

    def test_frozen(self):
        record = MirrorRecord("https://m.example", 0.05)
        with pytest.raises(AttributeError):
            record.latency = 1.0
