"""Tests for config.py - Settings loading and validation."""

from __future__ import annotations

import pytest

from piclib_search.config import Settings, parse_mirrors
from piclib_search.core.exceptions import ConfigurationError
from piclib_search.infrastructure.http import DEFAULT_USER_AGENT
from piclib_search.infrastructure.librey import FALLBACK_FAILURE_MARKER


class TestParseMirrors:
    def test_comma_and_whitespace(self):
        assert parse_mirrors("https://a.example, https://b.example\nhttps://c.example") == (
            "https://a.example",
            "https://b.example",
            "https://c.example",
        )

    def test_dedupes_keeping_order_and_strips_slash(self):
        assert parse_mirrors("https://b.example/,https://a.example,https://b.example") == (
            "https://b.example",
            "https://a.example",
        )

    def test_blank(self):
        assert parse_mirrors(" , ") == ()


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({"PICLIB_MIRRORS": "https://a.example"})
        assert settings.mirrors == ("https://a.example",)
        assert settings.fetch_budget == 5.0
        assert settings.max_results == 10
        assert settings.user_agent == DEFAULT_USER_AGENT
        assert settings.fallback_marker == FALLBACK_FAILURE_MARKER

    def test_all_variables(self):
        settings = Settings.from_env({
            "PICLIB_MIRRORS": "https://a.example https://b.example",
            "PICLIB_FETCH_BUDGET": "2.5",
            "PICLIB_MAX_RESULTS": "50",
            "PICLIB_USER_AGENT": "bot/1.0",
        })
        assert len(settings.mirrors) == 2
        assert settings.fetch_budget == 2.5
        assert settings.max_results == 50
        assert settings.user_agent == "bot/1.0"

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("PICLIB_MIRRORS", "https://env.example")
        assert Settings.from_env().mirrors == ("https://env.example",)

    def test_missing_mirrors(self):
        with pytest.raises(ConfigurationError, match="PICLIB_MIRRORS") as exc_info:
            Settings.from_env({})
        assert exc_info.value.context.example

    @pytest.mark.parametrize("budget", ["1.9", "10.5", "0"])
    def test_budget_out_of_range(self, budget):
        with pytest.raises(ConfigurationError, match="fetch_budget"):
            Settings.from_env({"PICLIB_MIRRORS": "https://a.example", "PICLIB_FETCH_BUDGET": budget})

    @pytest.mark.parametrize("limit", ["2", "51"])
    def test_max_results_out_of_range(self, limit):
        with pytest.raises(ConfigurationError, match="max_results"):
            Settings.from_env({"PICLIB_MIRRORS": "https://a.example", "PICLIB_MAX_RESULTS": limit})

    def test_non_numeric(self):
        with pytest.raises(ConfigurationError, match="integer"):
            Settings.from_env({"PICLIB_MIRRORS": "https://a.example", "PICLIB_MAX_RESULTS": "ten"})
        with pytest.raises(ConfigurationError, match="number"):
            Settings.from_env({"PICLIB_MIRRORS": "https://a.example", "PICLIB_FETCH_BUDGET": "fast"})

    @pytest.mark.parametrize("url", ["ftp://a.example", "a.example", "https://"])
    def test_invalid_mirror_url(self, url):
        with pytest.raises(ConfigurationError, match="mirror URL"):
            Settings.from_env({"PICLIB_MIRRORS": url})

    def test_blank_user_agent(self):
        with pytest.raises(ConfigurationError, match="user_agent"):
            Settings.from_env({"PICLIB_MIRRORS": "https://a.example", "PICLIB_USER_AGENT": "   "})


class TestSettingsDirect:
    def test_validated_on_construction(self):
        with pytest.raises(ConfigurationError):
            Settings(mirrors=())

    def test_bounds_inclusive(self):
        Settings(mirrors=("https://a.example",), fetch_budget=2, max_results=3)
        Settings(mirrors=("https://a.example",), fetch_budget=10, max_results=50)

    def test_to_container_config(self):
        config = Settings(mirrors=("https://a.example",), fetch_budget=3, max_results=4).to_container_config()
        assert config == {
            "mirrors": ["https://a.example"],
            "fetch_budget": 3,
            "max_results": 4,
            "user_agent": DEFAULT_USER_AGENT,
            "fallback_marker": FALLBACK_FAILURE_MARKER,
        }
