"""
Settings for PicLib Search, loaded from environment variables.

    PICLIB_MIRRORS       LibreY mirror base URLs, comma or whitespace separated (required)
    PICLIB_FETCH_BUDGET  Per-query time budget in seconds, 2-10 (default: 5)
    PICLIB_MAX_RESULTS   Maximum images per query, 3-50 (default: 10)
    PICLIB_USER_AGENT    User-Agent for outbound requests
    PICLIB_LOG_LEVEL     Logging level of the entry points (default: INFO)
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from typing_extensions import Self

from piclib_search.core.exceptions import ConfigurationError, ErrorContext
from piclib_search.infrastructure.http import DEFAULT_USER_AGENT
from piclib_search.infrastructure.librey import FALLBACK_FAILURE_MARKER

ENV_PREFIX = "PICLIB_"

MIN_FETCH_BUDGET = 2.0
MAX_FETCH_BUDGET = 10.0
DEFAULT_FETCH_BUDGET = 5.0

MIN_MAX_RESULTS = 3
MAX_MAX_RESULTS = 50
DEFAULT_MAX_RESULTS = 10

_MIRROR_SEPARATORS = re.compile(r"[\s,]+")


def parse_mirrors(raw: str) -> tuple[str, ...]:
    """Split a mirror list, drop blanks and trailing slashes, keep first occurrence."""
    urls = (part.strip().rstrip("/") for part in _MIRROR_SEPARATORS.split(raw))
    return tuple(dict.fromkeys(url for url in urls if url))


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Validated runtime settings.

    Attributes:
        mirrors: LibreY mirror base URLs, deduplicated, in configured order
        fetch_budget: Time budget in seconds for one query
        max_results: Maximum images a query returns
        user_agent: User-Agent header for all outbound requests
        fallback_marker: Body text meaning "mirror has no results"
    """

    mirrors: tuple[str, ...]
    fetch_budget: float = DEFAULT_FETCH_BUDGET
    max_results: int = DEFAULT_MAX_RESULTS
    user_agent: str = DEFAULT_USER_AGENT
    fallback_marker: str = FALLBACK_FAILURE_MARKER

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        """
        Load settings from environment variables.

        Raises:
            ConfigurationError: A variable is missing or out of range
        """
        env = os.environ if environ is None else environ

        raw_mirrors = env.get(f"{ENV_PREFIX}MIRRORS", "")
        if not raw_mirrors.strip():
            raise ConfigurationError(
                f"{ENV_PREFIX}MIRRORS is not set",
                context=ErrorContext(
                    suggestion="Set it to one or more LibreY mirror URLs",
                    example=f"{ENV_PREFIX}MIRRORS=https://search.example.org,https://librey.example.net",
                ),
            )

        return cls(
            mirrors=parse_mirrors(raw_mirrors),
            fetch_budget=_parse_number(env, "FETCH_BUDGET", DEFAULT_FETCH_BUDGET, float),
            max_results=_parse_number(env, "MAX_RESULTS", DEFAULT_MAX_RESULTS, int),
            user_agent=env.get(f"{ENV_PREFIX}USER_AGENT", DEFAULT_USER_AGENT).strip(),
        )

    def validate(self) -> None:
        """
        Check every field.

        Raises:
            ConfigurationError: First invalid field found
        """
        if not self.mirrors:
            raise ConfigurationError(
                "At least one mirror is required",
                context=ErrorContext(suggestion=f"Set {ENV_PREFIX}MIRRORS"),
            )
        for url in self.mirrors:
            _validate_mirror_url(url)

        if not MIN_FETCH_BUDGET <= self.fetch_budget <= MAX_FETCH_BUDGET:
            raise ConfigurationError(
                f"fetch_budget must be between {MIN_FETCH_BUDGET:g} and {MAX_FETCH_BUDGET:g} seconds, "
                f"got {self.fetch_budget:g}",
                context=ErrorContext(input_value=self.fetch_budget, example=f"{ENV_PREFIX}FETCH_BUDGET=5"),
            )
        if not MIN_MAX_RESULTS <= self.max_results <= MAX_MAX_RESULTS:
            raise ConfigurationError(
                f"max_results must be between {MIN_MAX_RESULTS} and {MAX_MAX_RESULTS}, got {self.max_results}",
                context=ErrorContext(input_value=self.max_results, example=f"{ENV_PREFIX}MAX_RESULTS=10"),
            )
        if not self.user_agent.strip():
            raise ConfigurationError(
                "user_agent must not be empty",
                context=ErrorContext(suggestion=f"Unset {ENV_PREFIX}USER_AGENT to use the default"),
            )

    def to_container_config(self) -> dict[str, Any]:
        """Dict for ``ApplicationContainer.config.from_dict()``."""
        return {
            "mirrors": list(self.mirrors),
            "fetch_budget": self.fetch_budget,
            "max_results": self.max_results,
            "user_agent": self.user_agent,
            "fallback_marker": self.fallback_marker,
        }


def _parse_number(env: Mapping[str, str], name: str, default: Any, kind: type) -> Any:
    raw = env.get(f"{ENV_PREFIX}{name}", "").strip()
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be a{'n integer' if kind is int else ' number'}, got {raw!r}",
            context=ErrorContext(input_value=raw),
        ) from e


def _validate_mirror_url(url: str) -> None:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid mirror URL {url!r}: {e}", context=ErrorContext(input_value=url)) from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(
            f"Invalid mirror URL {url!r}: expected an absolute http(s) URL",
            context=ErrorContext(input_value=url, example="https://search.example.org"),
        )
