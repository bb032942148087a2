"""
Image Search Tools - search images through the fastest LibreY mirror.

Tools:
- search_images: Query → accepted images (markdown or inline-results JSON)
- get_mirror_status: Registered mirrors and their latencies
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Union

from mcp.server.fastmcp import FastMCP

from piclib_search.core.exceptions import InvalidQueryError, PicLibSearchError, ValidationError
from piclib_search.domain.entities import FetchOutcome

from ._common import InputNormalizer, ResponseFormatter

if TYPE_CHECKING:
    from piclib_search.application.image_search import ImageSearchService, MirrorRegistry

logger = logging.getLogger(__name__)


def register_image_search_tools(mcp: FastMCP, service: ImageSearchService) -> None:
    """Register image search MCP tools bound to ``service``."""

    @mcp.tool()
    async def search_images(
        query: str,
        limit: Union[int, str, None] = None,
        output_format: str = "markdown",
    ) -> str:
        """
        🖼️ Search the web for images with a usable aspect ratio.

        Queries the fastest available LibreY mirror, downloads the candidate
        images in parallel within a time budget, and returns the ones whose
        width:height or height:width ratio lies between 1.0 and 2.3.

        Args:
            query: What to search for (e.g., "mountain lake sunset")
            limit: Maximum number of images (default: server max_results)
            output_format: "markdown" (default) or "json" (inline results)

        Returns:
            Accepted images with resolved URLs and dimensions
        """
        output_format = InputNormalizer.normalize_output_format(output_format)
        query = InputNormalizer.normalize_query(query)
        limit = InputNormalizer.normalize_limit(
            limit, default=service.max_results, max_val=service.max_results
        )

        try:
            if not query:
                raise InvalidQueryError(query, "Missing search query")
            outcome = await service.search_images(query, limit=limit)
        except ValidationError as e:
            return ResponseFormatter.error(e, tool_name="search_images", output_format=output_format)
        except PicLibSearchError as e:
            logger.error(f"search_images failed: {e}")
            return ResponseFormatter.error(e, tool_name="search_images", output_format=output_format)

        if output_format == "json":
            return format_inline_results_json(query, outcome)
        return format_image_results(query, outcome)

    @mcp.tool()
    def get_mirror_status() -> str:
        """
        📡 Show the LibreY mirrors that passed their canary check, fastest first.

        Mirrors are checked on the first search; before that the registry is empty.
        """
        return format_mirror_status(service.registry)


def format_inline_results_json(query: str, outcome: FetchOutcome) -> str:
    """Inline-results JSON: ids are stable for an hour, cache time 7 days if non-empty."""
    payload = {
        "query": query,
        "mirror": outcome.mirror_url,
        "candidate_count": outcome.candidate_count,
        "cache_time": outcome.cache_time,
        "results": outcome.to_inline_results(),
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def format_image_results(query: str, outcome: FetchOutcome) -> str:
    """Format a FetchOutcome as markdown."""
    parts: list[str] = []

    parts.append("## 🖼️ Image Search Results")
    parts.append(f"**Query**: {query}")
    parts.append(f"**Mirror**: {outcome.mirror_url or 'none available'}")
    parts.append(f"**Found**: {len(outcome.images)} images (candidates: {outcome.candidate_count})")

    if not outcome.images:
        parts.append("")
        parts.append(
            ResponseFormatter.no_results(
                query,
                suggestions=["Try broader or different search terms", "Check get_mirror_status()"],
            )
        )
        return "\n".join(parts)

    parts.append("")
    for i, image in enumerate(outcome.images, 1):
        parts.append(f"### {i}. {image.alt or 'Untitled'}")
        parts.append(f"🖼️ **Image**: {image.url}")
        size = f"{image.width}x{image.height}"
        if image.format:
            size += f" ({image.format})"
        parts.append(f"📐 **Size**: {size}")
        parts.append("")

    return "\n".join(parts).rstrip()


def format_mirror_status(registry: MirrorRegistry) -> str:
    if not registry.is_initialized:
        return "📡 Mirror registry not initialized yet. Mirrors are checked on the first search."

    mirrors = registry.mirrors
    if not mirrors:
        return "📡 No LibreY mirror passed its canary check."

    lines = [
        f"## 📡 LibreY Mirrors ({len(mirrors)} available)",
        "",
        "| # | Mirror | Latency |",
        "|---|--------|---------|",
    ]
    for i, mirror in enumerate(mirrors, 1):
        lines.append(f"| {i} | {mirror.base_url} | {mirror.latency * 1000:.0f} ms |")
    return "\n".join(lines)
