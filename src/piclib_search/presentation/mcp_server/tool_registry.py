"""
Tool Registry - single place that registers and lists MCP tools.

Usage:
    from .tool_registry import register_all_mcp_tools, list_registered_tools

    register_all_mcp_tools(mcp, service)
    tools = list_registered_tools()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mcp.server.fastmcp import FastMCP

if TYPE_CHECKING:
    from piclib_search.application.image_search import ImageSearchService

logger = logging.getLogger(__name__)


# ============================================================================
# Tool Categories
# ============================================================================

TOOL_CATEGORIES = {
    "image_search": {
        "name": "Image search",
        "description": "Search images and fetch the ones with a usable aspect ratio",
        "tools": ["search_images"],
    },
    "mirrors": {
        "name": "Mirrors",
        "description": "LibreY mirror health and latency",
        "tools": ["get_mirror_status"],
    },
}


# ============================================================================
# Registration
# ============================================================================


def register_all_mcp_tools(mcp: FastMCP, service: ImageSearchService) -> dict[str, int]:
    """
    Register all MCP tools.

    Returns:
        Dict with category ids and tool counts
    """
    from .tools import register_all_tools

    logger.info("Registering image search tools...")
    register_all_tools(mcp, service)

    stats = {cat_id: len(cat_info["tools"]) for cat_id, cat_info in TOOL_CATEGORIES.items()}
    logger.info(f"Total registered: {sum(stats.values())} tools")
    return stats


def list_registered_tools() -> dict[str, list[str]]:
    """All defined tools grouped by category."""
    return {cat_id: cat_info["tools"] for cat_id, cat_info in TOOL_CATEGORIES.items()}


# ============================================================================
# Validation
# ============================================================================


def validate_tool_registry(mcp: FastMCP) -> dict:
    """
    Check that TOOL_CATEGORIES matches what is actually registered on ``mcp``.

    Returns:
        Dict with defined, registered, missing, extra and valid
    """
    defined_tools = set()
    for cat_info in TOOL_CATEGORIES.values():
        defined_tools.update(cat_info["tools"])

    registered_tools = {tool.name for tool in mcp._tool_manager.list_tools()}

    missing = defined_tools - registered_tools
    extra = registered_tools - defined_tools
    if missing:
        logger.warning(f"Tools defined but not registered: {missing}")
    if extra:
        logger.info(f"Tools registered but not in TOOL_CATEGORIES: {extra}")

    return {
        "defined": sorted(defined_tools),
        "registered": sorted(registered_tools),
        "missing": sorted(missing),
        "extra": sorted(extra),
        "valid": not missing and not extra,
    }


__all__ = [
    "TOOL_CATEGORIES",
    "register_all_mcp_tools",
    "list_registered_tools",
    "validate_tool_registry",
]
