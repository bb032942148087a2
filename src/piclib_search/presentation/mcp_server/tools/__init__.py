"""
PicLib Search MCP Tools

- search_images: query → accepted images
- get_mirror_status: mirror ranking

Usage:
    from .tools import register_all_tools
    register_all_tools(mcp, service)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .image_search import register_image_search_tools

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP

    from piclib_search.application.image_search import ImageSearchService


def register_all_tools(mcp: FastMCP, service: ImageSearchService) -> None:
    """Register all PicLib Search tools on ``mcp``."""
    register_image_search_tools(mcp, service)


__all__ = ["register_all_tools", "register_image_search_tools"]
