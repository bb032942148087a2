"""
PicLib Search MCP Server

Usage as standalone server:
    PICLIB_MIRRORS=https://search.example.org python -m piclib_search.presentation.mcp_server

Or in mcp.json:
    {
        "servers": {
            "piclib-search": {
                "type": "stdio",
                "command": "piclib-search",
                "env": {"PICLIB_MIRRORS": "https://search.example.org"}
            }
        }
    }

Usage for integration:
    from piclib_search.config import Settings
    from piclib_search.presentation.mcp_server import create_server

    server = create_server(Settings.from_env())
    server.run()
"""

from __future__ import annotations

from .server import create_server, get_container, main
from .tools import register_all_tools

__all__ = ["create_server", "get_container", "main", "register_all_tools"]
