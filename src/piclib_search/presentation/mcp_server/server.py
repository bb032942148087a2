"""
PicLib Search MCP Server

A Model Context Protocol server answering image search queries through
racing LibreY mirrors.

Architecture:
- instructions.py: SERVER_INSTRUCTIONS for AI agents
- tool_registry.py: Centralized tool registration
- tools/: Tool implementations
- container: DI container (dependency-injector) for service lifecycle
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Any

import httpx
from dependency_injector import providers
from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from piclib_search.config import ENV_PREFIX, Settings
from piclib_search.container import ApplicationContainer, aclose_resources
from piclib_search.core.exceptions import ConfigurationError

from .instructions import SERVER_INSTRUCTIONS
from .tool_registry import register_all_mcp_tools

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# ── Module-level DI container ──────────────────────────────────────────────
_container: ApplicationContainer | None = None


def get_container() -> ApplicationContainer:
    """Get the application DI container.

    Raises:
        RuntimeError: If ``create_server()`` has not been called yet.
    """
    if _container is None:
        msg = "Container not initialized. Call create_server() first."
        raise RuntimeError(msg)
    return _container


def _make_lifespan(
    container: ApplicationContainer,
    close_resources: bool = True,
) -> Callable[[FastMCP[Any]], AbstractAsyncContextManager[ApplicationContainer]]:
    """Create a FastMCP lifespan handler bound to *container*."""

    @asynccontextmanager
    async def _lifespan(server: FastMCP[Any]) -> AsyncIterator[ApplicationContainer]:
        """Application lifecycle: startup → yield → shutdown."""
        logger.info("Lifecycle: startup, resources ready")
        try:
            yield container
        finally:
            if close_resources:
                await aclose_resources(container)
            logger.info("Lifecycle: shutdown complete")

    return _lifespan


def create_server(
    settings: Settings,
    *,
    name: str = "piclib-search",
    transport: httpx.AsyncBaseTransport | None = None,
    disable_security: bool = False,
    json_response: bool = False,
    stateless_http: bool = False,
    close_on_shutdown: bool = True,
) -> FastMCP:
    """
    Create and configure the PicLib Search MCP server.

    Args:
        settings: Validated settings (see Settings.from_env)
        name: Server name.
        transport: Inner HTTP transport for all outbound calls (tests only).
        disable_security: Disable DNS rebinding protection (needed for remote access).
        json_response: Use JSON responses instead of SSE.
        stateless_http: Use stateless HTTP mode (no session management).
        close_on_shutdown: Close the HTTP clients when the MCP lifespan ends.
            HTTP hosts run one lifespan per session and close them on app
            shutdown instead.

    Returns:
        Configured FastMCP server instance.
    """
    global _container
    logger.info("Initializing PicLib Search MCP Server...")

    # ── DI container ────────────────────────────────────────────────────
    _container = ApplicationContainer()
    _container.config.from_dict(settings.to_container_config())
    if transport is not None:
        _container.transport.override(providers.Object(transport))

    service = _container.image_search_service()
    logger.info(
        f"Configured {len(settings.mirrors)} mirrors, budget {settings.fetch_budget:g}s, "
        f"max results {settings.max_results}"
    )

    # ── Transport security ──────────────────────────────────────────────
    if disable_security:
        transport_security = TransportSecuritySettings(enable_dns_rebinding_protection=False)
        logger.info("DNS rebinding protection disabled for remote access")
    else:
        transport_security = None

    # ── Create MCP server with lifespan ─────────────────────────────────
    mcp = FastMCP(
        name,
        instructions=SERVER_INSTRUCTIONS,
        transport_security=transport_security,
        json_response=json_response,
        stateless_http=stateless_http,
        lifespan=_make_lifespan(_container, close_on_shutdown),
    )

    stats = register_all_mcp_tools(mcp, service)
    logger.info(f"Tool registration complete: {stats}")

    logger.info("PicLib Search MCP Server initialized successfully")
    return mcp


def configure_logging() -> None:
    """basicConfig at INFO, overridable with PICLIB_LOG_LEVEL."""
    level_name = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def load_settings() -> Settings:
    """Settings from the environment; exits with status 2 if they are invalid."""
    try:
        return Settings.from_env()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        if e.context.suggestion:
            logger.error(f"Suggestion: {e.context.suggestion}")
        sys.exit(2)


def main():
    """Run the MCP server over stdio."""
    configure_logging()
    server = create_server(load_settings())

    # Run stdio MCP server (blocks)
    server.run()


if __name__ == "__main__":
    main()
