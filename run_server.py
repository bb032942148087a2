#!/usr/bin/env python3
"""
PicLib Search MCP Server - HTTP Mode

This script runs the PicLib Search MCP server in HTTP mode (SSE or streamable-http),
allowing remote clients from other machines to connect.

Usage:
    # Run with SSE transport (default, more compatible)
    python run_server.py --transport sse --port 8765

    # Run with streamable-http transport
    python run_server.py --transport streamable-http --port 8765

Environment Variables:
    PICLIB_MIRRORS: LibreY mirror base URLs (required)
    PICLIB_FETCH_BUDGET, PICLIB_MAX_RESULTS, PICLIB_USER_AGENT, PICLIB_LOG_LEVEL
    MCP_PORT: Server port (default: 8765)
    MCP_HOST: Server host (default: 0.0.0.0)
"""

import argparse
import contextlib
import logging
import os

from piclib_search import __version__
from piclib_search.container import aclose_resources
from piclib_search.presentation.mcp_server.server import (
    configure_logging,
    create_server,
    get_container,
    load_settings,
)

logger = logging.getLogger(__name__)


def main():
    configure_logging()

    parser = argparse.ArgumentParser(
        description="Run PicLib Search MCP Server in HTTP mode"
    )
    parser.add_argument(
        "--transport",
        choices=["sse", "streamable-http"],
        default="sse",
        help="Transport protocol (default: sse)"
    )
    parser.add_argument(
        "--host",
        default=os.environ.get("MCP_HOST", "0.0.0.0"),
        help="Server host (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("MCP_PORT", "8765")),
        help="Server port (default: 8765)"
    )
    parser.add_argument(
        "--no-security",
        action="store_true",
        default=True,
        help="Disable DNS rebinding protection (default: True for remote access)"
    )

    args = parser.parse_args()
    settings = load_settings()

    logger.info("Creating PicLib Search MCP Server...")
    logger.info(f"  Mirrors: {', '.join(settings.mirrors)}")
    logger.info(f"  Transport: {args.transport}")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  DNS Rebinding Protection: {'Disabled' if args.no_security else 'Enabled'}")

    server = create_server(settings, disable_security=args.no_security, close_on_shutdown=False)

    logger.info(f"Starting server at http://{args.host}:{args.port}")
    if args.transport == "sse":
        logger.info("SSE endpoint: /sse")
        logger.info("Message endpoint: /messages")
    else:
        logger.info("Streamable HTTP endpoint: /mcp")

    # Run the server using uvicorn directly for proper host/port control
    import uvicorn
    from starlette.applications import Starlette
    from starlette.responses import JSONResponse
    from starlette.routing import Mount, Route

    if args.transport == "sse":
        mcp_app = server.sse_app()
    else:
        mcp_app = server.streamable_http_app()

    container = get_container()

    async def health(request):
        registry = container.mirror_registry()
        return JSONResponse({
            "status": "ok",
            "service": "piclib-search",
            "mirrors_initialized": registry.is_initialized,
            "mirrors_available": len(registry),
        })

    async def info(request):
        return JSONResponse({
            "service": "PicLib Search MCP Server",
            "version": __version__,
            "transport": args.transport,
            "settings": {
                "mirrors": list(settings.mirrors),
                "fetch_budget": settings.fetch_budget,
                "max_results": settings.max_results,
            },
            "endpoints": {
                "mcp": {"sse": "/sse", "messages": "/messages"}
                if args.transport == "sse"
                else {"streamable_http": "/mcp"},
                "utility": {"health": "/health", "info": "/info"},
            },
            "usage": {
                "vscode_mcp_json": {
                    "type": "sse" if args.transport == "sse" else "http",
                    "url": f"http://YOUR_SERVER_IP:{args.port}"
                    + ("/sse" if args.transport == "sse" else "/mcp"),
                }
            },
        })

    @contextlib.asynccontextmanager
    async def lifespan(app):
        # A mounted app's own lifespan does not run, so start the
        # streamable-http session manager here
        async with contextlib.AsyncExitStack() as stack:
            if args.transport == "streamable-http":
                await stack.enter_async_context(server.session_manager.run())
            try:
                yield
            finally:
                await aclose_resources(container)

    routes = [
        Route("/health", health),
        Route("/info", info),
        Mount("/", app=mcp_app),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False
    )


if __name__ == "__main__":
    main()
