"""
Application DI Container (dependency-injector).

Centralizes service creation and lifecycle management. The mirror
registry lives as long as the container, so every query served by one
process shares the same latency ranking.

Usage::

    from piclib_search.config import Settings
    from piclib_search.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict(Settings.from_env().to_container_config())

    service = container.image_search_service()
    outcome = await service.search_images("sunset")

    # In tests: route all HTTP through a mock transport
    container.transport.override(providers.Object(httpx.MockTransport(handler)))
"""

from __future__ import annotations

import logging

from dependency_injector import containers, providers

from piclib_search.application.image_search import (
    FetchCoordinator,
    ImageSearchService,
    MirrorRegistry,
    MirrorSearchClient,
)
from piclib_search.core.resilience import DestinationClass
from piclib_search.infrastructure.content import MAX_IMAGE_BYTES, ImageFetcher, PillowImageDecoder
from piclib_search.infrastructure.http import create_http_client
from piclib_search.infrastructure.librey import LibreYClient

logger = logging.getLogger(__name__)


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for PicLib Search.

    Manages creation and lifecycle of all core services:
    - ``search_http_client`` / ``content_http_client``: resilient httpx clients
    - ``mirror_registry``: process-lifetime mirror ranking
    - ``image_search_service``: end-to-end query handling
    """

    config = providers.Configuration()

    # Inner transport for both HTTP clients; None means real network I/O
    transport = providers.Object(None)

    search_http_client = providers.Singleton(
        create_http_client,
        DestinationClass.SEARCH,
        transport=transport,
        user_agent=config.user_agent,
    )

    content_http_client = providers.Singleton(
        create_http_client,
        DestinationClass.CONTENT,
        transport=transport,
        user_agent=config.user_agent,
        max_body_size=MAX_IMAGE_BYTES,
    )

    librey_client = providers.Singleton(
        LibreYClient,
        http_client=search_http_client,
        fallback_marker=config.fallback_marker,
    )

    mirror_registry = providers.Singleton(
        MirrorRegistry,
        librey_client=librey_client,
        mirror_urls=config.mirrors,
    )

    search_client = providers.Singleton(
        MirrorSearchClient,
        registry=mirror_registry,
        librey_client=librey_client,
    )

    image_decoder = providers.Singleton(PillowImageDecoder)

    image_fetcher = providers.Singleton(
        ImageFetcher,
        http_client=content_http_client,
        decoder=image_decoder,
    )

    fetch_coordinator = providers.Singleton(
        FetchCoordinator,
        fetcher=image_fetcher,
        budget=config.fetch_budget,
    )

    image_search_service = providers.Singleton(
        ImageSearchService,
        search_client=search_client,
        fetch_coordinator=fetch_coordinator,
        registry=mirror_registry,
        max_results=config.max_results,
    )


async def aclose_resources(container: ApplicationContainer) -> None:
    """Close both HTTP clients."""
    for provider in (container.search_http_client, container.content_http_client):
        client = provider()
        if not client.is_closed:
            await client.aclose()
    logger.info("HTTP clients closed")


__all__ = ["ApplicationContainer", "aclose_resources"]
