"""Resilient HTTP clients shared by all outbound calls."""

from piclib_search.core.resilience import REQUEST_TIMEOUT, DestinationClass

from .client import DEFAULT_USER_AGENT, PolicyTransport, create_http_client, raise_for_status

__all__ = [
    "DEFAULT_USER_AGENT",
    "REQUEST_TIMEOUT",
    "DestinationClass",
    "PolicyTransport",
    "create_http_client",
    "raise_for_status",
]
