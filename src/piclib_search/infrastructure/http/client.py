"""
HTTP Client Module - resilient httpx clients per destination class.

Every outbound call made by PicLib Search goes through an
``httpx.AsyncClient`` whose transport is a PolicyTransport:

- the composed retry policy for the destination class
  (see piclib_search.core.resilience)
- a hard timeout around the whole policy execution, independent of
  how many retries happen inside it

Usage:
    from piclib_search.infrastructure.http import DestinationClass, create_http_client

    client = create_http_client(DestinationClass.CONTENT)
    response = await client.get("https://example.com/cat.jpg")
    raise_for_status(response, service="example.com")
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

import httpx

from piclib_search import __version__
from piclib_search.core.exceptions import (
    NetworkError,
    RateLimitError,
    ServiceUnavailableError,
)
from piclib_search.core.resilience import (
    REQUEST_TIMEOUT,
    DestinationClass,
    Policy,
    build_policy,
    parse_retry_after,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"piclib-search/{__version__}"


class PolicyTransport(httpx.AsyncBaseTransport):
    """
    Transport that runs every request through a retry policy and a hard timeout.

    The body is read inside the policy, so the hard timeout covers the
    whole exchange and a connection dropped mid-body is retried like any
    other transport error.

    Args:
        policy: Retry policy to apply
        inner: Transport doing the actual I/O (default: httpx.AsyncHTTPTransport)
        timeout: Hard limit in seconds for the whole call, retries included
        max_body_size: Stop reading the body after this many bytes and
            return what was read (None: read everything)
    """

    def __init__(
        self,
        policy: Policy,
        inner: httpx.AsyncBaseTransport | None = None,
        timeout: float = REQUEST_TIMEOUT,
        max_body_size: int | None = None,
    ) -> None:
        self._policy = policy
        self._inner = inner or httpx.AsyncHTTPTransport()
        self._timeout = timeout
        self._max_body_size = max_body_size

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        async with asyncio.timeout(self._timeout):
            return await self._policy.execute(lambda: self._send(request))

    async def _send(self, request: httpx.Request) -> httpx.Response:
        response = await self._inner.handle_async_request(request)
        try:
            body = await self._read_body(request, response)
        finally:
            await response.aclose()

        # The body is already decoded; the rebuilt response carries it as is
        headers = response.headers.copy()
        headers.pop("Content-Encoding", None)
        headers.pop("Content-Length", None)
        return httpx.Response(
            response.status_code,
            headers=headers,
            stream=httpx.ByteStream(body),
            extensions=response.extensions,
            request=request,
        )

    async def _read_body(self, request: httpx.Request, response: httpx.Response) -> bytes:
        chunks: list[bytes] = []
        size = 0
        async with contextlib.aclosing(response.aiter_bytes()) as stream:
            async for chunk in stream:
                chunks.append(chunk)
                size += len(chunk)
                if self._max_body_size is not None and size >= self._max_body_size:
                    logger.debug(f"Body of {request.url} truncated at {self._max_body_size} bytes")
                    break
        body = b"".join(chunks)
        if self._max_body_size is not None:
            body = body[: self._max_body_size]
        return body

    async def aclose(self) -> None:
        await self._inner.aclose()


def create_http_client(
    destination: DestinationClass,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: float = REQUEST_TIMEOUT,
    policy: Policy | None = None,
    max_body_size: int | None = None,
) -> httpx.AsyncClient:
    """
    Create an AsyncClient wired with the resilience policy for a destination.

    Args:
        destination: Destination class selecting the backoff base delay
        transport: Inner transport (tests pass httpx.MockTransport)
        user_agent: User-Agent header value
        timeout: Hard per-call timeout in seconds
        policy: Override the policy built for ``destination``
        max_body_size: Truncate response bodies at this many bytes
    """
    logger.debug(f"Creating HTTP client for {destination.name} (timeout={timeout}s)")
    return httpx.AsyncClient(
        transport=PolicyTransport(policy or build_policy(destination), transport, timeout, max_body_size),
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": user_agent},
        follow_redirects=True,
        limits=httpx.Limits(
            max_connections=100,
            max_keepalive_connections=20,
            keepalive_expiry=30.0,
        ),
    )


def raise_for_status(response: httpx.Response, service: str) -> None:
    """
    Raise a typed APIError for a non-success response.

    Raises:
        RateLimitError: HTTP 429 that survived the retry policy
        ServiceUnavailableError: HTTP 5xx that survived the retry policy
        NetworkError: Any other non-success status
    """
    if response.is_success:
        return
    status = response.status_code
    if status == httpx.codes.TOO_MANY_REQUESTS:
        raise RateLimitError(f"Rate limited by {service}", retry_after=parse_retry_after(response))
    if status >= 500:
        raise ServiceUnavailableError(f"HTTP {status}: {response.reason_phrase}", service=service)
    raise NetworkError(f"HTTP {status}: {response.reason_phrase} for {response.url}")
