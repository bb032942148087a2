"""
Resilience policies for outbound HTTP calls.

Every outbound call goes through two composed retry policies:

- RetryAfterPolicy (outer): on 429, waits the advertised Retry-After
  delay (1s if absent) and retries up to 2 times.
- TransientFaultPolicy (inner): on transport errors, 5xx or 408, retries
  with decorrelated-jitter backoff, up to 3 times.

A hard per-call timeout (REQUEST_TIMEOUT) is applied around the composed
policy by infrastructure.http.PolicyTransport, independent of retries.

The base backoff delay depends on the destination class: content hosts
are retried fastest, the messaging backend slowest.

Example:
    policy = build_policy(DestinationClass.SEARCH)
    response = await policy.execute(lambda: transport.handle_async_request(request))
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 9.0

MAX_RETRY_AFTER_COUNT = 2
DEFAULT_RETRY_AFTER_DELAY = 1.0
TRANSIENT_RETRY_COUNT = 3

Call = Callable[[], Awaitable[httpx.Response]]
Sleep = Callable[[float], Awaitable[None]]


class DestinationClass(Enum):
    """Outbound destination classes and their median first retry delay."""

    CONTENT = 0.05
    SEARCH = 0.1
    MESSAGING = 0.3

    @property
    def base_delay(self) -> float:
        return self.value


class Policy(Protocol):
    async def execute(self, call: Call) -> httpx.Response: ...


# =============================================================================
# Backoff
# =============================================================================

# Constants of the "decorrelated jitter V2" formula
_P_FACTOR = 4.0
_RP_SCALING_FACTOR = 1 / 1.4


def decorrelated_jitter_backoff(
    median_first_retry_delay: float,
    retry_count: int = TRANSIENT_RETRY_COUNT,
    *,
    rng: random.Random | None = None,
) -> list[float]:
    """
    Generate a decorrelated-jitter backoff sequence.

    Delays grow roughly exponentially while staying spread out, so many
    callers retrying at once do not hit the remote host in lockstep.
    The median of the first delay is ``median_first_retry_delay``.

    Args:
        median_first_retry_delay: Median first delay in seconds
        retry_count: Number of delays to generate
        rng: Random source (seed it for reproducible tests)

    Returns:
        List of ``retry_count`` delays in seconds
    """
    if median_first_retry_delay < 0:
        raise ValueError("median_first_retry_delay must be >= 0")
    if retry_count < 0:
        raise ValueError("retry_count must be >= 0")

    rng = rng or random.Random()
    delays: list[float] = []
    previous = 0.0
    for attempt in range(retry_count):
        t = attempt + rng.random()
        current = math.pow(2, t) * math.tanh(math.sqrt(_P_FACTOR * t))
        delays.append((current - previous) * _RP_SCALING_FACTOR * median_first_retry_delay)
        previous = current
    return delays


def parse_retry_after(response: httpx.Response, default: float = DEFAULT_RETRY_AFTER_DELAY) -> float:
    """Extract the Retry-After delay (delta-seconds or HTTP-date) from a response."""
    value = response.headers.get("Retry-After")
    if not value:
        return default
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return default
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    return max(0.0, (retry_at - datetime.now(UTC)).total_seconds())


# =============================================================================
# Policies
# =============================================================================

class RetryAfterPolicy:
    """
    Retry on 429 Too Many Requests, honouring the advertised delay.

    Returns the last response once retries are exhausted, so the caller
    decides how to surface the final 429.
    """

    def __init__(
        self,
        max_retries: int = MAX_RETRY_AFTER_COUNT,
        default_delay: float = DEFAULT_RETRY_AFTER_DELAY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._max_retries = max_retries
        self._default_delay = default_delay
        self._sleep = sleep

    async def execute(self, call: Call) -> httpx.Response:
        for attempt in range(self._max_retries + 1):
            response = await call()
            if response.status_code != httpx.codes.TOO_MANY_REQUESTS or attempt >= self._max_retries:
                return response

            delay = parse_retry_after(response, self._default_delay)
            logger.warning(
                f"Rate limited (429), "
                f"retry {attempt + 1}/{self._max_retries} in {delay:.1f}s"
            )
            await response.aclose()
            await self._sleep(delay)

        raise RuntimeError("Unexpected retry loop exit")


def is_transient_response(response: httpx.Response) -> bool:
    """5xx and 408 are transient; everything else is a final answer."""
    return response.status_code >= 500 or response.status_code == httpx.codes.REQUEST_TIMEOUT


class TransientFaultPolicy:
    """
    Retry connection failures, timeouts and server errors with backoff.

    Args:
        delays: Callable producing a fresh delay sequence per execution;
            its length is the retry count
        sleep: Sleep coroutine (injectable for tests)
    """

    def __init__(
        self,
        delays: Callable[[], Iterable[float]],
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._delays = delays
        self._sleep = sleep

    async def execute(self, call: Call) -> httpx.Response:
        delays = list(self._delays())
        total = len(delays)

        for attempt in range(total + 1):
            try:
                response = await call()
            except httpx.TransportError as e:
                if attempt >= total:
                    raise
                logger.warning(
                    f"Transient error (attempt {attempt + 1}/{total + 1}): {e!r}, "
                    f"retrying in {delays[attempt]:.2f}s"
                )
            else:
                if not is_transient_response(response) or attempt >= total:
                    return response
                logger.warning(
                    f"Server error {response.status_code} "
                    f"(attempt {attempt + 1}/{total + 1}), retrying in {delays[attempt]:.2f}s"
                )
                await response.aclose()

            await self._sleep(delays[attempt])

        raise RuntimeError("Unexpected retry loop exit")


class PolicyWrap:
    """Compose two policies: ``outer`` sees the outcome of ``inner``."""

    def __init__(self, outer: Policy, inner: Policy) -> None:
        self._outer = outer
        self._inner = inner

    async def execute(self, call: Call) -> httpx.Response:
        return await self._outer.execute(lambda: self._inner.execute(call))


def build_policy(
    destination: DestinationClass,
    *,
    sleep: Sleep = asyncio.sleep,
    rng: random.Random | None = None,
) -> PolicyWrap:
    """Build the rate-limit + transient-fault policy for a destination class."""
    return PolicyWrap(
        RetryAfterPolicy(sleep=sleep),
        TransientFaultPolicy(
            lambda: decorrelated_jitter_backoff(destination.base_delay, TRANSIENT_RETRY_COUNT, rng=rng),
            sleep=sleep,
        ),
    )
