"""Retrying wrapper for outbound HTTP calls (email provider)."""

from __future__ import annotations

import logging
import random
from typing import Awaitable, Callable

import httpx
from anyio import sleep

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


def _retry_after_seconds(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        # HTTP-date form; fall back to our own backoff.
        return None


def _backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    delay = min(max_delay, base_delay * (2**attempt))
    return delay + random.uniform(0, delay / 2) if delay else 0.0


async def request_with_retries(
    request_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retry_statuses: frozenset[int] | set[int] | None = None,
) -> httpx.Response:
    """
    Call request_fn until it yields a final response.

    Transport errors and retryable statuses are retried with jittered
    exponential backoff (or the server's Retry-After, capped at max_delay).
    After the last attempt a transport error propagates and a retryable
    response is returned as is. Any other status, 413 included, is final.
    """
    statuses = DEFAULT_RETRY_STATUSES if retry_statuses is None else retry_statuses
    attempts = max(1, max_attempts)

    attempt = 0
    while True:
        final = attempt == attempts - 1
        try:
            response = await request_fn()
        except httpx.RequestError as exc:
            if final:
                raise
            logger.warning(
                "HTTP %s on attempt %s/%s, retrying",
                exc.__class__.__name__,
                attempt + 1,
                attempts,
            )
            delay = _backoff_delay(attempt, base_delay, max_delay)
        else:
            if final or response.status_code not in statuses:
                return response
            logger.warning(
                "HTTP status %s on attempt %s/%s, retrying",
                response.status_code,
                attempt + 1,
                attempts,
            )
            server_delay = _retry_after_seconds(response)
            if server_delay is None:
                delay = _backoff_delay(attempt, base_delay, max_delay)
            else:
                delay = min(max_delay, server_delay)

        if delay:
            await sleep(delay)
        attempt += 1
