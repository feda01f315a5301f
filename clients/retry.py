"""Bounded retries with capped exponential backoff for upstream HTTP calls.

Only transient conditions are retried: timeouts, transport failures, HTTP 429
and 5xx. Every other error propagates on the first attempt.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, (httpx.TimeoutException, httpx.TransportError))


def describe_error(exc: BaseException) -> str:
    """Loggable summary of a failure. httpx messages embed the request URL and
    its api key, so only the class name and status code are kept."""
    if isinstance(exc, httpx.HTTPStatusError):
        return f"{exc.__class__.__name__} {exc.response.status_code}"
    return exc.__class__.__name__


def _retry_after(exc: BaseException) -> float | None:
    if not isinstance(exc, httpx.HTTPStatusError):
        return None
    raw = exc.response.headers.get("Retry-After")
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        return None


async def with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    service: str = "upstream",
    **kwargs: Any,
) -> T:
    """Await ``func`` and retry transient failures up to ``max_retries`` times."""
    delay = base_delay
    attempt = 0
    while True:
        try:
            return await func(*args, **kwargs)
        except Exception as exc:
            if not is_transient(exc) or attempt >= max_retries:
                raise
            attempt += 1
            wait = _retry_after(exc)
            wait = min(delay if wait is None else wait, max_delay)
            logger.warning(
                "%s call failed (%s); retry %d/%d in %.2fs",
                service,
                exc.__class__.__name__,
                attempt,
                max_retries,
                wait,
            )
            await asyncio.sleep(wait)
            delay = min(delay * 2, max_delay)
