"""HTTP utilities providing retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)


class RetryConfig:
    def __init__(self, *, attempts: int = 3, backoff_seconds: float = 1.0) -> None:
        if attempts < 1:
            raise ValueError("Retry attempts must be at least 1.")
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds


def _is_retryable(exc: httpx.HTTPError) -> bool:
    # Client errors (bad token, bad payload) will not change on a second try.
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return True


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    **kwargs,
) -> httpx.Response:
    """Call ``func`` until it returns a 2xx response or attempts run out.

    The last exception is re-raised unchanged.
    """
    config = retry_config or RetryConfig()
    attempt = 0

    while True:
        try:
            response = await func(*args, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPError as exc:
            attempt += 1
            if attempt >= config.attempts or not _is_retryable(exc):
                raise
            delay = config.backoff_seconds * attempt
            logger.warning(
                "HTTP attempt %d/%d failed (%s); retrying in %.1fs",
                attempt,
                config.attempts,
                exc.__class__.__name__,
                delay,
            )
            await asyncio.sleep(delay)


__all__ = ["RetryConfig", "request_with_retry"]
