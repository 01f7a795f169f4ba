"""Timeout and exponential backoff for upstream store calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from bandsync.constants import (
    STORE_RETRY_ATTEMPTS,
    STORE_RETRY_BASE_DELAY,
    STORE_TIMEOUT,
)
from bandsync.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


async def call_with_retry(
    operation: Callable[[], Awaitable[Any]],
    *,
    attempts: int = STORE_RETRY_ATTEMPTS,
    base_delay: float = STORE_RETRY_BASE_DELAY,
    timeout: float | None = STORE_TIMEOUT,
    retry_on: tuple[type[BaseException], ...] = (),
    description: str = "store call",
) -> Any:
    """Await ``operation()`` with a timeout, retrying transient failures.

    ``operation`` is called afresh for every attempt. Timeouts and exceptions
    listed in ``retry_on`` are retried with delays of ``base_delay``,
    ``2 * base_delay``, ... and surface as ``UpstreamUnavailable`` once
    ``attempts`` is spent. Anything else propagates unchanged.
    """
    last_error: BaseException | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await asyncio.wait_for(operation(), timeout)
        except asyncio.TimeoutError as e:
            last_error = e
        except retry_on as e:
            last_error = e

        if attempt < attempts:
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                f"{description} failed (attempt {attempt}/{attempts}): "
                f"{last_error!r}; retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)

    logger.error(f"{description} failed after {attempts} attempts: {last_error!r}")
    raise UpstreamUnavailable() from last_error
