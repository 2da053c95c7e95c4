"""Retry helper for writes that may hit a transient storage failure."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

from statecraft.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    label: str,
    attempts: int | None = None,
    base_delay: float | None = None,
) -> T:
    """Run ``operation`` until it succeeds, backing off exponentially between tries.

    ``operation`` must open its own session so that every attempt starts from
    a clean transaction. Only connection-level errors are retried; anything
    else propagates on the first failure.
    """
    attempts = attempts or settings.storage_retry_attempts
    base_delay = settings.storage_retry_base_delay if base_delay is None else base_delay

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except (OperationalError, DBAPIError) as exc:
            if attempt == attempts:
                logger.error("%s: giving up after %d attempts: %s", label, attempts, exc)
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                "%s: storage error on attempt %d/%d, retrying in %.2fs: %s",
                label, attempt, attempts, delay, exc,
            )
            await asyncio.sleep(delay)
    raise RuntimeError("unreachable")
