"""Retry with exponential backoff for async operations."""

import asyncio
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from enrich.config import MAX_RETRIES, RETRY_BACKOFF_BASE
from enrich.logging_config import get_logger

__all__ = ["exponential_backoff", "retry_async"]

logger = get_logger("retry")

T = TypeVar("T")


def exponential_backoff(attempt: int, base: float = RETRY_BACKOFF_BASE) -> float:
    """Seconds to wait after the given zero-based failed attempt (base^attempt)."""
    return base ** attempt


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = MAX_RETRIES,
    backoff: Callable[[int], float] = exponential_backoff,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "",
) -> T:
    """Await ``operation`` until it succeeds or ``max_retries`` retries are spent.

    The operation runs at most ``max_retries + 1`` times. The last error
    is re-raised once retries are exhausted.

    Args:
        operation: Zero-argument coroutine factory
        max_retries: Retries after the first attempt
        backoff: Maps the failed attempt number to a delay in seconds
        retry_on: Exception types that trigger a retry
        sleep: Awaitable delay (injected by tests)
        label: Name used in log messages
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except retry_on as e:
            if attempt >= max_retries:
                raise
            delay = backoff(attempt)
            attempt += 1
            logger.warning(
                f"{label or 'operation'} failed ({e}), retrying in {delay:.1f}s "
                f"(attempt {attempt}/{max_retries})"
            )
            await sleep(delay)
