"""Bounded-concurrency fetch pool with a per-run result cache.

``run_all`` schedules every item at once and lets an ``asyncio.Semaphore``
cap how many workers are in flight; batches only group the progress log.
``fetch_all`` layers the run cache, retries and error placeholders on top,
so one product's permanent failure never affects its siblings.
"""

import asyncio
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Hashable,
    List,
    Optional,
    Sequence,
    TypeVar,
)

from enrich.config import BATCH_SIZE, MAX_RETRIES
from enrich.logging_config import get_logger, log_pipeline_event
from enrich.retry import exponential_backoff, retry_async

__all__ = ["RunCache", "run_all", "fetch_all"]

logger = get_logger("pool")

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")
R = TypeVar("R")


class RunCache(Generic[K, R]):
    """Per-run memo of in-flight and resolved results.

    The first caller for a key registers a future before awaiting
    anything; later callers await that same future, so a key is fetched
    at most once per run even when callers race.
    """

    def __init__(self) -> None:
        self._entries: Dict[K, "asyncio.Future[R]"] = {}
        self._results: Dict[K, R] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: K) -> Optional[R]:
        """Return the resolved result for ``key``, or None if not resolved yet."""
        return self._results.get(key)

    def results(self) -> Dict[K, R]:
        """Snapshot of every resolved result, in resolution order."""
        return dict(self._results)

    async def get_or_fetch(self, key: K, fetch: Callable[[], Awaitable[R]]) -> R:
        entry = self._entries.get(key)
        if entry is not None:
            return await entry

        future: "asyncio.Future[R]" = asyncio.get_running_loop().create_future()
        self._entries[key] = future
        try:
            result = await fetch()
        except Exception as e:
            # Forget the key so a later call can try again; waiters see the error
            del self._entries[key]
            future.set_exception(e)
            future.exception()
            raise

        self._results[key] = result
        future.set_result(result)
        return result


async def run_all(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    concurrency: int,
    batch_size: int = BATCH_SIZE,
    label: str = "items",
    on_error: Optional[Callable[[T, Exception], R]] = None,
) -> List[R]:
    """Run ``worker`` over ``items`` with at most ``concurrency`` in flight.

    Results come back in input order regardless of completion order.
    Without ``on_error`` a worker exception propagates to the caller.

    Args:
        items: Inputs, one worker call each
        worker: Coroutine function producing one result per item
        concurrency: Maximum simultaneous worker calls (>= 1)
        batch_size: Number of completions per progress log line
        label: Name of the items in log messages
        on_error: Converts a worker exception into a result for that slot
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    total = len(items)
    if total == 0:
        return []

    total_batches = (total + batch_size - 1) // batch_size
    logger.info(f"Processing {total} {label} with concurrency {concurrency}")

    semaphore = asyncio.Semaphore(concurrency)
    results: List[Any] = [None] * total
    completed = 0

    async def run_slot(index: int, item: T) -> None:
        nonlocal completed
        async with semaphore:
            try:
                results[index] = await worker(item)
            except Exception as e:
                if on_error is None:
                    raise
                results[index] = on_error(item, e)

        completed += 1
        if completed % batch_size == 0 or completed == total:
            batch = (completed + batch_size - 1) // batch_size
            logger.info(f"  Batch {batch}/{total_batches} done ({completed}/{total} {label})")

    await asyncio.gather(*(run_slot(i, item) for i, item in enumerate(items)))
    return results


async def fetch_all(
    keys: Sequence[K],
    fetch: Callable[[K], Awaitable[R]],
    cache: RunCache[K, R],
    concurrency: int,
    placeholder: Callable[[K, Exception], R],
    batch_size: int = BATCH_SIZE,
    label: str = "items",
    max_retries: int = MAX_RETRIES,
    backoff: Callable[[int], float] = exponential_backoff,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> List[R]:
    """Fetch one result per key through the cache, with retries.

    A key that still fails after ``max_retries`` retries gets
    ``placeholder(key, error)``, which is cached like any other result.
    """

    async def fetch_with_retry(key: K) -> R:
        try:
            return await retry_async(
                lambda: fetch(key),
                max_retries=max_retries,
                backoff=backoff,
                sleep=sleep,
                label=f"{label} {key}",
            )
        except Exception as e:
            logger.error(f"Giving up on {key} after {max_retries} retries: {e}")
            log_pipeline_event(
                "fetch_failed",
                {"key": str(key), "label": label, "error": str(e)},
                level=logging.ERROR,
            )
            return placeholder(key, e)

    async def resolve(key: K) -> R:
        return await cache.get_or_fetch(key, lambda: fetch_with_retry(key))

    return await run_all(keys, resolve, concurrency, batch_size=batch_size, label=label)
