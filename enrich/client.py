"""HTTP client for the product site.

Wraps a blocking requests Session and hands each call to a thread pool
so the fetch pool can await it from the event loop.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import requests  # type: ignore[import-untyped]
from requests.adapters import HTTPAdapter

from enrich.config import (
    DEFAULT_CONCURRENCY_IMAGES,
    HEADERS,
    PROBE_TIMEOUT,
    REQUEST_TIMEOUT,
)
from enrich.logging_config import get_logger

__all__ = ["FetchError", "SiteClient", "create_session"]

logger = get_logger("client")


class FetchError(Exception):
    """Raised when a page cannot be fetched (transport error or non-2xx)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


def create_session(pool_size: int = 10) -> requests.Session:
    """Create a requests Session with connection pooling and proper headers.

    The adapter pool is sized to the number of worker threads so that
    concurrent fetches do not queue on connections.
    """
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class SiteClient:
    """Blocking requests session exposed to the event loop.

    Each call runs in the client's own thread pool, so the number of
    simultaneous requests is bounded by ``max_workers`` in addition to
    whatever limit the caller's pool applies.
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_CONCURRENCY_IMAGES,
        session: Optional[requests.Session] = None,
    ):
        self.max_workers = max(1, max_workers)
        self.session = session or create_session(pool_size=self.max_workers)
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="fetch"
        )

    def __enter__(self) -> "SiteClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self.session.close()

    def _get(self, url: str, timeout: float) -> str:
        try:
            resp = self.session.get(url, timeout=timeout)
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else "unknown"
            raise FetchError(url, f"HTTP {status_code}") from e
        except requests.exceptions.Timeout as e:
            raise FetchError(url, f"timeout after {timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise FetchError(url, str(e)) from e
        return str(resp.text)

    def _head_ok(self, url: str, timeout: float) -> bool:
        try:
            resp = self.session.head(url, timeout=timeout, allow_redirects=True)
        except requests.exceptions.RequestException as e:
            logger.debug(f"Probe failed for {url}: {e}")
            return False
        return resp.status_code == 200

    async def get_text(self, url: str, timeout: float = REQUEST_TIMEOUT) -> str:
        """GET ``url`` and return the body; raises FetchError on failure."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._get, url, timeout)

    async def head_ok(self, url: str, timeout: float = PROBE_TIMEOUT) -> bool:
        """True when a HEAD request for ``url`` answers 200."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._head_ok, url, timeout)
