# product_scout/crawler/fetcher.py
"""
Fetcher module: handles HTTP requests with retry/backoff and timeout,
plus a per-host rate limiter used when pages are processed concurrently.
"""
from __future__ import annotations

import asyncio
import random
import time
from typing import Dict, Optional, Sequence
from urllib.parse import urlparse

from aiohttp import ClientError, ClientSession, ClientTimeout

from product_scout.config import CrawlerConfig
from product_scout.crawler.models import PageData
from product_scout.errors import FetchError
from product_scout.logger import logger

__all__ = ("Fetcher", "HostRateLimiter")

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)


class Fetcher:
    """Handles HTTP fetching with retries/backoff and timeout.

    Use as an async context manager so the underlying :class:`ClientSession`
    is opened and closed together with the run::

        async with Fetcher(config) as fetcher:
            page = await fetcher.fetch("https://example.com/sitemap.xml")
    """

    def __init__(
        self,
        config: CrawlerConfig,
        session: Optional[ClientSession] = None,
        retry_status: Sequence[int] = RETRY_STATUS,
    ) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None
        self._retry_status = retry_status

    async def __aenter__(self) -> Fetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def get(self, url: str) -> PageData:
        """
        Fetch *url* and return its body.

        Raises :class:`FetchError` on network errors, timeouts and non-2xx
        statuses. 5xx and 429 are retried ``config.retry_times`` times with
        exponential backoff.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")

        attempts = 0
        while True:
            try:
                async with self.session.get(url, allow_redirects=True) as resp:
                    status = resp.status
                    if status in self._retry_status:
                        raise ClientError(f"retryable status {status}")
                    if not 200 <= status < 300:
                        raise FetchError(url, f"HTTP {status}", status)
                    text = await resp.text(errors="replace")
                    return PageData(url, text, status)
            except asyncio.TimeoutError as exc:
                # no retry on timeout
                raise FetchError(url, "timeout") from exc
            except ClientError as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    raise FetchError(url, str(exc) or type(exc).__name__) from exc
                backoff = self._backoff(attempts)
                logger.debug(
                    "Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff
                )
                await asyncio.sleep(backoff)

    @staticmethod
    def _backoff(attempts: int) -> float:
        # exponential backoff with jitter, cap at 60s
        return min(60, 2**attempts + random.random())

    async def fetch(self, url: str) -> PageData | None:
        """
        Fetch the URL, returning PageData on success or None on any failure.
        """
        try:
            return await self.get(url)
        except FetchError as exc:
            logger.debug("Fetch failed %s", exc)
            return None


class HostRateLimiter:
    """Keeps a minimum interval between request starts to the same host."""

    def __init__(self, interval: float) -> None:
        self.interval = interval
        self._locks: Dict[str, asyncio.Lock] = {}
        self._last_request: Dict[str, float] = {}

    async def wait(self, url: str) -> None:
        host = urlparse(url).netloc
        lock = self._locks.setdefault(host, asyncio.Lock())
        async with lock:
            last = self._last_request.get(host)
            if last is not None:
                wait = self.interval - (time.monotonic() - last)
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_request[host] = time.monotonic()
