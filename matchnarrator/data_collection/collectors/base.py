"""
Base classes for data collectors of the Match Narrator import pipeline.
"""

from typing import Any, Optional
import asyncio
import logging
import time

import aiohttp

from matchnarrator.core.config import APIConfig
from matchnarrator.domain.errors import UpstreamAPIError


class RateLimiter:
    """Token bucket rate limiter for API requests."""

    def __init__(self, rate_limit: int, time_window: float = 1.0):
        """
        Initialize rate limiter.

        Args:
            rate_limit: Maximum number of requests per time window
            time_window: Time window in seconds (default 1.0 for per-second limiting)
        """
        self.rate_limit = max(1, rate_limit)
        self.time_window = time_window
        self.tokens = float(self.rate_limit)
        self.last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self):
        """Acquire a token, waiting if necessary."""
        async with self._lock:
            now = time.monotonic()
            time_passed = now - self.last_refill
            self.tokens = min(
                self.rate_limit,
                self.tokens + time_passed * (self.rate_limit / self.time_window),
            )
            self.last_refill = now

            if self.tokens >= 1:
                self.tokens -= 1
                return

            wait_time = (1 - self.tokens) * (self.time_window / self.rate_limit)
            await asyncio.sleep(wait_time)
            self.tokens = 0
            self.last_refill = time.monotonic()


class DataCollector:
    """Base class for HTTP JSON collectors: session lifecycle, rate limiting, error mapping."""

    def __init__(self, name: str, api_config: APIConfig, session: Optional[aiohttp.ClientSession] = None):
        self.name = name
        self.api_config = api_config
        self.rate_limiter = RateLimiter(api_config.rate_limit)
        self.session = session
        self._owns_session = session is None
        self.logger = logging.getLogger(f"collector.{name}")

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.api_config.timeout)
            )
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self) -> None:
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    async def _make_request(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> dict:
        """Macht einen API Request mit Rate Limiting"""
        if self.session is None:
            raise RuntimeError(f"{self.name} collector used outside of 'async with'")
        await self.rate_limiter.acquire()

        url = f"{self.api_config.base_url}{endpoint}"
        headers = self.api_config.headers.copy()
        clean_params = {k: str(v) for k, v in (params or {}).items() if v not in (None, "")}

        try:
            async with self.session.get(url, headers=headers, params=clean_params) as response:
                if response.status >= 400:
                    self.logger.error(f"API request failed: {url} - HTTP {response.status}")
                    raise UpstreamAPIError(
                        f"{self.api_config.name} responded {response.status}",
                        details={"status": response.status, "endpoint": endpoint},
                    )
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            self.logger.error(f"API request failed: {url} - {e}")
            raise UpstreamAPIError(f"{self.api_config.name} request failed: {e}") from e
        except asyncio.TimeoutError as e:
            self.logger.error(f"API request timed out: {url}")
            raise UpstreamAPIError(f"{self.api_config.name} request timed out") from e
