"""
Landing CMS - Rate Limiting

Per-client token bucket for the auth routes. The limiter is constructed
explicitly by the app factory and held on app.state; there is no
module-level instance.

The number of tracked clients is bounded; the least recently seen client
is evicted when the limit is reached.
"""

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import HTTPException, Request

from landing_cms.auth.dependencies import get_client_ip
from landing_cms.logging import get_logger


logger = get_logger(__name__)


class RateLimitExceeded(HTTPException):
    """Rate limit exceeded exception."""

    def __init__(self, retry_after: int):
        super().__init__(
            status_code=429,
            detail="too many requests",
            headers={"Retry-After": str(retry_after)},
        )
        self.retry_after = retry_after


@dataclass
class RateLimitResult:
    """Result of rate limit check."""

    allowed: bool
    remaining: int
    retry_after: Optional[int] = None


class RateLimiter:
    """
    Token bucket limiter keyed by client.

    Args:
        requests: Bucket capacity (burst size)
        window: Seconds to refill a full bucket
        max_clients: Buckets kept before LRU eviction
    """

    def __init__(self, requests: int, window: int, max_clients: int = 10000):
        if requests < 1 or window < 1 or max_clients < 1:
            raise ValueError("rate limit requests, window and max_clients must be positive")
        self.capacity = requests
        self.rate = requests / window
        self.max_clients = max_clients
        self._buckets: "OrderedDict[str, Dict[str, float]]" = OrderedDict()
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings) -> "RateLimiter":
        return cls(
            requests=settings.RATE_LIMIT_AUTH_REQUESTS,
            window=settings.RATE_LIMIT_AUTH_WINDOW_SECONDS,
            max_clients=settings.RATE_LIMIT_MAX_CLIENTS,
        )

    def __len__(self) -> int:
        return len(self._buckets)

    async def check(self, key: str, now: Optional[float] = None) -> RateLimitResult:
        """Take one token for key if available."""
        async with self._lock:
            now = time.monotonic() if now is None else now
            bucket = self._buckets.get(key)

            if bucket is None:
                if len(self._buckets) >= self.max_clients:
                    self._buckets.popitem(last=False)
                bucket = {"tokens": float(self.capacity), "last_update": now}
                self._buckets[key] = bucket
            else:
                self._buckets.move_to_end(key)
                elapsed = now - bucket["last_update"]
                bucket["tokens"] = min(self.capacity, bucket["tokens"] + elapsed * self.rate)
                bucket["last_update"] = now

            if bucket["tokens"] >= 1:
                bucket["tokens"] -= 1
                return RateLimitResult(allowed=True, remaining=int(bucket["tokens"]))

            tokens_needed = 1 - bucket["tokens"]
            retry_after = int(tokens_needed / self.rate) + 1
            return RateLimitResult(allowed=False, remaining=0, retry_after=retry_after)

    async def reset(self, key: str) -> None:
        """Forget a client's bucket."""
        async with self._lock:
            self._buckets.pop(key, None)


async def limit_auth_requests(request: Request) -> None:
    """
    Route dependency applying the app's auth limiter to the client IP.

    Raises:
        RateLimitExceeded: 429 with Retry-After
    """
    limiter: Optional[RateLimiter] = request.app.state.auth_rate_limiter
    if limiter is None:
        return

    key = get_client_ip(request) or "unknown"
    result = await limiter.check(key)
    if not result.allowed:
        logger.warning("rate_limited", client_ip=key, path=request.url.path)
        raise RateLimitExceeded(result.retry_after)
