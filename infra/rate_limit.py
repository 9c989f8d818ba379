"""
Token-bucket rate limiter for upstream data providers.

A limiter is built per scanner invocation, so buckets never outlive the call
that created them. Limits come from the scanner configuration, which in turn
reads ``YF_MAX_RPM`` from the environment.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional

DEFAULT_YF_RPM = 120


@dataclass(frozen=True)
class LimitConfig:
    provider: str
    rpm: int

    @property
    def enabled(self) -> bool:
        return self.rpm > 0


class TokenBucket:
    """Simple asyncio token bucket."""

    def __init__(self, capacity: int, refill_rate: float) -> None:
        self.capacity = capacity
        self.tokens = float(capacity)
        self.refill_rate = refill_rate  # tokens per second
        self.updated_at = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        while True:
            async with self._lock:
                now = time.monotonic()
                elapsed = now - self.updated_at
                self.updated_at = now
                if elapsed > 0:
                    self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
                if self.tokens >= 1.0:
                    self.tokens -= 1.0
                    return
                wait_for = (1.0 - self.tokens) / self.refill_rate if self.refill_rate > 0 else 1.0
            await asyncio.sleep(min(max(wait_for, 0.05), 5.0))


class RateLimiter:
    """Per-provider token buckets for one invocation."""

    def __init__(self, configs: Dict[str, LimitConfig]) -> None:
        self._configs = configs
        self._buckets: Dict[str, TokenBucket] = {}

    def _config_for(self, provider: str) -> Optional[LimitConfig]:
        return self._configs.get(provider.lower())

    def _bucket_for(self, config: LimitConfig) -> TokenBucket:
        bucket = self._buckets.get(config.provider)
        if bucket is None:
            # Start with a short burst rather than a full minute of tokens.
            capacity = max(1, min(config.rpm, 10))
            bucket = TokenBucket(capacity, config.rpm / 60.0)
            self._buckets[config.provider] = bucket
        return bucket

    @asynccontextmanager
    async def limit(self, provider: str) -> AsyncIterator[None]:
        config = self._config_for(provider)
        if config is not None and config.enabled:
            await self._bucket_for(config).acquire()
        yield

    @classmethod
    def for_provider(cls, provider: str, rpm: int) -> "RateLimiter":
        name = provider.lower()
        return cls({name: LimitConfig(provider=name, rpm=max(rpm, 0))})
