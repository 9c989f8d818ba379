"""Tests for the per-invocation token-bucket limiter."""

from __future__ import annotations

import asyncio
import time

from infra.rate_limit import LimitConfig, RateLimiter, TokenBucket


def test_disabled_limit_never_waits():
    limiter = RateLimiter.for_provider("yfinance", 0)

    async def _run():
        for _ in range(50):
            async with limiter.limit("yfinance"):
                pass

    started = time.monotonic()
    asyncio.run(_run())
    assert time.monotonic() - started < 1.0


def test_unknown_provider_is_unlimited():
    limiter = RateLimiter({"yfinance": LimitConfig("yfinance", 1)})

    async def _run():
        for _ in range(5):
            async with limiter.limit("other"):
                pass

    started = time.monotonic()
    asyncio.run(_run())
    assert time.monotonic() - started < 1.0


def test_provider_names_match_case_insensitively():
    limiter = RateLimiter.for_provider("YFinance", 60)
    assert limiter._config_for("yfinance").rpm == 60
    assert limiter._config_for("yfinance_backup") is None


def test_bucket_spends_burst_then_waits():
    bucket = TokenBucket(capacity=2, refill_rate=10.0)

    async def _run():
        await bucket.acquire()
        await bucket.acquire()
        started = time.monotonic()
        await bucket.acquire()
        return time.monotonic() - started

    waited = asyncio.run(_run())
    assert waited >= 0.04


def test_limit_config_enabled():
    assert LimitConfig("yfinance", 10).enabled
    assert not LimitConfig("yfinance", 0).enabled
