"""
Snapshot assembly.

One ``MarketScanner.analyze`` call fetches the universe, derives indicators for
every instrument with usable data, runs the three strategy scorers over the
same read-only inputs and freezes the result into a ``MarketSnapshot``. Nothing
built during a call survives it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from datahub.errors import ScannerError
from datahub.fetcher import PriceSeries, fetch_universe
from datahub.indicators import IndicatorSet, compute_indicator_set
from datahub.providers import CandleProvider, default_provider
from datahub.universe import Instrument
from infra.rate_limit import RateLimiter

from .config import ScannerConfig
from .models import MarketSnapshot, StrategyId, StrategyPick
from .scorers import Candidate, build_scorers

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SnapshotTimeout(ScannerError):
    """Raised when a scan does not finish within its configured timeout."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MarketScanner:
    """Runs scans of the configured universe against one market data provider."""

    def __init__(
        self,
        config: Optional[ScannerConfig] = None,
        provider: Optional[CandleProvider] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or ScannerConfig()
        self.provider = provider or default_provider()
        self.clock = clock or _utc_now
        self.scorers = build_scorers(self.config)

    async def analyze(self) -> MarketSnapshot:
        """Produce one snapshot, or raise a ``ScannerError`` subclass."""
        timeout = self.config.timeout_seconds
        try:
            return await asyncio.wait_for(self._run(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Market scan exceeded %.1fs timeout", timeout)
            raise SnapshotTimeout(f"Market analysis timed out after {timeout:g} seconds") from exc

    async def _run(self) -> MarketSnapshot:
        config = self.config
        started = time.perf_counter()
        end = self.clock()
        start = end - timedelta(days=config.history_days)
        limiter = RateLimiter.for_provider(self.provider.name, config.requests_per_minute)

        fetched = await fetch_universe(
            config.universe,
            self.provider,
            start=start,
            end=end,
            interval=config.interval,
            concurrency=config.concurrency,
            limiter=limiter,
        )
        covered = [
            (instrument, fetched[instrument.symbol])
            for instrument in config.universe
            if isinstance(fetched.get(instrument.symbol), PriceSeries)
        ]

        candidates = await self._compute_indicators(covered)
        picks = await self._rank(candidates)

        snapshot = MarketSnapshot(
            as_of=self.clock(),
            coverage_count=len(covered),
            universe_size=len(config.universe),
            picks=picks,
        )
        logger.info(
            "Market snapshot: coverage %d/%d, picks %s in %dms",
            snapshot.coverage_count,
            snapshot.universe_size,
            ", ".join(f"{strategy.value}={len(items)}" for strategy, items in snapshot.picks.items()),
            int((time.perf_counter() - started) * 1000),
        )
        return snapshot

    async def _compute_indicators(
        self, covered: List[Tuple[Instrument, PriceSeries]]
    ) -> List[Candidate]:
        semaphore = asyncio.Semaphore(self.config.concurrency)
        windows = self.config.windows

        async def _compute(series: PriceSeries) -> Optional[IndicatorSet]:
            async with semaphore:
                try:
                    return await asyncio.to_thread(compute_indicator_set, series, windows)
                except Exception:
                    logger.exception("%s indicator computation failed; dropped from scoring", series.symbol)
                    return None

        indicator_sets = await asyncio.gather(*(_compute(series) for _, series in covered))
        return [
            (instrument, indicators)
            for (instrument, _), indicators in zip(covered, indicator_sets)
            if indicators is not None
        ]

    async def _rank(self, candidates: List[Candidate]) -> Dict[StrategyId, Tuple[StrategyPick, ...]]:
        frozen = tuple(candidates)
        strategies = list(StrategyId)
        ranked = await asyncio.gather(
            *(asyncio.to_thread(self.scorers[strategy].rank, frozen) for strategy in strategies)
        )
        return dict(zip(strategies, ranked))


async def analyze_market() -> MarketSnapshot:
    """Scan the configured universe with the default provider."""
    scanner = MarketScanner(config=ScannerConfig.from_env(), provider=default_provider())
    return await scanner.analyze()
