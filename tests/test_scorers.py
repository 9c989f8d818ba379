"""
Tests for the three strategy scorers and their shared ranking.

Indicator sets are built by hand so each test pins the exact inputs a scorer
sees; the numbers in comments are the expected score terms.
"""

from __future__ import annotations

import pytest

from conftest import make_indicators
from datahub.universe import Instrument
from engine.config import IntradayRules, OptionsRules, ScannerConfig, SwingRules
from engine.models import MetricPair, StrategyId
from engine.opportunity_filter import is_candidate
from engine.scorers import IntradayScorer, OptionsScorer, SwingScorer, build_scorers

FNO = Instrument("RELIANCE", "Reliance Industries", options_tradable=True)
CASH_ONLY = Instrument("GILLETTE", "Gillette India", options_tradable=False)


def _intraday_values(**overrides):
    values = {
        "avg_turnover": 1e9,
        "change_1d_pct": 3.0,
        "relative_volume": 2.0,
        "gap_pct": 0.0,
    }
    values.update(overrides)
    return values


class TestIsCandidate:
    @pytest.mark.parametrize(
        "score, min_score, expected",
        [
            (0.1, 0.0, True),
            (0.0, 0.0, False),
            (-0.5, 0.0, False),
            (1.0, 1.0, False),
            (float("nan"), 0.0, False),
            (float("inf"), 0.0, False),
        ],
    )
    def test_floor_is_exclusive(self, score, min_score, expected):
        assert is_candidate(score, min_score) is expected


class TestIntradayScorer:
    @pytest.fixture
    def scorer(self):
        return IntradayScorer(IntradayRules(), limit=5)

    def test_score_blends_momentum_and_volume(self, scorer):
        outcome = scorer.score(FNO, make_indicators("RELIANCE", **_intraday_values()))
        # 0.6 * 3.0/1.5 + 0.4 * (2.0-1)/(1.5-1)
        assert outcome.score == pytest.approx(2.0)

    def test_metrics_are_display_strings(self, scorer):
        outcome = scorer.score(FNO, make_indicators("RELIANCE", **_intraday_values()))
        assert outcome.metrics == (
            MetricPair("1D change", "+3.00%"),
            MetricPair("Rel. volume", "2.00x"),
            MetricPair("Avg turnover", "Rs 100 Cr"),
        )

    def test_rationale_names_each_threshold_crossed(self, scorer):
        outcome = scorer.score(FNO, make_indicators("RELIANCE", **_intraday_values()))
        assert outcome.rationale[0].startswith("Up 3.0% on the session")
        assert "2.0x" in outcome.rationale[1]
        assert outcome.rationale[-1].startswith("Liquid:")

    def test_gap_up_bonus(self, scorer):
        outcome = scorer.score(FNO, make_indicators("RELIANCE", **_intraday_values(gap_pct=1.5)))
        assert outcome.score == pytest.approx(2.2)
        assert MetricPair("Opening gap", "+1.50%") in outcome.metrics

    def test_illiquid_names_are_ineligible(self, scorer):
        assert scorer.score(FNO, make_indicators("RELIANCE", **_intraday_values(avg_turnover=1e8))) is None

    def test_missing_relative_volume_is_ineligible(self, scorer):
        values = _intraday_values()
        del values["relative_volume"]
        assert scorer.score(FNO, make_indicators("RELIANCE", **values)) is None

    def test_falling_session_is_ineligible_despite_volume(self, scorer):
        values = _intraday_values(change_1d_pct=-3.0, relative_volume=5.0)
        assert scorer.score(FNO, make_indicators("RELIANCE", **values)) is None
        assert scorer.rank([(FNO, make_indicators("RELIANCE", **values))]) == ()

    def test_non_fno_instruments_still_qualify(self, scorer):
        assert scorer.score(CASH_ONLY, make_indicators("GILLETTE", **_intraday_values())) is not None


class TestRanking:
    def _candidate(self, symbol, **overrides):
        return Instrument(symbol, f"{symbol} Ltd"), make_indicators(symbol, **_intraday_values(**overrides))

    def test_sorted_by_score_with_symbol_tiebreak(self):
        scorer = IntradayScorer(IntradayRules(), limit=5)
        candidates = [
            self._candidate("CCC", change_1d_pct=1.5, relative_volume=1.5),
            self._candidate("BBB"),
            self._candidate("AAA"),
        ]
        picks = scorer.rank(candidates)
        assert [pick.symbol for pick in picks] == ["AAA", "BBB", "CCC"]
        assert [pick.score for pick in picks] == sorted((pick.score for pick in picks), reverse=True)

    def test_truncated_to_limit(self):
        scorer = IntradayScorer(IntradayRules(), limit=2)
        candidates = [self._candidate(symbol, change_1d_pct=i + 1.0) for i, symbol in enumerate("DEFGH")]
        picks = scorer.rank(candidates)
        assert [pick.symbol for pick in picks] == ["H", "G"]

    def test_zero_limit_gives_no_picks(self):
        scorer = IntradayScorer(IntradayRules(), limit=0)
        assert scorer.rank([self._candidate("AAA")]) == ()

    def test_non_positive_scores_dropped(self):
        scorer = IntradayScorer(IntradayRules(), limit=5)
        picks = scorer.rank([self._candidate("AAA", change_1d_pct=0.0, relative_volume=1.0)])
        assert picks == ()

    def test_pick_carries_quote_price(self):
        scorer = IntradayScorer(IntradayRules(), limit=5)
        instrument = Instrument("AAA", "Alpha Ltd")
        picks = scorer.rank([(instrument, make_indicators("AAA", price=None, **_intraday_values()))])
        assert picks[0].price is None
        assert picks[0].name == "Alpha Ltd"


class TestSwingScorer:
    @pytest.fixture
    def scorer(self):
        return SwingScorer(SwingRules(), limit=5)

    def test_steady_uptrend(self, scorer):
        indicators = make_indicators(
            "TCS",
            trend_slope_pct=0.4,
            trend_r2=0.9,
            realized_vol_pct=20.0,
            adx=25.0,
            close=110.0,
            ema_fast=105.0,
            ema_slow=100.0,
            trend_return_pct=5.0,
        )
        outcome = scorer.score(FNO, indicators)
        # 0.4*0.9/0.25 + adx 0.3 + ema 0.3 + band 0.3
        assert outcome.score == pytest.approx(2.34)
        assert len(outcome.rationale) == 4

    def test_volatility_above_band_is_penalized(self, scorer):
        indicators = make_indicators("TCS", trend_slope_pct=0.4, trend_r2=0.9, realized_vol_pct=60.0)
        # 1.44 - (60-40)/40
        assert scorer.score(FNO, indicators).score == pytest.approx(0.94)

    def test_calm_tape_earns_half_bonus(self, scorer):
        indicators = make_indicators("TCS", trend_slope_pct=0.4, trend_r2=0.9, realized_vol_pct=10.0)
        assert scorer.score(FNO, indicators).score == pytest.approx(1.59)

    def test_downtrend_penalty(self, scorer):
        indicators = make_indicators(
            "TCS",
            trend_slope_pct=-0.3,
            trend_r2=0.8,
            realized_vol_pct=25.0,
            ema_fast=95.0,
            ema_slow=100.0,
            trend_return_pct=-10.0,
        )
        # -0.96 + band 0.3 - penalty 1.0
        assert scorer.score(FNO, indicators).score == pytest.approx(-1.66)
        assert scorer.rank([(FNO, indicators)]) == ()

    def test_missing_fit_is_ineligible(self, scorer):
        indicators = make_indicators("TCS", trend_slope_pct=0.4, realized_vol_pct=20.0)
        assert scorer.score(FNO, indicators) is None


class TestOptionsScorer:
    @pytest.fixture
    def scorer(self):
        return OptionsScorer(OptionsRules(), limit=5)

    def test_implied_volatility_preferred(self, scorer):
        indicators = make_indicators("RELIANCE", implied_vol_pct=35.0, range_vol_pct=20.0, realized_vol_pct=20.0)
        outcome = scorer.score(FNO, indicators)
        assert outcome.score == pytest.approx(3.0)
        assert outcome.metrics[0] == MetricPair("Implied vol", "35.0%")
        assert outcome.metrics[2] == MetricPair("Vol spread", "+15.0 pts")

    def test_range_volatility_fallback(self, scorer):
        indicators = make_indicators("RELIANCE", range_vol_pct=30.0, realized_vol_pct=20.0)
        outcome = scorer.score(FNO, indicators)
        assert outcome.score == pytest.approx(2.0)
        assert outcome.metrics[0].label == "Range vol"

    def test_gap_down_catalyst(self, scorer):
        indicators = make_indicators("RELIANCE", range_vol_pct=30.0, realized_vol_pct=20.0, gap_pct=-2.0)
        outcome = scorer.score(FNO, indicators)
        assert outcome.score == pytest.approx(2.5)
        assert MetricPair("Catalyst", "Bearish") in outcome.metrics
        assert "Gap down of 2.0%" in outcome.rationale[-1]

    def test_volume_backed_move_catalyst(self, scorer):
        indicators = make_indicators(
            "RELIANCE",
            range_vol_pct=30.0,
            realized_vol_pct=20.0,
            change_1d_pct=2.5,
            relative_volume=2.0,
        )
        outcome = scorer.score(FNO, indicators)
        assert MetricPair("Catalyst", "Bullish") in outcome.metrics

    def test_macd_cross_catalyst(self, scorer):
        indicators = make_indicators("RELIANCE", range_vol_pct=30.0, realized_vol_pct=20.0, macd_cross=1.0)
        assert MetricPair("Catalyst", "Bullish") in scorer.score(FNO, indicators).metrics

    def test_non_fno_instrument_is_ineligible(self, scorer):
        indicators = make_indicators("GILLETTE", implied_vol_pct=35.0, realized_vol_pct=20.0)
        assert scorer.score(CASH_ONLY, indicators) is None

    def test_no_forward_estimate_is_ineligible(self, scorer):
        indicators = make_indicators("RELIANCE", realized_vol_pct=20.0)
        assert scorer.score(FNO, indicators) is None


class TestBuildScorers:
    def test_one_scorer_per_strategy(self):
        scorers = build_scorers(ScannerConfig())
        assert set(scorers) == set(StrategyId)
        assert isinstance(scorers[StrategyId.OPTIONS], OptionsScorer)

    def test_limits_come_from_config(self):
        config = ScannerConfig(pick_limits={StrategyId.SWING: 2})
        scorers = build_scorers(config)
        assert scorers[StrategyId.SWING].limit == 2
        assert scorers[StrategyId.INTRADAY].limit == 5

    def test_mapping_is_read_only(self):
        scorers = build_scorers(ScannerConfig())
        with pytest.raises(TypeError):
            scorers[StrategyId.SWING] = None
