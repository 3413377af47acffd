"""
Tests for RiskAdjuster: factor formulas, rolling history and the shock guard.
"""
import math

import pytest

from tradecore.risk.adjuster import RiskAdjuster
from tradecore.risk.regime import MarketRegimeSnapshot
from tradecore.signals.composer import SignalComposer
from tradecore.signals.config import RiskConfig
from tradecore.shared.types import Direction


def conditions(volatility=0.2, trend=0.6, volume=1.0, liquidity=0.8, regime_score=0.5):
    return MarketRegimeSnapshot(
        volatility=volatility, trend=trend, volume=volume, liquidity=liquidity, regime_score=regime_score,
    )


@pytest.fixture
def adjuster():
    return RiskAdjuster()


class TestAdjust:
    """Test confidence adjustment."""

    def test_factor_formula(self, adjuster, flat_candles):
        result = adjuster.adjust(0.5, flat_candles, conditions())

        assert result.volatility_factor == pytest.approx(0.96)
        assert result.trend_factor == pytest.approx(0.8)
        assert result.volume_factor == pytest.approx(1.0)
        assert result.liquidity_factor == pytest.approx(0.8)
        assert result.regime_multiplier == pytest.approx(1.0)
        # 0.5 * (0.3*0.96 + 0.3*0.8 + 0.2*1 + 0.2*0.8) * (0.5 + 0.5)
        assert result.adjusted_confidence == pytest.approx(0.444)
        assert not result.shock

    def test_factor_floors(self, adjuster, flat_candles):
        result = adjuster.adjust(0.5, flat_candles, conditions(volatility=2.0, liquidity=0.1))
        assert result.volatility_factor == 0.5
        assert result.liquidity_factor == 0.5

    def test_result_clamped(self, adjuster, flat_candles):
        result = adjuster.adjust(0.9, flat_candles, conditions(regime_score=1.0))
        assert result.regime_multiplier == pytest.approx(1.5)
        assert result.adjusted_confidence == 1.0

    def test_non_finite_confidence(self, adjuster, flat_candles):
        assert adjuster.adjust(math.nan, flat_candles, conditions()).adjusted_confidence == 0.0

    def test_volume_relative_to_history(self, adjuster, flat_candles):
        adjuster.adjust(0.5, flat_candles, conditions(volume=2.0))
        result = adjuster.adjust(0.5, flat_candles, conditions(volume=1.0))
        assert result.volume_factor == pytest.approx(1 / 1.5)

    def test_empty_series(self, adjuster):
        result = adjuster.adjust(0.5, [])
        assert 0.0 <= result.adjusted_confidence <= 1.0
        assert result.regime_score == 0.5

    @pytest.mark.parametrize("seed", range(5))
    def test_bounds(self, adjuster, random_candles, seed):
        result = adjuster.adjust(0.8, random_candles(seed=seed))
        assert 0.0 <= result.adjusted_confidence <= 1.0


class TestShockGuard:
    """A sudden-volatility bar can only dampen confidence."""

    def test_shock_dampens(self, adjuster, shock_candles):
        raw = SignalComposer().compose(shock_candles)
        result = adjuster.adjust(raw.confidence, shock_candles)

        assert raw.confidence > 0
        assert result.shock
        assert result.regime_multiplier <= 1.0
        assert result.adjusted_confidence < raw.confidence

    def test_multiplier_capped_even_with_high_regime_score(self, adjuster, shock_candles):
        result = adjuster.adjust(0.8, shock_candles, conditions(regime_score=1.0))
        assert result.regime_multiplier == 1.0
        assert result.adjusted_confidence <= 0.8


class TestHistory:
    """Test the rolling market condition history."""

    def test_capacity_and_fifo(self, adjuster, flat_candles):
        for i in range(120):
            adjuster.adjust(0.5, flat_candles, conditions(volume=float(i + 1)))

        history = adjuster.history
        assert len(history) == 100
        assert history[0].volume == 21.0
        assert history[-1].volume == 120.0

    def test_configured_capacity(self, flat_candles):
        adjuster = RiskAdjuster(RiskConfig(history_size=5))
        for _ in range(8):
            adjuster.adjust(0.5, flat_candles, conditions())
        assert len(adjuster.history) == 5

    def test_market_conditions_do_not_touch_history(self, adjuster, monotonic_candles):
        adjuster.market_conditions(monotonic_candles)
        assert adjuster.history == ()

    def test_reset(self, adjuster, flat_candles):
        adjuster.adjust(0.5, flat_candles, conditions())
        adjuster.reset()
        assert adjuster.history == ()


class TestMarketConditions:
    """Test condition measurement from candles."""

    def test_uptrend(self, adjuster, monotonic_candles):
        result = adjuster.market_conditions(monotonic_candles)

        assert result.trend == pytest.approx(1.0)
        assert result.volume == pytest.approx(1.0)
        assert 0.0 < result.liquidity < 1.0
        assert 0.1 <= result.regime_score <= 1.0


def test_adjust_signal(adjuster, monotonic_candles):
    signal = SignalComposer().compose(monotonic_candles)
    adjusted = adjuster.adjust_signal(signal, monotonic_candles)

    assert adjusted.direction == Direction.LONG
    assert adjusted.confidence <= 1.0
    assert adjusted.metadata["raw_confidence"] == signal.confidence
    assert "regime_score" in adjusted.metadata
