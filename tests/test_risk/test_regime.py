"""
Tests for market regime measurements and classification.
"""
import pytest

from tradecore.risk import regime
from tradecore.risk.regime import MomentumRegime, TrendRegime, VolatilityRegime


class TestRegimeScore:
    """Test the regime score."""

    def test_short_history_is_neutral(self, monotonic_candles):
        assert regime.regime_score(monotonic_candles[:19]) == 0.5

    def test_flat_market(self, flat_candles):
        # No volatility, no SMA spread, perfectly consistent volume
        assert regime.regime_score(flat_candles) == pytest.approx(0.2)

    @pytest.mark.parametrize("seed", range(10))
    def test_bounds(self, random_candles, seed):
        assert 0.1 <= regime.regime_score(random_candles(seed=seed, sigma=0.03)) <= 1.0


class TestComponents:
    """Test the regime score components."""

    def test_normalized_volatility(self):
        assert regime.normalized_volatility(0.02) == 1.0
        assert regime.normalized_volatility(0.01) == pytest.approx(0.5)
        assert regime.normalized_volatility(0.04) == 0.0
        assert regime.normalized_volatility(0.1) == 0.0

    def test_trend_alignment(self):
        assert regime.trend_alignment([100.0] * 60) == 0.0
        assert regime.trend_alignment([0.0] * 60) == 0.0
        assert 0.0 < regime.trend_alignment([float(i) for i in range(1, 61)]) <= 1.0

    def test_volume_consistency(self):
        assert regime.volume_consistency([1000.0] * 10) == 1.0
        assert regime.volume_consistency([]) == 0.0
        assert regime.volume_consistency([0.0] * 10) == 0.0
        assert regime.volume_consistency([500.0, 1500.0]) == pytest.approx(1 / 1.5)

    def test_rms_volatility(self):
        assert regime.rms_volatility([100.0]) == 0.0
        assert regime.rms_volatility([100.0, 100.0, 100.0]) == 0.0


class TestLiquidity:
    """Test the liquidity measure."""

    def test_tight_spread_full_volume(self, flat_candles):
        assert regime.liquidity(flat_candles) == 1.0

    def test_one_percent_spread(self, candle_factory):
        candles = candle_factory([100.0] * 20, spread=0.5)
        assert regime.liquidity(candles) == pytest.approx(0.5)

    def test_low_volume(self, candle_factory):
        candles = candle_factory([100.0] * 20, spread=0.0, volume=250.0)
        assert regime.liquidity(candles) == pytest.approx(0.25)

    def test_no_volume(self, candle_factory):
        assert regime.liquidity(candle_factory([100.0] * 20, volume=0.0)) == 0.0

    def test_empty(self):
        assert regime.liquidity([]) == 0.0


class TestShock:
    """Test shock detection."""

    def test_gap_is_a_shock(self, shock_candles):
        assert regime.is_shock(shock_candles)

    def test_stable_bars_are_not(self, shock_candles):
        assert not regime.is_shock(shock_candles[:-1])

    def test_flat_market(self, flat_candles):
        assert not regime.is_shock(flat_candles)

    def test_short_history(self, shock_candles):
        assert not regime.is_shock(shock_candles[-2:])


class TestClassifyRegime:
    """Test regime labels."""

    def test_uptrend(self, candle_factory):
        candles = candle_factory([100.0 + i for i in range(250)])
        result = regime.classify_regime(candles)

        assert result.trend == TrendRegime.BULLISH
        assert result.momentum == MomentumRegime.STRONG
        assert result.volatility == VolatilityRegime.LOW
        assert result.support == 99.0
        assert result.resistance == 350.0

    def test_downtrend(self, candle_factory):
        candles = candle_factory([400.0 - i for i in range(250)])
        result = regime.classify_regime(candles)

        assert result.trend == TrendRegime.BEARISH
        assert result.momentum == MomentumRegime.WEAK

    def test_high_volatility(self, candle_factory):
        candles = candle_factory([100.0 if i % 2 == 0 else 105.0 for i in range(60)])
        assert regime.classify_regime(candles).volatility == VolatilityRegime.HIGH

    def test_flat_is_sideways(self, flat_candles):
        result = regime.classify_regime(flat_candles)
        assert result.trend == TrendRegime.SIDEWAYS
        assert result.momentum == MomentumRegime.WEAK

    def test_empty(self):
        result = regime.classify_regime([])
        assert result.trend == TrendRegime.SIDEWAYS
        assert result.support == 0.0
