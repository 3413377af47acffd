"""
Tests for the config dataclasses: defaults and construction-time validation.
"""
import pytest

from tradecore.signals.config import (
    EngineConfig,
    MonteCarloConfig,
    RiskConfig,
    SignalConfig,
    SimulatorConfig,
)


class TestSignalConfig:
    """Test SignalConfig validation."""

    def test_defaults(self):
        config = SignalConfig()
        assert config.component_weights == {
            "trend": 0.3, "momentum": 0.3, "volume": 0.2, "volatility": 0.2,
        }
        assert config.vote_weights == {"rsi": 0.3, "macd": 0.4, "stochastic": 0.3}
        assert config.vote_margin == 0.2
        assert config.lookback == 100

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError, match="Component weights"):
            SignalConfig(trend_weight=0.5)

    def test_vote_weights_must_sum_to_one(self):
        with pytest.raises(ValueError, match="Momentum vote weights"):
            SignalConfig(rsi_vote_weight=0.5)

    def test_ema_ordering(self):
        with pytest.raises(ValueError, match="EMA short_period"):
            SignalConfig(ema_short_period=30, ema_long_period=21)

    def test_macd_ordering(self):
        with pytest.raises(ValueError, match="MACD fast"):
            SignalConfig(macd_fast=26, macd_slow=12)

    @pytest.mark.parametrize("field_name", ["rsi_period", "atr_period", "lookback"])
    def test_periods_must_be_positive(self, field_name):
        with pytest.raises(ValueError):
            SignalConfig(**{field_name: 0})

    def test_indicators_use_configured_periods(self):
        indicators = SignalConfig(rsi_period=7, lookback=60).indicators()
        assert indicators.rsi_period == 7
        assert indicators.lookback == 60


class TestRiskConfig:
    """Test RiskConfig validation."""

    def test_defaults(self):
        config = RiskConfig()
        assert config.history_size == 100
        assert config.shock_sigma == 3.0

    def test_min_candles_within_window(self):
        with pytest.raises(ValueError, match="regime_min_candles"):
            RiskConfig(regime_window=10, regime_min_candles=20)

    def test_shock_sigma_positive(self):
        with pytest.raises(ValueError):
            RiskConfig(shock_sigma=0.0)


class TestSimulatorConfig:
    """Test SimulatorConfig validation."""

    def test_defaults(self):
        config = SimulatorConfig()
        assert config.slippage_min == 0.0001
        assert config.slippage_max == 0.001
        assert config.replay_buffer_size == 10000

    def test_slippage_ordering(self):
        with pytest.raises(ValueError, match="slippage_min"):
            SimulatorConfig(slippage_min=0.01, slippage_max=0.001)

    def test_negative_slippage(self):
        with pytest.raises(ValueError):
            SimulatorConfig(slippage_min=-0.001)


class TestMonteCarloConfig:
    """Test MonteCarloConfig validation."""

    def test_defaults(self):
        config = MonteCarloConfig()
        assert config.num_paths == 1000
        assert config.initial_balance == 1000
        assert config.seed is None
        assert config.max_workers == 1

    @pytest.mark.parametrize("kwargs", [
        {"num_paths": 0},
        {"initial_balance": 0.0},
        {"win_rate": 1.5},
        {"avg_loss": -0.01},
        {"position_size_pct": 0.0},
        {"seed": -1},
        {"max_workers": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            MonteCarloConfig(**kwargs)


def test_engine_config_defaults():
    config = EngineConfig()
    assert config.name == "default"
    assert isinstance(config.signal, SignalConfig)
    assert isinstance(config.monte_carlo, MonteCarloConfig)
