"""
Configuration for signal composition, risk adjustment and simulation.

Every config is a dataclass validated at construction time (fail fast with
clear errors), never at first use.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..indicators.snapshot import TechnicalIndicators
from ..shared.defaults import (
    MAX_LOOKBACK,
    RSI_PERIOD,
    EMA_SHORT_PERIOD, EMA_LONG_PERIOD,
    MACD_FAST, MACD_SLOW, MACD_SIGNAL, MACD_HISTORY,
    BOLLINGER_PERIOD, BOLLINGER_STD,
    ATR_PERIOD, ADX_PERIOD,
    STOCH_PERIOD, STOCH_SMOOTHING,
    VOLUME_EMA_SHORT, VOLUME_EMA_LONG,
    VOLATILITY_WINDOW, TRADING_DAYS_PER_YEAR,
    MOMENTUM_PERIOD,
    TREND_WEIGHT, MOMENTUM_WEIGHT, VOLUME_WEIGHT, VOLATILITY_WEIGHT,
    RSI_VOTE_WEIGHT, MACD_VOTE_WEIGHT, STOCH_VOTE_WEIGHT, VOTE_MARGIN,
    REGIME_HISTORY_SIZE, REGIME_WINDOW, REGIME_MIN_CANDLES,
    LIQUIDITY_WINDOW, IDEAL_VOLATILITY, SHOCK_SIGMA, REFERENCE_VOLUME,
    SLIPPAGE_MIN, SLIPPAGE_MAX, REPLAY_BUFFER_SIZE, MIN_LEVEL_DISTANCE,
    INITIAL_BALANCE, NUM_PATHS, NUM_DAYS, TRADES_PER_DAY,
    WIN_RATE, AVG_WIN, AVG_LOSS, RISK_FREE_RATE, BLOCK_SIZE,
    MIN_CONFIDENCE, STOP_ATR_MULTIPLE, RISK_REWARD_RATIO,
    POSITION_SIZE_PCT, MAX_HOLDING_BARS, REPLAY_WARMUP_BARS,
)

# Tolerance for "weights sum to 1"
_WEIGHT_SUM_TOLERANCE = 1e-6


def _require_positive_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


def _require_fraction(name: str, value: float, *, allow_zero: bool = True, allow_one: bool = True) -> None:
    lower_ok = value >= 0 if allow_zero else value > 0
    upper_ok = value <= 1 if allow_one else value < 1
    if not (isinstance(value, (int, float)) and math.isfinite(value) and lower_ok and upper_ok):
        raise ValueError(f"{name} must be in [0, 1], got {value!r}")


def _require_non_negative(name: str, value: float) -> None:
    if not (isinstance(value, (int, float)) and math.isfinite(value) and value >= 0):
        raise ValueError(f"{name} must be a finite number >= 0, got {value!r}")


def _require_weights(label: str, weights: Dict[str, float]) -> None:
    for name, weight in weights.items():
        _require_non_negative(f"{label} weight '{name}'", weight)
    total = sum(weights.values())
    if abs(total - 1.0) > _WEIGHT_SUM_TOLERANCE:
        raise ValueError(f"{label} weights must sum to 1, got {total:.6f} ({weights})")


@dataclass
class SignalConfig:
    """Indicator periods and composition weights for the signal composer."""
    # Indicator parameters (from shared.defaults)
    rsi_period: int = RSI_PERIOD
    ema_short_period: int = EMA_SHORT_PERIOD
    ema_long_period: int = EMA_LONG_PERIOD
    macd_fast: int = MACD_FAST
    macd_slow: int = MACD_SLOW
    macd_signal: int = MACD_SIGNAL
    macd_history: int = MACD_HISTORY
    bollinger_period: int = BOLLINGER_PERIOD
    bollinger_std: float = BOLLINGER_STD
    atr_period: int = ATR_PERIOD
    adx_period: int = ADX_PERIOD
    stoch_period: int = STOCH_PERIOD
    stoch_smoothing: int = STOCH_SMOOTHING
    volume_ema_short: int = VOLUME_EMA_SHORT
    volume_ema_long: int = VOLUME_EMA_LONG
    volatility_window: int = VOLATILITY_WINDOW
    periods_per_year: int = TRADING_DAYS_PER_YEAR
    momentum_period: int = MOMENTUM_PERIOD
    lookback: int = MAX_LOOKBACK  # Trailing bars evaluated per signal

    # Component weights (trend, momentum, volume, volatility); must sum to 1
    trend_weight: float = TREND_WEIGHT
    momentum_weight: float = MOMENTUM_WEIGHT
    volume_weight: float = VOLUME_WEIGHT
    volatility_weight: float = VOLATILITY_WEIGHT

    # Momentum vote weights (RSI, MACD, Stochastic); must sum to 1
    rsi_vote_weight: float = RSI_VOTE_WEIGHT
    macd_vote_weight: float = MACD_VOTE_WEIGHT
    stoch_vote_weight: float = STOCH_VOTE_WEIGHT
    vote_margin: float = VOTE_MARGIN  # |long - short| below this resolves NEUTRAL

    def __post_init__(self) -> None:
        for name in (
            "rsi_period", "ema_short_period", "ema_long_period",
            "macd_fast", "macd_slow", "macd_signal", "macd_history",
            "bollinger_period", "atr_period", "adx_period",
            "stoch_period", "stoch_smoothing",
            "volume_ema_short", "volume_ema_long",
            "volatility_window", "periods_per_year", "momentum_period", "lookback",
        ):
            _require_positive_int(name, getattr(self, name))
        if self.ema_short_period >= self.ema_long_period:
            raise ValueError(
                f"EMA short_period ({self.ema_short_period}) must be less than long_period ({self.ema_long_period})"
            )
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"MACD fast ({self.macd_fast}) must be less than slow ({self.macd_slow})"
            )
        if self.volume_ema_short >= self.volume_ema_long:
            raise ValueError(
                f"Volume EMA short ({self.volume_ema_short}) must be less than long ({self.volume_ema_long})"
            )
        _require_non_negative("bollinger_std", self.bollinger_std)
        _require_fraction("vote_margin", self.vote_margin)
        _require_weights("Component", self.component_weights)
        _require_weights("Momentum vote", self.vote_weights)

    @property
    def component_weights(self) -> Dict[str, float]:
        return {
            "trend": self.trend_weight,
            "momentum": self.momentum_weight,
            "volume": self.volume_weight,
            "volatility": self.volatility_weight,
        }

    @property
    def vote_weights(self) -> Dict[str, float]:
        return {
            "rsi": self.rsi_vote_weight,
            "macd": self.macd_vote_weight,
            "stochastic": self.stoch_vote_weight,
        }

    def indicators(self) -> TechnicalIndicators:
        """Indicator calculator configured with these periods."""
        return TechnicalIndicators(
            rsi_period=self.rsi_period,
            ema_short_period=self.ema_short_period,
            ema_long_period=self.ema_long_period,
            macd_fast=self.macd_fast,
            macd_slow=self.macd_slow,
            macd_signal=self.macd_signal,
            macd_history=self.macd_history,
            bollinger_period=self.bollinger_period,
            bollinger_std=self.bollinger_std,
            atr_period=self.atr_period,
            adx_period=self.adx_period,
            stoch_period=self.stoch_period,
            stoch_smoothing=self.stoch_smoothing,
            volume_ema_short=self.volume_ema_short,
            volume_ema_long=self.volume_ema_long,
            volatility_window=self.volatility_window,
            periods_per_year=self.periods_per_year,
            momentum_period=self.momentum_period,
            lookback=self.lookback,
        )


@dataclass
class RiskConfig:
    """Market regime detection and confidence rescaling parameters."""
    history_size: int = REGIME_HISTORY_SIZE
    regime_window: int = REGIME_WINDOW
    regime_min_candles: int = REGIME_MIN_CANDLES
    liquidity_window: int = LIQUIDITY_WINDOW
    ideal_volatility: float = IDEAL_VOLATILITY
    shock_sigma: float = SHOCK_SIGMA
    reference_volume: float = REFERENCE_VOLUME

    def __post_init__(self) -> None:
        for name in ("history_size", "regime_window", "regime_min_candles", "liquidity_window"):
            _require_positive_int(name, getattr(self, name))
        if self.regime_min_candles > self.regime_window:
            raise ValueError(
                f"regime_min_candles ({self.regime_min_candles}) must not exceed regime_window ({self.regime_window})"
            )
        if not (math.isfinite(self.ideal_volatility) and self.ideal_volatility > 0):
            raise ValueError(f"ideal_volatility must be > 0, got {self.ideal_volatility}")
        if not (math.isfinite(self.shock_sigma) and self.shock_sigma > 0):
            raise ValueError(f"shock_sigma must be > 0, got {self.shock_sigma}")
        if not (math.isfinite(self.reference_volume) and self.reference_volume > 0):
            raise ValueError(f"reference_volume must be > 0, got {self.reference_volume}")


@dataclass
class SimulatorConfig:
    """Slippage model and replay buffer capacity of the trade simulator."""
    slippage_min: float = SLIPPAGE_MIN  # Fraction of entry price
    slippage_max: float = SLIPPAGE_MAX
    replay_buffer_size: int = REPLAY_BUFFER_SIZE
    min_distance: float = MIN_LEVEL_DISTANCE  # Stop/target must be further than this from entry

    def __post_init__(self) -> None:
        _require_non_negative("slippage_min", self.slippage_min)
        _require_non_negative("slippage_max", self.slippage_max)
        if self.slippage_min > self.slippage_max:
            raise ValueError(
                f"slippage_min ({self.slippage_min}) must not exceed slippage_max ({self.slippage_max})"
            )
        if self.slippage_max >= 1:
            raise ValueError(f"slippage_max must be < 1, got {self.slippage_max}")
        _require_positive_int("replay_buffer_size", self.replay_buffer_size)
        _require_non_negative("min_distance", self.min_distance)


@dataclass
class MonteCarloConfig:
    """Monte Carlo backtest parameters (parametric and empirical modes)."""
    num_paths: int = NUM_PATHS
    initial_balance: float = INITIAL_BALANCE
    risk_free_rate: float = RISK_FREE_RATE  # Annual
    periods_per_year: int = TRADING_DAYS_PER_YEAR
    seed: Optional[int] = None
    max_workers: int = 1

    # Parametric mode
    num_days: int = NUM_DAYS
    trades_per_day: int = TRADES_PER_DAY
    win_rate: float = WIN_RATE
    avg_win: float = AVG_WIN  # Fractional return of a winning trade
    avg_loss: float = AVG_LOSS  # Fractional loss of a losing trade (positive)

    # Empirical mode
    block_size: int = BLOCK_SIZE
    warmup_bars: int = REPLAY_WARMUP_BARS
    min_confidence: float = MIN_CONFIDENCE
    stop_atr_multiple: float = STOP_ATR_MULTIPLE
    risk_reward: float = RISK_REWARD_RATIO
    position_size_pct: float = POSITION_SIZE_PCT
    max_holding_bars: int = MAX_HOLDING_BARS
    use_risk_adjuster: bool = True

    def __post_init__(self) -> None:
        for name in (
            "num_paths", "periods_per_year", "max_workers", "num_days",
            "trades_per_day", "block_size", "warmup_bars", "max_holding_bars",
        ):
            _require_positive_int(name, getattr(self, name))
        if not (math.isfinite(self.initial_balance) and self.initial_balance > 0):
            raise ValueError(f"initial_balance must be > 0, got {self.initial_balance}")
        if not math.isfinite(self.risk_free_rate):
            raise ValueError(f"risk_free_rate must be finite, got {self.risk_free_rate}")
        _require_fraction("win_rate", self.win_rate)
        _require_non_negative("avg_win", self.avg_win)
        _require_fraction("avg_loss", self.avg_loss)
        _require_fraction("min_confidence", self.min_confidence)
        if not (math.isfinite(self.stop_atr_multiple) and self.stop_atr_multiple > 0):
            raise ValueError(f"stop_atr_multiple must be > 0, got {self.stop_atr_multiple}")
        if not (math.isfinite(self.risk_reward) and self.risk_reward > 0):
            raise ValueError(f"risk_reward must be > 0, got {self.risk_reward}")
        if not (0 < self.position_size_pct <= 1):
            raise ValueError(f"position_size_pct must be in (0, 1], got {self.position_size_pct}")
        if self.seed is not None and (not isinstance(self.seed, int) or self.seed < 0):
            raise ValueError(f"seed must be a non-negative integer or None, got {self.seed!r}")


@dataclass
class EngineConfig:
    """Bundle of all configs, as loaded from one YAML file."""
    name: str = "default"
    description: str = ""
    signal: SignalConfig = field(default_factory=SignalConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)
    monte_carlo: MonteCarloConfig = field(default_factory=MonteCarloConfig)
