"""
Market regime measurements.

Regime score, liquidity and shock detection used by the risk adjuster, plus a
label-based regime classification (trend / volatility / momentum with
support and resistance levels).
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from ..indicators import technical as ta
from ..shared.types import Candle
from ..shared.defaults import (
    IDEAL_VOLATILITY, LIQUIDITY_WINDOW, REFERENCE_VOLUME,
    REGIME_MIN_CANDLES, REGIME_WINDOW, SHOCK_SIGMA,
)

NEUTRAL_REGIME_SCORE = 0.5
MIN_REGIME_SCORE = 0.1
MAX_REGIME_SCORE = 1.0

# Regime classification thresholds
CLASSIFY_MA_PERIODS = (20, 50, 200)
HIGH_VOLATILITY = 0.02
LOW_VOLATILITY = 0.01
CLASSIFY_VOLATILITY_WINDOW = 20
CLASSIFY_MOMENTUM_WINDOW = 14


@dataclass(frozen=True)
class MarketRegimeSnapshot:
    """Market conditions at one bar, kept in the risk adjuster's rolling history."""
    volatility: float
    trend: float
    volume: float
    liquidity: float
    regime_score: float = NEUTRAL_REGIME_SCORE


class TrendRegime(Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    SIDEWAYS = "sideways"


class VolatilityRegime(Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class MomentumRegime(Enum):
    STRONG = "strong"
    WEAK = "weak"


@dataclass(frozen=True)
class RegimeClassification:
    trend: TrendRegime
    volatility: VolatilityRegime
    momentum: MomentumRegime
    support: float
    resistance: float


def rms_volatility(closes: Sequence[float]) -> float:
    """Root mean square of log returns (per bar, not annualized)."""
    returns = ta.log_returns(closes)
    if returns.size == 0:
        return 0.0
    value = math.sqrt(float(np.mean(returns ** 2)))
    return value if math.isfinite(value) else 0.0


def normalized_volatility(volatility: float, ideal: float = IDEAL_VOLATILITY) -> float:
    """1 at the ideal volatility, falling linearly to 0 at 0 and at twice the ideal."""
    return max(0.0, 1 - abs(volatility - ideal) / ideal)


def trend_alignment(closes: Sequence[float]) -> float:
    """min(1, |SMA20 - SMA50| / SMA50); 0 when SMA50 is not positive."""
    sma50 = ta.sma(closes, 50)
    if sma50 <= 0:
        return 0.0
    return min(1.0, abs(ta.sma(closes, 20) - sma50) / sma50)


def volume_consistency(volumes: Sequence[float]) -> float:
    """1 / (1 + coefficient of variation); 0 when there is no volume."""
    arr = np.asarray(volumes, dtype=float)
    if arr.size == 0:
        return 0.0
    mean = float(arr.mean())
    if not math.isfinite(mean) or mean <= 0:
        return 0.0
    return 1 / (1 + float(arr.std()) / mean)


def regime_score(
    candles: Sequence[Candle],
    window: int = REGIME_WINDOW,
    min_candles: int = REGIME_MIN_CANDLES,
    ideal_volatility: float = IDEAL_VOLATILITY,
) -> float:
    """
    Favorability of current conditions, in [0.1, 1].

    0.4 * normalized volatility + 0.4 * trend alignment + 0.2 * volume
    consistency over the trailing `window` candles; 0.5 with fewer than
    `min_candles`.
    """
    if len(candles) < min_candles:
        return NEUTRAL_REGIME_SCORE
    recent = candles[-window:]
    closes = ta.closes_of(recent)
    score = (
        0.4 * normalized_volatility(rms_volatility(closes), ideal_volatility)
        + 0.4 * trend_alignment(closes)
        + 0.2 * volume_consistency(ta.volumes_of(recent))
    )
    if not math.isfinite(score):
        return NEUTRAL_REGIME_SCORE
    return max(MIN_REGIME_SCORE, min(score, MAX_REGIME_SCORE))


def liquidity(
    candles: Sequence[Candle],
    window: int = LIQUIDITY_WINDOW,
    reference_volume: float = REFERENCE_VOLUME,
) -> float:
    """
    1 / (1 + spread * 100) * min(1, avgVolume / reference_volume) over the
    trailing window, with spread the mean (high - low) / close.
    """
    recent = [c for c in candles[-window:] if c.close > 0]
    if not recent:
        return 0.0
    spread = float(np.mean([(c.high - c.low) / c.close for c in recent]))
    avg_volume = float(np.mean([c.volume for c in recent]))
    value = 1 / (1 + max(spread, 0.0) * 100) * min(1.0, avg_volume / reference_volume)
    return value if math.isfinite(value) else 0.0


def is_shock(
    candles: Sequence[Candle],
    window: int = REGIME_WINDOW,
    shock_sigma: float = SHOCK_SIGMA,
) -> bool:
    """True when the latest log return exceeds shock_sigma times the RMS of the preceding ones."""
    returns = ta.log_returns(ta.closes_of(candles[-(window + 1):]))
    if returns.size < 2:
        return False
    latest = abs(float(returns[-1]))
    baseline = math.sqrt(float(np.mean(returns[:-1] ** 2)))
    if baseline == 0:
        return latest > 0
    return latest > shock_sigma * baseline


def classify_regime(candles: Sequence[Candle]) -> RegimeClassification:
    """
    Label the current regime.

    Trend is bullish when SMA20 > SMA50 > SMA200 and bearish on the reverse
    ordering; volatility is the RMS of 20 simple returns (high above 2%, low
    below 1%); momentum is strong when the last 14 returns sum positive.
    Support/resistance are the lowest low and highest high of the series.
    """
    if not candles:
        return RegimeClassification(
            TrendRegime.SIDEWAYS, VolatilityRegime.LOW, MomentumRegime.WEAK, 0.0, 0.0
        )
    closes = ta.closes_of(candles)
    short_ma, mid_ma, long_ma = (ta.sma(closes, p) for p in CLASSIFY_MA_PERIODS)
    if short_ma > mid_ma > long_ma:
        trend = TrendRegime.BULLISH
    elif short_ma < mid_ma < long_ma:
        trend = TrendRegime.BEARISH
    else:
        trend = TrendRegime.SIDEWAYS

    def simple_returns(window: int) -> np.ndarray:
        recent = closes[-(window + 1):]
        with np.errstate(divide="ignore", invalid="ignore"):
            returns = np.diff(recent) / recent[:-1]
        return returns[np.isfinite(returns)]

    vol_returns = simple_returns(CLASSIFY_VOLATILITY_WINDOW)
    volatility = math.sqrt(float(np.mean(vol_returns ** 2))) if vol_returns.size else 0.0
    if volatility > HIGH_VOLATILITY:
        volatility_regime = VolatilityRegime.HIGH
    elif volatility < LOW_VOLATILITY:
        volatility_regime = VolatilityRegime.LOW
    else:
        volatility_regime = VolatilityRegime.NORMAL

    momentum_sum = float(simple_returns(CLASSIFY_MOMENTUM_WINDOW).sum())
    momentum_regime = MomentumRegime.STRONG if momentum_sum > 0 else MomentumRegime.WEAK

    return RegimeClassification(
        trend=trend,
        volatility=volatility_regime,
        momentum=momentum_regime,
        support=min(c.low for c in candles),
        resistance=max(c.high for c in candles),
    )
