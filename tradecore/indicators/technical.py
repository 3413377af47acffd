"""
Technical indicators over bounded candle windows.

One implementation per indicator, reused by the signal composer, the risk
adjuster and the Monte Carlo replay. Every function is total: when the
history is too short (or degenerate) it returns the documented default
instead of raising or producing NaN.

EMAs are seeded from the simple average of their first `period` values.
"""
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..shared.types import Candle
from ..shared.defaults import (
    RSI_PERIOD, RSI_NEUTRAL,
    MACD_FAST, MACD_SLOW, MACD_SIGNAL, MACD_HISTORY,
    BOLLINGER_PERIOD, BOLLINGER_STD,
    ATR_PERIOD, ADX_PERIOD,
    STOCH_PERIOD, STOCH_SMOOTHING,
    VOLUME_EMA_SHORT, VOLUME_EMA_LONG,
    VOLATILITY_WINDOW, TRADING_DAYS_PER_YEAR,
    MOMENTUM_PERIOD,
)

# Relative span below which a MACD history is treated as flat
_FLAT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class MacdResult:
    """MACD normalized to [-1, 1]; raw_line is the unnormalized EMA difference."""
    line: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0
    raw_line: float = 0.0


@dataclass(frozen=True)
class BollingerBands:
    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0
    bandwidth: float = 0.0


@dataclass(frozen=True)
class StochasticResult:
    k: float = 50.0
    d: float = 50.0


def _finite(value: float, default: float) -> float:
    value = float(value)
    return value if math.isfinite(value) else default


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float).reshape(-1)


def closes_of(candles: Sequence[Candle]) -> np.ndarray:
    return np.array([c.close for c in candles], dtype=float)


def volumes_of(candles: Sequence[Candle]) -> np.ndarray:
    return np.array([c.volume for c in candles], dtype=float)


def _recursive_average(values: np.ndarray, period: int, alpha: float) -> np.ndarray:
    """Seed with the mean of the first `period` values, then x*alpha + prev*(1-alpha)."""
    if period < 1 or values.size < period:
        return np.empty(0)
    out = np.empty(values.size - period + 1)
    out[0] = values[:period].mean()
    for i, value in enumerate(values[period:], start=1):
        out[i] = value * alpha + out[i - 1] * (1 - alpha)
    return out


def ema_series(values: Sequence[float], period: int) -> np.ndarray:
    """
    EMA values from bar `period - 1` onward (empty when history is too short).

    alpha = 2 / (period + 1), seeded from the SMA of the first `period` values.
    """
    return _recursive_average(_as_array(values), period, 2.0 / (period + 1))


def wilder_smooth(values: Sequence[float], period: int) -> np.ndarray:
    """Wilder smoothing (alpha = 1 / period), SMA-seeded. Empty when too short."""
    return _recursive_average(_as_array(values), period, 1.0 / period if period > 0 else 0.0)


def sma(values: Sequence[float], period: int) -> float:
    """Mean of the last `period` values (of what is available; 0.0 when empty)."""
    arr = _as_array(values)
    if arr.size == 0 or period < 1:
        return 0.0
    return _finite(arr[-period:].mean(), 0.0)


def ema(values: Sequence[float], period: int) -> float:
    """Latest EMA value; the last value when history is shorter than `period`."""
    series = ema_series(values, period)
    if series.size:
        return _finite(series[-1], 0.0)
    arr = _as_array(values)
    return _finite(arr[-1], 0.0) if arr.size else 0.0


def rsi(closes: Sequence[float], period: int = RSI_PERIOD) -> float:
    """
    Relative Strength Index with Wilder-smoothed average gain/loss.

    RSI = 100 - 100 / (1 + avgGain / avgLoss); avgLoss == 0 gives 100 when
    there was any gain. No movement or fewer than period + 1 closes gives 50.
    """
    arr = _as_array(closes)
    if period < 1 or arr.size < period + 1:
        return RSI_NEUTRAL
    deltas = np.diff(arr)
    avg_gain = wilder_smooth(np.clip(deltas, 0, None), period)[-1]
    avg_loss = wilder_smooth(np.clip(-deltas, 0, None), period)[-1]
    if not (math.isfinite(avg_gain) and math.isfinite(avg_loss)):
        return RSI_NEUTRAL
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else RSI_NEUTRAL
    value = 100 - 100 / (1 + avg_gain / avg_loss)
    return min(100.0, max(0.0, _finite(value, RSI_NEUTRAL)))


def _normalize_history(history: np.ndarray) -> np.ndarray:
    """Scale to [-1, 1] against the window's min/max; a flat window maps to 0."""
    lo, hi = float(history.min()), float(history.max())
    span = hi - lo
    if not math.isfinite(span) or span <= _FLAT_TOLERANCE * max(1.0, abs(hi), abs(lo)):
        return np.zeros_like(history)
    return 2 * (history - lo) / span - 1


def macd(
    closes: Sequence[float],
    fast: int = MACD_FAST,
    slow: int = MACD_SLOW,
    signal: int = MACD_SIGNAL,
    history: int = MACD_HISTORY,
) -> MacdResult:
    """
    MACD normalized against its trailing history.

    raw = EMA(fast) - EMA(slow); the last `history` raw values are scaled to
    [-1, 1] by their min/max; signal = EMA(signal) of the normalized history;
    histogram = line - signal. Fewer than `slow` closes gives all zeros.
    """
    arr = _as_array(closes)
    if arr.size < max(fast, slow):
        return MacdResult()
    fast_ema = ema_series(arr, fast)
    slow_ema = ema_series(arr, slow)
    raw = fast_ema[slow - fast:] - slow_ema
    if not np.all(np.isfinite(raw[-history:])):
        return MacdResult()
    normalized = _normalize_history(raw[-history:])
    line = float(normalized[-1])
    signal_value = ema(normalized, signal)
    return MacdResult(
        line=line,
        signal=signal_value,
        histogram=line - signal_value,
        raw_line=float(raw[-1]),
    )


def bollinger_bands(
    closes: Sequence[float],
    period: int = BOLLINGER_PERIOD,
    num_std: float = BOLLINGER_STD,
) -> BollingerBands:
    """middle = SMA(period), upper/lower = middle +/- num_std*sigma, bandwidth = num_std*sigma/middle."""
    arr = _as_array(closes)
    if arr.size == 0:
        return BollingerBands()
    last = _finite(arr[-1], 0.0)
    if arr.size < period:
        return BollingerBands(upper=last, middle=last, lower=last, bandwidth=0.0)
    window = arr[-period:]
    middle = _finite(window.mean(), last)
    sigma = _finite(window.std(), 0.0)
    bandwidth = num_std * sigma / middle if middle != 0 else 0.0
    return BollingerBands(
        upper=middle + num_std * sigma,
        middle=middle,
        lower=middle - num_std * sigma,
        bandwidth=_finite(bandwidth, 0.0),
    )


def true_ranges(candles: Sequence[Candle]) -> np.ndarray:
    """True range of every bar that has a predecessor (length n - 1)."""
    if len(candles) < 2:
        return np.empty(0)
    high = np.array([c.high for c in candles], dtype=float)
    low = np.array([c.low for c in candles], dtype=float)
    prev_close = closes_of(candles)[:-1]
    high, low = high[1:], low[1:]
    return np.maximum.reduce([high - low, np.abs(high - prev_close), np.abs(low - prev_close)])


def directional_movement(candles: Sequence[Candle]):
    """(+DM, -DM) arrays of length n - 1."""
    if len(candles) < 2:
        return np.empty(0), np.empty(0)
    high = np.array([c.high for c in candles], dtype=float)
    low = np.array([c.low for c in candles], dtype=float)
    up_move = high[1:] - high[:-1]
    down_move = low[:-1] - low[1:]
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)
    return plus_dm, minus_dm


def atr(candles: Sequence[Candle], period: int = ATR_PERIOD) -> float:
    """Wilder-smoothed Average True Range; mean TR while history is shorter than period."""
    tr = true_ranges(candles)
    if tr.size == 0:
        return 0.0
    if tr.size < period:
        return _finite(tr.mean(), 0.0)
    return _finite(wilder_smooth(tr, period)[-1], 0.0)


def adx_series(candles: Sequence[Candle], period: int = ADX_PERIOD) -> np.ndarray:
    """
    ADX values for every bar once 2 * period bars are available.

    TR, +DM and -DM are Wilder-smoothed; DX = |+DI - -DI| / (+DI + -DI) * 100;
    ADX is the Wilder smoothing of the DX series. Zero TR or DI sum gives DX 0.
    """
    tr = true_ranges(candles)
    if period < 1 or tr.size < period:
        return np.empty(0)
    plus_dm, minus_dm = directional_movement(candles)
    s_tr = wilder_smooth(tr, period)
    s_plus = wilder_smooth(plus_dm, period)
    s_minus = wilder_smooth(minus_dm, period)
    with np.errstate(divide="ignore", invalid="ignore"):
        plus_di = np.where(s_tr > 0, 100 * s_plus / s_tr, 0.0)
        minus_di = np.where(s_tr > 0, 100 * s_minus / s_tr, 0.0)
        di_sum = plus_di + minus_di
        dx = np.where(di_sum > 0, 100 * np.abs(plus_di - minus_di) / di_sum, 0.0)
    dx = np.nan_to_num(dx, nan=0.0, posinf=0.0, neginf=0.0)
    return wilder_smooth(dx, period)


def adx(candles: Sequence[Candle], period: int = ADX_PERIOD) -> float:
    """Latest ADX in [0, 100]; 0.0 with fewer than 2 * period bars."""
    series = adx_series(candles, period)
    if series.size == 0:
        return 0.0
    return min(100.0, max(0.0, _finite(series[-1], 0.0)))


def trend_strength(candles: Sequence[Candle], period: int = ADX_PERIOD) -> float:
    """
    Directional imbalance over the last `period` bars, in [0, 1].

    |+DI - -DI| / (+DI + -DI) with DI = mean DM / ATR and ATR = EMA of the true
    range. atr == 0 (a flat market) gives 0.
    """
    if period < 1 or len(candles) < period + 1:
        return 0.0
    window = candles[-(period + 1):]
    average_range = ema(true_ranges(window), period)
    if not math.isfinite(average_range) or average_range <= 0:
        return 0.0
    plus_dm, minus_dm = directional_movement(window)
    plus_di = plus_dm.mean() / average_range
    minus_di = minus_dm.mean() / average_range
    di_sum = plus_di + minus_di
    if not math.isfinite(di_sum) or di_sum <= 0:
        return 0.0
    return min(1.0, _finite(abs(plus_di - minus_di) / di_sum, 0.0))


def stochastic(
    candles: Sequence[Candle],
    period: int = STOCH_PERIOD,
    smoothing: int = STOCH_SMOOTHING,
) -> StochasticResult:
    """
    Stochastic oscillator.

    %K = (close - lowestLow) / (highestHigh - lowestLow) * 100 over `period`
    bars; %D = mean of the last `smoothing` %K values. A zero range gives
    %K = 50; fewer than `period` bars gives k = d = 50.
    """
    n = len(candles)
    if period < 1 or n < period:
        return StochasticResult()
    k_values = []
    for end in range(max(period, n - max(smoothing, 1) + 1), n + 1):
        window = candles[end - period:end]
        highest = max(c.high for c in window)
        lowest = min(c.low for c in window)
        span = highest - lowest
        if not math.isfinite(span) or span <= 0:
            k_values.append(50.0)
            continue
        k = (window[-1].close - lowest) / span * 100
        k_values.append(min(100.0, max(0.0, _finite(k, 50.0))))
    return StochasticResult(k=k_values[-1], d=float(np.mean(k_values)))


def vwap(candles: Sequence[Candle]) -> float:
    """Sum(typical price * volume) / Sum(volume); last close when there is no volume."""
    if not candles:
        return 0.0
    volumes = volumes_of(candles)
    total = volumes.sum()
    if not math.isfinite(total) or total <= 0:
        return _finite(candles[-1].close, 0.0)
    typical = np.array([c.typical_price for c in candles], dtype=float)
    return _finite((typical * volumes).sum() / total, candles[-1].close)


def obv(candles: Sequence[Candle]) -> float:
    """On-balance volume: cumulative volume signed by close-to-close direction, from 0."""
    if len(candles) < 2:
        return 0.0
    direction = np.sign(np.diff(closes_of(candles)))
    return _finite((direction * volumes_of(candles)[1:]).sum(), 0.0)


def volume_trend(
    volumes: Sequence[float],
    short_period: int = VOLUME_EMA_SHORT,
    long_period: int = VOLUME_EMA_LONG,
) -> float:
    """EMA(short) / EMA(long) of volume; 1.0 when the long EMA is zero or there is no data."""
    arr = _as_array(volumes)
    if arr.size == 0:
        return 1.0
    long_ema = ema(arr, long_period)
    if long_ema <= 0:
        return 1.0
    return _finite(ema(arr, short_period) / long_ema, 1.0)


def log_returns(closes: Sequence[float]) -> np.ndarray:
    """Log returns between consecutive positive closes."""
    arr = _as_array(closes)
    arr = arr[np.isfinite(arr) & (arr > 0)]
    if arr.size < 2:
        return np.empty(0)
    return np.diff(np.log(arr))


def historical_volatility(
    closes: Sequence[float],
    window: int = VOLATILITY_WINDOW,
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """Population stdev of the last `window` log returns, annualized by sqrt(periods_per_year)."""
    returns = log_returns(_as_array(closes)[-(window + 1):])
    if returns.size < 2:
        return 0.0
    return _finite(returns.std() * math.sqrt(periods_per_year), 0.0)


def momentum(closes: Sequence[float], period: int = MOMENTUM_PERIOD) -> float:
    """Rate of change over `period` bars, in percent."""
    arr = _as_array(closes)
    if arr.size <= period:
        return 0.0
    reference = arr[-period - 1]
    if reference == 0:
        return 0.0
    return _finite((arr[-1] - reference) / reference * 100, 0.0)
