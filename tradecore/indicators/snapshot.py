"""
Per-bar indicator snapshots.

TechnicalIndicators holds the indicator periods and evaluates every indicator
of technical.py over the trailing window (at most MAX_LOOKBACK bars) ending at
a bar. The resulting IndicatorSnapshot is immutable.
"""
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from . import technical as ta
from .technical import BollingerBands, MacdResult, StochasticResult
from ..shared.types import Candle, candles_from_frame
from ..shared.defaults import (
    MAX_LOOKBACK,
    RSI_PERIOD, RSI_NEUTRAL,
    EMA_SHORT_PERIOD, EMA_LONG_PERIOD,
    MACD_FAST, MACD_SLOW, MACD_SIGNAL, MACD_HISTORY,
    BOLLINGER_PERIOD, BOLLINGER_STD,
    ATR_PERIOD, ADX_PERIOD,
    STOCH_PERIOD, STOCH_SMOOTHING,
    VOLUME_EMA_SHORT, VOLUME_EMA_LONG,
    VOLATILITY_WINDOW, TRADING_DAYS_PER_YEAR,
    MOMENTUM_PERIOD,
)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """All indicator values for one bar."""
    timestamp: Optional[pd.Timestamp] = None
    close: float = 0.0
    volume: float = 0.0
    bars_used: int = 0

    rsi: float = RSI_NEUTRAL
    macd: MacdResult = field(default_factory=MacdResult)
    bollinger: BollingerBands = field(default_factory=BollingerBands)
    atr: float = 0.0
    adx: float = 0.0
    trend_strength: float = 0.0
    stochastic: StochasticResult = field(default_factory=StochasticResult)
    vwap: float = 0.0
    obv: float = 0.0
    volume_trend: float = 1.0
    historical_volatility: float = 0.0
    momentum: float = 0.0
    ema_short: float = 0.0
    ema_long: float = 0.0
    sma20: float = 0.0

    @classmethod
    def empty(cls) -> "IndicatorSnapshot":
        """Snapshot of an empty series: every indicator at its default."""
        return cls()

    def to_dict(self) -> Dict[str, object]:
        """Flat dict (nested results become prefixed columns)."""
        flat = {}
        for key, value in asdict(self).items():
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    flat[f"{key}_{sub_key}"] = sub_value
            else:
                flat[key] = value
        return flat


class TechnicalIndicators:
    """Calculates indicator snapshots from candle windows."""

    def __init__(
        self,
        rsi_period: int = RSI_PERIOD,
        ema_short_period: int = EMA_SHORT_PERIOD,
        ema_long_period: int = EMA_LONG_PERIOD,
        macd_fast: int = MACD_FAST,
        macd_slow: int = MACD_SLOW,
        macd_signal: int = MACD_SIGNAL,
        macd_history: int = MACD_HISTORY,
        bollinger_period: int = BOLLINGER_PERIOD,
        bollinger_std: float = BOLLINGER_STD,
        atr_period: int = ATR_PERIOD,
        adx_period: int = ADX_PERIOD,
        stoch_period: int = STOCH_PERIOD,
        stoch_smoothing: int = STOCH_SMOOTHING,
        volume_ema_short: int = VOLUME_EMA_SHORT,
        volume_ema_long: int = VOLUME_EMA_LONG,
        volatility_window: int = VOLATILITY_WINDOW,
        periods_per_year: int = TRADING_DAYS_PER_YEAR,
        momentum_period: int = MOMENTUM_PERIOD,
        lookback: int = MAX_LOOKBACK,
    ):
        """
        Initialize indicator calculator.

        Args:
            lookback: Maximum number of trailing bars evaluated per snapshot.
                Bounds the work per bar regardless of series length.
            Other arguments: indicator periods (defaults from shared.defaults).
        """
        self.rsi_period = rsi_period
        self.ema_short_period = ema_short_period
        self.ema_long_period = ema_long_period
        self.macd_fast = macd_fast
        self.macd_slow = macd_slow
        self.macd_signal = macd_signal
        self.macd_history = macd_history
        self.bollinger_period = bollinger_period
        self.bollinger_std = bollinger_std
        self.atr_period = atr_period
        self.adx_period = adx_period
        self.stoch_period = stoch_period
        self.stoch_smoothing = stoch_smoothing
        self.volume_ema_short = volume_ema_short
        self.volume_ema_long = volume_ema_long
        self.volatility_window = volatility_window
        self.periods_per_year = periods_per_year
        self.momentum_period = momentum_period
        self.lookback = max(1, lookback)

    def snapshot(self, candles: Sequence[Candle], index: Optional[int] = None) -> IndicatorSnapshot:
        """
        Compute the snapshot for bar `index` (default: last bar).

        Only bars up to and including `index` are used, so the result never
        sees the future.
        """
        n = len(candles)
        if n == 0:
            return IndicatorSnapshot.empty()
        if index is None:
            index = n - 1
        elif index < 0:
            index += n
        if not 0 <= index < n:
            return IndicatorSnapshot.empty()

        window = list(candles[max(0, index + 1 - self.lookback):index + 1])
        closes = ta.closes_of(window)
        volumes = ta.volumes_of(window)
        last = window[-1]

        return IndicatorSnapshot(
            timestamp=last.timestamp,
            close=last.close,
            volume=last.volume,
            bars_used=len(window),
            rsi=ta.rsi(closes, self.rsi_period),
            macd=ta.macd(closes, self.macd_fast, self.macd_slow, self.macd_signal, self.macd_history),
            bollinger=ta.bollinger_bands(closes, self.bollinger_period, self.bollinger_std),
            atr=ta.atr(window, self.atr_period),
            adx=ta.adx(window, self.adx_period),
            trend_strength=ta.trend_strength(window, self.adx_period),
            stochastic=ta.stochastic(window, self.stoch_period, self.stoch_smoothing),
            vwap=ta.vwap(window),
            obv=ta.obv(window),
            volume_trend=ta.volume_trend(volumes, self.volume_ema_short, self.volume_ema_long),
            historical_volatility=ta.historical_volatility(closes, self.volatility_window, self.periods_per_year),
            momentum=ta.momentum(closes, self.momentum_period),
            ema_short=ta.ema(closes, self.ema_short_period),
            ema_long=ta.ema(closes, self.ema_long_period),
            sma20=ta.sma(closes, self.bollinger_period),
        )

    def calculate_all(
        self,
        data: Union[Sequence[Candle], pd.DataFrame],
        max_workers: Optional[int] = None,
    ) -> pd.DataFrame:
        """
        Calculate a snapshot for every bar and return them as a DataFrame.

        Args:
            data: Candles or an OHLCV DataFrame
            max_workers: Thread pool size (default: cpu_count); 1 = sequential.

        Returns:
            DataFrame indexed by timestamp, one column per indicator value
        """
        candles = candles_from_frame(data) if isinstance(data, pd.DataFrame) else list(data)
        if not candles:
            return pd.DataFrame()

        workers = max(1, max_workers) if max_workers is not None else (os.cpu_count() or 1)
        indices = range(len(candles))
        if workers <= 1:
            snapshots: List[IndicatorSnapshot] = [self.snapshot(candles, i) for i in indices]
        else:
            # map() keeps bar order regardless of completion order
            with ThreadPoolExecutor(max_workers=workers) as executor:
                snapshots = list(executor.map(lambda i: self.snapshot(candles, i), indices))

        rows = [s.to_dict() for s in snapshots]
        df = pd.DataFrame(rows)
        df.index = pd.DatetimeIndex(df.pop("timestamp"), name="Date")
        return df


def compute_snapshot(candles: Sequence[Candle], index: Optional[int] = None) -> IndicatorSnapshot:
    """Snapshot with default indicator periods."""
    return TechnicalIndicators().snapshot(candles, index)
