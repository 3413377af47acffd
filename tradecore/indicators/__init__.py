"""
Indicator calculation module.

Provides all trading indicators as total functions over bounded windows
(RSI, EMA/SMA, MACD, Bollinger Bands, ATR, ADX, Stochastic, VWAP, OBV,
volume trend, historical volatility, momentum) and per-bar snapshots.
"""
from .technical import (
    BollingerBands,
    MacdResult,
    StochasticResult,
    adx,
    adx_series,
    atr,
    bollinger_bands,
    ema,
    ema_series,
    historical_volatility,
    log_returns,
    macd,
    momentum,
    obv,
    rsi,
    sma,
    stochastic,
    trend_strength,
    true_ranges,
    volume_trend,
    vwap,
)
from .snapshot import IndicatorSnapshot, TechnicalIndicators, compute_snapshot

__all__ = [
    'BollingerBands',
    'MacdResult',
    'StochasticResult',
    'adx',
    'adx_series',
    'atr',
    'bollinger_bands',
    'ema',
    'ema_series',
    'historical_volatility',
    'log_returns',
    'macd',
    'momentum',
    'obv',
    'rsi',
    'sma',
    'stochastic',
    'trend_strength',
    'true_ranges',
    'volume_trend',
    'vwap',
    'IndicatorSnapshot',
    'TechnicalIndicators',
    'compute_snapshot',
]
