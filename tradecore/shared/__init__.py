"""
Shared types and defaults for the trading core.

This module provides:
- Candle, Direction, TradeStatus and the composed Signal
- Centralized default values for indicator, risk and simulation parameters
"""
from .types import (
    Candle,
    ComponentScore,
    ComponentScores,
    DataUnavailableError,
    Direction,
    InvalidSeriesError,
    Signal,
    TradeStatus,
    candles_from_frame,
    candles_to_frame,
    validate_series,
)

__all__ = [
    'Candle',
    'ComponentScore',
    'ComponentScores',
    'DataUnavailableError',
    'Direction',
    'InvalidSeriesError',
    'Signal',
    'TradeStatus',
    'candles_from_frame',
    'candles_to_frame',
    'validate_series',
]
