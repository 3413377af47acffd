"""
Data module.

Candle store boundary, CSV-backed store and Yahoo Finance downloads.
"""
from .loader import CandleStore, CsvCandleStore, load_candles, load_frame

__all__ = [
    'CandleStore',
    'CsvCandleStore',
    'load_candles',
    'load_frame',
]
