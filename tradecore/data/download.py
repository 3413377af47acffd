"""Download historical candles from Yahoo Finance into a candle store."""
import logging
import warnings
from typing import Dict, List, Optional

import pandas as pd
import yfinance as yf

from .loader import CandleStore, DateLike
from ..shared.types import Candle, DataUnavailableError, candles_from_frame

# Suppress yfinance's pandas deprecation warnings
warnings.filterwarnings('ignore', message='.*Timestamp.utcnow.*')

logger = logging.getLogger(__name__)

# Common instruments: name -> (yahoo_ticker, description)
INSTRUMENTS: Dict[str, tuple] = {
    "sp500": ("^GSPC", "S&P 500 Index - US large cap"),
    "nasdaq": ("QQQ", "Invesco QQQ Trust - NASDAQ-100 ETF"),
    "djia": ("^DJI", "Dow Jones Industrial Average - US blue chips"),
    "dax": ("^GDAXI", "DAX 40 Index - German blue chips"),
    "gold_physical": ("GLD", "SPDR Gold Shares - Physically backed"),
    "eurusd": ("EURUSD=X", "EUR/USD Exchange Rate"),
    "bitcoin": ("BTC-USD", "Bitcoin / US Dollar"),
}


def resolve_ticker(symbol: str) -> str:
    """Map an instrument name to its Yahoo ticker; other symbols are used as-is."""
    if symbol in INSTRUMENTS:
        return INSTRUMENTS[symbol][0]
    return symbol


def fetch_candles(
    symbol: str,
    interval: str = "1d",
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> List[Candle]:
    """
    Download candles for one symbol.

    Raises:
        DataUnavailableError: If Yahoo Finance returns no rows
    """
    ticker = resolve_ticker(symbol)
    logger.info("Downloading %s (%s) interval=%s start=%s end=%s", symbol, ticker, interval, start, end)
    df = yf.download(
        ticker,
        start=pd.Timestamp(start).strftime('%Y-%m-%d') if start is not None else None,
        end=pd.Timestamp(end).strftime('%Y-%m-%d') if end is not None else None,
        interval=interval,
        progress=False,
        auto_adjust=False,
    )
    if df is None or df.empty:
        raise DataUnavailableError(f"No data returned for {symbol} ({ticker})")

    # Flatten multi-level columns if present (yfinance sometimes returns these)
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)
    if df.index.tz is not None:
        df.index = df.index.tz_localize(None)
    df = df[~df.index.duplicated(keep='last')].sort_index().dropna(subset=["Close"])
    return candles_from_frame(df)


def download_candles(
    store: CandleStore,
    symbol: str,
    interval: str = "1d",
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> int:
    """
    Download candles and write them into `store`.

    Returns:
        Number of candles downloaded
    """
    candles = fetch_candles(symbol, interval, start, end)
    store.put(symbol, interval, candles)
    logger.info("Saved %d candles for %s (%s to %s)", len(candles), symbol,
                candles[0].timestamp.date(), candles[-1].timestamp.date())
    return len(candles)
