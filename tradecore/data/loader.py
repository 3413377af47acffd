"""
Candle data store.

CandleStore is the boundary to historical data. CsvCandleStore implements it
over one OHLCV CSV per (symbol, interval) with a Date index column, the same
layout Yahoo Finance downloads are saved in.
"""
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Union

import pandas as pd

from ..shared.types import Candle, DataUnavailableError, candles_from_frame, candles_to_frame, validate_series

logger = logging.getLogger(__name__)

DateLike = Union[str, datetime, pd.Timestamp]

_SAFE_NAME = re.compile(r"[^A-Za-z0-9._=^-]")


class CandleStore(Protocol):
    """Historical data store consumed by the pipeline."""

    def get(
        self,
        symbol: str,
        interval: str,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> List[Candle]:
        ...

    def put(self, symbol: str, interval: str, candles: Sequence[Candle]) -> None:
        ...


def load_frame(
    path: Union[str, Path],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> pd.DataFrame:
    """
    Load an OHLCV CSV with optional (inclusive) date filtering.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    df = pd.read_csv(path, index_col=0, parse_dates=True)
    if not isinstance(df.index, pd.DatetimeIndex):
        df.index = pd.to_datetime(df.index)
    df = df.sort_index()
    df = df[~df.index.duplicated(keep='last')]

    if start is not None:
        df = df[df.index >= pd.to_datetime(start)]
    if end is not None:
        df = df[df.index <= pd.to_datetime(end)]
    return df.dropna(subset=["Close"]) if "Close" in df.columns else df


def load_candles(
    path: Union[str, Path],
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> List[Candle]:
    """Load a validated candle series from an OHLCV CSV."""
    candles = candles_from_frame(load_frame(path, start, end))
    validate_series(candles)
    return candles


class CsvCandleStore:
    """Candle store backed by <root>/<symbol>_<interval>.csv files."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, symbol: str, interval: str) -> Path:
        name = f"{_SAFE_NAME.sub('_', symbol)}_{_SAFE_NAME.sub('_', interval)}.csv"
        return self.root / name

    def get(
        self,
        symbol: str,
        interval: str,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> List[Candle]:
        """
        Load candles for a symbol/interval.

        Raises:
            DataUnavailableError: If nothing is stored for the request
            InvalidSeriesError: If the stored series breaks the candle invariants
        """
        path = self.path_for(symbol, interval)
        if not path.exists():
            raise DataUnavailableError(f"No data stored for {symbol} ({interval}): {path}")
        candles = load_candles(path, start, end)
        if not candles:
            raise DataUnavailableError(f"No {symbol} ({interval}) candles between {start} and {end}")
        logger.debug("Loaded %d candles for %s (%s)", len(candles), symbol, interval)
        return candles

    def put(self, symbol: str, interval: str, candles: Sequence[Candle]) -> None:
        """Merge candles into the stored series (newer rows win on duplicate timestamps)."""
        validate_series(candles)
        path = self.path_for(symbol, interval)
        self.root.mkdir(parents=True, exist_ok=True)

        df = candles_to_frame(candles)
        if path.exists():
            cached = load_frame(path)
            df = pd.concat([cached, df]).sort_index()
            df = df[~df.index.duplicated(keep='last')]
        df.index.name = "Date"
        df.to_csv(path)
        logger.info("Stored %d candles for %s (%s) in %s", len(df), symbol, interval, path)

    def symbols(self) -> List[str]:
        """Sorted '<symbol>_<interval>' stems available in the store."""
        if not self.root.exists():
            return []
        return sorted(p.stem for p in self.root.glob("*.csv"))
