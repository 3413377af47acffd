"""
Shared types for the signal, risk and simulation modules.

Candles, directions and the composed Signal live here so every layer
(indicators, composer, risk adjuster, simulator) agrees on one definition.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, List, Optional, Sequence

import pandas as pd


class InvalidSeriesError(ValueError):
    """Raised by the outer layer when a candle series breaks its invariants."""


class DataUnavailableError(LookupError):
    """Raised when the candle store has no data for a request."""


class Direction(Enum):
    """Directional call of a signal or trade."""
    LONG = "long"
    SHORT = "short"
    NEUTRAL = "neutral"

    @property
    def sign(self) -> int:
        """+1 for LONG, -1 for SHORT, 0 for NEUTRAL."""
        if self is Direction.LONG:
            return 1
        if self is Direction.SHORT:
            return -1
        return 0


class TradeStatus(Enum):
    """Lifecycle state of a simulated trade."""
    FILLED = "filled"  # Entered, neither stop nor target reached
    CLOSED = "closed"  # Take-profit reached
    STOPPED = "stopped"  # Stop-loss reached


@dataclass(frozen=True)
class Candle:
    """One OHLCV bar."""
    timestamp: pd.Timestamp
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3


def validate_series(candles: Sequence[Candle]) -> None:
    """
    Check the ordering and volume invariants of a candle series.

    Raises:
        InvalidSeriesError: If timestamps are not strictly increasing or a
            volume is negative / non-finite.
    """
    previous = None
    for i, candle in enumerate(candles):
        if not math.isfinite(candle.volume) or candle.volume < 0:
            raise InvalidSeriesError(f"Candle {i} has invalid volume {candle.volume}")
        if previous is not None and candle.timestamp <= previous.timestamp:
            raise InvalidSeriesError(
                f"Timestamps must be strictly increasing: {previous.timestamp} -> {candle.timestamp} at index {i}"
            )
        previous = candle


def candles_from_frame(df: pd.DataFrame) -> List[Candle]:
    """
    Convert an OHLCV DataFrame (Open/High/Low/Close[/Volume], datetime index)
    to a list of candles. Missing Open/High/Low fall back to Close.
    """
    if "Close" not in df.columns:
        raise InvalidSeriesError(f"DataFrame needs a 'Close' column, got {list(df.columns)}")
    close = df["Close"].astype(float)
    open_ = df["Open"].astype(float) if "Open" in df.columns else close
    high = df["High"].astype(float) if "High" in df.columns else close
    low = df["Low"].astype(float) if "Low" in df.columns else close
    volume = df["Volume"].astype(float).fillna(0.0) if "Volume" in df.columns else pd.Series(0.0, index=df.index)
    return [
        Candle(
            timestamp=pd.Timestamp(ts),
            open=float(o),
            high=float(h),
            low=float(l),
            close=float(c),
            volume=float(v),
        )
        for ts, o, h, l, c, v in zip(df.index, open_, high, low, close, volume)
    ]


def candles_to_frame(candles: Iterable[Candle]) -> pd.DataFrame:
    """Convert candles back to the OHLCV DataFrame layout used by the CSV store."""
    candles = list(candles)
    df = pd.DataFrame(
        {
            "Open": [c.open for c in candles],
            "High": [c.high for c in candles],
            "Low": [c.low for c in candles],
            "Close": [c.close for c in candles],
            "Volume": [c.volume for c in candles],
        },
        index=pd.DatetimeIndex([c.timestamp for c in candles], name="Date"),
    )
    return df


@dataclass(frozen=True)
class ComponentScore:
    """Value in [0, 1] and directional call of one signal component."""
    value: float
    direction: Direction


@dataclass(frozen=True)
class ComponentScores:
    """The four weighted components behind a Signal."""
    trend: ComponentScore
    momentum: ComponentScore
    volume: ComponentScore
    volatility: ComponentScore

    def as_dict(self) -> dict:
        return {
            name: {"value": score.value, "direction": score.direction.value}
            for name, score in (
                ("trend", self.trend),
                ("momentum", self.momentum),
                ("volume", self.volume),
                ("volatility", self.volatility),
            )
        }


@dataclass(frozen=True)
class Signal:
    """
    Directional trading signal with a calibrated confidence.

    confidence is always clamped to [0, 1]; direction is NEUTRAL unless the
    trend and momentum components agree.
    """
    direction: Direction
    confidence: float
    component_scores: ComponentScores
    timestamp: Optional[pd.Timestamp] = None
    price: Optional[float] = None
    metadata: dict = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        confidence = self.confidence if math.isfinite(self.confidence) else 0.0
        object.__setattr__(self, "confidence", min(1.0, max(0.0, confidence)))

    def with_confidence(self, confidence: float, **metadata) -> "Signal":
        """Copy of this signal with a new confidence (clamped) and extra metadata."""
        return replace(self, confidence=confidence, metadata={**self.metadata, **metadata})
