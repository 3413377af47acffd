"""
Shared fixtures: candle series used across the test suite.
"""
import numpy as np
import pandas as pd
import pytest

from tradecore.shared.types import Candle


def build_candles(closes, spread=1.0, volume=1000.0, start="2024-01-01", open_offset=0.0):
    """Daily candles with high/low at close +/- spread."""
    timestamps = pd.date_range(start, periods=len(closes), freq="D")
    return [
        Candle(
            timestamp=ts,
            open=float(c) - open_offset,
            high=float(c) + spread,
            low=float(c) - spread,
            close=float(c),
            volume=volume,
        )
        for ts, c in zip(timestamps, closes)
    ]


def random_walk(seed, n=120, start_price=100.0, sigma=0.01):
    """Geometric random walk with noisy ranges and volumes."""
    rng = np.random.default_rng(seed)
    closes = start_price * np.exp(np.cumsum(rng.normal(0, sigma, n)))
    opens = np.concatenate([[start_price], closes[:-1]])
    wicks = np.abs(rng.normal(0, sigma / 2, n))
    volumes = rng.integers(500, 5000, n)
    timestamps = pd.date_range("2023-01-01", periods=n, freq="D")
    return [
        Candle(
            timestamp=ts,
            open=float(o),
            high=float(max(o, c) * (1 + w)),
            low=float(min(o, c) * (1 - w)),
            close=float(c),
            volume=float(v),
        )
        for ts, o, c, w, v in zip(timestamps, opens, closes, wicks, volumes)
    ]


@pytest.fixture
def candle_factory():
    return build_candles


@pytest.fixture
def random_candles():
    return random_walk


@pytest.fixture
def monotonic_candles():
    """60 bars of a steady uptrend: close = 100 + i."""
    return build_candles([100 + i for i in range(60)], spread=1.0, open_offset=0.5)


@pytest.fixture
def flat_candles():
    """30 identical bars."""
    return build_candles([100.0] * 30, spread=0.0)


@pytest.fixture
def shock_candles():
    """50 stable bars followed by a 10% gap down."""
    stable = build_candles([100.0 if i % 2 == 0 else 100.1 for i in range(50)], spread=0.5)
    gap = Candle(
        timestamp=stable[-1].timestamp + pd.Timedelta(days=1),
        open=90.0, high=90.5, low=89.5, close=90.0, volume=1000.0,
    )
    return stable + [gap]
