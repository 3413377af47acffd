"""
Tests for per-bar indicator snapshots and the calculate_all table.
"""
import pandas as pd
import pytest

from tradecore.indicators.snapshot import IndicatorSnapshot, TechnicalIndicators, compute_snapshot
from tradecore.shared.types import candles_to_frame


class TestSnapshot:
    """Test TechnicalIndicators.snapshot."""

    def test_empty_series(self):
        snapshot = compute_snapshot([])
        assert snapshot == IndicatorSnapshot.empty()
        assert snapshot.bars_used == 0
        assert snapshot.rsi == 50.0
        assert snapshot.volume_trend == 1.0

    def test_latest_bar_fields(self, monotonic_candles):
        snapshot = compute_snapshot(monotonic_candles)
        last = monotonic_candles[-1]

        assert snapshot.timestamp == last.timestamp
        assert snapshot.close == last.close
        assert snapshot.volume == last.volume
        assert snapshot.bars_used == 60
        assert snapshot.ema_short > snapshot.ema_long

    def test_index_never_sees_future_bars(self, random_candles):
        candles = random_candles(seed=5)
        assert compute_snapshot(candles, 40) == compute_snapshot(candles[:41])

    def test_negative_index(self, random_candles):
        candles = random_candles(seed=5)
        assert compute_snapshot(candles, -1) == compute_snapshot(candles)

    def test_out_of_range_index(self, random_candles):
        assert compute_snapshot(random_candles(seed=5), 500) == IndicatorSnapshot.empty()

    def test_window_capped_at_lookback(self, random_candles):
        candles = random_candles(seed=2, n=150)
        indicators = TechnicalIndicators(lookback=100)

        snapshot = indicators.snapshot(candles)

        assert snapshot.bars_used == 100
        assert snapshot == indicators.snapshot(candles[-100:])

    def test_to_dict_flattens_nested_results(self, monotonic_candles):
        row = compute_snapshot(monotonic_candles).to_dict()
        for key in ("macd_line", "macd_histogram", "bollinger_upper", "stochastic_k", "stochastic_d"):
            assert key in row
        assert "macd" not in row


class TestCalculateAll:
    """Test the per-bar indicator table."""

    @pytest.fixture
    def ohlcv(self, random_candles):
        return candles_to_frame(random_candles(seed=8, n=80))

    def test_one_row_per_bar(self, ohlcv):
        df = TechnicalIndicators().calculate_all(ohlcv, max_workers=1)

        assert len(df) == len(ohlcv)
        assert df.index.name == "Date"
        assert (df.index == ohlcv.index).all()
        assert df["bars_used"].iloc[0] == 1
        assert df["rsi"].iloc[0] == 50.0

    def test_parallel_matches_sequential(self, ohlcv):
        indicators = TechnicalIndicators()
        sequential = indicators.calculate_all(ohlcv, max_workers=1)
        parallel = indicators.calculate_all(ohlcv, max_workers=4)
        pd.testing.assert_frame_equal(sequential, parallel)

    def test_accepts_candles(self, random_candles):
        candles = random_candles(seed=8, n=30)
        df = TechnicalIndicators().calculate_all(candles, max_workers=1)
        assert df["close"].tolist() == [c.close for c in candles]

    def test_empty(self):
        assert TechnicalIndicators().calculate_all([]).empty
