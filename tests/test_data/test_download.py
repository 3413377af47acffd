"""
Tests for the Yahoo Finance downloader (yfinance is mocked).
"""
import pandas as pd
import pytest

from tradecore.data import download
from tradecore.data.loader import CsvCandleStore
from tradecore.shared.types import DataUnavailableError


def yahoo_frame(n=5, multi_index=True):
    index = pd.date_range("2024-01-01", periods=n, freq="D", tz="America/New_York")
    data = {
        "Open": [100.0 + i for i in range(n)],
        "High": [101.0 + i for i in range(n)],
        "Low": [99.0 + i for i in range(n)],
        "Close": [100.5 + i for i in range(n)],
        "Adj Close": [100.5 + i for i in range(n)],
        "Volume": [1000 * (i + 1) for i in range(n)],
    }
    df = pd.DataFrame(data, index=index)
    if multi_index:
        df.columns = pd.MultiIndex.from_product([df.columns, ["AAPL"]])
    return df


@pytest.fixture
def fake_yahoo(monkeypatch):
    calls = []

    def fake_download(ticker, **kwargs):
        calls.append((ticker, kwargs))
        return yahoo_frame()

    monkeypatch.setattr(download.yf, "download", fake_download)
    return calls


class TestResolveTicker:
    """Test instrument name resolution."""

    def test_named_instrument(self):
        assert download.resolve_ticker("sp500") == "^GSPC"

    def test_plain_ticker(self):
        assert download.resolve_ticker("AAPL") == "AAPL"


class TestFetchCandles:
    """Test fetching and normalizing Yahoo data."""

    def test_flattens_and_drops_timezone(self, fake_yahoo):
        candles = download.fetch_candles("AAPL", "1d", "2024-01-01", "2024-01-10")

        assert len(candles) == 5
        assert candles[0].timestamp.tz is None
        assert candles[0].close == 100.5
        assert candles[-1].volume == 5000.0

    def test_passes_resolved_ticker(self, fake_yahoo):
        download.fetch_candles("bitcoin", "1h", "2024-01-01")
        ticker, kwargs = fake_yahoo[0]

        assert ticker == "BTC-USD"
        assert kwargs["interval"] == "1h"
        assert kwargs["start"] == "2024-01-01"
        assert kwargs["end"] is None

    def test_empty_response(self, monkeypatch):
        monkeypatch.setattr(download.yf, "download", lambda ticker, **kwargs: pd.DataFrame())
        with pytest.raises(DataUnavailableError):
            download.fetch_candles("AAPL")


class TestDownloadCandles:
    """Test writing downloads into a store."""

    def test_writes_store(self, fake_yahoo, tmp_path):
        store = CsvCandleStore(tmp_path)

        count = download.download_candles(store, "AAPL", "1d", "2024-01-01")

        assert count == 5
        assert store.symbols() == ["AAPL_1d"]
        assert len(store.get("AAPL", "1d")) == 5
