"""
Tests for the data download CLI (downloads are mocked).
"""
import pytest

from cli import download as download_cli
from tradecore.shared.types import DataUnavailableError


@pytest.fixture
def fake_download(monkeypatch):
    calls = []

    def fake(store, symbol, interval, start, end):
        calls.append((symbol, interval, start, end))
        if symbol == "BAD":
            raise DataUnavailableError(f"No data returned for {symbol}")
        return 5

    monkeypatch.setattr(download_cli, "download_candles", fake)
    return calls


class TestDownloadCli:
    """Test downloading symbols."""

    def test_list(self, capsys):
        assert download_cli.main(["--list"]) == 0
        out = capsys.readouterr().out
        assert "sp500" in out
        assert "^GSPC" in out

    def test_no_symbols(self, capsys):
        assert download_cli.main([]) == 1
        assert "at least one symbol" in capsys.readouterr().err

    def test_downloads_each_symbol(self, fake_download, tmp_path, capsys):
        assert download_cli.main(["AAPL", "sp500", "--data-dir", str(tmp_path), "-i", "1h"]) == 0

        assert fake_download == [
            ("AAPL", "1h", "2015-01-01", None),
            ("sp500", "1h", "2015-01-01", None),
        ]
        out = capsys.readouterr().out
        assert "✓ AAPL: 5 candles" in out
        assert "Downloaded 2/2 symbols" in out

    def test_failure_continues(self, fake_download, tmp_path, capsys):
        assert download_cli.main(["BAD", "AAPL", "--data-dir", str(tmp_path)]) == 1

        assert [call[0] for call in fake_download] == ["BAD", "AAPL"]
        out = capsys.readouterr().out
        assert "Downloaded 1/2 symbols" in out
        assert "Failed: BAD" in out
