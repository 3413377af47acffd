"""
CLI test fixtures.
"""
import pytest

from cli import analyze, backtest, download


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep the CLIs from replacing the root logging handlers."""
    for module in (analyze, backtest, download):
        monkeypatch.setattr(module, "setup_logging", lambda *args, **kwargs: None)
