"""
Unified CLI entry points.

Provides command-line interfaces for:
- Signal analysis (cli.analyze)
- Monte Carlo backtesting (cli.backtest)
- Data download (cli.download)
- Parameter reference (cli.params)
"""
