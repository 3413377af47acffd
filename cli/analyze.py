#!/usr/bin/env python3
"""
Signal analysis CLI.

Composes and risk-adjusts the signal for the latest bar of a series, read
either from a CSV file or from the CSV candle store.

Usage:
    python -m cli.analyze --csv data/AAPL.csv
    python -m cli.analyze --symbol AAPL --interval 1d --data-dir data
"""
import argparse
import logging
import sys
from pathlib import Path

from tradecore.data.loader import CsvCandleStore, load_candles
from tradecore.pipeline import LoggingNotifier, PipelineResult, SignalPipeline, format_signal
from tradecore.risk.adjuster import RiskAdjuster
from tradecore.risk.regime import classify_regime
from tradecore.signals.composer import SignalComposer
from tradecore.signals.config_loader import ConfigError
from tradecore.shared.types import DataUnavailableError, InvalidSeriesError

from .params import load_engine_config, setup_logging


def print_result(result: PipelineResult, regime) -> None:
    """Print the component breakdown of a pipeline result."""
    snapshot = result.snapshot
    raw = result.raw_signal
    adj = result.adjustment
    scores = raw.component_scores

    print("=" * 80)
    print(f"SIGNAL: {result.symbol} ({result.interval}) at {snapshot.timestamp}  [{result.candles} candles]")
    print("=" * 80)
    print(f"  Direction:            {result.signal.direction.value.upper()}")
    print(f"  Confidence (raw):     {raw.confidence:.3f}")
    print(f"  Confidence (risk):    {result.signal.confidence:.3f}")
    print()
    print("COMPONENTS")
    print("-" * 80)
    for name, score in (
        ("Trend", scores.trend),
        ("Momentum", scores.momentum),
        ("Volume", scores.volume),
        ("Volatility", scores.volatility),
    ):
        print(f"  {name:<12} value={score.value:.3f}  direction={score.direction.value}")
    print()
    print("INDICATORS")
    print("-" * 80)
    print(f"  Close={snapshot.close:.4f}  RSI={snapshot.rsi:.1f}  ADX={snapshot.adx:.1f}  ATR={snapshot.atr:.4f}")
    print(f"  EMA short={snapshot.ema_short:.4f}  EMA long={snapshot.ema_long:.4f}")
    print(f"  MACD line={snapshot.macd.line:.3f} signal={snapshot.macd.signal:.3f} hist={snapshot.macd.histogram:.3f}")
    print(f"  Stochastic K={snapshot.stochastic.k:.1f} D={snapshot.stochastic.d:.1f}")
    print(f"  Bollinger {snapshot.bollinger.lower:.4f} / {snapshot.bollinger.middle:.4f} / "
          f"{snapshot.bollinger.upper:.4f} (bandwidth {snapshot.bollinger.bandwidth:.4f})")
    print(f"  VWAP={snapshot.vwap:.4f}  OBV={snapshot.obv:.0f}  volume trend={snapshot.volume_trend:.3f}")
    print(f"  Historical volatility={snapshot.historical_volatility:.4f}  momentum={snapshot.momentum:.2f}%")
    print()
    print("RISK")
    print("-" * 80)
    print(f"  Factors: volatility={adj.volatility_factor:.2f} trend={adj.trend_factor:.2f} "
          f"volume={adj.volume_factor:.2f} liquidity={adj.liquidity_factor:.2f}")
    print(f"  Regime score={adj.regime_score:.2f}  multiplier={adj.regime_multiplier:.2f}  shock={adj.shock}")
    print(f"  Regime: trend={regime.trend.value} volatility={regime.volatility.value} "
          f"momentum={regime.momentum.value} support={regime.support:.4f} resistance={regime.resistance:.4f}")
    print()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Compose and risk-adjust the latest signal")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--csv", type=str, help="OHLCV CSV file (Date index column)")
    source.add_argument("--symbol", type=str, help="Symbol in the candle store")
    parser.add_argument("--interval", type=str, default="1d", help="Candle interval (default: 1d)")
    parser.add_argument("--data-dir", type=str, default="data", help="Candle store directory (default: data)")
    parser.add_argument("--start-date", type=str, help="First date to load (inclusive)")
    parser.add_argument("--end-date", type=str, help="Last date to load (inclusive)")
    parser.add_argument("--config", type=str, help="YAML engine config")
    parser.add_argument("--notify", action="store_true", help="Log non-neutral signals as notifications")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging (DEBUG level)")
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = load_engine_config(args.config)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    composer = SignalComposer(config.signal)
    adjuster = RiskAdjuster(config.risk, indicators=composer.indicators)
    store = CsvCandleStore(args.data_dir)
    pipeline = SignalPipeline(store, composer, adjuster, LoggingNotifier() if args.notify else None)

    try:
        if args.csv:
            name = Path(args.csv).stem
            candles = load_candles(args.csv, args.start_date, args.end_date)
            if not candles:
                raise DataUnavailableError(f"No candles in {args.csv} for the requested range")
        else:
            name = args.symbol
            candles = store.get(args.symbol, args.interval, args.start_date, args.end_date)
        result = pipeline.evaluate(name, args.interval, candles)
    except (FileNotFoundError, DataUnavailableError, InvalidSeriesError) as e:
        logger.error("Cannot analyze: %s", e)
        return 1

    print_result(result, classify_regime(candles))
    print(format_signal(result.symbol, result.signal))
    return 0


if __name__ == "__main__":
    sys.exit(main())
