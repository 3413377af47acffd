#!/usr/bin/env python3
"""
Monte Carlo backtest CLI.

Parametric mode samples wins/losses from fixed rates; empirical mode
block-bootstraps a candle series and replays the signal pipeline on it.

Usage:
    python -m cli.backtest parametric --paths 1000 --seed 42
    python -m cli.backtest empirical --csv data/AAPL.csv --paths 200 --chart results/mc.png
"""
import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from tradecore.data.loader import CsvCandleStore, load_candles
from tradecore.evaluation.monte_carlo import MonteCarloEngine
from tradecore.evaluation.performance import PerformanceTracker
from tradecore.evaluation.simulation_types import AggregateStatistics, MonteCarloResult, PathResult
from tradecore.signals.composer import SignalComposer
from tradecore.signals.config_loader import ConfigError
from tradecore.shared.types import DataUnavailableError, InvalidSeriesError

from .params import load_engine_config, setup_logging


def print_statistics(result: MonteCarloResult, initial_balance: float) -> None:
    """Print aggregate statistics of a Monte Carlo run."""
    s: AggregateStatistics = result.statistics
    print("=" * 80)
    print(f"MONTE CARLO ({result.mode.upper()})")
    print("=" * 80)
    print(f"  Paths:                {s.completed_paths}/{s.requested_paths} completed"
          f" ({s.failed_paths} failed{', cancelled' if s.cancelled else ''})")
    print(f"  Initial balance:      {initial_balance:,.2f}")
    print(f"  Mean final balance:   {s.mean:,.2f}")
    print(f"  Median:               {s.median:,.2f}")
    print(f"  5th percentile:       {s.percentile_5:,.2f}")
    print(f"  Best / worst:         {s.best:,.2f} / {s.worst:,.2f}")
    print(f"  Mean return:          {s.mean_return * 100:.2f}%")
    print(f"  Success rate:         {s.success_rate * 100:.1f}%")
    print(f"  Max drawdown:         {s.max_drawdown * 100:.2f}% (mean {s.mean_drawdown * 100:.2f}%)")
    print(f"  Sharpe / Sortino:     {s.sharpe_ratio:.2f} / {s.sortino_ratio:.2f}")
    print(f"  Win rate:             {s.win_rate * 100:.1f}% over {s.total_trades} trades")
    print(f"  Max consecutive loss: {s.max_consecutive_losses}")
    print()


def record_median_path(tracker: PerformanceTracker, result: MonteCarloResult) -> Optional[PathResult]:
    """Record the replayed trades of the path with the median final balance."""
    if not result.paths:
        return None
    ranked = sorted(result.paths, key=lambda p: (p.final_balance, p.path_id))
    path = ranked[len(ranked) // 2]
    tracker.record_batch(path.trades, epoch=path.path_id)
    return path


def _progress_printer(quiet: bool):
    if quiet:
        return None
    last = {"pct": -10}

    def report(fraction: float) -> None:
        pct = int(fraction * 100)
        if pct >= last["pct"] + 10 or fraction >= 1.0:
            last["pct"] = pct
            print(f"  progress: {pct}%")

    return report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Monte Carlo backtest")
    parser.add_argument("mode", choices=["parametric", "empirical"], help="Simulation mode")
    parser.add_argument("--config", type=str, help="YAML engine config")
    parser.add_argument("--paths", type=int, help="Number of simulated paths")
    parser.add_argument("--seed", type=int, help="Random seed (reproducible runs)")
    parser.add_argument("--workers", type=int, help="Worker threads")
    parser.add_argument("--initial-balance", type=float, help="Starting balance")
    # Parametric
    parser.add_argument("--days", type=int, help="Days per path (parametric)")
    parser.add_argument("--trades-per-day", type=int, help="Trades per day (parametric)")
    parser.add_argument("--win-rate", type=float, help="Win probability per trade (parametric)")
    parser.add_argument("--avg-win", type=float, help="Fractional gain of a win (parametric)")
    parser.add_argument("--avg-loss", type=float, help="Fractional loss of a loss (parametric)")
    # Empirical
    parser.add_argument("--csv", type=str, help="OHLCV CSV file (empirical)")
    parser.add_argument("--symbol", type=str, help="Symbol in the candle store (empirical)")
    parser.add_argument("--interval", type=str, default="1d", help="Candle interval (default: 1d)")
    parser.add_argument("--data-dir", type=str, default="data", help="Candle store directory (default: data)")
    parser.add_argument("--start-date", type=str, help="First date to load (inclusive)")
    parser.add_argument("--end-date", type=str, help="Last date to load (inclusive)")
    # Output
    parser.add_argument("--chart", type=str, help="Write a percentile fan chart (PNG) here")
    parser.add_argument("--output-csv", type=str, help="Write per-path results (CSV) here")
    parser.add_argument("--quiet", action="store_true", help="Do not print progress")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging (DEBUG level)")
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = load_engine_config(args.config)
        overrides = {
            "num_paths": args.paths,
            "seed": args.seed,
            "max_workers": args.workers,
            "initial_balance": args.initial_balance,
            "num_days": args.days,
            "trades_per_day": args.trades_per_day,
            "win_rate": args.win_rate,
            "avg_win": args.avg_win,
            "avg_loss": args.avg_loss,
        }
        mc_config = replace(config.monte_carlo, **{k: v for k, v in overrides.items() if v is not None})
    except (FileNotFoundError, ConfigError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    median_path = None
    tracker = PerformanceTracker(
        initial_balance=mc_config.initial_balance,
        periods_per_year=mc_config.periods_per_year,
        risk_free_rate=mc_config.risk_free_rate,
    )
    engine = MonteCarloEngine(
        config=mc_config,
        simulator_config=config.simulator,
        risk_config=config.risk,
        composer=SignalComposer(config.signal),
    )
    progress = _progress_printer(args.quiet)

    if args.mode == "parametric":
        result = engine.run_parametric(progress=progress)
    else:
        try:
            if args.csv:
                candles = load_candles(args.csv, args.start_date, args.end_date)
            elif args.symbol:
                candles = CsvCandleStore(args.data_dir).get(
                    args.symbol, args.interval, args.start_date, args.end_date
                )
            else:
                print("Error: empirical mode needs --csv or --symbol", file=sys.stderr)
                return 1
        except (FileNotFoundError, DataUnavailableError, InvalidSeriesError) as e:
            logger.error("Cannot load candles: %s", e)
            return 1
        result = engine.run_empirical(candles, progress=progress)
        median_path = record_median_path(tracker, result)

    print_statistics(result, mc_config.initial_balance)

    if tracker.trades:
        m = tracker.metrics()
        print(f"REPLAYED TRADES (path {median_path.path_id}, median final balance)")
        print("-" * 80)
        print(f"  Trades: {m.total_trades}  win rate: {m.win_rate * 100:.1f}%  "
              f"profit factor: {m.profit_factor:.2f}  expectancy: {m.expectancy:.2f}")
        print(f"  Avg slippage: {m.average_slippage * 100:.3f}%  fill ratio: {m.fill_ratio:.2f}  "
              f"avg holding: {m.average_holding_hours:.1f}h")
        print()

    if args.output_csv:
        output_path = Path(args.output_csv)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        result.to_frame().to_csv(output_path)
        print(f"Per-path results saved to {output_path}")
    if args.chart:
        # Imported lazily: matplotlib is only needed for charts
        from tradecore.evaluation.charts import plot_monte_carlo
        chart_path = plot_monte_carlo(result, args.chart, mc_config.initial_balance)
        print(f"Chart saved to {chart_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
