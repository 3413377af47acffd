#!/usr/bin/env python3
"""
Data download CLI.

Downloads historical candles from Yahoo Finance into the CSV candle store.
"""
import argparse
import logging
import sys

from tradecore.data.download import INSTRUMENTS, download_candles
from tradecore.data.loader import CsvCandleStore
from tradecore.shared.types import DataUnavailableError

from .params import setup_logging


def list_instruments() -> None:
    """Print named instruments."""
    print("\nAvailable instruments:")
    print("-" * 60)
    print(f"{'Name':<16} {'Ticker':<12} {'Description'}")
    print("-" * 60)
    for name, (ticker, desc) in INSTRUMENTS.items():
        print(f"{name:<16} {ticker:<12} {desc}")
    print()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Download historical candles into the candle store")
    parser.add_argument("symbols", nargs="*", help="Instrument names or Yahoo tickers")
    parser.add_argument("--list", "-l", action="store_true", help="List named instruments")
    parser.add_argument("--interval", "-i", default="1d", help="Candle interval (default: 1d)")
    parser.add_argument("--start-date", "-s", default="2015-01-01", help="Start date (default: 2015-01-01)")
    parser.add_argument("--end-date", "-e", help="End date (default: today)")
    parser.add_argument("--data-dir", default="data", help="Candle store directory (default: data)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging (DEBUG level)")
    args = parser.parse_args(argv)

    if args.list:
        list_instruments()
        return 0
    if not args.symbols:
        parser.print_usage()
        print("Error: give at least one symbol (or --list)", file=sys.stderr)
        return 1

    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)
    store = CsvCandleStore(args.data_dir)

    failed = []
    for symbol in args.symbols:
        try:
            count = download_candles(store, symbol, args.interval, args.start_date, args.end_date)
            print(f"  ✓ {symbol}: {count} candles")
        except DataUnavailableError as e:
            logger.error("%s", e)
            failed.append(symbol)
        except Exception as e:
            # Network and yfinance errors: report and continue with the next symbol
            logger.error("Error downloading %s: %s", symbol, e)
            failed.append(symbol)

    print(f"Downloaded {len(args.symbols) - len(failed)}/{len(args.symbols)} symbols")
    if failed:
        print(f"Failed: {', '.join(failed)}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
