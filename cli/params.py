#!/usr/bin/env python3
"""
Parameter reference CLI and shared CLI helpers.

Shows the configurable parameters and their defaults, and provides the
logging setup used by every CLI.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from tradecore.signals.config import EngineConfig
from tradecore.signals.config_loader import ConfigError, load_config_from_yaml


def setup_logging(log_path: Optional[Path] = None, verbose: bool = False) -> None:
    """
    Setup logging to stdout and optionally to file.

    Args:
        log_path: Path to log file (None = stdout only)
        verbose: If True, use DEBUG level, otherwise INFO
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def load_engine_config(config_path: Optional[str]) -> EngineConfig:
    """Load a YAML config, or the defaults when no path is given."""
    if not config_path:
        return EngineConfig()
    return load_config_from_yaml(config_path)


def print_config(config: EngineConfig) -> None:
    """Print every section of an engine config."""
    print("=" * 80)
    print(f"PARAMETERS: {config.name}")
    if config.description:
        print(config.description)
    print("=" * 80)
    for section in ("signal", "risk", "simulator", "monte_carlo"):
        print()
        print(section.upper().replace("_", " "))
        print("-" * 80)
        for key, value in vars(getattr(config, section)).items():
            print(f"  {key:<24} {value}")
    print()


def main(argv=None) -> int:
    """Print all configurable parameters with their defaults (or a YAML config's values)."""
    parser = argparse.ArgumentParser(description="Show configurable parameters and defaults")
    parser.add_argument("--config", type=str, help="YAML config to show instead of the defaults")
    args = parser.parse_args(argv)

    try:
        config = load_engine_config(args.config)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print_config(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
