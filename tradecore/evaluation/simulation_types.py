"""
Simulation types: simulated trades, Monte Carlo paths and aggregate statistics.

Extracted so the tracker, engine and CLI can import them without pulling in
the simulator itself.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from ..shared.types import Direction, TradeStatus


@dataclass(frozen=True)
class SimulatedTrade:
    """A single resolved trade. Immutable after creation."""
    direction: Direction
    entry_price: float
    exit_price: float
    stop_loss: float
    take_profit: float
    size: float
    pnl: float
    status: TradeStatus
    slippage: float  # Signed against the trade (+ for LONG, - for SHORT)
    open_time: Optional[pd.Timestamp]
    close_time: Optional[pd.Timestamp]
    confidence: float = 0.0
    expected_value: float = 0.0
    intended_price: float = 0.0
    executed_price: float = 0.0

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def return_pct(self) -> float:
        """PnL relative to the notional at entry."""
        notional = self.entry_price * self.size
        return self.pnl / notional if notional > 0 else 0.0

    @property
    def holding_hours(self) -> float:
        if self.open_time is None or self.close_time is None:
            return 0.0
        return (self.close_time - self.open_time).total_seconds() / 3600

    def to_dict(self) -> dict:
        row = asdict(self)
        row["direction"] = self.direction.value
        row["status"] = self.status.value
        return row


@dataclass(frozen=True)
class PathResult:
    """Outcome of one simulated Monte Carlo path."""
    path_id: int
    equity_curve: Tuple[float, ...]
    trade_returns: Tuple[float, ...]
    final_balance: float
    total_return: float
    max_drawdown: float
    sharpe_ratio: float
    sortino_ratio: float
    num_trades: int
    winning_trades: int
    max_consecutive_losses: int
    trades: Tuple[SimulatedTrade, ...] = field(default=(), repr=False)  # Empirical replay only

    @property
    def win_rate(self) -> float:
        return self.winning_trades / self.num_trades if self.num_trades else 0.0


@dataclass(frozen=True)
class AggregateStatistics:
    """
    Statistics across completed paths. Derived, never mutated.

    mean/median/percentile_5/best/worst refer to final balances;
    percentile_5 is the "confidence95" floor.
    """
    mean: float = 0.0
    median: float = 0.0
    percentile_5: float = 0.0
    best: float = 0.0
    worst: float = 0.0
    max_drawdown: float = 0.0
    mean_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    win_rate: float = 0.0
    max_consecutive_losses: int = 0
    mean_return: float = 0.0
    success_rate: float = 0.0
    total_trades: int = 0
    completed_paths: int = 0
    failed_paths: int = 0
    requested_paths: int = 0
    cancelled: bool = False

    @property
    def confidence95(self) -> float:
        return self.percentile_5

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MonteCarloResult:
    mode: str  # "parametric" or "empirical"
    statistics: AggregateStatistics
    paths: Tuple[PathResult, ...]

    def to_frame(self) -> pd.DataFrame:
        """One row per completed path."""
        rows = [
            {
                "path_id": p.path_id,
                "final_balance": p.final_balance,
                "total_return": p.total_return,
                "max_drawdown": p.max_drawdown,
                "sharpe_ratio": p.sharpe_ratio,
                "sortino_ratio": p.sortino_ratio,
                "num_trades": p.num_trades,
                "win_rate": p.win_rate,
                "max_consecutive_losses": p.max_consecutive_losses,
            }
            for p in self.paths
        ]
        return pd.DataFrame(rows).set_index("path_id") if rows else pd.DataFrame()

    def percentile_bands(self, percentiles: List[float] = (5, 25, 50, 75, 95)) -> pd.DataFrame:
        """Equity percentiles per step across paths (shorter curves are padded with their last value)."""
        if not self.paths:
            return pd.DataFrame()
        length = max(len(p.equity_curve) for p in self.paths)
        curves = np.array([
            list(p.equity_curve) + [p.equity_curve[-1]] * (length - len(p.equity_curve))
            for p in self.paths
        ])
        bands = np.percentile(curves, list(percentiles), axis=0)
        return pd.DataFrame(bands.T, columns=[f"p{int(q)}" for q in percentiles])
