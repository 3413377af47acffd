"""
Performance tracker: append-only trade ledger with derived metrics.

Metrics are recomputed on demand from the ledger. A best-so-far checkpoint
is kept using a fixed weighted score.
"""
import logging
import math
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from . import metrics as stats
from .checkpoint import Checkpoint
from .simulation_types import SimulatedTrade
from ..shared.types import TradeStatus
from ..shared.defaults import (
    CHECKPOINT_WEIGHTS, INITIAL_BALANCE, PROFIT_FACTOR_SCORE_CAP, TRADING_DAYS_PER_YEAR,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceMetrics:
    """Derived metrics of a trade ledger."""
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    profit_factor: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    expectancy: float = 0.0
    cumulative_pnl: float = 0.0
    balance: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    value_at_risk_95: float = 0.0
    max_consecutive_losses: int = 0
    directional_accuracy: float = 0.0
    average_holding_hours: float = 0.0
    average_slippage: float = 0.0
    fill_ratio: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class EpochSummary:
    """Summary of one batch of trades recorded together."""
    epoch: int
    trades: int
    pnl: float
    win_rate: float
    drawdown: float


def checkpoint_score(metrics: PerformanceMetrics, accuracy: float) -> float:
    """
    accuracy*0.3 + winRate*0.15 + profitFactor*0.15 + expectancy*0.1
    + (1 - drawdown)*0.1 + Sharpe*0.1 + Sortino*0.1

    An infinite profit factor is scored as PROFIT_FACTOR_SCORE_CAP.
    """
    weights = CHECKPOINT_WEIGHTS
    profit_factor = min(metrics.profit_factor, PROFIT_FACTOR_SCORE_CAP)
    return (
        accuracy * weights["accuracy"]
        + metrics.win_rate * weights["win_rate"]
        + profit_factor * weights["profit_factor"]
        + metrics.expectancy * weights["expectancy"]
        + (1 - metrics.max_drawdown) * weights["drawdown"]
        + metrics.sharpe_ratio * weights["sharpe"]
        + metrics.sortino_ratio * weights["sortino"]
    )


class PerformanceTracker:
    """Running ledger of simulated trades."""

    def __init__(
        self,
        initial_balance: float = INITIAL_BALANCE,
        periods_per_year: int = TRADING_DAYS_PER_YEAR,
        risk_free_rate: float = 0.0,
    ):
        if not (math.isfinite(initial_balance) and initial_balance > 0):
            raise ValueError(f"initial_balance must be > 0, got {initial_balance}")
        self.initial_balance = initial_balance
        self.periods_per_year = periods_per_year
        self.risk_free_rate = risk_free_rate
        self._trades: List[SimulatedTrade] = []
        self._epochs: List[EpochSummary] = []
        self.best: Optional[Checkpoint] = None

    @property
    def trades(self) -> Tuple[SimulatedTrade, ...]:
        return tuple(self._trades)

    @property
    def epochs(self) -> Tuple[EpochSummary, ...]:
        return tuple(self._epochs)

    def record(self, trade: SimulatedTrade) -> None:
        if not isinstance(trade, SimulatedTrade):
            raise TypeError(f"Expected SimulatedTrade, got {type(trade).__name__}")
        self._trades.append(trade)

    def record_batch(self, trades: Iterable[SimulatedTrade], epoch: Optional[int] = None) -> EpochSummary:
        """Record several trades and keep a per-epoch summary of them."""
        batch = list(trades)
        for trade in batch:
            self.record(trade)
        pnls = [t.pnl for t in batch]
        equity = np.concatenate([[self.initial_balance], self.initial_balance + np.cumsum(pnls)])
        summary = EpochSummary(
            epoch=epoch if epoch is not None else len(self._epochs),
            trades=len(batch),
            pnl=float(sum(pnls)),
            win_rate=sum(1 for p in pnls if p > 0) / len(batch) if batch else 0.0,
            drawdown=stats.max_drawdown(equity),
        )
        self._epochs.append(summary)
        logger.debug("Epoch %d: %d trades, pnl=%.2f", summary.epoch, summary.trades, summary.pnl)
        return summary

    def equity_curve(self) -> np.ndarray:
        pnls = np.array([t.pnl for t in self._trades], dtype=float)
        return np.concatenate([[self.initial_balance], self.initial_balance + np.cumsum(pnls)])

    def metrics(self) -> PerformanceMetrics:
        """Recompute every metric from the ledger."""
        trades = self._trades
        if not trades:
            return PerformanceMetrics(balance=self.initial_balance)

        pnls = np.array([t.pnl for t in trades], dtype=float)
        wins = pnls[pnls > 0]
        losses = pnls[pnls < 0]
        total = len(trades)
        win_rate = wins.size / total
        gross_profit = float(wins.sum())
        gross_loss = float(-losses.sum())
        if gross_loss > 0:
            profit_factor = gross_profit / gross_loss
        else:
            profit_factor = math.inf if gross_profit > 0 else 0.0
        average_win = float(wins.mean()) if wins.size else 0.0
        average_loss = float(-losses.mean()) if losses.size else 0.0

        equity = self.equity_curve()
        returns = stats.equity_returns(equity)
        drawdown = stats.max_drawdown(equity)
        annual_return = float(returns.mean()) * self.periods_per_year if returns.size else 0.0

        accurate = sum(
            1 for t in trades if t.direction.sign * (t.exit_price - t.entry_price) > 0
        )
        slippages = [
            abs(t.executed_price - t.intended_price) / t.intended_price
            for t in trades if t.intended_price > 0
        ]

        return PerformanceMetrics(
            total_trades=total,
            winning_trades=int(wins.size),
            losing_trades=int(losses.size),
            win_rate=win_rate,
            gross_profit=gross_profit,
            gross_loss=gross_loss,
            profit_factor=profit_factor,
            average_win=average_win,
            average_loss=average_loss,
            expectancy=win_rate * average_win - (1 - win_rate) * average_loss,
            cumulative_pnl=float(pnls.sum()),
            balance=float(equity[-1]),
            max_drawdown=drawdown,
            sharpe_ratio=stats.sharpe_ratio(returns, self.risk_free_rate, self.periods_per_year),
            sortino_ratio=stats.sortino_ratio(returns, self.risk_free_rate, self.periods_per_year),
            calmar_ratio=stats.calmar_ratio(annual_return, drawdown),
            value_at_risk_95=stats.percentile_5(pnls),
            max_consecutive_losses=stats.max_consecutive_losses(pnls),
            directional_accuracy=accurate / total,
            average_holding_hours=float(np.mean([t.holding_hours for t in trades])),
            average_slippage=float(np.mean(slippages)) if slippages else 0.0,
            fill_ratio=sum(1 for t in trades if t.status is TradeStatus.FILLED) / total,
        )

    def checkpoint(self, label: str, accuracy: Optional[float] = None) -> bool:
        """
        Score the current metrics and keep them as `best` if they beat it.

        Args:
            label: Name stored with the checkpoint
            accuracy: External accuracy in [0, 1]; defaults to the ledger's
                directional accuracy

        Returns:
            True if a new best checkpoint was stored
        """
        current = self.metrics()
        if accuracy is None:
            accuracy = current.directional_accuracy
        score = checkpoint_score(current, accuracy)
        candidate = Checkpoint(
            label=label,
            score=score,
            metrics={k: float(v) for k, v in current.to_dict().items()},
            metadata={"accuracy": accuracy, "trades": current.total_trades},
        )
        if candidate.is_better_than(self.best):
            logger.info("New best checkpoint %r: score=%.4f", label, score)
            self.best = candidate
            return True
        return False

    def to_frame(self) -> pd.DataFrame:
        """Ledger as a DataFrame (one row per trade)."""
        return pd.DataFrame([t.to_dict() for t in self._trades])
