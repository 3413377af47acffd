"""
Monte Carlo backtest engine.

Two modes:
- parametric: each trade wins with a fixed probability and returns a fixed
  +avg_win / -avg_loss, compounded over num_days x trades_per_day
- empirical: block-bootstrapped candle series are replayed through the signal
  composer, risk adjuster and trade simulator

Every path draws from its own generator spawned from one SeedSequence, and
aggregation runs over results sorted by path id, so statistics are identical
for any worker count or completion order. Replayed trades are kept per path
and merged into the replay buffer in path id order once the run ends. Paths
that fail numerically are excluded and counted; cancellation stops the run
between paths/steps.
"""
import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np

from . import metrics
from .bootstrap import block_bootstrap
from .simulation_types import AggregateStatistics, MonteCarloResult, PathResult, SimulatedTrade
from .simulator import ReplayBuffer, TradeSimulator
from ..risk.adjuster import RiskAdjuster
from ..signals.composer import SignalComposer
from ..signals.config import MonteCarloConfig, RiskConfig, SignalConfig, SimulatorConfig
from ..shared.types import Candle, Direction

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class CancellationToken:
    """Thread-safe flag checked by long-running simulations."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _Cancelled(Exception):
    """Raised inside a path when the token fires mid-simulation."""


def _check(token: Optional[CancellationToken]) -> None:
    if token is not None and token.cancelled:
        raise _Cancelled()


def build_path_result(
    path_id: int,
    equity: Sequence[float],
    trade_returns: Sequence[float],
    initial_balance: float,
    risk_free_rate: float,
    periods_per_year: int,
    trades: Sequence[SimulatedTrade] = (),
) -> PathResult:
    """
    Summarize one path.

    Raises:
        FloatingPointError: If the equity curve contains non-finite values
    """
    equity = np.asarray(equity, dtype=float)
    if equity.size == 0 or not np.all(np.isfinite(equity)):
        raise FloatingPointError(f"Path {path_id} produced a non-finite equity curve")
    step_returns = metrics.equity_returns(equity)
    final_balance = float(equity[-1])
    return PathResult(
        path_id=path_id,
        equity_curve=tuple(float(v) for v in equity),
        trade_returns=tuple(float(r) for r in trade_returns),
        final_balance=final_balance,
        total_return=final_balance / initial_balance - 1,
        max_drawdown=metrics.max_drawdown(equity),
        sharpe_ratio=metrics.sharpe_ratio(step_returns, risk_free_rate, periods_per_year),
        sortino_ratio=metrics.sortino_ratio(step_returns, risk_free_rate, periods_per_year),
        num_trades=len(trade_returns),
        winning_trades=sum(1 for r in trade_returns if r > 0),
        max_consecutive_losses=metrics.max_consecutive_losses(trade_returns),
        trades=tuple(trades),
    )


def aggregate_paths(
    paths: Iterable[PathResult],
    initial_balance: float,
    requested_paths: Optional[int] = None,
    failed_paths: int = 0,
    cancelled: bool = False,
) -> AggregateStatistics:
    """
    Reduce completed paths to aggregate statistics.

    Paths are sorted by id first, so the result does not depend on the order
    in which they completed.
    """
    ordered = sorted(paths, key=lambda p: p.path_id)
    n = len(ordered)
    requested = requested_paths if requested_paths is not None else n + failed_paths
    if n == 0:
        return AggregateStatistics(
            failed_paths=failed_paths, requested_paths=requested, cancelled=cancelled
        )

    finals = np.array([p.final_balance for p in ordered])
    drawdowns = np.array([p.max_drawdown for p in ordered])
    total_trades = sum(p.num_trades for p in ordered)
    winning = sum(p.winning_trades for p in ordered)

    return AggregateStatistics(
        mean=float(finals.mean()),
        median=float(np.median(finals)),
        percentile_5=metrics.percentile_5(finals),
        best=float(finals.max()),
        worst=float(finals.min()),
        max_drawdown=float(drawdowns.max()),
        mean_drawdown=float(drawdowns.mean()),
        sharpe_ratio=float(np.mean([p.sharpe_ratio for p in ordered])),
        sortino_ratio=float(np.mean([p.sortino_ratio for p in ordered])),
        win_rate=winning / total_trades if total_trades else 0.0,
        max_consecutive_losses=max(p.max_consecutive_losses for p in ordered),
        mean_return=float(np.mean(finals / initial_balance - 1)),
        success_rate=float(np.mean(finals > initial_balance)),
        total_trades=total_trades,
        completed_paths=n,
        failed_paths=failed_paths,
        requested_paths=requested,
        cancelled=cancelled,
    )


class MonteCarloEngine:
    """Runs independent simulated paths and aggregates their statistics."""

    def __init__(
        self,
        config: Optional[MonteCarloConfig] = None,
        signal_config: Optional[SignalConfig] = None,
        simulator_config: Optional[SimulatorConfig] = None,
        risk_config: Optional[RiskConfig] = None,
        replay_buffer: Optional[ReplayBuffer] = None,
        composer: Optional[SignalComposer] = None,
    ):
        """
        Args:
            config: Path count, seed, workers and mode parameters
            signal_config: Used to build the composer when `composer` is omitted
            simulator_config: Slippage settings for replayed trades
            risk_config: Risk adjuster settings (one adjuster per path)
            replay_buffer: Receives every replayed trade, merged in path id order
                after each run
            composer: Signal composer used by empirical replay
        """
        self.config = config or MonteCarloConfig()
        self.composer = composer or SignalComposer(signal_config)
        self.simulator_config = simulator_config or SimulatorConfig()
        self.risk_config = risk_config or RiskConfig()
        self.replay_buffer = replay_buffer if replay_buffer is not None else ReplayBuffer(
            self.simulator_config.replay_buffer_size
        )

    # ------------------------------------------------------------------
    # Path simulations
    # ------------------------------------------------------------------

    def _finish_path(
        self,
        path_id: int,
        equity: List[float],
        trade_returns: List[float],
        trades: Sequence[SimulatedTrade] = (),
    ) -> PathResult:
        return build_path_result(
            path_id,
            equity,
            trade_returns,
            self.config.initial_balance,
            self.config.risk_free_rate,
            self.config.periods_per_year,
            trades,
        )

    def simulate_parametric_path(
        self,
        path_id: int,
        rng: np.random.Generator,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PathResult:
        """Compound Bernoulli(win_rate) trades day by day; equity is recorded per day."""
        cfg = self.config
        wins = rng.random((cfg.num_days, cfg.trades_per_day)) < cfg.win_rate
        returns = np.where(wins, cfg.avg_win, -cfg.avg_loss)

        balance = cfg.initial_balance
        equity = [balance]
        for day_returns in returns:
            _check(cancel_token)
            balance *= float(np.prod(1 + day_returns))
            equity.append(balance)
        return self._finish_path(path_id, equity, returns.ravel().tolist())

    def simulate_empirical_path(
        self,
        path_id: int,
        candles: Sequence[Candle],
        rng: np.random.Generator,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PathResult:
        """
        Replay the signal pipeline over one bootstrapped series.

        From bar `warmup_bars` on, a non-NEUTRAL signal whose (risk-adjusted)
        confidence reaches `min_confidence` opens a trade with an ATR stop and
        a risk/reward target, resolved by the trade simulator over the next
        `max_holding_bars` bars. One trade is open at a time; equity is the
        realized balance per bar.
        """
        cfg = self.config
        series = block_bootstrap(candles, rng, cfg.block_size)
        # Private buffer: trades reach the shared one only after the run, in path order
        simulator = TradeSimulator(self.simulator_config, rng=rng)
        indicators = self.composer.indicators
        adjuster = (
            RiskAdjuster(self.risk_config, indicators=indicators) if cfg.use_risk_adjuster else None
        )
        lookback = indicators.lookback

        balance = cfg.initial_balance
        equity = [balance]
        trade_returns: List[float] = []
        trades: List[SimulatedTrade] = []
        i = cfg.warmup_bars
        last_index = len(series) - 1
        while i < last_index:
            _check(cancel_token)
            window = series[max(0, i + 1 - lookback):i + 1]
            snapshot = indicators.snapshot(window)
            signal = self.composer.compose_snapshot(snapshot)

            offset = 1
            if signal.direction is not Direction.NEUTRAL and balance > 0:
                confidence = signal.confidence
                if adjuster is not None:
                    conditions = adjuster.market_conditions(window, snapshot)
                    confidence = adjuster.adjust(confidence, window, conditions).adjusted_confidence
                stop_distance = snapshot.atr * cfg.stop_atr_multiple
                entry = series[i].close
                if confidence >= cfg.min_confidence and stop_distance > 0 and entry > 0:
                    sign = signal.direction.sign
                    path = series[i:i + 1 + cfg.max_holding_bars]
                    trade = simulator.simulate(
                        direction=signal.direction,
                        entry=entry,
                        stop=entry - sign * stop_distance,
                        target=entry + sign * stop_distance * cfg.risk_reward,
                        size=balance * cfg.position_size_pct / entry,
                        confidence=confidence,
                        path=path,
                    )
                    if trade is not None:
                        offset = next(
                            k for k, bar in enumerate(path) if bar.timestamp == trade.close_time
                        )
                        offset = max(offset, 1)
                        trade_returns.append(trade.pnl / balance)
                        trades.append(trade)
                        equity.extend([balance] * (offset - 1))
                        balance += trade.pnl
                        if not math.isfinite(balance):
                            raise FloatingPointError(f"Path {path_id} balance became non-finite")

            equity.append(balance)
            i += offset
        return self._finish_path(path_id, equity, trade_returns, trades)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def _run(
        self,
        mode: str,
        simulate_path: Callable[[int, np.random.Generator, Optional[CancellationToken]], PathResult],
        progress: Optional[ProgressCallback],
        cancel_token: Optional[CancellationToken],
    ) -> MonteCarloResult:
        cfg = self.config
        seeds = np.random.SeedSequence(cfg.seed).spawn(cfg.num_paths)

        def task(path_id: int) -> Optional[PathResult]:
            if cancel_token is not None and cancel_token.cancelled:
                return None
            try:
                return simulate_path(path_id, np.random.default_rng(seeds[path_id]), cancel_token)
            except _Cancelled:
                return None

        completed: List[PathResult] = []
        failed = 0
        done = 0

        def collect(path_id: int, outcome: Callable[[], Optional[PathResult]]) -> None:
            nonlocal failed, done
            try:
                result = outcome()
            except (ArithmeticError, ValueError) as e:
                failed += 1
                logger.warning("%s path %d failed and is excluded: %s", mode, path_id, e)
            else:
                if result is not None:
                    completed.append(result)
            done += 1
            if progress is not None:
                progress(done / cfg.num_paths)

        logger.info(
            "Monte Carlo (%s): %d paths, seed=%s, workers=%d",
            mode, cfg.num_paths, cfg.seed, cfg.max_workers,
        )
        if cfg.max_workers <= 1:
            for path_id in range(cfg.num_paths):
                if cancel_token is not None and cancel_token.cancelled:
                    break
                collect(path_id, lambda: task(path_id))
        else:
            with ThreadPoolExecutor(max_workers=cfg.max_workers) as executor:
                futures = {executor.submit(task, path_id): path_id for path_id in range(cfg.num_paths)}
                for future in as_completed(futures):
                    collect(futures[future], future.result)

        completed.sort(key=lambda p: p.path_id)
        self.replay_buffer.extend([trade for p in completed for trade in p.trades])

        cancelled = cancel_token is not None and cancel_token.cancelled
        statistics = aggregate_paths(
            completed,
            cfg.initial_balance,
            requested_paths=cfg.num_paths,
            failed_paths=failed,
            cancelled=cancelled,
        )
        if cancelled:
            logger.info("Monte Carlo (%s) cancelled after %d completed paths", mode, statistics.completed_paths)
        else:
            logger.info(
                "Monte Carlo (%s) done: %d completed, %d failed, mean=%.2f p5=%.2f",
                mode, statistics.completed_paths, failed, statistics.mean, statistics.percentile_5,
            )
        return MonteCarloResult(
            mode=mode,
            statistics=statistics,
            paths=tuple(completed),
        )

    def run_parametric(
        self,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> MonteCarloResult:
        """Run `num_paths` parametric paths."""
        return self._run("parametric", self.simulate_parametric_path, progress, cancel_token)

    def run_empirical(
        self,
        candles: Sequence[Candle],
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> MonteCarloResult:
        """Run `num_paths` block-bootstrap replays of `candles`."""
        candles = list(candles)
        if len(candles) <= self.config.warmup_bars:
            logger.warning(
                "Only %d candles for a %d-bar warmup; paths will contain no trades",
                len(candles), self.config.warmup_bars,
            )

        def simulate_path(path_id, rng, cancel_token):
            return self.simulate_empirical_path(path_id, candles, rng, cancel_token)

        return self._run("empirical", simulate_path, progress, cancel_token)
