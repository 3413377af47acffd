"""
Trade simulator: resolves one proposed trade against a forward price path.

Invalid proposals (non-finite numbers, zero stop/target distance, levels on
the wrong side of entry) yield no trade rather than an exception. Within a
bar the stop is checked before the target, so a bar that touches both
resolves as STOPPED.
"""
import logging
import math
import threading
from collections import deque
from typing import Deque, List, Optional, Sequence, Tuple

import numpy as np

from .simulation_types import SimulatedTrade
from ..signals.config import SimulatorConfig
from ..shared.types import Candle, Direction, TradeStatus

logger = logging.getLogger(__name__)


class ReplayBuffer:
    """Bounded FIFO of simulated trades; appends are serialized by a lock."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._trades: Deque[SimulatedTrade] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, trade: SimulatedTrade) -> None:
        with self._lock:
            self._trades.append(trade)

    def extend(self, trades: Sequence[SimulatedTrade]) -> None:
        with self._lock:
            self._trades.extend(trades)

    def snapshot(self) -> Tuple[SimulatedTrade, ...]:
        with self._lock:
            return tuple(self._trades)

    def sample(self, n: int, rng: np.random.Generator) -> List[SimulatedTrade]:
        """Draw `n` trades with replacement (empty list when the buffer is empty)."""
        trades = self.snapshot()
        if not trades or n <= 0:
            return []
        indices = rng.integers(0, len(trades), size=n)
        return [trades[i] for i in indices]

    def clear(self) -> None:
        with self._lock:
            self._trades.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._trades)


def _all_finite(*values: float) -> bool:
    try:
        return all(math.isfinite(float(v)) for v in values)
    except (TypeError, ValueError):
        return False


class TradeSimulator:
    """Simulates trades with seeded slippage and records them in a replay buffer."""

    def __init__(
        self,
        config: Optional[SimulatorConfig] = None,
        rng: Optional[np.random.Generator] = None,
        replay_buffer: Optional[ReplayBuffer] = None,
        seed: Optional[int] = None,
    ):
        """
        Args:
            config: Slippage and buffer settings (defaults from shared.defaults)
            rng: Random generator for slippage; built from `seed` when omitted
            replay_buffer: Shared buffer to append to; a private one is created when omitted
            seed: Seed for the default generator
        """
        self.config = config or SimulatorConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.replay_buffer = replay_buffer if replay_buffer is not None else ReplayBuffer(
            self.config.replay_buffer_size
        )

    def _reject(self, reason: str) -> None:
        logger.debug("No trade: %s", reason)

    def simulate(
        self,
        direction: Direction,
        entry: float,
        stop: float,
        target: float,
        size: float,
        confidence: float,
        path: Sequence[Candle],
    ) -> Optional[SimulatedTrade]:
        """
        Resolve a trade over a forward path.

        Args:
            direction: LONG or SHORT (NEUTRAL gives no trade)
            entry: Intended entry price
            stop: Stop-loss level
            target: Take-profit level
            size: Position size in units (> 0)
            confidence: Signal confidence, clamped to [0, 1]
            path: path[0] is the entry bar, path[1:] are walked in order

        Returns:
            SimulatedTrade, or None when the proposal is invalid
        """
        if direction not in (Direction.LONG, Direction.SHORT):
            self._reject(f"direction {direction}")
            return None
        if not _all_finite(entry, stop, target, size, confidence):
            self._reject("non-finite input")
            return None
        if entry <= 0 or size <= 0:
            self._reject(f"entry={entry} size={size}")
            return None
        risk = abs(entry - stop)
        reward = abs(target - entry)
        if risk <= self.config.min_distance or reward <= self.config.min_distance:
            self._reject(f"stop distance {risk} / target distance {reward} too small")
            return None
        if direction is Direction.LONG and not (stop < entry < target):
            self._reject(f"LONG levels out of order: stop={stop} entry={entry} target={target}")
            return None
        if direction is Direction.SHORT and not (target < entry < stop):
            self._reject(f"SHORT levels out of order: target={target} entry={entry} stop={stop}")
            return None
        if not path:
            self._reject("empty path")
            return None

        confidence = min(1.0, max(0.0, float(confidence)))
        sign = direction.sign
        slippage = sign * self.rng.uniform(self.config.slippage_min, self.config.slippage_max) * entry

        status = TradeStatus.FILLED
        exit_price = path[-1].close
        close_bar = path[-1]
        for bar in path[1:]:
            if direction is Direction.LONG:
                if bar.low <= stop:
                    status, exit_price = TradeStatus.STOPPED, stop
                elif bar.high >= target:
                    status, exit_price = TradeStatus.CLOSED, target
            else:
                if bar.high >= stop:
                    status, exit_price = TradeStatus.STOPPED, stop
                elif bar.low <= target:
                    status, exit_price = TradeStatus.CLOSED, target
            if status is not TradeStatus.FILLED:
                close_bar = bar
                break

        pnl = sign * (exit_price - entry - slippage) * size
        if not math.isfinite(pnl):
            self._reject("non-finite pnl")
            return None

        trade = SimulatedTrade(
            direction=direction,
            entry_price=entry,
            exit_price=exit_price,
            stop_loss=stop,
            take_profit=target,
            size=size,
            pnl=pnl,
            status=status,
            slippage=slippage,
            open_time=path[0].timestamp,
            close_time=close_bar.timestamp,
            confidence=confidence,
            expected_value=reward * size * confidence - risk * size * (1 - confidence),
            intended_price=entry,
            executed_price=entry + slippage,
        )
        self.replay_buffer.append(trade)
        return trade
