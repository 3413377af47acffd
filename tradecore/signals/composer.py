"""
Signal composition.

Combines an indicator snapshot into four weighted components (trend,
momentum, volume, volatility) and derives one directional Signal with a
confidence in [0, 1]. Composition is pure and never raises.
"""
import logging
import math
from typing import Dict, Optional, Sequence

from .config import SignalConfig
from ..indicators.snapshot import IndicatorSnapshot
from ..shared.types import Candle, ComponentScore, ComponentScores, Direction, Signal

logger = logging.getLogger(__name__)

# Float tolerance for the momentum vote margin (0.3 vs 0.1 must not tie)
_VOTE_EPSILON = 1e-9


def _unit(value: float) -> float:
    """Clamp to [0, 1]; non-finite values become 0."""
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def _call(value: float, pivot: float) -> Direction:
    """LONG above the pivot, SHORT below, NEUTRAL on an exact tie."""
    if value > pivot:
        return Direction.LONG
    if value < pivot:
        return Direction.SHORT
    return Direction.NEUTRAL


def majority_direction(votes: Dict[Direction, float], margin: float) -> Direction:
    """
    Weighted vote between LONG and SHORT.

    Args:
        votes: Accumulated weight per direction (NEUTRAL weight is ignored)
        margin: |long - short| below this resolves NEUTRAL

    Returns:
        Winning direction or NEUTRAL
    """
    long_weight = votes.get(Direction.LONG, 0.0)
    short_weight = votes.get(Direction.SHORT, 0.0)
    if abs(long_weight - short_weight) < margin - _VOTE_EPSILON:
        return Direction.NEUTRAL
    return Direction.LONG if long_weight > short_weight else Direction.SHORT


class SignalComposer:
    """Builds weighted direction + confidence signals from indicator snapshots."""

    def __init__(self, config: Optional[SignalConfig] = None):
        self.config = config or SignalConfig()
        self.indicators = self.config.indicators()

    def trend_component(self, snapshot: IndicatorSnapshot) -> ComponentScore:
        """avg(min(trend_strength, 1), adx / 100); LONG when EMA short > EMA long."""
        value = (min(snapshot.trend_strength, 1.0) + snapshot.adx / 100) / 2
        direction = Direction.LONG if snapshot.ema_short > snapshot.ema_long else Direction.SHORT
        return ComponentScore(_unit(value), direction)

    def momentum_component(self, snapshot: IndicatorSnapshot) -> ComponentScore:
        """
        avg(|RSI-50|/50, |MACD histogram|, |%K-50|/50) with a weighted
        RSI/MACD/Stochastic vote for direction.
        """
        rsi_score = abs(snapshot.rsi - 50) / 50
        macd_score = min(abs(snapshot.macd.histogram), 1.0)
        stoch_score = abs(snapshot.stochastic.k - 50) / 50
        value = (rsi_score + macd_score + stoch_score) / 3

        weights = self.config.vote_weights
        votes: Dict[Direction, float] = {}
        for name, direction in (
            ("rsi", _call(snapshot.rsi, 50.0)),
            ("macd", _call(snapshot.macd.histogram, 0.0)),
            ("stochastic", _call(snapshot.stochastic.k, snapshot.stochastic.d)),
        ):
            votes[direction] = votes.get(direction, 0.0) + weights[name]
        direction = majority_direction(votes, self.config.vote_margin)
        return ComponentScore(_unit(value), direction)

    def volume_component(self, snapshot: IndicatorSnapshot) -> ComponentScore:
        """min(|volume_trend - 1|, 1); LONG when volume is expanding."""
        value = min(abs(snapshot.volume_trend - 1), 1.0)
        direction = Direction.LONG if snapshot.volume_trend > 1 else Direction.SHORT
        return ComponentScore(_unit(value), direction)

    def volatility_component(self, snapshot: IndicatorSnapshot) -> ComponentScore:
        """max(0, 1 - historical_volatility * 10); never directional."""
        value = max(0.0, 1 - snapshot.historical_volatility * 10)
        return ComponentScore(_unit(value), Direction.NEUTRAL)

    def compose_snapshot(self, snapshot: IndicatorSnapshot) -> Signal:
        """Compose a Signal from an already computed snapshot."""
        scores = ComponentScores(
            trend=self.trend_component(snapshot),
            momentum=self.momentum_component(snapshot),
            volume=self.volume_component(snapshot),
            volatility=self.volatility_component(snapshot),
        )
        weights = self.config.component_weights
        confidence = (
            weights["trend"] * scores.trend.value
            + weights["momentum"] * scores.momentum.value
            + weights["volume"] * scores.volume.value
            + weights["volatility"] * scores.volatility.value
        )
        if scores.trend.direction == scores.momentum.direction:
            direction = scores.trend.direction
        else:
            direction = Direction.NEUTRAL

        return Signal(
            direction=direction,
            confidence=confidence,
            component_scores=scores,
            timestamp=snapshot.timestamp,
            price=snapshot.close if snapshot.bars_used else None,
            metadata={"rsi": snapshot.rsi, "adx": snapshot.adx, "atr": snapshot.atr},
        )

    def compose(self, candles: Sequence[Candle], index: Optional[int] = None) -> Signal:
        """
        Compose the signal for bar `index` (default: last bar).

        Args:
            candles: Ascending candle series
            index: Bar to evaluate; only bars up to it are used

        Returns:
            Signal (NEUTRAL with low confidence when history is short)
        """
        snapshot = self.indicators.snapshot(candles, index)
        signal = self.compose_snapshot(snapshot)
        logger.debug(
            "Signal at %s: %s confidence=%.3f (bars=%d)",
            snapshot.timestamp, signal.direction.value, signal.confidence, snapshot.bars_used,
        )
        return signal
