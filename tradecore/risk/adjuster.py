"""
Risk adjustment of signal confidence.

Rescales a composed confidence by the current market conditions
(volatility, trend, volume, liquidity) and a regime score. Keeps a rolling
history of the last conditions so the volume factor is relative to recent
activity.
"""
import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Sequence, Tuple

from . import regime
from .regime import MarketRegimeSnapshot
from ..indicators.snapshot import IndicatorSnapshot, TechnicalIndicators
from ..signals.config import RiskConfig
from ..shared.types import Candle, Signal

logger = logging.getLogger(__name__)

# Factor weights: volatility, trend, volume, liquidity
VOLATILITY_FACTOR_WEIGHT = 0.3
TREND_FACTOR_WEIGHT = 0.3
VOLUME_FACTOR_WEIGHT = 0.2
LIQUIDITY_FACTOR_WEIGHT = 0.2


@dataclass(frozen=True)
class RiskAdjustment:
    """Breakdown of one confidence adjustment."""
    original_confidence: float
    adjusted_confidence: float
    volatility_factor: float
    trend_factor: float
    volume_factor: float
    liquidity_factor: float
    regime_score: float
    regime_multiplier: float
    shock: bool
    conditions: MarketRegimeSnapshot


class RiskAdjuster:
    """Rescales confidence by detected market regime."""

    def __init__(
        self,
        config: Optional[RiskConfig] = None,
        indicators: Optional[TechnicalIndicators] = None,
    ):
        self.config = config or RiskConfig()
        self.indicators = indicators or TechnicalIndicators()
        self._history: Deque[MarketRegimeSnapshot] = deque(maxlen=self.config.history_size)

    @property
    def history(self) -> Tuple[MarketRegimeSnapshot, ...]:
        return tuple(self._history)

    def reset(self) -> None:
        self._history.clear()

    def market_conditions(
        self,
        candles: Sequence[Candle],
        snapshot: Optional[IndicatorSnapshot] = None,
    ) -> MarketRegimeSnapshot:
        """Measure the conditions at the last bar (does not touch the history)."""
        if snapshot is None:
            snapshot = self.indicators.snapshot(candles)
        return MarketRegimeSnapshot(
            volatility=snapshot.historical_volatility,
            trend=snapshot.trend_strength,
            volume=snapshot.volume_trend,
            liquidity=regime.liquidity(
                candles, self.config.liquidity_window, self.config.reference_volume
            ),
            regime_score=self.regime_score(candles),
        )

    def regime_score(self, candles: Sequence[Candle]) -> float:
        return regime.regime_score(
            candles,
            window=self.config.regime_window,
            min_candles=self.config.regime_min_candles,
            ideal_volatility=self.config.ideal_volatility,
        )

    def _average_volume(self) -> float:
        if not self._history:
            return 1.0
        average = sum(c.volume for c in self._history) / len(self._history)
        return average if average > 0 else 1.0

    def adjust(
        self,
        confidence: float,
        candles: Sequence[Candle],
        conditions: Optional[MarketRegimeSnapshot] = None,
    ) -> RiskAdjustment:
        """
        Adjust a confidence for the current market.

        adjusted = confidence * (0.3*vol + 0.3*trend + 0.2*volume + 0.2*liquidity)
        * (0.5 + regimeScore), clamped to [0, 1]. On a shock bar the regime
        multiplier is capped at 1 so the adjustment can only dampen.
        """
        if conditions is None:
            conditions = self.market_conditions(candles)
        self._history.append(conditions)

        volatility_factor = max(0.5, 1 - conditions.volatility ** 2)
        trend_factor = 0.5 + 0.5 * min(1.0, max(0.0, conditions.trend))
        volume_factor = min(1.0, max(0.0, conditions.volume / self._average_volume()))
        liquidity_factor = max(0.5, min(1.0, conditions.liquidity))

        multiplier = 0.5 + conditions.regime_score
        shock = regime.is_shock(candles, self.config.regime_window, self.config.shock_sigma)
        if shock:
            multiplier = min(1.0, multiplier)

        weighted = (
            VOLATILITY_FACTOR_WEIGHT * volatility_factor
            + TREND_FACTOR_WEIGHT * trend_factor
            + VOLUME_FACTOR_WEIGHT * volume_factor
            + LIQUIDITY_FACTOR_WEIGHT * liquidity_factor
        )
        base = confidence if math.isfinite(confidence) else 0.0
        adjusted = base * weighted * multiplier
        adjusted = min(1.0, max(0.0, adjusted)) if math.isfinite(adjusted) else 0.0

        logger.debug(
            "Risk adjustment: original=%.2f vol=%.2f trend=%.2f volume=%.2f liquidity=%.2f "
            "regime=%.2f shock=%s final=%.2f",
            base, volatility_factor, trend_factor, volume_factor, liquidity_factor,
            conditions.regime_score, shock, adjusted,
        )
        return RiskAdjustment(
            original_confidence=base,
            adjusted_confidence=adjusted,
            volatility_factor=volatility_factor,
            trend_factor=trend_factor,
            volume_factor=volume_factor,
            liquidity_factor=liquidity_factor,
            regime_score=conditions.regime_score,
            regime_multiplier=multiplier,
            shock=shock,
            conditions=conditions,
        )

    def adjust_signal(
        self,
        signal: Signal,
        candles: Sequence[Candle],
        snapshot: Optional[IndicatorSnapshot] = None,
    ) -> Signal:
        """Copy of `signal` with risk-adjusted confidence."""
        conditions = self.market_conditions(candles, snapshot) if snapshot is not None else None
        adjustment = self.adjust(signal.confidence, candles, conditions)
        return signal.with_confidence(
            adjustment.adjusted_confidence,
            raw_confidence=signal.confidence,
            regime_score=adjustment.regime_score,
            shock=adjustment.shock,
        )
