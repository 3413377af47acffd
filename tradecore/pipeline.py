"""
Signal pipeline: fetch -> compose -> risk-adjust -> notify.

Collaborators (candle store, composer, risk adjuster, notifier) are injected
at construction. Store errors propagate to the caller; notifier failures are
logged and never abort the pipeline.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from .data.loader import CandleStore, DateLike
from .indicators.snapshot import IndicatorSnapshot
from .risk.adjuster import RiskAdjuster, RiskAdjustment
from .signals.composer import SignalComposer
from .shared.types import Candle, Direction, Signal, validate_series

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget message sink."""

    def notify(self, message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that writes messages to a logger."""

    def __init__(self, name: str = "tradecore.notifications", level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.level = level

    def notify(self, message: str) -> None:
        self.logger.log(self.level, message)


@dataclass(frozen=True)
class PipelineResult:
    symbol: str
    interval: str
    candles: int
    snapshot: IndicatorSnapshot
    raw_signal: Signal
    signal: Signal  # Risk-adjusted
    adjustment: RiskAdjustment
    notified: bool


def format_signal(symbol: str, signal: Signal) -> str:
    """One-line human readable description of a signal."""
    scores = signal.component_scores
    price = f" @ {signal.price:.4f}" if signal.price is not None else ""
    return (
        f"{symbol}: {signal.direction.value.upper()}{price} confidence={signal.confidence:.2f} "
        f"(trend={scores.trend.value:.2f}/{scores.trend.direction.value}, "
        f"momentum={scores.momentum.value:.2f}/{scores.momentum.direction.value}, "
        f"volume={scores.volume.value:.2f}, volatility={scores.volatility.value:.2f})"
    )


class SignalPipeline:
    """Runs the signal pipeline for one symbol at a time."""

    def __init__(
        self,
        store: CandleStore,
        composer: SignalComposer,
        adjuster: RiskAdjuster,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.composer = composer
        self.adjuster = adjuster
        self.notifier = notifier

    def _notify(self, message: str) -> bool:
        if self.notifier is None:
            return False
        try:
            self.notifier.notify(message)
        except Exception:
            logger.exception("Notifier failed; continuing without notification")
            return False
        return True

    def evaluate(self, symbol: str, interval: str, candles: List[Candle]) -> PipelineResult:
        """Compose and risk-adjust the signal for the last bar of `candles`."""
        validate_series(candles)
        snapshot = self.composer.indicators.snapshot(candles)
        raw_signal = self.composer.compose_snapshot(snapshot)
        conditions = self.adjuster.market_conditions(candles, snapshot)
        adjustment = self.adjuster.adjust(raw_signal.confidence, candles, conditions)
        signal = raw_signal.with_confidence(
            adjustment.adjusted_confidence,
            raw_confidence=raw_signal.confidence,
            regime_score=adjustment.regime_score,
            shock=adjustment.shock,
        )

        notified = False
        if signal.direction is not Direction.NEUTRAL:
            notified = self._notify(format_signal(symbol, signal))

        logger.info(
            "%s (%s): %s raw=%.3f adjusted=%.3f",
            symbol, interval, signal.direction.value, raw_signal.confidence, signal.confidence,
        )
        return PipelineResult(
            symbol=symbol,
            interval=interval,
            candles=len(candles),
            snapshot=snapshot,
            raw_signal=raw_signal,
            signal=signal,
            adjustment=adjustment,
            notified=notified,
        )

    def run(
        self,
        symbol: str,
        interval: str,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> PipelineResult:
        """
        Fetch candles from the store and evaluate the latest bar.

        Raises:
            DataUnavailableError: If the store has nothing for the request
            InvalidSeriesError: If the fetched series is malformed
        """
        candles = self.store.get(symbol, interval, start, end)
        return self.evaluate(symbol, interval, candles)
