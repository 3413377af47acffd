"""
Shared statistics for equity curves and trade returns.

Used by the Monte Carlo engine and the performance tracker. All functions
guard their divisions: an empty input, a non-positive peak or a zero
deviation returns 0 instead of NaN/inf.
"""
import math
from typing import Sequence

import numpy as np


def _finite_array(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float).reshape(-1)
    return arr[np.isfinite(arr)]


def max_drawdown(equity: Sequence[float]) -> float:
    """Maximum peak-to-trough decline of an equity curve, as a fraction of the peak."""
    arr = _finite_array(equity)
    if arr.size == 0:
        return 0.0
    peaks = np.maximum.accumulate(arr)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdowns = np.where(peaks > 0, (peaks - arr) / peaks, 0.0)
    value = float(drawdowns.max())
    return value if math.isfinite(value) else 0.0


def equity_returns(equity: Sequence[float]) -> np.ndarray:
    """Per-step simple returns of an equity curve (steps from a non-positive balance are skipped)."""
    arr = np.asarray(equity, dtype=float).reshape(-1)
    if arr.size < 2:
        return np.empty(0)
    previous, current = arr[:-1], arr[1:]
    valid = (previous > 0) & np.isfinite(previous) & np.isfinite(current)
    return (current[valid] - previous[valid]) / previous[valid]


def sharpe_ratio(
    returns: Sequence[float],
    risk_free_rate: float = 0.0,
    periods_per_year: int = 252,
) -> float:
    """
    Annualized Sharpe ratio: (mean(r) - rf / periods) / std(r) * sqrt(periods).

    risk_free_rate is annual. Zero deviation gives 0.
    """
    arr = _finite_array(returns)
    if arr.size < 2:
        return 0.0
    std = float(arr.std())
    if std == 0 or not math.isfinite(std):
        return 0.0
    excess = float(arr.mean()) - risk_free_rate / periods_per_year
    value = excess / std * math.sqrt(periods_per_year)
    return value if math.isfinite(value) else 0.0


def sortino_ratio(
    returns: Sequence[float],
    risk_free_rate: float = 0.0,
    periods_per_year: int = 252,
) -> float:
    """Like sharpe_ratio but divided by the downside deviation; no downside gives 0."""
    arr = _finite_array(returns)
    if arr.size < 2:
        return 0.0
    target = risk_free_rate / periods_per_year
    downside = np.minimum(arr - target, 0.0)
    downside_dev = math.sqrt(float(np.mean(downside ** 2)))
    if downside_dev == 0:
        return 0.0
    value = (float(arr.mean()) - target) / downside_dev * math.sqrt(periods_per_year)
    return value if math.isfinite(value) else 0.0


def calmar_ratio(annual_return: float, drawdown: float) -> float:
    """Annualized return divided by max drawdown; 0 without drawdown."""
    if drawdown <= 0 or not math.isfinite(annual_return):
        return 0.0
    return annual_return / drawdown


def max_consecutive_losses(pnls: Sequence[float]) -> int:
    """Longest run of strictly negative results."""
    longest = current = 0
    for pnl in pnls:
        if pnl < 0:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def percentile_5(values: Sequence[float]) -> float:
    """5th percentile as sorted[floor(0.05 * n)] (0 for an empty input)."""
    arr = np.sort(_finite_array(values))
    if arr.size == 0:
        return 0.0
    return float(arr[int(math.floor(0.05 * arr.size))])
