"""
Risk adjustment module.

Market regime detection and confidence rescaling.
"""
from .adjuster import RiskAdjuster, RiskAdjustment
from .regime import (
    MarketRegimeSnapshot,
    MomentumRegime,
    RegimeClassification,
    TrendRegime,
    VolatilityRegime,
    classify_regime,
    is_shock,
    liquidity,
    regime_score,
)

__all__ = [
    'RiskAdjuster',
    'RiskAdjustment',
    'MarketRegimeSnapshot',
    'MomentumRegime',
    'RegimeClassification',
    'TrendRegime',
    'VolatilityRegime',
    'classify_regime',
    'is_shock',
    'liquidity',
    'regime_score',
]
