"""
Trading signal core.

Indicator library -> signal composer -> risk adjuster -> trade simulator ->
Monte Carlo backtest / performance tracker.
"""
