"""
Evaluation module.

Trade simulation, Monte Carlo backtesting and performance tracking.
"""
from .checkpoint import Checkpoint
from .monte_carlo import CancellationToken, MonteCarloEngine, aggregate_paths, build_path_result
from .performance import EpochSummary, PerformanceMetrics, PerformanceTracker, checkpoint_score
from .simulation_types import AggregateStatistics, MonteCarloResult, PathResult, SimulatedTrade
from .simulator import ReplayBuffer, TradeSimulator
from .bootstrap import block_bootstrap

__all__ = [
    'Checkpoint',
    'CancellationToken',
    'MonteCarloEngine',
    'aggregate_paths',
    'build_path_result',
    'EpochSummary',
    'PerformanceMetrics',
    'PerformanceTracker',
    'checkpoint_score',
    'AggregateStatistics',
    'MonteCarloResult',
    'PathResult',
    'SimulatedTrade',
    'ReplayBuffer',
    'TradeSimulator',
    'block_bootstrap',
]
