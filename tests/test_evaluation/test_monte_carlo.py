"""
Tests for the Monte Carlo engine: reproducibility, order invariance,
cancellation, failed path handling and both simulation modes.
"""
import math
import random

import numpy as np
import pytest

from tradecore.evaluation.monte_carlo import (
    CancellationToken,
    MonteCarloEngine,
    aggregate_paths,
    build_path_result,
)
from tradecore.signals.config import MonteCarloConfig


def parametric_engine(**overrides):
    params = dict(num_paths=20, num_days=30, trades_per_day=2, seed=42)
    params.update(overrides)
    return MonteCarloEngine(MonteCarloConfig(**params))


class TestParametric:
    """Test the parametric mode."""

    def test_path_count_and_shape(self):
        result = parametric_engine().run_parametric()

        assert result.mode == "parametric"
        assert result.statistics.completed_paths == 20
        assert result.statistics.requested_paths == 20
        assert [p.path_id for p in result.paths] == list(range(20))
        assert all(len(p.equity_curve) == 31 for p in result.paths)
        assert all(p.num_trades == 60 for p in result.paths)

    def test_always_winning(self):
        result = parametric_engine(win_rate=1.0, avg_win=0.01).run_parametric()
        stats = result.statistics

        assert stats.mean == pytest.approx(1000 * 1.01 ** 60)
        assert stats.max_drawdown == 0.0
        assert stats.success_rate == 1.0
        assert stats.win_rate == 1.0
        assert stats.max_consecutive_losses == 0

    def test_always_losing(self):
        result = parametric_engine(win_rate=0.0, avg_loss=0.01).run_parametric()
        stats = result.statistics

        assert stats.worst == pytest.approx(1000 * 0.99 ** 60)
        assert stats.success_rate == 0.0
        assert stats.max_consecutive_losses == 60
        assert stats.max_drawdown == pytest.approx(1 - 0.99 ** 60)

    def test_same_seed_same_result(self):
        a = parametric_engine(seed=7).run_parametric()
        b = parametric_engine(seed=7).run_parametric()
        assert a.statistics == b.statistics
        assert a.paths == b.paths

    def test_different_seed_different_result(self):
        a = parametric_engine(seed=7).run_parametric()
        b = parametric_engine(seed=8).run_parametric()
        assert a.statistics.mean != b.statistics.mean

    def test_percentile_5(self):
        result = parametric_engine(num_paths=40).run_parametric()
        finals = sorted(p.final_balance for p in result.paths)
        assert result.statistics.percentile_5 == finals[2]
        assert result.statistics.confidence95 == finals[2]


class TestOrderInvariance:
    """Statistics do not depend on worker count or completion order."""

    def test_worker_count(self):
        sequential = parametric_engine(max_workers=1).run_parametric()
        threaded = parametric_engine(max_workers=4).run_parametric()

        assert threaded.statistics.to_dict() == sequential.statistics.to_dict()
        assert threaded.paths == sequential.paths

    def test_shuffled_aggregation(self):
        paths = list(parametric_engine().run_parametric().paths)
        shuffled = paths[:]
        random.Random(0).shuffle(shuffled)

        assert aggregate_paths(shuffled, 1000.0) == aggregate_paths(paths, 1000.0)

    def test_empty_aggregation(self):
        stats = aggregate_paths([], 1000.0, requested_paths=5, failed_paths=5)
        assert stats.completed_paths == 0
        assert stats.failed_paths == 5
        assert stats.mean == 0.0


class TestProgressAndCancellation:
    """Test progress reporting and cooperative cancellation."""

    def test_progress(self):
        fractions = []
        parametric_engine(num_paths=10).run_parametric(progress=fractions.append)

        assert len(fractions) == 10
        assert fractions == sorted(fractions)
        assert fractions[-1] == 1.0

    def test_progress_does_not_change_results(self):
        plain = parametric_engine().run_parametric()
        reported = parametric_engine().run_parametric(progress=lambda fraction: None)
        assert plain.statistics == reported.statistics

    def test_cancel_before_start(self):
        token = CancellationToken()
        token.cancel()

        result = parametric_engine().run_parametric(cancel_token=token)

        assert result.statistics.cancelled
        assert result.statistics.completed_paths == 0
        assert result.paths == ()

    def test_cancel_mid_run(self):
        token = CancellationToken()

        def cancel_after_three(fraction):
            if fraction >= 3 / 20:
                token.cancel()

        result = parametric_engine().run_parametric(progress=cancel_after_three, cancel_token=token)

        assert result.statistics.cancelled
        assert result.statistics.completed_paths == 3
        assert result.statistics.failed_paths == 0

    def test_cancel_threaded(self):
        token = CancellationToken()
        token.cancel()
        result = parametric_engine(max_workers=4).run_parametric(cancel_token=token)
        assert result.statistics.cancelled
        assert result.statistics.completed_paths == 0


class TestFailedPaths:
    """Numerically failing paths are excluded and counted."""

    def test_failed_path_excluded(self, monkeypatch):
        engine = parametric_engine(num_paths=10)
        simulate = engine.simulate_parametric_path

        def flaky(path_id, rng, cancel_token=None):
            if path_id in (3, 7):
                raise FloatingPointError("overflow")
            return simulate(path_id, rng, cancel_token)

        monkeypatch.setattr(engine, "simulate_parametric_path", flaky)
        result = engine.run_parametric()

        assert result.statistics.failed_paths == 2
        assert result.statistics.completed_paths == 8
        assert 3 not in [p.path_id for p in result.paths]
        assert not result.statistics.cancelled

    def test_failures_keep_other_paths_identical(self, monkeypatch):
        reference = {p.path_id: p for p in parametric_engine(num_paths=10).run_parametric().paths}
        engine = parametric_engine(num_paths=10)
        simulate = engine.simulate_parametric_path

        def flaky(path_id, rng, cancel_token=None):
            if path_id == 0:
                raise ValueError("bad path")
            return simulate(path_id, rng, cancel_token)

        monkeypatch.setattr(engine, "simulate_parametric_path", flaky)
        for path in engine.run_parametric().paths:
            assert path == reference[path.path_id]

    def test_non_finite_equity_rejected(self):
        with pytest.raises(FloatingPointError):
            build_path_result(0, [1000.0, math.inf], [0.1], 1000.0, 0.0, 252)


class TestPathResult:
    """Test per-path statistics."""

    def test_build_path_result(self):
        result = build_path_result(5, [100.0, 110.0, 99.0, 120.0], [0.1, -0.1, 0.2], 100.0, 0.0, 252)

        assert result.path_id == 5
        assert result.final_balance == 120.0
        assert result.total_return == pytest.approx(0.2)
        assert result.max_drawdown == pytest.approx(0.1)
        assert result.num_trades == 3
        assert result.win_rate == pytest.approx(2 / 3)
        assert result.max_consecutive_losses == 1


class TestEmpirical:
    """Test block-bootstrap replay."""

    @pytest.fixture
    def candles(self, random_candles):
        return random_candles(seed=21, n=160, sigma=0.015)

    def empirical_engine(self, **overrides):
        params = dict(num_paths=3, seed=5, warmup_bars=50, min_confidence=0.0)
        params.update(overrides)
        return MonteCarloEngine(MonteCarloConfig(**params))

    def test_runs_and_records_trades(self, candles):
        engine = self.empirical_engine()
        result = engine.run_empirical(candles)

        assert result.mode == "empirical"
        assert result.statistics.completed_paths == 3
        for path in result.paths:
            assert all(math.isfinite(v) for v in path.equity_curve)
            assert path.equity_curve[0] == 1000.0
        assert len(engine.replay_buffer) == result.statistics.total_trades

    def test_reproducible_across_workers(self, candles):
        sequential = self.empirical_engine(max_workers=1).run_empirical(candles)
        threaded = self.empirical_engine(max_workers=3).run_empirical(candles)
        assert threaded.statistics.to_dict() == sequential.statistics.to_dict()

    def test_replay_buffer_independent_of_workers(self, random_candles):
        candles = random_candles(seed=7, n=300)
        engines = [self.empirical_engine(num_paths=16, seed=3, max_workers=w) for w in (1, 4)]
        results = [engine.run_empirical(candles) for engine in engines]
        sequential, threaded = (engine.replay_buffer.snapshot() for engine in engines)

        assert len(sequential) > 0
        assert threaded == sequential
        assert sequential == tuple(trade for path in results[0].paths for trade in path.trades)

    def test_short_series_has_no_trades(self, candles):
        result = self.empirical_engine().run_empirical(candles[:30])
        assert result.statistics.total_trades == 0
        assert result.statistics.mean == 1000.0

    def test_cancelled(self, candles):
        token = CancellationToken()
        token.cancel()
        result = self.empirical_engine().run_empirical(candles, cancel_token=token)
        assert result.statistics.cancelled
        assert result.statistics.completed_paths == 0


def test_result_frames():
    result = parametric_engine(num_paths=5).run_parametric()

    frame = result.to_frame()
    assert list(frame.index) == list(range(5))
    assert "final_balance" in frame.columns

    bands = result.percentile_bands()
    assert list(bands.columns) == ["p5", "p25", "p50", "p75", "p95"]
    assert len(bands) == 31
    assert np.all(bands["p5"] <= bands["p95"])
