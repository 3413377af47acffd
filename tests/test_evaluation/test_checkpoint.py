"""
Tests for checkpoint persistence.
"""
import json
from datetime import datetime

import pytest

from tradecore.evaluation.checkpoint import Checkpoint


def make_checkpoint(score=1.5):
    return Checkpoint(
        label="run",
        score=score,
        metrics={"win_rate": 0.6, "profit_factor": float("inf")},
        timestamp=datetime(2024, 5, 1, 12, 30),
        metadata={"trades": 12},
    )


class TestCheckpoint:
    """Test save/load and comparison."""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "nested" / "best.json"
        make_checkpoint().save(path)

        loaded = Checkpoint.load(path)
        assert loaded.label == "run"
        assert loaded.score == 1.5
        assert loaded.metrics["profit_factor"] == float("inf")
        assert loaded.timestamp == datetime(2024, 5, 1, 12, 30)
        assert loaded.metadata == {"trades": 12}

    def test_no_temp_file_left(self, tmp_path):
        make_checkpoint().save(tmp_path / "best.json")
        assert [p.name for p in tmp_path.iterdir()] == ["best.json"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Checkpoint.load(tmp_path / "missing.json")

    def test_unsupported_version(self, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"version": "0.1", "label": "x", "score": 1.0}))
        with pytest.raises(ValueError, match="version"):
            Checkpoint.load(path)

    def test_missing_field(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"version": "1.0", "label": "x"}))
        with pytest.raises(ValueError, match="missing"):
            Checkpoint.load(path)

    def test_is_better_than(self):
        assert make_checkpoint(1.0).is_better_than(None)
        assert make_checkpoint(2.0).is_better_than(make_checkpoint(1.0))
        assert not make_checkpoint(1.0).is_better_than(make_checkpoint(1.0))
