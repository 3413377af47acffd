"""
Checkpoint: best-so-far performance snapshot.

Persisted as JSON with an atomic temp-file rename so an interrupted write
never leaves a truncated checkpoint behind.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

CHECKPOINT_VERSION = "1.0"


@dataclass
class Checkpoint:
    """Scored performance metrics at a point in time."""

    label: str
    score: float
    metrics: Dict[str, float]
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}

    def is_better_than(self, other: Optional[Checkpoint]) -> bool:
        return other is None or self.score > other.score

    def save(self, path: Union[str, Path]) -> None:
        """
        Save checkpoint to disk.

        Args:
            path: Path to checkpoint file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        checkpoint_data = {
            "version": CHECKPOINT_VERSION,
            "label": self.label,
            "score": self.score,
            "timestamp": self.timestamp.isoformat(),
            "metrics": self.metrics,
            "metadata": self.metadata,
        }

        # Write atomically using temp file
        temp_path = path.with_suffix('.tmp')
        try:
            with open(temp_path, 'w') as f:
                json.dump(checkpoint_data, f, indent=2)
            temp_path.replace(path)
        finally:
            if temp_path.exists():
                temp_path.unlink()

    @classmethod
    def load(cls, path: Union[str, Path]) -> Checkpoint:
        """
        Load checkpoint from disk.

        Raises:
            FileNotFoundError: If checkpoint doesn't exist
            ValueError: If checkpoint is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Checkpoint not found: {path}")

        with open(path, 'r') as f:
            data = json.load(f)

        version = data.get("version", CHECKPOINT_VERSION)
        if version != CHECKPOINT_VERSION:
            raise ValueError(f"Unsupported checkpoint version: {version}")
        try:
            return cls(
                label=data["label"],
                score=float(data["score"]),
                metrics=dict(data["metrics"]),
                timestamp=datetime.fromisoformat(data["timestamp"]),
                metadata=data.get("metadata", {}),
            )
        except KeyError as e:
            raise ValueError(f"Checkpoint {path} is missing field {e}") from e

    def __repr__(self) -> str:
        return (
            f"Checkpoint({self.label!r}, score={self.score:.4f}, "
            f"saved {self.timestamp.strftime('%Y-%m-%d %H:%M:%S')})"
        )
