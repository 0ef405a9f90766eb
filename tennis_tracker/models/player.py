"""
Player-related data models.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple

from .detection import BoundingBox

Heatmap = Tuple[Tuple[int, ...], ...]


@dataclass(frozen=True)
class TrackedPlayer:
    """
    A player as seen in one frame.

    Snapshots are immutable; `heatmap` is a copy of the session grid at the
    time the frame was produced. `detected` is False when the position was
    carried over from the previous frame.
    """
    track_id: int
    bbox: BoundingBox
    confidence: float
    speed_kmh: float = 0.0
    distance_m: float = 0.0          # cumulative since session start
    heatmap: Heatmap = field(default_factory=tuple)
    detected: bool = True

    @property
    def center(self) -> Tuple[float, float]:
        return self.bbox.center

    def to_dict(self) -> dict:
        cx, cy = self.center
        return {
            "track_id": self.track_id,
            "bbox": self.bbox.to_dict(),
            "center": [cx, cy],
            "confidence": self.confidence,
            "speed_kmh": self.speed_kmh,
            "distance_m": self.distance_m,
            "heatmap": [list(row) for row in self.heatmap],
            "detected": self.detected,
        }


@dataclass(frozen=True)
class MovementSample:
    """
    Player kinematic snapshot kept in the movement buffer.

    Velocity and acceleration are pixel deltas per sample, not per second.
    """
    x: float
    y: float
    timestamp: float
    velocity: Tuple[float, float] = (0.0, 0.0)
    acceleration: Tuple[float, float] = (0.0, 0.0)
    speed_kmh: float = 0.0
