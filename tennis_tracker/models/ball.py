"""
Ball-related data models.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

from .detection import BoundingBox


@dataclass(frozen=True)
class TrackedBall:
    """The ball as seen in one frame."""
    bbox: BoundingBox
    confidence: float
    speed_kmh: float = 0.0
    detected: bool = True

    @property
    def center(self) -> Tuple[float, float]:
        return self.bbox.center

    def to_dict(self) -> dict:
        cx, cy = self.center
        return {
            "bbox": self.bbox.to_dict(),
            "center": [cx, cy],
            "confidence": self.confidence,
            "speed_kmh": self.speed_kmh,
            "detected": self.detected,
        }


@dataclass(frozen=True)
class TrajectoryPoint:
    """One entry of the rolling ball-trajectory buffer."""
    x: float
    y: float
    timestamp: float
    speed_kmh: float
    confidence: float
