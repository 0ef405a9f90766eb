"""
Player movement: kinematics, the position heatmap and the movement buffer.

Distances are measured between box centres in pixels and converted with the
court's metres-per-pixel scale; speeds are reported in km/h.
"""
from __future__ import annotations
from collections import deque
from typing import Deque, List, Optional, Tuple
import numpy as np

from ..models.court  import CourtBoundaries
from ..models.player import Heatmap, MovementSample

Point = Tuple[float, float]


def pixel_distance(a: Point, b: Point) -> float:
    return float(np.hypot(b[0] - a[0], b[1] - a[1]))


def displacement_m(a: Point, b: Point, pixels_to_meters: float) -> float:
    return pixel_distance(a, b) * pixels_to_meters


def speed_kmh(distance_m: float, dt_s: float) -> float:
    """Metres over seconds → km/h. Zero for non-positive time steps."""
    if dt_s <= 0:
        return 0.0
    return distance_m / dt_s * 3.6


class HeatmapGrid:
    """
    Visit counts on an n×n grid laid over the court rectangle.

    Positions outside the court are clamped onto the border cells, so every
    update lands in exactly one cell.
    """

    def __init__(self, size: int = 10):
        self._size = size
        self._grid = np.zeros((size, size), dtype=np.int64)

    @property
    def size(self) -> int:
        return self._size

    def cell(self, position: Point, court: CourtBoundaries) -> Tuple[int, int]:
        """(row, col) of the cell holding `position`."""
        x, y = position
        n = self._size
        gx = int(np.clip(np.floor((x - court.left) / court.court_width * n), 0, n - 1))
        gy = int(np.clip(np.floor((y - court.top) / court.court_height * n), 0, n - 1))
        return gy, gx

    def add(self, position: Point, court: CourtBoundaries):
        gy, gx = self.cell(position, court)
        self._grid[gy, gx] += 1

    @property
    def total(self) -> int:
        return int(self._grid.sum())

    def snapshot(self) -> Heatmap:
        return tuple(tuple(int(v) for v in row) for row in self._grid)


def court_coverage(heatmap) -> float:
    """Percentage of grid cells visited at least once."""
    grid = np.asarray(heatmap)
    if grid.size == 0:
        return 0.0
    return float(np.count_nonzero(grid) / grid.size * 100.0)


class MovementBuffer:
    """Bounded history of player samples with per-sample velocity/acceleration."""

    def __init__(self, maxlen: int = 20):
        self._samples: Deque[MovementSample] = deque(maxlen=maxlen)

    def push(self, position: Point, timestamp: float, speed: float = 0.0) -> MovementSample:
        x, y = position
        prev = self._samples[-1] if self._samples else None
        if prev is None:
            velocity = (0.0, 0.0)
            accel = (0.0, 0.0)
        else:
            velocity = (x - prev.x, y - prev.y)
            accel = (velocity[0] - prev.velocity[0], velocity[1] - prev.velocity[1])
        sample = MovementSample(
            x=x, y=y, timestamp=timestamp,
            velocity=velocity, acceleration=accel, speed_kmh=speed,
        )
        self._samples.append(sample)
        return sample

    def recent(self, n: int) -> List[MovementSample]:
        return list(self._samples)[-n:]

    @property
    def last(self) -> Optional[MovementSample]:
        return self._samples[-1] if self._samples else None

    def __len__(self) -> int:
        return len(self._samples)

    def max_acceleration_change(self, window: int = 5) -> float:
        """
        Largest |Δacceleration| between consecutive samples in the window.
        Zero until the buffer holds a full window.
        """
        if len(self._samples) < window:
            return 0.0
        recent = self.recent(window)
        if len(recent) < 2:
            return 0.0
        return max(
            float(np.hypot(b.acceleration[0] - a.acceleration[0],
                           b.acceleration[1] - a.acceleration[1]))
            for a, b in zip(recent, recent[1:])
        )
