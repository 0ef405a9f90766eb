"""
Ball trajectory buffer + trajectory geometry.

The classifier only ever looks at the last few points, so the buffer keeps a
fixed number of them and evicts the oldest. Image y grows downwards: a
decreasing y means the ball is rising.
"""
from __future__ import annotations
from collections import deque
from typing import Deque, List, Optional
import numpy as np

from ..models.ball import TrajectoryPoint


def segment_angle_change(a: TrajectoryPoint, b: TrajectoryPoint, c: TrajectoryPoint) -> float:
    """Turn in degrees (0–180) between segments a→b and b→c."""
    ang1 = np.arctan2(b.y - a.y, b.x - a.x)
    ang2 = np.arctan2(c.y - b.y, c.x - b.x)
    diff = abs(np.degrees(ang2 - ang1)) % 360.0
    return float(min(diff, 360.0 - diff))


class TrajectoryTracker:
    """Rolling window of ball positions."""

    def __init__(self, maxlen: int = 20):
        self._window: Deque[TrajectoryPoint] = deque(maxlen=maxlen)

    def push(self, point: TrajectoryPoint):
        self._window.append(point)

    def recent(self, n: int) -> List[TrajectoryPoint]:
        return list(self._window)[-n:]

    @property
    def points(self) -> List[TrajectoryPoint]:
        return list(self._window)

    def __len__(self) -> int:
        return len(self._window)

    # ── Geometry ───────────────────────────────────────────────────────────────

    def direction_change_deg(self) -> Optional[float]:
        """Angle between the last two segments; None with fewer than 3 points."""
        if len(self._window) < 3:
            return None
        a, b, c = self.recent(3)
        return segment_angle_change(a, b, c)

    def net_displacement(self, n: int = 3) -> Optional[tuple]:
        """(dx, dy) from the n-th last point to the last one."""
        if len(self._window) < n:
            return None
        pts = self.recent(n)
        return (pts[-1].x - pts[0].x, pts[-1].y - pts[0].y)

    def descending_before_contact(self) -> bool:
        """
        True when the segment leading into the latest point went downwards
        (y increasing), i.e. the ball came down from above.
        """
        if len(self._window) < 3:
            return False
        a, b, _ = self.recent(3)
        return b.y > a.y

    def bounced_recently(self, window: int = 6) -> bool:
        """
        Ground contact inferred from a y-maximum: the ball moved down and then
        up again somewhere in the last `window` points before the latest one.
        """
        pts = self.recent(window + 1)[:-1]
        if len(pts) < 3:
            return False
        dys = [b.y - a.y for a, b in zip(pts, pts[1:])]
        return any(d1 > 0 and d2 < 0 for d1, d2 in zip(dys, dys[1:]))
