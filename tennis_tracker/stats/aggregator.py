"""
Session summary – reduces the ordered Frame timeline into an AnalysisResult.

Pure: no I/O, no randomness, the same frames always give the same result.
"""
from __future__ import annotations
from collections import Counter
from typing import Dict, List, Optional, Sequence
import numpy as np

from ..models.frame  import Frame, ShotType, ShotDirection
from ..models.result import AnalysisResult, BallStats, FramePoint, PlayerStats, ShotStats
from .movement import court_coverage
from ..config import TrackerSettings


def _mean_max(values: List[float]) -> tuple:
    """(mean, max) of the nonzero samples; zeros when there are none."""
    nonzero = [v for v in values if v > 0]
    if not nonzero:
        return 0.0, 0.0
    return float(np.mean(nonzero)), float(max(nonzero))


class AnalysisAggregator:
    """Builds the end-of-session statistics."""

    def __init__(self, settings: Optional[TrackerSettings] = None):
        self._settings = settings or TrackerSettings()

    def aggregate(self, frames: Sequence[Frame]) -> AnalysisResult:
        frames = list(frames)
        result = AnalysisResult(mode=self._settings.mode)
        result.shots = self._shot_stats([])
        if not frames:
            return result

        result.duration = frames[-1].timestamp - frames[0].timestamp
        result.frames_processed = len(frames)
        result.detection_failures = sum(1 for f in frames if f.detection_failed)
        result.players = self._player_stats(frames)
        result.shots = self._shot_stats(self.emitted_shots(frames))
        avg, top = _mean_max([f.ball_speed for f in frames])
        result.ball = BallStats(average_speed=avg, max_speed=top)
        result.series = [self._point(f) for f in frames]
        return result

    def emitted_shots(self, frames: Sequence[Frame]) -> List[Frame]:
        """
        Frames flagged as shots, minus any that follow the previously emitted
        shot by less than the minimum gap (when gap enforcement is on).
        """
        shots: List[Frame] = []
        gap = self._settings.min_shot_gap_s
        for f in frames:
            if not f.is_shot:
                continue
            if (self._settings.enforce_shot_gap and shots
                    and f.timestamp - shots[-1].timestamp < gap):
                continue
            shots.append(f)
        return shots

    # ── Internals ──────────────────────────────────────────────────────────────

    def _player_stats(self, frames: Sequence[Frame]) -> Dict[int, PlayerStats]:
        speeds: Dict[int, List[float]] = {}
        last_seen = {}
        for f in frames:
            for p in f.players:
                speeds.setdefault(p.track_id, []).append(p.speed_kmh)
                last_seen[p.track_id] = p

        stats: Dict[int, PlayerStats] = {}
        for tid in sorted(last_seen):
            p = last_seen[tid]
            avg, top = _mean_max(speeds[tid])
            heatmap = [list(row) for row in p.heatmap]
            stats[tid] = PlayerStats(
                track_id=tid,
                total_distance=p.distance_m,
                average_speed=avg,
                max_speed=top,
                heatmap=heatmap,
                court_coverage=court_coverage(heatmap),
            )
        return stats

    @staticmethod
    def _shot_stats(shots: Sequence[Frame]) -> ShotStats:
        counts = Counter(f.shot_analysis.shot_type.value for f in shots)
        directions = Counter(f.shot_analysis.shot_direction.value for f in shots)
        avg, top = _mean_max([f.shot_analysis.ball_speed for f in shots])
        accuracy = (
            float(np.mean([f.shot_analysis.confidence for f in shots])) * 100.0
            if shots else 0.0
        )
        return ShotStats(
            total_shots=len(shots),
            counts_by_type={t.value: counts.get(t.value, 0) for t in ShotType},
            average_ball_speed=avg,
            max_ball_speed=top,
            shot_accuracy=accuracy,
            direction_distribution={d.value: directions.get(d.value, 0) for d in ShotDirection},
        )

    @staticmethod
    def _point(f: Frame) -> FramePoint:
        sa = f.shot_analysis
        return FramePoint(
            frame_id=f.frame_id,
            timestamp=f.timestamp,
            player_position=f.player.center if f.player else None,
            ball_position=f.ball.center if f.ball else None,
            player_speed=f.player_speed,
            ball_speed=f.ball_speed,
            total_player_distance=f.total_player_distance,
            distance_player_to_ball=f.distance_player_to_ball,
            is_shot=f.is_shot,
            shot_type=sa.shot_type.value if sa else ShotType.UNKNOWN.value,
            shot_confidence=sa.confidence if sa else 0.0,
            detection_failed=f.detection_failed,
        )
