"""
Aggregate result models.

`AnalysisResult.to_dict()` is the persisted form; `from_dict()` must read
back exactly what `to_dict()` wrote.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class PlayerStats:
    track_id: int
    total_distance: float = 0.0
    average_speed: float = 0.0
    max_speed: float = 0.0
    heatmap: List[List[int]] = field(default_factory=list)
    court_coverage: float = 0.0

    def to_dict(self) -> dict:
        return {
            "id": self.track_id,
            "total_distance": self.total_distance,
            "average_speed": self.average_speed,
            "max_speed": self.max_speed,
            "heatmap": [list(row) for row in self.heatmap],
            "court_coverage": self.court_coverage,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerStats":
        return cls(
            track_id=int(data["id"]),
            total_distance=data["total_distance"],
            average_speed=data["average_speed"],
            max_speed=data["max_speed"],
            heatmap=[list(row) for row in data["heatmap"]],
            court_coverage=data["court_coverage"],
        )


@dataclass
class ShotStats:
    total_shots: int = 0
    counts_by_type: Dict[str, int] = field(default_factory=dict)
    average_ball_speed: float = 0.0
    max_ball_speed: float = 0.0
    shot_accuracy: float = 0.0
    direction_distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_shots": self.total_shots,
            "counts_by_type": dict(self.counts_by_type),
            "average_ball_speed": self.average_ball_speed,
            "max_ball_speed": self.max_ball_speed,
            "shot_accuracy": self.shot_accuracy,
            "direction_distribution": dict(self.direction_distribution),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ShotStats":
        return cls(
            total_shots=data["total_shots"],
            counts_by_type=dict(data["counts_by_type"]),
            average_ball_speed=data["average_ball_speed"],
            max_ball_speed=data["max_ball_speed"],
            shot_accuracy=data["shot_accuracy"],
            direction_distribution=dict(data["direction_distribution"]),
        )


@dataclass
class BallStats:
    average_speed: float = 0.0
    max_speed: float = 0.0

    def to_dict(self) -> dict:
        return {"average_speed": self.average_speed, "max_speed": self.max_speed}

    @classmethod
    def from_dict(cls, data: dict) -> "BallStats":
        return cls(average_speed=data["average_speed"], max_speed=data["max_speed"])


def _point(value) -> Optional[Tuple[float, float]]:
    return (value[0], value[1]) if value is not None else None


@dataclass
class FramePoint:
    """Per-frame series entry kept for charts and playback."""
    frame_id: int
    timestamp: float
    player_position: Optional[Tuple[float, float]] = None
    ball_position: Optional[Tuple[float, float]] = None
    player_speed: float = 0.0
    ball_speed: float = 0.0
    total_player_distance: float = 0.0
    distance_player_to_ball: float = 0.0
    is_shot: bool = False
    shot_type: str = "unknown"
    shot_confidence: float = 0.0
    detection_failed: bool = False

    def to_dict(self) -> dict:
        return {
            "frame_id": self.frame_id,
            "timestamp": self.timestamp,
            "player_position": list(self.player_position) if self.player_position else None,
            "ball_position": list(self.ball_position) if self.ball_position else None,
            "player_speed": self.player_speed,
            "ball_speed": self.ball_speed,
            "total_player_distance": self.total_player_distance,
            "distance_player_to_ball": self.distance_player_to_ball,
            "is_shot": self.is_shot,
            "shot_type": self.shot_type,
            "shot_confidence": self.shot_confidence,
            "detection_failed": self.detection_failed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FramePoint":
        return cls(
            frame_id=data["frame_id"],
            timestamp=data["timestamp"],
            player_position=_point(data.get("player_position")),
            ball_position=_point(data.get("ball_position")),
            player_speed=data["player_speed"],
            ball_speed=data["ball_speed"],
            total_player_distance=data["total_player_distance"],
            distance_player_to_ball=data["distance_player_to_ball"],
            is_shot=data["is_shot"],
            shot_type=data["shot_type"],
            shot_confidence=data["shot_confidence"],
            detection_failed=data["detection_failed"],
        )


@dataclass
class AnalysisResult:
    """Everything a session produced, ready for persistence."""
    mode: str = "enhanced"
    duration: float = 0.0
    frames_processed: int = 0
    detection_failures: int = 0
    players: Dict[int, PlayerStats] = field(default_factory=dict)
    shots: ShotStats = field(default_factory=ShotStats)
    ball: BallStats = field(default_factory=BallStats)
    series: List[FramePoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "duration": self.duration,
            "frames_processed": self.frames_processed,
            "detection_failures": self.detection_failures,
            # JSON object keys are strings; from_dict turns them back into ints
            "players": {str(tid): s.to_dict() for tid, s in sorted(self.players.items())},
            "shots": self.shots.to_dict(),
            "ball": self.ball.to_dict(),
            "series": [p.to_dict() for p in self.series],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        return cls(
            mode=data["mode"],
            duration=data["duration"],
            frames_processed=data["frames_processed"],
            detection_failures=data["detection_failures"],
            players={int(tid): PlayerStats.from_dict(s) for tid, s in data["players"].items()},
            shots=ShotStats.from_dict(data["shots"]),
            ball=BallStats.from_dict(data["ball"]),
            series=[FramePoint.from_dict(p) for p in data["series"]],
        )
