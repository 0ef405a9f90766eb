"""
Frame-level models: the shot verdict and the timeline record.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .court  import CourtBoundaries
from .player import TrackedPlayer
from .ball   import TrackedBall


class ShotType(Enum):
    SERVE    = "serve"
    FOREHAND = "forehand"
    BACKHAND = "backhand"
    VOLLEY   = "volley"
    OVERHEAD = "overhead"
    UNKNOWN  = "unknown"


class CourtZone(Enum):
    BASELINE = "baseline"
    MIDCOURT = "midcourt"
    NET      = "net"
    UNKNOWN  = "unknown"


class ShotDirection(Enum):
    CROSSCOURT    = "crosscourt"
    DOWN_THE_LINE = "down-the-line"
    CENTER        = "center"
    UNKNOWN       = "unknown"


class BallHeight(Enum):
    LOW    = "low"
    MEDIUM = "medium"
    HIGH   = "high"


@dataclass(frozen=True)
class ShotAnalysis:
    """Classifier verdict for one frame; attached even when is_shot is False."""
    is_shot: bool
    shot_type: ShotType
    confidence: float
    ball_speed: float
    player_position: CourtZone
    shot_direction: ShotDirection
    ball_height: BallHeight
    timestamp: float
    criteria: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def none(cls, timestamp: float) -> "ShotAnalysis":
        return cls(
            is_shot=False,
            shot_type=ShotType.UNKNOWN,
            confidence=0.0,
            ball_speed=0.0,
            player_position=CourtZone.UNKNOWN,
            shot_direction=ShotDirection.UNKNOWN,
            ball_height=BallHeight.MEDIUM,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict:
        return {
            "is_shot": self.is_shot,
            "shot_type": self.shot_type.value,
            "confidence": self.confidence,
            "ball_speed": self.ball_speed,
            "player_position": self.player_position.value,
            "shot_direction": self.shot_direction.value,
            "ball_height": self.ball_height.value,
            "timestamp": self.timestamp,
            "criteria": dict(self.criteria),
        }


@dataclass(frozen=True)
class Frame:
    """
    One entry of the session timeline.

    Produced exactly once, in timestamp order, and never modified; later
    frames only read earlier ones for deltas.
    """
    frame_id: int
    timestamp: float                      # seconds
    court: CourtBoundaries
    players: Tuple[TrackedPlayer, ...] = ()
    ball: Optional[TrackedBall] = None
    distance_player_to_ball: float = 0.0  # pixels
    player_speed: float = 0.0             # km/h, primary player
    ball_speed: float = 0.0               # km/h
    player_distance: float = 0.0          # metres covered in this frame
    total_player_distance: float = 0.0    # metres since session start
    shot_analysis: Optional[ShotAnalysis] = None
    detection_failed: bool = False
    net_position: Optional[Tuple[float, float]] = None

    @property
    def player(self) -> Optional[TrackedPlayer]:
        """Primary player (the one shots are classified against)."""
        return self.players[0] if self.players else None

    @property
    def is_shot(self) -> bool:
        return self.shot_analysis is not None and self.shot_analysis.is_shot

    def to_dict(self) -> dict:
        return {
            "frame_id": self.frame_id,
            "timestamp": self.timestamp,
            "players": [p.to_dict() for p in self.players],
            "ball": self.ball.to_dict() if self.ball else None,
            "court": self.court.to_dict(),
            "distance_player_to_ball": self.distance_player_to_ball,
            "player_speed": self.player_speed,
            "ball_speed": self.ball_speed,
            "player_distance": self.player_distance,
            "total_player_distance": self.total_player_distance,
            "shot_analysis": self.shot_analysis.to_dict() if self.shot_analysis else None,
            "detection_failed": self.detection_failed,
            "net_position": list(self.net_position) if self.net_position else None,
        }
