"""
Core data models for Tennis Tracker.
Split across sub-modules; this __init__ re-exports everything.
"""
from .detection import BoundingBox, Detection, DetectionClass, InvalidDetection, UnknownLabel
from .court     import CourtBoundaries, CourtLine
from .player    import TrackedPlayer, MovementSample
from .ball      import TrackedBall, TrajectoryPoint
from .frame     import Frame, ShotAnalysis, ShotType, CourtZone, ShotDirection, BallHeight
from .result    import AnalysisResult, PlayerStats, ShotStats, BallStats, FramePoint

__all__ = [
    "BoundingBox", "Detection", "DetectionClass", "InvalidDetection", "UnknownLabel",
    "CourtBoundaries", "CourtLine",
    "TrackedPlayer", "MovementSample",
    "TrackedBall", "TrajectoryPoint",
    "Frame", "ShotAnalysis", "ShotType", "CourtZone", "ShotDirection", "BallHeight",
    "AnalysisResult", "PlayerStats", "ShotStats", "BallStats", "FramePoint",
]
