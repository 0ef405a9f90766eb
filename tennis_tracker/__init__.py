"""
Tennis Tracker – frame tracking and shot classification.

Public API:  the main components are importable directly from `tennis_tracker`.

    from tennis_tracker import Pipeline, TrackerSettings, load_settings
    from tennis_tracker import RoboflowDetector, CompositeDetector, YoloDetector
    from tennis_tracker import CourtCalibrator, FrameTracker, ShotClassifier
    from tennis_tracker import AnalysisAggregator, Exporter, FrameLoader
    from tennis_tracker.models import Frame, AnalysisResult, Detection
"""

# ── Pipeline (top-level entry point) ─────────────────────────────────────────
from .pipeline import Pipeline

# ── Configuration / errors ────────────────────────────────────────────────────
from .config import TrackerSettings, load_settings
from .errors import (
    TrackerError, InvalidInput, InferenceError,
    CalibrationUnavailable, SerializationFailure,
)

# ── Detection ─────────────────────────────────────────────────────────────────
from .detector import RoboflowDetector, CompositeDetector, YoloDetector, parse_predictions

# ── Court / tracking / shots ──────────────────────────────────────────────────
from .court.calibrator import CourtCalibrator
from .tracker          import FrameTracker
from .stats.shots      import ShotClassifier
from .stats.aggregator import AnalysisAggregator

# ── Utilities ─────────────────────────────────────────────────────────────────
from .exporter     import Exporter
from .video.loader import FrameLoader

# ── Models (data classes) ─────────────────────────────────────────────────────
from .models import (
    BoundingBox, Detection, DetectionClass,
    CourtBoundaries, TrackedPlayer, TrackedBall,
    Frame, ShotAnalysis, ShotType,
    AnalysisResult,
)

__all__ = [
    # Pipeline
    "Pipeline",
    # Configuration / errors
    "TrackerSettings", "load_settings",
    "TrackerError", "InvalidInput", "InferenceError",
    "CalibrationUnavailable", "SerializationFailure",
    # Detection
    "RoboflowDetector", "CompositeDetector", "YoloDetector", "parse_predictions",
    # Court / tracking / shots
    "CourtCalibrator", "FrameTracker", "ShotClassifier", "AnalysisAggregator",
    # Utilities
    "Exporter", "FrameLoader",
    # Models
    "BoundingBox", "Detection", "DetectionClass",
    "CourtBoundaries", "TrackedPlayer", "TrackedBall",
    "Frame", "ShotAnalysis", "ShotType",
    "AnalysisResult",
]
