"""
Configuration for Tennis Tracker.

Module-level constants are the defaults; everything that feeds a speed,
distance or shot decision is also carried by `TrackerSettings` so a session
can override it without touching this file.
"""
from __future__ import annotations
import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import InvalidInput

# ── Paths ─────────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).parent.parent
RESULTS_DIR  = PROJECT_ROOT / "results"

# ── Detection service (Roboflow hosted inference) ─────────────────────────────
ROBOFLOW_API_URL    = "https://detect.roboflow.com"
ROBOFLOW_API_KEY    = os.environ.get("ROBOFLOW_API_KEY", "")
PLAYER_BALL_MODEL   = "tennis-vhrs9/9"                            # player + ball + net
BALL_ONLY_MODEL     = "tennis-ball-detection-uuvje/1"             # dedicated ball model
ACCURATE_MODEL      = "tennis-ball-and-court-detection-cmbhj/1"   # accurate mode
DETECTION_TIMEOUT_S = 10.0
PREFETCH_WORKERS    = 4

# Local fallback backend (ultralytics, COCO classes)
YOLO_MODEL         = "yolov8m.pt"
YOLO_CLASS_MAP     = {"person": "player", "sports ball": "ball"}
DETECTION_IMG_SIZE = 960

# ── Confidence floors ─────────────────────────────────────────────────────────
MIN_CONFIDENCE_ENHANCED  = 0.5
MIN_CONFIDENCE_ACCURATE  = 0.85
BALL_MIN_CONFIDENCE      = 0.5
NET_DETECTION_CONFIDENCE = 0.8
COURT_LINE_CONFIDENCE    = 0.7

# ── Court reference (metres) ──────────────────────────────────────────────────
NET_WIDTH_M          = 10.06      # singles net span used for scale
COURT_WIDTH_M        = 10.97      # used when the scale comes from court width
COURT_LENGTH_M       = 23.77      # baseline to baseline
SERVICE_LINE_RATIO   = 0.21       # service line offset from net, fraction of court height
ESTIMATED_COURT_FILL = 0.8        # court share of the frame when nothing is detected

# ── Sampling ──────────────────────────────────────────────────────────────────
FRAME_RATE_ENHANCED = 2.0
FRAME_RATE_ACCURATE = 20.0

# ── Tracking ──────────────────────────────────────────────────────────────────
GATING_DISTANCE_PX = 50.0         # max centre jump accepted as the same player
TRAJECTORY_MEMORY  = 20           # ball points kept for the classifier
MOVEMENT_MEMORY    = 20           # player samples kept for the classifier
HEATMAP_GRID_SIZE  = 10

# ── Shot detection ────────────────────────────────────────────────────────────
PROXIMITY_THRESHOLD_RATIO = 0.08  # of court width
MIN_PROXIMITY_PIXELS      = 50.0
MAX_PROXIMITY_PIXELS      = 150.0
MIN_SHOT_SPEED_KMH        = 25.0
SERVE_MIN_SPEED_KMH       = 60.0
OVERHEAD_MIN_SPEED_KMH    = 70.0
VOLLEY_MAX_SPEED_KMH      = 80.0
MIN_DIRECTION_CHANGE_DEG  = 30.0
SWING_ACCEL_THRESHOLD     = 5.0   # px/sample² change between movement samples
MIN_SHOT_GAP_S            = 1.0
SHOT_CONFIDENCE_THRESHOLD = 0.6
SERVE_TOSS_WINDOW         = 10    # previous frames searched for the toss
TURN_MIN_PX               = 10.0  # player x drift over 3 frames counted as a turn

CRITERIA_WEIGHTS = {
    "proximity":           0.30,
    "ball_speed_increase": 0.25,
    "direction_change":    0.20,
    "player_swing_motion": 0.15,
    "temporal_consistency": 0.10,
}

# ── Court zones / ball height ─────────────────────────────────────────────────
BASELINE_ZONE_RATIO = 0.15
NET_ZONE_RATIO      = 0.20
BALL_LOW_RATIO      = 0.3
BALL_HIGH_RATIO     = 0.7

# ── Shot direction (deviation from the court's long axis, degrees) ────────────
DIRECTION_CENTER_DEG     = 30.0
DIRECTION_CROSSCOURT_DEG = 60.0

MODES = ("enhanced", "accurate")


@dataclass
class TrackerSettings:
    """
    Every tunable value one tracking session depends on.

    Build with `TrackerSettings.for_mode("accurate")` to pick up the mode
    defaults, then override individual fields as needed.
    """
    mode: str = "enhanced"
    frame_rate: float = FRAME_RATE_ENHANCED

    min_confidence: float = MIN_CONFIDENCE_ENHANCED
    ball_min_confidence: float = BALL_MIN_CONFIDENCE
    net_confidence: float = NET_DETECTION_CONFIDENCE
    line_confidence: float = COURT_LINE_CONFIDENCE

    net_width_m: float = NET_WIDTH_M
    court_width_m: float = COURT_WIDTH_M
    court_length_m: float = COURT_LENGTH_M
    service_line_ratio: float = SERVICE_LINE_RATIO
    estimated_court_fill: float = ESTIMATED_COURT_FILL

    grid_size: int = HEATMAP_GRID_SIZE
    gating_distance_px: float = GATING_DISTANCE_PX
    trajectory_memory: int = TRAJECTORY_MEMORY
    movement_memory: int = MOVEMENT_MEMORY
    recalibrate_each_frame: bool = False

    shot_confidence_threshold: float = SHOT_CONFIDENCE_THRESHOLD
    proximity_ratio: float = PROXIMITY_THRESHOLD_RATIO
    min_proximity_px: float = MIN_PROXIMITY_PIXELS
    max_proximity_px: float = MAX_PROXIMITY_PIXELS
    min_shot_speed_kmh: float = MIN_SHOT_SPEED_KMH
    serve_min_speed_kmh: float = SERVE_MIN_SPEED_KMH
    overhead_min_speed_kmh: float = OVERHEAD_MIN_SPEED_KMH
    volley_max_speed_kmh: float = VOLLEY_MAX_SPEED_KMH
    min_direction_change_deg: float = MIN_DIRECTION_CHANGE_DEG
    swing_accel_threshold: float = SWING_ACCEL_THRESHOLD
    min_shot_gap_s: float = MIN_SHOT_GAP_S
    enforce_shot_gap: bool = True
    serve_toss_window: int = SERVE_TOSS_WINDOW
    turn_min_px: float = TURN_MIN_PX

    baseline_zone_ratio: float = BASELINE_ZONE_RATIO
    net_zone_ratio: float = NET_ZONE_RATIO
    ball_low_ratio: float = BALL_LOW_RATIO
    ball_high_ratio: float = BALL_HIGH_RATIO
    direction_center_deg: float = DIRECTION_CENTER_DEG
    direction_crosscourt_deg: float = DIRECTION_CROSSCOURT_DEG

    detection_timeout_s: float = DETECTION_TIMEOUT_S

    def __post_init__(self):
        if self.mode not in MODES:
            raise InvalidInput(f"Unknown tracking mode {self.mode!r}; expected one of {MODES}")
        for name in ("net_width_m", "court_width_m", "court_length_m", "frame_rate"):
            if getattr(self, name) <= 0:
                raise InvalidInput(f"{name} must be positive")
        if self.grid_size < 1:
            raise InvalidInput("grid_size must be at least 1")
        if not 0.0 <= self.shot_confidence_threshold <= 1.0:
            raise InvalidInput("shot_confidence_threshold must be within [0, 1]")

    @property
    def multi_player(self) -> bool:
        return self.mode == "accurate"

    @classmethod
    def for_mode(cls, mode: str, **overrides) -> "TrackerSettings":
        """Defaults observed for each mode, with keyword overrides on top."""
        if mode == "accurate":
            base = dict(
                mode=mode,
                frame_rate=FRAME_RATE_ACCURATE,
                min_confidence=MIN_CONFIDENCE_ACCURATE,
                ball_min_confidence=MIN_CONFIDENCE_ACCURATE,
                net_confidence=MIN_CONFIDENCE_ACCURATE,
                recalibrate_each_frame=True,
            )
        else:
            base = dict(mode=mode)
        base.update(overrides)
        return cls(**base)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackerSettings":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidInput(f"Unknown settings: {', '.join(sorted(unknown))}")
        data = dict(data)
        mode = data.pop("mode", "enhanced")
        return cls.for_mode(mode, **data)

    @classmethod
    def from_json(cls, path: str) -> "TrackerSettings":
        return cls.from_dict(_read_json(path))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _read_json(path: str) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidInput(f"Cannot read settings file {path}: {e}") from e
    if not isinstance(data, dict):
        raise InvalidInput(f"Settings file {path} must hold a JSON object")
    return data


def load_settings(path: Optional[str] = None, mode: Optional[str] = None, **overrides) -> TrackerSettings:
    """
    Settings from an optional JSON file, then keyword overrides.

    An explicit `mode` wins over the file's mode; mode defaults only fill
    the fields neither source sets.
    """
    data = _read_json(path) if path else {}
    data.update(overrides)
    if mode is not None:
        data["mode"] = mode
    return TrackerSettings.from_dict(data)
