"""
Pytest fixtures for tennis tracker tests.
"""
import cv2
import numpy as np
import pytest
import tempfile
import threading
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tennis_tracker.models import BoundingBox, CourtBoundaries, Detection, DetectionClass
from tennis_tracker.errors import InferenceError


def _det(label, cx, cy, w, h, confidence):
    return Detection(label=label, confidence=confidence,
                     bbox=BoundingBox.from_center(cx, cy, w, h))


@pytest.fixture
def player_det():
    """Factory: player box centred on (cx, cy)."""
    def make(cx, cy, confidence=0.9, w=40, h=80):
        return _det(DetectionClass.PLAYER, cx, cy, w, h, confidence)
    return make


@pytest.fixture
def ball_det():
    """Factory: ball box centred on (cx, cy)."""
    def make(cx, cy, confidence=0.9, size=10):
        return _det(DetectionClass.BALL, cx, cy, size, size, confidence)
    return make


@pytest.fixture
def net_det():
    """Factory: net box of the given pixel width."""
    def make(cx, cy, width, confidence=0.9, h=20):
        return _det(DetectionClass.NET, cx, cy, width, h, confidence)
    return make


@pytest.fixture
def square_court():
    """
    1000x1000 px court starting at y=100: bottom baseline at 1100,
    net at 600, 5 cm per pixel.
    """
    return CourtBoundaries.from_rect(left=0, top=100, width=1000, height=1000,
                                     pixels_to_meters=0.05)


@pytest.fixture
def walk_court():
    """1000x1000 px court at the origin, 1 cm per pixel."""
    return CourtBoundaries.from_rect(left=0, top=0, width=1000, height=1000,
                                     pixels_to_meters=0.01)


@pytest.fixture
def tiny_jpeg():
    """A decodable 64x48 JPEG."""
    frame = np.zeros((48, 64, 3), dtype=np.uint8)
    frame[:] = (60, 140, 60)
    ok, buf = cv2.imencode(".jpg", frame)
    assert ok
    return buf.tobytes()


@pytest.fixture
def temp_output_dir():
    """Create a temporary output directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class FakeDetector:
    """
    Scripted detector keyed by image bytes.

    A script value may be a list of detections, an exception instance to
    raise, or a callable taking the image and returning either.
    """

    def __init__(self, script, default=None):
        self.script = dict(script)
        self.default = default if default is not None else []
        self.calls = []
        self._lock = threading.Lock()

    def detect(self, image, min_confidence=None):
        with self._lock:
            self.calls.append(image)
        value = self.script.get(image, self.default)
        if callable(value):
            value = value(image)
        if isinstance(value, Exception):
            raise value
        return list(value)


@pytest.fixture
def fake_detector_cls():
    return FakeDetector


@pytest.fixture
def inference_error():
    return InferenceError("backend unavailable")
