"""
Detector output models.

The hosted detector returns loosely-typed predictions; they are validated
here once so nothing downstream has to guess about missing fields.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class DetectionClass(Enum):
    PLAYER = "player"
    BALL   = "ball"
    NET    = "net"
    RACKET = "racket"
    COURT  = "court"


class InvalidDetection(ValueError):
    """A prediction is structurally broken (missing or out-of-range fields)."""


class UnknownLabel(ValueError):
    """A prediction carries a class label outside DetectionClass."""


@dataclass(frozen=True)
class BoundingBox:
    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def from_center(cls, cx: float, cy: float, width: float, height: float) -> "BoundingBox":
        """Detector wire format: box centre plus dimensions."""
        return cls(cx - width / 2, cy - height / 2, cx + width / 2, cy + height / 2)

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    def to_int_tuple(self) -> Tuple[int, int, int, int]:
        return (int(self.x1), int(self.y1), int(self.x2), int(self.y2))

    def to_dict(self) -> dict:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}

    @classmethod
    def from_dict(cls, data: dict) -> "BoundingBox":
        return cls(data["x1"], data["y1"], data["x2"], data["y2"])


@dataclass(frozen=True)
class Detection:
    """One object found in one frame."""
    label: DetectionClass
    confidence: float
    bbox: BoundingBox

    @property
    def center(self) -> Tuple[float, float]:
        return self.bbox.center

    @classmethod
    def from_prediction(cls, pred: Dict[str, Any]) -> "Detection":
        """
        Build a Detection from a raw `{class, confidence, x, y, width, height}`
        prediction, where x/y is the box centre in source-image pixels.

        Raises:
            UnknownLabel: the class is not one we track.
            InvalidDetection: any field is missing, non-numeric or out of range.
        """
        if not isinstance(pred, dict):
            raise InvalidDetection(f"Prediction must be an object, got {type(pred).__name__}")

        label = pred.get("class")
        if not isinstance(label, str):
            raise InvalidDetection("Prediction has no class label")
        try:
            det_class = DetectionClass(label.lower())
        except ValueError:
            raise UnknownLabel(label) from None

        values = {}
        for key in ("confidence", "x", "y", "width", "height"):
            v = pred.get(key)
            if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
                raise InvalidDetection(f"Prediction field {key!r} is not a finite number: {v!r}")
            values[key] = float(v)

        if not 0.0 <= values["confidence"] <= 1.0:
            raise InvalidDetection(f"Confidence {values['confidence']} outside [0, 1]")
        if values["width"] <= 0 or values["height"] <= 0:
            raise InvalidDetection("Box width and height must be positive")

        return cls(
            label=det_class,
            confidence=values["confidence"],
            bbox=BoundingBox.from_center(values["x"], values["y"], values["width"], values["height"]),
        )

    def to_dict(self) -> dict:
        cx, cy = self.center
        return {
            "class": self.label.value,
            "confidence": self.confidence,
            "x": cx,
            "y": cy,
            "width": self.bbox.width,
            "height": self.bbox.height,
        }
