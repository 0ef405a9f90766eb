"""
Court-related data models.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import numpy as np


@dataclass(frozen=True)
class CourtLine:
    """A court line segment in image pixels."""
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def midpoint(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    @property
    def length(self) -> float:
        return float(np.hypot(self.x2 - self.x1, self.y2 - self.y1))

    @property
    def angle_deg(self) -> float:
        return float(np.degrees(np.arctan2(self.y2 - self.y1, self.x2 - self.x1)))

    def to_dict(self) -> dict:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}

    @classmethod
    def from_dict(cls, data: dict) -> "CourtLine":
        return cls(data["x1"], data["y1"], data["x2"], data["y2"])


@dataclass(frozen=True)
class CourtBoundaries:
    """
    Axis-aligned court model in image pixels plus the metres-per-pixel scale.

    `baseline_far` is the top edge of the image rectangle, `baseline_near`
    the bottom one. `source` records how the scale was obtained:
    "net", "lines" or "estimated".
    """
    baseline_far: CourtLine
    baseline_near: CourtLine
    sideline_left: CourtLine
    sideline_right: CourtLine
    service_line_far: CourtLine
    service_line_near: CourtLine
    center_line: CourtLine
    net: CourtLine
    court_width: float
    court_height: float
    pixels_to_meters: float
    source: str = "estimated"

    def __post_init__(self):
        if not self.pixels_to_meters > 0:
            raise ValueError("pixels_to_meters must be positive")
        if self.court_width <= 0 or self.court_height <= 0:
            raise ValueError("Court dimensions must be positive")

    @classmethod
    def from_rect(
        cls,
        left: float,
        top: float,
        width: float,
        height: float,
        pixels_to_meters: float,
        net_y: float = None,
        service_line_ratio: float = 0.21,
        source: str = "estimated",
    ) -> "CourtBoundaries":
        """Lay out every line from the outer rectangle and the net row."""
        right  = left + width
        bottom = top + height
        if net_y is None:
            net_y = top + height / 2
        centre_x = (left + right) / 2
        svc_far  = net_y - height * service_line_ratio
        svc_near = net_y + height * service_line_ratio

        return cls(
            baseline_far=CourtLine(left, top, right, top),
            baseline_near=CourtLine(left, bottom, right, bottom),
            sideline_left=CourtLine(left, top, left, bottom),
            sideline_right=CourtLine(right, top, right, bottom),
            service_line_far=CourtLine(left, svc_far, right, svc_far),
            service_line_near=CourtLine(left, svc_near, right, svc_near),
            center_line=CourtLine(centre_x, svc_far, centre_x, svc_near),
            net=CourtLine(left, net_y, right, net_y),
            court_width=width,
            court_height=height,
            pixels_to_meters=pixels_to_meters,
            source=source,
        )

    @property
    def left(self) -> float:
        return self.sideline_left.x1

    @property
    def right(self) -> float:
        return self.sideline_right.x1

    @property
    def top(self) -> float:
        return self.baseline_far.y1

    @property
    def bottom(self) -> float:
        return self.baseline_near.y1

    @property
    def net_y(self) -> float:
        return self.net.y1

    def to_meters(self, pixels: float) -> float:
        return pixels * self.pixels_to_meters

    _LINES = (
        "baseline_far", "baseline_near", "sideline_left", "sideline_right",
        "service_line_far", "service_line_near", "center_line", "net",
    )

    def to_dict(self) -> dict:
        d = {name: getattr(self, name).to_dict() for name in self._LINES}
        d.update(
            court_width=self.court_width,
            court_height=self.court_height,
            pixels_to_meters=self.pixels_to_meters,
            source=self.source,
        )
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "CourtBoundaries":
        lines = {name: CourtLine.from_dict(data[name]) for name in cls._LINES}
        return cls(
            court_width=data["court_width"],
            court_height=data["court_height"],
            pixels_to_meters=data["pixels_to_meters"],
            source=data.get("source", "estimated"),
            **lines,
        )
