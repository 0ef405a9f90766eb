"""
Court calibrator – pixel scale and court layout from one frame's detections.

Three sources, tried in order:
  NET       – net box above the net floor; scale = net span / net width px
  LINES     – court-line boxes; the union box is taken as the court
  ESTIMATED – nothing usable: court = central share of the frame

The estimate always succeeds, so callers can start a session even when the
detector saw nothing.
"""
from __future__ import annotations
from typing import Iterable, List, Optional

from ..models.court     import CourtBoundaries
from ..models.detection import Detection, DetectionClass
from ..errors import CalibrationUnavailable, InvalidInput
from ..config import TrackerSettings


class CourtCalibrator:
    """Builds CourtBoundaries from net / court-line detections."""

    def __init__(self, settings: Optional[TrackerSettings] = None):
        self._settings = settings or TrackerSettings()

    # ── Public API ─────────────────────────────────────────────────────────────

    def calibrate(
        self,
        detections: Optional[Iterable[Detection]],
        frame_width: Optional[float],
        frame_height: Optional[float],
    ) -> CourtBoundaries:
        """
        Best available court model for a frame.

        Raises:
            InvalidInput: frame dimensions missing or not positive.
        """
        if not frame_width or not frame_height or frame_width <= 0 or frame_height <= 0:
            raise InvalidInput(
                f"Frame dimensions are required for calibration (got {frame_width}x{frame_height})"
            )
        detections = list(detections or [])

        try:
            return self.from_net(detections)
        except CalibrationUnavailable:
            pass
        try:
            return self.from_lines(detections)
        except CalibrationUnavailable:
            pass

        print(f"[Court]  No net or court lines detected → estimating from "
              f"{int(frame_width)}x{int(frame_height)} frame")
        return self.estimate(frame_width, frame_height)

    def from_net(self, detections: Iterable[Detection]) -> CourtBoundaries:
        """Scale from the most confident net box above the net floor."""
        s = self._settings
        net = self._best(detections, DetectionClass.NET, s.net_confidence)
        if net is None:
            raise CalibrationUnavailable("no net detection above threshold")

        net_w = net.bbox.width
        cx, net_y = net.center
        court_h = net_w * s.court_length_m / s.court_width_m
        return CourtBoundaries.from_rect(
            left=cx - net_w / 2,
            top=net_y - court_h / 2,
            width=net_w,
            height=court_h,
            pixels_to_meters=s.net_width_m / net_w,
            net_y=net_y,
            service_line_ratio=s.service_line_ratio,
            source="net",
        )

    def from_lines(self, detections: Iterable[Detection]) -> CourtBoundaries:
        """Court rectangle from the union of court-line boxes."""
        s = self._settings
        lines = [
            d for d in detections
            if d.label == DetectionClass.COURT and d.confidence >= s.line_confidence
        ]
        if not lines:
            raise CalibrationUnavailable("no court-line detections above threshold")

        left   = min(d.bbox.x1 for d in lines)
        right  = max(d.bbox.x2 for d in lines)
        top    = min(d.bbox.y1 for d in lines)
        bottom = max(d.bbox.y2 for d in lines)
        width, height = right - left, bottom - top
        if width <= 0 or height <= 0:
            raise CalibrationUnavailable("degenerate court-line extent")

        return CourtBoundaries.from_rect(
            left=left,
            top=top,
            width=width,
            height=height,
            pixels_to_meters=s.court_width_m / width,
            service_line_ratio=s.service_line_ratio,
            source="lines",
        )

    def estimate(self, frame_width: float, frame_height: float) -> CourtBoundaries:
        """Assume the court fills a fixed central share of the frame."""
        s = self._settings
        court_w = frame_width * s.estimated_court_fill
        court_h = frame_height * s.estimated_court_fill
        return CourtBoundaries.from_rect(
            left=(frame_width - court_w) / 2,
            top=(frame_height - court_h) / 2,
            width=court_w,
            height=court_h,
            pixels_to_meters=s.court_width_m / court_w,
            net_y=frame_height / 2,
            service_line_ratio=s.service_line_ratio,
            source="estimated",
        )

    # ── Internals ──────────────────────────────────────────────────────────────

    @staticmethod
    def _best(
        detections: Iterable[Detection],
        label: DetectionClass,
        floor: float,
    ) -> Optional[Detection]:
        candidates: List[Detection] = [
            d for d in detections if d.label == label and d.confidence >= floor
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda d: d.confidence)
