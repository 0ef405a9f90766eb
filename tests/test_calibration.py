"""
Tests for court calibration.
"""
import pytest

from tennis_tracker.court import CourtCalibrator
from tennis_tracker.config import TrackerSettings
from tennis_tracker.errors import CalibrationUnavailable, InvalidInput
from tennis_tracker.models import BoundingBox, Detection, DetectionClass


def _court_line(x1, y1, x2, y2, confidence=0.9):
    return Detection(DetectionClass.COURT, confidence, BoundingBox(x1, y1, x2, y2))


class TestFromNet:
    """Scale from the net box."""

    def test_scale_from_net_width(self, net_det):
        court = CourtCalibrator().from_net([net_det(960, 540, 800)])
        assert court.source == "net"
        assert court.pixels_to_meters == pytest.approx(10.06 / 800)
        assert court.court_width == pytest.approx(800)
        assert court.net_y == pytest.approx(540)
        assert court.left == pytest.approx(560)

    def test_court_height_follows_court_proportions(self, net_det):
        court = CourtCalibrator().from_net([net_det(960, 540, 800)])
        assert court.court_height == pytest.approx(800 * 23.77 / 10.97)

    def test_picks_most_confident_net(self, net_det):
        court = CourtCalibrator().from_net([net_det(960, 540, 600, 0.82),
                                            net_det(960, 540, 900, 0.95)])
        assert court.pixels_to_meters == pytest.approx(10.06 / 900)

    def test_low_confidence_net_is_ignored(self, net_det):
        with pytest.raises(CalibrationUnavailable):
            CourtCalibrator().from_net([net_det(960, 540, 800, 0.5)])

    def test_wider_net_means_smaller_scale(self, net_det):
        calibrator = CourtCalibrator()
        scales = [calibrator.from_net([net_det(960, 540, w)]).pixels_to_meters
                  for w in (200, 400, 800, 1600)]
        assert scales == sorted(scales, reverse=True)


class TestFromLines:
    """Court rectangle from court-line boxes."""

    def test_union_of_line_boxes(self):
        lines = [_court_line(100, 200, 1100, 210), _court_line(150, 800, 1050, 820)]
        court = CourtCalibrator().from_lines(lines)
        assert court.source == "lines"
        assert (court.left, court.top, court.right, court.bottom) == (100, 200, 1100, 820)
        assert court.pixels_to_meters == pytest.approx(10.97 / 1000)

    def test_no_lines(self, player_det):
        with pytest.raises(CalibrationUnavailable):
            CourtCalibrator().from_lines([player_det(10, 10)])


class TestCalibrate:
    """Source precedence and the fallback estimate."""

    def test_net_preferred_over_lines(self, net_det):
        dets = [net_det(960, 540, 800), _court_line(100, 200, 1100, 820)]
        assert CourtCalibrator().calibrate(dets, 1920, 1080).source == "net"

    def test_lines_when_no_net(self):
        dets = [_court_line(100, 200, 1100, 820)]
        assert CourtCalibrator().calibrate(dets, 1920, 1080).source == "lines"

    def test_estimate_when_nothing_detected(self):
        court = CourtCalibrator().calibrate([], 1920, 1080)
        assert court.source == "estimated"
        assert court.pixels_to_meters == pytest.approx(10.97 / (1920 * 0.8))
        assert court.court_width == pytest.approx(1536)
        assert court.left == pytest.approx(192)
        assert court.net_y == pytest.approx(540)

    def test_estimate_tolerates_none(self):
        assert CourtCalibrator().calibrate(None, 640, 480).source == "estimated"

    def test_custom_net_floor(self, net_det):
        calibrator = CourtCalibrator(TrackerSettings(net_confidence=0.4))
        assert calibrator.calibrate([net_det(960, 540, 800, 0.5)], 1920, 1080).source == "net"

    @pytest.mark.parametrize("size", [(0, 1080), (1920, None), (-5, 100)])
    def test_requires_frame_dimensions(self, size):
        with pytest.raises(InvalidInput):
            CourtCalibrator().calibrate([], *size)
