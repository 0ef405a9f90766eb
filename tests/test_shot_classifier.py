"""
Tests for shot detection and classification.
"""
import pytest

from tennis_tracker import config
from tennis_tracker.ball import TrajectoryTracker
from tennis_tracker.config import TrackerSettings
from tennis_tracker.models import (BoundingBox, CourtBoundaries, Frame, TrackedBall,
                                   TrackedPlayer, ShotType)
from tennis_tracker.models.ball import TrajectoryPoint
from tennis_tracker.models.frame import BallHeight, CourtZone, ShotDirection
from tennis_tracker.stats import MovementBuffer, ShotClassifier
from tennis_tracker.stats.shots import (
    ShotContext, ball_height, classify_shot_type, court_zone, forehand_votes,
    has_serve_toss, is_overhead, is_serve, is_volley, player_turn_direction,
    proximity_threshold, shot_direction,
)
from tennis_tracker.tracker import FrameTracker


def _frame(court, player_xy=None, ball_xy=None, ball_speed=0.0, ts=0.0, frame_id=0):
    players = ()
    if player_xy is not None:
        players = (TrackedPlayer(1, BoundingBox.from_center(*player_xy, 40, 80), 0.9),)
    ball = None
    if ball_xy is not None:
        ball = TrackedBall(BoundingBox.from_center(*ball_xy, 10, 10), 0.9, ball_speed)
    return Frame(frame_id=frame_id, timestamp=ts, court=court, players=players,
                 ball=ball, ball_speed=ball_speed)


def _trajectory(*points):
    traj = TrajectoryTracker()
    for i, (x, y) in enumerate(points):
        traj.push(TrajectoryPoint(x, y, i * 0.1, 0.0, 0.9))
    return traj


def _movement(*xs, y=500):
    buf = MovementBuffer()
    for i, x in enumerate(xs):
        buf.push((x, y), i * 0.1)
    return buf


def _ctx(court, frame, history=(), trajectory=None, movement=None):
    settings = TrackerSettings()
    return ShotContext(
        frame=frame,
        history=list(history),
        trajectory=trajectory or _trajectory(),
        movement=movement or MovementBuffer(),
        settings=settings,
        zone=court_zone(frame.player.center[1], court),
        height=ball_height(frame.ball.center[1], court),
    )


def _serve_session(court, player_det, ball_det, classifier=None):
    """
    Stationary player near the far baseline; the ball is tossed straight up
    for nine frames, then struck sideways at 72 km/h.
    """
    tracker = FrameTracker(court, classifier=classifier)
    tracker.start([player_det(500, 150), ball_det(500, 300)], timestamp=0.0)
    for i in range(1, 10):
        tracker.update([player_det(500, 150), ball_det(500, 300 - 10 * i)],
                       frame_id=i, timestamp=round(0.1 * i, 6))
    tracker.update([player_det(500, 150), ball_det(540, 210)], frame_id=10, timestamp=1.0)
    return tracker


class TestCourtGeometry:
    """Zone, height and proximity helpers."""

    @pytest.mark.parametrize("y, zone", [
        (150, CourtZone.BASELINE),
        (1050, CourtZone.BASELINE),
        (600, CourtZone.NET),
        (750, CourtZone.NET),
        (850, CourtZone.MIDCOURT),
    ])
    def test_court_zone(self, square_court, y, zone):
        assert court_zone(y, square_court) == zone

    @pytest.mark.parametrize("y, height", [
        (1000, BallHeight.LOW),
        (600, BallHeight.MEDIUM),
        (300, BallHeight.HIGH),
    ])
    def test_ball_height(self, square_court, y, height):
        assert ball_height(y, square_court) == height

    def test_proximity_threshold_is_clamped(self):
        s = TrackerSettings()
        def court(width):
            return CourtBoundaries.from_rect(0, 0, width, width, 0.01)
        assert proximity_threshold(court(1000), s) == pytest.approx(80.0)
        assert proximity_threshold(court(100), s) == 50.0
        assert proximity_threshold(court(5000), s) == 150.0


class TestShotDirection:
    def test_center(self):
        assert shot_direction(_trajectory((0, 0), (0, 10), (2, 20))) == ShotDirection.CENTER

    def test_down_the_line(self):
        assert shot_direction(_trajectory((0, 0), (10, 10), (20, 20))) == ShotDirection.DOWN_THE_LINE

    def test_crosscourt(self):
        assert shot_direction(_trajectory((0, 0), (20, 2), (40, 4))) == ShotDirection.CROSSCOURT

    def test_too_few_points(self):
        assert shot_direction(_trajectory((0, 0), (10, 10))) == ShotDirection.UNKNOWN

    def test_no_movement(self):
        assert shot_direction(_trajectory((5, 5), (9, 9), (5, 5))) == ShotDirection.UNKNOWN


class TestCriteria:
    """Weighted vote."""

    def test_keys_match_weights(self, square_court):
        crit = ShotClassifier().criteria(_frame(square_court, (500, 500), (500, 520)),
                                         _trajectory(), MovementBuffer())
        assert set(crit) == set(config.CRITERIA_WEIGHTS)

    def test_confidence_bounds(self):
        names = list(config.CRITERIA_WEIGHTS)
        assert ShotClassifier.confidence({n: True for n in names}) == pytest.approx(1.0)
        assert ShotClassifier.confidence({n: False for n in names}) == 0.0

    def test_confidence_is_weight_sum(self):
        crit = {"proximity": True, "temporal_consistency": True,
                "ball_speed_increase": False, "direction_change": False,
                "player_swing_motion": False}
        assert ShotClassifier.confidence(crit) == pytest.approx(0.4)

    def test_swing_motion(self, square_court):
        frame = _frame(square_court, (500, 500), (900, 900))
        calm = ShotClassifier().criteria(frame, _trajectory(), _movement(0, 10, 20, 30, 40, 50, 60))
        swing = ShotClassifier().criteria(frame, _trajectory(), _movement(0, 0, 0, 0, 20))
        assert not calm["player_swing_motion"]
        assert swing["player_swing_motion"]


class TestRules:
    """Shot-type rules in isolation."""

    def test_overhead(self, square_court):
        frame = _frame(square_court, (500, 700), (520, 210), ball_speed=80.0)
        ctx = _ctx(square_court, frame,
                   trajectory=_trajectory((500, 150), (500, 200), (520, 210)))
        assert ctx.zone == CourtZone.NET
        assert not is_serve(ctx)
        assert is_overhead(ctx)
        assert classify_shot_type(ctx) == ShotType.OVERHEAD

    def test_overhead_needs_descending_ball(self, square_court):
        frame = _frame(square_court, (500, 700), (520, 210), ball_speed=80.0)
        ctx = _ctx(square_court, frame,
                   trajectory=_trajectory((500, 300), (500, 250), (520, 210)))
        assert not is_overhead(ctx)

    def test_volley(self, square_court):
        frame = _frame(square_court, (500, 650), (520, 640), ball_speed=40.0)
        ctx = _ctx(square_court, frame,
                   trajectory=_trajectory((520, 700), (520, 680), (520, 660), (520, 640)))
        assert is_volley(ctx)
        assert classify_shot_type(ctx) == ShotType.VOLLEY

    def test_no_volley_after_bounce(self, square_court):
        frame = _frame(square_court, (500, 650), (520, 640), ball_speed=40.0)
        ctx = _ctx(square_court, frame,
                   trajectory=_trajectory((520, 700), (520, 800), (520, 750), (520, 640)))
        assert not is_volley(ctx)

    def test_fast_ball_at_net_is_not_volley(self, square_court):
        frame = _frame(square_court, (500, 650), (520, 640), ball_speed=95.0)
        ctx = _ctx(square_court, frame, trajectory=_trajectory((520, 660), (520, 650), (520, 640)))
        assert not is_volley(ctx)

    def test_forehand(self, square_court):
        frame = _frame(square_court, (500, 900), (560, 900), ball_speed=50.0)
        ctx = _ctx(square_court, frame, movement=_movement(480, 500, y=900))
        assert ctx.zone == CourtZone.MIDCOURT
        assert forehand_votes(ctx) == 2
        assert classify_shot_type(ctx) == ShotType.FOREHAND

    def test_backhand(self, square_court):
        frame = _frame(square_court, (500, 900), (440, 900), ball_speed=50.0)
        ctx = _ctx(square_court, frame, movement=_movement(520, 500, y=900))
        assert forehand_votes(ctx) == 0
        assert classify_shot_type(ctx) == ShotType.BACKHAND

    def test_player_turn_direction(self, square_court):
        history = [_frame(square_court, (x, 900)) for x in (100, 110, 125)]
        assert player_turn_direction(history) == "right"
        history = [_frame(square_court, (x, 900)) for x in (125, 110, 100)]
        assert player_turn_direction(history) == "left"
        history = [_frame(square_court, (x, 900)) for x in (100, 104, 108)]
        assert player_turn_direction(history) == "none"
        assert player_turn_direction(history[:2]) == "none"

    def test_serve_toss(self, square_court):
        rising = [_frame(square_court, ball_xy=(500, y)) for y in (350, 300)]
        falling = [_frame(square_court, ball_xy=(500, y)) for y in (300, 350)]
        low = [_frame(square_court, ball_xy=(500, y)) for y in (900, 850)]
        assert has_serve_toss(rising)
        assert not has_serve_toss(falling)
        assert not has_serve_toss(low)


class TestClassifier:
    """End-to-end classification through the tracker."""

    def test_serve(self, square_court, player_det, ball_det):
        tracker = _serve_session(square_court, player_det, ball_det)
        shot = tracker.frames[-1].shot_analysis

        assert shot.is_shot
        assert shot.shot_type == ShotType.SERVE
        assert shot.confidence == pytest.approx(0.85)
        assert shot.ball_speed == pytest.approx(72.0)
        assert shot.player_position == CourtZone.BASELINE
        assert shot.ball_height == BallHeight.HIGH
        assert shot.shot_direction == ShotDirection.CROSSCOURT
        assert shot.criteria == {
            "proximity": True,
            "ball_speed_increase": True,
            "direction_change": True,
            "player_swing_motion": False,
            "temporal_consistency": True,
        }

    def test_toss_frames_are_not_shots(self, square_court, player_det, ball_det):
        tracker = _serve_session(square_court, player_det, ball_det)
        for f in tracker.frames[:-1]:
            assert not f.is_shot
            assert f.shot_analysis.confidence < 0.6

    def test_every_frame_has_bounded_confidence(self, square_court, player_det, ball_det):
        tracker = _serve_session(square_court, player_det, ball_det)
        for f in tracker.frames:
            assert 0.0 <= f.shot_analysis.confidence <= 1.0
            if f.is_shot:
                assert f.shot_analysis.confidence >= 0.6

    def test_temporal_consistency_after_shot(self, square_court, player_det, ball_det):
        classifier = ShotClassifier()
        tracker = _serve_session(square_court, player_det, ball_det, classifier)
        assert classifier.last_shot_timestamp == 1.0

        soon = tracker.update([player_det(500, 150), ball_det(540, 250)], 11, 1.5)
        later = tracker.update([player_det(500, 150), ball_det(540, 260)], 12, 2.5)
        assert not soon.shot_analysis.criteria["temporal_consistency"]
        assert later.shot_analysis.criteria["temporal_consistency"]

    def test_custom_rule_table(self, square_court, player_det, ball_det):
        classifier = ShotClassifier(rules=[(lambda ctx: True, ShotType.VOLLEY)])
        tracker = _serve_session(square_court, player_det, ball_det, classifier)
        assert tracker.frames[-1].shot_analysis.shot_type == ShotType.VOLLEY

    def test_needs_history(self, square_court):
        frame = _frame(square_court, (500, 150), (510, 160), ball_speed=90.0)
        analysis = ShotClassifier().classify(frame, [frame, frame], _trajectory(), MovementBuffer())
        assert not analysis.is_shot
        assert analysis.shot_type == ShotType.UNKNOWN

    def test_needs_ball(self, square_court):
        frame = _frame(square_court, (500, 150))
        analysis = ShotClassifier().classify(frame, [frame] * 3, _trajectory(), MovementBuffer())
        assert not analysis.is_shot
        assert analysis.confidence == 0.0

    def test_threshold_setting(self, square_court, player_det, ball_det):
        strict = ShotClassifier(TrackerSettings(shot_confidence_threshold=0.9))
        tracker = _serve_session(square_court, player_det, ball_det, strict)
        last = tracker.frames[-1].shot_analysis
        assert not last.is_shot
        assert last.confidence == pytest.approx(0.85)

    def test_geometry_thresholds_come_from_settings(self, square_court, player_det, ball_det):
        settings = TrackerSettings(ball_high_ratio=0.95, direction_crosscourt_deg=80.0)
        tracker = _serve_session(square_court, player_det, ball_det, ShotClassifier(settings))
        shot = tracker.frames[-1].shot_analysis

        assert shot.is_shot
        assert shot.ball_height == BallHeight.MEDIUM
        assert shot.shot_direction == ShotDirection.DOWN_THE_LINE
        assert shot.shot_type == ShotType.BACKHAND

    def test_zone_threshold_from_settings(self, square_court, player_det, ball_det):
        settings = TrackerSettings(baseline_zone_ratio=0.01)
        tracker = _serve_session(square_court, player_det, ball_det, ShotClassifier(settings))
        assert tracker.frames[-1].shot_analysis.player_position == CourtZone.MIDCOURT
