"""
Shot detection + classification.

Detection is a weighted vote over five criteria; the weights of the criteria
that hold are summed into a confidence and a shot is declared at or above the
threshold. The shot type comes from an ordered rule table, first match wins:

    serve     baseline, fast, ball high, toss seen rising beforehand
    overhead  ball high, fast, ball came down from above
    volley    at the net, not too fast, no bounce before contact
    forehand  2-of-3 vote (ball side, player turn, swing direction)
    backhand  everything else

A right-handed player is assumed for the forehand side.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import numpy as np

from ..models.court  import CourtBoundaries
from ..models.frame  import (Frame, ShotAnalysis, ShotType, CourtZone,
                             ShotDirection, BallHeight)
from ..ball.trajectory import TrajectoryTracker
from .movement import MovementBuffer
from ..config import TrackerSettings
from .. import config


# ── Court geometry helpers ────────────────────────────────────────────────────

def court_zone(y: float, court: CourtBoundaries,
               baseline_ratio: float = config.BASELINE_ZONE_RATIO,
               net_ratio: float = config.NET_ZONE_RATIO) -> CourtZone:
    to_baseline = min(abs(y - court.top), abs(y - court.bottom))
    if to_baseline < court.court_height * baseline_ratio:
        return CourtZone.BASELINE
    if abs(y - court.net_y) < court.court_height * net_ratio:
        return CourtZone.NET
    return CourtZone.MIDCOURT


def ball_height(y: float, court: CourtBoundaries,
                low_ratio: float = config.BALL_LOW_RATIO,
                high_ratio: float = config.BALL_HIGH_RATIO) -> BallHeight:
    """Height tier from how far above the near baseline the ball sits."""
    fraction = (court.bottom - y) / court.court_height
    if fraction < low_ratio:
        return BallHeight.LOW
    if fraction > high_ratio:
        return BallHeight.HIGH
    return BallHeight.MEDIUM


def proximity_threshold(court: CourtBoundaries, settings: TrackerSettings) -> float:
    return float(np.clip(court.court_width * settings.proximity_ratio,
                         settings.min_proximity_px, settings.max_proximity_px))


def shot_direction(trajectory: TrajectoryTracker,
                   center_deg: float = config.DIRECTION_CENTER_DEG,
                   crosscourt_deg: float = config.DIRECTION_CROSSCOURT_DEG) -> ShotDirection:
    """
    Direction from the net displacement of the last 3 ball points, measured
    as deviation from the court's long (image-vertical) axis.
    """
    disp = trajectory.net_displacement(3)
    if disp is None or (disp[0] == 0 and disp[1] == 0):
        return ShotDirection.UNKNOWN
    dx, dy = disp
    deviation = float(np.degrees(np.arctan2(abs(dx), abs(dy))))
    if deviation < center_deg:
        return ShotDirection.CENTER
    if deviation > crosscourt_deg:
        return ShotDirection.CROSSCOURT
    return ShotDirection.DOWN_THE_LINE


# ── Rule table ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ShotContext:
    """Everything a shot-type rule may look at."""
    frame: Frame
    history: Sequence[Frame]
    trajectory: TrajectoryTracker
    movement: MovementBuffer
    settings: TrackerSettings
    zone: CourtZone
    height: BallHeight

    @property
    def ball_speed(self) -> float:
        return self.frame.ball_speed


def has_serve_toss(history: Sequence[Frame], window: int = config.SERVE_TOSS_WINDOW,
                   low_ratio: float = config.BALL_LOW_RATIO,
                   high_ratio: float = config.BALL_HIGH_RATIO) -> bool:
    """A high ball moving up between two consecutive recent frames."""
    recent = [f for f in list(history)[-window:] if f.ball is not None]
    for prev, cur in zip(recent, recent[1:]):
        high = (ball_height(prev.ball.center[1], prev.court, low_ratio, high_ratio) == BallHeight.HIGH
                and ball_height(cur.ball.center[1], cur.court, low_ratio, high_ratio) == BallHeight.HIGH)
        if high and cur.ball.center[1] < prev.ball.center[1]:
            return True
    return False


def player_turn_direction(history: Sequence[Frame], min_px: float = config.TURN_MIN_PX) -> str:
    recent = list(history)[-3:]
    if len(recent) < 3:
        return "none"
    total = 0.0
    for prev, cur in zip(recent, recent[1:]):
        if prev.player is not None and cur.player is not None:
            total += cur.player.center[0] - prev.player.center[0]
    if total > min_px:
        return "right"
    if total < -min_px:
        return "left"
    return "none"


def swing_direction(movement: MovementBuffer) -> str:
    last = movement.last
    if last is None or last.velocity[0] == 0:
        return "none"
    return "right" if last.velocity[0] > 0 else "left"


def is_serve(ctx: ShotContext) -> bool:
    return (
        ctx.zone == CourtZone.BASELINE
        and ctx.ball_speed >= ctx.settings.serve_min_speed_kmh
        and ctx.height == BallHeight.HIGH
        and has_serve_toss(ctx.history, ctx.settings.serve_toss_window,
                           ctx.settings.ball_low_ratio, ctx.settings.ball_high_ratio)
    )


def is_overhead(ctx: ShotContext) -> bool:
    return (
        ctx.height == BallHeight.HIGH
        and ctx.ball_speed > ctx.settings.overhead_min_speed_kmh
        and ctx.trajectory.descending_before_contact()
    )


def is_volley(ctx: ShotContext) -> bool:
    return (
        ctx.zone == CourtZone.NET
        and ctx.ball_speed < ctx.settings.volley_max_speed_kmh
        and not ctx.trajectory.bounced_recently()
    )


def forehand_votes(ctx: ShotContext) -> int:
    player, ball = ctx.frame.player, ctx.frame.ball
    if player is None or ball is None:
        return 0
    return sum([
        ball.center[0] > player.center[0],
        player_turn_direction(ctx.history, ctx.settings.turn_min_px) == "right",
        swing_direction(ctx.movement) == "right",
    ])


def is_forehand(ctx: ShotContext) -> bool:
    return forehand_votes(ctx) >= 2


SHOT_RULES: List[Tuple[Callable[[ShotContext], bool], ShotType]] = [
    (is_serve,          ShotType.SERVE),
    (is_overhead,       ShotType.OVERHEAD),
    (is_volley,         ShotType.VOLLEY),
    (is_forehand,       ShotType.FOREHAND),
    (lambda ctx: True,  ShotType.BACKHAND),
]


def classify_shot_type(ctx: ShotContext, rules=SHOT_RULES) -> ShotType:
    for predicate, label in rules:
        if predicate(ctx):
            return label
    return ShotType.UNKNOWN


# ── Classifier ────────────────────────────────────────────────────────────────

class ShotClassifier:
    """
    Per-session shot detector.

    Holds the time of the last declared shot for the temporal criterion, so
    one instance must not be shared between sessions.
    """

    def __init__(self, settings: Optional[TrackerSettings] = None, rules=SHOT_RULES):
        self._settings = settings or TrackerSettings()
        self._rules = rules
        self._last_shot_ts: Optional[float] = None

    @property
    def last_shot_timestamp(self) -> Optional[float]:
        return self._last_shot_ts

    def criteria(
        self,
        frame: Frame,
        trajectory: TrajectoryTracker,
        movement: MovementBuffer,
    ) -> Dict[str, bool]:
        s = self._settings
        turn = trajectory.direction_change_deg()
        return {
            "proximity": frame.distance_player_to_ball < proximity_threshold(frame.court, s),
            "ball_speed_increase": frame.ball_speed > s.min_shot_speed_kmh,
            "direction_change": turn is not None and turn > s.min_direction_change_deg,
            "player_swing_motion": movement.max_acceleration_change(5) > s.swing_accel_threshold,
            "temporal_consistency": (
                self._last_shot_ts is None
                or frame.timestamp - self._last_shot_ts >= s.min_shot_gap_s
            ),
        }

    @staticmethod
    def confidence(criteria: Dict[str, bool]) -> float:
        score = sum(config.CRITERIA_WEIGHTS[name] for name, hit in criteria.items() if hit)
        return round(min(score, 1.0), 6)

    def classify(
        self,
        frame: Frame,
        history: Sequence[Frame],
        trajectory: TrajectoryTracker,
        movement: MovementBuffer,
    ) -> ShotAnalysis:
        """
        Verdict for `frame` given the frames before it and the rolling buffers
        (already updated with this frame's ball and player).
        """
        player, ball = frame.player, frame.ball
        if player is None or ball is None or len(history) < 3:
            return ShotAnalysis.none(frame.timestamp)

        s = self._settings
        zone = court_zone(player.center[1], frame.court, s.baseline_zone_ratio, s.net_zone_ratio)
        height = ball_height(ball.center[1], frame.court, s.ball_low_ratio, s.ball_high_ratio)
        crit = self.criteria(frame, trajectory, movement)
        conf = self.confidence(crit)

        if conf < s.shot_confidence_threshold:
            return ShotAnalysis(
                is_shot=False,
                shot_type=ShotType.UNKNOWN,
                confidence=conf,
                ball_speed=frame.ball_speed,
                player_position=zone,
                shot_direction=ShotDirection.UNKNOWN,
                ball_height=height,
                timestamp=frame.timestamp,
                criteria=crit,
            )

        ctx = ShotContext(
            frame=frame, history=history, trajectory=trajectory,
            movement=movement, settings=s, zone=zone, height=height,
        )
        self._last_shot_ts = frame.timestamp
        return ShotAnalysis(
            is_shot=True,
            shot_type=classify_shot_type(ctx, self._rules),
            confidence=conf,
            ball_speed=frame.ball_speed,
            player_position=zone,
            shot_direction=shot_direction(trajectory, s.direction_center_deg,
                                          s.direction_crosscourt_deg),
            ball_height=height,
            timestamp=frame.timestamp,
            criteria=crit,
        )
