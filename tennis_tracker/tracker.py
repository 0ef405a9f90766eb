"""
Frame tracker – turns one frame's detections into the next timeline Frame.

One instance per session. It owns everything that carries over between
frames: the timeline, the ball-trajectory and player-movement buffers,
heatmaps, cumulative distances and the shot classifier. Frames must be fed
in timestamp order; each one is derived from its predecessor only.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .models.ball      import TrackedBall, TrajectoryPoint
from .models.court     import CourtBoundaries
from .models.detection import Detection, DetectionClass
from .models.frame     import Frame, ShotAnalysis
from .models.player    import TrackedPlayer
from .ball.trajectory  import TrajectoryTracker
from .players.tracker  import PlayerAssociator
from .stats.movement   import HeatmapGrid, MovementBuffer, displacement_m, pixel_distance, speed_kmh
from .stats.shots      import ShotClassifier
from .court.calibrator import CourtCalibrator
from .config import TrackerSettings
from .errors import CalibrationUnavailable, InvalidInput


class FrameTracker:
    """Stateful per-session tracker (enhanced or accurate mode)."""

    def __init__(
        self,
        court: CourtBoundaries,
        settings: Optional[TrackerSettings] = None,
        classifier: Optional[ShotClassifier] = None,
    ):
        self._settings   = settings or TrackerSettings()
        self._court      = court
        self._classifier = classifier or ShotClassifier(self._settings)
        self._calibrator = CourtCalibrator(self._settings)
        self._associator = PlayerAssociator(self._settings.gating_distance_px)
        self._trajectory = TrajectoryTracker(self._settings.trajectory_memory)
        self._movement   = MovementBuffer(self._settings.movement_memory)
        self._heatmaps: Dict[int, HeatmapGrid] = {}
        self._frames: List[Frame] = []
        self._next_track_id = 1
        self._failures = 0

    # ── Public API ─────────────────────────────────────────────────────────────

    @property
    def frames(self) -> Tuple[Frame, ...]:
        return tuple(self._frames)

    @property
    def court(self) -> CourtBoundaries:
        return self._court

    @property
    def trajectory(self) -> TrajectoryTracker:
        return self._trajectory

    @property
    def movement(self) -> MovementBuffer:
        return self._movement

    @property
    def detection_failures(self) -> int:
        return self._failures

    @property
    def started(self) -> bool:
        return bool(self._frames)

    def start(
        self,
        detections: Sequence[Detection],
        timestamp: float = 0.0,
        frame_id: int = 0,
    ) -> Frame:
        """
        Seed the session from the initial boxes.

        Raises:
            InvalidInput: enhanced mode without both a player and a ball box,
                accurate mode without any player box, or a second start.
        """
        if self._frames:
            raise InvalidInput("Session already started")

        usable = self._usable(detections)
        players = self._of(usable, DetectionClass.PLAYER)
        ball_det = self._best(usable, DetectionClass.BALL)

        if self._settings.multi_player:
            if not players:
                raise InvalidInput("At least one player bounding box is required")
        else:
            if not players or ball_det is None:
                raise InvalidInput("Both player and ball bounding boxes are required")
            players = [max(players, key=lambda d: d.confidence)]

        tracked = tuple(self._spawn(det) for det in players)
        ball = None
        if ball_det is not None:
            ball = TrackedBall(bbox=ball_det.bbox, confidence=ball_det.confidence)
            cx, cy = ball.center
            self._trajectory.push(TrajectoryPoint(cx, cy, timestamp, 0.0, ball.confidence))
        self._movement.push(tracked[0].center, timestamp)

        frame = Frame(
            frame_id=frame_id,
            timestamp=timestamp,
            court=self._court,
            players=tracked,
            ball=ball,
            distance_player_to_ball=self._player_ball_distance(tracked, ball),
            shot_analysis=ShotAnalysis.none(timestamp),
            net_position=self._net_position(usable),
        )
        self._frames.append(frame)
        return frame

    def update(
        self,
        detections: Optional[Sequence[Detection]],
        frame_id: int,
        timestamp: float,
    ) -> Frame:
        """
        Produce the next Frame. `detections=None` means detection failed for
        this frame; positions are then carried over unchanged.

        Raises:
            InvalidInput: session not started or timestamp going backwards.
        """
        if not self._frames:
            raise InvalidInput("Call start() before update()")
        prev = self._frames[-1]
        if timestamp < prev.timestamp:
            raise InvalidInput(
                f"Frame {frame_id} at {timestamp}s is older than frame "
                f"{prev.frame_id} at {prev.timestamp}s"
            )

        if detections is None:
            frame = self._carry_forward(prev, frame_id, timestamp)
            self._failures += 1
            self._frames.append(frame)
            return frame

        usable = self._usable(detections)
        self._maybe_recalibrate(usable)

        scale = prev.court.pixels_to_meters
        dt = timestamp - prev.timestamp

        players, primary_step = self._update_players(prev, usable, scale, dt)
        ball = self._update_ball(prev, usable, scale, dt, timestamp)

        primary = players[0] if players else None
        if primary is not None and primary.detected:
            self._movement.push(primary.center, timestamp, primary.speed_kmh)

        draft = Frame(
            frame_id=frame_id,
            timestamp=timestamp,
            court=self._court,
            players=players,
            ball=ball,
            distance_player_to_ball=self._player_ball_distance(players, ball),
            player_speed=primary.speed_kmh if primary else 0.0,
            ball_speed=ball.speed_kmh if ball else 0.0,
            player_distance=primary_step,
            total_player_distance=primary.distance_m if primary else prev.total_player_distance,
            net_position=self._net_position(usable),
        )
        analysis = self._classifier.classify(draft, self._frames, self._trajectory, self._movement)
        frame = replace(draft, shot_analysis=analysis)
        self._frames.append(frame)
        return frame

    # ── Players ────────────────────────────────────────────────────────────────

    def _update_players(
        self,
        prev: Frame,
        usable: List[Detection],
        scale: float,
        dt: float,
    ) -> Tuple[Tuple[TrackedPlayer, ...], float]:
        candidates = self._of(usable, DetectionClass.PLAYER)

        if self._settings.multi_player:
            matched, unmatched = self._associator.associate(prev.players, candidates)
            spawned = self._associator.spawn_candidates(prev.players, unmatched)
        else:
            best = max(candidates, key=lambda d: d.confidence) if candidates else None
            if prev.players:
                matched = {prev.players[0].track_id: best} if best is not None else {}
                spawned = []
            else:
                matched, spawned = {}, [best] if best is not None else []

        players: List[TrackedPlayer] = []
        primary_step = 0.0
        for i, p in enumerate(prev.players):
            det = matched.get(p.track_id)
            if det is None:
                players.append(replace(p, speed_kmh=0.0, detected=False))
                continue
            step = displacement_m(p.center, det.center, scale)
            heatmap = self._heatmaps[p.track_id]
            heatmap.add(det.center, self._court)
            players.append(TrackedPlayer(
                track_id=p.track_id,
                bbox=det.bbox,
                confidence=det.confidence,
                speed_kmh=speed_kmh(step, dt),
                distance_m=p.distance_m + step,
                heatmap=heatmap.snapshot(),
            ))
            if i == 0:
                primary_step = step

        players.extend(self._spawn(det) for det in spawned)
        return tuple(players), primary_step

    def _spawn(self, det: Detection) -> TrackedPlayer:
        tid = self._next_track_id
        self._next_track_id += 1
        heatmap = HeatmapGrid(self._settings.grid_size)
        heatmap.add(det.center, self._court)
        self._heatmaps[tid] = heatmap
        return TrackedPlayer(
            track_id=tid,
            bbox=det.bbox,
            confidence=det.confidence,
            heatmap=heatmap.snapshot(),
        )

    # ── Ball ───────────────────────────────────────────────────────────────────

    def _update_ball(
        self,
        prev: Frame,
        usable: List[Detection],
        scale: float,
        dt: float,
        timestamp: float,
    ) -> Optional[TrackedBall]:
        det = self._best(usable, DetectionClass.BALL)
        if det is None:
            if prev.ball is None:
                return None
            return replace(prev.ball, speed_kmh=0.0, detected=False)

        speed = 0.0
        if prev.ball is not None:
            speed = speed_kmh(displacement_m(prev.ball.center, det.center, scale), dt)
        ball = TrackedBall(bbox=det.bbox, confidence=det.confidence, speed_kmh=speed)
        cx, cy = ball.center
        self._trajectory.push(TrajectoryPoint(cx, cy, timestamp, speed, det.confidence))
        return ball

    # ── Internals ──────────────────────────────────────────────────────────────

    def _carry_forward(self, prev: Frame, frame_id: int, timestamp: float) -> Frame:
        """Detection-loss frame: same positions and totals, nothing moved."""
        return replace(
            prev,
            frame_id=frame_id,
            timestamp=timestamp,
            players=tuple(replace(p, speed_kmh=0.0, detected=False) for p in prev.players),
            ball=replace(prev.ball, speed_kmh=0.0, detected=False) if prev.ball else None,
            player_speed=0.0,
            ball_speed=0.0,
            player_distance=0.0,
            shot_analysis=ShotAnalysis.none(timestamp),
            detection_failed=True,
        )

    def _maybe_recalibrate(self, usable: List[Detection]):
        if not self._settings.recalibrate_each_frame:
            return
        try:
            self._court = self._calibrator.from_net(usable)
        except CalibrationUnavailable:
            pass

    def _usable(self, detections: Sequence[Detection]) -> List[Detection]:
        """Apply the per-class confidence floors."""
        s = self._settings
        floors = {
            DetectionClass.PLAYER: s.min_confidence,
            DetectionClass.BALL:   s.ball_min_confidence,
            DetectionClass.NET:    s.net_confidence,
            DetectionClass.COURT:  s.line_confidence,
        }
        return [
            d for d in detections
            if d.confidence >= floors.get(d.label, s.min_confidence)
        ]

    @staticmethod
    def _of(detections: Sequence[Detection], label: DetectionClass) -> List[Detection]:
        return [d for d in detections if d.label == label]

    @classmethod
    def _best(cls, detections: Sequence[Detection], label: DetectionClass) -> Optional[Detection]:
        found = cls._of(detections, label)
        return max(found, key=lambda d: d.confidence) if found else None

    @classmethod
    def _net_position(cls, detections: Sequence[Detection]) -> Optional[Tuple[float, float]]:
        net = cls._best(detections, DetectionClass.NET)
        return net.center if net else None

    @staticmethod
    def _player_ball_distance(players: Sequence[TrackedPlayer], ball: Optional[TrackedBall]) -> float:
        if not players or ball is None:
            return 0.0
        return pixel_distance(players[0].center, ball.center)
