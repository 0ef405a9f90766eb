"""
Main pipeline – one tracking session from frame images to AnalysisResult.

  1. First frame: detect, calibrate the court, seed the tracker
  2. Remaining frames: detection calls run ahead in a small thread pool,
     results are applied to the tracker strictly in input order
  3. Failed or timed-out detections become carry-forward frames
  4. cancel() stops between frames; frames tracked so far are aggregated
"""
from __future__ import annotations
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Deque, Iterable, Iterator, List, Optional, Sequence, Tuple
from tqdm import tqdm

from .models.detection import Detection
from .models.frame     import Frame
from .models.result    import AnalysisResult
from .court.calibrator import CourtCalibrator
from .tracker          import FrameTracker
from .stats.aggregator import AnalysisAggregator
from .video.loader     import image_size
from .errors import InferenceError, InvalidInput
from .config import TrackerSettings
from . import config

FrameInput = Tuple[bytes, float]


class Pipeline:
    """Runs detection → tracking → classification → aggregation for one session."""

    def __init__(
        self,
        detector,
        settings:      Optional[TrackerSettings] = None,
        prefetch:      int  = config.PREFETCH_WORKERS,
        show_progress: bool = True,
        verbose:       bool = True,
    ):
        self.detector      = detector
        self.settings      = settings or TrackerSettings()
        self.prefetch      = max(0, prefetch)
        self.show_progress = show_progress
        self.verbose       = verbose

        self._cancel     = threading.Event()
        self._tracker: Optional[FrameTracker] = None
        self._aggregator = AnalysisAggregator(self.settings)

    # ── Public API ────────────────────────────────────────────────────────────

    def cancel(self):
        """Request a stop; honoured before the next frame is tracked."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def tracker(self) -> Optional[FrameTracker]:
        return self._tracker

    @property
    def frames(self) -> Tuple[Frame, ...]:
        return self._tracker.frames if self._tracker else ()

    def result(self) -> AnalysisResult:
        """Aggregate whatever has been tracked so far."""
        return self._aggregator.aggregate(self.frames)

    def run(
        self,
        frames: Iterable[FrameInput],
        initial_detections: Optional[Sequence[Detection]] = None,
        frame_size: Optional[Tuple[int, int]] = None,
        total: Optional[int] = None,
    ) -> AnalysisResult:
        """
        Track a whole session.

        Args:
            frames: (encoded image, timestamp seconds) in increasing time order
            initial_detections: Starting boxes; detected on the first frame if None
            frame_size: (width, height); read from the first image if None
            total: Frame count for the progress bar

        Raises:
            InvalidInput: no frames, undecodable first frame, or no starting
                player/ball boxes.
        """
        it = iter(frames)
        first = next(it, None)
        if first is None:
            raise InvalidInput("No frames to process")
        image, ts = first

        width, height = frame_size or image_size(image)
        first_dets = self._detect_first(image)

        court = CourtCalibrator(self.settings).calibrate(first_dets or [], width, height)
        self._log(f"[Court]  source={court.source}  "
                  f"scale={court.pixels_to_meters:.5f} m/px  "
                  f"court={court.court_width:.0f}x{court.court_height:.0f}px")

        seed = initial_detections if initial_detections is not None else first_dets
        if seed is None:
            raise InvalidInput("Detection failed on the first frame and no initial boxes were given")

        self._tracker = FrameTracker(court, self.settings)
        self._tracker.start(seed, timestamp=ts, frame_id=0)

        progress = tqdm(total=total, desc="Tracking", unit="frames",
                        disable=not self.show_progress)
        progress.update(1)
        try:
            for frame_id, (frame_ts, detections) in enumerate(self._detections(it), start=1):
                if self.cancelled:
                    break
                self._tracker.update(detections, frame_id, frame_ts)
                progress.update(1)
        except KeyboardInterrupt:
            self.cancel()
        finally:
            progress.close()

        if self.cancelled:
            self._log(f"[Pipeline] Cancelled → keeping {len(self.frames)} tracked frames")
        result = self.result()
        self._log(f"[Pipeline] {result.frames_processed} frames  "
                  f"{result.detection_failures} detection failures  "
                  f"{result.shots.total_shots} shots")
        return result

    # ── Detection ─────────────────────────────────────────────────────────────

    def _floor(self) -> float:
        s = self.settings
        return min(s.min_confidence, s.ball_min_confidence, s.net_confidence, s.line_confidence)

    def _detect(self, image: bytes, frame_id: int) -> Optional[List[Detection]]:
        """Detections for one frame, or None when the backend failed."""
        try:
            return self.detector.detect(image, self._floor())
        except InferenceError as e:
            self._log(f"[Detector] frame {frame_id}: {e}")
            return None

    def _await(self, future: Future, frame_id: int) -> Optional[List[Detection]]:
        """Result of a submitted detection, or None once the timeout passes."""
        try:
            return future.result(timeout=self.settings.detection_timeout_s)
        except FutureTimeout:
            self._log(f"[Detector] frame {frame_id}: no answer within "
                      f"{self.settings.detection_timeout_s}s")
            return None

    def _detect_first(self, image: bytes) -> Optional[List[Detection]]:
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            return self._await(executor.submit(self._detect, image, 0), frame_id=0)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _detections(self, frames: Iterator[FrameInput]) -> Iterator[Tuple[float, Optional[List[Detection]]]]:
        """
        (timestamp, detections | None) in input order.

        Up to `prefetch` detection calls (one when prefetch is 0) are in
        flight ahead of the tracker. Every call is bounded by
        `detection_timeout_s`; a call that overruns is abandoned on its
        worker thread and the calls queued behind it move to a fresh pool.
        An abandoned thread is not joined here, but the interpreter still
        waits for it at exit.
        """
        ahead = max(1, self.prefetch)
        executor = ThreadPoolExecutor(max_workers=ahead)
        pending: Deque[Tuple[int, float, bytes, Future]] = deque()
        numbered = enumerate(frames, start=1)
        try:
            while True:
                while len(pending) < ahead and not self.cancelled:
                    nxt = next(numbered, None)
                    if nxt is None:
                        break
                    frame_id, (image, ts) = nxt
                    pending.append((frame_id, ts, image, executor.submit(self._detect, image, frame_id)))
                if not pending or self.cancelled:
                    return
                frame_id, ts, _, future = pending.popleft()
                detections = self._await(future, frame_id)
                if detections is None and not future.done():
                    executor = self._replace_pool(executor, pending, ahead)
                yield ts, detections
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _replace_pool(self, stuck: ThreadPoolExecutor, pending: Deque, workers: int) -> ThreadPoolExecutor:
        """Resubmit calls that have not started yet to a new pool."""
        fresh = ThreadPoolExecutor(max_workers=workers)
        for i, (frame_id, ts, image, future) in enumerate(pending):
            if future.cancel():
                pending[i] = (frame_id, ts, image, fresh.submit(self._detect, image, frame_id))
        stuck.shutdown(wait=False)
        return fresh

    def _log(self, message: str):
        if self.verbose:
            print(message)
