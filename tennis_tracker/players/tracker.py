"""
Player association across frames for multi-player (accurate) tracking.

Greedy nearest-neighbour on box centres: candidate pairs are taken in order
of increasing distance, each track and each detection used at most once,
and pairs farther apart than the gating distance are never matched.
There is no re-identification, so two players crossing paths can swap ids.
"""
from __future__ import annotations
from typing import Dict, List, Sequence, Tuple

from ..models.detection import Detection
from ..models.player    import TrackedPlayer
from ..stats.movement   import pixel_distance


class PlayerAssociator:
    """Matches new player detections onto existing tracks."""

    def __init__(self, gating_distance_px: float = 50.0):
        self._gate = gating_distance_px

    def associate(
        self,
        tracks: Sequence[TrackedPlayer],
        detections: Sequence[Detection],
    ) -> Tuple[Dict[int, Detection], List[Detection]]:
        """
        Returns:
            ({track_id: matched detection}, unmatched detections in input order)
        """
        pairs = []
        for ti, track in enumerate(tracks):
            for di, det in enumerate(detections):
                d = pixel_distance(track.center, det.center)
                if d <= self._gate:
                    pairs.append((d, ti, di))
        pairs.sort()

        matched: Dict[int, Detection] = {}
        used_tracks, used_dets = set(), set()
        for _, ti, di in pairs:
            if ti in used_tracks or di in used_dets:
                continue
            used_tracks.add(ti)
            used_dets.add(di)
            matched[tracks[ti].track_id] = detections[di]

        unmatched = [d for i, d in enumerate(detections) if i not in used_dets]
        return matched, unmatched

    def spawn_candidates(
        self,
        tracks: Sequence[TrackedPlayer],
        unmatched: Sequence[Detection],
    ) -> List[Detection]:
        """Unmatched detections not within the gate of any track become new players."""
        spawned: List[Detection] = []
        for det in unmatched:
            near_existing = any(
                pixel_distance(t.center, det.center) <= self._gate for t in tracks
            )
            near_spawned = any(
                pixel_distance(s.center, det.center) <= self._gate for s in spawned
            )
            if not (near_existing or near_spawned):
                spawned.append(det)
        return spawned
