"""
Tests for frame loading and result export.
"""
import json
import cv2
import numpy as np
import pytest

from tennis_tracker.exporter import Exporter
from tennis_tracker.video import FrameLoader
from tennis_tracker.video.loader import image_size
from tennis_tracker.errors import InvalidInput, SerializationFailure
from tennis_tracker.stats import AnalysisAggregator
from tennis_tracker.tracker import FrameTracker


@pytest.fixture
def frame_dir(tmp_path):
    """Three PNG frames written out of order plus a stray text file."""
    for name in ("frame_0002.png", "frame_0000.png", "frame_0001.png"):
        img = np.full((48, 64, 3), 80, dtype=np.uint8)
        cv2.imwrite(str(tmp_path / name), img)
    (tmp_path / "notes.txt").write_text("not a frame")
    return tmp_path


@pytest.fixture
def session_frames(walk_court, player_det, ball_det):
    tracker = FrameTracker(walk_court)
    tracker.start([player_det(100, 500), ball_det(800, 800)], timestamp=0.0)
    tracker.update([player_det(110, 500), ball_det(790, 800)], 1, 0.5)
    tracker.update(None, 2, 1.0)
    tracker.update([player_det(130, 500), ball_det(770, 800)], 3, 1.5)
    return tracker.frames


class TestFrameLoader:
    """Directory of extracted frames."""

    def test_sorted_frames_with_timestamps(self, frame_dir):
        loader = FrameLoader(str(frame_dir), frame_rate=2.0)
        frames = list(loader.frames())

        assert len(loader) == 3
        assert [ts for _, ts in frames] == [0.0, 0.5, 1.0]
        assert frames[0][0] == (frame_dir / "frame_0000.png").read_bytes()

    def test_max_frames(self, frame_dir):
        assert len(list(FrameLoader(str(frame_dir), 2.0).frames(max_frames=2))) == 2

    def test_first_frame(self, frame_dir):
        assert image_size(FrameLoader(str(frame_dir), 2.0).first_frame()) == (64, 48)

    def test_empty_directory(self, tmp_path):
        loader = FrameLoader(str(tmp_path), 2.0)
        assert len(loader) == 0
        assert loader.first_frame() is None

    def test_missing_directory(self, tmp_path):
        with pytest.raises(InvalidInput):
            FrameLoader(str(tmp_path / "nope"), 2.0)

    def test_bad_frame_rate(self, frame_dir):
        with pytest.raises(InvalidInput):
            FrameLoader(str(frame_dir), 0)

    def test_image_size(self, tiny_jpeg):
        assert image_size(tiny_jpeg) == (64, 48)

    def test_image_size_rejects_garbage(self):
        with pytest.raises(InvalidInput):
            image_size(b"definitely not an image")


class TestExporter:
    """JSON export."""

    def test_result_round_trip(self, temp_output_dir, session_frames):
        result = AnalysisAggregator().aggregate(session_frames)
        exporter = Exporter(str(temp_output_dir))
        path = exporter.export_json(result, "session.json")

        assert path.exists()
        assert Exporter.load_json(path) == result

    def test_json_layout(self, temp_output_dir, session_frames):
        result = AnalysisAggregator().aggregate(session_frames)
        path = Exporter(str(temp_output_dir)).export_json(result)
        data = json.loads(path.read_text())

        assert data["frames_processed"] == 4
        assert data["detection_failures"] == 1
        assert "1" in data["players"]
        assert set(data["shots"]["counts_by_type"]) == {
            "serve", "forehand", "backhand", "volley", "overhead", "unknown"}

    def test_frames_jsonl(self, temp_output_dir, session_frames):
        path = Exporter(str(temp_output_dir)).export_frames(session_frames, "frames.jsonl")
        lines = path.read_text().splitlines()

        assert len(lines) == 4
        records = [json.loads(line) for line in lines]
        assert [r["frame_id"] for r in records] == [0, 1, 2, 3]
        assert records[2]["detection_failed"] is True

    def test_load_missing_file(self, temp_output_dir):
        with pytest.raises(SerializationFailure):
            Exporter.load_json(temp_output_dir / "missing.json")

    def test_load_corrupt_file(self, temp_output_dir):
        path = temp_output_dir / "bad.json"
        path.write_text("{not json")
        with pytest.raises(SerializationFailure):
            Exporter.load_json(path)

    def test_load_incomplete_document(self, temp_output_dir):
        path = temp_output_dir / "partial.json"
        path.write_text(json.dumps({"mode": "enhanced"}))
        with pytest.raises(SerializationFailure):
            Exporter.load_json(path)

    def test_unwritable_output_dir(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(SerializationFailure):
            Exporter(str(blocker / "sub"))
