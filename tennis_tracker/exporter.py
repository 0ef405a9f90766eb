"""
Export analysis results to JSON.
"""
import json
from pathlib import Path
from typing import Iterable

from .models import AnalysisResult, Frame
from .errors import SerializationFailure
from . import config


class Exporter:
    """Writes AnalysisResult documents and per-frame JSON lines."""

    def __init__(self, output_dir: str = str(config.RESULTS_DIR)):
        """
        Args:
            output_dir: Directory for output files
        """
        self.output_dir = Path(output_dir)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SerializationFailure(f"Cannot create {self.output_dir}: {e}") from e

    def export_json(
        self,
        result: AnalysisResult,
        filename: str = "analysis_results.json"
    ) -> Path:
        """
        Write the result document.

        Returns:
            Path to saved file
        """
        output_path = self.output_dir / filename
        try:
            with open(output_path, "w") as f:
                json.dump(result.to_dict(), f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            raise SerializationFailure(f"Could not write {output_path}: {e}") from e
        print(f"[Exporter] Results → {output_path}")
        return output_path

    @staticmethod
    def load_json(path) -> AnalysisResult:
        """Read back a document written by export_json."""
        try:
            with open(path) as f:
                return AnalysisResult.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise SerializationFailure(f"Could not read analysis from {path}: {e}") from e

    def export_frames(
        self,
        frames: Iterable[Frame],
        filename: str = "frames.jsonl"
    ) -> Path:
        """One Frame.to_dict() per line, in timeline order."""
        output_path = self.output_dir / filename
        count = 0
        try:
            with open(output_path, "w") as f:
                for frame in frames:
                    f.write(json.dumps(frame.to_dict()) + "\n")
                    count += 1
        except (OSError, TypeError, ValueError) as e:
            raise SerializationFailure(f"Could not write {output_path}: {e}") from e
        print(f"[Exporter] {count} frames → {output_path}")
        return output_path
