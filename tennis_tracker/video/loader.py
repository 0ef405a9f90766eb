"""
Frame loading from a directory of already-extracted images.

Decoding the video itself happens upstream; this only reads the sampled
frames back in order, one encoded image per file.
"""
from __future__ import annotations
from pathlib import Path
from typing import Generator, List, Optional, Tuple
import cv2
import numpy as np

from ..errors import InvalidInput

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")


def image_size(image: bytes) -> Tuple[int, int]:
    """(width, height) of an encoded image."""
    frame = cv2.imdecode(np.frombuffer(image, np.uint8), cv2.IMREAD_UNCHANGED)
    if frame is None:
        raise InvalidInput("Frame bytes are not a decodable image")
    h, w = frame.shape[:2]
    return w, h


class FrameLoader:
    """Iterates sorted frame images with timestamps derived from the sampling rate."""

    def __init__(self, directory: str, frame_rate: float):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise InvalidInput(f"Frame directory not found: {self.directory}")
        if frame_rate <= 0:
            raise InvalidInput("frame_rate must be positive")
        self.frame_rate = frame_rate
        self._files = self._list_frames()

    def _list_frames(self) -> List[Path]:
        return sorted(
            p for p in self.directory.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
        )

    def __len__(self) -> int:
        return len(self._files)

    def frames(self, max_frames: Optional[int] = None) -> Generator[Tuple[bytes, float], None, None]:
        """
        Yield (encoded_image, timestamp_s).

        Args:
            max_frames: Stop after this many yields.
        """
        for i, path in enumerate(self._files):
            if max_frames and i >= max_frames:
                break
            yield path.read_bytes(), i / self.frame_rate

    def first_frame(self) -> Optional[bytes]:
        return self._files[0].read_bytes() if self._files else None
