"""Mock camera: serves a random image from a frames dir, or a blank frame, for testing."""
import random
from pathlib import Path

import cv2
import numpy as np
from docscan.adapters.camera.base import CameraAdapter

FRAME_SUFFIXES = (".jpg", ".jpeg", ".png")

class MockCamera(CameraAdapter):
    def __init__(self, status_store, frames_dir: str | Path | None = None,
                 available: bool = True, frame_size: tuple[int, int] = (1800, 1200)):
        self.status = status_store
        self.frames_dir = Path(frames_dir) if frames_dir else None
        self.available = available
        self.frame_size = frame_size   # (height, width)
        self.next_frame: np.ndarray | None = None

    def is_available(self) -> bool:
        return self.available

    def capture_frame(self) -> np.ndarray | None:
        if not self.available:
            return None
        if self.next_frame is not None:
            frame, self.next_frame = self.next_frame, None
            return frame
        if self.frames_dir is not None:
            frames = [p for p in self.frames_dir.glob("*") if p.suffix.lower() in FRAME_SUFFIXES]
            if frames:
                chosen = random.choice(frames)
                self.status.log(f"mock_camera: serving {chosen.name}")
                return cv2.imread(str(chosen))
            self.status.log(f"mock_camera: no frames in {self.frames_dir}, serving blank")
        h, w = self.frame_size
        return np.full((h, w, 3), 255, dtype=np.uint8)
