from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from docscan.adapters.camera.base import CameraAdapter
from docscan.adapters.camera.overlay import draw_guide
from docscan.orchestrator.geometry import DEFAULT_GUIDE_ASPECT, Rect, Size, guide_rect


@dataclass
class CaptureSession:
    """One capture event: the frame(s) plus the geometry they were taken under."""
    original: np.ndarray
    view: Size
    guide: Rect
    edited: Optional[np.ndarray] = None

    @property
    def image(self) -> np.ndarray:
        return self.edited if self.edited is not None else self.original


@dataclass
class CameraSession:
    """Created fresh by each CapturePresenter.present() call."""
    camera: CameraAdapter
    view: Size
    guide: Rect
    captures: int = field(default=0)

    def preview(self) -> np.ndarray | None:
        frame = self.camera.capture_frame()
        if frame is None:
            return None
        return draw_guide(frame, self.view, self.guide)

    def capture(self) -> CaptureSession | None:
        frame = self.camera.capture_frame()
        if frame is None:
            return None
        self.captures += 1
        return CaptureSession(original=frame, view=self.view, guide=self.guide)


class CapturePresenter:
    def __init__(self, camera: CameraAdapter, view: Size, guide_aspect: float = DEFAULT_GUIDE_ASPECT):
        if view.width <= 0 or view.height <= 0:
            raise ValueError(f"view size must be positive, got {view.width}x{view.height}")
        self.camera = camera
        self.view = view
        self.guide = guide_rect(view, guide_aspect)

    def present(self) -> CameraSession | None:
        """New camera session, or None when no camera is available."""
        if not self.camera.is_available():
            return None
        return CameraSession(camera=self.camera, view=self.view, guide=self.guide)

    def session_for(self, image: np.ndarray, edited: np.ndarray | None = None) -> CaptureSession:
        """Capture session for an image supplied by the caller instead of the camera."""
        return CaptureSession(original=image, view=self.view, guide=self.guide, edited=edited)
