"""
OpenCV webcam capture adapter.
CAMERA_INDEX env var (default 0) selects the webcam device.
"""
import os
import threading

import cv2
import numpy as np
from docscan.adapters.camera.base import CameraAdapter

class CV2Camera(CameraAdapter):
    def __init__(self, status_store, index: int | None = None):
        self.status = status_store
        self._index = index if index is not None else int(os.getenv("CAMERA_INDEX", "0"))
        self._cap = None
        self._lock = threading.Lock()

    def _open(self):
        if self._cap is None or not self._cap.isOpened():
            self._cap = cv2.VideoCapture(self._index)
            if not self._cap.isOpened():
                self.status.log(f"cv2_camera: failed to open device {self._index}")

    def is_available(self) -> bool:
        with self._lock:
            self._open()
            return self._cap is not None and self._cap.isOpened()

    def capture_frame(self) -> np.ndarray | None:
        with self._lock:
            self._open()
            if self._cap is None or not self._cap.isOpened():
                return None
            ret, frame = self._cap.read()
        if not ret or frame is None:
            self.status.log("cv2_camera: frame capture failed")
            return None
        return frame

    def release(self):
        with self._lock:
            if self._cap and self._cap.isOpened():
                self._cap.release()
                self._cap = None
