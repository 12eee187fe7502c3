import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

import numpy as np

from docscan.adapters.ocr.base import RecognitionEngine
from docscan.orchestrator import errors
from docscan.orchestrator.contracts import (
    BeginScan, DocumentInfo, Failed, Finished, Outcome, ScanState,
)
from docscan.orchestrator.dispatch import UiDispatcher
from docscan.orchestrator.geometry import Rect, compute_crop_rect, crop_image, image_width
from docscan.orchestrator.presenter import CameraSession, CapturePresenter, CaptureSession

Listener = Callable[[Outcome], None]


class DocumentScanner:
    """
    Capture -> crop -> recognize, one outcome per capture.

    Every public method is called from the UI-owning thread, and the listener
    is only ever invoked there: directly for BeginScan and no-camera failures,
    through the dispatcher for recognition outcomes.
    """

    def __init__(self, presenter: CapturePresenter, engine: RecognitionEngine, status_store,
                 listener: Listener, dispatcher: UiDispatcher,
                 executor: ThreadPoolExecutor | None = None,
                 on_progress: Optional[Callable[[int], None]] = None,
                 sensor_rotated: bool = False):
        self.presenter = presenter
        self.engine = engine
        self.status = status_store
        self.listener = listener
        self.dispatcher = dispatcher
        self.on_progress = on_progress
        self.sensor_rotated = sensor_rotated
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="ScannerOperationQueue")
        self.state = ScanState.IDLE
        self.session: CameraSession | None = None
        self.last_crop: Rect | None = None

    def _set_state(self, state: ScanState):
        self.state = state
        self.status.state = state

    def present_camera(self) -> CameraSession | None:
        """Open a fresh camera session. No camera -> Failed(ERR_NO_CAMERA) right away."""
        self._set_state(ScanState.PRESENTING)
        self.session = self.presenter.present()
        if self.session is None:
            self.status.log("present: no camera available")
            self._fail(errors.no_camera())
            return None
        g = self.session.guide
        self.status.log(
            f"present: view={self.session.view.width:g}x{self.session.view.height:g}"
            f" guide=({g.x:g}, {g.y:g}, {g.width:g}, {g.height:g})"
        )
        return self.session

    def capture(self) -> Future | None:
        """Take a frame from the current camera session and scan it.
        The session ends once the frame is cropped; the next capture presents again."""
        if self.session is None and self.present_camera() is None:
            return None
        self._set_state(ScanState.CAPTURING)
        capture = self.session.capture()
        if capture is None:
            self.status.log("capture: camera returned no frame")
            self._fail(errors.no_camera())
            return None
        return self.handle_capture(capture)

    def scan_image(self, image: np.ndarray, edited: np.ndarray | None = None) -> Future:
        """Scan an image handed in by the caller, using the presenter's geometry."""
        self._set_state(ScanState.CAPTURING)
        return self.handle_capture(self.presenter.session_for(image, edited))

    def handle_capture(self, capture: CaptureSession) -> Future:
        self._set_state(ScanState.CROPPING)
        image = capture.image
        rect = compute_crop_rect(capture.view, image_width(image, self.sensor_rotated), capture.guide.height)
        cropped = crop_image(image, rect, self.sensor_rotated)
        self.last_crop = rect
        self.session = None
        self.status.log(
            f"crop: rect=({rect.x:.1f}, {rect.y:.1f}, {rect.width:.1f}, {rect.height:.1f})"
            f" -> {cropped.shape[1]}x{cropped.shape[0]}px"
        )

        self._notify(BeginScan(cropped))

        self._set_state(ScanState.RECOGNIZING)
        return self._executor.submit(self._recognize, cropped)

    # ── worker thread ───────────────────────────────────────────────────────

    def _recognize(self, cropped: np.ndarray) -> DocumentInfo | None:
        t0 = time.time()
        try:
            info = self.engine.recognize(cropped, progress=self._progress)
        except Exception as e:
            self.status.log(f"recognize: error {type(e).__name__}: {e}")
            info = None
        dt = int((time.time() - t0) * 1000)
        self.dispatcher.post(lambda: self._deliver(info, dt))
        return info

    def _progress(self, percent: int):
        if self.on_progress is not None:
            self.dispatcher.post(lambda: self.on_progress(percent))

    # ── UI thread ───────────────────────────────────────────────────────────

    def _deliver(self, info: DocumentInfo | None, dt: int):
        if info is None:
            self.status.log(f"recognize: no result dt={dt}ms")
            self._fail(errors.recognize_failed())
            return
        self._set_state(ScanState.DELIVERED)
        self.status.last_document = info
        self.status.last_error = None
        self.status.log(f"recognize: done #{info.document_number} dt={dt}ms")
        self._notify(Finished(info))

    def _fail(self, error: errors.ScanError):
        self._set_state(ScanState.FAILED)
        self.status.last_error = error
        self.status.log(f"failed: code={error.code} {error.message}")
        self._notify(Failed(error))

    def _notify(self, outcome: Outcome):
        try:
            self.listener(outcome)
        except Exception as e:
            self.status.log(f"listener: error on {type(outcome).__name__}: {type(e).__name__}: {e}")

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
