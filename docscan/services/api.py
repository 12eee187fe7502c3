import base64
import binascii
import logging
import os
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeout
from typing import Callable

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from dotenv import load_dotenv
from docscan.services.models import (
    RectOut, ErrorOut, DocumentOut, ScanResponse, ScanFrameRequest,
    CropRectRequest, PresentResponse, StatusResponse,
)
from docscan.services.status_store import StatusStore
from docscan.adapters.camera.overlay import decode_image, encode_jpeg
from docscan.orchestrator import errors
from docscan.orchestrator.contracts import BeginScan, Failed, Finished, Outcome
from docscan.orchestrator.dispatch import QueueDispatcher
from docscan.orchestrator.geometry import DEFAULT_GUIDE_ASPECT, Size, compute_crop_rect
from docscan.orchestrator.presenter import CapturePresenter
from docscan.orchestrator.state_machine import DocumentScanner

load_dotenv(dotenv_path="docscan/.env", override=False)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(title="docscan")

status = StatusStore()

VIEW = Size(float(os.getenv("VIEW_WIDTH", "320")), float(os.getenv("VIEW_HEIGHT", "480")))
GUIDE_ASPECT = float(os.getenv("GUIDE_ASPECT", str(DEFAULT_GUIDE_ASPECT)))
SENSOR_ROTATED = os.getenv("SENSOR_ROTATED", "0").lower() in ("1", "true", "yes")
SCAN_TIMEOUT_S = float(os.getenv("SCAN_TIMEOUT_S", "30"))

# Camera adapter: CAMERA_ADAPTER = cv2 | mock  (default: cv2)
camera_adapter = os.getenv("CAMERA_ADAPTER", "cv2").lower()
if camera_adapter == "mock":
    from docscan.adapters.camera.mock_camera import MockCamera
    camera = MockCamera(status, frames_dir=os.getenv("MOCK_FRAMES_DIR") or None)
else:
    from docscan.adapters.camera.cv2_camera import CV2Camera
    camera = CV2Camera(status)
status.log(f"camera adapter: {type(camera).__name__}")

# OCR adapter: OCR_ADAPTER = tesseract | mock  (default: tesseract)
ocr_adapter = os.getenv("OCR_ADAPTER", "tesseract").lower()
if ocr_adapter == "mock":
    from docscan.adapters.ocr.mock_ocr import MockEngine
    engine = MockEngine(status)
else:
    from docscan.adapters.ocr.tesseract_ocr import TesseractEngine
    engine = TesseractEngine(status)
    if not engine._ready:
        # Without a tesseract binary every scan reports ERR_RECOGNIZE
        from docscan.adapters.ocr.mock_ocr import MockEngine
        status.log("ocr: TesseractEngine not ready, every scan will fail recognition")
        engine = MockEngine(status, fail=True)
status.log(f"ocr adapter: {type(engine).__name__}")

# Outcomes of the scan in flight; only touched while holding _scan_lock
_outcomes: list[Outcome] = []
_scan_lock = threading.Lock()
dispatcher = QueueDispatcher()

presenter = CapturePresenter(camera, VIEW, guide_aspect=GUIDE_ASPECT)
scanner = DocumentScanner(
    presenter=presenter,
    engine=engine,
    status_store=status,
    listener=_outcomes.append,
    dispatcher=dispatcher,
    on_progress=lambda pct: status.log(f"recognize: progress {pct}%"),
    sensor_rotated=SENSOR_ROTATED,
)


def _busy_response() -> ScanResponse:
    status.log("SCAN rejected: busy")
    return ScanResponse(
        ok=False, state=scanner.state.value, duration_ms=0,
        error=ErrorOut(domain=errors.ERROR_DOMAIN, code=errors.ERR_BUSY, message="scanner busy"),
    )


def _release():
    status.set_busy(False)
    _scan_lock.release()


def _finish_late(future: Future):
    """Deliver the outcome of a scan that outlived its request, then free the scanner."""
    try:
        dispatcher.drain()
        status.log(f"SCAN late outcome: state={scanner.state.value}")
    finally:
        _release()


def _run_scan(start: Callable[[], Future | None]) -> ScanResponse:
    """Run one scan on the request thread, which owns the dispatcher while it holds the lock."""
    if not _scan_lock.acquire(blocking=False):
        return _busy_response()
    status.set_busy(True)
    _outcomes.clear()

    t0 = time.time()
    future = None
    timed_out = False
    outcomes: list[Outcome] = []
    try:
        future = start()
        if future is not None:
            try:
                future.result(timeout=SCAN_TIMEOUT_S)
            except FutureTimeout:
                timed_out = True
                status.log(f"SCAN timeout after {SCAN_TIMEOUT_S:g}s")
    finally:
        if future is not None and not future.done():
            outcomes = list(_outcomes)
            # The lock stays held until the worker finishes so scans never overlap
            future.add_done_callback(_finish_late)
        else:
            try:
                dispatcher.drain()
                outcomes = list(_outcomes)
            finally:
                _release()

    dt = int((time.time() - t0) * 1000)
    return _to_response(outcomes, dt, timed_out)


def _to_response(outcomes: list[Outcome], dt: int, timed_out: bool) -> ScanResponse:
    began = any(isinstance(o, BeginScan) for o in outcomes)
    crop = RectOut.from_rect(scanner.last_crop) if began and scanner.last_crop else None
    for o in outcomes:
        if isinstance(o, Finished):
            return ScanResponse(ok=True, state=scanner.state.value, duration_ms=dt, began_scan=began,
                                crop=crop, document=DocumentOut.from_info(o.info))
        if isinstance(o, Failed):
            return ScanResponse(ok=False, state=scanner.state.value, duration_ms=dt, began_scan=began,
                                crop=crop, error=ErrorOut.from_error(o.error))
    error = ErrorOut(domain=errors.ERROR_DOMAIN, code=errors.ERR_TIMEOUT, message="recognition timed out") \
        if timed_out else None
    return ScanResponse(ok=False, state=scanner.state.value, duration_ms=dt, began_scan=began,
                        crop=crop, error=error)


@app.get("/status", response_model=StatusResponse)
def get_status():
    err = status.last_error
    doc = status.last_document
    return StatusResponse(
        busy=status.busy,
        state=status.state.value,
        last_error=ErrorOut.from_error(err) if err else None,
        last_document=DocumentOut.from_info(doc) if doc else None,
        logs=status.logs,
    )


@app.get("/health")
def health():
    """Report adapters and whether the camera can be opened."""
    checks = {
        "api": True,
        "camera_adapter": type(camera).__name__,
        "ocr_adapter": type(engine).__name__,
        "view": {"width": VIEW.width, "height": VIEW.height},
    }
    try:
        checks["camera_available"] = camera.is_available()
    except Exception as e:
        checks["camera_available"] = False
        checks["camera_error"] = str(e)
    checks["all_ok"] = checks["api"] and checks["camera_available"]
    return checks


@app.post("/camera/present", response_model=PresentResponse)
def camera_present():
    """Open a fresh camera session with the guide overlay attached."""
    if not _scan_lock.acquire(blocking=False):
        return PresentResponse(ok=False, error=ErrorOut(domain=errors.ERROR_DOMAIN, code=errors.ERR_BUSY,
                                                        message="scanner busy"))
    try:
        _outcomes.clear()
        session = scanner.present_camera()
        if session is None:
            failed = next(o for o in _outcomes if isinstance(o, Failed))
            return PresentResponse(ok=False, error=ErrorOut.from_error(failed.error))
        return PresentResponse(ok=True, guide=RectOut.from_rect(session.guide))
    finally:
        _scan_lock.release()


@app.get("/preview")
def preview():
    """Current camera frame as JPEG with the guide border drawn on it."""
    session = scanner.session or presenter.present()
    if session is None:
        err = errors.no_camera()
        return JSONResponse(status_code=503, content={"ok": False, "error": ErrorOut.from_error(err).model_dump()})
    frame = session.preview()
    jpeg = encode_jpeg(frame) if frame is not None else None
    if jpeg is None:
        status.log("PREVIEW: camera capture failed")
        return JSONResponse(status_code=503, content={"ok": False, "error": "camera capture failed"})
    return Response(content=jpeg, media_type="image/jpeg")


@app.post("/scan", response_model=ScanResponse)
def scan():
    """Capture from the camera -> crop to the guide -> recognize."""
    status.log("SCAN: camera capture")
    return _run_scan(scanner.capture)


@app.post("/scan_frame", response_model=ScanResponse)
def scan_frame(req: ScanFrameRequest):
    """Crop + recognize an image supplied by the caller (base64)."""
    try:
        image = decode_image(base64.b64decode(req.image, validate=True))
        edited = decode_image(base64.b64decode(req.edited_image, validate=True)) if req.edited_image else None
    except (binascii.Error, ValueError) as e:
        status.log(f"SCAN_FRAME decode error: {e}")
        image = edited = None
    if image is None or (req.edited_image and edited is None):
        status.log("SCAN_FRAME rejected: image decode failed")
        return ScanResponse(
            ok=False, state=scanner.state.value, duration_ms=0,
            error=ErrorOut(domain=errors.ERROR_DOMAIN, code=errors.ERR_DECODE, message="image decode failed"),
        )
    status.log(f"SCAN_FRAME received {image.shape[1]}x{image.shape[0]}px edited={edited is not None}")
    return _run_scan(lambda: scanner.scan_image(image, edited))


@app.post("/crop_rect")
def crop_rect(req: CropRectRequest):
    """Crop rectangle for a view/image/guide geometry, without touching the camera."""
    try:
        rect = compute_crop_rect(Size(req.view_width, req.view_height), req.image_width, req.guide_height)
    except ValueError as e:
        return {"ok": False, "error": errors.ERR_BAD_GEOMETRY, "message": str(e)}
    return {"ok": True, "rect": RectOut.from_rect(rect).model_dump()}
