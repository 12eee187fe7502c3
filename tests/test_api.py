"""HTTP service with mock camera and OCR adapters."""
import base64
import os
import threading
import time

os.environ["CAMERA_ADAPTER"] = "mock"
os.environ["OCR_ADAPTER"] = "mock"
os.environ["VIEW_WIDTH"] = "320"
os.environ["VIEW_HEIGHT"] = "480"
os.environ.pop("MOCK_FRAMES_DIR", None)

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from docscan.adapters.ocr.mock_ocr import MockEngine
from docscan.services import api

client = TestClient(api.app)


def _png_b64(h: int, w: int) -> str:
    ok, buf = cv2.imencode(".png", np.full((h, w, 3), 255, dtype=np.uint8))
    assert ok
    return base64.b64encode(bytes(buf)).decode("ascii")


@pytest.fixture
def no_camera():
    api.camera.available = False
    yield
    api.camera.available = True


def test_crop_rect_reference() -> None:
    r = client.post("/crop_rect", json={"view_width": 320, "view_height": 480,
                                        "image_width": 1200, "guide_height": 96})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "rect": {"x": 720.0, "y": 0.0, "width": 360.0, "height": 1200.0}}


def test_crop_rect_zero_width() -> None:
    r = client.post("/crop_rect", json={"view_width": 0, "view_height": 480,
                                        "image_width": 1200, "guide_height": 96})
    data = r.json()
    assert data["ok"] is False
    assert data["error"] == "bad_geometry"


def test_scan_from_camera() -> None:
    data = client.post("/scan").json()
    assert data["ok"] is True
    assert data["began_scan"] is True
    assert data["state"] == "delivered"
    assert data["document"]["document_number"] == "L898902C3"
    assert data["document"]["valid"] is True
    assert data["crop"]["width"] == pytest.approx(360)

    status = client.get("/status").json()
    assert status["busy"] is False
    assert status["last_document"]["surname"] == "ERIKSSON"


def test_scan_frame_upload() -> None:
    data = client.post("/scan_frame", json={"image": _png_b64(900, 600)}).json()
    assert data["ok"] is True
    assert data["crop"]["x"] == pytest.approx(360)
    assert api.engine.images[-1].shape == (180, 600, 3)


def test_scan_frame_prefers_edited_image() -> None:
    data = client.post("/scan_frame", json={"image": _png_b64(1800, 1200),
                                            "edited_image": _png_b64(900, 600)}).json()
    assert data["ok"] is True
    assert api.engine.images[-1].shape == (180, 600, 3)


def test_scan_frame_bad_image() -> None:
    data = client.post("/scan_frame", json={"image": "%%%"}).json()
    assert data["ok"] is False
    assert data["began_scan"] is False
    assert data["error"]["code"] == "decode_failed"


def test_scan_without_camera(no_camera) -> None:
    data = client.post("/scan").json()
    assert data["ok"] is False
    assert data["began_scan"] is False
    assert data["state"] == "failed"
    assert data["error"]["code"] == 1
    assert data["error"]["domain"] == "docscan.scanner"


def test_present(no_camera) -> None:
    data = client.post("/camera/present").json()
    assert data == {"ok": False, "guide": None,
                    "error": {"domain": "docscan.scanner", "code": 1,
                              "message": "Scanner unable to find camera on this device"}}


def test_present_and_preview() -> None:
    data = client.post("/camera/present").json()
    assert data["ok"] is True
    assert data["guide"]["height"] == pytest.approx(96)

    r = client.get("/preview")
    assert r.status_code == 200
    assert r.headers["content-type"] == "image/jpeg"
    assert r.content[:2] == b"\xff\xd8"


def test_busy_scan_rejected() -> None:
    assert api._scan_lock.acquire(blocking=False)
    try:
        data = client.post("/scan").json()
    finally:
        api._scan_lock.release()
    assert data["ok"] is False
    assert data["error"]["code"] == "busy"


def test_health() -> None:
    data = client.get("/health").json()
    assert data["camera_adapter"] == "MockCamera"
    assert data["ocr_adapter"] == "MockEngine"
    assert data["all_ok"] is True


def test_scan_frame_undecodable_edited_image() -> None:
    """A broken edited image is rejected rather than silently scanning the original."""
    junk = base64.b64encode(b"not an image").decode("ascii")
    data = client.post("/scan_frame", json={"image": _png_b64(900, 600), "edited_image": junk}).json()
    assert data["ok"] is False
    assert data["began_scan"] is False
    assert data["error"]["code"] == "decode_failed"


class GatedEngine(MockEngine):
    """Holds recognition until the test opens the gate."""

    def __init__(self, status_store):
        super().__init__(status_store)
        self.gate = threading.Event()

    def recognize(self, image, progress=None):
        self.gate.wait(5)
        return super().recognize(image, progress)


def test_timed_out_scan_reaches_status_later(monkeypatch) -> None:
    """A scan that outlives its request still lands in /status once recognition ends."""
    gated = GatedEngine(api.status)
    monkeypatch.setattr(api, "SCAN_TIMEOUT_S", 0.1)
    monkeypatch.setattr(api.scanner, "engine", gated)
    monkeypatch.setattr(api.status, "last_document", None)

    data = client.post("/scan").json()
    assert data["ok"] is False
    assert data["began_scan"] is True
    assert data["error"]["code"] == "timeout"
    assert client.get("/status").json()["busy"] is True

    gated.gate.set()
    deadline = time.time() + 5
    while api.status.busy and time.time() < deadline:
        time.sleep(0.01)

    status = client.get("/status").json()
    assert status["busy"] is False
    assert status["state"] == "delivered"
    assert status["last_document"]["document_number"] == "L898902C3"
    assert len(gated.images) == 1
