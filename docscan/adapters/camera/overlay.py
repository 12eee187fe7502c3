"""Guide overlay drawn over preview frames."""
import cv2
import numpy as np

from docscan.orchestrator.geometry import Rect, Size, scale_rect

BORDER_COLOR = (0, 0, 255)   # BGR red
BORDER_WIDTH = 5


def draw_guide(frame: np.ndarray, view: Size, guide: Rect,
               color=BORDER_COLOR, thickness: int = BORDER_WIDTH) -> np.ndarray:
    """Return a copy of frame with the guide border drawn, scaled from view space."""
    h, w = frame.shape[:2]
    r = scale_rect(guide, view, Size(w, h))
    out = frame.copy()
    p1 = (int(round(r.x)), int(round(r.y)))
    p2 = (int(round(r.x + r.width)) - 1, int(round(r.y + r.height)) - 1)
    cv2.rectangle(out, p1, p2, color, thickness)
    return out


def encode_jpeg(frame: np.ndarray, quality: int = 85) -> bytes | None:
    ok, buf = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        return None
    return bytes(buf)


def decode_image(image_bytes: bytes) -> np.ndarray | None:
    arr = np.frombuffer(image_bytes, dtype=np.uint8)
    if arr.size == 0:
        return None
    return cv2.imdecode(arr, cv2.IMREAD_COLOR)
