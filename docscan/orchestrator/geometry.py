"""
Guide and crop rectangle geometry.

The guide is a full-width band, vertically centered in the presented view.
At capture time it is mapped into image pixels by scaling with
image_width / view_width.

compute_crop_rect() returns the rectangle with x/width holding the vertical
band and y/height holding the full image width. That layout addresses a
sensor-native buffer, which is stored a quarter turn from the display.
crop_image() applies it directly to such buffers and transposes it for
upright frames.
"""
from dataclasses import dataclass

import numpy as np

# Guide aspect (width / height). 320 pt wide view -> 96 pt guide.
DEFAULT_GUIDE_ASPECT = 10 / 3


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


def guide_rect(view: Size, aspect: float = DEFAULT_GUIDE_ASPECT) -> Rect:
    """Guide rectangle in view coordinates: full width, vertically centered."""
    if aspect <= 0:
        raise ValueError(f"guide aspect must be positive, got {aspect}")
    height = view.width / aspect
    return Rect(x=0.0, y=(view.height - height) / 2, width=view.width, height=height)


def compute_crop_rect(view: Size, image_width: float, guide_height: float) -> Rect:
    if view.width == 0:
        raise ValueError("view width must be non-zero")

    image_height = image_width * view.height / view.width
    crop_height = guide_height * image_width / view.width
    y_offset = (image_height - crop_height) / 2

    # No clamping: a guide taller than the derived image gives a negative offset.
    return Rect(x=y_offset, y=0.0, width=crop_height, height=image_width)


def image_width(frame: np.ndarray, sensor_rotated: bool = False) -> int:
    """Display-orientation width of a frame in pixels."""
    h, w = frame.shape[:2]
    return h if sensor_rotated else w


def _span(start: float, length: float, limit: int) -> slice:
    lo = int(round(start))
    hi = int(round(start + length))
    return slice(min(max(lo, 0), limit), min(max(hi, 0), limit))


def crop_image(frame: np.ndarray, rect: Rect, sensor_rotated: bool = False) -> np.ndarray:
    """Extract rect from frame, intersected with the frame extent.

    Returns a copy so the caller may release the source frame.
    """
    h, w = frame.shape[:2]
    if sensor_rotated:
        rows = _span(rect.y, rect.height, h)
        cols = _span(rect.x, rect.width, w)
    else:
        rows = _span(rect.x, rect.width, h)
        cols = _span(rect.y, rect.height, w)
    return frame[rows, cols].copy()


def scale_rect(rect: Rect, src: Size, dst: Size) -> Rect:
    """Map a rectangle between two coordinate spaces of different sizes."""
    if src.width == 0 or src.height == 0:
        raise ValueError("source size must be non-zero")
    sx = dst.width / src.width
    sy = dst.height / src.height
    return Rect(x=rect.x * sx, y=rect.y * sy, width=rect.width * sx, height=rect.height * sy)
