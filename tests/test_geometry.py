"""Crop rectangle, extraction and guide overlay."""
import numpy as np
import pytest

from docscan.adapters.camera.overlay import BORDER_COLOR, draw_guide
from docscan.orchestrator.geometry import (
    Rect, Size, compute_crop_rect, crop_image, guide_rect, image_width, scale_rect,
)


def test_reference_capture() -> None:
    rect = compute_crop_rect(Size(320, 480), image_width=1200, guide_height=96)
    assert rect == Rect(x=720.0, y=0.0, width=360.0, height=1200.0)


def test_guide_filling_view_height_gives_zero_offset() -> None:
    rect = compute_crop_rect(Size(320, 480), image_width=1200, guide_height=480)
    assert rect.x == 0.0
    assert rect.width == 1800.0


@pytest.mark.parametrize("w_v,h_v,w_i,h_g", [
    (320, 480, 1200, 96),
    (375, 812, 3024, 110.5),
    (414, 896, 4032, 300),
    (1, 2, 3, 0.25),
])
def test_offset_centers_band(w_v, h_v, w_i, h_g) -> None:
    rect = compute_crop_rect(Size(w_v, h_v), image_width=w_i, guide_height=h_g)
    h_i = w_i * h_v / w_v
    h_crop = h_g * w_i / w_v
    assert rect.x == (h_i - h_crop) / 2
    assert h_i - h_crop == 2 * rect.x
    assert rect.width / w_i == pytest.approx(h_g / w_v)
    assert rect.y == 0.0
    assert rect.height == w_i


def test_zero_view_width_rejected() -> None:
    with pytest.raises(ValueError):
        compute_crop_rect(Size(0, 480), image_width=1200, guide_height=96)


def test_oversized_guide_is_not_clamped() -> None:
    rect = compute_crop_rect(Size(320, 480), image_width=1200, guide_height=600)
    assert rect.x < 0


def test_default_guide_is_centered_full_width_band() -> None:
    g = guide_rect(Size(320, 480))
    assert g.x == 0.0
    assert g.width == 320
    assert g.height == pytest.approx(96)
    assert g.y == pytest.approx(192)


def test_crop_upright_frame_takes_horizontal_band() -> None:
    frame = np.zeros((1800, 1200), dtype=np.uint8)
    frame[720:1080, :] = 7
    cropped = crop_image(frame, Rect(720, 0, 360, 1200))
    assert cropped.shape == (360, 1200)
    assert (cropped == 7).all()


def test_crop_sensor_rotated_frame_takes_vertical_band() -> None:
    frame = np.zeros((1200, 1800), dtype=np.uint8)
    frame[:, 720:1080] = 9
    assert image_width(frame, sensor_rotated=True) == 1200
    cropped = crop_image(frame, Rect(720, 0, 360, 1200), sensor_rotated=True)
    assert cropped.shape == (1200, 360)
    assert (cropped == 9).all()


def test_crop_intersects_with_frame_extent() -> None:
    frame = np.ones((100, 50, 3), dtype=np.uint8)
    cropped = crop_image(frame, Rect(-20, 0, 60, 50))
    assert cropped.shape == (40, 50, 3)
    empty = crop_image(frame, Rect(200, 0, 10, 50))
    assert empty.size == 0


def test_crop_returns_copy() -> None:
    frame = np.zeros((10, 10), dtype=np.uint8)
    cropped = crop_image(frame, Rect(2, 0, 4, 10))
    cropped[:] = 1
    assert frame.sum() == 0


def test_scale_rect() -> None:
    r = scale_rect(Rect(10, 20, 30, 40), Size(100, 200), Size(1000, 100))
    assert r == Rect(100, 10, 300, 20)


def test_draw_guide_paints_border_and_keeps_source() -> None:
    frame = np.full((480, 320, 3), 255, dtype=np.uint8)
    out = draw_guide(frame, Size(320, 480), guide_rect(Size(320, 480)))
    assert tuple(out[192, 160]) == BORDER_COLOR
    assert tuple(out[240, 160]) == (255, 255, 255)
    assert (frame == 255).all()
