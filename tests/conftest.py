"""Shared fixtures: synthetic frames and numbered image sequences on disk."""
import logging

import cv2
import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

from regions import BoundingBox, Region  # noqa: E402

logging.getLogger("matplotlib").setLevel(logging.WARNING)


def make_region(centroid=(10.0, 10.0), area=100, box=None, touches_boundary=False):
    box = box or BoundingBox(int(centroid[0]) - 5, int(centroid[1]) - 5, 10, 10)
    return Region(
        centroid=centroid,
        area=area,
        bounding_box=box,
        aspect_ratio=box.width / box.height,
        touches_boundary=touches_boundary,
        percent_filled=min(1.0, area / box.area),
        orientation=0.0,
    )


def blank_frame(height=200, width=200, value=0):
    return np.full((height, width, 3), value, dtype=np.uint8)


def draw_squares(frame, squares, value=255):
    """squares: iterable of (x, y, side); filled in place."""
    for x, y, side in squares:
        frame[y:y + side, x:x + side] = value
    return frame


@pytest.fixture
def region_factory():
    return make_region


@pytest.fixture
def frame_factory():
    def _make(squares=(), height=200, width=200):
        return draw_squares(blank_frame(height, width), squares)
    return _make


@pytest.fixture
def write_sequence(tmp_path):
    """Write frames as img1p3.png, img2p3.png, ... into tmp_path/'input'."""
    def _write(frames, name="input"):
        directory = tmp_path / name
        directory.mkdir(exist_ok=True)
        for i, frame in enumerate(frames, start=1):
            assert cv2.imwrite(str(directory / f"img{i}p3.png"), frame)
        return directory
    return _write
