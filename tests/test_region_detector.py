import math

import cv2
import numpy as np
import pytest

from region_detector import RegionDetector, orientation_angle


def binary_canvas(height=100, width=120):
    return np.zeros((height, width), dtype=np.uint8)


def test_preprocess_color_to_single_channel():
    det = RegionDetector()
    bgr = np.random.default_rng(0).integers(0, 256, size=(40, 60, 3), dtype=np.uint8)
    out = det.preprocess(bgr)
    assert out.shape == (40, 60)
    assert out.dtype == np.uint8


def test_preprocess_accepts_grayscale():
    det = RegionDetector()
    gray = np.full((30, 30), 77, dtype=np.uint8)
    out = det.preprocess(gray)
    assert out.shape == (30, 30)
    assert np.all(out == 77)


@pytest.mark.parametrize("image", [None, np.zeros((0, 0, 3), dtype=np.uint8)])
def test_preprocess_rejects_empty(image):
    with pytest.raises(ValueError):
        RegionDetector().preprocess(image)


@pytest.mark.parametrize("kwargs", [
    {"threshold_mode": "otsu"},
    {"min_region_size": 0},
    {"adaptive_block": 10},
    {"blur_ksize": 4},
    {"connectivity": 6},
])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        RegionDetector(**kwargs)


@pytest.mark.parametrize("mode", ["fixed", "adaptive"])
def test_threshold_output_is_two_level(mode):
    det = RegionDetector(threshold_mode=mode, threshold_value=100)
    gray = np.random.default_rng(1).integers(0, 256, size=(64, 64), dtype=np.uint8)
    levels = set(np.unique(det.threshold(gray)).tolist())
    assert levels <= {0, 255}


def test_fixed_threshold_is_strictly_greater():
    det = RegionDetector(threshold_mode="fixed", threshold_value=100)
    gray = np.array([[99, 100, 101]], dtype=np.uint8)
    assert det.fixed_threshold(gray).tolist() == [[0, 0, 255]]


def test_adaptive_threshold_marks_dark_objects():
    det = RegionDetector()
    gray = np.full((60, 60), 255, dtype=np.uint8)
    gray[27:33, 27:33] = 0
    out = det.adaptive_threshold(gray)
    assert out[30, 30] == 255
    assert out[5, 5] == 0


def test_clean_is_close_then_open():
    det = RegionDetector()
    binary = (np.random.default_rng(2).random((50, 50)) > 0.6).astype(np.uint8) * 255
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (3, 3))
    expected = cv2.morphologyEx(cv2.morphologyEx(binary, cv2.MORPH_CLOSE, kernel), cv2.MORPH_OPEN, kernel)
    assert np.array_equal(det.clean(binary), expected)


def test_clean_removes_specks_and_fills_holes():
    det = RegionDetector()
    binary = binary_canvas()
    binary[20:40, 20:40] = 255
    binary[30, 30] = 0        # hole
    binary[70, 90] = 255      # speck
    cleaned = det.clean(binary)
    assert cleaned[30, 30] == 255
    assert cleaned[70, 90] == 0
    assert np.count_nonzero(cleaned) == 400


def test_filled_rectangle_descriptor():
    det = RegionDetector(min_region_size=10)
    w, h = 40, 20
    binary = binary_canvas()
    binary[20:20 + h, 30:30 + w] = 255

    (region,) = det.extract_regions(binary)
    assert region.area == w * h
    assert region.aspect_ratio == w / h
    assert region.percent_filled == 1.0
    assert tuple(region.bounding_box) == (30, 20, w, h)
    assert region.centroid == pytest.approx((30 + (w - 1) / 2, 20 + (h - 1) / 2))
    assert not region.touches_boundary
    assert region.orientation == pytest.approx(0.0, abs=1e-9)


def test_tall_rectangle_is_vertical():
    det = RegionDetector(min_region_size=10)
    binary = binary_canvas()
    binary[10:70, 50:60] = 255
    (region,) = det.extract_regions(binary)
    assert abs(region.orientation) == pytest.approx(math.pi / 2, abs=1e-6)
    assert -math.pi / 2 < region.orientation <= math.pi / 2


def test_diagonal_bar_orientation():
    det = RegionDetector(min_region_size=10)
    binary = binary_canvas(100, 100)
    cv2.line(binary, (20, 20), (80, 80), 255, 5)
    (region,) = det.extract_regions(binary)
    assert region.orientation == pytest.approx(math.pi / 4, abs=0.05)


def test_symmetric_blob_orientation_is_zero():
    mask = np.zeros((11, 11), dtype=np.uint8)
    mask[3:8, 3:8] = 1
    assert orientation_angle(mask) == pytest.approx(0.0, abs=1e-9)


def test_disk_descriptor_bounds():
    det = RegionDetector(min_region_size=10)
    binary = binary_canvas()
    cv2.circle(binary, (60, 50), 15, 255, -1)
    (region,) = det.extract_regions(binary)
    assert 0 < region.percent_filled < 1
    assert region.aspect_ratio == pytest.approx(1.0)


@pytest.mark.parametrize("min_size", [1, 25, 26, 100, 101])
def test_min_region_size_filter(min_size):
    det = RegionDetector(min_region_size=min_size)
    binary = binary_canvas()
    binary[10:15, 10:15] = 255     # 25 px
    binary[50:60, 50:60] = 255     # 100 px
    regions = det.extract_regions(binary)
    assert all(r.area >= min_size for r in regions)
    assert len(regions) == sum(a >= min_size for a in (25, 100))


def test_regions_sorted_largest_first():
    det = RegionDetector(min_region_size=1)
    binary = binary_canvas()
    binary[5:10, 5:10] = 255       # 25
    binary[20:50, 20:50] = 255     # 900
    binary[70:80, 90:100] = 255    # 100
    areas = [r.area for r in det.extract_regions(binary)]
    assert areas == [900, 100, 25]


def test_empty_raster_yields_no_regions():
    assert RegionDetector().extract_regions(binary_canvas()) == []


@pytest.mark.parametrize("rows, cols", [
    (slice(10, 30), slice(0, 20)),        # left edge
    (slice(0, 20), slice(40, 60)),        # top edge
    (slice(10, 30), slice(100, 120)),     # right edge
    (slice(80, 100), slice(40, 60)),      # bottom edge
])
def test_touches_boundary(rows, cols):
    det = RegionDetector(min_region_size=10)
    binary = binary_canvas()
    binary[rows, cols] = 255
    (region,) = det.extract_regions(binary)
    assert region.touches_boundary


def test_moments_ignore_other_components_in_box():
    det = RegionDetector(min_region_size=1)
    binary = binary_canvas()
    # L-shape whose box also contains a separate diagonal-ish blob
    binary[10:60, 10:14] = 255
    binary[56:60, 10:60] = 255
    binary[15:20, 40:45] = 255
    big, small = det.extract_regions(binary)
    assert big.area == 50 * 4 + 4 * 46
    assert small.area == 25
    assert big.percent_filled == pytest.approx(big.area / (50 * 50))

    l_only = (binary[10:60, 10:60] > 0).astype(np.uint8)
    l_only[5:10, 30:35] = 0
    assert big.orientation == pytest.approx(orientation_angle(l_only))


def test_process_bgr_runs_all_stages(frame_factory):
    det = RegionDetector(min_region_size=50, threshold_mode="fixed")
    frame = frame_factory([(60, 60, 20)])
    result = det.process_bgr(frame)
    assert result.gray.shape == frame.shape[:2]
    assert set(np.unique(result.thresholded).tolist()) <= {0, 255}
    assert len(result.regions) == 1
    assert result.regions[0].centroid == pytest.approx((69.5, 69.5))
    assert result.kept == [] and result.annotated is None
