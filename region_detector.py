import logging
import math

import cv2
import numpy as np

from regions import BoundingBox, FrameResult, Region

logger = logging.getLogger(__name__)

THRESHOLD_MODES = ("adaptive", "fixed")


class RegionDetector:
    def __init__(self, min_region_size=100, threshold_mode="adaptive", threshold_value=128,
                 blur_ksize=5, adaptive_block=11, adaptive_c=2, morph_ksize=3, connectivity=8):
        # Drop connected components with fewer pixels than this
        self.min_region_size = int(min_region_size)
        # "adaptive" (dark objects, uneven light) or "fixed" (bright objects above threshold_value)
        self.threshold_mode = threshold_mode
        self.threshold_value = int(threshold_value)
        # Gaussian blur kernel side, e.g. 5 => 5x5
        self.blur_ksize = int(blur_ksize)
        # Adaptive window side and the bias subtracted from the local mean
        self.adaptive_block = int(adaptive_block)
        self.adaptive_c = adaptive_c
        # Square structuring element side for closing/opening
        self.morph_ksize = int(morph_ksize)
        # Pixel adjacency used for labeling (8 by default)
        self.connectivity = int(connectivity)

        if self.min_region_size < 1:
            raise ValueError(f"min_region_size must be >= 1, got {min_region_size}")
        if self.threshold_mode not in THRESHOLD_MODES:
            raise ValueError(f"threshold_mode must be one of {THRESHOLD_MODES}, got {threshold_mode!r}")
        if self.blur_ksize < 1 or self.blur_ksize % 2 == 0:
            raise ValueError(f"blur_ksize must be a positive odd number, got {blur_ksize}")
        if self.adaptive_block < 3 or self.adaptive_block % 2 == 0:
            raise ValueError(f"adaptive_block must be an odd number >= 3, got {adaptive_block}")
        if self.morph_ksize < 1:
            raise ValueError(f"morph_ksize must be >= 1, got {morph_ksize}")
        if self.connectivity not in (4, 8):
            raise ValueError(f"connectivity must be 4 or 8, got {connectivity}")

        self.kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (self.morph_ksize, self.morph_ksize))

    def preprocess(self, image):
        """Grayscale (uint8) + Gaussian blur. Accepts BGR, BGRA or single-channel input."""
        if image is None or image.size == 0:
            raise ValueError("cannot preprocess an empty image")
        if image.ndim == 2:
            gray = image
        elif image.ndim == 3 and image.shape[2] == 1:
            gray = image[:, :, 0]
        elif image.ndim == 3 and image.shape[2] == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        elif image.ndim == 3 and image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        else:
            raise ValueError(f"unsupported image shape {image.shape}")
        if gray.dtype != np.uint8:
            gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
        return cv2.GaussianBlur(gray, (self.blur_ksize, self.blur_ksize), 0)

    def fixed_threshold(self, gray, value=None):
        """255 where intensity > value, else 0."""
        value = self.threshold_value if value is None else value
        return (gray > value).astype(np.uint8) * 255

    def adaptive_threshold(self, gray):
        """Inverted local threshold: pixels darker than their neighborhood mean - C become 255."""
        return cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                                     cv2.THRESH_BINARY_INV, self.adaptive_block, self.adaptive_c)

    def threshold(self, gray):
        if self.threshold_mode == "fixed":
            return self.fixed_threshold(gray)
        return self.adaptive_threshold(gray)

    def clean(self, binary):
        """Closing (fill gaps) followed by opening (strip specks). Order matters."""
        closed = cv2.morphologyEx(binary, cv2.MORPH_CLOSE, self.kernel)
        return cv2.morphologyEx(closed, cv2.MORPH_OPEN, self.kernel)

    def extract_regions(self, cleaned):
        """
        Label connected foreground components and describe each one.
        Returns Regions with area >= min_region_size, largest area first.
        """
        rows, cols = cleaned.shape[:2]
        fg = (cleaned > 0).astype(np.uint8)
        n, labels, stats, centroids = cv2.connectedComponentsWithStats(fg, connectivity=self.connectivity)

        regions = []
        for i in range(1, n):  # label 0 is background
            area = int(stats[i, cv2.CC_STAT_AREA])
            if area < self.min_region_size:
                continue

            box = BoundingBox(int(stats[i, cv2.CC_STAT_LEFT]), int(stats[i, cv2.CC_STAT_TOP]),
                              int(stats[i, cv2.CC_STAT_WIDTH]), int(stats[i, cv2.CC_STAT_HEIGHT]))
            touches = box.x <= 0 or box.y <= 0 or box.right >= cols or box.bottom >= rows

            # Only this label's pixels inside its box; neighbors sharing the box are excluded
            crop = (labels[box.y:box.bottom, box.x:box.right] == i).astype(np.uint8)
            regions.append(Region(
                centroid=(float(centroids[i, 0]), float(centroids[i, 1])),
                area=area,
                bounding_box=box,
                aspect_ratio=box.width / box.height,
                touches_boundary=touches,
                percent_filled=area / box.area,
                orientation=orientation_angle(crop),
            ))

        regions.sort(key=lambda r: r.area, reverse=True)
        logger.debug("%d components, %d kept at min size %d", n - 1, len(regions), self.min_region_size)
        return regions

    def process_bgr(self, image):
        """
        Full pipeline for a single frame:
        1) Gray + blur 2) Threshold 3) Close/open 4) Label + describe regions
        Returns: FrameResult (kept/annotated are filled later by the annotator).
        """
        gray = self.preprocess(image)
        thresholded = self.threshold(gray)
        cleaned = self.clean(thresholded)
        regions = self.extract_regions(cleaned)
        return FrameResult(gray=gray, thresholded=thresholded, cleaned=cleaned, regions=regions)


def orientation_angle(mask):
    """Least central-moment axis of a 0/1 mask, in radians within (-pi/2, pi/2]."""
    m = cv2.moments(mask, binaryImage=True)
    if m["m00"] == 0:
        return 0.0
    mu20 = m["mu20"] / m["m00"]
    mu02 = m["mu02"] / m["m00"]
    mu11 = m["mu11"] / m["m00"]
    # atan2(0, 0) == 0 covers rotationally symmetric blobs
    theta = 0.5 * math.atan2(2.0 * mu11, mu20 - mu02)
    if theta <= -math.pi / 2:
        theta += math.pi
    return theta
