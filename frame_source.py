"""Numbered image sequences on disk: img1p3.png, img2p3.png, ... until the first gap."""
import logging
import os

import cv2

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "img{index}p3.png"


def image_name(index, pattern=DEFAULT_PATTERN):
    return pattern.format(index=index)


def iter_frame_paths(directory, pattern=DEFAULT_PATTERN, start=1):
    """Yield (index, path) for consecutive indices; stop at the first missing file."""
    index = start
    while True:
        path = os.path.join(directory, image_name(index, pattern))
        if not os.path.exists(path):
            logger.info("Image not found: %s", path)
            return
        yield index, path
        index += 1


def read_frame(path):
    """cv2.imread wrapper; None (and an error log) for unreadable/corrupt files."""
    frame = cv2.imread(path, cv2.IMREAD_COLOR)
    if frame is None or frame.size == 0:
        logger.error("Could not read image file %s", path)
        return None
    return frame


def write_frame(path, image):
    try:
        ok = cv2.imwrite(path, image)
    except cv2.error as e:
        logger.error("Could not save image to %s: %s", path, e)
        return False
    if not ok:
        logger.error("Could not save image to %s", path)
    return bool(ok)
