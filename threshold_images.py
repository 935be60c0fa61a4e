"""
Fixed-threshold binarization + morphological cleanup over a numbered image sequence.

Usage:
  python threshold_images.py <input_directory> <output_directory> <threshold_value>

Shows the thresholded and cleaned images side by side (close the figure to continue)
and saves the cleaned image under the input's file name.
"""
import argparse
import logging
import os
import sys

import matplotlib.pyplot as plt

from frame_source import DEFAULT_PATTERN, image_name, iter_frame_paths, read_frame, write_frame
from region_detector import RegionDetector

logger = logging.getLogger(__name__)

# ==================== Config ====================
FIGSIZE    = (10, 5)
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# ================================================


def threshold_and_clean(frame, detector):
    """Gray -> fixed threshold -> close/open. Returns (thresholded, cleaned)."""
    gray = detector.preprocess(frame)
    thresholded = detector.fixed_threshold(gray)
    return thresholded, detector.clean(thresholded)


def show_stages(thresholded, cleaned, title=""):
    """Blocking side-by-side view; returns when the figure is closed."""
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=FIGSIZE)
    ax1.imshow(thresholded, cmap="gray", vmin=0, vmax=255); ax1.set_title("Thresholded"); ax1.axis("off")
    ax2.imshow(cleaned, cmap="gray", vmin=0, vmax=255); ax2.set_title("Cleaned"); ax2.axis("off")
    if title:
        fig.suptitle(title)
    fig.tight_layout()
    plt.show()
    plt.close(fig)


def process_images(input_dir, output_dir, threshold_value, pattern=DEFAULT_PATTERN, show=True):
    """Returns the number of cleaned images written."""
    os.makedirs(output_dir, exist_ok=True)
    detector = RegionDetector(threshold_mode="fixed", threshold_value=threshold_value)

    saved = 0
    for index, input_path in iter_frame_paths(input_dir, pattern):
        logger.info("Processing: %s", input_path)
        frame = read_frame(input_path)
        if frame is None:
            continue

        thresholded, cleaned = threshold_and_clean(frame, detector)
        if show:
            show_stages(thresholded, cleaned, title=os.path.basename(input_path))

        output_path = os.path.join(output_dir, image_name(index, pattern))
        logger.info("Saving: %s", output_path)
        if write_frame(output_path, cleaned):
            saved += 1
    return saved


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Threshold and clean a numbered image sequence.")
    ap.add_argument("input_directory")
    ap.add_argument("output_directory")
    ap.add_argument("threshold_value", type=int)
    ap.add_argument("--pattern", default=DEFAULT_PATTERN)
    ap.add_argument("--no-display", action="store_true", help="skip the matplotlib preview")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    if not os.path.isdir(args.input_directory):
        logger.error("Provided input path is not a directory: %s", args.input_directory)
        return 1

    try:
        saved = process_images(args.input_directory, args.output_directory, args.threshold_value,
                               pattern=args.pattern, show=not args.no_display)
    except (ValueError, OSError) as e:
        logger.error("Error: %s", e)
        return 1
    logger.info("Images saved: %d", saved)
    return 0


if __name__ == "__main__":
    sys.exit(main())
