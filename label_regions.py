"""
Segment, track and label regions over a numbered image sequence.

Usage:
  python label_regions.py <input_directory> <output_directory> <min_region_size> <max_regions> <feature_file>

Each frame is shown with its annotated regions; press 'n' to label the kept regions
(appended to <feature_file>), ESC to stop, any other key to move on.
"""
import argparse
import logging
import os
import sys
from dataclasses import dataclass

import cv2

from annotator import annotate_regions
from decisions import Action, ConstantLabelDecider, KeyboardDecider
from feature_log import append_features, label_counts, validate_label
from frame_source import DEFAULT_PATTERN, image_name, iter_frame_paths, read_frame, write_frame
from region_detector import THRESHOLD_MODES, RegionDetector
from region_tracker import DEFAULT_SEED, MAX_CENTROID_DISTANCE, RegionTracker

logger = logging.getLogger(__name__)

# ==================== Config ====================
WIN_ORIGINAL    = "Original"
WIN_PROCESSED   = "Processed"
WIN_THRESHOLDED = "Thresholded"
WIN_CLEANED     = "Cleaned"
LOG_FORMAT      = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# ================================================


@dataclass
class SessionStats:
    frames_processed: int = 0
    frames_unreadable: int = 0
    frames_labeled: int = 0
    regions_logged: int = 0
    interrupted: bool = False


def process_frame(frame, detector, tracker, max_regions):
    """Pipeline + annotation for one frame; advances the tracker snapshot."""
    result = detector.process_bgr(frame)
    result.annotated, result.kept = annotate_regions(frame, result.regions, tracker, max_regions)
    return result


def show_result(frame, result):
    cv2.imshow(WIN_ORIGINAL, frame)
    cv2.imshow(WIN_PROCESSED, result.annotated)
    cv2.imshow(WIN_THRESHOLDED, result.thresholded)
    cv2.imshow(WIN_CLEANED, result.cleaned)


def process_sequence(input_dir, output_dir, detector, tracker, max_regions, feature_file,
                     decide, pattern=DEFAULT_PATTERN, show=True):
    """
    Drive the pipeline over input_dir until the first missing index or a QUIT decision.
    Returns: SessionStats
    """
    os.makedirs(output_dir, exist_ok=True)
    stats = SessionStats()

    try:
        for index, input_path in iter_frame_paths(input_dir, pattern):
            logger.info("Processing: %s", input_path)
            frame = read_frame(input_path)
            if frame is None:
                stats.frames_unreadable += 1
                continue

            result = process_frame(frame, detector, tracker, max_regions)
            stats.frames_processed += 1
            if show:
                show_result(frame, result)

            decision = decide(result)
            if decision.action is Action.QUIT:
                logger.info("Processing interrupted by user.")
                stats.interrupted = True
                break
            if decision.action is Action.LABEL:
                written = append_features(feature_file, [t.region for t in result.kept], decision.label)
                stats.frames_labeled += 1
                stats.regions_logged += written

            output_path = os.path.join(output_dir, image_name(index, pattern))
            if write_frame(output_path, result.annotated):
                logger.info("Saved: %s", output_path)
        else:
            logger.info("Finished processing all images.")
    finally:
        if show:
            cv2.destroyAllWindows()

    return stats


def positive_int(text):
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {text!r}")
    return value


def label_arg(text):
    try:
        return validate_label(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Segment, track and label regions in a numbered image sequence.")
    ap.add_argument("input_directory")
    ap.add_argument("output_directory")
    ap.add_argument("min_region_size", type=positive_int)
    ap.add_argument("max_regions", type=positive_int)
    ap.add_argument("feature_file")
    ap.add_argument("--pattern", default=DEFAULT_PATTERN,
                    help="file name pattern with an {index} field (default: %(default)s)")
    ap.add_argument("--threshold-mode", choices=THRESHOLD_MODES, default="adaptive")
    ap.add_argument("--threshold-value", type=int, default=128, help="used with --threshold-mode fixed")
    ap.add_argument("--seed", type=int, default=DEFAULT_SEED, help="identity color generator seed")
    ap.add_argument("--max-distance", type=float, default=MAX_CENTROID_DISTANCE,
                    help="max centroid shift (px) for keeping an identity")
    ap.add_argument("--auto-label", metavar="LABEL", type=label_arg,
                    help="label every frame with LABEL without windows or prompts")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    if not os.path.isdir(args.input_directory):
        logger.error("Provided input path is not a directory: %s", args.input_directory)
        return 1

    try:
        detector = RegionDetector(min_region_size=args.min_region_size,
                                  threshold_mode=args.threshold_mode,
                                  threshold_value=args.threshold_value)
        tracker = RegionTracker(seed=args.seed, max_distance=args.max_distance)
        if args.auto_label:
            decide, show = ConstantLabelDecider(args.auto_label), False
        else:
            decide, show = KeyboardDecider(), True

        stats = process_sequence(args.input_directory, args.output_directory, detector, tracker,
                                 args.max_regions, args.feature_file, decide,
                                 pattern=args.pattern, show=show)

        logger.info("Frames processed: %d (unreadable: %d), labeled: %d, rows logged: %d",
                    stats.frames_processed, stats.frames_unreadable,
                    stats.frames_labeled, stats.regions_logged)
        if stats.regions_logged:
            for label, count in label_counts(args.feature_file).items():
                logger.info("  %s: %d samples", label, count)
    except (ValueError, OSError) as e:
        logger.error("Error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
