import logging
import math

import cv2

from regions import TrackedRegion

logger = logging.getLogger(__name__)

FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.5
BOX_THICK = 2
CENTROID_RADIUS = 4


def draw_region_info(output, region, color):
    """Draw box, centroid, stats text and the orientation axis for one region (in place)."""
    box = region.bounding_box
    cx, cy = region.centroid

    cv2.rectangle(output, (box.x, box.y), (box.right - 1, box.bottom - 1), color, BOX_THICK)
    cv2.circle(output, (int(cx), int(cy)), CENTROID_RADIUS, color, -1)

    # Stacked above the box, bottom line first
    lines = [
        f"Area: {region.area}",
        f"AR: {math.floor(region.aspect_ratio * 100) / 100:.2f}",
        f"Filled: {int(region.percent_filled * 100)}%",
    ]
    for k, txt in enumerate(lines):
        cv2.putText(output, txt, (box.x, box.y - 5 - 15 * k), FONT, FONT_SCALE, color, 1, cv2.LINE_AA)

    # Axis through the centroid, half the smaller box side each way
    length = min(box.width, box.height) / 2.0
    dx, dy = length * math.cos(region.orientation), length * math.sin(region.orientation)
    start = (int(round(cx - dx)), int(round(cy - dy)))
    end = (int(round(cx + dx)), int(round(cy + dy)))
    cv2.line(output, start, end, color, 2)
    return output


def annotate_regions(original, regions, tracker, max_regions):
    """
    Walk regions largest first, skip boundary-touching ones, accept at most max_regions.
    Accepted regions get an identity from the tracker and are drawn on a copy of original.
    The tracker snapshot is replaced with the accepted set.
    Returns: (annotated image, list of TrackedRegion)
    """
    output = original.copy()
    if output.ndim == 2:
        output = cv2.cvtColor(output, cv2.COLOR_GRAY2BGR)

    kept = []
    for region in regions:
        if len(kept) >= max_regions:
            break
        if region.touches_boundary:
            continue
        color = tracker.resolve_identity(region)
        draw_region_info(output, region, color)
        kept.append(TrackedRegion(region, color))

    tracker.update_state(kept)
    logger.debug("accepted %d of %d regions", len(kept), len(regions))
    return output, kept
