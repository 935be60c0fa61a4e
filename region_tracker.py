"""Frame-to-frame identity tracking by nearest centroid.

The tracker holds a snapshot of the regions kept in the previous frame. Each region
in the current frame is matched on its own to the closest previous centroid. Several
current regions may claim the same previous region. A caller that needs exclusive or
globally optimal assignment can pass a different ``matcher`` with the same signature
as :func:`nearest_centroid`.
"""
import logging
import math
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_SEED = 12345
MAX_CENTROID_DISTANCE = 50.0


@dataclass(frozen=True)
class TrackerState:
    regions: tuple = ()

    @property
    def is_empty(self):
        return not self.regions


def centroid_distance(a, b):
    return math.hypot(a[0] - b[0], a[1] - b[1])


def nearest_centroid(centroid, previous, max_distance):
    """Closest previous region strictly within max_distance, or None."""
    best = None
    best_dist = max_distance
    for prev in previous:
        d = centroid_distance(centroid, prev.centroid)
        if d < best_dist:
            best, best_dist = prev, d
    return best


class RegionTracker:
    def __init__(self, seed=DEFAULT_SEED, max_distance=MAX_CENTROID_DISTANCE, matcher=nearest_centroid):
        if max_distance <= 0:
            raise ValueError(f"max_distance must be positive, got {max_distance}")
        self.seed = seed
        self.max_distance = float(max_distance)
        self.matcher = matcher
        self.rng = np.random.default_rng(seed)
        self.state = TrackerState()

    def new_identity(self):
        b, g, r = self.rng.integers(0, 256, size=3)
        return (int(b), int(g), int(r))

    def resolve_identity(self, region):
        """Identity of the matching previous region, or a freshly minted one."""
        if not self.state.is_empty:
            match = self.matcher(region.centroid, self.state.regions, self.max_distance)
            if match is not None:
                return match.identity
        color = self.new_identity()
        logger.debug("new identity %s at (%.1f, %.1f)", color, *region.centroid)
        return color

    def update_state(self, kept):
        """Replace the snapshot with exactly the regions kept this frame."""
        self.state = TrackerState(tuple(kept))
        return self.state

    def reset(self):
        self.rng = np.random.default_rng(self.seed)
        self.state = TrackerState()
