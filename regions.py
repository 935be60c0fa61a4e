"""Per-frame data structures shared by the detector, tracker, annotator and logger."""
from dataclasses import dataclass, field
from typing import NamedTuple


class BoundingBox(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self):
        return self.x + self.width

    @property
    def bottom(self):
        return self.y + self.height

    @property
    def area(self):
        return self.width * self.height


@dataclass(frozen=True)
class Region:
    centroid: tuple        # (x, y) float
    area: int
    bounding_box: BoundingBox
    aspect_ratio: float
    touches_boundary: bool
    percent_filled: float
    orientation: float     # radians, (-pi/2, pi/2]

    def features(self):
        """Numeric descriptor written to the feature file."""
        return (self.area, self.aspect_ratio, self.percent_filled, self.orientation)


@dataclass(frozen=True)
class TrackedRegion:
    region: Region
    identity: tuple        # BGR color

    @property
    def centroid(self):
        return self.region.centroid


@dataclass
class FrameResult:
    gray: object           # numpy arrays (uint8)
    thresholded: object
    cleaned: object
    regions: list
    kept: list = field(default_factory=list)
    annotated: object = None
