"""Image-space regions bounding tracked objects."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .keypoints import KeypointMatches
from .range_points import RangePoints


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in pixel coordinates.

    Attributes:
        x: Left edge
        y: Top edge
        width: Horizontal extent
        height: Vertical extent
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        if self.width <= 0 or self.height <= 0:
            return 0.0
        return float(self.width * self.height)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def intersection(self, other: Rect) -> Rect:
        """Return overlapping rectangle (zero-sized if disjoint)."""
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        x2 = min(self.x + self.width, other.x + other.width)
        y2 = min(self.y + self.height, other.y + other.height)
        return Rect(x1, y1, max(0.0, x2 - x1), max(0.0, y2 - y1))

    def union_area(self, other: Rect) -> float:
        return self.area + other.area - self.intersection(other).area

    def iou(self, other: Rect) -> float:
        """Return intersection-over-union with another rectangle.

        Two empty rectangles have an IoU of 0.
        """
        union = self.union_area(other)
        if union <= 0.0:
            return 0.0
        return self.intersection(other).area / union

    def shrink(self, fraction: float) -> Rect:
        """Inset the rectangle symmetrically about its center.

        Width and height are scaled by (1 - fraction); the origin moves by
        half of the removed margin.

        Args:
            fraction: Fraction of each dimension to remove, in [0, 1)
        """
        if not 0.0 <= fraction < 1.0:
            raise ValueError(f"Shrink fraction must be in [0, 1), got {fraction}")
        return Rect(
            x=self.x + fraction * self.width / 2.0,
            y=self.y + fraction * self.height / 2.0,
            width=self.width * (1.0 - fraction),
            height=self.height * (1.0 - fraction),
        )

    def contains(self, points: np.ndarray) -> np.ndarray:
        """Test which pixel positions fall inside the rectangle.

        The left and top edges are inclusive, the right and bottom edges
        exclusive.

        Args:
            points: Nx2 array of (u, v) pixel positions

        Returns:
            (N,) boolean mask
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        u = points[:, 0]
        v = points[:, 1]
        return (
            (u >= self.x)
            & (u < self.x + self.width)
            & (v >= self.y)
            & (v < self.y + self.height)
        )


@dataclass
class Region:
    """A detected object's bounding region in one frame.

    Region IDs are unique within a frame only. The assigned range points and
    keypoint matches are copies owned by the region and live as long as
    its frame.

    Attributes:
        region_id: Identifier, unique within the frame
        rect: Bounding rectangle in pixels
        label: Class label from the detector (not interpreted here)
        confidence: Detector confidence (not interpreted here)
        range_points: Range points attributed to this region
        keypoint_matches: Keypoint matches attributed to this region
    """

    region_id: int
    rect: Rect
    label: str = ""
    confidence: float = 0.0
    range_points: RangePoints = field(default_factory=RangePoints.empty)
    keypoint_matches: KeypointMatches = field(default_factory=KeypointMatches.empty)


def find_region(regions: list[Region], region_id: int) -> Region | None:
    """Return the region with the given ID, or None if absent."""
    for region in regions:
        if region.region_id == region_id:
            return region
    return None
