"""Per-frame sensor data and the bounded window of live frames."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .perception.keypoints import KeypointMatches, keypoints_to_array
from .perception.range_points import RangePoints
from .perception.region import Region


@dataclass
class SensorFrame:
    """Everything the collaborators deliver for one observation frame.

    Attributes:
        frame_id: Sequential frame number
        regions: Detected regions with frame-local IDs
        range_points: Range points, usually already cropped to the ego lane
        keypoints: Nx2 keypoint positions (or OpenCV KeyPoints)
        matches: Keypoint matches against the previous frame's keypoints,
            None for the first frame
    """

    frame_id: int
    regions: list[Region] = field(default_factory=list)
    range_points: RangePoints = field(default_factory=RangePoints.empty)
    keypoints: np.ndarray = field(default_factory=lambda: np.empty((0, 2)))
    matches: KeypointMatches | None = None

    def __post_init__(self) -> None:
        self.keypoints = keypoints_to_array(self.keypoints)

        ids = [region.region_id for region in self.regions]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Region IDs must be unique within frame {self.frame_id}: {ids}")


class FrameBuffer:
    """Fixed-capacity ring buffer of the most recent frames.

    Slots are addressed by index; pushing into a full buffer overwrites the
    oldest slot.
    """

    def __init__(self, capacity: int = 2) -> None:
        if capacity < 1:
            raise ValueError(f"Capacity must be at least 1, got {capacity}")
        self._slots: list[SensorFrame | None] = [None] * capacity
        self._head = 0  # slot the next frame is written to
        self._size = 0

    def push(self, frame: SensorFrame) -> SensorFrame | None:
        """Insert a frame, evicting the oldest one when full.

        Returns:
            The evicted frame, or None if nothing was evicted
        """
        evicted = self._slots[self._head] if self.is_full else None
        self._slots[self._head] = frame
        self._head = (self._head + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)
        return evicted

    def get(self, age: int) -> SensorFrame | None:
        """Return a frame by age (0 = newest), or None if not available."""
        if age < 0 or age >= self._size:
            return None
        return self._slots[(self._head - 1 - age) % self.capacity]

    @property
    def current(self) -> SensorFrame | None:
        return self.get(0)

    @property
    def previous(self) -> SensorFrame | None:
        return self.get(1)

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def is_full(self) -> bool:
        return self._size == self.capacity

    def clear(self) -> None:
        """Drop all frames."""
        self._slots = [None] * self.capacity
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size
