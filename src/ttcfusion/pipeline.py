"""Frame-pair time-to-collision pipeline fusing range and camera data."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from .calibration import Calibration
from .config import TTCConfig
from .frame import FrameBuffer, SensorFrame
from .perception.association import match_regions
from .perception.clustering import cluster_keypoint_matches, cluster_range_points
from .perception.keypoints import KeypointMatches
from .perception.region import find_region
from .ttc.range_ttc import KinematicState, MotionModel, RangeTTCEstimator, RangeTTCOutcome
from .ttc.result import TTCResult
from .ttc.vision_ttc import VisionTTCEstimator

logger = logging.getLogger(__name__)


@dataclass
class FrameTiming:
    """Timing breakdown for a single frame."""

    clustering_ms: float = 0.0
    association_ms: float = 0.0
    ttc_ms: float = 0.0
    total_ms: float = 0.0


@dataclass
class RegionTTC:
    """Both TTC estimates for one associated region pair."""

    prev_id: int
    curr_id: int
    range_ttc: TTCResult
    vision_ttc: TTCResult
    num_range_points: int = 0
    num_keypoint_matches: int = 0


@dataclass
class FrameResult:
    """Output of the pipeline for a single frame."""

    frame_id: int
    frame_id_prev: int | None = None
    region_matches: dict[int, int] = field(default_factory=dict)
    region_ttcs: list[RegionTTC] = field(default_factory=list)
    timing: FrameTiming = field(default_factory=FrameTiming)

    @property
    def has_previous(self) -> bool:
        """Return False for the first frame of a run."""
        return self.frame_id_prev is not None


@dataclass
class TTCRun:
    """TTC estimates accumulated over one estimation run.

    A run is one pass over a sequence with a fixed configuration, such as
    one keypoint detector/descriptor combination.
    """

    label: str
    range_ttcs: list[TTCResult] = field(default_factory=list)
    vision_ttcs: list[TTCResult] = field(default_factory=list)

    def add(self, region_ttc: RegionTTC) -> None:
        self.range_ttcs.append(region_ttc.range_ttc)
        self.vision_ttcs.append(region_ttc.vision_ttc)

    def __len__(self) -> int:
        return len(self.range_ttcs)


def _closest_outcome(outcomes: list[RangeTTCOutcome]) -> RangeTTCOutcome:
    """Outcome of the region nearest the sensor; unmeasured outcomes sort last."""
    return min(
        outcomes,
        key=lambda o: (o.min_x_curr is None, o.min_x_curr if o.min_x_curr is not None else 0.0),
    )


class TTCPipeline:
    """Frame-to-frame time-to-collision estimation.

    Orchestrates per frame:
    1. Ego-lane crop of range points (optional)
    2. Range point clustering into the frame's regions
    3. Region association with the previous frame
    4. Range and vision TTC for every associated region pair

    The kinematic state of the constant acceleration model advances once per
    frame pair, taking the estimate of the closest associated region.
    """

    def __init__(
        self,
        calibration: Calibration,
        config: TTCConfig | None = None,
        range_estimator: RangeTTCEstimator | None = None,
        vision_estimator: VisionTTCEstimator | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            calibration: Fixed range sensor to camera calibration
            config: Thresholds; defaults to TTCConfig()
            range_estimator: Overrides the estimator built from config
            vision_estimator: Overrides the estimator built from config
        """
        self._calibration = calibration
        self._config = config or TTCConfig()
        self._range_estimator = range_estimator or RangeTTCEstimator(
            model=MotionModel(self._config.motion_model),
            distance_threshold=self._config.range_distance_threshold,
            reflectivity_threshold=self._config.range_reflectivity_threshold,
        )
        self._vision_estimator = vision_estimator or VisionTTCEstimator(
            min_distance=self._config.min_keypoint_distance
        )

        # State
        self._buffer = FrameBuffer(capacity=2)
        self._state = KinematicState()
        self._runs: list[TTCRun] = []

    @classmethod
    def from_files(
        cls,
        calibration_path: str | Path,
        config_path: str | Path | None = None,
    ) -> TTCPipeline:
        """Create a pipeline from calibration and config YAML files."""
        calibration = Calibration.from_yaml(calibration_path)
        config = TTCConfig.from_yaml(config_path) if config_path is not None else None
        return cls(calibration=calibration, config=config)

    def start_run(self, label: str) -> TTCRun:
        """Begin a new estimation run, discarding frames and kinematic state."""
        self.reset()
        run = TTCRun(label=label)
        self._runs.append(run)
        logger.info("Started run '%s' (%s model)", label, self._range_estimator.model.value)
        return run

    def process_frame(self, frame: SensorFrame) -> FrameResult:
        """Process one frame against the previous one.

        The frame's regions receive their clustered range points. The
        frame's own `range_points` is left as given; the ego-lane crop, when
        configured, only affects what is clustered.
        """
        timing = FrameTiming()
        t_start = time.perf_counter()

        # Stage 1: Crop and cluster range points
        t0 = time.perf_counter()
        range_points = frame.range_points
        if self._config.crop is not None:
            range_points = range_points.crop(self._config.crop)
        cluster_range_points(
            frame.regions,
            range_points,
            self._calibration,
            self._config.shrink_factor,
        )
        timing.clustering_ms = (time.perf_counter() - t0) * 1000

        self._buffer.push(frame)
        prev_frame = self._buffer.previous

        if prev_frame is None:
            timing.total_ms = (time.perf_counter() - t_start) * 1000
            return FrameResult(frame_id=frame.frame_id, timing=timing)

        # Stage 2: Region association
        t0 = time.perf_counter()
        region_matches = match_regions(
            prev_frame.regions, frame.regions, self._config.iou_threshold
        )
        timing.association_ms = (time.perf_counter() - t0) * 1000

        # Stage 3: TTC for each associated region pair
        t0 = time.perf_counter()
        region_ttcs, outcomes = self._estimate_pairs(prev_frame, frame, region_matches)
        if outcomes:
            self._state = _closest_outcome(outcomes).state
        timing.ttc_ms = (time.perf_counter() - t0) * 1000

        if self._runs:
            for region_ttc in region_ttcs:
                self._runs[-1].add(region_ttc)

        timing.total_ms = (time.perf_counter() - t_start) * 1000
        logger.debug(
            "Frame %d: %d region matches, %d TTC estimates in %.1fms",
            frame.frame_id,
            len(region_matches),
            len(region_ttcs),
            timing.total_ms,
        )

        return FrameResult(
            frame_id=frame.frame_id,
            frame_id_prev=prev_frame.frame_id,
            region_matches=region_matches,
            region_ttcs=region_ttcs,
            timing=timing,
        )

    def _estimate_pairs(
        self,
        prev_frame: SensorFrame,
        curr_frame: SensorFrame,
        region_matches: dict[int, int],
    ) -> tuple[list[RegionTTC], list[RangeTTCOutcome]]:
        """Run both estimators on every associated region pair.

        Pairs without range points on either side are skipped. Every pair
        starts from the same kinematic state. Keypoint matches whose
        indices fall outside either frame's keypoints are treated as
        absent.
        """
        dt = self._calibration.dt
        matches = curr_frame.matches
        if matches is None:
            logger.debug("Frame %d has no keypoint matches", curr_frame.frame_id)
            matches = KeypointMatches.empty()
        else:
            num_matches = len(matches)
            matches = matches.within_bounds(
                len(prev_frame.keypoints), len(curr_frame.keypoints)
            )
            if len(matches) < num_matches:
                logger.debug(
                    "Frame %d: dropped %d keypoint matches with out-of-range indices",
                    curr_frame.frame_id,
                    num_matches - len(matches),
                )

        region_ttcs: list[RegionTTC] = []
        outcomes: list[RangeTTCOutcome] = []

        for prev_id, curr_id in region_matches.items():
            prev_region = find_region(prev_frame.regions, prev_id)
            curr_region = find_region(curr_frame.regions, curr_id)
            if prev_region is None or curr_region is None:
                continue

            if len(prev_region.range_points) == 0 or len(curr_region.range_points) == 0:
                continue

            outcome = self._range_estimator.estimate(
                prev_region.range_points,
                curr_region.range_points,
                dt,
                self._state,
            )
            outcomes.append(outcome)

            region_kpt_matches = cluster_keypoint_matches(
                curr_region,
                prev_frame.keypoints,
                curr_frame.keypoints,
                matches,
                distance_threshold=self._config.keypoint_distance_threshold,
                shrink_factor=self._config.keypoint_shrink_factor,
            )
            vision_ttc = self._vision_estimator.estimate(
                prev_frame.keypoints,
                curr_frame.keypoints,
                region_kpt_matches,
                dt,
            )

            region_ttcs.append(
                RegionTTC(
                    prev_id=prev_id,
                    curr_id=curr_id,
                    range_ttc=outcome.result,
                    vision_ttc=vision_ttc,
                    num_range_points=len(curr_region.range_points),
                    num_keypoint_matches=len(region_kpt_matches),
                )
            )

        return region_ttcs, outcomes

    def reset(self) -> None:
        """Drop live frames and return the kinematic state to unknown."""
        self._buffer.clear()
        self._state = KinematicState()
        logger.info("Pipeline reset")

    @property
    def state(self) -> KinematicState:
        return self._state

    @property
    def calibration(self) -> Calibration:
        return self._calibration

    @property
    def config(self) -> TTCConfig:
        return self._config

    @property
    def runs(self) -> list[TTCRun]:
        return list(self._runs)

    @property
    def current_run(self) -> TTCRun | None:
        if not self._runs:
            return None
        return self._runs[-1]

    @property
    def num_live_frames(self) -> int:
        return len(self._buffer)
