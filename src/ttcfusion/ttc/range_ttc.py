"""Time-to-collision from range points under a kinematic motion model.

The closest approach in each frame is the minimum forward distance of the
region's range points after statistical outlier rejection. Two motion
models are supported:

- Constant velocity (CVM): TTC = d_curr * dT / (d_prev - d_curr)
- Constant acceleration (CAM): solve 0.5*a*t^2 + v*t - d_curr = 0 for t,
  with v and a carried across frame pairs in a KinematicState
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from ..perception.range_points import RangePoints
from .result import TTCResult, TTCStatus

logger = logging.getLogger(__name__)


class MotionModel(Enum):
    """Closing-speed assumption used by the range estimator."""

    CVM = "cvm"
    CAM = "cam"


@dataclass(frozen=True)
class KinematicState:
    """Closing velocity and acceleration carried across frame pairs.

    None marks a quantity that has not been estimated yet. A fresh state is
    used at the start of every estimation run.

    Attributes:
        velocity: Closing speed in m/s (positive when approaching)
        acceleration: Closing acceleration in m/s²
    """

    velocity: float | None = None
    acceleration: float | None = None

    @property
    def is_initialized(self) -> bool:
        """Return True once both velocity and acceleration are known."""
        return self.velocity is not None and self.acceleration is not None

    def advanced(self, dt: float) -> KinematicState:
        """Return the state one time step later (v <- v + a*dt)."""
        if not self.is_initialized:
            return self
        return KinematicState(
            velocity=self.velocity + self.acceleration * dt,
            acceleration=self.acceleration,
        )


@dataclass(frozen=True)
class RangeTTCOutcome:
    """Result of one range-based estimate.

    Attributes:
        result: The time-to-collision or the reason it is not computable
        state: Kinematic state to use for the next frame pair
        min_x_prev: Closest filtered distance in the previous frame
        min_x_curr: Closest filtered distance in the current frame
    """

    result: TTCResult
    state: KinematicState
    min_x_prev: float | None = None
    min_x_curr: float | None = None


def _within_std(values: np.ndarray, n_std: float) -> np.ndarray:
    """Mask of values within n_std standard deviations of their mean."""
    std = float(values.std())
    if std == 0.0:
        return np.ones(len(values), dtype=bool)
    return np.abs(values - values.mean()) <= n_std * std


def reject_outliers(
    points: RangePoints,
    distance_threshold: float = 2.0,
    reflectivity_threshold: float = 1.6,
) -> RangePoints:
    """Drop range points with atypical forward distance or reflectivity.

    A point is kept when its x lies within `distance_threshold` standard
    deviations of the cluster mean and its reflectivity within
    `reflectivity_threshold` standard deviations. A cluster with zero
    spread (such as a single point) keeps all of its points.
    """
    if len(points) == 0:
        return RangePoints.empty()

    keep = _within_std(points.x, distance_threshold) & _within_std(
        points.r, reflectivity_threshold
    )
    return points.subset(keep)


def constant_velocity_ttc(min_x_prev: float, min_x_curr: float, dt: float) -> TTCResult:
    """TTC assuming the closing speed between the two frames stays constant."""
    closing = min_x_prev - min_x_curr
    if closing <= 0.0:
        return TTCResult.not_computable(TTCStatus.NON_POSITIVE_CLOSING)
    return TTCResult.ok(min_x_curr * dt / closing)


def constant_acceleration_ttc(
    min_x_curr: float, velocity: float, acceleration: float
) -> TTCResult:
    """Smallest positive t solving 0.5*a*t^2 + v*t - d = 0.

    With zero acceleration the equation is linear and t = d / v.
    """
    if acceleration == 0.0:
        if velocity <= 0.0:
            return TTCResult.not_computable(TTCStatus.NON_POSITIVE_CLOSING)
        return TTCResult.ok(min_x_curr / velocity)

    discriminant = velocity * velocity + 2.0 * acceleration * min_x_curr
    if discriminant < 0.0:
        return TTCResult.not_computable(TTCStatus.DEGENERATE_QUADRATIC)

    if discriminant == 0.0:
        roots = [-velocity / acceleration]
    else:
        sqrt_d = math.sqrt(discriminant)
        roots = [
            (-velocity - sqrt_d) / acceleration,
            (-velocity + sqrt_d) / acceleration,
        ]

    positive = [t for t in roots if t > 0.0]
    if not positive:
        return TTCResult.not_computable(TTCStatus.DEGENERATE_QUADRATIC)
    return TTCResult.ok(min(positive))


class RangeTTCEstimator:
    """Estimates time-to-collision from the range points of a matched region.

    The estimator holds only thresholds; the kinematic state is passed in
    and a new state is returned, so the caller decides when a run starts
    and which estimate advances the state.
    """

    def __init__(
        self,
        model: MotionModel = MotionModel.CVM,
        distance_threshold: float = 2.0,
        reflectivity_threshold: float = 1.6,
    ) -> None:
        """Initialize range estimator.

        Args:
            model: Constant velocity or constant acceleration model
            distance_threshold: Outlier threshold on x in standard deviations
            reflectivity_threshold: Outlier threshold on reflectivity in
                standard deviations
        """
        self._model = MotionModel(model)
        self._distance_threshold = distance_threshold
        self._reflectivity_threshold = reflectivity_threshold

    def estimate(
        self,
        prev_points: RangePoints,
        curr_points: RangePoints,
        dt: float,
        state: KinematicState | None = None,
    ) -> RangeTTCOutcome:
        """Estimate TTC from the previous and current range point clusters.

        Under CAM the first frame pair of a run seeds the velocity and the
        second derives the acceleration; both fall back to CVM for their
        own estimate. From the third pair on the quadratic model is solved
        and the velocity is advanced by a*dT afterwards, whether or not a
        root was found.

        Args:
            prev_points: Range points of the region in the previous frame
            curr_points: Range points of the matched region in the current frame
            dt: Time between the frames in seconds
            state: Kinematic state from the previous frame pair (CAM only)

        Returns:
            RangeTTCOutcome with the result and the state for the next pair
        """
        state = state if state is not None else KinematicState()

        prev_filtered = reject_outliers(
            prev_points, self._distance_threshold, self._reflectivity_threshold
        )
        curr_filtered = reject_outliers(
            curr_points, self._distance_threshold, self._reflectivity_threshold
        )

        if len(prev_filtered) == 0 or len(curr_filtered) == 0:
            next_state = state.advanced(dt) if self._model is MotionModel.CAM else state
            return RangeTTCOutcome(
                result=TTCResult.not_computable(TTCStatus.EMPTY_INPUT),
                state=next_state,
            )

        min_x_prev = float(prev_filtered.x.min())
        min_x_curr = float(curr_filtered.x.min())

        if self._model is MotionModel.CVM:
            result = constant_velocity_ttc(min_x_prev, min_x_curr, dt)
            next_state = state
        else:
            result, next_state = self._estimate_cam(min_x_prev, min_x_curr, dt, state)

        logger.debug(
            "Range TTC %s: min_x prev=%.3fm curr=%.3fm -> %s",
            self._model.value,
            min_x_prev,
            min_x_curr,
            result,
        )
        return RangeTTCOutcome(
            result=result,
            state=next_state,
            min_x_prev=min_x_prev,
            min_x_curr=min_x_curr,
        )

    @staticmethod
    def _estimate_cam(
        min_x_prev: float,
        min_x_curr: float,
        dt: float,
        state: KinematicState,
    ) -> tuple[TTCResult, KinematicState]:
        """Constant acceleration estimate and state update."""
        closing_speed = (min_x_prev - min_x_curr) / dt

        if state.velocity is None:
            logger.debug("Seeding closing velocity: %.3f m/s", closing_speed)
            return (
                constant_velocity_ttc(min_x_prev, min_x_curr, dt),
                KinematicState(velocity=closing_speed),
            )

        if state.acceleration is None:
            acceleration = (closing_speed - state.velocity) / dt
            logger.debug(
                "Closing acceleration: %.3f m/s² (velocity %.3f -> %.3f m/s)",
                acceleration,
                state.velocity,
                closing_speed,
            )
            next_state = KinematicState(
                velocity=state.velocity, acceleration=acceleration
            ).advanced(dt)
            return constant_velocity_ttc(min_x_prev, min_x_curr, dt), next_state

        result = constant_acceleration_ttc(min_x_curr, state.velocity, state.acceleration)
        return result, state.advanced(dt)

    @property
    def model(self) -> MotionModel:
        return self._model

    @property
    def distance_threshold(self) -> float:
        return self._distance_threshold

    @property
    def reflectivity_threshold(self) -> float:
        return self._reflectivity_threshold
