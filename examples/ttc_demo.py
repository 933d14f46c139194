#!/usr/bin/env python3
"""Demo of lidar and camera TTC on a synthetic closing vehicle.

A vehicle ahead in the ego lane brakes while the ego vehicle closes in.
Each frame provides range points on its rear surface, keypoints on its
rear texture, and a detected region around it, plus a parked vehicle at
the roadside. Both motion models are run as separate estimation runs.

Usage:
    uv run python examples/ttc_demo.py
    uv run python examples/ttc_demo.py --frames 15 --output results/ttc.tsv
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from ttcfusion import (
    Calibration,
    KeypointMatches,
    RangePoints,
    Rect,
    Region,
    SensorFrame,
    TTCConfig,
    TTCPipeline,
    TTCRun,
    write_results,
)

FRAME_RATE = 10.0


def make_calibration() -> Calibration:
    """Pinhole camera at the range sensor origin, looking forward."""
    # Vehicle frame (x forward, y left, z up) -> camera frame (x right, y down, z forward)
    extrinsic = np.array(
        [
            [0.0, -1.0, 0.0, 0.0],
            [0.0, 0.0, -1.0, 0.0],
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ]
    )
    projection = np.array(
        [
            [720.0, 0.0, 620.0, 0.0],
            [0.0, 720.0, 190.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
        ]
    )
    return Calibration(extrinsic, np.eye(3), projection, frame_rate=FRAME_RATE)


def surface_points(
    distance: float, lateral: float, rng: np.random.Generator, n: int = 150
) -> np.ndarray:
    """Points on a vehicle's rear surface (Nx3, vehicle frame)."""
    y = rng.uniform(lateral - 0.8, lateral + 0.8, n)
    z = rng.uniform(-1.4, -0.95, n)
    x = distance + rng.normal(0.0, 0.02, n)
    return np.column_stack([x, y, z])


def region_around(calibration: Calibration, distance: float, lateral: float, region_id: int) -> Region:
    """Region enclosing a vehicle's rear face with a small margin."""
    corners = np.array(
        [
            [distance, lateral - 0.95, -1.6],
            [distance, lateral + 0.95, -1.6],
            [distance, lateral - 0.95, 0.3],
            [distance, lateral + 0.95, 0.3],
        ]
    )
    uv = calibration.project(corners)
    x0, y0 = uv.min(axis=0)
    x1, y1 = uv.max(axis=0)
    return Region(region_id=region_id, rect=Rect(x0, y0, x1 - x0, y1 - y0), label="car")


def build_frames(n_frames: int, seed: int = 7) -> list[SensorFrame]:
    """Generate the synthetic sequence."""
    rng = np.random.default_rng(seed)
    calibration = make_calibration()
    dt = 1.0 / FRAME_RATE

    # Fixed texture on the lead vehicle's rear (lateral, height offsets)
    texture = np.column_stack([rng.uniform(-0.75, 0.75, 60), rng.uniform(-1.5, 0.2, 60)])

    frames = []
    for k in range(n_frames):
        t = k * dt
        lead_distance = 14.0 - 4.0 * t - 0.5 * 1.5 * t * t  # closing and braking
        parked_distance = 18.0 - 6.0 * t  # ego speed past a parked car
        parked_lateral = 4.5

        lead = surface_points(lead_distance, 0.0, rng)
        parked = surface_points(parked_distance, parked_lateral, rng, n=80)
        xyz = np.vstack([lead, parked])
        reflectivity = rng.uniform(0.3, 0.5, len(xyz))
        range_points = RangePoints(np.column_stack([xyz, reflectivity]))

        tex_3d = np.column_stack(
            [np.full(len(texture), lead_distance), texture[:, 0], texture[:, 1]]
        )
        keypoints = calibration.project(tex_3d) + rng.normal(0.0, 0.3, (len(texture), 2))

        matches = None
        if k > 0:
            idx = np.arange(len(texture))
            # A few mismatches to exercise the displacement filter
            curr_idx = idx.copy()
            swap = rng.choice(len(idx), size=4, replace=False)
            curr_idx[swap] = curr_idx[np.roll(swap, 1)]
            matches = KeypointMatches(prev_indices=idx, curr_indices=curr_idx)

        regions = [region_around(calibration, lead_distance, 0.0, region_id=0)]
        if parked_distance > 3.0:
            regions.append(region_around(calibration, parked_distance, parked_lateral, region_id=1))

        frames.append(
            SensorFrame(
                frame_id=k,
                regions=regions,
                range_points=range_points,
                keypoints=keypoints,
                matches=matches,
            )
        )

    return frames


def main() -> None:
    """Run both motion models over the synthetic sequence."""
    parser = argparse.ArgumentParser(description="Synthetic lidar/camera TTC demo")
    parser.add_argument("--frames", type=int, default=20, help="Number of frames, at most 24 (default: 20)")
    parser.add_argument("--output", type=Path, default=None, help="Write results table here")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    calibration = make_calibration()
    all_runs: list[TTCRun] = []

    for model in ("cvm", "cam"):
        pipeline = TTCPipeline(
            calibration,
            TTCConfig(motion_model=model, min_keypoint_distance=20.0),
        )
        pipeline.start_run(model.upper())

        print("=" * 72)
        print(f"Motion model: {model.upper()}")
        print("=" * 72)
        print(
            f"{'Frame':>6} {'Pair':>7} {'Pts':>5} {'Kpts':>5} "
            f"{'Range TTC':>14} {'Vision TTC':>14} {'Total':>8}"
        )
        print("-" * 72)

        # Frames are regenerated per run so both runs see identical data
        for frame in build_frames(args.frames):
            result = pipeline.process_frame(frame)
            for r in result.region_ttcs:
                print(
                    f"{result.frame_id:6d} {r.prev_id:>3d}->{r.curr_id:<3d} "
                    f"{r.num_range_points:5d} {r.num_keypoint_matches:5d} "
                    f"{str(r.range_ttc):>14} {str(r.vision_ttc):>14} "
                    f"{result.timing.total_ms:6.2f}ms"
                )

        state = pipeline.state
        print()
        print(f"Final kinematic state: velocity={state.velocity}, acceleration={state.acceleration}")
        print()

        all_runs.extend(pipeline.runs)

    if args.output is not None:
        write_results(args.output, all_runs)
        print(f"Results written to: {args.output}")


if __name__ == "__main__":
    main()
