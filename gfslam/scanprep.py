"""Preparation of laser scans for the filter and conversion of its results.

These are the pieces of the live mapping node that do not depend on a
middleware: scan throttling, the centred beam angles, range ordering and
filtering, the pose entropy of the particle set, occupancy thresholding of
the map and the map-to-odometry correction.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from itertools import accumulate, repeat

from .pose import OrientedPoint, absolute_difference, absolute_sum, normalize_angle

UNKNOWN = -1
FREE = 0
OCCUPIED = 100


@dataclass
class MapperParameters:
    """Frames, timing and filter parameters with the mapping node's defaults."""

    throttle_scans: int = 1
    base_frame: str = "base_link"
    map_frame: str = "map"
    odom_frame: str = "odom"
    transform_publish_period: float = 0.05
    map_update_interval: float = 0.5
    max_urange: float = 80.0
    max_range: float = 0.0
    minimum_score: float = 0.0
    sigma: float = 0.05
    kernel_size: int = 1
    lstep: float = 0.05
    astep: float = 0.05
    iterations: int = 5
    lsigma: float = 0.075
    ogain: float = 3.0
    lskip: int = 0
    srr: float = 0.1
    srt: float = 0.2
    str_: float = 0.1
    stt: float = 0.2
    linear_update: float = 1.0
    angular_update: float = 0.5
    temporal_update: float = 1.0
    resample_threshold: float = 0.5
    particles: int = 30
    xmin: float = -10.0
    ymin: float = -10.0
    xmax: float = 10.0
    ymax: float = 10.0
    delta: float = 0.05
    occ_thresh: float = 0.25
    llsamplerange: float = 0.01
    llsamplestep: float = 0.01
    lasamplerange: float = 0.005
    lasamplestep: float = 0.005
    tf_delay: float | None = field(default=None)

    def __post_init__(self) -> None:
        if self.tf_delay is None:
            self.tf_delay = self.transform_publish_period


def should_process(laser_count: int, throttle_scans: int) -> bool:
    """Whether the scan with this running count passes the throttle."""
    if throttle_scans <= 0:
        raise ValueError("throttle_scans must be positive")
    return laser_count % throttle_scans == 0


def laser_angles(
    angle_min: float, angle_max: float, angle_increment: float, count: int
) -> list[float]:
    """Beam angles centred on zero and increasing, one per reading."""
    if count < 0:
        raise ValueError("count must not be negative")
    start = -abs(angle_min - angle_max) / 2
    step = abs(angle_increment)
    return list(accumulate(repeat(step, max(count - 1, 0)), initial=start))[:count]


def needs_reversal(angle_min: float, angle_max: float, upright: bool) -> bool:
    """Whether readings must be reversed to run counter-clockwise seen from above."""
    if upright:
        return angle_min > angle_max
    return angle_min < angle_max


def prepare_ranges(
    ranges: Sequence[float], range_min: float, range_max: float, reverse: bool
) -> list[float]:
    """Order the readings and replace those shorter than ``range_min`` by ``range_max``."""
    ordered = reversed(ranges) if reverse else ranges
    return [float(range_max) if r < range_min else float(r) for r in ordered]


def pose_entropy(weights: Sequence[float]) -> float:
    """Entropy of the particle weights after normalising them to sum to one."""
    total = sum(weights)
    if total == 0:
        if any(weights):
            raise ValueError("weights sum to zero and cannot be normalised")
        return 0.0
    entropy = 0.0
    for w in weights:
        p = w / total
        if p > 0.0:
            entropy += p * math.log(p)
    return -entropy


def occupancy_value(occ: float, threshold: float) -> int:
    """Map an occupancy probability to unknown (-1), free (0) or occupied (100)."""
    if occ > 1.0:
        raise ValueError(f"occupancy {occ} exceeds 1")
    if occ < 0:
        return UNKNOWN
    if occ > threshold:
        return OCCUPIED
    return FREE


def occupancy_grid(
    cells: Sequence[Sequence[float]] | Callable[[int, int], float],
    width: int,
    height: int,
    threshold: float,
) -> list[int]:
    """Row-major occupancy data for a grid.

    ``cells`` is either indexed ``cells[x][y]`` or called as ``cells(x, y)``;
    cell (x, y) ends up at index ``width * y + x``.
    """
    if width < 0 or height < 0:
        raise ValueError("grid dimensions must not be negative")
    if callable(cells):
        lookup = cells
    else:
        if len(cells) != width or any(len(column) != height for column in cells):
            raise ValueError("cells do not match the grid dimensions")

        def lookup(x: int, y: int) -> float:
            return cells[x][y]

    return [
        occupancy_value(lookup(x, y), threshold)
        for y in range(height)
        for x in range(width)
    ]


def map_to_odom(best_pose: OrientedPoint, odom_pose: OrientedPoint) -> OrientedPoint:
    """Transform from the map frame to the odometry frame as a planar pose.

    ``best_pose`` is the laser pose estimated in the map, ``odom_pose`` the
    same laser pose according to odometry.
    """
    odom_inverse = absolute_difference(OrientedPoint(), odom_pose)
    return absolute_sum(best_pose, odom_inverse).normalized()