"""Planar poses and the rigid-motion algebra used by the filter."""

from __future__ import annotations

import math
from dataclasses import dataclass


def normalize_angle(theta: float) -> float:
    """Wrap an angle into the interval [-pi, pi]."""
    return math.atan2(math.sin(theta), math.cos(theta))


@dataclass
class OrientedPoint:
    """A position in the plane together with a heading in radians."""

    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0

    def __add__(self, other: OrientedPoint) -> OrientedPoint:
        return OrientedPoint(self.x + other.x, self.y + other.y, self.theta + other.theta)

    def __sub__(self, other: OrientedPoint) -> OrientedPoint:
        return OrientedPoint(self.x - other.x, self.y - other.y, self.theta - other.theta)

    def __mul__(self, factor: float) -> OrientedPoint:
        return OrientedPoint(self.x * factor, self.y * factor, self.theta * factor)

    __rmul__ = __mul__

    def dot(self, other: OrientedPoint) -> float:
        """Scalar product of the translational parts."""
        return self.x * other.x + self.y * other.y

    def norm(self) -> float:
        """Length of the translational part."""
        return math.hypot(self.x, self.y)

    def normalized(self) -> OrientedPoint:
        """The same pose with its heading wrapped into [-pi, pi]."""
        return OrientedPoint(self.x, self.y, normalize_angle(self.theta))


@dataclass
class Covariance3:
    """Symmetric 3x3 covariance of an (x, y, theta) estimate."""

    xx: float = 0.0
    yy: float = 0.0
    tt: float = 0.0
    xy: float = 0.0
    xt: float = 0.0
    yt: float = 0.0

    def as_matrix(self) -> list[list[float]]:
        """The covariance as a full row-major 3x3 matrix."""
        return [
            [self.xx, self.xy, self.xt],
            [self.xy, self.yy, self.yt],
            [self.xt, self.yt, self.tt],
        ]


def absolute_difference(p1: OrientedPoint, p2: OrientedPoint) -> OrientedPoint:
    """Express pose ``p1`` in the frame of pose ``p2``."""
    delta = p1 - p2
    dtheta = normalize_angle(delta.theta)
    s, c = math.sin(p2.theta), math.cos(p2.theta)
    return OrientedPoint(c * delta.x + s * delta.y, -s * delta.x + c * delta.y, dtheta)


def absolute_sum(p1: OrientedPoint, p2: OrientedPoint) -> OrientedPoint:
    """Compose pose ``p2``, given in the frame of ``p1``, onto ``p1``."""
    s, c = math.sin(p1.theta), math.cos(p1.theta)
    return OrientedPoint(c * p2.x - s * p2.y, s * p2.x + c * p2.y, p2.theta) + p1