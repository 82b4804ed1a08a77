"""Odometry motion model that samples noisy successor poses."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field

from .pose import (
    Covariance3,
    OrientedPoint,
    absolute_difference,
    absolute_sum,
    normalize_angle,
)

LINEAR_CONDITIONING_COVARIANCE = 0.01
ANGULAR_CONDITIONING_COVARIANCE = 0.001


@dataclass
class MotionModel:
    """Noise parameters of the odometry model.

    ``srr``: translation error from translation, ``srt``: rotation error from
    translation, ``str_``: translation error from rotation, ``stt``: rotation
    error from rotation.
    """

    srr: float = 0.0
    srt: float = 0.0
    str_: float = 0.0
    stt: float = 0.0
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def _gaussian(self, sigma: float) -> float:
        if sigma == 0:
            return 0.0
        return self.rng.gauss(0.0, sigma)

    def draw_from_motion(
        self, p: OrientedPoint, linear_move: float, angular_move: float
    ) -> OrientedPoint:
        """Sample a pose after a forward move and a rotation from ``p``."""
        lin, ang = abs(linear_move), abs(angular_move)
        lm = linear_move + lin * self._gaussian(self.srr) + ang * self._gaussian(self.str_)
        am = angular_move + lin * self._gaussian(self.srt) + ang * self._gaussian(self.stt)
        heading = p.theta + 0.5 * am
        return OrientedPoint(
            p.x + lm * math.cos(heading),
            p.y + lm * math.sin(heading),
            normalize_angle(p.theta + am),
        )

    def draw_from_odometry(
        self, p: OrientedPoint, pnew: OrientedPoint, pold: OrientedPoint
    ) -> OrientedPoint:
        """Apply the odometry step ``pold -> pnew`` to ``p`` with sampled noise."""
        sxy = 0.3 * self.srr
        delta = absolute_difference(pnew, pold)
        dx, dy, dt = abs(delta.x), abs(delta.y), abs(delta.theta)
        x = delta.x + self._gaussian(self.srr * dx + self.str_ * dt + sxy * dy)
        y = delta.y + self._gaussian(self.srr * dy + self.str_ * dt + sxy * dx)
        theta = delta.theta + self._gaussian(
            self.stt * dt + self.srt * math.hypot(delta.x, delta.y)
        )
        theta = math.fmod(theta, 2 * math.pi)
        if theta > math.pi:
            theta -= 2 * math.pi
        return absolute_sum(p, OrientedPoint(x, y, theta))

    def gaussian_approximation(self, pnew: OrientedPoint, pold: OrientedPoint) -> Covariance3:
        """Covariance of the step ``pold -> pnew`` in the world frame."""
        delta = absolute_difference(pnew, pold)
        linear_move = math.hypot(delta.x, delta.y)
        angular_move = abs(delta.x)
        s11 = self.srr * self.srr * linear_move * linear_move
        s22 = self.stt * self.stt * angular_move * angular_move
        s12 = self.str_ * angular_move * self.srt * linear_move
        s, c = math.sin(pold.theta), math.cos(pold.theta)
        return Covariance3(
            xx=c * c * s11 + LINEAR_CONDITIONING_COVARIANCE,
            yy=s * s * s11 + LINEAR_CONDITIONING_COVARIANCE,
            tt=s22 + ANGULAR_CONDITIONING_COVARIANCE,
            xy=s * c * s11,
            xt=c * s12,
            yt=s * s12,
        )