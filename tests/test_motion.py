import math
import random

import pytest

from gfslam.motion import MotionModel
from gfslam.pose import OrientedPoint, absolute_difference, absolute_sum


def test_noiseless_odometry_applies_exact_step():
    model = MotionModel()
    p = OrientedPoint(1.0, 1.0, 0.4)
    pold = OrientedPoint(0.0, 0.0, 0.0)
    pnew = OrientedPoint(0.5, 0.2, 0.1)
    result = model.draw_from_odometry(p, pnew, pold)
    expected = absolute_sum(p, absolute_difference(pnew, pold))
    assert (result.x, result.y, result.theta) == pytest.approx(
        (expected.x, expected.y, expected.theta)
    )


def test_noiseless_motion_is_deterministic_geometry():
    model = MotionModel()
    p = OrientedPoint(0.0, 0.0, 0.0)
    moved = model.draw_from_motion(p, 2.0, 0.0)
    assert (moved.x, moved.y, moved.theta) == pytest.approx((2.0, 0.0, 0.0))
    turned = model.draw_from_motion(p, 0.0, 0.5)
    assert (turned.x, turned.y, turned.theta) == pytest.approx((0.0, 0.0, 0.5))


def test_seeded_models_agree():
    a = MotionModel(0.1, 0.2, 0.1, 0.2, rng=random.Random(7))
    b = MotionModel(0.1, 0.2, 0.1, 0.2, rng=random.Random(7))
    p = OrientedPoint(0.0, 0.0, 0.0)
    pnew = OrientedPoint(1.0, 0.5, 0.3)
    assert a.draw_from_odometry(p, pnew, p) == b.draw_from_odometry(p, pnew, p)
    assert a.draw_from_motion(p, 1.0, 0.2) == b.draw_from_motion(p, 1.0, 0.2)


def test_noise_scatters_samples_around_true_step():
    model = MotionModel(0.1, 0.1, 0.1, 0.1, rng=random.Random(3))
    p = OrientedPoint(0.0, 0.0, 0.0)
    pnew = OrientedPoint(1.0, 0.0, 0.0)
    samples = [model.draw_from_odometry(p, pnew, p) for _ in range(2000)]
    xs = [s.x for s in samples]
    assert len(set(xs)) > 1
    assert sum(xs) / len(xs) == pytest.approx(1.0, abs=0.02)


def test_no_motion_means_no_noise():
    model = MotionModel(0.5, 0.5, 0.5, 0.5, rng=random.Random(1))
    p = OrientedPoint(2.0, -1.0, 0.3)
    q = OrientedPoint(4.0, 4.0, 1.0)
    result = model.draw_from_odometry(p, q, q)
    assert (result.x, result.y, result.theta) == pytest.approx((p.x, p.y, p.theta))


def test_motion_heading_is_normalized():
    model = MotionModel(0.2, 0.2, 0.2, 0.2, rng=random.Random(11))
    p = OrientedPoint(0.0, 0.0, 3.0)
    for _ in range(100):
        result = model.draw_from_motion(p, 0.5, 1.0)
        assert -math.pi <= result.theta <= math.pi


def test_gaussian_approximation_without_motion_is_conditioning_only():
    model = MotionModel(0.1, 0.2, 0.3, 0.4)
    p = OrientedPoint(1.0, 2.0, 0.5)
    cov = model.gaussian_approximation(p, p)
    assert cov.xx == pytest.approx(0.01)
    assert cov.yy == pytest.approx(0.01)
    assert cov.tt == pytest.approx(0.001)
    assert (cov.xy, cov.xt, cov.yt) == pytest.approx((0.0, 0.0, 0.0))


def test_gaussian_approximation_grows_with_motion():
    model = MotionModel(0.1, 0.2, 0.3, 0.4)
    pold = OrientedPoint(0.0, 0.0, 0.0)
    short = model.gaussian_approximation(OrientedPoint(1.0, 0.0, 0.0), pold)
    long = model.gaussian_approximation(OrientedPoint(3.0, 0.0, 0.0), pold)
    assert long.xx > short.xx
    assert long.tt > short.tt
    assert short.yy == pytest.approx(0.01)