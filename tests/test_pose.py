import math

import pytest

from gfslam.pose import (
    Covariance3,
    OrientedPoint,
    absolute_difference,
    absolute_sum,
    normalize_angle,
)


@pytest.mark.parametrize("theta", [0.0, 1.0, -1.0, 3.0, 7.5, -12.0, 100.0])
def test_normalize_angle_range_and_equivalence(theta):
    wrapped = normalize_angle(theta)
    assert -math.pi <= wrapped <= math.pi
    assert math.sin(wrapped) == pytest.approx(math.sin(theta), abs=1e-9)
    assert math.cos(wrapped) == pytest.approx(math.cos(theta), abs=1e-9)


def test_normalize_angle_keeps_small_angles():
    assert normalize_angle(0.5) == pytest.approx(0.5)


def test_point_arithmetic():
    a = OrientedPoint(1.0, 2.0, 0.5)
    b = OrientedPoint(0.5, -1.0, 0.25)
    assert (a + b) - b == a
    assert (a * 2.0) == OrientedPoint(2.0, 4.0, 1.0)
    assert (2.0 * a) == a * 2.0
    assert a.dot(a) == pytest.approx(a.norm() ** 2)


def test_difference_of_identical_poses_is_zero():
    p = OrientedPoint(3.0, -4.0, 1.2)
    d = absolute_difference(p, p)
    assert d.x == pytest.approx(0.0)
    assert d.y == pytest.approx(0.0)
    assert d.theta == pytest.approx(0.0)


def test_difference_in_rotated_frame():
    d = absolute_difference(OrientedPoint(1.0, 0.0, 0.0), OrientedPoint(0.0, 0.0, math.pi / 2))
    assert d.x == pytest.approx(0.0, abs=1e-12)
    assert d.y == pytest.approx(-1.0)
    assert d.theta == pytest.approx(-math.pi / 2)


@pytest.mark.parametrize(
    "base, target",
    [
        (OrientedPoint(0.0, 0.0, 0.0), OrientedPoint(1.0, 2.0, 0.3)),
        (OrientedPoint(1.5, -2.0, 2.0), OrientedPoint(-3.0, 4.0, -1.0)),
        (OrientedPoint(-5.0, 5.0, -2.8), OrientedPoint(0.1, 0.2, 2.9)),
    ],
)
def test_sum_inverts_difference(base, target):
    composed = absolute_sum(base, absolute_difference(target, base))
    assert composed.x == pytest.approx(target.x)
    assert composed.y == pytest.approx(target.y)
    assert normalize_angle(composed.theta) == pytest.approx(target.theta)


def test_sum_with_zero_offset_is_identity():
    base = OrientedPoint(2.0, 3.0, 0.7)
    assert absolute_sum(base, OrientedPoint()) == pytest.approx(base) or (
        absolute_sum(base, OrientedPoint()).x == pytest.approx(base.x)
    )
    result = absolute_sum(base, OrientedPoint())
    assert (result.x, result.y, result.theta) == pytest.approx((base.x, base.y, base.theta))


def test_difference_preserves_distance():
    p1 = OrientedPoint(4.0, 1.0, 0.2)
    p2 = OrientedPoint(-1.0, 3.0, 2.2)
    assert absolute_difference(p1, p2).norm() == pytest.approx((p1 - p2).norm())


def test_covariance_matrix_is_symmetric():
    cov = Covariance3(xx=1.0, yy=2.0, tt=3.0, xy=0.1, xt=0.2, yt=0.3)
    m = cov.as_matrix()
    assert all(m[i][j] == m[j][i] for i in range(3) for j in range(3))
    assert [m[0][0], m[1][1], m[2][2]] == [1.0, 2.0, 3.0]