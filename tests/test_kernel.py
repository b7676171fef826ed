"""Unit tests for the pairwise force law."""

import numpy as np
import pytest

from constants import R_SMOOTH
from kernel import force, pair_force, pair_force_jit


class TestCutoffs:
    """Pairs outside the interaction band contribute nothing."""

    def test_beyond_max_r(self):
        assert np.array_equal(force([10.5, 0.0], 1.0, 10.0, 1.0), [0.0, 0.0])

    def test_beyond_max_r_diagonal(self):
        assert np.array_equal(force([8.0, 8.0], 1.0, 10.0, -3.0), [0.0, 0.0])

    def test_below_distance_floor(self):
        # r^2 = 0.0025 < 0.01
        assert np.array_equal(force([0.05, 0.0], 1.0, 10.0, 1.0), [0.0, 0.0])

    def test_coincident(self):
        assert np.array_equal(force([0.0, 0.0], 1.0, 10.0, 1.0), [0.0, 0.0])

    def test_exactly_at_max_r_is_zero(self):
        fx, fy = force([10.0, 0.0], 1.0, 10.0, 1.0)
        assert fx == pytest.approx(0.0, abs=1e-12)
        assert fy == 0.0


class TestOuterBand:
    """Tent profile between min_r and max_r."""

    def test_peak_at_midpoint(self):
        fx, fy = force([5.5, 0.0], 1.0, 10.0, 0.7)
        assert fx == pytest.approx(0.7)
        assert fy == pytest.approx(0.0)

    def test_value_off_midpoint(self):
        # f = 1 - 2 * |5 - 5.5| / 9 = 8/9
        fx, _ = force([5.0, 0.0], 1.0, 10.0, 1.0)
        assert fx == pytest.approx(8.0 / 9.0)

    def test_direction_follows_displacement(self):
        fx, fy = force([3.0, 4.0], 1.0, 10.0, 1.0)
        f = 8.0 / 9.0
        assert fx == pytest.approx(0.6 * f)
        assert fy == pytest.approx(0.8 * f)

    def test_negative_attraction_pushes_away(self):
        fx, _ = force([5.0, 0.0], 1.0, 10.0, -1.0)
        assert fx == pytest.approx(-8.0 / 9.0)


class TestInnerRepulsion:
    """Softened repulsion inside min_r."""

    def test_repulsive_inside_min_r(self):
        # f = R * min_r * (1/(min_r + R) - 1/(r + R))
        r, min_r = 0.5, 1.0
        expected = R_SMOOTH * min_r * (1.0 / (min_r + R_SMOOTH) - 1.0 / (r + R_SMOOTH))
        fx, fy = force([r, 0.0], min_r, 10.0, 1.0)
        assert expected < 0
        assert fx == pytest.approx(expected)
        assert fy == 0.0

    def test_independent_of_attraction(self):
        a = force([0.0, 0.4], 2.0, 10.0, 1.0)
        b = force([0.0, 0.4], 2.0, 10.0, -5.0)
        assert np.allclose(a, b)

    def test_finite_near_zero(self):
        fx, fy = force([0.1, 0.0], 5.0, 10.0, 1.0)
        assert np.isfinite(fx) and np.isfinite(fy)


class TestContinuity:
    """Both branches agree at r == min_r."""

    @pytest.mark.parametrize("min_r,max_r,attraction", [
        (0.5, 5.0, 1.0),
        (3.0, 8.0, -2.0),
        (7.5, 60.0, 0.04),
    ])
    def test_branches_meet_at_min_r(self, min_r, max_r, attraction):
        eps = 1e-7
        inner = pair_force(min_r * (1.0 - eps), 0.0, min_r, max_r, attraction)[0]
        outer = pair_force(min_r * (1.0 + eps), 0.0, min_r, max_r, attraction)[0]
        assert inner == pytest.approx(outer, abs=1e-5)
        assert pair_force(min_r, 0.0, min_r, max_r, attraction)[0] == pytest.approx(0.0, abs=1e-12)


class TestCompiled:
    """The numba form computes the same law."""

    @pytest.mark.parametrize("dx,dy", [(3.0, 4.0), (0.5, 0.0), (-2.0, 7.0), (20.0, 0.0)])
    def test_jit_matches_python(self, dx, dy):
        expected = pair_force(dx, dy, 1.0, 10.0, 0.3)
        actual = pair_force_jit(dx, dy, 1.0, 10.0, 0.3)
        assert actual[0] == pytest.approx(expected[0])
        assert actual[1] == pytest.approx(expected[1])
