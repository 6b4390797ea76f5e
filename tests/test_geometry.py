"""Tests for geometry primitives: distance, bearing, chord distance and simplification."""

import numpy as np
import pytest

from rover_analytics.modules.geometry import (
    bearing_2d,
    distance_3d,
    perpendicular_distance,
    simplify,
)


class TestDistance3D:
    """Tests for Euclidean distance."""

    def test_pythagorean_triple(self):
        assert distance_3d((0, 0, 0), (3, 4, 0)) == pytest.approx(5.0)

    def test_includes_vertical_component(self):
        assert distance_3d((1, 1, 1), (1, 1, 3)) == pytest.approx(2.0)

    def test_symmetric(self):
        a, b = (1.5, -2.0, 0.25), (-3.0, 4.0, 7.0)
        assert distance_3d(a, b) == pytest.approx(distance_3d(b, a))

    def test_identical_points(self):
        assert distance_3d((2, 2, 2), (2, 2, 2)) == 0.0


class TestBearing2D:
    """Tests for compass bearing (0 = +y, 90 = +x)."""

    @pytest.mark.parametrize(
        "target, expected",
        [
            ((0, 1, 0), 0.0),
            ((1, 0, 0), 90.0),
            ((0, -1, 0), 180.0),
            ((-1, 0, 0), 270.0),
            ((1, 1, 0), 45.0),
        ],
    )
    def test_cardinal_directions(self, target, expected):
        assert bearing_2d((0, 0, 0), target) == pytest.approx(expected)

    def test_ignores_z(self):
        assert bearing_2d((0, 0, 0), (1, 0, 50)) == pytest.approx(90.0)

    def test_coincident_points(self):
        assert bearing_2d((3, 3, 0), (3, 3, 9)) == 0.0

    def test_range(self):
        rng = np.random.default_rng(3)
        for _ in range(200):
            a = rng.normal(size=3)
            b = rng.normal(size=3)
            bearing = bearing_2d(a, b)
            assert 0.0 <= bearing < 360.0

    def test_tiny_negative_offset_stays_below_360(self):
        assert bearing_2d((0, 0, 0), (-1e-300, 1, 0)) < 360.0


class TestPerpendicularDistance:
    """Tests for point-to-chord distance."""

    def test_point_above_chord(self):
        assert perpendicular_distance((5, 3, 0), (0, 0, 0), (10, 0, 0)) == pytest.approx(3.0)

    def test_measured_in_3d(self):
        assert perpendicular_distance((5, 3, 4), (0, 0, 0), (10, 0, 0)) == pytest.approx(5.0)

    def test_point_on_chord(self):
        assert perpendicular_distance((4, 0, 0), (0, 0, 0), (10, 0, 0)) == pytest.approx(0.0)

    def test_beyond_end_measures_to_endpoint(self):
        assert perpendicular_distance((13, 4, 0), (0, 0, 0), (10, 0, 0)) == pytest.approx(5.0)

    def test_before_start_measures_to_start(self):
        assert perpendicular_distance((-3, 4, 0), (0, 0, 0), (10, 0, 0)) == pytest.approx(5.0)

    def test_degenerate_chord_measures_to_a(self):
        assert perpendicular_distance((3, 4, 0), (0, 0, 0), (0, 0, 0)) == pytest.approx(5.0)


class TestSimplify:
    """Tests for Douglas-Peucker simplification."""

    def test_drops_point_within_tolerance(self):
        points = [(0, 0, 0), (5, 0.1, 0), (10, 0, 0)]
        assert simplify(points, 0.5) == [0, 2]

    def test_keeps_point_beyond_tolerance(self):
        points = [(0, 0, 0), (5, 3, 0), (10, 0, 0)]
        assert simplify(points, 0.5) == [0, 1, 2]

    @pytest.mark.parametrize(
        "tolerance, expected",
        [(6.0, [0, 2]), (4.0, [0, 1, 2])],
    )
    def test_vertical_deviation_measured_in_3d(self, tolerance, expected):
        # B sits 5 m above the A-C chord and nowhere off it in x-y
        points = [(0, 0, 0), (10, 0, 5), (20, 0, 0)]
        assert simplify(points, tolerance) == expected

    def test_distance_equal_to_tolerance_is_dropped(self):
        points = [(0, 0, 0), (5, 1, 0), (10, 0, 0)]
        assert simplify(points, 1.0) == [0, 2]

    def test_fewer_than_three_points_unchanged(self):
        assert simplify([], 1.0) == []
        assert simplify([(0, 0, 0)], 1.0) == [0]
        assert simplify([(0, 0, 0), (1, 1, 1)], 1.0) == [0, 1]

    def test_always_keeps_endpoints(self):
        rng = np.random.default_rng(11)
        points = rng.normal(scale=10.0, size=(50, 3))
        kept = simplify(points, 1e6)
        assert kept == [0, 49]

    def test_zero_tolerance_keeps_every_off_line_point(self):
        points = [(0, 0, 0), (1, 1, 0), (2, 0, 0), (3, 1, 0), (4, 0, 0)]
        assert simplify(points, 0.0) == [0, 1, 2, 3, 4]

    def test_indices_ascending_and_subset(self):
        rng = np.random.default_rng(5)
        points = np.cumsum(rng.normal(size=(200, 3)), axis=0)
        kept = simplify(points, 0.75)
        assert kept == sorted(set(kept))
        assert kept[0] == 0
        assert kept[-1] == 199

    def test_every_dropped_point_within_tolerance_of_kept_chord(self):
        rng = np.random.default_rng(9)
        points = np.cumsum(rng.normal(size=(120, 3)), axis=0)
        tolerance = 1.5
        kept = simplify(points, tolerance)
        for start, end in zip(kept, kept[1:]):
            for i in range(start + 1, end):
                d = perpendicular_distance(points[i], points[start], points[end])
                assert d <= tolerance + 1e-9

    def test_zigzag_detail_is_recovered(self):
        # Peak in the middle survives, small wiggles along its flanks do not
        points = [(0, 0, 0), (2.5, 2.05, 0), (5, 4, 0), (7.5, 1.95, 0), (10, 0, 0)]
        assert simplify(points, 0.5) == [0, 2, 4]

    @pytest.mark.slow
    def test_long_path_does_not_recurse(self):
        n = 5_000
        xs = np.arange(n, dtype=float)
        points = np.column_stack([xs, np.sin(xs) * 5.0, np.zeros(n)])
        kept = simplify(points, 0.01)
        assert kept[0] == 0
        assert kept[-1] == n - 1
        assert len(kept) > 2
