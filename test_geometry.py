"""Test suite for geometry module."""
import math

import pytest

from geometry import (
    distance_to_line_segment,
    find_nearest_track_point,
    calculate_track_length,
    points_to_coordinates,
    pixel_to_geo_coordinate,
)
from scene import Scene


def make_scene(*point_lists, snap_distance=10):
    return Scene.from_dict({
        'tracks': [{'id': f"t{i}", 'points': pts} for i, pts in enumerate(point_lists)],
        'snapDistance': snap_distance,
    })


class TestDistanceToLineSegment:
    """Test point to segment distance."""

    def test_perpendicular_distance(self):
        """Test distance to the interior of a horizontal segment."""
        assert distance_to_line_segment(50, 5, 0, 0, 100, 0) == pytest.approx(5.0)

    def test_clamped_to_endpoints(self):
        """Test points beyond the segment measure to the nearest endpoint."""
        assert distance_to_line_segment(-3, 4, 0, 0, 100, 0) == pytest.approx(5.0)
        assert distance_to_line_segment(103, -4, 0, 0, 100, 0) == pytest.approx(5.0)

    def test_degenerate_segment(self):
        """Test zero-length segment equals point-to-point distance."""
        assert distance_to_line_segment(3, 4, 0, 0, 0, 0) == pytest.approx(5.0)

    def test_symmetric_under_endpoint_swap(self):
        """Test reversing the segment does not change the distance."""
        cases = [(7, 3, 1, 2, 9, -4), (-5, 8, 0, 0, 3, 3), (2, 2, 2, 2, 6, 6)]
        for px, py, x1, y1, x2, y2 in cases:
            forward = distance_to_line_segment(px, py, x1, y1, x2, y2)
            backward = distance_to_line_segment(px, py, x2, y2, x1, y1)
            assert forward == pytest.approx(backward)

    def test_point_on_segment(self):
        """Test a point on the segment has zero distance."""
        assert distance_to_line_segment(5, 5, 0, 0, 10, 10) == pytest.approx(0.0)


class TestFindNearestTrackPoint:
    """Test snapping to tracks."""

    def test_returns_none_outside_snap_distance(self):
        """Test no result when every segment is too far away."""
        scene = make_scene([0, 0, 100, 0])
        assert find_nearest_track_point(scene, 50, 30, snap_distance=10) is None

    def test_returns_nearest_within_snap_distance(self):
        """Test the nearest segment is returned with its distance."""
        scene = make_scene([0, 0, 100, 0], [0, 20, 100, 20])
        nearest = find_nearest_track_point(scene, 50, 14, snap_distance=10)

        assert nearest is not None
        assert nearest.track.id == "t1"
        assert nearest.distance == pytest.approx(6.0)
        assert nearest.distance <= 10
        assert nearest.point == {'x': 0, 'y': 20}

    def test_projection_is_exact_point_on_segment(self):
        """Test the projection lies on the segment below the query point."""
        scene = make_scene([0, 0, 100, 0])
        nearest = find_nearest_track_point(scene, 42, 3)
        assert nearest.projection['x'] == pytest.approx(42.0)
        assert nearest.projection['y'] == pytest.approx(0.0)

    def test_first_segment_wins_ties(self):
        """Test equal distances keep the first track encountered."""
        scene = make_scene([0, 0, 100, 0], [0, 10, 100, 10])
        nearest = find_nearest_track_point(scene, 50, 5, snap_distance=10)
        assert nearest.track.id == "t0"

    def test_defaults_to_scene_snap_distance(self):
        """Test the scene's snap distance is used when none is given."""
        scene = make_scene([0, 0, 100, 0], snap_distance=3)
        assert find_nearest_track_point(scene, 50, 5) is None
        assert find_nearest_track_point(scene, 50, 2) is not None

    def test_segment_with_zero_coordinates(self):
        """Test segments ending at x=0 or y=0 are measured as drawn."""
        scene = make_scene([100, 100, 0, 0])
        nearest = find_nearest_track_point(scene, 0, 1, snap_distance=10)
        assert nearest is not None
        assert nearest.distance == pytest.approx(math.sqrt(0.5))

    def test_skips_degenerate_tracks(self):
        """Test tracks with a single point contribute no segment."""
        scene = make_scene([5, 5])
        assert find_nearest_track_point(scene, 5, 5) is None


class TestTrackLength:
    """Test track length calculation."""

    def test_single_segment(self):
        """Test a straight 100 unit track."""
        assert calculate_track_length([0, 0, 100, 0]) == 100.0

    def test_polyline_sum(self):
        """Test length is the sum of consecutive distances."""
        assert calculate_track_length([0, 0, 3, 4, 3, 10]) == 11.0

    def test_rounding_to_two_decimals(self):
        """Test the total is rounded to 2 decimals."""
        assert calculate_track_length([0, 0, 1, 1]) == 1.41
        assert calculate_track_length([0, 0, 1, 2]) == 2.24

    def test_fewer_than_two_points(self):
        """Test degenerate tracks have zero length."""
        assert calculate_track_length([]) == 0
        assert calculate_track_length([5, 5]) == 0


class TestCoordinates:
    """Test coordinate conversion helpers."""

    def test_points_to_coordinates(self):
        """Test flat points are paired."""
        assert points_to_coordinates([0, 0, 10, 5, 20, 5]) == [[0, 0], [10, 5], [20, 5]]

    def test_points_to_coordinates_empty(self):
        """Test empty input gives no coordinates."""
        assert points_to_coordinates([]) == []

    def test_pixel_to_geo_coordinate(self):
        """Test the linear placeholder projection."""
        coordinate = pixel_to_geo_coordinate(500, 250)
        assert coordinate['latitude'] == pytest.approx(0.025)
        assert coordinate['longitude'] == pytest.approx(0.05)
        assert coordinate['elevation'] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
