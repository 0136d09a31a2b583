"""Geometry engine for track layouts: segment distance, snapping, lengths and coordinates.

All functions are pure. Inputs are expected to be numeric; non-numeric
coordinates are a caller error and are not checked here.
"""
import math
from dataclasses import dataclass
from typing import List, Dict, Optional, Sequence

import numpy as np
from shapely.geometry import LineString, Point
from loguru import logger

from scene import Scene, Track

# Pixel to degree factor of the placeholder projection
GEO_SCALE = 10000


@dataclass
class NearestTrackPoint:
    """Result of snapping a point to the closest track segment."""

    point: Dict[str, float]        # start vertex of the winning segment
    track: Track
    distance: float
    projection: Dict[str, float]   # exact closest point on the segment


def distance_to_line_segment(px: float, py: float, x1: float, y1: float,
                             x2: float, y2: float) -> float:
    """Distance from point (px, py) to the segment (x1, y1)-(x2, y2).

    The projection parameter is clamped to [0, 1], so points beyond either end
    measure to the nearest endpoint. A zero-length segment measures to its
    single point.
    """
    dx = x2 - x1
    dy = y2 - y1
    length = math.sqrt(dx * dx + dy * dy)

    if length == 0:
        return math.sqrt((px - x1) ** 2 + (py - y1) ** 2)

    t = max(0.0, min(1.0, ((px - x1) * dx + (py - y1) * dy) / (length * length)))
    proj_x = x1 + t * dx
    proj_y = y1 + t * dy

    return math.sqrt((px - proj_x) ** 2 + (py - proj_y) ** 2)


def _project_onto_segment(x: float, y: float, x1: float, y1: float,
                          x2: float, y2: float) -> Dict[str, float]:
    if x1 == x2 and y1 == y2:
        return {'x': x1, 'y': y1}
    segment = LineString([(x1, y1), (x2, y2)])
    nearest = segment.interpolate(segment.project(Point(x, y)))
    return {'x': nearest.x, 'y': nearest.y}


def find_nearest_track_point(scene: Scene, x: float, y: float,
                             snap_distance: Optional[float] = None) -> Optional[NearestTrackPoint]:
    """Find the track segment closest to (x, y) within the snap distance.

    Tracks are scanned in scene order and segments in point order; only a
    strictly smaller distance replaces the current best, so the first segment
    encountered wins ties.

    Args:
        scene: Scene whose tracks are searched
        x: Query point x coordinate
        y: Query point y coordinate
        snap_distance: Maximum accepted distance (defaults to ``scene.snap_distance``)

    Returns:
        NearestTrackPoint, or None if no segment lies within the snap distance
    """
    if snap_distance is None:
        snap_distance = scene.snap_distance

    best = None
    min_distance = math.inf

    for track in scene.tracks:
        points = track.points
        for i in range(0, len(points) - 3, 2):
            x1, y1, x2, y2 = points[i], points[i + 1], points[i + 2], points[i + 3]
            distance = distance_to_line_segment(x, y, x1, y1, x2, y2)
            if distance < min_distance and distance <= snap_distance:
                min_distance = distance
                best = (track, x1, y1, x2, y2)

    if best is None:
        return None

    track, x1, y1, x2, y2 = best
    return NearestTrackPoint(
        point={'x': x1, 'y': y1},
        track=track,
        distance=min_distance,
        projection=_project_onto_segment(x, y, x1, y1, x2, y2),
    )


def _round_half_up(value: float, digits: int = 2) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def calculate_track_length(points: Sequence[float]) -> float:
    """Total polyline length of a flat x,y point list, rounded to 2 decimals.

    Args:
        points: Flat alternating x,y coordinates

    Returns:
        float: Sum of consecutive Euclidean distances; 0 for fewer than 2 points
    """
    usable = len(points) // 2 * 2
    if usable < 4:
        return 0.0

    coords = np.asarray(points[:usable], dtype=float).reshape(-1, 2)
    deltas = np.diff(coords, axis=0)
    length = float(np.hypot(deltas[:, 0], deltas[:, 1]).sum())
    return _round_half_up(length, 2)


def points_to_coordinates(points: Sequence[float]) -> List[List[float]]:
    """Pair a flat x,y list into ``[[x, y], ...]``."""
    if len(points) % 2:
        logger.debug("Ignoring unpaired trailing coordinate")
    return [[points[i], points[i + 1]] for i in range(0, len(points) - 1, 2)]


def pixel_to_geo_coordinate(x: float, y: float) -> Dict[str, float]:
    """Map a canvas pixel position to a geographic coordinate.

    This is a linear placeholder projection (latitude = y / 10000,
    longitude = x / 10000, elevation = 0), not a geodetic transform.
    """
    return {
        'latitude': 0.0 + y / GEO_SCALE,
        'longitude': 0.0 + x / GEO_SCALE,
        'elevation': 0,
    }
