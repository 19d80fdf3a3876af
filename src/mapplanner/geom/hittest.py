"""Hit testing for editor and viewer tooling.

Finds the room, hallway or room marker under a given position. Distances
to segments are measured with Shapely geometry.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from shapely.geometry import LineString
from shapely.geometry import Point as ShapelyPoint

from ..config import EDGE_CLICK_THRESHOLD, GRID_SIZE, MARKER_HIT_RADIUS
from ..core.model import Hallway, Point, Room, RoomMarker, Segment


@dataclass(frozen=True)
class HallwayHit:
    """A hallway found under a position, with the closest point on it."""

    hallway: Hallway
    point: Point


def snap_to_grid(value: float, grid: float = GRID_SIZE) -> float:
    """Round a coordinate to the nearest grid line (halves round up)."""
    return math.floor(value / grid + 0.5) * grid


def _is_degenerate(segment: Segment) -> bool:
    return segment.x1 == segment.x2 and segment.y1 == segment.y2


def closest_point_on_segment(x: float, y: float, segment: Segment) -> Point:
    """Closest point to (x, y) on a segment, clamped to its endpoints."""
    if _is_degenerate(segment):
        return segment.start

    line = LineString([(segment.x1, segment.y1), (segment.x2, segment.y2)])
    nearest = line.interpolate(line.project(ShapelyPoint(x, y)))
    return Point(nearest.x, nearest.y)


def point_near_segment(x: float, y: float, segment: Segment, threshold: float) -> bool:
    """Whether (x, y) lies within ``threshold`` of a segment."""
    target = ShapelyPoint(x, y)
    if _is_degenerate(segment):
        return target.distance(ShapelyPoint(segment.x1, segment.y1)) <= threshold

    line = LineString([(segment.x1, segment.y1), (segment.x2, segment.y2)])
    return line.distance(target) <= threshold


def contains_point(room: Room, x: float, y: float) -> bool:
    """Whether (x, y) lies inside the room (boundary included)."""
    if room.shape == "circle":
        center = room.center
        return math.hypot(x - center.x, y - center.y) <= room.radius

    return room.x <= x <= room.x + room.width and room.y <= y <= room.y + room.height


def room_at(rooms: Iterable[Room], x: float, y: float) -> Optional[Room]:
    """First room in document order containing (x, y)."""
    for room in rooms:
        if contains_point(room, x, y):
            return room
    return None


def hallway_at(
    hallways: Iterable[Hallway],
    x: float,
    y: float,
    threshold: float = EDGE_CLICK_THRESHOLD,
    snap: bool = False,
) -> Optional[HallwayHit]:
    """First hallway with a segment within ``threshold`` of (x, y).

    Args:
        hallways: Hallways to search, in document order.
        x: Query x-coordinate.
        y: Query y-coordinate.
        threshold: Maximum distance from a segment.
        snap: Snap the returned point to the grid.

    Returns:
        The hallway and the closest point on the hit segment, or None.
    """
    for hallway in hallways:
        for segment in hallway.segments:
            if not point_near_segment(x, y, segment, threshold):
                continue
            point = closest_point_on_segment(x, y, segment)
            if snap:
                point = Point(snap_to_grid(point.x), snap_to_grid(point.y))
            return HallwayHit(hallway, point)
    return None


def marker_at(
    rooms: Iterable[Room],
    x: float,
    y: float,
    hit_radius: float = MARKER_HIT_RADIUS,
) -> Optional[Tuple[Room, RoomMarker, int]]:
    """First room marker within ``hit_radius`` of (x, y).

    Returns:
        A ``(room, marker, index)`` tuple, or None.
    """
    for room in rooms:
        for index, marker in enumerate(room.markers):
            if math.hypot(x - (room.x + marker.x), y - (room.y + marker.y)) <= hit_radius:
                return room, marker, index
    return None
