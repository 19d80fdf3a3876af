"""Room-edge attachment geometry.

This module projects free points onto room edges and rebuilds absolute
node positions from a stored attachment after the room has moved or been
resized.

Rectangle attachments slide continuously along an edge. Circle
attachments snap to one of eight fixed compass points and are always
recomputed from the circle's current center and radius.

Degenerate rooms (zero or negative width/height) never raise: their edge
spans are treated as zero-length and relative positions collapse to 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..config import EDGE_CLICK_THRESHOLD
from ..core.model import Attachment, Node, Point, Room

# Compass directions in screen coordinates (y grows downward)
COMPASS_ANGLES = {
    "east": 0.0,
    "southeast": 45.0,
    "south": 90.0,
    "southwest": 135.0,
    "west": 180.0,
    "northwest": -135.0,
    "north": -90.0,
    "northeast": -45.0,
}


@dataclass(frozen=True)
class EdgeProjection:
    """Result of projecting a point onto a room edge.

    Attributes:
        edge: Edge or compass name.
        relative_position: Position along the edge in [0, 1].
        point: The absolute point on the edge.
    """

    edge: str
    relative_position: float
    point: Point

    def attachment(self, room_id: int) -> Attachment:
        return Attachment(room_id, self.edge, self.relative_position)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _normalize(offset: float, span: float) -> float:
    """Normalize an offset along an edge of length ``span`` to [0, 1]."""
    if span <= 0:
        return 0.0
    return _clamp(offset / span)


def _circle_geometry(room: Room) -> tuple[Point, float]:
    radius = max(min(room.width, room.height), 0) / 2
    return room.center, radius


def compass_point(room: Room, direction: str) -> Point:
    """Absolute position of a compass attachment point on a circle room."""
    center, radius = _circle_geometry(room)
    angle = math.radians(COMPASS_ANGLES[direction])
    return Point(center.x + radius * math.cos(angle), center.y + radius * math.sin(angle))


def nearest_compass(dx: float, dy: float) -> str:
    """Name of the compass direction closest to the vector (dx, dy)."""
    degrees = math.degrees(math.atan2(dy, dx))

    best_name = "east"
    best_diff = math.inf
    for name, angle in COMPASS_ANGLES.items():
        diff = abs(degrees - angle)
        if diff > 180:
            diff = 360 - diff
        if diff < best_diff:
            best_diff = diff
            best_name = name
    return best_name


def _project_circle(room: Room, point: Point, threshold: float) -> EdgeProjection | None:
    center, radius = _circle_geometry(room)
    dx = point.x - center.x
    dy = point.y - center.y
    distance = math.hypot(dx, dy)

    if abs(distance - radius) > threshold:
        return None

    direction = nearest_compass(dx, dy)
    return EdgeProjection(direction, 0.5, compass_point(room, direction))


def _project_rectangle(room: Room, point: Point, threshold: float) -> EdgeProjection | None:
    left, top = room.x, room.y
    width, height = max(room.width, 0), max(room.height, 0)
    right, bottom = left + width, top + height

    within_y = top <= point.y <= bottom
    within_x = left <= point.x <= right

    # (distance, edge, relative position, edge point), in tie-break order
    candidates = []
    if within_y:
        rel = _normalize(point.y - top, height)
        candidates.append((abs(point.x - left), "left", rel, Point(left, point.y)))
        candidates.append((abs(point.x - right), "right", rel, Point(right, point.y)))
    if within_x:
        rel = _normalize(point.x - left, width)
        candidates.append((abs(point.y - top), "top", rel, Point(point.x, top)))
        candidates.append((abs(point.y - bottom), "bottom", rel, Point(point.x, bottom)))

    best = None
    for candidate in candidates:
        if candidate[0] > threshold:
            continue
        if best is None or candidate[0] < best[0]:
            best = candidate

    if best is None:
        return None

    _, edge, rel, edge_point = best
    return EdgeProjection(edge, rel, edge_point)


def project_edge(
    room: Room, point: Point, threshold: float = EDGE_CLICK_THRESHOLD
) -> EdgeProjection | None:
    """Project a point onto the nearest edge of a room.

    For rectangles the perpendicular distance to each edge line is used;
    an edge qualifies only when the point's other coordinate lies within
    the edge span (inclusive) and the distance is at most ``threshold``.
    The closest qualifying edge wins. For circles the point qualifies when
    its radial distance is within ``threshold`` of the radius and is
    assigned to the nearest of eight compass points.

    Args:
        room: The room to project onto.
        point: The free point.
        threshold: Maximum accepted distance from the edge.

    Returns:
        The projection, or None if no edge is close enough.
    """
    if room.shape == "circle":
        return _project_circle(room, point, threshold)
    return _project_rectangle(room, point, threshold)


def reanchor(node: Node, room: Room) -> Point:
    """Rebuild a node's absolute position from its attachment.

    This is the inverse of the normalization done by :func:`project_edge`,
    evaluated against the room's current bounds. A node whose edge name
    does not apply to the room's shape keeps its current position.

    Args:
        node: The attached node.
        room: The room named by the node's attachment.

    Returns:
        The absolute point on the room edge.
    """
    attachment = node.attached_room
    if attachment is None:
        return node.point

    edge = attachment.edge

    if edge in COMPASS_ANGLES:
        return compass_point(room, edge)

    rel = _clamp(attachment.relative_position)
    width, height = max(room.width, 0), max(room.height, 0)

    if edge == "left":
        return Point(room.x, room.y + height * rel)
    if edge == "right":
        return Point(room.x + width, room.y + height * rel)
    if edge == "top":
        return Point(room.x + width * rel, room.y)
    if edge == "bottom":
        return Point(room.x + width * rel, room.y + height)

    return node.point
