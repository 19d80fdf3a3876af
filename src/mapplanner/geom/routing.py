"""Orthogonal routing between hallway and wall nodes.

Routing is a fixed rule, not a path search: two points sharing an x or a
y coordinate are joined by one segment, any other pair by an L made of a
horizontal leg followed by a vertical leg. Applying the rule again to
the same nodes always yields the same segments.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from ..core.model import Node, Point, Segment


def route(a: Point, b: Point) -> List[Segment]:
    """Route an orthogonal path from ``a`` to ``b``.

    Args:
        a: Start point.
        b: End point.

    Returns:
        One segment when the points are aligned, otherwise two segments
        (horizontal leg first, then vertical leg).
    """
    if a.x == b.x or a.y == b.y:
        return [Segment(a.x, a.y, b.x, b.y)]

    return [
        Segment(a.x, a.y, b.x, a.y),
        Segment(b.x, a.y, b.x, b.y),
    ]


def rebuild_segments(nodes: Sequence[Node]) -> List[Segment]:
    """Route every consecutive pair of nodes and concatenate the results.

    Args:
        nodes: Ordered waypoints.

    Returns:
        The full segment list; empty for fewer than two nodes.
    """
    segments: List[Segment] = []
    for start, end in zip(nodes, nodes[1:]):
        segments.extend(route(start.point, end.point))
    return segments


def is_orthogonal(segments: Iterable[Segment]) -> bool:
    """Check that every segment is horizontal or vertical."""
    return all(segment.is_axis_aligned for segment in segments)


def is_continuous(segments: Sequence[Segment]) -> bool:
    """Check that each segment starts where the previous one ends."""
    return all(
        prev.end == nxt.start for prev, nxt in zip(segments, segments[1:])
    )


def path_length(segments: Iterable[Segment]) -> float:
    """Total length of an orthogonal path."""
    return sum(abs(s.x2 - s.x1) + abs(s.y2 - s.y1) for s in segments)
