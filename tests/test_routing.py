"""Tests for geom/routing.py orthogonal routing."""
from mapplanner.core.model import Node, Point, Segment
from mapplanner.geom.routing import (
    is_continuous,
    is_orthogonal,
    path_length,
    rebuild_segments,
    route,
)


# ============================================================
# route
# ============================================================

class TestRoute:
    def test_horizontal_points_single_segment(self):
        assert route(Point(0, 10), Point(50, 10)) == [Segment(0, 10, 50, 10)]

    def test_vertical_points_single_segment(self):
        assert route(Point(5, 0), Point(5, -30)) == [Segment(5, 0, 5, -30)]

    def test_unaligned_points_horizontal_leg_first(self):
        assert route(Point(0, 0), Point(40, 30)) == [
            Segment(0, 0, 40, 0),
            Segment(40, 0, 40, 30),
        ]

    def test_same_point_degenerate_segment(self):
        assert route(Point(3, 3), Point(3, 3)) == [Segment(3, 3, 3, 3)]

    def test_degenerate_segment_counts_as_orthogonal(self):
        segments = route(Point(3, 3), Point(3, 3))
        assert segments[0].is_axis_aligned
        assert is_orthogonal(segments)
        assert is_continuous(segments)

    def test_deterministic(self):
        a, b = Point(12.5, 7), Point(-3, 91)
        assert route(a, b) == route(a, b)

    def test_reverse_direction_is_not_mirrored(self):
        # Still horizontal first, so the corner differs
        forward = route(Point(0, 0), Point(40, 30))
        backward = route(Point(40, 30), Point(0, 0))
        assert forward[0].end == Point(40, 0)
        assert backward[0].end == Point(0, 30)


# ============================================================
# rebuild_segments
# ============================================================

class TestRebuildSegments:
    def test_fewer_than_two_nodes(self):
        assert rebuild_segments([]) == []
        assert rebuild_segments([Node(1, 1)]) == []

    def test_concatenates_pairwise_routes(self):
        nodes = [Node(0, 0), Node(10, 10), Node(10, 30)]
        assert rebuild_segments(nodes) == [
            Segment(0, 0, 10, 0),
            Segment(10, 0, 10, 10),
            Segment(10, 10, 10, 30),
        ]

    def test_orthogonal_and_continuous(self):
        nodes = [Node(0, 0), Node(37, 12), Node(-5, 80), Node(100, 80)]
        segments = rebuild_segments(nodes)
        assert is_orthogonal(segments)
        assert is_continuous(segments)
        assert segments[0].start == Point(0, 0)
        assert segments[-1].end == Point(100, 80)

    def test_idempotent(self):
        nodes = [Node(0, 0), Node(37, 12), Node(-5, 80)]
        assert rebuild_segments(nodes) == rebuild_segments(nodes)


def test_path_length():
    segments = rebuild_segments([Node(0, 0), Node(30, 40)])
    assert path_length(segments) == 70
