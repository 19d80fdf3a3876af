"""Tests for geom/attach.py edge projection and reanchoring."""
import pytest

from mapplanner.core.document import MapDocument
from mapplanner.core.model import Attachment, Node, Point, Room
from mapplanner.geom.attach import (
    compass_point,
    nearest_compass,
    project_edge,
    reanchor,
)


@pytest.fixture
def rect():
    return Room(id=1, x=0, y=0, width=100, height=50)


@pytest.fixture
def circle():
    return Room(id=2, x=0, y=0, width=100, height=100, shape="circle")


# ============================================================
# Rectangle projection
# ============================================================

class TestProjectRectangle:
    def test_left_edge(self, rect):
        projection = project_edge(rect, Point(3, 10))
        assert projection.edge == "left"
        assert projection.relative_position == pytest.approx(0.2)
        assert projection.point == Point(0, 10)

    def test_bottom_edge(self, rect):
        projection = project_edge(rect, Point(75, 58))
        assert projection.edge == "bottom"
        assert projection.relative_position == pytest.approx(0.75)
        assert projection.point == Point(75, 50)

    def test_beyond_threshold(self, rect):
        assert project_edge(rect, Point(-20, 25), threshold=15) is None

    def test_outside_edge_span(self, rect):
        # Close to the top-left corner but outside both spans
        assert project_edge(rect, Point(-5, -5)) is None

    def test_span_is_inclusive(self, rect):
        projection = project_edge(rect, Point(-4, 50))
        assert projection.edge == "left"
        assert projection.relative_position == 1.0

    def test_corner_tie_prefers_left(self, rect):
        projection = project_edge(rect, Point(0, 0))
        assert projection.edge == "left"

    def test_closest_edge_wins(self):
        narrow = Room(id=1, x=0, y=0, width=20, height=200)
        projection = project_edge(narrow, Point(14, 100))
        assert projection.edge == "right"

    def test_attachment(self, rect):
        attachment = project_edge(rect, Point(100, 25)).attachment(1)
        assert attachment == Attachment(1, "right", 0.5)


# ============================================================
# Circle projection
# ============================================================

class TestProjectCircle:
    def test_east(self, circle):
        projection = project_edge(circle, Point(104, 50))
        assert projection.edge == "east"
        assert projection.relative_position == 0.5
        assert projection.point == Point(100, 50)

    def test_southeast(self, circle):
        projection = project_edge(circle, Point(86, 86))
        assert projection.edge == "southeast"
        assert projection.point.x == pytest.approx(85.3553, abs=1e-3)
        assert projection.point.y == pytest.approx(85.3553, abs=1e-3)

    def test_north_is_negative_y(self, circle):
        assert project_edge(circle, Point(50, -2)).edge == "north"

    def test_inside_circle_not_attached(self, circle):
        assert project_edge(circle, Point(50, 50)) is None

    def test_nearest_compass_wraps_around_west(self):
        # Slightly above the negative x axis: 179 degrees and -179 degrees
        assert nearest_compass(-10, 0.1) == "west"
        assert nearest_compass(-10, -0.1) == "west"


# ============================================================
# Reanchoring
# ============================================================

class TestReanchor:
    def test_edge_attachment_follows_room_move(self):
        document = MapDocument()
        document.add_room(Room(id=1, x=0, y=0, width=100, height=50))
        node = Node(0, 25, Attachment(1, "left", 0.5))
        assert reanchor(node, document.get("room", 1)) == Point(0, 25)

        room = document.move_room(1, 20, 20)
        assert reanchor(node, room) == Point(20, 45)

    def test_right_edge_after_resize(self, rect):
        node = Node(100, 25, Attachment(1, "right", 0.5))
        rect.width, rect.height = 200, 80
        assert reanchor(node, rect) == Point(200, 40)

    def test_circle_recomputed_from_bounds(self, circle):
        node = Node(100, 50, Attachment(2, "east", 0.5))
        circle.width = circle.height = 200
        assert reanchor(node, circle) == Point(200, 100)

    def test_compass_point_west(self, circle):
        point = compass_point(circle, "west")
        assert point.x == pytest.approx(0)
        assert point.y == pytest.approx(50)

    def test_relative_position_clamped(self, rect):
        node = Node(0, 0, Attachment(1, "top", 1.7))
        assert reanchor(node, rect) == Point(100, 0)

    def test_unknown_edge_keeps_position(self, rect):
        node = Node(7, 8, Attachment(1, "middle", 0.5))
        assert reanchor(node, rect) == Point(7, 8)

    def test_free_node_keeps_position(self, rect):
        assert reanchor(Node(7, 8), rect) == Point(7, 8)


# ============================================================
# Degenerate rooms
# ============================================================

class TestDegenerateRooms:
    def test_zero_size_rectangle_projects(self):
        room = Room(id=1, x=10, y=10, width=0, height=0)
        projection = project_edge(room, Point(10, 10))
        assert projection.edge == "left"
        assert projection.relative_position == 0.0

    def test_negative_size_rectangle_reanchors(self):
        room = Room(id=1, x=10, y=10, width=-30, height=-5)
        node = Node(0, 0, Attachment(1, "bottom", 0.5))
        assert reanchor(node, room) == Point(10, 10)

    def test_zero_radius_circle(self):
        room = Room(id=1, x=10, y=10, width=0, height=0, shape="circle")
        node = Node(0, 0, Attachment(1, "north", 0.5))
        point = reanchor(node, room)
        assert point.x == pytest.approx(10)
        assert point.y == pytest.approx(10)
