"""Tests for core/document.py: ids, CRUD, cascades and attachment upkeep."""
import pytest

from mapplanner.core.document import MapDocument
from mapplanner.core.model import Attachment, Hallway, Node, Point, Room, Wall
from mapplanner.engine.validators import InvalidOperation, ValidationWarning
from mapplanner.geom.routing import is_continuous, is_orthogonal


# ============================================================
# Id allocation
# ============================================================

class TestIds:
    def test_next_id_after_bulk_load(self):
        document = MapDocument()
        for room_id in (1, 3, 5):
            document.add_room(Room(id=room_id, x=0, y=0, width=40, height=40))
        for hallway_id in (2, 4):
            document.add_hallway(Hallway(id=hallway_id))
        assert document.recompute_id_counter() == 6
        assert document.next_id == 6

    def test_empty_document(self):
        document = MapDocument()
        assert document.recompute_id_counter() == 1

    def test_room_owned_walls_count(self, sample_document):
        sample_document.walls.clear()
        sample_document.standalone_markers.clear()
        sample_document.standalone_labels.clear()
        # Wall 6 lives inside room 3
        assert sample_document.recompute_id_counter() == 7

    def test_non_numeric_ids_ignored(self):
        document = MapDocument()
        document.add_room(Room(id="legacy", x=0, y=0, width=40, height=40))
        document.add_room(Room(id=4, x=0, y=0, width=40, height=40))
        assert document.recompute_id_counter() == 5

    def test_allocate_id_advances(self, sample_document):
        assert sample_document.allocate_id() == 10
        assert sample_document.allocate_id() == 11
        assert sample_document.next_id == 12

    def test_created_entities_get_fresh_ids(self, sample_document):
        room = sample_document.create_room(0, 300, 60, 360)
        label = sample_document.create_standalone_label("Here", 5, 5)
        assert (room.id, label.id) == (10, 11)


# ============================================================
# Creation
# ============================================================

class TestCreateRoom:
    def test_corners_normalized(self):
        document = MapDocument()
        room = document.create_room(100, 80, 20, 10)
        assert (room.x, room.y, room.width, room.height) == (20, 10, 80, 70)
        assert room.shape == "rectangle"
        assert document.rooms == [room]

    def test_too_small(self):
        document = MapDocument()
        with pytest.raises(ValidationWarning, match="minimum size"):
            document.create_room(0, 0, 10, 100)
        assert document.rooms == []
        assert document.next_id == 1

    def test_circle_from_center_and_edge(self):
        document = MapDocument()
        room = document.create_circle_room(100, 100, 130, 140)
        assert (room.x, room.y, room.width, room.height) == (50, 50, 100, 100)
        assert room.radius == 50
        assert room.center == Point(100, 100)

    def test_zero_radius_circle(self):
        document = MapDocument()
        with pytest.raises(ValidationWarning):
            document.create_circle_room(10, 10, 10, 10)


class TestCreatePaths:
    def test_hallway_gets_door_markers(self):
        document = MapDocument()
        hallway = document.create_hallway([Node(0, 0), Node(30, 40)])
        assert hallway.start_marker.type == "door"
        assert hallway.end_marker.type == "door"
        assert len(hallway.segments) == 2
        assert is_orthogonal(hallway.segments)

    def test_hallway_needs_two_nodes(self):
        document = MapDocument()
        with pytest.raises(ValidationWarning, match="at least two"):
            document.create_hallway([Node(0, 0)])

    def test_wall_owned_by_room(self, sample_document):
        wall = sample_document.create_wall([Node(0, 0), Node(0, 50)], parent_room_id=1)
        assert wall in sample_document.get("room", 1).walls
        assert wall not in sample_document.walls

    def test_wall_with_missing_parent_is_standalone(self, sample_document):
        wall = Wall(id=50, nodes=[Node(0, 0), Node(5, 0)], parent_room_id=99)
        sample_document.add_wall(wall)
        assert wall in sample_document.walls
        assert wall.parent_room_id is None

    def test_attach_node_snaps_to_edge(self, sample_document):
        node = sample_document.attach_node(103, 10)
        assert node.point == Point(100, 10)
        assert node.attached_room == Attachment(1, "right", 0.2)

    def test_attach_node_free(self, sample_document):
        node = sample_document.attach_node(150, 400)
        assert node.attached_room is None
        assert node.point == Point(150, 400)


class TestRoomContents:
    def test_marker_defaults_to_terminal_at_center(self, sample_document):
        marker = sample_document.add_room_marker(3)
        assert marker.type == "terminal"
        assert (marker.x, marker.y) == (40, 40)

    def test_move_marker_clamped_to_room(self, sample_document):
        marker = sample_document.move_room_marker(1, 0, 250, -20)
        assert (marker.x, marker.y) == (100, 0)

    def test_move_missing_marker(self, sample_document):
        with pytest.raises(InvalidOperation, match="no marker"):
            sample_document.move_room_marker(1, 5, 0, 0)

    def test_room_label(self, sample_document):
        label = sample_document.add_room_label(5, "Core", 50, 50)
        assert sample_document.get("room", 5).labels == [label]

    def test_duplicate_room(self, sample_document):
        copy = sample_document.duplicate_room(3, 505, 512)
        source = sample_document.get("room", 3)
        assert copy.id == 10
        assert copy.label == "Engine (Copy)"
        assert (copy.x, copy.y) == (460, 480)
        assert (copy.width, copy.height) == (source.width, source.height)
        assert copy.walls == []
        copy.markers.append(None)
        assert None not in source.markers


# ============================================================
# Lookup and removal
# ============================================================

class TestLookup:
    def test_get_room_owned_wall(self, sample_document):
        wall = sample_document.get("wall", 6)
        assert wall.parent_room_id == 3

    def test_get_missing(self, sample_document):
        assert sample_document.get("hallway", 99) is None

    def test_unknown_kind(self, sample_document):
        with pytest.raises(InvalidOperation, match="Unknown entity kind"):
            sample_document.get("door", 1)

    def test_floors(self, sample_document):
        assert sample_document.floors() == [1, 2]
        assert [e.id for e in sample_document.entities_on_floor(2)] == [7]


class TestRemove:
    def test_room_cascades_owned_content(self, sample_document):
        sample_document.remove("room", 3)
        assert sample_document.get("room", 3) is None
        assert sample_document.get("wall", 6) is None

    def test_room_leaves_attached_hallways(self, sample_document):
        sample_document.remove("room", 5)
        hallway = sample_document.get("hallway", 4)
        assert hallway is not None
        assert hallway.nodes[1].attached_room.room_id == 5
        assert sample_document.stale_attachments() == [(hallway, 1)]

    def test_room_owned_wall(self, sample_document):
        sample_document.remove("wall", 6)
        assert sample_document.get("room", 3).walls == []

    def test_standalone_entities(self, sample_document):
        sample_document.remove("standaloneMarker", 8)
        sample_document.remove("standaloneLabel", 9)
        assert sample_document.standalone_markers == []
        assert sample_document.standalone_labels == []

    def test_unknown_kind(self, sample_document):
        with pytest.raises(InvalidOperation):
            sample_document.remove("portal", 1)

    def test_id_not_reused(self, sample_document):
        sample_document.remove("standaloneLabel", 9)
        assert sample_document.allocate_id() == 10


# ============================================================
# Attachment upkeep
# ============================================================

class TestRoomMoved:
    def test_attached_nodes_follow(self, sample_document):
        sample_document.move_room(3, 220, 100)
        main = sample_document.get("hallway", 2)
        secret = sample_document.get("hallway", 4)
        assert main.nodes[1].point == Point(220, 140)
        assert secret.nodes[0].point == Point(300, 140)
        # Nodes attached to other rooms stay put
        assert main.nodes[0].point == Point(100, 25)

    def test_segments_rebuilt(self, sample_document):
        sample_document.move_room(3, 220, 100)
        main = sample_document.get("hallway", 2)
        assert is_orthogonal(main.segments)
        assert is_continuous(main.segments)
        assert main.segments[0].start == Point(100, 25)
        assert main.segments[-1].end == Point(220, 140)

    def test_returns_updated_entities(self, sample_document):
        room = sample_document.get("room", 1)
        updated = sample_document.on_room_moved(room)
        assert [e.id for e in updated] == [2]

    def test_idempotent(self, sample_document):
        room = sample_document.get("room", 3)
        room.x += 35
        sample_document.on_room_moved(room)
        first = sample_document.snapshot()
        sample_document.on_room_moved(room)
        assert sample_document == first

    def test_resize_circle(self, sample_document):
        sample_document.resize_room(5, 200, 200)
        secret = sample_document.get("hallway", 4)
        assert secret.nodes[1].x == pytest.approx(400)
        assert secret.nodes[1].y == pytest.approx(100)

    def test_resize_too_small_leaves_room(self, sample_document):
        with pytest.raises(ValidationWarning):
            sample_document.resize_room(1, 5, 5)
        room = sample_document.get("room", 1)
        assert (room.width, room.height) == (100, 50)

    def test_wall_nodes_follow(self, sample_document):
        wall = sample_document.create_wall(
            [sample_document.attach_node(0, 40), Node(-50, 40)]
        )
        sample_document.move_room(1, 0, 100)
        assert wall.nodes[0].point == Point(0, 140)

    def test_stale_attachment_untouched_by_move(self, sample_document):
        sample_document.remove("room", 5)
        sample_document.move_room(3, 200, 60)
        secret = sample_document.get("hallway", 4)
        assert secret.nodes[1].point == Point(400, 50)


# ============================================================
# Bulk replacement
# ============================================================

class TestReplace:
    def test_snapshot_is_independent(self, sample_document):
        snapshot = sample_document.snapshot()
        sample_document.move_room(1, 500, 500)
        assert snapshot.get("room", 1).x == 0
        assert snapshot != sample_document

    def test_replace_with_recomputes_counter(self, sample_document):
        live = MapDocument()
        live.create_room(0, 0, 50, 50)
        live.replace_with(sample_document)
        assert live.map_name == "Deck 7"
        assert live.next_id == 10
        assert [room.id for room in live.rooms] == [1, 3, 5]
