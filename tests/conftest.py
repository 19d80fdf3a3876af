"""Shared test fixtures for map document tests."""
import pytest

from mapplanner.core.document import MapDocument
from mapplanner.core.model import (
    Attachment,
    EndpointMarker,
    Hallway,
    Node,
    Room,
    RoomLabel,
    RoomMarker,
    StandaloneLabel,
    StandaloneMarker,
    Wall,
)
from mapplanner.geom.routing import rebuild_segments
from mapplanner.io.parser import save_map


def _hallway(hallway_id, nodes, **fields):
    return Hallway(id=hallway_id, segments=rebuild_segments(nodes), nodes=nodes, **fields)


@pytest.fixture
def sample_document():
    """Three rooms (ids 1, 3, 5) joined by two hallways (ids 2, 4).

    Room 1 is a 100x50 rectangle at the origin, room 3 an 80x80 rectangle
    at x=200 owning wall 6, room 5 a circle of radius 50 at x=400.
    Hallway 2 runs from room 1's right edge to room 3's left edge;
    hallway 4 (secret) from room 3's right edge to room 5's west point.
    """
    document = MapDocument(map_name="Deck 7")

    document.add_room(
        Room(
            id=1, x=0, y=0, width=100, height=50, label="Bridge",
            markers=[RoomMarker("terminal", 50, 25)],
            labels=[RoomLabel("Captain", 10, 10)],
        )
    )
    document.add_room(
        Room(
            id=3, x=200, y=0, width=80, height=80, label="Engine", color="#FF0000",
            walls=[
                Wall(
                    id=6,
                    nodes=[Node(200, 0), Node(280, 0)],
                    segments=rebuild_segments([Node(200, 0), Node(280, 0)]),
                    is_dotted=True,
                    parent_room_id=3,
                )
            ],
        )
    )
    document.add_room(
        Room(id=5, x=400, y=0, width=100, height=100, shape="circle", label="Reactor",
             label_visible=False)
    )

    document.add_hallway(
        _hallway(
            2,
            [
                Node(100, 25, Attachment(1, "right", 0.5)),
                Node(200, 40, Attachment(3, "left", 0.5)),
            ],
            label="Main corridor",
            start_marker=EndpointMarker("door"),
            end_marker=EndpointMarker("door"),
        )
    )
    document.add_hallway(
        _hallway(
            4,
            [
                Node(280, 40, Attachment(3, "right", 0.5)),
                Node(400, 50, Attachment(5, "west", 0.5)),
            ],
            width=8,
            is_secret=True,
            start_marker=EndpointMarker("grate", rotation=90),
        )
    )

    nodes = [Node(0, 200), Node(100, 200)]
    document.add_wall(Wall(id=7, nodes=nodes, segments=rebuild_segments(nodes), floor=2))
    document.add_standalone_marker(StandaloneMarker(id=8, type="hazard", x=150, y=150, label="Leak"))
    document.add_standalone_label(StandaloneLabel(id=9, text="Sector C", x=300, y=300))

    document.recompute_id_counter()
    return document


@pytest.fixture
def map_file(tmp_path, sample_document):
    """Path of the sample document saved as expanded JSON."""
    path = tmp_path / "deck7.json"
    save_map(sample_document, str(path))
    return path
