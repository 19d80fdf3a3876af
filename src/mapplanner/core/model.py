"""Core data models for map documents.

This module defines the entities of an annotated floorplan: rooms,
hallways, walls, standalone markers and standalone labels, together with
the small value types they are made of (points, segments, nodes and
room-edge attachments).

Every entity kind is a mutable dataclass with a ``kind`` discriminator.
Entities are built through the same constructors whether they come from
an editing operation or from a decoder, so there is exactly one
in-memory shape per kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Literal, Union

from ..config import CORRIDOR_WIDTH

RoomShape = Literal["rectangle", "circle"]

RECTANGLE_EDGES = ("left", "right", "top", "bottom")
COMPASS_EDGES = (
    "east",
    "southeast",
    "south",
    "southwest",
    "west",
    "northwest",
    "north",
    "northeast",
)

ROOM_MARKER_TYPES = (
    "terminal",
    "hazard",
    "loot",
    "npc",
    "door",
    "ladder",
    "window",
    "airlock",
    "elevator",
    "custom",
)
ENDPOINT_MARKER_TYPES = ("door", "grate", "none")


@dataclass(frozen=True)
class Point:
    """Represents a 2D point in plane coordinates.

    Attributes:
        x: The x-coordinate of the point.
        y: The y-coordinate of the point.
    """

    x: float
    y: float


@dataclass(frozen=True)
class Segment:
    """Represents one straight piece of a hallway or wall.

    Attributes:
        x1: X-coordinate of the start point.
        y1: Y-coordinate of the start point.
        x2: X-coordinate of the end point.
        y2: Y-coordinate of the end point.
    """

    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def start(self) -> Point:
        return Point(self.x1, self.y1)

    @property
    def end(self) -> Point:
        return Point(self.x2, self.y2)

    @property
    def is_axis_aligned(self) -> bool:
        """True when the segment is horizontal or vertical.

        A zero-length segment, as routed between coincident points, is both.
        """
        return self.x1 == self.x2 or self.y1 == self.y2


@dataclass
class Attachment:
    """Weak reference binding a node to a room edge.

    The room is referenced by id only and looked up on demand, so removing
    the room leaves a dangling id rather than a dangling object.

    Attributes:
        room_id: ID of the room the node is attached to.
        edge: Edge name (``left``/``right``/``top``/``bottom`` for
            rectangles, a compass direction for circles).
        relative_position: Position along the edge normalized to [0, 1].
    """

    room_id: int
    edge: str
    relative_position: float = 0.5


@dataclass
class Node:
    """Ordered waypoint of a hallway or wall.

    Attributes:
        x: Absolute x-coordinate.
        y: Absolute y-coordinate.
        attached_room: Room-edge attachment, if the node is glued to a room.
    """

    x: float
    y: float
    attached_room: Attachment | None = None

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass
class RoomMarker:
    """Marker placed inside a room, positioned relative to the room's top-left."""

    type: str
    x: float
    y: float
    visible: bool = True
    label: str = ""
    rotation: float = 0


@dataclass
class RoomLabel:
    """Free text placed inside a room, positioned relative to the room's top-left."""

    text: str
    x: float
    y: float
    visible: bool = True


@dataclass
class EndpointMarker:
    """Marker anchored to the first or last node of a hallway."""

    type: str
    visible: bool = True
    rotation: float = 0


@dataclass
class Wall:
    """Represents a wall drawn as a polyline of axis-aligned segments.

    Attributes:
        id: Unique identifier within the wall collection.
        segments: Axis-aligned segments derived from ``nodes``.
        width: Stroke width.
        label: Optional label.
        nodes: Ordered waypoints, optionally attached to room edges.
        visible: Whether the wall is shown to players.
        is_dotted: Whether the wall is rendered as a dotted line.
        parent_room_id: ID of the owning room, or None for standalone walls.
        floor: Level the wall belongs to.
    """

    kind: ClassVar[str] = "wall"

    id: int
    segments: list[Segment] = field(default_factory=list)
    width: float = CORRIDOR_WIDTH
    label: str = ""
    nodes: list[Node] = field(default_factory=list)
    visible: bool = True
    is_dotted: bool = False
    parent_room_id: int | None = None
    floor: int = 1


@dataclass
class Room:
    """Represents a room.

    ``x``/``y`` is the top-left of the bounding box. For circle rooms the
    radius is derived from the bounding box and is never stored, so it
    cannot disagree with ``width``/``height``.

    Attributes:
        id: Unique identifier within the room collection.
        x: Left edge of the bounding box.
        y: Top edge of the bounding box.
        width: Bounding box width.
        height: Bounding box height.
        shape: ``rectangle`` or ``circle``.
        label: Room name.
        label_visible: Whether the room name is drawn.
        visible: Whether the room is shown to players.
        color: Optional fill color override (e.g. "#FF0000").
        markers: Markers owned by the room (relative positions).
        labels: Free labels owned by the room (relative positions).
        walls: Walls owned by the room (absolute positions).
        floor: Level the room belongs to.
    """

    kind: ClassVar[str] = "room"

    id: int
    x: float
    y: float
    width: float
    height: float
    shape: RoomShape = "rectangle"
    label: str = ""
    label_visible: bool = True
    visible: bool = True
    color: str | None = None
    markers: list[RoomMarker] = field(default_factory=list)
    labels: list[RoomLabel] = field(default_factory=list)
    walls: list[Wall] = field(default_factory=list)
    floor: int = 1

    @property
    def radius(self) -> float | None:
        """Circle radius, ``min(width, height) / 2``; None for rectangles."""
        if self.shape != "circle":
            return None
        return max(min(self.width, self.height), 0) / 2

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class Hallway:
    """Represents a hallway (corridor or secret passage).

    Attributes:
        id: Unique identifier within the hallway collection.
        segments: Axis-aligned segments derived from ``nodes``.
        width: Stroke width.
        label: Optional label.
        is_secret: Rendering flag for secret passages; no geometric effect.
        visible: Whether the hallway is shown to players.
        nodes: Ordered waypoints, optionally attached to room edges.
        start_marker: Marker at the first node, if any.
        end_marker: Marker at the last node, if any.
        markers: Markers placed along the hallway (absolute positions).
        floor: Level the hallway belongs to.
    """

    kind: ClassVar[str] = "hallway"

    id: int
    segments: list[Segment] = field(default_factory=list)
    width: float = CORRIDOR_WIDTH
    label: str = ""
    is_secret: bool = False
    visible: bool = True
    nodes: list[Node] = field(default_factory=list)
    start_marker: EndpointMarker | None = None
    end_marker: EndpointMarker | None = None
    markers: list[RoomMarker] = field(default_factory=list)
    floor: int = 1


@dataclass
class StandaloneMarker:
    """Marker at an absolute position, not owned by any room."""

    kind: ClassVar[str] = "standaloneMarker"

    id: int
    type: str
    x: float
    y: float
    visible: bool = True
    label: str = ""
    rotation: float = 0
    floor: int = 1


@dataclass
class StandaloneLabel:
    """Text label at an absolute position, not owned by any room."""

    kind: ClassVar[str] = "standaloneLabel"

    id: int
    text: str
    x: float
    y: float
    visible: bool = True
    floor: int = 1


Entity = Union[Room, Hallway, Wall, StandaloneMarker, StandaloneLabel]

ENTITY_TYPES: dict[str, type] = {
    "room": Room,
    "hallway": Hallway,
    "wall": Wall,
    "standaloneMarker": StandaloneMarker,
    "standaloneLabel": StandaloneLabel,
}


def build_entity(kind: str, **fields) -> Entity:
    """Build an entity of the given kind.

    This is the single construction path used by editing operations and
    by every decoder.

    Args:
        kind: One of the keys of ``ENTITY_TYPES``.
        **fields: Constructor fields for the entity dataclass.

    Returns:
        The new entity.

    Raises:
        ValueError: If the kind is unknown.
    """
    try:
        entity_type = ENTITY_TYPES[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {kind}") from None
    return entity_type(**fields)
