"""Map document: entity collections, id allocation and edit operations.

A :class:`MapDocument` owns the rooms, hallways, standalone walls,
standalone markers and standalone labels of one map. It hands out ids,
applies removal cascades, and keeps hallway and wall nodes glued to the
rooms they are attached to when those rooms move.

Attachments are weak: a room does not know which nodes point at it, and
removing a room leaves those nodes in place with a stale room id. Stale
attachments are reported by :meth:`MapDocument.stale_attachments` but
never repaired automatically.
"""

from __future__ import annotations

import copy
import logging
import math
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from ..config import (
    CORRIDOR_WIDTH,
    DEFAULT_MAP_NAME,
    EDGE_CLICK_THRESHOLD,
    SCHEMA_VERSION,
)
from ..engine.validators import (
    InvalidOperation,
    validate_circle_radius,
    validate_nodes,
    validate_room_size,
)
from ..geom.attach import project_edge, reanchor
from ..geom.hittest import snap_to_grid
from ..geom.routing import rebuild_segments
from .model import (
    EndpointMarker,
    Entity,
    Hallway,
    Node,
    Point,
    Room,
    RoomLabel,
    RoomMarker,
    StandaloneLabel,
    StandaloneMarker,
    Wall,
    build_entity,
)

LOGGER = logging.getLogger(__name__)

PathEntity = Union[Hallway, Wall]


class MapDocument:
    """A complete map.

    Attributes:
        version: Schema version the document was loaded from or created at.
        map_name: Human-readable map name.
        rooms: Rooms, in drawing order.
        hallways: Hallways, in drawing order.
        walls: Standalone walls (room-owned walls live in ``Room.walls``).
        standalone_markers: Markers not owned by a room.
        standalone_labels: Labels not owned by a room.
    """

    def __init__(self, map_name: str = DEFAULT_MAP_NAME, version: str = SCHEMA_VERSION):
        self.version = version
        self.map_name = map_name
        self.rooms: List[Room] = []
        self.hallways: List[Hallway] = []
        self.walls: List[Wall] = []
        self.standalone_markers: List[StandaloneMarker] = []
        self.standalone_labels: List[StandaloneLabel] = []
        self._next_id = 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MapDocument):
            return NotImplemented
        return (
            self.version == other.version
            and self.map_name == other.map_name
            and self.rooms == other.rooms
            and self.hallways == other.hallways
            and self.walls == other.walls
            and self.standalone_markers == other.standalone_markers
            and self.standalone_labels == other.standalone_labels
        )

    def __repr__(self) -> str:
        return (
            f"MapDocument(map_name={self.map_name!r}, rooms={len(self.rooms)}, "
            f"hallways={len(self.hallways)}, walls={len(self.walls)}, "
            f"markers={len(self.standalone_markers)}, labels={len(self.standalone_labels)})"
        )

    # ------------------------------------------------------------------ #
    # Id allocation
    # ------------------------------------------------------------------ #
    @property
    def next_id(self) -> int:
        return self._next_id

    def allocate_id(self) -> int:
        """Return the next unused id and advance the counter."""
        allocated = self._next_id
        self._next_id += 1
        return allocated

    def recompute_id_counter(self) -> int:
        """Reset the id counter to one more than the largest id in use.

        Must be called after every bulk load. Non-numeric and non-finite ids
        are ignored.

        Returns:
            The new value of the counter.
        """
        max_id = 0
        for entity in self.iter_entities():
            entity_id = entity.id
            if isinstance(entity_id, bool) or not isinstance(entity_id, (int, float)):
                continue
            if not math.isfinite(entity_id):
                continue
            max_id = max(max_id, int(math.floor(entity_id)))

        self._next_id = max_id + 1
        LOGGER.debug("Id counter recomputed: next id is %d", self._next_id)
        return self._next_id

    # ------------------------------------------------------------------ #
    # Iteration
    # ------------------------------------------------------------------ #
    def all_walls(self) -> Iterator[Wall]:
        """Standalone walls followed by every room's owned walls."""
        yield from self.walls
        for room in self.rooms:
            yield from room.walls

    def iter_entities(self) -> Iterator[Entity]:
        yield from self.rooms
        yield from self.hallways
        yield from self.all_walls()
        yield from self.standalone_markers
        yield from self.standalone_labels

    def floors(self) -> List[int]:
        """Sorted distinct floor numbers used by any entity."""
        return sorted({entity.floor for entity in self.iter_entities()})

    def entities_on_floor(self, floor: int) -> List[Entity]:
        return [entity for entity in self.iter_entities() if entity.floor == floor]

    # ------------------------------------------------------------------ #
    # CRUD
    # ------------------------------------------------------------------ #
    def add_room(self, room: Room) -> Room:
        self.rooms.append(room)
        return room

    def add_hallway(self, hallway: Hallway) -> Hallway:
        self.hallways.append(hallway)
        return hallway

    def add_wall(self, wall: Wall) -> Wall:
        """Add a wall to its parent room, or to the standalone collection.

        A wall whose ``parent_room_id`` does not name an existing room is
        stored as a standalone wall with its parent cleared.
        """
        if wall.parent_room_id is not None:
            room = self.get("room", wall.parent_room_id)
            if room is not None:
                room.walls.append(wall)
                return wall
            LOGGER.debug(
                "Wall %s names missing parent room %s; storing as standalone",
                wall.id,
                wall.parent_room_id,
            )
            wall.parent_room_id = None
        self.walls.append(wall)
        return wall

    def add_standalone_marker(self, marker: StandaloneMarker) -> StandaloneMarker:
        self.standalone_markers.append(marker)
        return marker

    def add_standalone_label(self, label: StandaloneLabel) -> StandaloneLabel:
        self.standalone_labels.append(label)
        return label

    def add(self, entity: Entity) -> Entity:
        """Add any entity to the collection matching its kind.

        The entity's id must already be set; see :meth:`allocate_id`.
        """
        adders = {
            "room": self.add_room,
            "hallway": self.add_hallway,
            "wall": self.add_wall,
            "standaloneMarker": self.add_standalone_marker,
            "standaloneLabel": self.add_standalone_label,
        }
        return adders[entity.kind](entity)

    def get(self, kind: str, entity_id: int) -> Optional[Entity]:
        """Look up an entity by kind and id.

        Wall lookups check the standalone walls first, then every room's
        owned walls.

        Raises:
            InvalidOperation: If the kind is unknown.
        """
        if kind == "wall":
            collection: Iterator[Entity] = self.all_walls()
        else:
            collection = iter(self._collection(kind))

        for entity in collection:
            if entity.id == entity_id:
                return entity
        return None

    def remove(self, kind: str, entity_id: int) -> None:
        """Remove an entity by kind and id.

        Removing a room also removes its markers, labels and owned walls.
        Hallways and walls attached to the room are left alone; their
        attachments become stale. Removing a wall searches the standalone
        walls and every room's owned walls.

        Raises:
            InvalidOperation: If the kind is unknown.
        """
        if kind == "room":
            self.rooms = [r for r in self.rooms if r.id != entity_id]
        elif kind == "hallway":
            self.hallways = [h for h in self.hallways if h.id != entity_id]
        elif kind == "wall":
            self.walls = [w for w in self.walls if w.id != entity_id]
            for room in self.rooms:
                room.walls = [w for w in room.walls if w.id != entity_id]
        elif kind == "standaloneMarker":
            self.standalone_markers = [
                m for m in self.standalone_markers if m.id != entity_id
            ]
        elif kind == "standaloneLabel":
            self.standalone_labels = [
                label for label in self.standalone_labels if label.id != entity_id
            ]
        else:
            raise InvalidOperation(f"Unknown entity kind: {kind}")

    def _collection(self, kind: str) -> list:
        collections = {
            "room": self.rooms,
            "hallway": self.hallways,
            "wall": self.walls,
            "standaloneMarker": self.standalone_markers,
            "standaloneLabel": self.standalone_labels,
        }
        if kind not in collections:
            raise InvalidOperation(f"Unknown entity kind: {kind}")
        return collections[kind]

    def _require(self, kind: str, entity_id: int) -> Entity:
        entity = self.get(kind, entity_id)
        if entity is None:
            raise InvalidOperation(f"{kind} {entity_id} does not exist")
        return entity

    # ------------------------------------------------------------------ #
    # Creation (allocates ids, validates geometry)
    # ------------------------------------------------------------------ #
    def create_room(
        self, x1: float, y1: float, x2: float, y2: float, shape: str = "rectangle"
    ) -> Room:
        """Create a room from two opposite corners of its bounding box.

        Raises:
            ValidationWarning: If the room is smaller than the minimum size.
        """
        width = abs(x2 - x1)
        height = abs(y2 - y1)
        validate_room_size(width, height)

        room = build_entity(
            "room",
            id=self.allocate_id(),
            x=min(x1, x2),
            y=min(y1, y2),
            width=width,
            height=height,
            shape=shape,
        )
        return self.add_room(room)

    def create_circle_room(
        self, center_x: float, center_y: float, edge_x: float, edge_y: float
    ) -> Room:
        """Create a circle room from its center and a point on its edge.

        Raises:
            ValidationWarning: If the radius is zero or below the minimum.
        """
        radius = math.hypot(edge_x - center_x, edge_y - center_y)
        validate_circle_radius(radius)

        room = build_entity(
            "room",
            id=self.allocate_id(),
            x=center_x - radius,
            y=center_y - radius,
            width=radius * 2,
            height=radius * 2,
            shape="circle",
        )
        return self.add_room(room)

    def attach_node(
        self, x: float, y: float, threshold: float = EDGE_CLICK_THRESHOLD
    ) -> Node:
        """Build a node at (x, y), attaching it to the nearest room edge.

        The first room (in drawing order) with an edge within ``threshold``
        wins; the node is snapped onto that edge. Otherwise the node is
        free.
        """
        for room in self.rooms:
            projection = project_edge(room, Point(x, y), threshold)
            if projection is not None:
                return Node(
                    projection.point.x,
                    projection.point.y,
                    projection.attachment(room.id),
                )
        return Node(x, y)

    def create_hallway(
        self, nodes: Sequence[Node], width: float = CORRIDOR_WIDTH, is_secret: bool = False
    ) -> Hallway:
        """Create a hallway through the given nodes.

        New hallways get a ``door`` marker at each end.

        Raises:
            ValidationWarning: If fewer than two nodes are given.
        """
        validate_nodes(nodes)
        node_list = list(nodes)
        hallway = build_entity(
            "hallway",
            id=self.allocate_id(),
            segments=rebuild_segments(node_list),
            width=width,
            is_secret=is_secret,
            nodes=node_list,
            start_marker=EndpointMarker("door"),
            end_marker=EndpointMarker("door"),
        )
        return self.add_hallway(hallway)

    def create_wall(
        self,
        nodes: Sequence[Node],
        width: float = CORRIDOR_WIDTH,
        parent_room_id: Optional[int] = None,
        is_dotted: bool = False,
    ) -> Wall:
        """Create a wall through the given nodes.

        Raises:
            ValidationWarning: If fewer than two nodes are given.
        """
        validate_nodes(nodes)
        node_list = list(nodes)
        floor = 1
        if parent_room_id is not None:
            parent = self.get("room", parent_room_id)
            if parent is not None:
                floor = parent.floor

        wall = build_entity(
            "wall",
            id=self.allocate_id(),
            segments=rebuild_segments(node_list),
            width=width,
            nodes=node_list,
            is_dotted=is_dotted,
            parent_room_id=parent_room_id,
            floor=floor,
        )
        return self.add_wall(wall)

    def create_standalone_marker(
        self, marker_type: str, x: float, y: float, label: str = ""
    ) -> StandaloneMarker:
        marker = build_entity(
            "standaloneMarker",
            id=self.allocate_id(),
            type=marker_type,
            x=x,
            y=y,
            label=label,
        )
        return self.add_standalone_marker(marker)

    def create_standalone_label(self, text: str, x: float, y: float) -> StandaloneLabel:
        label = build_entity("standaloneLabel", id=self.allocate_id(), text=text, x=x, y=y)
        return self.add_standalone_label(label)

    def add_room_marker(
        self,
        room_id: int,
        marker_type: str = "terminal",
        x: Optional[float] = None,
        y: Optional[float] = None,
    ) -> RoomMarker:
        """Add a marker to a room, by default at the room's center."""
        room = self._require("room", room_id)
        marker = RoomMarker(
            type=marker_type,
            x=room.width / 2 if x is None else x,
            y=room.height / 2 if y is None else y,
        )
        room.markers.append(marker)
        return marker

    def move_room_marker(self, room_id: int, index: int, x: float, y: float) -> RoomMarker:
        """Move a room marker, clamping it to the room's bounds."""
        room = self._require("room", room_id)
        try:
            marker = room.markers[index]
        except IndexError:
            raise InvalidOperation(f"Room {room_id} has no marker {index}") from None

        marker.x = max(0, min(room.width, x))
        marker.y = max(0, min(room.height, y))
        return marker

    def add_room_label(self, room_id: int, text: str, x: float, y: float) -> RoomLabel:
        room = self._require("room", room_id)
        label = RoomLabel(text=text, x=x, y=y)
        room.labels.append(label)
        return label

    def duplicate_room(self, room_id: int, x: float, y: float) -> Room:
        """Paste a copy of a room centered on (x, y).

        Shape, size, label and markers are copied; owned walls and labels
        are not. The copy's top-left is snapped to the grid.
        """
        source = self._require("room", room_id)
        room = build_entity(
            "room",
            id=self.allocate_id(),
            x=snap_to_grid(x - source.width / 2),
            y=snap_to_grid(y - source.height / 2),
            width=source.width,
            height=source.height,
            shape=source.shape,
            label=f"{source.label} (Copy)" if source.label else "",
            markers=copy.deepcopy(source.markers),
            floor=source.floor,
        )
        return self.add_room(room)

    # ------------------------------------------------------------------ #
    # Attachments
    # ------------------------------------------------------------------ #
    def iter_path_entities(self) -> Iterator[PathEntity]:
        """Every hallway and every wall (standalone and room-owned)."""
        yield from self.hallways
        yield from self.all_walls()

    def find_attachments(self, room_id: int) -> List[Tuple[PathEntity, int]]:
        """Every ``(entity, node_index)`` attached to the given room."""
        attachments = []
        for entity in self.iter_path_entities():
            for index, node in enumerate(entity.nodes):
                if node.attached_room is not None and node.attached_room.room_id == room_id:
                    attachments.append((entity, index))
        return attachments

    def stale_attachments(self) -> List[Tuple[PathEntity, int]]:
        """Every ``(entity, node_index)`` attached to a room that no longer exists."""
        room_ids = {room.id for room in self.rooms}
        stale = []
        for entity in self.iter_path_entities():
            for index, node in enumerate(entity.nodes):
                if node.attached_room is not None and node.attached_room.room_id not in room_ids:
                    stale.append((entity, index))
        return stale

    def on_room_moved(self, room: Room) -> List[PathEntity]:
        """Re-derive the geometry of everything attached to a room.

        Every attached node is moved back onto its edge of the room's
        current bounds, and each affected hallway or wall has its segments
        rebuilt from its full node list. Calling this twice without an
        intervening move yields the same geometry.

        Returns:
            The hallways and walls that were updated.
        """
        updated: List[PathEntity] = []
        for entity in self.iter_path_entities():
            touched = False
            for node in entity.nodes:
                if node.attached_room is None or node.attached_room.room_id != room.id:
                    continue
                point = reanchor(node, room)
                node.x, node.y = point.x, point.y
                touched = True
            if touched:
                entity.segments = rebuild_segments(entity.nodes)
                updated.append(entity)
        return updated

    def move_room(self, room_id: int, x: float, y: float) -> Room:
        """Move a room's top-left to (x, y) and update attached paths."""
        room = self._require("room", room_id)
        room.x, room.y = x, y
        self.on_room_moved(room)
        return room

    def resize_room(self, room_id: int, width: float, height: float) -> Room:
        """Resize a room and update attached paths.

        Raises:
            ValidationWarning: If the new size is below the minimum.
        """
        room = self._require("room", room_id)
        if room.shape == "circle":
            validate_circle_radius(min(width, height) / 2)
        else:
            validate_room_size(width, height)
        room.width, room.height = width, height
        self.on_room_moved(room)
        return room

    # ------------------------------------------------------------------ #
    # Bulk replacement
    # ------------------------------------------------------------------ #
    def snapshot(self) -> "MapDocument":
        """Deep copy of the document, including the id counter."""
        return copy.deepcopy(self)

    def replace_with(self, other: "MapDocument") -> None:
        """Swap in the contents of a fully decoded document.

        This is the second half of decode-then-swap: decoders build a
        separate document and only a successful result is swapped in.
        The id counter is recomputed from the new contents.
        """
        self.version = other.version
        self.map_name = other.map_name
        self.rooms = other.rooms
        self.hallways = other.hallways
        self.walls = other.walls
        self.standalone_markers = other.standalone_markers
        self.standalone_labels = other.standalone_labels
        self.recompute_id_counter()
        LOGGER.debug("Document replaced: %r", self)

