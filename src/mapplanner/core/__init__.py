"""Core data models for map documents."""

from .model import (
    Attachment,
    EndpointMarker,
    Hallway,
    Node,
    Point,
    Room,
    RoomLabel,
    RoomMarker,
    Segment,
    StandaloneLabel,
    StandaloneMarker,
    Wall,
    build_entity,
)
from .document import MapDocument
from .topology import build_room_graph, connected_rooms

__all__ = [
    "Attachment",
    "EndpointMarker",
    "Hallway",
    "MapDocument",
    "Node",
    "Point",
    "Room",
    "RoomLabel",
    "RoomMarker",
    "Segment",
    "StandaloneLabel",
    "StandaloneMarker",
    "Wall",
    "build_entity",
    "build_room_graph",
    "connected_rooms",
]
