"""Editing operations for map documents.

Each operation is a small object with a ``precheck`` and an ``apply``
step. Operations are looked up by name from a registry so that edits can
be described as plain dictionaries (e.g. loaded from JSON) and replayed.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..config import CORRIDOR_WIDTH, EDGE_CLICK_THRESHOLD, SECRET_PASSAGE_WIDTH
from ..core.document import MapDocument
from ..core.model import Entity, Node
from .validators import InvalidOperation


class Operation(Protocol):
    """Protocol for map editing operations.

    All operations must implement this interface to be compatible
    with the operation registry and :func:`mapplanner.engine.api.apply`.
    """

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        """Validate that the operation can be applied to the document.

        Args:
            document: The document to validate against.
            **kwargs: Operation-specific parameters.

        Returns:
            True if the operation can be applied.

        Raises:
            InvalidOperation: If the operation cannot be applied.
        """
        ...

    def apply(self, document: MapDocument, **kwargs: Any) -> Optional[Entity]:
        """Apply the operation to the document in place.

        Args:
            document: The document to modify.
            **kwargs: Operation-specific parameters.

        Returns:
            The created or modified entity, if any.
        """
        ...


def _require_room(document: MapDocument, room: int):
    found = document.get("room", room)
    if found is None:
        raise InvalidOperation(f"Room {room} does not exist")
    return found


def _require_numbers(
    kwargs: Dict[str, Any], keys: Sequence[str], operation: str, allow_none: bool = False
) -> None:
    """Check that every given parameter present in ``kwargs`` is a number."""
    for key in keys:
        if key not in kwargs:
            continue
        value = kwargs[key]
        if value is None and allow_none:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidOperation(f"{operation}: '{key}' must be a number, got {value!r}")


def _nodes_from_points(
    document: MapDocument, points: Sequence[Sequence[float]], attach: bool
) -> List[Node]:
    if len(points) < 2:
        raise InvalidOperation(f"A path needs at least 2 points, got {len(points)}")
    nodes = []
    for point in points:
        try:
            x, y = float(point[0]), float(point[1])
        except (TypeError, ValueError, IndexError, KeyError) as e:
            raise InvalidOperation(f"Invalid point {point!r}: {e}") from e
        if attach:
            nodes.append(document.attach_node(x, y, EDGE_CLICK_THRESHOLD))
        else:
            nodes.append(Node(x, y))
    return nodes


class AddRoomOp:
    """Create a room from two opposite corners of its bounding box.

    Parameters:
        x1, y1, x2, y2: Corner coordinates.
        shape: ``"rectangle"`` (default) or ``"circle"``.
    """

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        shape = kwargs.get("shape", "rectangle")
        if shape not in ("rectangle", "circle"):
            raise InvalidOperation(f"Unknown room shape: {shape}")
        for key in ("x1", "y1", "x2", "y2"):
            if key not in kwargs:
                raise InvalidOperation(f"add_room requires '{key}'")
        _require_numbers(kwargs, ("x1", "y1", "x2", "y2"), "add_room")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Entity:
        return document.create_room(
            kwargs["x1"],
            kwargs["y1"],
            kwargs["x2"],
            kwargs["y2"],
            shape=kwargs.get("shape", "rectangle"),
        )


class AddCircleRoomOp:
    """Create a circle room from its center and a point on its edge."""

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        for key in ("cx", "cy", "ex", "ey"):
            if key not in kwargs:
                raise InvalidOperation(f"add_circle_room requires '{key}'")
        _require_numbers(kwargs, ("cx", "cy", "ex", "ey"), "add_circle_room")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Entity:
        return document.create_circle_room(
            kwargs["cx"], kwargs["cy"], kwargs["ex"], kwargs["ey"]
        )


class AddHallwayOp:
    """Create a hallway through a list of ``[x, y]`` points.

    Points near a room edge are attached to that room. Secret passages
    default to a narrower width.
    """

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        points = kwargs.get("points") or []
        if not isinstance(points, list) or len(points) < 2:
            raise InvalidOperation("add_hallway requires a list of at least 2 points")
        _require_numbers(kwargs, ("width",), "add_hallway")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Entity:
        nodes = _nodes_from_points(document, kwargs["points"], attach=True)
        is_secret = bool(kwargs.get("is_secret", False))
        default_width = SECRET_PASSAGE_WIDTH if is_secret else CORRIDOR_WIDTH
        return document.create_hallway(
            nodes,
            width=kwargs.get("width", default_width),
            is_secret=is_secret,
        )


class AddWallOp:
    """Create a wall through a list of ``[x, y]`` points.

    With ``room`` set the wall is owned by that room.
    """

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        points = kwargs.get("points") or []
        if not isinstance(points, list) or len(points) < 2:
            raise InvalidOperation("add_wall requires a list of at least 2 points")
        _require_numbers(kwargs, ("width",), "add_wall")
        if kwargs.get("room") is not None:
            _require_room(document, kwargs["room"])
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Entity:
        nodes = _nodes_from_points(document, kwargs["points"], attach=True)
        return document.create_wall(
            nodes,
            width=kwargs.get("width", CORRIDOR_WIDTH),
            parent_room_id=kwargs.get("room"),
            is_dotted=bool(kwargs.get("is_dotted", False)),
        )


class MoveRoomOp:
    """Move a room's top-left corner; attached paths follow."""

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        _require_room(document, kwargs.get("room"))
        if "x" not in kwargs or "y" not in kwargs:
            raise InvalidOperation("move_room requires 'x' and 'y'")
        _require_numbers(kwargs, ("x", "y"), "move_room")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Entity:
        return document.move_room(kwargs["room"], kwargs["x"], kwargs["y"])


class ResizeRoomOp:
    """Resize a room; attached paths follow."""

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        _require_room(document, kwargs.get("room"))
        if "width" not in kwargs or "height" not in kwargs:
            raise InvalidOperation("resize_room requires 'width' and 'height'")
        _require_numbers(kwargs, ("width", "height"), "resize_room")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Entity:
        return document.resize_room(kwargs["room"], kwargs["width"], kwargs["height"])


class DuplicateRoomOp:
    """Paste a copy of a room centered on (x, y)."""

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        _require_room(document, kwargs.get("room"))
        _require_numbers(kwargs, ("x", "y"), "duplicate_room")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Entity:
        source = document.get("room", kwargs["room"])
        cx, cy = source.center.x, source.center.y
        return document.duplicate_room(kwargs["room"], kwargs.get("x", cx), kwargs.get("y", cy))


class AddMarkerOp:
    """Add a marker to a room, or a standalone marker when no room is given."""

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        if kwargs.get("room") is not None:
            _require_room(document, kwargs["room"])
        elif "x" not in kwargs or "y" not in kwargs:
            raise InvalidOperation("A standalone marker requires 'x' and 'y'")
        _require_numbers(kwargs, ("x", "y"), "add_marker", allow_none=True)
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Any:
        marker_type = kwargs.get("type", "terminal")
        if kwargs.get("room") is not None:
            return document.add_room_marker(
                kwargs["room"], marker_type, kwargs.get("x"), kwargs.get("y")
            )
        return document.create_standalone_marker(
            marker_type, kwargs["x"], kwargs["y"], label=kwargs.get("label", "")
        )


class MoveMarkerOp:
    """Move a room marker, clamped to the room's bounds."""

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        room = _require_room(document, kwargs.get("room"))
        index = kwargs.get("index", 0)
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidOperation(f"move_marker: 'index' must be an integer, got {index!r}")
        if not 0 <= index < len(room.markers):
            raise InvalidOperation(f"Room {room.id} has no marker {index}")
        if "x" not in kwargs or "y" not in kwargs:
            raise InvalidOperation("move_marker requires 'x' and 'y'")
        _require_numbers(kwargs, ("x", "y"), "move_marker")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Any:
        return document.move_room_marker(
            kwargs["room"], kwargs.get("index", 0), kwargs["x"], kwargs["y"]
        )


class AddLabelOp:
    """Add a text label to a room, or a standalone label when no room is given."""

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        if not isinstance(kwargs.get("text"), str):
            raise InvalidOperation("add_label requires a string 'text'")
        _require_numbers(kwargs, ("x", "y"), "add_label")
        if kwargs.get("room") is not None:
            _require_room(document, kwargs["room"])
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> Any:
        x, y = kwargs.get("x", 0), kwargs.get("y", 0)
        if kwargs.get("room") is not None:
            return document.add_room_label(kwargs["room"], kwargs["text"], x, y)
        return document.create_standalone_label(kwargs["text"], x, y)


class RemoveOp:
    """Remove an entity by kind and id.

    Removing a room also removes what it owns; hallways attached to it
    keep their (now stale) attachments.
    """

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        kind = kwargs.get("kind")
        entity_id = kwargs.get("id")
        if not isinstance(kind, str):
            raise InvalidOperation(f"remove requires a string 'kind', got {kind!r}")
        if document.get(kind, entity_id) is None:
            raise InvalidOperation(f"{kind} {entity_id} does not exist")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> None:
        document.remove(kwargs["kind"], kwargs["id"])
        return None


class RenameMapOp:
    """Set the map's name."""

    def precheck(self, document: MapDocument, **kwargs: Any) -> bool:
        if not isinstance(kwargs.get("name"), str):
            raise InvalidOperation("rename_map requires a string 'name'")
        return True

    def apply(self, document: MapDocument, **kwargs: Any) -> None:
        document.map_name = kwargs["name"]
        return None


# Operation registry
_OPERATIONS: Dict[str, Operation] = {
    "add_room": AddRoomOp(),
    "add_circle_room": AddCircleRoomOp(),
    "add_hallway": AddHallwayOp(),
    "add_wall": AddWallOp(),
    "move_room": MoveRoomOp(),
    "resize_room": ResizeRoomOp(),
    "duplicate_room": DuplicateRoomOp(),
    "add_marker": AddMarkerOp(),
    "move_marker": MoveMarkerOp(),
    "add_label": AddLabelOp(),
    "remove": RemoveOp(),
    "rename_map": RenameMapOp(),
}


def register_operation(name: str, operation: Operation) -> None:
    """Register a new operation.

    Args:
        name: Name of the operation.
        operation: The operation instance.
    """
    _OPERATIONS[name] = operation


def get_operation(name: str) -> Operation:
    """Get an operation by name.

    Args:
        name: Name of the operation.

    Returns:
        The operation instance.

    Raises:
        KeyError: If the operation is not registered.
    """
    if name not in _OPERATIONS:
        raise KeyError(f"Operation '{name}' is not registered")
    return _OPERATIONS[name]


def list_operations() -> list[str]:
    """List all registered operations.

    Returns:
        List of operation names.
    """
    return list(_OPERATIONS.keys())
