"""Parser for expanded map JSON files.

This module converts between map documents and the expanded JSON form,
a plain object that mirrors the entity model field by field:

    {"version", "mapName", "rooms", "hallways", "walls",
     "standaloneMarkers", "standaloneLabels"}

Older files that keep hallways in separate ``corridors`` and
``secretPassages`` arrays are folded into the unified hallway list.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import CORRIDOR_WIDTH, DEFAULT_MAP_NAME, SCHEMA_VERSION
from ..core.document import MapDocument
from ..core.model import (
    Attachment,
    EndpointMarker,
    Hallway,
    Node,
    Room,
    RoomLabel,
    RoomMarker,
    Segment,
    StandaloneLabel,
    StandaloneMarker,
    Wall,
    build_entity,
)

LOGGER = logging.getLogger(__name__)


def _text(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def _flag(value: Any, default: bool) -> bool:
    return default if value is None else bool(value)


def _number(value: Any, default: float = 0) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"Expected a finite number, got {value!r}")
    return value


def _id(value: Any) -> Any:
    # Ids are usually ints but any JSON scalar is kept as-is
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"Expected a finite id, got {value!r}")
    return value


# --------------------------------------------------------------------------- #
# Shared pieces (also used by the compact codec)
# --------------------------------------------------------------------------- #
def segment_to_dict(segment: Segment) -> Dict[str, float]:
    return {"x1": segment.x1, "y1": segment.y1, "x2": segment.x2, "y2": segment.y2}


def segment_from_dict(data: Dict[str, Any]) -> Segment:
    return Segment(
        _number(data["x1"]), _number(data["y1"]), _number(data["x2"]), _number(data["y2"])
    )


def node_to_dict(node: Node) -> Dict[str, Any]:
    """Convert a node to its JSON object (shared by expanded and compact forms)."""
    data: Dict[str, Any] = {"x": node.x, "y": node.y}
    if node.attached_room is not None:
        data["attachedRoom"] = {
            "roomId": node.attached_room.room_id,
            "edge": node.attached_room.edge,
            "relativePosition": node.attached_room.relative_position,
        }
    return data


def node_from_dict(data: Dict[str, Any]) -> Node:
    """Build a node from its JSON object.

    Raises:
        ValueError: If the node is not an object or has non-numeric coordinates.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Node must be an object, got {data!r}")

    attachment = None
    attached = data.get("attachedRoom")
    if attached is not None:
        if not isinstance(attached, dict):
            raise ValueError(f"attachedRoom must be an object, got {attached!r}")
        attachment = Attachment(
            room_id=attached.get("roomId"),
            edge=_text(attached.get("edge")),
            relative_position=_number(attached.get("relativePosition"), 0.5),
        )

    return Node(_number(data.get("x")), _number(data.get("y")), attachment)


def _marker_to_dict(marker: RoomMarker) -> Dict[str, Any]:
    return {
        "type": marker.type,
        "x": marker.x,
        "y": marker.y,
        "visible": marker.visible,
        "label": marker.label,
        "rotation": marker.rotation,
    }


def _marker_from_dict(data: Dict[str, Any]) -> RoomMarker:
    return RoomMarker(
        type=_text(data.get("type"), "terminal"),
        x=_number(data.get("x")),
        y=_number(data.get("y")),
        visible=_flag(data.get("visible"), True),
        label=_text(data.get("label")),
        rotation=_number(data.get("rotation")),
    )


def _endpoint_to_dict(marker: Optional[EndpointMarker]) -> Optional[Dict[str, Any]]:
    if marker is None:
        return None
    return {"type": marker.type, "visible": marker.visible, "rotation": marker.rotation}


def _endpoint_from_dict(data: Optional[Dict[str, Any]]) -> Optional[EndpointMarker]:
    if not data:
        return None
    return EndpointMarker(
        type=_text(data.get("type"), "door"),
        visible=_flag(data.get("visible"), True),
        rotation=_number(data.get("rotation")),
    )


# --------------------------------------------------------------------------- #
# Entities
# --------------------------------------------------------------------------- #
def wall_to_dict(wall: Wall) -> Dict[str, Any]:
    return {
        "id": wall.id,
        "type": "wall",
        "segments": [segment_to_dict(s) for s in wall.segments],
        "width": wall.width,
        "label": wall.label,
        "nodes": [node_to_dict(n) for n in wall.nodes],
        "visible": wall.visible,
        "isDotted": wall.is_dotted,
        "parentRoomId": wall.parent_room_id,
        "floor": wall.floor,
    }


def wall_from_dict(data: Dict[str, Any], parent_room_id: Optional[int] = None) -> Wall:
    return build_entity(
        "wall",
        id=_id(data.get("id")),
        segments=[segment_from_dict(s) for s in data.get("segments") or []],
        width=_number(data.get("width"), CORRIDOR_WIDTH),
        label=_text(data.get("label")),
        nodes=[node_from_dict(n) for n in data.get("nodes") or []],
        visible=_flag(data.get("visible"), True),
        is_dotted=_flag(data.get("isDotted"), False),
        parent_room_id=parent_room_id if parent_room_id is not None else data.get("parentRoomId"),
        floor=int(_number(data.get("floor"), 1)),
    )


def room_to_dict(room: Room) -> Dict[str, Any]:
    data = {
        "id": room.id,
        "type": "room",
        "shape": room.shape,
        "x": room.x,
        "y": room.y,
        "width": room.width,
        "height": room.height,
        "label": room.label,
        "labelVisible": room.label_visible,
        "visible": room.visible,
        "color": room.color,
        "markers": [_marker_to_dict(m) for m in room.markers],
        "labels": [
            {"text": label.text, "x": label.x, "y": label.y, "visible": label.visible}
            for label in room.labels
        ],
        "walls": [wall_to_dict(w) for w in room.walls],
        "floor": room.floor,
    }
    if room.shape == "circle":
        data["radius"] = room.radius
    return data


def room_from_dict(data: Dict[str, Any]) -> Room:
    # radius is derived from width/height and ignored on input
    room_id = _id(data.get("id"))
    return build_entity(
        "room",
        id=room_id,
        x=_number(data.get("x")),
        y=_number(data.get("y")),
        width=_number(data.get("width")),
        height=_number(data.get("height")),
        shape=_text(data.get("shape"), "rectangle") or "rectangle",
        label=_text(data.get("label")),
        label_visible=_flag(data.get("labelVisible"), True),
        visible=_flag(data.get("visible"), True),
        color=data.get("color"),
        markers=[_marker_from_dict(m) for m in data.get("markers") or []],
        labels=[
            RoomLabel(
                text=_text(label.get("text")),
                x=_number(label.get("x")),
                y=_number(label.get("y")),
                visible=_flag(label.get("visible"), True),
            )
            for label in data.get("labels") or []
        ],
        walls=[wall_from_dict(w, parent_room_id=room_id) for w in data.get("walls") or []],
        floor=int(_number(data.get("floor"), 1)),
    )


def hallway_to_dict(hallway: Hallway) -> Dict[str, Any]:
    return {
        "id": hallway.id,
        "type": "hallway",
        "segments": [segment_to_dict(s) for s in hallway.segments],
        "width": hallway.width,
        "label": hallway.label,
        "isSecret": hallway.is_secret,
        "visible": hallway.visible,
        "nodes": [node_to_dict(n) for n in hallway.nodes],
        "startMarker": _endpoint_to_dict(hallway.start_marker),
        "endMarker": _endpoint_to_dict(hallway.end_marker),
        "markers": [_marker_to_dict(m) for m in hallway.markers],
        "floor": hallway.floor,
    }


def hallway_from_dict(data: Dict[str, Any], is_secret: Optional[bool] = None) -> Hallway:
    """Build a hallway from its expanded object.

    Args:
        data: The hallway object.
        is_secret: Overrides the object's own flag (used for legacy arrays).
    """
    return build_entity(
        "hallway",
        id=_id(data.get("id")),
        segments=[segment_from_dict(s) for s in data.get("segments") or []],
        width=_number(data.get("width"), CORRIDOR_WIDTH),
        label=_text(data.get("label")),
        is_secret=_flag(data.get("isSecret"), False) if is_secret is None else is_secret,
        visible=_flag(data.get("visible"), True),
        nodes=[node_from_dict(n) for n in data.get("nodes") or []],
        start_marker=_endpoint_from_dict(data.get("startMarker")),
        end_marker=_endpoint_from_dict(data.get("endMarker")),
        markers=[_marker_from_dict(m) for m in data.get("markers") or []],
        floor=int(_number(data.get("floor"), 1)),
    )


def standalone_marker_to_dict(marker: StandaloneMarker) -> Dict[str, Any]:
    return {
        "id": marker.id,
        "type": marker.type,
        "x": marker.x,
        "y": marker.y,
        "visible": marker.visible,
        "label": marker.label,
        "rotation": marker.rotation,
        "floor": marker.floor,
    }


def standalone_marker_from_dict(data: Dict[str, Any]) -> StandaloneMarker:
    return build_entity(
        "standaloneMarker",
        id=_id(data.get("id")),
        type=_text(data.get("type"), "custom"),
        x=_number(data.get("x")),
        y=_number(data.get("y")),
        visible=_flag(data.get("visible"), True),
        label=_text(data.get("label")),
        rotation=_number(data.get("rotation")),
        floor=int(_number(data.get("floor"), 1)),
    )


def standalone_label_to_dict(label: StandaloneLabel) -> Dict[str, Any]:
    return {
        "id": label.id,
        "type": "standaloneLabel",
        "text": label.text,
        "x": label.x,
        "y": label.y,
        "visible": label.visible,
        "floor": label.floor,
    }


def standalone_label_from_dict(data: Dict[str, Any]) -> StandaloneLabel:
    return build_entity(
        "standaloneLabel",
        id=_id(data.get("id")),
        text=_text(data.get("text")),
        x=_number(data.get("x")),
        y=_number(data.get("y")),
        visible=_flag(data.get("visible"), True),
        floor=int(_number(data.get("floor"), 1)),
    )


# --------------------------------------------------------------------------- #
# Documents
# --------------------------------------------------------------------------- #
def has_legacy_paths(data: Dict[str, Any]) -> bool:
    """Whether a payload uses the ``corridors``/``secretPassages`` layout."""
    return "hallways" not in data and ("corridors" in data or "secretPassages" in data)


def fold_legacy_paths(data: Dict[str, Any]) -> List[Hallway]:
    """Fold legacy corridor and secret passage arrays into hallways.

    Corridors come first, then secret passages; the secret flag is set
    from the source array.
    """
    hallways = [hallway_from_dict(c, is_secret=False) for c in data.get("corridors") or []]
    hallways.extend(
        hallway_from_dict(s, is_secret=True) for s in data.get("secretPassages") or []
    )
    LOGGER.debug("Folded %d legacy corridors/passages into hallways", len(hallways))
    return hallways


def document_to_dict(document: MapDocument) -> Dict[str, Any]:
    """Convert a document to the expanded JSON form."""
    return {
        "version": SCHEMA_VERSION,
        "mapName": document.map_name,
        "rooms": [room_to_dict(r) for r in document.rooms],
        "hallways": [hallway_to_dict(h) for h in document.hallways],
        "walls": [wall_to_dict(w) for w in document.walls],
        "standaloneMarkers": [standalone_marker_to_dict(m) for m in document.standalone_markers],
        "standaloneLabels": [standalone_label_to_dict(label) for label in document.standalone_labels],
    }


def _section(data: Dict[str, Any], key: str) -> list:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    return value


def document_from_dict(data: Dict[str, Any]) -> MapDocument:
    """Build a new document from the expanded JSON form.

    The result always has its id counter recomputed.

    Raises:
        ValueError: If the data is malformed.
    """
    if not isinstance(data, dict):
        raise ValueError("Map data must be a JSON object")

    LOGGER.debug("Loading expanded map (source version %s)", data.get("version"))
    document = MapDocument(map_name=_text(data.get("mapName"), DEFAULT_MAP_NAME) or DEFAULT_MAP_NAME)

    loaders = (
        ("rooms", room_from_dict, document.add_room),
        ("walls", wall_from_dict, document.add_wall),
        ("standaloneMarkers", standalone_marker_from_dict, document.add_standalone_marker),
        ("standaloneLabels", standalone_label_from_dict, document.add_standalone_label),
    )
    for key, loader, add in loaders:
        for index, item in enumerate(_section(data, key)):
            try:
                add(loader(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid {key} entry {index}: {e}") from e

    try:
        if has_legacy_paths(data):
            document.hallways = fold_legacy_paths(data)
        else:
            document.hallways = [hallway_from_dict(h) for h in _section(data, "hallways")]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid hallway data: {e}") from e

    document.recompute_id_counter()
    return document


def load_map(path: str) -> MapDocument:
    """Load a map document from an expanded JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        The loaded document.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the JSON data is invalid or malformed.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(file_path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    return document_from_dict(data)


def import_map(document: MapDocument, path: str) -> MapDocument:
    """Replace a live document with the contents of a JSON file.

    The file is fully parsed first; the live document is only touched
    when parsing succeeds.
    """
    loaded = load_map(path)
    document.replace_with(loaded)
    return document


def save_map(document: MapDocument, output_path: str) -> None:
    """Save a document to an expanded JSON file.

    Args:
        document: The document to save.
        output_path: Path where to save the JSON file.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(document_to_dict(document), f, indent=2)
