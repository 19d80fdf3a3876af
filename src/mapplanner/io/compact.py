"""Compact positional encoding of map documents.

The compact form is the payload of share strings. Every entity is a
fixed-order array: position, not field name, carries meaning. The
layouts have grown trailing fields across schema versions; the tables
below record, for every position, the field it holds, the default used
when the position is absent, and the version that introduced it.

Encoding always writes the newest layout. Decoding accepts any older,
shorter array and fills the missing trailing positions with defaults.
Only structurally impossible input (an entity that is not an array, a
scalar where an array is expected, a segment without exactly four
coordinates) raises :class:`FormatError`, and it does so for the whole
payload rather than for one entity.

Top-level keys: ``v`` version, ``n`` name, ``r`` rooms, ``h`` hallways,
``w`` standalone walls, ``sm`` standalone markers, ``sl`` standalone
labels.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from typing_extensions import TypedDict

from ..config import CORRIDOR_WIDTH, DEFAULT_MAP_NAME, SCHEMA_VERSION
from ..core.document import MapDocument
from ..core.model import (
    EndpointMarker,
    Hallway,
    Room,
    RoomLabel,
    RoomMarker,
    Segment,
    StandaloneLabel,
    StandaloneMarker,
    Wall,
    build_entity,
)
from .errors import FormatError
from .parser import hallway_from_dict, node_from_dict, node_to_dict

LOGGER = logging.getLogger(__name__)

LEGACY_ROOM_WALLS_UNTIL = (1, 2, 0)


class CompactDoc(TypedDict):
    """Top-level compact payload."""

    v: str
    n: str
    r: List[list]
    h: List[list]
    w: List[list]
    sm: List[list]
    sl: List[list]


@dataclass(frozen=True)
class Field:
    """One position of a compact tuple.

    Attributes:
        name: Field the position maps to.
        kind: Value kind: ``id``, ``number``, ``text``, ``flag``, ``list``,
            ``optional_text`` or ``optional_list``.
        default: Value used when the position is absent or null.
        since: Schema version that introduced the position.
    """

    name: str
    kind: str
    default: Any = None
    since: str = "1.0.0"


# --------------------------------------------------------------------------- #
# Version table
# --------------------------------------------------------------------------- #
ROOM_FIELDS = (
    Field("id", "id"),
    Field("x", "number", 0),
    Field("y", "number", 0),
    Field("width", "number", 0),
    Field("height", "number", 0),
    Field("label", "text", ""),
    Field("visible", "flag", True),
    Field("markers", "list"),
    Field("shape", "text", "rectangle", since="1.1.0"),
    Field("walls", "list", since="1.1.0"),
    Field("labels", "list", since="1.2.0"),
    Field("floor", "number", 1, since="1.2.0"),
    # Written only when they differ from the default
    Field("label_visible", "flag", True, since="1.2.0"),
    Field("color", "optional_text", None, since="1.2.0"),
)

MARKER_FIELDS = (
    Field("type", "text", "terminal"),
    Field("x", "number", 0),
    Field("y", "number", 0),
    Field("visible", "flag", True),
    Field("label", "text", ""),
    Field("rotation", "number", 0, since="1.2.0"),
)

ROOM_LABEL_FIELDS = (
    Field("text", "text", ""),
    Field("x", "number", 0),
    Field("y", "number", 0),
    Field("visible", "flag", True),
)

HALLWAY_FIELDS = (
    Field("id", "id"),
    Field("segments", "list"),
    Field("width", "number", CORRIDOR_WIDTH),
    Field("label", "text", ""),
    Field("is_secret", "flag", False),
    Field("visible", "flag", True),
    Field("nodes", "list"),
    Field("start_marker", "optional_list"),
    Field("end_marker", "optional_list"),
    Field("markers", "list", since="1.1.0"),
    Field("floor", "number", 1, since="1.2.0"),
)

ENDPOINT_FIELDS = (
    Field("type", "text", "door"),
    Field("visible", "flag", True),
    Field("rotation", "number", 0, since="1.2.0"),
)

WALL_FIELDS = (
    Field("id", "id"),
    Field("segments", "list"),
    Field("width", "number", CORRIDOR_WIDTH),
    Field("label", "text", ""),
    Field("nodes", "list"),
    Field("visible", "flag", True, since="1.1.0"),
    Field("is_dotted", "flag", False, since="1.1.0"),
    Field("floor", "number", 1, since="1.2.0"),
)

# Room-owned walls before 1.2.0 had no visible flag
LEGACY_ROOM_WALL_FIELDS = (
    Field("id", "id"),
    Field("segments", "list"),
    Field("width", "number", CORRIDOR_WIDTH),
    Field("label", "text", ""),
    Field("nodes", "list"),
    Field("is_dotted", "flag", False),
)

STANDALONE_MARKER_FIELDS = (
    Field("id", "id"),
    Field("type", "text", "custom"),
    Field("x", "number", 0),
    Field("y", "number", 0),
    Field("visible", "flag", True),
    Field("label", "text", ""),
    Field("rotation", "number", 0, since="1.2.0"),
    Field("floor", "number", 1, since="1.2.0"),
)

STANDALONE_LABEL_FIELDS = (
    Field("id", "id"),
    Field("text", "text", ""),
    Field("x", "number", 0),
    Field("y", "number", 0),
    Field("visible", "flag", True),
    Field("floor", "number", 1, since="1.2.0"),
)

LAYOUTS: Dict[str, Tuple[Field, ...]] = {
    "room": ROOM_FIELDS,
    "marker": MARKER_FIELDS,
    "roomLabel": ROOM_LABEL_FIELDS,
    "hallway": HALLWAY_FIELDS,
    "endpoint": ENDPOINT_FIELDS,
    "wall": WALL_FIELDS,
    "standaloneMarker": STANDALONE_MARKER_FIELDS,
    "standaloneLabel": STANDALONE_LABEL_FIELDS,
}

SCHEMA_VERSIONS = ("1.0.0", "1.1.0", "1.2.0")


def version_key(version: Any) -> Optional[Tuple[int, ...]]:
    """Parse ``"1.2.0"`` into ``(1, 2, 0)``; None if unparsable.

    Missing parts count as zero, so ``"1.2"`` equals ``"1.2.0"``.
    """
    try:
        parts = tuple(int(part) for part in str(version).split("."))
    except ValueError:
        return None
    return (parts + (0, 0, 0))[:3]


def layout(kind: str, version: str = SCHEMA_VERSION) -> Tuple[Field, ...]:
    """Fields of an entity tuple as written by the given schema version."""
    key = version_key(version)
    return tuple(f for f in LAYOUTS[kind] if version_key(f.since) <= key)


# --------------------------------------------------------------------------- #
# Decoding
# --------------------------------------------------------------------------- #
def _convert(field: Field, raw: Any, where: str) -> Any:
    if raw is None:
        return [] if field.kind == "list" else field.default

    if isinstance(raw, (list, dict)) and field.kind not in ("list", "optional_list"):
        raise FormatError(f"{where}: expected a scalar for '{field.name}', got {raw!r}")

    if isinstance(raw, float) and not math.isfinite(raw) and field.kind in ("id", "number"):
        raise FormatError(f"{where}: expected a finite number for '{field.name}', got {raw!r}")

    if field.kind == "id":
        return raw
    if field.kind == "number":
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise FormatError(f"{where}: expected a number for '{field.name}', got {raw!r}")
        return raw
    if field.kind in ("text", "optional_text"):
        return str(raw)
    if field.kind == "flag":
        return bool(raw)
    if field.kind == "list":
        if not isinstance(raw, list):
            raise FormatError(f"{where}: expected an array for '{field.name}', got {raw!r}")
        return raw
    if field.kind == "optional_list":
        if not raw:
            return None
        if not isinstance(raw, list):
            raise FormatError(f"{where}: expected an array for '{field.name}', got {raw!r}")
        return raw

    raise FormatError(f"{where}: unknown field kind {field.kind}")


def unpack(row: Any, fields: Tuple[Field, ...], where: str) -> Dict[str, Any]:
    """Map a positional tuple onto field names, filling absent positions.

    Positions beyond the known layout are ignored.

    Raises:
        FormatError: If ``row`` is not an array or a position holds the
            wrong kind of value.
    """
    if not isinstance(row, list):
        raise FormatError(f"{where}: expected an array, got {row!r}")

    values = {}
    for index, field in enumerate(fields):
        raw = row[index] if index < len(row) else None
        values[field.name] = _convert(field, raw, where)
    return values


def _decode_list(rows: Any, decoder: Callable[[Any, str], Any], where: str) -> list:
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise FormatError(f"{where}: expected an array, got {rows!r}")
    return [decoder(row, f"{where}[{index}]") for index, row in enumerate(rows)]


def _decode_segment(row: Any, where: str) -> Segment:
    if not isinstance(row, list) or len(row) != 4:
        raise FormatError(f"{where}: a segment needs exactly four coordinates, got {row!r}")
    for value in row:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise FormatError(f"{where}: segment coordinate {value!r} is not a number")
    return Segment(*row)


def _decode_node(row: Any, where: str):
    try:
        return node_from_dict(row)
    except ValueError as e:
        raise FormatError(f"{where}: {e}") from e


def _decode_marker(row: Any, where: str) -> RoomMarker:
    return RoomMarker(**unpack(row, MARKER_FIELDS, where))


def _decode_room_label(row: Any, where: str) -> RoomLabel:
    return RoomLabel(**unpack(row, ROOM_LABEL_FIELDS, where))


def _decode_endpoint(row: Optional[list], where: str) -> Optional[EndpointMarker]:
    if row is None:
        return None
    return EndpointMarker(**unpack(row, ENDPOINT_FIELDS, where))


def _decode_wall(
    row: Any, where: str, fields: Tuple[Field, ...] = WALL_FIELDS, parent_room_id: Any = None
) -> Wall:
    values = unpack(row, fields, where)
    values["segments"] = _decode_list(values["segments"], _decode_segment, f"{where}.segments")
    values["nodes"] = _decode_list(values["nodes"], _decode_node, f"{where}.nodes")
    values["floor"] = int(values.get("floor", 1))
    return build_entity("wall", parent_room_id=parent_room_id, **values)


def _decode_room(row: Any, where: str, legacy_walls: bool) -> Room:
    values = unpack(row, ROOM_FIELDS, where)
    room_id = values["id"]
    wall_fields = LEGACY_ROOM_WALL_FIELDS if legacy_walls else WALL_FIELDS

    values["shape"] = values["shape"] or "rectangle"
    values["markers"] = _decode_list(values["markers"], _decode_marker, f"{where}.markers")
    values["labels"] = _decode_list(values["labels"], _decode_room_label, f"{where}.labels")
    values["walls"] = _decode_list(
        values["walls"],
        lambda w, at: _decode_wall(w, at, wall_fields, parent_room_id=room_id),
        f"{where}.walls",
    )
    values["floor"] = int(values["floor"])
    return build_entity("room", **values)


def _decode_hallway(row: Any, where: str) -> Hallway:
    values = unpack(row, HALLWAY_FIELDS, where)
    values["segments"] = _decode_list(values["segments"], _decode_segment, f"{where}.segments")
    values["nodes"] = _decode_list(values["nodes"], _decode_node, f"{where}.nodes")
    values["start_marker"] = _decode_endpoint(values["start_marker"], f"{where}.startMarker")
    values["end_marker"] = _decode_endpoint(values["end_marker"], f"{where}.endMarker")
    values["markers"] = _decode_list(values["markers"], _decode_marker, f"{where}.markers")
    values["floor"] = int(values["floor"])
    return build_entity("hallway", **values)


def _decode_standalone_marker(row: Any, where: str) -> StandaloneMarker:
    values = unpack(row, STANDALONE_MARKER_FIELDS, where)
    values["floor"] = int(values["floor"])
    return build_entity("standaloneMarker", **values)


def _decode_standalone_label(row: Any, where: str) -> StandaloneLabel:
    values = unpack(row, STANDALONE_LABEL_FIELDS, where)
    values["floor"] = int(values["floor"])
    return build_entity("standaloneLabel", **values)


def _decode_legacy_paths(compact: Dict[str, Any]) -> List[Hallway]:
    """Fold ``corridors``/``secretPassages`` arrays into hallways.

    Entries may be expanded hallway objects or hallway tuples.
    """
    hallways = []
    for key, is_secret in (("corridors", False), ("secretPassages", True)):
        rows = compact.get(key) or []
        if not isinstance(rows, list):
            raise FormatError(f"{key}: expected an array, got {rows!r}")
        for index, row in enumerate(rows):
            where = f"{key}[{index}]"
            if isinstance(row, dict):
                try:
                    hallway = hallway_from_dict(row, is_secret=is_secret)
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    raise FormatError(f"{where}: {e}") from e
            else:
                hallway = _decode_hallway(row, where)
                hallway.is_secret = is_secret
            hallways.append(hallway)
    return hallways


def decode(compact: Any) -> MapDocument:
    """Decode a compact payload into a new document.

    The payload is decoded into a fresh document; nothing else is
    touched. The result has its id counter recomputed.

    Args:
        compact: Parsed compact JSON (a ``CompactDoc``).

    Returns:
        The decoded document.

    Raises:
        FormatError: If the payload is structurally impossible.
    """
    try:
        return _decode(compact)
    except FormatError as e:
        LOGGER.warning("Compact decode failed: %s", e)
        raise


def _decode(compact: Any) -> MapDocument:
    if not isinstance(compact, dict):
        raise FormatError(f"Compact map must be an object, got {type(compact).__name__}")

    source_version = compact.get("v") or "1.0.0"
    key = version_key(source_version)
    if key is None:
        LOGGER.warning("Unparsable schema version %r, decoding as %s", source_version, SCHEMA_VERSION)
        key = version_key(SCHEMA_VERSION)
    legacy_walls = key < LEGACY_ROOM_WALLS_UNTIL

    LOGGER.debug("Decoding compact map (source version %s)", source_version)

    name = compact.get("n")
    if isinstance(name, (list, dict)):
        raise FormatError(f"Map name must be a string, got {name!r}")

    document = MapDocument(map_name=str(name) if name else DEFAULT_MAP_NAME)
    document.rooms = _decode_list(
        compact.get("r"), lambda row, at: _decode_room(row, at, legacy_walls), "r"
    )

    if "h" not in compact and ("corridors" in compact or "secretPassages" in compact):
        document.hallways = _decode_legacy_paths(compact)
    else:
        document.hallways = _decode_list(compact.get("h"), _decode_hallway, "h")

    document.walls = _decode_list(compact.get("w"), _decode_wall, "w")
    document.standalone_markers = _decode_list(compact.get("sm"), _decode_standalone_marker, "sm")
    document.standalone_labels = _decode_list(compact.get("sl"), _decode_standalone_label, "sl")

    document.recompute_id_counter()
    return document


# --------------------------------------------------------------------------- #
# Encoding
# --------------------------------------------------------------------------- #
def _flag_out(value: bool) -> int:
    return 1 if value else 0


def _encode_segments(segments: List[Segment]) -> List[list]:
    return [[s.x1, s.y1, s.x2, s.y2] for s in segments]


def _encode_marker(marker: RoomMarker) -> list:
    return [
        marker.type,
        marker.x,
        marker.y,
        _flag_out(marker.visible),
        marker.label,
        marker.rotation,
    ]


def _encode_endpoint(marker: Optional[EndpointMarker]) -> Optional[list]:
    if marker is None:
        return None
    return [marker.type, _flag_out(marker.visible), marker.rotation]


def _encode_wall(wall: Wall) -> list:
    return [
        wall.id,
        _encode_segments(wall.segments),
        wall.width,
        wall.label,
        [node_to_dict(n) for n in wall.nodes],
        _flag_out(wall.visible),
        _flag_out(wall.is_dotted),
        wall.floor,
    ]


def _encode_room(room: Room) -> list:
    row = [
        room.id,
        room.x,
        room.y,
        room.width,
        room.height,
        room.label,
        _flag_out(room.visible),
        [_encode_marker(m) for m in room.markers],
        room.shape,
        [_encode_wall(w) for w in room.walls],
        [[label.text, label.x, label.y, _flag_out(label.visible)] for label in room.labels],
        room.floor,
    ]

    # Optional trailing positions are written only when they carry information
    if room.color is not None:
        row.extend([_flag_out(room.label_visible), room.color])
    elif not room.label_visible:
        row.append(0)
    return row


def _encode_hallway(hallway: Hallway) -> list:
    return [
        hallway.id,
        _encode_segments(hallway.segments),
        hallway.width,
        hallway.label,
        _flag_out(hallway.is_secret),
        _flag_out(hallway.visible),
        [node_to_dict(n) for n in hallway.nodes],
        _encode_endpoint(hallway.start_marker),
        _encode_endpoint(hallway.end_marker),
        [_encode_marker(m) for m in hallway.markers],
        hallway.floor,
    ]


def _encode_standalone_marker(marker: StandaloneMarker) -> list:
    return [
        marker.id,
        marker.type,
        marker.x,
        marker.y,
        _flag_out(marker.visible),
        marker.label,
        marker.rotation,
        marker.floor,
    ]


def _encode_standalone_label(label: StandaloneLabel) -> list:
    return [
        label.id,
        label.text,
        label.x,
        label.y,
        _flag_out(label.visible),
        label.floor,
    ]


def encode(document: MapDocument) -> CompactDoc:
    """Encode a document into the newest compact layout.

    Args:
        document: The document to encode; it is not modified.

    Returns:
        The compact payload.
    """
    return CompactDoc(
        v=SCHEMA_VERSION,
        n=document.map_name,
        r=[_encode_room(r) for r in document.rooms],
        h=[_encode_hallway(h) for h in document.hallways],
        w=[_encode_wall(w) for w in document.walls],
        sm=[_encode_standalone_marker(m) for m in document.standalone_markers],
        sl=[_encode_standalone_label(label) for label in document.standalone_labels],
    )


def dumps(compact: CompactDoc) -> str:
    """Serialize a compact payload to JSON text without whitespace."""
    return json.dumps(compact, separators=(",", ":"), ensure_ascii=False)
