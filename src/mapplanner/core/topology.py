"""Room connectivity for map documents.

Builds a graph of which rooms are joined by hallways (and optionally
walls), using the room-edge attachments stored on path nodes.
"""

from __future__ import annotations

from typing import Iterable, Set

import networkx as nx

from .document import MapDocument


def _attached_room_ids(nodes: Iterable, live_rooms: Set[int]) -> list:
    """Distinct live room ids referenced by the nodes, in node order."""
    seen = []
    for node in nodes:
        attachment = node.attached_room
        if attachment is None or attachment.room_id not in live_rooms:
            continue
        if attachment.room_id not in seen:
            seen.append(attachment.room_id)
    return seen


def build_room_graph(document: MapDocument, include_walls: bool = False) -> nx.Graph:
    """Build a graph representing room connectivity.

    Nodes are room ids. Two rooms are joined when a single hallway has
    nodes attached to both. Stale attachments are ignored.

    Args:
        document: The map document.
        include_walls: Also join rooms through walls attached to both.

    Returns:
        NetworkX Graph with room connectivity. Edge data carries
        ``path_id``, ``path_kind`` and ``is_secret``.
    """
    G = nx.Graph()

    for room in document.rooms:
        G.add_node(room.id, label=room.label, floor=room.floor)

    live_rooms = {room.id for room in document.rooms}

    paths = list(document.hallways)
    if include_walls:
        paths.extend(document.all_walls())

    for path in paths:
        room_ids = _attached_room_ids(path.nodes, live_rooms)
        for a, b in zip(room_ids, room_ids[1:]):
            if G.has_edge(a, b):
                continue
            G.add_edge(
                a,
                b,
                path_id=path.id,
                path_kind=path.kind,
                is_secret=getattr(path, "is_secret", False),
            )

    return G


def connected_rooms(document: MapDocument, room_id: int) -> Set[int]:
    """Ids of every room reachable from ``room_id`` through hallways."""
    G = build_room_graph(document)
    if room_id not in G:
        return set()
    return set(nx.node_connected_component(G, room_id)) - {room_id}
