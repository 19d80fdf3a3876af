"""Geometry utilities for map documents.

This module provides orthogonal routing between path nodes, room-edge
attachment projection and reconstruction, and hit testing.
"""

from .attach import EdgeProjection, project_edge, reanchor
from .hittest import hallway_at, marker_at, room_at, snap_to_grid
from .routing import rebuild_segments, route

__all__ = [
    "EdgeProjection",
    "project_edge",
    "reanchor",
    "route",
    "rebuild_segments",
    "room_at",
    "hallway_at",
    "marker_at",
    "snap_to_grid",
]
