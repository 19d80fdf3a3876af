"""Creation-time validation for map entities.

Degenerate geometry is rejected when an entity is created through an
editing operation. Decoders never run these checks: whatever is in a
document, degenerate or not, round-trips unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from ..config import MIN_ROOM_SIZE

if TYPE_CHECKING:
    from ..core.model import Node


class ValidationWarning(UserWarning):
    """Raised when a creation request would produce degenerate geometry."""

    pass


class InvalidOperation(Exception):
    """Raised when an editing operation names an unknown kind or entity."""

    pass


def validate_room_size(width: float, height: float, min_size: float = MIN_ROOM_SIZE) -> None:
    """Validate that a rectangle room is large enough.

    Raises:
        ValidationWarning: If width or height is below ``min_size``.
    """
    if width < min_size or height < min_size:
        raise ValidationWarning(
            f"Room {width}x{height} is below the minimum size of {min_size}"
        )


def validate_circle_radius(radius: float, min_size: float = MIN_ROOM_SIZE) -> None:
    """Validate that a circle room has a usable radius.

    Raises:
        ValidationWarning: If the radius is zero or below ``min_size``.
    """
    if radius <= 0 or radius < min_size:
        raise ValidationWarning(
            f"Circle radius {radius} is below the minimum of {min_size}"
        )


def validate_nodes(nodes: Sequence[Node]) -> None:
    """Validate that a hallway or wall has a drawable node sequence.

    Raises:
        ValidationWarning: If fewer than two nodes are given.
    """
    if len(nodes) < 2:
        raise ValidationWarning(
            f"A path needs at least two nodes, got {len(nodes)}"
        )
