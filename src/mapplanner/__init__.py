"""Map Planner - floorplan documents for tabletop role-playing maps."""

__version__ = "0.1.0"

from .core.document import MapDocument
from .core.model import Hallway, Node, Point, Room, Wall

__all__ = ["MapDocument", "Hallway", "Node", "Point", "Room", "Wall"]
