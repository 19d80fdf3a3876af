"""
Configuration for the map planner core.
"""

# Drawing dimensions
WALL_THICKNESS = 10
CORRIDOR_WIDTH = WALL_THICKNESS
SECRET_PASSAGE_WIDTH = 8
GRID_SIZE = 20

# Interaction tolerances
EDGE_CLICK_THRESHOLD = 15
MARKER_SIZE = 16
MARKER_HIT_RADIUS = MARKER_SIZE * 1.5

# Creation limits
MIN_ROOM_SIZE = 20  # Minimum width/height (rectangles) and radius (circles)

# Document defaults
DEFAULT_MAP_NAME = "Untitled Map"
SCHEMA_VERSION = "1.2.0"

# Share string limits (decompression-bomb guard)
MAX_SHARE_STRING_LENGTH = 4 * 1024 * 1024
MAX_INFLATED_BYTES = 32 * 1024 * 1024
