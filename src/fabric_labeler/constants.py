# CD. CLASS_COLORS
# class_colors = List[str]
# interp. Stroke colors assigned to label classes by their index, cycling.
CLASS_COLORS = [
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#FFA07A",
    "#98D8C8",
    "#F7DC6F",
    "#BB8FCE",
    "#85C1E2",
    "#F8B739",
    "#52B788",
]
DEFAULT_BOX_COLOR = "#4ECDC4"

# CD. INTERACTION_STATES
# state = "IDLE" | "DRAWING" | "MOVING" | "RESIZING"
# interp. The gesture the InteractionController is currently tracking.
STATE_IDLE = "IDLE"
STATE_DRAWING = "DRAWING"
STATE_MOVING = "MOVING"
STATE_RESIZING = "RESIZING"

# CD. HANDLES
# handle = "tl" | "tr" | "bl" | "br" | "n" | "s" | "w" | "e"
# interp. Resize handles of the active box, corners first so they win over
#         edge midpoints when zones overlap on tiny boxes.
CORNER_HANDLES = ("tl", "tr", "bl", "br")
EDGE_HANDLES = ("n", "s", "w", "e")
HANDLES = CORNER_HANDLES + EDGE_HANDLES

# CD. HISTORY_KINDS
# kind = "add" | "remove" | "update"
KIND_ADD = "add"
KIND_REMOVE = "remove"
KIND_UPDATE = "update"

# DD. CONFIG_SETTINGS
# config = {"MIN_BOX_SIZE":float, "HANDLE_SIZE":float, ...}
# interp. A dictionary storing configuration settings for the application.
#         MIN_BOX_SIZE is in display units, HANDLE_SIZE in screen pixels.
config = {
    "MIN_BOX_SIZE": 10,
    "HANDLE_SIZE": 8,
    "HISTORY_LIMIT": 50,
    "ZOOM_MIN": 0.25,
    "ZOOM_MAX": 5.0,
    "ZOOM_STEP": 0.1,
    "MIN_CONFIDENCE": 0.25,
    "KEEP_SKIPPED_EDITS": False,
    "CONTAINER_WIDTH": 700,
    "CONTAINER_HEIGHT": 700,
    "LABELS": [],
    "MODE": "BOX",
}
