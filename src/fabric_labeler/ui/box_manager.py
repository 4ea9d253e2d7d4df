"""
Box Manager for managing the collection of bounding boxes on one image.

This module contains the BoxManager class, the authoritative store of the
boxes being annotated plus the single "active" box, and HitResult, the answer
to "what is under the pointer?".
"""

import logging
from typing import List, Optional, Tuple

from fabric_labeler.constants import CORNER_HANDLES, EDGE_HANDLES
from .bounding_box import BoundingBox

logger = logging.getLogger(__name__)


class HitResult:
    """A box under the pointer and, when a resize zone was hit, which handle."""

    __slots__ = ("box", "handle")

    def __init__(self, box: BoundingBox, handle: Optional[str] = None):
        self.box = box
        self.handle = handle

    def __repr__(self) -> str:
        return f"HitResult(box={self.box.box_id}, handle={self.handle})"


def handle_points(box: BoundingBox) -> List[Tuple[str, float, float]]:
    """
    Get the centres of the eight resize handles of a box.

    Args:
        box (BoundingBox): The box, in display coordinates

    Returns:
        list: (handle, x, y) triples, corners first then edge midpoints
    """
    x1, y1, x2, y2 = box.normalized()
    mid_x = (x1 + x2) / 2
    mid_y = (y1 + y2) / 2
    centres = {
        "tl": (x1, y1), "tr": (x2, y1), "bl": (x1, y2), "br": (x2, y2),
        "n": (mid_x, y1), "s": (mid_x, y2), "w": (x1, mid_y), "e": (x2, mid_y),
    }
    return [(name,) + centres[name] for name in CORNER_HANDLES + EDGE_HANDLES]


class BoxManager:
    """
    Manages the collection of bounding boxes for a single image annotation.

    Handles adding, removing, updating and querying boxes. Insertion order is
    z-order: the last box added is drawn on top and wins hit-tests.

    Misuse (duplicate ids, unknown ids) is ignored and reported through the
    return value, never raised.
    """

    def __init__(self):
        """Initialize an empty box manager."""
        self.boxes: List[BoundingBox] = []
        self._active: Optional[BoundingBox] = None

    def add_box(self, box: BoundingBox, index: int = None) -> bool:
        """
        Add a bounding box to the manager.

        Args:
            box (BoundingBox): The bounding box to add
            index (int): List position to insert at, appended when None

        Returns:
            bool: True if added, False if a box with the same id already exists
        """
        if self.get_box(box.box_id) is not None:
            logger.warning("Ignoring duplicate box id %s", box.box_id)
            return False
        if index is None or index >= len(self.boxes):
            self.boxes.append(box)
        else:
            self.boxes.insert(max(index, 0), box)
        return True

    def remove_box(self, box_id: str) -> bool:
        """
        Remove a bounding box by ID.

        Args:
            box_id (str): A unique identifier of the boxes

        Returns:
            bool: True if box was removed, False if box_id not found
        """
        for i, box in enumerate(self.boxes):
            if box.box_id == box_id:
                self.boxes.pop(i)
                if self._active is not None and self._active.box_id == box_id:
                    self._active = None
                return True
        return False

    def get_box(self, box_id: str) -> Optional[BoundingBox]:
        for box in self.boxes:
            if box.box_id == box_id:
                return box
        return None

    def index_of(self, box_id: str) -> int:
        """Position of a box in z-order, -1 when absent."""
        for i, box in enumerate(self.boxes):
            if box.box_id == box_id:
                return i
        return -1

    def get_all_boxes(self) -> List[BoundingBox]:
        return self.boxes.copy()

    def get_boxes_by_label(self, label: str) -> List[BoundingBox]:
        return [box for box in self.boxes if box.label == label]

    def update_box(self, box_id: str, **patch) -> bool:
        """
        Merge a patch into a box.

        The stored box is replaced by an updated copy; boxes previously handed
        out to callers keep their old values.

        Args:
            box_id (str): The ID of the box to update
            **patch: Any of start_x, start_y, end_x, end_y, label, is_preview

        Returns:
            bool: True if box was updated, False if box_id not found
        """
        index = self.index_of(box_id)
        if index < 0:
            return False
        self.boxes[index] = self.boxes[index].copy(**patch)
        return True

    def replace_box(self, box: BoundingBox) -> bool:
        """Overwrite every field of the stored box carrying box.box_id."""
        index = self.index_of(box.box_id)
        if index < 0:
            return False
        self.boxes[index] = box
        return True

    def set_active(self, box: Optional[BoundingBox]) -> None:
        """
        Make a box the active one, or clear the selection with None.

        The box does not have to be in the store: a box still being drawn is
        active before it is added.
        """
        self._active = box

    def get_active(self) -> Optional[BoundingBox]:
        """
        Get the active box.

        Returns:
            BoundingBox or None: the stored version when the active box is in
            the store, otherwise the detached box passed to set_active()
        """
        if self._active is None:
            return None
        stored = self.get_box(self._active.box_id)
        return stored if stored is not None else self._active

    def is_active(self, box_id: str) -> bool:
        return self._active is not None and self._active.box_id == box_id

    def get_preview_boxes(self) -> List[BoundingBox]:
        return [box for box in self.boxes if box.is_preview]

    def clear(self):
        """Remove all bounding boxes and the selection."""
        self.boxes.clear()
        self._active = None

    def hit_test(self, x: float, y: float, handle_size: float) -> Optional[HitResult]:
        """
        Find the topmost box under a point.

        Boxes are checked from last added to first. A box matches when the
        point is inside its rectangle; the active box also matches on its
        eight handle zones, which may stick out of the rectangle by half a
        handle.

        Args:
            x (float): X coordinate in display space
            y (float): Y coordinate in display space
            handle_size (float): Side of a handle zone in display units

        Returns:
            HitResult or None: the box and the handle hit, if any
        """
        half = handle_size / 2
        for box in reversed(self.boxes):
            if self.is_active(box.box_id):
                for name, hx, hy in handle_points(box):
                    if abs(x - hx) <= half and abs(y - hy) <= half:
                        return HitResult(box, name)
            if box.contains(x, y):
                return HitResult(box)
        return None

    def snapshot(self) -> dict:
        """Capture the boxes, their order and the selection."""
        return {"boxes": self.boxes.copy(), "active": self._active}

    def restore(self, snapshot: dict) -> None:
        self.boxes = list(snapshot["boxes"])
        self._active = snapshot["active"]

    def count(self) -> int:
        return len(self.boxes)

    def to_list(self) -> list:
        """
        Convert all boxes to a list of dictionaries (for serialization).

        Returns:
            list: List of box dictionaries
        """
        return [box.to_dict() for box in self.boxes]

    def from_list(self, data: list) -> None:
        """
        Load boxes from a list of dictionaries (for deserialization).

        Args:
            data (list): List of box dictionaries
        """
        self.clear()
        for box_data in data:
            self.add_box(BoundingBox.from_dict(box_data))

    def __repr__(self) -> str:
        return f"BoxManager(count={self.count()})"

    def __len__(self) -> int:
        return self.count()
