"""
Bounding box value type for the fabric labeler.

This module contains the BoundingBox class, which represents one annotation
rectangle in logical display coordinates (image pixels x base scale), and
BoxIdGenerator, which hands out the session-unique ids boxes are keyed by.
"""

import time
from typing import Optional, Tuple

_FIELDS = ("start_x", "start_y", "end_x", "end_y", "label", "is_preview")


class BoundingBox:
    """
    Represents a single bounding box as two opposite corners.

    The corners are not required to be ordered: start may lie below or to the
    right of end. Ordering happens at read time through normalized(), never by
    rewriting the stored corners.

    Boxes are values. Nothing edits a box in place; copy() produces the
    changed version and BoxManager swaps it in.
    """

    __slots__ = ("box_id",) + _FIELDS

    def __init__(self, start_x: float, start_y: float, end_x: float, end_y: float,
                 label: str = "", box_id: str = None, is_preview: bool = False):
        """
        Initialize a bounding box.

        Args:
            start_x (float): X of the anchor corner in display space
            start_y (float): Y of the anchor corner in display space
            end_x (float): X of the opposite corner in display space
            end_y (float): Y of the opposite corner in display space
            label (str): Class name, may be empty while the box is being drawn
            box_id (str): Unique identifier for this box
            is_preview (bool): True while the box is an unconfirmed review candidate
        """
        self.box_id = box_id
        self.start_x = start_x
        self.start_y = start_y
        self.end_x = end_x
        self.end_y = end_y
        self.label = label or ""
        self.is_preview = bool(is_preview)

    @property
    def width(self) -> float:
        return abs(self.end_x - self.start_x)

    @property
    def height(self) -> float:
        return abs(self.end_y - self.start_y)

    def normalized(self) -> Tuple[float, float, float, float]:
        """
        Get the box bounds ordered top-left to bottom-right.

        Returns:
            tuple: (x1, y1, x2, y2) with x1 <= x2 and y1 <= y2
        """
        return (min(self.start_x, self.end_x), min(self.start_y, self.end_y),
                max(self.start_x, self.end_x), max(self.start_y, self.end_y))

    def corners(self) -> Tuple[float, float, float, float]:
        return (self.start_x, self.start_y, self.end_x, self.end_y)

    def contains(self, x: float, y: float) -> bool:
        x1, y1, x2, y2 = self.normalized()
        return x1 <= x <= x2 and y1 <= y <= y2

    def has_min_size(self, min_size: float) -> bool:
        return self.width >= min_size and self.height >= min_size

    def is_valid(self, min_size: float) -> bool:
        """A box is exportable when it is large enough and carries a label."""
        return self.has_min_size(min_size) and bool(self.label)

    def copy(self, **patch) -> "BoundingBox":
        """
        Return a new box with the given fields replaced.

        Keys that are not box fields are ignored, so a patch coming from the
        host can never add attributes to a box.
        """
        values = {name: getattr(self, name) for name in _FIELDS}
        for name, value in patch.items():
            if name in values:
                values[name] = value
        return BoundingBox(box_id=self.box_id, **values)

    def to_dict(self) -> dict:
        return {
            "box_id": self.box_id,
            "start_x": self.start_x,
            "start_y": self.start_y,
            "end_x": self.end_x,
            "end_y": self.end_y,
            "label": self.label,
            "is_preview": self.is_preview,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BoundingBox":
        return cls(
            start_x=data["start_x"],
            start_y=data["start_y"],
            end_x=data["end_x"],
            end_y=data["end_y"],
            label=data.get("label", ""),
            box_id=data.get("box_id"),
            is_preview=data.get("is_preview", False),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoundingBox):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(self.box_id)

    def __repr__(self) -> str:
        preview = ", preview" if self.is_preview else ""
        return (f"BoundingBox(id={self.box_id}, start=({self.start_x}, {self.start_y}), "
                f"end=({self.end_x}, {self.end_y}), label={self.label!r}{preview})")


class BoxIdGenerator:
    """
    Produces ids of the form "box-<salt>-<counter>".

    The salt is the creation time in milliseconds and the counter only ever
    increases, so an id is never handed out twice by the same generator.
    """

    def __init__(self, salt: Optional[int] = None):
        self.salt = salt if salt is not None else int(time.time() * 1000)
        self.counter = 0

    def __call__(self) -> str:
        self.counter += 1
        return f"box-{self.salt}-{self.counter}"
