"""
Undo/redo history for the box store.

Every user edit that changes committed boxes is described by a HistoryEntry
holding the box before and after the change. HistoryManager keeps them on a
linear undo stack; undoing applies the inverse of an entry to the BoxManager
and moves it to the redo stack.
"""

import logging
from typing import List, Optional

from fabric_labeler.constants import KIND_ADD, KIND_REMOVE, KIND_UPDATE, config
from .bounding_box import BoundingBox
from .box_manager import BoxManager

logger = logging.getLogger(__name__)


class HistoryEntry:
    """
    One reversible mutation of the box store.

    Attributes:
        kind (str): "add", "remove" or "update"
        before (BoundingBox): the box before the change, None for "add"
        after (BoundingBox): the box after the change, None for "remove"
        index (int): z-order position of the added or removed box
    """

    __slots__ = ("kind", "before", "after", "index")

    def __init__(self, kind: str, before: Optional[BoundingBox] = None,
                 after: Optional[BoundingBox] = None, index: int = None):
        self.kind = kind
        self.before = before
        self.after = after
        self.index = index

    @classmethod
    def added(cls, box: BoundingBox, index: int = None) -> "HistoryEntry":
        return cls(KIND_ADD, None, box, index)

    @classmethod
    def removed(cls, box: BoundingBox, index: int = None) -> "HistoryEntry":
        return cls(KIND_REMOVE, box, None, index)

    @classmethod
    def updated(cls, before: BoundingBox, after: BoundingBox) -> "HistoryEntry":
        return cls(KIND_UPDATE, before, after)

    def apply(self, box_manager: BoxManager) -> None:
        """Re-apply the forward effect of the entry."""
        if self.kind == KIND_ADD:
            box_manager.add_box(self.after, self.index)
        elif self.kind == KIND_REMOVE:
            box_manager.remove_box(self.before.box_id)
        elif self.kind == KIND_UPDATE:
            box_manager.replace_box(self.after)

    def revert(self, box_manager: BoxManager) -> None:
        """Apply the inverse of the entry."""
        if self.kind == KIND_ADD:
            box_manager.remove_box(self.after.box_id)
        elif self.kind == KIND_REMOVE:
            box_manager.add_box(self.before, self.index)
        elif self.kind == KIND_UPDATE:
            box_manager.replace_box(self.before)

    def __repr__(self) -> str:
        box = self.after if self.after is not None else self.before
        return f"HistoryEntry({self.kind}, box={box.box_id if box else None})"


class HistoryManager:
    """
    Linear undo/redo stacks over a BoxManager.

    Recording a new entry discards the redo stack; branching histories are
    not kept. The undo stack is bounded by config["HISTORY_LIMIT"] (50 by
    default); past the bound the oldest entries are dropped. A limit of None
    or 0 keeps everything.
    """

    def __init__(self, box_manager: BoxManager, limit: Optional[int] = None):
        self.box_manager = box_manager
        self.limit = limit if limit is not None else config["HISTORY_LIMIT"]
        self.undo_stack: List[HistoryEntry] = []
        self.redo_stack: List[HistoryEntry] = []

    def record(self, entry: HistoryEntry) -> None:
        self.undo_stack.append(entry)
        self.redo_stack.clear()
        if self.limit and len(self.undo_stack) > self.limit:
            del self.undo_stack[:len(self.undo_stack) - self.limit]
        logger.debug("Recorded %r", entry)

    def undo(self) -> Optional[HistoryEntry]:
        if not self.undo_stack:
            return None
        entry = self.undo_stack.pop()
        entry.revert(self.box_manager)
        self.redo_stack.append(entry)
        return entry

    def redo(self) -> Optional[HistoryEntry]:
        if not self.redo_stack:
            return None
        entry = self.redo_stack.pop()
        entry.apply(self.box_manager)
        self.undo_stack.append(entry)
        return entry

    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()

    def snapshot(self) -> dict:
        return {"undo": self.undo_stack.copy(), "redo": self.redo_stack.copy()}

    def restore(self, snapshot: dict) -> None:
        self.undo_stack = list(snapshot["undo"])
        self.redo_stack = list(snapshot["redo"])
