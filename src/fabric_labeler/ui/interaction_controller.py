"""
Pointer and keyboard interaction for the annotation canvas.

This module provides the InteractionController, a small state machine that
turns single-pointer events into box store mutations:

    IDLE -> DRAWING  -> IDLE   press on empty space, drag, release
    IDLE -> MOVING   -> IDLE   press on a box body, drag, release
    IDLE -> RESIZING -> IDLE   press on a handle of the active box, drag, release

Pointer positions arrive in screen pixels of the zoomed canvas and are
converted to display space through the ImageManager. Intermediate frames of a
move or resize are applied to the store directly; the history receives one
entry per gesture, at release.

The controller does not know about Qt. The canvas widget (or a test) feeds it
plain coordinates and key names.
"""

import logging
from typing import Callable, Optional

from fabric_labeler.constants import (STATE_DRAWING, STATE_IDLE, STATE_MOVING,
                                      STATE_RESIZING, config)
from .bounding_box import BoundingBox, BoxIdGenerator
from .box_manager import BoxManager
from .history_manager import HistoryEntry, HistoryManager

logger = logging.getLogger(__name__)

_CURSORS = {
    "tl": "nwse-resize", "br": "nwse-resize",
    "tr": "nesw-resize", "bl": "nesw-resize",
    "n": "ns-resize", "s": "ns-resize",
    "w": "ew-resize", "e": "ew-resize",
}


class InteractionController:
    """
    State machine driving box creation and editing from pointer events.

    Attributes:
        box_manager (BoxManager): store the gestures mutate
        history (HistoryManager): receives one entry per committed gesture
        image_manager (ImageManager): screen <-> display conversion and canvas bounds
        id_generator (BoxIdGenerator): ids for newly drawn boxes
        current_label (str): label given to newly drawn boxes
        state (str): one of the STATE_* constants
        review: the ReviewSession Delete is routed to for preview boxes, if any
        on_change (callable): called with no arguments after every mutation
    """

    def __init__(self, box_manager: BoxManager, history: HistoryManager, image_manager,
                 id_generator: BoxIdGenerator = None, on_change: Callable[[], None] = None):
        self.box_manager = box_manager
        self.history = history
        self.image_manager = image_manager
        self.id_generator = id_generator or BoxIdGenerator()
        self.on_change = on_change
        self.review = None
        self.enabled = True
        self.current_label = ""

        self.state = STATE_IDLE
        self._gesture_before: Optional[BoundingBox] = None
        self._last_point = (0.0, 0.0)
        self._resize_fields = (None, None)

    # =====================================================================
    # Pointer events
    # =====================================================================

    def pointer_down(self, screen_x: float, screen_y: float) -> str:
        """
        Start a gesture at a canvas position.

        A handle of the active box starts a resize, a box body starts a move
        and empty space starts drawing a new box anchored at the point.

        Returns:
            str: the state entered
        """
        if not self.enabled or self.state != STATE_IDLE:
            return self.state

        x, y = self.image_manager.screen_to_display(screen_x, screen_y)
        hit = self.box_manager.hit_test(x, y, self.image_manager.handle_size())

        if hit is not None and hit.handle is not None:
            self._gesture_before = hit.box
            self._resize_fields = self._fields_for_handle(hit.box, hit.handle)
            self.state = STATE_RESIZING
        elif hit is not None:
            self.box_manager.set_active(hit.box)
            self._gesture_before = hit.box
            self._last_point = (x, y)
            self.state = STATE_MOVING
        else:
            box = BoundingBox(x, y, x, y, label=self.current_label, box_id=self.id_generator())
            self.box_manager.set_active(box)
            self._gesture_before = None
            self.state = STATE_DRAWING

        logger.debug("Pointer down at (%.1f, %.1f) -> %s", x, y, self.state)
        self._notify()
        return self.state

    def pointer_move(self, screen_x: float, screen_y: float) -> None:
        if self.state == STATE_IDLE:
            return
        x, y = self.image_manager.screen_to_display(screen_x, screen_y)
        active = self.box_manager.get_active()
        if active is None:
            return

        if self.state == STATE_DRAWING:
            # not in the store until release
            self.box_manager.set_active(active.copy(end_x=x, end_y=y))
        elif self.state == STATE_MOVING:
            self._move_by(active, x - self._last_point[0], y - self._last_point[1])
            self._last_point = (x, y)
        elif self.state == STATE_RESIZING:
            field_x, field_y = self._resize_fields
            patch = {}
            if field_x is not None:
                patch[field_x] = x
            if field_y is not None:
                patch[field_y] = y
            self.box_manager.update_box(active.box_id, **patch)
        self._notify()

    def pointer_up(self) -> Optional[HistoryEntry]:
        """
        Finish the current gesture.

        A drawn box smaller than MIN_BOX_SIZE on either side is dropped without
        trace. Otherwise exactly one history entry is recorded, unless the
        box is a review preview or the gesture did not change anything.

        Returns:
            HistoryEntry or None: the entry recorded for the gesture
        """
        if self.state == STATE_IDLE:
            return None

        state = self.state
        before = self._gesture_before
        active = self.box_manager.get_active()
        self._reset_gesture()
        entry = None

        if state == STATE_DRAWING and active is not None:
            if active.has_min_size(config["MIN_BOX_SIZE"]):
                self.box_manager.add_box(active)
                entry = HistoryEntry.added(active, self.box_manager.index_of(active.box_id))
                logger.debug("Box created: %r", active)
            else:
                self.box_manager.set_active(None)
        elif before is not None:
            after = self.box_manager.get_box(before.box_id)
            if after is not None and after != before and not after.is_preview:
                entry = HistoryEntry.updated(before, after)

        if entry is not None:
            self.history.record(entry)
        self._notify()
        return entry

    def cancel_gesture(self) -> bool:
        """
        Abort the gesture in progress without recording anything.

        A box being drawn is dropped; a moved or resized box gets its
        pre-gesture geometry back.
        """
        if self.state == STATE_IDLE:
            return False
        if self.state == STATE_DRAWING:
            self.box_manager.set_active(None)
        elif self._gesture_before is not None:
            self.box_manager.replace_box(self._gesture_before)
        self._reset_gesture()
        self._notify()
        return True

    # =====================================================================
    # Keyboard
    # =====================================================================

    def key_press(self, key: str, ctrl: bool = False, shift: bool = False) -> bool:
        """
        Handle a key press.

        Args:
            key (str): key name, e.g. "Delete", "Escape", "z", "y"
            ctrl (bool): Ctrl or Cmd held
            shift (bool): Shift held

        Returns:
            bool: True if the key was consumed
        """
        key_lower = key.lower()
        if key in ("Delete", "Backspace"):
            return self.delete_active()
        if key == "Escape":
            return self.cancel_gesture()
        if ctrl and key_lower == "z" and shift:
            return self.redo() is not None
        if ctrl and key_lower == "z":
            return self.undo() is not None
        if ctrl and key_lower == "y":
            return self.redo() is not None
        return False

    def delete_active(self) -> bool:
        if self.state != STATE_IDLE:
            return False
        active = self.box_manager.get_active()
        if active is None:
            return False
        if active.is_preview and self.review is not None and self.review.active:
            return self.review.skip()
        index = self.box_manager.index_of(active.box_id)
        if index < 0:
            self.box_manager.set_active(None)
            return False
        self.box_manager.remove_box(active.box_id)
        self.history.record(HistoryEntry.removed(active, index))
        self._notify()
        return True

    def undo(self) -> Optional[HistoryEntry]:
        if self._history_locked():
            return None
        entry = self.history.undo()
        if entry is not None:
            self._notify()
        return entry

    def redo(self) -> Optional[HistoryEntry]:
        if self._history_locked():
            return None
        entry = self.history.redo()
        if entry is not None:
            self._notify()
        return entry

    def _history_locked(self) -> bool:
        """Undo and redo wait for the gesture and any running review to end."""
        return self.state != STATE_IDLE or (self.review is not None and self.review.active)

    # =====================================================================
    # Hover feedback
    # =====================================================================

    def cursor_at(self, screen_x: float, screen_y: float) -> str:
        """Cursor shape name for a hover position."""
        x, y = self.image_manager.screen_to_display(screen_x, screen_y)
        hit = self.box_manager.hit_test(x, y, self.image_manager.handle_size())
        if hit is None:
            return "crosshair"
        if hit.handle is not None:
            return _CURSORS[hit.handle]
        return "move"

    # =====================================================================
    # Helpers
    # =====================================================================

    def _move_by(self, box: BoundingBox, dx: float, dy: float) -> None:
        x1, y1, x2, y2 = box.normalized()
        width = x2 - x1
        height = y2 - y1
        max_x, max_y = self.image_manager.display_size()
        new_x1 = max(0.0, min(x1 + dx, max_x - width))
        new_y1 = max(0.0, min(y1 + dy, max_y - height))
        shift_x = new_x1 - x1
        shift_y = new_y1 - y1
        # translate both corners so their order is preserved
        self.box_manager.update_box(box.box_id,
                                    start_x=box.start_x + shift_x, start_y=box.start_y + shift_y,
                                    end_x=box.end_x + shift_x, end_y=box.end_y + shift_y)

    @staticmethod
    def _fields_for_handle(box: BoundingBox, handle: str):
        """
        Map a handle to the stored fields it drags.

        Corners may be stored in any order, so "left" is whichever of
        start_x/end_x is smaller at press time. The other field stays fixed.
        """
        left, right = ("start_x", "end_x") if box.start_x <= box.end_x else ("end_x", "start_x")
        top, bottom = ("start_y", "end_y") if box.start_y <= box.end_y else ("end_y", "start_y")
        return {
            "tl": (left, top), "tr": (right, top),
            "bl": (left, bottom), "br": (right, bottom),
            "n": (None, top), "s": (None, bottom),
            "w": (left, None), "e": (right, None),
        }[handle]

    def _reset_gesture(self) -> None:
        self.state = STATE_IDLE
        self._gesture_before = None
        self._resize_fields = (None, None)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
