"""
Step-by-step review of candidate boxes.

A ReviewSession walks through a queue of candidates (detector output, or the
boxes already on the image) one at a time. The current candidate sits in the
BoxManager as the active box with is_preview set, so it is drawn and can be
moved or resized like any other box, but nothing about it is committed until
the user confirms it.

Fresh detections are reviewed against a snapshot of the store and history
taken at start(); cancel() rolls both back. Reviewing existing boxes has no
snapshot: cancel() only closes the review.
"""

import logging
from typing import Callable, List, Optional

from fabric_labeler.constants import config
from .bounding_box import BoundingBox
from .box_manager import BoxManager
from .history_manager import HistoryEntry, HistoryManager

logger = logging.getLogger(__name__)


class ReviewSession:
    """
    Confirm / skip / previous / cancel state machine over a candidate queue.

    Invariant: while a session runs there is at most one preview box in the
    store, and it is the candidate under the cursor.

    Attributes:
        queue (list): candidate boxes, each with a unique box_id
        cursor (int): index of the candidate being reviewed
        active (bool): True while a session is running
        from_existing (bool): True when reviewing boxes already in the store
    """

    def __init__(self, box_manager: BoxManager, history: HistoryManager,
                 on_change: Callable[[], None] = None):
        self.box_manager = box_manager
        self.history = history
        self.on_change = on_change

        self.queue: List[BoundingBox] = []
        self.cursor = 0
        self.active = False
        self.from_existing = False
        self.confirmed = set()

        self._store_snapshot = None
        self._history_snapshot = None
        self._home_index = {}
        # state of the candidate under the cursor
        self._shown_committed = False
        self._pre_review: Optional[BoundingBox] = None

    @property
    def total(self) -> int:
        return len(self.queue)

    def current(self) -> Optional[BoundingBox]:
        """The candidate under the cursor as it currently is in the store."""
        if not self.active:
            return None
        return self.box_manager.get_box(self.queue[self.cursor].box_id)

    def start(self, candidates: List[BoundingBox], from_existing: bool = False) -> bool:
        """
        Begin reviewing candidates, showing the first one.

        Args:
            candidates (list): boxes in display space with unique ids; when
                from_existing is True they must be boxes of the store
            from_existing (bool): review committed boxes instead of detections

        Returns:
            bool: False when there is nothing to review
        """
        if self.active:
            self._close()
        for stale in self.box_manager.get_preview_boxes():
            self.box_manager.remove_box(stale.box_id)
        if not candidates:
            return False

        self.queue = [box.copy(is_preview=False) for box in candidates]
        self.cursor = 0
        self.from_existing = from_existing
        self.confirmed = set()
        self._home_index = {box.box_id: self.box_manager.index_of(box.box_id) for box in self.queue}
        if from_existing:
            self._store_snapshot = None
            self._history_snapshot = None
        else:
            self._store_snapshot = self.box_manager.snapshot()
            self._history_snapshot = self.history.snapshot()

        self.active = True
        logger.info("Review started with %d candidates (%s)", len(self.queue),
                    "existing boxes" if from_existing else "detection")
        self._show()
        self._notify()
        return True

    def confirm(self) -> bool:
        """
        Commit the current candidate, with any edits made while previewing,
        and move on to the next one.
        """
        if not self.active:
            return False
        current = self.current()
        if current is not None and current.is_preview:
            committed = current.copy(is_preview=False)
            self.box_manager.replace_box(committed)
            if not self._shown_committed:
                self.history.record(HistoryEntry.added(committed, self.box_manager.index_of(committed.box_id)))
            elif committed != self._pre_review:
                self.history.record(HistoryEntry.updated(self._pre_review, committed))
            self.queue[self.cursor] = committed
            logger.debug("Confirmed candidate %d/%d: %r", self.cursor + 1, self.total, committed)
        if current is not None:
            self.confirmed.add(current.box_id)
        self._advance()
        return True

    def skip(self) -> bool:
        """
        Drop the current candidate from the store and move on.

        Edits made to the preview are discarded unless KEEP_SKIPPED_EDITS is
        set, in which case they come back if the candidate is revisited.
        Skipping a box that was already committed before review removes it
        as an undoable edit.
        """
        if not self.active:
            return False
        current = self.current()
        if current is not None and current.is_preview:
            index = self.box_manager.index_of(current.box_id)
            self.box_manager.remove_box(current.box_id)
            if self._shown_committed:
                self.history.record(HistoryEntry.removed(self._pre_review, index))
            if config["KEEP_SKIPPED_EDITS"]:
                self.queue[self.cursor] = current.copy(is_preview=False)
            logger.debug("Skipped candidate %d/%d", self.cursor + 1, self.total)
        self._advance()
        return True

    def previous(self) -> bool:
        """Go back one candidate. A confirmed one is re-opened in place."""
        if not self.active or self.cursor == 0:
            return False
        self._leave_current()
        self.cursor -= 1
        self._show()
        self._notify()
        return True

    def cancel(self) -> bool:
        """
        End the session.

        After a fresh detection review the store and history are restored to
        the snapshot taken at start(), dropping the candidates confirmed so
        far. After reviewing existing boxes nothing is rolled back.
        """
        if not self.active:
            return False
        if self._store_snapshot is not None:
            self.box_manager.restore(self._store_snapshot)
            self.history.restore(self._history_snapshot)
            logger.info("Review cancelled at %d/%d, store rolled back", self.cursor + 1, self.total)
            self._finish(keep_selection=True)
            return True
        self._leave_current()
        logger.info("Review closed at %d/%d", self.cursor + 1, self.total)
        self._finish()
        return True

    # =====================================================================
    # Helpers
    # =====================================================================

    def _show(self) -> None:
        candidate = self.queue[self.cursor]
        stored = self.box_manager.get_box(candidate.box_id)
        self._pre_review = None
        self._shown_committed = False

        if stored is not None and candidate.box_id in self.confirmed:
            self.box_manager.set_active(stored)
            return
        if stored is not None:
            # committed before the review started: flag it in place
            self._shown_committed = True
            self._pre_review = stored
            self.box_manager.update_box(stored.box_id, is_preview=True)
        else:
            home = self._home_index.get(candidate.box_id, -1)
            self.box_manager.add_box(candidate.copy(is_preview=True), home if home >= 0 else None)
        self.box_manager.set_active(self.box_manager.get_box(candidate.box_id))

    def _leave_current(self) -> None:
        """Withdraw the preview under the cursor without committing it."""
        current = self.current()
        if current is None or not current.is_preview:
            return
        if self._shown_committed:
            self.box_manager.replace_box(self._pre_review)
        else:
            self.box_manager.remove_box(current.box_id)
            if config["KEEP_SKIPPED_EDITS"]:
                self.queue[self.cursor] = current.copy(is_preview=False)
        self.box_manager.set_active(None)

    def _advance(self) -> None:
        self.cursor += 1
        if self.cursor < len(self.queue):
            self._show()
            self._notify()
        else:
            logger.info("Review finished: %d of %d candidates confirmed", len(self.confirmed), self.total)
            self._finish()

    def _close(self) -> None:
        self._leave_current()
        self._finish()

    def _finish(self, keep_selection: bool = False) -> None:
        self.active = False
        self.queue = []
        self.cursor = 0
        self.confirmed = set()
        self._store_snapshot = None
        self._history_snapshot = None
        self._home_index = {}
        self._shown_committed = False
        self._pre_review = None
        if not keep_selection:
            self.box_manager.set_active(None)
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
