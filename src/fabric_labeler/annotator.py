'''
The annotation engine as seen by the host application.

Annotator wires the box store, the undo history, the interaction controller
and the review session to one ImageManager, and exposes the operations a
labeling screen needs: loading existing labels, exporting valid ones, box
CRUD for the list panel, undo/redo for the toolbar, pointer and key
passthrough for the canvas, and the auto-label review.

Labels cross this boundary in image-pixel space, {x, y, width, height} with
x/y the top-left corner. Inside, boxes live in display space at zoom 1.
Nothing here touches the network or the disk apart from PIL opening the image.
'''

import logging
from typing import Callable, List, Optional

from fabric_labeler.constants import config
from fabric_labeler.tools import coordinate_transform as ct
from fabric_labeler.tools.image_loader import ImageManager
from fabric_labeler.ui.bounding_box import BoundingBox, BoxIdGenerator
from fabric_labeler.ui.box_manager import BoxManager
from fabric_labeler.ui.history_manager import HistoryEntry, HistoryManager
from fabric_labeler.ui.interaction_controller import InteractionController
from fabric_labeler.ui.review_session import ReviewSession

logger = logging.getLogger(__name__)


class Annotator:
    def __init__(self, container_width: float = None, container_height: float = None,
                 id_generator: BoxIdGenerator = None):
        self.image_manager = ImageManager(container_width, container_height)
        self.box_manager = BoxManager()
        self.history = HistoryManager(self.box_manager)
        self.id_generator = id_generator or BoxIdGenerator()
        self.controller = InteractionController(self.box_manager, self.history, self.image_manager,
                                                self.id_generator, on_change=self._notify)
        self.review = ReviewSession(self.box_manager, self.history, on_change=self._notify)
        self.controller.review = self.review
        self._listeners: List[Callable[[], None]] = []

    # =====================================================================
    # Observers
    # =====================================================================

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register a callable invoked after every state change (to trigger a redraw)."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    # =====================================================================
    # Image and viewport
    # =====================================================================

    def set_image(self, image_width: int, image_height: int,
                  container_width: float = None, container_height: float = None) -> float:
        """
        Prepare for a new image: compute the base scale and start from an
        empty store and history.

        Returns:
            float: the base fit scale
        """
        if container_width is not None and container_height is not None:
            self.image_manager.set_container_size(container_width, container_height)
        self.image_manager.set_image_size(image_width, image_height)
        self._reset()
        return self.image_manager.base_scale

    def load_image(self, image_path: str, container_width: float = None, container_height: float = None):
        """Open an image with PIL and prepare for it like set_image()."""
        if container_width is not None and container_height is not None:
            self.image_manager.set_container_size(container_width, container_height)
        pil_image = self.image_manager.load_image(image_path)
        self._reset()
        return pil_image

    @property
    def base_scale(self) -> float:
        return self.image_manager.base_scale

    @property
    def zoom(self) -> float:
        return self.image_manager.zoom

    def set_zoom(self, zoom: float) -> float:
        applied = self.image_manager.set_zoom(zoom)
        self._notify()
        return applied

    def zoom_in(self) -> float:
        applied = self.image_manager.zoom_in()
        self._notify()
        return applied

    def zoom_out(self) -> float:
        applied = self.image_manager.zoom_out()
        self._notify()
        return applied

    def _reset(self) -> None:
        if self.review.active:
            self.review.cancel()
        self.controller.cancel_gesture()
        self.box_manager.clear()
        self.history.clear()
        self._notify()

    # =====================================================================
    # Loading and exporting labels
    # =====================================================================

    def load_initial(self, labels: List[dict]) -> List[str]:
        """
        Add existing pixel labels to the store, without history.

        Args:
            labels (list): dicts with x, y, width, height and className

        Returns:
            list: ids of the created boxes
        """
        ids = []
        for label in labels:
            box = self._box_from_pixel_label(label)
            if self.box_manager.add_box(box):
                ids.append(box.box_id)
        logger.info("Loaded %d existing labels", len(ids))
        self._notify()
        return ids

    def export_valid(self, classes: List[str] = None) -> List[dict]:
        """
        Pixel labels of every box large enough and labeled.

        Preview boxes of a running review are never exported.

        Args:
            classes (list): class names giving classId, config["LABELS"] by default

        Returns:
            list: dicts with x, y, width, height, classId and className;
            classId is -1 for a label missing from classes
        """
        classes = config["LABELS"] if classes is None else classes
        exported = []
        for box in self.box_manager.get_all_boxes():
            if box.is_preview or not box.is_valid(config["MIN_BOX_SIZE"]):
                continue
            x, y, width, height = ct.corners_to_pixel_rect(box.corners(), self.base_scale)
            exported.append({
                "x": x,
                "y": y,
                "width": width,
                "height": height,
                "classId": classes.index(box.label) if box.label in classes else -1,
                "className": box.label,
            })
        return exported

    def export_yolo(self, classes: List[str] = None) -> List[str]:
        """
        YOLO label lines for the valid boxes:

            class_id  x_center  y_center  width  height

        with coordinates normalized to the original image size. Boxes whose
        label is not a known class are left out.
        """
        lines = []
        for label in self.export_valid(classes):
            if label["classId"] < 0:
                continue
            xc, yc, w, h = ct.pixel_rect_to_yolo(label["x"], label["y"], label["width"], label["height"],
                                                 self.image_manager.original_width,
                                                 self.image_manager.original_height)
            lines.append(f"{label['classId']} {xc:.6f} {yc:.6f} {w:.6f} {h:.6f}")
        return lines

    def _box_from_pixel_label(self, label: dict) -> BoundingBox:
        start_x, start_y, end_x, end_y = ct.pixel_label_to_corners(label, self.base_scale)
        return BoundingBox(start_x, start_y, end_x, end_y,
                           label=label.get("className", ""), box_id=self.id_generator())

    # =====================================================================
    # Review
    # =====================================================================

    def start_auto_label_review(self, candidates: List[dict]) -> bool:
        """
        Review detector output one box at a time.

        Args:
            candidates (list): pixel detections with x, y, width, height, className
        """
        boxes = [self._box_from_pixel_label(candidate) for candidate in candidates]
        return self.review.start(boxes)

    def start_existing_review(self) -> bool:
        """Step through the boxes already on the image."""
        return self.review.start(self.box_manager.get_all_boxes(), from_existing=True)

    def confirm_review(self) -> bool:
        return self.review.confirm()

    def skip_review(self) -> bool:
        return self.review.skip()

    def previous_review(self) -> bool:
        return self.review.previous()

    def cancel_review(self) -> bool:
        return self.review.cancel()

    # =====================================================================
    # Box CRUD
    # =====================================================================

    def boxes(self) -> List[BoundingBox]:
        return self.box_manager.get_all_boxes()

    def active_box(self) -> Optional[BoundingBox]:
        return self.box_manager.get_active()

    def new_box(self, start_x: float, start_y: float, end_x: float, end_y: float,
                label: str = "") -> BoundingBox:
        """Build a display-space box with a fresh id (not added)."""
        return BoundingBox(start_x, start_y, end_x, end_y, label=label, box_id=self.id_generator())

    def add_box(self, box: BoundingBox) -> bool:
        """Add a committed box. Previews belong to the review session only."""
        box = box.copy(is_preview=False)
        if box.box_id is None:
            box.box_id = self.id_generator()
        if not self.box_manager.add_box(box):
            return False
        self.history.record(HistoryEntry.added(box, self.box_manager.index_of(box.box_id)))
        self._notify()
        return True

    def remove_box(self, box_id: str) -> bool:
        box = self.box_manager.get_box(box_id)
        if box is None:
            return False
        if box.is_preview and self.review.active:
            return self.review.skip()
        index = self.box_manager.index_of(box_id)
        self.box_manager.remove_box(box_id)
        self.history.record(HistoryEntry.removed(box, index))
        self._notify()
        return True

    def update_box(self, box_id: str, **patch) -> bool:
        patch.pop("is_preview", None)
        before = self.box_manager.get_box(box_id)
        if before is None:
            return False
        self.box_manager.update_box(box_id, **patch)
        after = self.box_manager.get_box(box_id)
        if after != before and not before.is_preview and not after.is_preview:
            self.history.record(HistoryEntry.updated(before, after))
        self._notify()
        return True

    def clear_boxes(self) -> None:
        """Remove every box. This is not undoable and also empties the history."""
        self._reset()

    def set_active_box(self, box_id: Optional[str]) -> bool:
        if box_id is None:
            self.box_manager.set_active(None)
            self._notify()
            return True
        box = self.box_manager.get_box(box_id)
        if box is None:
            return False
        self.box_manager.set_active(box)
        self._notify()
        return True

    def set_current_label(self, label: str) -> None:
        """Label given to the next boxes drawn on the canvas."""
        self.controller.current_label = label

    # =====================================================================
    # History
    # =====================================================================

    def undo(self) -> Optional[HistoryEntry]:
        return self.controller.undo()

    def redo(self) -> Optional[HistoryEntry]:
        return self.controller.redo()

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # =====================================================================
    # Input passthrough
    # =====================================================================

    def pointer_down(self, x: float, y: float) -> str:
        return self.controller.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> None:
        self.controller.pointer_move(x, y)

    def pointer_up(self) -> Optional[HistoryEntry]:
        return self.controller.pointer_up()

    def key_press(self, key: str, ctrl: bool = False, shift: bool = False) -> bool:
        return self.controller.key_press(key, ctrl=ctrl, shift=shift)

    def cursor_at(self, x: float, y: float) -> str:
        return self.controller.cursor_at(x, y)
