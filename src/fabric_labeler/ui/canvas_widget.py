"""
Canvas Widget for interactive bounding box annotation in the fabric labeler.

This module provides the CanvasWidget class, a custom PyQt5 QLabel that shows
the image being labeled and lets the user draw, move and resize boxes on it.

The widget holds no annotation state of its own. Mouse and key events are
forwarded to an Annotator, and paintEvent is a read-only pass over
Annotator.boxes() and Annotator.active_box(), triggered by the Annotator's
change listener.

Module Contents:
    - CanvasWidget: Main widget class for the annotation canvas
"""

import io
from typing import Optional

from PyQt5.QtCore import QRectF, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QCursor, QFont, QKeyEvent, QMouseEvent, QPainter, QPen, QPixmap
from PyQt5.QtWidgets import QLabel

from fabric_labeler.annotator import Annotator
from fabric_labeler.constants import CLASS_COLORS, DEFAULT_BOX_COLOR, config
from fabric_labeler.ui.box_manager import handle_points

_QT_CURSORS = {
    "crosshair": Qt.CrossCursor,
    "move": Qt.SizeAllCursor,
    "nwse-resize": Qt.SizeFDiagCursor,
    "nesw-resize": Qt.SizeBDiagCursor,
    "ns-resize": Qt.SizeVerCursor,
    "ew-resize": Qt.SizeHorCursor,
}

_QT_KEYS = {
    Qt.Key_Delete: "Delete",
    Qt.Key_Backspace: "Backspace",
    Qt.Key_Escape: "Escape",
    Qt.Key_Z: "z",
    Qt.Key_Y: "y",
}


class CanvasWidget(QLabel):
    """
    Interactive annotation canvas.

    **Interaction** (delegated to the Annotator's InteractionController):
        - Press on empty space and drag to draw a box
        - Press inside a box and drag to move it
        - Drag one of the eight handles of the selected box to resize it
        - Delete removes the selected box, Escape aborts the current drag
        - Ctrl+Z / Ctrl+Shift+Z / Ctrl+Y for undo and redo
        - Ctrl+wheel zooms

    **Rendering**:
        - Boxes are stroked in their class color with a translucent fill
        - The selected box is drawn thicker, with its resize handles
        - The review preview box is dashed

    Signals:
        annotation_changed(): emitted after every change of the annotation state
    """

    annotation_changed = pyqtSignal()

    def __init__(self, parent=None, annotator: Annotator = None):
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)

        self.annotator = annotator or Annotator()
        self.annotator.add_listener(self._on_annotation_changed)
        self._source_pixmap: Optional[QPixmap] = None

        self.box_line_width = 2
        self.selected_line_width = 3

    # =====================================================================
    # Image
    # =====================================================================

    def load_image(self, image_path: str) -> None:
        """
        Load an image through the Annotator and show it fitted to the widget.

        The PIL image is handed to Qt as PNG bytes so every format PIL reads
        can be displayed.
        """
        pil_image = self.annotator.load_image(image_path, self.width(), self.height())
        img_bytes = io.BytesIO()
        pil_image.save(img_bytes, format='PNG')
        pixmap = QPixmap()
        pixmap.loadFromData(img_bytes.getvalue())
        self._source_pixmap = pixmap
        self._rescale_pixmap()

    def _rescale_pixmap(self) -> None:
        if self._source_pixmap is None:
            return
        width, height = self.annotator.image_manager.screen_size()
        self.setPixmap(self._source_pixmap.scaled(max(int(width), 1), max(int(height), 1),
                                                  Qt.KeepAspectRatio, Qt.SmoothTransformation))

    def _on_annotation_changed(self) -> None:
        self.annotation_changed.emit()
        self.update()

    # =====================================================================
    # Mouse and keyboard
    # =====================================================================

    def mousePressEvent(self, event: QMouseEvent):
        if config.get("MODE") != "BOX" or event.button() != Qt.LeftButton:
            return
        self.setFocus()
        self.annotator.pointer_down(event.pos().x(), event.pos().y())

    def mouseMoveEvent(self, event: QMouseEvent):
        x, y = event.pos().x(), event.pos().y()
        self.annotator.pointer_move(x, y)
        self.setCursor(QCursor(_QT_CURSORS[self.annotator.cursor_at(x, y)]))

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.annotator.pointer_up()

    def wheelEvent(self, event):
        if not event.modifiers() & Qt.ControlModifier:
            super().wheelEvent(event)
            return
        if event.angleDelta().y() > 0:
            self.annotator.zoom_in()
        else:
            self.annotator.zoom_out()
        self._rescale_pixmap()

    def keyPressEvent(self, event: QKeyEvent):
        key = _QT_KEYS.get(event.key())
        modifiers = event.modifiers()
        # Cmd on macOS arrives as ControlModifier in Qt
        consumed = key is not None and self.annotator.key_press(
            key,
            ctrl=bool(modifiers & Qt.ControlModifier),
            shift=bool(modifiers & Qt.ShiftModifier),
        )
        if not consumed:
            super().keyPressEvent(event)

    # =====================================================================
    # Painting
    # =====================================================================

    def color_for_label(self, label: str) -> QColor:
        labels = config.get("LABELS", [])
        if label in labels:
            return QColor(CLASS_COLORS[labels.index(label) % len(CLASS_COLORS)])
        return QColor(DEFAULT_BOX_COLOR)

    def paintEvent(self, event):
        # base image from QLabel
        super().paintEvent(event)

        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        active = self.annotator.active_box()
        boxes = self.annotator.boxes()
        if active is not None and all(box.box_id != active.box_id for box in boxes):
            # box still being drawn
            boxes.append(active)

        for box in boxes:
            is_active = active is not None and box.box_id == active.box_id
            self._draw_box(painter, box, is_active)
        painter.end()

    def _draw_box(self, painter: QPainter, box, is_active: bool) -> None:
        to_screen = self.annotator.image_manager.display_to_screen
        left, top, right, bottom = box.normalized()
        x1, y1 = to_screen(left, top)
        x2, y2 = to_screen(right, bottom)
        rect = QRectF(x1, y1, x2 - x1, y2 - y1)
        color = self.color_for_label(box.label)

        fill = QColor(color)
        fill.setAlpha(0x33)
        painter.fillRect(rect, fill)

        pen = QPen(color)
        pen.setWidth(self.selected_line_width if is_active else self.box_line_width)
        if box.is_preview:
            pen.setStyle(Qt.DashLine)
        painter.setPen(pen)
        painter.drawRect(rect)

        if box.label:
            font = QFont()
            font.setPointSize(9)
            font.setBold(True)
            painter.setFont(font)
            painter.drawText(int(x1) + 4, int(y1) - 4, box.label)

        if is_active:
            size = config["HANDLE_SIZE"]
            for _, hx, hy in handle_points(box):
                sx, sy = to_screen(hx, hy)
                painter.fillRect(QRectF(sx - size / 2, sy - size / 2, size, size), color)
