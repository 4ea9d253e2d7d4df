"""Tests for the pointer/keyboard state machine."""

from conftest import make_box
from fabric_labeler.constants import (STATE_DRAWING, STATE_IDLE, STATE_MOVING,
                                      STATE_RESIZING)


def drag(annotator, start, *points):
    state = annotator.pointer_down(*start)
    for point in points:
        annotator.pointer_move(*point)
    entry = annotator.pointer_up()
    return state, entry


def place(annotator, box, active=False):
    annotator.add_box(box)
    annotator.history.clear()
    if active:
        annotator.set_active_box(box.box_id)
    return box


class TestDrawing:
    def test_draw_commits_one_box_and_one_entry(self, annotator):
        state, entry = drag(annotator, (10, 10), (100, 80), (200, 150))
        assert state == STATE_DRAWING
        boxes = annotator.boxes()
        assert len(boxes) == 1
        assert boxes[0].corners() == (10, 10, 200, 150)
        assert entry.kind == "add"
        assert len(annotator.history.undo_stack) == 1
        assert annotator.active_box().box_id == boxes[0].box_id
        assert annotator.controller.state == STATE_IDLE

    def test_box_is_not_stored_until_release(self, annotator):
        annotator.pointer_down(10, 10)
        annotator.pointer_move(120, 90)
        assert annotator.boxes() == []
        assert annotator.active_box().corners() == (10, 10, 120, 90)

    def test_small_drag_is_discarded(self, annotator):
        _, entry = drag(annotator, (10, 10), (15, 16))
        assert entry is None
        assert annotator.boxes() == []
        assert not annotator.can_undo()
        assert annotator.active_box() is None

    def test_zero_area_click_is_discarded(self, annotator):
        _, entry = drag(annotator, (300, 300))
        assert entry is None
        assert annotator.boxes() == []

    def test_draw_is_clamped_to_canvas(self, annotator):
        drag(annotator, (900, 700), (5000, 5000))
        assert annotator.boxes()[0].corners() == (900, 700, 1000, 800)

    def test_new_boxes_take_current_label(self, annotator):
        annotator.set_current_label("linen")
        drag(annotator, (10, 10), (60, 60))
        assert annotator.boxes()[0].label == "linen"

    def test_drawing_with_zoom(self, annotator):
        annotator.set_zoom(2.0)
        drag(annotator, (20, 20), (220, 120))
        assert annotator.boxes()[0].corners() == (10, 10, 110, 60)


class TestMoving:
    def test_move_records_single_update(self, annotator):
        place(annotator, make_box("a", 100, 100, 200, 200))
        state, entry = drag(annotator, (150, 150), (160, 170), (170, 180))
        assert state == STATE_MOVING
        assert annotator.box_manager.get_box("a").corners() == (120, 130, 220, 230)
        assert entry.kind == "update"
        assert entry.before.corners() == (100, 100, 200, 200)
        assert len(annotator.history.undo_stack) == 1

        annotator.undo()
        assert annotator.box_manager.get_box("a").corners() == (100, 100, 200, 200)

    def test_move_is_clamped(self, annotator):
        place(annotator, make_box("a", 100, 100, 200, 200))
        drag(annotator, (150, 150), (2000, 150))
        assert annotator.box_manager.get_box("a").corners() == (900, 100, 1000, 200)

    def test_move_keeps_corner_order(self, annotator):
        place(annotator, make_box("a", 200, 200, 100, 100))
        drag(annotator, (150, 150), (160, 160))
        assert annotator.box_manager.get_box("a").corners() == (210, 210, 110, 110)

    def test_click_without_drag_records_nothing(self, annotator):
        place(annotator, make_box("a", 100, 100, 200, 200))
        _, entry = drag(annotator, (150, 150))
        assert entry is None
        assert not annotator.can_undo()
        assert annotator.active_box().box_id == "a"


class TestResizing:
    def test_corner_handle_past_opposite_corner(self, annotator):
        place(annotator, make_box("a", 100, 100, 200, 200), active=True)
        state, entry = drag(annotator, (200, 200), (50, 60))
        assert state == STATE_RESIZING
        box = annotator.box_manager.get_box("a")
        assert box.corners() == (100, 100, 50, 60)
        assert box.normalized() == (50, 60, 100, 100)
        assert entry.kind == "update"

    def test_edge_handle_moves_one_side(self, annotator):
        place(annotator, make_box("a", 100, 100, 200, 200), active=True)
        drag(annotator, (150, 100), (150, 80))
        assert annotator.box_manager.get_box("a").corners() == (100, 80, 200, 200)

    def test_handle_maps_to_swapped_storage(self, annotator):
        place(annotator, make_box("a", 200, 200, 100, 100), active=True)
        # visual top-left corner is stored in end_x/end_y
        drag(annotator, (100, 100), (90, 95))
        assert annotator.box_manager.get_box("a").corners() == (200, 200, 90, 95)

    def test_handles_need_an_active_box(self, annotator):
        place(annotator, make_box("a", 100, 100, 200, 200))
        state, _ = drag(annotator, (98, 98), (50, 50))
        assert state == STATE_DRAWING


class TestKeys:
    def test_delete_removes_active_box(self, annotator):
        place(annotator, make_box("b0", 10, 10, 50, 50))
        place(annotator, make_box("a", 100, 100, 200, 200), active=True)
        assert annotator.key_press("Delete")
        assert annotator.box_manager.get_box("a") is None
        assert annotator.active_box() is None
        assert annotator.history.undo_stack[-1].kind == "remove"

        assert annotator.key_press("z", ctrl=True)
        assert [b.box_id for b in annotator.boxes()] == ["b0", "a"]

    def test_delete_without_active_box(self, annotator):
        assert not annotator.key_press("Delete")

    def test_undo_redo_shortcuts(self, annotator):
        drag(annotator, (10, 10), (60, 60))
        assert annotator.key_press("z", ctrl=True)
        assert annotator.boxes() == []
        assert annotator.key_press("Z", ctrl=True, shift=True)
        assert len(annotator.boxes()) == 1
        annotator.undo()
        assert annotator.key_press("y", ctrl=True)
        assert len(annotator.boxes()) == 1

    def test_shortcuts_on_empty_history(self, annotator):
        assert not annotator.key_press("z", ctrl=True)
        assert not annotator.key_press("y", ctrl=True)
        assert not annotator.key_press("z")

    def test_escape_aborts_move(self, annotator):
        place(annotator, make_box("a", 100, 100, 200, 200))
        annotator.pointer_down(150, 150)
        annotator.pointer_move(180, 190)
        assert annotator.key_press("Escape")
        assert annotator.box_manager.get_box("a").corners() == (100, 100, 200, 200)
        assert annotator.controller.state == STATE_IDLE
        assert annotator.pointer_up() is None
        assert not annotator.can_undo()

    def test_escape_aborts_drawing(self, annotator):
        annotator.pointer_down(10, 10)
        annotator.pointer_move(100, 100)
        annotator.key_press("Escape")
        assert annotator.active_box() is None
        assert annotator.boxes() == []

    def test_undo_ignored_mid_gesture(self, annotator):
        drag(annotator, (10, 10), (60, 60))
        annotator.pointer_down(300, 300)
        assert annotator.undo() is None
        annotator.pointer_up()
        assert len(annotator.boxes()) == 1


class TestCursor:
    def test_cursor_shapes(self, annotator):
        place(annotator, make_box("a", 100, 100, 200, 200), active=True)
        assert annotator.cursor_at(500, 500) == "crosshair"
        assert annotator.cursor_at(150, 150) == "move"
        assert annotator.cursor_at(100, 100) == "nwse-resize"
        assert annotator.cursor_at(200, 100) == "nesw-resize"
        assert annotator.cursor_at(150, 200) == "ns-resize"
        assert annotator.cursor_at(200, 150) == "ew-resize"
