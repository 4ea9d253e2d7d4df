"""Tests for the box store: CRUD, selection and hit-testing."""

from conftest import make_box
from fabric_labeler.ui.bounding_box import BoundingBox, BoxIdGenerator
from fabric_labeler.ui.box_manager import BoxManager


class TestBoundingBox:
    def test_normalized_does_not_reorder_storage(self):
        box = BoundingBox(200, 150, 100, 50, box_id="a")
        assert box.normalized() == (100, 50, 200, 150)
        assert (box.start_x, box.start_y) == (200, 150)

    def test_validity_needs_size_and_label(self):
        assert make_box("a", 0, 0, 10, 10).is_valid(10)
        assert not make_box("a", 0, 0, 9, 40).is_valid(10)
        assert not make_box("a", 0, 0, 40, 40, label="").is_valid(10)

    def test_copy_ignores_unknown_fields(self):
        box = make_box("a", 0, 0, 10, 10)
        changed = box.copy(end_x=30, colour="red")
        assert changed.end_x == 30
        assert box.end_x == 10
        assert not hasattr(changed, "colour")

    def test_id_generator_never_repeats(self):
        generator = BoxIdGenerator(salt=123)
        ids = {generator() for _ in range(100)}
        assert len(ids) == 100
        assert all(i.startswith("box-123-") for i in ids)


class TestCrud:
    def test_duplicate_id_is_ignored(self):
        store = BoxManager()
        assert store.add_box(make_box("a", 0, 0, 10, 10))
        assert not store.add_box(make_box("a", 5, 5, 50, 50))
        assert len(store) == 1
        assert store.get_box("a").end_x == 10

    def test_remove_clears_active(self):
        store = BoxManager()
        box = make_box("a", 0, 0, 10, 10)
        store.add_box(box)
        store.set_active(box)
        assert store.remove_box("a")
        assert store.get_active() is None
        assert not store.remove_box("a")

    def test_update_replaces_instead_of_mutating(self):
        store = BoxManager()
        box = make_box("a", 0, 0, 10, 10)
        store.add_box(box)
        store.set_active(box)
        assert store.update_box("a", label="silk")
        assert box.label == "fabric"
        assert store.get_box("a").label == "silk"
        assert store.get_active().label == "silk"

    def test_update_missing_box(self):
        assert not BoxManager().update_box("nope", label="x")

    def test_detached_active_box(self):
        store = BoxManager()
        drawing = make_box("d", 0, 0, 5, 5)
        store.set_active(drawing)
        assert store.get_active() is drawing
        assert len(store) == 0

    def test_add_at_index(self):
        store = BoxManager()
        store.add_box(make_box("a", 0, 0, 10, 10))
        store.add_box(make_box("b", 0, 0, 10, 10))
        store.add_box(make_box("c", 0, 0, 10, 10), index=1)
        assert [b.box_id for b in store.get_all_boxes()] == ["a", "c", "b"]

    def test_clear(self):
        store = BoxManager()
        box = make_box("a", 0, 0, 10, 10)
        store.add_box(box)
        store.set_active(box)
        store.clear()
        assert len(store) == 0
        assert store.get_active() is None

    def test_snapshot_restore(self):
        store = BoxManager()
        store.add_box(make_box("a", 0, 0, 10, 10))
        snap = store.snapshot()
        store.add_box(make_box("b", 0, 0, 10, 10))
        store.update_box("a", label="silk")
        store.restore(snap)
        assert store.to_list() == [make_box("a", 0, 0, 10, 10).to_dict()]

    def test_list_serialization(self):
        store = BoxManager()
        store.add_box(make_box("a", 0, 0, 10, 10))
        store.add_box(make_box("b", 5, 5, 30, 30, label="silk", is_preview=True))
        other = BoxManager()
        other.add_box(make_box("stale", 0, 0, 1, 1))
        other.from_list(store.to_list())
        assert [b.box_id for b in other.get_all_boxes()] == ["a", "b"]
        assert other.get_box("b").is_preview
        assert repr(other) == "BoxManager(count=2)"

    def test_boxes_by_label(self):
        store = BoxManager()
        store.add_box(make_box("a", 0, 0, 10, 10, label="silk"))
        store.add_box(make_box("b", 0, 0, 10, 10, label="cotton"))
        store.add_box(make_box("c", 0, 0, 10, 10, label="silk"))
        assert [b.box_id for b in store.get_boxes_by_label("silk")] == ["a", "c"]


class TestHitTest:
    def test_topmost_box_wins(self):
        store = BoxManager()
        store.add_box(make_box("under", 0, 0, 100, 100))
        store.add_box(make_box("over", 50, 50, 150, 150))
        assert store.hit_test(75, 75, 8).box.box_id == "over"
        assert store.hit_test(25, 25, 8).box.box_id == "under"
        assert store.hit_test(500, 500, 8) is None

    def test_handles_only_on_active_box(self):
        store = BoxManager()
        box = make_box("a", 100, 100, 200, 200)
        store.add_box(box)
        # just outside the rectangle, inside the corner handle zone
        assert store.hit_test(97, 97, 8) is None
        store.set_active(box)
        hit = store.hit_test(97, 97, 8)
        assert hit.box.box_id == "a"
        assert hit.handle == "tl"

    def test_edge_midpoint_handles(self):
        store = BoxManager()
        box = make_box("a", 200, 200, 100, 100)
        store.add_box(box)
        store.set_active(box)
        assert store.hit_test(150, 100, 8).handle == "n"
        assert store.hit_test(150, 200, 8).handle == "s"
        assert store.hit_test(100, 150, 8).handle == "w"
        assert store.hit_test(200, 150, 8).handle == "e"
        assert store.hit_test(150, 150, 8).handle is None

    def test_handle_size_is_respected(self):
        store = BoxManager()
        box = make_box("a", 100, 100, 200, 200)
        store.add_box(box)
        store.set_active(box)
        assert store.hit_test(205, 205, 8) is None
        assert store.hit_test(205, 205, 16).handle == "br"
