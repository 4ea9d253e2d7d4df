import pytest

from fabric_labeler.annotator import Annotator
from fabric_labeler.constants import config
from fabric_labeler.ui.bounding_box import BoundingBox, BoxIdGenerator


@pytest.fixture(autouse=True)
def restore_config():
    """Tests may tweak the global config; put it back afterwards."""
    saved = dict(config)
    saved["LABELS"] = list(config["LABELS"])
    yield
    config.clear()
    config.update(saved)


@pytest.fixture
def annotator():
    """An annotator on a 1000x800 image shown at scale 1."""
    ann = Annotator(container_width=1000, container_height=800, id_generator=BoxIdGenerator(salt=0))
    ann.set_image(1000, 800)
    return ann


def make_box(box_id, x1, y1, x2, y2, label="fabric", is_preview=False):
    return BoundingBox(x1, y1, x2, y2, label=label, box_id=box_id, is_preview=is_preview)
