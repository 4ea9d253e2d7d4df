'''
Keep track of the image being labeled and of how it is shown on screen.

The ImageManager stores the native size of the current image, the size of
the container it is displayed in, the base fit scale derived from both and
the user's zoom level. Screen positions coming from the canvas go through it
to become display-space coordinates (zoom 1) for the box store.
'''

import logging
from typing import Tuple

from PIL import Image

from fabric_labeler.constants import config
from fabric_labeler.tools import coordinate_transform as ct

logger = logging.getLogger(__name__)


class ImageManager():
    def __init__(self, container_width: float = None, container_height: float = None):
        self.current_image = None
        self.original_width = 0
        self.original_height = 0
        self.container_width = container_width if container_width is not None else config["CONTAINER_WIDTH"]
        self.container_height = container_height if container_height is not None else config["CONTAINER_HEIGHT"]
        self.base_scale = 1.0
        self.zoom = 1.0

    def set_image_size(self, width: int, height: int):
        """
        Register the native size of a new image and recompute the base scale.
        Zoom is reset to 1.
        """
        self.original_width = width
        self.original_height = height
        self.zoom = 1.0
        self.update_base_scale()

    def load_image(self, image_path: str) -> Image.Image:
        """
        Open an image with PIL and register its size.

        Returns:
            PIL.Image.Image: the image converted to RGB
        """
        pil_image = Image.open(image_path)

        # Convert to RGB if it's not already to handle palette and alpha formats
        if pil_image.mode != 'RGB':
            pil_image = pil_image.convert('RGB')

        self.current_image = image_path
        self.set_image_size(pil_image.width, pil_image.height)
        logger.info("Loaded %s (%dx%d, base scale %.4f)", image_path,
                    pil_image.width, pil_image.height, self.base_scale)
        return pil_image

    def set_container_size(self, width: float, height: float):
        self.container_width = width
        self.container_height = height
        self.update_base_scale()

    def update_base_scale(self):
        self.base_scale = ct.compute_base_scale(self.container_width, self.container_height,
                                                self.original_width, self.original_height)

    # ==================== Zoom ====================

    def set_zoom(self, zoom: float) -> float:
        """Set the zoom level, clamped to [ZOOM_MIN, ZOOM_MAX]. Returns the applied value."""
        self.zoom = max(config["ZOOM_MIN"], min(zoom, config["ZOOM_MAX"]))
        return self.zoom

    def zoom_in(self) -> float:
        return self.set_zoom(round(self.zoom + config["ZOOM_STEP"], 4))

    def zoom_out(self) -> float:
        return self.set_zoom(round(self.zoom - config["ZOOM_STEP"], 4))

    # ==================== Geometry ====================

    def display_size(self) -> Tuple[float, float]:
        """Size of the image in display space at zoom 1 (the bounds boxes live in)."""
        return (ct.to_display(self.original_width, self.base_scale),
                ct.to_display(self.original_height, self.base_scale))

    def screen_size(self) -> Tuple[float, float]:
        """Size of the zoomed image on screen."""
        return (ct.to_display(self.original_width, self.base_scale, self.zoom),
                ct.to_display(self.original_height, self.base_scale, self.zoom))

    def screen_to_display(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        """
        Convert a canvas position into display space, clamped to the image.

        Args:
            screen_x (float): X coordinate on the zoomed canvas
            screen_y (float): Y coordinate on the zoomed canvas

        Returns:
            tuple: (x, y) in display space at zoom 1
        """
        zoom = self.zoom or 1.0
        x = screen_x / zoom
        y = screen_y / zoom
        max_x, max_y = self.display_size()
        return max(0.0, min(x, max_x)), max(0.0, min(y, max_y))

    def display_to_screen(self, x: float, y: float) -> Tuple[float, float]:
        return x * self.zoom, y * self.zoom

    def handle_size(self) -> float:
        """Handle zone side in display units, constant on screen whatever the zoom."""
        return config["HANDLE_SIZE"] / (self.zoom or 1.0)
