'''
Conversions between the coordinate spaces of the labeler.

Image-pixel space is the grid of the original image and is what labels are
exported in. Display space is image pixels x base_scale x zoom. The base
scale fits the image into its container without ever upscaling it.

Boxes are kept in display space at zoom 1; zoom is only applied when
projecting to and from the screen. Every function here is pure.
'''

from typing import Tuple

Point = Tuple[float, float]


def compute_base_scale(container_width: float, container_height: float,
                       image_width: float, image_height: float) -> float:
    """
    Scale that fits an image into a container, capped at 1.0.

    Args:
        container_width (float): Width available for the image
        container_height (float): Height available for the image
        image_width (float): Native width of the image
        image_height (float): Native height of the image

    Returns:
        float: min(container_width / image_width, container_height / image_height, 1)
    """
    if image_width <= 0 or image_height <= 0:
        return 1.0
    return min(container_width / image_width, container_height / image_height, 1.0)


def to_display(value: float, base_scale: float, zoom: float = 1.0) -> float:
    return value * base_scale * zoom


def to_image_pixel(value: float, base_scale: float, zoom: float = 1.0) -> float:
    # a zero scale has no inverse; leave the value alone
    factor = base_scale * zoom
    if factor == 0:
        return value
    return value / factor


def to_display_point(point: Point, base_scale: float, zoom: float = 1.0) -> Point:
    return (to_display(point[0], base_scale, zoom), to_display(point[1], base_scale, zoom))


def to_image_pixel_point(point: Point, base_scale: float, zoom: float = 1.0) -> Point:
    return (to_image_pixel(point[0], base_scale, zoom), to_image_pixel(point[1], base_scale, zoom))


def pixel_label_to_corners(label: dict, base_scale: float) -> Tuple[float, float, float, float]:
    """
    Convert a {x, y, width, height} pixel label into display-space corners.

    Args:
        label (dict): Top-left corner and size in image pixels
        base_scale (float): Base fit scale of the current image

    Returns:
        tuple: (start_x, start_y, end_x, end_y)
    """
    start_x, start_y = to_display_point((label["x"], label["y"]), base_scale)
    end_x, end_y = to_display_point((label["x"] + label["width"], label["y"] + label["height"]),
                                    base_scale)
    return start_x, start_y, end_x, end_y


def corners_to_pixel_rect(corners: Tuple[float, float, float, float],
                          base_scale: float) -> Tuple[float, float, float, float]:
    """
    Convert display-space corners (in any order) into a pixel rectangle.

    Returns:
        tuple: (x, y, width, height) in image pixels, top-left + size
    """
    sx, sy, ex, ey = corners
    x1, y1 = to_image_pixel_point((min(sx, ex), min(sy, ey)), base_scale)
    x2, y2 = to_image_pixel_point((max(sx, ex), max(sy, ey)), base_scale)
    return x1, y1, x2 - x1, y2 - y1


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


def pixel_rect_to_yolo(x: float, y: float, width: float, height: float,
                       image_width: float, image_height: float) -> Tuple[float, float, float, float]:
    """
    Convert a pixel rectangle into YOLO normalized coordinates.

    Returns:
        tuple: (x_center, y_center, width, height), each clamped to [0, 1]
    """
    if image_width <= 0 or image_height <= 0:
        return 0.0, 0.0, 0.0, 0.0
    return (_clamp_unit((x + width / 2) / image_width),
            _clamp_unit((y + height / 2) / image_height),
            _clamp_unit(width / image_width),
            _clamp_unit(height / image_height))


def yolo_to_pixel_rect(x_center: float, y_center: float, norm_width: float, norm_height: float,
                       image_width: float, image_height: float) -> Tuple[float, float, float, float]:
    """
    Convert YOLO normalized coordinates into a pixel rectangle.

    Returns:
        tuple: (x, y, width, height) in image pixels
    """
    abs_width = norm_width * image_width
    abs_height = norm_height * image_height
    abs_x = (x_center * image_width) - (abs_width / 2)
    abs_y = (y_center * image_height) - (abs_height / 2)
    return abs_x, abs_y, abs_width, abs_height
