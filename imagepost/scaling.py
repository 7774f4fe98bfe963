"""Scaling of decoded photos to the pixel size of the display surface."""

from __future__ import annotations

import math

import PIL.Image

from .image import Image


def target_pixel_size(view_size: tuple[float, float], screen_scale: float = 1.0) -> tuple[int, int]:
    """
    Converts a view size in points into device pixels.

    :param view_size: Width and height of the display surface in points
    :param screen_scale: Device pixels per point
    :return: The pixel size, each side at least one pixel
    """
    if screen_scale <= 0 or not math.isfinite(screen_scale):
        raise ValueError(f"Invalid screen scale: {screen_scale}")
    width, height = view_size
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid view size: {view_size}")
    return max(1, round(width * screen_scale)), max(1, round(height * screen_scale))


def scale_to_fit(
    image: Image,
    view_size: tuple[float, float],
    screen_scale: float = 1.0,
) -> Image:
    """
    Resizes an image to the display surface's pixel dimensions.

    The result is placed at the filter space origin, so all later extents
    are relative to the scaled image.

    :param image: The decoded source image
    :param view_size: Width and height of the display surface in points
    :param screen_scale: Device pixels per point
    :return: The scaled image
    """
    size = target_pixel_size(view_size, screen_scale)
    handle = image.to_pil()
    if handle.size != size:
        handle = handle.resize(size, PIL.Image.Resampling.LANCZOS)
    return Image(handle, origin=(0, 0))
