# ImagePost Filters - Blur
"""
Gaussian blur stage and the edge-clamped blur helper shared with the glow
stages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import PIL.Image
from PIL import ImageFilter

from imagepost.extent import Extent
from .base import Filter, FilterContext, blur_margin, register_alias, register_filter

if TYPE_CHECKING:
    from imagepost.image import Image


def blur_pixels(pixels: np.ndarray, radius: float, margin: int) -> np.ndarray:
    """Blur an RGBA uint8 array after clamping its edges outwards.

    The array is first extended by ``margin`` pixels on every side by
    repeating the border pixels, so flat regions keep their color up to
    the edge.

    :param pixels: RGBA uint8 array (H, W, 4)
    :param radius: Gaussian radius in pixels
    :param margin: Number of pixels to extend each side by
    :returns: Blurred RGBA uint8 array (H + 2 * margin, W + 2 * margin, 4)
    """
    if margin > 0:
        pixels = np.pad(pixels, ((margin, margin), (margin, margin), (0, 0)), mode='edge')
    if radius <= 0:
        return pixels
    result = PIL.Image.fromarray(np.ascontiguousarray(pixels)).filter(ImageFilter.GaussianBlur(radius=radius))
    return np.asarray(result, dtype=np.uint8)


@register_filter
@dataclass
class GaussianBlur(Filter):
    """Gaussian blur filter.

    radius: Blur radius in pixels, negative values are clamped to 0. A
        radius of 0 returns the input unchanged.

    The result covers the input extent grown by three times the radius.
    """

    radius: float = 0.0
    _primary_param = 'radius'

    def __post_init__(self):
        self.radius = max(0.0, float(self.radius))

    def output_extent(self, extent: Extent) -> Extent:
        return extent.outset(blur_margin(self.radius))

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        from imagepost.image import Image as Img

        if self.radius == 0:
            return image
        margin = blur_margin(self.radius)
        result = blur_pixels(image.get_pixels(), self.radius, margin)
        return Img(result, origin=(image.extent.x - margin, image.extent.y - margin))


register_alias('blur', GaussianBlur)
register_alias('gaussian', GaussianBlur)
