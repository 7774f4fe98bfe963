# ImagePost Filters - Tiling
"""
Kaleidoscopic tiling filters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from imagepost.extent import Extent
from .base import Filter, FilterContext, register_alias, register_filter

if TYPE_CHECKING:
    from imagepost.image import Image


def _fold(values: np.ndarray, width: float) -> np.ndarray:
    """Mirror coordinates into [0, width] with a period of 2 * width."""
    return width - np.abs(np.mod(values, 2.0 * width) - width)


@register_filter
@dataclass
class EightfoldReflectedTile(Filter):
    """Eightfold reflected tiling.

    A square tile of ``width`` pixels with one corner at ``center`` is cut
    along its diagonal. The resulting triangle is mirrored eight ways around
    the corner and repeated over the whole plane, producing a kaleidoscope.

    center: Tile corner in filter space, defaults to the image's center
    angle: Rotation of the tile grid in radians
    width: Tile edge length in pixels

    The result covers the input extent grown by ``width`` on every side.
    """

    center: tuple[float, float] | None = None
    angle: float = 0.0
    width: float = 100.0
    _primary_param = 'width'

    def validate(self) -> None:
        super().validate()
        if self.width <= 0:
            raise ValueError(f"width has to be positive, got {self.width}")

    def output_extent(self, extent: Extent) -> Extent:
        return extent.outset(int(math.ceil(self.width)))

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        from imagepost.image import Image as Img

        self.validate()
        source = image.extent
        target = self.output_extent(source)
        cx, cy = self.center if self.center is not None else source.center
        width = float(self.width)
        cos_a, sin_a = math.cos(self.angle), math.sin(self.angle)

        # Pixel centers of the target relative to the tile corner
        ys, xs = np.mgrid[target.y:target.y2, target.x:target.x2].astype(np.float64)
        dx = xs + 0.5 - cx
        dy = ys + 0.5 - cy

        # Into tile space, fold into the fundamental square, then the triangle
        u = _fold(dx * cos_a + dy * sin_a, width)
        v = _fold(-dx * sin_a + dy * cos_a, width)
        swap = v > u
        u, v = np.where(swap, v, u), np.where(swap, u, v)

        # Back into filter space and sample (nearest, clamped to the source)
        sx = cx + u * cos_a - v * sin_a
        sy = cy + u * sin_a + v * cos_a
        ix = np.clip(np.floor(sx).astype(np.int64) - source.x, 0, source.width - 1)
        iy = np.clip(np.floor(sy).astype(np.int64) - source.y, 0, source.height - 1)

        pixels = image.get_pixels()
        return Img(pixels[iy, ix], origin=(target.x, target.y))


register_alias('tile', EightfoldReflectedTile)
register_alias('tiled', EightfoldReflectedTile)
register_alias('kaleidoscope', EightfoldReflectedTile)
