# ImagePost Filters - Pixellate
"""
Pixellation filter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .base import Filter, FilterContext, register_alias, register_filter

if TYPE_CHECKING:
    from imagepost.image import Image


def _block_labels(start: int, count: int, anchor: float, scale: float) -> np.ndarray:
    """Block index of each pixel along one axis, starting at 0."""
    coords = np.arange(start, start + count, dtype=np.float64)
    blocks = np.floor((coords - anchor) / scale).astype(np.int64)
    return blocks - blocks[0]


@register_filter
@dataclass
class Pixellate(Filter):
    """Replace square blocks of pixels by their mean color.

    scale: Block edge length in pixels
    center: Point in filter space the block grid is anchored at

    The extent is left unchanged; blocks cut by the image border only
    average the pixels inside the image.
    """

    scale: float = 24.0
    center: tuple[float, float] = (0.0, 0.0)
    _primary_param = 'scale'

    def validate(self) -> None:
        super().validate()
        if self.scale < 1:
            raise ValueError(f"scale has to be at least 1, got {self.scale}")

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        from imagepost.image import Image as Img

        self.validate()
        extent = image.extent
        scale = float(self.scale)
        rows = _block_labels(extent.y, extent.height, self.center[1], scale)
        cols = _block_labels(extent.x, extent.width, self.center[0], scale)
        n_cols = int(cols[-1]) + 1
        labels = (rows[:, None] * n_cols + cols[None, :]).ravel()
        n_blocks = int(labels[-1]) + 1

        pixels = image.get_pixels().reshape(-1, 4).astype(np.float64)
        counts = np.bincount(labels, minlength=n_blocks)
        means = np.empty((n_blocks, 4), dtype=np.float64)
        for channel in range(4):
            sums = np.bincount(labels, weights=pixels[:, channel], minlength=n_blocks)
            means[:, channel] = sums / np.maximum(counts, 1)

        result = np.floor(means[labels] + 0.5).astype(np.uint8)
        return Img(result.reshape(extent.height, extent.width, 4), origin=(extent.x, extent.y))


register_alias('pixellate', Pixellate)
register_alias('pixelate', Pixellate)
register_alias('mosaic', Pixellate)
