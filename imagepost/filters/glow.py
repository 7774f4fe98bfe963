# ImagePost Filters - Glow
"""
Bloom and gloom filters.

Both blur a copy of the image and blend it back over the (edge-clamped)
original:

- Bloom screens the blurred copy over the image, softening edges and adding
  a bright glow.
- Gloom multiplies with the blurred copy, dulling the highlights.

The working extent grows by the blur margin on every side.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from imagepost.extent import Extent
from .base import Filter, FilterContext, blur_margin, register_alias, register_filter
from .blur import blur_pixels

if TYPE_CHECKING:
    from imagepost.image import Image


def _glow_layers(image: 'Image', radius: float) -> tuple[np.ndarray, np.ndarray, int]:
    """Return the edge-clamped source, its blurred copy (float RGBA) and the margin."""
    margin = blur_margin(radius)
    pixels = image.get_pixels()
    base = blur_pixels(pixels, 0.0, margin).astype(np.float32) / 255.0
    blurred = blur_pixels(pixels, radius, margin).astype(np.float32) / 255.0
    return base, blurred, margin


@dataclass
class _GlowFilter(Filter):
    """Shared parameter handling of the glow filters."""

    radius: float = 10.0
    intensity: float = 1.0
    _primary_param = 'intensity'

    def validate(self) -> None:
        super().validate()
        if self.radius < 0:
            raise ValueError(f"radius may not be negative, got {self.radius}")
        if self.intensity < 0:
            raise ValueError(f"intensity may not be negative, got {self.intensity}")

    def output_extent(self, extent: Extent) -> Extent:
        return extent.outset(blur_margin(self.radius))

    @abstractmethod
    def blend(self, base: np.ndarray, blurred: np.ndarray) -> np.ndarray:
        """Blend the float RGB planes of the source and its blurred copy."""

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        from imagepost.image import Image as Img

        self.validate()
        base, blurred, margin = _glow_layers(image, self.radius)
        result = base.copy()
        result[:, :, :3] = self.blend(base[:, :, :3], blurred[:, :, :3])
        return Img.from_array(result, origin=(image.extent.x - margin, image.extent.y - margin))


@register_filter
@dataclass
class Bloom(_GlowFilter):
    """Soften edges and add a glow by screening a blurred copy.

    radius: Blur radius of the glow in pixels
    intensity: Strength of the glow (0 = none, 1 = full screen blend)
    """

    radius: float = 30.0
    intensity: float = 1.0

    def blend(self, base: np.ndarray, blurred: np.ndarray) -> np.ndarray:
        return 1.0 - (1.0 - base) * (1.0 - self.intensity * blurred)


@register_filter
@dataclass
class Gloom(_GlowFilter):
    """Dull the highlights by multiplying with a blurred copy.

    radius: Blur radius of the gloom in pixels
    intensity: Strength of the effect (0 = none, 1 = full multiply blend)
    """

    radius: float = 10.0
    intensity: float = 0.9

    def blend(self, base: np.ndarray, blurred: np.ndarray) -> np.ndarray:
        return base * (1.0 - self.intensity + self.intensity * blurred)


register_alias('bloom', Bloom)
register_alias('glow', Bloom)
register_alias('gloom', Gloom)
