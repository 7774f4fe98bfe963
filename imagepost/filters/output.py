"""Rasterization of a working image into a displayable bitmap.

Stages may grow or shift their working rectangle. Before display the result
is rendered into a fresh buffer covering exactly the requested extent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import PIL.Image

from imagepost.exceptions import RasterizationError
from imagepost.extent import Extent

if TYPE_CHECKING:
    from imagepost.image import Image


def rasterize(image: 'Image', extent: Extent) -> 'Image':
    """Render the part of ``image`` inside ``extent`` into a new image.

    Areas of ``extent`` not covered by the image stay transparent.

    :param image: The working image
    :param extent: Target bounds in filter space
    :returns: Image whose extent equals ``extent``
    :raises RasterizationError: If the extent is degenerate or rendering failed
    """
    from imagepost.image import Image as Img

    if extent.is_empty():
        raise RasterizationError(f"Can not render zero-area extent {extent.to_int_tuple()}")
    if image.extent.contains(extent):
        return image.cropped(extent)

    try:
        canvas = PIL.Image.new("RGBA", extent.size, (0, 0, 0, 0))
        covered = image.extent.intersection(extent)
        if not covered.is_empty():
            part = image.cropped(covered)
            canvas.paste(part.to_pil(), (covered.x - extent.x, covered.y - extent.y))
    except (ValueError, MemoryError) as e:
        raise RasterizationError(f"Rendering failed: {e}") from e
    return Img(canvas, origin=(extent.x, extent.y))
