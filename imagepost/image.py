"""
Implements the class :class:`.Image`, the immutable pixel buffer passed
between filter stages.

Every image is stored as RGBA Pillow image together with its
:class:`~imagepost.extent.Extent`, the position of the buffer in filter space.
"""

from __future__ import annotations
import hashlib
import io
import os
from typing import Union

import PIL.Image
import filetype
import numpy as np

from .extent import Extent

SUPPORTED_IMAGE_FILETYPES = ["png", "bmp", "jpg", "jpeg", "gif", "webp"]
"List of image file types which can be read and written"

SUPPORTED_IMAGE_FILETYPE_SET = set(SUPPORTED_IMAGE_FILETYPES)
"Set of image file types which can be read and written"

Image = type

ImageSourceTypes = Union[str, os.PathLike, np.ndarray, bytes, PIL.Image.Image, Image]
"The valid source type for loading an image"


def _load_from_file(source: str | os.PathLike) -> bytes:
    """
    Loads image data from a file path.

    :param source: File path
    :return: The file's bytes
    """
    if not os.path.exists(source):
        raise ValueError(f"Image file not found: {source}")
    with open(source, "rb") as f:
        return f.read()


class Image:
    """
    Immutable RGBA image positioned in filter space.

    Stages never modify an image; each produces a new one. The pixel buffer
    size always equals the extent's size, only the extent's origin may differ
    from (0, 0).
    """

    def __init__(
        self,
        source: ImageSourceTypes | None = None,
        origin: tuple[int, int] = (0, 0),
        size: tuple[int, int] | None = None,
        bg_color: tuple[int, ...] = (0, 0, 0, 0),
    ):
        """
        :param source: The image source. Either a file name, encoded image
            data, a numpy array (gray, RGB or RGBA uint8), a PIL image or
            another Image.
        :param origin: Top left corner of the buffer in filter space.
        :param size: The size of a new blank image - if no source is passed.
        :param bg_color: The background color of a new blank image.

        Raises a ValueError if the image could not be loaded
        """
        if source is None:
            if size is None:
                raise ValueError("Either source or size has to be provided")
            if size[0] <= 0 or size[1] <= 0:
                raise ValueError(f"Invalid image size: {size}")
            handle = PIL.Image.new("RGBA", (int(size[0]), int(size[1])), tuple(bg_color))
        else:
            if size is not None:
                raise ValueError("Source and size may not be specified at the same time")
            if isinstance(source, Image):
                origin = (source.extent.x, source.extent.y) if origin == (0, 0) else origin
                handle = source.to_pil()
            else:
                handle = self._pil_from_source(source)
        self._pil_handle: PIL.Image.Image = handle
        "The RGBA PILLOW handle"
        self.width = handle.width
        "The image's width in pixels"
        self.height = handle.height
        "The image's height in pixels"
        self.extent = Extent(int(origin[0]), int(origin[1]), handle.width, handle.height)
        "The image's bounds in filter space"
        self._read_only = {"width", "height", "extent", "_pil_handle"}

    def __setattr__(self, key, value):
        if "_read_only" in self.__dict__:
            if key in self.__dict__:
                raise ValueError(f"{key} can not be modified after initialization")
        self.__dict__[key] = value

    @staticmethod
    def _pil_from_source(source) -> PIL.Image.Image:
        """
        Converts a supported source into an RGBA PIL image.

        :param source: The data source
        :return: The RGBA image
        """
        if isinstance(source, (str, os.PathLike)):
            source = _load_from_file(source)
        if isinstance(source, bytes):
            kind = filetype.guess(source)
            if kind is None or kind.extension not in SUPPORTED_IMAGE_FILETYPE_SET:
                raise ValueError("Invalid or unsupported image data")
            try:
                handle = PIL.Image.open(io.BytesIO(source))
                handle.load()
            except (PIL.UnidentifiedImageError, OSError):
                raise ValueError("Invalid or damaged image data")
        elif isinstance(source, np.ndarray):
            if source.dtype != np.uint8:
                raise ValueError(f"Unsupported array dtype: {source.dtype}")
            if source.ndim == 3 and source.shape[2] == 1:
                source = source[:, :, 0]
            if source.ndim not in (2, 3) or (source.ndim == 3 and source.shape[2] not in (3, 4)):
                raise ValueError(f"Unsupported array shape: {source.shape}")
            if source.shape[0] == 0 or source.shape[1] == 0:
                raise ValueError("Image arrays may not be empty")
            handle = PIL.Image.fromarray(np.ascontiguousarray(source))
        elif isinstance(source, PIL.Image.Image):
            # convert() below copies, RGBA sources have to be copied explicitly
            handle = source.copy() if source.mode == "RGBA" else source
        else:
            raise NotImplementedError(f"Unsupported image source: {type(source)}")
        if handle.mode != "RGBA":
            handle = handle.convert("RGBA")
        return handle

    @classmethod
    def from_array(cls, pixels: np.ndarray, origin: tuple[int, int] = (0, 0)) -> Image:
        """
        Creates an image from a numpy array.

        Float arrays are interpreted as values between 0.0 and 1.0.

        :param pixels: Array of shape (H, W), (H, W, 3) or (H, W, 4)
        :param origin: Top left corner in filter space
        :return: The new image
        """
        if pixels.dtype != np.uint8:
            pixels = (np.clip(np.nan_to_num(pixels), 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
        return cls(pixels, origin=origin)

    @property
    def size(self) -> tuple[int, int]:
        """
        Returns the image's size in pixels

        :return: The size as tuple (width, height)
        """
        return self.width, self.height

    @property
    def origin(self) -> tuple[int, int]:
        """Top left corner of the buffer in filter space."""
        return self.extent.x, self.extent.y

    def to_pil(self) -> PIL.Image.Image:
        """
        Returns the RGBA PIL image. Treat it as read-only.

        :return: The PIL image
        """
        return self._pil_handle

    def get_pixels(self) -> np.ndarray:
        """
        Returns a writable copy of the RGBA pixel data.

        :return: uint8 array of shape (height, width, 4)
        """
        return np.array(self._pil_handle, dtype=np.uint8)

    def moved_to(self, origin: tuple[int, int]) -> Image:
        """
        Returns the same pixels positioned at a different origin.

        :param origin: The new top left corner in filter space
        :return: The repositioned image
        """
        return Image(self._pil_handle, origin=origin)

    def cropped(self, extent: Extent) -> Image:
        """
        Crops a region given in filter space coordinates.

        :param extent: The region to keep, has to lie inside this image
        :return: The image of the defined subregion, positioned at the
            region's origin
        """
        if extent.is_empty():
            raise ValueError("Crop region is empty")
        if not self.extent.contains(extent):
            raise ValueError("Crop region out of image bounds")
        box = (
            extent.x - self.extent.x,
            extent.y - self.extent.y,
            extent.x2 - self.extent.x,
            extent.y2 - self.extent.y,
        )
        return Image(self._pil_handle.crop(box=box), origin=(extent.x, extent.y))

    def save(self, target: str | os.PathLike, quality: int = 90):
        """
        Saves the image to disk

        :param target: The target filename, the extension selects the format
        :param quality: JPEG quality between 0 and 100
        """
        extension = os.path.splitext(str(target))[1]
        data = self.encode(filetype=extension, quality=quality)
        with open(target, "wb") as output_file:
            output_file.write(data)

    def encode(self, filetype: str = "png", quality: int = 90) -> bytes:
        """
        Compresses the image and returns the compressed file's data.

        :param filetype: The output file type, e.g. "png" or "jpg".
        :param quality: JPEG quality between 0 and 100
        :return: The encoded data
        """
        filetype = filetype.lstrip(".").lower() or "png"
        if filetype == "jpg":
            filetype = "jpeg"
        if filetype not in SUPPORTED_IMAGE_FILETYPE_SET:
            raise ValueError(f"Unsupported file type: {filetype}")
        handle = self._pil_handle
        parameters = {}
        if filetype in {"jpeg", "bmp"}:
            # No alpha support, flatten onto white
            background = PIL.Image.new("RGBA", handle.size, (255, 255, 255, 255))
            handle = PIL.Image.alpha_composite(background, handle).convert("RGB")
        if filetype == "jpeg":
            parameters["quality"] = quality
        output_stream = io.BytesIO()
        handle.save(output_stream, format=filetype, **parameters)
        return output_stream.getvalue()

    def to_png(self) -> bytes:
        """Encodes the image as png."""
        return self.encode("png")

    def get_hash(self) -> str:
        """
        Returns a hash uniquely identifying pixels and extent

        :return: The image's hash
        """
        digest = hashlib.md5(self._pil_handle.tobytes())
        digest.update(repr(self.extent.to_int_tuple()).encode())
        return digest.hexdigest()

    def __eq__(self, other):
        if not isinstance(other, Image):
            return NotImplemented
        return self.extent == other.extent and np.array_equal(
            np.asarray(self._pil_handle), np.asarray(other._pil_handle)
        )

    __hash__ = None

    def __str__(self):
        return (
            f"Image ({self.width}x{self.height} RGBA at "
            f"{self.extent.x},{self.extent.y})"
        )

    __repr__ = __str__


__all__ = ["Image", "ImageSourceTypes", "SUPPORTED_IMAGE_FILETYPES"]
