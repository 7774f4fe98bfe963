"""
Pytest fixtures for ImagePost tests
"""

import numpy as np
import pytest

from imagepost import Image


@pytest.fixture
def gray_image() -> Image:
    """Create a solid mid-gray 100x100 image."""
    return Image(size=(100, 100), bg_color=(128, 128, 128, 255))


@pytest.fixture
def gradient_image() -> Image:
    """Create a 64x64 horizontal gradient (black to white)."""
    pixels = np.zeros((64, 64, 3), dtype=np.uint8)
    for x in range(64):
        pixels[:, x, :] = x * 255 // 63
    return Image(pixels)


@pytest.fixture
def asymmetric_image() -> Image:
    """Create a 64x64 image with a bright left and a dark right half."""
    pixels = np.full((64, 64, 3), 40, dtype=np.uint8)
    pixels[:, :32, :] = 230
    pixels[10:20, 40:50, 0] = 250  # small red highlight in the dark half
    return Image(pixels)


@pytest.fixture
def checkerboard_image() -> Image:
    """Create a 48x48 checkerboard (8x8 squares)."""
    pixels = np.zeros((48, 48, 3), dtype=np.uint8)
    for y in range(48):
        for x in range(48):
            if ((x // 8) + (y // 8)) % 2 == 0:
                pixels[y, x] = [255, 255, 255]
    return Image(pixels)
