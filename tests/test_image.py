"""
Tests for the Image, Extent and scaling classes
"""

import numpy as np
import PIL.Image
import pytest

from imagepost import Extent, Image, scale_to_fit, target_pixel_size


class TestExtent:
    """Tests for extent arithmetic."""

    def test_from_size(self):
        extent = Extent.from_size((30, 20))
        assert extent.to_int_tuple() == (0, 0, 30, 20)
        assert extent.x2 == 30
        assert extent.y2 == 20
        assert extent.area == 600
        assert extent.center == (15.0, 10.0)

    def test_outset_and_inset(self):
        extent = Extent(0, 0, 10, 10)
        assert extent.outset(5) == Extent(-5, -5, 20, 20)
        assert extent.outset(-3) == Extent(3, 3, 4, 4)
        assert extent.outset(-8).is_empty()

    def test_union(self):
        a = Extent(0, 0, 10, 10)
        b = Extent(5, -5, 10, 10)
        assert a.union(b) == Extent(0, -5, 15, 15)
        assert a.union(Extent()) == a

    def test_intersection(self):
        a = Extent(0, 0, 10, 10)
        b = Extent(5, 5, 10, 10)
        assert a.intersection(b) == Extent(5, 5, 5, 5)
        assert a.intersection(Extent(20, 20, 5, 5)).is_empty()

    def test_contains(self):
        outer = Extent(-10, -10, 50, 50)
        assert outer.contains(Extent(0, 0, 10, 10))
        assert not Extent(0, 0, 10, 10).contains(outer)


class TestImage:
    """Tests for the immutable RGBA image."""

    def test_blank_image(self):
        image = Image(size=(20, 10), bg_color=(1, 2, 3, 255))
        assert image.size == (20, 10)
        assert image.extent == Extent(0, 0, 20, 10)
        pixels = image.get_pixels()
        assert pixels.shape == (10, 20, 4)
        assert tuple(pixels[5, 5]) == (1, 2, 3, 255)

    def test_from_rgb_array(self, gradient_image):
        pixels = gradient_image.get_pixels()
        assert pixels.shape == (64, 64, 4)
        assert pixels[0, 0, 0] == 0
        assert pixels[0, 63, 0] == 255
        assert np.all(pixels[:, :, 3] == 255)

    def test_from_gray_array(self):
        image = Image(np.full((4, 6), 77, dtype=np.uint8))
        assert image.size == (6, 4)
        assert tuple(image.get_pixels()[0, 0]) == (77, 77, 77, 255)

    def test_from_float_array(self):
        image = Image.from_array(np.full((2, 2, 4), 0.5, dtype=np.float32))
        assert tuple(image.get_pixels()[0, 0]) == (128, 128, 128, 128)

    def test_invalid_sources(self):
        with pytest.raises(ValueError):
            Image(np.zeros((4, 4, 3), dtype=np.float32))
        with pytest.raises(ValueError):
            Image(np.zeros((0, 4, 3), dtype=np.uint8))
        with pytest.raises(ValueError):
            Image(b"definitely not an image")
        with pytest.raises(ValueError):
            Image("/nonexistent/photo.png")
        with pytest.raises(ValueError):
            Image()

    def test_read_only(self, gray_image):
        with pytest.raises(ValueError):
            gray_image.width = 5
        with pytest.raises(ValueError):
            gray_image.extent = Extent(0, 0, 1, 1)

    def test_get_pixels_is_a_copy(self, gray_image):
        pixels = gray_image.get_pixels()
        pixels[:] = 0
        assert gray_image.get_pixels()[0, 0, 0] == 128

    def test_origin_and_move(self, gray_image):
        moved = gray_image.moved_to((-5, 7))
        assert moved.extent == Extent(-5, 7, 100, 100)
        assert moved.origin == (-5, 7)
        assert gray_image.origin == (0, 0)

    def test_cropped_uses_filter_space(self, gradient_image):
        moved = gradient_image.moved_to((-10, -10))
        crop = moved.cropped(Extent(0, 0, 10, 10))
        assert crop.extent == Extent(0, 0, 10, 10)
        # Filter space x=0 is buffer column 10
        assert crop.get_pixels()[0, 0, 0] == gradient_image.get_pixels()[0, 10, 0]

    def test_cropped_out_of_bounds(self, gray_image):
        with pytest.raises(ValueError):
            gray_image.cropped(Extent(90, 90, 20, 20))
        with pytest.raises(ValueError):
            gray_image.cropped(Extent(0, 0, 0, 10))

    def test_encode_and_decode(self, gradient_image):
        data = gradient_image.to_png()
        decoded = Image(data)
        assert decoded == gradient_image

        jpeg = Image(gradient_image.encode('jpg', quality=95))
        assert jpeg.size == gradient_image.size

    def test_save_and_load(self, tmp_path, checkerboard_image):
        target = tmp_path / 'board.png'
        checkerboard_image.save(target)
        assert Image(target) == checkerboard_image
        assert Image(str(target)) == checkerboard_image

    def test_equality(self, gray_image):
        same = Image(size=(100, 100), bg_color=(128, 128, 128, 255))
        assert gray_image == same
        assert gray_image != gray_image.moved_to((1, 0))
        assert gray_image.get_hash() == same.get_hash()

    def test_from_pil(self):
        handle = PIL.Image.new('RGB', (8, 4), (10, 20, 30))
        image = Image(handle)
        assert image.to_pil().mode == 'RGBA'
        assert tuple(image.get_pixels()[0, 0]) == (10, 20, 30, 255)

    def test_independent_of_pil_source(self):
        handle = PIL.Image.new('RGBA', (4, 4), (10, 20, 30, 255))
        image = Image(handle)
        handle.putpixel((0, 0), (255, 0, 0, 255))
        assert tuple(image.get_pixels()[0, 0]) == (10, 20, 30, 255)


class TestScaling:
    """Tests for scaling photos to the display surface."""

    def test_target_pixel_size(self):
        assert target_pixel_size((160, 120), 2.0) == (320, 240)
        assert target_pixel_size((0.2, 0.2), 1.0) == (1, 1)
        with pytest.raises(ValueError):
            target_pixel_size((0, 10))
        with pytest.raises(ValueError):
            target_pixel_size((10, 10), 0)

    def test_scale_to_fit(self, gradient_image):
        scaled = scale_to_fit(gradient_image, (16, 8), screen_scale=2.0)
        assert scaled.size == (32, 16)
        assert scaled.extent == Extent(0, 0, 32, 16)

    def test_scale_resets_origin(self, gray_image):
        scaled = scale_to_fit(gray_image.moved_to((-4, -4)), (100, 100))
        assert scaled.origin == (0, 0)
        assert scaled.get_pixels()[50, 50, 0] == 128
