# Tests for point operations
"""
Test invert, gamma, brightness, contrast, grayscale, lerp, threshold and
histogram equalization.
"""

import numpy as np
import pytest

from pixelstag import Image, InvalidCastError, InvalidDataError, Luma, PixelFormat, Primitive, Rgba
from pixelstag.filters import (
    ThresholdType,
    brightness,
    contrast,
    gamma,
    grayscale,
    histogram_equalize,
    invert,
    lerp,
    threshold,
)


def luma_row(*values, dtype=np.uint8) -> Image:
    """Creates a single-row luminance image."""
    return Image.from_array(np.array([values], dtype=dtype))


def row_values(image: Image) -> list:
    return image.get_pixels()[0, :, 0].tolist()


@pytest.fixture
def levels():
    """Five luminance levels from black to white."""
    return luma_row(0, 64, 128, 192, 255)


class TestThreshold:
    """Tests for threshold."""

    def test_binary(self, levels):
        """Values at or above the threshold become the maximum intensity."""
        assert row_values(threshold(levels, 128, 255, ThresholdType.BINARY)) == [0, 0, 255, 255, 255]

    def test_binary_custom_intensity(self, levels):
        assert row_values(threshold(levels, 128, 100)) == [0, 0, 100, 100, 100]

    def test_truncate(self, levels):
        """Values strictly above the threshold are cut to it."""
        assert row_values(threshold(levels, 128, 255, ThresholdType.TRUNCATE)) == [0, 64, 128, 128, 128]

    def test_to_zero(self, levels):
        """Values not above the threshold become zero."""
        assert row_values(threshold(levels, 128, 255, "to_zero")) == [0, 0, 0, 192, 255]

    def test_kind_case_insensitive(self, levels):
        assert row_values(threshold(levels, 128, 255, "TRUNCATE")) == [0, 64, 128, 128, 128]
        assert ThresholdType.parse("To_Zero") is ThresholdType.TO_ZERO

    def test_unknown_kind(self, levels):
        with pytest.raises(InvalidDataError):
            threshold(levels, 128, 255, "otsu")

    def test_requires_luma(self, rgba_image):
        with pytest.raises(InvalidDataError):
            threshold(rgba_image, 128, 255)

    def test_invalid_intensity(self, levels):
        with pytest.raises(InvalidCastError):
            threshold(levels, 128, 300)


class TestInvert:
    """Tests for invert."""

    def test_keeps_alpha(self):
        image = Image.from_data(1, 1, [Rgba(10, 20, 30, 40)])
        assert invert(image).get_pixel((0, 0)) == Rgba(245, 235, 225, 40)

    def test_involution(self, rgba_image):
        """Inverting twice restores the image."""
        assert invert(invert(rgba_image)) == rgba_image
        wide = rgba_image.convert(PixelFormat.LUMA16)
        assert invert(invert(wide)) == wide

    def test_float(self):
        image = luma_row(0.0, 0.25, 0.5, 0.75, 1.0, dtype=np.float32)
        assert row_values(invert(image)) == [1.0, 0.75, 0.5, 0.25, 0.0]
        assert invert(invert(image)) == image

    def test_source_unchanged(self, levels):
        invert(levels)
        assert row_values(levels) == [0, 64, 128, 192, 255]


class TestGammaBrightnessContrast:
    """Tests for gamma, brightness and contrast."""

    def test_gamma_identity(self, rgba_image):
        assert gamma(rgba_image, 1.0) == rgba_image

    def test_gamma_brightens(self):
        assert row_values(gamma(luma_row(0, 64, 255), 2.0)) == [0, 128, 255]

    def test_gamma_must_be_positive(self, levels):
        with pytest.raises(InvalidDataError):
            gamma(levels, 0.0)
        with pytest.raises(InvalidDataError):
            gamma(levels, -1.0)

    def test_brightness_clamps(self):
        assert row_values(brightness(luma_row(10, 220), 50)) == [60, 255]
        assert row_values(brightness(luma_row(10, 220), -20)) == [0, 200]

    def test_brightness_keeps_alpha(self):
        image = Image.from_data(1, 1, [Rgba(10, 20, 30, 40)])
        assert brightness(image, 5).get_pixel((0, 0)) == Rgba(15, 25, 35, 40)

    def test_contrast_clamps(self):
        assert row_values(contrast(luma_row(100, 200), 2.0)) == [200, 255]
        assert row_values(contrast(luma_row(100, 200), 0.0)) == [0, 0]


class TestGrayscale:
    """Tests for grayscale."""

    def test_rgba8(self):
        image = Image.from_data(2, 1, [Rgba(255, 0, 0), Rgba(255, 255, 255, 0)])
        gray = grayscale(image)
        assert gray.pixel_format is PixelFormat.LUMA8
        assert row_values(gray) == [76, 255]

    def test_keeps_primitive(self):
        image = Image.from_data(1, 1, [Rgba(65535, 0, 0, primitive=Primitive.U16)])
        gray = grayscale(image)
        assert gray.pixel_format is PixelFormat.LUMA16
        assert gray.get_pixel((0, 0)) == Luma(19595, primitive=Primitive.U16)

    def test_luma_is_copied(self, levels):
        gray = grayscale(levels)
        assert gray == levels
        assert gray is not levels


class TestLerp:
    """Tests for lerp."""

    def test_midpoint(self):
        """Ties round away from zero, alpha is interpolated as well."""
        first = Image.from_data(1, 1, [Rgba(0, 0, 0, 0)])
        second = Image.from_data(1, 1, [Rgba(255, 100, 10, 255)])
        assert lerp(first, second, 0.5).get_pixel((0, 0)) == Rgba(128, 50, 5, 128)

    def test_end_points(self, rgba_image):
        other = invert(rgba_image)
        assert lerp(rgba_image, other, 0.0) == rgba_image
        assert lerp(rgba_image, other, 1.0) == other

    def test_size_mismatch(self):
        with pytest.raises(InvalidDataError):
            lerp(Image(2, 2), Image(2, 3), 0.5)

    def test_format_mismatch(self):
        with pytest.raises(InvalidDataError):
            lerp(Image(2, 2), Image(2, 2, PixelFormat.RGBA16), 0.5)


class TestHistogramEqualize:
    """Tests for histogram_equalize."""

    def test_spreads_levels(self):
        assert row_values(histogram_equalize(luma_row(10, 20, 30, 30))) == [0, 85, 255, 255]
        assert row_values(histogram_equalize(luma_row(50, 50, 100, 100))) == [0, 0, 255, 255]

    def test_uniform_image_unchanged(self):
        image = luma_row(77, 77, 77)
        assert histogram_equalize(image) == image

    def test_empty_image(self):
        image = Image(0, 0, PixelFormat.LUMA8)
        assert histogram_equalize(image).is_empty()

    def test_float(self):
        image = luma_row(0.25, 0.75, dtype=np.float32)
        assert row_values(histogram_equalize(image)) == [0.0, 1.0]

    def test_wide_range(self):
        image = luma_row(1000, 3000, dtype=np.uint16)
        assert row_values(histogram_equalize(image)) == [0, 65535]

    def test_requires_luma(self, rgba_image):
        with pytest.raises(InvalidDataError):
            histogram_equalize(rgba_image)
