"""
Tests for affine transforms
"""

import math

import numpy as np
import pytest

from pixelstag import Image, InvalidDataError, Rgba
from pixelstag.filters import Rotate, affine_transform, rotate, rotation_matrix, scale, translate


def luma_image(values) -> Image:
    return Image.from_array(np.array(values, dtype=np.uint8))


def luma_values(image: Image) -> list:
    return image.get_pixels()[:, :, 0].tolist()


@pytest.fixture
def numbered():
    """4x4 luminance image whose pixels hold 1..16."""
    return luma_image(np.arange(1, 17).reshape(4, 4))


class TestAffineTransform:
    """Tests for affine_transform and its shortcuts."""

    def test_identity(self, rgba_image):
        assert affine_transform(rgba_image, np.eye(3)) == rgba_image
        assert affine_transform(rgba_image, [[1, 0, 0], [0, 1, 0]]) == rgba_image

    def test_translate(self):
        """Output positions sample the source at (x + tx, y + ty)."""
        assert luma_values(translate(luma_image([[1, 2, 3]]), (1, 0))) == [[2, 3, 0]]
        assert luma_values(translate(luma_image([[1, 2, 3]]), (-1, 0))) == [[0, 1, 2]]

    def test_fractional_offsets_floor(self):
        image = luma_image([[1, 2, 3]])
        assert translate(image, (0.5, 0)) == image

    def test_scale(self, numbered):
        result = luma_values(scale(numbered, (2, 2)))
        assert result[0][0] == 1
        assert result[1][1] == 11
        assert result[0][1] == 3
        assert result[0][2] == 0
        assert result[2][0] == 0

    def test_outside_is_transparent(self):
        image = Image.from_data(2, 1, [Rgba(1, 2, 3), Rgba(4, 5, 6)])
        shifted = translate(image, (1, 0))
        assert shifted.get_pixel((0, 0)) == Rgba(4, 5, 6)
        assert shifted.get_pixel((1, 0)) == Rgba(0, 0, 0, 0)

    def test_rotate_zero(self, numbered):
        assert rotate(numbered, 0.0) == numbered

    def test_rotation_matrix_keeps_center(self):
        matrix = rotation_matrix(math.pi / 3, (5.0, 7.0))
        assert np.allclose(matrix @ [5.0, 7.0, 1.0], [5.0, 7.0, 1.0])

    def test_invalid_matrix(self, numbered):
        with pytest.raises(InvalidDataError):
            affine_transform(numbered, np.eye(2))
        with pytest.raises(InvalidDataError):
            affine_transform(numbered, [[1, 0, np.nan], [0, 1, 0]])

    def test_source_unchanged(self, numbered):
        reference = numbered.copy()
        translate(numbered, (2, 2))
        assert numbered == reference

    def test_rotate_filter_uses_degrees(self, numbered):
        assert Rotate(angle=0).apply(numbered) == numbered
        assert Rotate(angle=90).apply(numbered) == rotate(numbered, math.radians(90))
