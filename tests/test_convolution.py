# Tests for kernels and 2D convolution
"""
Test Kernel construction, the kernel factories and convolve_2d.
"""

import numpy as np
import pytest

from pixelstag import Image, InvalidDataError, InvalidKernelError, PixelFormat, settings
from pixelstag.filters import (
    BorderMode,
    Kernel,
    box_filter,
    convolve_2d,
    gaussian_filter,
    sobel_x,
    structuring_element,
)


def luma_image(rows, dtype=np.uint8) -> Image:
    """Creates a luminance image from nested rows of values."""
    return Image.from_array(np.array(rows, dtype=dtype))


def luma_values(image: Image) -> list:
    return image.get_pixels()[:, :, 0].tolist()


class TestKernel:
    """Tests for the Kernel class."""

    def test_from_weights(self):
        kernel = Kernel.from_weights(3, 1, [1, 2, 3])
        assert kernel.dimensions() == (3, 1)
        assert kernel.get_weight((2, 0)) == 3.0

    def test_get_weight_out_of_bounds(self):
        kernel = Kernel.from_weights(2, 3, range(6))
        assert kernel.dimensions() == (2, 3)
        assert kernel.get_weight((1, 2)) == 5.0
        with pytest.raises(InvalidDataError):
            kernel.get_weight((2, 0))
        with pytest.raises(InvalidDataError):
            kernel.get_weight((0, -1))

    def test_from_weights_length_mismatch(self):
        with pytest.raises(InvalidDataError):
            Kernel.from_weights(3, 3, [1, 2, 3])

    def test_weights_are_read_only(self):
        kernel = Kernel([[1.0]])
        with pytest.raises(ValueError):
            kernel.weights[0, 0] = 2.0

    def test_invalid_weights(self):
        with pytest.raises(InvalidKernelError):
            Kernel([])
        with pytest.raises(InvalidKernelError):
            Kernel([[np.inf]])

    def test_from_image(self):
        """Luminance values are normalized by the primitive's maximum."""
        kernel = Kernel.from_image(luma_image([[0, 255, 0]]))
        assert kernel.weights.tolist() == [[0.0, 1.0, 0.0]]

    def test_from_color_image(self):
        with pytest.raises(InvalidKernelError):
            Kernel.from_image(Image(3, 3))

    def test_box_filter(self):
        kernel = box_filter(3)
        assert kernel.dimensions() == (3, 3)
        assert np.allclose(kernel.weights, 1.0 / 9.0)

    def test_gaussian_filter(self):
        """The gaussian is centered, symmetric and sums to one."""
        weights = gaussian_filter(5, 1.0).weights
        assert weights.sum() == pytest.approx(1.0, abs=1e-6)
        assert weights[2, 2] == weights.max()
        assert np.allclose(weights, weights.T)
        assert np.allclose(weights, weights[::-1, ::-1])

    def test_gaussian_filter_invalid(self):
        with pytest.raises(InvalidKernelError):
            gaussian_filter(0, 1.0)
        with pytest.raises(InvalidDataError):
            gaussian_filter(3, 0.0)

    def test_sobel_x(self):
        assert sobel_x().weights.tolist() == [[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]]


class TestStructuringElement:
    """Tests for structuring elements."""

    def test_rect(self):
        assert structuring_element("rect", (3, 1)).weights.tolist() == [[1, 1, 1]]

    def test_cross(self):
        assert structuring_element("cross", 3).weights.tolist() == [[0, 1, 0], [1, 1, 1], [0, 1, 0]]

    def test_disk(self):
        assert structuring_element("disk", 5).weights.tolist() == [
            [0, 0, 1, 0, 0],
            [0, 1, 1, 1, 0],
            [1, 1, 1, 1, 1],
            [0, 1, 1, 1, 0],
            [0, 0, 1, 0, 0],
        ]

    def test_unknown_shape(self):
        with pytest.raises(InvalidDataError):
            structuring_element("star", 3)


class TestConvolve2D:
    """Tests for convolve_2d."""

    def test_identity_kernel(self, rgba_image):
        """A 1x1 kernel of weight one reproduces the image."""
        assert convolve_2d(rgba_image, Kernel([[1.0]])) == rgba_image

    def test_identity_kernel_float(self):
        image = Image.from_array(np.array([[0.0, 0.25, 0.5], [0.75, 1.0, 0.125], [0.5, 0.5, 0.0]], dtype=np.float32))
        assert convolve_2d(image, Kernel([[0, 0, 0], [0, 1, 0], [0, 0, 0]]), "wrap") == image

    def test_zero_image(self):
        image = Image(5, 5, PixelFormat.LUMA8)
        assert convolve_2d(image, box_filter(3)) == image

    def test_uniform_box_blur(self):
        """Averaging a uniform image keeps its value."""
        image = luma_image(np.full((6, 6), 50))
        assert luma_values(convolve_2d(image, box_filter(3))) == [[50] * 6] * 6

    def test_source_unchanged(self, rgba_image):
        reference = rgba_image.copy()
        convolve_2d(rgba_image, box_filter(3))
        assert rgba_image == reference

    def test_alpha_is_copied(self, rgba_image):
        """Only color channels are filtered."""
        blurred = convolve_2d(rgba_image, box_filter(3))
        assert np.array_equal(blurred.get_pixels()[:, :, 3], rgba_image.get_pixels()[:, :, 3])

    def test_vertical_edge(self):
        """sobel_x responds to vertical edges, negative responses clamp to zero."""
        image = luma_image([[0, 0, 255, 255, 255]] * 3)
        assert luma_values(convolve_2d(image, sobel_x())) == [[0, 255, 255, 0, 0]] * 3

    @pytest.mark.parametrize(
        "border, expected",
        [
            (BorderMode.REPLICATE, [10, 10, 20]),
            (BorderMode.WRAP, [30, 10, 20]),
            (BorderMode.REFLECT, [20, 10, 20]),
            ("constant", [5, 10, 20]),
        ],
    )
    def test_border_modes(self, border, expected):
        """The kernel picks the left neighbour, exposing the border handling."""
        image = luma_image([[10, 20, 30]])
        result = convolve_2d(image, Kernel([[1, 0, 0]]), border, border_value=5)
        assert luma_values(result) == [expected]

    def test_default_border_from_settings(self, monkeypatch):
        image = luma_image([[10, 20, 30]])
        monkeypatch.setattr(settings, "DEFAULT_BORDER_MODE", "wrap")
        assert luma_values(convolve_2d(image, Kernel([[1, 0, 0]]))) == [[30, 10, 20]]

    def test_unknown_border(self):
        with pytest.raises(InvalidDataError):
            convolve_2d(luma_image([[1]]), Kernel([[1]]), "mirror")

    def test_even_kernel(self):
        """Kernels need a center tap."""
        with pytest.raises(InvalidKernelError):
            convolve_2d(Image(4, 4), Kernel(np.ones((2, 2))))

    def test_kernel_larger_than_image(self):
        with pytest.raises(InvalidDataError):
            convolve_2d(Image(2, 2), box_filter(3))

    def test_parallel_matches_sequential(self):
        """Row bands produce the same result as a single band."""
        rng = np.random.default_rng(3)
        image = Image.from_array(rng.integers(0, 65536, size=(80, 20), dtype=np.uint16))
        kernel = gaussian_filter(5, 1.5)
        assert convolve_2d(image, kernel, num_workers=1) == convolve_2d(image, kernel, num_workers=4)
