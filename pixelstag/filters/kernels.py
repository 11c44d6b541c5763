# PixelStag Filters - Kernels
"""
Convolution kernels and structuring elements.

A :class:`Kernel` is a small single-channel grid of float weights. Weights are
unbounded, so edge detection kernels may carry negative values.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import TYPE_CHECKING, Sequence

import numpy as np

from pixelstag.errors import InvalidDataError, InvalidKernelError

if TYPE_CHECKING:
    from pixelstag import Image

logger = logging.getLogger(__name__)


class Kernel:
    """
    Grid of float weights of shape (height, width).

    Convolution and morphology require odd width and height so the kernel has
    a well defined center at ``(width // 2, height // 2)``.
    """

    def __init__(self, weights: Sequence[Sequence[float]] | np.ndarray):
        """
        :param weights: The weights, row by row
        """
        weights = np.array(weights, dtype=np.float32)
        if weights.ndim != 2 or weights.size == 0:
            raise InvalidKernelError(f"Kernel weights must be a non-empty 2D grid, got shape {weights.shape}")
        if not np.all(np.isfinite(weights)):
            raise InvalidKernelError("Kernel weights must be finite")
        weights.flags.writeable = False
        self.weights: np.ndarray = weights
        "The weights as read-only float32 array of shape (height, width)"

    @classmethod
    def from_weights(cls, width: int, height: int, weights: Sequence[float]) -> Kernel:
        """
        Creates a kernel from a flat, row-major weight sequence.

        :param width: The kernel width
        :param height: The kernel height
        :param weights: ``width * height`` weights
        """
        if len(weights) != width * height:
            raise InvalidDataError(f"Expected {width * height} weights, got {len(weights)}")
        return cls(np.asarray(weights, dtype=np.float32).reshape(height, width))

    @classmethod
    def from_image(cls, image: Image) -> Kernel:
        """
        Uses a luminance image as kernel. Values are normalized by the
        primitive's maximum, so a LUMA8 value of 255 becomes weight 1.0.

        :param image: A luminance image
        """
        if image.pixel_format.has_alpha:
            raise InvalidKernelError(f"Kernel images must be luminance images, got {image.pixel_format.value}")
        data = image.get_pixels()[:, :, 0].astype(np.float64)
        return cls(data / image.pixel_format.primitive.max_bound)

    @property
    def width(self) -> int:
        return self.weights.shape[1]

    @property
    def height(self) -> int:
        return self.weights.shape[0]

    def dimensions(self) -> tuple[int, int]:
        """The kernel's (width, height)"""
        return self.width, self.height

    def get_weight(self, position: tuple[int, int]) -> float:
        """
        Returns the weight at (x, y).
        """
        x, y = position
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise InvalidDataError(f"Kernel position {position} is out of bounds")
        return float(self.weights[y, x])

    def validate_for(self, width: int, height: int) -> None:
        """
        Verifies the kernel can be applied to an image of given size.

        :raises InvalidKernelError: If a kernel dimension is even or exceeds the image
        """
        if self.width % 2 == 0 or self.height % 2 == 0:
            logger.debug(f"Rejected even sized {self!r} for a {width}x{height} image")
            raise InvalidKernelError(f"Kernel dimensions must be odd, got {self.width}x{self.height}")
        if self.width > width or self.height > height:
            logger.debug(f"Rejected {self!r}, larger than the {width}x{height} image")
            raise InvalidKernelError(
                f"Kernel of size {self.width}x{self.height} exceeds image of size {width}x{height}"
            )

    def __eq__(self, other):
        if not isinstance(other, Kernel):
            return NotImplemented
        return self.weights.shape == other.weights.shape and np.array_equal(self.weights, other.weights)

    __hash__ = None

    def __repr__(self):
        return f"Kernel({self.width}x{self.height})"


def _check_size(size: int) -> None:
    if size < 1:
        raise InvalidKernelError(f"Kernel size must be positive, got {size}")


def sobel_x() -> Kernel:
    """Horizontal derivative (responds to vertical edges)"""
    return Kernel([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]])


def sobel_y() -> Kernel:
    """Vertical derivative (responds to horizontal edges)"""
    return Kernel([[-1, -2, -1], [0, 0, 0], [1, 2, 1]])


def laplacian_3x3() -> Kernel:
    return Kernel([[0, 1, 0], [1, -4, 1], [0, 1, 0]])


def sharpen_3x3() -> Kernel:
    return Kernel([[0, -1, 0], [-1, 5, -1], [0, -1, 0]])


def box_filter(size: int) -> Kernel:
    """
    Mean filter of size x size taps, each weighted ``1 / size²``.
    """
    _check_size(size)
    return Kernel(np.full((size, size), 1.0 / (size * size)))


def gaussian_filter(size: int, sigma: float) -> Kernel:
    """
    Gaussian kernel centered at ``size // 2``, normalized to a sum of one.

    :param size: Width and height in taps
    :param sigma: Standard deviation in pixels
    """
    _check_size(size)
    if sigma <= 0 or not math.isfinite(sigma):
        raise InvalidDataError(f"Sigma must be positive, got {sigma}")
    offsets = np.arange(size, dtype=np.float64) - size // 2
    dx, dy = np.meshgrid(offsets, offsets)
    weights = np.exp(-(dx * dx + dy * dy) / (2.0 * sigma * sigma))
    return Kernel(weights / weights.sum())


class StructuringElementShape(Enum):
    """Shape of a structuring element for morphological operations."""
    RECTANGLE = "rect"  # every tap
    DISK = "disk"  # taps within the inscribed circle
    CROSS = "cross"  # center row and center column


def structuring_element(
    shape: StructuringElementShape | str,
    size: int | tuple[int, int],
) -> Kernel:
    """
    Creates a 0/1 mask of participating taps.

    :param shape: The element's shape, enum or its value ('rect', 'disk', 'cross')
    :param size: Edge length or (width, height)
    :return: The mask as kernel
    """
    if isinstance(shape, str):
        try:
            shape = StructuringElementShape(shape.lower())
        except ValueError:
            raise InvalidDataError(f"Unknown structuring element shape: {shape}") from None
    width, height = (size, size) if isinstance(size, int) else size
    _check_size(width)
    _check_size(height)
    ys, xs = np.mgrid[0:height, 0:width]
    dx, dy = xs - width // 2, ys - height // 2
    if shape is StructuringElementShape.RECTANGLE:
        mask = np.ones((height, width), dtype=bool)
    elif shape is StructuringElementShape.DISK:
        radius = min(width, height) // 2
        mask = dx * dx + dy * dy <= radius * radius
    else:
        mask = (dx == 0) | (dy == 0)
    return Kernel(mask.astype(np.float32))


KERNEL_FACTORIES = {
    'sobel_x': sobel_x,
    'sobel_y': sobel_y,
    'laplacian': laplacian_3x3,
    'sharpen': sharpen_3x3,
}
"Named fixed 3x3 kernels"


__all__ = [
    'Kernel',
    'StructuringElementShape',
    'structuring_element',
    'sobel_x',
    'sobel_y',
    'laplacian_3x3',
    'sharpen_3x3',
    'box_filter',
    'gaussian_filter',
    'KERNEL_FACTORIES',
]
