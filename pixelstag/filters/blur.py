# PixelStag Filters - Blur, Sharpen & Edges
"""
Convolution based filters and the median blur.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from pixelstag.errors import InvalidDataError

from .base import Filter, FilterContext, register_filter
from .convolution import convolve_2d
from .kernels import KERNEL_FACTORIES, Kernel, box_filter, gaussian_filter, sharpen_3x3
from .morphology import median_blur

if TYPE_CHECKING:
    from pixelstag import Image


@register_filter
@dataclass
class Convolve(Filter):
    """Convolve with custom weights.

    weights: Kernel rows, odd width and height
    border: 'replicate', 'wrap', 'constant' or 'reflect'
    border_value: Outside value for the 'constant' border
    """

    weights: list[list[float]] = field(default_factory=lambda: [[1.0]])
    border: str = 'replicate'
    border_value: float = 0.0

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return convolve_2d(image, Kernel(self.weights), self.border, self.border_value)


@register_filter
@dataclass
class GaussianBlur(Filter):
    """Gaussian blur filter.

    size: Kernel size in pixels, odd
    sigma: Standard deviation in pixels
    """

    size: int = 5
    sigma: float = 1.0
    border: str = 'replicate'

    _primary_param: ClassVar[str] = 'size'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return convolve_2d(image, gaussian_filter(self.size, self.sigma), self.border)


@register_filter
@dataclass
class BoxBlur(Filter):
    """Mean of the size x size neighbourhood.

    size: Kernel size in pixels, odd
    """

    size: int = 3
    border: str = 'replicate'

    _primary_param: ClassVar[str] = 'size'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return convolve_2d(image, box_filter(self.size), self.border)


@register_filter
@dataclass
class Sharpen(Filter):
    """Sharpen with the 3x3 cross kernel (center 5, neighbours -1)."""

    border: str = 'replicate'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return convolve_2d(image, sharpen_3x3(), self.border)


@register_filter
@dataclass
class EdgeDetect(Filter):
    """Edge response of a derivative kernel.

    kernel: 'sobel_x', 'sobel_y' or 'laplacian'

    Negative responses are clamped to zero. Convert to grayscale first for a
    single edge map.
    """

    kernel: str = 'sobel_x'
    border: str = 'replicate'

    _primary_param: ClassVar[str] = 'kernel'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        factory = KERNEL_FACTORIES.get(self.kernel.lower())
        if factory is None:
            raise InvalidDataError(f"Unknown edge kernel: {self.kernel}")
        return convolve_2d(image, factory(), self.border)


@register_filter
@dataclass
class MedianBlur(Filter):
    """Median filter, good at removing salt and pepper noise.

    size: Neighbourhood size, odd
    """

    size: int = 3

    _primary_param: ClassVar[str] = 'size'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return median_blur(image, self.size)


__all__ = ['Convolve', 'GaussianBlur', 'BoxBlur', 'Sharpen', 'EdgeDetect', 'MedianBlur']
