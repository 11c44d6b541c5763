# PixelStag Filters - Morphological Operations
"""
Grayscale morphology and other rank filters.

Dilation and erosion take the maximum respectively minimum of
``source * weight`` over all kernel taps with a nonzero weight. Taps falling
outside of the image are skipped instead of being extended. Operations are
applied per color channel; alpha is copied from the source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, ClassVar

import numpy as np

from pixelstag.errors import InvalidDataError, InvalidKernelError
from pixelstag.parallel import RowBandExecutor

from .base import Filter, FilterContext, register_filter
from .kernels import Kernel, structuring_element

if TYPE_CHECKING:
    from pixelstag import Image


def _color_count(image: Image) -> int:
    return 3 if image.pixel_format.has_alpha else 1


def _padded_colors(image: Image, pad_y: int, pad_x: int) -> np.ndarray:
    """Color channels as float64, surrounded by NaN marking samples outside of the image."""
    colors = image.get_pixels()[:, :, :_color_count(image)].astype(np.float64)
    return np.pad(colors, ((pad_y, pad_y), (pad_x, pad_x), (0, 0)), constant_values=np.nan)


def _assemble(image: Image, rows: slice, colors: np.ndarray) -> np.ndarray:
    """Quantizes color rows and appends the source's alpha."""
    pixel_format = image.pixel_format
    count = _color_count(image)
    result = np.empty(colors.shape[:2] + (pixel_format.channel_count,), dtype=pixel_format.dtype)
    result[:, :, :count] = pixel_format.primitive.quantize(colors)
    if pixel_format.has_alpha:
        result[:, :, 3] = image.get_pixels()[rows, :, 3]
    return result


def _rank_filter(
    image: Image,
    kernel: Kernel,
    reduce: Callable[[np.ndarray, np.ndarray], np.ndarray],
    seed: float,
    num_workers: int | None,
) -> Image:
    from pixelstag import Image as ImageClass

    kernel.validate_for(image.width, image.height)
    half_width, half_height = kernel.width // 2, kernel.height // 2
    padded = _padded_colors(image, half_height, half_width)
    taps = [
        (ky, kx, float(weight))
        for (ky, kx), weight in np.ndenumerate(kernel.weights)
        if weight != 0.0
    ]
    width, count = image.width, _color_count(image)
    min_bound = image.pixel_format.primitive.min_bound

    def reduce_rows(rows: slice) -> np.ndarray:
        accumulated = np.full((rows.stop - rows.start, width, count), seed, dtype=np.float64)
        for ky, kx, weight in taps:
            # NaN samples lie outside of the image and are ignored by fmax/fmin
            accumulated = reduce(accumulated, padded[rows.start + ky:rows.stop + ky, kx:kx + width] * weight)
        # no contributing tap
        accumulated[accumulated == seed] = min_bound
        return _assemble(image, rows, accumulated)

    data = RowBandExecutor(image.height, num_workers).map(reduce_rows)
    return ImageClass._wrap(data, image.pixel_format)


def dilate(image: Image, kernel: Kernel, iterations: int = 1, num_workers: int | None = None) -> Image:
    """
    Grayscale dilation: maximum of ``source * weight`` over the kernel's
    nonzero, in-bounds taps.

    :param image: The source image
    :param kernel: Structuring element or weighted kernel with odd dimensions
    :param iterations: How often the dilation is repeated
    :return: The dilated image
    """
    for _ in range(_check_iterations(iterations)):
        image = _rank_filter(image, kernel, np.fmax, -np.inf, num_workers)
    return image


def erode(image: Image, kernel: Kernel, iterations: int = 1, num_workers: int | None = None) -> Image:
    """
    Grayscale erosion: minimum of ``source * weight`` over the kernel's
    nonzero, in-bounds taps.

    :param image: The source image
    :param kernel: Structuring element or weighted kernel with odd dimensions
    :param iterations: How often the erosion is repeated
    :return: The eroded image
    """
    for _ in range(_check_iterations(iterations)):
        image = _rank_filter(image, kernel, np.fmin, np.inf, num_workers)
    return image


def _check_iterations(iterations: int) -> int:
    if iterations < 1:
        raise InvalidDataError(f"Iterations must be at least 1, got {iterations}")
    return iterations


def _difference(minuend: Image, subtrahend: Image, alpha_source: Image) -> Image:
    """Clamped per-channel difference of the color channels."""
    from pixelstag import Image as ImageClass

    count = _color_count(minuend)
    colors = (
        minuend.get_pixels()[:, :, :count].astype(np.float64)
        - subtrahend.get_pixels()[:, :, :count].astype(np.float64)
    )
    data = _assemble(alpha_source, slice(0, alpha_source.height), colors)
    return ImageClass._wrap(data, alpha_source.pixel_format)


def morph_open(image: Image, kernel: Kernel, iterations: int = 1) -> Image:
    """Erosion followed by dilation. Removes small bright details."""
    return dilate(erode(image, kernel, iterations), kernel, iterations)


def morph_close(image: Image, kernel: Kernel, iterations: int = 1) -> Image:
    """Dilation followed by erosion. Fills small dark gaps."""
    return erode(dilate(image, kernel, iterations), kernel, iterations)


def morph_gradient(image: Image, kernel: Kernel, iterations: int = 1) -> Image:
    """Difference between dilation and erosion, outlining objects."""
    return _difference(dilate(image, kernel, iterations), erode(image, kernel, iterations), image)


def top_hat(image: Image, kernel: Kernel, iterations: int = 1) -> Image:
    """Difference between the image and its opening."""
    return _difference(image, morph_open(image, kernel, iterations), image)


def black_hat(image: Image, kernel: Kernel, iterations: int = 1) -> Image:
    """Difference between the closing and the image."""
    return _difference(morph_close(image, kernel, iterations), image, image)


def median_blur(image: Image, size: int, num_workers: int | None = None) -> Image:
    """
    Replaces each color channel by the median of its size x size
    neighbourhood. Only samples inside the image take part; for an even
    number of samples the upper median is used.

    :param image: The source image
    :param size: Odd edge length of the neighbourhood
    :return: The filtered image
    """
    from pixelstag import Image as ImageClass

    if size < 1:
        raise InvalidKernelError(f"Median size must be positive, got {size}")
    Kernel(np.ones((size, size))).validate_for(image.width, image.height)
    half = size // 2
    padded = _padded_colors(image, half, half)
    width = image.width

    def median_rows(rows: slice) -> np.ndarray:
        windows = np.stack([
            padded[rows.start + ky:rows.stop + ky, kx:kx + width]
            for ky in range(size)
            for kx in range(size)
        ])
        inside = np.count_nonzero(~np.isnan(windows), axis=0)
        # NaN sorts last, so the in-bounds samples come first
        ordered = np.sort(windows, axis=0)
        median = np.take_along_axis(ordered, (inside // 2)[np.newaxis], axis=0)[0]
        return _assemble(image, rows, median)

    data = RowBandExecutor(image.height, num_workers).map(median_rows)
    return ImageClass._wrap(data, image.pixel_format)


@dataclass
class MorphologyFilter(Filter):
    """Base of the morphological filters.

    Parameters:
        kernel_size: Size of structuring element (default 3)
        shape: Shape of kernel ('rect', 'disk', 'cross')
        iterations: Number of times the operation is applied
    """
    kernel_size: int = 3
    shape: str = 'rect'
    iterations: int = 1

    _primary_param: ClassVar[str] = 'kernel_size'
    _operation: ClassVar[Callable[..., 'Image']]

    def apply(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        kernel = structuring_element(self.shape, self.kernel_size)
        return type(self)._operation(image, kernel, self.iterations)


@register_filter
@dataclass
class Erode(MorphologyFilter):
    """Morphological erosion.

    Erodes away boundaries of bright objects, removing small bright noise.

    Example:
        'erode(3)' or 'erode kernel_size=5 iterations=2'
    """
    _operation = erode


@register_filter
@dataclass
class Dilate(MorphologyFilter):
    """Morphological dilation.

    Expands boundaries of bright objects, filling small dark holes.

    Example:
        'dilate 5 shape=disk'
    """
    _operation = dilate


@register_filter
@dataclass
class MorphOpen(MorphologyFilter):
    """Morphological opening (erode, then dilate)."""
    _operation = morph_open


@register_filter
@dataclass
class MorphClose(MorphologyFilter):
    """Morphological closing (dilate, then erode)."""
    _operation = morph_close


@register_filter
@dataclass
class MorphGradient(MorphologyFilter):
    """Morphological gradient (dilation minus erosion)."""
    _operation = morph_gradient


@register_filter
@dataclass
class TopHat(MorphologyFilter):
    """Top-hat transform (image minus opening), extracts small bright details."""
    _operation = top_hat


@register_filter
@dataclass
class BlackHat(MorphologyFilter):
    """Black-hat transform (closing minus image), extracts small dark details."""
    _operation = black_hat



__all__ = [
    'dilate',
    'erode',
    'morph_open',
    'morph_close',
    'morph_gradient',
    'top_hat',
    'black_hat',
    'median_blur',
    'MorphologyFilter',
    'Erode',
    'Dilate',
    'MorphOpen',
    'MorphClose',
    'MorphGradient',
    'TopHat',
    'BlackHat',
]
