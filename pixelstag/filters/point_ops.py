# PixelStag Filters - Point Operations
"""
Per-pixel transforms.

All functions work in the image's native channel scale, compute in float64,
round integer primitives to nearest (ties away from zero) and clamp the result
into the primitive's bound. They never modify their input but return a new
image, computed in parallel over row bands.

Example:
    from pixelstag.filters.point_ops import grayscale, threshold, ThresholdType

    mask = threshold(grayscale(image), 128, 255, ThresholdType.BINARY)
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, Callable

import numpy as np

from pixelstag.config import settings
from pixelstag.errors import InvalidDataError
from pixelstag.pixel import LUMA_WEIGHTS, Luma
from pixelstag.pixel_format import PixelFormat
from pixelstag.primitive import round_half_away

if TYPE_CHECKING:
    from pixelstag import Image


class ThresholdType(Enum):
    """Threshold behaviour.

    BINARY sets values at or above the threshold to the maximum intensity,
    TRUNCATE and TO_ZERO only affect values strictly above it.
    """
    BINARY = "binary"  # l >= t -> max, else 0
    TRUNCATE = "truncate"  # l > t -> t, else l
    TO_ZERO = "to_zero"  # l > t -> l, else 0

    @classmethod
    def parse(cls, value) -> ThresholdType:
        """Accepts a ThresholdType or its case-insensitive name"""
        if isinstance(value, ThresholdType):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidDataError(f"Unknown threshold type: {value}") from None


def _map_colors(image: Image, func: Callable[[np.ndarray], np.ndarray]) -> Image:
    """Applies func to the float64 color channels of every band, copying alpha."""
    pixel_format = image.pixel_format
    primitive = pixel_format.primitive
    color_count = 3 if pixel_format.has_alpha else 1

    def map_band(band: np.ndarray, rows: slice) -> np.ndarray:
        result = np.empty_like(band)
        result[:, :, :color_count] = primitive.quantize(func(band[:, :, :color_count].astype(np.float64)))
        if pixel_format.has_alpha:
            result[:, :, 3] = band[:, :, 3]
        return result

    return image.par_map(map_band)


def _require_luma(image: Image, operation: str) -> None:
    if image.pixel_format.has_alpha:
        raise InvalidDataError(f"{operation} requires a luminance image, got {image.pixel_format.value}")


def _check_finite(**values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise InvalidDataError(f"{name} must be finite, got {value}")


def invert(image: Image) -> Image:
    """
    Inverts all color channels: ``c' = max - c``. Alpha is kept.

    :param image: The source image
    :return: The inverted image
    """
    max_value = image.pixel_format.primitive.max_bound
    return _map_colors(image, lambda colors: max_value - colors)


def gamma(image: Image, value: float) -> Image:
    """
    Applies gamma correction: ``c' = (c / max) ^ (1 / value) * max``.

    :param image: The source image
    :param value: The gamma, must be positive
    :return: The corrected image
    """
    _check_finite(gamma=value)
    if value <= 0:
        raise InvalidDataError(f"Gamma must be positive, got {value}")
    max_value = image.pixel_format.primitive.max_bound
    return _map_colors(image, lambda colors: np.power(colors / max_value, 1.0 / value) * max_value)


def brightness(image: Image, offset: float) -> Image:
    """
    Adds an offset to all color channels: ``c' = clamp(c + offset)``.

    :param image: The source image
    :param offset: The offset in the primitive's native scale
    """
    _check_finite(offset=offset)
    return _map_colors(image, lambda colors: colors + offset)


def contrast(image: Image, factor: float) -> Image:
    """
    Scales all color channels: ``c' = clamp(c * factor)``.

    :param image: The source image
    :param factor: The scaling factor
    """
    _check_finite(factor=factor)
    return _map_colors(image, lambda colors: colors * factor)


def grayscale(image: Image) -> Image:
    """
    Converts a color image to luminance of the same primitive using the
    BT.601 weights. Luminance images are copied.

    :param image: The source image
    :return: The luminance image
    """
    if not image.pixel_format.has_alpha:
        return image.copy()
    primitive = image.pixel_format.primitive
    target = PixelFormat.of(Luma, primitive)

    def to_luma(band: np.ndarray, rows: slice) -> np.ndarray:
        return primitive.quantize(band[:, :, :3].astype(np.float64) @ LUMA_WEIGHTS)

    return image.par_map(to_luma, pixel_format=target)


def lerp(image: Image, other: Image, alpha: float) -> Image:
    """
    Linear interpolation between two images of equal size and format:
    ``c' = c * (1 - alpha) + other * alpha`` for every channel including alpha.

    :param image: The first image (alpha = 0)
    :param other: The second image (alpha = 1)
    :param alpha: The interpolation factor
    :return: The blended image
    :raises InvalidDataError: If sizes or pixel formats differ
    """
    _check_finite(alpha=alpha)
    if image.size != other.size:
        raise InvalidDataError(f"Can not blend images of size {image.size} and {other.size}")
    if image.pixel_format is not other.pixel_format:
        raise InvalidDataError(
            f"Can not blend {image.pixel_format.value} with {other.pixel_format.value}"
        )
    primitive = image.pixel_format.primitive
    second = other.get_pixels()

    def blend(band: np.ndarray, rows: slice) -> np.ndarray:
        mixed = band.astype(np.float64) * (1.0 - alpha) + second[rows].astype(np.float64) * alpha
        return primitive.quantize(mixed)

    return image.par_map(blend)


def threshold(
    image: Image,
    value: float,
    max_intensity: float,
    kind: ThresholdType | str = ThresholdType.BINARY,
) -> Image:
    """
    Thresholds a luminance image.

    :param image: A luminance image
    :param value: The threshold in the primitive's native scale
    :param max_intensity: The value assigned by ThresholdType.BINARY
    :param kind: The threshold behaviour
    :return: The thresholded image
    """
    _require_luma(image, "threshold")
    kind = ThresholdType.parse(kind)
    primitive = image.pixel_format.primitive
    max_intensity = primitive.cast(max_intensity)
    _check_finite(threshold=value)

    def apply_threshold(levels: np.ndarray) -> np.ndarray:
        if kind is ThresholdType.BINARY:
            return np.where(levels >= value, max_intensity, 0.0)
        if kind is ThresholdType.TRUNCATE:
            return np.where(levels > value, value, levels)
        return np.where(levels > value, levels, 0.0)

    return _map_colors(image, apply_threshold)


def histogram_equalize(image: Image) -> Image:
    """
    Spreads the luminance histogram over the full range.

    Integer images use one bin per value, float images
    ``settings.HISTOGRAM_FLOAT_BINS`` bins. Each value is mapped through
    ``round((cdf - cdf_min) * bin_max / (pixel_count - cdf_min))``. Images
    with a single luminance level are returned unchanged.

    :param image: A luminance image
    :return: The equalized image
    """
    _require_luma(image, "histogram_equalize")
    primitive = image.pixel_format.primitive
    bin_max = settings.HISTOGRAM_FLOAT_BINS - 1 if primitive.is_float else int(primitive.max_bound)
    levels = image.get_pixels()[:, :, 0]
    indices = round_half_away(levels.astype(np.float64) * bin_max / primitive.max_bound).astype(np.int64)
    pixel_count = indices.size
    if pixel_count == 0:
        return image.copy()
    cdf = np.cumsum(np.bincount(indices.ravel(), minlength=bin_max + 1))
    cdf_min = int(cdf[np.nonzero(cdf)[0][0]])
    if pixel_count == cdf_min:
        return image.copy()
    table = np.clip((cdf - cdf_min) * bin_max / (pixel_count - cdf_min), 0, bin_max)
    table = round_half_away(table) * primitive.max_bound / bin_max

    def equalize(band: np.ndarray, rows: slice) -> np.ndarray:
        return primitive.quantize(table[indices[rows]])[:, :, np.newaxis]

    return image.par_map(equalize)


__all__ = [
    'ThresholdType',
    'invert',
    'gamma',
    'brightness',
    'contrast',
    'grayscale',
    'lerp',
    'threshold',
    'histogram_equalize',
]
