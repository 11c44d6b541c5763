# PixelStag Filters - Color & Point Operations
"""
Point operation filters: Invert, Gamma, Brightness, Contrast, Grayscale,
Threshold, HistogramEqualize, Lerp and ConvertFormat.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from pixelstag.errors import InvalidDataError

from .base import Filter, FilterContext, register_filter
from .point_ops import (
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

if TYPE_CHECKING:
    from pixelstag import Image


@register_filter
@dataclass
class Invert(Filter):
    """Invert all color channels, alpha is kept."""

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return invert(image)


@register_filter
@dataclass
class Gamma(Filter):
    """Gamma correction.

    gamma: > 1 brightens, < 1 darkens, must be positive
    """

    gamma: float = 1.0
    _primary_param: ClassVar[str] = 'gamma'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return gamma(image, self.gamma)


@register_filter
@dataclass
class Brightness(Filter):
    """Add an offset to all color channels.

    offset: Offset in the image's native scale, e.g. 0..255 for 8 bit images
    """

    offset: float = 0.0
    _primary_param: ClassVar[str] = 'offset'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return brightness(image, self.offset)


@register_filter
@dataclass
class Contrast(Filter):
    """Multiply all color channels.

    factor: 0.0 = black, 1.0 = original, 2.0 = doubled
    """

    factor: float = 1.0
    _primary_param: ClassVar[str] = 'factor'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return contrast(image, self.factor)


@register_filter
@dataclass
class Grayscale(Filter):
    """Convert to a luminance image using the BT.601 weights."""

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return grayscale(image)


@register_filter
@dataclass
class Threshold(Filter):
    """Threshold a luminance image.

    threshold: Threshold in the image's native scale
    max_value: Value assigned to pixels passing a binary threshold,
        the primitive's maximum if not set
    kind: 'binary', 'truncate' or 'to_zero'
    """

    threshold: float = 128
    max_value: float | None = None
    kind: str = 'binary'

    _primary_param: ClassVar[str] = 'threshold'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        max_value = self.max_value
        if max_value is None:
            max_value = image.pixel_format.primitive.max_bound
        return threshold(image, self.threshold, max_value, ThresholdType.parse(self.kind))


@register_filter
@dataclass
class HistogramEqualize(Filter):
    """Histogram equalization of a luminance image."""

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return histogram_equalize(image)


@register_filter
@dataclass
class Lerp(Filter):
    """Blend with a second image stored in the pipeline context.

    source: Context key of the second image
    alpha: 0.0 = this image, 1.0 = the second image

    Example:
        context = FilterContext()
        context['background'] = background
        FilterPipeline.parse('lerp background 0.25').apply(image, context)
    """

    source: str = 'other'
    alpha: float = 0.5

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        other = context.get(self.source) if context is not None else None
        if other is None:
            raise InvalidDataError(f"Lerp requires an image stored as '{self.source}' in the filter context")
        return lerp(image, other, self.alpha)


@register_filter
@dataclass
class ConvertFormat(Filter):
    """Convert to another pixel format.

    pixel_format: e.g. 'RGBA8', 'LUMA16' or 'RGBAf32'
    """

    pixel_format: str = 'RGBA8'
    _primary_param: ClassVar[str] = 'pixel_format'

    def apply(self, image: Image, context: FilterContext | None = None) -> Image:
        return image.convert(self.pixel_format)


__all__ = [
    'Invert',
    'Gamma',
    'Brightness',
    'Contrast',
    'Grayscale',
    'Threshold',
    'HistogramEqualize',
    'Lerp',
    'ConvertFormat',
]
