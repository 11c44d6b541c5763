# PixelStag Filters - Convolution
"""
2D convolution with selectable border handling.

Filtering is a correlation: output pixel (x, y) is the sum of
``source(x + kx - half_width, y + ky - half_height) * weight(kx, ky)`` over all
kernel taps, computed per color channel in float64 and then rounded and
clamped into the image's primitive. The alpha channel is copied from the
center pixel.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from pixelstag.config import settings
from pixelstag.errors import InvalidDataError
from pixelstag.parallel import RowBandExecutor

from .kernels import Kernel

if TYPE_CHECKING:
    from pixelstag import Image

logger = logging.getLogger(__name__)


class BorderMode(Enum):
    """How samples outside of the image are obtained."""
    REPLICATE = "replicate"  # clamp to the nearest edge pixel
    WRAP = "wrap"  # continue at the opposite edge
    CONSTANT = "constant"  # a fixed value
    REFLECT = "reflect"  # mirror at the edge pixel, which is not repeated

    @classmethod
    def parse(cls, value: BorderMode | str) -> BorderMode:
        if isinstance(value, BorderMode):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidDataError(f"Unknown border mode: {value}") from None


_NUMPY_PAD_MODES = {
    BorderMode.REPLICATE: "edge",
    BorderMode.WRAP: "wrap",
    BorderMode.CONSTANT: "constant",
    BorderMode.REFLECT: "reflect",
}


def pad_channels(
    values: np.ndarray,
    pad_y: int,
    pad_x: int,
    border: BorderMode,
    border_value: float = 0.0,
) -> np.ndarray:
    """
    Extends a (height, width, channels) array on all sides.

    :param values: The channel values
    :param pad_y: Rows to add above and below
    :param pad_x: Columns to add left and right
    :param border: How the new samples are obtained
    :param border_value: The value of new samples for BorderMode.CONSTANT
    :return: The padded array
    """
    pad_width = ((pad_y, pad_y), (pad_x, pad_x), (0, 0))
    if border is BorderMode.CONSTANT:
        return np.pad(values, pad_width, mode="constant", constant_values=border_value)
    return np.pad(values, pad_width, mode=_NUMPY_PAD_MODES[border])


def convolve_2d(
    image: Image,
    kernel: Kernel,
    border: BorderMode | str | None = None,
    border_value: float = 0.0,
    num_workers: int | None = None,
) -> Image:
    """
    Convolves an image with a kernel.

    :param image: The source image, left unchanged
    :param kernel: A kernel with odd dimensions not larger than the image
    :param border: The border handling, settings.DEFAULT_BORDER_MODE if None
    :param border_value: Value of outside samples with BorderMode.CONSTANT,
        in the primitive's native scale
    :param num_workers: Number of parallel workers
    :return: The filtered image in the source's pixel format
    :raises InvalidKernelError: If the kernel is even sized or too large
    """
    from pixelstag import Image

    border = BorderMode.parse(border if border is not None else settings.DEFAULT_BORDER_MODE)
    if not math.isfinite(border_value):
        raise InvalidDataError(f"Border value must be finite, got {border_value}")
    kernel.validate_for(image.width, image.height)

    pixel_format = image.pixel_format
    primitive = pixel_format.primitive
    color_count = 3 if pixel_format.has_alpha else 1
    source = image.get_pixels()
    half_width, half_height = kernel.width // 2, kernel.height // 2
    padded = pad_channels(
        source[:, :, :color_count].astype(np.float64), half_height, half_width, border, border_value
    )
    taps = [
        (ky, kx, float(weight))
        for (ky, kx), weight in np.ndenumerate(kernel.weights)
        if weight != 0.0
    ]
    width = image.width
    logger.debug(f"Convolving {image} with {kernel} ({len(taps)} taps, {border.value} border)")

    def convolve_rows(rows: slice) -> np.ndarray:
        count = rows.stop - rows.start
        total = np.zeros((count, width, color_count), dtype=np.float64)
        for ky, kx, weight in taps:
            total += weight * padded[rows.start + ky:rows.stop + ky, kx:kx + width]
        result = np.empty((count, width, pixel_format.channel_count), dtype=primitive.dtype)
        result[:, :, :color_count] = primitive.quantize(total)
        if pixel_format.has_alpha:
            result[:, :, 3] = source[rows, :, 3]
        return result

    data = RowBandExecutor(image.height, num_workers).map(convolve_rows)
    return Image._wrap(data, pixel_format)


__all__ = ['BorderMode', 'convolve_2d', 'pad_channels']
