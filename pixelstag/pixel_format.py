"""
Defines the closed set of buffer pixel formats and the vectorized conversions
between them.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

import numpy as np

from .errors import InvalidDataError
from .pixel import LUMA_WEIGHTS, Luma, Pixel, Rgba
from .primitive import Primitive


class PixelFormat(Enum):
    """Pixel format of an image buffer, pairing a pixel kind with a primitive."""

    RGBA8 = "RGBA8"  # uint8, 4 channels
    RGBA16 = "RGBA16"  # uint16, 4 channels
    RGBAf32 = "RGBAf32"  # float32, 4 channels
    LUMA8 = "LUMA8"  # uint8, 1 channel
    LUMA16 = "LUMA16"  # uint16, 1 channel
    LUMAf32 = "LUMAf32"  # float32, 1 channel

    @property
    def primitive(self) -> Primitive:
        return _PRIMITIVES[self]

    @property
    def pixel_class(self) -> type[Pixel]:
        return Rgba if self.has_alpha else Luma

    @property
    def channel_count(self) -> int:
        return self.pixel_class.channel_count()

    @property
    def has_alpha(self) -> bool:
        return self in (PixelFormat.RGBA8, PixelFormat.RGBA16, PixelFormat.RGBAf32)

    @property
    def is_float(self) -> bool:
        return self.primitive.is_float

    @property
    def dtype(self) -> np.dtype:
        return self.primitive.dtype

    @property
    def band_names(self) -> list[str]:
        """The channel names, e.g. ["R", "G", "B", "A"]"""
        return ["R", "G", "B", "A"] if self.has_alpha else ["L"]

    @classmethod
    def parse(cls, value: PixelFormatTypes) -> PixelFormat:
        """
        Returns the pixel format matching given value.

        :param value: A PixelFormat or its name, case insensitive
        :return: The pixel format
        """
        if isinstance(value, PixelFormat):
            return value
        for pixel_format in cls:
            if pixel_format.value.lower() == str(value).lower():
                return pixel_format
        raise InvalidDataError(f"Unknown pixel format: {value}")

    @classmethod
    def of(cls, pixel_class: type[Pixel], primitive: Primitive) -> PixelFormat:
        """Returns the format storing pixels of given class and primitive"""
        for pixel_format in cls:
            if pixel_format.pixel_class is pixel_class and pixel_format.primitive is primitive:
                return pixel_format
        raise InvalidDataError(f"No pixel format for {pixel_class.__name__}/{primitive.name}")

    @classmethod
    def for_pixel(cls, pixel: Pixel) -> PixelFormat:
        """Returns the format a pixel belongs to"""
        return cls.of(type(pixel), pixel.primitive)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> PixelFormat:
        """
        Detects the pixel format of a numpy array of shape (height, width)
        or (height, width, channels).
        """
        if arr.ndim == 2:
            channels = 1
        elif arr.ndim == 3:
            channels = arr.shape[2]
        else:
            raise InvalidDataError(f"Expected 2D or 3D array, got {arr.ndim}D")
        if channels not in (1, 4):
            raise InvalidDataError(f"Unsupported channel count: {channels}")
        return cls.of(Rgba if channels == 4 else Luma, Primitive.from_dtype(arr.dtype))

    def pixel(self, channels) -> Pixel:
        """Creates a pixel of this format from raw channel values"""
        return self.pixel_class.from_channels(list(channels), self.primitive)


PixelFormatTypes = Union[PixelFormat, str]
"Pixel format definition types. Either the enum or its name"


def convert_pixels(data: np.ndarray, source: PixelFormat, target: PixelFormat) -> np.ndarray:
    """
    Converts a (height, width, channels) buffer between pixel formats.

    Color to luminance uses the BT.601 weights, luminance to color replicates
    the luminance and sets an opaque alpha. Channels are then rescaled to the
    target primitive.

    :param data: The source buffer
    :param source: The source's pixel format
    :param target: The desired pixel format
    :return: A new buffer in the target format
    """
    if source is target:
        return data.copy()
    values = data.astype(np.float64)
    if source.has_alpha and not target.has_alpha:
        values = (values[..., :3] @ LUMA_WEIGHTS)[..., np.newaxis]
    elif not source.has_alpha and target.has_alpha:
        alpha = np.full(values.shape[:-1] + (1,), source.primitive.max_bound, dtype=np.float64)
        values = np.concatenate([np.repeat(values, 3, axis=-1), alpha], axis=-1)
    return source.primitive.rescale(values, target.primitive)


_PRIMITIVES = {
    PixelFormat.RGBA8: Primitive.U8,
    PixelFormat.RGBA16: Primitive.U16,
    PixelFormat.RGBAf32: Primitive.F32,
    PixelFormat.LUMA8: Primitive.U8,
    PixelFormat.LUMA16: Primitive.U16,
    PixelFormat.LUMAf32: Primitive.F32,
}


__all__ = ["PixelFormat", "PixelFormatTypes", "convert_pixels"]
