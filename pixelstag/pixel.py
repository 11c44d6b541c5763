"""
Implements the pixel value types :class:`Rgba` and :class:`Luma`.

Pixels are immutable value objects. Each one knows its :class:`.Primitive`
and can be converted to and from the canonical 8 bit RGBA encoding.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Sequence

import numpy as np

from .errors import InvalidCastError
from .primitive import Primitive

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)
"BT.601 weights of the red, green and blue channel"


def _checked_rgba8(rgba: Sequence[int]) -> tuple[int, int, int, int]:
    if len(rgba) != 4:
        raise InvalidCastError(f"Expected 4 RGBA8 channels, got {len(rgba)}")
    return tuple(Primitive.U8.cast(value) for value in rgba)


class Pixel(ABC):
    """
    Base class of all pixel types.

    A pixel is a fixed-arity tuple of channels sharing one primitive.
    """

    primitive: Primitive

    @classmethod
    @abstractmethod
    def channel_count(cls) -> int:
        """Number of channels of this pixel type"""

    @abstractmethod
    def channels(self) -> tuple:
        """Returns the raw channel values in storage order"""

    @classmethod
    @abstractmethod
    def from_rgba8(cls, rgba: Sequence[int], primitive: Primitive = Primitive.U8) -> Pixel:
        """
        Creates a pixel from 8 bit RGBA values.

        :param rgba: Red, green, blue and alpha, each in 0..255
        :param primitive: The primitive of the new pixel
        :return: The pixel
        :raises InvalidCastError: If the input can not be represented
        """

    @abstractmethod
    def to_rgba8(self) -> tuple[int, int, int, int]:
        """Converts the pixel to 8 bit RGBA, rounding to nearest"""

    @classmethod
    def from_channels(cls, channels: Sequence, primitive: Primitive = Primitive.U8) -> Pixel:
        """
        Creates a pixel from its raw channel values.

        :param channels: The channel values in storage order
        :param primitive: The primitive of the values
        :return: The pixel
        """
        if len(channels) != cls.channel_count():
            raise InvalidCastError(
                f"{cls.__name__} expects {cls.channel_count()} channels, got {len(channels)}"
            )
        return cls(*channels, primitive=primitive)

    def to_primitive(self, primitive: Primitive) -> Pixel:
        """
        Returns this pixel rescaled to another primitive.

        :param primitive: The target primitive
        :return: The converted pixel
        """
        values = self.primitive.rescale(np.array(self.channels()), primitive)
        return type(self).from_channels(values.tolist(), primitive)

    def _normalize(self) -> None:
        for f in fields(self):
            if f.name != "primitive":
                object.__setattr__(self, f.name, self.primitive.cast(getattr(self, f.name)))


@dataclass(frozen=True)
class Rgba(Pixel):
    """
    A color pixel with red, green, blue and alpha channel.

    If alpha is omitted the pixel is fully opaque.
    """

    r: int | float
    g: int | float
    b: int | float
    a: int | float | None = None
    primitive: Primitive = Primitive.U8

    def __post_init__(self):
        object.__setattr__(self, "primitive", Primitive(self.primitive))
        if self.a is None:
            object.__setattr__(self, "a", self.primitive.max_bound)
        self._normalize()

    @classmethod
    def channel_count(cls) -> int:
        return 4

    def channels(self) -> tuple:
        return self.r, self.g, self.b, self.a

    @classmethod
    def from_rgba8(cls, rgba: Sequence[int], primitive: Primitive = Primitive.U8) -> Rgba:
        values = Primitive.U8.rescale(np.array(_checked_rgba8(rgba)), primitive)
        return cls(*values.tolist(), primitive=primitive)

    def to_rgba8(self) -> tuple[int, int, int, int]:
        return tuple(self.primitive.rescale(np.array(self.channels()), Primitive.U8).tolist())

    def is_transparent(self) -> bool:
        return self.a == 0


@dataclass(frozen=True)
class Luma(Pixel):
    """A grayscale pixel with a single luminance channel."""

    l: int | float
    primitive: Primitive = Primitive.U8

    def __post_init__(self):
        object.__setattr__(self, "primitive", Primitive(self.primitive))
        self._normalize()

    @classmethod
    def channel_count(cls) -> int:
        return 1

    def channels(self) -> tuple:
        return (self.l,)

    @classmethod
    def from_rgba8(cls, rgba: Sequence[int], primitive: Primitive = Primitive.U8) -> Luma:
        rgba = _checked_rgba8(rgba)
        luminance = float(np.dot(LUMA_WEIGHTS, rgba[:3]))
        return cls(Primitive.U8.rescale(luminance, primitive).item(), primitive=primitive)

    def to_rgba8(self) -> tuple[int, int, int, int]:
        value = int(self.primitive.rescale(self.l, Primitive.U8))
        return value, value, value, 255


PixelTypes = Rgba | Luma
"A pixel of any supported kind"


__all__ = ["Pixel", "Rgba", "Luma", "PixelTypes", "LUMA_WEIGHTS"]
