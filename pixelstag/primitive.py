"""
Defines :class:`Primitive`, the closed set of channel storage types, and the
rounding, clamping and rescaling rules used whenever channel values move
between them.
"""

from __future__ import annotations

import math
from enum import Enum

import numpy as np

from .errors import InvalidCastError


def round_half_away(values: np.ndarray | float) -> np.ndarray:
    """
    Rounds to the nearest integer, ties away from zero.

    :param values: The values to round
    :return: The rounded values as float64 array
    """
    values = np.asarray(values, dtype=np.float64)
    return np.where(values >= 0.0, np.floor(values + 0.5), np.ceil(values - 0.5))


class Primitive(Enum):
    """
    Numeric storage type of a single channel.

    Every channel value is kept within ``[min_bound, max_bound]`` of its
    primitive: 0..255 for U8, 0..65535 for U16 and 0.0..1.0 for F32.
    """

    U8 = "u8"
    "8 bit unsigned integer channels"
    U16 = "u16"
    "16 bit unsigned integer channels"
    F32 = "f32"
    "32 bit normalized float channels"

    @property
    def dtype(self) -> np.dtype:
        """The numpy storage type"""
        return np.dtype(_DTYPES[self])

    @property
    def is_float(self) -> bool:
        return self is Primitive.F32

    @property
    def min_bound(self) -> int | float:
        return 0.0 if self.is_float else 0

    @property
    def max_bound(self) -> int | float:
        return _MAX_BOUNDS[self]

    @classmethod
    def from_dtype(cls, dtype: np.dtype | type) -> Primitive:
        """
        Returns the primitive storing values in given numpy type.

        Any floating point type maps to F32.

        :param dtype: The numpy data type
        :return: The primitive
        """
        dtype = np.dtype(dtype)
        if dtype.kind == "f":
            return cls.F32
        for primitive, storage in _DTYPES.items():
            if np.dtype(storage) == dtype:
                return primitive
        raise InvalidCastError(f"Unsupported channel data type: {dtype}")

    def quantize(self, values: np.ndarray | float) -> np.ndarray:
        """
        Converts float values given in this primitive's scale into its storage
        type. Integer primitives round to nearest (ties away from zero), all
        primitives clamp to the bound.

        :param values: The values in this primitive's scale
        :return: The stored values
        """
        values = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0)
        if not self.is_float:
            values = round_half_away(values)
        return np.clip(values, self.min_bound, self.max_bound).astype(self.dtype)

    def rescale(self, values: np.ndarray | float, target: Primitive) -> np.ndarray:
        """
        Rescales values linearly from this primitive's range into the range of
        ``target``, applying ``max_bound(target) / max_bound(self)``.

        :param values: The values in this primitive's scale
        :param target: The target primitive
        :return: The rescaled values in the target's storage type
        """
        values = np.asarray(values, dtype=np.float64)
        return target.quantize(values * target.max_bound / self.max_bound)

    def cast(self, value) -> int | float:
        """
        Checked conversion of a single channel value.

        Integer primitives accept integral values within the bound, F32 accepts
        finite values within 0.0 and 1.0 and stores them with float32 precision.

        :param value: The channel value
        :return: The value as Python int or float
        :raises InvalidCastError: If the value can not be represented
        """
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise InvalidCastError(f"{value!r} is not a numeric channel value") from e
        if not math.isfinite(number) or not (self.min_bound <= number <= self.max_bound):
            raise InvalidCastError(
                f"{value!r} is outside of the {self.name} range "
                f"[{self.min_bound}, {self.max_bound}]"
            )
        if self.is_float:
            return float(np.float32(number))
        if not number.is_integer():
            raise InvalidCastError(f"{value!r} is not an integral {self.name} value")
        return int(number)


_DTYPES = {
    Primitive.U8: np.uint8,
    Primitive.U16: np.uint16,
    Primitive.F32: np.float32,
}

_MAX_BOUNDS = {
    Primitive.U8: 255,
    Primitive.U16: 65535,
    Primitive.F32: 1.0,
}


__all__ = ["Primitive", "round_half_away"]
