# Tests for pixel types and primitives
"""
Tests for Primitive, Rgba and Luma.
"""

import dataclasses

import numpy as np
import pytest

from pixelstag import InvalidCastError, Luma, Primitive, Rgba
from pixelstag.primitive import round_half_away


class TestPrimitive:
    """Tests for channel storage types."""

    def test_bounds(self):
        """Every primitive knows its value range and numpy type."""
        assert Primitive.U8.max_bound == 255
        assert Primitive.U16.max_bound == 65535
        assert Primitive.F32.max_bound == 1.0
        assert Primitive.U8.dtype == np.uint8
        assert Primitive.U16.dtype == np.uint16
        assert Primitive.F32.dtype == np.float32
        assert Primitive.F32.is_float and not Primitive.U16.is_float

    def test_from_dtype(self):
        """Any float type maps to F32, unsupported integer types are rejected."""
        assert Primitive.from_dtype(np.uint8) is Primitive.U8
        assert Primitive.from_dtype(np.float64) is Primitive.F32
        with pytest.raises(InvalidCastError):
            Primitive.from_dtype(np.int32)

    def test_round_half_away(self):
        """Ties are rounded away from zero."""
        assert round_half_away(np.array([0.5, 1.5, 2.5, -0.5, 0.49])).tolist() == [1, 2, 3, -1, 0]

    def test_quantize_clamps(self):
        """Quantization rounds and clamps into the bound."""
        assert Primitive.U8.quantize([-3.0, 2.5, 300.0]).tolist() == [0, 3, 255]
        assert Primitive.F32.quantize([-0.5, 0.25, 1.5]).tolist() == [0.0, 0.25, 1.0]

    def test_cast(self):
        """Checked casts accept representable values only."""
        assert Primitive.U8.cast(255) == 255
        assert Primitive.U16.cast(65535.0) == 65535
        assert Primitive.F32.cast(0.1) == float(np.float32(0.1))
        for primitive, value in [
            (Primitive.U8, 256),
            (Primitive.U8, -1),
            (Primitive.U8, 3.5),
            (Primitive.F32, float("nan")),
            (Primitive.F32, 1.01),
            (Primitive.U16, "bright"),
        ]:
            with pytest.raises(InvalidCastError):
                primitive.cast(value)


class TestRgba:
    """Tests for the Rgba pixel."""

    def test_default_alpha_is_opaque(self):
        """Omitting alpha yields the primitive's maximum."""
        assert Rgba(1, 2, 3).a == 255
        assert Rgba(0, 0, 0, primitive=Primitive.U16).a == 65535
        assert Rgba(0.0, 0.0, 0.0, primitive=Primitive.F32).a == 1.0

    def test_channel_count(self):
        assert Rgba.channel_count() == 4
        assert Luma.channel_count() == 1

    def test_out_of_range(self):
        """Channel values outside the primitive's bound are rejected."""
        with pytest.raises(InvalidCastError):
            Rgba(256, 0, 0)
        with pytest.raises(InvalidCastError):
            Rgba(0.0, 0.0, 2.0, primitive=Primitive.F32)

    def test_immutable(self):
        """Pixels are value objects."""
        pixel = Rgba(1, 2, 3)
        with pytest.raises(dataclasses.FrozenInstanceError):
            pixel.r = 5

    def test_from_rgba8_scales(self):
        """8 bit input is rescaled into the requested primitive."""
        assert Rgba.from_rgba8((255, 128, 0, 255), Primitive.U16) == Rgba(
            65535, 32896, 0, 65535, primitive=Primitive.U16
        )
        assert Rgba.from_rgba8((255, 0, 0, 255), Primitive.F32).r == 1.0

    def test_from_rgba8_invalid(self):
        """Invalid 8 bit input raises InvalidCastError."""
        with pytest.raises(InvalidCastError):
            Rgba.from_rgba8((300, 0, 0, 255))
        with pytest.raises(InvalidCastError):
            Rgba.from_rgba8((0, 0, 0))

    def test_rgba8_round_trip(self):
        """Every 8 bit value survives the trip through every primitive."""
        for primitive in Primitive:
            for c in range(256):
                rgba = (c, 255 - c, c // 2, c)
                assert Rgba.from_rgba8(rgba, primitive).to_rgba8() == rgba

    def test_to_primitive(self):
        """Conversion rescales all channels including alpha."""
        converted = Rgba(255, 0, 0, 0).to_primitive(Primitive.U16)
        assert converted == Rgba(65535, 0, 0, 0, primitive=Primitive.U16)

    def test_is_transparent(self):
        assert Rgba(5, 5, 5, 0).is_transparent()
        assert not Rgba(5, 5, 5).is_transparent()


class TestLuma:
    """Tests for the Luma pixel."""

    def test_from_rgba8_uses_bt601(self):
        """Color is reduced with the BT.601 weights."""
        assert Luma.from_rgba8((255, 255, 255, 255)).l == 255
        assert Luma.from_rgba8((255, 0, 0, 255)).l == 76
        assert Luma.from_rgba8((0, 255, 0, 255)).l == 150
        assert Luma.from_rgba8((0, 0, 255, 255)).l == 29

    def test_to_rgba8(self):
        """Luminance is replicated into an opaque gray."""
        assert Luma(100).to_rgba8() == (100, 100, 100, 255)
        assert Luma(1.0, primitive=Primitive.F32).to_rgba8() == (255, 255, 255, 255)

    def test_gray_round_trip(self):
        """Gray 8 bit values survive the trip through every primitive."""
        for primitive in Primitive:
            for c in range(256):
                assert Luma.from_rgba8((c, c, c, 255), primitive).to_rgba8() == (c, c, c, 255)

    def test_invalid_values(self):
        with pytest.raises(InvalidCastError):
            Luma(3.5)
        with pytest.raises(InvalidCastError):
            Luma(1.5, primitive=Primitive.F32)
