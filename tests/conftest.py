"""
Pytest fixtures for PixelStag tests
"""

import numpy as np
import pytest

from pixelstag import Image, PixelFormat


@pytest.fixture
def opaque_black() -> Image:
    """
    Returns a 4x4 opaque black RGBA8 image.
    """
    data = np.zeros((4, 4, 4), dtype=np.uint8)
    data[:, :, 3] = 255
    return Image.from_array(data)


@pytest.fixture
def rgba_image() -> Image:
    """
    Returns a 7x5 RGBA8 image with random colors and alpha.
    """
    rng = np.random.default_rng(42)
    return Image.from_array(rng.integers(0, 256, size=(5, 7, 4), dtype=np.uint8))


@pytest.fixture
def luma_gradient() -> Image:
    """
    Returns an 8x6 LUMA8 image with a horizontal gradient.
    """
    row = np.linspace(0, 255, 8).round().astype(np.uint8)
    return Image.from_array(np.tile(row, (6, 1)), PixelFormat.LUMA8)
