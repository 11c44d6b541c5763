# PixelStag Filters - Geometric Transforms
"""
Affine transforms with nearest neighbour sampling.

The matrix maps each output position to the position it is sampled from, so
``translate((5, 0))`` moves the content 5 pixels to the left and
``scale((2, 2))`` shrinks it to half its size. Output pixels sampling outside
of the source become transparent black (zero for luminance images).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Sequence

import numpy as np

from pixelstag.errors import InvalidDataError
from pixelstag.parallel import RowBandExecutor

from .base import Filter, FilterContext, register_filter

if TYPE_CHECKING:
    from pixelstag import Image


def _as_matrix(matrix: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.shape not in ((2, 3), (3, 3)):
        raise InvalidDataError(f"Expected a 2x3 or 3x3 matrix, got shape {matrix.shape}")
    if not np.all(np.isfinite(matrix)):
        raise InvalidDataError("Matrix entries must be finite")
    return matrix[:2]


def affine_transform(
    image: Image,
    matrix: Sequence[Sequence[float]] | np.ndarray,
    num_workers: int | None = None,
) -> Image:
    """
    Resamples an image: output pixel (x, y) takes the source pixel at
    ``floor(M · (x, y, 1))``.

    :param image: The source image
    :param matrix: 2x3 or 3x3 matrix, only the first two rows are used
    :param num_workers: Number of parallel workers
    :return: The transformed image of the same size and format
    """
    from pixelstag import Image as ImageClass

    matrix = _as_matrix(matrix)
    source = image.get_pixels()
    width, height = image.size
    xs = np.arange(width, dtype=np.float64)

    def sample_rows(rows: slice) -> np.ndarray:
        ys = np.arange(rows.start, rows.stop, dtype=np.float64)[:, np.newaxis]
        source_x = np.floor(matrix[0, 0] * xs + matrix[0, 1] * ys + matrix[0, 2])
        source_y = np.floor(matrix[1, 0] * xs + matrix[1, 1] * ys + matrix[1, 2])
        inside = (source_x >= 0) & (source_x < width) & (source_y >= 0) & (source_y < height)
        result = np.zeros((rows.stop - rows.start, width, source.shape[2]), dtype=source.dtype)
        result[inside] = source[source_y[inside].astype(np.int64), source_x[inside].astype(np.int64)]
        return result

    data = RowBandExecutor(height, num_workers).map(sample_rows)
    return ImageClass._wrap(data, image.pixel_format)


def rotation_matrix(angle: float, center: tuple[float, float] = (0.0, 0.0)) -> np.ndarray:
    """Matrix sampling the image rotated by ``angle`` radians about ``center``"""
    cos_angle, sin_angle = math.cos(angle), math.sin(angle)
    cx, cy = center
    return np.array([
        [cos_angle, -sin_angle, cx - cos_angle * cx + sin_angle * cy],
        [sin_angle, cos_angle, cy - sin_angle * cx - cos_angle * cy],
        [0.0, 0.0, 1.0],
    ])


def rotate(image: Image, angle: float, center: tuple[float, float] = (0.0, 0.0)) -> Image:
    """
    Rotates the sampling grid by ``angle`` radians about ``center`` (the top
    left corner by default).
    """
    return affine_transform(image, rotation_matrix(angle, center))


def scale(image: Image, factors: tuple[float, float]) -> Image:
    """
    Samples the source at ``(x * sx, y * sy)``.

    :param factors: (sx, sy)
    """
    sx, sy = factors
    return affine_transform(image, [[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])


def translate(image: Image, offset: tuple[float, float]) -> Image:
    """
    Samples the source at ``(x + tx, y + ty)``.

    :param offset: (tx, ty)
    """
    tx, ty = offset
    return affine_transform(image, [[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


@register_filter
@dataclass
class AffineTransform(Filter):
    """Resample with an arbitrary affine matrix.

    matrix: Rows of the 2x3 or 3x3 matrix mapping output to source positions
    """
    matrix: list[list[float]] = field(default_factory=lambda: [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])

    def apply(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        return affine_transform(image, self.matrix)


@register_filter
@dataclass
class Rotate(Filter):
    """Rotation of the sampling grid.

    angle: Rotation in degrees
    cx, cy: Rotation center, the top left corner by default

    Example:
        'rotate 90 cx=32 cy=32'
    """
    angle: float = 0.0
    cx: float = 0.0
    cy: float = 0.0

    _primary_param: ClassVar[str] = 'angle'

    def apply(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        return rotate(image, math.radians(self.angle), (self.cx, self.cy))


@register_filter
@dataclass
class Scale(Filter):
    """Scale the sampling grid.

    sx, sy: Factors applied to output positions; values above one shrink the content
    """
    sx: float = 1.0
    sy: float | None = None

    _primary_param: ClassVar[str] = 'sx'

    def apply(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        return scale(image, (self.sx, self.sx if self.sy is None else self.sy))


@register_filter
@dataclass
class Translate(Filter):
    """Shift the sampling grid.

    tx, ty: Offset added to output positions
    """
    tx: float = 0.0
    ty: float = 0.0

    def apply(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        return translate(image, (self.tx, self.ty))



__all__ = [
    'affine_transform',
    'rotation_matrix',
    'rotate',
    'scale',
    'translate',
    'AffineTransform',
    'Rotate',
    'Scale',
    'Translate',
]
