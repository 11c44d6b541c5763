# PixelStag - Shapes
"""
Shape primitives and their rasterization.

Each shape turns into the set of pixel positions it touches. Rasterization
only walks the shape's own bounding box and silently clips everything
outside of the target image, so drawing never fails for partially or fully
invisible shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Sequence, Union

import numpy as np

from .errors import InvalidDataError
from .pixel import Pixel, Rgba
from .pixel_format import PixelFormat

if TYPE_CHECKING:
    from .image import Image

ColorTypes = Union[Pixel, Sequence[int]]
"A pixel of any format or an 8 bit (r, g, b) or (r, g, b, a) tuple"

OPAQUE_WHITE = Rgba(255, 255, 255, 255)


class ShapeType(Enum):
    """Types of shape primitives."""
    CIRCLE = auto()
    RECTANGLE = auto()
    LINE = auto()


def _clip(xs: np.ndarray, ys: np.ndarray, width: int, height: int) -> np.ndarray:
    """Stacks coordinates to an (N, 2) array of (x, y), dropping those outside the image."""
    inside = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
    return np.stack([xs[inside], ys[inside]], axis=-1).astype(np.int64)


def _check_non_negative(**values: int) -> None:
    for name, value in values.items():
        if value < 0:
            raise InvalidDataError(f"{name} must not be negative, got {value}")


@dataclass
class Circle:
    """Circle defined by center, radius and outline thickness.

    Offsets span ``[-(radius + thickness), radius + thickness)`` on both axes.
    Within that window an outline covers ``radius² <= dx² + dy² <= (radius + thickness)²``,
    a filled circle the disk ``dx² + dy² <= radius²``.
    """
    cx: int
    cy: int
    radius: int
    color: ColorTypes = field(default=OPAQUE_WHITE)
    thickness: int = 1
    filled: bool = False

    @property
    def shape_type(self) -> ShapeType:
        return ShapeType.CIRCLE

    @property
    def bounding_rect(self) -> tuple[int, int, int, int]:
        """The (x, y, width, height) of all pixels the circle may touch"""
        outer = self.radius + self.thickness
        return self.cx - outer, self.cy - outer, 2 * outer, 2 * outer

    def rasterize(self, width: int, height: int) -> np.ndarray:
        """
        Returns the positions touched by the circle.

        :param width: The target image's width
        :param height: The target image's height
        :return: Array of shape (N, 2) with unique (x, y) positions
        """
        _check_non_negative(radius=self.radius, thickness=self.thickness)
        outer = self.radius + self.thickness
        offsets = np.arange(-outer, outer)
        dx, dy = np.meshgrid(offsets, offsets)
        distance_sq = dx * dx + dy * dy
        inner_sq = self.radius * self.radius
        if self.filled:
            mask = distance_sq <= inner_sq
        else:
            mask = (distance_sq >= inner_sq) & (distance_sq <= outer * outer)
        return _clip(self.cx + dx[mask], self.cy + dy[mask], width, height)

    def to_dict(self) -> dict:
        return {
            'type': 'circle',
            'cx': self.cx, 'cy': self.cy, 'radius': self.radius,
            'thickness': self.thickness, 'filled': self.filled,
        }


@dataclass
class Rectangle:
    """Axis-aligned box (x, y, width, height) with a border ``thickness`` pixels wide.

    The border grows outwards: the box covers ``[x - t, x + width + t)``
    horizontally and ``[y - t, y + height + t)`` vertically. The outline is
    the part of that span closer than ``t`` pixels to its outer edge, a
    filled box covers the whole span.
    """
    x: int
    y: int
    width: int
    height: int
    color: ColorTypes = field(default=OPAQUE_WHITE)
    thickness: int = 1
    filled: bool = False

    @property
    def shape_type(self) -> ShapeType:
        return ShapeType.RECTANGLE

    @property
    def bounding_rect(self) -> tuple[int, int, int, int]:
        t = self.thickness
        return self.x - t, self.y - t, self.width + 2 * t, self.height + 2 * t

    def rasterize(self, width: int, height: int) -> np.ndarray:
        """
        Returns the positions touched by the box.

        :param width: The target image's width
        :param height: The target image's height
        :return: Array of shape (N, 2) with unique (x, y) positions
        """
        _check_non_negative(width=self.width, height=self.height, thickness=self.thickness)
        left, top, span_x, span_y = self.bounding_rect
        right, bottom = left + span_x, top + span_y
        # only walk the part of the span inside the image
        x0, x1 = max(left, 0), min(right, width)
        y0, y1 = max(top, 0), min(bottom, height)
        if x0 >= x1 or y0 >= y1:
            return np.empty((0, 2), dtype=np.int64)
        xs, ys = np.meshgrid(np.arange(x0, x1), np.arange(y0, y1))
        if self.filled:
            mask = np.ones(xs.shape, dtype=bool)
        else:
            edge_distance = np.minimum(
                np.minimum(xs - left, right - 1 - xs),
                np.minimum(ys - top, bottom - 1 - ys),
            )
            mask = edge_distance < self.thickness
        return _clip(xs[mask], ys[mask], width, height)

    def to_dict(self) -> dict:
        return {
            'type': 'rectangle',
            'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height,
            'thickness': self.thickness, 'filled': self.filled,
        }


@dataclass
class Line:
    """Line segment from (x1, y1) to (x2, y2), both end points included.

    Traced with Bresenham's algorithm; every traced point is stamped with a
    square brush reaching ``thickness // 2`` pixels in each direction.
    """
    x1: int
    y1: int
    x2: int
    y2: int
    color: ColorTypes = field(default=OPAQUE_WHITE)
    thickness: int = 1

    @property
    def shape_type(self) -> ShapeType:
        return ShapeType.LINE

    @property
    def bounding_rect(self) -> tuple[int, int, int, int]:
        half = self.thickness // 2
        x, y = min(self.x1, self.x2) - half, min(self.y1, self.y2) - half
        return x, y, abs(self.x2 - self.x1) + 2 * half + 1, abs(self.y2 - self.y1) + 2 * half + 1

    def trace(self) -> list[tuple[int, int]]:
        """Returns the Bresenham points from start to end, in order"""
        x, y = self.x1, self.y1
        dx = abs(self.x2 - x)
        dy = -abs(self.y2 - y)
        sx = 1 if x < self.x2 else -1
        sy = 1 if y < self.y2 else -1
        error = dx + dy
        points = []
        while True:
            points.append((x, y))
            if x == self.x2 and y == self.y2:
                break
            doubled = 2 * error
            if doubled >= dy:
                error += dy
                x += sx
            if doubled <= dx:
                error += dx
                y += sy
        return points

    def rasterize(self, width: int, height: int) -> np.ndarray:
        """
        Returns the positions touched by the line.

        :param width: The target image's width
        :param height: The target image's height
        :return: Array of shape (N, 2) with unique (x, y) positions
        """
        _check_non_negative(thickness=self.thickness)
        half = self.thickness // 2
        points = np.array(self.trace(), dtype=np.int64)
        brush = np.arange(-half, half + 1)
        bx, by = np.meshgrid(brush, brush)
        xs = (points[:, 0:1] + bx.ravel()).ravel()
        ys = (points[:, 1:2] + by.ravel()).ravel()
        positions = _clip(xs, ys, width, height)
        if half > 0 and len(positions):
            positions = np.unique(positions, axis=0)
        return positions

    def to_dict(self) -> dict:
        return {
            'type': 'line',
            'x1': self.x1, 'y1': self.y1, 'x2': self.x2, 'y2': self.y2,
            'thickness': self.thickness,
        }


Shape = Union[Circle, Rectangle, Line]
"Any drawable shape"


def color_channels(color: ColorTypes, pixel_format: PixelFormat) -> np.ndarray:
    """
    Converts a color to the raw channel values of a pixel format.

    :param color: A pixel of any format or an 8 bit RGB(A) tuple
    :param pixel_format: The target format
    :return: The channel values as float64 array
    """
    target_class, primitive = pixel_format.pixel_class, pixel_format.primitive
    if isinstance(color, Pixel):
        if isinstance(color, target_class):
            pixel = color.to_primitive(primitive) if color.primitive is not primitive else color
        else:
            pixel = target_class.from_rgba8(color.to_rgba8(), primitive)
    else:
        rgba = tuple(color)
        if len(rgba) == 3:
            rgba = rgba + (255,)
        pixel = target_class.from_rgba8(rgba, primitive)
    return np.array(pixel.channels(), dtype=np.float64)


def alpha_blend(background: np.ndarray, foreground: np.ndarray, max_value: float) -> np.ndarray:
    """
    Composites ``foreground`` over ``background`` ("over" operator).

    Both arrays hold RGBA values of shape (..., 4) in a primitive's native
    scale. Where the combined alpha is zero the result is transparent black.

    :param background: The background pixels
    :param foreground: The foreground pixels
    :param max_value: The primitive's maximum, i.e. fully opaque
    :return: The blended pixels as float64 array, not yet rounded
    """
    background = np.asarray(background, dtype=np.float64)
    foreground = np.asarray(foreground, dtype=np.float64)
    fg_alpha = foreground[..., 3:4] / max_value
    bg_alpha = background[..., 3:4] / max_value
    bg_weight = bg_alpha * (1.0 - fg_alpha)
    out_alpha = fg_alpha + bg_weight
    color = foreground[..., :3] * fg_alpha + background[..., :3] * bg_weight
    visible = out_alpha > 0.0
    color = np.where(visible, color / np.where(visible, out_alpha, 1.0), 0.0)
    return np.concatenate([color, out_alpha * max_value], axis=-1)


def draw_shape(image: Image, shape: Shape) -> None:
    """
    Rasterizes a shape and composites its color onto the image.

    :param image: The target image, modified in place
    :param shape: The shape to draw
    """
    if not isinstance(shape, (Circle, Rectangle, Line)):
        raise InvalidDataError(f"Unsupported shape: {type(shape).__name__}")
    positions = shape.rasterize(image.width, image.height)
    image.composite(positions, shape.color)


__all__ = [
    "ShapeType",
    "Circle",
    "Rectangle",
    "Line",
    "Shape",
    "ColorTypes",
    "color_channels",
    "alpha_blend",
    "draw_shape",
]
