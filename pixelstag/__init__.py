"""
PixelStag - In-memory image processing with generic pixels, shape
rasterization, convolution, point operations and morphology
"""

from .errors import (
    PixelStagError,
    OutOfBoundsError,
    InvalidDataError,
    InvalidKernelError,
    InvalidCastError,
    CodecError,
    DisplayError,
)
from .config import Settings, settings
from .primitive import Primitive
from .pixel import Pixel, Rgba, Luma, PixelTypes
from .pixel_format import PixelFormat, PixelFormatTypes
from .image import Image, PixelRef, SUPPORTED_IMAGE_FILETYPES
from .shapes import ShapeType, Circle, Rectangle, Line, Shape, ColorTypes

__all__ = [
    # Core Image class
    "Image",
    "PixelRef",
    "SUPPORTED_IMAGE_FILETYPES",
    # Pixels
    "Primitive",
    "Pixel",
    "Rgba",
    "Luma",
    "PixelTypes",
    "PixelFormat",
    "PixelFormatTypes",
    # Shapes
    "ShapeType",
    "Circle",
    "Rectangle",
    "Line",
    "Shape",
    "ColorTypes",
    # Configuration
    "Settings",
    "settings",
    # Errors
    "PixelStagError",
    "OutOfBoundsError",
    "InvalidDataError",
    "InvalidKernelError",
    "InvalidCastError",
    "CodecError",
    "DisplayError",
]
