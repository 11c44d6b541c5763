"""Exception classes raised by PixelStag."""


class PixelStagError(Exception):
    """Base exception for all PixelStag errors."""

    pass


class OutOfBoundsError(PixelStagError, IndexError):
    """Raised when a pixel coordinate lies outside of the image."""

    def __init__(self, position: tuple[int, int], size: tuple[int, int]):
        self.position = position
        self.size = size
        super().__init__(
            f"Pixel position {position} is out of bounds for an image of "
            f"size {size[0]}x{size[1]}"
        )


class InvalidDataError(PixelStagError, ValueError):
    """Raised for malformed buffers, mismatching images or invalid parameters."""

    pass


class InvalidKernelError(InvalidDataError):
    """Raised when a kernel can not be applied (even sized or larger than the image)."""

    pass


class InvalidCastError(PixelStagError, ValueError):
    """Raised when a value can not be represented by the target primitive."""

    pass


class CodecError(PixelStagError, OSError):
    """Raised when image data could not be read, decoded, encoded or written."""

    pass


class DisplayError(PixelStagError):
    """Raised when an image window could not be created or updated."""

    pass


__all__ = [
    "PixelStagError",
    "OutOfBoundsError",
    "InvalidDataError",
    "InvalidKernelError",
    "InvalidCastError",
    "CodecError",
    "DisplayError",
]
