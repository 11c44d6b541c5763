"""
Implements the class :class:`.Image`, PixelStag's in-memory pixel buffer.

An image exclusively owns a contiguous, row-major numpy array of shape
(height, width, channels). Arrays passed in are copied, arrays handed out are
read-only views, so no two images ever share their pixel storage.
"""

from __future__ import annotations

import io
import logging
import os
from typing import Callable, Iterator, Sequence

import PIL.Image
import filetype
import numpy as np

from .errors import CodecError, InvalidCastError, InvalidDataError, OutOfBoundsError
from .parallel import RowBandExecutor
from .pixel import Pixel
from .pixel_format import PixelFormat, PixelFormatTypes, convert_pixels
from .shapes import ColorTypes, Shape, alpha_blend, color_channels, draw_shape

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_FILETYPES = ["png", "bmp", "jpg", "jpeg", "gif"]
"List of image file types which can be read and written"

SUPPORTED_IMAGE_FILETYPE_SET = set(SUPPORTED_IMAGE_FILETYPES)
"Set of image file types which can be read and written"

_READ_ONLY = {"width", "height", "pixel_format"}


def _as_buffer(array: np.ndarray, pixel_format: PixelFormat) -> np.ndarray:
    """
    Copies an array of shape (height, width, channels) into a buffer of the
    given pixel format, verifying every value fits the format's primitive.
    """
    if array.shape[-1] != pixel_format.channel_count:
        raise InvalidDataError(
            f"{pixel_format.value} requires {pixel_format.channel_count} channels, "
            f"got {array.shape[-1]}"
        )
    primitive = pixel_format.primitive
    if array.dtype == primitive.dtype and not primitive.is_float:
        # integer storage types are bounded by construction
        return np.array(array, copy=True, order="C")
    values = np.asarray(array, dtype=np.float64)
    if values.size:
        if not np.all(np.isfinite(values)):
            raise InvalidCastError("Pixel data contains non-finite values")
        if values.min() < primitive.min_bound or values.max() > primitive.max_bound:
            raise InvalidCastError(
                f"Pixel data exceeds the {primitive.name} range "
                f"[{primitive.min_bound}, {primitive.max_bound}]"
            )
        if not primitive.is_float and not np.all(values == np.floor(values)):
            raise InvalidCastError(f"Pixel data contains non-integral {primitive.name} values")
    return np.ascontiguousarray(values.astype(primitive.dtype))


class PixelRef:
    """
    Writable handle on a single pixel, handed out by :meth:`Image.pixels_mut`.
    """

    __slots__ = ("_image", "x", "y")

    def __init__(self, image: Image, x: int, y: int):
        self._image = image
        self.x = x
        self.y = y

    @property
    def value(self) -> Pixel:
        """The pixel's current value"""
        return self._image.get_pixel((self.x, self.y))

    @value.setter
    def value(self, pixel: Pixel):
        self._image.set_pixel((self.x, self.y), pixel)

    def __repr__(self):
        return f"PixelRef({self.x}, {self.y}, {self.value})"


class Image:
    """
    PixelStag's buffer for image data in one of the formats of
    :class:`.PixelFormat`.

    Width, height and pixel format are fixed once the image was created.
    """

    def __init__(
        self,
        width: int,
        height: int,
        pixel_format: PixelFormatTypes = PixelFormat.RGBA8,
    ):
        """
        Allocates a new image filled with transparent black (color formats)
        or zero luminance.

        :param width: The width in pixels
        :param height: The height in pixels
        :param pixel_format: The pixel format. RGBA8 by default.
        """
        if width < 0 or height < 0:
            raise InvalidDataError(f"Invalid image size {width}x{height}")
        pixel_format = PixelFormat.parse(pixel_format)
        self._init(
            np.zeros((height, width, pixel_format.channel_count), dtype=pixel_format.dtype),
            pixel_format,
        )

    def _init(self, data: np.ndarray, pixel_format: PixelFormat):
        self.width: int = data.shape[1]
        "The image's width in pixels"
        self.height: int = data.shape[0]
        "The image's height in pixels"
        self.pixel_format: PixelFormat = pixel_format
        "The pixel format, e.g. RGBA8"
        self._data: np.ndarray = data
        "The pixel data as (height, width, channels) array"
        self._read_only = _READ_ONLY

    def __setattr__(self, key, value):
        if "_read_only" in self.__dict__:
            if key in self._read_only:
                raise ValueError(f"{key} can not be modified after initialization")
        self.__dict__[key] = value

    @classmethod
    def _wrap(cls, data: np.ndarray, pixel_format: PixelFormat) -> Image:
        """Creates an image taking over a freshly computed buffer."""
        image = cls.__new__(cls)
        image._init(
            np.require(data, dtype=pixel_format.dtype, requirements=["C", "W", "O"]),
            pixel_format,
        )
        return image

    @classmethod
    def from_data(
        cls,
        width: int,
        height: int,
        data: Sequence[Pixel] | np.ndarray,
        pixel_format: PixelFormatTypes | None = None,
    ) -> Image:
        """
        Creates an image from a flat, row-major pixel sequence.

        :param width: The width in pixels
        :param height: The height in pixels
        :param data: Either a sequence of pixels or a numpy array of shape
            (width * height,) for luminance or (width * height, channels)
        :param pixel_format: The pixel format. Detected from the data if
            not specified.
        :return: The new image
        :raises InvalidDataError: If the data length does not match
            ``width * height`` or the pixels are of mixed formats
        """
        if width < 0 or height < 0:
            raise InvalidDataError(f"Invalid image size {width}x{height}")
        if len(data) != width * height:
            raise InvalidDataError(
                f"Expected {width * height} pixels for a {width}x{height} image, got {len(data)}"
            )
        if pixel_format is not None:
            pixel_format = PixelFormat.parse(pixel_format)
        if isinstance(data, np.ndarray):
            if data.ndim == 1:
                data = data[:, np.newaxis]
            if data.ndim != 2:
                raise InvalidDataError(f"Expected a flat pixel array, got shape {data.shape}")
            array = data.reshape(height, width, data.shape[1])
            return cls.from_array(array, pixel_format)
        formats = set()
        for pixel in data:
            if not isinstance(pixel, Pixel):
                raise InvalidDataError(f"Expected pixels, got {type(pixel).__name__}")
            formats.add(PixelFormat.for_pixel(pixel))
        if len(formats) > 1:
            raise InvalidDataError(
                f"Mixed pixel formats: {', '.join(sorted(f.value for f in formats))}"
            )
        detected = formats.pop() if formats else (pixel_format or PixelFormat.RGBA8)
        if pixel_format is not None and detected is not pixel_format:
            raise InvalidDataError(
                f"Pixels are {detected.value}, but {pixel_format.value} was requested"
            )
        array = np.array(
            [pixel.channels() for pixel in data], dtype=detected.dtype
        ).reshape(height, width, detected.channel_count)
        return cls._wrap(array, detected)

    @classmethod
    def from_array(
        cls,
        array: np.ndarray,
        pixel_format: PixelFormatTypes | None = None,
    ) -> Image:
        """
        Creates an image from a numpy array. The data is copied.

        :param array: Array of shape (height, width) or (height, width, channels)
        :param pixel_format: The pixel format. Detected from dtype and channel
            count if not specified.
        :return: The new image
        """
        array = np.asarray(array)
        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        if array.ndim != 3:
            raise InvalidDataError(f"Expected a 2D or 3D array, got {array.ndim}D")
        if pixel_format is None:
            pixel_format = PixelFormat.from_array(array)
        pixel_format = PixelFormat.parse(pixel_format)
        image = cls.__new__(cls)
        image._init(_as_buffer(array, pixel_format), pixel_format)
        return image

    @classmethod
    def open(cls, path: str | os.PathLike, pixel_format: PixelFormatTypes = PixelFormat.RGBA8) -> Image:
        """
        Loads an image file.

        :param path: The file's path
        :param pixel_format: The desired pixel format
        :return: The decoded image
        :raises CodecError: If the file could not be read or decoded
        """
        logger.debug(f"Loading image {path}")
        try:
            with open(path, "rb") as input_file:
                data = input_file.read()
        except OSError as e:
            raise CodecError(f"Could not read image file {path}: {e}") from e
        return cls.decode(data, pixel_format)

    @classmethod
    def decode(cls, data: bytes, pixel_format: PixelFormatTypes = PixelFormat.RGBA8) -> Image:
        """
        Decodes compressed image data such as PNG or JPEG.

        The data is decoded as 8 bit RGBA and then converted to the desired
        pixel format.

        :param data: The encoded image
        :param pixel_format: The desired pixel format
        :return: The decoded image
        :raises CodecError: If the data is not a decodable image
        """
        pixel_format = PixelFormat.parse(pixel_format)
        kind = filetype.guess(data)
        if kind is None or not kind.mime.startswith("image/"):
            raise CodecError("Unrecognized image data")
        try:
            with PIL.Image.open(io.BytesIO(data)) as pil_image:
                rgba = np.asarray(pil_image.convert("RGBA"))
        except (OSError, ValueError) as e:
            raise CodecError(f"Could not decode {kind.mime} data: {e}") from e
        logger.debug(f"Decoded {kind.mime} image of size {rgba.shape[1]}x{rgba.shape[0]}")
        return cls._wrap(convert_pixels(rgba, PixelFormat.RGBA8, pixel_format), pixel_format)

    def save(self, target: str | os.PathLike, quality: int = 90):
        """
        Saves the image to disk, the file type is derived from the extension.

        :param target: The file name
        :param quality: The image quality between (0 = worst quality) and
            (95 = best quality). >95 = minimal loss
        :raises CodecError: If the image could not be encoded or written
        """
        extension = os.path.splitext(str(target))[1]
        data = self.encode(filetype=extension or "png", quality=quality)
        logger.debug(f"Saving {len(data)} bytes to {target}")
        try:
            with open(target, "wb") as output_file:
                output_file.write(data)
        except OSError as e:
            raise CodecError(f"Could not write image file {target}: {e}") from e

    def encode(self, filetype: str = "png", quality: int = 90) -> bytes:
        """
        Compresses the image and returns the compressed file's data.

        Color images are encoded as 8 bit RGBA. File types without alpha
        support receive the image composited over white. Luminance images are
        stored as 8 bit grayscale.

        :param filetype: The output file type. Valid types are
            "png", "jpg"/"jpeg", "bmp" and "gif".
        :param quality: The image quality between (0 = worst quality) and
            (95 = best quality). >95 = minimal loss
        :return: The encoded data
        :raises CodecError: If the file type is not supported or encoding failed
        """
        filetype = filetype.lstrip(".").lower()
        if filetype == "jpg":
            filetype = "jpeg"
        if filetype not in SUPPORTED_IMAGE_FILETYPE_SET:
            raise CodecError(f"Unsupported file type: {filetype}")
        parameters = {}
        if filetype == "jpeg":
            parameters["quality"] = quality
        output_stream = io.BytesIO()
        try:
            if self.pixel_format.has_alpha:
                pil_image = PIL.Image.fromarray(self.to_rgba8()._data)
                if filetype != "png":
                    background = PIL.Image.new("RGB", pil_image.size, (255, 255, 255))
                    background.paste(pil_image, (0, 0), pil_image)
                    pil_image = background
            else:
                pil_image = PIL.Image.fromarray(
                    np.ascontiguousarray(self.convert(PixelFormat.LUMA8)._data[:, :, 0])
                )
            pil_image.save(output_stream, format=filetype, **parameters)
        except (OSError, ValueError) as e:
            raise CodecError(f"Could not encode image as {filetype}: {e}") from e
        return output_stream.getvalue()

    def display(self, title: str = "PixelStag"):
        """
        Shows the image in a window until it is closed or Escape is pressed.

        Requires pygame. Fully transparent pixels are shown black.

        :param title: The window title
        :raises DisplayError: If the window could not be shown
        """
        from .display import show_image

        show_image(self, title)

    @property
    def size(self) -> tuple[int, int]:
        """The image's size in pixels as (width, height)"""
        return self.width, self.height

    def dimensions(self) -> tuple[int, int]:
        """
        Returns the image's size in pixels

        :return: (width, height)
        """
        return self.width, self.height

    def is_empty(self) -> bool:
        """Returns True if the image does not contain any pixel"""
        return self.width == 0 or self.height == 0

    def _check_position(self, position: tuple[int, int]) -> tuple[int, int]:
        x, y = position
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBoundsError((x, y), self.size)
        return int(x), int(y)

    def get_pixel(self, position: tuple[int, int]) -> Pixel:
        """
        Returns the pixel at given position.

        :param position: The (x, y) position
        :return: The pixel
        :raises OutOfBoundsError: If the position lies outside of the image
        """
        x, y = self._check_position(position)
        return self.pixel_format.pixel(self._data[y, x].tolist())

    def set_pixel(self, position: tuple[int, int], value: Pixel):
        """
        Overwrites the pixel at given position.

        :param position: The (x, y) position
        :param value: The new pixel, must be of the image's pixel format
        :raises OutOfBoundsError: If the position lies outside of the image
        :raises InvalidDataError: If the pixel is of another format
        """
        x, y = self._check_position(position)
        if not isinstance(value, Pixel) or PixelFormat.for_pixel(value) is not self.pixel_format:
            raise InvalidDataError(f"Expected a {self.pixel_format.value} pixel, got {value!r}")
        self._data[y, x] = value.channels()

    def composite(self, positions: np.ndarray | Sequence[tuple[int, int]], color: ColorTypes):
        """
        Paints a color onto a set of positions. Color images blend the color
        over the existing pixels, luminance images are overwritten.

        :param positions: The (x, y) positions, all inside the image
        :param color: The color, converted to the image's pixel format
        """
        positions = np.asarray(positions, dtype=np.int64).reshape(-1, 2)
        if len(positions) == 0:
            return
        xs, ys = positions[:, 0], positions[:, 1]
        channels = color_channels(color, self.pixel_format)
        primitive = self.pixel_format.primitive
        if self.pixel_format.has_alpha:
            blended = alpha_blend(self._data[ys, xs], channels, primitive.max_bound)
            self._data[ys, xs] = primitive.quantize(blended)
        else:
            self._data[ys, xs] = primitive.quantize(channels)

    def alpha_blend_pixel(self, position: tuple[int, int], color: ColorTypes):
        """
        Blends a color over a single pixel.

        :param position: The (x, y) position
        :param color: The color to blend
        :raises OutOfBoundsError: If the position lies outside of the image
        """
        x, y = self._check_position(position)
        self.composite([(x, y)], color)

    def draw(self, shape: Shape):
        """
        Draws a shape. Parts outside of the image are clipped.

        :param shape: The Circle, Rectangle or Line to draw
        """
        draw_shape(self, shape)

    def vstack(self, other: Image) -> Image:
        """
        Returns a new image with the rows of ``other`` below this image's rows.

        :param other: The image to append
        :return: The combined image
        :raises InvalidDataError: If width or pixel format differ
        """
        if other.width != self.width:
            raise InvalidDataError(
                f"Can not stack images of different width ({self.width} vs {other.width})"
            )
        if other.pixel_format is not self.pixel_format:
            raise InvalidDataError(
                f"Can not stack {other.pixel_format.value} onto {self.pixel_format.value}"
            )
        return Image._wrap(np.concatenate([self._data, other._data], axis=0), self.pixel_format)

    def convert(self, pixel_format: PixelFormatTypes) -> Image:
        """
        Converts the image to another pixel format.

        :param pixel_format: The target format
        :return: The converted image (always a new instance)
        """
        pixel_format = PixelFormat.parse(pixel_format)
        return Image._wrap(convert_pixels(self._data, self.pixel_format, pixel_format), pixel_format)

    def to_rgba8(self) -> Image:
        """Returns a copy of the image in the canonical RGBA8 format"""
        return self.convert(PixelFormat.RGBA8)

    def copy(self) -> Image:
        """
        Creates a copy of this image

        :return: The copy
        """
        return Image._wrap(self._data.copy(), self.pixel_format)

    def get_pixels(self) -> np.ndarray:
        """
        Returns a read-only view on the pixel data

        :return: Array of shape (height, width, channels)
        """
        view = self._data.view()
        view.flags.writeable = False
        return view

    def pixels(self) -> Iterator[tuple[int, int, Pixel]]:
        """
        Iterates all pixels in row-major order.

        :return: Generator of (x, y, pixel)
        """
        for y in range(self.height):
            for x, channels in enumerate(self._data[y].tolist()):
                yield x, y, self.pixel_format.pixel(channels)

    def pixels_mut(self) -> Iterator[tuple[int, int, PixelRef]]:
        """
        Iterates all pixels in row-major order, yielding writable references.

        Example::

            for x, y, ref in image.pixels_mut():
                ref.value = Luma(255 - ref.value.l)

        :return: Generator of (x, y, PixelRef)
        """
        for y in range(self.height):
            for x in range(self.width):
                yield x, y, PixelRef(self, x, y)

    def par_pixels_mut(
        self,
        func: Callable[[np.ndarray, slice], None],
        num_workers: int | None = None,
    ):
        """
        Modifies the image in parallel. ``func(band, rows)`` is called
        concurrently for disjoint row bands, ``band`` being a writable view of
        shape (rows, width, channels).

        :param func: The band callback
        :param num_workers: Number of parallel workers
        """
        RowBandExecutor(self.height, num_workers).for_each(self._data, func)
        if self.pixel_format.is_float:
            np.clip(np.nan_to_num(self._data, copy=False), 0.0, 1.0, out=self._data)

    def par_map(
        self,
        func: Callable[[np.ndarray, slice], np.ndarray],
        pixel_format: PixelFormatTypes | None = None,
        num_workers: int | None = None,
    ) -> Image:
        """
        Computes a new image in parallel. ``func(band, rows)`` receives a
        read-only view of the source rows and returns the output rows.

        :param func: Computes the output rows of one band
        :param pixel_format: The output's pixel format, by default the same
        :param num_workers: Number of parallel workers
        :return: The new image
        """
        source = self.get_pixels()
        result = RowBandExecutor(self.height, num_workers).map(lambda rows: func(source[rows], rows))
        if result.shape[:2] != (self.height, self.width):
            raise InvalidDataError(
                f"Mapped data has shape {result.shape}, expected {self.height}x{self.width}"
            )
        return Image.from_array(result, pixel_format or self.pixel_format)

    def __eq__(self, other):
        if not isinstance(other, Image):
            return NotImplemented
        return (
            self.pixel_format is other.pixel_format
            and self._data.shape == other._data.shape
            and np.array_equal(self._data, other._data)
        )

    __hash__ = None

    def __str__(self):
        return f"Image ({self.width}x{self.height} {''.join(self.pixel_format.band_names)} {self.pixel_format.value})"

    def __repr__(self):
        return str(self)


__all__ = ["Image", "PixelRef", "SUPPORTED_IMAGE_FILETYPES"]
