"""Pygame window showing a single image.

Provides a minimal native viewer used by :meth:`pixelstag.Image.display`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from .config import settings
from .errors import DisplayError

if TYPE_CHECKING:
    from .image import Image

logger = logging.getLogger(__name__)


def to_framebuffer(image: Image) -> np.ndarray:
    """
    Converts an image to the RGB frame shown in the window.

    Alpha is not blended: fully transparent pixels become black, all other
    pixels keep their color.

    :param image: The image to show
    :return: uint8 array of shape (height, width, 3)
    """
    rgba = image.to_rgba8().get_pixels()
    frame = rgba[:, :, :3].copy()
    frame[rgba[:, :, 3] == 0] = 0
    return frame


@dataclass
class ImageWindow:
    """Window presenting one image until it is closed or Escape is pressed.

    Example:
        window = ImageWindow(image, title="Preview")
        window.run()

    Attributes:
        image: The image to show
        title: Window title
        target_fps: Target frame rate of the event loop
    """

    image: Image
    title: str = "PixelStag"
    target_fps: int = field(default_factory=lambda: settings.DISPLAY_FPS)

    _running: bool = field(default=False, repr=False)
    _screen: Any = field(default=None, repr=False)

    def stop(self) -> None:
        """Ends the event loop after the current frame."""
        self._running = False

    def run(self) -> None:
        """Runs the event loop (blocking).

        :raises DisplayError: If pygame fails to create or update the window
        """
        try:
            import pygame
        except ImportError:
            raise ImportError(
                "pygame is required to display images. "
                "Install with: pip install pixelstag[display]"
            )

        frame = to_framebuffer(self.image)
        width, height = self.image.size
        try:
            pygame.init()
            self._screen = pygame.display.set_mode((max(width, 1), max(height, 1)))
            pygame.display.set_caption(self.title)
            surface = pygame.surfarray.make_surface(frame.swapaxes(0, 1))
            clock = pygame.time.Clock()
            logger.info(f"Displaying {self.image} in window '{self.title}'")

            self._running = True
            while self._running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.stop()
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                        self.stop()
                self._screen.blit(surface, (0, 0))
                pygame.display.flip()
                clock.tick(self.target_fps)
        except pygame.error as e:
            raise DisplayError(f"Could not display image: {e}") from e
        finally:
            pygame.quit()
            logger.info(f"Closed window '{self.title}'")


def show_image(image: Image, title: str = "PixelStag") -> None:
    """
    Shows an image in a blocking window.

    :param image: The image to show
    :param title: The window title
    """
    ImageWindow(image, title=title).run()


__all__ = ["ImageWindow", "show_image", "to_framebuffer"]
