# Tests for the pygame image window
"""
Test the display window with a mocked pygame module.
"""

import sys
from types import SimpleNamespace
from unittest import mock

import numpy as np
import pytest

from pixelstag import DisplayError, Image, PixelFormat, Rgba
from pixelstag.display import ImageWindow, to_framebuffer


class FakePygameError(Exception):
    """Stands in for pygame.error."""


@pytest.fixture
def fake_pygame():
    """Mocked pygame module whose event queue always reports a quit request."""
    pygame = mock.MagicMock()
    pygame.error = FakePygameError
    pygame.event.get.return_value = [SimpleNamespace(type=pygame.QUIT)]
    with mock.patch.dict(sys.modules, {"pygame": pygame}):
        yield pygame


class TestFramebuffer:
    """Tests for to_framebuffer."""

    def test_transparent_becomes_black(self):
        image = Image.from_data(2, 1, [Rgba(200, 100, 50, 0), Rgba(200, 100, 50, 10)])
        frame = to_framebuffer(image)
        assert frame.dtype == np.uint8
        assert frame.tolist() == [[[0, 0, 0], [200, 100, 50]]]

    def test_luma(self):
        image = Image.from_array(np.array([[7, 9]], dtype=np.uint8), PixelFormat.LUMA8)
        assert to_framebuffer(image).tolist() == [[[7, 7, 7], [9, 9, 9]]]


class TestImageWindow:
    """Tests for the event loop."""

    def test_quit_ends_loop(self, fake_pygame):
        """A quit event closes the window after one frame."""
        ImageWindow(Image(4, 3), title="Preview", target_fps=12).run()
        fake_pygame.display.set_mode.assert_called_once_with((4, 3))
        fake_pygame.display.set_caption.assert_called_once_with("Preview")
        fake_pygame.time.Clock.return_value.tick.assert_called_once_with(12)
        fake_pygame.quit.assert_called_once()

    def test_escape_ends_loop(self, fake_pygame):
        fake_pygame.event.get.return_value = [
            SimpleNamespace(type=fake_pygame.KEYDOWN, key=fake_pygame.K_ESCAPE)
        ]
        ImageWindow(Image(2, 2)).run()
        fake_pygame.display.flip.assert_called_once()

    def test_pygame_error(self, fake_pygame):
        """pygame failures are reported as DisplayError."""
        fake_pygame.display.set_mode.side_effect = FakePygameError("no video device")
        with pytest.raises(DisplayError):
            Image(2, 2).display()
        fake_pygame.quit.assert_called_once()
