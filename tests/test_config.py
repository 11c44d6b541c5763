"""
Tests for the library settings
"""

from pixelstag import Settings


def test_defaults():
    """
    Tests the built-in defaults
    """
    settings = Settings()
    assert settings.WORKERS is None
    assert settings.MIN_ROWS_PER_CHUNK == 16
    assert settings.DEFAULT_BORDER_MODE == "replicate"
    assert settings.HISTOGRAM_FLOAT_BINS == 256
    assert settings.DISPLAY_FPS == 30


def test_environment_override(monkeypatch):
    """
    Tests overriding settings via PIXELSTAG_ environment variables
    """
    monkeypatch.setenv("PIXELSTAG_WORKERS", "3")
    monkeypatch.setenv("PIXELSTAG_DEFAULT_BORDER_MODE", "wrap")
    settings = Settings()
    assert settings.WORKERS == 3
    assert settings.DEFAULT_BORDER_MODE == "wrap"
