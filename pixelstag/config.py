"""Library configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """PixelStag settings, overridable via ``PIXELSTAG_*`` environment variables."""

    # Parallel processing
    WORKERS: int | None = None  # None = one worker per CPU
    MIN_ROWS_PER_CHUNK: int = 16  # Smallest row band handed to a worker

    # Filters
    DEFAULT_BORDER_MODE: str = "replicate"
    HISTOGRAM_FLOAT_BINS: int = 256  # Histogram resolution for float images

    # Display
    DISPLAY_FPS: int = 30

    model_config = {"env_prefix": "PIXELSTAG_"}


settings = Settings()
