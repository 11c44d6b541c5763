"""
Data-parallel execution over disjoint row bands of an image buffer.

Work is split into contiguous, non-overlapping row ranges which are processed
concurrently on a ``ThreadPoolExecutor``. The numpy kernels running inside a
band release the GIL, so bands of one image are processed truly in parallel.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

import numpy as np

from .config import settings

logger = logging.getLogger(__name__)

BandFunction = Callable[[np.ndarray, slice], None]
"Callback receiving a writable band view and the band's row range"

BandMapFunction = Callable[[slice], np.ndarray]
"Callback computing the output rows of a band"


def split_rows(height: int, parts: int) -> list[slice]:
    """
    Splits the rows ``0..height`` into at most ``parts`` contiguous bands.

    The bands are disjoint, ordered and cover every row exactly once.

    :param height: The number of rows
    :param parts: The desired number of bands
    :return: The row ranges
    """
    if height <= 0:
        return []
    parts = max(1, min(parts, height))
    bounds = [(index * height) // parts for index in range(parts + 1)]
    # parts <= height makes every boundary strictly larger than its predecessor
    return [slice(lower, upper) for lower, upper in zip(bounds, bounds[1:])]


class RowBandExecutor:
    """Data-parallel executor applying a function to disjoint row bands.

    Example::

        executor = RowBandExecutor(image.height)
        executor.for_each(buffer, lambda band, rows: np.subtract(255, band, out=band))

    :param height: The number of rows to process
    :param num_workers: Number of parallel workers (settings or CPU count if None)
    :param min_rows: Smallest band handed to a worker
    """

    def __init__(self, height: int, num_workers: int | None = None, min_rows: int | None = None):
        self.height = height
        self._num_workers = num_workers or settings.WORKERS or os.cpu_count() or 4
        min_rows = max(1, min_rows or settings.MIN_ROWS_PER_CHUNK)
        max_bands = max(1, height // min_rows)
        self.bands = split_rows(height, min(self._num_workers, max_bands))
        logger.debug(
            f"Planned {len(self.bands)} row band(s) for {height} rows "
            f"using up to {self._num_workers} workers"
        )

    def _run(self, func: Callable, arguments: list[tuple]) -> list:
        if len(arguments) <= 1:
            return [func(*args) for args in arguments]
        with ThreadPoolExecutor(max_workers=min(self._num_workers, len(arguments))) as executor:
            futures: list[Future] = [executor.submit(func, *args) for args in arguments]
            return [future.result() for future in futures]

    def for_each(self, array: np.ndarray, func: BandFunction) -> None:
        """
        Calls ``func(band, rows)`` for each band, passing a writable view on
        the band's rows of ``array``. Bands never overlap.

        :param array: The buffer to modify, rows along the first axis
        :param func: The band callback
        """
        self._run(func, [(array[rows], rows) for rows in self.bands])

    def map(self, func: BandMapFunction) -> np.ndarray:
        """
        Builds a new array by concatenating the results of ``func(rows)``
        in row order.

        :param func: Computes the output rows of one band
        :return: The combined result
        """
        bands = self.bands or [slice(0, 0)]
        results = self._run(func, [(rows,) for rows in bands])
        if len(results) == 1:
            return results[0]
        return np.concatenate(results, axis=0)


__all__ = ["RowBandExecutor", "split_rows"]
