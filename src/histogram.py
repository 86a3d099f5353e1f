"""Intensity histogram of a sample grid (256 buckets)."""

from __future__ import annotations

from typing import cast

import numpy as np
from numpy.typing import NDArray

N_GRAY = 256

Histogram = NDArray[np.int64]


def build_histogram(grid: NDArray[np.uint8]) -> Histogram:
    """Count samples per intensity; the counts always sum to `grid.size`."""
    samples = np.asarray(grid, dtype=np.uint8).ravel()
    hist = np.bincount(samples, minlength=N_GRAY).astype(np.int64)
    return cast(Histogram, hist)
