"""
Threshold strategies for binarizing a sample grid.

`otsu_threshold` searches the intensity that maximizes between-class
variance. When several buckets reach the same maximum it returns the
midpoint of the first strict-maximum bucket and the last tying bucket, so a
flat stretch of the histogram (no samples between two peaks) resolves to
the middle of the gap instead of its left edge.
"""

from __future__ import annotations

from typing import Callable, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from errors import DegenerateImageError
from histogram import N_GRAY, build_histogram
from logs import get_logger

log = get_logger(__name__)

ThresholdStrategy = Callable[[NDArray[np.uint8]], float]


def otsu_threshold(
    histogram: Union[Sequence[int], NDArray[np.integer]], total: int
) -> float:
    """
    Otsu threshold for a 256-bucket histogram of `total` samples.

    Always in [0, 255]. A histogram with a single occupied bucket has no
    valid split and yields 0.0.
    """
    counts = [int(c) for c in histogram]
    if len(counts) != N_GRAY:
        raise ValueError(f"histogram must have {N_GRAY} buckets, got {len(counts)}")

    total_sum = 0
    for i in range(1, N_GRAY):
        total_sum += i * counts[i]

    sum_b = 0
    w_b = 0
    best = 0.0
    threshold1 = 0.0
    threshold2 = 0.0
    for i in range(N_GRAY):
        w_b += counts[i]
        if w_b == 0:
            continue
        w_f = total - w_b
        if w_f == 0:
            break
        sum_b += i * counts[i]
        m_b = sum_b / w_b
        m_f = (total_sum - sum_b) / w_f
        between = float(w_b * w_f) * (m_b - m_f) * (m_b - m_f)
        if between >= best:
            threshold1 = i
            if between > best:
                threshold2 = i
            best = between
    return (threshold1 + threshold2) / 2.0


def grid_threshold(grid: NDArray[np.uint8]) -> float:
    """Otsu threshold of a sample grid."""
    if grid.size == 0:
        raise DegenerateImageError("Cannot threshold an empty grid")
    threshold = otsu_threshold(build_histogram(grid), int(grid.size))
    log.debug("otsu threshold=%.1f over %d samples", threshold, grid.size)
    return threshold


def mean_threshold(grid: NDArray[np.uint8]) -> float:
    """Average intensity of a sample grid (aHash threshold)."""
    if grid.size == 0:
        raise DegenerateImageError("Cannot threshold an empty grid")
    return float(np.mean(grid, dtype=np.float64))
