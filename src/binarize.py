"""
Binarization policies.

Two independent comparisons live here and are kept apart on purpose:

- `binarize`: hash bits, a sample strictly *above* the threshold is 1.
- `otsu_reduce`: black & white rendering, a sample strictly *below* the
  threshold is black, everything else (including the threshold itself) white.
"""

from __future__ import annotations

from typing import cast

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from grayscale import ImageBuffer, as_sample_array, to_luminance
from otsu import grid_threshold

BLACK = 0
WHITE = 255


def binarize(grid: NDArray[np.uint8], threshold: float) -> NDArray[np.bool_]:
    """Row-major bit vector: True where a sample is brighter than `threshold`."""
    bits = (np.asarray(grid) > threshold).ravel(order="C")
    return cast(NDArray[np.bool_], bits)


def otsu_reduce(image: ImageBuffer) -> Image.Image:
    """
    Reduce an image to black and white at full resolution using its Otsu
    threshold. Returns a mode "L" image holding only 0 and 255.
    """
    gray = to_luminance(as_sample_array(image))
    threshold = grid_threshold(gray)
    reduced = np.where(gray < threshold, BLACK, WHITE).astype(np.uint8)
    return Image.fromarray(reduced)
