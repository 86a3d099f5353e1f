"""
Grayscale reduction: any image buffer -> width x height uint8 luminance grid.

- PIL images and numpy arrays (H,W), (H,W,1), (H,W,3) RGB, (H,W,4) RGBA.
- 16-bit and float samples are rescaled to 8 bits, never clipped.
- Channels reduced with BT.601 luma weights (cv2.cvtColor).
- Resampled with area interpolation (cv2.INTER_AREA); deterministic for a
  fixed input and target size.
"""

from __future__ import annotations

from typing import Union, cast

import cv2  # type: ignore[import-untyped]
import numpy as np
from numpy.typing import NDArray
from PIL import Image

from errors import DegenerateImageError, ImageDecodeError, InvalidConfigurationError
from logs import get_logger

log = get_logger(__name__)

ImageBuffer = Union[Image.Image, NDArray[np.generic]]
SampleGrid = NDArray[np.uint8]

_SINGLE_BAND_MODES = {"1", "L"}


def _pil_target_mode(image: Image.Image) -> str:
    # Palette, CMYK, YCbCr etc. all go through RGB(A); 1-bit through L.
    if image.mode in _SINGLE_BAND_MODES:
        return "L"
    if "A" in image.getbands() or "transparency" in image.info:
        return "RGBA"
    return "RGB"


def _pil_samples(image: Image.Image) -> NDArray[np.generic]:
    # convert("L") clips wide modes at 255, so read their raw samples instead.
    if image.mode.startswith("I;16"):
        return np.asarray(image).astype(np.uint16)
    if image.mode == "I":
        # Pillow stores 16-bit PNG/TIFF as "I" on older releases
        return np.clip(np.asarray(image), 0, 65535).astype(np.uint16)
    if image.mode == "F":
        # float images follow Pillow's convert("F") range, 0..255
        return np.asarray(image, dtype=np.float64) / 255.0
    return np.asarray(image.convert(_pil_target_mode(image)))


def _to_uint8(arr: NDArray[np.generic]) -> NDArray[np.uint8]:
    """
    Rescale samples to uint8: bool to 0/255, unsigned ints by their full
    range, floats from [0, 1] (clipped).
    """
    if arr.dtype == np.uint8:
        return cast(NDArray[np.uint8], arr)
    if arr.dtype == np.bool_:
        return arr.astype(np.uint8) * np.uint8(255)
    if np.issubdtype(arr.dtype, np.unsignedinteger):
        scale = 255.0 / float(np.iinfo(arr.dtype).max)
        return np.rint(arr.astype(np.float64) * scale).astype(np.uint8)
    if np.issubdtype(arr.dtype, np.floating):
        return np.rint(np.clip(arr, 0.0, 1.0) * 255.0).astype(np.uint8)
    raise ImageDecodeError(f"Unsupported sample type: {arr.dtype}")


def as_sample_array(image: ImageBuffer) -> NDArray[np.uint8]:
    """
    Convert an image buffer to a uint8 array, keeping its channels.
    16-bit and float samples are rescaled, not clipped.

    Raises:
        DegenerateImageError: zero width or height.
        ImageDecodeError: unsupported shape or sample type.
    """
    if isinstance(image, Image.Image):
        if image.width == 0 or image.height == 0:
            raise DegenerateImageError(f"Image has zero area: {image.size}")
        arr = _pil_samples(image)
    else:
        arr = np.asarray(image)

    if arr.ndim not in (2, 3) or (arr.ndim == 3 and arr.shape[2] not in (1, 3, 4)):
        raise ImageDecodeError(f"Unsupported image shape: {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise DegenerateImageError(f"Image has zero area: {arr.shape[:2]}")
    return _to_uint8(arr)


def to_luminance(arr: NDArray[np.uint8]) -> SampleGrid:
    """Collapse channels to one luminance sample per pixel."""
    if arr.ndim == 2:
        return arr
    channels = arr.shape[2]
    if channels == 1:
        return cast(SampleGrid, arr[:, :, 0])
    code = cv2.COLOR_RGBA2GRAY if channels == 4 else cv2.COLOR_RGB2GRAY
    gray = cv2.cvtColor(np.ascontiguousarray(arr), code)  # type: ignore[no-untyped-call]
    return cast(SampleGrid, gray)


def reduce_to_grid(image: ImageBuffer, width: int, height: int) -> SampleGrid:
    """
    Reduce `image` to a (height, width) grid of luminance samples.

    Raises:
        InvalidConfigurationError: width or height <= 0.
        DegenerateImageError: the image has no samples.
    """
    if width <= 0 or height <= 0:
        raise InvalidConfigurationError(
            f"Grid dimensions must be positive, got {width}x{height}"
        )
    gray = to_luminance(as_sample_array(image))
    h, w = gray.shape
    if (w, h) != (width, height):
        gray = cv2.resize(  # type: ignore[no-untyped-call]
            np.ascontiguousarray(gray), (width, height), interpolation=cv2.INTER_AREA
        )
    grid = np.ascontiguousarray(gray, dtype=np.uint8)
    log.debug("reduced %dx%d image to %dx%d grid", w, h, width, height)
    return cast(SampleGrid, grid)
