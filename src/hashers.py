"""
Perceptual image hashers.

- Otsu hash: grid -> Otsu threshold -> bits above threshold -> digits
- Average hash: same grid, mean intensity as threshold
- Difference hash: (width+1) x height grid, bit = right neighbour brighter

Every hasher exposes width, height, radix, bit_count and `hash(source)`.
Hashers are immutable: `with_width()` / `with_height()` / `with_radix()`
return a new hasher, so one instance can be shared freely.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional, Protocol, Self, Tuple, Union, cast, runtime_checkable

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from binarize import binarize
from config import DEFAULT_RADIX, DEFAULT_WIDTH, HasherConfig, HashSettings
from errors import InvalidConfigurationError
from grayscale import ImageBuffer, reduce_to_grid
from hash_encoding import encode_bits
from image_source import DEFAULT_URL_TIMEOUT, ImageSource, load_image
from logs import get_logger
from otsu import ThresholdStrategy, grid_threshold, mean_threshold

log = get_logger(__name__)

HashInput = Union[ImageBuffer, ImageSource]


@runtime_checkable
class ImageHasher(Protocol):
    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    @property
    def radix(self) -> int: ...

    @property
    def bit_count(self) -> int: ...

    def hash(self, source: HashInput, *, radix: Optional[int] = None) -> str: ...


def sort_key(hasher: ImageHasher) -> Tuple[int, int]:
    """Ordering key of a hasher configuration: width, then height."""
    return (hasher.width, hasher.height)


def compare(a: ImageHasher, b: ImageHasher) -> int:
    """-1, 0 or 1 comparing configurations by width then height; radix is ignored."""
    ka, kb = sort_key(a), sort_key(b)
    return (ka > kb) - (ka < kb)


def _to_image(source: HashInput, timeout: float) -> ImageBuffer:
    if isinstance(source, (Image.Image, np.ndarray)):
        return source
    return load_image(source, timeout=timeout)


class _ConfiguredHasher:
    """Accessors, ordering and copy-on-change shared by the hashers below."""

    config: HasherConfig
    url_timeout: float

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    @property
    def radix(self) -> int:
        return self.config.radix

    @property
    def bit_count(self) -> int:
        return self.config.bit_count

    def _with_config(self, config: HasherConfig) -> Self:
        return cast(Self, replace(cast(Any, self), config=config))

    def with_width(self, width: int) -> Self:
        return self._with_config(self.config.replace(width=width))

    def with_height(self, height: int) -> Self:
        return self._with_config(self.config.replace(height=height))

    def with_radix(self, radix: int) -> Self:
        return self._with_config(self.config.replace(radix=radix))

    def compare(self, other: ImageHasher) -> int:
        return compare(self, other)  # type: ignore[arg-type]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ImageHasher):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ImageHasher):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ImageHasher):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ImageHasher):
            return NotImplemented
        return self.compare(other) >= 0

    def bits(self, source: HashInput) -> NDArray[np.bool_]:
        raise NotImplementedError

    def hash(self, source: HashInput, *, radix: Optional[int] = None) -> str:
        """
        Hash an image buffer, file path, byte buffer, binary handle or URL.

        Args:
            source: anything `grayscale.reduce_to_grid` or
                `image_source.load_image` accepts.
            radix: override the configured radix for this call only.

        Raises:
            ImageDecodeError, DegenerateImageError, InvalidConfigurationError
        """
        cfg = self.config if radix is None else self.config.replace(radix=radix)
        digest = encode_bits(self.bits(source), cfg.radix)
        log.debug(
            "%s %dx%d base-%d hash: %s",
            type(self).__name__,
            cfg.width,
            cfg.height,
            cfg.radix,
            digest,
        )
        return digest


@dataclass(frozen=True)
class ThresholdHasher(_ConfiguredHasher):
    """
    Grid hash with a pluggable threshold: reduce to a width x height
    luminance grid, pick a threshold, set a bit for every sample above it.
    """

    config: HasherConfig = field(default_factory=HasherConfig)
    threshold: ThresholdStrategy = grid_threshold
    url_timeout: float = DEFAULT_URL_TIMEOUT

    def bits(self, source: HashInput) -> NDArray[np.bool_]:
        """The row-major bit vector behind `hash()`, index 0 first."""
        image = _to_image(source, self.url_timeout)
        grid = reduce_to_grid(image, self.config.width, self.config.height)
        return binarize(grid, self.threshold(grid))


@dataclass(frozen=True)
class DifferenceHasher(_ConfiguredHasher):
    """
    Gradient hash: a (width+1) x height grid, each bit set when a sample is
    brighter than its left neighbour.
    """

    config: HasherConfig = field(default_factory=HasherConfig)
    url_timeout: float = DEFAULT_URL_TIMEOUT

    def bits(self, source: HashInput) -> NDArray[np.bool_]:
        image = _to_image(source, self.url_timeout)
        grid = reduce_to_grid(image, self.config.width + 1, self.config.height)
        diff: NDArray[np.bool_] = grid[:, 1:] > grid[:, :-1]
        return diff.ravel()


def _config(width: int, height: Optional[int], radix: int) -> HasherConfig:
    return HasherConfig.build(
        width=width, height=width if height is None else height, radix=radix
    )


def otsu_hasher(
    width: int = DEFAULT_WIDTH,
    height: Optional[int] = None,
    radix: int = DEFAULT_RADIX,
) -> ThresholdHasher:
    """Otsu hasher; `otsu_hasher(16)` is a square 16x16 grid."""
    return ThresholdHasher(_config(width, height, radix), grid_threshold)


def average_hasher(
    width: int = DEFAULT_WIDTH,
    height: Optional[int] = None,
    radix: int = DEFAULT_RADIX,
) -> ThresholdHasher:
    return ThresholdHasher(_config(width, height, radix), mean_threshold)


def difference_hasher(
    width: int = DEFAULT_WIDTH,
    height: Optional[int] = None,
    radix: int = DEFAULT_RADIX,
) -> DifferenceHasher:
    return DifferenceHasher(_config(width, height, radix))


def build_hasher(settings: Optional[HashSettings] = None) -> ImageHasher:
    """Hasher described by `settings` (defaults: 8x8 Otsu, base 16)."""
    s = settings or HashSettings()
    if s.algorithm == "otsu":
        return ThresholdHasher(s.hasher, grid_threshold, s.url_timeout)
    if s.algorithm == "average":
        return ThresholdHasher(s.hasher, mean_threshold, s.url_timeout)
    if s.algorithm == "difference":
        return DifferenceHasher(s.hasher, s.url_timeout)
    raise InvalidConfigurationError(f"Unknown algorithm: {s.algorithm}")
