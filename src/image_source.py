"""
Image sources: file paths, byte buffers, binary handles and http(s) URLs,
all decoded with Pillow.

Decoding is forced with `Image.load()` so truncated or corrupt data fails
here, as ImageDecodeError, rather than later inside the pipeline.
"""

from __future__ import annotations

import io
import os
from pathlib import Path
from typing import BinaryIO, Union

import requests
from PIL import Image, UnidentifiedImageError

from errors import DegenerateImageError, ImageDecodeError
from logs import get_logger

log = get_logger(__name__)

ImageSource = Union[str, "os.PathLike[str]", bytes, bytearray, memoryview, BinaryIO]

DEFAULT_URL_TIMEOUT = 10.0
_URL_SCHEMES = ("http://", "https://")


def is_url(source: object) -> bool:
    return isinstance(source, str) and source.lower().startswith(_URL_SCHEMES)


def _decode(fp: BinaryIO, label: str) -> Image.Image:
    try:
        im = Image.open(fp)
        im.load()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        raise ImageDecodeError(f"Cannot decode image: {label}") from exc
    if im.width == 0 or im.height == 0:
        raise DegenerateImageError(f"Image has zero area: {label}")
    return im


def fetch_url(url: str, *, timeout: float = DEFAULT_URL_TIMEOUT) -> bytes:
    """Download the raw bytes behind `url`."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ImageDecodeError(f"Cannot fetch image: {url}") from exc
    log.debug("fetched %d bytes from %s", len(response.content), url)
    return response.content


def load_image(
    source: ImageSource, *, timeout: float = DEFAULT_URL_TIMEOUT
) -> Image.Image:
    """
    Decode `source` into a PIL image.

    Raises:
        ImageDecodeError: the source is missing, unreadable or not an image.
        DegenerateImageError: the decoded image has zero area.
    """
    if is_url(source):
        url = str(source)
        return _decode(io.BytesIO(fetch_url(url, timeout=timeout)), url)

    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        if not data:
            raise DegenerateImageError("Empty byte buffer")
        return _decode(io.BytesIO(data), f"<{len(data)} bytes>")

    if isinstance(source, (str, os.PathLike)):
        path = Path(source).expanduser()
        try:
            with path.open("rb") as f:
                return _decode(f, str(path))
        except ImageDecodeError:
            raise
        except OSError as exc:
            raise ImageDecodeError(f"Cannot read image file: {path}") from exc

    if hasattr(source, "read"):
        return _decode(source, getattr(source, "name", "<stream>"))

    raise ImageDecodeError(f"Unsupported image source type: {type(source).__name__}")
