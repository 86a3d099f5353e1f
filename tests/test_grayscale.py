from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from errors import DegenerateImageError, ImageDecodeError, InvalidConfigurationError
from grayscale import as_sample_array, reduce_to_grid


def test_gray_same_size_passes_through() -> None:
    rng = np.random.default_rng(5)
    arr = rng.integers(0, 256, size=(8, 8), dtype=np.uint8)
    grid = reduce_to_grid(arr, 8, 8)
    assert grid.dtype == np.uint8
    assert np.array_equal(grid, arr)


def test_grid_shape_is_height_by_width() -> None:
    arr = np.zeros((40, 30, 3), dtype=np.uint8)
    grid = reduce_to_grid(arr, 9, 8)
    assert grid.shape == (8, 9)


def test_uniform_colors_keep_exact_value() -> None:
    white = np.full((33, 17, 3), 255, dtype=np.uint8)
    assert (reduce_to_grid(white, 8, 8) == 255).all()
    rgba = np.zeros((20, 20, 4), dtype=np.uint8)
    rgba[..., 3] = 255
    assert (reduce_to_grid(rgba, 4, 4) == 0).all()


def test_pil_modes_supported() -> None:
    for mode, color in [("L", 200), ("RGB", (200, 200, 200)), ("RGBA", (200, 200, 200, 255))]:
        im = Image.new(mode, (16, 12), color=color)
        grid = reduce_to_grid(im, 8, 8)
        assert grid.shape == (8, 8)
        assert (grid == 200).all()
    pal = Image.new("RGB", (10, 10), color=(10, 10, 10)).convert("P")
    assert reduce_to_grid(pal, 5, 5).shape == (5, 5)


def test_bool_array_maps_to_black_and_white() -> None:
    arr = np.array([[True, False], [False, True]])
    assert as_sample_array(arr).tolist() == [[255, 0], [0, 255]]


def test_resize_is_deterministic() -> None:
    rng = np.random.default_rng(9)
    arr = rng.integers(0, 256, size=(123, 77, 3), dtype=np.uint8)
    assert np.array_equal(reduce_to_grid(arr, 8, 8), reduce_to_grid(arr, 8, 8))


def test_rejects_bad_inputs() -> None:
    with pytest.raises(DegenerateImageError):
        reduce_to_grid(np.zeros((0, 5), dtype=np.uint8), 8, 8)
    with pytest.raises(ImageDecodeError):
        reduce_to_grid(np.zeros((4, 4), dtype=np.int16), 8, 8)
    with pytest.raises(ImageDecodeError):
        reduce_to_grid(np.zeros((4, 4, 2), dtype=np.uint8), 8, 8)
    with pytest.raises(InvalidConfigurationError):
        reduce_to_grid(np.zeros((4, 4), dtype=np.uint8), 0, 8)
    with pytest.raises(InvalidConfigurationError):
        reduce_to_grid(np.zeros((4, 4), dtype=np.uint8), 8, -1)


def test_sixteen_bit_samples_are_rescaled() -> None:
    arr = np.array([[0, 20000], [40000, 65535]], dtype=np.uint16)
    expected = [[0, 78], [156, 255]]
    assert as_sample_array(arr).tolist() == expected
    assert as_sample_array(Image.fromarray(arr)).tolist() == expected
    big_endian = Image.frombytes("I;16B", (2, 2), arr.astype(">u2").tobytes())
    assert as_sample_array(big_endian).tolist() == expected
    assert reduce_to_grid(big_endian, 2, 2).tolist() == expected


def test_sixteen_bit_png_keeps_contrast() -> None:
    arr = np.full((32, 32), 20000, dtype=np.uint16)
    arr[:, 16:] = 60000
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    with Image.open(io.BytesIO(buf.getvalue())) as im:
        grid = reduce_to_grid(im, 8, 8)
    assert (grid[:, :4] == 78).all()
    assert (grid[:, 4:] == 233).all()


def test_float_samples_are_rescaled() -> None:
    arr = np.array([[0.0, 0.5], [1.0, 2.0]], dtype=np.float32)
    assert as_sample_array(arr).tolist() == [[0, 128], [255, 255]]
    pil_float = Image.fromarray(np.array([[0.0, 100.0], [255.0, 300.0]], dtype=np.float32))
    assert pil_float.mode == "F"
    assert as_sample_array(pil_float).tolist() == [[0, 100], [255, 255]]
